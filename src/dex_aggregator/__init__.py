# Top-level API for dex_aggregator (integer-domain).
"""
Top-level API for dex_aggregator (integer-domain).

This module exposes the stable interface of the two engines:
  - Route side: VenueRegistry, QuoteAggregator, RouteSelector, SwapExecutor
  - Analytics side: LiquidityAnalytics, VolumeHistoryStore, calculate_il
  - DexAggregator: facade wiring both sides together

Token amounts and USD figures are unsigned integers throughout; there are no
floats in any pricing, fee or analytics path.

Reference venues and the in-memory ledger live in `dex_aggregator.venues` and
`dex_aggregator.ledger`; pandas reporting helpers in `dex_aggregator.reporting`.
"""

# NOTE:
#   `reporting` (pandas) is not imported here; import it explicitly when
#   building DataFrames.

from __future__ import annotations

from .aggregator import DexAggregator
from .analytics import LiquidityAnalytics
from .config import EngineConfig, load_config
from .events import Event, EventLog
from .executor import SwapExecutor
from .history import VolumeHistoryStore
from .il import calculate_il
from .ledger import AssetLedger, InMemoryLedger
from .quotes import QuoteAggregator, QuoteOutcome
from .registry import VenueRegistry
from .router import RouteSelector, select_best
from .venues import ConcentratedLiquidityVenue, ConstantProductVenue, VenueAdapter

# Core data types and errors
from .core import (
    ProtocolVariant,
    Venue,
    SwapRequest,
    RouteQuote,
    NO_ROUTE,
    SwapExecuted,
    PoolRecord,
    TokenRecord,
    VolumeSnapshot,
    AnalyticsTotals,
    AccessControl,
    ErrorKind,
    DexError,
    InvalidInput,
    Unauthorized,
    NotFound,
    UnsupportedSource,
    DeadlineExpired,
    SlippageExceeded,
    TransferFailed,
    ArithmeticOverflow,
    ReentrantCall,
    VenueExecutionError,
)

__version__ = "0.1.0"

__all__ = [
    # facade
    "DexAggregator",
    # route side
    "VenueRegistry",
    "QuoteAggregator",
    "QuoteOutcome",
    "RouteSelector",
    "select_best",
    "SwapExecutor",
    "VenueAdapter",
    "ConstantProductVenue",
    "ConcentratedLiquidityVenue",
    "AssetLedger",
    "InMemoryLedger",
    # analytics side
    "LiquidityAnalytics",
    "VolumeHistoryStore",
    "calculate_il",
    # config and events
    "EngineConfig",
    "load_config",
    "Event",
    "EventLog",
    # core data types
    "ProtocolVariant",
    "Venue",
    "SwapRequest",
    "RouteQuote",
    "NO_ROUTE",
    "SwapExecuted",
    "PoolRecord",
    "TokenRecord",
    "VolumeSnapshot",
    "AnalyticsTotals",
    "AccessControl",
    # errors
    "ErrorKind",
    "DexError",
    "InvalidInput",
    "Unauthorized",
    "NotFound",
    "UnsupportedSource",
    "DeadlineExpired",
    "SlippageExceeded",
    "TransferFailed",
    "ArithmeticOverflow",
    "ReentrantCall",
    "VenueExecutionError",
]
