"""
DEX Aggregator Core
===================

Unified exports for integer-domain constants, fixed-point helpers, datatypes,
access control and the error taxonomy shared by the route and analytics
engines. All arithmetic is unsigned integer arithmetic; there are no floats.
"""

# NOTE:
#   The `core` package is dependency-free. Engine modules (venues, quotes,
#   router, executor, analytics) build on these primitives.

# Integer-domain constants
from .constants import (
    BPS_DENOMINATOR,
    MAX_FEE_BPS,
    WAD,
    MAX_UINT256,
    Q96,
    FEE_TIER_DENOMINATOR,
    MAX_SNAPSHOTS,
    TOP_TOKEN_POOLS,
    PLACEHOLDER_SYMBOL,
    EVENT_LOG_MAXLEN,
    CONSTANT_PRODUCT_GAS,
    CONCENTRATED_LIQUIDITY_GAS,
)

# Checked arithmetic and square root
from .fixed_point import (
    checked_add,
    checked_sub,
    checked_mul,
    floor_div,
    ceil_div,
    mul_div,
    mul_div_rounding_up,
    isqrt,
)

# Core datatypes
from .datatypes import (
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
)

# Roles
from .access import AccessControl

# Core exceptions
from .exc import (
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

__all__ = [
    # constants
    "BPS_DENOMINATOR",
    "MAX_FEE_BPS",
    "WAD",
    "MAX_UINT256",
    "Q96",
    "FEE_TIER_DENOMINATOR",
    "MAX_SNAPSHOTS",
    "TOP_TOKEN_POOLS",
    "PLACEHOLDER_SYMBOL",
    "EVENT_LOG_MAXLEN",
    "CONSTANT_PRODUCT_GAS",
    "CONCENTRATED_LIQUIDITY_GAS",
    # fixed point
    "checked_add",
    "checked_sub",
    "checked_mul",
    "floor_div",
    "ceil_div",
    "mul_div",
    "mul_div_rounding_up",
    "isqrt",
    # datatypes
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
    # roles
    "AccessControl",
    # exceptions
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
