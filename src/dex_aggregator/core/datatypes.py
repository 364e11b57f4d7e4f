"""
Core datatypes used by the route and analytics engines.

These datatypes are intentionally minimal and immutable so that ranking,
execution and aggregation logic stay deterministic and testable. Records are
replaced (``dataclasses.replace``) rather than mutated in place.

Notes:
- Token and venue identifiers are opaque address-like strings.
- Token amounts are raw integer units; USD figures are integers at the
  caller's chosen scale. No floats.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from .exc import InvalidInput


# ---------------------------------------------------------------------------
# Venues
# ---------------------------------------------------------------------------

class ProtocolVariant(Enum):
    """Venue protocol families with distinct quote/execute interfaces."""
    CONSTANT_PRODUCT = "constant_product"
    CONCENTRATED_LIQUIDITY = "concentrated_liquidity"

    @classmethod
    def parse(cls, value: Union["ProtocolVariant", str, int]) -> "ProtocolVariant":
        """Accept an enum member, its value/name, or a legacy ordinal (0 or 1)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if key in (member.value, member.name.lower()):
                    return member
        raise InvalidInput(f"unrecognised protocol variant: {value!r}")


@dataclass(frozen=True)
class Venue:
    """Registered swap venue.

    Fields:
    - venue_id: stable address-like handle.
    - display_name: human-readable label carried into quotes.
    - active: soft on/off switch; venues are never deleted.
    - fee_bps: venue fee in bps, 0..MAX_FEE_BPS.
    - variant: protocol family deciding the execution path.
    """

    venue_id: str
    display_name: str
    active: bool
    fee_bps: int
    variant: ProtocolVariant


# ---------------------------------------------------------------------------
# Route side
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class SwapRequest:
    token_in: str
    token_out: str
    amount_in: int
    min_amount_out: int
    venue_id: str
    deadline: int
    fee_tier: Optional[int] = None


@dataclass(frozen=True)
class RouteQuote:
    """Comparable quote from one venue; transient, never persisted."""

    venue_id: Optional[str]
    amount_out: int
    estimated_gas: int
    fee_bps: int
    display_name: str

    @property
    def is_route(self) -> bool:
        """False for the no-route sentinel."""
        return self.venue_id is not None


#: Returned by route selection when no venue produced a quote.
NO_ROUTE = RouteQuote(venue_id=None, amount_out=0, estimated_gas=0, fee_bps=0, display_name="")


@dataclass(frozen=True)
class SwapExecuted:
    """Record of a settled swap (emitted only after the whole swap commits)."""

    caller: str
    token_in: str
    token_out: str
    amount_in: int
    amount_out: int
    venue_id: str
    fee_amount: int


# ---------------------------------------------------------------------------
# Analytics side
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PoolRecord:
    pool_id: str
    token_a: str
    token_b: str
    venue_id: str
    display_name: str
    liquidity_usd: int
    volume24h_usd: int
    fees24h_usd: int
    apr_bps: int
    last_updated_at: int
    active: bool = True

    def references(self, token: str) -> bool:
        return token in (self.token_a, self.token_b)

    def matches_pair(self, token_a: str, token_b: str) -> bool:
        """Unordered pair match."""
        return (self.token_a, self.token_b) in ((token_a, token_b), (token_b, token_a))


@dataclass(frozen=True)
class TokenRecord:
    """Per-token aggregate. The totals are always recomputed from active pools."""

    token: str
    symbol: str
    price_usd: int = 0
    total_liquidity_usd: int = 0
    volume24h_usd: int = 0
    pool_count: int = 0
    last_updated_at: int = 0


@dataclass(frozen=True)
class VolumeSnapshot:
    timestamp: int
    volume: int
    liquidity: int
    price: int = 0


@dataclass(frozen=True)
class AnalyticsTotals:
    total_pools: int
    active_pools: int
    total_tokens: int
    total_liquidity_usd: int
    total_volume24h_usd: int


__all__ = [
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
]
