"""
DEX Aggregator Core Constants (integer domain)
==============================================

Protocol-level integer constants shared by the route and analytics engines.
Tunables that an operator may change live in `dex_aggregator.config`.
"""

# NOTE: Fees and loss figures are basis points out of BPS_DENOMINATOR; never floats.

# ---------------------------------------------------------------------------
# Basis points
# ---------------------------------------------------------------------------

#: 1 bp = 1/10000.
BPS_DENOMINATOR: int = 10_000

#: Upper bound for venue and platform fees (10%).
MAX_FEE_BPS: int = 1_000


# ---------------------------------------------------------------------------
# Fixed-point scale and bounds
# ---------------------------------------------------------------------------

#: Common fixed-point scale for price/value arithmetic (1e18).
WAD: int = 10 ** 18

#: Largest representable unsigned value; intermediate results above this overflow.
MAX_UINT256: int = 2 ** 256 - 1

#: Q64.96 scale for concentrated-liquidity sqrt prices.
Q96: int = 2 ** 96

#: Concentrated-liquidity fee tiers are expressed in hundredths of a bip.
FEE_TIER_DENOMINATOR: int = 1_000_000


# ---------------------------------------------------------------------------
# Analytics bounds
# ---------------------------------------------------------------------------

#: One week of hourly snapshots per pool.
MAX_SNAPSHOTS: int = 168

#: Pools returned alongside a token record by `get_token_analytics`.
TOP_TOKEN_POOLS: int = 5

#: Symbol used when token metadata cannot be resolved.
PLACEHOLDER_SYMBOL: str = "UNKNOWN"

#: Events kept by the facade's shared log before the oldest are dropped.
EVENT_LOG_MAXLEN: int = 10_000


# ---------------------------------------------------------------------------
# Static gas estimates per protocol variant
# ---------------------------------------------------------------------------

CONSTANT_PRODUCT_GAS: int = 150_000
CONCENTRATED_LIQUIDITY_GAS: int = 180_000


__all__ = [
    "BPS_DENOMINATOR",
    "MAX_FEE_BPS",
    "WAD",
    "MAX_UINT256",
    "Q96",
    "FEE_TIER_DENOMINATOR",
    "MAX_SNAPSHOTS",
    "TOP_TOKEN_POOLS",
    "PLACEHOLDER_SYMBOL",
    "CONSTANT_PRODUCT_GAS",
    "CONCENTRATED_LIQUIDITY_GAS",
]
