"""
AMM curve math (integer domain), **pool math only**.

Constant product:
  Venue fee (bps) is deducted on the *input* side; OUT rounds down, IN rounds up.

Concentrated liquidity (single active range):
  Prices are Q64.96 square roots. Fee tiers are hundredths of a bip
  (3000 = 0.30%). Within one range the curve is x*y = L^2, so an exact-input
  swap moves sqrtP along the range and pays out the token delta.

No Decimal or float is involved; every step is a checked integer operation.
"""
from __future__ import annotations

from typing import Tuple

from .core.constants import BPS_DENOMINATOR, FEE_TIER_DENOMINATOR, Q96
from .core.exc import InvalidInput
from .core.fixed_point import ceil_div, mul_div, mul_div_rounding_up

# --- Debug utilities (toggleable) ---
DEBUG_AMM = False

def _dbg(msg: str) -> None:
    if DEBUG_AMM:
        print(f"[AMM] {msg}")


# ----------------------------
# Constant product
# ----------------------------

def get_amount_out(amount_in: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """OUT for a given gross IN on x*y=k with input-side fee (floored)."""
    if amount_in < 0:
        raise InvalidInput("amount_in must be >= 0")
    if not (0 <= fee_bps < BPS_DENOMINATOR):
        raise InvalidInput("fee_bps must satisfy 0 <= fee < 10000")
    if amount_in == 0 or reserve_in <= 0 or reserve_out <= 0:
        return 0
    amount_in_with_fee = amount_in * (BPS_DENOMINATOR - fee_bps)
    numerator = amount_in_with_fee * reserve_out
    denominator = reserve_in * BPS_DENOMINATOR + amount_in_with_fee
    out = numerator // denominator
    _dbg(f"cp out: in={amount_in} r=({reserve_in},{reserve_out}) fee={fee_bps} -> {out}")
    return out


def get_amount_in(amount_out: int, reserve_in: int, reserve_out: int, fee_bps: int) -> int:
    """Minimal gross IN to obtain `amount_out` (ceiled). Zero if the pool would drain."""
    if amount_out < 0:
        raise InvalidInput("amount_out must be >= 0")
    if not (0 <= fee_bps < BPS_DENOMINATOR):
        raise InvalidInput("fee_bps must satisfy 0 <= fee < 10000")
    if amount_out == 0 or reserve_in <= 0 or reserve_out <= amount_out:
        return 0
    numerator = reserve_in * amount_out * BPS_DENOMINATOR
    denominator = (reserve_out - amount_out) * (BPS_DENOMINATOR - fee_bps)
    return ceil_div(numerator, denominator)


# ----------------------------
# Concentrated liquidity (Q64.96)
# ----------------------------

def amount0_delta(sqrt_a: int, sqrt_b: int, liquidity: int, *, round_up: bool) -> int:
    """Token0 between two sqrt prices: L * (sqrtB - sqrtA) / (sqrtA * sqrtB)."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if sqrt_a <= 0:
        raise InvalidInput("sqrt price must be > 0")
    numerator1 = liquidity << 96
    numerator2 = sqrt_b - sqrt_a
    if round_up:
        return ceil_div(mul_div_rounding_up(numerator1, numerator2, sqrt_b), sqrt_a)
    return mul_div(numerator1, numerator2, sqrt_b) // sqrt_a


def amount1_delta(sqrt_a: int, sqrt_b: int, liquidity: int, *, round_up: bool) -> int:
    """Token1 between two sqrt prices: L * (sqrtB - sqrtA)."""
    if sqrt_a > sqrt_b:
        sqrt_a, sqrt_b = sqrt_b, sqrt_a
    if round_up:
        return mul_div_rounding_up(liquidity, sqrt_b - sqrt_a, Q96)
    return mul_div(liquidity, sqrt_b - sqrt_a, Q96)


def next_sqrt_price_from_input(sqrt_price: int, liquidity: int, amount_in: int, *, zero_for_one: bool) -> int:
    """Sqrt price after adding `amount_in` (fee already removed).

    token0 in pushes the price down (rounded up so the pool never overpays);
    token1 in pushes it up (rounded down).
    """
    if sqrt_price <= 0 or liquidity <= 0:
        raise InvalidInput("sqrt_price and liquidity must be > 0")
    if amount_in == 0:
        return sqrt_price
    if zero_for_one:
        numerator1 = liquidity << 96
        return mul_div_rounding_up(numerator1, sqrt_price, numerator1 + amount_in * sqrt_price)
    return sqrt_price + mul_div(amount_in, Q96, liquidity)


def cl_swap_exact_input(
    sqrt_price: int,
    liquidity: int,
    amount_in: int,
    fee_tier: int,
    *,
    zero_for_one: bool,
) -> Tuple[int, int]:
    """Return (amount_out, next_sqrt_price) for an exact-input swap within one range."""
    if not (0 <= fee_tier < FEE_TIER_DENOMINATOR):
        raise InvalidInput("fee_tier must satisfy 0 <= fee < 1_000_000")
    if amount_in <= 0:
        return 0, sqrt_price
    amount_less_fee = mul_div(amount_in, FEE_TIER_DENOMINATOR - fee_tier, FEE_TIER_DENOMINATOR)
    nxt = next_sqrt_price_from_input(sqrt_price, liquidity, amount_less_fee, zero_for_one=zero_for_one)
    if zero_for_one:
        out = amount1_delta(nxt, sqrt_price, liquidity, round_up=False)
    else:
        out = amount0_delta(sqrt_price, nxt, liquidity, round_up=False)
    _dbg(f"cl out: in={amount_in} L={liquidity} zfo={zero_for_one} -> {out}")
    return out, nxt


__all__ = [
    "get_amount_out",
    "get_amount_in",
    "amount0_delta",
    "amount1_delta",
    "next_sqrt_price_from_input",
    "cl_swap_exact_input",
]
