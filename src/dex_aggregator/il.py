"""
Impermanent loss of a constant-product position, in basis points.

With r the relative price move of token0 against token1,

    r        = (current0 / initial0) / (current1 / initial1)
    hold     = amount0 * current0 + amount1 * current1
    lp       = hold * 2 * sqrt(r) / (1 + r)
    loss_bps = (hold - lp) * 10000 / hold         (0 when lp >= hold)

Everything is computed on unsigned integers at WAD (1e18) scale; sqrt is
the Babylonian integer root. With unchanged prices r == WAD exactly, so
sqrt(r * WAD) == WAD and lp == hold: the loss is exactly 0 for any amounts.
The factor 2*sqrt(r)/(1+r) never exceeds 1, so the loss never exceeds 10000.
"""
from __future__ import annotations

from .core.constants import BPS_DENOMINATOR, WAD
from .core.exc import InvalidInput
from .core.fixed_point import checked_add, checked_mul, checked_sub, isqrt, mul_div

DEBUG_IL = False

def _dbg(msg: str) -> None:
    if DEBUG_IL:
        print(f"[IL] {msg}")


def price_ratio(initial_price0: int, initial_price1: int, current_price0: int, current_price1: int) -> int:
    """Relative move of token0 against token1, WAD-scaled."""
    for name, p in (("initial_price0", initial_price0), ("initial_price1", initial_price1),
                    ("current_price0", current_price0), ("current_price1", current_price1)):
        if not isinstance(p, int) or isinstance(p, bool) or p <= 0:
            raise InvalidInput(f"{name} must be a positive integer")
    move0 = mul_div(current_price0, WAD, initial_price0)
    move1 = mul_div(current_price1, WAD, initial_price1)
    if move1 == 0:
        raise InvalidInput("token1 price move underflows the fixed-point scale")
    return mul_div(move0, WAD, move1)


def calculate_il(
    initial_price0: int,
    initial_price1: int,
    current_price0: int,
    current_price1: int,
    amount0: int,
    amount1: int,
) -> int:
    """Impermanent loss in bps, in [0, 10000]."""
    r = price_ratio(initial_price0, initial_price1, current_price0, current_price1)
    hold = checked_add(checked_mul(amount0, current_price0), checked_mul(amount1, current_price1))
    if hold == 0:
        return 0
    sqrt_r = isqrt(checked_mul(r, WAD))
    lp = mul_div(hold, checked_mul(2, sqrt_r), checked_add(WAD, r))
    _dbg(f"r={r} sqrt_r={sqrt_r} hold={hold} lp={lp}")
    if lp >= hold:
        return 0
    return mul_div(checked_sub(hold, lp), BPS_DENOMINATOR, hold)


__all__ = ["price_ratio", "calculate_il"]
