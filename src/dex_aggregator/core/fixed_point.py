"""
Fixed-point primitives: checked unsigned arithmetic and integer square root.

- Unsigned domain: every operand and result lies in [0, MAX_UINT256].
- Results that would leave the domain raise ArithmeticOverflow; negative
  operands raise InvalidInput. There is no silent wrap-around.
- Division rounds toward zero unless the helper says otherwise.

No floats anywhere: all values are Python ints at a caller-chosen scale
(usually WAD = 1e18).
"""

from __future__ import annotations

from .constants import MAX_UINT256
from .exc import ArithmeticOverflow, InvalidInput

# Debug printing control
DEBUG_FIXED_POINT = False

def _dbg(msg: str) -> None:
    if DEBUG_FIXED_POINT:
        print(msg)


# ----------------------------
# Domain checks
# ----------------------------

def _check_operand(x: int, name: str) -> None:
    if not isinstance(x, int) or isinstance(x, bool):
        raise InvalidInput(f"{name} must be int, got {type(x).__name__}")
    if x < 0:
        raise InvalidInput(f"{name} must be >= 0")
    if x > MAX_UINT256:
        raise ArithmeticOverflow(f"{name} exceeds uint256")


def _check_result(x: int, op: str) -> int:
    if x > MAX_UINT256:
        raise ArithmeticOverflow(f"{op} overflow")
    return x


# ----------------------------
# Checked arithmetic
# ----------------------------

def checked_add(a: int, b: int) -> int:
    _check_operand(a, "a")
    _check_operand(b, "b")
    return _check_result(a + b, "add")


def checked_sub(a: int, b: int) -> int:
    _check_operand(a, "a")
    _check_operand(b, "b")
    if b > a:
        raise ArithmeticOverflow("sub underflow")
    return a - b


def checked_mul(a: int, b: int) -> int:
    _check_operand(a, "a")
    _check_operand(b, "b")
    return _check_result(a * b, "mul")


def floor_div(a: int, b: int) -> int:
    _check_operand(a, "a")
    _check_operand(b, "b")
    if b == 0:
        raise ZeroDivisionError("division by zero")
    return a // b


def ceil_div(a: int, b: int) -> int:
    _check_operand(a, "a")
    _check_operand(b, "b")
    if b == 0:
        raise ZeroDivisionError("division by zero")
    return 0 if a == 0 else -(-a // b)


def mul_div(a: int, b: int, denominator: int) -> int:
    """floor(a * b / denominator) with a full-width intermediate product.

    The product may exceed uint256 (it is widened, as in a 512-bit mulDiv);
    only the final quotient must fit.
    """
    _check_operand(a, "a")
    _check_operand(b, "b")
    _check_operand(denominator, "denominator")
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    return _check_result((a * b) // denominator, "mul_div")


def mul_div_rounding_up(a: int, b: int, denominator: int) -> int:
    _check_operand(a, "a")
    _check_operand(b, "b")
    _check_operand(denominator, "denominator")
    if denominator == 0:
        raise ZeroDivisionError("mul_div by zero")
    q, r = divmod(a * b, denominator)
    if r:
        q += 1
    return _check_result(q, "mul_div_rounding_up")


# ----------------------------
# Integer square root
# ----------------------------

def isqrt(y: int) -> int:
    """floor(sqrt(y)) by Babylonian iteration over unsigned integers.

    Exact and deterministic: the iterate decreases monotonically from
    y // 2 + 1 and stops at the first non-decreasing step.
    """
    _check_operand(y, "y")
    if y > 3:
        z = y
        x = y // 2 + 1
        steps = 0
        while x < z:
            z = x
            x = (y // x + x) // 2
            steps += 1
        _dbg(f"isqrt: y={y} -> {z} in {steps} steps")
        return z
    if y != 0:
        return 1
    return 0


__all__ = [
    "checked_add",
    "checked_sub",
    "checked_mul",
    "floor_div",
    "ceil_div",
    "mul_div",
    "mul_div_rounding_up",
    "isqrt",
]
