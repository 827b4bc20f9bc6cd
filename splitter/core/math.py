"""Checked uint256 arithmetic for the allocation engine.

Every function is stateless and operates on plain Python ints. Python ints do
not wrap, so "checked" here means: inputs and results must stay inside
[0, 2**256 - 1], otherwise `SplitOverflowError` is raised. Division is floor
division (`//`) on non-negative operands.
"""

from __future__ import annotations

from ..errors import SplitOverflowError
from ..state.caps import MAX_UINT256
from ..state.weights import BPS_DENOM


def require_uint(name: str, value: int) -> int:
    """Return `value` if it is a uint256, else raise."""
    if not isinstance(value, int) or isinstance(value, bool):
        raise TypeError(f"{name} must be an int")
    if value < 0 or value > MAX_UINT256:
        raise SplitOverflowError(f"{name} out of uint256 range: {value}")
    return value


def checked_add(a: int, b: int) -> int:
    out = a + b
    if out > MAX_UINT256:
        raise SplitOverflowError(f"addition overflow: {a} + {b}")
    return out


def checked_sub(a: int, b: int) -> int:
    if b > a:
        raise SplitOverflowError(f"subtraction underflow: {a} - {b}")
    return a - b


def checked_mul(a: int, b: int) -> int:
    out = a * b
    if out > MAX_UINT256:
        raise SplitOverflowError(f"multiplication overflow: {a} * {b}")
    return out


def mul_div_floor(a: int, b: int, denom: int) -> int:
    """``floor(a * b / denom)``, multiplying first. The product must fit in uint256."""
    if denom <= 0:
        raise ZeroDivisionError("denominator must be positive")
    return checked_mul(a, b) // denom


def bps_share(amount: int, weight_bps: int) -> int:
    """``floor(amount * weight_bps / 10000)``."""
    return mul_div_floor(amount, weight_bps, BPS_DENOM)
