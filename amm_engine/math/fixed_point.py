"""Integer fixed-point helpers.

All inputs and results are uint256 values. Intermediate products are
computed with unbounded Python integers, so `a * b` never overflows before
the division; only the final result is range-checked.
"""

from __future__ import annotations

import math

from amm_engine.constants import BPS_DENOMINATOR
from amm_engine.errors import DivisionByZero, InvalidPoolParameters
from amm_engine.safe_int import S


def mul_div(a: int, b: int, denominator: int) -> int:
    """Compute floor(a * b / denominator) without intermediate overflow.

    Args:
        a: First factor
        b: Second factor
        denominator: Divisor

    Returns:
        The floored quotient

    Raises:
        DivisionByZero: If denominator is zero
        ArithmeticOverflow: If an input or the result exceeds uint256
        ArithmeticUnderflow: If an input is negative
    """
    sa, sb, sd = S(a), S(b), S(denominator)
    if not sd:
        raise DivisionByZero(f"mul_div denominator is zero: {a} * {b} / 0")
    return S((sa.value * sb.value) // sd.value).value


def mul_div_up(a: int, b: int, denominator: int) -> int:
    """Compute ceil(a * b / denominator) without intermediate overflow.

    Used wherever rounding must favor the pool (amounts the pool keeps).

    Raises:
        DivisionByZero: If denominator is zero
        ArithmeticOverflow: If an input or the result exceeds uint256
    """
    sa, sb, sd = S(a), S(b), S(denominator)
    if not sd:
        raise DivisionByZero(f"mul_div_up denominator is zero: {a} * {b} / 0")
    return S(-(-(sa.value * sb.value) // sd.value)).value


def sqrt_floor(x: int) -> int:
    """Integer square root, rounded down.

    Raises:
        ArithmeticUnderflow: If x is negative
        ArithmeticOverflow: If x exceeds uint256
    """
    return math.isqrt(S(x).value)


def apply_fee(amount: int, fee_bps: int) -> int:
    """Deduct a basis-point fee from an input amount (floored).

    amount_after_fee = amount * (10000 - fee_bps) // 10000

    Raises:
        InvalidPoolParameters: If fee_bps is outside [0, 10000)
    """
    if not 0 <= fee_bps < BPS_DENOMINATOR:
        raise InvalidPoolParameters(f"fee_bps must be in [0, {BPS_DENOMINATOR}), got {fee_bps}")
    return mul_div(amount, BPS_DENOMINATOR - fee_bps, BPS_DENOMINATOR)
