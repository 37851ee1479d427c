"""Checked uint256 wrapper for arithmetic on reserves and shares.

This module provides SafeInt, a lightweight wrapper that makes arithmetic
operations fail instead of wrapping:
- Results above 2**256 - 1 raise ArithmeticOverflow
- Negative results (subtraction underflow) raise ArithmeticUnderflow
- Division by zero raises DivisionByZero

Usage pattern:
    from amm_engine.safe_int import S

    def calculate(a: int, b: int, c: int) -> int:
        # Wrap at entry
        sa, sb, sc = S(a), S(b), S(c)

        # Natural arithmetic - automatically checked
        result = (sa * sb) // sc  # Raises if sc == 0
        remainder = sa - sb       # Raises if sb > sa

        # Unwrap at exit
        return result.value
"""

from __future__ import annotations

from amm_engine.constants import UINT256_MAX
from amm_engine.errors import ArithmeticOverflow, ArithmeticUnderflow, DivisionByZero


class SafeInt:
    """Unsigned 256-bit integer with checked arithmetic.

    The range check happens on construction, so every operator result is
    validated: a SafeInt always holds a value in [0, 2**256 - 1].

    Attributes:
        value: The underlying integer value (read-only)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int | SafeInt) -> None:
        """Create a SafeInt from an integer or another SafeInt.

        Args:
            value: Integer value to wrap, or SafeInt to copy

        Raises:
            TypeError: If value is not an int or SafeInt (bool is rejected)
            ArithmeticUnderflow: If value is negative
            ArithmeticOverflow: If value exceeds 2**256 - 1
        """
        if isinstance(value, SafeInt):
            self._value = value._value
            return
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"SafeInt requires int, got {type(value).__name__}")
        if value < 0:
            raise ArithmeticUnderflow(f"Underflow: {value} is negative")
        if value > UINT256_MAX:
            raise ArithmeticOverflow(f"Overflow: {value} exceeds uint256 max")
        self._value = value

    @property
    def value(self) -> int:
        """The underlying integer value."""
        return self._value

    def __repr__(self) -> str:
        return f"SafeInt({self._value})"

    # --- Arithmetic operations ---

    def __add__(self, other: SafeInt | int) -> SafeInt:
        """Add two values.

        Raises:
            ArithmeticOverflow: If the sum exceeds uint256
        """
        return SafeInt(self._value + _extract_value(other))

    def __sub__(self, other: SafeInt | int) -> SafeInt:
        """Subtract other from self.

        Raises:
            ArithmeticUnderflow: If result would be negative
        """
        other_val = _extract_value(other)
        result = self._value - other_val
        if result < 0:
            raise ArithmeticUnderflow(f"Underflow: {self._value} - {other_val} = {result}")
        return SafeInt(result)

    def __mul__(self, other: SafeInt | int) -> SafeInt:
        """Multiply two values.

        Raises:
            ArithmeticOverflow: If the product exceeds uint256
        """
        return SafeInt(self._value * _extract_value(other))

    def __floordiv__(self, other: SafeInt | int) -> SafeInt:
        """Integer division (rounds down).

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Division by zero: {self._value} // 0")
        return SafeInt(self._value // other_val)

    def __truediv__(self, other: object) -> SafeInt:
        raise TypeError("SafeInt does not support true division; use floor division (//)")

    def __rtruediv__(self, other: object) -> SafeInt:
        raise TypeError("SafeInt does not support true division; use floor division (//)")

    # --- Comparison operations ---

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SafeInt):
            return self._value == other._value
        if isinstance(other, int):
            return self._value == other
        return NotImplemented

    def __lt__(self, other: SafeInt | int) -> bool:
        return self._value < _extract_value(other)

    def __le__(self, other: SafeInt | int) -> bool:
        return self._value <= _extract_value(other)

    def __gt__(self, other: SafeInt | int) -> bool:
        return self._value > _extract_value(other)

    def __ge__(self, other: SafeInt | int) -> bool:
        return self._value >= _extract_value(other)

    # --- Conversion ---

    def __int__(self) -> int:
        return self._value

    def __bool__(self) -> bool:
        """True if non-zero."""
        return self._value != 0

    def __index__(self) -> int:
        return self._value

    # --- Named operations ---

    def ceiling_div(self, other: SafeInt | int) -> SafeInt:
        """Ceiling division (rounds up).

        Equivalent to: (self + other - 1) // other

        Raises:
            DivisionByZero: If other is zero
        """
        other_val = _extract_value(other)
        if other_val == 0:
            raise DivisionByZero(f"Ceiling division by zero: {self._value}")
        return SafeInt(-(-self._value // other_val))

    def abs_diff(self, other: SafeInt | int) -> SafeInt:
        """Return |self - other| without raising."""
        return SafeInt(abs(self._value - _extract_value(other)))


def _extract_value(x: SafeInt | int) -> int:
    """Extract integer value from SafeInt or int."""
    if isinstance(x, SafeInt):
        return x._value
    return x


# Convenience alias for concise code
S = SafeInt
