"""
pentagon_domains/mathnumber.py
══════════════════════════════

Extended integers  ℤ ∪ {-∞, +∞, NaN}  used as interval bounds.

    -∞  <  … < -1 < 0 < 1 < …  <  +∞          NaN is unordered

Arithmetic saturates at the infinities and propagates NaN:

    -∞ + k  = -∞          +∞ + -∞ = NaN
     0 · ±∞ = 0           ±∞ · k  = ±∞ (sign product)
     k / ±∞ = 0           ±∞ / k  = ±∞ (sign product)
     k / 0  = NaN         ±∞ / ±∞ = NaN

Division truncates toward zero, matching integer division in the analysed
programs.  NaN is only ever the bound of the empty interval; it never
compares less or greater than anything, and no arithmetic silently turns it
back into a number.

Python ``float('inf')`` is not used here: bounds must stay exact for
arbitrarily large integers, which floats cannot guarantee.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import Final, Union

from .errors import ErrorCode, SemanticError


class _Kind(IntEnum):
    MINUS_INFINITY = 0
    FINITE = 1
    PLUS_INFINITY = 2
    NAN = 3


NumberLike = Union["MathNumber", int]


@dataclass(frozen=True, slots=True)
class MathNumber:
    """
    An extended integer.

    Build values with :meth:`of` or use the module constants
    (``ZERO``, ``ONE``, ``PLUS_INFINITY``, ``MINUS_INFINITY``, ``NAN``).

    Examples
    --------
    >>> MathNumber.of(3) + PLUS_INFINITY
    MathNumber(+Inf)
    >>> MathNumber.of(-7).div(MathNumber.of(2))
    MathNumber(-3)
    """
    kind: _Kind
    value: int = 0

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def of(cls, n: Union[MathNumber, int, float]) -> MathNumber:
        """Lift an int (or an infinite/NaN float) to a MathNumber."""
        if isinstance(n, MathNumber):
            return n
        if isinstance(n, bool):
            raise SemanticError(
                f"booleans are not numbers: {n!r}", ErrorCode.INVALID_NUMBER
            )
        if isinstance(n, int):
            return cls(_Kind.FINITE, n)
        if isinstance(n, float):
            if math.isnan(n):
                return NAN
            if math.isinf(n):
                return PLUS_INFINITY if n > 0 else MINUS_INFINITY
            if n.is_integer():
                return cls(_Kind.FINITE, int(n))
        raise SemanticError(
            f"cannot represent {n!r} as an extended integer",
            ErrorCode.INVALID_NUMBER,
        )

    # ---- Predicates ------------------------------------------------------

    def is_nan(self) -> bool:
        return self.kind is _Kind.NAN

    def is_finite(self) -> bool:
        return self.kind is _Kind.FINITE

    def is_infinite(self) -> bool:
        return self.kind in (_Kind.MINUS_INFINITY, _Kind.PLUS_INFINITY)

    def is_plus_infinity(self) -> bool:
        return self.kind is _Kind.PLUS_INFINITY

    def is_minus_infinity(self) -> bool:
        return self.kind is _Kind.MINUS_INFINITY

    def is_zero(self) -> bool:
        return self.kind is _Kind.FINITE and self.value == 0

    def is_positive(self) -> bool:
        """Strictly greater than zero (NaN is neither positive nor negative)."""
        return self.kind is _Kind.PLUS_INFINITY or (
            self.kind is _Kind.FINITE and self.value > 0
        )

    def is_negative(self) -> bool:
        return self.kind is _Kind.MINUS_INFINITY or (
            self.kind is _Kind.FINITE and self.value < 0
        )

    def to_int(self) -> int:
        """The wrapped integer; only defined for finite numbers."""
        if not self.is_finite():
            raise SemanticError(
                f"{self} has no integer value", ErrorCode.INVALID_NUMBER
            )
        return self.value

    # ---- Ordering --------------------------------------------------------
    #
    # NaN makes every comparison false; callers testing emptiness must use
    # is_nan() explicitly.

    def _key(self) -> tuple:
        return (self.kind, self.value)

    def __lt__(self, other: NumberLike) -> bool:
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan():
            return False
        return self._key() < o._key()

    def __le__(self, other: NumberLike) -> bool:
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan():
            return False
        return self._key() <= o._key()

    def __gt__(self, other: NumberLike) -> bool:
        return MathNumber.of(other) < self

    def __ge__(self, other: NumberLike) -> bool:
        return MathNumber.of(other) <= self

    def min(self, other: NumberLike) -> MathNumber:
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan():
            return NAN
        return self if self <= o else o

    def max(self, other: NumberLike) -> MathNumber:
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan():
            return NAN
        return self if self >= o else o

    # ---- Arithmetic ------------------------------------------------------

    def __neg__(self) -> MathNumber:
        if self.kind is _Kind.PLUS_INFINITY:
            return MINUS_INFINITY
        if self.kind is _Kind.MINUS_INFINITY:
            return PLUS_INFINITY
        if self.kind is _Kind.NAN:
            return self
        return MathNumber(_Kind.FINITE, -self.value)

    def __add__(self, other: NumberLike) -> MathNumber:
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan():
            return NAN
        if self.is_infinite() and o.is_infinite():
            return self if self.kind is o.kind else NAN
        if self.is_infinite():
            return self
        if o.is_infinite():
            return o
        return MathNumber(_Kind.FINITE, self.value + o.value)

    __radd__ = __add__

    def __sub__(self, other: NumberLike) -> MathNumber:
        return self + (-MathNumber.of(other))

    def __rsub__(self, other: NumberLike) -> MathNumber:
        return MathNumber.of(other) - self

    def __mul__(self, other: NumberLike) -> MathNumber:
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan():
            return NAN
        # zero absorbs infinities: ±∞ is never a concrete value
        if self.is_zero() or o.is_zero():
            return ZERO
        if self.is_infinite() or o.is_infinite():
            return (
                PLUS_INFINITY
                if self.is_positive() == o.is_positive()
                else MINUS_INFINITY
            )
        return MathNumber(_Kind.FINITE, self.value * o.value)

    __rmul__ = __mul__

    def div(self, other: NumberLike) -> MathNumber:
        """Integer division truncating toward zero."""
        o = MathNumber.of(other)
        if self.is_nan() or o.is_nan() or o.is_zero():
            return NAN
        if self.is_infinite() and o.is_infinite():
            return NAN
        if self.is_infinite():
            return (
                PLUS_INFINITY
                if self.is_positive() == o.is_positive()
                else MINUS_INFINITY
            )
        if o.is_infinite():
            return ZERO
        q = abs(self.value) // abs(o.value)
        if (self.value < 0) != (o.value < 0):
            q = -q
        return MathNumber(_Kind.FINITE, q)

    # ---- Rendering -------------------------------------------------------

    def __str__(self) -> str:
        if self.kind is _Kind.PLUS_INFINITY:
            return "+Inf"
        if self.kind is _Kind.MINUS_INFINITY:
            return "-Inf"
        if self.kind is _Kind.NAN:
            return "NaN"
        return str(self.value)

    def __repr__(self) -> str:
        return f"MathNumber({self})"


ZERO: Final = MathNumber(_Kind.FINITE, 0)
ONE: Final = MathNumber(_Kind.FINITE, 1)
MINUS_ONE: Final = MathNumber(_Kind.FINITE, -1)
PLUS_INFINITY: Final = MathNumber(_Kind.PLUS_INFINITY)
MINUS_INFINITY: Final = MathNumber(_Kind.MINUS_INFINITY)
NAN: Final = MathNumber(_Kind.NAN)


__all__ = [
    "MathNumber",
    "ZERO",
    "ONE",
    "MINUS_ONE",
    "PLUS_INFINITY",
    "MINUS_INFINITY",
    "NAN",
]
