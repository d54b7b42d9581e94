"""
pentagon_domains/interval.py
════════════════════════════

Interval abstract domain  [low, high] ⊆ ℤ ∪ {-∞, +∞}.

    IntInterval   the raw pair of MathNumber bounds with interval arithmetic
    Interval      the lattice element (ValueDomain) used in environments

Hasse diagram (excerpt):

                  [-∞, +∞]  ⊤
                 /        \\
           [-∞, 0]        [0, +∞]
              |     ...      |
            [0, 0]  [1, 1]  [2, 2] ...
                 \\    |    /
                      ⊥

Arithmetic follows the usual interval operators (Moore), with these
precision rules applied before the ⊤ short-circuit:

    x * [0,0]  = [0,0]          even when x is ⊤
    x / [0,0]  = ⊥              division by zero has no result
    [0,0] / y  = [0,0]

Division truncates toward zero.  A divisor that contains zero is split into
its negative and positive parts and the quotients are joined: zero is never
a concrete divisor of a run that continues.

Branch refinement of  x OP e  uses the bounds of e:

    x <  e   ⇒  x ⊓ [-∞, e.high - 1]
    x <= e   ⇒  x ⊓ [-∞, e.high]
    x >  e   ⇒  x ⊓ [e.low + 1, +∞]
    x >= e   ⇒  x ⊓ [e.low, +∞]
    x == e   ⇒  x ⊓ e            (both sides when both are variables)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Final, Iterable, Optional, Tuple, Union

from .environment import ValueEnvironment, eval_expression
from .errors import ErrorCode, InvalidIntervalError
from .expressions import (
    BinaryOperator,
    Constant,
    Expression,
    Identifier,
    ProgramPoint,
    SemanticOracle,
    TernaryOperator,
    UnaryOperator,
)
from .lattice import BaseValueDomain, Satisfiability
from .mathnumber import (
    MINUS_INFINITY,
    MINUS_ONE,
    NAN,
    ONE,
    PLUS_INFINITY,
    ZERO as _ZERO_NUMBER,
    MathNumber,
)
from .representation import (
    BOTTOM_REPRESENTATION,
    StringRepresentation,
    StructuredRepresentation,
)

logger = logging.getLogger(__name__)

Bound = Union[MathNumber, int, float]


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — RAW INTERVALS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True, slots=True)
class IntInterval:
    """
    A pair of extended-integer bounds.

    Valid forms are  low <= high  with  low != +∞  and  high != -∞,
    or the empty marker  (NaN, NaN).  Anything else is rejected.

    >>> IntInterval.of(0, 5).plus(IntInterval.of(1, 1))
    IntInterval([1, 6])
    >>> IntInterval.of(3, 1) is IntInterval.EMPTY
    True
    """
    low: MathNumber
    high: MathNumber

    def __post_init__(self) -> None:
        if self.low.is_nan() or self.high.is_nan():
            if not (self.low.is_nan() and self.high.is_nan()):
                raise InvalidIntervalError(
                    f"half-empty interval [{self.low}, {self.high}]",
                    ErrorCode.INVALID_INTERVAL,
                    hint="use IntInterval.EMPTY for the empty interval",
                )
            return
        if self.low.is_plus_infinity() or self.high.is_minus_infinity():
            raise InvalidIntervalError(
                f"interval [{self.low}, {self.high}] has an unreachable bound"
            )
        if self.low > self.high:
            raise InvalidIntervalError(
                f"interval [{self.low}, {self.high}] has low > high",
                hint="IntInterval.of() maps crossed bounds to EMPTY",
            )

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def of(cls, low: Bound, high: Bound) -> IntInterval:
        """Build an interval; crossed bounds give ``EMPTY``."""
        lo = MathNumber.of(low)
        hi = MathNumber.of(high)
        if lo.is_nan() and hi.is_nan():
            return EMPTY_INTERVAL
        if lo > hi:
            return EMPTY_INTERVAL
        return cls(lo, hi)

    # ---- Predicates ------------------------------------------------------

    def is_empty(self) -> bool:
        return self.low.is_nan()

    def is_singleton(self) -> bool:
        return not self.is_empty() and self.low.is_finite() and self.low == self.high

    def is_finite(self) -> bool:
        return self.low.is_finite() and self.high.is_finite()

    def is_infinity(self) -> bool:
        return self.low.is_minus_infinity() and self.high.is_plus_infinity()

    def low_is_minus_infinity(self) -> bool:
        return self.low.is_minus_infinity()

    def high_is_plus_infinity(self) -> bool:
        return self.high.is_plus_infinity()

    def includes(self, other: IntInterval) -> bool:
        """``other`` ⊆ ``self``."""
        if other.is_empty():
            return True
        if self.is_empty():
            return False
        return self.low <= other.low and other.high <= self.high

    def contains(self, n: Bound) -> bool:
        if self.is_empty():
            return False
        v = MathNumber.of(n)
        return self.low <= v <= self.high

    # ---- Set operations --------------------------------------------------

    def hull(self, other: IntInterval) -> IntInterval:
        if self.is_empty():
            return other
        if other.is_empty():
            return self
        return IntInterval(self.low.min(other.low), self.high.max(other.high))

    def intersect(self, other: IntInterval) -> IntInterval:
        if self.is_empty() or other.is_empty():
            return EMPTY_INTERVAL
        return IntInterval.of(self.low.max(other.low), self.high.min(other.high))

    # ---- Arithmetic ------------------------------------------------------
    #
    # Operands are non-empty; callers filter ⊥ first.

    def negate(self) -> IntInterval:
        if self.is_empty():
            return self
        return IntInterval(-self.high, -self.low)

    def plus(self, other: IntInterval) -> IntInterval:
        return IntInterval(self.low + other.low, self.high + other.high)

    def diff(self, other: IntInterval) -> IntInterval:
        return IntInterval(self.low - other.high, self.high - other.low)

    def mul(self, other: IntInterval) -> IntInterval:
        return _from_corners(
            a * b for a in (self.low, self.high) for b in (other.low, other.high)
        )

    def div(self, other: IntInterval) -> IntInterval:
        """Truncating division; zero is excluded from the divisor."""
        if other.contains(0):
            result = EMPTY_INTERVAL
            if other.low < _ZERO_NUMBER:
                result = result.hull(self._div(IntInterval(other.low, MINUS_ONE)))
            if other.high > _ZERO_NUMBER:
                result = result.hull(self._div(IntInterval(ONE, other.high)))
            return result
        return self._div(other)

    def _div(self, other: IntInterval) -> IntInterval:
        corners = []
        for a in (self.low, self.high):
            for b in (other.low, other.high):
                corners.extend(_div_corner(a, b))
        return _from_corners(corners)

    # ---- Rendering -------------------------------------------------------

    def __str__(self) -> str:
        if self.is_empty():
            return "[]"
        return f"[{self.low}, {self.high}]"

    def __repr__(self) -> str:
        return f"IntInterval({self})"


def _div_corner(a: MathNumber, b: MathNumber) -> Tuple[MathNumber, ...]:
    # ±∞ / ±∞ stands for arbitrarily large over arbitrarily large values:
    # the quotient can be anything between 0 and the signed infinity.
    if a.is_infinite() and b.is_infinite():
        signed = PLUS_INFINITY if a.is_positive() == b.is_positive() else MINUS_INFINITY
        return (_ZERO_NUMBER, signed)
    return (a.div(b),)


def _from_corners(corners: Iterable[MathNumber]) -> IntInterval:
    values = list(corners)
    low = values[0]
    high = values[0]
    for v in values[1:]:
        low = low.min(v)
        high = high.max(v)
    return IntInterval(low, high)


EMPTY_INTERVAL: Final = IntInterval(NAN, NAN)
INFINITY_INTERVAL: Final = IntInterval(MINUS_INFINITY, PLUS_INFINITY)
ZERO_INTERVAL: Final = IntInterval(_ZERO_NUMBER, _ZERO_NUMBER)

IntInterval.EMPTY = EMPTY_INTERVAL
IntInterval.INFINITY = INFINITY_INTERVAL


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — THE INTERVAL LATTICE
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Interval(BaseValueDomain):
    """
    Lattice element of the interval domain.

    Examples
    --------
    >>> a = Interval.of(0, 10)
    >>> b = Interval.of(5, 20)
    >>> a.join(b)
    Interval([0, 20])
    >>> a.meet(b)
    Interval([5, 10])
    >>> a.widen(Interval.of(0, 100))
    Interval([0, +Inf])
    """
    interval: IntInterval

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def top(cls) -> Interval:
        return TOP

    @classmethod
    def bottom(cls) -> Interval:
        return BOTTOM

    @classmethod
    def of(cls, low: Bound, high: Bound) -> Interval:
        iv = IntInterval.of(low, high)
        return BOTTOM if iv.is_empty() else cls(iv)

    @classmethod
    def singleton(cls, n: int) -> Interval:
        return cls.of(n, n)

    @classmethod
    def at_least(cls, low: Bound) -> Interval:
        return cls.of(low, PLUS_INFINITY)

    @classmethod
    def at_most(cls, high: Bound) -> Interval:
        return cls.of(MINUS_INFINITY, high)

    # ---- Predicates ------------------------------------------------------

    @property
    def low(self) -> MathNumber:
        return self.interval.low

    @property
    def high(self) -> MathNumber:
        return self.interval.high

    def is_bottom(self) -> bool:
        return self.interval.is_empty()

    def is_top(self) -> bool:
        return self.interval.is_infinity()

    def is_zero(self) -> bool:
        return self.interval == ZERO_INTERVAL

    def is_singleton(self) -> bool:
        return self.interval.is_singleton()

    def const_value(self) -> Optional[int]:
        """The concrete integer if this is a singleton, else ``None``."""
        if self.is_singleton():
            return self.low.to_int()
        return None

    # ---- Lattice operations ----------------------------------------------

    def leq(self, other: Interval) -> bool:
        """[a,b] ⊑ [c,d]  ⟺  c ≤ a  ∧  b ≤ d  (or self = ⊥)."""
        if self.is_bottom():
            return True
        if other.is_bottom():
            return False
        return other.interval.includes(self.interval)

    def join(self, other: Interval) -> Interval:
        """[a,b] ⊔ [c,d] = [min(a,c), max(b,d)]."""
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        return Interval(self.interval.hull(other.interval))

    def meet(self, other: Interval) -> Interval:
        """[a,b] ⊓ [c,d] = [max(a,c), min(b,d)]."""
        if self.is_bottom() or other.is_bottom():
            return BOTTOM
        iv = self.interval.intersect(other.interval)
        return BOTTOM if iv.is_empty() else Interval(iv)

    def widen(self, other: Interval) -> Interval:
        """
        Standard widening  [a,b] ∇ [c,d]:

            new_low  = c < a  →  -∞   else  a
            new_high = d > b  →  +∞   else  b
        """
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        new_low = MINUS_INFINITY if other.low < self.low else self.low
        new_high = PLUS_INFINITY if other.high > self.high else self.high
        return Interval(IntInterval(new_low, new_high))

    def narrow(self, other: Interval) -> Interval:
        """
        Standard narrowing  [a,b] Δ [c,d]: only infinite bounds are refined.

            new_low  = a = -∞  →  c   else  a
            new_high = b = +∞  →  d   else  b
        """
        if self.is_bottom():
            return self
        if other.is_bottom():
            return other
        new_low = other.low if self.low.is_minus_infinity() else self.low
        new_high = other.high if self.high.is_plus_infinity() else self.high
        return Interval.of(new_low, new_high)

    # ---- Evaluation hooks ------------------------------------------------

    def eval_constant(self, constant: Constant, pp: ProgramPoint,
                      oracle: Optional[SemanticOracle]) -> Interval:
        if constant.is_integer():
            return Interval.singleton(constant.value)
        return TOP

    def eval_unary(self, operator: UnaryOperator, arg: Interval,
                   pp: ProgramPoint, oracle: Optional[SemanticOracle]) -> Interval:
        if operator is UnaryOperator.NUMERIC_NEGATION:
            return Interval(arg.interval.negate())
        if operator is UnaryOperator.STRING_LENGTH:
            return Interval.at_least(0)
        return TOP

    def eval_binary(self, operator: BinaryOperator, left: Interval,
                    right: Interval, pp: ProgramPoint,
                    oracle: Optional[SemanticOracle]) -> Interval:
        if operator is BinaryOperator.MUL:
            if left.is_zero() or right.is_zero():
                return ZERO
            if left.is_top() or right.is_top():
                return TOP
            return Interval(left.interval.mul(right.interval))

        if operator is BinaryOperator.DIV:
            if right.is_zero():
                logger.debug("division by [0, 0] at %s: no result", pp)
                return BOTTOM
            if left.is_zero():
                return ZERO
            if left.is_top() or right.is_top():
                return TOP
            return Interval(left.interval.div(right.interval))

        if operator is BinaryOperator.ADD:
            if left.is_top() or right.is_top():
                return TOP
            return Interval(left.interval.plus(right.interval))

        if operator is BinaryOperator.SUB:
            if left.is_top() or right.is_top():
                return TOP
            return Interval(left.interval.diff(right.interval))

        return TOP

    def eval_ternary(self, operator: TernaryOperator, left: Interval,
                     middle: Interval, right: Interval, pp: ProgramPoint,
                     oracle: Optional[SemanticOracle]) -> Interval:
        return TOP

    def satisfies_binary(self, operator: BinaryOperator, left: Interval,
                         right: Interval, pp: ProgramPoint,
                         oracle: Optional[SemanticOracle]) -> Satisfiability:
        if operator is BinaryOperator.GT:
            operator, left, right = BinaryOperator.LT, right, left
        elif operator is BinaryOperator.GE:
            operator, left, right = BinaryOperator.LE, right, left

        if operator is BinaryOperator.LT:
            if left.high < right.low:
                return Satisfiability.SATISFIED
            if left.low >= right.high:
                return Satisfiability.NOT_SATISFIED
            return Satisfiability.UNKNOWN

        if operator is BinaryOperator.LE:
            if left.high <= right.low:
                return Satisfiability.SATISFIED
            if left.low > right.high:
                return Satisfiability.NOT_SATISFIED
            return Satisfiability.UNKNOWN

        if operator is BinaryOperator.EQ:
            return _satisfies_eq(left, right)
        if operator is BinaryOperator.NE:
            return _satisfies_eq(left, right).negate()

        return Satisfiability.UNKNOWN

    def assume_binary(self, env: ValueEnvironment[Interval],
                      operator: BinaryOperator, left: Expression,
                      right: Expression, src: ProgramPoint, dest: ProgramPoint,
                      oracle: Optional[SemanticOracle]
                      ) -> ValueEnvironment[Interval]:
        if not operator.is_comparison:
            return env
        result = env
        if isinstance(left, Identifier):
            bound = eval_expression(env, right, src, oracle)
            result = _refine(result, left, operator, bound)
        if isinstance(right, Identifier):
            bound = eval_expression(env, left, src, oracle)
            result = _refine(result, right, operator.swapped(), bound)
        return result

    # ---- Rendering -------------------------------------------------------

    def representation(self) -> StructuredRepresentation:
        if self.is_bottom():
            return BOTTOM_REPRESENTATION
        return StringRepresentation(str(self.interval))

    def __str__(self) -> str:
        return str(self.representation())

    def __repr__(self) -> str:
        return f"Interval({self.interval})"


def _satisfies_eq(left: Interval, right: Interval) -> Satisfiability:
    if left.meet(right).is_bottom():
        return Satisfiability.NOT_SATISFIED
    if left.is_singleton() and left == right:
        return Satisfiability.SATISFIED
    return Satisfiability.UNKNOWN


def _refine(env: ValueEnvironment[Interval], identifier: Identifier,
            operator: BinaryOperator, bound: Interval
            ) -> ValueEnvironment[Interval]:
    """Restrict ``identifier`` so that  ``identifier OP bound``  may hold."""
    if bound.is_bottom():
        return env.bottom()
    starting = env.get_state(identifier)

    if operator is BinaryOperator.LT:
        update = starting.meet(Interval.at_most(bound.high - ONE))
    elif operator is BinaryOperator.LE:
        update = starting.meet(Interval.at_most(bound.high))
    elif operator is BinaryOperator.GT:
        update = starting.meet(Interval.at_least(bound.low + ONE))
    elif operator is BinaryOperator.GE:
        update = starting.meet(Interval.at_least(bound.low))
    elif operator is BinaryOperator.EQ:
        update = starting.meet(bound)
    elif operator is BinaryOperator.NE:
        if starting.is_singleton() and starting == bound:
            update = BOTTOM
        else:
            return env
    else:
        return env

    if update.is_bottom():
        logger.debug("%s %s %s is unsatisfiable", identifier,
                     operator.name, bound)
    return env.put_state(identifier, update)


TOP: Final = Interval(INFINITY_INTERVAL)
BOTTOM: Final = Interval(EMPTY_INTERVAL)
ZERO: Final = Interval(ZERO_INTERVAL)


__all__ = [
    "IntInterval",
    "EMPTY_INTERVAL",
    "INFINITY_INTERVAL",
    "ZERO_INTERVAL",
    "Interval",
    "TOP",
    "BOTTOM",
    "ZERO",
]
