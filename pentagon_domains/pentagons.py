"""
pentagon_domains/pentagons.py
═════════════════════════════

Pentagons: the reduced product of intervals and strict upper bounds
(Logozzo & Fähndrich, "Pentagons: a weakly relational abstract domain for
the efficient validation of array accesses").

    ┌────────────────────────┐        ┌─────────────────────────┐
    │ StrictUpperBounds      │◄───────│ ValueEnvironment        │
    │   x < y facts          │closure │   [Interval]            │
    └────────────────────────┘        └─────────────────────────┘

Intervals alone cannot prove  ``0 <= i < len``  after ``i := len - 1`` when
``len`` is unknown; upper bounds alone know nothing about constants.  The
product keeps both, and *closure* moves numeric facts into the symbolic
side:

    intervals[x].high < intervals[y].low   ⟹   y ∈ bounds[x]

Closure runs after every operation that changes intervals (assign, assume,
meet, narrow).  Join re-derives facts lost by the bound intersection from
the other side's intervals instead (``_close_with_other``); widening is
componentwise and never closes, or the bounds could keep growing.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, Hashable, Optional, Set

from .environment import ValueEnvironment
from .expressions import (
    BinaryExpression,
    BinaryOperator,
    Expression,
    Identifier,
    ProgramPoint,
    SemanticOracle,
)
from .interval import Interval
from .lattice import Satisfiability
from .representation import (
    BOTTOM_REPRESENTATION,
    TOP_REPRESENTATION,
    ListRepresentation,
    MapRepresentation,
    StructuredRepresentation,
)
from .upper_bounds import StrictUpperBounds, UpperBoundSet

logger = logging.getLogger(__name__)

_POSITIVE = Interval.at_least(1)


def _interval_top_env() -> ValueEnvironment[Interval]:
    return ValueEnvironment(Interval.top())


@dataclass(frozen=True)
class Pentagons:
    """
    Reduced product  (bounds, intervals).

    >>> x, y = Identifier("x"), Identifier("y")
    >>> p = Pentagons().assign(x, Constant(0)).assign(y, Constant(5))
    >>> y in p.bounds.get_state(x)
    True
    """
    bounds: StrictUpperBounds = field(default_factory=StrictUpperBounds)
    intervals: ValueEnvironment[Interval] = field(default_factory=_interval_top_env)

    # ---- Constructors ----------------------------------------------------

    def top(self) -> Pentagons:
        return Pentagons(self.bounds.top(), self.intervals.top())

    def bottom(self) -> Pentagons:
        return Pentagons(self.bounds.bottom(), self.intervals.bottom())

    def _make(self, bounds: StrictUpperBounds,
              intervals: ValueEnvironment[Interval]) -> Pentagons:
        # A single unreachable component makes the whole product unreachable.
        if bounds.is_bottom() or intervals.is_bottom():
            return self.bottom()
        return Pentagons(bounds, intervals)

    # ---- Predicates ------------------------------------------------------

    def is_top(self) -> bool:
        return self.bounds.is_top() and self.intervals.is_top()

    def is_bottom(self) -> bool:
        return self.bounds.is_bottom() and self.intervals.is_bottom()

    def knows_identifier(self, identifier: Hashable) -> bool:
        return (self.intervals.knows_identifier(identifier)
                or self.bounds.knows_identifier(identifier))

    # ---- Closure ---------------------------------------------------------

    def closure(self) -> Pentagons:
        """Add every bound implied by two disjoint, ordered intervals."""
        if self.is_bottom():
            return self
        known = self.intervals.mapping
        new_bounds = self.bounds
        for x1, iv1 in known.items():
            implied: Set[Hashable] = {
                x2 for x2, iv2 in known.items()
                if x1 != x2 and iv1.high < iv2.low
            }
            if implied and not implied <= self.bounds.get_state(x1).elements:
                logger.debug("closure: %s < %s", x1, sorted(map(str, implied)))
                new_bounds = new_bounds.put_state(
                    x1, new_bounds.get_state(x1).meet(UpperBoundSet.of(implied))
                )
        return self._make(new_bounds, self.intervals)

    @staticmethod
    def _close_with_other(
        identifier: Hashable,
        bounds: UpperBoundSet,
        intervals: ValueEnvironment[Interval],
        current: StrictUpperBounds,
    ) -> StrictUpperBounds:
        """Re-add the facts of *bounds* that *intervals* prove on their own."""
        state = intervals.get_state(identifier)
        if state.is_bottom():
            return current
        witnessed = {
            b for b in bounds
            if not intervals.get_state(b).is_bottom()
            and state.high < intervals.get_state(b).low
        }
        if not witnessed:
            return current
        return current.put_state(
            identifier,
            current.get_state(identifier).meet(UpperBoundSet.of(witnessed)),
        )

    # ---- Lattice operations ----------------------------------------------

    def leq(self, other: Pentagons) -> bool:
        """
        ``self ⊑ other`` when the intervals are ordered and every bound of
        ``other`` is witnessed in ``self``, either symbolically (recorded in
        ``self.bounds``) or numerically (``self`` intervals are disjoint and
        ordered).
        """
        if self.bounds.is_bottom() or self.intervals.is_bottom():
            return True
        if other.is_bottom():
            return False
        if not self.intervals.leq(other.intervals):
            return False
        for x, required in other.bounds.mapping.items():
            recorded = self.bounds.get_state(x)
            x_range = self.intervals.get_state(x)
            for y in required:
                if y in recorded:
                    continue
                y_range = self.intervals.get_state(y)
                if y_range.is_top() or not x_range.high < y_range.low:
                    return False
        return True

    def join(self, other: Pentagons) -> Pentagons:
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        new_bounds = self.bounds.join(other.bounds)
        for x, bs in self.bounds.mapping.items():
            new_bounds = self._close_with_other(x, bs, other.intervals, new_bounds)
        for x, bs in other.bounds.mapping.items():
            new_bounds = self._close_with_other(x, bs, self.intervals, new_bounds)
        return self._make(new_bounds, self.intervals.join(other.intervals))

    def meet(self, other: Pentagons) -> Pentagons:
        if self.is_bottom():
            return self
        if other.is_bottom():
            return other
        return self._make(
            self.bounds.meet(other.bounds),
            self.intervals.meet(other.intervals),
        ).closure()

    def widen(self, other: Pentagons) -> Pentagons:
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        return self._make(
            self.bounds.widen(other.bounds),
            self.intervals.widen(other.intervals),
        )

    def narrow(self, other: Pentagons) -> Pentagons:
        if self.is_bottom():
            return self
        if other.is_bottom():
            return other
        return self._make(
            self.bounds.narrow(other.bounds),
            self.intervals.narrow(other.intervals),
        ).closure()

    # ---- Transfer functions ----------------------------------------------

    def assign(self, identifier: Identifier, expression: Expression,
               pp: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> Pentagons:
        if self.is_bottom():
            return self
        new_bounds = self.bounds.assign(identifier, expression, pp, oracle)
        new_intervals = self.intervals.assign(identifier, expression, pp, oracle)

        # x := y - z with z < y known beforehand is at least 1
        if (isinstance(expression, BinaryExpression)
                and expression.operator is BinaryOperator.SUB
                and isinstance(expression.left, Identifier)
                and isinstance(expression.right, Identifier)
                and expression.left in self.bounds.get_state(expression.right)):
            new_intervals = new_intervals.put_state(
                identifier, new_intervals.get_state(identifier).meet(_POSITIVE)
            )

        return self._make(new_bounds, new_intervals).closure()

    def small_step_semantics(self, expression: Expression,
                             pp: ProgramPoint = None,
                             oracle: Optional[SemanticOracle] = None) -> Pentagons:
        return self._make(
            self.bounds.small_step_semantics(expression, pp, oracle),
            self.intervals.small_step_semantics(expression, pp, oracle),
        )

    def assume(self, expression: Expression, src: ProgramPoint = None,
               dest: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> Pentagons:
        if self.is_bottom():
            return self
        return self._make(
            self.bounds.assume(expression, src, dest, oracle),
            self.intervals.assume(expression, src, dest, oracle),
        ).closure()

    def satisfies(self, expression: Expression, pp: ProgramPoint = None,
                  oracle: Optional[SemanticOracle] = None) -> Satisfiability:
        return self.intervals.satisfies(expression, pp, oracle).meet(
            self.bounds.satisfies(expression, pp, oracle))

    def eval(self, expression: Expression, pp: ProgramPoint = None,
             oracle: Optional[SemanticOracle] = None) -> Interval:
        """Numeric range of *expression* from the interval component."""
        return self.intervals.eval(expression, pp, oracle)

    # ---- Identifier management -------------------------------------------

    def forget_identifier(self, identifier: Hashable) -> Pentagons:
        return self._make(
            self.bounds.forget_identifier(identifier),
            self.intervals.forget_identifier(identifier),
        )

    def forget_identifiers_if(self, test: Callable[[Hashable], bool]) -> Pentagons:
        return self._make(
            self.bounds.forget_identifiers_if(test),
            self.intervals.forget_identifiers_if(test),
        )

    # ---- Rendering -------------------------------------------------------

    def representation(self) -> StructuredRepresentation:
        if self.is_top():
            return TOP_REPRESENTATION
        if self.is_bottom():
            return BOTTOM_REPRESENTATION
        keys = set(self.intervals.mapping) | set(self.bounds.mapping)
        entries: Dict[Hashable, StructuredRepresentation] = {
            k: ListRepresentation.of([
                self.intervals.get_state(k).representation(),
                self.bounds.get_state(k).representation(),
            ])
            for k in keys
        }
        return MapRepresentation.of(entries)

    def __str__(self) -> str:
        return str(self.representation())


__all__ = ["Pentagons"]
