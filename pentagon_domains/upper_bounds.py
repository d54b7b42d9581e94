"""
pentagon_domains/upper_bounds.py
════════════════════════════════

Strict upper bounds: for every variable ``x`` the set of variables known to
be strictly greater than it.

    bounds[x] = {y, z}     ⟺     x < y  ∧  x < z

``UpperBoundSet`` is an *inverse* set lattice: the fewer bounds recorded,
the less is known, so

    ⊤ = ∅ (no facts)      ⊔ = ∩      ⊓ = ∪      ⊑ = ⊇

and ⊥ is a distinguished empty set meaning "unreachable".

``StrictUpperBounds`` is the relational whole-state domain built on it.
Assignments invalidate every fact mentioning the assigned variable before
recording new ones, which keeps the domain sound when a variable that
serves as somebody's bound is overwritten:

    assume(x < y)      bounds[x] ⊓= bounds[y] ⊓ {y}
    z := y - 1         bounds[z]  = bounds[y] ∪ {y}
    y := 0             y leaves every bound set; bounds[y] = ⊤
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import (
    Callable,
    Dict,
    Final,
    FrozenSet,
    Hashable,
    Iterable,
    Iterator,
    Optional,
)

from .environment import Environment, assume_condition, satisfies_condition
from .errors import ErrorCode, SemanticError
from .expressions import (
    BinaryExpression,
    BinaryOperator,
    Expression,
    Identifier,
    ProgramPoint,
    SemanticOracle,
    as_integer_literal,
)
from .lattice import Satisfiability
from .representation import (
    BOTTOM_REPRESENTATION,
    TOP_REPRESENTATION,
    SetRepresentation,
    StructuredRepresentation,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — BOUND SETS
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class UpperBoundSet:
    """
    Set of identifiers strictly greater than some variable.

    Only the empty set can be ⊥; any non-empty set is an ordinary element
    and removing its last identifier yields ⊤.

    >>> a = UpperBoundSet.of(["y", "z"])
    >>> a.join(UpperBoundSet.of(["y"]))
    UpperBoundSet({y})
    >>> a.meet(UpperBoundSet.of(["w"]))
    UpperBoundSet({w, y, z})
    """
    elements: FrozenSet[Hashable] = frozenset()
    unreachable: bool = False

    def __post_init__(self) -> None:
        if self.unreachable and self.elements:
            raise SemanticError(
                "a bottom bound set cannot carry elements",
                ErrorCode.INTERNAL_ERROR,
            )

    # ---- Constructors ----------------------------------------------------

    @classmethod
    def top(cls) -> UpperBoundSet:
        return TOP_BOUNDS

    @classmethod
    def bottom(cls) -> UpperBoundSet:
        return BOTTOM_BOUNDS

    @classmethod
    def of(cls, elements: Iterable[Hashable]) -> UpperBoundSet:
        frozen = frozenset(elements)
        return cls(frozen) if frozen else TOP_BOUNDS

    @classmethod
    def singleton(cls, identifier: Hashable) -> UpperBoundSet:
        return cls(frozenset((identifier,)))

    # ---- Predicates / access ---------------------------------------------

    def is_top(self) -> bool:
        return not self.unreachable and not self.elements

    def is_bottom(self) -> bool:
        return self.unreachable

    def __contains__(self, identifier: object) -> bool:
        return identifier in self.elements

    def __iter__(self) -> Iterator[Hashable]:
        return iter(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def add(self, identifier: Hashable) -> UpperBoundSet:
        if self.unreachable:
            return self
        return UpperBoundSet(self.elements | {identifier})

    def remove(self, identifier: Hashable) -> UpperBoundSet:
        if self.unreachable or identifier not in self.elements:
            return self
        return UpperBoundSet.of(self.elements - {identifier})

    # ---- Lattice operations ----------------------------------------------

    def leq(self, other: UpperBoundSet) -> bool:
        """More bounds is more precise:  a ⊑ b  ⟺  a ⊇ b."""
        if self.unreachable:
            return True
        if other.unreachable:
            return False
        return self.elements >= other.elements

    def join(self, other: UpperBoundSet) -> UpperBoundSet:
        if self.unreachable:
            return other
        if other.unreachable:
            return self
        return UpperBoundSet.of(self.elements & other.elements)

    def meet(self, other: UpperBoundSet) -> UpperBoundSet:
        if self.unreachable or other.unreachable:
            return BOTTOM_BOUNDS
        return UpperBoundSet.of(self.elements | other.elements)

    def widen(self, other: UpperBoundSet) -> UpperBoundSet:
        """
        Keep ``other`` while it only grows ``self``; otherwise give up.

        Each variable can snap to ⊤ at most once, so chains stabilise
        after at most one step per variable.
        """
        if self.unreachable:
            return other
        if other.unreachable or self.is_top():
            return self
        if other.elements >= self.elements:
            return other
        logger.debug("bound set %s widened to top", self)
        return TOP_BOUNDS

    def narrow(self, other: UpperBoundSet) -> UpperBoundSet:
        # The lattice has finite height over the program's variables, so
        # the meet already stabilises.
        return self.meet(other)

    # ---- Rendering -------------------------------------------------------

    def representation(self) -> StructuredRepresentation:
        if self.unreachable:
            return BOTTOM_REPRESENTATION
        if not self.elements:
            return TOP_REPRESENTATION
        return SetRepresentation.of(self.elements)

    def __str__(self) -> str:
        return str(self.representation())

    def __repr__(self) -> str:
        return f"UpperBoundSet({self})"


TOP_BOUNDS: Final = UpperBoundSet()
BOTTOM_BOUNDS: Final = UpperBoundSet(unreachable=True)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — THE RELATIONAL DOMAIN
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class StrictUpperBounds(Environment[UpperBoundSet]):
    """
    Whole-state strict upper bounds domain.

    >>> x, y, z = Identifier("x"), Identifier("y"), Identifier("z")
    >>> s = StrictUpperBounds().assume(BinaryExpression(BinaryOperator.LT, x, y))
    >>> y in s.get_state(x)
    True
    >>> s = s.assign(z, BinaryExpression(BinaryOperator.SUB, y, Constant(1)))
    >>> y in s.get_state(z)
    True
    """
    lattice: UpperBoundSet = field(default_factory=UpperBoundSet.top)

    __hash__ = Environment.__hash__

    # ---- Transfer functions ----------------------------------------------

    def assign(self, identifier: Identifier, expression: Expression,
               pp: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> StrictUpperBounds:
        if self.is_bottom():
            return self
        new_map: Dict[Hashable, UpperBoundSet] = {}
        for key, bounds in self.mapping.items():
            if key == identifier:
                continue
            remaining = bounds.remove(identifier)
            if not remaining.is_top():
                new_map[key] = remaining

        source = _offset_source(identifier, expression)
        if source is not None:
            new_map[identifier] = new_map.get(source, TOP_BOUNDS).add(source)
        return self._with_mapping(new_map)

    def small_step_semantics(self, expression: Expression,
                             pp: ProgramPoint = None,
                             oracle: Optional[SemanticOracle] = None
                             ) -> StrictUpperBounds:
        return self

    def assume(self, expression: Expression, src: ProgramPoint = None,
               dest: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> StrictUpperBounds:
        return assume_condition(self, expression, StrictUpperBounds._assume_comparison)

    def satisfies(self, expression: Expression, pp: ProgramPoint = None,
                  oracle: Optional[SemanticOracle] = None) -> Satisfiability:
        return satisfies_condition(self, expression, self._satisfies_comparison)

    def _assume_comparison(self, condition: BinaryExpression) -> StrictUpperBounds:
        op = condition.operator
        x, y = condition.left, condition.right
        if not (isinstance(x, Identifier) and isinstance(y, Identifier)):
            return self
        if op in (BinaryOperator.GT, BinaryOperator.GE):
            op, x, y = op.swapped(), y, x

        bx, by = self.get_state(x), self.get_state(y)
        if op is BinaryOperator.LT:
            if x == y:
                return self._contradiction(condition)
            updated = bx.meet(by).meet(UpperBoundSet.singleton(y))
            if x in updated:
                return self._contradiction(condition)
            return self.put_state(x, updated)

        if op is BinaryOperator.LE:
            if x == y:
                return self
            updated = bx.meet(by)
            if x in updated:
                return self._contradiction(condition)
            return self.put_state(x, updated)

        if op is BinaryOperator.EQ:
            if x == y:
                return self
            updated = bx.meet(by)
            if x in updated or y in updated:
                return self._contradiction(condition)
            return self.put_state(x, updated).put_state(y, updated)

        return self

    def _contradiction(self, condition: BinaryExpression) -> StrictUpperBounds:
        logger.debug("assume(%s) contradicts the recorded bounds", condition)
        return self.bottom()

    def _satisfies_comparison(self, condition: BinaryExpression) -> Satisfiability:
        op = condition.operator
        x, y = condition.left, condition.right
        if not (isinstance(x, Identifier) and isinstance(y, Identifier)):
            return Satisfiability.UNKNOWN
        if op in (BinaryOperator.GT, BinaryOperator.GE):
            op, x, y = op.swapped(), y, x

        if op is BinaryOperator.LT:
            if x == y or x in self.get_state(y):
                return Satisfiability.NOT_SATISFIED
            if y in self.get_state(x):
                return Satisfiability.SATISFIED
            return Satisfiability.UNKNOWN

        if op is BinaryOperator.LE:
            if x == y or y in self.get_state(x):
                return Satisfiability.SATISFIED
            if x in self.get_state(y):
                return Satisfiability.NOT_SATISFIED
            return Satisfiability.UNKNOWN

        return Satisfiability.UNKNOWN

    # ---- Identifier management -------------------------------------------

    def forget_identifier(self, identifier: Hashable) -> StrictUpperBounds:
        return self.forget_identifiers_if(lambda candidate: candidate == identifier)

    def forget_identifiers_if(
        self, test: Callable[[Hashable], bool]
    ) -> StrictUpperBounds:
        if self.is_bottom():
            return self
        new_map: Dict[Hashable, UpperBoundSet] = {}
        for key, bounds in self.mapping.items():
            if test(key):
                continue
            kept = UpperBoundSet.of(b for b in bounds if not test(b))
            if not kept.is_top():
                new_map[key] = kept
        return self._with_mapping(new_map)


def _offset_source(target: Identifier,
                   expression: Expression) -> Optional[Identifier]:
    """
    The variable ``y`` when *expression* is ``y - c`` (``c > 0``) or
    ``y + c`` / ``c + y`` (``c < 0``), with ``y`` distinct from *target*.
    """
    if not isinstance(expression, BinaryExpression):
        return None
    op = expression.operator
    left, right = expression.left, expression.right

    if op is BinaryOperator.ADD and isinstance(right, Identifier):
        left, right = right, left
    if not isinstance(left, Identifier) or left == target:
        return None

    c = as_integer_literal(right)
    if c is None:
        return None
    if op is BinaryOperator.SUB and c > 0:
        return left
    if op is BinaryOperator.ADD and c < 0:
        return left
    return None


__all__ = [
    "UpperBoundSet",
    "TOP_BOUNDS",
    "BOTTOM_BOUNDS",
    "StrictUpperBounds",
]
