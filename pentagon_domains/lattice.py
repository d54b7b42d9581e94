"""
pentagon_domains/lattice.py
═══════════════════════════

Capabilities shared by every domain, split into small protocols that each
type composes as needed:

    ┌─────────────────────────────────────────────────────────────┐
    │  Lattice        — ⊤, ⊥, ⊑, ⊔, ⊓, ∇, Δ                      │
    │  Representable  — structured snapshot for diagnostics       │
    │  ValueDomain    — per-variable evaluation hooks used by     │
    │                   ValueEnvironment (non-relational domains) │
    │  AbstractState  — whole-state transfer functions consumed   │
    │                   by the host fixpoint engine               │
    └─────────────────────────────────────────────────────────────┘

plus ``Satisfiability``, the answer type of condition queries.

Lattice laws that MUST hold (checked with Hypothesis in the test-suite):

   1. x ⊔ ⊥ = x                          (⊥ is identity for join)
   2. x ⊓ ⊤ = x                          (⊤ is identity for meet)
   3. x ⊑ x ⊔ y  and  y ⊑ x ⊔ y         (join is upper bound)
   4. x ⊓ y ⊑ x  and  x ⊓ y ⊑ y         (meet is lower bound)
   5. x ⊔ y = y ⊔ x,  x ⊓ y = y ⊓ x      (commutativity)
   6. (x ⊔ y) ⊔ z = x ⊔ (y ⊔ z)         (associativity)
   7. x ⊔ x = x                          (idempotence)
   8. ⊥ ⊑ x ⊑ ⊤                         (extremal elements)
"""

from __future__ import annotations

from enum import Enum
from typing import (
    TYPE_CHECKING,
    Any,
    Callable,
    Hashable,
    Optional,
    Protocol,
    runtime_checkable,
)

from .expressions import (
    BinaryOperator,
    ProgramPoint,
    SemanticOracle,
    TernaryOperator,
    UnaryOperator,
)

if TYPE_CHECKING:
    from .environment import ValueEnvironment
    from .expressions import Constant, Expression, Identifier
    from .representation import StructuredRepresentation


# ═══════════════════════════════════════════════════════════════════════════
#  SATISFIABILITY
# ═══════════════════════════════════════════════════════════════════════════

class Satisfiability(Enum):
    """
    Outcome of asking whether a condition holds in an abstract state.

    SATISFIED / NOT_SATISFIED are only returned when the state proves the
    answer for every concrete state it represents.  UNKNOWN is the honest
    "cannot decide".  BOTTOM is the answer on an unreachable state, and the
    meet of two contradicting answers.

    Ordered as a lattice:

                 UNKNOWN
                /       \\
        SATISFIED    NOT_SATISFIED
                \\       /
                  BOTTOM
    """
    SATISFIED = "satisfied"
    NOT_SATISFIED = "not_satisfied"
    UNKNOWN = "unknown"
    BOTTOM = "bottom"

    @classmethod
    def from_bool(cls, value: bool) -> Satisfiability:
        return cls.SATISFIED if value else cls.NOT_SATISFIED

    def negate(self) -> Satisfiability:
        if self is Satisfiability.SATISFIED:
            return Satisfiability.NOT_SATISFIED
        if self is Satisfiability.NOT_SATISFIED:
            return Satisfiability.SATISFIED
        return self

    def and_(self, other: Satisfiability) -> Satisfiability:
        if self is Satisfiability.BOTTOM or other is Satisfiability.BOTTOM:
            return Satisfiability.BOTTOM
        if Satisfiability.NOT_SATISFIED in (self, other):
            return Satisfiability.NOT_SATISFIED
        if self is other is Satisfiability.SATISFIED:
            return Satisfiability.SATISFIED
        return Satisfiability.UNKNOWN

    def or_(self, other: Satisfiability) -> Satisfiability:
        if self is Satisfiability.BOTTOM or other is Satisfiability.BOTTOM:
            return Satisfiability.BOTTOM
        if Satisfiability.SATISFIED in (self, other):
            return Satisfiability.SATISFIED
        if self is other is Satisfiability.NOT_SATISFIED:
            return Satisfiability.NOT_SATISFIED
        return Satisfiability.UNKNOWN

    def join(self, other: Satisfiability) -> Satisfiability:
        if self is Satisfiability.BOTTOM:
            return other
        if other is Satisfiability.BOTTOM or self is other:
            return self
        return Satisfiability.UNKNOWN

    def meet(self, other: Satisfiability) -> Satisfiability:
        """Combine two independently derived answers about the same condition."""
        if self is Satisfiability.UNKNOWN:
            return other
        if other is Satisfiability.UNKNOWN or self is other:
            return self
        return Satisfiability.BOTTOM

    def __repr__(self) -> str:
        return f"Satisfiability.{self.name}"


# ═══════════════════════════════════════════════════════════════════════════
#  PROTOCOLS
# ═══════════════════════════════════════════════════════════════════════════

@runtime_checkable
class Lattice(Protocol):
    """
    Protocol that every lattice element satisfies.

    ``top()`` / ``bottom()`` are callable on instances; value types also
    expose them as classmethods.
    """

    def top(self) -> Any:
        ...

    def bottom(self) -> Any:
        ...

    def is_top(self) -> bool:
        ...

    def is_bottom(self) -> bool:
        ...

    def leq(self, other: Any) -> bool:
        """Partial order:  self ⊑ other."""
        ...

    def join(self, other: Any) -> Any:
        """Least upper bound, used to merge control-flow branches."""
        ...

    def meet(self, other: Any) -> Any:
        """Greatest lower bound, used to combine independent facts."""
        ...

    def widen(self, other: Any) -> Any:
        """
        Widening  self ∇ other, with self the previous iterate.

        Must satisfy  x ⊔ y ⊑ x ∇ y  and make every ascending chain
        stabilise in finitely many steps.
        """
        ...

    def narrow(self, other: Any) -> Any:
        ...


@runtime_checkable
class Representable(Protocol):
    def representation(self) -> StructuredRepresentation:
        ...


@runtime_checkable
class ValueDomain(Lattice, Representable, Protocol):
    """
    Evaluation hooks of a non-relational domain (one element per variable).

    ``ValueEnvironment`` walks the expression tree and calls these hooks
    with already-evaluated operands; the hooks never see sub-expressions
    except in ``assume_binary``, which needs to know which side is a bare
    variable.
    """

    def eval_constant(self, constant: Constant, pp: ProgramPoint,
                      oracle: Optional[SemanticOracle]) -> Any:
        ...

    def eval_identifier(self, identifier: Identifier, env: ValueEnvironment,
                        pp: ProgramPoint,
                        oracle: Optional[SemanticOracle]) -> Any:
        ...

    def eval_push_any(self, pp: ProgramPoint,
                      oracle: Optional[SemanticOracle]) -> Any:
        ...

    def eval_unary(self, operator: UnaryOperator, arg: Any, pp: ProgramPoint,
                   oracle: Optional[SemanticOracle]) -> Any:
        ...

    def eval_binary(self, operator: BinaryOperator, left: Any, right: Any,
                    pp: ProgramPoint, oracle: Optional[SemanticOracle]) -> Any:
        ...

    def eval_ternary(self, operator: TernaryOperator, left: Any, middle: Any,
                     right: Any, pp: ProgramPoint,
                     oracle: Optional[SemanticOracle]) -> Any:
        ...

    def satisfies_binary(self, operator: BinaryOperator, left: Any, right: Any,
                         pp: ProgramPoint,
                         oracle: Optional[SemanticOracle]) -> Satisfiability:
        ...

    def assume_binary(self, env: ValueEnvironment, operator: BinaryOperator,
                      left: Expression, right: Expression, src: ProgramPoint,
                      dest: ProgramPoint,
                      oracle: Optional[SemanticOracle]) -> ValueEnvironment:
        ...


class BaseValueDomain:
    """
    Conservative defaults for the ``ValueDomain`` hooks.

    Concrete domains inherit from this and override what they model;
    anything left alone answers ⊤, ``UNKNOWN`` or "state unchanged".
    """

    def eval_identifier(self, identifier, env, pp, oracle):
        return env.get_state(identifier)

    def eval_push_any(self, pp, oracle):
        return self.top()

    def eval_unary(self, operator, arg, pp, oracle):
        return self.top()

    def eval_binary(self, operator, left, right, pp, oracle):
        return self.top()

    def eval_ternary(self, operator, left, middle, right, pp, oracle):
        return self.top()

    def satisfies_binary(self, operator, left, right, pp, oracle):
        return Satisfiability.UNKNOWN

    def assume_binary(self, env, operator, left, right, src, dest, oracle):
        return env


@runtime_checkable
class AbstractState(Lattice, Representable, Protocol):
    """Whole-program-state contract consumed by the host fixpoint engine."""

    def assign(self, identifier: Identifier, expression: Expression,
               pp: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> Any:
        ...

    def small_step_semantics(self, expression: Expression,
                             pp: ProgramPoint = None,
                             oracle: Optional[SemanticOracle] = None) -> Any:
        ...

    def assume(self, expression: Expression, src: ProgramPoint = None,
               dest: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> Any:
        ...

    def satisfies(self, expression: Expression, pp: ProgramPoint = None,
                  oracle: Optional[SemanticOracle] = None) -> Satisfiability:
        ...

    def forget_identifier(self, identifier: Hashable) -> Any:
        ...

    def forget_identifiers_if(self, test: Callable[[Hashable], bool]) -> Any:
        ...

    def knows_identifier(self, identifier: Hashable) -> bool:
        ...


__all__ = [
    "Satisfiability",
    "Lattice",
    "Representable",
    "ValueDomain",
    "BaseValueDomain",
    "AbstractState",
]
