"""
pentagon_domains/environment.py
═══════════════════════════════

Abstract environments: finite maps  Identifier → L  lifted pointwise.

    Environment[L]        the lattice of maps (⊤ = no facts, ⊥ = unreachable)
    ValueEnvironment[L]   adds assignment, conditions and expression
                          evaluation for a non-relational ValueDomain L

Representation invariants:

    • an absent key means  L.top()  (nothing is known about it);
    • ⊤ values are never stored, so  ⊤  is exactly the empty map;
    • ⊥ is an explicit ``unreachable`` flag with an empty map; storing a ⊥
      value anywhere collapses the whole environment to ⊥.

The ``lattice`` field is a representative element of L (its top); it is
how the environment reaches L's ⊤ / ⊥ and evaluation hooks.

Evaluation dispatch
───────────────────
``eval_expression`` walks the AST bottom-up and hands already-evaluated
operands to the domain hooks.  A ⊥ operand short-circuits to ⊥.

``assume_expression`` / ``satisfies_expression`` handle the logical layer
(``not``, ``and``, ``or``, boolean literals) before delegating comparisons
to the domain.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Generic,
    Hashable,
    Mapping,
    Optional,
    TypeVar,
)

from .errors import ErrorCode, SemanticError
from .expressions import (
    BinaryExpression,
    BinaryOperator,
    Constant,
    Expression,
    Identifier,
    ProgramPoint,
    PushAny,
    SemanticOracle,
    TernaryExpression,
    UnaryExpression,
    UnaryOperator,
    negate_condition,
)
from .lattice import Satisfiability, ValueDomain
from .representation import (
    BOTTOM_REPRESENTATION,
    TOP_REPRESENTATION,
    MapRepresentation,
    StructuredRepresentation,
)

logger = logging.getLogger(__name__)

L = TypeVar("L")


# ═══════════════════════════════════════════════════════════════════════════
#  PART 1 — ENVIRONMENT
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Environment(Generic[L]):
    """
    Pointwise lift of a lattice L to  Identifier → L.

    Examples
    --------
    >>> env = Environment(Interval.top()).put_state(x, Interval.of(0, 5))
    >>> env.get_state(y)
    Interval([-Inf, +Inf])
    """
    lattice: L
    mapping: Mapping[Hashable, L] = field(default_factory=dict)
    unreachable: bool = False

    def __hash__(self) -> int:
        return hash((type(self), self.lattice, self.unreachable,
                     frozenset(self.mapping.items())))

    # ---- Constructors ----------------------------------------------------

    def top(self) -> Environment[L]:
        return replace(self, mapping={}, unreachable=False)

    def bottom(self) -> Environment[L]:
        return replace(self, mapping={}, unreachable=True)

    def _with_mapping(self, mapping: Dict[Hashable, L]) -> Environment[L]:
        return replace(self, mapping=mapping, unreachable=False)

    # ---- Access ----------------------------------------------------------

    def get_state(self, identifier: Hashable) -> L:
        """The value bound to *identifier*; ⊤ if unbound, ⊥ if unreachable."""
        if self.unreachable:
            return self.lattice.bottom()
        return self.mapping.get(identifier, self.lattice.top())

    def put_state(self, identifier: Hashable, value: L) -> Environment[L]:
        """Bind *identifier* to *value*, keeping the representation canonical."""
        if self.unreachable:
            return self
        if value.is_bottom():
            return self.bottom()
        new_map = dict(self.mapping)
        if value.is_top():
            new_map.pop(identifier, None)
        else:
            new_map[identifier] = value
        return self._with_mapping(new_map)

    @property
    def identifiers(self) -> FrozenSet[Hashable]:
        return frozenset(self.mapping)

    def knows_identifier(self, identifier: Hashable) -> bool:
        return identifier in self.mapping

    def forget_identifier(self, identifier: Hashable) -> Environment[L]:
        if self.unreachable or identifier not in self.mapping:
            return self
        new_map = dict(self.mapping)
        del new_map[identifier]
        return self._with_mapping(new_map)

    def forget_identifiers_if(
        self, test: Callable[[Hashable], bool]
    ) -> Environment[L]:
        if self.unreachable:
            return self
        return self._with_mapping(
            {k: v for k, v in self.mapping.items() if not test(k)}
        )

    # ---- Predicates ------------------------------------------------------

    def is_bottom(self) -> bool:
        return self.unreachable or any(
            v.is_bottom() for v in self.mapping.values()
        )

    def is_top(self) -> bool:
        return not self.unreachable and not self.mapping

    # ---- Lattice operations ----------------------------------------------
    #
    # Keys missing from one side are ⊤ there, so join and widen only need
    # the keys common to both maps.

    def leq(self, other: Environment[L]) -> bool:
        if self.is_bottom():
            return True
        if other.is_bottom():
            return False
        return all(
            self.get_state(k).leq(v) for k, v in other.mapping.items()
        )

    def join(self, other: Environment[L]) -> Environment[L]:
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        new_map: Dict[Hashable, L] = {}
        for k in self.mapping.keys() & other.mapping.keys():
            j = self.mapping[k].join(other.mapping[k])
            if not j.is_top():
                new_map[k] = j
        return self._with_mapping(new_map)

    def meet(self, other: Environment[L]) -> Environment[L]:
        if self.is_bottom():
            return self
        if other.is_bottom():
            return other
        new_map: Dict[Hashable, L] = {}
        for k in self.mapping.keys() | other.mapping.keys():
            m = self.get_state(k).meet(other.get_state(k))
            if m.is_bottom():
                return self.bottom()
            if not m.is_top():
                new_map[k] = m
        return self._with_mapping(new_map)

    def widen(self, other: Environment[L]) -> Environment[L]:
        """Pointwise ∇, with ``self`` the previous iterate."""
        if self.is_bottom():
            return other
        if other.is_bottom():
            return self
        new_map: Dict[Hashable, L] = {}
        for k in self.mapping.keys() & other.mapping.keys():
            w = self.mapping[k].widen(other.mapping[k])
            if not w.is_top():
                new_map[k] = w
        return self._with_mapping(new_map)

    def narrow(self, other: Environment[L]) -> Environment[L]:
        if self.is_bottom():
            return self
        if other.is_bottom():
            return other
        new_map: Dict[Hashable, L] = {}
        for k in self.mapping.keys() | other.mapping.keys():
            n = self.get_state(k).narrow(other.get_state(k))
            if n.is_bottom():
                return self.bottom()
            if not n.is_top():
                new_map[k] = n
        return self._with_mapping(new_map)

    # ---- Rendering -------------------------------------------------------

    def representation(self) -> StructuredRepresentation:
        if self.is_bottom():
            return BOTTOM_REPRESENTATION
        if self.is_top():
            return TOP_REPRESENTATION
        return MapRepresentation.of(
            {k: v.representation() for k, v in self.mapping.items()}
        )

    def __str__(self) -> str:
        return str(self.representation())


# ═══════════════════════════════════════════════════════════════════════════
#  PART 2 — VALUE ENVIRONMENT
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class ValueEnvironment(Environment[L]):
    """
    Environment over a non-relational ``ValueDomain``, with transfer
    functions.

    >>> env = ValueEnvironment(Interval.top())
    >>> env = env.assign(Identifier("y"), Constant(3))
    >>> env.eval(BinaryExpression(BinaryOperator.ADD, Identifier("y"), Constant(1)))
    Interval([4, 4])
    """

    def __post_init__(self) -> None:
        if not isinstance(self.lattice, ValueDomain):
            raise SemanticError(
                f"{type(self.lattice).__name__} does not provide the "
                "evaluation hooks of a value domain",
                ErrorCode.INCOMPATIBLE_STATES,
            )

    __hash__ = Environment.__hash__

    def eval(self, expression: Expression, pp: ProgramPoint = None,
             oracle: Optional[SemanticOracle] = None) -> L:
        return eval_expression(self, expression, pp, oracle)

    def assign(self, identifier: Identifier, expression: Expression,
               pp: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> ValueEnvironment[L]:
        if self.is_bottom():
            return self
        return self.put_state(identifier, self.eval(expression, pp, oracle))

    def small_step_semantics(self, expression: Expression,
                             pp: ProgramPoint = None,
                             oracle: Optional[SemanticOracle] = None
                             ) -> ValueEnvironment[L]:
        return self

    def assume(self, expression: Expression, src: ProgramPoint = None,
               dest: ProgramPoint = None,
               oracle: Optional[SemanticOracle] = None) -> ValueEnvironment[L]:
        return assume_expression(self, expression, src, dest, oracle)

    def satisfies(self, expression: Expression, pp: ProgramPoint = None,
                  oracle: Optional[SemanticOracle] = None) -> Satisfiability:
        return satisfies_expression(self, expression, pp, oracle)


# ═══════════════════════════════════════════════════════════════════════════
#  PART 3 — EXPRESSION DISPATCH
# ═══════════════════════════════════════════════════════════════════════════

def eval_expression(env: ValueEnvironment[L], expression: Expression,
                    pp: ProgramPoint = None,
                    oracle: Optional[SemanticOracle] = None) -> L:
    """Abstract value of *expression* in *env*."""
    domain: Any = env.lattice
    if env.is_bottom():
        return domain.bottom()

    if isinstance(expression, Constant):
        return domain.eval_constant(expression, pp, oracle)
    if isinstance(expression, Identifier):
        return domain.eval_identifier(expression, env, pp, oracle)
    if isinstance(expression, PushAny):
        return domain.eval_push_any(pp, oracle)

    if isinstance(expression, UnaryExpression):
        arg = eval_expression(env, expression.arg, pp, oracle)
        if arg.is_bottom():
            return arg
        return domain.eval_unary(expression.operator, arg, pp, oracle)

    if isinstance(expression, BinaryExpression):
        left = eval_expression(env, expression.left, pp, oracle)
        if left.is_bottom():
            return left
        right = eval_expression(env, expression.right, pp, oracle)
        if right.is_bottom():
            return right
        return domain.eval_binary(expression.operator, left, right, pp, oracle)

    if isinstance(expression, TernaryExpression):
        operands = [
            eval_expression(env, e, pp, oracle)
            for e in (expression.left, expression.middle, expression.right)
        ]
        for value in operands:
            if value.is_bottom():
                return value
        return domain.eval_ternary(expression.operator, *operands, pp, oracle)

    raise SemanticError(
        f"unsupported expression node {type(expression).__name__}",
        ErrorCode.INCOMPATIBLE_STATES,
    )


# ═══════════════════════════════════════════════════════════════════════════
#  PART 4 — CONDITIONS
# ═══════════════════════════════════════════════════════════════════════════
#
#  The logical layer is shared by every state type: relational domains
#  pass their own comparison handlers to satisfies_condition /
#  assume_condition.

S = TypeVar("S")


def satisfies_condition(
    state: Any,
    expression: Expression,
    decide: Callable[[BinaryExpression], Satisfiability],
) -> Satisfiability:
    """
    Answer *expression* over *state*, resolving ``not`` / ``and`` / ``or``
    and boolean literals, and asking *decide* about every other binary
    expression.
    """
    if state.is_bottom():
        return Satisfiability.BOTTOM

    if isinstance(expression, Constant) and isinstance(expression.value, bool):
        return Satisfiability.from_bool(expression.value)

    if isinstance(expression, UnaryExpression):
        if expression.operator is UnaryOperator.LOGICAL_NOT:
            return satisfies_condition(state, expression.arg, decide).negate()
        return Satisfiability.UNKNOWN

    if isinstance(expression, BinaryExpression):
        op = expression.operator
        if op is BinaryOperator.LOGICAL_AND:
            return satisfies_condition(state, expression.left, decide).and_(
                satisfies_condition(state, expression.right, decide))
        if op is BinaryOperator.LOGICAL_OR:
            return satisfies_condition(state, expression.left, decide).or_(
                satisfies_condition(state, expression.right, decide))
        return decide(expression)

    return Satisfiability.UNKNOWN


def assume_condition(
    state: S,
    expression: Expression,
    refine: Callable[[S, BinaryExpression], S],
) -> S:
    """
    Restrict *state* to where *expression* may hold.

    ``not`` is pushed into the condition, ``and`` refines sequentially and
    ``or`` joins both refinements.  ``False`` makes the state unreachable.
    Every other binary expression goes to *refine*.
    """
    if state.is_bottom():
        return state

    if isinstance(expression, Constant) and isinstance(expression.value, bool):
        if expression.value:
            return state
        logger.debug("assume(false): state is unreachable")
        return state.bottom()

    if isinstance(expression, UnaryExpression):
        if expression.operator is UnaryOperator.LOGICAL_NOT:
            pushed = negate_condition(expression.arg)
            if (isinstance(pushed, UnaryExpression)
                    and pushed.operator is UnaryOperator.LOGICAL_NOT):
                return state
            return assume_condition(state, pushed, refine)
        return state

    if not isinstance(expression, BinaryExpression):
        return state

    op = expression.operator
    if op is BinaryOperator.LOGICAL_AND:
        first = assume_condition(state, expression.left, refine)
        return assume_condition(first, expression.right, refine)
    if op is BinaryOperator.LOGICAL_OR:
        return assume_condition(state, expression.left, refine).join(
            assume_condition(state, expression.right, refine))
    return refine(state, expression)


def satisfies_expression(env: ValueEnvironment[L], expression: Expression,
                         pp: ProgramPoint = None,
                         oracle: Optional[SemanticOracle] = None
                         ) -> Satisfiability:
    """Whether *expression* holds in every concrete state of *env*."""

    def decide(be: BinaryExpression) -> Satisfiability:
        left = eval_expression(env, be.left, pp, oracle)
        right = eval_expression(env, be.right, pp, oracle)
        if left.is_bottom() or right.is_bottom():
            return Satisfiability.BOTTOM
        return env.lattice.satisfies_binary(be.operator, left, right, pp, oracle)

    return satisfies_condition(env, expression, decide)


def assume_expression(env: ValueEnvironment[L], expression: Expression,
                      src: ProgramPoint = None, dest: ProgramPoint = None,
                      oracle: Optional[SemanticOracle] = None
                      ) -> ValueEnvironment[L]:
    """
    Restrict *env* to the states where *expression* may hold.

    A comparison the state refutes yields ⊥; one it proves leaves the
    state unchanged; otherwise the domain's ``assume_binary`` refines it.
    """

    def refine(current: ValueEnvironment[L],
               be: BinaryExpression) -> ValueEnvironment[L]:
        sat = satisfies_expression(current, be, src, oracle)
        if sat is Satisfiability.NOT_SATISFIED or sat is Satisfiability.BOTTOM:
            logger.debug("assume(%s) at %s contradicts the state", be, dest)
            return current.bottom()
        if sat is Satisfiability.SATISFIED:
            return current
        result = current.lattice.assume_binary(
            current, be.operator, be.left, be.right, src, dest, oracle
        )
        if result.is_bottom() and not result.unreachable:
            return result.bottom()
        return result

    return assume_condition(env, expression, refine)


__all__ = [
    "Environment",
    "ValueEnvironment",
    "eval_expression",
    "satisfies_condition",
    "assume_condition",
    "satisfies_expression",
    "assume_expression",
]
