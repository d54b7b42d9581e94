"""
pentagon_domains/taint.py
═════════════════════════

Three-point taint domain and the sink check built on it.

        TAINTED  (⊤)      may carry attacker-controlled data
           |
         CLEAN            definitely untainted
           |
         BOTTOM  (⊥)      unreachable

Sources and sanitisers are declared through identifier annotations:
``taint.Tainted`` forces TAINTED and ``taint.Clean`` forces CLEAN whatever
the environment says.  Constants are CLEAN, unknown inputs are TAINTED,
and every operator joins the taint of its operands (casts keep the value
being cast).

``check_sink_call`` reports calls whose ``taint.Sink`` parameters may
receive tainted arguments.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence

from .environment import ValueEnvironment
from .expressions import (
    CLEAN_ANNOTATION,
    SINK_ANNOTATION,
    TAINTED_ANNOTATION,
    BinaryOperator,
    Constant,
    Expression,
    Identifier,
    ProgramPoint,
    SemanticOracle,
    TernaryOperator,
    UnaryOperator,
)
from .lattice import BaseValueDomain
from .representation import (
    BOTTOM_REPRESENTATION,
    StringRepresentation,
    StructuredRepresentation,
)

logger = logging.getLogger(__name__)


class Taint(BaseValueDomain, Enum):
    BOTTOM = 0
    CLEAN = 1
    TAINTED = 2

    @classmethod
    def top(cls) -> Taint:
        return cls.TAINTED

    @classmethod
    def bottom(cls) -> Taint:
        return cls.BOTTOM

    def is_top(self) -> bool:
        return self is Taint.TAINTED

    def is_bottom(self) -> bool:
        return self is Taint.BOTTOM

    def is_possibly_tainted(self) -> bool:
        return self is Taint.TAINTED

    # ---- Lattice operations ----------------------------------------------

    def leq(self, other: Taint) -> bool:
        if self is Taint.BOTTOM or other is Taint.TAINTED or self is other:
            return True
        # Only TAINTED ⊑ CLEAN and X ⊑ BOTTOM remain, both false on a
        # three-point chain.
        return False

    def join(self, other: Taint) -> Taint:
        if self is Taint.BOTTOM:
            return other
        if other is Taint.BOTTOM or self is other:
            return self
        return Taint.TAINTED

    def meet(self, other: Taint) -> Taint:
        return self if self.value <= other.value else other

    def widen(self, other: Taint) -> Taint:
        # finite height: join already terminates
        return self.join(other)

    def narrow(self, other: Taint) -> Taint:
        return self.meet(other)

    # ---- Evaluation hooks ------------------------------------------------

    def eval_constant(self, constant: Constant, pp: ProgramPoint,
                      oracle: Optional[SemanticOracle]) -> Taint:
        return Taint.CLEAN

    def eval_identifier(self, identifier: Identifier,
                        env: ValueEnvironment[Taint], pp: ProgramPoint,
                        oracle: Optional[SemanticOracle]) -> Taint:
        if identifier.has_annotation(TAINTED_ANNOTATION):
            return Taint.TAINTED
        if identifier.has_annotation(CLEAN_ANNOTATION):
            return Taint.CLEAN
        return env.get_state(identifier)

    def eval_push_any(self, pp: ProgramPoint,
                      oracle: Optional[SemanticOracle]) -> Taint:
        return Taint.TAINTED

    def eval_unary(self, operator: UnaryOperator, arg: Taint,
                   pp: ProgramPoint, oracle: Optional[SemanticOracle]) -> Taint:
        return arg

    def eval_binary(self, operator: BinaryOperator, left: Taint, right: Taint,
                    pp: ProgramPoint, oracle: Optional[SemanticOracle]) -> Taint:
        if operator in (BinaryOperator.TYPE_CAST, BinaryOperator.TYPE_CONV):
            return left
        return left.join(right)

    def eval_ternary(self, operator: TernaryOperator, left: Taint,
                     middle: Taint, right: Taint, pp: ProgramPoint,
                     oracle: Optional[SemanticOracle]) -> Taint:
        return left.join(middle).join(right)

    # ---- Rendering -------------------------------------------------------

    def representation(self) -> StructuredRepresentation:
        if self is Taint.BOTTOM:
            return BOTTOM_REPRESENTATION
        return StringRepresentation("_" if self is Taint.CLEAN else "#")

    def __str__(self) -> str:
        return str(self.representation())


# ═══════════════════════════════════════════════════════════════════════════
#  SINK CHECK
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Parameter:
    """A formal parameter of a call target."""
    name: str
    annotations: FrozenSet[str] = frozenset()

    def is_sink(self) -> bool:
        return SINK_ANNOTATION in self.annotations


@dataclass(frozen=True)
class CallSite:
    """
    A call already resolved by the host: the target's name and formals,
    and the actual argument expressions in order.
    """
    target: str
    formals: Sequence[Parameter]
    arguments: Sequence[Expression]
    location: ProgramPoint = field(default=None, compare=False)


@dataclass(frozen=True)
class TaintWarning:
    call: CallSite
    index: int
    parameter: Parameter
    message: str

    def __str__(self) -> str:
        if self.call.location is None:
            return self.message
        return f"{self.call.location}: {self.message}"


def ordinal(n: int) -> str:
    """``1`` → ``"1st"``, ``12`` → ``"12th"``, ``23`` → ``"23rd"``."""
    if 10 <= n % 100 <= 20:
        suffix = "th"
    else:
        suffix = {1: "st", 2: "nd", 3: "rd"}.get(n % 10, "th")
    return f"{n}{suffix}"


def check_sink_call(
    call: CallSite,
    state: ValueEnvironment[Taint],
    pp: ProgramPoint = None,
    oracle: Optional[SemanticOracle] = None,
) -> List[TaintWarning]:
    """
    Warn for every ``taint.Sink`` formal of *call* whose argument may be
    tainted in *state* (the state right before the call).
    """
    where = call.location if pp is None else pp
    warnings: List[TaintWarning] = []
    for index, (formal, argument) in enumerate(zip(call.formals, call.arguments)):
        if not formal.is_sink():
            continue
        taint = state.eval(argument, where, oracle)
        if not taint.is_possibly_tainted():
            continue
        message = (
            f"The value passed for the {ordinal(index + 1)} parameter of this "
            f"call may be tainted, and it reaches the sink at parameter "
            f"'{formal.name}' of {call.target}"
        )
        logger.debug("sink reached at %s: %s", where, message)
        warnings.append(TaintWarning(call, index, formal, message))
    return warnings


__all__ = [
    "Taint",
    "Parameter",
    "CallSite",
    "TaintWarning",
    "ordinal",
    "check_sink_call",
]
