"""
pentagon_domains/expressions.py
═══════════════════════════════

The expression AST consumed from the host analyser.

The domains never parse anything: the host hands over already-built trees of

    Constant | Identifier | PushAny
    UnaryExpression(op, arg)
    BinaryExpression(op, left, right)
    TernaryExpression(op, left, middle, right)

Operators are closed enums; transfer functions match on enum members and
fall back to ⊤ / UNKNOWN for members they do not model.

Program points and the semantic oracle are opaque to the domains: program
points are carried through untouched and the oracle is only forwarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, FrozenSet, Optional, Protocol, Union, runtime_checkable


# Opaque host token identifying a program location.
ProgramPoint = Any


# ═══════════════════════════════════════════════════════════════════════════
#  OPERATORS
# ═══════════════════════════════════════════════════════════════════════════

class UnaryOperator(Enum):
    NUMERIC_NEGATION = auto()
    STRING_LENGTH = auto()
    LOGICAL_NOT = auto()
    BITWISE_NOT = auto()


class BinaryOperator(Enum):
    # arithmetic
    ADD = auto()
    SUB = auto()
    MUL = auto()
    DIV = auto()
    MOD = auto()
    # comparisons
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()
    EQ = auto()
    NE = auto()
    # logical connectives
    LOGICAL_AND = auto()
    LOGICAL_OR = auto()
    # strings
    STRING_CONCAT = auto()
    # types: the right operand names the target type
    TYPE_CAST = auto()
    TYPE_CONV = auto()

    @property
    def is_comparison(self) -> bool:
        return self in _COMPARISONS

    def swapped(self) -> BinaryOperator:
        """The operator obtained by exchanging operands: ``a < b  ⟺  b > a``."""
        return _SWAPPED.get(self, self)

    def negated(self) -> BinaryOperator:
        """The complementary comparison: ``¬(a < b)  ⟺  a >= b``."""
        try:
            return _NEGATED[self]
        except KeyError:
            raise ValueError(f"{self.name} is not a comparison") from None


_COMPARISONS = frozenset({
    BinaryOperator.LT, BinaryOperator.LE, BinaryOperator.GT,
    BinaryOperator.GE, BinaryOperator.EQ, BinaryOperator.NE,
})

_SWAPPED = {
    BinaryOperator.LT: BinaryOperator.GT,
    BinaryOperator.GT: BinaryOperator.LT,
    BinaryOperator.LE: BinaryOperator.GE,
    BinaryOperator.GE: BinaryOperator.LE,
}

_NEGATED = {
    BinaryOperator.LT: BinaryOperator.GE,
    BinaryOperator.GE: BinaryOperator.LT,
    BinaryOperator.GT: BinaryOperator.LE,
    BinaryOperator.LE: BinaryOperator.GT,
    BinaryOperator.EQ: BinaryOperator.NE,
    BinaryOperator.NE: BinaryOperator.EQ,
}


class TernaryOperator(Enum):
    STRING_SUBSTRING = auto()
    STRING_REPLACE = auto()


# ═══════════════════════════════════════════════════════════════════════════
#  ANNOTATIONS
# ═══════════════════════════════════════════════════════════════════════════
#
#  Annotations are plain names attached to identifiers (and to formal
#  parameters for the sink check).  The host is responsible for parsing
#  them out of the source program.

TAINTED_ANNOTATION = "taint.Tainted"
CLEAN_ANNOTATION = "taint.Clean"
SINK_ANNOTATION = "taint.Sink"


# ═══════════════════════════════════════════════════════════════════════════
#  EXPRESSION NODES
# ═══════════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Constant:
    """A literal: ``int``, ``str``, ``bool`` or ``None`` (the null constant)."""
    value: Any
    location: ProgramPoint = field(default=None, compare=False)

    def is_integer(self) -> bool:
        return isinstance(self.value, int) and not isinstance(self.value, bool)

    def __str__(self) -> str:
        return "null" if self.value is None else repr(self.value)


@dataclass(frozen=True)
class Identifier:
    """
    A program variable.

    Identity is the name alone; ``annotations`` is metadata and does not
    take part in equality or hashing, so the same variable seen with and
    without annotations maps to one environment entry.
    """
    name: str
    annotations: FrozenSet[str] = field(default_factory=frozenset, compare=False)
    location: ProgramPoint = field(default=None, compare=False)

    def has_annotation(self, annotation: str) -> bool:
        return annotation in self.annotations

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class PushAny:
    """An unknown value produced by the host (e.g. unmodelled input)."""
    location: ProgramPoint = field(default=None, compare=False)

    def __str__(self) -> str:
        return "?"


@dataclass(frozen=True)
class UnaryExpression:
    operator: UnaryOperator
    arg: "Expression"
    location: ProgramPoint = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.operator.name}({self.arg})"


@dataclass(frozen=True)
class BinaryExpression:
    operator: BinaryOperator
    left: "Expression"
    right: "Expression"
    location: ProgramPoint = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"({self.left} {_SYMBOLS.get(self.operator, self.operator.name)} {self.right})"


@dataclass(frozen=True)
class TernaryExpression:
    operator: TernaryOperator
    left: "Expression"
    middle: "Expression"
    right: "Expression"
    location: ProgramPoint = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.operator.name}({self.left}, {self.middle}, {self.right})"


Expression = Union[
    Constant, Identifier, PushAny,
    UnaryExpression, BinaryExpression, TernaryExpression,
]


_SYMBOLS = {
    BinaryOperator.ADD: "+",
    BinaryOperator.SUB: "-",
    BinaryOperator.MUL: "*",
    BinaryOperator.DIV: "/",
    BinaryOperator.MOD: "%",
    BinaryOperator.LT: "<",
    BinaryOperator.LE: "<=",
    BinaryOperator.GT: ">",
    BinaryOperator.GE: ">=",
    BinaryOperator.EQ: "==",
    BinaryOperator.NE: "!=",
    BinaryOperator.LOGICAL_AND: "&&",
    BinaryOperator.LOGICAL_OR: "||",
}


# ═══════════════════════════════════════════════════════════════════════════
#  SEMANTIC ORACLE
# ═══════════════════════════════════════════════════════════════════════════

@runtime_checkable
class SemanticOracle(Protocol):
    """
    Cross-domain query callback supplied by the host.

    The domains in this package accept an oracle on every transfer function
    and forward it, but answer from their own state only.
    """

    def satisfies(self, expression: Expression, pp: ProgramPoint) -> Any:
        ...


# ═══════════════════════════════════════════════════════════════════════════
#  HELPERS
# ═══════════════════════════════════════════════════════════════════════════

def negate_condition(expression: Expression) -> Expression:
    """
    Push a logical negation one level into *expression*.

    Comparisons flip to their complement, ``¬¬e`` becomes ``e`` and the
    connectives follow De Morgan.  Anything else is wrapped in
    ``LOGICAL_NOT`` unchanged.
    """
    if isinstance(expression, BinaryExpression):
        op = expression.operator
        if op.is_comparison:
            return BinaryExpression(op.negated(), expression.left,
                                    expression.right, expression.location)
        if op is BinaryOperator.LOGICAL_AND:
            return BinaryExpression(BinaryOperator.LOGICAL_OR,
                                    negate_condition(expression.left),
                                    negate_condition(expression.right),
                                    expression.location)
        if op is BinaryOperator.LOGICAL_OR:
            return BinaryExpression(BinaryOperator.LOGICAL_AND,
                                    negate_condition(expression.left),
                                    negate_condition(expression.right),
                                    expression.location)
    if (isinstance(expression, UnaryExpression)
            and expression.operator is UnaryOperator.LOGICAL_NOT):
        return expression.arg
    if isinstance(expression, Constant) and isinstance(expression.value, bool):
        return Constant(not expression.value, expression.location)
    return UnaryExpression(UnaryOperator.LOGICAL_NOT, expression)


def as_integer_literal(expression: Expression) -> Optional[int]:
    """The integer carried by *expression* if it is an integer constant."""
    if isinstance(expression, Constant) and expression.is_integer():
        return expression.value
    return None


__all__ = [
    "ProgramPoint",
    "UnaryOperator",
    "BinaryOperator",
    "TernaryOperator",
    "TAINTED_ANNOTATION",
    "CLEAN_ANNOTATION",
    "SINK_ANNOTATION",
    "Constant",
    "Identifier",
    "PushAny",
    "UnaryExpression",
    "BinaryExpression",
    "TernaryExpression",
    "Expression",
    "SemanticOracle",
    "negate_condition",
    "as_integer_literal",
]
