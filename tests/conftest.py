# tests/conftest.py
"""
Shared expression builders and fixtures for the domain tests.

The builders keep test bodies close to the source programs they model:

    lt("x", "y")          x < y
    sub("y", 1)           y - 1
    and_(ge("x", 0), le("x", 2))

Strings become identifiers, ints become constants, anything else is used
as an expression node unchanged.
"""

import pytest

from pentagon_domains.environment import ValueEnvironment
from pentagon_domains.expressions import (
    BinaryExpression,
    BinaryOperator,
    Constant,
    Identifier,
    UnaryExpression,
    UnaryOperator,
)
from pentagon_domains.interval import Interval
from pentagon_domains.pentagons import Pentagons
from pentagon_domains.taint import Taint
from pentagon_domains.upper_bounds import StrictUpperBounds


# ── Expression builders ──────────────────────────────────────────

def var(name, *annotations):
    return Identifier(name, frozenset(annotations))


def num(value):
    return Constant(value)


def lift(operand):
    if isinstance(operand, str):
        return var(operand)
    if isinstance(operand, int) and not isinstance(operand, bool):
        return num(operand)
    return operand


def binop(operator, left, right):
    return BinaryExpression(operator, lift(left), lift(right))


def add(left, right):
    return binop(BinaryOperator.ADD, left, right)


def sub(left, right):
    return binop(BinaryOperator.SUB, left, right)


def mul(left, right):
    return binop(BinaryOperator.MUL, left, right)


def div(left, right):
    return binop(BinaryOperator.DIV, left, right)


def lt(left, right):
    return binop(BinaryOperator.LT, left, right)


def le(left, right):
    return binop(BinaryOperator.LE, left, right)


def gt(left, right):
    return binop(BinaryOperator.GT, left, right)


def ge(left, right):
    return binop(BinaryOperator.GE, left, right)


def eq(left, right):
    return binop(BinaryOperator.EQ, left, right)


def ne(left, right):
    return binop(BinaryOperator.NE, left, right)


def and_(left, right):
    return binop(BinaryOperator.LOGICAL_AND, left, right)


def or_(left, right):
    return binop(BinaryOperator.LOGICAL_OR, left, right)


def not_(arg):
    return UnaryExpression(UnaryOperator.LOGICAL_NOT, lift(arg))


def neg(arg):
    return UnaryExpression(UnaryOperator.NUMERIC_NEGATION, lift(arg))


def interval_env(**ranges):
    """``interval_env(y=(0, 5))`` → an interval environment with y ∈ [0, 5]."""
    env = ValueEnvironment(Interval.top())
    for name, (low, high) in ranges.items():
        env = env.put_state(var(name), Interval.of(low, high))
    return env


def pentagon_with(**ranges):
    """A Pentagons state whose intervals are assumed one variable at a time."""
    state = Pentagons()
    for name, (low, high) in ranges.items():
        state = state.assume(and_(ge(name, low), le(name, high)))
    return state


# ── Fixtures ─────────────────────────────────────────────────────

@pytest.fixture
def x():
    return var("x")


@pytest.fixture
def y():
    return var("y")


@pytest.fixture
def z():
    return var("z")


@pytest.fixture
def intervals():
    return ValueEnvironment(Interval.top())


@pytest.fixture
def taints():
    return ValueEnvironment(Taint.top())


@pytest.fixture
def bounds():
    return StrictUpperBounds()


@pytest.fixture
def pentagons():
    return Pentagons()
