# tests/test_environment.py
"""
Tests for pointwise environments: canonical representation, the lifted
lattice operations and the evaluation dispatch.
"""

import pytest

from pentagon_domains.environment import Environment, ValueEnvironment
from pentagon_domains.errors import SemanticError
from pentagon_domains.interval import Interval
from pentagon_domains.representation import BOTTOM_REPRESENTATION, TOP_REPRESENTATION
from tests.conftest import add, interval_env, num, var


class TestCanonicalForm:

    def test_unbound_identifiers_are_top(self, intervals, x):
        assert intervals.is_top()
        assert intervals.get_state(x).is_top()

    def test_top_values_are_not_stored(self, intervals, x):
        env = intervals.put_state(x, Interval.of(0, 1)).put_state(x, Interval.top())
        assert env.mapping == {}
        assert env.is_top()

    def test_bottom_value_makes_the_environment_bottom(self, intervals, x):
        env = intervals.put_state(x, Interval.bottom())
        assert env.is_bottom()
        assert env.unreachable
        assert env.mapping == {}

    def test_bottom_environment_answers_bottom(self, intervals, x):
        env = intervals.bottom()
        assert env.get_state(x).is_bottom()
        assert env.put_state(x, Interval.of(0, 1)) is env

    def test_identifiers_and_knowledge(self, x, y):
        env = interval_env(x=(0, 1))
        assert env.identifiers == frozenset({x})
        assert env.knows_identifier(x)
        assert not env.knows_identifier(y)

    def test_annotations_do_not_split_entries(self):
        env = interval_env(x=(0, 1))
        assert env.get_state(var("x", "taint.Clean")) == Interval.of(0, 1)

    def test_environments_are_hashable(self):
        assert hash(interval_env(x=(0, 1))) == hash(interval_env(x=(0, 1)))

    def test_value_environment_requires_a_value_domain(self):
        with pytest.raises(SemanticError):
            ValueEnvironment(object())

    def test_plain_environment_accepts_any_lattice(self, x):
        env = Environment(Interval.top()).put_state(x, Interval.of(1, 2))
        assert env.get_state(x) == Interval.of(1, 2)


class TestLiftedLattice:

    def test_join_keeps_common_keys_only(self, x):
        left = interval_env(x=(0, 1))
        right = interval_env(x=(2, 3), y=(0, 0))
        assert left.join(right) == interval_env(x=(0, 3))

    def test_join_with_bottom(self):
        env = interval_env(x=(0, 1))
        assert env.join(env.bottom()) == env
        assert env.bottom().join(env) == env

    def test_meet_takes_the_key_union(self):
        left = interval_env(x=(0, 5))
        right = interval_env(x=(3, 9), y=(1, 1))
        assert left.meet(right) == interval_env(x=(3, 5), y=(1, 1))

    def test_meet_of_disjoint_values_is_bottom(self):
        assert interval_env(x=(0, 1)).meet(interval_env(x=(5, 6))).is_bottom()

    def test_leq(self):
        small = interval_env(x=(1, 2))
        large = interval_env(x=(0, 5))
        assert small.leq(large)
        assert not large.leq(small)
        assert small.bottom().leq(small)
        assert small.leq(small.top())
        assert not small.top().leq(small)

    def test_widen(self):
        env = interval_env(x=(0, 1)).widen(interval_env(x=(0, 2)))
        assert env == ValueEnvironment(Interval.top()).put_state(var("x"), Interval.at_least(0))

    def test_widen_drops_keys_missing_on_one_side(self):
        assert interval_env(x=(0, 1), y=(0, 0)).widen(interval_env(x=(0, 1))) == interval_env(x=(0, 1))

    def test_narrow(self):
        wide = ValueEnvironment(Interval.top()).put_state(var("x"), Interval.at_least(0))
        assert wide.narrow(interval_env(x=(0, 9))) == interval_env(x=(0, 9))


class TestIdentifierManagement:

    def test_forget_identifier(self, x, y):
        env = interval_env(x=(0, 1), y=(2, 3)).forget_identifier(x)
        assert not env.knows_identifier(x)
        assert env.get_state(y) == Interval.of(2, 3)

    def test_forget_unknown_identifier_is_a_no_op(self, y):
        env = interval_env(x=(0, 1))
        assert env.forget_identifier(y) is env

    def test_forget_identifiers_if(self):
        env = interval_env(tmp1=(0, 1), tmp2=(0, 1), x=(2, 3))
        kept = env.forget_identifiers_if(lambda i: i.name.startswith("tmp"))
        assert kept == interval_env(x=(2, 3))


class TestTransferFunctions:

    def test_assign(self, intervals, x):
        env = intervals.assign(x, num(3))
        assert env.get_state(x) == Interval.singleton(3)
        assert env.eval(add("x", 1)) == Interval.singleton(4)

    def test_assign_on_bottom_stays_bottom(self, intervals, x):
        env = intervals.bottom()
        assert env.assign(x, num(1)).is_bottom()

    def test_small_step_semantics_is_identity(self):
        env = interval_env(x=(0, 1))
        assert env.small_step_semantics(add("x", 1)) is env

    def test_unknown_node_is_rejected(self, intervals):
        with pytest.raises(SemanticError):
            intervals.eval("x + 1")


class TestRendering:

    def test_map_rendering(self):
        env = interval_env(y=(1, 1), x=(0, 5))
        assert str(env) == "x: [0, 5]\ny: [1, 1]"
        assert env.representation().to_json() == {"x": "[0, 5]", "y": "[1, 1]"}

    def test_extremal_rendering(self, intervals):
        assert intervals.representation() is TOP_REPRESENTATION
        assert intervals.bottom().representation() is BOTTOM_REPRESENTATION
