# tests/test_pentagons.py
"""
Tests for the Pentagons reduced product: closure, the join that re-derives
lost bounds, transfer functions and loop-head extrapolation.
"""

import pytest

from pentagon_domains.config import DomainConfig, extrapolate
from pentagon_domains.environment import ValueEnvironment
from pentagon_domains.interval import Interval
from pentagon_domains.lattice import Satisfiability
from pentagon_domains.pentagons import Pentagons
from pentagon_domains.representation import BOTTOM_REPRESENTATION, TOP_REPRESENTATION
from pentagon_domains.upper_bounds import StrictUpperBounds
from tests.conftest import (
    add, and_, ge, gt, interval_env, le, lt, num, pentagon_with, sub, var,
)


def _unclosed(bounds=None, **ranges):
    """A product built directly from its components, without closure."""
    return Pentagons(bounds or StrictUpperBounds(), interval_env(**ranges))


# ── Closure ──────────────────────────────────────────────────────

class TestClosure:

    def test_disjoint_ordered_intervals_imply_a_bound(self, x, y):
        """x ∈ [0, 2] and y ∈ [5, 10] record y as an upper bound of x."""
        p = pentagon_with(x=(0, 2), y=(5, 10))
        assert y in p.bounds.get_state(x)
        assert x not in p.bounds.get_state(y)

    def test_overlapping_intervals_imply_nothing(self, x):
        p = pentagon_with(x=(0, 2), y=(1, 10))
        assert p.bounds.get_state(x).is_top()

    def test_closure_on_unclosed_product(self, x, y):
        p = _unclosed(x=(0, 2), y=(5, 10))
        assert p.bounds.is_top()
        assert y in p.closure().bounds.get_state(x)

    def test_closure_is_idempotent(self):
        p = _unclosed(x=(0, 2), y=(5, 10), z=(20, 30)).closure()
        assert p.closure() == p


# ── Lattice ──────────────────────────────────────────────────────

class TestPentagonsLattice:

    def test_top_and_bottom(self, pentagons):
        assert pentagons.is_top()
        assert pentagons.bottom().is_bottom()
        assert pentagons.bottom().top() == pentagons

    def test_join_drops_unwitnessed_bounds(self, x, y):
        left = pentagon_with(x=(0, 2), y=(5, 10))
        right = pentagon_with(x=(0, 2), y=(1, 10))
        joined = left.join(right)
        assert y not in joined.bounds.get_state(x)
        assert joined.intervals == interval_env(x=(0, 2), y=(1, 10))

    def test_join_rederives_bounds_from_the_other_intervals(self, x, y):
        left = pentagon_with(x=(0, 2), y=(5, 10))
        right = _unclosed(x=(0, 2), y=(3, 10))
        assert right.bounds.is_top()
        assert y in left.join(right).bounds.get_state(x)
        assert y in right.join(left).bounds.get_state(x)

    def test_join_keeps_symbolic_bounds_shared_by_both(self, x, y):
        left = Pentagons().assume(lt("x", "y")).assign(var("z"), num(1))
        right = Pentagons().assume(lt("x", "y"))
        assert y in left.join(right).bounds.get_state(x)

    def test_join_with_bottom(self):
        p = pentagon_with(x=(0, 2))
        assert p.join(p.bottom()) == p
        assert p.bottom().join(p) == p

    def test_meet_closes(self, x, y):
        left = pentagon_with(x=(0, 2))
        right = pentagon_with(y=(5, 10))
        assert y in left.meet(right).bounds.get_state(x)

    def test_meet_of_disjoint_intervals_is_bottom(self):
        assert pentagon_with(x=(0, 1)).meet(pentagon_with(x=(5, 6))).is_bottom()

    def test_meet_unions_bounds(self, x, y, z):
        left = Pentagons().assume(lt("x", "y"))
        right = Pentagons().assume(lt("x", "z"))
        assert left.meet(right).bounds.get_state(x) == left.bounds.get_state(x).meet(
            right.bounds.get_state(x))
        assert z in left.meet(right).bounds.get_state(x)

    def test_leq(self, pentagons):
        p = pentagon_with(x=(0, 2), y=(5, 10))
        assert p.leq(pentagons)
        assert not pentagons.leq(p)
        assert p.leq(p)
        assert p.bottom().leq(p)

    def test_leq_accepts_numeric_witnesses(self, x, y):
        symbolic = Pentagons().assume(lt("x", "y"))
        assert _unclosed(x=(0, 2), y=(5, 10)).leq(symbolic)
        assert not _unclosed(x=(0, 2), y=(1, 10)).leq(symbolic)

    def test_widen_is_componentwise(self, x):
        p = pentagon_with(x=(0, 0)).widen(pentagon_with(x=(0, 1)))
        assert p.intervals.get_state(x) == Interval.at_least(0)

    def test_narrow(self, x):
        wide = Pentagons(StrictUpperBounds(),
                         ValueEnvironment(Interval.top()).put_state(x, Interval.at_least(0)))
        assert wide.narrow(pentagon_with(x=(0, 9))).intervals.get_state(x) == Interval.of(0, 9)


# ── Transfer functions ───────────────────────────────────────────

class TestPentagonsTransfer:

    def test_assign_updates_both_components(self, pentagons, x, y):
        p = pentagons.assign(y, num(5)).assign(x, sub("y", 1))
        assert p.intervals.get_state(x) == Interval.singleton(4)
        assert y in p.bounds.get_state(x)

    def test_assign_closes(self, pentagons, x, y):
        p = pentagons.assign(x, num(0)).assign(y, num(5))
        assert y in p.bounds.get_state(x)

    def test_difference_of_ordered_variables_is_positive(self, pentagons, x):
        p = pentagons.assume(lt("z", "y")).assign(x, sub("y", "z"))
        assert p.intervals.get_state(x) == Interval.at_least(1)

    def test_difference_without_order_is_unknown(self, pentagons, x):
        p = pentagons.assign(x, sub("y", "z"))
        assert p.intervals.get_state(x).is_top()

    def test_array_index_stays_below_length(self, pentagons):
        """i := len - 1 with len ≥ 1 proves 0 <= i < len."""
        p = pentagons.assume(ge("len", 1)).assign(var("i"), sub("len", 1))
        assert p.satisfies(lt("i", "len")) is Satisfiability.SATISFIED
        assert p.satisfies(ge("i", 0)) is Satisfiability.SATISFIED

    def test_assume_contradiction_in_bounds(self, pentagons):
        p = pentagons.assume(lt("x", "y")).assume(lt("y", "x"))
        assert p.is_bottom()
        assert p.bounds.is_bottom() and p.intervals.is_bottom()

    def test_assume_contradiction_in_intervals(self):
        p = pentagon_with(x=(0, 2)).assume(gt("x", 5))
        assert p.is_bottom()

    def test_assume_on_bottom(self, pentagons):
        assert pentagons.bottom().assume(lt("x", 1)).is_bottom()

    def test_small_step_semantics(self):
        p = pentagon_with(x=(0, 2))
        assert p.small_step_semantics(num(1)) == p

    def test_eval_uses_intervals(self):
        p = pentagon_with(x=(0, 2))
        assert p.eval(add("x", 1)) == Interval.of(1, 3)


class TestPentagonsSatisfies:

    def test_numeric_answer(self):
        p = pentagon_with(x=(0, 2), y=(5, 10))
        assert p.satisfies(lt("x", "y")) is Satisfiability.SATISFIED
        assert p.satisfies(gt("x", "y")) is Satisfiability.NOT_SATISFIED

    def test_symbolic_answer(self, pentagons):
        p = pentagons.assume(lt("x", "y"))
        assert p.satisfies(lt("x", "y")) is Satisfiability.SATISFIED
        assert p.satisfies(le("y", "x")) is Satisfiability.NOT_SATISFIED

    def test_unknown(self, pentagons):
        assert pentagons.satisfies(lt("x", "y")) is Satisfiability.UNKNOWN

    def test_bottom_state(self, pentagons):
        assert pentagons.bottom().satisfies(lt("x", "y")) is Satisfiability.BOTTOM


# ── Identifier management and rendering ──────────────────────────

class TestPentagonsIdentifiers:

    def test_forget_identifier(self, x, y):
        p = pentagon_with(x=(0, 2), y=(5, 10)).forget_identifier(y)
        assert not p.knows_identifier(y)
        assert p.bounds.get_state(x).is_top()
        assert p.intervals.get_state(x) == Interval.of(0, 2)

    def test_forget_identifiers_if(self, x):
        p = pentagon_with(x=(0, 2), tmp=(5, 10))
        kept = p.forget_identifiers_if(lambda i: i.name == "tmp")
        assert kept == pentagon_with(x=(0, 2))

    def test_knows_identifier(self, pentagons, x):
        assert not pentagons.knows_identifier(x)
        assert pentagons.assume(lt("x", "y")).knows_identifier(x)


class TestPentagonsRendering:

    def test_entries_pair_interval_and_bounds(self):
        p = pentagon_with(x=(0, 2), y=(5, 10))
        assert p.representation().to_json() == {
            "x": ["[0, 2]", ["y"]],
            "y": ["[5, 10]", "#TOP#"],
        }
        assert str(p) == "x: ([0, 2], {y})\ny: ([5, 10], #TOP#)"

    def test_extremal_states(self, pentagons):
        assert pentagons.representation() is TOP_REPRESENTATION
        assert pentagons.bottom().representation() is BOTTOM_REPRESENTATION


# ── Fixpoint iteration ───────────────────────────────────────────

class TestExtrapolation:

    def test_counting_loop_stabilises(self, pentagons, x):
        """x := 0; while x < 100: x := x + 1  reaches x ∈ [0, +Inf] at the head."""
        config = DomainConfig(widen_delay=2)
        head = pentagons.assign(x, num(0))
        for iteration in range(10):
            body = head.assume(lt("x", 100)).assign(x, add("x", 1))
            candidate = extrapolate(head, head.join(body), iteration, config)
            if candidate.leq(head):
                break
            head = candidate
        else:
            pytest.fail("loop head did not stabilise")
        assert head.intervals.get_state(x) == Interval.at_least(0)
        exit_state = head.assume(ge("x", 100))
        assert exit_state.intervals.get_state(x) == Interval.at_least(100)

    def test_delayed_widening_joins_first(self):
        config = DomainConfig(widen_delay=1)
        a, b = pentagon_with(x=(0, 0)), pentagon_with(x=(0, 1))
        assert extrapolate(a, b, 0, config) == a.join(b)
        assert extrapolate(a, b, 1, config) == a.widen(b)
