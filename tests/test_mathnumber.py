# tests/test_mathnumber.py
"""
Tests for extended integers: construction, ordering with NaN, saturating
arithmetic and truncating division.
"""

import pytest

from pentagon_domains.errors import ErrorCode, SemanticError
from pentagon_domains.mathnumber import (
    MINUS_INFINITY,
    NAN,
    ONE,
    PLUS_INFINITY,
    ZERO,
    MathNumber,
)


# ── Construction ─────────────────────────────────────────────────

class TestConstruction:

    def test_int_is_finite(self):
        n = MathNumber.of(42)
        assert n.is_finite()
        assert n.to_int() == 42

    def test_float_infinities(self):
        assert MathNumber.of(float("inf")) == PLUS_INFINITY
        assert MathNumber.of(float("-inf")) == MINUS_INFINITY
        assert MathNumber.of(float("nan")).is_nan()

    def test_integral_float_is_accepted(self):
        assert MathNumber.of(3.0) == MathNumber.of(3)

    def test_of_is_identity_on_math_numbers(self):
        n = MathNumber.of(7)
        assert MathNumber.of(n) is n

    def test_bool_is_rejected(self):
        with pytest.raises(SemanticError) as info:
            MathNumber.of(True)
        assert info.value.code is ErrorCode.INVALID_NUMBER

    def test_fractional_float_is_rejected(self):
        with pytest.raises(SemanticError):
            MathNumber.of(1.5)

    def test_to_int_on_infinity_raises(self):
        with pytest.raises(SemanticError):
            PLUS_INFINITY.to_int()

    def test_arbitrarily_large_values_stay_exact(self):
        big = MathNumber.of(10 ** 40)
        assert (big + 1).to_int() == 10 ** 40 + 1


# ── Ordering ─────────────────────────────────────────────────────

class TestOrdering:

    def test_total_order_on_non_nan(self):
        assert MINUS_INFINITY < MathNumber.of(-10 ** 30)
        assert MathNumber.of(-10 ** 30) < MathNumber.of(10 ** 30)
        assert MathNumber.of(10 ** 30) < PLUS_INFINITY

    def test_mixed_int_comparisons(self):
        assert MathNumber.of(3) < 4
        assert MathNumber.of(3) >= 3
        assert not MathNumber.of(3) > 3

    def test_nan_is_unordered(self):
        """Every comparison involving NaN is false, including NaN <= NaN."""
        assert not NAN < ONE
        assert not NAN > ONE
        assert not NAN <= ONE
        assert not NAN >= ONE
        assert not NAN <= NAN

    def test_min_max_propagate_nan(self):
        assert ONE.min(NAN).is_nan()
        assert NAN.max(ONE).is_nan()

    def test_min_max(self):
        assert MathNumber.of(3).min(MINUS_INFINITY) == MINUS_INFINITY
        assert MathNumber.of(3).max(5) == MathNumber.of(5)

    def test_sign_predicates(self):
        assert PLUS_INFINITY.is_positive()
        assert MINUS_INFINITY.is_negative()
        assert not ZERO.is_positive() and not ZERO.is_negative()
        assert not NAN.is_positive() and not NAN.is_negative()


# ── Arithmetic ───────────────────────────────────────────────────

class TestArithmetic:

    def test_finite_arithmetic(self):
        assert MathNumber.of(3) + 4 == MathNumber.of(7)
        assert 1 - MathNumber.of(3) == MathNumber.of(-2)
        assert MathNumber.of(-3) * 4 == MathNumber.of(-12)

    def test_addition_saturates(self):
        assert PLUS_INFINITY + 5 == PLUS_INFINITY
        assert MINUS_INFINITY - 5 == MINUS_INFINITY
        assert PLUS_INFINITY + PLUS_INFINITY == PLUS_INFINITY

    def test_opposite_infinities_give_nan(self):
        assert (PLUS_INFINITY + MINUS_INFINITY).is_nan()
        assert (PLUS_INFINITY - PLUS_INFINITY).is_nan()

    def test_zero_absorbs_infinity(self):
        assert ZERO * PLUS_INFINITY == ZERO
        assert MINUS_INFINITY * 0 == ZERO

    def test_infinity_times_sign(self):
        assert PLUS_INFINITY * -2 == MINUS_INFINITY
        assert MINUS_INFINITY * MINUS_INFINITY == PLUS_INFINITY

    def test_nan_propagates(self):
        assert (NAN + 1).is_nan()
        assert (NAN * 0).is_nan()
        assert (-NAN).is_nan()

    def test_negation(self):
        assert -PLUS_INFINITY == MINUS_INFINITY
        assert -MathNumber.of(5) == MathNumber.of(-5)


class TestDivision:

    @pytest.mark.parametrize("a, b, expected", [
        (7, 2, 3),
        (-7, 2, -3),
        (7, -2, -3),
        (-7, -2, 3),
        (1, 5, 0),
    ])
    def test_truncates_toward_zero(self, a, b, expected):
        assert MathNumber.of(a).div(b) == MathNumber.of(expected)

    def test_finite_over_infinity_is_zero(self):
        assert MathNumber.of(5).div(PLUS_INFINITY) == ZERO
        assert MathNumber.of(-5).div(MINUS_INFINITY) == ZERO

    def test_infinity_over_finite_keeps_sign_product(self):
        assert PLUS_INFINITY.div(-3) == MINUS_INFINITY
        assert MINUS_INFINITY.div(-3) == PLUS_INFINITY

    def test_undefined_quotients_are_nan(self):
        assert MathNumber.of(5).div(0).is_nan()
        assert PLUS_INFINITY.div(MINUS_INFINITY).is_nan()
        assert NAN.div(1).is_nan()


# ── Rendering ────────────────────────────────────────────────────

class TestRendering:

    def test_str(self):
        assert str(PLUS_INFINITY) == "+Inf"
        assert str(MINUS_INFINITY) == "-Inf"
        assert str(NAN) == "NaN"
        assert str(MathNumber.of(-12)) == "-12"

    def test_repr(self):
        assert repr(MathNumber.of(42)) == "MathNumber(42)"
