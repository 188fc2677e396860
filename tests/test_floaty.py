"""Tests for ULP-tolerant Floaty descriptors."""

from __future__ import annotations

import math

import numpy as np
import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from ctskit.validation.floaty import (
    Floaty,
    Target,
    float_bits,
    is_denormal,
    round_to_precision,
    ulp,
)

FLOAT_TINY = float(np.finfo(np.float32).tiny)
FLOAT_SUBNORMAL = float(np.finfo(np.float32).smallest_subnormal)
FLOAT_MAX = float(np.finfo(np.float32).max)


@pytest.mark.tier0
class TestUlp:
    """Tests for ulp() and precision helpers."""

    def test_ulp_of_one(self):
        """ULP at 1.0 is 2^-23 for binary32 and 2^-52 for binary64."""
        assert ulp(1.0) == 2.0**-23
        assert ulp(1.0, "double") == 2.0**-52

    def test_ulp_is_symmetric(self):
        assert ulp(-3.5) == ulp(3.5)

    def test_ulp_denormal_range(self):
        """Denormal ULP is the smallest subnormal, or tiny when relaxed."""
        assert ulp(0.0) == FLOAT_SUBNORMAL
        assert ulp(0.0, relaxed=True) == FLOAT_TINY

    def test_ulp_non_finite(self):
        assert math.isinf(ulp(math.inf))
        assert math.isinf(ulp(math.nan))

    def test_ulp_beyond_float_range(self):
        """Values past FLT_MAX use the spacing at FLT_MAX."""
        assert ulp(1e39) == ulp(FLOAT_MAX)

    def test_round_to_precision(self):
        assert round_to_precision(0.1) == float(np.float32(0.1))
        assert round_to_precision(0.1, "double") == 0.1
        assert round_to_precision(1e39) == math.inf

    def test_is_denormal(self):
        assert is_denormal(FLOAT_TINY / 2)
        assert is_denormal(-FLOAT_SUBNORMAL)
        assert not is_denormal(0.0)
        assert not is_denormal(FLOAT_TINY)

    def test_float_bits(self):
        assert float_bits(1.0) == 0x3F800000
        assert float_bits(-0.0) == 0x80000000
        assert float_bits(1.0, "double") == 0x3FF0000000000000

    def test_unknown_precision_rejected(self):
        with pytest.raises(ValueError, match="Unknown precision"):
            Target(precision="half")


@pytest.mark.tier0
class TestCouldBe:
    """Tests for Floaty.could_be acceptance rules."""

    def test_exact_value_accepted(self):
        expected = Target().new_floaty(0.5, ulp_factor=0)
        assert expected.could_be(0.5)

    def test_within_ulp_budget(self):
        """A result 2 ULPs away is accepted at budget 4 and rejected at budget 1."""
        actual = 1.0 + 2 * ulp(1.0)
        assert Target().new_floaty(1.0, ulp_factor=4).could_be(actual)
        assert not Target().new_floaty(1.0, ulp_factor=1).could_be(actual)

    def test_rounding_of_reference_accepted(self):
        """Both the float64 reference and its float32 rounding are in range."""
        expected = Target().new_floaty(0.1, ulp_factor=0)
        assert expected.could_be(float(np.float32(0.1)))
        assert expected.lo <= 0.1 <= expected.hi

    def test_extra_allowed_error(self):
        expected = Target().new_floaty(1.0, ulp_factor=0)
        assert not expected.could_be(1.001)
        assert expected.could_be(1.001, extra_allowed_error=0.01)

    def test_nan_only_matches_nan(self):
        assert Target().new_floaty(math.nan).could_be(math.nan)
        assert not Target().new_floaty(1.0, ulp_factor=1000).could_be(math.nan)
        assert not Target().new_floaty(math.nan).could_be(1.0)

    def test_infinity_must_equal_bound(self):
        assert Target().new_floaty(math.inf).could_be(math.inf)
        assert not Target().new_floaty(math.inf).could_be(-math.inf)
        assert not Target().new_floaty(math.inf).could_be(FLOAT_MAX)
        assert not Target().new_floaty(FLOAT_MAX, ulp_factor=4).could_be(math.inf)

    def test_overflowing_reference(self):
        """A reference beyond FLT_MAX accepts itself, inf and the top of the range."""
        expected = Target().new_floaty(1e39, ulp_factor=8)
        assert expected.nominal == 1e39
        assert expected.could_be(1e39)
        assert expected.could_be(math.inf)
        assert expected.could_be(FLOAT_MAX)
        assert not expected.could_be(-math.inf)
        assert not expected.could_be(1e30)

    def test_negative_overflowing_reference(self):
        expected = Target().new_floaty(-1e39)
        assert expected.could_be(-1e39)
        assert expected.could_be(-math.inf)
        assert expected.could_be(-FLOAT_MAX)
        assert not expected.could_be(math.inf)
        assert not expected.could_be(-1e30)

    def test_denormal_flushed_when_relaxed(self):
        """Relaxed targets accept 0 for a denormal reference."""
        denormal = FLOAT_TINY / 4
        assert Target(relaxed=True).new_floaty(denormal).could_be(0.0)
        assert not Target(relaxed=False).new_floaty(denormal).could_be(0.0)

    def test_denormal_actual_compared_as_zero_when_relaxed(self):
        expected = Target(relaxed=True).new_floaty(0.0)
        assert expected.could_be(FLOAT_SUBNORMAL)
        assert not Target(relaxed=False).new_floaty(0.0).could_be(FLOAT_SUBNORMAL)

    def test_repr_and_str(self):
        expected = Target().new_floaty(2.0, ulp_factor=3)
        assert "ulp_factor=3" in repr(expected)
        assert "±3 ulp" in str(expected)


@pytest.mark.tier0
class TestFloatyRange:
    """Tests for Target.new_floaty_range."""

    def test_range_accepts_interior(self):
        expected = Target().new_floaty_range(1.0, 2.0)
        assert expected.nominal == 1.5
        assert expected.could_be(1.25)
        assert not expected.could_be(2.5)

    def test_range_bounds_are_ordered(self):
        expected = Target().new_floaty_range(2.0, 1.0)
        assert expected.lo <= 1.0 and expected.hi >= 2.0

    def test_range_with_infinite_bound(self):
        expected = Target().new_floaty_range(1.0, math.inf)
        assert expected.nominal == math.inf
        assert expected.could_be(math.inf)

    def test_range_with_nan_bound(self):
        expected = Target().new_floaty_range(math.nan, 1.0)
        assert expected.could_be(math.nan)
        assert not expected.could_be(1.0)


# -----------------------------------------------------------------------------
# Properties
# -----------------------------------------------------------------------------

finite_doubles = st.floats(allow_nan=False, allow_infinity=False, width=64)


@given(
    value=finite_doubles,
    ulp_factor=st.integers(min_value=0, max_value=256),
    relaxed=st.booleans(),
)
@settings(max_examples=300, deadline=None, suppress_health_check=[HealthCheck.too_slow])
def test_descriptor_accepts_its_nominal(value, ulp_factor, relaxed):
    """A descriptor accepts its own nominal value and that value rounded to float."""
    target = Target(relaxed=relaxed)
    expected = target.new_floaty(value, ulp_factor)
    assert expected.could_be(value)
    assert expected.could_be(expected.nominal)
    assert expected.could_be(target.round(value))


@given(
    value=st.floats(min_value=-1e30, max_value=1e30, allow_nan=False),
    small=st.integers(min_value=0, max_value=16),
    extra=st.integers(min_value=0, max_value=16),
)
@settings(max_examples=200, deadline=None)
def test_larger_budget_accepts_superset(value, small, extra):
    """Widening the ULP budget never shrinks the acceptance interval."""
    target = Target()
    narrow = target.new_floaty(value, small)
    wide = target.new_floaty(value, small + extra)
    assert wide.lo <= narrow.lo
    assert wide.hi >= narrow.hi


def test_floaty_constructor_keeps_fields():
    f = Floaty(1.0, 0.5, 1.5, 2, "float", False)
    assert (f.nominal, f.lo, f.hi, f.ulp_factor) == (1.0, 0.5, 1.5, 2)
