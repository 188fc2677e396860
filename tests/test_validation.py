"""Tests for ctskit validation framework."""

import math

import numpy as np
import pytest

from ctskit.validation import (
    Mismatch,
    ToleranceConfig,
    VerificationResult,
    assert_verified,
    format_mismatch,
    format_value,
    verify_outputs,
)
from ctskit.validation.floaty import Target


def _sin_case(values, ulp_factor=4):
    inputs = np.asarray(values, dtype=np.float32).reshape(-1, 1)
    actual = np.sin(inputs).astype(np.float32)
    target = Target()
    expected = [target.new_floaty(math.sin(float(x)), ulp_factor) for x in inputs.reshape(-1)]
    return inputs, actual, expected


@pytest.mark.tier0
class TestToleranceConfig:
    """Tests for ToleranceConfig dataclass."""

    def test_tolerance_config_defaults(self):
        config = ToleranceConfig()
        assert config.ulp_scale == 1.0
        assert config.atol == 0.0

    def test_scaled_keeps_budget_by_default(self):
        assert ToleranceConfig().scaled(8) == 8

    def test_scaled_zero_budget_stays_zero(self):
        """A function that must be correctly rounded keeps a zero budget."""
        assert ToleranceConfig.relaxed().scaled(0) == 0

    def test_scaled_never_below_one_ulp(self):
        assert ToleranceConfig(ulp_scale=0.01).scaled(8) == 1

    def test_scaled_rounds_up(self):
        assert ToleranceConfig(ulp_scale=1.5).scaled(3) == 5

    def test_tolerance_config_strict(self):
        """Verify strict factory produces tighter budgets."""
        default = ToleranceConfig()
        strict = ToleranceConfig.strict()
        assert strict.scaled(128) < default.scaled(128)
        assert strict.scaled(4) == 1

    def test_tolerance_config_relaxed(self):
        """Verify relaxed factory produces looser budgets."""
        assert ToleranceConfig.relaxed().scaled(3) == 12


@pytest.mark.tier0
class TestFormatting:
    """Tests for bit-exact value formatting."""

    def test_format_value_float(self):
        assert format_value(1.0) == "             1 {3f800000} (0x1.0000000000000p+0)"

    def test_format_value_double(self):
        assert "{3ff0000000000000}" in format_value(1.0, "double")

    def test_format_value_non_finite(self):
        assert "{7f800000}" in format_value(math.inf)
        assert "(inf)" in format_value(math.inf)

    def test_format_mismatch_lines(self):
        mismatch = Mismatch(
            index=(3, 1),
            input=0.5,
            expected=Target().new_floaty(0.25, 1),
            actual=2.0,
        )
        text = format_mismatch(mismatch)
        lines = text.splitlines()
        assert lines[0].startswith("Input inV at (3, 1):")
        assert lines[1].startswith("Expected output out:")
        assert lines[2].startswith("Actual   output out:")
        assert lines[2].endswith(" FAIL")
        assert "{40000000}" in lines[2]


@pytest.mark.tier0
class TestVerifyOutputs:
    """Tests for verify_outputs function."""

    def test_matching_outputs_pass(self):
        inputs, actual, expected = _sin_case([0.0, 0.5, 1.0, -2.0])
        result = verify_outputs("sin_float", inputs, actual, expected)

        assert isinstance(result, VerificationResult)
        assert result.passed
        assert result.n_checked == 4
        assert result.mismatches == []
        assert "passed" in result.message

    def test_single_mismatch_reported(self):
        inputs, actual, expected = _sin_case([0.0, 0.5, 1.0])
        actual[1, 0] = 2.0
        result = verify_outputs("sin_float", inputs, actual, expected)

        assert not result.passed
        assert len(result.mismatches) == 1
        assert result.mismatches[0].index == (1, 0)
        assert result.mismatches[0].actual == 2.0
        assert "Incorrect output for sin_float: 1/3" in result.message
        assert "FAIL" in result.message

    def test_max_reported_limits_message(self):
        inputs, actual, expected = _sin_case([0.1, 0.2, 0.3, 0.4])
        actual[:] = 5.0
        result = verify_outputs("sin_float", inputs, actual, expected, max_reported=1)

        assert len(result.mismatches) == 4
        assert result.message.count(" FAIL") == 1
        assert "3 more mismatches not shown" in result.message

    def test_extra_allowed_error(self):
        inputs, actual, expected = _sin_case([0.5], ulp_factor=0)
        actual[0, 0] += 1e-3
        assert not verify_outputs("sin", inputs, actual, expected).passed
        assert verify_outputs("sin", inputs, actual, expected, extra_allowed_error=1e-2).passed

    def test_shape_mismatch_fails(self):
        inputs, actual, expected = _sin_case([0.5, 1.0])
        result = verify_outputs("sin", inputs, actual.reshape(1, 2), expected)
        assert not result.passed
        assert "shape mismatch" in result.message

    def test_descriptor_count_mismatch_fails(self):
        inputs, actual, expected = _sin_case([0.5, 1.0])
        result = verify_outputs("sin", inputs, actual, expected[:1])
        assert not result.passed
        assert "expected 2 descriptors, got 1" in result.message

    def test_nan_output_rejected_for_finite_reference(self):
        inputs, actual, expected = _sin_case([0.5])
        actual[0, 0] = np.nan
        assert not verify_outputs("sin", inputs, actual, expected).passed


@pytest.mark.tier0
class TestAssertVerified:
    def test_passes_silently(self):
        inputs, actual, expected = _sin_case([0.5])
        assert_verified(verify_outputs("sin", inputs, actual, expected))

    def test_raises_with_message(self):
        inputs, actual, expected = _sin_case([0.5])
        actual[0, 0] = 3.0
        with pytest.raises(AssertionError, match="Incorrect output for sin"):
            assert_verified(verify_outputs("sin", inputs, actual, expected))
