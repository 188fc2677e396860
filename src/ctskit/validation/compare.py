"""Element-wise verification of kernel outputs against Floaty descriptors.

This module provides structured verification that returns a result object
rather than raising, so batch runners can record every case. Use
``assert_verified`` where a hard assertion is wanted.

Every mismatch is reported with the input, the expected descriptor and the
actual value, each in decimal, raw bit-pattern and hex-float form, so a
failure can be reproduced bit-exactly.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

import numpy as np

from ctskit.validation.floaty import Floaty, Precision, float_bits


@dataclass
class Mismatch:
    """A single element that fell outside its acceptance interval.

    Attributes:
        index: (row, lane) position in the allocation.
        input: Input value fed to the kernel.
        expected: Descriptor the output was checked against.
        actual: Value the kernel produced.
    """

    index: tuple[int, ...]
    input: float
    expected: Floaty
    actual: float


@dataclass
class VerificationResult:
    """Result of verifying one kernel output allocation.

    Attributes:
        name: Check name, e.g. "tan_float2" or "tan_float2_relaxed".
        passed: Whether every element was acceptable.
        n_checked: Number of elements checked.
        mismatches: Failing elements (all of them, not only the reported ones).
        message: Human-readable diagnostic.

    Example:
        >>> result = verify_outputs("tan_float", inputs, actual, expected)
        >>> if not result.passed:
        ...     print(result.message)
    """

    name: str
    passed: bool
    n_checked: int
    mismatches: list[Mismatch] = field(default_factory=list)
    message: str = ""


def format_value(value: float, precision: Precision = "float") -> str:
    """Format a value as decimal, raw bits and hex float.

    Example:
        >>> format_value(1.0)
        '             1 {3f800000} (0x1.0000000000000p+0)'
    """
    width = 8 if precision == "float" else 16
    bits = float_bits(value, precision)
    v = float(value)
    hex_form = v.hex() if np.isfinite(v) else repr(v)
    return f"{v:14.8g} {{{bits:0{width}x}}} ({hex_form})"


def format_floaty(expected: Floaty) -> str:
    """Format a descriptor with both bounds in bit-exact form."""
    return (
        f"{expected} [lo {format_value(expected.lo, expected.precision)}, "
        f"hi {format_value(expected.hi, expected.precision)}]"
    )


def format_mismatch(mismatch: Mismatch, input_precision: Precision = "float") -> str:
    """Render one mismatch as the three-line Input/Expected/Actual block."""
    precision = mismatch.expected.precision
    return (
        f"Input inV at {mismatch.index}: "
        f"{format_value(mismatch.input, input_precision)}\n"
        f"Expected output out: {format_floaty(mismatch.expected)}\n"
        f"Actual   output out: {format_value(mismatch.actual, precision)} FAIL\n"
    )


def verify_outputs(
    name: str,
    inputs: np.ndarray,
    actual: np.ndarray,
    expected: Sequence[Floaty],
    extra_allowed_error: float = 0.0,
    max_reported: int = 10,
) -> VerificationResult:
    """Check every kernel output element against its expected descriptor.

    Args:
        name: Check name used in the diagnostic header.
        inputs: Kernel input allocation, shape (input_size, vector_size).
        actual: Kernel output allocation, same shape as inputs.
        expected: One descriptor per element, in row-major order.
        extra_allowed_error: Absolute slack passed to Floaty.could_be.
        max_reported: Maximum number of mismatches rendered in the message.
            All mismatches are still collected.

    Returns:
        VerificationResult with pass/fail status and diagnostic message.
    """
    inputs = np.asarray(inputs)
    actual = np.asarray(actual)

    if inputs.shape != actual.shape:
        return VerificationResult(
            name=name,
            passed=False,
            n_checked=0,
            message=(
                f"{name} shape mismatch: "
                f"inputs {inputs.shape} vs outputs {actual.shape}"
            ),
        )
    if len(expected) != actual.size:
        return VerificationResult(
            name=name,
            passed=False,
            n_checked=0,
            message=(
                f"{name} expected {actual.size} descriptors, got {len(expected)}"
            ),
        )

    mismatches: list[Mismatch] = []
    flat_in = inputs.reshape(-1)
    flat_out = actual.reshape(-1)
    for i, descriptor in enumerate(expected):
        out = float(flat_out[i])
        if not descriptor.could_be(out, extra_allowed_error):
            mismatches.append(
                Mismatch(
                    index=tuple(int(k) for k in np.unravel_index(i, actual.shape)),
                    input=float(flat_in[i]),
                    expected=descriptor,
                    actual=out,
                )
            )

    n_checked = len(expected)
    if not mismatches:
        return VerificationResult(
            name=name,
            passed=True,
            n_checked=n_checked,
            message=f"{name} passed ({n_checked} values checked)",
        )

    lines = [
        f"Incorrect output for {name}: "
        f"{len(mismatches)}/{n_checked} values out of tolerance\n"
    ]
    lines.extend(format_mismatch(m) for m in mismatches[:max_reported])
    if len(mismatches) > max_reported:
        lines.append(f"... {len(mismatches) - max_reported} more mismatches not shown\n")

    return VerificationResult(
        name=name,
        passed=False,
        n_checked=n_checked,
        mismatches=mismatches,
        message="".join(lines),
    )


def assert_verified(result: VerificationResult) -> None:
    """Raise AssertionError carrying the diagnostic if verification failed."""
    if not result.passed:
        raise AssertionError(result.message)
