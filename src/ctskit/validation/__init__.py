"""Validation modules for ctskit.

This package contains utilities for verifying kernel output:
- floaty: ULP-tolerant expected-value descriptors and target precision
- tolerances: Global scaling of per-function ULP budgets
- compare: Element-wise verification with bit-exact diagnostics
"""

from ctskit.validation.compare import (
    Mismatch,
    VerificationResult,
    assert_verified,
    format_floaty,
    format_mismatch,
    format_value,
    verify_outputs,
)
from ctskit.validation.floaty import Floaty, Target, float_bits, ulp
from ctskit.validation.tolerances import ToleranceConfig

__all__ = [
    "Floaty",
    "Target",
    "ToleranceConfig",
    "Mismatch",
    "VerificationResult",
    "assert_verified",
    "float_bits",
    "format_floaty",
    "format_mismatch",
    "format_value",
    "ulp",
    "verify_outputs",
]
