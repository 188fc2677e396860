"""Core modules for ctskit.

This package contains configuration and run infrastructure:
- config: Configuration dataclasses
- backend: Compute backend detection
- results: Test run results shared by all runners
- progress: Progress display for long runs
"""

from ctskit.core.backend import get_backend_info, get_compute_backend, validate_backend
from ctskit.core.config import ConformanceConfig, HarnessConfig, OutputConfig
from ctskit.core.results import (
    TestIdentifier,
    TestResult,
    TestRunResult,
    TestStatus,
    log_test_run,
)

__all__ = [
    "ConformanceConfig",
    "HarnessConfig",
    "OutputConfig",
    "TestIdentifier",
    "TestResult",
    "TestRunResult",
    "TestStatus",
    "get_backend_info",
    "get_compute_backend",
    "log_test_run",
    "validate_backend",
]
