"""Parameterized conformance cases and their runner.

A case is one (function, vector size, seed, precision mode) combination. The
case table is generated from the function table instead of being spelled out
per combination, and every case runs through the same path: draw inputs,
evaluate the reference into Floaty descriptors, run the kernel, verify.
"""

from __future__ import annotations

import time
import zlib
from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from loguru import logger

from ctskit.conformance.allocation import create_random_allocation
from ctskit.conformance.functions import FUNCTIONS, get_function, reference_values
from ctskit.conformance.kernels import run_kernel
from ctskit.core.backend import get_compute_backend, validate_backend
from ctskit.core.config import ConformanceConfig
from ctskit.core.progress import CaseProgress
from ctskit.core.results import (
    FAILED_STATUSES,
    TestIdentifier,
    TestResult,
    TestRunResult,
    TestStatus,
)
from ctskit.validation.compare import verify_outputs
from ctskit.validation.floaty import Floaty, Target

VECTOR_SIZES: tuple[int, ...] = (1, 2, 3, 4)


def case_seed(function: str, vector_size: int) -> int:
    """Stable per-combination seed (independent of PYTHONHASHSEED)."""
    return zlib.crc32(f"{function}:float{vector_size}".encode())


@dataclass(frozen=True)
class ConformanceCase:
    """One function/vector-size/seed/precision combination."""

    function: str
    vector_size: int
    seed: int
    relaxed: bool = False

    @property
    def name(self) -> str:
        width = str(self.vector_size) if self.vector_size > 1 else ""
        suffix = "_relaxed" if self.relaxed else ""
        return f"{self.function}_float{width}{suffix}"


def build_case_table(
    functions: Iterable[str] | None = None,
    vector_sizes: Sequence[int] = VECTOR_SIZES,
    relaxed_modes: Sequence[bool] = (False, True),
) -> list[ConformanceCase]:
    """Expand functions x vector sizes x precision modes into cases.

    Raises:
        KeyError: If a function is not in the table.
    """
    names = list(functions) if functions is not None else list(FUNCTIONS)
    for name in names:
        get_function(name)

    return [
        ConformanceCase(name, size, case_seed(name, size), relaxed)
        for name in names
        for size in vector_sizes
        for relaxed in relaxed_modes
    ]


def expected_descriptors(case: ConformanceCase, inputs, ulp_factor: int) -> list[Floaty]:
    """Build one Floaty per input element from the float64 reference."""
    spec = get_function(case.function)
    target = Target(precision="float", relaxed=case.relaxed)
    reference = reference_values(spec, inputs).reshape(-1)
    return [target.new_floaty(float(v), ulp_factor) for v in reference]


def run_case(
    case: ConformanceCase,
    backend: str = "numpy",
    config: ConformanceConfig | None = None,
) -> TestResult:
    """Run and verify a single case.

    Returns:
        PASSED, FAILURE with the mismatch report, or ERROR if the kernel
        could not be invoked.
    """
    if config is None:
        config = ConformanceConfig()

    spec = get_function(case.function)
    inputs = create_random_allocation(
        case.vector_size,
        case.seed,
        input_size=config.input_size,
        domain=spec.domain,
        include_extremes=config.include_extremes,
        log_uniform=spec.log_uniform,
    )
    ulp_factor = config.tolerances.scaled(spec.relaxed_ulp if case.relaxed else spec.ulp)
    expected = expected_descriptors(case, inputs, ulp_factor)

    try:
        actual = run_kernel(spec.op, inputs, backend)
    except Exception as e:
        message = f"Can't invoke kernel {case.name} on {backend}: {type(e).__name__}: {e}"
        logger.error(message)
        return TestResult(TestStatus.ERROR, message)

    result = verify_outputs(
        case.name,
        inputs,
        actual,
        expected,
        extra_allowed_error=config.tolerances.atol,
    )
    if result.passed:
        logger.debug(result.message)
        return TestResult(TestStatus.PASSED)
    return TestResult(TestStatus.FAILURE, result.message)


def run_cases(
    cases: Sequence[ConformanceCase],
    backend: str | None = None,
    config: ConformanceConfig | None = None,
    show_progress: bool = False,
) -> TestRunResult:
    """Run a batch of cases on one backend.

    Args:
        cases: Cases to run, e.g. from build_case_table().
        backend: "numpy" or "jax". None auto-selects via get_compute_backend().
        config: Allocation size and tolerance settings.
        show_progress: Display a progress bar.

    Returns:
        TestRunResult keyed by ctskit.conformance.<function>#<case name>.
    """
    backend = validate_backend(backend) if backend else get_compute_backend()
    if config is None:
        config = ConformanceConfig()

    run = TestRunResult(run_name=f"conformance[{backend}]")
    logger.info(
        f"Running {len(cases)} conformance cases on {backend} "
        f"(input_size={config.input_size})"
    )

    start = time.perf_counter()
    with CaseProgress(len(cases), "Conformance", enabled=show_progress) as progress:
        for case in cases:
            result = run_case(case, backend, config)
            run.add(TestIdentifier(f"ctskit.conformance.{case.function}", case.name), result)
            progress.advance(failed=result.status in FAILED_STATUSES)
    run.elapsed_ms = (time.perf_counter() - start) * 1000.0

    return run
