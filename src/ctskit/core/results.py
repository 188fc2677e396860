"""Test run results shared by the conformance runner and the device harness.

A TestRunResult maps each test identifier to its outcome. It is produced by
running a batch of checks (conformance cases, or instrumentation tests parsed
from ``am instrument`` output), reported once, then discarded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from loguru import logger


class TestStatus(str, Enum):
    """Outcome of a single test."""

    __test__ = False

    PASSED = "PASSED"
    FAILURE = "FAILURE"
    ERROR = "ERROR"
    IGNORED = "IGNORED"
    ASSUMPTION_FAILURE = "ASSUMPTION_FAILURE"
    INCOMPLETE = "INCOMPLETE"


# Statuses that make a run fail
FAILED_STATUSES = frozenset({TestStatus.FAILURE, TestStatus.ERROR, TestStatus.INCOMPLETE})


@dataclass(frozen=True)
class TestIdentifier:
    """Identifies a test by class and method name."""

    __test__ = False

    class_name: str
    test_name: str

    def __str__(self) -> str:
        return f"{self.class_name}#{self.test_name}"


@dataclass
class TestResult:
    """Status plus diagnostic text (stack trace or mismatch report)."""

    __test__ = False

    status: TestStatus
    stack_trace: str = ""


@dataclass
class TestRunResult:
    """Ordered collection of test results for one run.

    Attributes:
        run_name: Name of the run (instrumentation package or suite name).
        results: Mapping of test identifier to result, in execution order.
        run_failure: Set when the run itself failed (crash, bad output),
            independently of individual test outcomes.
        elapsed_ms: Wall-clock duration reported for the run.
    """

    __test__ = False

    run_name: str
    results: dict[TestIdentifier, TestResult] = field(default_factory=dict)
    run_failure: str | None = None
    elapsed_ms: float = 0.0

    def add(self, test: TestIdentifier, result: TestResult) -> None:
        self.results[test] = result

    @property
    def num_tests(self) -> int:
        return len(self.results)

    def num_tests_in_state(self, status: TestStatus) -> int:
        return sum(1 for r in self.results.values() if r.status == status)

    def has_failed_tests(self) -> bool:
        return any(r.status in FAILED_STATUSES for r in self.results.values())

    def is_run_failure(self) -> bool:
        return self.run_failure is not None

    def passed(self) -> bool:
        """True when nothing failed, the run completed and at least one test passed."""
        return (
            not self.has_failed_tests()
            and not self.is_run_failure()
            and self.num_tests_in_state(TestStatus.PASSED) > 0
        )

    def summary(self) -> str:
        counts = ", ".join(
            f"{status.value.lower()}={self.num_tests_in_state(status)}"
            for status in TestStatus
            if self.num_tests_in_state(status)
        )
        return f"{self.run_name}: {self.num_tests} tests ({counts or 'none'})"


def log_test_run(run_result: TestRunResult) -> None:
    """Log every test outcome; non-passing tests include their stack trace."""
    for test, result in run_result.results.items():
        logger.info(f"Test {test}: {result.status.value}")
        if result.status != TestStatus.PASSED:
            logger.warning(result.stack_trace or "(no stack trace)")
    if run_result.run_failure:
        logger.error(f"Run {run_result.run_name} failed: {run_result.run_failure}")
    logger.info(run_result.summary())
