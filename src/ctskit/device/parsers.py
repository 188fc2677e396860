"""Typed parsers for device shell command output.

`pm`, `am` and `adb install` print human-readable text, not a stable format.
Each parser here checks the exact shape it expects (header lines, tuple
syntax, token prefixes) and raises CommandParseError with the raw output when
the shape drifts, rather than returning partial data.

Formats handled:

  am start-user 10      -> "Success: user started"
  pm get-max-users      -> "Maximum supported users: 4"
  pm list users         -> "Users:\\n\\tUserInfo{0:Owner:13} running\\n..."
  pm list features      -> "feature:android.software.device_admin\\n..."
  pm remove-user 10     -> "Success: removed user"
  adb install -r x.apk  -> "Performing Streamed Install\\nSuccess"
  am instrument -w -r   -> INSTRUMENTATION_STATUS / _CODE blocks (see below)
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from ctskit.core.results import TestIdentifier, TestResult, TestRunResult, TestStatus


class CommandParseError(ValueError):
    """Raised when command output does not have the expected format."""

    def __init__(self, command: str, output: str, reason: str) -> None:
        self.command = command
        self.output = output
        self.reason = reason
        super().__init__(
            f"Failed to parse output of '{command}': {reason}\nOutput: {output!r}"
        )


@dataclass(frozen=True)
class UserInfo:
    """One row of `pm list users`."""

    id: int
    name: str
    flags: int
    running: bool = False


_USER_LINE_RE = re.compile(
    r"^\s*UserInfo\{(?P<id>-?\d+):(?P<name>.*):(?P<flags>[0-9a-fA-F]+)\}(?P<rest>.*)$"
)
_INSTALL_FAILURE_RE = re.compile(r"Failure \[(?P<reason>[^\]]*)\]")


def _lines(output: str) -> list[str]:
    return [line for line in re.split(r"\r?\n", output or "") if line.strip()]


def parse_start_user(output: str) -> bool:
    """True if `am start-user` reported success."""
    return (output or "").startswith("Success:")


def parse_remove_user(output: str) -> bool:
    """True if `pm remove-user` reported success."""
    return (output or "").strip().startswith("Success")


def parse_max_users(output: str) -> int:
    """Parse `pm get-max-users`: the last whitespace-separated token.

    Raises:
        CommandParseError: If the last token is not an integer.
    """
    tokens = (output or "").split()
    if not tokens:
        raise CommandParseError("pm get-max-users", output, "empty output")
    try:
        return int(tokens[-1])
    except ValueError:
        raise CommandParseError(
            "pm get-max-users", output, f"last token {tokens[-1]!r} is not an integer"
        ) from None


def parse_user_list(output: str) -> list[UserInfo]:
    """Parse `pm list users`.

    The first line must be exactly "Users:". Every following line must be a
    UserInfo{<id>:<name>:<hexflags>} tuple, optionally followed by "running".

    Raises:
        CommandParseError: On a missing header or a malformed user line.
    """
    lines = _lines(output)
    if not lines or lines[0].strip() != "Users:":
        raise CommandParseError("pm list users", output, "missing 'Users:' header")

    users: list[UserInfo] = []
    for line in lines[1:]:
        m = _USER_LINE_RE.match(line)
        if not m:
            raise CommandParseError("pm list users", output, f"malformed user line {line!r}")
        users.append(
            UserInfo(
                id=int(m.group("id")),
                name=m.group("name"),
                flags=int(m.group("flags"), 16),
                running="running" in m.group("rest"),
            )
        )
    return users


def parse_features(output: str) -> set[str]:
    """Parse `pm list features` into the set of feature names.

    Each whitespace-separated token must have the form feature:<name>.

    Raises:
        CommandParseError: On empty output or a token without the prefix.
    """
    tokens = (output or "").split()
    if not tokens:
        raise CommandParseError("pm list features", output, "no features listed")

    features: set[str] = set()
    for token in tokens:
        parts = token.split(":", 1)
        if len(parts) != 2 or parts[0] != "feature" or not parts[1]:
            raise CommandParseError(
                "pm list features", output, f"token {token!r} is not 'feature:<name>'"
            )
        features.add(parts[1])
    return features


def parse_install_output(output: str) -> str | None:
    """Parse `adb install` output.

    Returns:
        None on success, otherwise the failure reason.
    """
    lines = [line.strip() for line in _lines(output)]
    if "Success" in lines:
        return None
    m = _INSTALL_FAILURE_RE.search(output or "")
    if m:
        return m.group("reason")
    return (output or "").strip() or "unknown install failure"


# =============================================================================
# am instrument -r
# =============================================================================
#
# Raw mode prints one key=value bundle per status update, terminated by a
# status code line. Values (notably "stream" and "stack") can span lines:
#
#   INSTRUMENTATION_STATUS: class=com.example.FooTest
#   INSTRUMENTATION_STATUS: numtests=2
#   INSTRUMENTATION_STATUS: test=testBar
#   INSTRUMENTATION_STATUS_CODE: 1
#   INSTRUMENTATION_STATUS: class=com.example.FooTest
#   INSTRUMENTATION_STATUS: stack=junit.framework.AssertionFailedError
#       at com.example.FooTest.testBar(FooTest.java:12)
#   INSTRUMENTATION_STATUS: test=testBar
#   INSTRUMENTATION_STATUS_CODE: -2
#   INSTRUMENTATION_RESULT: stream=
#   Time: 0.52
#   INSTRUMENTATION_CODE: -1
# =============================================================================

STATUS_START = 1
STATUS_IN_PROGRESS = 2

_STATUS_CODES: dict[int, TestStatus] = {
    0: TestStatus.PASSED,
    -1: TestStatus.ERROR,
    -2: TestStatus.FAILURE,
    -3: TestStatus.IGNORED,
    -4: TestStatus.ASSUMPTION_FAILURE,
}

_TIME_RE = re.compile(r"^Time:\s*([\d.,]+)", re.MULTILINE)


class InstrumentationResultParser:
    """Parse raw `am instrument -r` output into a TestRunResult.

    Args:
        run_name: Name recorded on the run (usually the test package).
    """

    STATUS_PREFIX = "INSTRUMENTATION_STATUS: "
    STATUS_CODE_PREFIX = "INSTRUMENTATION_STATUS_CODE: "
    RESULT_PREFIX = "INSTRUMENTATION_RESULT: "
    CODE_PREFIX = "INSTRUMENTATION_CODE: "
    FAILED_PREFIX = "INSTRUMENTATION_FAILED: "

    def __init__(self, run_name: str) -> None:
        self.run_name = run_name

    def parse(self, output: str) -> TestRunResult:
        run = TestRunResult(run_name=self.run_name)
        bundle: dict[str, str] = {}
        result_bundle: dict[str, str] = {}
        target: dict[str, str] | None = None
        key: str | None = None
        value_lines: list[str] = []
        current: TestIdentifier | None = None
        expected_tests: int | None = None
        completed = False

        def flush() -> None:
            nonlocal key, value_lines
            if key is not None and target is not None:
                target[key] = "\n".join(value_lines)
            key, value_lines = None, []

        def start_value(dest: dict[str, str], payload: str) -> None:
            nonlocal target, key, value_lines
            flush()
            target = dest
            k, _, v = payload.partition("=")
            key, value_lines = k.strip(), [v]

        for line in (output or "").replace("\r\n", "\n").split("\n"):
            if line.startswith(self.STATUS_PREFIX):
                start_value(bundle, line[len(self.STATUS_PREFIX) :])
            elif line.startswith(self.RESULT_PREFIX):
                start_value(result_bundle, line[len(self.RESULT_PREFIX) :])
            elif line.startswith(self.STATUS_CODE_PREFIX):
                flush()
                code = self._parse_code(line[len(self.STATUS_CODE_PREFIX) :])
                test = None
                if "class" in bundle and "test" in bundle:
                    test = TestIdentifier(bundle["class"], bundle["test"])
                if expected_tests is None and bundle.get("numtests", "").isdigit():
                    expected_tests = int(bundle["numtests"])

                if code == STATUS_START:
                    if current is not None and current not in run.results:
                        run.add(current, TestResult(TestStatus.INCOMPLETE, "Test did not finish"))
                    current = test
                elif code in _STATUS_CODES:
                    test = test or current
                    if test is not None:
                        run.add(test, TestResult(_STATUS_CODES[code], bundle.get("stack", "")))
                    current = None
                bundle = {}
            elif line.startswith(self.CODE_PREFIX):
                flush()
                completed = True
            elif line.startswith(self.FAILED_PREFIX):
                flush()
                run.run_failure = line[len(self.FAILED_PREFIX) :].strip()
            elif key is not None:
                value_lines.append(line)
        flush()

        stream = result_bundle.get("stream", "")
        m = _TIME_RE.search(stream)
        if m:
            run.elapsed_ms = float(m.group(1).replace(",", "")) * 1000.0

        if "shortMsg" in result_bundle and run.run_failure is None:
            run.run_failure = result_bundle["shortMsg"].strip()

        if current is not None and current not in run.results:
            reason = run.run_failure or "Instrumentation run failed to complete"
            run.add(
                current,
                TestResult(
                    TestStatus.INCOMPLETE,
                    f"Test failed to run to completion. Reason: '{reason}'",
                ),
            )
            if run.run_failure is None:
                run.run_failure = reason

        if run.run_failure is None:
            if not completed:
                run.run_failure = "Instrumentation run did not complete"
            elif expected_tests is not None and run.num_tests < expected_tests:
                run.run_failure = (
                    f"Test run incomplete. Expected {expected_tests} tests, "
                    f"received {run.num_tests}"
                )
        return run

    @staticmethod
    def _parse_code(text: str) -> int | None:
        try:
            return int(text.strip())
        except ValueError:
            return None
