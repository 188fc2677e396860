"""Pytest fixtures for ctskit test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

# =============================================================================
# Test Tier System
# =============================================================================
#
# tier0 - Fast Unit Tests (<5s each)
#   - Pure computation tests, parsers against captured command output
#   - Device access replaced by FakeDevice / patched subprocess.run
#   - Run: pytest -m tier0
#
# tier1 - Backend Parity Tests (<60s each)
#   - Full conformance table on numpy, relaxed table on jax
#   - Run: pytest -m tier1
#
# tier2 - Scale Tests
#   - Large allocations and extreme-value sweeps
#   - Run: pytest -m tier2
#
# Quick reference:
#   pytest -m tier0             # Fast tests only
#   pytest -m "tier0 or tier1"  # Fast + backend parity tests
#   pytest -m "not tier2"       # Exclude slow tests
#   pytest                      # All tests
# =============================================================================


class FakeDevice:
    """Scripted DeviceInterface: maps shell commands to canned output.

    Args:
        responses: Mapping of exact shell command to output.
        api_level: Value returned by get_api_level().
        install_result: Value returned by install_package() (None = success).
    """

    def __init__(
        self,
        responses: dict[str, str] | None = None,
        api_level: int = 30,
        install_result: str | None = None,
    ) -> None:
        self.responses = dict(responses or {})
        self.api_level = api_level
        self.install_result = install_result
        self.commands: list[str] = []
        self.installed: list[Path] = []

    def execute_shell_command(self, command: str) -> str:
        self.commands.append(command)
        if command.startswith("am instrument") and "am instrument" in self.responses:
            return self.responses["am instrument"]
        return self.responses.get(command, "")

    def install_package(self, path: Path, reinstall: bool = True) -> str | None:
        self.installed.append(Path(path))
        return self.install_result

    def get_api_level(self) -> int:
        return self.api_level


FEATURES_OUTPUT = (
    "feature:android.hardware.camera\n"
    "feature:android.software.device_admin\n"
    "feature:android.software.managed_users\n"
)

USERS_OUTPUT = (
    "Users:\n"
    "\tUserInfo{0:Owner:13} running\n"
    "\tUserInfo{10:Work profile:30}\n"
)


@pytest.fixture
def fake_device() -> FakeDevice:
    """Device that supports managed users, with an owner and a work profile."""
    return FakeDevice(
        responses={
            "pm list features": FEATURES_OUTPUT,
            "pm list users": USERS_OUTPUT,
            "pm get-max-users": "Maximum supported users: 4\n",
            "am start-user 10": "Success: user started\n",
            "pm remove-user 10": "Success: removed user\n",
        }
    )


@pytest.fixture
def output_dir(tmp_path: Path) -> Path:
    """Create temporary output directory for test results.

    Args:
        tmp_path: pytest's temporary path fixture

    Returns:
        Path to output directory
    """
    out = tmp_path / "output"
    out.mkdir()
    return out


@pytest.fixture
def device_factory():
    """Build a FakeDevice with custom responses."""
    return FakeDevice
