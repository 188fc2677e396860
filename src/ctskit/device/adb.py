"""adb transport for the device harness.

AdbDevice runs adb as a subprocess and returns captured text. The harness only
depends on the DeviceInterface protocol, so tests substitute a scripted fake.
"""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from loguru import logger

from ctskit.core.config import HarnessConfig
from ctskit.device.parsers import CommandParseError, parse_install_output


class DeviceNotAvailableError(RuntimeError):
    """Raised when the device cannot be reached (no adb, offline, timeout)."""


class DeviceCommandError(RuntimeError):
    """Raised when a device command runs but reports failure."""


# adb prints these on stderr when the transport itself is broken
_TRANSPORT_ERRORS = (
    "no devices/emulators found",
    "device offline",
    "device unauthorized",
    "error: closed",
)


@dataclass(frozen=True)
class AdbResult:
    args: list[str]
    stdout: str
    stderr: str
    returncode: int

    def ok(self) -> bool:
        return self.returncode == 0


class DeviceInterface(Protocol):
    """What the harness needs from a device."""

    def execute_shell_command(self, command: str) -> str: ...

    def install_package(self, path: Path, reinstall: bool = True) -> str | None: ...

    def get_api_level(self) -> int: ...


class AdbDevice:
    """A device reached through the adb command line.

    Args:
        adb_path: adb executable.
        serial: Device serial (``adb -s``). None targets the only device.
        timeout_s: Default per-command timeout in seconds.
    """

    def __init__(
        self,
        adb_path: str = "adb",
        serial: str | None = None,
        timeout_s: float = 60.0,
    ) -> None:
        self.adb_path = adb_path
        self.serial = serial
        self.timeout_s = float(timeout_s)

    @classmethod
    def from_config(cls, config: HarnessConfig) -> "AdbDevice":
        return cls(adb_path=config.adb_path, serial=config.serial, timeout_s=config.timeout_s)

    def __repr__(self) -> str:
        return f"AdbDevice(serial={self.serial!r}, adb_path={self.adb_path!r})"

    def _base_cmd(self) -> list[str]:
        cmd = [self.adb_path]
        if self.serial:
            cmd += ["-s", self.serial]
        return cmd

    def adb(self, *args: str, timeout_s: float | None = None) -> AdbResult:
        """Run an adb command and return stdout/stderr/returncode.

        Raises:
            DeviceNotAvailableError: If adb is missing, the command times out,
                or adb reports that the device is not reachable.
        """
        cmd = self._base_cmd() + list(args)
        logger.debug(f"adb: {' '.join(cmd)}")
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout_s if timeout_s is None else float(timeout_s),
            )
        except FileNotFoundError as e:
            raise DeviceNotAvailableError(f"adb executable not found: {self.adb_path}") from e
        except subprocess.TimeoutExpired as e:
            raise DeviceNotAvailableError(
                f"adb command timed out after {e.timeout}s: {' '.join(cmd)}"
            ) from e

        result = AdbResult(
            args=cmd,
            stdout=proc.stdout or "",
            stderr=proc.stderr or "",
            returncode=proc.returncode,
        )
        stderr = result.stderr.lower()
        device_missing = "error: device" in stderr and "not found" in stderr
        if device_missing or any(marker in stderr for marker in _TRANSPORT_ERRORS):
            raise DeviceNotAvailableError(
                f"Device {self.serial or '(default)'} not available: {result.stderr.strip()}"
            )
        return result

    def execute_shell_command(self, command: str) -> str:
        """Run a shell command on the device and return its stdout."""
        return self.adb("shell", command).stdout

    def install_package(self, path: Path, reinstall: bool = True) -> str | None:
        """Install an APK.

        Returns:
            None on success, otherwise the failure reason reported by adb.

        Raises:
            FileNotFoundError: If the APK does not exist locally.
        """
        path = Path(path)
        if not path.is_file():
            raise FileNotFoundError(f"APK not found: {path}")
        args = ["install"]
        if reinstall:
            args.append("-r")
        args.append(str(path))
        result = self.adb(*args)
        return parse_install_output(result.stdout + "\n" + result.stderr)

    def get_api_level(self) -> int:
        """Read ro.build.version.sdk.

        Raises:
            CommandParseError: If the property is not an integer.
        """
        output = self.execute_shell_command("getprop ro.build.version.sdk")
        try:
            return int(output.strip())
        except ValueError:
            raise CommandParseError(
                "getprop ro.build.version.sdk", output, "API level is not an integer"
            ) from None
