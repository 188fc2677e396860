"""Configuration dataclasses for ctskit.

This module contains dataclasses that configure output locations, the adb
device harness and the numeric conformance suite. Harness settings can be
overridden from the environment (CTSKIT_ADB, ANDROID_SERIAL,
CTSKIT_ADB_TIMEOUT).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger

from ctskit.validation.tolerances import ToleranceConfig

DEFAULT_RUNNER = "android.test.InstrumentationTestRunner"

REQUIRED_DEVICE_FEATURES = (
    "android.software.managed_users",
    "android.software.device_admin",
)


@dataclass
class OutputConfig:
    """Configuration for output files and directories.

    Attributes:
        outdir: Output directory for run logs. Created if it doesn't exist.
        prefix: Prefix for output filenames (e.g., "result" produces "result.log.txt").
        verbose: Enable verbose/debug output to console.
    """

    outdir: Path = field(default_factory=lambda: Path("output"))
    prefix: str = "result"
    verbose: bool = False

    @property
    def log_path(self) -> Path:
        """Path to the run summary log file.

        Returns:
            Path to {outdir}/{prefix}.log.txt
        """
        return self.outdir / f"{self.prefix}.log.txt"

    def ensure_outdir(self) -> None:
        """Create output directory if it doesn't exist."""
        self.outdir.mkdir(parents=True, exist_ok=True)


@dataclass
class HarnessConfig:
    """Configuration for the adb device harness.

    Attributes:
        adb_path: adb executable to invoke.
        serial: Device serial passed as ``adb -s``. None lets adb pick the
            only attached device.
        timeout_s: Per-command timeout in seconds.
        runner: Instrumentation runner class used by ``am instrument``.
        required_features: Features the device must advertise for the
            harness to consider it supported.
        min_api_level: Minimum API level for a supported device (21 = L).
    """

    adb_path: str = "adb"
    serial: str | None = None
    timeout_s: float = 60.0
    runner: str = DEFAULT_RUNNER
    required_features: tuple[str, ...] = REQUIRED_DEVICE_FEATURES
    min_api_level: int = 21

    @classmethod
    def from_env(cls, **overrides) -> "HarnessConfig":
        """Build a config from environment variables.

        Priority: explicit keyword overrides, then CTSKIT_ADB /
        ANDROID_SERIAL / CTSKIT_ADB_TIMEOUT, then dataclass defaults.
        Invalid timeout values are logged and ignored.

        Returns:
            HarnessConfig with environment values applied.
        """
        values: dict = {}

        adb_path = os.environ.get("CTSKIT_ADB", "").strip()
        if adb_path:
            values["adb_path"] = adb_path

        serial = os.environ.get("ANDROID_SERIAL", "").strip()
        if serial:
            values["serial"] = serial

        timeout = os.environ.get("CTSKIT_ADB_TIMEOUT")
        if timeout is not None:
            try:
                timeout_s = float(timeout)
            except ValueError:
                logger.warning(
                    f"CTSKIT_ADB_TIMEOUT={timeout!r} is not a valid number, "
                    "falling back to default timeout"
                )
            else:
                if timeout_s > 0:
                    values["timeout_s"] = timeout_s
                else:
                    logger.warning(
                        f"CTSKIT_ADB_TIMEOUT={timeout!r} must be positive, "
                        "falling back to default timeout"
                    )

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclass
class ConformanceConfig:
    """Configuration for the numeric conformance suite.

    Attributes:
        input_size: Number of vector elements generated per case.
        include_extremes: Seed the first rows of each allocation with boundary
            values (signed zeros, min normal, max, domain ends).
        tolerances: ULP budgets applied on top of the per-function budgets.
    """

    input_size: int = 512
    include_extremes: bool = False
    tolerances: ToleranceConfig = field(default_factory=ToleranceConfig)
