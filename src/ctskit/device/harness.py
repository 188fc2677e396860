"""Device harness for multi-user device policy tests.

Wraps a DeviceInterface with the user-management and instrumentation commands
a device policy test needs. Every shell command and its output is logged, and
command output goes through the typed parsers in ctskit.device.parsers so a
format change on the device surfaces as CommandParseError.

Example:
    >>> from ctskit.device import AdbDevice, DeviceHarness
    >>> harness = DeviceHarness(AdbDevice(serial="emulator-5554"))
    >>> if harness.setup():
    ...     harness.install_app("CtsProfileOwnerApp.apk")
    ...     harness.run_device_tests("com.android.cts.profileowner")
"""

from __future__ import annotations

import shlex
from collections.abc import Iterable
from pathlib import Path

from loguru import logger

from ctskit.core.config import HarnessConfig
from ctskit.core.results import TestRunResult, log_test_run
from ctskit.device.adb import DeviceCommandError, DeviceInterface
from ctskit.device.parsers import (
    InstrumentationResultParser,
    UserInfo,
    parse_features,
    parse_max_users,
    parse_remove_user,
    parse_start_user,
    parse_user_list,
)


class DeviceHarness:
    """User management and instrumentation runs on one device.

    Args:
        device: Device to drive (AdbDevice or a test double).
        config: Runner class, required features and minimum API level.

    Attributes:
        has_feature: Set by setup(); False means the device does not support
            the tests and callers should skip them.
        last_run_result: Parsed result of the most recent instrumentation run.
    """

    def __init__(self, device: DeviceInterface, config: HarnessConfig | None = None) -> None:
        self.device = device
        self.config = config or HarnessConfig()
        self.has_feature = False
        self.last_run_result: TestRunResult | None = None

    def setup(self) -> bool:
        """Check API level and required features.

        Returns:
            True if the device supports the tests.
        """
        api_level = self.device.get_api_level()
        if api_level < self.config.min_api_level:
            logger.info(
                f"Device API level {api_level} is below {self.config.min_api_level}. "
                "Tests won't run."
            )
            self.has_feature = False
        else:
            self.has_feature = self.has_device_features(self.config.required_features)
        return self.has_feature

    def _shell(self, command: str) -> str:
        output = self.device.execute_shell_command(command)
        logger.info(f"Output for command {command}: {output.strip()}")
        return output

    def install_app(self, path: str | Path) -> None:
        """Install (or reinstall) an APK.

        Raises:
            DeviceCommandError: If the device rejects the package.
        """
        path = Path(path)
        logger.info(f"Installing {path.name}")
        reason = self.device.install_package(path, True)
        if reason is not None:
            raise DeviceCommandError(f"Failed to install {path.name}, Reason: {reason}")

    def start_user(self, user_id: int) -> None:
        """Start a user in the background.

        Raises:
            DeviceCommandError: If the output does not start with "Success:".
        """
        command = f"am start-user {user_id}"
        output = self._shell(command)
        if not parse_start_user(output):
            raise DeviceCommandError(f"Couldn't start user {user_id}: {output.strip()}")

    def get_max_number_of_users_supported(self) -> int:
        return parse_max_users(self._shell("pm get-max-users"))

    def list_user_infos(self) -> list[UserInfo]:
        return parse_user_list(self._shell("pm list users"))

    def list_users(self) -> list[int]:
        """User ids from `pm list users`, in listed order."""
        return [user.id for user in self.list_user_infos()]

    def remove_user(self, user_id: int) -> bool:
        """Remove a user. Returns False (and logs) if the device refused."""
        output = self._shell(f"pm remove-user {user_id}")
        removed = parse_remove_user(output)
        if not removed:
            logger.warning(f"Couldn't remove user {user_id}: {output.strip()}")
        return removed

    def list_features(self) -> set[str]:
        return parse_features(self._shell("pm list features"))

    def has_device_features(self, required: Iterable[str]) -> bool:
        """True if the device advertises every feature in required."""
        available = self.list_features()
        for feature in required:
            if feature not in available:
                logger.info(f"Device doesn't have required feature {feature}. Tests won't run.")
                return False
        return True

    def build_instrument_command(
        self,
        pkg: str,
        test_class: str | None = None,
        test_method: str | None = None,
        user_id: int | None = None,
    ) -> str:
        """Build the `am instrument` command line.

        Raises:
            ValueError: If test_method is given without test_class.
        """
        if test_method and not test_class:
            raise ValueError("test_method requires test_class")

        parts = ["am", "instrument"]
        if user_id is not None:
            parts += ["--user", str(user_id)]
        parts += ["-w", "-r"]
        if test_class:
            target = f"{test_class}#{test_method}" if test_method else test_class
            parts += ["-e", "class", target]
        parts.append(f"{pkg}/{self.config.runner}")
        return shlex.join(parts)

    def run_device_tests(
        self,
        pkg: str,
        test_class: str | None = None,
        test_method: str | None = None,
        user_id: int | None = None,
    ) -> bool:
        """Run instrumentation tests and report whether they passed.

        A run passes when no test failed and at least one test passed. Every
        test outcome is logged; failures include their stack trace.

        Returns:
            True if the run passed. The parsed run is kept in last_run_result.
        """
        command = self.build_instrument_command(pkg, test_class, test_method, user_id)
        logger.info(f"Running {command}")
        output = self.device.execute_shell_command(command)
        logger.debug(f"Instrumentation output:\n{output}")

        run = InstrumentationResultParser(pkg).parse(output)
        self.last_run_result = run
        log_test_run(run)
        return run.passed()

    def run_device_tests_as_user(
        self, pkg: str, test_class: str | None, user_id: int
    ) -> bool:
        return self.run_device_tests(pkg, test_class, None, user_id)
