"""adb device harness.

- adb: subprocess transport (AdbDevice) and the DeviceInterface protocol
- parsers: typed parsers for pm / am / adb install output
- harness: user management and instrumentation runs
"""

from ctskit.device.adb import (
    AdbDevice,
    AdbResult,
    DeviceCommandError,
    DeviceInterface,
    DeviceNotAvailableError,
)
from ctskit.device.harness import DeviceHarness
from ctskit.device.parsers import (
    CommandParseError,
    InstrumentationResultParser,
    UserInfo,
    parse_features,
    parse_install_output,
    parse_max_users,
    parse_remove_user,
    parse_start_user,
    parse_user_list,
)

__all__ = [
    "AdbDevice",
    "AdbResult",
    "CommandParseError",
    "DeviceCommandError",
    "DeviceHarness",
    "DeviceInterface",
    "DeviceNotAvailableError",
    "InstrumentationResultParser",
    "UserInfo",
    "parse_features",
    "parse_install_output",
    "parse_max_users",
    "parse_remove_user",
    "parse_start_user",
    "parse_user_list",
]
