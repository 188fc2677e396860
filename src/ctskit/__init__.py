"""ctskit: host-side conformance toolkit.

ctskit bundles the pieces a compatibility suite needs on the host side:
ULP-tolerant numeric verification of compute kernels, statistics helpers for
sensor measurement assertions, and an adb-driven device harness for
installing packages, managing users and running instrumentation tests.

Example:
    >>> from ctskit import Target
    >>> expected = Target(relaxed=False).new_floaty(0.5, ulp_factor=4)
    >>> expected.could_be(0.5)
    True
"""

import sys
from importlib.metadata import version

from loguru import logger

__version__ = version("ctskit")

# Configure loguru with sensible defaults on import
# Users can override by calling logger.remove()/add()
logger.remove()  # Remove default handler
logger.add(
    sys.stdout,
    level="INFO",
    format="{time:HH:mm:ss} | <level>{level: <8}</level> | {message}",
    colorize=True,
)

from ctskit.core.results import TestRunResult, TestStatus  # noqa: E402
from ctskit.validation.floaty import Floaty, Target  # noqa: E402

__all__ = ["Floaty", "Target", "TestRunResult", "TestStatus", "__version__"]
