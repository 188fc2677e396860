"""Statistics helpers and sensor verification for ctskit.

- helpers: percentile, mean, variance, standard deviation, frequency/period
- messages: assertion message formatting with the sensor environment
- operation: collect-then-verify sensor test operations
"""

from ctskit.stats.helpers import (
    TimeUnit,
    frequency,
    mean,
    percentile,
    percentile_95,
    period,
    seconds_as_microseconds,
    sleep,
    standard_deviation,
    variance,
)
from ctskit.stats.messages import SensorEnvironment, format_assertion_message
from ctskit.stats.operation import (
    EventOrderingVerification,
    FrequencyVerification,
    JitterVerification,
    MeanVerification,
    SensorEvent,
    StandardDeviationVerification,
    TestSensorOperation,
)

__all__ = [
    "EventOrderingVerification",
    "FrequencyVerification",
    "JitterVerification",
    "MeanVerification",
    "SensorEnvironment",
    "SensorEvent",
    "StandardDeviationVerification",
    "TestSensorOperation",
    "TimeUnit",
    "format_assertion_message",
    "frequency",
    "mean",
    "percentile",
    "percentile_95",
    "period",
    "seconds_as_microseconds",
    "sleep",
    "standard_deviation",
    "variance",
]
