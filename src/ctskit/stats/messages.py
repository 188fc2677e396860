"""Assertion message formatting for sensor checks."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SensorEnvironment:
    """Sensor and sampling configuration a measurement was taken under.

    Attributes:
        sensor_name: Human-readable sensor name, e.g. "accelerometer".
        sampling_period_us: Requested sampling period in microseconds.
        max_report_latency_us: Maximum batching report latency in microseconds.
    """

    sensor_name: str
    sampling_period_us: int
    max_report_latency_us: int = 0


def format_assertion_message(
    label: str,
    environment: SensorEnvironment,
    extras: str = "",
    *params: object,
) -> str:
    """Format an assertion message with the sensor environment.

    Args:
        label: Verification name.
        environment: Environment the samples were collected in.
        extras: Additional information. Treated as a %-format string when
            params are given.
        *params: Values for the extras format string.

    Returns:
        "<label> | sensor=<name>, rateUs=<n>, maxBatchReportLatencyUs=<n> | <extras>"

    Example:
        >>> env = SensorEnvironment("gyroscope", 20000)
        >>> format_assertion_message("Jitter", env, "p95=%.2f", 1.5)
        'Jitter | sensor=gyroscope, rateUs=20000, maxBatchReportLatencyUs=0 | p95=1.50'
    """
    if params:
        extras = extras % params
    return (
        f"{label} | sensor={environment.sensor_name}, "
        f"rateUs={environment.sampling_period_us}, "
        f"maxBatchReportLatencyUs={environment.max_report_latency_us} | {extras}"
    )
