"""Sensor test operations: collect events, then verify them.

A TestSensorOperation gathers events from a source, either a fixed number of
events or for a fixed duration, and runs every registered verification over
them. Verification failures are collected and raised together as a single
AssertionError whose message carries the sensor environment.
"""

from __future__ import annotations

import copy
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import numpy as np
from loguru import logger

from ctskit.stats.helpers import (
    TimeUnit,
    frequency,
    mean,
    percentile_95,
    standard_deviation,
)
from ctskit.stats.messages import SensorEnvironment, format_assertion_message


@dataclass(frozen=True)
class SensorEvent:
    """A single sensor reading."""

    timestamp_ns: int
    values: tuple[float, ...]


class SensorEventSource(Protocol):
    """Anything that can produce sensor events for an environment."""

    def collect(
        self,
        environment: SensorEnvironment,
        event_count: int | None = None,
        duration: float | None = None,
        unit: TimeUnit | None = None,
    ) -> list[SensorEvent]: ...


class Verification:
    """Base class for checks run over collected events."""

    name = "Verification"

    def verify(self, environment: SensorEnvironment, events: Sequence[SensorEvent]) -> None:
        raise NotImplementedError

    def fail(self, environment: SensorEnvironment, extras: str, *params: object) -> None:
        raise AssertionError(format_assertion_message(self.name, environment, extras, *params))


def _timestamp_deltas(events: Sequence[SensorEvent]) -> np.ndarray:
    timestamps = np.array([e.timestamp_ns for e in events], dtype=np.float64)
    return np.diff(timestamps)


def _axis_values(events: Sequence[SensorEvent]) -> np.ndarray:
    return np.array([e.values for e in events], dtype=np.float64)


def _per_axis(threshold: float | Sequence[float], n_axes: int) -> list[float]:
    if isinstance(threshold, (int, float)):
        return [float(threshold)] * n_axes
    if len(threshold) != n_axes:
        raise ValueError(f"Expected {n_axes} per-axis values, got {len(threshold)}")
    return [float(t) for t in threshold]


class EventOrderingVerification(Verification):
    """Timestamps must strictly increase."""

    name = "EventOrdering"

    def verify(self, environment, events):
        deltas = _timestamp_deltas(events)
        bad = np.flatnonzero(deltas <= 0)
        if bad.size:
            i = int(bad[0])
            self.fail(
                environment,
                "%d out-of-order events, first at index %d (%d ns -> %d ns)",
                bad.size,
                i + 1,
                events[i].timestamp_ns,
                events[i + 1].timestamp_ns,
            )


class FrequencyVerification(Verification):
    """Mean event rate must lie within [min_hz, max_hz]."""

    name = "Frequency"

    def __init__(self, min_hz: float, max_hz: float) -> None:
        self.min_hz = min_hz
        self.max_hz = max_hz

    def verify(self, environment, events):
        if len(events) < 2:
            self.fail(environment, "need at least 2 events, got %d", len(events))
        mean_period_ns = mean(_timestamp_deltas(events))
        if mean_period_ns <= 0:
            self.fail(environment, "mean period %.0fns is not positive", mean_period_ns)
        hz = frequency(mean_period_ns, TimeUnit.NANOSECONDS)
        if not self.min_hz <= hz <= self.max_hz:
            self.fail(
                environment,
                "frequency=%.2fHz, expected [%.2f, %.2f]Hz",
                hz,
                self.min_hz,
                self.max_hz,
            )


class JitterVerification(Verification):
    """95th percentile of period jitter must stay below a fraction of the period.

    Jitter of an event is |delta - mean(delta)|. The reference period is the
    requested sampling period, or the measured mean period when the
    environment requests the fastest rate (sampling_period_us == 0).
    """

    name = "Jitter"

    def __init__(self, threshold_fraction: float = 0.1) -> None:
        self.threshold_fraction = threshold_fraction

    def verify(self, environment, events):
        if len(events) < 3:
            self.fail(environment, "need at least 3 events, got %d", len(events))
        deltas = _timestamp_deltas(events)
        mean_delta = mean(deltas)
        jitter = np.abs(deltas - mean_delta)
        p95 = percentile_95(jitter)

        expected_period_ns = environment.sampling_period_us * 1000.0 or mean_delta
        threshold_ns = self.threshold_fraction * expected_period_ns
        if p95 > threshold_ns:
            self.fail(
                environment,
                "jitter95=%.0fns, threshold=%.0fns (%.1f%% of %.0fns)",
                p95,
                threshold_ns,
                self.threshold_fraction * 100,
                expected_period_ns,
            )


class MeanVerification(Verification):
    """Per-axis mean must be within threshold of the expected value."""

    name = "Mean"

    def __init__(self, expected: Sequence[float], threshold: float | Sequence[float]) -> None:
        self.expected = [float(v) for v in expected]
        self.threshold = threshold

    def verify(self, environment, events):
        values = _axis_values(events)
        n_axes = len(self.expected)
        if values.ndim != 2 or values.shape[1] != n_axes:
            self.fail(environment, "expected %d axes, got shape %s", n_axes, values.shape)
        thresholds = _per_axis(self.threshold, n_axes)
        means = [mean(values[:, axis]) for axis in range(n_axes)]
        bad = [
            axis
            for axis in range(n_axes)
            if abs(means[axis] - self.expected[axis]) > thresholds[axis]
        ]
        if bad:
            self.fail(
                environment,
                "means=%s, expected=%s, thresholds=%s, failing axes=%s",
                [round(m, 6) for m in means],
                self.expected,
                thresholds,
                bad,
            )


class StandardDeviationVerification(Verification):
    """Per-axis standard deviation must not exceed max_std."""

    name = "StandardDeviation"

    def __init__(self, max_std: float | Sequence[float]) -> None:
        self.max_std = max_std

    def verify(self, environment, events):
        values = _axis_values(events)
        if values.ndim != 2 or values.shape[0] < 2:
            self.fail(environment, "need at least 2 events with values, got %d", len(events))
        n_axes = values.shape[1]
        limits = _per_axis(self.max_std, n_axes)
        stds = [standard_deviation(values[:, axis]) for axis in range(n_axes)]
        bad = [axis for axis in range(n_axes) if stds[axis] > limits[axis]]
        if bad:
            self.fail(
                environment,
                "stddevs=%s, max=%s, failing axes=%s",
                [round(s, 6) for s in stds],
                limits,
                bad,
            )


class TestSensorOperation:
    """Collect sensor events and verify them.

    Exactly one of event_count or duration must be given.

    Args:
        source: Event source to collect from.
        environment: Sensor and sampling configuration.
        event_count: Number of events to gather.
        duration: Time to gather events for, in unit.
        unit: Unit of duration.
    """

    __test__ = False

    def __init__(
        self,
        source: SensorEventSource,
        environment: SensorEnvironment,
        *,
        event_count: int | None = None,
        duration: float | None = None,
        unit: TimeUnit = TimeUnit.SECONDS,
    ) -> None:
        if (event_count is None) == (duration is None):
            raise ValueError("Exactly one of event_count or duration must be given")
        if event_count is not None and event_count <= 0:
            raise ValueError(f"event_count must be positive, got {event_count}")
        if duration is not None and duration <= 0:
            raise ValueError(f"duration must be positive, got {duration}")

        self.source = source
        self.environment = environment
        self.event_count = event_count
        self.duration = duration
        self.unit = unit
        self.verifications: list[Verification] = []
        self.events: list[SensorEvent] = []

    def add_verification(self, verification: Verification) -> TestSensorOperation:
        self.verifications.append(verification)
        return self

    def execute(self) -> list[SensorEvent]:
        """Collect events and run every verification.

        Returns:
            The collected events.

        Raises:
            AssertionError: With all verification failures joined, one per line.
        """
        if self.event_count is not None:
            events = self.source.collect(self.environment, event_count=self.event_count)
        else:
            events = self.source.collect(
                self.environment, duration=self.duration, unit=self.unit
            )
        self.events = list(events)
        logger.debug(
            f"Collected {len(self.events)} events from {self.environment.sensor_name}"
        )

        failures = []
        for verification in self.verifications:
            try:
                verification.verify(self.environment, self.events)
            except AssertionError as e:
                failures.append(str(e))
        if failures:
            raise AssertionError("\n".join(failures))
        return self.events

    def clone(self) -> TestSensorOperation:
        """Copy the operation with the same source, sampling and verifications."""
        if self.event_count is not None:
            other = TestSensorOperation(
                self.source, self.environment, event_count=self.event_count
            )
        else:
            other = TestSensorOperation(
                self.source, self.environment, duration=self.duration, unit=self.unit
            )
        other.verifications = [copy.copy(v) for v in self.verifications]
        return other
