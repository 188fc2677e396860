"""Statistics helpers for sensor measurement assertions.

Closed-form helpers over sample collections: nearest-rank percentiles, mean,
Bessel-corrected variance and standard deviation, and frequency/period
conversion. Every collection helper rejects empty or None input with a
ValueError before doing any work.
"""

from __future__ import annotations

import math
import time
from collections.abc import Iterable
from enum import Enum
from fractions import Fraction

import numpy as np

EMPTY_COLLECTION_MESSAGE = "Collection cannot be null or empty"


class TimeUnit(Enum):
    """Time units with their length in nanoseconds."""

    NANOSECONDS = 1
    MICROSECONDS = 1_000
    MILLISECONDS = 1_000_000
    SECONDS = 1_000_000_000
    MINUTES = 60 * 1_000_000_000
    HOURS = 3600 * 1_000_000_000
    DAYS = 86400 * 1_000_000_000

    def to_nanos(self, duration: float) -> int:
        return int(duration * self.value)

    def convert(self, duration: float, unit: TimeUnit) -> int:
        """Convert duration expressed in unit into this unit, truncating toward zero."""
        return int(Fraction(duration) * unit.value / self.value)


def _validate_collection(samples: Iterable[float] | None) -> np.ndarray:
    if samples is None:
        raise ValueError(EMPTY_COLLECTION_MESSAGE)
    values = np.asarray(list(samples), dtype=np.float64)
    if values.size == 0:
        raise ValueError(EMPTY_COLLECTION_MESSAGE)
    return values


def percentile(p: float, samples: Iterable[float] | None) -> float:
    """Nearest-rank percentile of a collection.

    Sorts ascending and returns the value at 0-based index ``ceil(n*p) - 1``,
    clamped to the valid range. ``n*p`` is rounded to 9 decimals before the
    ceiling so float noise (0.07 * 100 == 7.000000000000001) does not skip a
    rank.

    Args:
        p: Requested quantile in [0, 1].
        samples: Non-empty collection of numbers.

    Returns:
        The smallest sample whose rank meets the quantile.

    Raises:
        ValueError: If samples is empty/None or p is outside [0, 1].

    Example:
        >>> percentile(0.95, range(1, 21))
        19.0
    """
    values = _validate_collection(samples)
    if not 0.0 <= p <= 1.0:
        raise ValueError(f"Percentile must be in [0, 1], got {p}")

    ordered = np.sort(values)
    n = ordered.size
    index = math.ceil(round(n * p, 9)) - 1
    index = min(max(index, 0), n - 1)
    return float(ordered[index])


def percentile_95(samples: Iterable[float] | None) -> float:
    """95th percentile using the nearest-rank method."""
    return percentile(0.95, samples)


def mean(samples: Iterable[float] | None) -> float:
    """Arithmetic mean.

    Example:
        >>> mean([1, 2, 3, 4])
        2.5
    """
    values = _validate_collection(samples)
    return float(np.mean(values))


def variance(samples: Iterable[float] | None) -> float:
    """Bias-corrected (Bessel, divide by n-1) sample variance.

    Raises:
        ValueError: If samples is empty/None or holds a single value.
    """
    values = _validate_collection(samples)
    if values.size < 2:
        raise ValueError("Variance requires at least two samples")
    return float(np.var(values, ddof=1))


def standard_deviation(samples: Iterable[float] | None) -> float:
    """Bias-corrected standard deviation, sqrt(variance(samples))."""
    return math.sqrt(variance(samples))


def _per_second(value: float, unit: TimeUnit) -> float:
    denominator = unit.to_nanos(1) * value
    if denominator == 0:
        return math.inf
    return 1e9 / denominator


def frequency(period: float, unit: TimeUnit) -> float:
    """Convert a period expressed in unit into a frequency in Hz.

    A zero period maps to an infinite frequency.
    """
    return _per_second(period, unit)


def period(frequency_hz: float, unit: TimeUnit) -> float:
    """Convert a frequency in Hz into a period expressed in unit.

    A zero frequency maps to an infinite period.
    """
    return _per_second(frequency_hz, unit)


def seconds_as_microseconds(seconds: int) -> int:
    """Convert whole seconds to microseconds."""
    return TimeUnit.MICROSECONDS.convert(seconds, TimeUnit.SECONDS)


def sleep(duration: float, unit: TimeUnit) -> None:
    """Block the calling thread for duration expressed in unit."""
    time.sleep(unit.to_nanos(duration) / 1e9)
