"""ULP-tolerant expected-value descriptors.

A kernel run on a GPU, through XLA, or through a vectorized libm does not have
to produce the correctly rounded result of a math function. It has to land
within a documented number of ULPs of it. ``Floaty`` captures that: it holds a
nominal value together with the interval of results considered acceptable at
a given target precision, and ``could_be`` tests membership.

Non-finite values are handled explicitly:
- a NaN result is acceptable only when the nominal value is NaN
- an infinite result is acceptable only when the interval reaches that infinity
- a non-finite nominal value never accepts a finite result

Relaxed targets model fast-math execution, where denormals may be flushed to
zero. Denormal results are compared as zero and intervals touching the
denormal range are extended to include zero.

Example:
    >>> target = Target(precision="float", relaxed=False)
    >>> expected = target.new_floaty(1.0, ulp_factor=2)
    >>> expected.could_be(1.0000001)
    True
    >>> expected.could_be(1.001)
    False
"""

from __future__ import annotations

import math
from typing import Literal

import numpy as np

Precision = Literal["float", "double"]

_DTYPES: dict[str, type[np.floating]] = {
    "float": np.float32,
    "double": np.float64,
}

_BIT_DTYPES: dict[str, type[np.unsignedinteger]] = {
    "float": np.uint32,
    "double": np.uint64,
}


def _dtype_for(precision: str) -> type[np.floating]:
    try:
        return _DTYPES[precision]
    except KeyError:
        raise ValueError(
            f"Unknown precision {precision!r}. Expected one of {sorted(_DTYPES)}"
        ) from None


def round_to_precision(value: float, precision: Precision = "float") -> float:
    """Round a float64 value to the nearest representable value at precision.

    Values beyond the finite range round to signed infinity.
    """
    dtype = _dtype_for(precision)
    with np.errstate(over="ignore"):
        return float(dtype(value))


def is_denormal(value: float, precision: Precision = "float") -> bool:
    """Check whether a non-zero value lies below the smallest normal number."""
    tiny = float(np.finfo(_dtype_for(precision)).tiny)
    a = abs(float(value))
    return 0.0 < a < tiny


def ulp(value: float, precision: Precision = "float", relaxed: bool = False) -> float:
    """Unit in the last place at |value| for the given precision.

    Args:
        value: Value to measure around. Need not be representable at precision.
        precision: "float" (binary32) or "double" (binary64).
        relaxed: Treat the denormal range as flushed, so its ULP is the
            smallest normal number rather than the smallest subnormal.

    Returns:
        Spacing between |value| and the next representable magnitude.
        Infinite for non-finite input.
    """
    dtype = _dtype_for(precision)
    info = np.finfo(dtype)
    a = abs(float(value))
    if not math.isfinite(a):
        return math.inf
    if a < float(info.tiny):
        return float(info.tiny) if relaxed else float(info.smallest_subnormal)
    with np.errstate(over="ignore"):
        cast = dtype(a)
    if np.isinf(cast) or cast == info.max:
        # spacing at the largest finite value steps to infinity
        cast = np.nextafter(info.max, dtype(0))
    return float(np.spacing(cast))


def float_bits(value: float, precision: Precision = "float") -> int:
    """Raw IEEE-754 bit pattern of value at precision, as an unsigned int."""
    dtype = _dtype_for(precision)
    with np.errstate(over="ignore"):
        arr = np.array([value], dtype=dtype)
    return int(arr.view(_BIT_DTYPES[precision])[0])


class Floaty:
    """Acceptable range of floating-point results around a nominal value.

    Instances are built through ``Target.new_floaty`` or
    ``Target.new_floaty_range`` rather than directly.

    Attributes:
        nominal: Reference value the range was derived from.
        lo: Smallest acceptable result.
        hi: Largest acceptable result.
        ulp_factor: Number of ULPs each bound was widened by.
        precision: Target precision of the result being checked.
        relaxed: Whether denormal results are flushed to zero.
    """

    def __init__(
        self,
        nominal: float,
        lo: float,
        hi: float,
        ulp_factor: int,
        precision: Precision,
        relaxed: bool,
    ) -> None:
        self.nominal = nominal
        self.lo = lo
        self.hi = hi
        self.ulp_factor = ulp_factor
        self.precision = precision
        self.relaxed = relaxed

    def could_be(self, actual: float, extra_allowed_error: float = 0.0) -> bool:
        """Check whether actual is an acceptable result.

        Args:
            actual: Value produced by the kernel under test.
            extra_allowed_error: Absolute slack added on both sides of the
                interval (ToleranceConfig.atol).

        Returns:
            True if actual lies within the acceptance interval.
        """
        a = float(actual)
        if math.isnan(a):
            return math.isnan(self.nominal)
        if math.isnan(self.nominal):
            return False
        if math.isinf(a):
            return a == self.lo or a == self.hi
        if not math.isfinite(self.nominal):
            return False
        if self.relaxed and is_denormal(a, self.precision):
            a = 0.0
        return (self.lo - extra_allowed_error) <= a <= (self.hi + extra_allowed_error)

    def __repr__(self) -> str:
        return (
            f"Floaty(nominal={self.nominal!r}, lo={self.lo!r}, hi={self.hi!r}, "
            f"ulp_factor={self.ulp_factor}, precision={self.precision!r}, "
            f"relaxed={self.relaxed})"
        )

    def __str__(self) -> str:
        return f"{self.nominal:.8g} {{{self.lo:.8g}, {self.hi:.8g}}} (±{self.ulp_factor} ulp)"


class Target:
    """Numeric context of the results being verified.

    Args:
        precision: Precision of the kernel output ("float" or "double").
        relaxed: Whether the kernel ran with relaxed (fast-math) precision.
    """

    def __init__(self, precision: Precision = "float", relaxed: bool = False) -> None:
        _dtype_for(precision)
        self.precision = precision
        self.relaxed = relaxed

    def round(self, value: float) -> float:
        return round_to_precision(value, self.precision)

    def ulp(self, value: float) -> float:
        return ulp(value, self.precision, relaxed=self.relaxed)

    def _widen(self, lo: float, hi: float, ulp_factor: int) -> tuple[float, float]:
        if ulp_factor > 0:
            if math.isfinite(lo):
                lo -= ulp_factor * self.ulp(lo)
            if math.isfinite(hi):
                hi += ulp_factor * self.ulp(hi)
        if self.relaxed:
            if is_denormal(lo, self.precision):
                lo = min(lo, 0.0)
            if is_denormal(hi, self.precision):
                hi = max(hi, 0.0)
        return lo, hi

    def new_floaty(self, value: float, ulp_factor: int = 0) -> Floaty:
        """Build a descriptor around a single reference value.

        Both the exact reference and its rounding to the target precision are
        inside the interval, so the descriptor always accepts its own nominal
        value.
        """
        value = float(value)
        if not math.isfinite(value):
            return Floaty(value, value, value, ulp_factor, self.precision, self.relaxed)

        rounded = self.round(value)
        if not math.isfinite(rounded):
            # Overflows the target precision: accept the infinity, the reference
            # itself and the top of the finite range
            largest = float(np.finfo(_dtype_for(self.precision)).max)
            edge = largest - ulp_factor * self.ulp(largest)
            if value > 0:
                lo, hi = min(value, edge), math.inf
            else:
                lo, hi = -math.inf, max(value, -edge)
            return Floaty(value, lo, hi, ulp_factor, self.precision, self.relaxed)

        lo, hi = self._widen(min(value, rounded), max(value, rounded), ulp_factor)
        return Floaty(value, lo, hi, ulp_factor, self.precision, self.relaxed)

    def new_floaty_range(self, lo: float, hi: float, ulp_factor: int = 0) -> Floaty:
        """Build a descriptor accepting anything between two reference values.

        Used when the reference itself is an interval, e.g. a function
        evaluated at both ends of its input's rounding interval.
        """
        lo, hi = float(lo), float(hi)
        if math.isnan(lo) or math.isnan(hi):
            return Floaty(math.nan, math.nan, math.nan, ulp_factor, self.precision, self.relaxed)
        if lo > hi:
            lo, hi = hi, lo

        if lo == hi:
            nominal = lo
        elif math.isinf(hi):
            nominal = hi
        elif math.isinf(lo):
            nominal = lo
        else:
            nominal = lo + (hi - lo) / 2
        lo = min(lo, self.round(lo))
        hi = max(hi, self.round(hi))
        lo, hi = self._widen(lo, hi, ulp_factor)
        return Floaty(nominal, lo, hi, ulp_factor, self.precision, self.relaxed)

    def __repr__(self) -> str:
        return f"Target(precision={self.precision!r}, relaxed={self.relaxed})"
