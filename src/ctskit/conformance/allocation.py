"""Deterministic random input allocations."""

from __future__ import annotations

import numpy as np

DEFAULT_INPUT_SIZE = 512


def extreme_values(domain: tuple[float, float]) -> list[float]:
    """Boundary values inside domain: signed zeros, ±min normal, ±max, domain ends."""
    lo, hi = domain
    info = np.finfo(np.float32)
    candidates = [
        0.0,
        -0.0,
        float(info.tiny),
        -float(info.tiny),
        float(info.max),
        -float(info.max),
        float(np.float32(lo)),
        float(np.float32(hi)),
    ]
    return [c for c in candidates if lo <= c <= hi]


def create_random_allocation(
    vector_size: int,
    seed: int,
    input_size: int = DEFAULT_INPUT_SIZE,
    domain: tuple[float, float] = (-1.0, 1.0),
    include_extremes: bool = False,
    log_uniform: bool = False,
) -> np.ndarray:
    """Create a float32 input allocation of shape (input_size, vector_size).

    The same seed always produces the same allocation, so a failing case can
    be reproduced from its seed alone.

    Args:
        vector_size: Lanes per element (1, 2, 3 or 4).
        seed: Seed for numpy's default generator.
        input_size: Number of elements.
        domain: (lo, hi) range to draw values from.
        include_extremes: Overwrite the first values with extreme_values(domain).
        log_uniform: Draw uniformly in log space. Requires 0 < lo.

    Returns:
        float32 array of shape (input_size, vector_size).

    Raises:
        ValueError: On a non-positive size or an invalid domain.
    """
    if vector_size < 1 or input_size < 1:
        raise ValueError(
            f"Allocation sizes must be positive, got vector_size={vector_size}, "
            f"input_size={input_size}"
        )
    lo, hi = domain
    if not lo < hi:
        raise ValueError(f"Invalid domain {domain}: lo must be below hi")
    if log_uniform and lo <= 0:
        raise ValueError(f"Log-uniform domain must be positive, got {domain}")

    rng = np.random.default_rng(seed)
    n = input_size * vector_size
    if log_uniform:
        values = np.exp(rng.uniform(np.log(lo), np.log(hi), n))
    else:
        values = rng.uniform(lo, hi, n)
    values = values.astype(np.float32)

    if include_extremes:
        extremes = extreme_values(domain)[:n]
        values[: len(extremes)] = extremes

    return values.reshape(input_size, vector_size)
