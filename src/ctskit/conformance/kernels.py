"""Element-wise float32 kernels on the numpy and jax backends."""

from __future__ import annotations

from collections.abc import Callable
from functools import cache

import numpy as np

from ctskit.core.backend import validate_backend

_NUMPY_KERNELS: dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "sin": np.sin,
    "cos": np.cos,
    "tan": np.tan,
    "tanh": np.tanh,
    "exp": np.exp,
    "log": np.log,
    "sqrt": np.sqrt,
}

KERNEL_OPS: tuple[str, ...] = tuple(_NUMPY_KERNELS)


@cache
def _jax_kernel(op: str) -> Callable:
    import jax
    import jax.numpy as jnp

    return jax.jit(getattr(jnp, op))


def run_kernel(op: str, inputs: np.ndarray, backend: str = "numpy") -> np.ndarray:
    """Apply a kernel operation element-wise at float32.

    Args:
        op: Kernel operation name (one of KERNEL_OPS).
        inputs: Input allocation; cast to float32.
        backend: "numpy" or "jax".

    Returns:
        float32 array with the shape of inputs.

    Raises:
        KeyError: If op is unknown.
        ValueError: If backend is unknown.
    """
    backend = validate_backend(backend)
    if op not in _NUMPY_KERNELS:
        raise KeyError(f"Unknown kernel op {op!r}. Available: {', '.join(KERNEL_OPS)}")

    x = np.asarray(inputs, dtype=np.float32)
    if backend == "numpy":
        with np.errstate(all="ignore"):
            out = _NUMPY_KERNELS[op](x)
        return np.asarray(out, dtype=np.float32)

    out = _jax_kernel(op)(x)
    return np.asarray(out, dtype=np.float32)
