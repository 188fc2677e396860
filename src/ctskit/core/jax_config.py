"""JAX setup for the jax conformance backend.

Kernels under test are float32, but the float64 references are computed on
the numpy side, so x64 mode stays off: with it on, jnp would promote some
intermediate results and hide float32 rounding behavior.
"""

from __future__ import annotations

from typing import Any

import jax
import jax.numpy as jnp
import numpy as np
from loguru import logger

# (input, float32 result of tanh) for the smoke test below
_SMOKE_INPUTS = np.array([0.0, 0.5, -0.5], dtype=np.float32)
_SMOKE_TANH = np.array([0.0, 0.46211716, -0.46211716], dtype=np.float32)


def configure_jax(platform: str | None = None) -> dict[str, Any]:
    """Prepare JAX for a conformance run.

    Args:
        platform: Force "cpu", "gpu" or "tpu". None keeps JAX's choice.

    Returns:
        get_jax_info() after configuration.
    """
    jax.config.update("jax_enable_x64", False)
    if platform is not None:
        jax.config.update("jax_platform_name", platform)
        logger.debug(f"JAX platform forced to {platform}")

    info = get_jax_info()
    logger.info(
        f"JAX {info['version']} on {info['backend']} "
        f"({len(info['devices'])} device(s), x64={info['x64_enabled']})"
    )
    return info


def get_jax_info() -> dict[str, Any]:
    """Version, default backend, devices and x64 flag of the running JAX."""
    return {
        "version": jax.__version__,
        "backend": jax.default_backend(),
        "devices": [str(d) for d in jax.devices()],
        "x64_enabled": bool(jax.config.jax_enable_x64),
    }


def verify_jax_installation() -> bool:
    """Compile and run a float32 tanh kernel before the real run starts.

    A broken jaxlib otherwise shows up as every case being reported as
    ERROR, which is harder to diagnose than one clear failure up front.

    Raises:
        RuntimeError: If the kernel can't be compiled, runs at the wrong
            precision or returns wrong values.
    """
    try:
        out = jax.jit(jnp.tanh)(jnp.asarray(_SMOKE_INPUTS))
    except Exception as e:
        message = f"JAX verification failed: {type(e).__name__}: {e}"
        logger.error(message)
        raise RuntimeError(message) from e

    if out.dtype != jnp.float32:
        raise RuntimeError(f"JAX verification failed: kernel ran at {out.dtype}, expected float32")
    if not np.allclose(np.asarray(out), _SMOKE_TANH, rtol=1e-5):
        raise RuntimeError(f"JAX verification failed: tanh returned {np.asarray(out)}")

    logger.debug("JAX float32 kernel verified")
    return True
