"""Compute backend selection for the conformance suite.

Math kernels run on one of two backends:

- numpy: float32 ufuncs on the host CPU (libm or SVML). Always available.
- jax: jitted jax.numpy kernels on whatever device JAX sees. On XLA's CPU
  backend denormals are flushed, so jax and numpy disagree in the subnormal
  range; relaxed-precision cases accept either.

jax is picked automatically when it sees an accelerator; CTSKIT_BACKEND
overrides the choice.
"""

import os
from functools import cache
from typing import Literal

from loguru import logger

Backend = Literal["numpy", "jax"]

BACKENDS: tuple[str, ...] = ("numpy", "jax")

ACCELERATOR_PLATFORMS = frozenset({"gpu", "cuda", "rocm", "tpu"})

BACKEND_ALIASES: dict[str, str] = {
    "np": "numpy",
    "cpu": "numpy",
    "jax.numpy": "jax",
    "xla": "jax",
}


def normalize_backend_name(value: str) -> str:
    """Lower-case, strip and resolve aliases.

    Examples:
        >>> normalize_backend_name(" NumPy ")
        'numpy'
        >>> normalize_backend_name("xla")
        'jax'
    """
    name = value.lower().strip()
    return BACKEND_ALIASES.get(name, name)


def validate_backend(value: str) -> Backend:
    """Normalize and check a user-supplied backend name.

    Raises:
        ValueError: If the name is not a known backend.
    """
    name = normalize_backend_name(value)
    if name not in BACKENDS:
        raise ValueError(
            f"Unknown backend {value!r}. Expected one of {', '.join(BACKENDS)}"
        )
    return name  # type: ignore[return-value]


def _jax_platforms() -> tuple[str, ...] | None:
    """Platforms of the devices JAX can see, or None if jax isn't usable."""
    try:
        import jax
    except ImportError:
        logger.debug("jax not installed")
        return None

    try:
        return tuple(sorted({d.platform for d in jax.devices()}))
    except RuntimeError as e:
        # jaxlib present but no backend could be initialized
        logger.debug(f"jax has no usable devices: {e}")
        return None


def _has_accelerator() -> bool:
    platforms = _jax_platforms()
    return bool(platforms) and any(p in ACCELERATOR_PLATFORMS for p in platforms)


@cache
def get_compute_backend() -> Backend:
    """Backend used when none is requested explicitly.

    CTSKIT_BACKEND wins when it names a backend ("auto" or an unknown value
    falls through, the latter with a warning). Otherwise jax is chosen if it
    sees an accelerator, numpy if not. The result is cached; tests reset it
    with ``get_compute_backend.cache_clear()``.
    """
    override = os.environ.get("CTSKIT_BACKEND", "").strip()
    if override:
        name = normalize_backend_name(override)
        if name in BACKENDS:
            logger.debug(f"Backend override via CTSKIT_BACKEND={name}")
            return name  # type: ignore[return-value]
        if name != "auto":
            logger.warning(
                f"CTSKIT_BACKEND={override!r} is not a known backend, "
                "falling back to auto-selection"
            )

    if _has_accelerator():
        logger.debug("Accelerator visible to jax, using jax backend")
        return "jax"

    logger.debug("No accelerator visible, using numpy backend")
    return "numpy"


def get_backend_info() -> dict:
    """Selected backend plus what was available when selecting it.

    Keys: selected, jax_platforms (None without jax), gpu_available,
    override (raw CTSKIT_BACKEND or None).
    """
    platforms = _jax_platforms()
    return {
        "selected": get_compute_backend(),
        "jax_platforms": platforms,
        "gpu_available": bool(platforms) and any(p in ACCELERATOR_PLATFORMS for p in platforms),
        "override": os.environ.get("CTSKIT_BACKEND", None),
    }
