"""Math function table for the conformance suite.

Each entry names a float32 kernel operation, its float64 reference, the input
domain random allocations are drawn from, and the ULP budget a result may
deviate by at normal and relaxed precision. native_* entries share their
kernel with the standard function but carry the looser budgets of
fast-math variants.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class FunctionSpec:
    """A math function under test.

    Attributes:
        name: Public function name, e.g. "native_tan".
        op: Kernel operation run by the backend, e.g. "tan".
        reference: float64 reference implementation (array in, array out).
        ulp: ULP budget at normal precision.
        relaxed_ulp: ULP budget at relaxed precision.
        domain: (lo, hi) range for random inputs.
        log_uniform: Draw inputs uniformly in log space (positive domains).
    """

    name: str
    op: str
    reference: Callable[[np.ndarray], np.ndarray]
    ulp: int
    relaxed_ulp: int
    domain: tuple[float, float]
    log_uniform: bool = False


FUNCTIONS: dict[str, FunctionSpec] = {
    spec.name: spec
    for spec in (
        FunctionSpec("sin", "sin", np.sin, 8, 128, (-np.pi, np.pi)),
        FunctionSpec("cos", "cos", np.cos, 8, 128, (-np.pi, np.pi)),
        FunctionSpec("tan", "tan", np.tan, 8, 128, (-1.5, 1.5)),
        FunctionSpec("tanh", "tanh", np.tanh, 8, 128, (-10.0, 10.0)),
        FunctionSpec("exp", "exp", np.exp, 8, 128, (-80.0, 80.0)),
        FunctionSpec("log", "log", np.log, 8, 128, (1e-6, 1e6), log_uniform=True),
        FunctionSpec("sqrt", "sqrt", np.sqrt, 3, 16, (1e-6, 1e6), log_uniform=True),
        FunctionSpec("native_tan", "tan", np.tan, 64, 256, (-1.5, 1.5)),
        FunctionSpec("native_tanh", "tanh", np.tanh, 64, 256, (-10.0, 10.0)),
        FunctionSpec("native_exp", "exp", np.exp, 64, 256, (-80.0, 80.0)),
    )
}


def get_function(name: str) -> FunctionSpec:
    """Look up a function by name.

    Raises:
        KeyError: If the function is not in the table.
    """
    try:
        return FUNCTIONS[name]
    except KeyError:
        raise KeyError(
            f"Unknown function {name!r}. Available: {', '.join(sorted(FUNCTIONS))}"
        ) from None


def reference_values(spec: FunctionSpec, inputs: np.ndarray) -> np.ndarray:
    """Evaluate the float64 reference on (float32) inputs."""
    with np.errstate(all="ignore"):
        return spec.reference(np.asarray(inputs, dtype=np.float64))
