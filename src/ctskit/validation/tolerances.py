"""Tolerance configuration for numeric conformance checks.

Kernel results are never compared for exact equality. Each function in the
conformance table declares how many units in the last place (ULPs) a result
may deviate from the float64 reference, once for normal precision and once
for relaxed precision. This module scales those budgets globally.

Numerical differences between backends arise from:
- **Argument reduction**: trigonometric kernels reduce large arguments with
  differently sized constants (XLA vs libm vs SVML).
- **Approximation polynomials**: tanh/exp are often rational or minimax
  approximations with a few ULPs of error.
- **Denormal handling**: XLA on CPU flushes denormals to zero, which relaxed
  targets accept.
- **Native variants**: native_* functions trade accuracy for speed and carry
  much larger budgets.
"""

import math
from dataclasses import dataclass


@dataclass
class ToleranceConfig:
    """Global scaling for per-function ULP budgets.

    Attributes:
        ulp_scale: Multiplier applied to every function's ULP budget.
        atol: Extra absolute error accepted on top of the ULP interval.
            Passed to Floaty.could_be as extra_allowed_error.

    Example:
        >>> config = ToleranceConfig()
        >>> config.scaled(4)
        4
        >>> ToleranceConfig.strict().scaled(4)
        1
    """

    ulp_scale: float = 1.0
    atol: float = 0.0

    def scaled(self, ulp_factor: int) -> int:
        """Apply ulp_scale to a per-function budget.

        Returns:
            Scaled budget rounded up, never below 1 ULP for a non-zero budget.
        """
        if ulp_factor <= 0:
            return 0
        return max(1, math.ceil(ulp_factor * self.ulp_scale))

    @classmethod
    def strict(cls) -> "ToleranceConfig":
        """Create a strict tolerance configuration.

        Use to look for regressions in a backend that is expected to be
        close to correctly rounded. May fail on native_* functions.

        Returns:
            ToleranceConfig with a quarter of the default ULP budgets.
        """
        return cls(ulp_scale=0.25, atol=0.0)

    @classmethod
    def relaxed(cls) -> "ToleranceConfig":
        """Create a relaxed tolerance configuration.

        Use when investigating discrepancies on new hardware, before
        deciding whether a budget should change.

        Returns:
            ToleranceConfig with 4x the default ULP budgets.
        """
        return cls(ulp_scale=4.0, atol=0.0)
