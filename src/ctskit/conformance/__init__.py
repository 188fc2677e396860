"""Numeric conformance suite for element-wise math kernels.

- functions: function table (reference, ULP budgets, input domains)
- allocation: deterministic random input allocations
- kernels: float32 kernels on numpy and jax
- runner: parameterized case table and batch runner
"""

from ctskit.conformance.allocation import create_random_allocation, extreme_values
from ctskit.conformance.functions import FUNCTIONS, FunctionSpec, get_function
from ctskit.conformance.kernels import KERNEL_OPS, run_kernel
from ctskit.conformance.runner import (
    VECTOR_SIZES,
    ConformanceCase,
    build_case_table,
    case_seed,
    run_case,
    run_cases,
)

__all__ = [
    "FUNCTIONS",
    "KERNEL_OPS",
    "VECTOR_SIZES",
    "ConformanceCase",
    "FunctionSpec",
    "build_case_table",
    "case_seed",
    "create_random_allocation",
    "extreme_values",
    "get_function",
    "run_case",
    "run_cases",
    "run_kernel",
]
