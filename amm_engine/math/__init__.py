"""Mathematical primitives for the pools.

- fixed_point: checked mul_div, ceiling mul_div, integer square root, fee math
- stable_math: Newton-Raphson solvers for the StableSwap invariant
"""

from amm_engine.math.fixed_point import apply_fee, mul_div, mul_div_up, sqrt_floor
from amm_engine.math.stable_math import (
    compute_invariant,
    invariant_holds,
    solve_balance,
    stable_calc_out_given_in,
)

__all__ = [
    "apply_fee",
    "mul_div",
    "mul_div_up",
    "sqrt_floor",
    "compute_invariant",
    "invariant_holds",
    "solve_balance",
    "stable_calc_out_given_in",
]
