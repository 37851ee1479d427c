"""StableSwap (curve-like) invariant math for two-asset pools.

The invariant, with amplification A and n = 2 coins:

    A * n^n * (x + y) + D = A * n^n * D + D^(n+1) / (n^n * x * y)

D is solved from the reserves with Newton-Raphson, and the balance of one
side is solved from D and the other side the same way. Every step goes
through SafeInt, so overflow aborts instead of wrapping. The D^(n+1) terms
are formed with unbounded integers and only their quotients are range-checked,
the same way mul_div treats its product.

Rounding policy: the unknown balance is rounded up and the swap output keeps
one extra unit in the pool, so repeated swaps never decay the invariant.
"""

from __future__ import annotations

from amm_engine.constants import MAX_SOLVER_ITERATIONS, N_COINS
from amm_engine.errors import ConvergenceFailure, DivisionByZero, InvalidPoolParameters
from amm_engine.safe_int import S, SafeInt

# n^n for the two-asset invariant
_N_POW_N = N_COINS**N_COINS


def _amp_times_n_pow_n(amp: int) -> SafeInt:
    if amp < 1:
        raise InvalidPoolParameters(f"Amplification must be positive, got {amp}")
    return S(amp) * _N_POW_N


def _surplus(ann: int, x: int, y: int, d: int) -> int:
    # Invariant equation multiplied through by n^n * x * y.
    # Non-negative exactly when (x, y) carry an invariant of at least d.
    return _N_POW_N * x * y * (ann * (x + y) - (ann - 1) * d) - d ** (N_COINS + 1)


def invariant_holds(amp: int, x: int, y: int, d: int) -> bool:
    """Check that reserves (x, y) carry an invariant of at least d.

    Exact integer comparison against the invariant equation, with no solver
    involved. Equivalent to compute_invariant(amp, x, y) >= d.

    Raises:
        InvalidPoolParameters: If amp is not positive
    """
    ann = _amp_times_n_pow_n(amp).value
    return _surplus(ann, S(x).value, S(y).value, S(d).value) >= 0


def compute_invariant(
    amp: int,
    x: int,
    y: int,
    max_iterations: int = MAX_SOLVER_ITERATIONS,
) -> int:
    """Calculate the StableSwap invariant D for reserves (x, y).

    Algorithm:
        1. Initial guess: D = x + y
        2. d_p = D^(n+1) / (n^n * x * y), rounded once
        3. D = (Ann * S + n * d_p) * D / ((Ann - 1) * D + (n + 1) * d_p)
        4. Stop when |D_new - D_old| <= 1
        5. Step D to the largest integer the reserves still satisfy

    The result is the exact floor of the real root, so it does not depend on
    argument order and never decreases when either reserve grows.

    Args:
        amp: Amplification coefficient A
        x: Reserve of the first asset
        y: Reserve of the second asset
        max_iterations: Iteration bound before giving up

    Returns:
        D, or 0 for an empty pool

    Raises:
        DivisionByZero: If exactly one reserve is zero
        ConvergenceFailure: If the iteration does not converge
    """
    sx, sy = S(x), S(y)
    sum_balances = sx + sy
    if not sum_balances:
        return 0
    if not sx or not sy:
        raise DivisionByZero(f"Invariant undefined with a zero reserve: ({x}, {y})")

    ann = _amp_times_n_pow_n(amp)
    d = sum_balances
    denominator_p = _N_POW_N * sx.value * sy.value

    for _ in range(max_iterations):
        d_p = S(d.value ** (N_COINS + 1) // denominator_p)

        d_prev = d
        numerator = (ann * sum_balances + d_p * N_COINS) * d
        denominator = (ann - 1) * d + d_p * (N_COINS + 1)
        d = numerator // denominator

        if d.abs_diff(d_prev) <= 1:
            return _floor_root(ann.value, sx.value, sy.value, d.value)

    raise ConvergenceFailure(f"StableSwap invariant did not converge after {max_iterations} iterations")


def _floor_root(ann: int, x: int, y: int, d: int) -> int:
    while _surplus(ann, x, y, d + 1) >= 0:
        d += 1
    while d > 0 and _surplus(ann, x, y, d) < 0:
        d -= 1
    return d


def solve_balance(
    amp: int,
    x: int,
    d: int,
    max_iterations: int = MAX_SOLVER_ITERATIONS,
) -> int:
    """Solve for the balance y that keeps D constant given the other balance x.

    Rearranging the invariant for y gives y^2 + (b - D) * y = c with

        c = D^(n+1) / (n^n * x * Ann)
        b = x + D / Ann

    iterated as y = (y^2 + c) / (2y + b - D). c and each step are rounded
    up and D / Ann is rounded down, so y lands on or above the exact root.

    Args:
        amp: Amplification coefficient A
        x: The known balance (already including any deposit)
        d: Invariant to preserve
        max_iterations: Iteration bound before giving up

    Returns:
        The balance y, rounded up

    Raises:
        DivisionByZero: If x is zero
        ConvergenceFailure: If the iteration does not converge or the Newton
            denominator becomes non-positive
    """
    sx, sd = S(x), S(d)
    if not sx:
        raise DivisionByZero("Cannot solve balance with the other reserve at zero")

    ann = _amp_times_n_pow_n(amp)
    c = S(-(-(sd.value ** (N_COINS + 1)) // (_N_POW_N * sx.value * ann.value)))
    b = sx + sd // ann

    y = sd
    for _ in range(max_iterations):
        y_prev = y
        denominator = y * 2 + b
        if denominator <= sd:
            raise ConvergenceFailure("Newton denominator became non-positive")
        y = (y * y + c).ceiling_div(denominator - sd)

        if y.abs_diff(y_prev) <= 1:
            return y.value

    raise ConvergenceFailure(f"StableSwap balance did not converge after {max_iterations} iterations")


def stable_calc_out_given_in(
    amp: int,
    reserve_in: int,
    reserve_out: int,
    amount_in: int,
    max_iterations: int = MAX_SOLVER_ITERATIONS,
) -> int:
    """Calculate the output of a swap against a StableSwap pool.

    Fee should be subtracted from amount_in BEFORE calling this function.

    Algorithm:
        1. D from the current reserves
        2. New output balance for reserve_in + amount_in at constant D
        3. Return: reserve_out - new_balance_out - 1 (one unit kept by the pool)

    Returns:
        Output amount, 0 when the trade is too small to move the balance

    Raises:
        ConvergenceFailure: If either solver does not converge
    """
    if amount_in == 0:
        return 0
    d = compute_invariant(amp, reserve_in, reserve_out, max_iterations)
    new_balance_in = (S(reserve_in) + amount_in).value
    new_balance_out = solve_balance(amp, new_balance_in, d, max_iterations)

    if new_balance_out + 1 >= reserve_out:
        return 0
    return (S(reserve_out) - new_balance_out - 1).value
