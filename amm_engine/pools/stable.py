"""Curve-like (StableSwap) pool.

Prices swaps with the amplified StableSwap invariant D (see
amm_engine.math.stable_math). Near balance the curve is close to constant-sum,
so slippage is much lower than a constant-product pool of the same depth.
Shares track D: a deposit mints total_shares * (D_after - D_before) / D_before.
"""

from __future__ import annotations

from typing import ClassVar

from amm_engine.constants import (
    DEFAULT_AMPLIFICATION,
    DEFAULT_STABLE_FEE_BPS,
    MAX_AMPLIFICATION,
    MAX_POOL_EVENTS,
    MAX_SOLVER_ITERATIONS,
)
from amm_engine.errors import (
    InsufficientInitialLiquidity,
    InsufficientLiquidity,
    InvalidPoolParameters,
    InvariantViolation,
    ZeroAmount,
)
from amm_engine.math.fixed_point import apply_fee, mul_div
from amm_engine.math.stable_math import compute_invariant, invariant_holds, stable_calc_out_given_in
from amm_engine.pools.base import BasePool
from amm_engine.pools.types import AddLiquidityResult, PoolKind
from amm_engine.safe_int import S
from amm_engine.tokens.base import FungibleToken


class StablePool(BasePool):
    """Two-asset StableSwap pool with an immutable amplification coefficient."""

    kind: ClassVar[PoolKind] = PoolKind.STABLE

    def __init__(
        self,
        token_a: FungibleToken,
        token_b: FungibleToken,
        fee_bps: int = DEFAULT_STABLE_FEE_BPS,
        amplification: int = DEFAULT_AMPLIFICATION,
        *,
        address: str | None = None,
        max_amplification: int = MAX_AMPLIFICATION,
        max_iterations: int = MAX_SOLVER_ITERATIONS,
        max_events: int = MAX_POOL_EVENTS,
    ) -> None:
        if not 1 <= amplification <= max_amplification:
            raise InvalidPoolParameters(
                f"Amplification must be in [1, {max_amplification}], got {amplification}"
            )
        super().__init__(
            token_a, token_b, fee_bps, amplification=amplification, address=address, max_events=max_events
        )
        self.max_iterations = max_iterations

    @property
    def amplification(self) -> int:
        # Validated non-None in __init__
        return self.params.amplification  # type: ignore[return-value]

    def invariant(self) -> int:
        """D for the current reserves (0 for an empty pool)."""
        reserve_a, reserve_b = self._reserves
        return compute_invariant(self.amplification, reserve_a, reserve_b, self.max_iterations)

    def add_liquidity(
        self,
        provider: str,
        amount_a: int,
        amount_b: int,
        *,
        min_shares: int = 0,
    ) -> AddLiquidityResult:
        """Deposit any mix of both assets and mint shares against D.

        The first deposit needs both assets and mints D_after shares. Later
        deposits may be imbalanced (one side zero) and mint
        total_shares * (D_after - D_before) // D_before.

        Raises:
            InsufficientInitialLiquidity: If the first deposit lacks one asset
            ZeroAmount: If both amounts are zero
            InsufficientLiquidity: If the deposit mints zero shares
            SlippageExceeded: If fewer than min_shares would be minted
            ConvergenceFailure: If the invariant solver does not converge
        """
        with self._guard():
            total = self.ledger.total_shares
            reserve_a, reserve_b = self._reserves
            if total == 0:
                if amount_a == 0 or amount_b == 0:
                    raise InsufficientInitialLiquidity("First deposit must include both assets")
                shares = compute_invariant(self.amplification, amount_a, amount_b, self.max_iterations)
                if shares == 0:
                    raise InsufficientInitialLiquidity(f"Deposit ({amount_a}, {amount_b}) mints zero shares")
            else:
                if amount_a == 0 and amount_b == 0:
                    raise ZeroAmount("Deposit amounts are both zero")
                d_before = compute_invariant(self.amplification, reserve_a, reserve_b, self.max_iterations)
                d_after = compute_invariant(
                    self.amplification,
                    (S(reserve_a) + amount_a).value,
                    (S(reserve_b) + amount_b).value,
                    self.max_iterations,
                )
                if d_after <= d_before:
                    raise InsufficientLiquidity("Deposit does not increase the invariant")
                shares = mul_div(total, d_after - d_before, d_before)
                if shares == 0:
                    raise InsufficientLiquidity(f"Deposit ({amount_a}, {amount_b}) mints zero shares")

            return self._settle_deposit(provider, amount_a, amount_b, shares, min_shares)

    def _amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return stable_calc_out_given_in(
            self.amplification,
            reserve_in,
            reserve_out,
            apply_fee(amount_in, self.fee_bps),
            self.max_iterations,
        )

    def _check_invariant(self, before: tuple[int, int], after: tuple[int, int]) -> None:
        d_before = compute_invariant(self.amplification, before[0], before[1], self.max_iterations)
        if not invariant_holds(self.amplification, after[0], after[1], d_before):
            raise InvariantViolation(f"D fell below {d_before}: reserves {before} -> {after}")
