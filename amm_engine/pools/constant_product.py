"""Constant-product pool.

Prices swaps with reserve_a * reserve_b = k. The fee is deducted from the
input before pricing and stays in the pool, so k grows with every swap.
"""

from __future__ import annotations

from typing import ClassVar

from amm_engine.constants import BPS_DENOMINATOR, DEFAULT_CONSTANT_PRODUCT_FEE_BPS, MAX_POOL_EVENTS
from amm_engine.errors import (
    InsufficientInitialLiquidity,
    InsufficientLiquidity,
    InvariantViolation,
    RatioMismatch,
    ZeroAmount,
)
from amm_engine.math.fixed_point import apply_fee, mul_div, mul_div_up, sqrt_floor
from amm_engine.pools.base import BasePool
from amm_engine.pools.types import AddLiquidityResult, PoolKind
from amm_engine.safe_int import S
from amm_engine.tokens.base import FungibleToken


def get_amount_out(amount_in_after_fee: int, reserve_in: int, reserve_out: int) -> int:
    """Calculate output amount using the constant product formula.

    Formula: amount_out = reserve_out - ceil(reserve_in * reserve_out / (reserve_in + amount_in))

    The new output reserve is rounded up, so the result is the largest
    integer output that does not decrease k.

    Args:
        amount_in_after_fee: Input amount with the fee already deducted
        reserve_in: Reserve of input token in pool
        reserve_out: Reserve of output token in pool

    Returns:
        Output token amount
    """
    new_reserve_out = mul_div_up(reserve_in, reserve_out, (S(reserve_in) + amount_in_after_fee).value)
    return (S(reserve_out) - new_reserve_out).value


def optimal_deposit(
    amount_a: int,
    amount_b: int,
    reserve_a: int,
    reserve_b: int,
) -> tuple[int, int]:
    """Clamp a deposit to the current reserve ratio.

    The side that fits is accepted as given; the other side is reduced to
    amount_given * reserve_other // reserve_given.

    Returns:
        (amount_a, amount_b) actually accepted
    """
    amount_b_optimal = mul_div(amount_a, reserve_b, reserve_a)
    if amount_b_optimal <= amount_b:
        return amount_a, amount_b_optimal
    amount_a_optimal = mul_div(amount_b, reserve_a, reserve_b)
    return amount_a_optimal, amount_b


class ConstantProductPool(BasePool):
    """Two-asset pool priced by x * y = k."""

    kind: ClassVar[PoolKind] = PoolKind.CONSTANT_PRODUCT

    def __init__(
        self,
        token_a: FungibleToken,
        token_b: FungibleToken,
        fee_bps: int = DEFAULT_CONSTANT_PRODUCT_FEE_BPS,
        *,
        address: str | None = None,
        max_events: int = MAX_POOL_EVENTS,
    ) -> None:
        super().__init__(token_a, token_b, fee_bps, address=address, max_events=max_events)

    def invariant(self) -> int:
        """k = reserve_a * reserve_b."""
        reserve_a, reserve_b = self._reserves
        return reserve_a * reserve_b

    def add_liquidity(
        self,
        provider: str,
        amount_a: int,
        amount_b: int,
        *,
        max_deviation_bps: int | None = None,
        min_shares: int = 0,
    ) -> AddLiquidityResult:
        """Deposit both assets and mint shares.

        Empty pool: shares = isqrt(amount_a * amount_b) and both amounts are
        taken as given. Otherwise the deposit is clamped to the reserve ratio
        (see optimal_deposit) and shares are minted pro rata.

        Args:
            provider: Account the funds are pulled from and shares credited to
            amount_a: Offered amount of token_a
            amount_b: Offered amount of token_b
            max_deviation_bps: Largest share of an offered amount that may be
                clamped away, in basis points. None accepts any clamp.
            min_shares: Slippage guard on the minted shares

        Returns:
            AddLiquidityResult with minted shares and amounts actually pulled

        Raises:
            InsufficientInitialLiquidity: If the first deposit mints zero shares
            ZeroAmount: If either amount of a later deposit is zero
            RatioMismatch: If the clamp exceeds max_deviation_bps
            InsufficientLiquidity: If a later deposit mints zero shares
            SlippageExceeded: If fewer than min_shares would be minted
        """
        with self._guard():
            total = self.ledger.total_shares
            reserve_a, reserve_b = self._reserves
            if total == 0:
                shares = sqrt_floor((S(amount_a) * amount_b).value)
                if shares == 0:
                    raise InsufficientInitialLiquidity(f"Deposit ({amount_a}, {amount_b}) mints zero shares")
                used_a, used_b = amount_a, amount_b
            else:
                if amount_a == 0 or amount_b == 0:
                    raise ZeroAmount("Both deposit amounts must be positive")
                used_a, used_b = optimal_deposit(amount_a, amount_b, reserve_a, reserve_b)
                if max_deviation_bps is not None:
                    _check_deviation(amount_a, used_a, max_deviation_bps)
                    _check_deviation(amount_b, used_b, max_deviation_bps)
                # Both sides are priced; rounding of the clamped side never favors the provider
                shares = min(mul_div(total, used_a, reserve_a), mul_div(total, used_b, reserve_b))
                if shares == 0:
                    raise InsufficientLiquidity(f"Deposit ({used_a}, {used_b}) mints zero shares")

            return self._settle_deposit(provider, used_a, used_b, shares, min_shares)

    def _amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        return get_amount_out(apply_fee(amount_in, self.fee_bps), reserve_in, reserve_out)

    def _check_invariant(self, before: tuple[int, int], after: tuple[int, int]) -> None:
        k_before = S(before[0]) * before[1]
        k_after = S(after[0]) * after[1]
        if k_after < k_before:
            raise InvariantViolation(f"k decreased from {k_before.value} to {k_after.value}")


def _check_deviation(offered: int, used: int, max_deviation_bps: int) -> None:
    clamped = offered - used
    if clamped * BPS_DENOMINATOR > max_deviation_bps * offered:
        raise RatioMismatch(
            f"Deposit of {offered} clamped to {used}, beyond tolerance of {max_deviation_bps} bps"
        )
