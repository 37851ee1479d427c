"""Shared machinery for two-asset pools.

BasePool owns reserve accounting, the liquidity ledger, the re-entrancy lock
and token settlement. Subclasses only provide pricing:
- _amount_out(): swap output for an exact input (fee applied)
- _check_invariant(): post-condition on reserves after a swap
- add_liquidity(): share minting rule
- invariant(): current value of the pricing invariant
"""

from __future__ import annotations

import hashlib
import threading
from abc import ABC, abstractmethod
from collections import deque
from collections.abc import Iterator
from contextlib import contextmanager
from typing import ClassVar

import structlog
from pydantic import ValidationError

from amm_engine.constants import MAX_POOL_EVENTS
from amm_engine.errors import (
    IdenticalTokens,
    InsufficientLiquidity,
    InsufficientShares,
    InvalidPoolParameters,
    ReentrancyBlocked,
    SlippageExceeded,
    UnknownToken,
    ZeroAmount,
)
from amm_engine.math.fixed_point import mul_div
from amm_engine.models import Burn, Mint, PoolEvent, PoolParams, Swap, Sync, normalize_address
from amm_engine.pools.ledger import LiquidityLedger
from amm_engine.pools.settlement import Settlement
from amm_engine.pools.types import (
    AddLiquidityResult,
    PoolKind,
    PoolStatus,
    RemoveLiquidityResult,
    SwapResult,
)
from amm_engine.safe_int import S
from amm_engine.tokens.base import FungibleToken

logger = structlog.get_logger()


def pool_address(kind: PoolKind, token_a: str, token_b: str) -> str:
    """Derive a deterministic pool address from its kind and canonical pair."""
    first, second = sorted((normalize_address(token_a), normalize_address(token_b)))
    digest = hashlib.sha256(f"{kind.value}:{first}:{second}".encode()).hexdigest()
    return "0x" + digest[:40]


class BasePool(ABC):
    """Two-asset pool with atomic, serialized operations.

    Tokens are ordered canonically by normalized address, so token_a is
    always the lexicographically smaller one regardless of argument order.

    Every mutating operation runs under a per-pool mutex. Threads queue on
    it; a nested call from the thread that already holds it raises
    ReentrancyBlocked. Pool state is committed only after all token
    movements succeeded.
    """

    kind: ClassVar[PoolKind]

    def __init__(
        self,
        token_a: FungibleToken,
        token_b: FungibleToken,
        fee_bps: int,
        *,
        amplification: int | None = None,
        address: str | None = None,
        max_events: int = MAX_POOL_EVENTS,
    ) -> None:
        if normalize_address(token_a.address) == normalize_address(token_b.address):
            raise IdenticalTokens(f"Pool tokens must differ, got {token_a.address} twice")
        if normalize_address(token_a.address) > normalize_address(token_b.address):
            token_a, token_b = token_b, token_a

        try:
            self.params = PoolParams(
                token_a=normalize_address(token_a.address),
                token_b=normalize_address(token_b.address),
                fee_bps=fee_bps,
                amplification=amplification,
            )
        except ValidationError as err:
            raise InvalidPoolParameters(str(err)) from err

        self._token_a = token_a
        self._token_b = token_b
        self.address = normalize_address(address) if address else pool_address(
            self.kind, self.params.token_a, self.params.token_b
        )
        self.ledger = LiquidityLedger()
        if max_events < 2:
            raise InvalidPoolParameters(f"max_events must hold at least one event and its Sync, got {max_events}")
        # Oldest events are dropped once the log is full
        self.events: deque[PoolEvent] = deque(maxlen=max_events)
        self._reserves: tuple[int, int] = (0, 0)
        self._status = PoolStatus.EMPTY
        self._mutex = threading.Lock()
        self._lock_owner: int | None = None

    def __repr__(self) -> str:
        reserve_a, reserve_b = self._reserves
        return (
            f"{type(self).__name__}(address={self.address}, reserves=({reserve_a}, {reserve_b}), "
            f"shares={self.ledger.total_shares})"
        )

    # --- Read-only surface ---

    @property
    def token_a(self) -> FungibleToken:
        return self._token_a

    @property
    def token_b(self) -> FungibleToken:
        return self._token_b

    @property
    def fee_bps(self) -> int:
        return self.params.fee_bps

    @property
    def status(self) -> PoolStatus:
        return self._status

    @property
    def total_shares(self) -> int:
        return self.ledger.total_shares

    def share_of(self, provider: str) -> int:
        return self.ledger.share_of(provider)

    def get_reserves(self) -> tuple[int, int]:
        """Return (reserve_a, reserve_b) as of the last committed operation."""
        return self._reserves

    def get_token_out(self, token_in: FungibleToken | str) -> FungibleToken:
        """Get the output token for a given input token."""
        return self._token_b if self._is_token_a(token_in) else self._token_a

    def quote(self, amount_in: int, token_in: FungibleToken | str) -> int:
        """Output a swap of amount_in would produce now, fee included.

        Read-only: does not take the lock and never changes state.

        Raises:
            ZeroAmount: If amount_in is zero
            InsufficientLiquidity: If the pool is empty
            UnknownToken: If token_in is not one of the pool's tokens
        """
        reserve_in, reserve_out = self._ordered_reserves(self._is_token_a(token_in))
        return self._price(amount_in, reserve_in, reserve_out)

    @abstractmethod
    def invariant(self) -> int:
        """Current value of the pricing invariant."""
        ...

    # --- Pricing hooks ---

    @abstractmethod
    def _amount_out(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        """Swap output for an exact input against non-empty reserves, fee applied."""
        ...

    @abstractmethod
    def _check_invariant(self, before: tuple[int, int], after: tuple[int, int]) -> None:
        """Raise InvariantViolation if a swap from before to after decays the invariant."""
        ...

    @abstractmethod
    def add_liquidity(self, provider: str, amount_a: int, amount_b: int) -> AddLiquidityResult:
        """Deposit both assets and mint shares to provider."""
        ...

    # --- Mutating operations ---

    def swap(
        self,
        sender: str,
        amount_in: int,
        token_in: FungibleToken | str,
        min_amount_out: int = 0,
        *,
        recipient: str | None = None,
    ) -> SwapResult:
        """Swap an exact amount of token_in for the other token.

        Args:
            sender: Account the input is pulled from (needs an allowance)
            amount_in: Exact input amount
            token_in: Input token (object or address)
            min_amount_out: Slippage guard; the swap fails below it
            recipient: Account receiving the output, defaults to sender

        Returns:
            SwapResult with the executed amounts

        Raises:
            ZeroAmount: If amount_in or the resulting output is zero
            SlippageExceeded: If the output is below min_amount_out
            InsufficientLiquidity: If the pool is empty
            ConvergenceFailure: If the curve-like solver does not converge
            ReentrancyBlocked: If called from inside another operation on this pool
        """
        with self._guard():
            in_is_a = self._is_token_a(token_in)
            token_in_obj, token_out_obj = (
                (self._token_a, self._token_b) if in_is_a else (self._token_b, self._token_a)
            )
            reserve_in, reserve_out = self._ordered_reserves(in_is_a)
            amount_out = self._price(amount_in, reserve_in, reserve_out)
            if amount_out == 0:
                raise ZeroAmount(f"Swap of {amount_in} produces zero output")
            if amount_out < min_amount_out:
                raise SlippageExceeded(f"Output {amount_out} below minimum {min_amount_out}")

            new_in = (S(reserve_in) + amount_in).value
            new_out = (S(reserve_out) - amount_out).value
            self._check_invariant((reserve_in, reserve_out), (new_in, new_out))

            with Settlement.open(self.address) as settlement:
                settlement.pull(token_in_obj, sender, amount_in)
                settlement.push(token_out_obj, recipient or sender, amount_out)

            new_reserves = (new_in, new_out) if in_is_a else (new_out, new_in)
            self._commit(
                new_reserves,
                Swap(
                    pool=self.address,
                    sender=normalize_address(sender),
                    token_in=normalize_address(token_in_obj.address),
                    token_out=normalize_address(token_out_obj.address),
                    amount_in=amount_in,
                    amount_out=amount_out,
                ),
            )
            logger.debug(
                "swap_executed",
                pool=self.address[-8:],
                token_in=token_in_obj.address[-8:],
                amount_in=amount_in,
                amount_out=amount_out,
            )
            return SwapResult(
                amount_in=amount_in,
                amount_out=amount_out,
                token_in=token_in_obj.address,
                token_out=token_out_obj.address,
                pool_address=self.address,
            )

    def remove_liquidity(
        self,
        provider: str,
        shares: int,
        *,
        min_amount_a: int = 0,
        min_amount_b: int = 0,
    ) -> RemoveLiquidityResult:
        """Burn shares and return the proportional part of both reserves.

        amount_x = reserve_x * shares // total_shares, for both sides.

        Raises:
            ZeroAmount: If shares is zero
            InsufficientShares: If provider holds fewer shares
            InsufficientLiquidity: If nothing would be returned, or exactly one
                reserve would be drained
            SlippageExceeded: If an amount is below its minimum
        """
        with self._guard():
            if shares == 0:
                raise ZeroAmount("Cannot remove zero shares")
            held = self.ledger.share_of(provider)
            if shares > held:
                raise InsufficientShares(f"Provider holds {held} shares, requested {shares}")

            total = self.ledger.total_shares
            reserve_a, reserve_b = self._reserves
            amount_a = mul_div(reserve_a, shares, total)
            amount_b = mul_div(reserve_b, shares, total)
            if amount_a == 0 and amount_b == 0:
                raise InsufficientLiquidity(f"Burning {shares} shares returns nothing")
            new_a = (S(reserve_a) - amount_a).value
            new_b = (S(reserve_b) - amount_b).value
            if (new_a == 0) != (new_b == 0):
                raise InsufficientLiquidity("Withdrawal would drain exactly one reserve")
            if amount_a < min_amount_a or amount_b < min_amount_b:
                raise SlippageExceeded(
                    f"Withdrawal ({amount_a}, {amount_b}) below minimum ({min_amount_a}, {min_amount_b})"
                )

            with Settlement.open(self.address) as settlement:
                settlement.push(self._token_a, provider, amount_a)
                settlement.push(self._token_b, provider, amount_b)
                self.ledger.burn(provider, shares)

            self._commit(
                (new_a, new_b),
                Burn(
                    pool=self.address,
                    provider=normalize_address(provider),
                    amount_a=amount_a,
                    amount_b=amount_b,
                    shares=shares,
                ),
            )
            logger.debug(
                "liquidity_removed",
                pool=self.address[-8:],
                shares=shares,
                amount_a=amount_a,
                amount_b=amount_b,
            )
            return RemoveLiquidityResult(amount_a=amount_a, amount_b=amount_b)

    # --- Internals ---

    def _settle_deposit(
        self,
        provider: str,
        amount_a: int,
        amount_b: int,
        shares: int,
        min_shares: int,
    ) -> AddLiquidityResult:
        """Pull a priced deposit, mint its shares and commit. Caller holds the lock."""
        if shares < min_shares:
            raise SlippageExceeded(f"Deposit mints {shares} shares, minimum is {min_shares}")
        reserve_a, reserve_b = self._reserves
        new_reserves = ((S(reserve_a) + amount_a).value, (S(reserve_b) + amount_b).value)

        with Settlement.open(self.address) as settlement:
            settlement.pull(self._token_a, provider, amount_a)
            settlement.pull(self._token_b, provider, amount_b)
            self.ledger.mint(provider, shares)

        self._commit(
            new_reserves,
            Mint(
                pool=self.address,
                provider=normalize_address(provider),
                amount_a=amount_a,
                amount_b=amount_b,
                shares=shares,
            ),
        )
        logger.debug(
            "liquidity_added",
            pool=self.address[-8:],
            shares=shares,
            amount_a=amount_a,
            amount_b=amount_b,
        )
        return AddLiquidityResult(shares=shares, amount_a=amount_a, amount_b=amount_b)

    def _price(self, amount_in: int, reserve_in: int, reserve_out: int) -> int:
        if amount_in == 0:
            raise ZeroAmount("Swap input must be positive")
        if reserve_in == 0 or reserve_out == 0:
            raise InsufficientLiquidity(f"Pool {self.address} has no liquidity")
        return self._amount_out(amount_in, reserve_in, reserve_out)

    def _commit(self, reserves: tuple[int, int], event: PoolEvent) -> None:
        """Publish new reserves and advance the lifecycle state."""
        self._reserves = reserves
        if self.ledger.total_shares == 0:
            self._status = PoolStatus.EMPTY
        elif self._status is PoolStatus.EMPTY:
            self._status = PoolStatus.SEEDED
        else:
            self._status = PoolStatus.ACTIVE
        self.events.append(event)
        self.events.append(Sync(pool=self.address, reserve_a=reserves[0], reserve_b=reserves[1]))

    def _is_token_a(self, token: FungibleToken | str) -> bool:
        address = normalize_address(token if isinstance(token, str) else token.address)
        if address == self.params.token_a:
            return True
        if address == self.params.token_b:
            return False
        raise UnknownToken(f"Token {address} not in pool {self.address}")

    def _ordered_reserves(self, in_is_a: bool) -> tuple[int, int]:
        """Get reserves ordered as (reserve_in, reserve_out)."""
        reserve_a, reserve_b = self._reserves
        return (reserve_a, reserve_b) if in_is_a else (reserve_b, reserve_a)

    @contextmanager
    def _guard(self) -> Iterator[None]:
        caller = threading.get_ident()
        if self._lock_owner == caller:
            logger.warning("reentrancy_blocked", pool=self.address[-8:])
            raise ReentrancyBlocked(f"Pool {self.address} is already executing an operation")
        with self._mutex:
            self._lock_owner = caller
            try:
                yield
            finally:
                self._lock_owner = None
