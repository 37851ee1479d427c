"""Token settlement for a single pool operation.

A Settlement records every token movement it performs. If the operation
fails after some movements completed, the journal is replayed backwards so the
token ledgers end up as if the operation never ran, the same outcome as a
reverted transaction. The original error always propagates.

Usage:
    with Settlement.open(pool.address) as settlement:
        settlement.pull(token_in, sender, amount_in)
        settlement.push(token_out, sender, amount_out)
        ...  # commit pool state last
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

import structlog

from amm_engine.errors import TransferFailed
from amm_engine.tokens.base import FungibleToken

logger = structlog.get_logger()


class Direction(Enum):
    """Direction of a movement relative to the pool."""

    PULL = "pull"
    PUSH = "push"


@dataclass(frozen=True)
class Movement:
    """One completed token movement."""

    token: FungibleToken
    direction: Direction
    counterparty: str
    amount: int


class Settlement:
    """Journal of token movements between a pool and its counterparties."""

    def __init__(self, pool_address: str) -> None:
        self.pool_address = pool_address
        self._journal: list[Movement] = []

    @classmethod
    @contextmanager
    def open(cls, pool_address: str) -> Iterator[Settlement]:
        """Yield a settlement that is rolled back if the block raises."""
        settlement = cls(pool_address)
        try:
            yield settlement
        except Exception as err:
            settlement.rollback(reason=type(err).__name__)
            raise

    @property
    def movements(self) -> tuple[Movement, ...]:
        return tuple(self._journal)

    def pull(self, token: FungibleToken, owner: str, amount: int) -> None:
        """Move amount of token from owner into the pool via its allowance.

        Raises:
            TransferFailed: If the token reports failure
            InsufficientBalance, InsufficientAllowance: Propagated from the token
        """
        if amount == 0:
            return
        if not token.transfer_from(self.pool_address, owner, self.pool_address, amount):
            raise TransferFailed(f"transfer_from of {amount} from {owner} failed on {token.address}")
        self._journal.append(Movement(token, Direction.PULL, owner, amount))

    def push(self, token: FungibleToken, recipient: str, amount: int) -> None:
        """Move amount of token from the pool to recipient.

        Raises:
            TransferFailed: If the token reports failure
            InsufficientBalance: Propagated from the token
        """
        if amount == 0:
            return
        if not token.transfer(self.pool_address, recipient, amount):
            raise TransferFailed(f"transfer of {amount} to {recipient} failed on {token.address}")
        self._journal.append(Movement(token, Direction.PUSH, recipient, amount))

    def rollback(self, reason: str = "") -> None:
        """Undo completed movements, most recent first.

        A reversed pull returns the funds and restores the consumed
        allowance; a reversed push moves the funds back into the pool.
        """
        if not self._journal:
            return
        logger.debug(
            "settlement_rolled_back",
            pool=self.pool_address,
            movements=len(self._journal),
            reason=reason,
        )
        while self._journal:
            movement = self._journal.pop()
            token = movement.token
            if movement.direction is Direction.PULL:
                token.transfer(self.pool_address, movement.counterparty, movement.amount)
                restored = token.allowance(movement.counterparty, self.pool_address) + movement.amount
                token.approve(movement.counterparty, self.pool_address, restored)
            else:
                token.transfer(movement.counterparty, self.pool_address, movement.amount)
