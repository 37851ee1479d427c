"""Fungible token interface.

Pools never store balances themselves; they move funds through this narrow
interface. The explicit sender/spender argument names the account on whose
behalf the call is made, i.e. the caller of an on-chain transfer.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class FungibleToken(Protocol):
    """Protocol for token ledgers a pool can settle against.

    Implementations signal failure either by returning False (the pool turns
    that into TransferFailed) or by raising InsufficientBalance /
    InsufficientAllowance, which propagate unchanged.
    """

    @property
    def address(self) -> str:
        """Opaque identifier of the token."""
        ...

    def balance_of(self, owner: str) -> int:
        """Return the balance held by owner."""
        ...

    def allowance(self, owner: str, spender: str) -> int:
        """Return how much spender may still move out of owner's balance."""
        ...

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set spender's allowance over owner's balance to amount."""
        ...

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move amount from sender to to."""
        ...

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move amount from owner to to, consuming spender's allowance."""
        ...
