"""Liquidity share ledger for a single pool.

Shares are a fungible claim on the pool's reserves. mint and burn are the
only operations that change total_shares, so the sum of all positions always
equals total_shares.
"""

from __future__ import annotations

from amm_engine.errors import InsufficientShares
from amm_engine.models import normalize_address
from amm_engine.safe_int import S


class LiquidityLedger:
    """Provider -> share balance table.

    Notes:
    - Balances are always non-negative.
    - Zero balances are omitted to keep the table sparse.
    """

    def __init__(self) -> None:
        self._positions: dict[str, int] = {}
        self._total_shares = 0

    @property
    def total_shares(self) -> int:
        return self._total_shares

    def share_of(self, provider: str) -> int:
        """Share balance of provider, 0 if it holds none."""
        return self._positions.get(normalize_address(provider), 0)

    def positions(self) -> dict[str, int]:
        """Copy of all non-zero positions."""
        return dict(self._positions)

    def mint(self, provider: str, amount: int) -> None:
        """Credit amount new shares to provider.

        Raises:
            ValueError: If amount is negative
            ArithmeticOverflow: If total shares would exceed uint256
        """
        _check_non_negative(amount)
        key = normalize_address(provider)
        new_total = (S(self._total_shares) + amount).value
        self._set(key, self.share_of(key) + amount)
        self._total_shares = new_total

    def burn(self, provider: str, amount: int) -> None:
        """Destroy amount of provider's shares.

        Raises:
            InsufficientShares: If provider holds fewer than amount shares
        """
        _check_non_negative(amount)
        key = normalize_address(provider)
        held = self.share_of(key)
        if amount > held:
            raise InsufficientShares(f"Provider {key} holds {held} shares, cannot burn {amount}")
        self._set(key, held - amount)
        self._total_shares -= amount

    def transfer(self, sender: str, recipient: str, amount: int) -> None:
        """Move shares between providers; total_shares is unchanged.

        Raises:
            InsufficientShares: If sender holds fewer than amount shares
        """
        _check_non_negative(amount)
        sender_key = normalize_address(sender)
        held = self.share_of(sender_key)
        if amount > held:
            raise InsufficientShares(f"Provider {sender_key} holds {held} shares, cannot transfer {amount}")
        self._set(sender_key, held - amount)
        recipient_key = normalize_address(recipient)
        self._set(recipient_key, self.share_of(recipient_key) + amount)

    def _set(self, key: str, amount: int) -> None:
        if amount == 0:
            self._positions.pop(key, None)
        else:
            self._positions[key] = amount

    def __repr__(self) -> str:
        return f"LiquidityLedger({len(self._positions)} providers, total={self._total_shares})"


def _check_non_negative(amount: int) -> None:
    if amount < 0:
        raise ValueError(f"Share amount must be non-negative: {amount}")
