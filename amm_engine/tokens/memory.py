"""In-memory ERC20-style token.

Used by the test-suite and the demo command. The whole supply is assigned to
the owner at creation; balances and allowances live in plain dicts, and every
mutation holds the token lock so pools in different threads can share a token.
"""

from __future__ import annotations

import hashlib
import threading

import structlog

from amm_engine.constants import UINT256_MAX
from amm_engine.errors import InsufficientAllowance, InsufficientBalance
from amm_engine.models import normalize_address

logger = structlog.get_logger()


def _derive_address(symbol: str) -> str:
    return "0x" + hashlib.sha256(f"token:{symbol}".encode()).hexdigest()[:40]


class InMemoryToken:
    """Fungible token ledger held in memory.

    Attributes:
        name: Human-readable name
        symbol: Ticker, also used to derive the default address
        decimals: Display decimals (amounts are always raw integers)
        total_supply: Fixed supply minted to the owner
    """

    def __init__(
        self,
        name: str,
        symbol: str,
        owner: str,
        total_supply: int,
        decimals: int = 18,
        address: str | None = None,
    ) -> None:
        if not 0 <= total_supply <= UINT256_MAX:
            raise ValueError(f"total_supply must be a uint256, got {total_supply}")
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = total_supply
        self._address = normalize_address(address or _derive_address(symbol))
        self._balances: dict[str, int] = {}
        self._allowances: dict[tuple[str, str], int] = {}
        self._lock = threading.Lock()
        if total_supply:
            self._balances[normalize_address(owner)] = total_supply

    @property
    def address(self) -> str:
        return self._address

    def __repr__(self) -> str:
        return f"InMemoryToken({self.symbol}, address={self._address})"

    def balance_of(self, owner: str) -> int:
        return self._balances.get(normalize_address(owner), 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self._allowances.get((normalize_address(owner), normalize_address(spender)), 0)

    def approve(self, owner: str, spender: str, amount: int) -> bool:
        """Set spender's allowance over owner's balance.

        Raises:
            ValueError: If amount is negative or exceeds uint256
        """
        _check_amount(amount)
        with self._lock:
            self._allowances[(normalize_address(owner), normalize_address(spender))] = amount
        return True

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        """Move amount from sender to to.

        Raises:
            InsufficientBalance: If sender holds less than amount
            ValueError: If amount is negative
        """
        with self._lock:
            self._move(normalize_address(sender), normalize_address(to), amount)
        return True

    def transfer_from(self, spender: str, owner: str, to: str, amount: int) -> bool:
        """Move amount from owner to to on behalf of spender.

        The allowance is only consumed once the move has succeeded.

        Raises:
            InsufficientAllowance: If spender's allowance is below amount
            InsufficientBalance: If owner holds less than amount
        """
        _check_amount(amount)
        key = (normalize_address(owner), normalize_address(spender))
        with self._lock:
            allowed = self._allowances.get(key, 0)
            if amount > allowed:
                raise InsufficientAllowance(f"{self.symbol}: insufficient allowance ({allowed} < {amount})")
            self._move(key[0], normalize_address(to), amount)
            self._allowances[key] = allowed - amount
        return True

    def _move(self, sender: str, to: str, amount: int) -> None:
        # Caller holds self._lock
        _check_amount(amount)
        balance = self._balances.get(sender, 0)
        if amount > balance:
            raise InsufficientBalance(f"{self.symbol}: transfer amount exceeds balance")
        self._balances[sender] = balance - amount
        self._balances[to] = self._balances.get(to, 0) + amount
        logger.debug("token_transfer", token=self.symbol, sender=sender, to=to, amount=amount)


def _check_amount(amount: int) -> None:
    if not 0 <= amount <= UINT256_MAX:
        raise ValueError(f"Amount must be a uint256, got {amount}")
