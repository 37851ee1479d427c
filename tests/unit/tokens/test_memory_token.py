"""Tests for InMemoryToken."""

import threading

import pytest

from amm_engine.errors import InsufficientAllowance, InsufficientBalance, TokenError
from amm_engine.tokens import FungibleToken, InMemoryToken
from tests.helpers import ALICE, BOB, CAROL

SUPPLY = 1_000_000


@pytest.fixture
def token() -> InMemoryToken:
    return InMemoryToken("UToken", "UTK", ALICE, SUPPLY)


class TestDeployment:
    """Token creation."""

    def test_supply_assigned_to_owner(self, token):
        """The owner receives the whole supply."""
        assert token.balance_of(ALICE) == SUPPLY
        assert token.total_supply == SUPPLY
        assert token.name == "UToken"
        assert token.symbol == "UTK"
        assert token.decimals == 18

    def test_default_address_is_deterministic(self):
        """Same symbol, same address; different symbol, different address."""
        first = InMemoryToken("UToken", "UTK", ALICE, 1)
        second = InMemoryToken("UToken", "UTK", BOB, 2)
        other = InMemoryToken("PolyToken", "POLY", ALICE, 1)
        assert first.address == second.address
        assert first.address != other.address
        assert first.address.startswith("0x") and len(first.address) == 42

    def test_explicit_address_is_normalized(self):
        """An explicit address is stored lowercased."""
        token = InMemoryToken("UToken", "UTK", ALICE, 1, address="0xABCDEF")
        assert token.address == "0xabcdef"

    def test_satisfies_protocol(self, token):
        """InMemoryToken implements the FungibleToken protocol."""
        assert isinstance(token, FungibleToken)

    def test_supply_out_of_range_raises(self):
        """Supplies outside uint256 are rejected."""
        with pytest.raises(ValueError):
            InMemoryToken("Bad", "BAD", ALICE, -1)


class TestTransfers:
    """transfer / approve / transfer_from."""

    def test_transfer(self, token):
        """Transfers move balance between accounts."""
        assert token.transfer(ALICE, BOB, 50)
        assert token.balance_of(ALICE) == SUPPLY - 50
        assert token.balance_of(BOB) == 50

    def test_transfer_exceeding_balance_raises(self, token):
        """Transfers fail when sender doesn't have enough tokens."""
        with pytest.raises(InsufficientBalance, match="transfer amount exceeds balance"):
            token.transfer(BOB, ALICE, 1)
        assert token.balance_of(ALICE) == SUPPLY

    def test_transfer_from_consumes_allowance(self, token):
        """transfer_from moves funds and decrements the allowance."""
        token.approve(ALICE, CAROL, 100)
        assert token.transfer_from(CAROL, ALICE, BOB, 60)
        assert token.balance_of(BOB) == 60
        assert token.allowance(ALICE, CAROL) == 40

    def test_transfer_from_without_allowance_raises(self, token):
        """Spending beyond the allowance fails and moves nothing."""
        token.approve(ALICE, CAROL, 10)
        with pytest.raises(InsufficientAllowance):
            token.transfer_from(CAROL, ALICE, BOB, 11)
        assert token.balance_of(BOB) == 0
        assert token.allowance(ALICE, CAROL) == 10

    def test_transfer_from_exceeding_balance_keeps_allowance(self, token):
        """A failed move leaves the allowance untouched."""
        token.approve(BOB, CAROL, 100)
        with pytest.raises(InsufficientBalance):
            token.transfer_from(CAROL, BOB, ALICE, 1)
        assert token.allowance(BOB, CAROL) == 100

    def test_approve_overwrites(self, token):
        """approve sets rather than adds."""
        token.approve(ALICE, CAROL, 100)
        token.approve(ALICE, CAROL, 5)
        assert token.allowance(ALICE, CAROL) == 5

    def test_negative_amount_raises(self, token):
        """Negative amounts are rejected."""
        with pytest.raises(ValueError):
            token.transfer(ALICE, BOB, -1)
        with pytest.raises(ValueError):
            token.approve(ALICE, BOB, -1)

    def test_errors_share_a_family(self):
        """Token errors are catchable together."""
        assert issubclass(InsufficientBalance, TokenError)
        assert issubclass(InsufficientAllowance, TokenError)


class TestConcurrency:
    """Transfers from several threads."""

    def test_parallel_transfers_conserve_supply(self, token):
        """No update is lost when threads move funds back and forth."""
        token.transfer(ALICE, BOB, SUPPLY // 2)
        token.approve(BOB, CAROL, SUPPLY)

        def shuffle(sender, to):
            for _ in range(500):
                token.transfer(sender, to, 1)

        def pull():
            for _ in range(500):
                token.transfer_from(CAROL, BOB, ALICE, 1)

        threads = [threading.Thread(target=shuffle, args=(ALICE, BOB)) for _ in range(4)]
        threads += [threading.Thread(target=shuffle, args=(BOB, ALICE)) for _ in range(2)]
        threads += [threading.Thread(target=pull) for _ in range(2)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert token.balance_of(ALICE) + token.balance_of(BOB) == SUPPLY
        assert token.balance_of(BOB) == SUPPLY // 2 + 4 * 500 - 2 * 500 - 2 * 500
        assert token.allowance(BOB, CAROL) == SUPPLY - 2 * 500
