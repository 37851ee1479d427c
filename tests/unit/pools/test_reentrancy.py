"""Tests for pool serialization, re-entrancy blocking and atomic settlement."""

import threading

import pytest

from amm_engine.errors import ReentrancyBlocked, TransferFailed
from amm_engine.pools import ConstantProductPool, StablePool
from amm_engine.tokens import InMemoryToken
from tests.helpers import (
    ALICE,
    BOB,
    BOB_FUNDS,
    SUPPLY,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
    approve_pool,
    pool_balances,
    seed_pool,
)


class HookToken(InMemoryToken):
    """Token that runs a callback before paying out of a transfer."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.on_transfer = None

    def transfer(self, sender, to, amount):
        if self.on_transfer is not None:
            hook, self.on_transfer = self.on_transfer, None
            hook()
        return super().transfer(sender, to, amount)


class RefusingToken(InMemoryToken):
    """Token whose outgoing transfers report failure once armed."""

    refuse = False

    def transfer(self, sender, to, amount):
        if self.refuse:
            return False
        return super().transfer(sender, to, amount)


def _tokens(token_cls):
    token_a = InMemoryToken("UToken", "UTK", ALICE, SUPPLY, address=TOKEN_A)
    token_b = token_cls("PolyToken", "POLY", ALICE, SUPPLY, address=TOKEN_B)
    for token in (token_a, token_b):
        token.transfer(ALICE, BOB, BOB_FUNDS)
    return token_a, token_b


@pytest.fixture(params=[ConstantProductPool, StablePool])
def pool_cls(request):
    return request.param


class TestReentrancy:
    """Nested calls from inside an operation."""

    def test_nested_swap_is_blocked(self, pool_cls):
        """A token calling back into the pool mid-swap aborts the whole swap."""
        token_a, token_b = _tokens(HookToken)
        pool = pool_cls(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)
        approve_pool(pool, BOB)

        token_b.on_transfer = lambda: pool.swap(BOB, 1_000, token_a)
        with pytest.raises(ReentrancyBlocked):
            pool.swap(BOB, 1_000, token_a)

        assert pool.get_reserves() == (10**6, 10**6)
        assert pool_balances(pool) == (10**6, 10**6)
        assert token_a.balance_of(BOB) == BOB_FUNDS
        assert token_b.balance_of(BOB) == BOB_FUNDS

    def test_nested_withdrawal_is_blocked(self):
        """Liquidity cannot be pulled out while a swap is settling."""
        token_a, token_b = _tokens(HookToken)
        pool = ConstantProductPool(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)
        approve_pool(pool, BOB)

        token_b.on_transfer = lambda: pool.remove_liquidity(ALICE, 10)
        with pytest.raises(ReentrancyBlocked):
            pool.swap(BOB, 1_000, token_a)
        assert pool.share_of(ALICE) == 10**6

    def test_lock_released_after_blocked_call(self):
        """The pool keeps working once a blocked call has unwound."""
        token_a, token_b = _tokens(HookToken)
        pool = ConstantProductPool(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)
        approve_pool(pool, BOB)

        token_b.on_transfer = lambda: pool.swap(BOB, 1_000, token_a)
        with pytest.raises(ReentrancyBlocked):
            pool.swap(BOB, 1_000, token_a)

        assert pool.swap(BOB, 1_000, token_a).amount_out > 0

    def test_quote_is_allowed_inside_operation(self):
        """Read-only calls do not take the lock."""
        token_a, token_b = _tokens(HookToken)
        pool = ConstantProductPool(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)
        approve_pool(pool, BOB)
        quotes = []
        expected = pool.quote(1_000, token_a)

        # Reserves are committed after settlement, so the quote sees the old state
        token_b.on_transfer = lambda: quotes.append(pool.quote(1_000, token_a))
        pool.swap(BOB, 1_000, token_a)
        assert quotes == [expected]


class TestAtomicity:
    """Failed token movements leave no trace."""

    def test_refused_payout_rolls_back_input(self):
        """If the output transfer fails, the input is returned."""
        token_a, token_b = _tokens(RefusingToken)
        pool = ConstantProductPool(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)
        approve_pool(pool, BOB, 5_000)

        token_b.refuse = True
        with pytest.raises(TransferFailed):
            pool.swap(BOB, 1_000, token_a)

        assert token_a.balance_of(BOB) == BOB_FUNDS
        assert token_a.allowance(BOB, pool.address) == 5_000
        assert pool.get_reserves() == (10**6, 10**6)
        assert pool_balances(pool) == (10**6, 10**6)
        assert len(pool.events) == 2

    def test_refused_withdrawal_keeps_shares(self):
        """If a withdrawal payout fails, shares and reserves are untouched."""
        token_a, token_b = _tokens(RefusingToken)
        pool = ConstantProductPool(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)

        token_b.refuse = True
        with pytest.raises(TransferFailed):
            pool.remove_liquidity(ALICE, 500_000)

        assert pool.share_of(ALICE) == 10**6
        assert pool_balances(pool) == (10**6, 10**6)


class TestConcurrency:
    """Operations from several threads."""

    def test_concurrent_swaps_are_serialized(self, pool_cls):
        """Reserves match balances after many concurrent swaps."""
        token_a, token_b = _tokens(InMemoryToken)
        pool = pool_cls(token_a, token_b)
        seed_pool(pool, ALICE, 10**12, 10**12)
        approve_pool(pool, BOB)
        errors = []

        def trade(token):
            try:
                for _ in range(25):
                    pool.swap(BOB, 10**6, token)
            except Exception as err:  # noqa: BLE001
                errors.append(err)

        threads = [threading.Thread(target=trade, args=(token,)) for token in (token_a, token_b) * 4]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert pool_balances(pool) == pool.get_reserves()
        # Mint + Sync, then Swap + Sync per trade
        assert len(pool.events) == 2 + 2 * 25 * 8

    def test_other_thread_waits_instead_of_failing(self):
        """A second thread blocks on the lock rather than raising."""
        token_a, token_b = _tokens(HookToken)
        pool = ConstantProductPool(token_a, token_b)
        seed_pool(pool, ALICE, 10**6, 10**6)
        approve_pool(pool, BOB)

        entered = threading.Event()
        release = threading.Event()
        results = []

        def hold():
            entered.set()
            release.wait(timeout=5)

        token_b.on_transfer = hold
        first = threading.Thread(target=lambda: results.append(pool.swap(BOB, 1_000, token_a)))
        second = threading.Thread(target=lambda: results.append(pool.swap(BOB, 1_000, token_a)))

        first.start()
        assert entered.wait(timeout=5)
        second.start()
        second.join(timeout=0.1)
        assert second.is_alive()

        release.set()
        first.join(timeout=5)
        second.join(timeout=5)
        assert len(results) == 2
        assert pool_balances(pool) == pool.get_reserves()

    def test_pools_sharing_a_token(self):
        """Pools in different threads that share a token lose no transfers."""
        token_a, token_b = _tokens(InMemoryToken)
        token_c = InMemoryToken("ThirdToken", "TRD", ALICE, SUPPLY, address=TOKEN_C)
        token_c.transfer(ALICE, BOB, BOB_FUNDS)
        pools = [ConstantProductPool(token_a, token_b), StablePool(token_a, token_c)]
        for pool in pools:
            seed_pool(pool, ALICE, 10**12, 10**12)
            approve_pool(pool, BOB)
        errors = []

        def trade(pool):
            try:
                for _ in range(50):
                    pool.swap(BOB, 10**6, pool.token_a)
                    pool.swap(BOB, 10**6, pool.token_b)
            except Exception as err:  # noqa: BLE001
                errors.append(err)

        threads = [threading.Thread(target=trade, args=(pool,)) for pool in pools * 3]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        for pool in pools:
            assert pool_balances(pool) == pool.get_reserves()
        holders = [ALICE, BOB] + [pool.address for pool in pools]
        assert sum(token_a.balance_of(holder) for holder in holders) == SUPPLY
