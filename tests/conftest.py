"""Pytest configuration and fixtures."""

import pytest

from amm_engine.pools import ConstantProductPool, StablePool
from amm_engine.tokens import InMemoryToken
from tests.helpers import ALICE, BOB, BOB_FUNDS, SUPPLY, TOKEN_A, TOKEN_B, approve_pool


@pytest.fixture
def token_a() -> InMemoryToken:
    """UToken, owned by ALICE; sorts first in every pair."""
    token = InMemoryToken("UToken", "UTK", ALICE, SUPPLY, address=TOKEN_A)
    token.transfer(ALICE, BOB, BOB_FUNDS)
    return token


@pytest.fixture
def token_b() -> InMemoryToken:
    """PolyToken, owned by ALICE; sorts second in every pair."""
    token = InMemoryToken("PolyToken", "POLY", ALICE, SUPPLY, address=TOKEN_B)
    token.transfer(ALICE, BOB, BOB_FUNDS)
    return token


@pytest.fixture
def cp_pool(token_a: InMemoryToken, token_b: InMemoryToken) -> ConstantProductPool:
    """Empty constant-product pool (30 bps) with ALICE and BOB approved."""
    pool = ConstantProductPool(token_a, token_b, fee_bps=30)
    approve_pool(pool, ALICE)
    approve_pool(pool, BOB)
    return pool


@pytest.fixture
def cp_pool_no_fee(token_a: InMemoryToken, token_b: InMemoryToken) -> ConstantProductPool:
    """Empty zero-fee constant-product pool with ALICE and BOB approved."""
    pool = ConstantProductPool(token_a, token_b, fee_bps=0)
    approve_pool(pool, ALICE)
    approve_pool(pool, BOB)
    return pool


@pytest.fixture
def stable_pool(token_a: InMemoryToken, token_b: InMemoryToken) -> StablePool:
    """Empty curve-like pool (4 bps, A=100) with ALICE and BOB approved."""
    pool = StablePool(token_a, token_b, fee_bps=4, amplification=100)
    approve_pool(pool, ALICE)
    approve_pool(pool, BOB)
    return pool
