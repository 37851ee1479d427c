"""Test helpers module for shared test utilities.

- constants: Accounts, token addresses and supplies
- factories: Approve / seed helpers for pools
"""

from tests.helpers.constants import (
    ALICE,
    BOB,
    BOB_FUNDS,
    CAROL,
    SUPPLY,
    TOKEN_A,
    TOKEN_B,
    TOKEN_C,
)
from tests.helpers.factories import approve_pool, pool_balances, seed_pool

__all__ = [
    # Constants
    "ALICE",
    "BOB",
    "CAROL",
    "TOKEN_A",
    "TOKEN_B",
    "TOKEN_C",
    "SUPPLY",
    "BOB_FUNDS",
    # Factories
    "approve_pool",
    "seed_pool",
    "pool_balances",
]
