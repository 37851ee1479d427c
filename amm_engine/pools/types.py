"""Pool type definitions and operation results."""

from dataclasses import dataclass
from enum import Enum


class PoolKind(str, Enum):
    """Pricing invariant used by a pool."""

    CONSTANT_PRODUCT = "constant_product"
    STABLE = "stable"


class PoolStatus(Enum):
    """Lifecycle state of a pool.

    EMPTY -> SEEDED on the first deposit, SEEDED -> ACTIVE on any later
    successful operation, and back to EMPTY when every share is burned.
    """

    EMPTY = "empty"
    SEEDED = "seeded"
    ACTIVE = "active"


@dataclass(frozen=True)
class AddLiquidityResult:
    """Outcome of a deposit: shares minted and the amounts actually pulled."""

    shares: int
    amount_a: int
    amount_b: int


@dataclass(frozen=True)
class RemoveLiquidityResult:
    """Outcome of a withdrawal: amounts pushed to the provider."""

    amount_a: int
    amount_b: int


@dataclass(frozen=True)
class SwapResult:
    """Outcome of an exact-input swap."""

    amount_in: int
    amount_out: int
    token_in: str
    token_out: str
    pool_address: str
