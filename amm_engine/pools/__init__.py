"""Pool package.

Provides the two pool variants, the liquidity ledger and the pair registry.
"""

from .base import BasePool, pool_address
from .constant_product import ConstantProductPool
from .factory import AnyPool, PoolFactory, pair_key
from .ledger import LiquidityLedger
from .settlement import Settlement
from .stable import StablePool
from .types import (
    AddLiquidityResult,
    PoolKind,
    PoolStatus,
    RemoveLiquidityResult,
    SwapResult,
)

__all__ = [
    "BasePool",
    "ConstantProductPool",
    "StablePool",
    "AnyPool",
    "PoolFactory",
    "pair_key",
    "pool_address",
    "LiquidityLedger",
    "Settlement",
    "PoolKind",
    "PoolStatus",
    "AddLiquidityResult",
    "RemoveLiquidityResult",
    "SwapResult",
]
