"""Two-asset AMM pricing and settlement engine."""

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.pools import (
    ConstantProductPool,
    LiquidityLedger,
    PoolFactory,
    PoolKind,
    PoolStatus,
    StablePool,
)
from amm_engine.tokens import FungibleToken, InMemoryToken

__version__ = "0.1.0"
__all__ = [
    "ConstantProductPool",
    "StablePool",
    "PoolFactory",
    "PoolKind",
    "PoolStatus",
    "LiquidityLedger",
    "FungibleToken",
    "InMemoryToken",
    "EngineConfig",
    "DEFAULT_ENGINE_CONFIG",
    "__version__",
]
