"""Pool factory and pair registry.

Binds exactly one pool to each canonical (token_a, token_b) pair. Pairs are
order independent: (X, Y) and (Y, X) name the same pool.
"""

from __future__ import annotations

import threading
from typing import TypeAlias

import structlog

from amm_engine.config import DEFAULT_ENGINE_CONFIG, EngineConfig
from amm_engine.errors import IdenticalTokens, InvalidPoolParameters, PairAlreadyExists, PoolNotFound
from amm_engine.models import normalize_address
from amm_engine.pools.constant_product import ConstantProductPool
from amm_engine.pools.stable import StablePool
from amm_engine.pools.types import PoolKind
from amm_engine.tokens.base import FungibleToken

logger = structlog.get_logger()

# Union type for all pool types
AnyPool: TypeAlias = ConstantProductPool | StablePool

PairKey: TypeAlias = tuple[str, str]


def pair_key(token_a: FungibleToken | str, token_b: FungibleToken | str) -> PairKey:
    """Canonical registry key: both addresses normalized and sorted."""
    first = normalize_address(token_a if isinstance(token_a, str) else token_a.address)
    second = normalize_address(token_b if isinstance(token_b, str) else token_b.address)
    return (first, second) if first <= second else (second, first)


class PoolFactory:
    """Creates pools and keeps the pair registry.

    Fee and amplification defaults come from the EngineConfig given at
    construction; values passed to create_pool take precedence.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self.config = config or DEFAULT_ENGINE_CONFIG
        self._pools: dict[PairKey, AnyPool] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._pools)

    def __contains__(self, pair: object) -> bool:
        if not isinstance(pair, tuple) or len(pair) != 2:
            return False
        return pair_key(pair[0], pair[1]) in self._pools

    def create_pool(
        self,
        token_a: FungibleToken,
        token_b: FungibleToken,
        fee_bps: int | None = None,
        kind: PoolKind | str = PoolKind.CONSTANT_PRODUCT,
        amplification: int | None = None,
    ) -> AnyPool:
        """Create and register a pool for a new token pair.

        Args:
            token_a: One side of the pair
            token_b: The other side (order does not matter)
            fee_bps: Fee rate in basis points, defaults per kind from config
            kind: PoolKind.CONSTANT_PRODUCT or PoolKind.STABLE
            amplification: StableSwap A, defaults from config. Only valid for
                stable pools.

        Returns:
            The new pool

        Raises:
            IdenticalTokens: If both tokens are the same
            PairAlreadyExists: If the pair already has a pool
            InvalidPoolParameters: If fee, kind or amplification are invalid
        """
        key = pair_key(token_a, token_b)
        if key[0] == key[1]:
            raise IdenticalTokens(f"Cannot create a pool of {key[0]} against itself")
        try:
            pool_kind = PoolKind(kind)
        except ValueError as err:
            raise InvalidPoolParameters(f"Unknown pool kind: {kind}") from err

        with self._lock:
            if key in self._pools:
                raise PairAlreadyExists(f"Pool for {key[0]}/{key[1]} already exists: {self._pools[key].address}")
            pool = self._build(pool_kind, token_a, token_b, fee_bps, amplification)
            self._pools[key] = pool

        logger.info(
            "pool_created",
            pool=pool.address,
            kind=pool_kind.value,
            token_a=key[0][-8:],
            token_b=key[1][-8:],
            fee_bps=pool.fee_bps,
        )
        return pool

    def get_pool(self, token_a: FungibleToken | str, token_b: FungibleToken | str) -> AnyPool:
        """Look up the pool for a pair (order independent).

        Raises:
            PoolNotFound: If no pool is registered for the pair
        """
        key = pair_key(token_a, token_b)
        pool = self._pools.get(key)
        if pool is None:
            raise PoolNotFound(f"No pool for {key[0]}/{key[1]}")
        return pool

    def all_pools(self) -> list[AnyPool]:
        """All registered pools in creation order."""
        return list(self._pools.values())

    def _build(
        self,
        kind: PoolKind,
        token_a: FungibleToken,
        token_b: FungibleToken,
        fee_bps: int | None,
        amplification: int | None,
    ) -> AnyPool:
        if kind is PoolKind.CONSTANT_PRODUCT:
            if amplification is not None:
                raise InvalidPoolParameters("Amplification only applies to stable pools")
            return ConstantProductPool(
                token_a,
                token_b,
                self.config.constant_product_fee_bps if fee_bps is None else fee_bps,
                max_events=self.config.max_pool_events,
            )
        return StablePool(
            token_a,
            token_b,
            self.config.stable_fee_bps if fee_bps is None else fee_bps,
            self.config.default_amplification if amplification is None else amplification,
            max_amplification=self.config.max_amplification,
            max_iterations=self.config.max_solver_iterations,
            max_events=self.config.max_pool_events,
        )
