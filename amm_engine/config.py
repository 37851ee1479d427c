"""Engine configuration."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

from amm_engine.constants import (
    DEFAULT_AMPLIFICATION,
    DEFAULT_CONSTANT_PRODUCT_FEE_BPS,
    DEFAULT_STABLE_FEE_BPS,
    MAX_AMPLIFICATION,
    MAX_POOL_EVENTS,
    MAX_SOLVER_ITERATIONS,
)

ENV_PREFIX = "AMM_ENGINE_"


@dataclass(frozen=True)
class EngineConfig:
    """Centralized configuration for pool creation.

    Holds the defaults the factory applies when a caller does not pass them
    explicitly. Fee rates and amplification are fixed per pool at creation;
    changing the config never affects existing pools.

    Attributes:
        constant_product_fee_bps: Default fee for constant-product pools (30 = 0.3%)
        stable_fee_bps: Default fee for curve-like pools (4 = 0.04%)
        default_amplification: Default StableSwap amplification A
        max_amplification: Upper bound accepted for A
        max_solver_iterations: Newton-Raphson iteration bound
        max_pool_events: Most recent events each pool keeps
    """

    constant_product_fee_bps: int = DEFAULT_CONSTANT_PRODUCT_FEE_BPS
    stable_fee_bps: int = DEFAULT_STABLE_FEE_BPS
    default_amplification: int = DEFAULT_AMPLIFICATION
    max_amplification: int = MAX_AMPLIFICATION
    max_solver_iterations: int = MAX_SOLVER_ITERATIONS
    max_pool_events: int = MAX_POOL_EVENTS

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> EngineConfig:
        """Build a config from AMM_ENGINE_* environment variables.

        Unset variables keep their defaults, e.g. AMM_ENGINE_STABLE_FEE_BPS=5.

        Raises:
            ValueError: If a variable is set but is not an integer
        """
        env = os.environ if environ is None else environ
        overrides: dict[str, int] = {}
        for name in cls.__dataclass_fields__:
            raw = env.get(f"{ENV_PREFIX}{name.upper()}")
            if raw is None:
                continue
            try:
                overrides[name] = int(raw)
            except ValueError as err:
                raise ValueError(f"{ENV_PREFIX}{name.upper()} must be an integer: '{raw}'") from err
        return cls(**overrides)


# Default configuration instance
DEFAULT_ENGINE_CONFIG = EngineConfig()
