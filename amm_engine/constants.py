"""Engine-wide constants.

Centralizes numeric limits and protocol parameters shared by the pools.
"""

# Maximum uint256 value; every stored amount must fit
UINT256_MAX = 2**256 - 1

# Fees are expressed in basis points (30 = 0.3%)
BPS_DENOMINATOR = 10_000

# Safety valve for the Newton-Raphson solvers, not an expected path
MAX_SOLVER_ITERATIONS = 255

# Most recent events a pool keeps in memory
MAX_POOL_EVENTS = 10_000

# Two-asset pools only
N_COINS = 2

# Defaults (see EngineConfig for the overridable versions)
DEFAULT_CONSTANT_PRODUCT_FEE_BPS = 30
DEFAULT_STABLE_FEE_BPS = 4
DEFAULT_AMPLIFICATION = 100
MAX_AMPLIFICATION = 1_000_000
