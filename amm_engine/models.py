"""Validated parameter types and pool event records.

Pools validate their construction parameters here and append an event record
for every state change, in the order the changes were committed.
"""

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from amm_engine.constants import BPS_DENOMINATOR, UINT256_MAX

# Unsigned 256-bit amount
Amount = Annotated[int, Field(ge=0, le=UINT256_MAX, description="uint256 token amount")]

# Fee rate in basis points, strictly below 100%
FeeBps = Annotated[int, Field(ge=0, lt=BPS_DENOMINATOR, description="Fee in basis points")]


def normalize_address(address: str) -> str:
    """Normalize a token or account identifier for comparison and ordering.

    Identifiers are opaque; normalization only strips surrounding whitespace
    and lowercases, so "0xAbC" and "0xabc" name the same asset.

    Raises:
        ValueError: If the identifier is empty
    """
    normalized = address.strip().lower()
    if not normalized:
        raise ValueError("Address must be a non-empty string")
    return normalized


class PoolParams(BaseModel):
    """Immutable parameters fixed when a pool is created."""

    model_config = ConfigDict(frozen=True)

    token_a: str = Field(min_length=1)
    token_b: str = Field(min_length=1)
    fee_bps: FeeBps
    amplification: int | None = Field(default=None, ge=1)


# =============================================================================
# Events
# =============================================================================


class PoolEvent(BaseModel):
    """Base class for records emitted by pool operations."""

    model_config = ConfigDict(frozen=True)

    pool: str


class Mint(PoolEvent):
    """Liquidity added and shares minted to a provider."""

    event: Literal["mint"] = "mint"
    provider: str
    amount_a: Amount
    amount_b: Amount
    shares: Amount


class Burn(PoolEvent):
    """Shares burned and liquidity returned to a provider."""

    event: Literal["burn"] = "burn"
    provider: str
    amount_a: Amount
    amount_b: Amount
    shares: Amount


class Swap(PoolEvent):
    """Exact-input swap executed."""

    event: Literal["swap"] = "swap"
    sender: str
    token_in: str
    token_out: str
    amount_in: Amount
    amount_out: Amount


class Sync(PoolEvent):
    """New reserve state after any mutation."""

    event: Literal["sync"] = "sync"
    reserve_a: Amount
    reserve_b: Amount
