"""Fungible token interface consumed by the pools, plus an in-memory ledger."""

from amm_engine.tokens.base import FungibleToken
from amm_engine.tokens.memory import InMemoryToken

__all__ = ["FungibleToken", "InMemoryToken"]
