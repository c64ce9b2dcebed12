"""
Per-chain token tables resolved from the aggregator's metadata endpoint.

Lookups are case-insensitive: symbols and addresses are lower-cased when the
table is built and when it is queried. An unknown symbol is a hard failure;
a swap is never attempted against a guessed address.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Final

from beartype import beartype

from stratex_core.dex.client import DexAggregatorClient
from stratex_core.dex.models import ChainMetadata
from stratex_core.executor.exceptions import InvalidInputError
from stratex_core.logs.structlog import logger

CHAIN_NAMES: Final[dict[int, str]] = {
    1: "mainnet",
    8453: "base",
    34443: "mode",
}


@beartype
def chain_name(chain_id: int) -> str:
    return CHAIN_NAMES.get(chain_id, "unknown")


@dataclass(frozen=True)
class TokenInfo:
    symbol: str
    address: str
    decimals: int


@dataclass(frozen=True)
class ChainTokenTable:
    chain_id: int
    native_symbol: str
    by_symbol: dict[str, TokenInfo] = field(default_factory=dict)
    by_address: dict[str, TokenInfo] = field(default_factory=dict)

    @property
    def name(self) -> str:
        return chain_name(self.chain_id)

    @classmethod
    def from_metadata(cls, metadata: ChainMetadata) -> ChainTokenTable:
        by_symbol: dict[str, TokenInfo] = {}
        by_address: dict[str, TokenInfo] = {}
        for entry in metadata.tokens:
            info = TokenInfo(
                symbol=entry.symbol.strip().lower(),
                address=entry.address.strip().lower(),
                decimals=entry.decimals,
            )
            # first listing of a symbol wins
            by_symbol.setdefault(info.symbol, info)
            by_address.setdefault(info.address, info)
        return cls(
            chain_id=metadata.id,
            native_symbol=metadata.native_symbol.lower(),
            by_symbol=by_symbol,
            by_address=by_address,
        )

    @beartype
    def token(self, symbol: str) -> TokenInfo:
        info = self.by_symbol.get(symbol.strip().lower())
        if info is None:
            raise InvalidInputError("token", f"unknown token {symbol!r} on chain {self.chain_id} ({self.name})")
        return info

    @beartype
    def symbol_for(self, address: str) -> str | None:
        info = self.by_address.get(address.strip().lower())
        return info.symbol if info else None

    def __len__(self) -> int:
        return len(self.by_symbol)


class ChainMetadataResolver:
    """
    Fetches each chain's token table once and serves it from cache.

    Concurrent resolves of the same chain share one fetch. The cache is
    read-only after population; `invalidate` drops entries explicitly.
    """

    @beartype
    def __init__(self, client: DexAggregatorClient) -> None:
        self.client = client
        self._tables: dict[int, ChainTokenTable] = {}
        self._locks: dict[int, asyncio.Lock] = {}
        self.logger = logger.bind(component=self.__class__.__name__)

    def cached(self, chain_id: int) -> ChainTokenTable | None:
        return self._tables.get(chain_id)

    @beartype
    async def resolve(self, chain_id: int) -> ChainTokenTable:
        table = self._tables.get(chain_id)
        if table is not None:
            return table

        lock = self._locks.setdefault(chain_id, asyncio.Lock())
        async with lock:
            table = self._tables.get(chain_id)
            if table is not None:
                return table
            metadata = await self.client.fetch_metadata(chain_id)
            if metadata.id != chain_id:
                raise InvalidInputError(
                    "chain", f"metadata for chain {chain_id} describes chain {metadata.id}"
                )
            table = ChainTokenTable.from_metadata(metadata)
            self._tables[chain_id] = table
            self.logger.info(f"chain {chain_id} ({table.name}) - loaded {len(table)} tokens")
            return table

    async def prefetch(self, chain_ids: Iterable[int]) -> dict[int, ChainTokenTable]:
        """Resolve several chains concurrently; the first failure propagates."""
        unique = list(dict.fromkeys(chain_ids))
        tables = await asyncio.gather(*(self.resolve(chain_id) for chain_id in unique))
        return dict(zip(unique, tables, strict=True))

    def invalidate(self, chain_id: int | None = None) -> None:
        if chain_id is None:
            self._tables.clear()
            self.logger.info("metadata cache cleared")
            return
        self._tables.pop(chain_id, None)
        self.logger.info(f"chain {chain_id} - metadata cache entry dropped")
