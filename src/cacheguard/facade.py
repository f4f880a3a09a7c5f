"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Public cache API combining store, write strategy and circuit breaker.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass
from typing import Any

from .observability.metrics import CACHE_WRITES, CacheMetrics, NoOpCacheMetrics
from .runtime.circuit_breaker import CircuitBreaker, CircuitSnapshot
from .runtime.coalescing import RequestCoalescer
from .runtime.contracts import CoalescingPolicy
from .sources.base import DataSource
from .store.base import CacheStats
from .store.memory import CacheStore
from .store.sweeper import ExpirySweeper
from .strategies.base import StrategyContext, WriteAck, WriteStrategy
from .strategies.write_behind import WriteBehindStrategy

logger = logging.getLogger("cacheguard.facade")


@dataclass(frozen=True, slots=True)
class FacadeStats:
    """Combined view of store counters, breaker state and pending writes."""

    strategy: str
    store: CacheStats
    breaker: CircuitSnapshot
    pending_writes: int


class CacheFacade:
    """
    Read/write API over one store, one breaker and a caller-owned source.

    The facade owns `store` and `breaker`; `source` is shared by reference
    and never closed here. The strategy is fixed for the facade's lifetime.
    """

    def __init__(
        self,
        store: CacheStore,
        breaker: CircuitBreaker,
        source: DataSource,
        strategy: WriteStrategy,
        *,
        metrics: CacheMetrics | None = None,
        coalescing: CoalescingPolicy | None = None,
        sweeper: ExpirySweeper | None = None,
    ) -> None:
        self._store = store
        self._breaker = breaker
        self._source = source
        self._strategy = strategy
        self._metrics: CacheMetrics = metrics or NoOpCacheMetrics()
        coalescing = coalescing or CoalescingPolicy()
        self._ctx = StrategyContext(
            store=store,
            breaker=breaker,
            source=source,
            metrics=self._metrics,
            coalescer=RequestCoalescer() if coalescing.enabled else None,
        )
        self._sweeper = sweeper
        self._closed = False

    @property
    def store(self) -> CacheStore:
        return self._store

    @property
    def breaker(self) -> CircuitBreaker:
        return self._breaker

    @property
    def strategy(self) -> WriteStrategy:
        return self._strategy

    async def get(self, key: Hashable) -> Any:
        """
        Return the value for `key`, loading it upstream on a miss.

        Raises:
            NotFound: The key does not exist upstream.
            CircuitOpen: The breaker is rejecting upstream calls.
            SourceUnavailable: The source failed.
        """
        return await self._strategy.read(key, self._ctx)

    async def set(
        self, key: Hashable, value: Any, ttl_s: float | None = None
    ) -> WriteAck:
        """Write `value` according to the configured strategy."""
        ack = await self._strategy.write(key, value, self._ctx, ttl_s=ttl_s)
        self._metrics.incr(CACHE_WRITES, tags={"strategy": self._strategy.strategy_id})
        return ack

    async def delete(self, key: Hashable) -> None:
        """Drop the cached entry and any pending deferred write for `key`."""
        self._store.delete(key)
        self._ctx.mark_written(key)
        if self._strategy.discard(key):
            logger.debug("Discarded pending write for key=%r", key)

    async def invalidate(self, key: Hashable) -> None:
        """Drop the cached entry only; pending deferred writes still flush."""
        self._store.delete(key)
        self._ctx.mark_written(key)

    def stats(self) -> FacadeStats:
        pending = 0
        if isinstance(self._strategy, WriteBehindStrategy):
            pending = len(self._strategy.pending_keys())
        return FacadeStats(
            strategy=self._strategy.strategy_id,
            store=self._store.stats(),
            breaker=self._breaker.snapshot(),
            pending_writes=pending,
        )

    async def start(self) -> None:
        """Start background maintenance, when a sweeper was supplied."""
        if self._sweeper is not None and not self._sweeper.is_running:
            await self._sweeper.start()

    async def close(self) -> None:
        """Stop maintenance and close the strategy (draining deferred writes)."""
        if self._closed:
            return
        self._closed = True
        if self._sweeper is not None and self._sweeper.is_running:
            await self._sweeper.shutdown()
        await self._strategy.close()
        logger.info("CacheFacade closed (strategy=%s)", self._strategy.strategy_id)

    async def __aenter__(self) -> "CacheFacade":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
