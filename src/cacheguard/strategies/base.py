"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Write strategy contract and the shared context strategies operate on.
"""

from __future__ import annotations

import logging
from collections.abc import Hashable
from dataclasses import dataclass, field
from typing import Any, Protocol

from ..errors import CACHE_MISS, CircuitOpen, SourceError, classify_source_error
from ..observability.metrics import (
    CACHE_CIRCUIT_OPEN,
    CACHE_HITS,
    CACHE_MISSES,
    CACHE_SOURCE_ERRORS,
    CacheMetrics,
    NoOpCacheMetrics,
)
from ..runtime.circuit_breaker import CircuitBreaker
from ..runtime.coalescing import RequestCoalescer
from ..sources.base import DataSource
from ..store.memory import CacheStore

logger = logging.getLogger("cacheguard.strategies")


@dataclass(frozen=True, slots=True)
class WriteAck:
    """Acknowledgement returned to callers of a cache write."""

    key: Hashable
    strategy: str
    deferred: bool = False
    upstream: Any = None


@dataclass(slots=True)
class StrategyContext:
    """
    Collaborators a strategy needs for one facade.

    Also tracks in-flight loads so a load that raced a write never caches the
    value it read before that write landed.
    """

    store: CacheStore
    breaker: CircuitBreaker
    source: DataSource
    metrics: CacheMetrics = field(default_factory=NoOpCacheMetrics)
    coalescer: RequestCoalescer | None = None
    _loads_in_flight: dict[Hashable, set[object]] = field(
        default_factory=dict, repr=False
    )
    _raced: set[object] = field(default_factory=set, repr=False)

    def lookup(self, key: Hashable) -> Any:
        """Cache lookup returning `CACHE_MISS` when absent, with hit/miss counters."""
        value = self.store.get(key, CACHE_MISS)
        if value is CACHE_MISS:
            self.metrics.incr(CACHE_MISSES)
        else:
            self.metrics.incr(CACHE_HITS)
        return value

    def mark_written(self, key: Hashable) -> None:
        """
        Record that `key` changed.

        Loads already in flight skip their cache fill, and readers arriving
        after the write no longer join a load that started before it.
        """
        self._raced.update(self._loads_in_flight.get(key, ()))
        if self.coalescer is not None:
            self.coalescer.forget(key)

    async def load_through(self, key: Hashable) -> Any:
        """Load `key` upstream through the breaker and cache the result."""
        if self.coalescer is None:
            return await self._load_and_fill(key)
        return await self.coalescer.run(key, lambda: self._load_and_fill(key))

    async def _load_and_fill(self, key: Hashable) -> Any:
        token = object()
        self._loads_in_flight.setdefault(key, set()).add(token)
        try:
            value = await self.call_source("load", lambda: self.source.load(key))
        finally:
            raced = token in self._raced
            self._raced.discard(token)
            tokens = self._loads_in_flight[key]
            tokens.discard(token)
            if not tokens:
                del self._loads_in_flight[key]
        if not raced:
            self.store.set(key, value)
        return value

    async def call_source(self, op: str, fn) -> Any:
        """
        Invoke one data-source coroutine through the breaker.

        Source exceptions are classified before the breaker sees them, so
        `NotFound` stays a healthy response and everything else counts as a
        failure.
        """

        async def invoke() -> Any:
            try:
                return await fn()
            except SourceError:
                raise
            except Exception as exc:
                raise classify_source_error(exc) from exc

        try:
            return await self.breaker.call(invoke)
        except CircuitOpen:
            self.metrics.incr(CACHE_CIRCUIT_OPEN, tags={"op": op})
            logger.warning(
                "Circuit '%s' rejected %s call", self.breaker.name, op
            )
            raise
        except SourceError as exc:
            self.metrics.incr(
                CACHE_SOURCE_ERRORS, tags={"op": op, "error": type(exc).__name__}
            )
            raise


class WriteStrategy(Protocol):
    """Capability interface selected once at facade construction."""

    strategy_id: str

    async def read(self, key: Hashable, ctx: StrategyContext) -> Any: ...

    async def write(
        self,
        key: Hashable,
        value: Any,
        ctx: StrategyContext,
        *,
        ttl_s: float | None = None,
    ) -> WriteAck: ...

    def discard(self, key: Hashable) -> bool: ...

    async def close(self) -> None: ...


class BaseWriteStrategy:
    """Shared lazy-load read path and no-op lifecycle hooks."""

    strategy_id = "base"

    async def read(self, key: Hashable, ctx: StrategyContext) -> Any:
        value = ctx.lookup(key)
        if value is not CACHE_MISS:
            return value
        return await ctx.load_through(key)

    def discard(self, key: Hashable) -> bool:
        _ = key
        return False

    async def close(self) -> None:
        return None
