"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Write-behind strategy: cache now, propagate upstream after a delay.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from threading import Lock
from typing import Any

from ..errors import (
    CACHE_MISS,
    CacheGuardError,
    CircuitOpen,
    ConfigurationError,
    SourceError,
)
from ..observability.metrics import CACHE_WRITE_BEHIND_FLUSH
from ..runtime.contracts import WriteBehindPolicy
from ..utils import backoff_delay, maybe_await
from .base import BaseWriteStrategy, StrategyContext, WriteAck

logger = logging.getLogger("cacheguard.strategies.write_behind")


@dataclass(frozen=True, slots=True)
class WriteBehindFailure:
    """
    Terminal failure of one deferred write.

    Attributes:
        key: Cache key whose write was dropped.
        value: Latest value that never reached the source.
        error: Last error seen, or `None` when dropped on shutdown.
        attempts: Upstream attempts made for this value.
        reason: `retry_budget_exhausted` or `shutdown`.
    """

    key: Hashable
    value: Any
    error: BaseException | None
    attempts: int
    reason: str


FailureCallback = Callable[[WriteBehindFailure], Awaitable[None] | None]


@dataclass(slots=True)
class _PendingWrite:
    value: Any
    ttl_s: float | None


class WriteBehindStrategy(BaseWriteStrategy):
    """
    Caches writes immediately and flushes them upstream after `delay_s`.

    At most one flush task exists per key. Writes that land while a flush is
    scheduled or in flight only replace the pending value, so rapid writes
    coalesce into one upstream call carrying the latest value. Failed flushes
    are retried with capped exponential backoff; after `max_retries` the value
    is dropped and reported to `on_failure`.
    Rejections by an open circuit never reach the source, so they wait out
    the breaker's open timeout instead of consuming retries.
    """

    strategy_id = "write-behind"

    def __init__(
        self,
        policy: WriteBehindPolicy | None = None,
        *,
        on_failure: FailureCallback | None = None,
    ) -> None:
        self._policy = policy or WriteBehindPolicy()
        if self._policy.delay_s < 0:
            raise ConfigurationError("delay_s must be >= 0")
        if self._policy.max_retries < 0:
            raise ConfigurationError("max_retries must be >= 0")
        if self._policy.backoff_base_s < 0 or self._policy.backoff_max_s < 0:
            raise ConfigurationError("write-behind backoff must be >= 0")
        self._on_failure = on_failure
        self._pending: dict[Hashable, _PendingWrite] = {}
        self._tasks: dict[Hashable, asyncio.Task[None]] = {}
        self._lock = Lock()
        self._wake = asyncio.Event()
        self._flushers = 0
        self._closed = False

    @property
    def policy(self) -> WriteBehindPolicy:
        return self._policy

    def pending_keys(self) -> list[Hashable]:
        with self._lock:
            return list(self._pending)

    async def read(self, key: Hashable, ctx: StrategyContext) -> Any:
        value = ctx.lookup(key)
        if value is not CACHE_MISS:
            return value
        with self._lock:
            pending = self._pending.get(key)
        if pending is not None:
            # Evicted before its flush landed; the pending value is newest.
            ctx.store.set(key, pending.value, pending.ttl_s)
            return pending.value
        return await ctx.load_through(key)

    async def write(
        self,
        key: Hashable,
        value: Any,
        ctx: StrategyContext,
        *,
        ttl_s: float | None = None,
    ) -> WriteAck:
        if self._closed:
            raise CacheGuardError("write-behind strategy is closed")
        ctx.store.set(key, value, ttl_s)
        ctx.mark_written(key)
        with self._lock:
            self._pending[key] = _PendingWrite(value=value, ttl_s=ttl_s)
            if key not in self._tasks:
                self._tasks[key] = asyncio.create_task(self._flush_loop(key, ctx))
        return WriteAck(key=key, strategy=self.strategy_id, deferred=True)

    def discard(self, key: Hashable) -> bool:
        """Forget the pending write for `key`; its flush task exits unused."""
        with self._lock:
            return self._pending.pop(key, None) is not None

    async def flush(self, *, timeout_s: float | None = None) -> int:
        """Wake every scheduled flush now and wait for them; returns tasks finished."""
        with self._lock:
            tasks = list(self._tasks.values())
        if not tasks:
            return 0
        # The wake event stays set until the last overlapping flush returns.
        self._flushers += 1
        self._wake.set()
        try:
            done, _ = await asyncio.wait(tasks, timeout=timeout_s)
        finally:
            self._flushers -= 1
            if not self._flushers:
                self._wake.clear()
        return len(done)

    async def close(self) -> None:
        """Flush pending writes, then cancel and report whatever is left."""
        self._closed = True
        await self.flush(timeout_s=self._policy.shutdown_timeout_s)
        with self._lock:
            stragglers = list(self._tasks.values())
        for task in stragglers:
            task.cancel()
        if stragglers:
            await asyncio.gather(*stragglers, return_exceptions=True)
        with self._lock:
            dropped = list(self._pending.items())
            self._pending.clear()
            self._tasks.clear()
        for key, pending in dropped:
            logger.error("Write-behind dropped pending write on shutdown (key=%r)", key)
            await self._report(
                WriteBehindFailure(
                    key=key,
                    value=pending.value,
                    error=None,
                    attempts=0,
                    reason="shutdown",
                )
            )

    async def _flush_loop(self, key: Hashable, ctx: StrategyContext) -> None:
        task = asyncio.current_task()
        delay_s = self._policy.delay_s
        attempts = 0
        try:
            while True:
                await self._sleep(delay_s)
                with self._lock:
                    pending = self._pending.get(key)
                    if pending is None:
                        self._tasks.pop(key, None)
                        return

                try:
                    await ctx.call_source(
                        "write", lambda: ctx.source.write(key, pending.value)
                    )
                except CircuitOpen as exc:
                    # Rejected without reaching the source; not an attempt.
                    wait_s = max(exc.retry_after_s or 0.0, self._policy.backoff_base_s)
                    ctx.metrics.incr(CACHE_WRITE_BEHIND_FLUSH, tags={"outcome": "deferred"})
                    logger.warning(
                        "Write-behind flush deferred while circuit is open (key=%r, retry_in=%.2fs)",
                        key,
                        wait_s,
                    )
                    await asyncio.sleep(wait_s)
                    delay_s = 0.0
                    continue
                except SourceError as exc:
                    attempts += 1
                    if attempts <= self._policy.max_retries:
                        delay_s = backoff_delay(
                            attempts,
                            self._policy.backoff_base_s,
                            self._policy.backoff_max_s,
                            self._policy.backoff_jitter_s,
                        )
                        ctx.metrics.incr(CACHE_WRITE_BEHIND_FLUSH, tags={"outcome": "retry"})
                        logger.warning(
                            "Write-behind flush failed (key=%r, attempt=%d/%d, retry_in=%.2fs): %s",
                            key,
                            attempts,
                            self._policy.max_retries + 1,
                            delay_s,
                            exc,
                        )
                        continue

                    ctx.metrics.incr(CACHE_WRITE_BEHIND_FLUSH, tags={"outcome": "dropped"})
                    logger.error(
                        "Write-behind flush gave up after %d attempt(s) (key=%r): %s",
                        attempts,
                        key,
                        exc,
                    )
                    await self._report(
                        WriteBehindFailure(
                            key=key,
                            value=pending.value,
                            error=exc,
                            attempts=attempts,
                            reason="retry_budget_exhausted",
                        )
                    )
                    if self._settle(key, pending):
                        return
                    # A newer value arrived meanwhile; it gets its own budget.
                    attempts = 0
                    delay_s = self._policy.delay_s
                    continue

                ctx.metrics.incr(CACHE_WRITE_BEHIND_FLUSH, tags={"outcome": "ok"})
                if self._settle(key, pending):
                    return
                attempts = 0
                delay_s = self._policy.delay_s
        finally:
            with self._lock:
                if self._tasks.get(key) is task:
                    self._tasks.pop(key, None)

    def _settle(self, key: Hashable, flushed: _PendingWrite) -> bool:
        """Clear `key` if `flushed` is still its latest value; True when done."""
        with self._lock:
            current = self._pending.get(key)
            if current is not None and current is not flushed:
                return False
            self._pending.pop(key, None)
            self._tasks.pop(key, None)
            return True

    async def _sleep(self, delay_s: float) -> None:
        if delay_s <= 0 or self._wake.is_set():
            await asyncio.sleep(0)
            return
        try:
            await asyncio.wait_for(self._wake.wait(), timeout=delay_s)
        except asyncio.TimeoutError:
            pass

    async def _report(self, failure: WriteBehindFailure) -> None:
        if self._on_failure is None:
            return
        try:
            await maybe_await(self._on_failure(failure))
        except Exception:  # noqa: BLE001
            logger.exception("Write-behind failure callback raised (key=%r)", failure.key)
