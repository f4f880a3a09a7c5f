"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Background maintenance loop that sweeps expired entries.
"""

from __future__ import annotations

import asyncio
import logging

from ..errors import ConfigurationError
from .memory import CacheStore

logger = logging.getLogger("cacheguard.store.sweeper")


class ExpirySweeper:
    """
    Periodically calls `CacheStore.cleanup_expired`.

    Not required for correctness; it only bounds how long expired entries
    keep occupying capacity.
    """

    def __init__(self, store: CacheStore, *, interval_s: float = 30.0) -> None:
        if interval_s <= 0:
            raise ConfigurationError("interval_s must be > 0")
        self._store = store
        self._interval_s = interval_s
        self._task: asyncio.Task[None] | None = None
        self._running = False
        self._swept_total = 0

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def swept_total(self) -> int:
        return self._swept_total

    async def start(self) -> None:
        if self._running:
            raise RuntimeError("ExpirySweeper is already running")
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info("ExpirySweeper started (interval=%.1fs)", self._interval_s)

    async def shutdown(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
        self._task = None
        logger.info("ExpirySweeper shut down (swept=%d)", self._swept_total)

    def sweep_once(self) -> int:
        removed = self._store.cleanup_expired()
        self._swept_total += removed
        if removed:
            logger.debug("Swept %d expired cache entries", removed)
        return removed

    async def _loop(self) -> None:
        while self._running:
            try:
                await asyncio.sleep(self._interval_s)
                self.sweep_once()
            except asyncio.CancelledError:
                break
            except Exception:  # noqa: BLE001
                logger.exception("ExpirySweeper iteration failed")
