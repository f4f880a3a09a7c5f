"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: strategies/write_through.py.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any

from .base import BaseWriteStrategy, StrategyContext, WriteAck


class WriteThroughStrategy(BaseWriteStrategy):
    """Source first, cache only after the source acknowledged the write."""

    strategy_id = "write-through"

    async def write(
        self,
        key: Hashable,
        value: Any,
        ctx: StrategyContext,
        *,
        ttl_s: float | None = None,
    ) -> WriteAck:
        # On failure the cached value stays as it was; the cache is never
        # ahead of the source.
        upstream = await ctx.call_source("write", lambda: ctx.source.write(key, value))
        ctx.store.set(key, value, ttl_s)
        ctx.mark_written(key)
        return WriteAck(key=key, strategy=self.strategy_id, upstream=upstream)
