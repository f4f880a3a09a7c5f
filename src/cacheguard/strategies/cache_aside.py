"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: strategies/cache_aside.py.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any

from .base import BaseWriteStrategy, StrategyContext, WriteAck


class CacheAsideStrategy(BaseWriteStrategy):
    """
    Lazy-load reads; writes go straight to the source.

    After a successful upstream write the cached entry is invalidated, or
    updated in place when `update_on_write=True`. Failed writes leave the
    cache untouched and propagate.
    """

    strategy_id = "cache-aside"

    def __init__(self, *, update_on_write: bool = False) -> None:
        self.update_on_write = update_on_write

    async def write(
        self,
        key: Hashable,
        value: Any,
        ctx: StrategyContext,
        *,
        ttl_s: float | None = None,
    ) -> WriteAck:
        upstream = await ctx.call_source("write", lambda: ctx.source.write(key, value))
        if self.update_on_write:
            ctx.store.set(key, value, ttl_s)
        else:
            ctx.store.delete(key)
        ctx.mark_written(key)
        return WriteAck(key=key, strategy=self.strategy_id, upstream=upstream)
