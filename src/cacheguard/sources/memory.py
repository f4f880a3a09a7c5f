"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Dict-backed data source for tests and local development.
"""

from __future__ import annotations

import asyncio
from collections.abc import Hashable, Mapping
from typing import Any

from ..errors import NotFound, SourceUnavailable
from .base import DataSource


class InMemoryDataSource(DataSource):
    """
    Process-local data source with call counters and fault injection.

    Set `fail_loads` / `fail_writes` to make the next calls raise
    `SourceUnavailable`; `latency_s` delays every call.
    """

    def __init__(
        self,
        rows: Mapping[Hashable, Any] | None = None,
        *,
        latency_s: float = 0.0,
    ) -> None:
        self.rows: dict[Hashable, Any] = dict(rows or {})
        self.latency_s = latency_s
        self.fail_loads = False
        self.fail_writes = False
        self.load_calls: list[Hashable] = []
        self.write_calls: list[tuple[Hashable, Any]] = []

    async def load(self, key: Hashable) -> Any:
        self.load_calls.append(key)
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        if self.fail_loads:
            raise SourceUnavailable(f"load failed for key {key!r}")
        if key not in self.rows:
            raise NotFound(f"key {key!r} not found")
        return self.rows[key]

    async def write(self, key: Hashable, value: Any) -> Any:
        self.write_calls.append((key, value))
        if self.latency_s:
            await asyncio.sleep(self.latency_s)
        if self.fail_writes:
            raise SourceUnavailable(f"write failed for key {key!r}")
        self.rows[key] = value
        return {"key": key, "ok": True}
