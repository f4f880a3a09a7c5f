"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Metrics protocol and in-process sinks for cache instrumentation.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from threading import Lock
from typing import Protocol

CACHE_HITS = "cache_hits_total"
CACHE_MISSES = "cache_misses_total"
CACHE_SOURCE_ERRORS = "cache_source_errors_total"
CACHE_CIRCUIT_OPEN = "cache_circuit_open_total"
CACHE_WRITES = "cache_writes_total"
CACHE_WRITE_BEHIND_FLUSH = "cache_write_behind_flush_total"

# name -> (description, label names) for every counter the cache emits.
CACHE_METRIC_CATALOG: dict[str, tuple[str, tuple[str, ...]]] = {
    CACHE_HITS: ("Cache lookups served from the store.", ()),
    CACHE_MISSES: ("Cache lookups that fell through to the source.", ()),
    CACHE_SOURCE_ERRORS: ("Data source calls that failed.", ("op", "error")),
    CACHE_CIRCUIT_OPEN: ("Source calls rejected by an open circuit.", ("op",)),
    CACHE_WRITES: ("Cache writes accepted, by strategy.", ("strategy",)),
    CACHE_WRITE_BEHIND_FLUSH: ("Deferred write flush outcomes.", ("outcome",)),
}


class CacheMetrics(Protocol):
    """Minimal metrics interface for cache instrumentation."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        """Increment a counter metric."""


class NoOpCacheMetrics:
    """Default metrics sink when no metrics backend is provided."""

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        _ = name
        _ = value
        _ = tags


@dataclass(slots=True)
class InMemoryCacheMetrics:
    """Counter sink that keeps totals in process memory."""

    _counts: dict[tuple[str, tuple[tuple[str, str], ...]], int] = field(
        default_factory=dict
    )
    _lock: Lock = field(default_factory=Lock, repr=False)

    def incr(
        self, name: str, value: int = 1, *, tags: Mapping[str, str] | None = None
    ) -> None:
        key = (name, tuple(sorted((str(k), str(v)) for k, v in (tags or {}).items())))
        with self._lock:
            self._counts[key] = self._counts.get(key, 0) + value

    def count(self, name: str, **tags: str) -> int:
        """Sum of `name` across series whose labels include `tags`."""
        wanted = set(tags.items())
        with self._lock:
            return sum(
                total
                for (metric, labels), total in self._counts.items()
                if metric == name and wanted.issubset(set(labels))
            )

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            out: dict[str, int] = {}
            for (metric, _labels), total in self._counts.items():
                out[metric] = out.get(metric, 0) + total
            return out
