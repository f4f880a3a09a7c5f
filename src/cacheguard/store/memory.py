"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Bounded in-process key/value store with eviction and expiration.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Hashable
from threading import Lock
from typing import Any

from ..errors import ConfigurationError
from .base import CacheEntry, CacheStats, EvictionPolicy, ExpirationPolicy
from .policies import FixedTTLExpiration, create_eviction_policy


class CacheStore:
    """
    Thread-safe bounded cache store.

    The map and the eviction ordering are mutated together under one lock.
    Operations are O(1) amortized and never raise for normal use; expired
    entries are dropped lazily on access or by `cleanup_expired`.
    """

    def __init__(
        self,
        capacity: int = 1024,
        default_ttl_s: float | None = None,
        *,
        eviction_policy: str | EvictionPolicy | None = None,
        expiration_policy: ExpirationPolicy | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            capacity: Maximum number of live entries; `0` means unbounded.
            default_ttl_s: TTL applied when `set` is called without one.
                `None` or `0` means entries never expire.
            eviction_policy: Policy name (`lru`, `fifo`) or instance.
            expiration_policy: Overrides the fixed-TTL policy built from
                `default_ttl_s`.
            clock: Monotonic time source in seconds.
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise ConfigurationError("capacity must be an integer")
        if capacity < 0:
            raise ConfigurationError("capacity must be >= 0")
        self._capacity = capacity
        self._eviction = create_eviction_policy(eviction_policy)
        self._expiration = expiration_policy or FixedTTLExpiration(default_ttl_s)
        self._clock = clock
        self._rows: dict[Hashable, CacheEntry] = {}
        self._lock = Lock()
        self._hits = 0
        self._misses = 0
        self._evictions = 0
        self._expirations = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def eviction_policy(self) -> EvictionPolicy:
        return self._eviction

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for `key`, refreshing its recency."""
        with self._lock:
            row = self._rows.get(key)
            if row is None:
                self._misses += 1
                return default
            now = self._clock()
            if row.is_expired(now):
                self._drop(key)
                self._expirations += 1
                self._misses += 1
                return default
            row.last_accessed = now
            self._eviction.touch(key)
            self._hits += 1
            return row.value

    def peek(self, key: Hashable) -> CacheEntry | None:
        """Return the live entry without touching recency or counters."""
        with self._lock:
            row = self._rows.get(key)
            if row is None or row.is_expired(self._clock()):
                return None
            return row

    def set(self, key: Hashable, value: Any, ttl_s: float | None = None) -> None:
        """Insert or overwrite `key`; evicts one victim first when full."""
        with self._lock:
            now = self._clock()
            expires_at = self._expiration.expires_at(now, ttl_s)
            row = self._rows.get(key)
            if row is not None:
                row.value = value
                row.inserted_at = now
                row.expires_at = expires_at
                row.last_accessed = now
                self._eviction.touch(key)
                return

            if self._capacity and len(self._rows) >= self._capacity:
                self._evict_one()
            self._rows[key] = CacheEntry(
                key=key,
                value=value,
                inserted_at=now,
                expires_at=expires_at,
                last_accessed=now,
            )
            self._eviction.insert(key)

    def delete(self, key: Hashable) -> bool:
        """Remove `key`; returns whether an entry was present."""
        with self._lock:
            return self._drop(key)

    def clear(self) -> None:
        """Drop every entry by replacing the underlying structures."""
        with self._lock:
            self._rows = {}
            self._eviction.clear()

    def cleanup_expired(self) -> int:
        """Remove every currently-expired entry and return how many went."""
        with self._lock:
            now = self._clock()
            stale = [key for key, row in self._rows.items() if row.is_expired(now)]
            for key in stale:
                self._drop(key)
            self._expirations += len(stale)
            return len(stale)

    def keys(self) -> list[Hashable]:
        """Snapshot of live keys, oldest eviction candidate first."""
        with self._lock:
            now = self._clock()
            return [
                key
                for key in self._eviction
                if key in self._rows and not self._rows[key].is_expired(now)
            ]

    @property
    def size(self) -> int:
        """Number of stored entries, including ones not yet swept."""
        with self._lock:
            return len(self._rows)

    def __len__(self) -> int:
        return self.size

    def __contains__(self, key: object) -> bool:
        return self.peek(key) is not None  # type: ignore[arg-type]

    def stats(self) -> CacheStats:
        with self._lock:
            return CacheStats(
                size=len(self._rows),
                capacity=self._capacity,
                hits=self._hits,
                misses=self._misses,
                evictions=self._evictions,
                expirations=self._expirations,
            )

    def _drop(self, key: Hashable) -> bool:
        removed = self._rows.pop(key, None) is not None
        self._eviction.remove(key)
        return removed

    def _evict_one(self) -> None:
        victim = self._eviction.victim()
        if victim is None:
            return
        self._drop(victim)
        self._evictions += 1
