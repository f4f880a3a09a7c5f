"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/base.py.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterator
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(slots=True)
class CacheEntry:
    """One cached value with expiration and recency metadata."""

    key: Hashable
    value: Any
    inserted_at: float
    expires_at: float | None
    last_accessed: float

    def is_expired(self, now: float) -> bool:
        return self.expires_at is not None and self.expires_at <= now


@dataclass(frozen=True, slots=True)
class CacheStats:
    """Point-in-time counters for one cache store."""

    size: int
    capacity: int
    hits: int
    misses: int
    evictions: int
    expirations: int

    @property
    def hit_ratio(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total else 0.0


class EvictionPolicy(Protocol):
    """
    Ordering structure tracked beside the store map.

    Every key present in the store appears exactly once in the policy, and
    the store keeps both in step under its own lock.
    """

    policy_id: str

    def insert(self, key: Hashable) -> None:
        """Track a newly inserted key."""

    def touch(self, key: Hashable) -> None:
        """Record a read hit or an overwrite of an existing key."""

    def remove(self, key: Hashable) -> None:
        """Stop tracking a key; no-op when absent."""

    def victim(self) -> Hashable | None:
        """Return the key to evict next without removing it."""

    def clear(self) -> None:
        """Drop all tracked keys."""

    def __len__(self) -> int: ...

    def __iter__(self) -> Iterator[Hashable]: ...


class ExpirationPolicy(Protocol):
    """Decides when an entry becomes stale."""

    def expires_at(self, now: float, ttl_s: float | None) -> float | None:
        """Return the absolute expiry for an entry written at `now`."""
