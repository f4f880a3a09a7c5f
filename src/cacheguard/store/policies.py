"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Eviction and expiration policies, plus the eviction policy registry.
"""

from __future__ import annotations

from collections import OrderedDict
from collections.abc import Callable, Hashable, Iterator
from threading import Lock

from ..errors import ConfigurationError
from .base import EvictionPolicy, ExpirationPolicy


class LRUEvictionPolicy:
    """
    Least-recently-used ordering.

    The oldest key sits at the front of the ordered map. Every touch moves a
    key to the back, so keys touched within the same logical tick keep their
    insertion order and the earliest inserted one is evicted first.
    """

    policy_id = "lru"

    def __init__(self) -> None:
        self._order: OrderedDict[Hashable, None] = OrderedDict()

    def insert(self, key: Hashable) -> None:
        self._order[key] = None
        self._order.move_to_end(key)

    def touch(self, key: Hashable) -> None:
        if key in self._order:
            self._order.move_to_end(key)

    def remove(self, key: Hashable) -> None:
        self._order.pop(key, None)

    def victim(self) -> Hashable | None:
        return next(iter(self._order), None)

    def clear(self) -> None:
        self._order = OrderedDict()

    def __len__(self) -> int:
        return len(self._order)

    def __iter__(self) -> Iterator[Hashable]:
        return iter(list(self._order))


class FIFOEvictionPolicy(LRUEvictionPolicy):
    """First-in-first-out ordering; reads and overwrites never reorder."""

    policy_id = "fifo"

    def touch(self, key: Hashable) -> None:
        _ = key


class FixedTTLExpiration(ExpirationPolicy):
    """`expires_at = inserted_at + ttl`; zero or absent TTL never expires."""

    def __init__(self, default_ttl_s: float | None = None) -> None:
        if default_ttl_s is not None and default_ttl_s < 0:
            raise ConfigurationError("default_ttl_s must be >= 0")
        self.default_ttl_s = default_ttl_s

    def expires_at(self, now: float, ttl_s: float | None) -> float | None:
        effective = self.default_ttl_s if ttl_s is None else ttl_s
        if effective is None or effective <= 0:
            return None
        return now + effective


EvictionPolicyFactory = Callable[[], EvictionPolicy]

_REGISTRY: dict[str, EvictionPolicyFactory] = {
    "lru": LRUEvictionPolicy,
    "fifo": FIFOEvictionPolicy,
}
_LOCK = Lock()


def register_eviction_policy(
    name: str,
    factory: EvictionPolicyFactory,
    *,
    overwrite: bool = False,
) -> None:
    """Register one eviction policy factory by name."""
    key = name.strip().lower()
    if not key:
        raise ConfigurationError("Eviction policy name must be non-empty")

    with _LOCK:
        if key in _REGISTRY and not overwrite:
            raise ConfigurationError(f"Eviction policy already registered: {key}")
        _REGISTRY[key] = factory


def create_eviction_policy(
    policy: str | EvictionPolicy | None = None,
) -> EvictionPolicy:
    """Resolve a fresh eviction policy from name/instance/default."""
    if policy is None:
        policy = "lru"
    if not isinstance(policy, str):
        return policy

    key = policy.strip().lower()
    with _LOCK:
        factory = _REGISTRY.get(key)
    if factory is None:
        raise ConfigurationError(f"Unknown eviction policy '{policy}'")
    return factory()


def list_eviction_policies() -> list[str]:
    """List registered eviction policy names."""
    with _LOCK:
        return sorted(_REGISTRY.keys())
