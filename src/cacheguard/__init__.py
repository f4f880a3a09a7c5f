"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

In-process caching layer with pluggable eviction, expiration and write
propagation, guarded by a circuit breaker around the upstream data source.

Quick start::

    from cacheguard import (
        CacheFacade,
        CacheStore,
        CircuitBreaker,
        InMemoryDataSource,
        WriteThroughStrategy,
    )

    cache = CacheFacade(
        CacheStore(capacity=1000, default_ttl_s=300),
        CircuitBreaker(failure_threshold=5, open_timeout_s=60),
        InMemoryDataSource({"user:1": {"name": "Ada"}}),
        WriteThroughStrategy(),
    )
    user = await cache.get("user:1")
    await cache.set("user:1", {"name": "Ada L."})
"""

from .errors import (
    CACHE_MISS,
    CacheGuardError,
    CircuitOpen,
    ConfigurationError,
    NotFound,
    SourceError,
    SourceUnavailable,
)
from .facade import CacheFacade, FacadeStats
from .factory import create_cache_facade, create_metrics_from_env
from .observability import CacheMetrics, InMemoryCacheMetrics, NoOpCacheMetrics
from .runtime import (
    CircuitBreaker,
    CircuitBreakerPolicy,
    CircuitSnapshot,
    CircuitState,
    CoalescingPolicy,
    WriteBehindPolicy,
)
from .settings import CacheSettings
from .sources import CallableDataSource, DataSource, InMemoryDataSource
from .store import (
    CacheEntry,
    CacheStats,
    CacheStore,
    ExpirySweeper,
    FIFOEvictionPolicy,
    LRUEvictionPolicy,
)
from .strategies import (
    CacheAsideStrategy,
    WriteAck,
    WriteBehindFailure,
    WriteBehindStrategy,
    WriteStrategy,
    WriteThroughStrategy,
    create_write_strategy,
)

__all__ = [
    "CACHE_MISS",
    "CacheGuardError",
    "CircuitOpen",
    "ConfigurationError",
    "NotFound",
    "SourceError",
    "SourceUnavailable",
    "CacheFacade",
    "FacadeStats",
    "create_cache_facade",
    "create_metrics_from_env",
    "CacheMetrics",
    "InMemoryCacheMetrics",
    "NoOpCacheMetrics",
    "CircuitBreaker",
    "CircuitBreakerPolicy",
    "CircuitSnapshot",
    "CircuitState",
    "CoalescingPolicy",
    "WriteBehindPolicy",
    "CacheSettings",
    "CallableDataSource",
    "DataSource",
    "InMemoryDataSource",
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "ExpirySweeper",
    "FIFOEvictionPolicy",
    "LRUEvictionPolicy",
    "CacheAsideStrategy",
    "WriteAck",
    "WriteBehindFailure",
    "WriteBehindStrategy",
    "WriteStrategy",
    "WriteThroughStrategy",
    "create_write_strategy",
]
