"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache observability: counter protocol plus in-memory, Prometheus and
OpenTelemetry sinks.
"""

from .metrics import (
    CACHE_CIRCUIT_OPEN,
    CACHE_HITS,
    CACHE_MISSES,
    CACHE_SOURCE_ERRORS,
    CACHE_WRITE_BEHIND_FLUSH,
    CACHE_WRITES,
    CacheMetrics,
    InMemoryCacheMetrics,
    NoOpCacheMetrics,
)
from .otel import OpenTelemetryCacheMetrics
from .prometheus import PrometheusCacheMetrics

__all__ = [
    "CACHE_CIRCUIT_OPEN",
    "CACHE_HITS",
    "CACHE_MISSES",
    "CACHE_SOURCE_ERRORS",
    "CACHE_WRITE_BEHIND_FLUSH",
    "CACHE_WRITES",
    "CacheMetrics",
    "InMemoryCacheMetrics",
    "NoOpCacheMetrics",
    "OpenTelemetryCacheMetrics",
    "PrometheusCacheMetrics",
]
