"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers wiring a cache facade from settings or the environment.
"""

from __future__ import annotations

import os

from .errors import ConfigurationError
from .facade import CacheFacade
from .observability.metrics import CacheMetrics, InMemoryCacheMetrics, NoOpCacheMetrics
from .runtime.circuit_breaker import CircuitBreaker
from .settings import CacheSettings
from .sources.base import DataSource
from .store.memory import CacheStore
from .store.sweeper import ExpirySweeper
from .strategies import create_write_strategy
from .strategies.write_behind import FailureCallback
from .utils import env_first


def create_metrics_from_env() -> CacheMetrics:
    """
    Create a metrics sink from `CACHEGUARD_METRICS_BACKEND`.

    Backends:
    - `noop` (default)
    - `inmemory`
    - `prometheus` (namespace from `CACHEGUARD_METRICS_NAMESPACE`)
    - `otel` (meter name from `CACHEGUARD_METRICS_NAMESPACE`)
    """
    backend = os.getenv("CACHEGUARD_METRICS_BACKEND", "noop").strip().lower()
    namespace = env_first("CACHEGUARD_METRICS_NAMESPACE", default="cacheguard") or "cacheguard"

    if backend in ("", "none", "noop", "null"):
        return NoOpCacheMetrics()
    if backend in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryCacheMetrics()
    if backend in ("prometheus", "prom"):
        from .observability.prometheus import PrometheusCacheMetrics

        return PrometheusCacheMetrics(namespace=namespace)
    if backend in ("otel", "opentelemetry"):
        from .observability.otel import OpenTelemetryCacheMetrics

        return OpenTelemetryCacheMetrics(meter_name=namespace)
    raise ConfigurationError(f"Unknown CACHEGUARD_METRICS_BACKEND: {backend}")


def create_cache_facade(
    source: DataSource,
    *,
    settings: CacheSettings | None = None,
    metrics: CacheMetrics | None = None,
    on_write_failure: FailureCallback | None = None,
    name: str = "default",
) -> CacheFacade:
    """
    Build a facade with its own store and breaker around `source`.

    `settings` defaults to `CacheSettings.from_env()`. `on_write_failure`
    only applies to the write-behind strategy.
    """
    settings = settings or CacheSettings.from_env()
    settings.validate()

    store = CacheStore(
        settings.capacity,
        settings.default_ttl_s,
        eviction_policy=settings.eviction_policy,
    )
    breaker = CircuitBreaker.from_policy(settings.breaker_policy(), name=name)

    strategy_name = settings.strategy.strip().lower()
    if strategy_name.replace("_", "-") in ("write-behind", "write-back"):
        strategy = create_write_strategy(
            strategy_name,
            policy=settings.write_behind_policy(),
            on_failure=on_write_failure,
        )
    elif strategy_name.replace("_", "-") in ("cache-aside", "lazy"):
        strategy = create_write_strategy(
            strategy_name, update_on_write=settings.update_on_write
        )
    else:
        strategy = create_write_strategy(strategy_name)

    return CacheFacade(
        store,
        breaker,
        source,
        strategy,
        metrics=metrics,
        coalescing=settings.coalescing_policy(),
        sweeper=(
            ExpirySweeper(store, interval_s=settings.sweep_interval_s)
            if settings.sweep_interval_s
            else None
        ),
    )
