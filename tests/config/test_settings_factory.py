from __future__ import annotations

import asyncio
import os

import pytest

from cacheguard import (
    CacheAsideStrategy,
    CacheSettings,
    ConfigurationError,
    InMemoryCacheMetrics,
    InMemoryDataSource,
    NoOpCacheMetrics,
    WriteBehindStrategy,
    WriteThroughStrategy,
    create_cache_facade,
    create_metrics_from_env,
)
from cacheguard.observability import OpenTelemetryCacheMetrics, PrometheusCacheMetrics
from cacheguard.store import FIFOEvictionPolicy


def run_async(coro):
    return asyncio.run(coro)


def _clear_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("CACHEGUARD_"):
            monkeypatch.delenv(name, raising=False)


def test_settings_defaults_from_env(monkeypatch):
    _clear_env(monkeypatch)
    settings = CacheSettings.from_env()
    assert settings == CacheSettings()
    assert settings.default_ttl_s is None
    assert settings.coalesce_misses is True


def test_settings_read_environment(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CACHEGUARD_CAPACITY", "64")
    monkeypatch.setenv("CACHEGUARD_DEFAULT_TTL_S", "2.5")
    monkeypatch.setenv("CACHEGUARD_EVICTION_POLICY", "fifo")
    monkeypatch.setenv("CACHEGUARD_STRATEGY", "write-behind")
    monkeypatch.setenv("CACHEGUARD_FAILURE_THRESHOLD", "3")
    monkeypatch.setenv("CACHEGUARD_OPEN_TIMEOUT_S", "9")
    monkeypatch.setenv("CACHEGUARD_WRITE_BEHIND_DELAY_S", "0.2")
    monkeypatch.setenv("CACHEGUARD_COALESCE_MISSES", "off")
    settings = CacheSettings.from_env()

    assert settings.capacity == 64
    assert settings.default_ttl_s == 2.5
    assert settings.eviction_policy == "fifo"
    assert settings.breaker_policy().failure_threshold == 3
    assert settings.breaker_policy().open_timeout_s == 9.0
    assert settings.write_behind_policy().delay_s == 0.2
    assert settings.coalescing_policy().enabled is False


@pytest.mark.parametrize(
    "name,value",
    [
        ("CACHEGUARD_CAPACITY", "-1"),
        ("CACHEGUARD_CAPACITY", "lots"),
        ("CACHEGUARD_FAILURE_THRESHOLD", "0"),
        ("CACHEGUARD_OPEN_TIMEOUT_S", "0"),
        ("CACHEGUARD_SWEEP_INTERVAL_S", "-3"),
    ],
)
def test_invalid_environment_is_configuration_error(monkeypatch, name, value):
    _clear_env(monkeypatch)
    monkeypatch.setenv(name, value)
    with pytest.raises(ConfigurationError):
        CacheSettings.from_env()


def test_factory_wires_each_strategy():
    source = InMemoryDataSource()
    aside = create_cache_facade(source, settings=CacheSettings(update_on_write=True))
    assert isinstance(aside.strategy, CacheAsideStrategy)
    assert aside.strategy.update_on_write is True

    through = create_cache_facade(source, settings=CacheSettings(strategy="write_through"))
    assert isinstance(through.strategy, WriteThroughStrategy)

    behind = create_cache_facade(
        source,
        settings=CacheSettings(strategy="write-back", write_behind_delay_s=0.3),
    )
    assert isinstance(behind.strategy, WriteBehindStrategy)
    assert behind.strategy.policy.delay_s == 0.3


def test_factory_builds_independent_store_and_breaker():
    source = InMemoryDataSource()
    settings = CacheSettings(capacity=2, eviction_policy="fifo", failure_threshold=2)
    first = create_cache_facade(source, settings=settings, name="first")
    second = create_cache_facade(source, settings=settings, name="second")

    assert first.store is not second.store
    assert first.breaker is not second.breaker
    assert first.store.capacity == 2
    assert isinstance(first.store.eviction_policy, FIFOEvictionPolicy)
    assert first.breaker.snapshot().failure_threshold == 2
    assert first.breaker.name == "first"


def test_factory_end_to_end_with_env(monkeypatch):
    _clear_env(monkeypatch)
    monkeypatch.setenv("CACHEGUARD_STRATEGY", "write-through")

    async def scenario() -> None:
        source = InMemoryDataSource()
        metrics = InMemoryCacheMetrics()
        async with create_cache_facade(source, metrics=metrics) as cache:
            await cache.set("k", "v")
            assert await cache.get("k") == "v"
        assert source.rows == {"k": "v"}
        assert metrics.count("cache_writes_total", strategy="write-through") == 1

    run_async(scenario())


def test_factory_starts_sweeper_when_configured():
    async def scenario() -> None:
        cache = create_cache_facade(
            InMemoryDataSource(),
            settings=CacheSettings(sweep_interval_s=0.01, default_ttl_s=0.01),
        )
        async with cache:
            cache.store.set("k", 1)
            await asyncio.sleep(0.06)
            assert cache.store.size == 0

    run_async(scenario())


def test_factory_rejects_unknown_strategy():
    with pytest.raises(ConfigurationError):
        create_cache_facade(InMemoryDataSource(), settings=CacheSettings(strategy="nope"))


@pytest.mark.parametrize(
    "backend,expected",
    [
        (None, NoOpCacheMetrics),
        ("noop", NoOpCacheMetrics),
        ("inmemory", InMemoryCacheMetrics),
        ("otel", OpenTelemetryCacheMetrics),
    ],
)
def test_metrics_factory(monkeypatch, backend, expected):
    _clear_env(monkeypatch)
    if backend is not None:
        monkeypatch.setenv("CACHEGUARD_METRICS_BACKEND", backend)
    assert isinstance(create_metrics_from_env(), expected)


def test_metrics_factory_prometheus(monkeypatch):
    pytest.importorskip("prometheus_client")
    _clear_env(monkeypatch)
    monkeypatch.setenv("CACHEGUARD_METRICS_BACKEND", "prometheus")
    monkeypatch.setenv("CACHEGUARD_METRICS_NAMESPACE", "factory_test")
    assert isinstance(create_metrics_from_env(), PrometheusCacheMetrics)


def test_metrics_factory_unknown_backend(monkeypatch):
    monkeypatch.setenv("CACHEGUARD_METRICS_BACKEND", "statsd")
    with pytest.raises(ConfigurationError, match="Unknown CACHEGUARD_METRICS_BACKEND"):
        create_metrics_from_env()
