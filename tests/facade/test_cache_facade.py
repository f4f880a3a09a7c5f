from __future__ import annotations

import asyncio

import pytest

from cacheguard import (
    CacheAsideStrategy,
    CacheFacade,
    CacheStore,
    CircuitBreaker,
    CircuitOpen,
    CircuitState,
    CoalescingPolicy,
    ExpirySweeper,
    InMemoryCacheMetrics,
    InMemoryDataSource,
    NotFound,
    SourceUnavailable,
    WriteThroughStrategy,
)
from cacheguard.sources import CallableDataSource


def run_async(coro):
    return asyncio.run(coro)


def test_miss_loads_through_breaker_and_caches():
    async def scenario() -> None:
        source = InMemoryDataSource({"user:1": {"name": "Ada"}})
        metrics = InMemoryCacheMetrics()
        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(),
            source,
            CacheAsideStrategy(),
            metrics=metrics,
        )
        assert await cache.get("user:1") == {"name": "Ada"}
        assert await cache.get("user:1") == {"name": "Ada"}
        assert metrics.count("cache_misses_total") == 1
        assert metrics.count("cache_hits_total") == 1
        assert source.load_calls == ["user:1"]

    run_async(scenario())


def test_open_circuit_fails_fast_for_reads():
    async def scenario() -> None:
        source = InMemoryDataSource({"k": 1})
        source.fail_loads = True
        metrics = InMemoryCacheMetrics()
        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(failure_threshold=3, open_timeout_s=60),
            source,
            CacheAsideStrategy(),
            metrics=metrics,
        )
        for _ in range(3):
            with pytest.raises(SourceUnavailable) as excinfo:
                await cache.get("k")
            assert not isinstance(excinfo.value, CircuitOpen)

        with pytest.raises(CircuitOpen):
            await cache.get("k")
        # Callers handling SourceUnavailable also cover an open circuit.
        with pytest.raises(SourceUnavailable):
            await cache.get("k")

        assert len(source.load_calls) == 3
        assert cache.breaker.state is CircuitState.OPEN
        assert metrics.count("cache_circuit_open_total") == 2
        assert metrics.count("cache_source_errors_total", error="SourceUnavailable") == 3

    run_async(scenario())


def test_hits_are_served_while_circuit_is_open():
    async def scenario() -> None:
        source = InMemoryDataSource({"warm": "w"})
        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(failure_threshold=1, open_timeout_s=60),
            source,
            CacheAsideStrategy(),
        )
        assert await cache.get("warm") == "w"
        source.fail_loads = True
        with pytest.raises(SourceUnavailable):
            await cache.get("cold")
        assert await cache.get("warm") == "w"

    run_async(scenario())


def test_untyped_source_errors_are_classified():
    async def scenario() -> None:
        def load(key):
            raise ConnectionError("refused")

        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(failure_threshold=1, open_timeout_s=60),
            CallableDataSource(load=load),
            CacheAsideStrategy(),
        )
        with pytest.raises(SourceUnavailable) as excinfo:
            await cache.get("k")
        assert isinstance(excinfo.value.__cause__, ConnectionError)
        assert cache.breaker.state is CircuitState.OPEN

    run_async(scenario())


def test_key_error_from_source_is_not_found_and_keeps_circuit_closed():
    async def scenario() -> None:
        rows = {"a": 1}
        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(failure_threshold=1, open_timeout_s=60),
            CallableDataSource(load=lambda key: rows[key]),
            CacheAsideStrategy(),
        )
        for _ in range(3):
            with pytest.raises(NotFound):
                await cache.get("zzz")
        assert cache.breaker.state is CircuitState.CLOSED
        assert await cache.get("a") == 1

    run_async(scenario())


def test_concurrent_misses_share_one_load():
    async def scenario() -> None:
        source = InMemoryDataSource({"k": "v"}, latency_s=0.02)
        cache = CacheFacade(
            CacheStore(capacity=8), CircuitBreaker(), source, CacheAsideStrategy()
        )
        results = await asyncio.gather(*(cache.get("k") for _ in range(10)))
        assert results == ["v"] * 10
        assert source.load_calls == ["k"]

    run_async(scenario())


def test_concurrent_misses_load_independently_without_coalescing():
    async def scenario() -> None:
        source = InMemoryDataSource({"k": "v"}, latency_s=0.02)
        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(),
            source,
            CacheAsideStrategy(),
            coalescing=CoalescingPolicy(enabled=False),
        )
        results = await asyncio.gather(*(cache.get("k") for _ in range(4)))
        assert results == ["v"] * 4
        assert len(source.load_calls) == 4

    run_async(scenario())


def test_write_completing_during_load_is_not_overwritten_by_stale_fill():
    async def scenario() -> None:
        rows = {"k": "old"}

        async def slow_load(key):
            value = rows[key]
            await asyncio.sleep(0.05)
            return value

        async def write(key, value):
            rows[key] = value

        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(),
            CallableDataSource(load=slow_load, write=write),
            WriteThroughStrategy(),
        )
        reader = asyncio.create_task(cache.get("k"))
        await asyncio.sleep(0.01)
        await cache.set("k", "new")

        assert await reader == "old"
        assert await cache.get("k") == "new"

    run_async(scenario())


def test_read_after_write_does_not_join_load_started_before_write():
    async def scenario() -> None:
        rows = {"k": "old"}

        async def slow_load(key):
            value = rows[key]
            await asyncio.sleep(0.1)
            return value

        async def write(key, value):
            rows[key] = value

        cache = CacheFacade(
            CacheStore(capacity=8),
            CircuitBreaker(),
            CallableDataSource(load=slow_load, write=write),
            CacheAsideStrategy(),
        )
        early = asyncio.create_task(cache.get("k"))
        await asyncio.sleep(0.01)
        await cache.set("k", "new")

        assert await cache.get("k") == "new"
        assert await early == "old"
        # The fresh load fills the cache; the stale one does not.
        assert cache.store.get("k") == "new"

    run_async(scenario())


def test_delete_and_invalidate_are_idempotent():
    async def scenario() -> None:
        source = InMemoryDataSource({"k": 1})
        cache = CacheFacade(
            CacheStore(capacity=8), CircuitBreaker(), source, CacheAsideStrategy()
        )
        await cache.delete("missing")
        await cache.invalidate("missing")
        await cache.get("k")
        await cache.invalidate("k")
        assert "k" not in cache.store
        assert await cache.get("k") == 1
        assert source.load_calls == ["k", "k"]

    run_async(scenario())


def test_ttl_passed_through_facade_set():
    async def scenario() -> None:
        source = InMemoryDataSource()
        cache = CacheFacade(
            CacheStore(capacity=8), CircuitBreaker(), source, WriteThroughStrategy()
        )
        await cache.set("a", 1, ttl_s=0.1)
        assert await cache.get("a") == 1
        await asyncio.sleep(0.15)
        assert "a" not in cache.store
        # Expired locally; the source still has it.
        assert await cache.get("a") == 1
        assert source.load_calls == ["a"]

    run_async(scenario())


def test_stats_and_context_manager_lifecycle():
    async def scenario() -> None:
        store = CacheStore(capacity=8)
        sweeper = ExpirySweeper(store, interval_s=0.01)
        source = InMemoryDataSource({"k": 1})
        cache = CacheFacade(
            store,
            CircuitBreaker(name="users"),
            source,
            CacheAsideStrategy(),
            sweeper=sweeper,
        )
        async with cache:
            assert sweeper.is_running
            await cache.get("k")
            stats = cache.stats()
            assert stats.strategy == "cache-aside"
            assert stats.store.size == 1
            assert stats.breaker.name == "users"
            assert stats.pending_writes == 0
        assert not sweeper.is_running
        await cache.close()

    run_async(scenario())


def test_facade_never_closes_the_source():
    class ClosableSource(InMemoryDataSource):
        closed = False

        async def close(self) -> None:
            self.closed = True

    async def scenario() -> None:
        source = ClosableSource()
        async with CacheFacade(
            CacheStore(), CircuitBreaker(), source, WriteThroughStrategy()
        ) as cache:
            await cache.set("k", 1)
        assert source.closed is False

    run_async(scenario())
