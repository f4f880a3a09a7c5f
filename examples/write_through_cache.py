"""
write_through_cache.py — Minimal cacheguard example.

Wraps an in-memory data source with a write-through cache and shows the
circuit breaker failing fast once the source goes down.

Usage:
    python examples/write_through_cache.py
"""

from cacheguard import (
    CacheFacade,
    CacheStore,
    CircuitBreaker,
    CircuitOpen,
    InMemoryDataSource,
    SourceUnavailable,
    WriteThroughStrategy,
)


async def main() -> None:
    source = InMemoryDataSource({"user:1": {"name": "Ada"}})
    async with CacheFacade(
        CacheStore(capacity=100, default_ttl_s=300),
        CircuitBreaker(failure_threshold=2, open_timeout_s=5),
        source,
        WriteThroughStrategy(),
    ) as cache:
        print(await cache.get("user:1"))
        await cache.set("user:1", {"name": "Ada L."})
        print(await cache.get("user:1"))

        source.fail_loads = True
        for key in ("user:2", "user:3", "user:4"):
            try:
                await cache.get(key)
            except CircuitOpen as exc:
                print(f"{key}: circuit open, retry in {exc.retry_after_s or 0.0:.1f}s")
            except SourceUnavailable as exc:
                print(f"{key}: source unavailable ({exc})")

        print(cache.stats())


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
