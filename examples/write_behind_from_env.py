"""
write_behind_from_env.py — Build a write-behind cache from environment settings.

Usage:
    export CACHEGUARD_STRATEGY=write-behind
    export CACHEGUARD_WRITE_BEHIND_DELAY_S=0.2
    export CACHEGUARD_METRICS_BACKEND=inmemory
    python examples/write_behind_from_env.py
"""

import logging

from cacheguard import (
    InMemoryDataSource,
    WriteBehindFailure,
    create_cache_facade,
    create_metrics_from_env,
)


def report(failure: WriteBehindFailure) -> None:
    print(f"lost write for {failure.key}: {failure.reason} after {failure.attempts} attempts")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)
    source = InMemoryDataSource()
    metrics = create_metrics_from_env()

    async with create_cache_facade(
        source, metrics=metrics, on_write_failure=report
    ) as cache:
        for i in range(5):
            await cache.set("counter", i)
        print("cached:", await cache.get("counter"))
        print("source before flush:", source.rows)

    print("source after close:", source.rows)
    snapshot = getattr(metrics, "snapshot", None)
    if snapshot is not None:
        print(snapshot())


if __name__ == "__main__":
    import asyncio

    asyncio.run(main())
