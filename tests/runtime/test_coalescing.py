from __future__ import annotations

import asyncio

import pytest

from cacheguard.runtime import RequestCoalescer


def run_async(coro):
    return asyncio.run(coro)


def test_concurrent_runs_share_one_call():
    async def scenario() -> None:
        coalescer = RequestCoalescer()
        calls = 0

        async def load() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            return "value"

        results = await asyncio.gather(*(coalescer.run("k", load) for _ in range(5)))
        assert results == ["value"] * 5
        assert calls == 1
        assert coalescer.in_flight == 0

    run_async(scenario())


def test_errors_reach_every_waiter_and_are_not_remembered():
    async def scenario() -> None:
        coalescer = RequestCoalescer()
        calls = 0

        async def load() -> str:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0.01)
            raise RuntimeError("boom")

        results = await asyncio.gather(
            *(coalescer.run("k", load) for _ in range(3)), return_exceptions=True
        )
        assert all(isinstance(item, RuntimeError) for item in results)
        assert calls == 1

        with pytest.raises(RuntimeError):
            await coalescer.run("k", load)
        assert calls == 2

    run_async(scenario())


def test_different_keys_are_independent():
    async def scenario() -> None:
        coalescer = RequestCoalescer()
        seen: list[str] = []

        def factory(key: str):
            async def load() -> str:
                seen.append(key)
                await asyncio.sleep(0)
                return key.upper()

            return load

        out = await asyncio.gather(
            coalescer.run("a", factory("a")), coalescer.run("b", factory("b"))
        )
        assert out == ["A", "B"]
        assert sorted(seen) == ["a", "b"]

    run_async(scenario())


def test_cancelled_waiter_does_not_cancel_shared_load():
    async def scenario() -> None:
        coalescer = RequestCoalescer()

        async def load() -> str:
            await asyncio.sleep(0.02)
            return "done"

        first = asyncio.create_task(coalescer.run("k", load))
        second = asyncio.create_task(coalescer.run("k", load))
        await asyncio.sleep(0)
        first.cancel()
        assert await second == "done"

    run_async(scenario())


def test_forget_detaches_in_flight_call_for_later_callers():
    async def scenario() -> None:
        coalescer = RequestCoalescer()
        version = "v1"

        async def load() -> str:
            snapshot = version
            await asyncio.sleep(0.02)
            return snapshot

        early = asyncio.create_task(coalescer.run("k", load))
        await asyncio.sleep(0)
        version = "v2"
        assert coalescer.forget("k") is True
        assert coalescer.forget("k") is False

        assert await coalescer.run("k", load) == "v2"
        assert await early == "v1"
        assert coalescer.in_flight == 0

    run_async(scenario())
