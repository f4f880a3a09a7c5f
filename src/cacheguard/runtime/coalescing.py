"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/coalescing.py.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable
from typing import Any, TypeVar

T = TypeVar("T")


class RequestCoalescer:
    """Deduplicate identical in-flight requests."""

    def __init__(self) -> None:
        self._tasks: dict[Hashable, asyncio.Task[Any]] = {}
        self._lock = asyncio.Lock()

    @property
    def in_flight(self) -> int:
        return len(self._tasks)

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        async with self._lock:
            task = self._tasks.get(key)
            if task is None:
                task = asyncio.ensure_future(factory())
                self._tasks[key] = task
                task.add_done_callback(lambda done, key=key: self._forget(key, done))

        # Followers must not cancel the shared load when they are cancelled.
        return await asyncio.shield(task)

    def forget(self, key: Hashable) -> bool:
        """
        Detach the in-flight request for `key` so later callers start fresh.

        Current waiters still receive the detached task's result.
        """
        return self._tasks.pop(key, None) is not None

    def _forget(self, key: Hashable, task: asyncio.Task[Any]) -> None:
        if self._tasks.get(key) is task:
            self._tasks.pop(key, None)
        if not task.cancelled():
            # Mark the exception retrieved; every waiter re-raises it.
            task.exception()
