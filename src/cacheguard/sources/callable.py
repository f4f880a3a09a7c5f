"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: sources/callable.py.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Hashable
from typing import Any

from ..errors import SourceUnavailable
from .base import DataSource


class CallableDataSource(DataSource):
    """Adapt plain functions or coroutine functions into a `DataSource`."""

    def __init__(
        self,
        *,
        load: Callable[[Hashable], Any],
        write: Callable[[Hashable, Any], Any] | None = None,
    ) -> None:
        self._load = load
        self._write = write

    async def load(self, key: Hashable) -> Any:
        result = self._load(key)
        if inspect.isawaitable(result):
            result = await result
        return result

    async def write(self, key: Hashable, value: Any) -> Any:
        if self._write is None:
            raise SourceUnavailable("data source is read-only")
        result = self._write(key, value)
        if inspect.isawaitable(result):
            result = await result
        return result
