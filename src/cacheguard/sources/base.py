"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: sources/base.py.
"""

from __future__ import annotations

from collections.abc import Hashable
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class DataSource(Protocol):
    """
    Upstream collaborator consumed by the cache layer.

    `load` raises `NotFound` for genuinely absent keys and
    `SourceUnavailable` when the source is broken. `write` raises
    `SourceUnavailable` on failure and returns any acknowledgement value.
    Other exceptions are classified as `SourceUnavailable` by the caller.
    """

    async def load(self, key: Hashable) -> Any: ...

    async def write(self, key: Hashable, value: Any) -> Any: ...
