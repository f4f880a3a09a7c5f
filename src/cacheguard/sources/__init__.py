"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: sources/__init__.py.
"""

from .base import DataSource
from .callable import CallableDataSource
from .memory import InMemoryDataSource

__all__ = [
    "DataSource",
    "CallableDataSource",
    "InMemoryDataSource",
    "RedisDataSource",
]


def __getattr__(name: str):
    """Lazily expose source adapters that require extra dependencies."""
    if name == "RedisDataSource":
        from .redis import RedisDataSource

        return RedisDataSource
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
