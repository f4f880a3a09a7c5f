"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Write propagation strategies: cache-aside, write-through and write-behind.
"""

from __future__ import annotations

from typing import Any

from ..errors import ConfigurationError
from .base import BaseWriteStrategy, StrategyContext, WriteAck, WriteStrategy
from .cache_aside import CacheAsideStrategy
from .write_behind import WriteBehindFailure, WriteBehindStrategy
from .write_through import WriteThroughStrategy

_ALIASES = {
    "cache-aside": "cache-aside",
    "cache_aside": "cache-aside",
    "lazy": "cache-aside",
    "write-through": "write-through",
    "write_through": "write-through",
    "write-behind": "write-behind",
    "write_behind": "write-behind",
    "write-back": "write-behind",
    "write_back": "write-behind",
}


def create_write_strategy(name: str, **options: Any) -> WriteStrategy:
    """
    Build a write strategy by name.

    Options are forwarded to the strategy constructor: `update_on_write` for
    cache-aside; `policy` and `on_failure` for write-behind.
    """
    resolved = _ALIASES.get(name.strip().lower())
    if resolved == "cache-aside":
        return CacheAsideStrategy(**options)
    if resolved == "write-through":
        if options:
            raise ConfigurationError(
                f"write-through takes no options, got {sorted(options)}"
            )
        return WriteThroughStrategy()
    if resolved == "write-behind":
        return WriteBehindStrategy(**options)
    raise ConfigurationError(f"Unknown write strategy '{name}'")


__all__ = [
    "BaseWriteStrategy",
    "CacheAsideStrategy",
    "StrategyContext",
    "WriteAck",
    "WriteBehindFailure",
    "WriteBehindStrategy",
    "WriteStrategy",
    "WriteThroughStrategy",
    "create_write_strategy",
]
