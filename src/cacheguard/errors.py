"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy shared by the store, breaker, strategies and facade.
"""

from __future__ import annotations

import asyncio
import socket


class CacheGuardError(RuntimeError):
    """Base class for all cacheguard errors."""


class ConfigurationError(CacheGuardError, ValueError):
    """Raised at construction time when parameters are invalid."""


class SourceError(CacheGuardError):
    """Base class for failures reported by the upstream data source."""


class SourceUnavailable(SourceError):
    """The data source could not be reached or errored."""


class NotFound(SourceError):
    """The key does not exist upstream."""


class CircuitOpen(SourceUnavailable):
    """
    The circuit breaker is short-circuiting calls.

    Subclasses `SourceUnavailable` so handlers for an unreachable source also
    cover an open circuit, while `isinstance` still tells them apart.
    """

    def __init__(self, message: str, *, retry_after_s: float | None = None) -> None:
        super().__init__(message)
        self.retry_after_s = retry_after_s


class _CacheMiss:
    """Sentinel type for lookups that found nothing."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "CACHE_MISS"

    def __bool__(self) -> bool:
        return False


CACHE_MISS = _CacheMiss()


def classify_source_error(error: Exception) -> SourceError:
    """Map an arbitrary data-source exception onto the cacheguard taxonomy."""
    if isinstance(error, SourceError):
        return error
    if isinstance(error, KeyError):
        return NotFound(str(error))
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return SourceUnavailable(f"timeout: {error}")
    if isinstance(error, (ConnectionError, OSError)):
        return SourceUnavailable(str(error))
    return SourceUnavailable(f"{type(error).__name__}: {error}")
