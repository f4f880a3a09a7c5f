"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Cache runtime settings and explicit config loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .errors import ConfigurationError
from .runtime.contracts import CircuitBreakerPolicy, CoalescingPolicy, WriteBehindPolicy


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return None
    return float(raw)


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True, slots=True)
class CacheSettings:
    """Explicit settings used to build a cache facade."""

    capacity: int = 1024
    default_ttl_s: float | None = None
    eviction_policy: str = "lru"
    strategy: str = "cache-aside"
    update_on_write: bool = False

    failure_threshold: int = 5
    open_timeout_s: float = 60.0

    write_behind_delay_s: float = 1.0
    write_behind_max_retries: int = 5
    write_behind_backoff_base_s: float = 0.5
    write_behind_backoff_max_s: float = 30.0
    write_behind_backoff_jitter_s: float = 0.1
    write_behind_shutdown_timeout_s: float = 10.0

    coalesce_misses: bool = True
    sweep_interval_s: float | None = None

    @staticmethod
    def from_env() -> "CacheSettings":
        """Load settings from `CACHEGUARD_*` environment variables."""
        try:
            settings = CacheSettings(
                capacity=int(os.getenv("CACHEGUARD_CAPACITY", "1024")),
                default_ttl_s=_optional_float("CACHEGUARD_DEFAULT_TTL_S"),
                eviction_policy=os.getenv("CACHEGUARD_EVICTION_POLICY", "lru"),
                strategy=os.getenv("CACHEGUARD_STRATEGY", "cache-aside"),
                update_on_write=_bool("CACHEGUARD_UPDATE_ON_WRITE", False),
                failure_threshold=int(os.getenv("CACHEGUARD_FAILURE_THRESHOLD", "5")),
                open_timeout_s=float(os.getenv("CACHEGUARD_OPEN_TIMEOUT_S", "60")),
                write_behind_delay_s=float(
                    os.getenv("CACHEGUARD_WRITE_BEHIND_DELAY_S", "1.0")
                ),
                write_behind_max_retries=int(
                    os.getenv("CACHEGUARD_WRITE_BEHIND_MAX_RETRIES", "5")
                ),
                write_behind_backoff_base_s=float(
                    os.getenv("CACHEGUARD_WRITE_BEHIND_BACKOFF_BASE_S", "0.5")
                ),
                write_behind_backoff_max_s=float(
                    os.getenv("CACHEGUARD_WRITE_BEHIND_BACKOFF_MAX_S", "30")
                ),
                write_behind_backoff_jitter_s=float(
                    os.getenv("CACHEGUARD_WRITE_BEHIND_BACKOFF_JITTER_S", "0.1")
                ),
                write_behind_shutdown_timeout_s=float(
                    os.getenv("CACHEGUARD_WRITE_BEHIND_SHUTDOWN_TIMEOUT_S", "10")
                ),
                coalesce_misses=_bool("CACHEGUARD_COALESCE_MISSES", True),
                sweep_interval_s=_optional_float("CACHEGUARD_SWEEP_INTERVAL_S"),
            )
        except ValueError as exc:
            raise ConfigurationError(f"Invalid cacheguard environment: {exc}") from exc
        settings.validate()
        return settings

    def validate(self) -> None:
        """Raise `ConfigurationError` for values no component would accept."""
        if self.capacity < 0:
            raise ConfigurationError("capacity must be >= 0")
        if self.default_ttl_s is not None and self.default_ttl_s < 0:
            raise ConfigurationError("default_ttl_s must be >= 0")
        if self.failure_threshold <= 0:
            raise ConfigurationError("failure_threshold must be > 0")
        if self.open_timeout_s <= 0:
            raise ConfigurationError("open_timeout_s must be > 0")
        if self.write_behind_delay_s < 0:
            raise ConfigurationError("write_behind_delay_s must be >= 0")
        if self.write_behind_max_retries < 0:
            raise ConfigurationError("write_behind_max_retries must be >= 0")
        if self.sweep_interval_s is not None and self.sweep_interval_s <= 0:
            raise ConfigurationError("sweep_interval_s must be > 0")

    def breaker_policy(self) -> CircuitBreakerPolicy:
        return CircuitBreakerPolicy(
            failure_threshold=self.failure_threshold,
            open_timeout_s=self.open_timeout_s,
        )

    def write_behind_policy(self) -> WriteBehindPolicy:
        return WriteBehindPolicy(
            delay_s=self.write_behind_delay_s,
            max_retries=self.write_behind_max_retries,
            backoff_base_s=self.write_behind_backoff_base_s,
            backoff_max_s=self.write_behind_backoff_max_s,
            backoff_jitter_s=self.write_behind_backoff_jitter_s,
            shutdown_timeout_s=self.write_behind_shutdown_timeout_s,
        )

    def coalescing_policy(self) -> CoalescingPolicy:
        return CoalescingPolicy(enabled=self.coalesce_misses)
