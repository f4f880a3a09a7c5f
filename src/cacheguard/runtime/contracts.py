"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for guarded cache execution.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class CircuitBreakerPolicy:
    """Consecutive failure policy with a single half-open probe."""

    failure_threshold: int = 5
    open_timeout_s: float = 60.0


@dataclass(frozen=True, slots=True)
class WriteBehindPolicy:
    """Deferred flush timing and failure retry pacing for write-behind."""

    delay_s: float = 1.0
    max_retries: int = 5
    backoff_base_s: float = 0.5
    backoff_max_s: float = 30.0
    backoff_jitter_s: float = 0.1
    shutdown_timeout_s: float = 10.0


@dataclass(frozen=True, slots=True)
class CoalescingPolicy:
    """In-flight miss deduplication controls."""

    enabled: bool = True
