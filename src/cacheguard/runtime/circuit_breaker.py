"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/circuit_breaker.py.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import TypeVar

from ..errors import CircuitOpen, ConfigurationError, NotFound
from .contracts import CircuitBreakerPolicy

T = TypeVar("T")

logger = logging.getLogger("cacheguard.runtime.circuit_breaker")


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


StateChangeCallback = Callable[[CircuitState, CircuitState], None]


@dataclass(frozen=True, slots=True)
class CircuitSnapshot:
    """Read-only view of breaker state for stats and logging."""

    name: str
    state: CircuitState
    failure_count: int
    last_failure_at: float | None
    failure_threshold: int
    open_timeout_s: float
    rejected_calls: int


class CircuitBreaker:
    """
    Closed/Open/HalfOpen breaker around calls to an upstream source.

    State is guarded by an asyncio lock that is released before the wrapped
    call runs, so a slow upstream never blocks other callers' admission.
    """

    def __init__(
        self,
        failure_threshold: int = 5,
        open_timeout_s: float = 60.0,
        *,
        name: str = "default",
        excluded_errors: tuple[type[BaseException], ...] = (NotFound,),
        on_state_change: StateChangeCallback | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if isinstance(failure_threshold, bool) or not isinstance(failure_threshold, int):
            raise ConfigurationError("failure_threshold must be an integer")
        if failure_threshold <= 0:
            raise ConfigurationError("failure_threshold must be > 0")
        if open_timeout_s <= 0:
            raise ConfigurationError("open_timeout_s must be > 0")
        self.name = name
        self._threshold = failure_threshold
        self._open_timeout_s = float(open_timeout_s)
        self._excluded = tuple(excluded_errors)
        self._on_state_change = on_state_change
        self._clock = clock
        self._lock = asyncio.Lock()

        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_at: float | None = None
        self._trial_in_flight = False
        self._rejected = 0

    @classmethod
    def from_policy(
        cls,
        policy: CircuitBreakerPolicy,
        **kwargs,
    ) -> "CircuitBreaker":
        return cls(policy.failure_threshold, policy.open_timeout_s, **kwargs)

    @property
    def state(self) -> CircuitState:
        """Current state; an elapsed open timeout reads as half-open."""
        self._transition(self._expire_open())
        return self._state

    @property
    def failure_count(self) -> int:
        return self._failures

    def snapshot(self) -> CircuitSnapshot:
        return CircuitSnapshot(
            name=self.name,
            state=self.state,
            failure_count=self._failures,
            last_failure_at=self._last_failure_at,
            failure_threshold=self._threshold,
            open_timeout_s=self._open_timeout_s,
            rejected_calls=self._rejected,
        )

    def reset(self) -> None:
        """Force the breaker back to closed with a clean failure count."""
        previous = self._state
        self._state = CircuitState.CLOSED
        self._failures = 0
        self._last_failure_at = None
        self._trial_in_flight = False
        self._transition((previous, CircuitState.CLOSED))

    async def call(self, fn: Callable[[], Awaitable[T] | T]) -> T:
        """
        Run `fn` through the breaker.

        Raises `CircuitOpen` without invoking `fn` while open. Exceptions
        from `fn` propagate unchanged after being recorded as failures,
        except `excluded_errors`, which are recorded as successes.
        """
        is_trial = await self._admit()
        try:
            result = fn()
            if inspect.isawaitable(result):
                result = await result
        except self._excluded:
            await self._record_success(is_trial)
            raise
        except Exception:
            await self._record_failure(is_trial)
            raise
        except BaseException:
            if is_trial:
                await self._release_trial()
            raise
        await self._record_success(is_trial)
        return result

    async def _admit(self) -> bool:
        async with self._lock:
            change = self._expire_open()
            if self._state is CircuitState.CLOSED:
                admitted, is_trial = True, False
            elif self._state is CircuitState.HALF_OPEN and not self._trial_in_flight:
                self._trial_in_flight = True
                admitted, is_trial = True, True
            else:
                self._rejected += 1
                admitted, is_trial = False, False
                retry_after = self._retry_after_s()
        self._transition(change)
        if not admitted:
            raise CircuitOpen(
                f"Circuit '{self.name}' is {self._state.value}",
                retry_after_s=retry_after,
            )
        return is_trial

    async def _record_success(self, is_trial: bool) -> None:
        change = None
        async with self._lock:
            if is_trial:
                self._trial_in_flight = False
                if self._state is CircuitState.HALF_OPEN:
                    change = (self._state, CircuitState.CLOSED)
                    self._state = CircuitState.CLOSED
                    self._failures = 0
            elif self._state is CircuitState.CLOSED:
                self._failures = 0
        self._transition(change)

    async def _record_failure(self, is_trial: bool) -> None:
        change = None
        async with self._lock:
            now = self._clock()
            if is_trial:
                self._trial_in_flight = False
                if self._state is CircuitState.HALF_OPEN:
                    change = (self._state, CircuitState.OPEN)
                    self._state = CircuitState.OPEN
                    self._last_failure_at = now
            elif self._state is CircuitState.CLOSED:
                self._failures += 1
                self._last_failure_at = now
                if self._failures >= self._threshold:
                    change = (self._state, CircuitState.OPEN)
                    self._state = CircuitState.OPEN
        self._transition(change)

    async def _release_trial(self) -> None:
        async with self._lock:
            self._trial_in_flight = False

    def _expire_open(self) -> tuple[CircuitState, CircuitState] | None:
        if self._state is not CircuitState.OPEN or self._last_failure_at is None:
            return None
        if self._clock() - self._last_failure_at < self._open_timeout_s:
            return None
        self._state = CircuitState.HALF_OPEN
        self._trial_in_flight = False
        return (CircuitState.OPEN, CircuitState.HALF_OPEN)

    def _retry_after_s(self) -> float | None:
        if self._state is not CircuitState.OPEN or self._last_failure_at is None:
            return None
        elapsed = self._clock() - self._last_failure_at
        return max(0.0, self._open_timeout_s - elapsed)

    def _transition(
        self, change: tuple[CircuitState, CircuitState] | None
    ) -> None:
        if change is None or change[0] is change[1]:
            return
        old, new = change
        if new is CircuitState.OPEN:
            logger.warning(
                "Circuit '%s' opened after %d failure(s) (was %s)",
                self.name,
                self._failures,
                old.value,
            )
        else:
            logger.info("Circuit '%s' %s -> %s", self.name, old.value, new.value)
        if self._on_state_change is not None:
            try:
                self._on_state_change(old, new)
            except Exception:  # noqa: BLE001
                logger.exception("Circuit '%s' state-change callback failed", self.name)
