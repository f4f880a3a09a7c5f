"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Small shared helpers.
"""

from __future__ import annotations

import inspect
import os
from random import random
from typing import Any


def backoff_delay(
    attempt: int,
    base_s: float,
    max_s: float,
    jitter_s: float = 0.0,
) -> float:
    """Capped exponential backoff plus jitter; `attempt` starts at 1."""
    if base_s <= 0:
        base = 0.0
    else:
        base = base_s * (2 ** max(0, attempt - 1))
    capped = min(base, max_s)
    jitter = random() * jitter_s if jitter_s > 0 else 0.0
    return max(0.0, capped + jitter)


async def maybe_await(value: Any) -> Any:
    """Await `value` when it is awaitable, otherwise return it unchanged."""
    if inspect.isawaitable(value):
        return await value
    return value


def env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default
