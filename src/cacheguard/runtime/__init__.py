"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .circuit_breaker import CircuitBreaker, CircuitSnapshot, CircuitState
from .coalescing import RequestCoalescer
from .contracts import CircuitBreakerPolicy, CoalescingPolicy, WriteBehindPolicy

__all__ = [
    "CircuitBreaker",
    "CircuitSnapshot",
    "CircuitState",
    "RequestCoalescer",
    "CircuitBreakerPolicy",
    "CoalescingPolicy",
    "WriteBehindPolicy",
]
