"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: store/__init__.py.
"""

from .base import CacheEntry, CacheStats, EvictionPolicy, ExpirationPolicy
from .memory import CacheStore
from .policies import (
    FIFOEvictionPolicy,
    FixedTTLExpiration,
    LRUEvictionPolicy,
    create_eviction_policy,
    list_eviction_policies,
    register_eviction_policy,
)
from .sweeper import ExpirySweeper

__all__ = [
    "CacheEntry",
    "CacheStats",
    "CacheStore",
    "EvictionPolicy",
    "ExpirationPolicy",
    "ExpirySweeper",
    "FIFOEvictionPolicy",
    "FixedTTLExpiration",
    "LRUEvictionPolicy",
    "create_eviction_policy",
    "list_eviction_policies",
    "register_eviction_policy",
]
