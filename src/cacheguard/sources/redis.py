"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: sources/redis.py.
"""

from __future__ import annotations

import json
from collections.abc import Hashable
from typing import Any

from redis.exceptions import RedisError

from ..errors import NotFound, SourceUnavailable
from .base import DataSource


class RedisDataSource(DataSource):
    """
    Redis-backed data source storing JSON-encoded values.

    Expects a `redis.asyncio` client. The client is owned by the caller and is
    never closed here.
    """

    def __init__(self, redis_client, *, prefix: str = "cacheguard:source") -> None:
        self._redis = redis_client
        self._prefix = prefix

    def _key(self, key: Hashable) -> str:
        return f"{self._prefix}:{key}"

    async def load(self, key: Hashable) -> Any:
        try:
            blob = await self._redis.get(self._key(key))
        except (RedisError, OSError) as exc:
            raise SourceUnavailable(f"redis load failed: {exc}") from exc
        if blob is None:
            raise NotFound(f"key {key!r} not found")
        if isinstance(blob, bytes):
            blob = blob.decode("utf-8")
        try:
            return json.loads(blob)
        except ValueError as exc:
            raise SourceUnavailable(f"corrupt payload for key {key!r}") from exc

    async def write(self, key: Hashable, value: Any) -> Any:
        payload = json.dumps(value, ensure_ascii=True)
        try:
            return await self._redis.set(self._key(key), payload)
        except (RedisError, OSError) as exc:
            raise SourceUnavailable(f"redis write failed: {exc}") from exc
