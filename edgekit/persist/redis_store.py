"""A response cache store kept in Redis."""

from __future__ import annotations

from datetime import timedelta
from typing import Any

from edgekit.persist.codec import deserialize, serialize
from edgekit.persist.store import CacheMiss, CacheStore

__all__ = ["RedisStore"]


def _seconds(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class RedisStore(CacheStore):
    """Stores serialized values through a ``redis.Redis`` client."""

    def __init__(self, redis_client: Any) -> None:
        self.redis_client = redis_client

    def set(self, key: str, value: Any, expire: float | timedelta) -> None:
        payload = serialize(value)
        milliseconds = int(_seconds(expire) * 1000)
        if milliseconds > 0:
            self.redis_client.set(key, payload, px=milliseconds)
        else:
            self.redis_client.set(key, payload)

    def delete(self, key: str) -> None:
        self.redis_client.delete(key)

    def get(self, key: str) -> Any:
        payload = self.redis_client.get(key)
        if payload is None:
            raise CacheMiss()
        return deserialize(payload)