"""A response cache store kept in process memory."""

from __future__ import annotations

import threading
import time
from datetime import timedelta
from typing import Any, Callable

from edgekit.persist.store import CacheMiss, CacheStore

__all__ = ["InMemoryStore", "DEFAULT_EXPIRATION", "NO_EXPIRATION"]

DEFAULT_EXPIRATION = 0
NO_EXPIRATION = -1


def _seconds(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value)


class InMemoryStore(CacheStore):
    """A thread-safe dictionary whose entries expire.

    An expiry of ``DEFAULT_EXPIRATION`` uses the store's default; a negative
    expiry keeps the entry until it is deleted.
    """

    def __init__(
        self,
        default_expiration: float | timedelta,
        cleanup_interval: float | timedelta = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._default = _seconds(default_expiration)
        self._cleanup_interval = _seconds(cleanup_interval)
        self._clock = clock
        self._items: dict[str, tuple[Any, float | None]] = {}
        self._lock = threading.Lock()
        self._last_cleanup = clock()

    def _expired(self, deadline: float | None, now: float) -> bool:
        return deadline is not None and now > deadline

    def _purge(self, now: float) -> None:
        if self._cleanup_interval <= 0 or now - self._last_cleanup < self._cleanup_interval:
            return
        self._last_cleanup = now
        for key in [k for k, (_, d) in self._items.items() if self._expired(d, now)]:
            del self._items[key]

    def get(self, key: str) -> Any:
        with self._lock:
            entry = self._items.get(key)
            if entry is None or self._expired(entry[1], self._clock()):
                raise CacheMiss()
            return entry[0]

    def set(self, key: str, value: Any, expire: float | timedelta) -> None:
        seconds = _seconds(expire)
        if seconds == DEFAULT_EXPIRATION:
            seconds = self._default
        with self._lock:
            now = self._clock()
            self._purge(now)
            deadline = now + seconds if seconds > 0 else None
            self._items[key] = (value, deadline)

    def delete(self, key: str) -> None:
        with self._lock:
            entry = self._items.pop(key, None)
            if entry is None or self._expired(entry[1], self._clock()):
                raise CacheMiss()