"""The interface every response cache backend implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any

__all__ = ["CacheMiss", "NotStored", "CacheStore"]


class CacheMiss(LookupError):
    """The key does not exist in the store."""

    def __init__(self, message: str = "cache: key not found") -> None:
        super().__init__(message)


class NotStored(Exception):
    """The value could not be stored."""

    def __init__(self, message: str = "cache: not stored") -> None:
        super().__init__(message)


class CacheStore(ABC):
    """A key-value store with expiring entries."""

    @abstractmethod
    def get(self, key: str) -> Any:
        """Return the value for ``key``; raise CacheMiss if it is absent."""

    @abstractmethod
    def set(self, key: str, value: Any, expire: float | timedelta) -> None:
        """Store ``value`` under ``key`` for ``expire`` seconds, replacing any entry."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key`` from the store."""