"""Turning cached values into bytes and back."""

from __future__ import annotations

import pickle
from typing import Any

__all__ = ["serialize", "deserialize"]


def serialize(value: Any) -> bytes:
    """Return the bytes that represent ``value``."""
    return pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)


def deserialize(payload: bytes) -> Any:
    """Rebuild a value from bytes made by :func:`serialize`."""
    try:
        return pickle.loads(payload)
    except (pickle.UnpicklingError, EOFError, AttributeError, ImportError,
            IndexError, KeyError, TypeError, ValueError) as exc:
        raise ValueError(f"cannot deserialize payload: {exc}") from exc