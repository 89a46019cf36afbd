"""A recorded HTTP response that can be stored and replayed."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

__all__ = ["ResponseCache"]


def _set_each(pairs: Iterable[tuple[str, str]]) -> list[tuple[str, str]]:
    """Apply header pairs one by one, a later value replacing an earlier one."""
    merged: dict[str, tuple[str, str]] = {}
    for name, value in pairs:
        merged[name.lower()] = (name, value)
    return list(merged.values())


@dataclass
class ResponseCache:
    """The status, headers and body of a response."""

    status: int
    headers: list[tuple[str, str]] = field(default_factory=list)
    data: bytes = b""

    @classmethod
    def from_response(
        cls,
        status: int,
        headers: Iterable[tuple[str, str]],
        data: bytes,
        without_header: bool = False,
        without_header_ignore: Iterable[str] = (),
    ) -> "ResponseCache":
        """Record a response; with ``without_header`` keep only the listed headers."""
        recorded = cls(int(status), [(str(k), str(v)) for k, v in headers], bytes(data))
        if not without_header:
            return recorded
        kept = _set_each((key, recorded.header(key)) for key in without_header_ignore)
        return cls(recorded.status, kept, recorded.data)

    def header(self, name: str) -> str:
        """Return the first value of a header, ignoring case, or an empty string."""
        wanted = name.lower()
        return next((value for key, value in self.headers if key.lower() == wanted), "")

    def reply_headers(
        self, without_header: bool = False, without_header_ignore: Iterable[str] = ()
    ) -> list[tuple[str, str]]:
        """Return the headers to send when replaying this response."""
        if not without_header:
            return _set_each(self.headers)
        return _set_each((key, self.header(key)) for key in without_header_ignore)