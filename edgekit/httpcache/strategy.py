"""How a request maps to a cache key, and the options of the response cache."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import TYPE_CHECKING, Any, Callable, MutableMapping, Optional
from urllib.parse import parse_qsl, quote, unquote, urlsplit

from edgekit.persist.store import CacheStore

if TYPE_CHECKING:
    from edgekit.httpcache.reply import ResponseCache

__all__ = [
    "Strategy",
    "CacheConfig",
    "get_request_uri_ignore_query_order",
    "request_uri_strategy",
    "request_path_strategy",
]

Environ = MutableMapping[str, Any]

_LOGGER = logging.getLogger("edgekit.httpcache")
_LOGGER.addHandler(logging.NullHandler())


@dataclass
class Strategy:
    """How one request is cached: its key, and optionally its own store and lifetime."""

    cache_key: str
    cache_store: Optional[CacheStore] = None
    cache_duration: float | timedelta = 0


def _default_callback(*args: Any) -> None:
    """Record a cache event at debug level when no callback is configured."""
    _LOGGER.debug("response cache event with %d argument(s)", len(args))


@dataclass
class CacheConfig:
    """Options of the response cache.

    ``get_cache_strategy_by_request`` returns a :class:`Strategy`, or ``None``
    when the request must not be cached.
    """

    logger: logging.Logger = _LOGGER
    get_cache_strategy_by_request: Optional[Callable[[Environ], Optional[Strategy]]] = None
    on_hit_cache: Callable[[Environ], None] = _default_callback
    on_miss_cache: Callable[[Environ], None] = _default_callback
    before_reply_with_cache: Callable[[Environ, "ResponseCache"], None] = _default_callback
    single_flight_forget_timeout: float = 0.0
    on_share_single_flight: Callable[[Environ], None] = _default_callback
    ignore_query_order: bool = False
    without_header: bool = False
    without_header_ignore: list[str] = field(default_factory=list)
    prefix_key: str = ""
    key_with_context: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = _LOGGER
        for name in ("on_hit_cache", "on_miss_cache", "before_reply_with_cache",
                     "on_share_single_flight"):
            if getattr(self, name) is None:
                setattr(self, name, _default_callback)
        if isinstance(self.single_flight_forget_timeout, timedelta):
            self.single_flight_forget_timeout = self.single_flight_forget_timeout.total_seconds()
        if not self.single_flight_forget_timeout or self.single_flight_forget_timeout < 0:
            self.single_flight_forget_timeout = 0.0
        self.without_header_ignore = list(self.without_header_ignore or [])
        self.key_with_context = list(self.key_with_context or [])


def _request_path(environ: Environ) -> str:
    return environ.get("SCRIPT_NAME", "") + environ.get("PATH_INFO", "")


def _request_uri(environ: Environ) -> str:
    uri = environ.get("REQUEST_URI")
    if uri:
        return uri
    path = quote(_request_path(environ) or "/")
    query = environ.get("QUERY_STRING", "")
    return f"{path}?{query}" if query else path


def get_request_uri_ignore_query_order(request_uri: str) -> str:
    """Return the URI with its query parameters, and the values of each, sorted.

    Raises ValueError if ``request_uri`` is not a valid request URI.
    """
    if not request_uri:
        raise ValueError("empty url")
    parts = urlsplit(request_uri)
    if not request_uri.startswith("/") and not parts.scheme:
        raise ValueError(f"invalid URI for request: {request_uri!r}")
    pairs = parse_qsl(parts.query, keep_blank_values=True)
    if not pairs:
        return request_uri
    grouped: dict[str, list[str]] = {}
    for key, value in pairs:
        grouped.setdefault(key, []).append(value)
    query = "&".join(f"{key}={value}" for key in sorted(grouped) for value in sorted(grouped[key]))
    return f"{unquote(parts.path)}?{query}"


def request_uri_strategy(config: CacheConfig) -> Callable[[Environ], Strategy]:
    """Return a strategy keying each request by its URI, path and query."""

    def strategy(environ: Environ) -> Strategy:
        uri = _request_uri(environ)
        if config.ignore_query_order:
            try:
                uri = get_request_uri_ignore_query_order(uri)
            except ValueError as exc:
                config.logger.error("getRequestUriIgnoreQueryOrder error: %s", exc)
        return Strategy(cache_key=uri)

    return strategy


def request_path_strategy(environ: Environ) -> Strategy:
    """Key a request by its path alone, discarding the query."""
    return Strategy(cache_key=_request_path(environ))