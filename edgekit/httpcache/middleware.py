"""WSGI middleware that caches 2xx responses and collapses concurrent misses."""

from __future__ import annotations

import dataclasses
import threading
from dataclasses import dataclass
from datetime import timedelta
from http import HTTPStatus
from typing import Any, Callable, Iterable

from edgekit.httpcache.reply import ResponseCache
from edgekit.httpcache.strategy import (
    CacheConfig,
    Environ,
    Strategy,
    request_path_strategy,
    request_uri_strategy,
)
from edgekit.persist.store import CacheMiss, CacheStore

__all__ = ["CacheMiddleware", "cache", "cache_by_request_uri", "cache_by_request_path"]

WSGIApp = Callable[[Environ, Callable[..., Any]], Iterable[bytes]]


def _seconds(value: float | timedelta) -> float:
    if isinstance(value, timedelta):
        return value.total_seconds()
    return float(value or 0)


def _status_line(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return f"{code} Unknown"


@dataclass
class _Captured:
    status_line: str
    headers: list[tuple[str, str]]
    data: bytes

    @property
    def status(self) -> int:
        return int(self.status_line.split(" ", 1)[0])


def _run_app(app: WSGIApp, environ: Environ) -> _Captured:
    state: dict[str, Any] = {}
    chunks: list[bytes] = []

    def start_response(status: str, headers: list[tuple[str, str]], exc_info: Any = None):
        state["status"] = status
        state["headers"] = list(headers)
        return chunks.append

    result = app(environ, start_response)
    try:
        for chunk in result:
            chunks.append(chunk)
    finally:
        close = getattr(result, "close", None)
        if close is not None:
            close()
    if "status" not in state:
        raise RuntimeError("application did not call start_response")
    return _Captured(state["status"], state["headers"], b"".join(chunks))


class _Call:
    def __init__(self) -> None:
        self.done = threading.Event()
        self.value: Any = None
        self.error: BaseException | None = None


class _SingleFlight:
    """Runs one call per key at a time; concurrent callers share its result."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._calls: dict[str, _Call] = {}

    def do(self, key: str, fn: Callable[[], Any]) -> tuple[Any, bool]:
        with self._lock:
            call = self._calls.get(key)
            leader = call is None
            if leader:
                call = _Call()
                self._calls[key] = call
        if not leader:
            call.done.wait()
            if call.error is not None:
                raise call.error
            return call.value, True
        try:
            call.value = fn()
        except BaseException as exc:
            call.error = exc
            raise
        finally:
            with self._lock:
                if self._calls.get(key) is call:
                    del self._calls[key]
            call.done.set()
        return call.value, False

    def forget(self, key: str) -> None:
        with self._lock:
            self._calls.pop(key, None)


class CacheMiddleware:
    """Serves cached responses for a WSGI application."""

    def __init__(self, app: WSGIApp, store: CacheStore, default_expire: float | timedelta,
                 config: CacheConfig) -> None:
        if config.get_cache_strategy_by_request is None:
            raise ValueError("cache strategy is nil")
        self.app = app
        self.store = store
        self.default_expire = default_expire
        self.config = config
        self._flight = _SingleFlight()

    def _cache_key(self, environ: Environ, strategy: Strategy) -> str:
        key = strategy.cache_key
        if self.config.prefix_key:
            key = self.config.prefix_key + key
        for name in self.config.key_with_context:
            value = environ.get(name, "")
            key = (value if isinstance(value, str) else "") + key
        return key

    def _reply(self, environ: Environ, start_response: Callable[..., Any],
               response: ResponseCache) -> list[bytes]:
        cfg = self.config
        cfg.before_reply_with_cache(environ, response)
        start_response(_status_line(response.status),
                       response.reply_headers(cfg.without_header, cfg.without_header_ignore))
        return [response.data]

    def __call__(self, environ: Environ, start_response: Callable[..., Any]) -> Iterable[bytes]:
        cfg = self.config
        strategy = cfg.get_cache_strategy_by_request(environ)
        if strategy is None:
            return self.app(environ, start_response)

        key = self._cache_key(environ, strategy)
        store = strategy.cache_store if strategy.cache_store is not None else self.store
        duration = strategy.cache_duration if _seconds(strategy.cache_duration) > 0 else self.default_expire

        try:
            cached = store.get(key)
        except CacheMiss:
            cfg.on_miss_cache(environ)
        except Exception as exc:
            cfg.logger.error("get cache error: %s, cache key: %s", exc, key)
            cfg.on_miss_cache(environ)
        else:
            body = self._reply(environ, start_response, cached)
            cfg.on_hit_cache(environ)
            return body

        def produce() -> tuple[_Captured, ResponseCache]:
            timer = None
            if cfg.single_flight_forget_timeout > 0:
                timer = threading.Timer(cfg.single_flight_forget_timeout, self._flight.forget, args=(key,))
                timer.daemon = True
                timer.start()
            try:
                captured = _run_app(self.app, environ)
            finally:
                if timer is not None:
                    timer.cancel()
            response = ResponseCache.from_response(
                captured.status, captured.headers, captured.data,
                cfg.without_header, cfg.without_header_ignore,
            )
            if 200 <= captured.status < 300:
                try:
                    store.set(key, response, duration)
                except Exception as exc:
                    cfg.logger.error("set cache key error: %s, cache key: %s", exc, key)
            return captured, response

        (captured, response), shared = self._flight.do(key, produce)
        if shared:
            body = self._reply(environ, start_response, response)
            cfg.on_share_single_flight(environ)
            return body
        start_response(captured.status_line, captured.headers)
        return [captured.data]


def cache(app: WSGIApp, store: CacheStore, default_expire: float | timedelta,
          config: CacheConfig | None = None) -> CacheMiddleware:
    """Cache ``app`` with the strategy given in ``config``."""
    return CacheMiddleware(app, store, default_expire, config or CacheConfig())


def cache_by_request_uri(app: WSGIApp, store: CacheStore, default_expire: float | timedelta,
                         config: CacheConfig | None = None) -> CacheMiddleware:
    """Cache ``app`` keyed by request URI, path and query."""
    config = dataclasses.replace(config or CacheConfig())
    config.get_cache_strategy_by_request = request_uri_strategy(config)
    return CacheMiddleware(app, store, default_expire, config)


def cache_by_request_path(app: WSGIApp, store: CacheStore, default_expire: float | timedelta,
                          config: CacheConfig | None = None) -> CacheMiddleware:
    """Cache ``app`` keyed by request path, discarding the query."""
    config = dataclasses.replace(config or CacheConfig(), get_cache_strategy_by_request=request_path_strategy)
    return CacheMiddleware(app, store, default_expire, config)