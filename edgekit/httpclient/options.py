"""Settings of the HTTP client and server, and the result of an asynchronous request."""

from __future__ import annotations

import ssl
from dataclasses import dataclass, field, fields
from datetime import timedelta
from typing import Any, Optional

__all__ = [
    "BYTE_UNIT_KB",
    "BYTE_UNIT_MB",
    "SyncResult",
    "ServerConfig",
    "ClientOptions",
    "ClientConfig",
    "new_client_options",
]

BYTE_UNIT_KB = "KB"
BYTE_UNIT_MB = "MB"

_DURATION_FIELDS = (
    "timeout",
    "keep_alive",
    "idle_conn_timeout",
    "tls_handshake_timeout",
    "expect_continue_timeout",
    "read_timeout",
    "write_timeout",
    "idle_timeout",
)


def _seconds_from_timedeltas(obj: Any) -> None:
    names = {f.name for f in fields(obj)}
    for name in _DURATION_FIELDS:
        if name in names:
            value = getattr(obj, name)
            if isinstance(value, timedelta):
                setattr(obj, name, value.total_seconds())


@dataclass
class SyncResult:
    """The outcome of a request sent in the background.

    ``send_cost`` is the time the request itself took and ``sync_cost`` the
    time since it was queued, both in seconds.
    """

    url: str = ""
    body: bytes = b""
    err: Optional[BaseException] = None
    response: Any = None
    send_cost: float = 0.0
    sync_cost: float = 0.0
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass
class ServerConfig:
    """Settings of an HTTP server; durations are in seconds."""

    address: str = ":80"
    concurrency: int = 0
    disable_keepalive: bool = False
    tcp_keepalive: bool = False
    max_request_body_size: int = 0
    read_timeout: float = 0.0
    write_timeout: float = 0.0
    idle_timeout: float = 0.0
    ca: str = ""
    key: str = ""
    cert: str = ""
    name: str = ""
    insecure_skip_verify: bool = False

    def __post_init__(self) -> None:
        _seconds_from_timedeltas(self)


@dataclass
class ClientOptions:
    """Settings the client is built from; durations are in seconds."""

    address: str = ""
    tls_config: Optional[ssl.SSLContext] = None
    timeout: float = 30.0
    keep_alive: float = 30.0
    max_idle_conns: int = 100
    idle_conn_timeout: float = 90.0
    tls_handshake_timeout: float = 10.0
    expect_continue_timeout: float = 1.0
    speed_limit: int = 0
    byte_unit: str = ""
    sync_max_concurrency: int = 0

    def __post_init__(self) -> None:
        _seconds_from_timedeltas(self)


def new_client_options() -> ClientOptions:
    """Return client options with the default values."""
    return ClientOptions()


def _client_tls_context(
    ca: str, cert: str, key: str, name: str, insecure_skip_verify: bool
) -> Optional[ssl.SSLContext]:
    if not (ca or cert or key or insecure_skip_verify):
        return None
    context = ssl.create_default_context(ssl.Purpose.SERVER_AUTH)
    if ca:
        context.load_verify_locations(cafile=ca)
    if cert or key:
        context.load_cert_chain(certfile=cert, keyfile=key or None)
    if insecure_skip_verify:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    return context


@dataclass
class ClientConfig:
    """Client settings as read from a configuration file; durations are in seconds."""

    address: str = ""
    timeout: float = 30.0
    keep_alive: float = 30.0
    max_idle_conns: int = 100
    idle_conn_timeout: float = 90.0
    tls_handshake_timeout: float = 10.0
    expect_continue_timeout: float = 1.0
    byte_unit: str = BYTE_UNIT_KB
    speed_limit: int = 0
    sync_max_concurrency: int = 0
    ca: str = ""
    key: str = ""
    cert: str = ""
    name: str = ""
    insecure_skip_verify: bool = False

    def __post_init__(self) -> None:
        _seconds_from_timedeltas(self)

    def to_client_options(self) -> ClientOptions:
        """Build client options, loading the certificates the config names.

        Raises OSError or ssl.SSLError if a certificate cannot be loaded.
        """
        tls_config = _client_tls_context(
            self.ca, self.cert, self.key, self.name, self.insecure_skip_verify
        )
        return ClientOptions(
            address=self.address,
            tls_config=tls_config,
            timeout=self.timeout,
            keep_alive=self.keep_alive,
            max_idle_conns=self.max_idle_conns,
            idle_conn_timeout=self.idle_conn_timeout,
            tls_handshake_timeout=self.tls_handshake_timeout,
            expect_continue_timeout=self.expect_continue_timeout,
            speed_limit=self.speed_limit,
            byte_unit=self.byte_unit,
            sync_max_concurrency=self.sync_max_concurrency,
        )