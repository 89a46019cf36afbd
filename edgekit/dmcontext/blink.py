"""Messages of the blink protocol exchanged with the north side."""

from __future__ import annotations

import time
import uuid
from dataclasses import dataclass
from typing import Any, Optional

__all__ = [
    "METHOD_PROPERTY_INVOKE",
    "METHOD_PROPERTY_REPORT",
    "METHOD_EVENT_REPORT",
    "METHOD_PROPERTY_GET",
    "METHOD_LIFECYCLE_POST",
    "DEFAULT_VERSION",
    "KEY_ONLINE_STATE",
    "BLINK",
    "DataBlink",
    "ContentBlink",
    "MsgBlink",
    "init_msg",
]

METHOD_PROPERTY_INVOKE = "thing.property.invoke"
METHOD_PROPERTY_REPORT = "thing.property.post"
METHOD_EVENT_REPORT = "thing.event.post"
METHOD_PROPERTY_GET = "thing.property.get"
METHOD_LIFECYCLE_POST = "thing.lifecycle.post"
DEFAULT_VERSION = "1.0"
KEY_ONLINE_STATE = "online_state"

BLINK = "blink"


@dataclass
class DataBlink:
    """The body of a blink message."""

    req_id: str = ""
    method: str = ""
    version: str = ""
    timestamp: int = 0
    properties: Any = None
    events: Optional[dict[str, Any]] = None
    params: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Return the document form, leaving out empty fields."""
        doc: dict[str, Any] = {}
        if self.req_id:
            doc["reqId"] = self.req_id
        if self.method:
            doc["method"] = self.method
        if self.version:
            doc["version"] = self.version
        if self.timestamp:
            doc["timestamp"] = self.timestamp
        if self.properties is not None:
            doc["properties"] = self.properties
        if self.events:
            doc["events"] = self.events
        if self.params:
            doc["params"] = self.params
        return doc


@dataclass
class ContentBlink:
    """A blink message wrapped under its ``blink`` key."""

    blink: DataBlink

    def to_dict(self) -> dict[str, Any]:
        return {"blink": self.blink.to_dict()}


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _message(method: str, **fields: Any) -> ContentBlink:
    return ContentBlink(
        DataBlink(
            req_id=str(uuid.uuid4()),
            method=method,
            version=DEFAULT_VERSION,
            timestamp=_now_ms(),
            **fields,
        )
    )


class MsgBlink:
    """Builds blink messages."""

    def gen_delta_blink_data(self, properties: dict[str, Any]) -> ContentBlink:
        """A request to change properties of a device."""
        return _message(METHOD_PROPERTY_INVOKE, properties=properties)

    def gen_property_report_data(self, properties: dict[str, Any]) -> ContentBlink:
        """A report of property values."""
        return _message(METHOD_PROPERTY_REPORT, properties=properties)

    def gen_event_report_data(self, events: dict[str, Any]) -> ContentBlink:
        """A report of events."""
        return _message(METHOD_EVENT_REPORT, events=events)

    def gen_property_get_blink_data(self, properties: list[str]) -> ContentBlink:
        """A request for the values of properties."""
        return _message(METHOD_PROPERTY_GET, properties=properties)

    def gen_lifecycle_report_data(self, online: bool) -> ContentBlink:
        """A report of whether a device is online."""
        return _message(METHOD_LIFECYCLE_POST, params={KEY_ONLINE_STATE: online})


def init_msg(kind: str) -> MsgBlink:
    """Return the message builder for ``kind``; blink is the only and the default one."""
    return MsgBlink()