"""Configuration records of device access, device models and drivers.

Every record is a dataclass whose fields carry the key they have in YAML or
JSON documents. :func:`from_dict` builds a record from a parsed document and
:func:`to_dict` turns one back into plain data.
"""

import dataclasses
import re
import types
import typing
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Any, Optional, TypeVar

__all__ = [
    "QOSTopic",
    "AccessTemplate",
    "ModelMapping",
    "AccessConfig",
    "ModbusAccessConfig",
    "IEC104AccessConfig",
    "TCPConfig",
    "RTUConfig",
    "OpcuaAccessConfig",
    "OpcdaAccessConfig",
    "BacnetAccessConfig",
    "OpcuaSecurity",
    "OpcuaAuth",
    "OpcuaCertificate",
    "IpcDeviceConfig",
    "IpcScale",
    "IpcRequest",
    "IpcBody",
    "IpcServiceConfig",
    "ReportProperty",
    "Event",
    "EnumType",
    "EnumValue",
    "ArrayType",
    "ObjectType",
    "PropertyVisitor",
    "IEC104Visitor",
    "ModbusVisitor",
    "OpcuaVisitor",
    "OpcdaVisitor",
    "BacnetVisitor",
    "DeviceProperty",
    "DeviceInfo",
    "DeviceTopic",
    "PropertyGet",
    "parse_duration",
    "from_dict",
    "to_dict",
]

T = TypeVar("T")

_MISSING = dataclasses.MISSING


def _f(key: str, default: Any = _MISSING, *, factory: Any = _MISSING, omitempty: bool = True) -> Any:
    """Declare a field with its document key."""
    meta = {"key": key, "omitempty": omitempty}
    if factory is not _MISSING:
        return field(default_factory=factory, metadata=meta)
    if default is _MISSING:
        default = ""
    return field(default=default, metadata=meta)


# --------------------------------------------------------------------------
# durations

_UNITS_NS = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,
    "μs": 1_000,
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}
_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: Any) -> timedelta:
    """Read a duration such as ``"1h30m"``, ``"10s"`` or an integer of nanoseconds."""
    if isinstance(value, timedelta):
        return value
    if isinstance(value, bool):
        raise TypeError(f"cannot read a duration from {value!r}")
    if isinstance(value, (int, float)):
        return timedelta(microseconds=value / 1000)
    if not isinstance(value, str):
        raise TypeError(f"cannot read a duration from {value!r}")
    text = value.strip()
    sign = 1
    if text[:1] in "+-" and text:
        sign = -1 if text[0] == "-" else 1
        text = text[1:]
    if text == "0":
        return timedelta(0)
    if not text:
        raise ValueError(f"invalid duration {value!r}")
    total_ns = 0.0
    position = 0
    for match in _DURATION_PART.finditer(text):
        if match.start() != position:
            raise ValueError(f"invalid duration {value!r}")
        total_ns += float(match.group(1)) * _UNITS_NS[match.group(2)]
        position = match.end()
    if position != len(text):
        raise ValueError(f"invalid duration {value!r}")
    return timedelta(microseconds=sign * total_ns / 1000)


def _fraction(amount: int, unit: int) -> str:
    whole, rest = divmod(amount, unit)
    if not rest:
        return str(whole)
    digits = len(str(unit)) - 1
    return f"{whole}.{str(rest).zfill(digits).rstrip('0')}"


def _format_duration(value: timedelta) -> str:
    total_ns = ((value.days * 86400 + value.seconds) * 1_000_000 + value.microseconds) * 1000
    if total_ns == 0:
        return "0s"
    sign = "-" if total_ns < 0 else ""
    ns = abs(total_ns)
    if ns < 1_000:
        return f"{sign}{ns}ns"
    if ns < 1_000_000:
        return f"{sign}{_fraction(ns, 1_000)}µs"
    if ns < 1_000_000_000:
        return f"{sign}{_fraction(ns, 1_000_000)}ms"
    hours, ns = divmod(ns, _UNITS_NS["h"])
    minutes, ns = divmod(ns, _UNITS_NS["m"])
    seconds = _fraction(ns, _UNITS_NS["s"])
    if hours:
        return f"{sign}{hours}h{minutes}m{seconds}s"
    if minutes:
        return f"{sign}{minutes}m{seconds}s"
    return f"{sign}{seconds}s"


# --------------------------------------------------------------------------
# records


@dataclass
class QOSTopic:
    """A topic with the quality of service to subscribe or publish at."""

    qos: int = _f("qos", 0)
    topic: str = _f("topic")


@dataclass
class ModelMapping:
    """Maps a model attribute to access-template properties by an expression."""

    attribute: str = _f("attribute")
    type: str = _f("type", "none")
    expression: str = _f("expression")
    precision: int = _f("precision", 0, omitempty=False)
    deviation: float = _f("deviation", 0.0, omitempty=False)
    silent_win: int = _f("silentWin", 0, omitempty=False)


@dataclass
class TCPConfig:
    address: str = _f("address")
    port: int = _f("port", 0)


@dataclass
class RTUConfig:
    port: str = _f("port")
    baud_rate: int = _f("baudrate", 19200)
    parity: str = _f("parity", "E")
    data_bit: int = _f("databit", 8)
    stop_bit: int = _f("stopbit", 1)


@dataclass
class ModbusAccessConfig:
    id: int = _f("id", 0)
    interval: timedelta = _f("interval", factory=timedelta)
    timeout: timedelta = _f("timeout", factory=lambda: timedelta(seconds=10))
    idle_timeout: timedelta = _f("idletimeout", factory=lambda: timedelta(minutes=1))
    tcp: Optional[TCPConfig] = _f("tcp", None)
    rtu: Optional[RTUConfig] = _f("rtu", None)


@dataclass
class IEC104AccessConfig:
    id: int = _f("id", 0)
    interval: timedelta = _f("interval", factory=timedelta)
    endpoint: str = _f("endpoint")
    ai_offset: int = _f("aiOffset", 0)
    di_offset: int = _f("diOffset", 0)
    ao_offset: int = _f("aoOffset", 0)
    do_offset: int = _f("doOffset", 0)


@dataclass
class OpcuaSecurity:
    policy: str = _f("policy")
    mode: str = _f("mode")


@dataclass
class OpcuaAuth:
    username: str = _f("username")
    password: str = _f("password")


@dataclass
class OpcuaCertificate:
    cert: str = _f("cert")
    key: str = _f("key")


@dataclass
class OpcuaAccessConfig:
    id: int = _f("id", 0)
    endpoint: str = _f("endpoint")
    subscribe: bool = _f("subscribe", False)
    interval: timedelta = _f("interval", factory=timedelta)
    timeout: timedelta = _f("timeout", factory=timedelta)
    security: OpcuaSecurity = _f("security", factory=OpcuaSecurity)
    auth: Optional[OpcuaAuth] = _f("auth", None)
    certificate: Optional[OpcuaCertificate] = _f("certificate", None)
    ns_offset: int = _f("nsOffset", 0)
    id_offset: int = _f("idOffset", 0)


@dataclass
class OpcdaAccessConfig:
    host: str = _f("host")
    cls_id: str = _f("clsid")
    program_id: str = _f("programid")
    username: str = _f("username")
    password: str = _f("password")
    interval: int = _f("interval", 0)


@dataclass
class BacnetAccessConfig:
    id: int = _f("id", 0)
    interval: timedelta = _f("interval", factory=timedelta)
    device_id: int = _f("deviceId", 0)
    address_offset: int = _f("addressOffset", 0)
    address: str = _f("address")
    port: int = _f("port", 0)


@dataclass
class AccessConfig:
    """How a driver reaches a device; a malformed document yields an empty one."""

    _lenient = True

    modbus: Optional[ModbusAccessConfig] = _f("modbus", None)
    opcua: Optional[OpcuaAccessConfig] = _f("opcua", None)
    opcda: Optional[OpcdaAccessConfig] = _f("opcda", None)
    bacnet: Optional[BacnetAccessConfig] = _f("bacnet", None)
    iec104: Optional[IEC104AccessConfig] = _f("iec104", None)
    custom: Optional[str] = _f("custom", None)


@dataclass
class IpcDeviceConfig:
    name: str = _f("name", omitempty=False)
    stream_address: str = _f("streamAddress", omitempty=False)
    service_name: str = _f("serviceName", omitempty=False)
    result_topic: str = _f("resultTopic", omitempty=False)
    agent_enable: bool = _f("agentEnable", False, omitempty=False)
    system: bool = _f("system", False, omitempty=False)
    remote_address: str = _f("remoteAddress")
    ip: str = _f("ip", omitempty=False)
    port: int = _f("port", 80, omitempty=False)
    username: str = _f("username", omitempty=False)
    password: str = _f("password", omitempty=False)


@dataclass
class IpcScale:
    enable: bool = _f("enable", False)
    height: int = _f("height", 0)
    width: int = _f("width", 0)


@dataclass
class IpcRequest:
    params: dict[str, str] = _f("params", factory=dict)


@dataclass
class IpcBody:
    content: str = _f("content")
    image_type: str = _f("imageType")
    image_name: str = _f("imageName")
    params: dict[str, Any] = _f("params", factory=dict)


@dataclass
class IpcServiceConfig:
    name: str = _f("name")
    fps: float = _f("fps", 0.0)
    image_format: str = _f("imageFormat", "jpg")
    scale: IpcScale = _f("scale", factory=IpcScale)
    address: str = _f("address")
    request: IpcRequest = _f("request", factory=IpcRequest)
    body: IpcBody = _f("body", factory=IpcBody)
    upload: bool = _f("upload", False)
    cache: bool = _f("cache", False)
    cache_path: str = _f("cachePath", "var/lib/baetyl/image")
    cache_time: int = _f("cacheTime", 3)


@dataclass
class ReportProperty:
    time: Optional[datetime] = _f("time", None)
    value: Any = _f("value", None)


@dataclass
class Event:
    type: str = _f("type")
    payload: Any = _f("payload", None)


@dataclass
class EnumValue:
    name: str = _f("name")
    value: str = _f("value")
    display_name: str = _f("displayName")


@dataclass
class EnumType:
    type: str = _f("type")
    values: list[EnumValue] = _f("values", factory=list)


@dataclass
class ArrayType:
    type: str = _f("type")
    min: int = _f("min", 0)
    max: int = _f("max", 0)
    format: str = _f("format")


@dataclass
class ObjectType:
    display_name: str = _f("displayName")
    type: str = _f("type")
    format: str = _f("format")


@dataclass
class IEC104Visitor:
    point_num: int = _f("pointNum", 0, omitempty=False)
    point_type: str = _f("pointType")
    type: str = _f("type")


@dataclass
class ModbusVisitor:
    function: int = _f("function", 0, omitempty=False)
    address: str = _f("address", omitempty=False)
    quantity: int = _f("quantity", 0, omitempty=False)
    type: str = _f("type")
    unit: str = _f("unit")
    scale: float = _f("scale", 0.0, omitempty=False)
    swap_byte: bool = _f("swapByte", False, omitempty=False)
    swap_register: bool = _f("swapRegister", False, omitempty=False)


@dataclass
class OpcuaVisitor:
    node_id: str = _f("nodeid")
    type: str = _f("type")
    ns_base: int = _f("nsBase", 0)
    id_base: str = _f("idBase")
    id_type: str = _f("idType")


@dataclass
class OpcdaVisitor:
    datapath: str = _f("datapath")
    type: str = _f("type")


@dataclass
class BacnetVisitor:
    type: str = _f("type")
    bacnet_type: int = _f("bacnetType", 0, omitempty=False)
    bacnet_address: int = _f("bacnetAddress", 0, omitempty=False)
    application_tag_number: int = _f("applicationTagNumber", 0, omitempty=False)


@dataclass
class PropertyVisitor:
    """Where a property is found, for each kind of access."""

    modbus: Optional[ModbusVisitor] = _f("modbus", None)
    opcua: Optional[OpcuaVisitor] = _f("opcua", None)
    opcda: Optional[OpcdaVisitor] = _f("opcda", None)
    bacnet: Optional[BacnetVisitor] = _f("bacnet", None)
    iec104: Optional[IEC104Visitor] = _f("iec104", None)
    custom: Optional[str] = _f("custom", None)


@dataclass
class DeviceProperty:
    """One property of a device model, with its current and expected value."""

    name: str = _f("name")
    id: str = _f("id")
    type: str = _f("type")
    mode: str = _f("mode")
    unit: str = _f("unit")
    visitor: PropertyVisitor = _f("visitor", factory=PropertyVisitor)
    format: str = _f("format")
    enum_type: EnumType = _f("enumType", factory=EnumType)
    array_type: ArrayType = _f("arrayType", factory=ArrayType)
    object_type: dict[str, ObjectType] = _f("objectType", factory=dict)
    object_required: list[str] = _f("objectRequired", factory=list)
    current: Any = _f("current", None, omitempty=False)
    expect: Any = _f("expect", None, omitempty=False)


@dataclass
class AccessTemplate:
    """The properties a driver reads and how they map onto the device model."""

    name: str = _f("name")
    version: str = _f("version")
    properties: list[DeviceProperty] = _f("properties", factory=list)
    mappings: list[ModelMapping] = _f("mappings", factory=list)


@dataclass
class DeviceTopic:
    delta: QOSTopic = _f("delta", factory=QOSTopic)
    report: QOSTopic = _f("report", factory=QOSTopic)
    event: QOSTopic = _f("event", factory=QOSTopic)
    get: QOSTopic = _f("get", factory=QOSTopic)
    get_response: QOSTopic = _f("getResponse", factory=QOSTopic)
    event_report: QOSTopic = _f("eventReport", factory=QOSTopic)
    property_get: QOSTopic = _f("propertyGet", factory=QOSTopic)
    lifecycle_report: QOSTopic = _f("lifecycleReport", factory=QOSTopic)


@dataclass
class DeviceInfo:
    """A sub-device served by a driver."""

    name: str = _f("name")
    version: str = _f("version")
    device_model: str = _f("deviceModel")
    access_template: str = _f("accessTemplate")
    device_topic: DeviceTopic = _f("deviceTopic", factory=DeviceTopic)
    access_config: Optional[AccessConfig] = _f("accessConfig", None)


@dataclass
class PropertyGet:
    properties: list[str] = _f("properties", factory=list)


# --------------------------------------------------------------------------
# conversion


def _hints(cls: type) -> dict[str, Any]:
    return {f.name: f.type for f in dataclasses.fields(cls)}


def _zero(tp: Any) -> Any:
    origin = typing.get_origin(tp)
    if origin in (typing.Union, types.UnionType) or tp is Any:
        return None
    if origin is list:
        return []
    if origin is dict:
        return {}
    if dataclasses.is_dataclass(tp):
        return tp()
    if tp is timedelta:
        return timedelta(0)
    if tp in (str, int, float, bool):
        return tp()
    return None


def _convert(tp: Any, value: Any) -> Any:
    if tp is Any:
        return value
    if value is None:
        return _zero(tp)
    origin = typing.get_origin(tp)
    if origin in (typing.Union, types.UnionType):
        inner = [a for a in typing.get_args(tp) if a is not type(None)]
        return _convert(inner[0], value)
    if origin is list:
        if not isinstance(value, (list, tuple)):
            raise TypeError(f"expected a list, got {value!r}")
        (item,) = typing.get_args(tp)
        return [_convert(item, v) for v in value]
    if origin is dict:
        if not isinstance(value, Mapping):
            raise TypeError(f"expected a mapping, got {value!r}")
        key_tp, val_tp = typing.get_args(tp)
        return {_convert(key_tp, k): _convert(val_tp, v) for k, v in value.items()}
    if dataclasses.is_dataclass(tp):
        return from_dict(tp, value)
    if tp is timedelta:
        return parse_duration(value)
    if tp is datetime:
        if isinstance(value, datetime):
            return value
        if isinstance(value, str):
            text = value[:-1] + "+00:00" if value.endswith("Z") else value
            return datetime.fromisoformat(text)
        raise TypeError(f"expected a time, got {value!r}")
    if tp is bool:
        if not isinstance(value, bool):
            raise TypeError(f"expected a boolean, got {value!r}")
        return value
    if tp is int:
        if isinstance(value, bool):
            raise TypeError(f"expected an integer, got {value!r}")
        if isinstance(value, int):
            return value
        if isinstance(value, float) and value.is_integer():
            return int(value)
        raise TypeError(f"expected an integer, got {value!r}")
    if tp is float:
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"expected a number, got {value!r}")
        return float(value)
    if tp is str:
        if isinstance(value, str):
            return value
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
        raise TypeError(f"expected a string, got {value!r}")
    return value


def _build(cls: type, data: Any) -> Any:
    if data is None:
        return cls()
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping for {cls.__name__}, got {data!r}")
    hints = _hints(cls)
    kwargs = {}
    for f in dataclasses.fields(cls):
        key = f.metadata.get("key", f.name)
        if key in data:
            raw = data[key]
        elif f.name in data:
            raw = data[f.name]
        else:
            continue
        kwargs[f.name] = _convert(hints[f.name], raw)
    return cls(**kwargs)


def from_dict(cls: type, data: Any) -> Any:
    """Build a record of type ``cls`` from a parsed YAML or JSON document.

    Unknown keys are ignored and absent keys keep their defaults. A value of
    the wrong kind raises TypeError; a malformed duration raises ValueError.
    """
    if not (isinstance(cls, type) and dataclasses.is_dataclass(cls)):
        raise TypeError(f"{cls!r} is not a record type")
    if getattr(cls, "_lenient", False):
        try:
            return _build(cls, data)
        except (TypeError, ValueError):
            return cls()
    return _build(cls, data)


def _is_empty(value: Any) -> bool:
    if value is None or value is False:
        return True
    if isinstance(value, timedelta):
        return value == timedelta(0)
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) == 0
    if isinstance(value, (int, float)):
        return value == 0
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return all(_is_empty(getattr(value, f.name)) for f in dataclasses.fields(value))
    return False


def _plain(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return to_dict(value)
    if isinstance(value, timedelta):
        return _format_duration(value)
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    return value


def to_dict(obj: Any) -> dict[str, Any]:
    """Return the document form of a record, leaving out empty optional fields."""
    if not (dataclasses.is_dataclass(obj) and not isinstance(obj, type)):
        raise TypeError(f"{obj!r} is not a record")
    result: dict[str, Any] = {}
    for f in dataclasses.fields(obj):
        value = getattr(obj, f.name)
        if f.metadata.get("omitempty", False) and _is_empty(value):
            continue
        result[f.metadata.get("key", f.name)] = _plain(value)
    return result