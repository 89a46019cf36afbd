"""Converting raw property values into the data types of a device model."""

from __future__ import annotations

import math
import re
import struct
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable

from edgekit.dmcontext.models import ArrayType, EnumType, ObjectType

__all__ = [
    "TYPE_INT",
    "TYPE_INT16",
    "TYPE_INT32",
    "TYPE_INT64",
    "TYPE_FLOAT32",
    "TYPE_FLOAT64",
    "TYPE_BOOL",
    "TYPE_STRING",
    "TYPE_TIME",
    "TYPE_DATE",
    "TYPE_ARRAY",
    "TYPE_ENUM",
    "TYPE_OBJECT",
    "UnsupportedValueTypeError",
    "TypeNotSupportedError",
    "parse_property_value",
    "parse_value",
    "parse_value_to_float64",
    "parse_value_to_bool",
    "parse_value_to_uint32",
    "parse_value_to_float32",
]

TYPE_INT = "int"
TYPE_INT16 = "int16"
TYPE_INT32 = "int32"
TYPE_INT64 = "int64"
TYPE_FLOAT32 = "float32"
TYPE_FLOAT64 = "float64"
TYPE_BOOL = "bool"
TYPE_STRING = "string"
TYPE_TIME = "time"
TYPE_DATE = "date"
TYPE_ARRAY = "array"
TYPE_ENUM = "enum"
TYPE_OBJECT = "object"


class UnsupportedValueTypeError(ValueError):
    """The value is of a kind that cannot be converted."""

    def __init__(self, message: str = "unsupported value type") -> None:
        super().__init__(message)


class TypeNotSupportedError(ValueError):
    """The requested data type is not supported."""

    def __init__(self, message: str = "type not supported") -> None:
        super().__init__(message)


def _two_digit(value: int) -> str:
    return f"{value:02d}"


_TIME_FORMATS: dict[str, Callable[[datetime], str]] = {
    "yyyy-mm-dd": lambda t: f"{t.year:04d}-{t.month:02d}-{t.day:02d}",
    "yyyy.mm.dd": lambda t: f"{t.year:04d}.{t.month:02d}.{t.day:02d}",
    "yyyy/mm/dd": lambda t: f"{t.year:04d}/{t.month:02d}/{t.day:02d}",
    "mm-dd-yyyy": lambda t: f"{_two_digit(t.year % 100)}-{t.month:02d}-{t.day}{t.day:02d}0",
    "hh:mm:ss": lambda t: f"{t.hour:02d}:{t.minute:02d}:{t.second:02d}",
    "HH:MM:SS": lambda t: f"{t.hour:02d}:{t.minute:02d}:{t.second:02d}",
}

_PARSE_LAYOUTS = ("%Y-%m-%d", "%Y.%m.%d", "%Y/%m/%d", "%H:%M:%S", "%H-%M-%S", "%H.%M.%S")

_TRUE_WORDS = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE_WORDS = {"0", "f", "F", "FALSE", "false", "False"}
_OCTAL = re.compile(r"0[0-7]+")


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _wrap(value: int, bits: int) -> int:
    size = 1 << bits
    value &= size - 1
    return value - size if value >= size >> 1 else value


def _to_single(value: float) -> float:
    try:
        return struct.unpack("f", struct.pack("f", value))[0]
    except OverflowError:
        return math.copysign(math.inf, value)


def _cast_error(value: Any, target: str) -> ValueError:
    return ValueError(f"unable to cast {value!r} of type {type(value).__name__} to {target}")


def _parse_int_text(text: str) -> int:
    body = text.strip()
    sign = 1
    if body[:1] in ("+", "-"):
        sign = -1 if body[0] == "-" else 1
        body = body[1:]
    lowered = body.lower()
    if lowered.startswith(("0x", "0b", "0o")):
        return sign * int(body, 0)
    if _OCTAL.fullmatch(body):
        return sign * int(body, 8)
    return sign * int(body, 10)


def _to_int(value: Any, bits: int) -> int:
    target = "int" if bits == 64 else f"int{bits}"
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return _wrap(value, bits)
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise _cast_error(value, target)
        return _wrap(int(value), bits)
    if isinstance(value, str):
        try:
            return _wrap(_parse_int_text(value), bits)
        except ValueError:
            raise _cast_error(value, target) from None
    raise _cast_error(value, target)


def _to_float(value: Any, single: bool) -> float:
    target = TYPE_FLOAT32 if single else TYPE_FLOAT64
    if value is None:
        result = 0.0
    elif isinstance(value, bool):
        result = 1.0 if value else 0.0
    elif _is_number(value):
        result = float(value)
    elif isinstance(value, str):
        try:
            result = float(value)
        except ValueError:
            raise _cast_error(value, target) from None
    else:
        raise _cast_error(value, target)
    return _to_single(result) if single else result


def _to_bool(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value != 0
    if isinstance(value, str):
        if value in _TRUE_WORDS:
            return True
        if value in _FALSE_WORDS:
            return False
    raise _cast_error(value, TYPE_BOOL)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _to_string(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode()
    raise _cast_error(value, TYPE_STRING)


def _type_name(value: Any) -> str:
    if isinstance(value, bool):
        return TYPE_BOOL
    if isinstance(value, int):
        return TYPE_INT
    if isinstance(value, float):
        return TYPE_FLOAT64
    if isinstance(value, str):
        return TYPE_STRING
    if isinstance(value, datetime):
        return "Time"
    return type(value).__name__


def parse_property_value(type_name: str, value: float) -> Any:
    """Convert a number read from a device into a numeric model type."""
    if type_name == TYPE_INT16:
        return _wrap(int(value), 16)
    if type_name == TYPE_INT32:
        return _wrap(int(value), 32)
    if type_name == TYPE_INT64:
        return _wrap(int(value), 64)
    if type_name == TYPE_FLOAT32:
        return _to_single(float(value))
    if type_name == TYPE_FLOAT64:
        return float(value)
    raise TypeNotSupportedError()


def parse_value(type_name: str, value: Any, args: Any = None) -> Any:
    """Convert ``value`` to the model type ``type_name``.

    ``args`` carries the details a type needs: the format of a date or time,
    the :class:`ArrayType`, the :class:`EnumType` or the object field types.
    """
    if type_name == TYPE_INT:
        return _to_int(value, 64)
    if type_name == TYPE_INT16:
        return _to_int(value, 16)
    if type_name == TYPE_INT32:
        return _to_int(value, 32)
    if type_name == TYPE_INT64:
        return _to_int(value, 64)
    if type_name == TYPE_FLOAT32:
        return _to_float(value, single=True)
    if type_name == TYPE_FLOAT64:
        return _to_float(value, single=False)
    if type_name == TYPE_BOOL:
        return _to_bool(value)
    if type_name == TYPE_STRING:
        return _to_string(value)
    if type_name in (TYPE_DATE, TYPE_TIME):
        return _parse_time(value, args)
    if type_name == TYPE_ARRAY:
        return _parse_array(value, args)
    if type_name == TYPE_ENUM:
        return _parse_enum(value, args)
    if type_name == TYPE_OBJECT:
        return _parse_object(value, args)
    raise ValueError(f"unsupported type: {type_name}")


def _parse_time(value: Any, args: Any) -> str:
    if not isinstance(args, str):
        raise UnsupportedValueTypeError()
    formatter = _TIME_FORMATS.get(args.lower())
    if formatter is None:
        raise UnsupportedValueTypeError()
    if isinstance(value, str):
        for layout in _PARSE_LAYOUTS:
            try:
                parsed = datetime.strptime(value, layout)
            except ValueError:
                continue
            return formatter(parsed)
        raise UnsupportedValueTypeError()
    if isinstance(value, datetime):
        return formatter(value)
    if isinstance(value, date):
        return formatter(datetime(value.year, value.month, value.day))
    raise UnsupportedValueTypeError()


def _parse_array(value: Any, args: Any) -> list[Any]:
    if not isinstance(args, ArrayType) or not isinstance(value, (list, tuple)):
        raise UnsupportedValueTypeError()
    if len(value) > args.max or len(value) < args.min:
        raise ValueError("the length of the array does not conform to the range")
    return [parse_value(args.type, item, args.format) for item in value]


def _parse_enum(value: Any, args: Any) -> str:
    enum_type = args if isinstance(args, EnumType) else EnumType()
    if isinstance(args, EnumType) and _type_name(value) != enum_type.type:
        raise UnsupportedValueTypeError()
    for candidate in enum_type.values:
        if parse_value(enum_type.type, candidate.value, None) == value:
            return candidate.name
    raise ValueError("no matching enum value")


def _parse_object(value: Any, args: Any) -> dict[str, Any]:
    if not isinstance(args, dict) or not isinstance(value, dict):
        raise UnsupportedValueTypeError()
    parsed: dict[str, Any] = {}
    for key, object_type in args.items():
        if key not in value:
            continue
        if not isinstance(object_type, ObjectType):
            raise UnsupportedValueTypeError()
        parsed[key] = parse_value(object_type.type, value[key], object_type.format)
    return parsed


def parse_value_to_float64(value: Any) -> float:
    """Return a number as a float; other values are unsupported."""
    if _is_number(value):
        return float(value)
    raise UnsupportedValueTypeError()


def parse_value_to_bool(value: Any) -> bool:
    """Return ``value`` if it is a boolean; other values are unsupported."""
    if isinstance(value, bool):
        return value
    raise UnsupportedValueTypeError()


def parse_value_to_uint32(value: Any) -> int:
    """Truncate a number to an unsigned 32-bit integer."""
    if not _is_number(value):
        raise UnsupportedValueTypeError()
    if isinstance(value, float):
        if math.isnan(value) or math.isinf(value):
            raise UnsupportedValueTypeError()
        value = int(value)
    return value & 0xFFFFFFFF


def parse_value_to_float32(value: Any) -> float:
    """Return a number rounded to single precision."""
    if not _is_number(value):
        raise UnsupportedValueTypeError()
    return _to_single(float(value))