"""Sub-devices, device models and access templates loaded from a driver's configuration."""

from __future__ import annotations

import copy
import logging
import math
import os
import re
import struct
from collections.abc import Mapping
from typing import Any

import yaml

from edgekit.dmcontext.format import (
    TYPE_ARRAY,
    TYPE_BOOL,
    TYPE_DATE,
    TYPE_ENUM,
    TYPE_FLOAT32,
    TYPE_FLOAT64,
    TYPE_INT16,
    TYPE_INT32,
    TYPE_INT64,
    TYPE_OBJECT,
    TYPE_STRING,
    TYPE_TIME,
    TypeNotSupportedError,
)
from edgekit.dmcontext.models import AccessTemplate, DeviceInfo, DeviceProperty, from_dict

__all__ = [
    "DEFAULT_SUB_DEVICE_CONF",
    "DEFAULT_DEVICE_MODEL_CONF",
    "DEFAULT_ACCESS_TEMPLATE_CONF",
    "DEVICE_INACTIVATED",
    "DEVICE_ONLINE",
    "DEVICE_OFFLINE",
    "DEVICE_UNKNOWN",
    "DeviceNotExistError",
    "DeviceModelNotExistError",
    "AccessTemplateNotExistError",
    "PropsConfigNotExistError",
    "InvalidPropertyKeyError",
    "DeviceRegistry",
    "parse_property_keys",
]

DEFAULT_SUB_DEVICE_CONF = "sub_devices.yml"
DEFAULT_DEVICE_MODEL_CONF = "models.yml"
DEFAULT_ACCESS_TEMPLATE_CONF = "access_template.yml"

DEVICE_INACTIVATED = 0
DEVICE_ONLINE = 1
DEVICE_OFFLINE = 2
DEVICE_UNKNOWN = 3

_LOGGER = logging.getLogger("edgekit.dmcontext")


class DeviceNotExistError(LookupError):
    """The device is not known for the driver."""

    def __init__(self, message: str = "device not exist") -> None:
        super().__init__(message)


class DeviceModelNotExistError(LookupError):
    """The device model is not known for the driver."""

    def __init__(self, message: str = "device model not exist") -> None:
        super().__init__(message)


class AccessTemplateNotExistError(LookupError):
    """The access template is not known for the driver."""

    def __init__(self, message: str = "access template not exist") -> None:
        super().__init__(message)


class PropsConfigNotExistError(LookupError):
    """A property is not part of the device model."""

    def __init__(self, message: str = "properties config not exist") -> None:
        super().__init__(message)


class InvalidPropertyKeyError(ValueError):
    """Property keys must be a list of strings."""

    def __init__(self, message: str = "invalid property key") -> None:
        super().__init__(message)


def _load_yaml(file: str) -> Any:
    with open(file, encoding="utf-8") as handle:
        return yaml.safe_load(handle)


def _mapping(data: Any, what: str) -> Mapping[str, Any]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping in {what}, got {data!r}")
    return data


def _list(data: Any, what: str) -> list[Any]:
    if data is None:
        return []
    if not isinstance(data, list):
        raise TypeError(f"expected a list in {what}, got {data!r}")
    return data


class DeviceRegistry:
    """Holds the devices, models and templates of every loaded driver."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or _LOGGER
        self._device_driver: dict[str, str] = {}
        self._devices: dict[str, dict[str, DeviceInfo]] = {}
        self._device_models: dict[str, dict[str, list[DeviceProperty]]] = {}
        self._access_templates: dict[str, dict[str, AccessTemplate]] = {}
        self._driver_config = ""

    def load_driver_config(self, path: str | os.PathLike[str], driver_name: str) -> None:
        """Load models, access templates and sub-devices of a driver from ``path``."""
        try:
            raw = _mapping(_load_yaml(os.path.join(path, DEFAULT_DEVICE_MODEL_CONF)), "device model")
            models = {
                str(name): [from_dict(DeviceProperty, p) for p in _list(props, "device model")]
                for name, props in raw.items()
            }
        except Exception as exc:
            self.logger.error("failed to load device model: %s", exc)
            raise
        self._device_models[driver_name] = models

        try:
            raw = _mapping(_load_yaml(os.path.join(path, DEFAULT_ACCESS_TEMPLATE_CONF)), "access template")
            templates = {}
            for name, data in raw.items():
                template = from_dict(AccessTemplate, data)
                template.name = str(name)
                templates[str(name)] = template
        except Exception as exc:
            self.logger.error("failed to load access template: %s", exc)
            raise
        self._access_templates[driver_name] = templates

        try:
            raw = _mapping(_load_yaml(os.path.join(path, DEFAULT_SUB_DEVICE_CONF)), "device config")
            devices_data = _list(raw.get("devices"), "device config")
            device_list = [from_dict(DeviceInfo, d) for d in devices_data]
            driver = raw.get("driver")
            if driver is None:
                driver = ""
            if not isinstance(driver, str):
                raise TypeError(f"expected a string for driver, got {driver!r}")
        except Exception as exc:
            self.logger.error("failed to load device config: %s", exc)
            raise

        devices: dict[str, DeviceInfo] = {}
        for device in device_list:
            devices[device.name] = device
            self._device_driver[device.name] = driver_name
        self._devices[driver_name] = devices
        self._driver_config = driver

    def get_all_devices(self, driver_name: str) -> list[DeviceInfo]:
        """Return every device of a driver."""
        return list(self._devices.get(driver_name, {}).values())

    def get_device(self, driver_name: str, device: str) -> DeviceInfo:
        """Return a copy of the named device of a driver."""
        try:
            return copy.deepcopy(self._devices[driver_name][device])
        except KeyError:
            raise DeviceNotExistError() from None

    def get_driver_name_by_device(self, device: str) -> str:
        """Return the driver serving ``device``, or an empty string."""
        return self._device_driver.get(device, "")

    def get_device_model(self, driver_name: str, device: DeviceInfo) -> list[DeviceProperty]:
        """Return the properties of the model of ``device``."""
        try:
            return self._device_models[driver_name][device.device_model]
        except KeyError:
            raise DeviceModelNotExistError() from None

    def get_access_template(self, driver_name: str, name: str) -> AccessTemplate:
        """Return a copy of the named access template of a driver."""
        try:
            return copy.deepcopy(self._access_templates[driver_name][name])
        except KeyError:
            raise AccessTemplateNotExistError() from None

    def get_driver_config(self) -> str:
        """Return the driver section of the last loaded sub-device file."""
        return self._driver_config

    def parse_property_values(
        self, driver_name: str, device: DeviceInfo, props: Mapping[str, Any]
    ) -> dict[str, Any]:
        """Convert property values to the types their device model declares."""
        try:
            properties = self._device_models[driver_name][device.device_model]
        except KeyError:
            raise DeviceNotExistError() from None
        configs = {p.name: p for p in properties}
        result: dict[str, Any] = {}
        for key, value in props.items():
            config = configs.get(key)
            if config is None:
                raise PropsConfigNotExistError()
            result[key] = _parse_property_value(config.type, value)
        return result


_INT_TEXT = re.compile(r"[+-]?\d+")
_FLOAT_TEXT = re.compile(
    r"[+-]?((\d+\.?\d*|\.\d+)([eE][+-]?\d+)?|inf|infinity|nan)", re.IGNORECASE
)
_INT_BITS = {TYPE_INT16: 16, TYPE_INT32: 32, TYPE_INT64: 64}
_PASSTHROUGH = {TYPE_BOOL, TYPE_STRING, TYPE_ENUM, TYPE_ARRAY, TYPE_TIME, TYPE_DATE, TYPE_OBJECT}


def _number_text(value: Any) -> str:
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return value
    return ""


def _parse_int(text: str, bits: int) -> int:
    if not _INT_TEXT.fullmatch(text):
        raise ValueError(f"invalid syntax for integer: {text!r}")
    number = int(text)
    limit = 1 << (bits - 1)
    if not -limit <= number < limit:
        raise ValueError(f"value out of range for int{bits}: {text!r}")
    return number


def _parse_float(text: str, single: bool) -> float:
    if not _FLOAT_TEXT.fullmatch(text):
        raise ValueError(f"invalid syntax for float: {text!r}")
    number = float(text)
    if math.isinf(number) and not re.search("inf", text, re.IGNORECASE):
        raise ValueError(f"value out of range: {text!r}")
    if single:
        try:
            number = struct.unpack("f", struct.pack("f", number))[0]
        except OverflowError:
            raise ValueError(f"value out of range for float32: {text!r}") from None
    return number


def _parse_property_value(type_name: str, value: Any) -> Any:
    if type_name in _INT_BITS:
        return _parse_int(_number_text(value), _INT_BITS[type_name])
    if type_name == TYPE_FLOAT32:
        return _parse_float(_number_text(value), single=True)
    if type_name == TYPE_FLOAT64:
        return _parse_float(_number_text(value), single=False)
    if type_name in _PASSTHROUGH:
        return value
    raise TypeNotSupportedError()


def parse_property_keys(value: Any) -> list[str]:
    """Return ``value`` as a list of property keys; anything but a list of strings is invalid."""
    if not isinstance(value, list):
        raise InvalidPropertyKeyError()
    if not all(isinstance(key, str) for key in value):
        raise InvalidPropertyKeyError()
    return list(value)