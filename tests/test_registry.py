import pytest
import yaml

from edgekit.dmcontext.format import TypeNotSupportedError
from edgekit.dmcontext.models import DeviceInfo
from edgekit.dmcontext.registry import (
    AccessTemplateNotExistError,
    DeviceModelNotExistError,
    DeviceNotExistError,
    DeviceRegistry,
    InvalidPropertyKeyError,
    PropsConfigNotExistError,
    parse_property_keys,
)


@pytest.fixture
def driver_dir(tmp_path):
    models = {
        "thermo": [
            {"name": "temp", "id": "1", "type": "float32", "mode": "ro"},
            {"name": "count", "id": "2", "type": "int16", "mode": "rw"},
            {"name": "total", "id": "3", "type": "int64"},
            {"name": "ratio", "id": "4", "type": "float64"},
            {"name": "on", "id": "5", "type": "bool"},
            {"name": "weird", "id": "6", "type": "complex"},
        ]
    }
    templates = {
        "tpl-a": {
            "version": "1",
            "properties": [{"name": "temp", "id": "1", "type": "float32"}],
            "mappings": [{"attribute": "temp", "type": "value", "expression": "x1"}],
        }
    }
    devices = {
        "devices": [
            {"name": "dev-1", "deviceModel": "thermo", "accessTemplate": "tpl-a"},
            {"name": "dev-2", "deviceModel": "missing"},
        ],
        "driver": "driver-settings",
    }
    (tmp_path / "models.yml").write_text(yaml.safe_dump(models))
    (tmp_path / "access_template.yml").write_text(yaml.safe_dump(templates))
    (tmp_path / "sub_devices.yml").write_text(yaml.safe_dump(devices))
    return tmp_path


@pytest.fixture
def registry(driver_dir):
    reg = DeviceRegistry()
    reg.load_driver_config(str(driver_dir), "modbus")
    return reg


def test_devices_are_loaded(registry):
    names = sorted(d.name for d in registry.get_all_devices("modbus"))
    assert names == ["dev-1", "dev-2"]
    assert registry.get_all_devices("other") == []


def test_get_device(registry):
    device = registry.get_device("modbus", "dev-1")
    assert device.device_model == "thermo"
    assert device.access_template == "tpl-a"
    with pytest.raises(DeviceNotExistError):
        registry.get_device("modbus", "nope")
    with pytest.raises(DeviceNotExistError):
        registry.get_device("other", "dev-1")


def test_driver_name_by_device(registry):
    assert registry.get_driver_name_by_device("dev-2") == "modbus"
    assert registry.get_driver_name_by_device("nope") == ""


def test_driver_config(registry):
    assert registry.get_driver_config() == "driver-settings"


def test_device_model(registry):
    device = registry.get_device("modbus", "dev-1")
    props = registry.get_device_model("modbus", device)
    assert [p.name for p in props][:2] == ["temp", "count"]
    assert props[1].mode == "rw"
    with pytest.raises(DeviceModelNotExistError):
        registry.get_device_model("modbus", registry.get_device("modbus", "dev-2"))


def test_access_template_gets_its_name(registry):
    template = registry.get_access_template("modbus", "tpl-a")
    assert template.name == "tpl-a"
    assert template.mappings[0].expression == "x1"
    assert template.properties[0].id == "1"
    with pytest.raises(AccessTemplateNotExistError):
        registry.get_access_template("modbus", "tpl-b")


def test_parse_property_values_converts(registry):
    device = registry.get_device("modbus", "dev-1")
    result = registry.parse_property_values(
        "modbus", device,
        {"temp": 1.5, "count": "12", "total": 7, "ratio": "2.25", "on": True},
    )
    assert result == {"temp": 1.5, "count": 12, "total": 7, "ratio": 2.25, "on": True}


def test_parse_property_values_errors(registry):
    device = registry.get_device("modbus", "dev-1")
    with pytest.raises(ValueError):
        registry.parse_property_values("modbus", device, {"count": 40000})
    with pytest.raises(ValueError):
        registry.parse_property_values("modbus", device, {"count": "1.5"})
    with pytest.raises(PropsConfigNotExistError):
        registry.parse_property_values("modbus", device, {"unknown": 1})
    with pytest.raises(TypeNotSupportedError):
        registry.parse_property_values("modbus", device, {"weird": 1})
    with pytest.raises(DeviceNotExistError):
        registry.parse_property_values("modbus", DeviceInfo(device_model="missing"), {})


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        DeviceRegistry().load_driver_config(str(tmp_path), "modbus")


def test_parse_property_keys():
    assert parse_property_keys(["a", "b"]) == ["a", "b"]
    with pytest.raises(InvalidPropertyKeyError):
        parse_property_keys("a")
    with pytest.raises(InvalidPropertyKeyError):
        parse_property_keys(["a", 1])