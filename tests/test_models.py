from datetime import datetime, timedelta, timezone

import pytest
import yaml

from edgekit.dmcontext.models import (
    AccessConfig,
    AccessTemplate,
    DeviceInfo,
    DeviceProperty,
    EnumType,
    EnumValue,
    IpcServiceConfig,
    ModbusAccessConfig,
    ModbusVisitor,
    ModelMapping,
    ObjectType,
    PropertyVisitor,
    QOSTopic,
    ReportProperty,
    RTUConfig,
    TCPConfig,
    from_dict,
    parse_duration,
    to_dict,
)

SUB_DEVICE = """
name: dev-a
version: "1"
deviceModel: model-a
accessTemplate: tpl-a
deviceTopic:
  delta:
    qos: 1
    topic: $link/service
accessConfig:
  modbus:
    id: 1
    interval: 5s
    tcp:
      address: 127.0.0.1
      port: 502
"""


def test_parse_duration_strings():
    assert parse_duration("10s") == timedelta(seconds=10)
    assert parse_duration("1m") == timedelta(minutes=1)
    assert parse_duration("1h30m") == timedelta(hours=1, minutes=30)
    assert parse_duration("500ms") == timedelta(milliseconds=500)
    assert parse_duration("0") == timedelta(0)


def test_parse_duration_nanoseconds():
    assert parse_duration(30000000000) == timedelta(seconds=30)


@pytest.mark.parametrize("bad", ["", "10 parsecs", "s10", "1x"])
def test_parse_duration_rejects_bad_text(bad):
    with pytest.raises(ValueError):
        parse_duration(bad)


def test_parse_duration_rejects_wrong_type():
    with pytest.raises(TypeError):
        parse_duration(True)


def test_defaults_from_source():
    modbus = ModbusAccessConfig()
    assert modbus.timeout == timedelta(seconds=10)
    assert modbus.idle_timeout == timedelta(minutes=1)
    rtu = RTUConfig()
    assert (rtu.baud_rate, rtu.parity, rtu.data_bit, rtu.stop_bit) == (19200, "E", 8, 1)
    ipc = IpcServiceConfig()
    assert ipc.image_format == "jpg"
    assert ipc.cache_path == "var/lib/baetyl/image"
    assert ModelMapping().type == "none"


def test_from_dict_sub_device_document():
    device = from_dict(DeviceInfo, yaml.safe_load(SUB_DEVICE))
    assert device.name == "dev-a"
    assert device.device_model == "model-a"
    assert device.access_template == "tpl-a"
    assert device.device_topic.delta == QOSTopic(qos=1, topic="$link/service")
    modbus = device.access_config.modbus
    assert modbus.id == 1
    assert modbus.interval == timedelta(seconds=5)
    assert modbus.tcp == TCPConfig(address="127.0.0.1", port=502)
    assert modbus.timeout == timedelta(seconds=10)
    assert device.access_config.opcua is None


def test_from_dict_device_property():
    prop = from_dict(DeviceProperty, {
        "name": "temp",
        "id": "1",
        "type": "float32",
        "mode": "ro",
        "visitor": {"modbus": {"function": 3, "address": "0x1", "quantity": 2, "type": "float32"}},
        "enumType": {"type": "string", "values": [{"name": "1", "value": "Fire"}]},
        "objectType": {"age": {"displayName": "demo", "type": "int"}},
        "current": 12,
    })
    assert prop.visitor.modbus.function == 3
    assert prop.visitor.modbus.quantity == 2
    assert prop.enum_type.values == [EnumValue(name="1", value="Fire")]
    assert prop.object_type == {"age": ObjectType(display_name="demo", type="int")}
    assert prop.current == 12
    assert prop.expect is None


def test_round_trip_device_info():
    device = DeviceInfo(
        name="dev-a",
        device_model="model-a",
        access_config=AccessConfig(modbus=ModbusAccessConfig(
            id=1, interval=timedelta(seconds=5), tcp=TCPConfig("127.0.0.1", 502))),
    )
    assert from_dict(DeviceInfo, to_dict(device)) == device


def test_round_trip_access_template():
    template = AccessTemplate(
        name="tpl-a",
        properties=[DeviceProperty(name="temp", id="1", type="float64",
                                   visitor=PropertyVisitor(modbus=ModbusVisitor(function=3)))],
        mappings=[ModelMapping(attribute="temp", type="calculate", expression="x1*2", precision=2)],
    )
    assert from_dict(AccessTemplate, to_dict(template)) == template


def test_round_trip_through_yaml_text():
    config = IpcServiceConfig(name="ipc", fps=2.5, upload=True)
    text = yaml.safe_dump(to_dict(config))
    assert from_dict(IpcServiceConfig, yaml.safe_load(text)) == config


def test_to_dict_uses_keys_and_omits_empty():
    assert to_dict(DeviceInfo(name="dev-a")) == {"name": "dev-a"}
    data = to_dict(DeviceProperty(name="p"))
    assert data == {"name": "p", "current": None, "expect": None}


def test_to_dict_keeps_fields_without_omitempty():
    data = to_dict(ModbusVisitor())
    assert set(data) == {"function", "address", "quantity", "scale", "swapByte", "swapRegister"}


def test_to_dict_duration_round_trips():
    data = to_dict(ModbusAccessConfig())
    assert parse_duration(data["timeout"]) == timedelta(seconds=10)
    assert parse_duration(data["idletimeout"]) == timedelta(minutes=1)


def test_access_config_is_lenient():
    assert from_dict(AccessConfig, {"modbus": "not a mapping"}) == AccessConfig()
    assert from_dict(AccessConfig, "abc") == AccessConfig()
    device = from_dict(DeviceInfo, {"name": "d", "accessConfig": {"modbus": [1]}})
    assert device.access_config == AccessConfig()


def test_wrong_types_raise():
    with pytest.raises(TypeError):
        from_dict(TCPConfig, {"port": "abc"})
    with pytest.raises(TypeError):
        from_dict(TCPConfig, [1])
    with pytest.raises(TypeError):
        from_dict(dict, {})
    with pytest.raises(TypeError):
        from_dict(EnumType, {"values": "Fire"})


def test_scalars_become_strings():
    assert from_dict(EnumValue, {"value": 1}).value == "1"


def test_report_property_time():
    prop = from_dict(ReportProperty, {"time": "2022-10-19T00:00:00Z", "value": 3})
    assert prop.time == datetime(2022, 10, 19, tzinfo=timezone.utc)
    assert from_dict(ReportProperty, to_dict(prop)) == prop


def test_none_document_gives_defaults():
    assert from_dict(RTUConfig, None) == RTUConfig()