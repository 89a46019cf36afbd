import time
import uuid

from edgekit.dmcontext.blink import (
    DEFAULT_VERSION,
    METHOD_EVENT_REPORT,
    METHOD_LIFECYCLE_POST,
    METHOD_PROPERTY_GET,
    METHOD_PROPERTY_INVOKE,
    METHOD_PROPERTY_REPORT,
    MsgBlink,
    init_msg,
)


def test_delta_message():
    before = time.time_ns() // 1_000_000
    msg = MsgBlink().gen_delta_blink_data({"a": 1})
    after = time.time_ns() // 1_000_000
    assert msg.blink.method == "thing.property.invoke"
    assert msg.blink.version == "1.0"
    assert msg.blink.properties == {"a": 1}
    assert before <= msg.blink.timestamp <= after
    assert str(uuid.UUID(msg.blink.req_id)) == msg.blink.req_id


def test_request_ids_differ():
    builder = MsgBlink()
    first = builder.gen_property_report_data({"a": 1})
    second = builder.gen_property_report_data({"a": 1})
    assert first.blink.req_id != second.blink.req_id
    assert first.blink.method == METHOD_PROPERTY_REPORT


def test_event_message_document():
    msg = MsgBlink().gen_event_report_data({"alarm": {"level": 2}})
    doc = msg.to_dict()
    assert doc["blink"]["method"] == "thing.event.post"
    assert doc["blink"]["events"] == {"alarm": {"level": 2}}
    assert "properties" not in doc["blink"]
    assert "params" not in doc["blink"]
    assert msg.blink.method == METHOD_EVENT_REPORT


def test_property_get_message():
    msg = MsgBlink().gen_property_get_blink_data(["a", "b"])
    assert msg.blink.method == METHOD_PROPERTY_GET
    assert msg.to_dict()["blink"]["properties"] == ["a", "b"]


def test_lifecycle_message():
    msg = MsgBlink().gen_lifecycle_report_data(False)
    assert msg.blink.method == METHOD_LIFECYCLE_POST
    assert msg.blink.params == {"online_state": False}
    assert msg.to_dict()["blink"]["version"] == DEFAULT_VERSION


def test_init_msg_defaults_to_blink():
    assert isinstance(init_msg("blink"), MsgBlink)
    msg = init_msg("other").gen_delta_blink_data({})
    assert msg.blink.method == METHOD_PROPERTY_INVOKE