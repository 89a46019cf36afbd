import pytest

from edgekit.dmcontext.expression import MAPPING_CALCULATE, exec_expression
from edgekit.dmcontext.format import UnsupportedValueTypeError
from edgekit.dmcontext.models import AccessTemplate, DeviceProperty, ModelMapping
from edgekit.dmcontext.templates import (
    ConfigIDNotExistError,
    PropertyValueNotExistError,
    UnknownPropertyIDError,
    get_config_id_by_model_name,
    get_mapping_name,
    get_prop_value_by_model_name,
)


@pytest.fixture
def template():
    return AccessTemplate(
        name="tpl",
        properties=[
            DeviceProperty(name="temperature", id="1"),
            DeviceProperty(name="", id="3"),
        ],
        mappings=[
            ModelMapping(attribute="temp", type="calculate", expression="x1*2-11"),
            ModelMapping(attribute="raw", type="value", expression="x2"),
            ModelMapping(attribute="blank", type="value", expression=""),
        ],
    )


def test_get_mapping_name(template):
    assert get_mapping_name("1", template) == "temperature"


def test_get_mapping_name_unknown_id(template):
    with pytest.raises(UnknownPropertyIDError):
        get_mapping_name("9", template)


def test_get_mapping_name_empty_name(template):
    with pytest.raises(UnknownPropertyIDError):
        get_mapping_name("3", template)


def test_get_config_id(template):
    assert get_config_id_by_model_name("temp", template) == "1"
    assert get_config_id_by_model_name("raw", template) == "2"


@pytest.mark.parametrize("name", ["blank", "missing"])
def test_get_config_id_absent(template, name):
    with pytest.raises(ConfigIDNotExistError):
        get_config_id_by_model_name(name, template)


def test_prop_value_for_value_mapping(template):
    assert get_prop_value_by_model_name("raw", "abc", template) == "abc"


def test_prop_value_for_calculated_mapping(template):
    assert get_prop_value_by_model_name("temp", 9, template) == 10.0


def test_prop_value_round_trip(template):
    prop_value = get_prop_value_by_model_name("temp", 25, template)
    assert exec_expression("x1*2-11", {"x1": prop_value}, MAPPING_CALCULATE) == 25


def test_prop_value_rejects_non_number(template):
    with pytest.raises(UnsupportedValueTypeError):
        get_prop_value_by_model_name("temp", "x", template)


def test_prop_value_absent(template):
    with pytest.raises(PropertyValueNotExistError):
        get_prop_value_by_model_name("missing", 1, template)