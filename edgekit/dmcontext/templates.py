"""Looking up properties and mapped values in an access template."""

from __future__ import annotations

from typing import Any

from edgekit.dmcontext.expression import MAPPING_VALUE, parse_expression, solve_expression
from edgekit.dmcontext.format import parse_value_to_float64
from edgekit.dmcontext.models import AccessTemplate

__all__ = [
    "UnknownPropertyIDError",
    "ConfigIDNotExistError",
    "PropertyValueNotExistError",
    "get_mapping_name",
    "get_config_id_by_model_name",
    "get_prop_value_by_model_name",
]


class UnknownPropertyIDError(LookupError):
    """No property of the template has the given id."""

    def __init__(self, message: str = "unknown property id") -> None:
        super().__init__(message)


class ConfigIDNotExistError(LookupError):
    """No mapping of the template yields a property id for the attribute."""

    def __init__(self, message: str = "config id not exist") -> None:
        super().__init__(message)


class PropertyValueNotExistError(LookupError):
    """No mapping of the template covers the attribute."""

    def __init__(self, message: str = "prop value not exist") -> None:
        super().__init__(message)


def get_mapping_name(prop_id: str, template: AccessTemplate) -> str:
    """Return the name of the template property with id ``prop_id``."""
    name = next((p.name for p in template.properties if p.id == prop_id), "")
    if not name:
        raise UnknownPropertyIDError()
    return name


def get_config_id_by_model_name(name: str, template: AccessTemplate) -> str:
    """Return the property id that the mapping of attribute ``name`` reads first."""
    for mapping in template.mappings:
        if mapping.attribute != name:
            continue
        variables = parse_expression(mapping.expression)
        if variables:
            return variables[0][1:]
    raise ConfigIDNotExistError()


def get_prop_value_by_model_name(name: str, value: Any, template: AccessTemplate) -> Any:
    """Turn a model attribute value back into the value of its property."""
    mapping = next((m for m in template.mappings if m.attribute == name), None)
    if mapping is None:
        raise PropertyValueNotExistError()
    if mapping.type == MAPPING_VALUE:
        return value
    return solve_expression(mapping.expression, parse_value_to_float64(value))