from __future__ import annotations

import pytest

from formschema.typing.enums import ConditionOperator, ControlKind, FieldType, FieldWidth


def test_field_type_from_str() -> None:
    assert FieldType.from_str("checkbox_group") == FieldType.CHECKBOX_GROUP


def test_field_type_from_str_raises_on_invalid_value() -> None:
    with pytest.raises(ValueError, match="Expected one of"):
        FieldType.from_str("richtext")


def test_field_type_is_a_closed_set_of_fifteen() -> None:
    assert len(FieldType.values()) == 15
    assert "signature" in FieldType.values()


def test_control_kind_and_width_values() -> None:
    assert ControlKind.values() == frozenset({"button", "choice", "text"})
    assert FieldWidth.TWO_THIRDS.to_str() == "two_thirds"


def test_condition_operator_parses_known_operators() -> None:
    assert ConditionOperator.from_str("not_includes") == ConditionOperator.NOT_INCLUDES
