from __future__ import annotations

import pytest

from formschema.conditions import evaluate_condition, is_blank, should_show, should_show_any
from formschema.typing.models import ConditionClause


@pytest.mark.parametrize("value", [None, False, "", "   ", [], {}])
def test_is_blank(value: object) -> None:
    assert is_blank(value)


@pytest.mark.parametrize("value", [0, "x", [""], True])
def test_is_not_blank(value: object) -> None:
    assert not is_blank(value)


@pytest.mark.parametrize(
    ("operator", "expected_value", "actual", "result"),
    [
        ("equals", "yes", "yes", True),
        ("equals", "yes", "no", False),
        ("not_equals", "yes", "no", True),
        ("present", None, "x", True),
        ("present", None, "  ", False),
        ("blank", None, None, True),
        ("greater_than", "2", "3 children", True),
        ("less_than", 2, "abc", True),
        ("includes", "b", ["a", "b"], True),
        ("not_includes", "c", ["a", "b"], True),
        ("matches", "^ab", "ABC", True),
    ],
)
def test_evaluate_condition_operators(operator: str, expected_value: object, actual: object, result: bool) -> None:
    clause = {"field": "x", "operator": operator, "value": expected_value}

    assert evaluate_condition(clause, {"x": actual}) is result


def test_unknown_operator_is_permissive() -> None:
    assert evaluate_condition({"field": "x", "operator": "between", "value": 1}, {"x": 0}) is True


def test_invalid_regex_is_permissive() -> None:
    assert evaluate_condition(ConditionClause(field="x", operator="matches", value="("), {"x": "a"}) is True


def test_should_show_requires_all_clauses() -> None:
    clauses = [
        ConditionClause(field="a", operator="equals", value="1"),
        ConditionClause(field="b", operator="present"),
    ]

    assert should_show(clauses, {"a": "1", "b": "x"})
    assert not should_show(clauses, {"a": "1"})
    assert should_show([], {})


def test_should_show_any_requires_one_clause() -> None:
    clauses = [
        ConditionClause(field="a", operator="equals", value="1"),
        ConditionClause(field="b", operator="present"),
    ]

    assert should_show_any(clauses, {"b": "x"})
    assert not should_show_any(clauses, {"a": "2"})
    assert should_show_any(None, {})
