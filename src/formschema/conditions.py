"""Condition clause evaluation for conditional field visibility."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from formschema.logging import get_logger
from formschema.typing.enums import ConditionOperator

if TYPE_CHECKING:
    from formschema.typing.models.schema import ConditionClause

logger = get_logger(__name__)


def is_blank(value: object) -> bool:
    """Return whether a value counts as blank.

    `None`, `False`, whitespace-only strings and empty containers are blank.

    Args:
        value (object): Value to test.

    Returns:
        bool: True when blank.
    """
    if value is None or value is False:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, set, dict)):
        return len(value) == 0
    return False


def _clause_parts(clause: ConditionClause | Mapping[str, Any]) -> tuple[str, str, Any]:
    if isinstance(clause, Mapping):
        return str(clause.get("field")), str(clause.get("operator") or "equals"), clause.get("value")
    return clause.field, clause.operator or "equals", clause.value


def _as_int(value: object) -> int:
    """Coerce to int the lenient way: leading digits or zero."""
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, (int, float)):
        return int(value)
    match = re.match(r"\s*([-+]?\d+)", str(value or ""))
    return int(match.group(1)) if match else 0


def _as_list(value: object) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return [value]


def evaluate_condition(clause: ConditionClause | Mapping[str, Any], data: Mapping[str, Any]) -> bool:
    """Evaluate one clause against submitted data.

    Unknown operators and evaluation errors resolve to True.

    Args:
        clause (ConditionClause | Mapping[str, Any]): Clause to evaluate.
        data (Mapping[str, Any]): Submitted values keyed by field name.

    Returns:
        bool: Whether the clause holds.
    """
    field, operator, expected = _clause_parts(clause)
    actual = data.get(field)
    try:
        op = ConditionOperator(operator)
    except ValueError:
        return True

    try:
        match op:
            case ConditionOperator.EQUALS:
                return actual == expected
            case ConditionOperator.NOT_EQUALS:
                return actual != expected
            case ConditionOperator.PRESENT:
                return not is_blank(actual)
            case ConditionOperator.BLANK:
                return is_blank(actual)
            case ConditionOperator.GREATER_THAN:
                return _as_int(actual) > _as_int(expected)
            case ConditionOperator.LESS_THAN:
                return _as_int(actual) < _as_int(expected)
            case ConditionOperator.INCLUDES:
                return expected in _as_list(actual)
            case ConditionOperator.NOT_INCLUDES:
                return expected not in _as_list(actual)
            case ConditionOperator.MATCHES:
                return re.search(str(expected), str(actual if actual is not None else ""), re.IGNORECASE) is not None
    except (re.error, TypeError, ValueError) as exc:
        logger.warning("Failed to evaluate condition", extra={"field": field, "operator": operator, "error": str(exc)})
    return True


def should_show(conditions: Iterable[ConditionClause | Mapping[str, Any]] | None, data: Mapping[str, Any]) -> bool:
    """Return True when every clause holds (or there are none)."""
    return all(evaluate_condition(clause, data) for clause in conditions or ())


def should_show_any(
    conditions: Iterable[ConditionClause | Mapping[str, Any]] | None,
    data: Mapping[str, Any],
) -> bool:
    """Return True when at least one clause holds (or there are none)."""
    clauses = list(conditions or ())
    if not clauses:
        return True
    return any(evaluate_condition(clause, data) for clause in clauses)
