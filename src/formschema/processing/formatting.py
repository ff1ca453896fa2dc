"""Per-type formatting of submitted values for PDF fill data."""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from formschema.conditions import is_blank
from formschema.typing.enums import FieldType

CHECKED = "Yes"
UNCHECKED = "Off"
TRUTHY_TOKENS = frozenset({"1", "true", "Yes", "on"})

_DATE_FORMATS = (
    "%m/%d/%Y",
    "%m/%d/%y",
    "%m-%d-%Y",
    "%Y/%m/%d",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
    "%d %b %Y",
)
_CENT = Decimal("0.01")


def is_truthy(value: object) -> bool:
    """Return whether a submitted value checks a checkbox."""
    return value is True or (isinstance(value, str) and value in TRUTHY_TOKENS)


def format_checkbox(value: object) -> str:
    """Return the `Yes`/`Off` export value of a checkbox."""
    return CHECKED if is_truthy(value) else UNCHECKED


def parse_date(value: object) -> date | None:
    """Parse a calendar date from common submission formats.

    Args:
        value (object): `date`, `datetime` or string input.

    Returns:
        date | None: Parsed date, or None when the input is not recognized.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return datetime.fromisoformat(text).date()
    except ValueError:
        pass
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()  # noqa: DTZ007
        except ValueError:
            continue
    return None


def format_date(value: object) -> str:
    """Render a date as `MM/DD/YYYY`; unparsable input passes through unchanged."""
    if is_blank(value):
        return ""
    parsed = parse_date(value)
    if parsed is None:
        return str(value)
    return parsed.strftime("%m/%d/%Y")


def format_currency(value: object) -> str:
    """Render a monetary amount with two decimals; non-numeric input passes through."""
    if is_blank(value):
        return ""
    compact = str(value).replace("$", "").replace(",", "").strip()
    try:
        amount = Decimal(compact).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return str(value)
    return format(amount, "f")


def format_checkbox_group(value: object) -> str:
    """Join the selected tokens of a checkbox group."""
    if isinstance(value, (list, tuple, set)):
        return ", ".join(str(item) for item in value if not is_blank(item))
    return "" if value is None else str(value)


def format_value(value: object, field_type: FieldType) -> str:
    """Format a submitted value for the given semantic type.

    Args:
        value (object): Raw submitted value.
        field_type (FieldType): Semantic type of the target field.

    Returns:
        str: Backend-ready string value.
    """
    match field_type:
        case FieldType.CHECKBOX:
            return format_checkbox(value)
        case FieldType.DATE:
            return format_date(value)
        case FieldType.CURRENCY:
            return format_currency(value)
        case FieldType.CHECKBOX_GROUP:
            return format_checkbox_group(value)
        case _:
            return "" if value is None else str(value)
