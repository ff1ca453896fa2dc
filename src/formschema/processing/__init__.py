"""Value processing helpers."""

from formschema.processing.formatting import (
    format_checkbox,
    format_checkbox_group,
    format_currency,
    format_date,
    format_value,
    is_truthy,
    parse_date,
)

__all__ = [
    "format_checkbox",
    "format_checkbox_group",
    "format_currency",
    "format_date",
    "format_value",
    "is_truthy",
    "parse_date",
]
