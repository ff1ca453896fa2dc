"""Project enums."""

from __future__ import annotations

from enum import StrEnum


class _EnumMixin(StrEnum):
    """Shared conversion helpers for user-facing enums."""

    @classmethod
    def from_str(cls, value: str) -> _EnumMixin:
        """Parse enum from string.

        Args:
            value: Raw string value.

        Raises:
            ValueError: If the value is not supported.

        Returns:
            _EnumMixin: Parsed enum value.
        """
        try:
            return cls(value)
        except ValueError as exc:
            supported = ", ".join(member.value for member in cls)
            message = f"Unsupported {cls.__name__} value '{value}'. Expected one of: {supported}"
            raise ValueError(message) from exc

    @classmethod
    def values(cls) -> frozenset[str]:
        """Return the set of raw values.

        Returns:
            frozenset[str]: Every member value.
        """
        return frozenset(member.value for member in cls)

    def to_str(self) -> str:
        """Return string representation.

        Returns:
            str: Enum string value.
        """
        return self.value


class FieldType(_EnumMixin):
    """Closed set of semantic field types."""

    TEXT = "text"
    TEXTAREA = "textarea"
    TEL = "tel"
    EMAIL = "email"
    DATE = "date"
    CURRENCY = "currency"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    CHECKBOX_GROUP = "checkbox_group"
    RADIO = "radio"
    SELECT = "select"
    SIGNATURE = "signature"
    ADDRESS = "address"
    HIDDEN = "hidden"
    READONLY = "readonly"


class ControlKind(_EnumMixin):
    """Control kind reported by a PDF backend."""

    BUTTON = "button"
    CHOICE = "choice"
    TEXT = "text"


class FieldWidth(_EnumMixin):
    """Layout width class."""

    FULL = "full"
    HALF = "half"
    THIRD = "third"
    QUARTER = "quarter"
    TWO_THIRDS = "two_thirds"


class ConditionOperator(_EnumMixin):
    """Operators accepted in condition clauses."""

    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    PRESENT = "present"
    BLANK = "blank"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    INCLUDES = "includes"
    NOT_INCLUDES = "not_includes"
    MATCHES = "matches"
