"""Persisted projection records and submissions."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from formschema.typing.enums import FieldType, FieldWidth
from formschema.typing.models.schema import ConditionClause, FieldOption

_TIMESTAMP_FIELDS = frozenset({"created_at", "updated_at"})


def utcnow() -> datetime:
    """Return the current UTC time."""
    return datetime.now(tz=UTC)


class _Record(BaseModel):
    """Base for records carrying bookkeeping timestamps."""

    created_at: datetime | None = None
    updated_at: datetime | None = None

    def content(self) -> dict[str, Any]:
        """Return the record payload without timestamps.

        Returns:
            dict[str, Any]: Comparable payload.
        """
        return self.model_dump(mode="json", exclude=set(_TIMESTAMP_FIELDS))


class Category(BaseModel):
    """Reference category a form belongs to."""

    model_config = ConfigDict(extra="forbid")

    slug: str
    name: str


class FormRecord(_Record):
    """Persisted form metadata keyed by code."""

    model_config = ConfigDict(extra="forbid")

    code: str
    title: str
    description: str | None = None
    category: str | None = None
    pdf_filename: str
    page_count: int | None = None
    fillable: bool = True
    metadata: dict[str, Any] = Field(default_factory=dict)


class CanonicalFieldDefinition(_Record):
    """Persisted field row, regenerated from the schema on every sync."""

    model_config = ConfigDict(extra="forbid")

    form_code: str
    name: str = Field(min_length=1)
    pdf_field_name: str = Field(min_length=1)
    field_type: FieldType = FieldType.TEXT
    label: str | None = None
    help_text: str | None = None
    placeholder: str | None = None
    required: bool = False
    validation_pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    section: str = "general"
    position: int = Field(ge=1)
    page_number: int = 1
    width: FieldWidth = FieldWidth.FULL
    conditions: list[ConditionClause] = Field(default_factory=list)
    repeating_group: str | None = None
    max_repetitions: int | None = None
    options: list[FieldOption] = Field(default_factory=list)
    shared_field_key: str | None = None

    @property
    def repeatable(self) -> bool:
        """Return whether the field belongs to a repeating group."""
        return bool(self.repeating_group)

    @property
    def conditional(self) -> bool:
        """Return whether the field carries visibility conditions."""
        return bool(self.conditions)

    def should_show(self, data: dict[str, Any]) -> bool:
        """Return True when every condition holds for `data`."""
        from formschema.conditions import should_show  # noqa: PLC0415

        return should_show(self.conditions, data)

    def should_show_any(self, data: dict[str, Any]) -> bool:
        """Return True when at least one condition holds for `data`."""
        from formschema.conditions import should_show_any  # noqa: PLC0415

        return should_show_any(self.conditions, data)


class Submission(BaseModel):
    """User-submitted values for one form."""

    model_config = ConfigDict(extra="forbid")

    id: str
    form_code: str
    data: dict[str, Any] = Field(default_factory=dict)
    pdf_generated_at: datetime | None = None

    def field_value(self, name: str) -> Any:  # noqa: ANN401
        """Return the submitted value for a field name."""
        return self.data.get(name)

    def touch_generated(self) -> None:
        """Record that a PDF was just produced for this submission."""
        self.pdf_generated_at = utcnow()
