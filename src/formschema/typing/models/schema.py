"""Schema document models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from formschema.typing.enums import FieldType, FieldWidth


class FieldOption(BaseModel):
    """Selectable option of a select or radio field."""

    model_config = ConfigDict(extra="forbid")

    value: str
    label: str


class ConditionClause(BaseModel):
    """Visibility rule evaluated against submitted data.

    `operator` stays a plain string: unknown operators are tolerated and
    evaluate permissively.
    """

    model_config = ConfigDict(extra="forbid")

    field: str
    operator: str = "equals"
    value: Any = None


class FieldDefinition(BaseModel):
    """Single field of a schema section."""

    model_config = ConfigDict(extra="forbid")

    name: str
    pdf_field_name: str | None = None
    type: FieldType = FieldType.TEXT
    label: str
    placeholder: str | None = None
    help_text: str | None = None
    required: bool = False
    width: FieldWidth = FieldWidth.FULL
    shared_key: str | None = None
    options: list[FieldOption] | None = None
    conditions: list[ConditionClause] | None = None
    page: int | None = None
    validation: str | None = None
    pattern: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    repeating_group: str | None = None
    max_repetitions: int | None = None


class Section(BaseModel):
    """Ordered group of fields."""

    model_config = ConfigDict(extra="forbid")

    title: str
    page: int | None = None
    fields: list[FieldDefinition] = Field(default_factory=list)


class FormMetadata(BaseModel):
    """Form-level metadata of a schema document."""

    model_config = ConfigDict(extra="forbid")

    code: str
    title: str
    description: str | None = ""
    category: str
    pdf_filename: str
    fillable: bool = True
    instructions: str | None = ""
    page_count: int | None = None
    metadata: dict[str, Any] | None = None


class FormSchema(BaseModel):
    """Declarative description of one PDF form."""

    model_config = ConfigDict(extra="forbid")

    form: FormMetadata
    sections: dict[str, Section] = Field(default_factory=dict)

    @field_validator("sections", mode="before")
    @classmethod
    def _sections_from_list(cls, value: object) -> object:
        """Accept the list layout `[{name, title, fields}, ...]`.

        Args:
            value (object): Raw sections payload.

        Returns:
            object: Mapping keyed by section name.
        """
        if value is None:
            return {}
        if not isinstance(value, list):
            return value
        sections: dict[str, object] = {}
        for entry in value:
            if not isinstance(entry, dict):
                continue
            payload = dict(entry)
            key = str(payload.pop("name", None) or "general")
            payload.setdefault("title", key.replace("_", " ").title())
            sections[key] = payload
        return sections

    def iter_fields(self) -> list[tuple[str, Section, FieldDefinition]]:
        """Return every field with its section, in document order.

        Returns:
            list[tuple[str, Section, FieldDefinition]]: Section key, section and field.
        """
        return [(key, section, field) for key, section in self.sections.items() for field in section.fields]

    def to_document(self) -> dict[str, Any]:
        """Return the JSON-ready document without unset optional keys.

        Returns:
            dict[str, Any]: Schema payload.
        """
        return self.model_dump(mode="json", exclude_none=True)
