"""Raw and classified field models produced during extraction."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from formschema.typing.enums import ControlKind, FieldType

Rect = tuple[float, float, float, float]


class FieldDescriptor(BaseModel):
    """Field as reported by a PDF backend, before classification.

    `rect` is `(x1, y1, x2, y2)` in PDF user space (bottom-left origin), or
    `None` when the backend exposes no widget geometry.
    """

    model_config = ConfigDict(extra="forbid")

    name: str
    kind: ControlKind = ControlKind.TEXT
    options: list[str] = Field(default_factory=list)
    value: str | None = None
    page: int = 1
    rect: Rect | None = None

    @property
    def top(self) -> float | None:
        """Return the upper edge of the widget, if known."""
        return self.rect[3] if self.rect else None

    @property
    def left(self) -> float | None:
        """Return the left edge of the widget, if known."""
        return self.rect[0] if self.rect else None


class ClassifiedField(BaseModel):
    """Descriptor enriched with its semantic type and PII flag."""

    model_config = ConfigDict(extra="forbid")

    descriptor: FieldDescriptor
    field_type: FieldType = FieldType.TEXT
    pii: bool = False

    @property
    def name(self) -> str:
        """Return the raw PDF field name."""
        return self.descriptor.name
