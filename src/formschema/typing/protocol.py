"""Backend and collaborator interfaces."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from contextlib import AbstractContextManager
    from pathlib import Path

    from formschema.typing.models import CanonicalFieldDefinition, Category, FieldDescriptor, FormRecord


class PdfBackend(Protocol):
    """Operations shared by both PDF engines."""

    name: str

    def read_fields(self, pdf_path: Path) -> list[FieldDescriptor]:
        """Read the fillable fields of a PDF.

        Args:
            pdf_path: Source PDF path.

        Returns:
            list[FieldDescriptor]: Fields in backend order.
        """

    def fill(self, template_path: Path, output_path: Path, data: Mapping[str, str]) -> Path:
        """Write a filled copy of `template_path`.

        Args:
            template_path: Blank template.
            output_path: Destination path.
            data: Formatted values keyed by full PDF field name.

        Returns:
            Path: The written output path.
        """


class PrimaryBackend(PdfBackend, Protocol):
    """Engine with widget geometry and flattening support."""

    def flatten(self, source_path: Path, output_path: Path) -> Path:
        """Write a flattened (non-editable) copy of `source_path`.

        Args:
            source_path: Filled PDF.
            output_path: Destination path.

        Returns:
            Path: The written output path.
        """


class FallbackBackend(PdfBackend, Protocol):
    """Engine tolerating documents the primary cannot handle. No geometry."""


class TemplateSource(Protocol):
    """Provides local readable paths to blank PDF templates."""

    def resolve(self, filename: str) -> Path | None:
        """Return a readable path for `filename`, or None if absent."""

    def exists(self, filename: str) -> bool:
        """Return whether `filename` is available."""

    def list(self, pattern: str = "*.pdf") -> list[Path]:
        """Return template paths matching a glob pattern."""


class FormRepository(Protocol):
    """Keyed store of forms and their canonical field rows."""

    def categories(self) -> list[Category]:
        """Return the reference category set."""

    def find_category(self, slug: str) -> Category | None:
        """Return the category with an exact slug."""

    def get_form(self, code: str) -> FormRecord | None:
        """Return a form by code."""

    def upsert_form(self, record: FormRecord) -> FormRecord:
        """Create or update a form keyed by code."""

    def list_fields(self, form_code: str) -> list[CanonicalFieldDefinition]:
        """Return the form's field rows ordered by position."""

    def upsert_field(self, field: CanonicalFieldDefinition) -> CanonicalFieldDefinition:
        """Create or update a field row keyed by (form code, name)."""

    def delete_fields_except(self, form_code: str, keep: Iterable[str]) -> list[str]:
        """Delete the form's rows whose name is not in `keep`; return deleted names."""

    def batch(self) -> AbstractContextManager[None]:
        """Group mutations so they are persisted once."""
