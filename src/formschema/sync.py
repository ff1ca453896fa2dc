"""Projection of schema documents into canonical form and field records."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

from formschema import codes
from formschema.exceptions import SchemaStoreError, SchemaValidationError
from formschema.logging import get_logger
from formschema.repository import resolve_category
from formschema.schema_store import SchemaStore
from formschema.settings import get_settings
from formschema.typing.models import CanonicalFieldDefinition, FormRecord, FormSchema
from formschema.validator import SchemaValidator

if TYPE_CHECKING:
    from formschema.settings import Settings
    from formschema.typing.models import FieldDefinition, Section
    from formschema.typing.protocol import FormRepository

logger = get_logger(__name__)

# Fields with neither a field nor a section page sort after every paged field.
UNPAGED_SORT_PAGE = 999


def ordered_fields(schema: FormSchema) -> list[tuple[str, Section, FieldDefinition]]:
    """Flatten a schema in canonical order.

    Fields sort by effective page (field page, else section page, else last),
    then by their extraction order in the document.

    Returns:
        list[tuple[str, Section, FieldDefinition]]: Section key, section and field.
    """
    entries = list(enumerate(schema.iter_fields()))
    entries.sort(key=lambda item: (item[1][2].page or item[1][1].page or UNPAGED_SORT_PAGE, item[0]))
    return [entry for _, entry in entries]


def build_field_row(
    form_code: str,
    section_key: str,
    section: Section,
    field: FieldDefinition,
    position: int,
) -> CanonicalFieldDefinition:
    """Project one schema field into its canonical row."""
    return CanonicalFieldDefinition(
        form_code=form_code,
        name=field.name,
        pdf_field_name=field.pdf_field_name or field.name,
        field_type=field.type,
        label=field.label,
        help_text=field.help_text,
        placeholder=field.placeholder,
        required=field.required,
        validation_pattern=field.validation or field.pattern,
        min_length=field.min_length,
        max_length=field.max_length,
        section=section_key,
        position=position,
        page_number=field.page or section.page or 1,
        width=field.width,
        conditions=list(field.conditions or []),
        repeating_group=field.repeating_group,
        max_repetitions=field.max_repetitions,
        options=list(field.options or []),
        shared_field_key=field.shared_key,
    )


class SchemaSynchronizer:
    """Upsert schemas into a form repository and prune stale field rows."""

    def __init__(
        self,
        repository: FormRepository,
        *,
        settings: Settings | None = None,
        store: SchemaStore | None = None,
        validator: SchemaValidator | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            repository (FormRepository): Target repository.
            settings (Settings | None): Runtime settings.
            store (SchemaStore | None): Schema corpus.
            validator (SchemaValidator | None): Validator gating every sync.
        """
        self.repository = repository
        self.settings = settings or get_settings()
        self.store = store or SchemaStore(root=self.settings.schemas_dir)
        self.validator = validator or SchemaValidator(
            settings=self.settings,
            store=self.store,
            categories=repository.categories(),
        )

    def sync(self, schema: FormSchema) -> FormRecord:
        """Validate one schema and project it into the repository.

        Args:
            schema (FormSchema): Schema to project.

        Raises:
            SchemaValidationError: If the schema has blocking errors.

        Returns:
            FormRecord: Stored form record.
        """
        result = self.validator.validate(schema)
        if not result.valid:
            raise SchemaValidationError(errors=result.errors, file_path=result.file_path)

        meta = schema.form
        code = meta.code
        category = resolve_category(self.repository.categories(), meta.category)
        if category is None and meta.category:
            logger.warning("Category not resolved", extra={"code": code, "category": meta.category})

        with self.repository.batch():
            form = self.repository.upsert_form(
                FormRecord(
                    code=code,
                    title=meta.title or code,
                    description=meta.description,
                    category=category.slug if category else None,
                    pdf_filename=meta.pdf_filename or f"{code.lower()}.pdf",
                    page_count=meta.page_count,
                    fillable=meta.fillable,
                    metadata=dict(meta.metadata or {}),
                ),
            )

            kept: list[str] = []
            for position, (section_key, section, field) in enumerate(ordered_fields(schema), start=1):
                self.repository.upsert_field(build_field_row(code, section_key, section, field, position))
                kept.append(field.name)

            deleted = self.repository.delete_fields_except(code, kept)
        logger.info("Schema synced", extra={"code": code, "fields": len(kept), "deleted": len(deleted)})
        return form

    def sync_file(self, path: Path) -> FormRecord:
        """Validate and project one schema file.

        Raises:
            SchemaValidationError: If the document has blocking errors.

        Returns:
            FormRecord: Stored form record.
        """
        path = Path(path)
        result = self.validator.validate_file(path)
        if not result.valid:
            raise SchemaValidationError(errors=result.errors, file_path=str(path))
        try:
            schema = self.store.load(path)
        except SchemaStoreError as exc:
            raise SchemaValidationError(errors=[str(exc)], file_path=str(path)) from exc
        return self.sync(schema)

    def sync_code(self, code: str) -> FormRecord:
        """Validate and project the schema of one form code.

        Raises:
            SchemaStoreError: If no schema exists for `code`.

        Returns:
            FormRecord: Stored form record.
        """
        path = self.store.find(code)
        if path is None:
            raise SchemaStoreError(message=f"Schema not found: {codes.normalize(code)}")
        return self.sync_file(path)

    def sync_all(self) -> dict[str, list[str]]:
        """Project every valid schema of the corpus.

        Invalid documents are reported and skipped.

        Returns:
            dict[str, list[str]]: `synced` codes and `failed` file messages.
        """
        synced: list[str] = []
        failed: list[str] = []
        for path in self.store.list_files():
            try:
                form = self.sync_file(path)
            except SchemaValidationError as exc:
                logger.warning("Schema not synced", extra={"schema_path": str(path), "error": str(exc)})
                failed.append(str(exc))
                continue
            synced.append(form.code)
        return {"synced": synced, "failed": failed}
