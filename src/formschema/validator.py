"""Structural validation of schema documents."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import TYPE_CHECKING, Any

from formschema import codes
from formschema.exceptions import SchemaStoreError
from formschema.logging import get_logger
from formschema.repository import default_categories, resolve_category
from formschema.schema_store import SchemaStore
from formschema.settings import get_settings
from formschema.templates import LocalTemplateSource
from formschema.typing.enums import FieldType
from formschema.typing.models import (
    FileMessages,
    FormSchema,
    SharedKeyCollision,
    SharedKeyTypeConflict,
    ValidationReport,
    ValidationResult,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

    from formschema.settings import Settings
    from formschema.typing.models import Category
    from formschema.typing.protocol import TemplateSource

logger = get_logger(__name__)

REQUIRED_FORM_KEYS = ("code", "title", "pdf_filename", "category")
REQUIRED_FIELD_KEYS = ("name", "type", "label")
NAMESPACE_SEPARATOR = ":"


def iter_raw_fields(payload: Mapping[str, Any]) -> Iterator[Mapping[str, Any]]:
    """Yield the field mappings of a raw schema payload in document order.

    Both the keyed (`{name: section}`) and list (`[section, ...]`) section
    layouts are accepted; malformed entries are skipped.
    """
    sections = payload.get("sections")
    if isinstance(sections, Mapping):
        section_items: list[Any] = list(sections.values())
    elif isinstance(sections, list):
        section_items = sections
    else:
        return
    for section in section_items:
        if not isinstance(section, Mapping):
            continue
        for field in section.get("fields") or []:
            if isinstance(field, Mapping):
                yield field


def _form_code(payload: Mapping[str, Any], path: Path) -> str:
    form = payload.get("form")
    code = form.get("code") if isinstance(form, Mapping) else None
    return str(code) if code else codes.normalize(path.name.removesuffix(".schema.json"))


class SchemaValidator:
    """Validate schema documents and the corpus they form."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        store: SchemaStore | None = None,
        templates: TemplateSource | None = None,
        categories: list[Category] | None = None,
    ) -> None:
        """Initialize the validator.

        Args:
            settings (Settings | None): Runtime settings.
            store (SchemaStore | None): Schema corpus.
            templates (TemplateSource | None): Template source checked for referenced PDFs.
            categories (list[Category] | None): Reference categories.
        """
        self.settings = settings or get_settings()
        self.store = store or SchemaStore(root=self.settings.schemas_dir)
        self.templates = templates or LocalTemplateSource(self.settings.templates_dir)
        self.categories = categories if categories is not None else default_categories()

    def validate(self, schema: FormSchema | Mapping[str, Any], file_path: str | None = None) -> ValidationResult:
        """Check one schema document.

        Args:
            schema (FormSchema | Mapping[str, Any]): Parsed or raw schema.
            file_path (str | None): Source file, echoed in the result.

        Returns:
            ValidationResult: Blocking errors and advisory warnings.
        """
        payload = schema.to_document() if isinstance(schema, FormSchema) else schema
        result = ValidationResult(file_path=file_path)
        if not isinstance(payload, Mapping):
            result.errors.append("Schema must be a mapping")
            return result

        self._check_form(payload.get("form"), result)
        self._check_sections(payload, result)
        return result

    def validate_file(self, path: Path) -> ValidationResult:
        """Load and check one schema file.

        Returns:
            ValidationResult: Result carrying the file path; unreadable files
            produce a single parse error.
        """
        try:
            payload = self.store.load_raw(Path(path))
        except SchemaStoreError as exc:
            return ValidationResult(errors=[f"Failed to parse schema: {exc}"], file_path=str(path))
        return self.validate(payload, file_path=str(path))

    def validate_all(self) -> ValidationReport:
        """Check every document of the corpus.

        Returns:
            ValidationReport: Valid files, invalid files with errors, warnings per file.
        """
        report = ValidationReport()
        for path in self.store.list_files():
            result = self.validate_file(path)
            if result.valid:
                report.valid.append(str(path))
                if result.warnings:
                    report.warnings.append(FileMessages(file=str(path), messages=result.warnings))
            else:
                report.invalid.append(FileMessages(file=str(path), messages=result.errors))
        logger.info(
            "Corpus validated",
            extra={"valid": len(report.valid), "invalid": len(report.invalid), "warnings": len(report.warnings)},
        )
        return report

    def check_shared_key_collisions(self) -> list[SharedKeyCollision]:
        """Report unnamespaced shared keys reused by two or more forms.

        Returns:
            list[SharedKeyCollision]: One entry per offending key.
        """
        forms_by_key: dict[str, list[str]] = {}
        for code, fields in self._corpus_fields():
            for field in fields:
                key = field.get("shared_key")
                if not key or NAMESPACE_SEPARATOR in str(key):
                    continue
                forms = forms_by_key.setdefault(str(key), [])
                if code not in forms:
                    forms.append(code)
        return [SharedKeyCollision(key=key, forms=forms) for key, forms in forms_by_key.items() if len(forms) > 1]

    def check_shared_key_type_conflicts(self) -> list[SharedKeyTypeConflict]:
        """Report shared keys bound to different semantic types across the corpus.

        Returns:
            list[SharedKeyTypeConflict]: Keys with their `CODE.field` bindings per type.
        """
        bindings: dict[str, dict[str, list[str]]] = {}
        for code, fields in self._corpus_fields():
            for field in fields:
                key = field.get("shared_key")
                if not key:
                    continue
                field_type = str(field.get("type") or FieldType.TEXT.value)
                bindings.setdefault(str(key), {}).setdefault(field_type, []).append(f"{code}.{field.get('name')}")
        return [SharedKeyTypeConflict(key=key, types=types) for key, types in bindings.items() if len(types) > 1]

    def _corpus_fields(self) -> Iterator[tuple[str, list[Mapping[str, Any]]]]:
        for path in self.store.list_files():
            try:
                payload = self.store.load_raw(path)
            except SchemaStoreError as exc:
                logger.warning("Skipping unreadable schema", extra={"schema_path": str(path), "error": str(exc)})
                continue
            yield _form_code(payload, path), list(iter_raw_fields(payload))

    def _check_form(self, form: object, result: ValidationResult) -> None:
        if not isinstance(form, Mapping):
            result.errors.append("Missing 'form' section")
            return

        result.errors.extend(f"Missing required form key: {key}" for key in REQUIRED_FORM_KEYS if form.get(key) is None)

        category = form.get("category")
        if category and resolve_category(self.categories, str(category)) is None:
            result.warnings.append(f"Category '{category}' not found in reference set")

        pdf_filename = form.get("pdf_filename")
        if pdf_filename and not self.templates.exists(str(pdf_filename)):
            result.warnings.append(f"PDF file not found: {pdf_filename}")

    def _check_sections(self, payload: Mapping[str, Any], result: ValidationResult) -> None:
        if not isinstance(payload.get("sections"), (Mapping, list)):
            result.errors.append("Missing or invalid 'sections'")
            return

        seen: set[str] = set()
        valid_types = FieldType.values()
        for field in iter_raw_fields(payload):
            name = field.get("name")
            result.errors.extend(
                f"Field missing required key '{key}': {name or dict(field)}"
                for key in REQUIRED_FIELD_KEYS
                if field.get(key) is None
            )

            field_type = field.get("type")
            if field_type is not None and str(field_type) not in valid_types:
                result.errors.append(f"Invalid field type '{field_type}' for field '{name}'")

            if name is not None:
                if name in seen:
                    result.errors.append(f"Duplicate field name: {name}")
                seen.add(name)

            shared_key = field.get("shared_key")
            if shared_key and NAMESPACE_SEPARATOR not in str(shared_key):
                result.warnings.append(
                    f"Unnamespaced shared_key '{shared_key}' in field '{name}' (consider using 'common:{shared_key}')",
                )
