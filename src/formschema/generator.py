"""Schema document generation from PDF templates."""

from __future__ import annotations

import re
from pathlib import Path
from typing import TYPE_CHECKING

from formschema import codes
from formschema.classifier import (
    button_on_states,
    classify_descriptor,
    detect_section,
    humanize_label,
    sanitize_name,
    skip_field,
)
from formschema.extractor import FieldExtractor
from formschema.logging import get_logger
from formschema.schema_store import SchemaStore
from formschema.settings import get_settings
from formschema.templates import LocalTemplateSource
from formschema.typing.enums import FieldType, FieldWidth
from formschema.typing.models import (
    AnalysisEntry,
    BatchFailure,
    BatchResult,
    ClassifiedField,
    FieldDefinition,
    FieldDescriptor,
    FieldOption,
    FormMetadata,
    FormSchema,
    Section,
)

if TYPE_CHECKING:
    from formschema.settings import Settings
    from formschema.typing.protocol import TemplateSource

logger = get_logger(__name__)

# Evaluated in order against "<sanitized name> <raw name>"; the first match wins.
SHARED_KEY_PATTERNS: tuple[tuple[re.Pattern[str], str], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), key)
    for pattern, key in (
        (r"plaintiff.*name", "plaintiff:name"),
        (r"plaintiff.*street", "plaintiff:street"),
        (r"plaintiff.*city", "plaintiff:city"),
        (r"plaintiff.*state", "plaintiff:state"),
        (r"plaintiff.*zip", "plaintiff:zip"),
        (r"plaintiff.*phone", "plaintiff:phone"),
        (r"plaintiff.*email", "plaintiff:email"),
        (r"defendant.*street", "defendant:street"),
        (r"petitioner.*name", "petitioner:name"),
        (r"petitioner.*street", "petitioner:street"),
        (r"respondent.*name", "respondent:name"),
        (r"court.*name", "court:name"),
        (r"court.*address", "court:address"),
        (r"case.*number", "case:number"),
        (r"filing.*date", "filing:date"),
    )
)

WIDTH_BY_TYPE: dict[FieldType, FieldWidth] = {
    FieldType.TEXTAREA: FieldWidth.FULL,
    FieldType.ADDRESS: FieldWidth.FULL,
    FieldType.SIGNATURE: FieldWidth.FULL,
    FieldType.CHECKBOX: FieldWidth.FULL,
    FieldType.DATE: FieldWidth.HALF,
    FieldType.TEL: FieldWidth.HALF,
    FieldType.EMAIL: FieldWidth.HALF,
    FieldType.CURRENCY: FieldWidth.THIRD,
    FieldType.NUMBER: FieldWidth.THIRD,
}
_OPTION_TYPES = frozenset({FieldType.SELECT, FieldType.RADIO})
_DEFAULT_SECTION = "General"


def detect_shared_key(name: str, pdf_field_name: str) -> str | None:
    """Return the shared key implied by a field's names, if any."""
    combined = f"{name} {pdf_field_name}"
    for pattern, key in SHARED_KEY_PATTERNS:
        if pattern.search(combined):
            return key
    return None


def infer_width(field_type: FieldType) -> FieldWidth:
    """Return the layout width class of a semantic type."""
    return WIDTH_BY_TYPE.get(field_type, FieldWidth.FULL)


def section_key(title: str) -> str:
    """Return the snake_case key of a section title (`Party Info -> party_info`)."""
    return re.sub(r"[^a-z0-9]+", "_", title.lower()).strip("_") or "general"


def _option_label(value: str) -> str:
    words = re.sub(r"[_\-]+", " ", value).split()
    return " ".join(word[:1].upper() + word[1:].lower() for word in words) or value


class _NameAllocator:
    """Hand out unique field names within one form."""

    def __init__(self) -> None:
        self._counts: dict[str, int] = {}
        self._taken: set[str] = set()

    def allocate(self, base: str) -> str:
        count = self._counts.get(base, 0)
        name = base if count == 0 else f"{base}_{count + 1}"
        while name in self._taken:
            count += 1
            name = f"{base}_{count + 1}"
        self._counts[base] = count + 1
        self._taken.add(name)
        return name


class SchemaGenerator:
    """Generate the schema document of one form from its blank template.

    Errors and warnings of the last run are kept on the instance for operator
    tooling.
    """

    def __init__(
        self,
        form_code: str,
        *,
        settings: Settings | None = None,
        extractor: FieldExtractor | None = None,
        templates: TemplateSource | None = None,
        store: SchemaStore | None = None,
    ) -> None:
        """Initialize the generator.

        Args:
            form_code (str): Form code in any spelling.
            settings (Settings | None): Runtime settings.
            extractor (FieldExtractor | None): Field extractor override.
            templates (TemplateSource | None): Template source override.
            store (SchemaStore | None): Schema store override.
        """
        self.settings = settings or get_settings()
        self.form_code = codes.normalize(form_code)
        self.extractor = extractor or FieldExtractor.from_settings(self.settings)
        self.templates = templates or LocalTemplateSource(self.settings.templates_dir)
        self.store = store or SchemaStore(root=self.settings.schemas_dir)
        self.errors: list[str] = []
        self.warnings: list[str] = []

    def find_pdf_path(self) -> Path | None:
        """Resolve the template of the form, trying `sc100.pdf` then `sc-100.pdf`."""
        for filename in dict.fromkeys((f"{codes.to_filename(self.form_code)}.pdf", f"{self.form_code.lower()}.pdf")):
            path = self.templates.resolve(filename)
            if path is not None:
                return path
        return None

    def generate(self) -> FormSchema | None:
        """Build the schema document.

        Returns:
            FormSchema | None: Generated schema, None when the template is missing.
        """
        self.errors = []
        self.warnings = []

        pdf_path = self.find_pdf_path()
        if pdf_path is None:
            self.errors.append(f"PDF file not found for {self.form_code}")
            return None

        fields = self._extract_fields(pdf_path)
        if not fields:
            self.warnings.append(f"No fields extracted from {self.form_code} - may be non-fillable")
            return FormSchema(form=self._metadata(pdf_path, fillable=False), sections={})

        schema = FormSchema(form=self._metadata(pdf_path, fillable=True), sections=self._build_sections(fields))
        logger.info(
            "Schema generated",
            extra={"code": self.form_code, "fields": len(fields), "sections": len(schema.sections)},
        )
        return schema

    def generate_to_file(self) -> Path | None:
        """Generate the schema and write it to the store.

        Returns:
            Path | None: Written document, None when generation or writing failed.
        """
        schema = self.generate()
        if schema is None:
            return None
        try:
            return self.store.save(schema)
        except OSError as exc:
            self.errors.append(f"Failed to write schema: {exc}")
            logger.error("Schema write failed", extra={"code": self.form_code, "error": str(exc)})
            return None

    @classmethod
    def generate_batch(
        cls,
        prefix: str,
        *,
        force: bool = False,
        settings: Settings | None = None,
        extractor: FieldExtractor | None = None,
        templates: TemplateSource | None = None,
        store: SchemaStore | None = None,
    ) -> BatchResult:
        """Generate schemas for every template whose filename starts with `prefix`.

        Args:
            prefix (str): Code prefix, e.g. `SC`.
            force (bool): Regenerate forms that already have a schema.
            settings (Settings | None): Runtime settings.
            extractor (FieldExtractor | None): Shared field extractor.
            templates (TemplateSource | None): Template source override.
            store (SchemaStore | None): Schema store override.

        Returns:
            BatchResult: Generated, failed and skipped codes.
        """
        settings = settings or get_settings()
        extractor = extractor or FieldExtractor.from_settings(settings)
        templates = templates or LocalTemplateSource(settings.templates_dir)
        store = store or SchemaStore(root=settings.schemas_dir)

        result = BatchResult()
        for pdf_path in templates.list(f"{prefix.lower()}*.pdf"):
            form_code = codes.from_filename(pdf_path)
            if not form_code:
                continue
            if store.exists(form_code) and not force:
                result.skipped.append(form_code)
                continue

            generator = cls(form_code, settings=settings, extractor=extractor, templates=templates, store=store)
            if generator.generate_to_file() is not None:
                result.success.append(form_code)
            else:
                result.failed.append(BatchFailure(code=form_code, errors=list(generator.errors)))

        logger.info(
            "Batch generation finished",
            extra={
                "prefix": prefix,
                "success": len(result.success),
                "failed": len(result.failed),
                "skipped": len(result.skipped),
            },
        )
        return result

    @classmethod
    def analyze(
        cls,
        prefix: str,
        *,
        settings: Settings | None = None,
        extractor: FieldExtractor | None = None,
        templates: TemplateSource | None = None,
        store: SchemaStore | None = None,
    ) -> list[AnalysisEntry]:
        """Report fillability of every template matching `prefix`.

        Returns:
            list[AnalysisEntry]: One entry per template, sorted by code.
        """
        settings = settings or get_settings()
        extractor = extractor or FieldExtractor.from_settings(settings)
        templates = templates or LocalTemplateSource(settings.templates_dir)
        store = store or SchemaStore(root=settings.schemas_dir)

        report: list[AnalysisEntry] = []
        for pdf_path in templates.list(f"{prefix.lower()}*.pdf"):
            form_code = codes.from_filename(pdf_path)
            if not form_code:
                continue
            descriptors = extractor.extract(pdf_path)
            report.append(
                AnalysisEntry(
                    code=form_code,
                    fillable=bool(descriptors),
                    field_count=len(descriptors),
                    has_schema=store.exists(form_code),
                ),
            )
        return sorted(report, key=lambda entry: entry.code)

    def _metadata(self, pdf_path: Path, *, fillable: bool) -> FormMetadata:
        return FormMetadata(
            code=self.form_code,
            title=codes.infer_title(self.form_code),
            description="",
            category=codes.infer_category(self.form_code),
            pdf_filename=pdf_path.name,
            fillable=fillable,
            instructions="",
        )

    def _extract_fields(self, pdf_path: Path) -> list[FieldDescriptor]:
        """Extract descriptors, dropping boilerplate controls and repeated raw names."""
        seen: set[str] = set()
        fields: list[FieldDescriptor] = []
        for descriptor in self.extractor.extract(pdf_path):
            if skip_field(descriptor.name) or descriptor.name in seen:
                continue
            seen.add(descriptor.name)
            fields.append(descriptor)
        return fields

    def _build_sections(self, fields: list[FieldDescriptor]) -> dict[str, Section]:
        """Group fields into sections in first-seen order."""
        sections: dict[str, Section] = {}
        names = _NameAllocator()
        for descriptor in fields:
            title = detect_section(descriptor.name) or _DEFAULT_SECTION
            key = section_key(title)
            section = sections.get(key)
            if section is None:
                section = Section(title=title, page=descriptor.page)
                sections[key] = section
            section.fields.append(self._build_field(classify_descriptor(descriptor), names))
        return sections

    def _build_field(self, classified: ClassifiedField, names: _NameAllocator) -> FieldDefinition:
        descriptor = classified.descriptor
        name = names.allocate(sanitize_name(descriptor.name))

        options = None
        if classified.field_type in _OPTION_TYPES:
            values = descriptor.options
            if classified.field_type == FieldType.RADIO:
                values = button_on_states(values)
            if values:
                options = [FieldOption(value=str(value), label=_option_label(str(value))) for value in values]

        if classified.pii:
            self.warnings.append(f"PII field detected: {name}")

        return FieldDefinition(
            name=name,
            pdf_field_name=descriptor.name,
            type=classified.field_type,
            label=humanize_label(descriptor.name),
            required=False,
            width=infer_width(classified.field_type),
            shared_key=detect_shared_key(name, descriptor.name),
            options=options,
            page=descriptor.page,
        )
