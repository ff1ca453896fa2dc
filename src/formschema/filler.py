"""Filling PDF templates from canonical field records and submissions."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

from formschema import codes
from formschema.backends.pdftk_backend import PdftkBackend
from formschema.backends.pdftk_resolver import PdftkResolver
from formschema.backends.pymupdf_backend import PyMuPDFBackend
from formschema.conditions import is_blank
from formschema.exceptions import BackendError, FillError
from formschema.logging import failure_details, get_logger
from formschema.processing.formatting import format_value
from formschema.settings import get_settings
from formschema.templates import LocalTemplateSource
from formschema.typing.enums import FieldType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from formschema.settings import Settings
    from formschema.typing.models import CanonicalFieldDefinition, Submission
    from formschema.typing.protocol import FallbackBackend, PrimaryBackend, TemplateSource

logger = get_logger(__name__)

INDEX_PLACEHOLDER = "{index}"
FAILURE_MESSAGE_LIMIT = 100


def _keeps_blank(field: CanonicalFieldDefinition) -> bool:
    # Unchecked boxes must still be written as "Off".
    return field.field_type == FieldType.CHECKBOX


def _repetitions(field: CanonicalFieldDefinition, value: Any) -> list[Any]:  # noqa: ANN401
    """Return the per-index values of a repeating field."""
    if not isinstance(value, (list, tuple)) or field.field_type == FieldType.CHECKBOX_GROUP:
        return [value]
    items = list(value)
    if field.max_repetitions is not None:
        items = items[: max(field.max_repetitions, 0)]
    return items


def build_data(fields: Iterable[CanonicalFieldDefinition], submission: Submission) -> dict[str, str]:
    """Map full PDF field names to formatted values.

    Blank values are omitted except for checkboxes. A `{index}` placeholder in
    the PDF field name expands a list value into indices `0..n-1` (capped by
    `max_repetitions`); a scalar value lands on index 0.

    Args:
        fields (Iterable[CanonicalFieldDefinition]): Canonical rows of the form.
        submission (Submission): Submitted values.

    Returns:
        dict[str, str]: Backend-ready fill data.
    """
    data: dict[str, str] = {}
    for field in fields:
        value = submission.field_value(field.name)
        if is_blank(value) and not _keeps_blank(field):
            continue

        pdf_name = field.pdf_field_name
        if INDEX_PLACEHOLDER not in pdf_name:
            data[pdf_name] = format_value(value, field.field_type)
            continue

        for index, item in enumerate(_repetitions(field, value)):
            if is_blank(item) and not _keeps_blank(field):
                continue
            data[pdf_name.replace(INDEX_PLACEHOLDER, str(index))] = format_value(item, field.field_type)
    return data


class FormFiller:
    """Produce filled PDFs with the primary backend and a transparent fallback."""

    def __init__(
        self,
        fields: Iterable[CanonicalFieldDefinition],
        submission: Submission,
        *,
        pdf_filename: str | None = None,
        template_path: Path | None = None,
        settings: Settings | None = None,
        templates: TemplateSource | None = None,
        primary: PrimaryBackend | None = None,
        fallback: FallbackBackend | None = None,
        resolver: PdftkResolver | None = None,
    ) -> None:
        """Initialize the filler.

        Args:
            fields (Iterable[CanonicalFieldDefinition]): Canonical rows of the form.
            submission (Submission): Submitted values.
            pdf_filename (str | None): Template filename; derived from the form code when omitted.
            template_path (Path | None): Explicit template, bypassing the template source.
            settings (Settings | None): Runtime settings.
            templates (TemplateSource | None): Template source override.
            primary (PrimaryBackend | None): Primary backend override.
            fallback (FallbackBackend | None): Fallback backend override.
            resolver (PdftkResolver | None): Shared pdftk resolver for the default fallback.
        """
        self.fields = list(fields)
        self.submission = submission
        self.settings = settings or get_settings()
        self.pdf_filename = pdf_filename or f"{codes.to_filename(submission.form_code)}.pdf"
        self.template_path = template_path
        self.templates = templates or LocalTemplateSource(self.settings.templates_dir)
        self.primary = primary or PyMuPDFBackend()
        self.fallback = fallback or PdftkBackend(
            resolver or PdftkResolver(self.settings.pdftk_path),
            timeout=self.settings.backend_timeout,
        )

    @property
    def output_path(self) -> Path:
        """Return `<output_dir>/<form_code>_<submission_id>.pdf`."""
        return Path(self.settings.output_dir) / f"{self.submission.form_code}_{self.submission.id}.pdf"

    def resolve_template(self) -> Path:
        """Return the blank template path.

        Raises:
            FillError: If the template cannot be found.
        """
        if self.template_path is not None:
            if not Path(self.template_path).is_file():
                raise FillError(message="PDF template not found", template_path=str(self.template_path))
            return Path(self.template_path)
        path = self.templates.resolve(self.pdf_filename)
        if path is None:
            raise FillError(message="PDF template not found", template_path=self.pdf_filename)
        return path

    def build_data(self) -> dict[str, str]:
        """Return the fill data of the submission."""
        return build_data(self.fields, self.submission)

    def generate(self) -> Path:
        """Write the filled, still editable PDF.

        Raises:
            FillError: If the template is missing or both backends fail.

        Returns:
            Path: Output path.
        """
        template = self.resolve_template()
        output = self.output_path
        output.parent.mkdir(parents=True, exist_ok=True)
        data = self.build_data()

        try:
            self.primary.fill(template, output, data)
        except BackendError as exc:
            logger.warning(
                "Primary fill failed, falling back",
                extra={"backend": self.primary.name, "fallback": self.fallback.name, "error": str(exc)},
            )
            try:
                self.fallback.fill(template, output, data)
            except BackendError as fallback_exc:
                raise FillError(
                    message=f"All PDF backends failed: {fallback_exc}",
                    template_path=str(template),
                ) from fallback_exc

        self.submission.touch_generated()
        logger.info(
            "PDF generated",
            extra={"code": self.submission.form_code, "submission_id": self.submission.id, "fields": len(data)},
        )
        return output

    def generate_flattened(self) -> Path:
        """Write the filled PDF, then a flattened copy when possible.

        Flattening failures are logged and the editable output is returned.

        Raises:
            FillError: If filling itself fails.

        Returns:
            Path: Flattened output path, or the editable one.
        """
        filled = self.generate()
        flatten = getattr(self.primary, "flatten", None)
        if flatten is None:
            return filled

        flattened = filled.with_name(f"{filled.stem}_flattened.pdf")
        try:
            return flatten(filled, flattened)
        except BackendError as exc:
            logger.warning("Flattening failed", extra={"backend": self.primary.name, "error": str(exc)})
            return filled


def fill(fields: Iterable[CanonicalFieldDefinition], submission: Submission, **options: Any) -> Path:  # noqa: ANN401
    """Fill the template of `submission` and return the editable PDF path.

    Keyword options are forwarded to `FormFiller`.
    """
    return FormFiller(fields, submission, **options).generate()


def fill_flattened(fields: Iterable[CanonicalFieldDefinition], submission: Submission, **options: Any) -> Path:  # noqa: ANN401
    """Fill and flatten; falls back to the editable path when flattening fails."""
    return FormFiller(fields, submission, **options).generate_flattened()


def describe_fill_failure(exc: BaseException) -> str:
    """Log a fill failure and return a short message safe to show to users.

    Args:
        exc (BaseException): Caught failure.

    Returns:
        str: Message truncated to 100 characters.
    """
    logger.error("PDF generation failed", extra=failure_details(exc))
    message = str(exc) or type(exc).__name__
    return message[:FAILURE_MESSAGE_LIMIT]
