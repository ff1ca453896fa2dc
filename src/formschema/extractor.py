"""Field extraction across the primary and fallback backends."""

from __future__ import annotations

import json
from pathlib import Path
from typing import TYPE_CHECKING

from formschema.backends.pdftk_backend import PdftkBackend
from formschema.backends.pdftk_resolver import PdftkResolver
from formschema.backends.pymupdf_backend import PyMuPDFBackend
from formschema.logging import get_logger

if TYPE_CHECKING:
    from formschema.settings import Settings
    from formschema.typing.models import FieldDescriptor
    from formschema.typing.protocol import FallbackBackend, PdfBackend

logger = get_logger(__name__)


def _sort_key(indexed: tuple[int, FieldDescriptor]) -> tuple[int, int, float, float, int]:
    """Order by page, then top-to-bottom, then left-to-right.

    Descriptors without geometry keep their backend order after the placed ones.
    """
    index, descriptor = indexed
    if descriptor.rect is None:
        return (descriptor.page, 1, 0.0, 0.0, index)
    return (descriptor.page, 0, -(descriptor.top or 0.0), descriptor.left or 0.0, index)


def sort_descriptors(descriptors: list[FieldDescriptor]) -> list[FieldDescriptor]:
    """Return descriptors in reading order.

    Args:
        descriptors (list[FieldDescriptor]): Backend output.

    Returns:
        list[FieldDescriptor]: Sorted by page asc, top desc, left asc.
    """
    return [descriptor for _, descriptor in sorted(enumerate(descriptors), key=_sort_key)]


class FieldExtractor:
    """Read form fields with a primary backend and a geometry-less fallback."""

    def __init__(self, primary: PdfBackend | None = None, fallback: FallbackBackend | None = None) -> None:
        """Initialize the extractor.

        Args:
            primary (PdfBackend | None): Backend tried first.
            fallback (FallbackBackend | None): Backend used when the primary yields nothing.
        """
        self.primary = primary or PyMuPDFBackend()
        self.fallback = fallback or PdftkBackend()

    @classmethod
    def from_settings(cls, settings: Settings, resolver: PdftkResolver | None = None) -> FieldExtractor:
        """Build an extractor wired to runtime settings.

        Args:
            settings (Settings): Runtime settings.
            resolver (PdftkResolver | None): Shared pdftk resolver.

        Returns:
            FieldExtractor: Configured extractor.
        """
        resolver = resolver or PdftkResolver(settings.pdftk_path)
        return cls(
            primary=PyMuPDFBackend(),
            fallback=PdftkBackend(resolver, timeout=settings.backend_timeout),
        )

    def _read(self, backend: PdfBackend, pdf_path: Path) -> list[FieldDescriptor]:
        try:
            return backend.read_fields(pdf_path)
        except Exception as exc:  # noqa: BLE001
            logger.warning(
                "Field extraction failed",
                extra={"backend": backend.name, "input_path": str(pdf_path), "error": str(exc)},
            )
            return []

    def extract(self, pdf_path: Path) -> list[FieldDescriptor]:
        """Extract field descriptors from a PDF.

        Failures are logged and never raised; an empty list means the document
        exposes no fillable fields.

        Args:
            pdf_path (Path): Source PDF.

        Returns:
            list[FieldDescriptor]: Descriptors in reading order.
        """
        pdf_path = Path(pdf_path)
        if not pdf_path.is_file():
            logger.warning("PDF not found", extra={"input_path": str(pdf_path)})
            return []

        descriptors = self._read(self.primary, pdf_path)
        backend = self.primary.name
        if not descriptors:
            descriptors = self._read(self.fallback, pdf_path)
            backend = self.fallback.name

        logger.info(
            "Fields extracted",
            extra={"input_path": str(pdf_path), "backend": backend, "fields": len(descriptors)},
        )
        return sort_descriptors(descriptors)


def extract(pdf_path: Path, extractor: FieldExtractor | None = None) -> list[FieldDescriptor]:
    """Extract field descriptors with a default extractor.

    Args:
        pdf_path (Path): Source PDF.
        extractor (FieldExtractor | None): Extractor override.

    Returns:
        list[FieldDescriptor]: Descriptors in reading order.
    """
    return (extractor or FieldExtractor()).extract(pdf_path)


def descriptors_to_json(descriptors: list[FieldDescriptor]) -> str:
    """Serialize descriptors for the CLI.

    Args:
        descriptors (list[FieldDescriptor]): Extracted descriptors.

    Returns:
        str: Indented JSON array.
    """
    return json.dumps([descriptor.model_dump(mode="json") for descriptor in descriptors], indent=2)
