"""PDF form backends."""

from formschema.backends.pdftk_backend import PdftkBackend
from formschema.backends.pdftk_resolver import PdftkResolver
from formschema.backends.pymupdf_backend import PyMuPDFBackend
from formschema.typing.protocol import FallbackBackend, PdfBackend, PrimaryBackend

__all__ = [
    "FallbackBackend",
    "PdfBackend",
    "PdftkBackend",
    "PdftkResolver",
    "PrimaryBackend",
    "PyMuPDFBackend",
]
