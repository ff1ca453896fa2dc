"""Fallback PDF backend driving the pdftk executable."""

from __future__ import annotations

import re
import tempfile
from pathlib import Path
from subprocess import CalledProcessError, CompletedProcess, TimeoutExpired  # noqa: S404
from subprocess import run as subprocess_run  # noqa: S404
from typing import TYPE_CHECKING, Protocol

from formschema.backends.pdftk_resolver import PdftkResolver
from formschema.classifier import button_on_states
from formschema.exceptions import BackendError, BackendUnavailableError
from formschema.logging import get_logger
from formschema.processing.formatting import CHECKED, UNCHECKED, is_truthy
from formschema.typing.enums import ControlKind
from formschema.typing.models import FieldDescriptor

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = get_logger(__name__)

_PAGE_PATTERNS = (
    re.compile(r"page\s*(\d+)", re.IGNORECASE),
    re.compile(r"p(\d+)\[", re.IGNORECASE),
)
_KIND_BY_FIELD_TYPE = {
    "button": ControlKind.BUTTON,
    "choice": ControlKind.CHOICE,
    "text": ControlKind.TEXT,
}
_BLOCK_SEPARATOR = "---"


class CommandRunner(Protocol):
    """Callable compatible with `subprocess.run` for the arguments used here."""

    def __call__(
        self,
        args: Sequence[str],
        *,
        capture_output: bool,
        text: bool,
        check: bool,
        timeout: float | None,
    ) -> CompletedProcess[str]:
        """Run a command and return its completed process."""


def infer_page(name: str) -> int:
    """Infer a 1-based page number from a hierarchical field name.

    Args:
        name (str): Raw PDF field name.

    Returns:
        int: Page number, 1 when the name carries no page marker.
    """
    for pattern in _PAGE_PATTERNS:
        match = pattern.search(name)
        if match:
            return max(int(match.group(1)), 1)
    return 1


def parse_field_dump(output: str) -> list[FieldDescriptor]:
    """Parse `pdftk dump_data_fields_utf8` output into descriptors.

    Args:
        output (str): Raw command output.

    Returns:
        list[FieldDescriptor]: Descriptors without geometry, in dump order.
    """
    descriptors: list[FieldDescriptor] = []
    block: dict[str, list[str]] = {}

    def flush() -> None:
        names = block.get("FieldName")
        if names and names[0]:
            name = names[0]
            kind = _KIND_BY_FIELD_TYPE.get((block.get("FieldType") or ["text"])[0].lower(), ControlKind.TEXT)
            values = block.get("FieldValue") or [""]
            descriptors.append(
                FieldDescriptor(
                    name=name,
                    kind=kind,
                    options=list(block.get("FieldStateOption", [])),
                    value=values[0] or None,
                    page=infer_page(name),
                ),
            )
        block.clear()

    for line in output.splitlines():
        if line.strip() == _BLOCK_SEPARATOR:
            flush()
            continue
        key, sep, value = line.partition(":")
        if not sep:
            continue
        block.setdefault(key.strip(), []).append(value.strip())
    flush()
    return descriptors


def _escape_fdf_string(value: str) -> str:
    """Encode a value as an FDF string literal body."""
    if value.isascii():
        escaped = value.replace("\\", "\\\\").replace("(", "\\(").replace(")", "\\)")
        return f"({escaped})"
    # Non-ASCII text goes through UTF-16BE with a byte order mark.
    return f"<FEFF{value.encode('utf-16-be').hex().upper()}>"


def build_fdf(data: Mapping[str, str]) -> str:
    """Render an FDF document carrying `data` as field values.

    Args:
        data (Mapping[str, str]): Values keyed by full field name.

    Returns:
        str: FDF document text.
    """
    entries = "\n".join(f"<< /T {_escape_fdf_string(name)} /V {_escape_fdf_string(value)} >>" for name, value in data.items())
    return (
        "%FDF-1.2\n"
        "1 0 obj\n"
        "<< /FDF << /Fields [\n"
        f"{entries}\n"
        "] >> >>\n"
        "endobj\n"
        "trailer\n"
        "<< /Root 1 0 R >>\n"
        "%%EOF\n"
    )


def button_value(value: str, options: Sequence[str]) -> str:
    """Return the appearance state to set on a button field.

    Args:
        value (str): Formatted submission value.
        options (Sequence[str]): Button state options reported by pdftk.

    Returns:
        str: Matching on-state when truthy, otherwise `Off`.
    """
    on_states = button_on_states(options)
    if value in on_states:
        return value
    if not is_truthy(value):
        return UNCHECKED
    return on_states[0] if on_states else CHECKED


class PdftkBackend:
    """Read and fill forms through pdftk, without widget geometry."""

    name = "pdftk"

    def __init__(
        self,
        resolver: PdftkResolver | None = None,
        *,
        runner: CommandRunner | None = None,
        timeout: float | None = None,
    ) -> None:
        """Initialize the backend.

        Args:
            resolver (PdftkResolver | None): Shared executable resolver.
            runner (CommandRunner | None): Replacement for `subprocess.run`.
            timeout (float | None): Per-invocation timeout in seconds.
        """
        self.resolver = resolver or PdftkResolver()
        self._runner: CommandRunner = runner or subprocess_run
        self.timeout = timeout

    def _run(self, *args: str) -> str:
        command = [self.resolver.path, *args]
        try:
            completed = self._runner(command, capture_output=True, text=True, check=True, timeout=self.timeout)
        except FileNotFoundError as exc:
            raise BackendUnavailableError(message=f"pdftk executable not found: {command[0]}", backend=self.name) from exc
        except CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
            raise BackendError(message=f"pdftk failed: {detail}", backend=self.name) from exc
        except (TimeoutExpired, OSError) as exc:
            raise BackendError(message=f"pdftk invocation failed: {exc}", backend=self.name) from exc
        return completed.stdout or ""

    def read_fields(self, pdf_path: Path) -> list[FieldDescriptor]:
        """Dump form fields with `dump_data_fields_utf8`.

        Raises:
            BackendError: If pdftk fails.

        Returns:
            list[FieldDescriptor]: Descriptors with inferred pages and no rect.
        """
        descriptors = parse_field_dump(self._run(str(pdf_path), "dump_data_fields_utf8"))
        logger.debug(
            "Fields dumped",
            extra={"backend": self.name, "fields": len(descriptors), "input_path": str(pdf_path)},
        )
        return descriptors

    def fill(self, template_path: Path, output_path: Path, data: Mapping[str, str]) -> Path:
        """Fill the template via an FDF file.

        Buttons receive their on-state or `Off`; choice and text fields receive
        the formatted string. Names absent from the template are ignored.

        Args:
            template_path (Path): Blank template.
            output_path (Path): Destination path.
            data (Mapping[str, str]): Formatted values keyed by full field name.

        Raises:
            BackendError: If pdftk fails to read or fill the template.

        Returns:
            Path: The written output path.
        """
        values: dict[str, str] = {}
        for descriptor in self.read_fields(template_path):
            if descriptor.name not in data:
                continue
            value = data[descriptor.name]
            if descriptor.kind == ControlKind.BUTTON:
                values[descriptor.name] = button_value(value, descriptor.options)
            else:
                values[descriptor.name] = str(value)

        with tempfile.TemporaryDirectory(prefix="formschema-fdf-") as workdir:
            fdf_path = Path(workdir) / "data.fdf"
            fdf_path.write_text(build_fdf(values), encoding="latin-1")
            self._run(str(template_path), "fill_form", str(fdf_path), "output", str(output_path))

        logger.debug("Form filled", extra={"backend": self.name, "fields": len(values), "output_path": str(output_path)})
        return output_path
