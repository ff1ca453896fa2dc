"""Primary PDF backend built on PyMuPDF widgets."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

try:
    import fitz
except Exception:  # pragma: no cover - optional dependency at runtime
    fitz: Any
    fitz = None

from formschema.classifier import button_on_states
from formschema.exceptions import BackendError, BackendUnavailableError
from formschema.logging import get_logger
from formschema.processing.formatting import UNCHECKED
from formschema.typing.enums import ControlKind
from formschema.typing.models import FieldDescriptor

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = get_logger(__name__)

# PyMuPDF `PDF_WIDGET_TYPE_*` values.
_PUSHBUTTON = 1
_CHECKBOX = 2
_COMBOBOX = 3
_LISTBOX = 4
_RADIOBUTTON = 5

_KIND_BY_WIDGET_TYPE = {
    _PUSHBUTTON: ControlKind.BUTTON,
    _CHECKBOX: ControlKind.BUTTON,
    _RADIOBUTTON: ControlKind.BUTTON,
    _COMBOBOX: ControlKind.CHOICE,
    _LISTBOX: ControlKind.CHOICE,
}


def _control_kind(widget_type: int) -> ControlKind:
    return _KIND_BY_WIDGET_TYPE.get(widget_type, ControlKind.TEXT)


def _choice_options(widget: Any) -> list[str]:  # noqa: ANN401
    options: list[str] = []
    for choice in getattr(widget, "choice_values", None) or []:
        # Entries are either plain strings or (export value, display text) pairs.
        value = choice[0] if isinstance(choice, (list, tuple)) else choice
        options.append(str(value))
    return options


def _on_state(widget: Any) -> str | None:  # noqa: ANN401
    state = widget.on_state() if hasattr(widget, "on_state") else None
    return state if isinstance(state, str) and state else None


def _field_value(widget: Any) -> str | None:  # noqa: ANN401
    value = getattr(widget, "field_value", None)
    if value is None or value is False or value == "":
        return None
    return str(value)


def _bottom_left_rect(widget: Any, page_height: float) -> tuple[float, float, float, float] | None:  # noqa: ANN401
    rect = getattr(widget, "rect", None)
    if rect is None:
        return None
    x0, y0, x1, y1 = (float(coord) for coord in tuple(rect)[:4])
    return (x0, page_height - y1, x1, page_height - y0)


class PyMuPDFBackend:
    """Read, fill and flatten AcroForm widgets through PyMuPDF.

    Widget rectangles are converted from PyMuPDF's top-left origin to PDF user
    space so callers can sort on `(x1, y1, x2, y2)` with y growing upward.
    """

    name = "pymupdf"

    @staticmethod
    def available() -> bool:
        """Return whether PyMuPDF is importable."""
        return fitz is not None

    def _open(self, pdf_path: Path) -> Any:  # noqa: ANN401
        if fitz is None:
            raise BackendUnavailableError(message="PyMuPDF is required for the primary backend", backend=self.name)
        try:
            doc = fitz.open(str(pdf_path))
        except Exception as exc:
            raise BackendError(message=f"Failed to open PDF: {pdf_path}", backend=self.name) from exc
        if getattr(doc, "needs_pass", False):
            doc.close()
            raise BackendError(message=f"Encrypted PDF is not supported: {pdf_path}", backend=self.name)
        return doc

    def read_fields(self, pdf_path: Path) -> list[FieldDescriptor]:
        """Read widgets page by page.

        Radio kids sharing one field name are merged into a single descriptor
        whose options list every on-state.

        Args:
            pdf_path (Path): Source PDF path.

        Raises:
            BackendError: If the document cannot be opened or inspected.

        Returns:
            list[FieldDescriptor]: One descriptor per field name, in page order.
        """
        doc = self._open(pdf_path)
        by_name: dict[str, FieldDescriptor] = {}
        try:
            for page_index, page in enumerate(doc):
                height = float(page.rect.height)
                for widget in page.widgets() or []:
                    name = getattr(widget, "field_name", None)
                    if not name:
                        continue
                    widget_type = int(getattr(widget, "field_type", 0) or 0)
                    kind = _control_kind(widget_type)
                    on_state = _on_state(widget) if kind == ControlKind.BUTTON else None

                    existing = by_name.get(name)
                    if existing is not None:
                        if on_state and on_state not in existing.options:
                            existing.options.append(on_state)
                        continue

                    options = _choice_options(widget) if kind == ControlKind.CHOICE else []
                    if widget_type in {_CHECKBOX, _RADIOBUTTON}:
                        options = [UNCHECKED, on_state] if on_state else [UNCHECKED]
                    by_name[name] = FieldDescriptor(
                        name=name,
                        kind=kind,
                        options=options,
                        value=_field_value(widget),
                        page=page_index + 1,
                        rect=_bottom_left_rect(widget, height),
                    )
        except BackendError:
            raise
        except Exception as exc:
            raise BackendError(message=f"Failed to read widgets: {pdf_path}", backend=self.name) from exc
        finally:
            doc.close()

        logger.debug("Widgets read", extra={"backend": self.name, "fields": len(by_name), "input_path": str(pdf_path)})
        return list(by_name.values())

    def fill(self, template_path: Path, output_path: Path, data: Mapping[str, str]) -> Path:
        """Set widget values and save an unflattened copy.

        Args:
            template_path (Path): Blank template.
            output_path (Path): Destination path.
            data (Mapping[str, str]): Formatted values keyed by full field name.

        Raises:
            BackendError: If the template cannot be opened, filled or saved.

        Returns:
            Path: The written output path.
        """
        doc = self._open(template_path)
        filled = 0
        try:
            for page in doc:
                for widget in page.widgets() or []:
                    name = getattr(widget, "field_name", None)
                    if name not in data:
                        continue
                    if self._apply(widget, data[name]):
                        widget.update()
                        filled += 1
            doc.save(str(output_path))
        except Exception as exc:
            raise BackendError(message=f"Failed to fill PDF: {template_path}", backend=self.name) from exc
        finally:
            doc.close()

        logger.debug("Widgets filled", extra={"backend": self.name, "widgets": filled, "output_path": str(output_path)})
        return output_path

    def flatten(self, source_path: Path, output_path: Path) -> Path:
        """Bake widgets into page content and save a non-editable copy.

        Raises:
            BackendUnavailableError: If the installed PyMuPDF cannot bake widgets.
            BackendError: If flattening fails.

        Returns:
            Path: The written output path.
        """
        doc = self._open(source_path)
        try:
            bake = getattr(doc, "bake", None)
            if bake is None:
                raise BackendUnavailableError(message="PyMuPDF build lacks Document.bake", backend=self.name)
            bake(annots=True, widgets=True)
            doc.save(str(output_path))
        except BackendError:
            raise
        except Exception as exc:
            raise BackendError(message=f"Failed to flatten PDF: {source_path}", backend=self.name) from exc
        finally:
            doc.close()
        return output_path

    @staticmethod
    def _apply(widget: Any, value: str) -> bool:  # noqa: ANN401
        """Assign a formatted value to one widget; return False when skipped."""
        widget_type = int(getattr(widget, "field_type", 0) or 0)
        if widget_type == _PUSHBUTTON:
            return False
        if widget_type == _CHECKBOX:
            widget.field_value = value != UNCHECKED
            return True
        if widget_type == _RADIOBUTTON:
            on_states = button_on_states([_on_state(widget) or ""])
            widget.field_value = bool(on_states) and on_states[0] == value
            return True
        widget.field_value = value
        return True
