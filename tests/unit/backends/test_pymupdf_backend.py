from __future__ import annotations

from pathlib import Path

import pytest

from formschema.backends.pymupdf_backend import PyMuPDFBackend
from formschema.exceptions import BackendError, BackendUnavailableError
from formschema.typing.enums import ControlKind


class _Rect:
    def __init__(self, x0: float, y0: float, x1: float, y1: float) -> None:
        self.coords = (x0, y0, x1, y1)
        self.height = y1 - y0

    def __iter__(self):
        return iter(self.coords)


class _Widget:
    def __init__(
        self,
        name: str,
        field_type: int,
        rect: tuple[float, float, float, float] = (0, 0, 10, 10),
        *,
        value: object = "",
        on_state: str | None = None,
        choices: list | None = None,
    ) -> None:
        self.field_name = name
        self.field_type = field_type
        self.rect = _Rect(*rect)
        self.field_value = value
        self._on_state = on_state
        self.choice_values = choices
        self.updated = False

    def on_state(self):
        return self._on_state

    def update(self) -> None:
        self.updated = True


class _Page:
    def __init__(self, widgets: list[_Widget], height: float = 792) -> None:
        self._widgets = widgets
        self.rect = _Rect(0, 0, 612, height)

    def widgets(self):
        return iter(self._widgets)


class _Doc:
    def __init__(self, pages: list[_Page], *, needs_pass: bool = False, bake: bool = True) -> None:
        self.pages = pages
        self.needs_pass = needs_pass
        self.saved: list[str] = []
        self.closed = False
        self.baked = False
        if not bake:
            self.bake = None

    def __iter__(self):
        return iter(self.pages)

    def save(self, path: str) -> None:
        self.saved.append(path)

    def close(self) -> None:
        self.closed = True

    def bake(self, annots: bool = True, widgets: bool = True) -> None:  # noqa: FBT001, FBT002
        _ = (annots, widgets)
        self.baked = True


class _FakeFitz:
    def __init__(self, doc: _Doc | Exception) -> None:
        self.doc = doc

    def open(self, path: str) -> _Doc:
        _ = path
        if isinstance(self.doc, Exception):
            raise self.doc
        return self.doc


def _install(monkeypatch, doc: _Doc | Exception) -> None:
    monkeypatch.setattr("formschema.backends.pymupdf_backend.fitz", _FakeFitz(doc))


def test_read_fields_converts_geometry_and_kinds(monkeypatch, tmp_path: Path) -> None:
    doc = _Doc(
        [
            _Page(
                [
                    _Widget("Name", 7, (72, 100, 300, 120), value="Jane"),
                    _Widget("Agree", 2, on_state="Yes"),
                    _Widget("County", 3, choices=[("ALA", "Alameda"), "Fresno"]),
                ],
            ),
            _Page([_Widget("Notes", 7, (50, 50, 500, 200))]),
        ],
    )
    _install(monkeypatch, doc)

    fields = PyMuPDFBackend().read_fields(tmp_path / "in.pdf")

    by_name = {field.name: field for field in fields}
    assert by_name["Name"].rect == (72.0, 672.0, 300.0, 692.0)
    assert by_name["Name"].value == "Jane"
    assert by_name["Name"].top == 692.0
    assert by_name["Agree"].kind == ControlKind.BUTTON
    assert by_name["Agree"].options == ["Off", "Yes"]
    assert by_name["County"].kind == ControlKind.CHOICE
    assert by_name["County"].options == ["ALA", "Fresno"]
    assert by_name["Notes"].page == 2
    assert doc.closed


def test_read_fields_merges_radio_kids(monkeypatch, tmp_path: Path) -> None:
    doc = _Doc(
        [
            _Page(
                [
                    _Widget("Plan", 5, on_state="Basic"),
                    _Widget("Plan", 5, on_state="Premium"),
                ],
            ),
        ],
    )
    _install(monkeypatch, doc)

    fields = PyMuPDFBackend().read_fields(tmp_path / "in.pdf")

    assert len(fields) == 1
    assert fields[0].options == ["Off", "Basic", "Premium"]


def test_read_fields_rejects_encrypted_documents(monkeypatch, tmp_path: Path) -> None:
    doc = _Doc([], needs_pass=True)
    _install(monkeypatch, doc)

    with pytest.raises(BackendError, match="Encrypted"):
        PyMuPDFBackend().read_fields(tmp_path / "in.pdf")
    assert doc.closed


def test_open_failure_is_a_backend_error(monkeypatch, tmp_path: Path) -> None:
    _install(monkeypatch, RuntimeError("cannot open broken document"))

    with pytest.raises(BackendError, match="Failed to open"):
        PyMuPDFBackend().read_fields(tmp_path / "in.pdf")


def test_missing_library_is_unavailable(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("formschema.backends.pymupdf_backend.fitz", None)

    assert not PyMuPDFBackend.available()
    with pytest.raises(BackendUnavailableError):
        PyMuPDFBackend().read_fields(tmp_path / "in.pdf")


def test_fill_sets_widget_values(monkeypatch, tmp_path: Path) -> None:
    text = _Widget("Name", 7)
    checkbox = _Widget("Agree", 2, on_state="Yes")
    radio_a = _Widget("Plan", 5, on_state="Basic")
    radio_b = _Widget("Plan", 5, on_state="Premium")
    button = _Widget("Print", 1)
    doc = _Doc([_Page([text, checkbox, radio_a, radio_b, button])])
    _install(monkeypatch, doc)
    output = tmp_path / "out.pdf"

    result = PyMuPDFBackend().fill(
        tmp_path / "in.pdf",
        output,
        {"Name": "Jane", "Agree": "Yes", "Plan": "Premium", "Print": "x"},
    )

    assert result == output
    assert text.field_value == "Jane"
    assert checkbox.field_value is True
    assert radio_a.field_value is False
    assert radio_b.field_value is True
    assert not button.updated
    assert doc.saved == [str(output)]


def test_fill_unchecks_off_checkbox(monkeypatch, tmp_path: Path) -> None:
    checkbox = _Widget("Agree", 2, value=True, on_state="Yes")
    _install(monkeypatch, _Doc([_Page([checkbox])]))

    PyMuPDFBackend().fill(tmp_path / "in.pdf", tmp_path / "out.pdf", {"Agree": "Off"})

    assert checkbox.field_value is False


def test_flatten_bakes_widgets(monkeypatch, tmp_path: Path) -> None:
    doc = _Doc([])
    _install(monkeypatch, doc)

    result = PyMuPDFBackend().flatten(tmp_path / "in.pdf", tmp_path / "flat.pdf")

    assert result == tmp_path / "flat.pdf"
    assert doc.baked
    assert doc.saved == [str(tmp_path / "flat.pdf")]


def test_flatten_without_bake_support_is_unavailable(monkeypatch, tmp_path: Path) -> None:
    _install(monkeypatch, _Doc([], bake=False))

    with pytest.raises(BackendUnavailableError):
        PyMuPDFBackend().flatten(tmp_path / "in.pdf", tmp_path / "flat.pdf")
