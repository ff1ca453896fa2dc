from __future__ import annotations

from pathlib import Path

import pytest

from formschema.exceptions import BackendError, BackendUnavailableError, FillError
from formschema.filler import FormFiller, build_data, describe_fill_failure, fill, fill_flattened
from formschema.settings import Settings
from formschema.typing.enums import FieldType
from formschema.typing.models import CanonicalFieldDefinition, Submission


class _Backend:
    def __init__(self, name: str, error: BackendError | None = None, flatten_error: BackendError | None = None) -> None:
        self.name = name
        self.error = error
        self.flatten_error = flatten_error
        self.fills: list[dict[str, str]] = []

    def read_fields(self, pdf_path: Path) -> list:
        return []

    def fill(self, template_path: Path, output_path: Path, data: dict[str, str]) -> Path:
        _ = template_path
        if self.error is not None:
            raise self.error
        self.fills.append(dict(data))
        output_path.write_bytes(b"%PDF filled")
        return output_path

    def flatten(self, source_path: Path, output_path: Path) -> Path:
        if self.flatten_error is not None:
            raise self.flatten_error
        output_path.write_bytes(source_path.read_bytes())
        return output_path


def _field(
    name: str,
    field_type: FieldType = FieldType.TEXT,
    position: int = 1,
    *,
    pdf_field_name: str | None = None,
    **extra: object,
) -> CanonicalFieldDefinition:
    return CanonicalFieldDefinition(
        form_code="SC-100",
        name=name,
        pdf_field_name=pdf_field_name or name,
        field_type=field_type,
        position=position,
        **extra,
    )


def _submission(**data: object) -> Submission:
    return Submission(id="abc123", form_code="SC-100", data=data)


@pytest.fixture
def template(settings: Settings) -> Path:
    settings.templates_dir.mkdir(parents=True)
    path = settings.templates_dir / "sc100.pdf"
    path.write_bytes(b"%PDF-1.7")
    return path


def test_build_data_formats_and_skips_blanks() -> None:
    fields = [
        _field("name", pdf_field_name="form1[0].Name[0]"),
        _field("filed_on", FieldType.DATE, 2),
        _field("amount", FieldType.CURRENCY, 3),
        _field("agree", FieldType.CHECKBOX, 4),
        _field("other", FieldType.CHECKBOX, 5),
        _field("notes", FieldType.TEXTAREA, 6),
        _field("choices", FieldType.CHECKBOX_GROUP, 7, pdf_field_name="Choices[{index}]"),
    ]
    submission = _submission(
        name="Ada Lovelace",
        filed_on="2024-03-05",
        amount="$1,234.5",
        agree="on",
        notes="   ",
        choices=["a", "b"],
    )

    assert build_data(fields, submission) == {
        "form1[0].Name[0]": "Ada Lovelace",
        "filed_on": "03/05/2024",
        "amount": "1234.50",
        "agree": "Yes",
        "other": "Off",
        "Choices[0]": "a, b",
    }


def test_build_data_expands_index_placeholder() -> None:
    fields = [
        _field("child", pdf_field_name="Child[{index}].Name", repeating_group="children", max_repetitions=2),
        _field("court", position=2, pdf_field_name="Court[{index}]"),
    ]

    data = build_data(fields, _submission(child=["Ann", "", "Bob", "Cy"], court="Main"))

    assert data == {"Child[0].Name": "Ann", "Court[0]": "Main"}


def test_build_data_uncapped_repetitions() -> None:
    fields = [_field("child", pdf_field_name="Child[{index}]")]

    assert build_data(fields, _submission(child=["Ann", "Bob"])) == {"Child[0]": "Ann", "Child[1]": "Bob"}


def test_generate_uses_primary(settings: Settings, template: Path) -> None:
    primary = _Backend("pymupdf")
    fallback = _Backend("pdftk")
    submission = _submission(name="Ada")

    path = FormFiller([_field("name")], submission, settings=settings, primary=primary, fallback=fallback).generate()

    assert path == settings.output_dir / "SC-100_abc123.pdf"
    assert path.read_bytes() == b"%PDF filled"
    assert primary.fills == [{"name": "Ada"}]
    assert fallback.fills == []
    assert submission.pdf_generated_at is not None


def test_generate_falls_back_transparently(settings: Settings, template: Path) -> None:
    primary = _Backend("pymupdf", BackendError(message="encrypted", backend="pymupdf"))
    fallback = _Backend("pdftk")

    path = fill([_field("name")], _submission(name="Ada"), settings=settings, primary=primary, fallback=fallback)

    assert path.is_file()
    assert fallback.fills == [{"name": "Ada"}]


def test_generate_raises_when_both_backends_fail(settings: Settings, template: Path) -> None:
    primary = _Backend("pymupdf", BackendError(message="broken", backend="pymupdf"))
    fallback = _Backend("pdftk", BackendUnavailableError(message="pdftk not found", backend="pdftk"))
    submission = _submission(name="Ada")
    filler = FormFiller([_field("name")], submission, settings=settings, primary=primary, fallback=fallback)

    with pytest.raises(FillError, match="All PDF backends failed"):
        filler.generate()
    assert submission.pdf_generated_at is None


def test_generate_requires_template(settings: Settings) -> None:
    filler = FormFiller(
        [_field("name")],
        _submission(name="Ada"),
        settings=settings,
        primary=_Backend("pymupdf"),
        fallback=_Backend("pdftk"),
    )

    with pytest.raises(FillError, match="PDF template not found"):
        filler.generate()


def test_explicit_template_path(settings: Settings, tmp_path: Path) -> None:
    custom = tmp_path / "custom.pdf"
    custom.write_bytes(b"%PDF")
    filler = FormFiller(
        [],
        _submission(),
        template_path=custom,
        settings=settings,
        primary=_Backend("pymupdf"),
        fallback=_Backend("pdftk"),
    )

    assert filler.resolve_template() == custom


def test_generate_flattened(settings: Settings, template: Path) -> None:
    path = fill_flattened(
        [_field("name")],
        _submission(name="Ada"),
        settings=settings,
        primary=_Backend("pymupdf"),
        fallback=_Backend("pdftk"),
    )

    assert path == settings.output_dir / "SC-100_abc123_flattened.pdf"
    assert path.is_file()


def test_generate_flattened_degrades_to_editable_output(settings: Settings, template: Path) -> None:
    primary = _Backend("pymupdf", flatten_error=BackendUnavailableError(message="no bake", backend="pymupdf"))

    path = fill_flattened(
        [_field("name")],
        _submission(name="Ada"),
        settings=settings,
        primary=primary,
        fallback=_Backend("pdftk"),
    )

    assert path == settings.output_dir / "SC-100_abc123.pdf"


def test_describe_fill_failure_truncates() -> None:
    message = describe_fill_failure(FillError(message="x" * 300))

    assert message == "x" * 100


def test_describe_fill_failure_uses_type_name_for_empty_messages() -> None:
    assert describe_fill_failure(RuntimeError()) == "RuntimeError"


def test_generate_maps_names_and_formats_typed_values(settings: Settings, template: Path) -> None:
    _ = template
    primary = _Backend("pymupdf")
    fields = [
        _field("plaintiff_name", pdf_field_name="PlaintiffName"),
        _field("claim_amount", FieldType.CURRENCY, 2, pdf_field_name="ClaimAmount"),
        _field("demand_made", FieldType.CHECKBOX, 3, pdf_field_name="DemandMade"),
    ]
    submission = _submission(plaintiff_name="Jane Doe", claim_amount=500.5, demand_made=True)

    FormFiller(fields, submission, settings=settings, primary=primary, fallback=_Backend("pdftk")).generate()

    assert primary.fills == [{"PlaintiffName": "Jane Doe", "ClaimAmount": "500.50", "DemandMade": "Yes"}]
