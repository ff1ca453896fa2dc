from __future__ import annotations

import json
from pathlib import Path

import pytest

from formschema.exceptions import SchemaStoreError, SchemaValidationError
from formschema.repository import InMemoryFormRepository, JsonFormRepository
from formschema.schema_store import SchemaStore
from formschema.settings import Settings
from formschema.sync import SchemaSynchronizer, build_field_row, ordered_fields
from formschema.typing.enums import FieldType
from formschema.typing.models import FieldDefinition, FormMetadata, FormSchema, Section


def _schema(*field_names: str) -> FormSchema:
    names = field_names or ("plaintiff_name", "claim_amount", "signature")
    return FormSchema(
        form=FormMetadata(
            code="SC-100",
            title="Plaintiff's Claim",
            category="small_claims/general",
            pdf_filename="sc100.pdf",
        ),
        sections={
            "general": Section(
                title="General",
                page=1,
                fields=[FieldDefinition(name=name, label=name.title()) for name in names],
            ),
        },
    )


@pytest.fixture
def synchronizer(settings: Settings) -> SchemaSynchronizer:
    return SchemaSynchronizer(InMemoryFormRepository(), settings=settings, store=SchemaStore(root=settings.schemas_dir))


def test_ordered_fields_sorts_by_effective_page() -> None:
    schema = FormSchema(
        form=FormMetadata(code="SC-100", title="T", category="general", pdf_filename="sc100.pdf"),
        sections={
            "late": Section(title="Late", fields=[FieldDefinition(name="unpaged", label="U")]),
            "second": Section(title="Second", page=2, fields=[FieldDefinition(name="b", label="B")]),
            "first": Section(
                title="First",
                page=3,
                fields=[FieldDefinition(name="a", label="A", page=1), FieldDefinition(name="c", label="C")],
            ),
        },
    )

    assert [field.name for _, _, field in ordered_fields(schema)] == ["a", "b", "c", "unpaged"]


def test_build_field_row_defaults() -> None:
    section = Section(title="General")
    field = FieldDefinition(name="case_no", label="Case", type=FieldType.NUMBER, pattern=r"^\d+$")

    row = build_field_row("SC-100", "general", section, field, 1)

    assert row.pdf_field_name == "case_no"
    assert row.validation_pattern == r"^\d+$"
    assert row.page_number == 1
    assert row.field_type == FieldType.NUMBER


def test_sync_projects_form_and_fields(synchronizer: SchemaSynchronizer) -> None:
    form = synchronizer.sync(_schema())

    assert form.code == "SC-100"
    assert form.category == "general"
    rows = synchronizer.repository.list_fields("SC-100")
    assert [(row.name, row.position) for row in rows] == [
        ("plaintiff_name", 1),
        ("claim_amount", 2),
        ("signature", 3),
    ]
    assert all(row.section == "general" for row in rows)


def test_sync_is_idempotent(synchronizer: SchemaSynchronizer) -> None:
    first_form = synchronizer.sync(_schema())
    first_rows = synchronizer.repository.list_fields("SC-100")

    second_form = synchronizer.sync(_schema())
    second_rows = synchronizer.repository.list_fields("SC-100")

    assert second_form.updated_at == first_form.updated_at
    assert [row.updated_at for row in second_rows] == [row.updated_at for row in first_rows]
    assert [row.content() for row in second_rows] == [row.content() for row in first_rows]


def test_sync_deletes_stale_rows(synchronizer: SchemaSynchronizer) -> None:
    synchronizer.sync(_schema())

    synchronizer.sync(_schema("plaintiff_name", "court_name"))

    assert [row.name for row in synchronizer.repository.list_fields("SC-100")] == ["plaintiff_name", "court_name"]


def test_sync_keeps_unresolved_category_empty(synchronizer: SchemaSynchronizer) -> None:
    schema = _schema()
    schema.form.category = "space_law/orbit"

    assert synchronizer.sync(schema).category is None


def test_sync_file_rejects_invalid_documents(synchronizer: SchemaSynchronizer, settings: Settings) -> None:
    path = settings.schemas_dir / "sc100.schema.json"
    path.parent.mkdir(parents=True)
    path.write_text(json.dumps({"form": {"code": "SC-100"}, "sections": {}}), encoding="utf-8")

    with pytest.raises(SchemaValidationError) as exc_info:
        synchronizer.sync_file(path)

    assert "Missing required form key: title" in exc_info.value.errors
    assert synchronizer.repository.get_form("SC-100") is None


def test_sync_code_and_sync_all(synchronizer: SchemaSynchronizer, settings: Settings) -> None:
    synchronizer.store.save(_schema())
    broken = settings.schemas_dir / "sc104.schema.json"
    broken.write_text(json.dumps({"form": {"code": "SC-104"}, "sections": {}}), encoding="utf-8")

    assert synchronizer.sync_code("sc100").code == "SC-100"
    with pytest.raises(SchemaStoreError, match="Schema not found: SC-999"):
        synchronizer.sync_code("SC-999")

    outcome = synchronizer.sync_all()

    assert outcome["synced"] == ["SC-100"]
    assert len(outcome["failed"]) == 1
    assert str(Path(broken)) in outcome["failed"][0]


def test_sync_rejects_duplicate_field_names(synchronizer: SchemaSynchronizer) -> None:
    with pytest.raises(SchemaValidationError) as exc_info:
        synchronizer.sync(_schema("a", "a", "b"))

    assert "Duplicate field name: a" in exc_info.value.errors
    assert synchronizer.repository.get_form("SC-100") is None
    assert synchronizer.repository.list_fields("SC-100") == []


def test_sync_writes_json_store_once_per_schema(settings: Settings, mocker) -> None:
    repository = JsonFormRepository(settings.store_path)
    persist = mocker.spy(repository, "_persist")
    synchronizer = SchemaSynchronizer(repository, settings=settings, store=SchemaStore(root=settings.schemas_dir))

    synchronizer.sync(_schema())
    synchronizer.sync(_schema("plaintiff_name"))

    assert persist.call_count == 2
    reloaded = JsonFormRepository(settings.store_path)
    assert [(row.name, row.position) for row in reloaded.list_fields("SC-100")] == [("plaintiff_name", 1)]
