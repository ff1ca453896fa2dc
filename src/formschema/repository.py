"""Form and field record repositories."""

from __future__ import annotations

import json
import os
import re
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from formschema.codes import CATEGORY_BY_PREFIX, DEFAULT_CATEGORY
from formschema.exceptions import SchemaStoreError
from formschema.logging import get_logger
from formschema.typing.models import CanonicalFieldDefinition, Category, FormRecord, utcnow

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = get_logger(__name__)

_STORE_FILE_VERSION = 1

RecordT = TypeVar("RecordT", FormRecord, CanonicalFieldDefinition)


def default_categories() -> list[Category]:
    """Build the reference category set from the prefix category map.

    Every path segment of a mapped category becomes a slug, with underscores
    turned into hyphens (`small_claims/general -> small-claims, general`).

    Returns:
        list[Category]: Categories sorted by slug.
    """
    slugs = {DEFAULT_CATEGORY}
    for path in CATEGORY_BY_PREFIX.values():
        slugs.update(segment.replace("_", "-") for segment in path.split("/") if segment)
    return [Category(slug=slug, name=slug.replace("-", " ").title()) for slug in sorted(slugs)]


def _compact(text: str) -> str:
    return re.sub(r"[_\-]", "", text).lower()


def resolve_category(categories: Iterable[Category], value: str | None) -> Category | None:
    """Resolve a schema category string against reference categories.

    Tried in order: exact slug, trailing path segment with `_` as `-`, then the
    trailing segment compared without `_`/`-` and case-insensitively.

    Args:
        categories (Iterable[Category]): Reference categories.
        value (str | None): Schema category, e.g. `small_claims/general`.

    Returns:
        Category | None: Matching category, None when unresolved.
    """
    if not value or not str(value).strip():
        return None
    by_slug = {category.slug: category for category in categories}
    if value in by_slug:
        return by_slug[value]

    tail = str(value).rstrip("/").split("/")[-1]
    hyphenated = tail.replace("_", "-")
    if hyphenated in by_slug:
        return by_slug[hyphenated]

    compact = _compact(tail)
    for slug, category in by_slug.items():
        if _compact(slug) == compact:
            return category
    return None


def _stamp(record: RecordT, existing: RecordT | None) -> RecordT:
    """Carry timestamps over, moving `updated_at` only when content changed."""
    now = utcnow()
    if existing is None:
        return record.model_copy(update={"created_at": now, "updated_at": now})
    if existing.content() == record.content():
        return record.model_copy(update={"created_at": existing.created_at, "updated_at": existing.updated_at})
    return record.model_copy(update={"created_at": existing.created_at, "updated_at": now})


class InMemoryFormRepository:
    """Process-local repository of forms and field rows."""

    def __init__(self, categories: list[Category] | None = None) -> None:
        """Initialize the repository.

        Args:
            categories (list[Category] | None): Reference categories; defaults to
                the prefix-derived set.
        """
        self._categories: dict[str, Category] = {
            category.slug: category for category in (categories if categories is not None else default_categories())
        }
        self._forms: dict[str, FormRecord] = {}
        self._fields: dict[tuple[str, str], CanonicalFieldDefinition] = {}
        self._batch_depth = 0
        self._dirty = False

    def categories(self) -> list[Category]:
        """Return the reference category set."""
        return list(self._categories.values())

    def find_category(self, slug: str) -> Category | None:
        """Return the category with an exact slug."""
        return self._categories.get(slug)

    def add_category(self, category: Category) -> Category:
        """Register a reference category."""
        self._categories[category.slug] = category
        self._changed()
        return category

    def forms(self) -> list[FormRecord]:
        """Return every form sorted by code."""
        return [self._forms[code] for code in sorted(self._forms)]

    def get_form(self, code: str) -> FormRecord | None:
        """Return a form by code."""
        return self._forms.get(code)

    def upsert_form(self, record: FormRecord) -> FormRecord:
        """Create or update a form keyed by code.

        Returns:
            FormRecord: Stored record with timestamps.
        """
        stored = _stamp(record, self._forms.get(record.code))
        self._forms[record.code] = stored
        self._changed()
        return stored

    def list_fields(self, form_code: str) -> list[CanonicalFieldDefinition]:
        """Return the form's field rows ordered by position."""
        rows = [row for (code, _), row in self._fields.items() if code == form_code]
        return sorted(rows, key=lambda row: row.position)

    def upsert_field(self, field: CanonicalFieldDefinition) -> CanonicalFieldDefinition:
        """Create or update a field row keyed by (form code, name).

        Returns:
            CanonicalFieldDefinition: Stored row with timestamps.
        """
        key = (field.form_code, field.name)
        stored = _stamp(field, self._fields.get(key))
        self._fields[key] = stored
        self._changed()
        return stored

    def delete_fields_except(self, form_code: str, keep: Iterable[str]) -> list[str]:
        """Delete the form's rows whose name is not in `keep`.

        Returns:
            list[str]: Deleted field names.
        """
        kept = set(keep)
        stale = [name for (code, name) in self._fields if code == form_code and name not in kept]
        for name in stale:
            del self._fields[(form_code, name)]
        if stale:
            self._changed()
        return stale

    @contextmanager
    def batch(self) -> Iterator[None]:
        """Group mutations so they are persisted once, when the outermost batch exits."""
        self._batch_depth += 1
        try:
            yield
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0 and self._dirty:
                self._dirty = False
                self._persist()

    def _changed(self) -> None:
        """Persist after a mutation, or defer while a batch is open."""
        if self._batch_depth:
            self._dirty = True
            return
        self._persist()

    def _persist(self) -> None:
        """Hook writing the current state to durable storage."""


class _StoreDocument(BaseModel):
    """On-disk layout of the JSON repository."""

    model_config = ConfigDict(extra="forbid")

    store_file_version: int = _STORE_FILE_VERSION
    categories: list[Category] = Field(default_factory=list)
    forms: list[FormRecord] = Field(default_factory=list)
    fields: list[CanonicalFieldDefinition] = Field(default_factory=list)


class JsonFormRepository(InMemoryFormRepository):
    """Repository persisted as one JSON document, rewritten after each change or batch."""

    def __init__(self, path: Path, categories: list[Category] | None = None) -> None:
        """Initialize the repository, loading `path` when it exists.

        Args:
            path (Path): Store file.
            categories (list[Category] | None): Reference categories used when
                the store file carries none.

        Raises:
            SchemaStoreError: If the store file cannot be parsed.
        """
        super().__init__(categories)
        self.path = Path(path)
        if self.path.is_file():
            self._load()

    def _load(self) -> None:
        try:
            payload: Any = json.loads(self.path.read_text(encoding="utf-8"))
            document = _StoreDocument.model_validate(payload)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise SchemaStoreError(message=f"Failed to read repository store {self.path}: {exc}") from exc

        if document.categories:
            self._categories = {category.slug: category for category in document.categories}
        self._forms = {form.code: form for form in document.forms}
        self._fields = {(row.form_code, row.name): row for row in document.fields}
        logger.debug(
            "Repository loaded",
            extra={"store_path": str(self.path), "forms": len(self._forms), "fields": len(self._fields)},
        )

    def _persist(self) -> None:
        document = _StoreDocument(
            categories=self.categories(),
            forms=self.forms(),
            fields=sorted(self._fields.values(), key=lambda row: (row.form_code, row.position)),
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # Written to a sibling temp file, then renamed over the store.
        fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", suffix=".tmp", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(document.model_dump_json(indent=2))
            Path(tmp_name).replace(self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug("Repository persisted", extra={"store_path": str(self.path), "fields": len(self._fields)})
