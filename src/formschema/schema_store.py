"""Filesystem storage of schema documents."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, cast

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from formschema import codes
from formschema.exceptions import SchemaStoreError
from formschema.logging import get_logger
from formschema.typing.models import FormSchema

logger = get_logger(__name__)

_SCHEMA_FILE_VERSION = 1
_SCHEMA_SUFFIX = ".schema.json"
_SHARED_DIR = "_shared"


class SchemaStore(BaseModel):
    """Schema documents laid out as `<root>/<category path>/<code>.schema.json`."""

    model_config = ConfigDict(extra="forbid", arbitrary_types_allowed=True)

    root: Path = Field(description="Schema corpus root.")

    def schema_path(self, code: str, category: str | None = None) -> Path:
        """Build the canonical path of a schema document.

        Args:
            code (str): Form code.
            category (str | None): Category path; defaults to the code-derived one.

        Returns:
            Path: Target file path.
        """
        category_path = (category or codes.infer_category(code)).strip("/")
        return self.root / category_path / f"{codes.to_filename(code)}{_SCHEMA_SUFFIX}"

    def list_files(self) -> list[Path]:
        """List schema documents, excluding shared fragments.

        Returns:
            list[Path]: Sorted schema file paths.
        """
        if not self.root.is_dir():
            return []
        return sorted(path for path in self.root.rglob(f"*{_SCHEMA_SUFFIX}") if not _is_shared(path, self.root))

    def find(self, code: str) -> Path | None:
        """Locate the document of a form code.

        The flat location `<root>/<code>.schema.json` wins over nested ones.

        Args:
            code (str): Form code, any spelling.

        Returns:
            Path | None: Document path, or None when absent.
        """
        raw = str(code).strip().lower()
        for variant in dict.fromkeys((raw, raw.replace("-", ""), codes.to_filename(code))):
            if not variant:
                continue
            filename = f"{variant}{_SCHEMA_SUFFIX}"
            flat = self.root / filename
            if flat.is_file():
                return flat
            if self.root.is_dir():
                for candidate in sorted(self.root.rglob(filename)):
                    if not _is_shared(candidate, self.root):
                        return candidate
        return None

    def exists(self, code: str) -> bool:
        """Return whether a document exists for `code`."""
        return self.find(code) is not None

    @staticmethod
    def load_raw(path: Path) -> dict[str, Any]:
        """Load the raw schema payload of a document.

        Args:
            path (Path): Document path.

        Raises:
            SchemaStoreError: If the file is missing, unreadable or not a JSON object.

        Returns:
            dict[str, Any]: Unwrapped schema payload.
        """
        _validate_schema_file_path(path)
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            raise SchemaStoreError(message=f"Failed to read schema {path}: {exc}") from exc
        return _unwrap_payload(payload)

    @classmethod
    def load(cls, path: Path) -> FormSchema:
        """Load and parse a schema document.

        Raises:
            SchemaStoreError: If the payload does not describe a schema.

        Returns:
            FormSchema: Parsed schema.
        """
        payload = cls.load_raw(path)
        try:
            return FormSchema.model_validate(payload)
        except ValidationError as exc:
            raise SchemaStoreError(message=f"Invalid schema document {path}: {exc.error_count()} error(s)") from exc

    def load_code(self, code: str) -> FormSchema:
        """Load the schema of a form code.

        Raises:
            SchemaStoreError: If no document exists for `code`.

        Returns:
            FormSchema: Parsed schema.
        """
        path = self.find(code)
        if path is None:
            raise SchemaStoreError(message=f"Schema not found: {code}")
        return self.load(path)

    def load_all(self) -> dict[str, FormSchema]:
        """Load every parseable document keyed by its form code.

        Unreadable documents are logged and skipped.

        Returns:
            dict[str, FormSchema]: Schemas keyed by `form.code`.
        """
        schemas: dict[str, FormSchema] = {}
        for path in self.list_files():
            try:
                schema = self.load(path)
            except SchemaStoreError as exc:
                logger.warning("Skipping unreadable schema", extra={"schema_path": str(path), "error": str(exc)})
                continue
            schemas[schema.form.code or codes.normalize(path.name.removesuffix(_SCHEMA_SUFFIX))] = schema
        return schemas

    def save(self, schema: FormSchema, path: Path | None = None) -> Path:
        """Write a schema document inside the versioned envelope.

        Args:
            schema (FormSchema): Schema to persist.
            path (Path | None): Explicit destination; defaults to `schema_path`.

        Returns:
            Path: Written file path.
        """
        target = path or self.schema_path(schema.form.code, schema.form.category)
        target.parent.mkdir(parents=True, exist_ok=True)
        envelope = {
            "schema_file_version": _SCHEMA_FILE_VERSION,
            "schema": schema.to_document(),
        }
        target.write_text(json.dumps(envelope, indent=2), encoding="utf-8")
        logger.info("Schema saved", extra={"schema_path": str(target), "code": schema.form.code})
        return target


def _is_shared(path: Path, root: Path) -> bool:
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        parts = path.parts
    return _SHARED_DIR in parts


def _unwrap_payload(payload: object) -> dict[str, Any]:
    """Return the schema object of an enveloped or bare document.

    Args:
        payload (object): Raw JSON payload.

    Raises:
        SchemaStoreError: If the payload is not a JSON object.

    Returns:
        dict[str, Any]: Schema object payload.
    """
    if not isinstance(payload, dict):
        raise SchemaStoreError(message="Schema payload must be a JSON object")
    payload_obj = cast("dict[str, Any]", payload)
    embedded = payload_obj.get("schema")
    if "schema_file_version" in payload_obj and isinstance(embedded, dict):
        return cast("dict[str, Any]", embedded)
    return payload_obj


def _validate_schema_file_path(path: Path) -> None:
    """Validate a schema file path before loading.

    Raises:
        SchemaStoreError: If `path` is not an existing `.schema.json` file.
    """
    if not isinstance(path, Path):
        raise SchemaStoreError(message=f"Schema path must be a pathlib.Path instance, got: {type(path)!r}")
    if not path.is_file():
        raise SchemaStoreError(message=f"Schema path is not a file: {path}")
    if not path.name.endswith(_SCHEMA_SUFFIX):
        raise SchemaStoreError(message=f"Schema path must end with '{_SCHEMA_SUFFIX}': {path}")
