"""Operator-facing report models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field


class ValidationResult(BaseModel):
    """Outcome of validating one schema document."""

    model_config = ConfigDict(extra="forbid")

    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    file_path: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def valid(self) -> bool:
        """Return True when no blocking error was found."""
        return not self.errors

    def __str__(self) -> str:
        """Return a human readable summary."""
        lines: list[str] = []
        if self.file_path:
            lines.append(f"File: {self.file_path}")
        if self.errors:
            lines.append(f"Errors: {', '.join(self.errors)}")
        if self.warnings:
            lines.append(f"Warnings: {', '.join(self.warnings)}")
        if self.valid and not self.warnings:
            lines.append("Valid")
        return "\n".join(lines)


class FileMessages(BaseModel):
    """Messages attached to one schema file."""

    model_config = ConfigDict(extra="forbid")

    file: str
    messages: list[str]


class ValidationReport(BaseModel):
    """Corpus-wide validation summary."""

    model_config = ConfigDict(extra="forbid")

    valid: list[str] = Field(default_factory=list)
    invalid: list[FileMessages] = Field(default_factory=list)
    warnings: list[FileMessages] = Field(default_factory=list)


class SharedKeyCollision(BaseModel):
    """Unnamespaced shared key reused by several forms."""

    model_config = ConfigDict(extra="forbid")

    key: str
    forms: list[str]


class SharedKeyTypeConflict(BaseModel):
    """Shared key bound to different semantic types across forms."""

    model_config = ConfigDict(extra="forbid")

    key: str
    types: dict[str, list[str]]


class BatchFailure(BaseModel):
    """Form that could not be generated in a batch run."""

    model_config = ConfigDict(extra="forbid")

    code: str
    errors: list[str]


class BatchResult(BaseModel):
    """Aggregated outcome of batch schema generation."""

    model_config = ConfigDict(extra="forbid")

    success: list[str] = Field(default_factory=list)
    failed: list[BatchFailure] = Field(default_factory=list)
    skipped: list[str] = Field(default_factory=list)


class AnalysisEntry(BaseModel):
    """Fillability report line for one template."""

    model_config = ConfigDict(extra="forbid")

    code: str
    fillable: bool
    field_count: int
    has_schema: bool
    pdf_exists: bool = True
