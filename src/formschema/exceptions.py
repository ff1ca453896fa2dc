"""Package exceptions."""

from __future__ import annotations

from dataclasses import dataclass, field


class PackageError(Exception):
    """Root exception for the package."""


@dataclass(frozen=True)
class SettingsError(PackageError):
    """Raised when settings cannot be loaded or validated."""

    message: str = "Failed to load settings"
    exc: BaseException | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"{self.message}: {self.exc}" if self.exc else self.message


@dataclass(frozen=True)
class BackendError(PackageError):
    """Raised when a PDF backend call fails."""

    message: str
    backend: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        return f"[{self.backend}] {self.message}" if self.backend else self.message


@dataclass(frozen=True)
class BackendUnavailableError(BackendError):
    """Raised when a backend library or executable cannot be found."""


@dataclass(frozen=True)
class FillError(PackageError):
    """Raised when no backend could produce a filled document."""

    message: str
    template_path: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        if self.template_path:
            return f"{self.message} ({self.template_path})"
        return self.message


@dataclass(frozen=True)
class DependencyError(PackageError):
    """Raised when optional runtime dependencies are missing."""

    missing_package: list[str]
    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return f"Missing runtime dependencies for '{self.message}': {', '.join(self.missing_package)}"


@dataclass
class SchemaStoreError(PackageError):
    """Raised when schema loading/saving constraints are violated."""

    message: str

    def __str__(self) -> str:
        """Return error message payload."""
        return self.message


@dataclass
class SchemaValidationError(PackageError):
    """Raised when a schema document is structurally invalid."""

    errors: list[str] = field(default_factory=list)
    file_path: str | None = None

    def __str__(self) -> str:
        """Return error message payload."""
        prefix = f"Invalid schema {self.file_path}" if self.file_path else "Invalid schema"
        return f"{prefix}: {', '.join(self.errors)}"
