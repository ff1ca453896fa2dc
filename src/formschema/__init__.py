"""formschema package."""

from formschema.exceptions import (
    BackendError,
    BackendUnavailableError,
    DependencyError,
    FillError,
    PackageError,
    SchemaStoreError,
    SchemaValidationError,
    SettingsError,
)
from formschema.logging import configure_logging, get_logger
from formschema.settings import Settings, get_settings

__version__ = "0.1.0"

# Initialize package logger at import time via `get_logger`.
logger = get_logger("formschema")

__all__ = [
    "BackendError",
    "BackendUnavailableError",
    "DependencyError",
    "FillError",
    "PackageError",
    "SchemaStoreError",
    "SchemaValidationError",
    "Settings",
    "SettingsError",
    "__version__",
    "configure_logging",
    "get_logger",
    "get_settings",
    "logger",
]
