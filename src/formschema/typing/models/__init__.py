"""Core domain model exports."""

from formschema.typing.models.extraction import ClassifiedField, FieldDescriptor, Rect
from formschema.typing.models.records import (
    CanonicalFieldDefinition,
    Category,
    FormRecord,
    Submission,
    utcnow,
)
from formschema.typing.models.reports import (
    AnalysisEntry,
    BatchFailure,
    BatchResult,
    FileMessages,
    SharedKeyCollision,
    SharedKeyTypeConflict,
    ValidationReport,
    ValidationResult,
)
from formschema.typing.models.schema import (
    ConditionClause,
    FieldDefinition,
    FieldOption,
    FormMetadata,
    FormSchema,
    Section,
)

__all__ = [
    "AnalysisEntry",
    "BatchFailure",
    "BatchResult",
    "CanonicalFieldDefinition",
    "Category",
    "ClassifiedField",
    "ConditionClause",
    "FieldDefinition",
    "FieldDescriptor",
    "FieldOption",
    "FileMessages",
    "FormMetadata",
    "FormRecord",
    "FormSchema",
    "Rect",
    "Section",
    "SharedKeyCollision",
    "SharedKeyTypeConflict",
    "Submission",
    "ValidationReport",
    "ValidationResult",
    "utcnow",
]
