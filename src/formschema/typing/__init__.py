"""Typing-centric domain modules."""

from formschema.typing.enums import ConditionOperator, ControlKind, FieldType, FieldWidth
from formschema.typing.models import (
    CanonicalFieldDefinition,
    Category,
    ClassifiedField,
    ConditionClause,
    FieldDefinition,
    FieldDescriptor,
    FieldOption,
    FormMetadata,
    FormRecord,
    FormSchema,
    Section,
    Submission,
    ValidationResult,
)
from formschema.typing.protocol import (
    FallbackBackend,
    FormRepository,
    PdfBackend,
    PrimaryBackend,
    TemplateSource,
)

__all__ = [
    "CanonicalFieldDefinition",
    "Category",
    "ClassifiedField",
    "ConditionClause",
    "ConditionOperator",
    "ControlKind",
    "FallbackBackend",
    "FieldDefinition",
    "FieldDescriptor",
    "FieldOption",
    "FieldType",
    "FieldWidth",
    "FormMetadata",
    "FormRecord",
    "FormRepository",
    "FormSchema",
    "PdfBackend",
    "PrimaryBackend",
    "Section",
    "Submission",
    "TemplateSource",
    "ValidationResult",
]
