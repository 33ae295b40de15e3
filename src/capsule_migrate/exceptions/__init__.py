"""Exception hierarchy for capsule-migrate."""

from .base import CapsuleMigrateError, ErrorCode
from .config import ConfigurationError, InvalidPathError
from .migration import (
    DuplicateCapsuleError,
    GeneratorError,
    OrchestrationError,
    ParserError,
    ReportError,
    TemplateError,
    ValidationError,
)

__all__ = [
    "CapsuleMigrateError",
    "ErrorCode",
    "ParserError",
    "GeneratorError",
    "TemplateError",
    "ValidationError",
    "ReportError",
    "OrchestrationError",
    "DuplicateCapsuleError",
    "ConfigurationError",
    "InvalidPathError",
]
