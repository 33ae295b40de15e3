"""Exceptions raised by the migration stages."""

from pathlib import Path
from typing import Any, Dict, Optional

from .base import CapsuleMigrateError, ErrorCode


class ParserError(CapsuleMigrateError):
    """Raised when a capsule directory cannot be read or analyzed."""

    default_code = ErrorCode.PARSER_ERROR


class GeneratorError(CapsuleMigrateError):
    """Raised when the output tree cannot be produced at all."""

    default_code = ErrorCode.GENERATOR_ERROR

    def __init__(
        self,
        message: str,
        capsule_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        details = dict(details or {})
        if capsule_id is not None:
            details["capsule"] = capsule_id
        super().__init__(message, details=details)
        self.capsule_id = capsule_id


class TemplateError(CapsuleMigrateError):
    """Raised by a single file template; caught per file by the generator."""

    default_code = ErrorCode.TEMPLATE_ERROR

    def __init__(self, filename: str, reason: str):
        super().__init__(f"Template '{filename}' failed: {reason}", details={"file": filename})
        self.filename = filename
        self.reason = reason


class ValidationError(CapsuleMigrateError):
    """Unexpected failure inside the validator; converted to an issue, never raised out."""

    default_code = ErrorCode.VALIDATION_ERROR


class ReportError(CapsuleMigrateError):
    """Raised when a report cannot be written or its totals do not add up."""

    default_code = ErrorCode.REPORT_ERROR


class OrchestrationError(CapsuleMigrateError):
    """Raised by a batch run when stop-on-error is set and a capsule fails."""

    default_code = ErrorCode.ORCHESTRATION_ERROR

    def __init__(self, capsule: str, cause: BaseException):
        super().__init__(
            f"Migration of '{capsule}' failed: {cause}",
            details={"capsule": capsule, "cause": type(cause).__name__},
        )
        self.capsule = capsule
        self.cause = cause


class DuplicateCapsuleError(CapsuleMigrateError):
    """Raised for a batch input whose capsule id is already taken by an earlier input."""

    default_code = ErrorCode.ORCHESTRATION_ERROR

    def __init__(self, capsule_id: str, path: Path, claimed_by: Path):
        super().__init__(
            f"Duplicate capsule id '{capsule_id}', already migrated from {claimed_by}",
            details={"capsule_id": capsule_id, "path": str(path), "claimed_by": str(claimed_by)},
        )
