"""Base exception and error codes for capsule-migrate."""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Structured error codes carried by every raised migration error."""

    PARSER_ERROR = "PARSER_ERROR"
    GENERATOR_ERROR = "GENERATOR_ERROR"
    TEMPLATE_ERROR = "TEMPLATE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    REPORT_ERROR = "REPORT_ERROR"
    ORCHESTRATION_ERROR = "ORCHESTRATION_ERROR"
    CONFIG_ERROR = "CONFIG_ERROR"


class CapsuleMigrateError(Exception):
    """Base exception for all capsule-migrate errors."""

    default_code = ErrorCode.GENERATOR_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[ErrorCode] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            details_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} ({details_str})"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for JSON reports and logs."""
        return {
            "error": type(self).__name__,
            "code": self.code.value,
            "message": self.message,
            "details": {k: str(v) for k, v in self.details.items()},
        }
