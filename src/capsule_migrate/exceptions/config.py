"""Configuration-related exceptions."""

from .base import CapsuleMigrateError, ErrorCode


class ConfigurationError(CapsuleMigrateError):
    """Raised for invalid configuration files, env vars or overrides."""

    default_code = ErrorCode.CONFIG_ERROR


class InvalidPathError(ConfigurationError):
    """Raised when a path argument is invalid."""

    def __init__(self, path, reason: str):
        super().__init__(f"Invalid path: {path}", details={"path": str(path), "reason": reason})
        self.path = path
        self.reason = reason
