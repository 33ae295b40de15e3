"""errors.py: error-type enum, base error, one subclass per kind and helpers."""

from __future__ import annotations

from ...models import TemplateContext
from ..symbols import ErrorKind, error_guard_name, error_kinds
from ._common import block, dunder_all, escape_docstring, module_docstring, render

FILENAME = "errors.py"

# Order in which message keywords are matched; specific kinds before generic ones
KEYWORD_PRIORITY = (
    "TIMEOUT_ERROR",
    "PERMISSION_ERROR",
    "NOT_FOUND_ERROR",
    "NETWORK_ERROR",
    "DATABASE_ERROR",
    "FILE_SYSTEM_ERROR",
    "RESOURCE_EXHAUSTED_ERROR",
    "FATAL_ERROR",
    "CONFIGURATION_ERROR",
    "VALIDATION_ERROR",
    "INITIALIZATION_ERROR",
    "RESOURCE_ERROR",
    "EXECUTION_ERROR",
)

TEMPLATE = '''\
$docstring

from __future__ import annotations

import time
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class ${c}ErrorType(str, Enum):
    """Every error category raised by the ${name} capsule."""

$enum_members


class ${c}Error(Exception):
    """Base error of the ${name} capsule.

    Carries a machine-readable ``type``, free-form ``details`` and the time it
    was raised.
    """

    def __init__(
        self,
        message: str,
        error_type: ${c}ErrorType = ${c}ErrorType.UNKNOWN_ERROR,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.type = error_type
        self.details: Dict[str, Any] = dict(details or {})
        self.timestamp = time.time()

    def __str__(self) -> str:
        return f"{self.type.value}: {self.message}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": type(self).__name__,
            "type": self.type.value,
            "message": self.message,
            "details": self.details,
            "timestamp": self.timestamp,
        }

    @staticmethod
    def from_exception(
        error: BaseException, error_type: Optional[${c}ErrorType] = None
    ) -> "${c}Error":
        """Wrap any exception, keeping capsule errors as they are."""
        if isinstance(error, ${c}Error):
            return error
        return ${c}Error(
            str(error) or type(error).__name__,
            error_type or parse_error_type(error),
            {"cause": type(error).__name__},
        )


$subclasses


def ${base_guard}(error: object) -> bool:
    return isinstance(error, ${c}Error)


$guards


_KEYWORD_TYPES: Tuple[Tuple[Tuple[str, ...], ${c}ErrorType], ...] = (
$keyword_table
)

_SEVERITY: Dict[${c}ErrorType, str] = {
$severity_table
}


def parse_error_type(error: BaseException) -> ${c}ErrorType:
    """Classify an arbitrary exception, by class first and then by message."""
    if isinstance(error, ${c}Error):
        return error.type
$builtin_checks
    message = str(error).lower()
    for keywords, error_type in _KEYWORD_TYPES:
        if any(keyword in message for keyword in keywords):
            return error_type
    return ${c}ErrorType.UNKNOWN_ERROR


def format_error(error: BaseException) -> str:
    if isinstance(error, ${c}Error):
        text = f"[{error.type.value}] {error.message}"
        if error.details:
            text += f" {error.details}"
        return text
    return f"[{parse_error_type(error).value}] {error}"


def get_error_severity(error: BaseException) -> str:
    """One of ``low``, ``medium``, ``high`` or ``critical``."""
    return _SEVERITY.get(parse_error_type(error), "low")


$all
'''

SUBCLASS_TEMPLATE = '''\
class $class_name(${c}Error):
    """$description"""

    def __init__(
        self, message: str = "$default_message", details: Optional[Dict[str, Any]] = None
    ) -> None:
        super().__init__(message, ${c}ErrorType.$constant, details)
'''

GUARD_TEMPLATE = '''\
def $guard(error: object) -> bool:
    return isinstance(error, $class_name)
'''


def _builtin_checks(ctx: TemplateContext, kinds: tuple[ErrorKind, ...]) -> list[str]:
    c = ctx.class_name
    constants = {kind.constant for kind in kinds}
    checks = [
        ("TimeoutError", "TIMEOUT_ERROR"),
        ("PermissionError", "PERMISSION_ERROR"),
        ("FileNotFoundError", "NOT_FOUND_ERROR"),
        ("MemoryError", "RESOURCE_EXHAUSTED_ERROR"),
        ("ConnectionError", "NETWORK_ERROR"),
        ("OSError", "FILE_SYSTEM_ERROR"),
    ]
    lines = []
    for builtin, constant in checks:
        if constant in constants:
            lines.append(
                f"    if isinstance(error, {builtin}):\n        return {c}ErrorType.{constant}"
            )
    return lines


def _keyword_table(ctx: TemplateContext, kinds: tuple[ErrorKind, ...]) -> list[str]:
    by_constant = {kind.constant: kind for kind in kinds}
    rows = []
    for constant in KEYWORD_PRIORITY:
        kind = by_constant.get(constant)
        if kind is None or not kind.keywords:
            continue
        keywords = ", ".join(f'"{k}"' for k in kind.keywords)
        if len(kind.keywords) == 1:
            keywords += ","
        rows.append(f"    (({keywords}), {ctx.class_name}ErrorType.{constant}),")
    return rows


def defined_names(ctx: TemplateContext) -> list[str]:
    c = ctx.class_name
    kinds = error_kinds(ctx.has_network, ctx.has_file_system, ctx.has_database)
    return [
        f"{c}ErrorType",
        f"{c}Error",
        *[kind.class_name for kind in kinds],
        error_guard_name(f"{c}Error"),
        *[error_guard_name(kind.class_name) for kind in kinds],
        "parse_error_type",
        "format_error",
        "get_error_severity",
    ]


def render_errors(ctx: TemplateContext) -> str:
    c = ctx.class_name
    kinds = error_kinds(ctx.has_network, ctx.has_file_system, ctx.has_database)

    enum_members = [f'    {kind.constant} = "{kind.constant}"' for kind in kinds]
    subclasses = [
        render(
            FILENAME,
            SUBCLASS_TEMPLATE,
            c=c,
            class_name=kind.class_name,
            description=kind.description,
            default_message=kind.default_message,
            constant=kind.constant,
        )
        for kind in kinds
    ]
    guards = [
        render(
            FILENAME,
            GUARD_TEMPLATE,
            guard=error_guard_name(kind.class_name),
            class_name=kind.class_name,
        )
        for kind in kinds
    ]
    severity = [f'    {c}ErrorType.{kind.constant}: "{kind.severity}",' for kind in kinds]

    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, f"Errors for the {ctx.capsule.name} capsule."),
        c=c,
        name=escape_docstring(ctx.capsule.name),
        enum_members=block(enum_members),
        subclasses="\n\n".join(subclasses),
        base_guard=error_guard_name(f"{c}Error"),
        guards="\n\n".join(guards),
        keyword_table=block(_keyword_table(ctx, kinds)),
        severity_table=block(severity),
        builtin_checks=block(_builtin_checks(ctx, kinds)),
        all=dunder_all(defined_names(ctx)),
    )
