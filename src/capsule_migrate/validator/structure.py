"""Content checks for the individual generated files."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Optional, Tuple

from ..models import ValidationCheck, ValidationWarning

MIN_ERROR_TYPES = 8

README_SECTIONS = ("Features", "Quick Start", "Installation", "API Reference")

_ENUM_MARKER = re.compile(r"""^\s*([A-Z][A-Z0-9_]*)\s*=\s*["']\1["']""", re.MULTILINE)
_ERROR_CLASS = re.compile(r"\bclass\s+(\w*Error)\s*\(")
_SERVICE_CLASS = re.compile(r"\bclass\s+\w*Service\b")
_LIFECYCLE = {
    "initialize": re.compile(r"\basync\s+def\s+initialize\s*\("),
    "execute": re.compile(r"\basync\s+def\s+execute\s*\("),
    "cleanup": re.compile(r"\basync\s+def\s+cleanup\s*\("),
}
_GET_STATS = re.compile(r"\bdef\s+get_stats\s*\(")
_REEXPORT = re.compile(r"^from\s+\.\w*\s+import\s+\*", re.MULTILINE)
_CAPSULE_CONSTANT = re.compile(r"^\w+_CAPSULE\s*(?::[^=\n]+)?=", re.MULTILINE)
_FACTORY = re.compile(r"\bcreate_\w+")

CheckOutcome = Tuple[ValidationCheck, Optional[ValidationWarning]]


def _read(path: Path) -> Optional[str]:
    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8")


def _not_found(name: str) -> ValidationCheck:
    return ValidationCheck(name=name, passed=False, message="File not found")


def _unreadable(name: str, filename: str, code: str, error: Exception) -> CheckOutcome:
    """A file that exists but cannot be decoded fails its own check only."""
    check = ValidationCheck(name=name, passed=False, message=f"Cannot read file: {error}")
    warning = ValidationWarning(code=code, message=f"{filename} cannot be read: {error}", file=filename)
    return check, warning


def check_errors_file(capsule_dir: Path) -> CheckOutcome:
    name = "errors.py Structure"
    try:
        content = _read(capsule_dir / "errors.py")
    except (OSError, UnicodeDecodeError) as e:
        return _unreadable(name, "errors.py", "INSUFFICIENT_ERRORS", e)
    if content is None:
        return _not_found(name), None

    enum_members = set(_ENUM_MARKER.findall(content))
    error_classes = set(_ERROR_CLASS.findall(content))
    count = max(len(enum_members), len(error_classes))
    passed = count >= MIN_ERROR_TYPES
    check = ValidationCheck(
        name=name,
        passed=passed,
        message=(
            f"Found {count} error types"
            if passed
            else f"Only {count} error types (minimum {MIN_ERROR_TYPES} required)"
        ),
        details={"count": count, "minimum": MIN_ERROR_TYPES},
    )
    warning = None
    if not passed:
        warning = ValidationWarning(
            code="INSUFFICIENT_ERRORS",
            message=f"errors.py should define at least {MIN_ERROR_TYPES} error types (found {count})",
            file="errors.py",
            suggestion="Add an error kind per failure mode of the service",
        )
    return check, warning


def check_service_file(capsule_dir: Path) -> CheckOutcome:
    name = "service.py Structure"
    try:
        content = _read(capsule_dir / "service.py")
    except (OSError, UnicodeDecodeError) as e:
        return _unreadable(name, "service.py", "INVALID_SERVICE", e)
    details = {}
    if content is not None:
        details["has_class"] = bool(_SERVICE_CLASS.search(content))
        for method, pattern in _LIFECYCLE.items():
            details[f"has_{method}"] = bool(pattern.search(content))
        details["has_get_stats"] = bool(_GET_STATS.search(content))
    passed = content is not None and all(
        details[key] for key in ("has_class", "has_initialize", "has_execute", "has_cleanup")
    )
    check = ValidationCheck(
        name=name,
        passed=passed,
        message=(
            "Service class with lifecycle methods found"
            if passed
            else ("File not found" if content is None else "Missing Service class or lifecycle methods")
        ),
        details=details or None,
    )
    warning = None
    if not passed:
        warning = ValidationWarning(
            code="INVALID_SERVICE",
            message="service.py should have a Service class with async initialize, execute, cleanup",
            file="service.py",
        )
    return check, warning


def check_index_file(capsule_dir: Path) -> CheckOutcome:
    name = "__init__.py Structure"
    try:
        content = _read(capsule_dir / "__init__.py")
    except (OSError, UnicodeDecodeError) as e:
        return _unreadable(name, "__init__.py", "INVALID_INDEX", e)
    details = {}
    if content is not None:
        details = {
            "has_exports": bool(_REEXPORT.search(content)),
            "has_capsule_metadata": bool(_CAPSULE_CONSTANT.search(content)),
            "has_factory_function": bool(_FACTORY.search(content)),
        }
    passed = content is not None and details["has_exports"] and details["has_capsule_metadata"]
    check = ValidationCheck(
        name=name,
        passed=passed,
        message=(
            "Public API exports found"
            if passed
            else ("File not found" if content is None else "Missing public API exports")
        ),
        details=details or None,
    )
    warning = None
    if not passed:
        warning = ValidationWarning(
            code="INVALID_INDEX",
            message="__init__.py should re-export the public API and define the capsule metadata",
            file="__init__.py",
        )
    return check, warning


def check_readme_file(capsule_dir: Path) -> CheckOutcome:
    name = "README.md Structure"
    try:
        content = _read(capsule_dir / "README.md")
    except (OSError, UnicodeDecodeError) as e:
        return _unreadable(name, "README.md", "INCOMPLETE_README", e)
    found = {}
    if content is not None:
        for section in README_SECTIONS:
            pattern = rf"^##\s+{re.escape(section)}\b"
            found[section] = bool(re.search(pattern, content, re.MULTILINE))
    count = sum(found.values())
    passed = content is not None and count == len(README_SECTIONS)
    check = ValidationCheck(
        name=name,
        passed=passed,
        message=(
            "All required sections present"
            if passed
            else (
                "File not found"
                if content is None
                else f"Missing sections ({count}/{len(README_SECTIONS)})"
            )
        ),
        details=found or None,
    )
    warning = None
    if not passed:
        warning = ValidationWarning(
            code="INCOMPLETE_README",
            message="README.md should have sections: " + ", ".join(README_SECTIONS),
            file="README.md",
        )
    return check, warning
