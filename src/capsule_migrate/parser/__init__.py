"""Capsule source analysis."""

from .discovery import extract_metadata, find_capsule_dirs, find_source_files, infer_category
from .metrics import (
    calculate_maintainability,
    estimate_migration_hours,
    select_migration_mode,
)
from .parser import CapsuleParser, ParserOptions, parse_capsule

__all__ = [
    "CapsuleParser",
    "ParserOptions",
    "parse_capsule",
    "extract_metadata",
    "find_capsule_dirs",
    "find_source_files",
    "infer_category",
    "calculate_maintainability",
    "estimate_migration_hours",
    "select_migration_mode",
]
