"""Complexity, maintainability, effort and quality scoring for parsed capsules."""

from __future__ import annotations

import logging
import math
from typing import Any, Optional

from ..config import DEFAULT_THRESHOLDS, ModeThresholds
from ..models import CodeAnalysis, MigrationMode, QualityFlags
from .treesitter import iter_nodes

logger = logging.getLogger(__name__)

# Node types that open an independent execution path
DECISION_NODES = frozenset(
    {
        "if_statement",
        "elif_clause",
        "conditional_expression",
        "for_statement",
        "while_statement",
        "for_in_clause",
        "case_clause",
        "except_clause",
        "except_group_clause",
        "boolean_operator",
    }
)


class ComplexityVisitor:
    """Counts decision points of one file's syntax tree, starting at 1."""

    def __init__(self) -> None:
        self.complexity = 1

    def visit(self, root: Any) -> int:
        for node in iter_nodes(root):
            if node.type in DECISION_NODES:
                self.complexity += 1
        return self.complexity


def count_lines(text: str) -> int:
    """Physical line count: ``text.split("\\n")`` length."""
    return len(text.split("\n"))


def calculate_maintainability(lines_of_code: int, complexity: int) -> float:
    """Maintainability index in [0, 100].

    ``max(0, (171 - 5.2 * ln(LOC) - 0.23 * CC) * 100 / 171)``
    """
    if lines_of_code <= 0:
        return 100.0 if complexity <= 0 else max(0.0, (171 - 0.23 * complexity) * 100 / 171)
    raw = (171 - 5.2 * math.log(lines_of_code) - 0.23 * complexity) * 100 / 171
    return max(0.0, min(100.0, raw))


def estimate_migration_hours(lines_of_code: int, complexity: int) -> float:
    """Step-function effort estimate, rounded to one decimal."""
    hours = 1.0

    if lines_of_code < 200:
        hours += 0.5
    elif lines_of_code < 500:
        hours += 1
    elif lines_of_code < 1000:
        hours += 2
    else:
        hours += 4

    if complexity < 10:
        hours += 0.5
    elif complexity < 30:
        hours += 1
    else:
        hours += 2

    return round(hours, 1)


def assess_quality(analysis: CodeAnalysis, documented: bool) -> QualityFlags:
    return QualityFlags(
        has_types=bool(analysis.types or analysis.interfaces),
        has_errors=bool(analysis.error_types),
        # Tests are never executed
        has_tests=False,
        has_documentation=documented,
    )


def select_migration_mode(
    lines_of_code: int,
    complexity: int,
    requested: MigrationMode = MigrationMode.AUTO,
    thresholds: Optional[ModeThresholds] = None,
    capsule: str = "",
) -> MigrationMode:
    """Pick the effective migration mode for a capsule.

    Small, simple capsules run ``auto``. Large or complex capsules are never
    auto-migrated: an ``auto`` request is downgraded with a warning, and the
    result is ``manual`` only if that was requested explicitly.
    """
    t = thresholds or DEFAULT_THRESHOLDS

    if lines_of_code < t.auto_max_lines and complexity < t.auto_max_complexity:
        return MigrationMode.AUTO

    if lines_of_code > t.manual_min_lines or complexity > t.manual_min_complexity:
        if requested == MigrationMode.AUTO:
            logger.warning(
                f"Capsule {capsule or '<unnamed>'} has {lines_of_code} lines and complexity "
                f"{complexity}; downgrading auto migration to semi"
            )
        return MigrationMode.MANUAL if requested == MigrationMode.MANUAL else MigrationMode.SEMI

    return MigrationMode.SEMI
