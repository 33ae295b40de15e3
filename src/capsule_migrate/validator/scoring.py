"""Quality score for a validation run.

A linear penalty model: the share of passed checks, minus 5 points per error
(capped at 30) and 2 points per warning (capped at 20), clamped to [0, 100].
"""

from typing import Sequence

from ..models import ValidationCheck, ValidationIssue, ValidationWarning

ERROR_PENALTY = 5
MAX_ERROR_PENALTY = 30
WARNING_PENALTY = 2
MAX_WARNING_PENALTY = 20


def calculate_quality_score(
    checks: Sequence[ValidationCheck],
    errors: Sequence[ValidationIssue],
    warnings: Sequence[ValidationWarning],
) -> float:
    if not checks:
        return 0.0
    passed = sum(1 for check in checks if check.passed)
    score = passed / len(checks) * 100
    score -= min(len(errors) * ERROR_PENALTY, MAX_ERROR_PENALTY)
    score -= min(len(warnings) * WARNING_PENALTY, MAX_WARNING_PENALTY)
    return max(0.0, min(100.0, score))
