"""Structural and strict type checks over regenerated capsules."""

from .diagnostics import Diagnostic, collect_diagnostics
from .scoring import calculate_quality_score
from .validator import CapsuleValidator, validate_capsule

__all__ = [
    "CapsuleValidator",
    "Diagnostic",
    "calculate_quality_score",
    "collect_diagnostics",
    "validate_capsule",
]
