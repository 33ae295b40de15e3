"""Validation of a regenerated capsule directory."""

from __future__ import annotations

from pathlib import Path
from typing import List, Union

from ..generator.templates import REQUIRED_FILES
from ..logging_config import get_logger
from ..models import (
    ValidationCheck,
    ValidationIssue,
    ValidationLevel,
    ValidationResult,
    ValidationWarning,
)
from .diagnostics import collect_diagnostics
from .scoring import calculate_quality_score
from .structure import (
    check_errors_file,
    check_index_file,
    check_readme_file,
    check_service_file,
)

logger = get_logger(__name__)

STRUCTURE_CHECKS = (check_errors_file, check_service_file, check_index_file, check_readme_file)


class CapsuleValidator:
    """Runs the check groups over one output directory.

    ``validate`` never raises: an unexpected failure becomes a
    ``VALIDATION_ERROR`` issue and a zero score, so a failed validation still
    yields a usable report.
    """

    def validate(self, capsule_path: Union[str, Path]) -> ValidationResult:
        path = Path(capsule_path)
        checks: List[ValidationCheck] = []
        errors: List[ValidationIssue] = []
        warnings: List[ValidationWarning] = []

        try:
            if not path.is_dir():
                checks.append(
                    ValidationCheck("Directory Exists", False, f"Directory not found: {path}")
                )
                errors.append(
                    ValidationIssue(
                        code="DIR_NOT_FOUND",
                        message=f"Capsule directory not found: {path}",
                        level=ValidationLevel.CRITICAL,
                    )
                )
                return ValidationResult(False, 0.0, checks, errors, warnings)
            checks.append(ValidationCheck("Directory Exists", True, "Directory exists"))

            present = self._check_required_files(path, checks, errors)
            self._check_diagnostics(path, present, checks, errors)

            for run_check in STRUCTURE_CHECKS:
                check, warning = run_check(path)
                checks.append(check)
                if warning is not None:
                    warnings.append(warning)
        except Exception as e:
            logger.exception(f"Validation of {path} failed")
            errors.append(
                ValidationIssue(
                    code="VALIDATION_ERROR",
                    message=f"Validation failed: {e}",
                    level=ValidationLevel.CRITICAL,
                )
            )
            return ValidationResult(False, 0.0, checks, errors, warnings)

        score = calculate_quality_score(checks, errors, warnings)
        logger.debug(
            f"{path.name}: {sum(c.passed for c in checks)}/{len(checks)} checks, "
            f"{len(errors)} errors, {len(warnings)} warnings, score {score:.1f}"
        )
        return ValidationResult(
            is_valid=not errors,
            quality_score=score,
            checks=checks,
            errors=errors,
            warnings=warnings,
        )

    @staticmethod
    def _check_required_files(
        path: Path, checks: List[ValidationCheck], errors: List[ValidationIssue]
    ) -> List[str]:
        present = [name for name in REQUIRED_FILES if (path / name).is_file()]
        missing = [name for name in REQUIRED_FILES if name not in present]
        for name in missing:
            errors.append(
                ValidationIssue(
                    code="MISSING_FILE",
                    message=f"Required file missing: {name}",
                    file=name,
                    level=ValidationLevel.CRITICAL,
                )
            )
        checks.append(
            ValidationCheck(
                name="Required Files",
                passed=not missing,
                message=(
                    f"All {len(REQUIRED_FILES)} required files present"
                    if not missing
                    else f"Missing {len(missing)} file(s): {', '.join(missing)}"
                ),
                details={"found": present, "missing": missing, "total": len(REQUIRED_FILES)},
            )
        )
        return present

    @staticmethod
    def _check_diagnostics(
        path: Path,
        present: List[str],
        checks: List[ValidationCheck],
        errors: List[ValidationIssue],
    ) -> None:
        sources = [name for name in present if name.endswith(".py")]
        diagnostics = collect_diagnostics(path, sources)
        for diagnostic in diagnostics:
            errors.append(
                ValidationIssue(
                    code="COMPILE_ERROR",
                    message=diagnostic.message,
                    file=diagnostic.file,
                    line=diagnostic.line,
                )
            )
        checks.append(
            ValidationCheck(
                name="Compile Diagnostics",
                passed=not diagnostics,
                message=(
                    f"{len(sources)} modules pass strict type checking"
                    if not diagnostics
                    else f"{len(diagnostics)} type-check diagnostic(s)"
                ),
                details=[
                    {"message": d.message, "file": d.file, "line": d.line} for d in diagnostics
                ]
                or None,
            )
        )


def validate_capsule(capsule_path: Union[str, Path]) -> ValidationResult:
    """Validate one output directory with a fresh ``CapsuleValidator``."""
    return CapsuleValidator().validate(capsule_path)
