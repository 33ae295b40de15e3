"""Migration reporter: folds pipeline results into report records.

Report generation is pure; only the ``save_*`` methods touch the disk.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union

from ..exceptions import ReportError
from ..generator.templates import REQUIRED_FILES
from ..logging_config import get_logger
from ..models import (
    BatchMigrationReport,
    BatchSummary,
    FileCounts,
    FileReport,
    GenerationResult,
    MigrationMode,
    MigrationReport,
    MigrationStatus,
    ParsedCapsule,
    ProgressDashboard,
    ValidationResult,
)
from .markdown import render_batch_report, render_report
from .serializers import dumps

logger = get_logger(__name__)

BATCH_MARKDOWN = "batch-migration-report.md"
BATCH_JSON = "batch-migration-report.json"
INDIVIDUAL_DIR = "individual-reports"

_FAILED_FILE = re.compile(r"^Failed to generate (\S+):")


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _file_breakdown(generation: GenerationResult) -> List[FileReport]:
    breakdown = [
        FileReport(filename=Path(file.path).name, lines=file.lines, status="complete")
        for file in generation.files
    ]
    failures: Dict[str, List[str]] = {}
    for error in generation.errors:
        match = _FAILED_FILE.match(error)
        if match:
            failures.setdefault(match.group(1), []).append(error)
    generated = {entry.filename for entry in breakdown}
    for filename in REQUIRED_FILES:
        if filename not in generated and filename in failures:
            breakdown.append(
                FileReport(filename=filename, lines=0, status="failed", notes=failures[filename])
            )
    return breakdown


class MigrationReporter:
    """Builds single-capsule, batch and progress reports."""

    def generate_report(
        self,
        parsed: ParsedCapsule,
        generation: GenerationResult,
        validation: ValidationResult,
        time_taken: float,
        mode: MigrationMode = MigrationMode.AUTO,
    ) -> MigrationReport:
        """Join one parse/generate/validate triple.

        ``time_taken`` is in hours. The "after" line count is the sum of the
        generated files' line counts.
        """
        return MigrationReport(
            capsule=parsed.metadata,
            status=MigrationStatus.COMPLETE if generation.success else MigrationStatus.FAILED,
            mode=mode,
            time_taken=time_taken,
            before=FileCounts(
                files=len(parsed.source_files), lines=parsed.complexity.lines_of_code
            ),
            after=FileCounts(
                files=len(generation.files), lines=sum(f.lines for f in generation.files)
            ),
            quality_score=validation.quality_score,
            file_breakdown=_file_breakdown(generation),
            validation=validation,
            manual_actions_required=list(generation.warnings),
            notes=list(generation.errors),
            generated_at=_now(),
        )

    def generate_batch_report(
        self,
        reports: Sequence[MigrationReport],
        total_capsules: Optional[int] = None,
        unreported_failures: int = 0,
    ) -> BatchMigrationReport:
        """Reduce capsule reports into totals and averages.

        ``unreported_failures`` counts capsules whose pipeline raised and so
        produced no report; they add to ``failed_migrations`` only.
        """
        reports = list(reports)
        successful = sum(1 for r in reports if r.status == MigrationStatus.COMPLETE)
        failed = sum(1 for r in reports if r.status == MigrationStatus.FAILED)
        failed += unreported_failures
        total = len(reports) + unreported_failures if total_capsules is None else total_capsules
        if successful + failed > total:
            raise ReportError(
                f"{successful + failed} migrations reported for {total} capsules",
                details={"total_capsules": total, "reported": successful + failed},
            )

        total_time = sum(r.time_taken for r in reports)
        avg_quality = sum(r.quality_score for r in reports) / len(reports) if reports else 0.0
        total_lines = sum(r.after.lines for r in reports)

        return BatchMigrationReport(
            total_capsules=total,
            successful_migrations=successful,
            failed_migrations=failed,
            total_time_taken=total_time,
            avg_quality_score=avg_quality,
            reports=reports,
            summary=BatchSummary(
                total_files=sum(r.after.files for r in reports),
                total_lines=total_lines,
                avg_lines_per_capsule=round(total_lines / len(reports)) if reports else 0,
            ),
            generated_at=_now(),
        )

    def generate_progress_dashboard(
        self, total: int, processed: int, reports: Sequence[MigrationReport]
    ) -> ProgressDashboard:
        """Snapshot of a batch in flight.

        Failures are every processed capsule that did not complete, including
        those that produced no report.
        """
        success = sum(1 for r in reports if r.status == MigrationStatus.COMPLETE)
        avg_time = sum(r.time_taken for r in reports) / len(reports) if reports else 0.0
        return ProgressDashboard(
            total_capsules=total,
            processed_capsules=processed,
            success_count=success,
            failed_count=max(processed - success, 0),
            percent_complete=processed / total * 100 if total else 0.0,
            avg_time_per_capsule=avg_time,
            estimated_time_remaining=avg_time * max(total - processed, 0),
            current_capsule=reports[-1].capsule.name if reports else "N/A",
        )

    def generate_markdown_report(self, report: MigrationReport) -> str:
        return render_report(report)

    def generate_batch_markdown_report(self, batch: BatchMigrationReport) -> str:
        return render_batch_report(batch)

    def save_report(self, content: str, output_path: Union[str, Path]) -> Path:
        """Write ``content`` to ``output_path``, creating parent directories."""
        path = Path(output_path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as e:
            raise ReportError(f"Cannot write report: {e}", details={"path": str(path)}) from e
        logger.debug(f"Wrote report {path}")
        return path

    def save_capsule_report(
        self, report: MigrationReport, output_dir: Union[str, Path]
    ) -> List[Path]:
        """Write ``<id>-migration-report.md`` and ``.json`` into ``output_dir``."""
        directory = Path(output_dir)
        stem = f"{report.capsule.id}-migration-report"
        return [
            self.save_report(self.generate_markdown_report(report), directory / f"{stem}.md"),
            self.save_report(dumps(report), directory / f"{stem}.json"),
        ]

    def save_batch_report(
        self, batch: BatchMigrationReport, reports_dir: Union[str, Path]
    ) -> List[Path]:
        """Write the aggregate reports and one pair per capsule into ``reports_dir``."""
        directory = Path(reports_dir)
        written = [
            self.save_report(self.generate_batch_markdown_report(batch), directory / BATCH_MARKDOWN),
            self.save_report(dumps(batch), directory / BATCH_JSON),
        ]
        for report in batch.reports:
            written.extend(self.save_capsule_report(report, directory / INDIVIDUAL_DIR))
        logger.info(f"Saved {len(written)} report files to {directory}")
        return written
