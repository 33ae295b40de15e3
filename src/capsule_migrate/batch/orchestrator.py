"""Batch migration: capsules run in sequential groups of ``parallel``.

Members of a group migrate concurrently on a thread pool and every one
settles before the next group starts. Results are consumed in input order, so
the report list follows the input list whatever the completion order was.
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence, TypeVar, Union

from rich.console import Console

from ..config import DEFAULT_THRESHOLDS, ModeThresholds
from ..exceptions import CapsuleMigrateError, DuplicateCapsuleError, OrchestrationError
from ..logging_config import get_logger
from ..models import (
    BatchMigrationReport,
    MigrationMode,
    MigrationReport,
    MigrationStatus,
    ProgressDashboard,
)
from ..parser import extract_metadata
from ..pipeline import PipelineOptions, migrate_capsule
from ..reporter import MigrationReporter, show_dashboard

logger = get_logger(__name__)

REPORTS_DIR = "reports"

T = TypeVar("T")

MigrateFn = Callable[..., MigrationReport]


def partition(items: Sequence[T], size: int) -> List[List[T]]:
    """Split ``items`` into consecutive groups of ``size`` (the last may be shorter)."""
    if size < 1:
        raise ValueError("group size must be at least 1")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


@dataclass(frozen=True)
class BatchMigrationConfig:
    """Configuration for one batch run.

    Attributes:
        input_dirs: Capsule directories, in the order reports are collected
        output_base_dir: Each capsule is written to ``<output_base_dir>/<id>``
        parallel: Group size; capsules in a group migrate concurrently
        mode: Requested migration mode for every capsule
        tidy: Run the whitespace tidy pass over generated files
        generate_reports: Write reports under ``<output_base_dir>/reports``
        stop_on_error: Raise ``OrchestrationError`` on the first failure
    """

    input_dirs: Sequence[Union[str, Path]]
    output_base_dir: Union[str, Path]
    parallel: int = 3
    mode: MigrationMode = MigrationMode.AUTO
    tidy: bool = True
    generate_reports: bool = True
    stop_on_error: bool = False
    include_tests: bool = False
    thresholds: ModeThresholds = field(default=DEFAULT_THRESHOLDS)

    def __post_init__(self) -> None:
        if self.parallel < 1:
            raise ValueError("parallel must be at least 1")
        object.__setattr__(self, "input_dirs", tuple(Path(p) for p in self.input_dirs))
        object.__setattr__(self, "output_base_dir", Path(self.output_base_dir))
        object.__setattr__(self, "mode", MigrationMode(self.mode))

    @property
    def reports_dir(self) -> Path:
        return Path(self.output_base_dir) / REPORTS_DIR


class BatchMigrationOrchestrator:
    """Runs a batch and reduces the per-capsule reports.

    A capsule whose pipeline raises is logged with a ``✗`` line, counted as a
    failure and contributes no report. With ``stop_on_error`` the first such
    failure in input order aborts the run once its group has settled.
    """

    def __init__(
        self,
        config: BatchMigrationConfig,
        console: Optional[Console] = None,
        migrate: MigrateFn = migrate_capsule,
    ):
        self.config = config
        self.console = console or Console()
        self.reporter = MigrationReporter()
        self._migrate = migrate
        self.reports: List[MigrationReport] = []
        self.failures = 0
        self.processed = 0

    def run(self) -> BatchMigrationReport:
        config = self.config
        capsules = list(config.input_dirs)
        groups = partition(capsules, config.parallel)
        conflicts = partition(self._find_duplicate_ids(capsules), config.parallel)
        self.reports = []
        self.failures = 0
        self.processed = 0
        logger.info(
            f"Migrating {len(capsules)} capsules in {len(groups)} group(s) "
            f"of up to {config.parallel} (mode: {config.mode.value})"
        )

        for number, (group, rejected) in enumerate(zip(groups, conflicts), 1):
            logger.info(f"Group {number}/{len(groups)} ({len(group)} capsules)")
            outcomes = self._run_group(group, rejected)
            for path, outcome in zip(group, outcomes):
                self.processed += 1
                if isinstance(outcome, Exception):
                    self.failures += 1
                    logger.error(f"✗ {path.name}: {outcome}")
                    if config.stop_on_error:
                        raise OrchestrationError(path.name, outcome) from outcome
                    continue
                self._log_report(outcome)
                self.reports.append(outcome)
            show_dashboard(self.progress_dashboard(), self.console)

        batch = self.reporter.generate_batch_report(
            self.reports, total_capsules=len(capsules), unreported_failures=self.failures
        )
        if config.generate_reports:
            self.reporter.save_batch_report(batch, config.reports_dir)
        logger.info(
            f"Batch complete: {batch.successful_migrations}/{batch.total_capsules} succeeded, "
            f"{batch.failed_migrations} failed, avg quality {batch.avg_quality_score:.1f}/100"
        )
        return batch

    def progress_dashboard(self) -> ProgressDashboard:
        return self.reporter.generate_progress_dashboard(
            len(self.config.input_dirs), self.processed, self.reports
        )

    @staticmethod
    def _find_duplicate_ids(capsules: List[Path]) -> List[Optional[DuplicateCapsuleError]]:
        """One entry per capsule: an error when an earlier input has the same id.

        Capsules whose metadata cannot be read are left to the pipeline, which
        reports the same problem as its own failure.
        """
        claimed: Dict[str, Path] = {}
        conflicts: List[Optional[DuplicateCapsuleError]] = []
        for path in capsules:
            try:
                capsule_id = extract_metadata(path).id
            except CapsuleMigrateError:
                conflicts.append(None)
                continue
            if capsule_id in claimed:
                conflicts.append(DuplicateCapsuleError(capsule_id, path, claimed[capsule_id]))
            else:
                claimed[capsule_id] = path
                conflicts.append(None)
        return conflicts

    def _run_group(
        self, group: List[Path], rejected: List[Optional[DuplicateCapsuleError]]
    ) -> List[Union[MigrationReport, Exception]]:
        options = PipelineOptions(
            mode=self.config.mode,
            tidy=self.config.tidy,
            include_tests=self.config.include_tests,
            thresholds=self.config.thresholds,
        )
        outcomes: List[Union[MigrationReport, Exception]] = []
        with ThreadPoolExecutor(max_workers=len(group)) as executor:
            futures = [
                None
                if conflict is not None
                else executor.submit(
                    self._migrate, path, self.config.output_base_dir, options, self.reporter
                )
                for path, conflict in zip(group, rejected)
            ]
            for future, conflict in zip(futures, rejected):
                if conflict is not None:
                    outcomes.append(conflict)
                    continue
                try:
                    outcomes.append(future.result())
                except Exception as e:
                    outcomes.append(e)
        return outcomes

    @staticmethod
    def _log_report(report: MigrationReport) -> None:
        seconds = report.time_taken * 3600
        if report.status == MigrationStatus.COMPLETE:
            logger.info(
                f"✓ {report.capsule.id}: {report.quality_score:.1f}/100 ({seconds:.1f}s)"
            )
        else:
            logger.warning(
                f"⚠ {report.capsule.id}: generation incomplete, "
                f"{report.quality_score:.1f}/100 ({seconds:.1f}s)"
            )


def run_batch_migration(
    config: BatchMigrationConfig, console: Optional[Console] = None
) -> BatchMigrationReport:
    """Convenience wrapper around ``BatchMigrationOrchestrator``."""
    return BatchMigrationOrchestrator(config, console=console).run()
