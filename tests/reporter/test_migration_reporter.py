"""Tests for MigrationReporter records, Markdown rendering and saving."""

import json
from datetime import datetime
from enum import Enum
from pathlib import Path

import pytest
from rich.console import Console

from capsule_migrate.exceptions import ErrorCode, ReportError
from capsule_migrate.models import (
    CapsuleMetadata,
    CodeAnalysis,
    ComplexityMetrics,
    GeneratedFile,
    GenerationResult,
    MigrationMode,
    MigrationStatus,
    ParsedCapsule,
    Platform,
    QualityFlags,
    ValidationCheck,
    ValidationIssue,
    ValidationResult,
)
from capsule_migrate.reporter import MigrationReporter, show_dashboard, to_jsonable
from capsule_migrate.reporter.reporter import BATCH_JSON, BATCH_MARKDOWN, INDIVIDUAL_DIR


def parsed_capsule():
    return ParsedCapsule(
        metadata=CapsuleMetadata(
            id="cache",
            name="Cache",
            category="Infrastructure",
            description="Cache capsule",
            version="1.2.0",
            platforms=(Platform.SERVER, Platform.BROWSER),
        ),
        analysis=CodeAnalysis(),
        complexity=ComplexityMetrics(150, 4, 80.0, 2.0),
        quality=QualityFlags(True, True, False, True),
        source_files=["/src/cache/store.py", "/src/cache/types.py"],
    )


def generation(success=True):
    files = [
        GeneratedFile(path="/out/cache/types.py", content="a\nb\n", size=4),
        GeneratedFile(path="/out/cache/errors.py", content="x\n", size=2),
    ]
    errors = [] if success else ["Failed to generate utils.py: boom"]
    return GenerationResult(success=success, files=files, errors=errors, warnings=["Implement utils.run"])


def validation(score=85.0):
    return ValidationResult(
        is_valid=True,
        quality_score=score,
        checks=[ValidationCheck("Directory Exists", True, "Directory exists")],
    )


@pytest.fixture
def reporter():
    return MigrationReporter()


class TestGenerateReport:
    def test_successful_report(self, reporter):
        report = reporter.generate_report(parsed_capsule(), generation(), validation(), 0.25, MigrationMode.SEMI)
        assert report.status == MigrationStatus.COMPLETE
        assert report.mode == MigrationMode.SEMI
        assert report.time_taken == 0.25
        assert (report.before.files, report.before.lines) == (2, 150)
        assert (report.after.files, report.after.lines) == (2, 5)
        assert report.quality_score == 85.0
        assert [(f.filename, f.lines, f.status) for f in report.file_breakdown] == [
            ("types.py", 3, "complete"),
            ("errors.py", 2, "complete"),
        ]
        assert report.manual_actions_required == ["Implement utils.run"]
        assert report.notes == []
        assert report.generated_at.tzinfo is not None

    def test_failed_generation(self, reporter):
        report = reporter.generate_report(parsed_capsule(), generation(success=False), validation(), 0.1)
        assert report.status == MigrationStatus.FAILED
        assert report.notes == ["Failed to generate utils.py: boom"]
        failed = [f for f in report.file_breakdown if f.status == "failed"]
        assert [(f.filename, f.lines) for f in failed] == [("utils.py", 0)]


class TestBatchReport:
    def test_totals(self, reporter, report_factory):
        reports = [
            report_factory("a", quality=80.0, time_taken=0.1, files=8, lines=300),
            report_factory("b", quality=100.0, time_taken=0.2, files=8, lines=401),
            report_factory("c", status=MigrationStatus.FAILED, quality=30.0, time_taken=0.3, files=7, lines=200),
        ]
        batch = reporter.generate_batch_report(reports)
        assert batch.total_capsules == 3
        assert batch.successful_migrations == 2
        assert batch.failed_migrations == 1
        assert batch.successful_migrations + batch.failed_migrations == batch.total_capsules
        assert batch.total_time_taken == pytest.approx(0.6)
        assert batch.avg_quality_score == pytest.approx(70.0)
        assert batch.summary.total_files == 23
        assert batch.summary.total_lines == 901
        assert batch.summary.avg_lines_per_capsule == 300
        assert batch.reports == reports

    def test_unreported_failures(self, reporter, report_factory):
        batch = reporter.generate_batch_report(
            [report_factory("a"), report_factory("b")], total_capsules=3, unreported_failures=1
        )
        assert batch.total_capsules == 3
        assert batch.failed_migrations == 1
        assert len(batch.reports) == 2

    def test_empty_batch(self, reporter):
        batch = reporter.generate_batch_report([])
        assert batch.total_capsules == 0
        assert batch.avg_quality_score == 0
        assert batch.summary.avg_lines_per_capsule == 0

    def test_inconsistent_total_rejected(self, reporter, report_factory):
        with pytest.raises(ReportError, match="2 migrations reported for 1 capsules") as info:
            reporter.generate_batch_report([report_factory("a"), report_factory("b")], total_capsules=1)
        assert info.value.code == ErrorCode.REPORT_ERROR
        assert info.value.details == {"total_capsules": 1, "reported": 2}


class TestProgressDashboard:
    def test_snapshot(self, reporter, report_factory):
        reports = [report_factory(name, time_taken=0.1) for name in ("one", "two", "three")]
        dashboard = reporter.generate_progress_dashboard(total=10, processed=4, reports=reports)
        assert dashboard.success_count == 3
        assert dashboard.failed_count == 1
        assert dashboard.percent_complete == pytest.approx(40.0)
        assert dashboard.avg_time_per_capsule == pytest.approx(0.1)
        assert dashboard.estimated_time_remaining == pytest.approx(0.6)
        assert dashboard.current_capsule == "Three"

    def test_empty(self, reporter):
        dashboard = reporter.generate_progress_dashboard(total=0, processed=0, reports=[])
        assert dashboard.percent_complete == 0.0
        assert dashboard.avg_time_per_capsule == 0.0
        assert dashboard.current_capsule == "N/A"

    def test_render(self, reporter, report_factory):
        console = Console(record=True, width=100)
        show_dashboard(reporter.generate_progress_dashboard(5, 2, [report_factory("one")]), console)
        text = console.export_text()
        assert "2/5 (40.0%)" in text
        assert "1 ok" in text
        assert "1 failed" in text


class TestMarkdown:
    def test_single_report(self, reporter):
        report = reporter.generate_report(parsed_capsule(), generation(), validation(), 0.25)
        report.validation.errors.append(ValidationIssue("MISSING_FILE", "Required file missing: README.md", file="README.md"))
        markdown = reporter.generate_markdown_report(report)
        assert markdown.startswith("# Migration Report: Cache")
        assert "**Status**: ✅ COMPLETE" in markdown
        assert "**Quality Score**: 85.0/100" in markdown
        assert "| Files | 2 | 2 | 0 |" in markdown
        assert "| Lines of Code | 150 | 5 | -145 |" in markdown
        assert "- **Platforms**: server, browser" in markdown
        assert "- **MISSING_FILE**: Required file missing: README.md" in markdown
        assert "1. Implement utils.run" in markdown

    def test_batch_report(self, reporter, report_factory):
        batch = reporter.generate_batch_report(
            [
                report_factory("a"),
                report_factory("b", status=MigrationStatus.FAILED, notes=["Failed to generate utils.py: boom"]),
            ]
        )
        markdown = reporter.generate_batch_markdown_report(batch)
        assert markdown.startswith("# Batch Migration Report")
        assert "- **Successful**: ✅ 1 (50.0%)" in markdown
        assert "| A | ✅ complete | auto | 0.10 | 90.0/100 | 8 | 400 |" in markdown
        assert "## Failed Migrations Detail" in markdown
        assert "- Failed to generate utils.py: boom" in markdown


class TestSaving:
    def test_save_batch_report(self, reporter, report_factory, tmp_path):
        batch = reporter.generate_batch_report([report_factory("alpha"), report_factory("beta")])
        reports_dir = tmp_path / "reports"
        written = reporter.save_batch_report(batch, reports_dir)

        assert (reports_dir / BATCH_MARKDOWN).is_file()
        assert (reports_dir / BATCH_JSON).is_file()
        assert (reports_dir / INDIVIDUAL_DIR / "alpha-migration-report.md").is_file()
        assert (reports_dir / INDIVIDUAL_DIR / "beta-migration-report.json").is_file()
        assert len(written) == 6

        data = json.loads((reports_dir / BATCH_JSON).read_text(encoding="utf-8"))
        assert data["total_capsules"] == 2
        assert data["reports"][0]["status"] == "complete"
        assert data["reports"][0]["capsule"]["platforms"] == ["server"]
        assert datetime.fromisoformat(data["generated_at"]).tzinfo is not None

    def test_save_capsule_report(self, reporter, report_factory, tmp_path):
        paths = reporter.save_capsule_report(report_factory("alpha"), tmp_path)
        assert [p.name for p in paths] == ["alpha-migration-report.md", "alpha-migration-report.json"]

    def test_unwritable_path(self, reporter, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("")
        with pytest.raises(ReportError):
            reporter.save_report("content", blocker / "report.md")


class TestToJsonable:
    def test_enums_and_paths(self):
        class Color(str, Enum):
            RED = "red"

        assert to_jsonable(Color.RED) == "red"
        assert to_jsonable(Path("/tmp/x")) == "/tmp/x"
        assert to_jsonable({"a": (1, 2), "b": {3}}) == {"a": [1, 2], "b": [3]}

    def test_dataclass_fields_only(self):
        file = GeneratedFile(path="p", content="a\nb", size=3)
        assert to_jsonable(file) == {"path": "p", "content": "a\nb", "size": 3}
