"""Markdown rendering of migration reports."""

from __future__ import annotations

from typing import List

from ..models import BatchMigrationReport, MigrationReport, MigrationStatus

STATUS_ICONS = {
    MigrationStatus.COMPLETE: "✅",
    MigrationStatus.FAILED: "❌",
    MigrationStatus.IN_PROGRESS: "🔄",
    MigrationStatus.PENDING: "⏳",
}


def status_icon(status: MigrationStatus) -> str:
    return STATUS_ICONS.get(status, "❓")


def _timestamp(report) -> str:
    return report.generated_at.strftime("%Y-%m-%d %H:%M:%S %Z").strip()


def _signed(delta: int) -> str:
    return f"+{delta}" if delta > 0 else str(delta)


def _location(file: str, line) -> str:
    return f"{file}:{line}" if line else file


def render_report(report: MigrationReport) -> str:
    """Single-capsule report: metadata, metrics, files, validation, actions."""
    capsule = report.capsule
    lines: List[str] = [
        f"# Migration Report: {capsule.name}",
        "",
        f"**Status**: {status_icon(report.status)} {report.status.value.upper()}",
        f"**Mode**: {report.mode.value}",
        f"**Time Taken**: {report.time_taken:.2f} hours",
        f"**Quality Score**: {report.quality_score:.1f}/100",
        f"**Generated**: {_timestamp(report)}",
        "",
        "## Capsule Information",
        "",
        f"- **ID**: {capsule.id}",
        f"- **Category**: {capsule.category}",
        f"- **Description**: {capsule.description}",
        f"- **Version**: {capsule.version}",
        f"- **Platforms**: {', '.join(p.value for p in capsule.platforms)}",
        "",
        "## Code Metrics",
        "",
        "| Metric | Before | After | Change |",
        "|--------|--------|-------|--------|",
        f"| Files | {report.before.files} | {report.after.files} "
        f"| {_signed(report.after.files - report.before.files)} |",
        f"| Lines of Code | {report.before.lines} | {report.after.lines} "
        f"| {_signed(report.after.lines - report.before.lines)} |",
        "",
        "## Generated Files",
        "",
    ]

    for file in report.file_breakdown:
        icon = "✅" if file.status == "complete" else "⚠️"
        lines.append(f"### {icon} {file.filename}")
        lines.append("")
        lines.append(f"- **Lines**: {file.lines}")
        lines.append(f"- **Status**: {file.status}")
        if file.notes:
            lines.append("- **Notes**:")
            lines.extend(f"  - {note}" for note in file.notes)
        lines.append("")

    validation = report.validation
    lines += [
        "## Validation Results",
        "",
        f"**Overall**: {'✅ PASSED' if validation.is_valid else '❌ FAILED'}",
        "",
        "### Checks",
        "",
    ]
    for check in validation.checks:
        lines.append(f"- {'✅' if check.passed else '❌'} **{check.name}**: {check.message}")
    lines.append("")

    if validation.errors:
        lines += ["### ❌ Errors", ""]
        for error in validation.errors:
            lines.append(f"- **{error.code}**: {error.message}")
            if error.file:
                lines.append(f"  - File: {_location(error.file, error.line)}")
        lines.append("")

    if validation.warnings:
        lines += ["### ⚠️ Warnings", ""]
        for warning in validation.warnings:
            lines.append(f"- {warning.message}")
            if warning.file:
                lines.append(f"  - File: {_location(warning.file, warning.line)}")
            if warning.suggestion:
                lines.append(f"  - Suggestion: {warning.suggestion}")
        lines.append("")

    if report.manual_actions_required:
        lines += ["## 📋 Manual Actions Required", ""]
        lines.extend(
            f"{i}. {action}" for i, action in enumerate(report.manual_actions_required, 1)
        )
        lines.append("")

    if report.notes:
        lines += ["## 📝 Additional Notes", ""]
        lines.extend(f"- {note}" for note in report.notes)
        lines.append("")

    return "\n".join(lines)


def _share(count: int, total: int) -> str:
    return f"{count / total * 100:.1f}%" if total else "0.0%"


def render_batch_report(batch: BatchMigrationReport) -> str:
    """Aggregate report with one table row per capsule report."""
    total = batch.total_capsules
    lines: List[str] = [
        "# Batch Migration Report",
        "",
        f"**Generated**: {_timestamp(batch)}",
        "",
        "## Summary",
        "",
        f"- **Total Capsules**: {total}",
        f"- **Successful**: ✅ {batch.successful_migrations} "
        f"({_share(batch.successful_migrations, total)})",
        f"- **Failed**: ❌ {batch.failed_migrations} ({_share(batch.failed_migrations, total)})",
        f"- **Total Time**: {batch.total_time_taken:.2f} hours",
        f"- **Avg Quality Score**: {batch.avg_quality_score:.1f}/100",
        "",
        "## Statistics",
        "",
        f"- **Total Files Generated**: {batch.summary.total_files}",
        f"- **Total Lines Generated**: {batch.summary.total_lines:,}",
        f"- **Avg Lines per Capsule**: {batch.summary.avg_lines_per_capsule:,.0f}",
        "",
        "## Migration Results",
        "",
        "| Capsule | Status | Mode | Time (h) | Quality | Files | Lines |",
        "|---------|--------|------|----------|---------|-------|-------|",
    ]
    for report in batch.reports:
        lines.append(
            f"| {report.capsule.name} | {status_icon(report.status)} {report.status.value} "
            f"| {report.mode.value} | {report.time_taken:.2f} | {report.quality_score:.1f}/100 "
            f"| {report.after.files} | {report.after.lines} |"
        )
    lines.append("")

    failed = [r for r in batch.reports if r.status == MigrationStatus.FAILED]
    if failed:
        lines += ["## Failed Migrations Detail", ""]
        for report in failed:
            lines += [f"### ❌ {report.capsule.name}", ""]
            if report.notes:
                lines.append("**Errors**:")
                lines.extend(f"- {note}" for note in report.notes)
                lines.append("")

    return "\n".join(lines)
