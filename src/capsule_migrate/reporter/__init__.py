"""Migration reports: records, Markdown and JSON."""

from .dashboard import dashboard_table, show_dashboard
from .markdown import render_batch_report, render_report
from .reporter import BATCH_JSON, BATCH_MARKDOWN, INDIVIDUAL_DIR, MigrationReporter
from .serializers import to_jsonable

__all__ = [
    "BATCH_JSON",
    "BATCH_MARKDOWN",
    "INDIVIDUAL_DIR",
    "MigrationReporter",
    "dashboard_table",
    "render_batch_report",
    "render_report",
    "show_dashboard",
    "to_jsonable",
]
