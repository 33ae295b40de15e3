"""Rich rendering of a batch progress dashboard."""

from rich.console import Console
from rich.progress_bar import ProgressBar
from rich.table import Table

from ..models import ProgressDashboard


def dashboard_table(dashboard: ProgressDashboard) -> Table:
    table = Table(show_header=False, box=None, pad_edge=False)
    table.add_column("Label", style="dim", min_width=14)
    table.add_column("Value")

    table.add_row(
        "Progress",
        ProgressBar(
            total=max(dashboard.total_capsules, 1),
            completed=dashboard.processed_capsules,
            width=30,
        ),
    )
    table.add_row(
        "Completed",
        f"{dashboard.processed_capsules}/{dashboard.total_capsules} "
        f"({dashboard.percent_complete:.1f}%)",
    )
    table.add_row(
        "Results",
        f"[green]{dashboard.success_count} ok[/green]  [red]{dashboard.failed_count} failed[/red]",
    )
    table.add_row("Avg time", f"{dashboard.avg_time_per_capsule * 3600:.1f}s per capsule")
    table.add_row("Remaining", f"~{dashboard.estimated_time_remaining * 3600:.1f}s")
    table.add_row("Last", dashboard.current_capsule)
    return table


def show_dashboard(dashboard: ProgressDashboard, console: Console) -> None:
    console.print()
    console.print(dashboard_table(dashboard))
