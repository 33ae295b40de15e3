"""Analyze command: metrics and a mode recommendation, nothing written."""

import json
from pathlib import Path

import typer
from rich.table import Table

from ..exceptions import CapsuleMigrateError
from ..logging_config import setup_logging
from ..models import MigrationMode
from ..parser import CapsuleParser, select_migration_mode
from ..reporter import to_jsonable
from . import app
from ._common import console

_RECOMMENDATIONS = {
    MigrationMode.AUTO: "This capsule can be migrated automatically.",
    MigrationMode.SEMI: "This capsule needs some manual follow-up after generation.",
    MigrationMode.MANUAL: "This capsule is complex; generate a migration guide and port by hand.",
}


@app.command()
def analyze(
    input_path: Path = typer.Argument(..., metavar="INPUT", help="Capsule directory"),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output in machine-readable JSON format",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
):
    """
    Analyze a capsule and recommend a migration mode.

    [bold cyan]Examples:[/bold cyan]

      capsule-migrate analyze ./capsules/cache

      capsule-migrate analyze ./capsules/cache --json
    """
    setup_logging(verbose=verbose, quiet=json_output)

    try:
        parsed = CapsuleParser().parse_capsule(input_path)
    except CapsuleMigrateError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    complexity = parsed.complexity
    analysis = parsed.analysis
    recommended = select_migration_mode(
        complexity.lines_of_code,
        complexity.cyclomatic_complexity,
        capsule=parsed.metadata.id,
    )
    counts = {
        "types": len(analysis.types),
        "interfaces": len(analysis.interfaces),
        "classes": len(analysis.classes),
        "functions": len(analysis.functions),
        "constants": len(analysis.constants),
        "errors": len(analysis.error_types),
    }

    # -- JSON output --
    if json_output:
        print(
            json.dumps(
                {
                    "metadata": to_jsonable(parsed.metadata),
                    "complexity": to_jsonable(complexity),
                    "quality": to_jsonable(parsed.quality),
                    "elements": counts,
                    "dependencies": analysis.dependencies,
                    "recommended_mode": recommended.value,
                },
                indent=2,
            )
        )
        return

    # -- Rich output --
    metadata = parsed.metadata
    console.print()
    console.print(f"[bold cyan]{metadata.name}[/bold cyan] [dim]{metadata.version}[/dim]")
    console.print(f"Category: {metadata.category}")
    if metadata.description:
        console.print(f"[dim]{metadata.description}[/dim]")
    console.print()

    table = Table(show_header=True, pad_edge=True)
    table.add_column("Metric", min_width=24)
    table.add_column("Value", justify="right")
    table.add_row("Lines of code", str(complexity.lines_of_code))
    table.add_row("Cyclomatic complexity", str(complexity.cyclomatic_complexity))
    table.add_row("Maintainability index", f"{complexity.maintainability_index:.1f}")
    table.add_row("Estimated migration", f"{complexity.estimated_migration_hours:.1f} hours")
    for label, count in counts.items():
        table.add_row(label.capitalize(), str(count))
    console.print(table)

    console.print()
    console.print(f"Recommended mode: [bold]{recommended.value}[/bold]")
    console.print(_RECOMMENDATIONS[recommended])
