"""Migrate command: one capsule to the eight-file layout."""

from pathlib import Path
from typing import Optional

import typer
from rich.table import Table

from ..exceptions import CapsuleMigrateError
from ..logging_config import setup_logging
from ..models import MigrationMode, MigrationStatus
from ..parser import CapsuleParser, ParserOptions, select_migration_mode
from ..pipeline import migrate_capsule
from ..reporter import MigrationReporter
from . import app
from ._common import (
    MODE_CHOICE,
    console,
    default_output,
    pipeline_options,
    resolve_config,
    score_style,
)


def _dry_run(input_path: Path, output: Path, config) -> None:
    parsed = CapsuleParser(ParserOptions(include_tests=config.include_tests)).parse_capsule(
        input_path
    )
    complexity = parsed.complexity
    mode = select_migration_mode(
        complexity.lines_of_code,
        complexity.cyclomatic_complexity,
        MigrationMode(config.mode),
        config.thresholds,
        capsule=parsed.metadata.id,
    )
    console.print(f"Parsed [bold]{parsed.metadata.name}[/bold] ({len(parsed.source_files)} files)")
    console.print(f"  LOC: {complexity.lines_of_code}")
    console.print(f"  Complexity: {complexity.cyclomatic_complexity}")
    console.print(f"  Estimated: {complexity.estimated_migration_hours:.1f}h")
    console.print(f"Migration mode: [bold]{mode.value}[/bold]")
    console.print()
    console.print(f"[dim]Dry run - would write {output / parsed.metadata.id}[/dim]")
    console.print("[green]Migration plan ready[/green]")


@app.command()
def migrate(
    input_path: Path = typer.Argument(..., metavar="INPUT", help="Capsule directory to migrate"),
    output: Optional[Path] = typer.Argument(
        None, help="Output root (default: <input>-migrated); files go to <output>/<id>"
    ),
    mode: Optional[str] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Migration mode: auto | semi | manual",
        click_type=MODE_CHOICE,
    ),
    no_tidy: bool = typer.Option(False, "--no-tidy", help="Skip the whitespace tidy pass"),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Parse and plan without writing files"
    ),
    no_report: bool = typer.Option(False, "--no-report", help="Do not write report files"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    config: Optional[Path] = typer.Option(
        None,
        "-c",
        "--config",
        help="Configuration file (TOML)",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
    ),
):
    """
    Migrate a capsule to the standard eight-file architecture.

    [bold cyan]Examples:[/bold cyan]

      capsule-migrate migrate ./capsules/cache

      capsule-migrate migrate ./capsules/cache ./out --mode semi
    """
    logger = setup_logging(verbose=verbose)

    input_path = input_path.resolve()
    if not input_path.exists():
        console.print(f"[red]Error:[/red] Input path does not exist: {input_path}")
        raise typer.Exit(1)
    if not input_path.is_dir():
        console.print(f"[red]Error:[/red] Input path is not a directory: {input_path}")
        raise typer.Exit(1)
    output_root = output.resolve() if output is not None else default_output(input_path)

    try:
        settings = resolve_config(
            config=config, mode=mode, no_tidy=no_tidy, no_reports=no_report, verbose=verbose
        )
        console.print(f"Input:  {input_path}")
        console.print(f"Output: {output_root}")
        console.print(f"Mode:   {settings.mode}")
        console.print()

        if dry_run:
            _dry_run(input_path, output_root, settings)
            return

        reporter = MigrationReporter()
        report = migrate_capsule(input_path, output_root, pipeline_options(settings), reporter)
        capsule_dir = output_root / report.capsule.id

        table = Table(show_header=True, pad_edge=True)
        table.add_column("File")
        table.add_column("Lines", justify="right")
        table.add_column("Status")
        for file in report.file_breakdown:
            style = "green" if file.status == "complete" else "red"
            table.add_row(file.filename, str(file.lines), f"[{style}]{file.status}[/{style}]")
        console.print(table)

        if report.manual_actions_required:
            console.print("[yellow]Manual actions required:[/yellow]")
            for action in report.manual_actions_required:
                console.print(f"  - {action}")
            console.print()

        for issue in report.validation.errors:
            console.print(f"[red]{issue.code}[/red] {issue.message}")

        style = score_style(report.quality_score)
        console.print(
            f"Mode: {report.mode.value}  "
            f"Quality: [{style}]{report.quality_score:.1f}/100[/{style}]"
        )

        if settings.generate_reports:
            paths = reporter.save_capsule_report(report, output_root / "reports")
            console.print(f"[dim]Report: {paths[0]}[/dim]")

        if report.status == MigrationStatus.FAILED:
            console.print("[red]Migration failed:[/red]")
            for note in report.notes:
                console.print(f"  - {note}")
            raise typer.Exit(1)

        console.print(f"[green]Migration complete:[/green] {capsule_dir}")

    except typer.Exit:
        raise

    except CapsuleMigrateError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Migration interrupted[/yellow]")
        raise typer.Exit(130)

    except Exception as e:
        logger.exception("Unexpected error during migration")
        console.print(f"[red]Unexpected error:[/red] {e}")
        raise typer.Exit(1)
