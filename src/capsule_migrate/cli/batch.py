"""Batch command: migrate every capsule under a directory."""

from pathlib import Path
from typing import Optional

import typer

from ..batch import BatchMigrationConfig, find_capsule_dirs, run_batch_migration
from ..exceptions import CapsuleMigrateError, OrchestrationError
from ..logging_config import setup_logging
from . import app
from ._common import MODE_CHOICE, console, default_output, resolve_config, score_style


@app.command()
def batch(
    input_dir: Path = typer.Argument(
        ..., metavar="INPUT_DIR", help="Directory whose subdirectories are capsules"
    ),
    output_dir: Optional[Path] = typer.Argument(None, help="Output root (default: <input>-migrated)"),
    parallel: Optional[int] = typer.Option(
        None, "--parallel", "-p", help="Capsules migrated concurrently per group", min=1
    ),
    mode: Optional[str] = typer.Option(
        None,
        "--mode",
        "-m",
        help="Migration mode: auto | semi | manual",
        click_type=MODE_CHOICE,
    ),
    no_tidy: bool = typer.Option(False, "--no-tidy", help="Skip the whitespace tidy pass"),
    no_reports: bool = typer.Option(False, "--no-reports", help="Do not write report files"),
    stop_on_error: bool = typer.Option(
        False, "--stop-on-error", help="Abort on the first failing capsule"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
    log_file: Optional[Path] = typer.Option(
        None, "--log-file", help="Append a DEBUG log of the run to this file", dir_okay=False
    ),
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
    Migrate all capsules in a directory, a group at a time.

    Exits 1 if any capsule failed.

    [bold cyan]Examples:[/bold cyan]

      capsule-migrate batch ./capsules ./migrated --parallel 4

      capsule-migrate batch ./capsules --log-file batch.log
    """
    logger = setup_logging(verbose=verbose, log_file=log_file)

    input_dir = input_dir.resolve()
    capsules = find_capsule_dirs(input_dir)
    if not capsules:
        console.print(f"[yellow]No capsules found in {input_dir}[/yellow]")
        raise typer.Exit(1)
    output_root = output_dir.resolve() if output_dir is not None else default_output(input_dir)

    try:
        settings = resolve_config(
            config=config,
            mode=mode,
            no_tidy=no_tidy,
            no_reports=no_reports,
            parallel=parallel,
            stop_on_error=stop_on_error,
            verbose=verbose,
        )
        batch_config = BatchMigrationConfig(
            input_dirs=capsules,
            output_base_dir=output_root,
            parallel=settings.parallel,
            mode=settings.mode,
            tidy=settings.tidy,
            generate_reports=settings.generate_reports,
            stop_on_error=settings.stop_on_error,
            include_tests=settings.include_tests,
            thresholds=settings.thresholds,
        )
        result = run_batch_migration(batch_config, console=console)

    except OrchestrationError as e:
        console.print(f"[red]Batch aborted:[/red] {e.message}")
        raise typer.Exit(1)

    except CapsuleMigrateError as e:
        logger.error(f"{e.__class__.__name__}: {e}")
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Batch interrupted[/yellow]")
        raise typer.Exit(130)

    console.print()
    console.print("[bold cyan]BATCH MIGRATION COMPLETE[/bold cyan]")
    console.print(
        f"Successful: [green]{result.successful_migrations}[/green]/{result.total_capsules}  "
        f"Failed: [red]{result.failed_migrations}[/red]/{result.total_capsules}"
    )
    style = score_style(result.avg_quality_score)
    console.print(f"Avg quality: [{style}]{result.avg_quality_score:.1f}/100[/{style}]")
    console.print(f"Total lines generated: {result.summary.total_lines:,}")
    if batch_config.generate_reports:
        console.print(f"[dim]Reports saved to {batch_config.reports_dir}[/dim]")

    if result.failed_migrations > 0:
        raise typer.Exit(1)
