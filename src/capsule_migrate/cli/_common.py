"""Shared CLI helpers."""

from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from ..config import VALID_MODES, MigrateConfig, load_config
from ..pipeline import PipelineOptions
from ..models import MigrationMode

console = Console()

MODE_CHOICE = click.Choice(list(VALID_MODES), case_sensitive=False)


def resolve_config(
    config: Optional[Path] = None,
    mode: Optional[str] = None,
    no_tidy: bool = False,
    no_reports: bool = False,
    parallel: Optional[int] = None,
    stop_on_error: bool = False,
    verbose: bool = False,
) -> MigrateConfig:
    """Build configuration from CLI options; unset flags leave file values alone."""
    overrides = {}
    if mode is not None:
        overrides["mode"] = mode.lower()
    if no_tidy:
        overrides["tidy"] = False
    if no_reports:
        overrides["generate_reports"] = False
    if parallel is not None:
        overrides["parallel"] = parallel
    if stop_on_error:
        overrides["stop_on_error"] = True
    if verbose:
        overrides["verbose"] = True
    return load_config(config_file=config, **overrides)


def pipeline_options(config: MigrateConfig) -> PipelineOptions:
    return PipelineOptions(
        mode=MigrationMode(config.mode),
        tidy=config.tidy,
        include_tests=config.include_tests,
        thresholds=config.thresholds,
    )


def default_output(input_path: Path) -> Path:
    """``<input>-migrated`` next to the input directory."""
    return input_path.parent / f"{input_path.name}-migrated"


def score_style(score: float) -> str:
    if score >= 80:
        return "green"
    if score >= 50:
        return "yellow"
    return "red"
