"""CLI entry point, registers all subcommands."""

from typing import Optional

import typer

from .. import __version__
from ._common import console

app = typer.Typer(
    name="capsule-migrate",
    help="Capsule Migrate - analyze, regenerate and validate capsules",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold cyan]capsule-migrate[/bold cyan] version [green]{__version__}[/green]")
        raise typer.Exit(0)


@app.callback()
def _root(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
):
    """Migrate capsules to the standard eight-file architecture."""


def main() -> None:
    app()


# Import subcommands to register them
from .migrate import migrate as _migrate  # noqa: F401, E402
from .analyze import analyze as _analyze  # noqa: F401, E402
from .batch import batch as _batch  # noqa: F401, E402
