"""
Logging for capsule-migrate.

Progress goes to stderr through rich, leaving stdout free for ``--json``
output. Batch groups migrate capsules on worker threads, so the optional log
file tags every line with the thread that wrote it.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER = "capsule_migrate"

FILE_FORMAT = "%(asctime)s %(levelname)-8s [%(threadName)s] %(name)s: %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def resolve_level(verbose: bool = False, quiet: bool = False) -> int:
    """ERROR when quiet, DEBUG when verbose, else INFO so ✓/✗ capsule lines show."""
    if quiet:
        return logging.ERROR
    if verbose:
        return logging.DEBUG
    return logging.INFO


def console_handler(verbose: bool = False) -> RichHandler:
    return RichHandler(
        console=Console(stderr=True),
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        markup=False,
        show_time=True,
        show_path=verbose,
    )


def file_handler(log_file: Union[str, Path]) -> logging.FileHandler:
    """Append-mode plain-text handler; missing parent directories are created."""
    path = Path(log_file)
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=FILE_DATE_FORMAT))
    # The file keeps DEBUG detail whatever the console shows
    handler.setLevel(logging.DEBUG)
    return handler


def setup_logging(
    verbose: bool = False,
    quiet: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> logging.Logger:
    """
    Configure console logging, and file logging when ``log_file`` is given.

    Args:
        verbose: DEBUG on the console, with source paths and traceback locals
        quiet: Only errors on the console
        log_file: Append a thread-tagged log of the run to this file

    Returns:
        The capsule_migrate logger
    """
    level = resolve_level(verbose, quiet)
    console = console_handler(verbose)
    console.setLevel(level)
    handlers: list[logging.Handler] = [console]
    if log_file:
        handlers.append(file_handler(log_file))

    logging.basicConfig(
        level=logging.WARNING, format="%(message)s", datefmt="[%X]", handlers=handlers, force=True
    )
    logger = logging.getLogger(ROOT_LOGGER)
    # DEBUG reaches the file handler; the console handler filters by its own level
    logger.setLevel(logging.DEBUG if log_file else level)
    return logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """
    Logger for a module, namespaced under ``capsule_migrate``.

    Args:
        name: Usually ``__name__``; None gives the package logger
    """
    if name is None:
        return logging.getLogger(ROOT_LOGGER)
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)
