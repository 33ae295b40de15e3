"""Strict type-check diagnostics for a generated capsule package.

The required modules are copied into a scratch package with a valid import
name (capsule ids may contain hyphens) and checked with ``mypy --strict`` in
a subprocess. Every reported error becomes a ``Diagnostic``; notes are
dropped. Nothing from the capsule is imported or executed.
"""

from __future__ import annotations

import os
import re
import shutil
import subprocess
import sys
import tempfile
import threading
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ..logging_config import get_logger

logger = get_logger(__name__)

SCRATCH_PACKAGE = "migrated_capsule"

# Reused across runs so typeshed is only analysed once per worker
MYPY_CACHE_ROOT = Path(tempfile.gettempdir()) / "capsule-migrate" / "mypy-cache"

MYPY_FLAGS = (
    "--strict",
    "--no-error-summary",
    "--no-color-output",
)

# path:line[:column]: severity: message
_OUTPUT_LINE = re.compile(
    r"^(?P<file>[^:\n]+?\.pyi?):(?P<line>\d+)(?::\d+)?: (?P<severity>error|note): (?P<message>.*)$"
)


@dataclass(frozen=True)
class Diagnostic:
    message: str
    file: str
    line: Optional[int] = None


def cache_dir() -> Path:
    """Cache for the calling thread; concurrent mypy runs never share one."""
    return MYPY_CACHE_ROOT / f"{os.getpid()}-{threading.get_ident()}"


def mypy_command(target: str, config_file: Path) -> List[str]:
    return [
        sys.executable,
        "-m",
        "mypy",
        *MYPY_FLAGS,
        "--config-file",
        str(config_file),
        "--cache-dir",
        str(cache_dir()),
        target,
    ]


def parse_mypy_output(output: str) -> List[Diagnostic]:
    """Turn mypy's line-oriented report into diagnostics, one per error."""
    diagnostics: List[Diagnostic] = []
    for raw in output.splitlines():
        match = _OUTPUT_LINE.match(raw.strip())
        if match is None or match["severity"] != "error":
            continue
        message = match["message"].replace(f'"{SCRATCH_PACKAGE}.', '".')
        diagnostics.append(Diagnostic(message, Path(match["file"]).name, int(match["line"])))
    return diagnostics


def collect_diagnostics(package_dir: Path, files: List[str]) -> List[Diagnostic]:
    """Type-check ``files`` (names relative to ``package_dir``) as one package."""
    if not files:
        return []

    with tempfile.TemporaryDirectory(prefix="capsule-migrate-") as scratch:
        root = Path(scratch)
        package = root / SCRATCH_PACKAGE
        package.mkdir()
        for filename in files:
            shutil.copyfile(package_dir / filename, package / filename)
        if "__init__.py" not in files:
            (package / "__init__.py").write_text("", encoding="utf-8")
        # an empty config keeps unrelated mypy.ini/pyproject settings out
        config_file = root / "mypy.ini"
        config_file.write_text("[mypy]\n", encoding="utf-8")

        command = mypy_command(SCRATCH_PACKAGE, config_file)
        logger.debug(f"Type-checking {package_dir.name}: {' '.join(command)}")
        completed = subprocess.run(
            command,
            cwd=root,
            capture_output=True,
            text=True,
            check=False,
        )

    diagnostics = parse_mypy_output(completed.stdout)
    if completed.returncode != 0 and not diagnostics:
        # a crash, a usage error or a missing mypy install
        detail = (completed.stderr or completed.stdout).strip().splitlines()
        reason = detail[-1] if detail else f"exit status {completed.returncode}"
        diagnostics.append(Diagnostic(f"Type checker failed: {reason}", package_dir.name))
    return diagnostics
