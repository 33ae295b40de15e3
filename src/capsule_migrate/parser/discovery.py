"""Capsule directory scanning and metadata extraction."""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any, Optional

from ..exceptions import ParserError
from ..models import CapsuleMetadata, Platform

logger = logging.getLogger(__name__)

MANIFEST_NAME = "pyproject.toml"

EXCLUDED_DIRS = frozenset(
    {
        "__pycache__",
        ".git",
        ".venv",
        "venv",
        "node_modules",
        "build",
        "dist",
        ".tox",
        ".mypy_cache",
        ".pytest_cache",
        ".ruff_cache",
        ".eggs",
    }
)

# Checked in order; first substring hit wins
CATEGORY_RULES: list[tuple[tuple[str, ...], str]] = [
    (("auth",), "Authentication"),
    (("database", "db"), "Infrastructure"),
    (("logger", "log"), "Infrastructure"),
    (("http", "api"), "API Integration"),
    (("cache",), "Infrastructure"),
    (("queue",), "Infrastructure"),
    (("email",), "Messaging"),
    (("payment",), "API Integration"),
    (("validation",), "Data Processing"),
    (("crypto",), "Cryptography"),
]

_REQUIREMENT_NAME = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)")


def _is_excluded_dir(name: str) -> bool:
    return name in EXCLUDED_DIRS or name.startswith(".") or name.endswith(".egg-info")


def _is_test_file(name: str) -> bool:
    return name == "conftest.py" or name.startswith("test_") or name.endswith("_test.py")


def find_source_files(root: Path, include_tests: bool = False) -> list[Path]:
    """Eligible ``.py`` files under ``root``, sorted for deterministic output."""
    found: list[Path] = []
    for path in sorted(root.rglob("*.py")):
        relative_parts = path.relative_to(root).parts
        directories = relative_parts[:-1]
        if any(_is_excluded_dir(part) for part in directories):
            continue
        if not include_tests:
            if any("test" in part.lower() for part in directories):
                continue
            if _is_test_file(path.name):
                continue
        if path.is_file():
            found.append(path)
    return found


def find_capsule_dirs(base: Path) -> list[Path]:
    """Immediate subdirectories of ``base`` that hold Python sources or a manifest."""
    if not base.is_dir():
        return []
    capsules: list[Path] = []
    for entry in sorted(base.iterdir()):
        if not entry.is_dir() or _is_excluded_dir(entry.name):
            continue
        has_sources = any(child.suffix == ".py" for child in entry.iterdir() if child.is_file())
        if has_sources or (entry / MANIFEST_NAME).exists() or (entry / "__init__.py").exists():
            capsules.append(entry)
    return capsules


def load_manifest(root: Path) -> dict[str, Any]:
    """Parsed ``pyproject.toml`` of a capsule, or an empty dict when absent."""
    manifest = root / MANIFEST_NAME
    if not manifest.exists():
        return {}
    try:
        import tomllib
    except ModuleNotFoundError:
        import tomli as tomllib  # type: ignore

    try:
        with open(manifest, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise ParserError(f"Invalid manifest: {e}", details={"path": str(manifest)})


def to_capsule_id(name: str) -> str:
    return re.sub(r"[\s_]+", "-", name.strip().lower())


def to_display_name(name: str) -> str:
    words = re.split(r"[-_\s]+", name.strip())
    return " ".join(w[:1].upper() + w[1:] for w in words if w)


def infer_category(directory_name: str) -> str:
    lowered = directory_name.lower()
    for needles, category in CATEGORY_RULES:
        if any(needle in lowered for needle in needles):
            return category
    return "Utilities"


def _parse_platforms(raw: Any) -> tuple[Platform, ...]:
    if not raw:
        return (Platform.SERVER,)
    platforms: list[Platform] = []
    for value in raw:
        try:
            platform = Platform(str(value).lower())
        except ValueError:
            logger.warning(f"Ignoring unknown platform '{value}' in capsule manifest")
            continue
        if platform not in platforms:
            platforms.append(platform)
    return tuple(platforms) or (Platform.SERVER,)


def _requirement_names(requirements: Any) -> tuple[str, ...]:
    names: list[str] = []
    for requirement in requirements or ():
        match = _REQUIREMENT_NAME.match(str(requirement))
        if match:
            names.append(match.group(1))
    return tuple(names)


def _first_author(authors: Any) -> Optional[str]:
    if isinstance(authors, list) and authors:
        first = authors[0]
        if isinstance(first, dict):
            return first.get("name") or first.get("email")
        return str(first)
    return None


def _license_text(license_field: Any) -> Optional[str]:
    if isinstance(license_field, dict):
        return license_field.get("text") or license_field.get("file")
    return str(license_field) if license_field else None


def extract_metadata(root: Path) -> CapsuleMetadata:
    """Capsule identity from the manifest, falling back to the directory name."""
    manifest = load_manifest(root)
    project = manifest.get("project", {}) if isinstance(manifest.get("project"), dict) else {}
    tool = manifest.get("tool", {}) if isinstance(manifest.get("tool"), dict) else {}
    capsule = tool.get("capsule", {}) if isinstance(tool.get("capsule"), dict) else {}

    name = capsule.get("name") or project.get("name") or root.name.replace("capsule-", "", 1)

    return CapsuleMetadata(
        id=to_capsule_id(capsule.get("id") or name),
        name=to_display_name(name),
        category=capsule.get("category") or infer_category(root.name),
        description=project.get("description") or f"{name} capsule",
        version=str(project.get("version") or "1.0.0"),
        platforms=_parse_platforms(capsule.get("platforms")),
        tags=tuple(str(t) for t in capsule.get("tags", ())),
        dependencies=_requirement_names(project.get("dependencies")),
        author=_first_author(project.get("authors")),
        license=_license_text(project.get("license")),
    )
