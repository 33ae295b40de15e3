"""Configuration loading and management for capsule-migrate.

Configuration sources are merged in priority order (lowest to highest):
    1. Defaults (defined in MigrateConfig)
    2. Global config (~/.capsule-migrate.toml)
    3. Project config (./capsule-migrate.toml)
    4. Explicit config file
    5. Environment variables (CAPSULE_MIGRATE_* prefix)
    6. CLI overrides (passed as kwargs)

Example:
    >>> config = load_config(parallel=4, mode="semi")
    >>> config.parallel
    4
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Optional, get_type_hints

from .exceptions import ConfigurationError

Verbosity = Literal["quiet", "normal", "verbose"]

ENV_PREFIX = "CAPSULE_MIGRATE_"
VALID_MODES = ("auto", "semi", "manual")


@dataclass(frozen=True)
class ModeThresholds:
    """Size/complexity limits that drive migration mode selection.

    Attributes:
        auto_max_lines: Capsules strictly below this LOC may run fully automatic
        auto_max_complexity: ... and strictly below this cyclomatic complexity
        manual_min_lines: Above this LOC an automatic request is downgraded
        manual_min_complexity: Above this complexity an automatic request is downgraded
    """

    auto_max_lines: int = 500
    auto_max_complexity: int = 10
    manual_min_lines: int = 2000
    manual_min_complexity: int = 30

    def __post_init__(self) -> None:
        if self.auto_max_lines < 1 or self.auto_max_complexity < 1:
            raise ValueError("auto thresholds must be at least 1")
        if self.manual_min_lines < self.auto_max_lines:
            raise ValueError("manual_min_lines must not be below auto_max_lines")
        if self.manual_min_complexity < self.auto_max_complexity:
            raise ValueError("manual_min_complexity must not be below auto_max_complexity")


DEFAULT_THRESHOLDS = ModeThresholds()


@dataclass(frozen=True)
class MigrateConfig:
    """Configuration for migration runs.

    Attributes:
        mode: Requested migration mode (auto/semi/manual)
        parallel: Capsules migrated concurrently per batch group
        tidy: Run the whitespace tidy pass over generated files
        generate_reports: Write Markdown/JSON reports to disk
        stop_on_error: Abort a batch on the first failing capsule
        include_tests: Parse test modules of a capsule as well
        verbosity: Logging verbosity level
        thresholds: Mode selection thresholds
    """

    mode: str = "auto"
    parallel: int = 3
    tidy: bool = True
    generate_reports: bool = True
    stop_on_error: bool = False
    include_tests: bool = False
    verbosity: Verbosity = "normal"
    thresholds: ModeThresholds = field(default_factory=ModeThresholds)

    def __post_init__(self) -> None:
        if self.mode not in VALID_MODES:
            raise ValueError(f"mode must be one of {', '.join(VALID_MODES)}")
        if self.parallel < 1:
            raise ValueError("parallel must be at least 1")
        if self.verbosity not in ("quiet", "normal", "verbose"):
            raise ValueError("verbosity must be quiet, normal or verbose")


def load_config(config_file: Optional[Path] = None, **overrides) -> MigrateConfig:
    """Load configuration with auto-discovery and merging.

    Args:
        config_file: Optional explicit config file path
        **overrides: Direct overrides (typically from CLI flags). ``None``
            values are ignored so unset CLI options do not mask file values.

    Returns:
        Validated MigrateConfig instance

    Raises:
        ConfigurationError: If a config file or value is invalid
    """
    merged: dict = {}

    global_config = Path.home() / ".capsule-migrate.toml"
    if global_config.exists():
        merged.update(_load_toml_section(global_config))

    project_config = Path.cwd() / "capsule-migrate.toml"
    if project_config.exists():
        merged.update(_load_toml_section(project_config))

    if config_file is not None:
        if not config_file.exists():
            raise ConfigurationError(f"Config file not found: {config_file}")
        merged.update(_load_toml_section(config_file))

    merged.update(_load_env_vars())

    if overrides.pop("verbose", False):
        overrides["verbosity"] = "verbose"
    if overrides.pop("quiet", False):
        overrides["verbosity"] = "quiet"
    merged.update({k: v for k, v in overrides.items() if v is not None})

    thresholds = merged.pop("thresholds", None)
    if isinstance(thresholds, dict):
        try:
            merged["thresholds"] = ModeThresholds(**thresholds)
        except (TypeError, ValueError) as e:
            raise ConfigurationError(f"Invalid [thresholds] config: {e}")
    elif isinstance(thresholds, ModeThresholds):
        merged["thresholds"] = thresholds

    try:
        return MigrateConfig(**merged)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid configuration: {e}")


def _load_env_vars() -> dict[str, Any]:
    """Load configuration from CAPSULE_MIGRATE_* environment variables."""
    type_hints = get_type_hints(MigrateConfig)
    result: dict[str, Any] = {}

    for field_name in MigrateConfig.__dataclass_fields__:
        env_key = f"{ENV_PREFIX}{field_name.upper()}"
        env_value = os.environ.get(env_key)
        if env_value is None:
            continue

        try:
            parsed = _parse_env_value(env_value, type_hints.get(field_name))
        except ValueError as e:
            raise ConfigurationError(f"Invalid {env_key}: {e}")
        if parsed is not None:
            result[field_name] = parsed

    return result


def _parse_env_value(value: str, type_hint: Any) -> Any:
    """Parse an environment variable string to the field's type."""
    origin = getattr(type_hint, "__origin__", None)

    if type_hint is bool:
        lower = value.lower()
        if lower in ("true", "1", "yes", "on"):
            return True
        if lower in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"expected true/false, got '{value}'")

    if type_hint is int:
        return int(value)

    if type_hint is str or origin is Literal:
        return value

    # Nested tables (thresholds) are file-only
    return None


def _load_toml_section(path: Path) -> dict:
    """Load a TOML file, accepting either top-level keys or a [capsule-migrate] table."""
    try:
        data = _load_toml_file(path)
    except ConfigurationError:
        raise
    except Exception as e:
        raise ConfigurationError(f"Invalid config file '{path}': {e}")
    section = data.get("capsule-migrate")
    return dict(section) if isinstance(section, dict) else dict(data)


def _load_toml_file(path: Path) -> dict:
    try:
        import tomllib
    except ModuleNotFoundError:
        try:
            import tomli as tomllib  # type: ignore
        except ImportError:
            raise ConfigurationError(
                "TOML support requires Python 3.11+ or 'tomli' package. "
                "Install with: pip install tomli"
            )

    with open(path, "rb") as f:
        return tomllib.load(f)
