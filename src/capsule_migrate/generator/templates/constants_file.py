"""constants.py: defaults, limits, error messages and carried-over constants."""

from __future__ import annotations

from ...models import TemplateContext
from ..symbols import error_kinds
from ._common import block, comment_block, dunder_all, module_docstring, render

FILENAME = "constants.py"

TEMPLATE = '''\
$docstring

from __future__ import annotations

from typing import Any, Dict, List, Set

from .adapters import detect_platform
from .types import ${c}Config, ${c}Stats, Platform

DEFAULT_CONFIG = ${c}Config()
INITIAL_STATS = ${c}Stats()

# Retry policy
MAX_RETRY_ATTEMPTS = 5
RETRY_DELAY_BASE = 1.0
RETRY_BACKOFF_MULTIPLIER = 2

# Timeouts, in seconds
DEFAULT_TIMEOUT = 30.0
MAX_TIMEOUT = 300.0

$capability_constants
# Validation limits
MAX_INPUT_SIZE = 1024 * 1024
MIN_TIMEOUT = 0.1
MAX_RETRIES = 10

ERROR_MESSAGES: Dict[str, str] = {
$error_messages
}

CURRENT_PLATFORM: Platform = detect_platform()

VERSION = $version

MIN_PLATFORM_VERSIONS: Dict[str, str] = {
$platform_versions
}

FEATURES: Dict[str, bool] = {
    "file_system": $has_file_system,
    "network": $has_network,
    "database": $has_database,
    "async": $is_async,
    "stats": $include_stats,
    "multi_platform": $is_multi_platform,
}

LIMITS: Dict[str, Any] = {
    "max_input_size": MAX_INPUT_SIZE,
    "min_timeout": MIN_TIMEOUT,
    "max_timeout": MAX_TIMEOUT,
    "max_retries": MAX_RETRIES,
}

DEFAULTS: Dict[str, Any] = {
    "timeout": DEFAULT_TIMEOUT,
    "retry_attempts": DEFAULT_CONFIG.retry_attempts,
    "retry_delay": DEFAULT_CONFIG.retry_delay,
}
$carried

$all
'''

NETWORK_CONSTANTS = """\
# Network
NETWORK_TIMEOUT = 10.0
MAX_CONNECTIONS = 10
CONNECTION_IDLE_TIMEOUT = 60.0
MAX_REQUEST_SIZE = 10 * 1024 * 1024
MAX_RESPONSE_SIZE = 50 * 1024 * 1024
"""

FILE_SYSTEM_CONSTANTS = """\
# File system
DEFAULT_ENCODING = "utf-8"
MAX_FILE_SIZE = 100 * 1024 * 1024
DEFAULT_FILE_PERMISSIONS = 0o644
DEFAULT_DIR_PERMISSIONS = 0o755
FILE_BUFFER_SIZE = 64 * 1024
"""

DATABASE_CONSTANTS = """\
# Database
DB_POOL_SIZE = 10
DB_CONNECTION_TIMEOUT = 5.0
DB_QUERY_TIMEOUT = 30.0
DB_MAX_RETRIES = 3
DB_POOL_IDLE_TIMEOUT = 300.0
"""

# Empty literals need an annotation to type-check
EMPTY_CONTAINER_TYPES = {"[]": "List[Any]", "{}": "Dict[Any, Any]", "set()": "Set[Any]"}

# Minimum runtime per platform
PLATFORM_VERSIONS = {
    "server": "CPython 3.9",
    "browser": "Pyodide 0.23",
    "mobile": "CPython 3.9",
    "desktop": "CPython 3.9",
    "universal": "CPython 3.9",
}


def _capability_constants(ctx: TemplateContext) -> str:
    sections = []
    if ctx.has_network:
        sections.append(NETWORK_CONSTANTS)
    if ctx.has_file_system:
        sections.append(FILE_SYSTEM_CONSTANTS)
    if ctx.has_database:
        sections.append(DATABASE_CONSTANTS)
    return "\n".join(sections)


def _capability_names(ctx: TemplateContext) -> list[str]:
    names = []
    for enabled, section in (
        (ctx.has_network, NETWORK_CONSTANTS),
        (ctx.has_file_system, FILE_SYSTEM_CONSTANTS),
        (ctx.has_database, DATABASE_CONSTANTS),
    ):
        if enabled:
            names += [line.split(" = ", 1)[0] for line in section.splitlines() if " = " in line]
    return names


def _carried(ctx: TemplateContext) -> str:
    if not ctx.carried_constants:
        return ""
    lines = ["", "# Carried over from the original capsule"]
    for const in ctx.carried_constants:
        annotation = EMPTY_CONTAINER_TYPES.get("".join(const.value.split()))
        target = f"{const.name}: {annotation}" if annotation else const.name
        lines.append(comment_block(const.doc) + f"{target} = {const.value}")
    return "\n".join(lines) + "\n"


def defined_names(ctx: TemplateContext) -> list[str]:
    return [
        "DEFAULT_CONFIG",
        "INITIAL_STATS",
        "MAX_RETRY_ATTEMPTS",
        "RETRY_DELAY_BASE",
        "RETRY_BACKOFF_MULTIPLIER",
        "DEFAULT_TIMEOUT",
        "MAX_TIMEOUT",
        *_capability_names(ctx),
        "MAX_INPUT_SIZE",
        "MIN_TIMEOUT",
        "MAX_RETRIES",
        "ERROR_MESSAGES",
        "CURRENT_PLATFORM",
        "VERSION",
        "MIN_PLATFORM_VERSIONS",
        "FEATURES",
        "LIMITS",
        "DEFAULTS",
        *[const.name for const in ctx.carried_constants],
    ]


def render_constants(ctx: TemplateContext) -> str:
    kinds = error_kinds(ctx.has_network, ctx.has_file_system, ctx.has_database)
    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, f"Constants for the {ctx.capsule.name} capsule."),
        c=ctx.class_name,
        capability_constants=_capability_constants(ctx),
        error_messages=block(f'    "{k.constant}": "{k.default_message}",' for k in kinds),
        version=repr(ctx.capsule.version),
        platform_versions=block(
            f'    "{p.value}": "{PLATFORM_VERSIONS[p.value]}",' for p in ctx.capsule.platforms
        ),
        has_file_system=ctx.has_file_system,
        has_network=ctx.has_network,
        has_database=ctx.has_database,
        is_async=ctx.is_async,
        include_stats=ctx.include_stats,
        is_multi_platform=ctx.is_multi_platform,
        carried=_carried(ctx),
        all=dunder_all(defined_names(ctx)),
    )
