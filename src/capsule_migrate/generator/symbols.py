"""Names the generated capsule defines, and name resolution for carried declarations."""

from __future__ import annotations

import builtins
import keyword
import re
from dataclasses import dataclass
from typing import Any, Iterable

from ..parser.treesitter import PythonSourceParser, iter_nodes, node_text

_BUILTIN_NAMES = frozenset(dir(builtins))


@dataclass(frozen=True)
class ErrorKind:
    constant: str
    class_name: str
    description: str
    default_message: str
    keywords: tuple[str, ...]
    severity: str = "low"


BASE_ERROR_KINDS: tuple[ErrorKind, ...] = (
    ErrorKind(
        "CONFIGURATION_ERROR",
        "ConfigurationError",
        "Invalid configuration provided.",
        "Invalid configuration",
        ("config", "configuration", "settings"),
        "medium",
    ),
    ErrorKind(
        "VALIDATION_ERROR",
        "ValidationError",
        "Input validation failed.",
        "Validation failed",
        ("validation", "invalid", "validate"),
        "medium",
    ),
    ErrorKind(
        "INITIALIZATION_ERROR",
        "InitializationError",
        "Service initialization failed.",
        "Initialization failed",
        ("initialization", "initialize", "init"),
    ),
    ErrorKind(
        "EXECUTION_ERROR",
        "ExecutionError",
        "Execution failed.",
        "Execution failed",
        ("execution", "execute", "run"),
        "high",
    ),
    ErrorKind(
        "RESOURCE_ERROR",
        "ResourceError",
        "Resource not available.",
        "Resource error",
        ("resource", "allocation"),
    ),
    ErrorKind(
        "TIMEOUT_ERROR",
        "OperationTimeoutError",
        "Operation timed out.",
        "Operation timed out",
        ("timeout", "timed out", "deadline"),
        "high",
    ),
    ErrorKind(
        "PERMISSION_ERROR",
        "PermissionDeniedError",
        "Permission denied.",
        "Permission denied",
        ("permission", "access denied", "forbidden", "unauthorized"),
    ),
    ErrorKind(
        "NOT_FOUND_ERROR",
        "NotFoundError",
        "Resource not found.",
        "Resource not found",
        ("not found", "missing", "does not exist"),
    ),
)

NETWORK_ERROR_KIND = ErrorKind(
    "NETWORK_ERROR",
    "NetworkError",
    "Network operation failed.",
    "Network error",
    ("network", "connection", "socket", "http", "request"),
)
FILE_SYSTEM_ERROR_KIND = ErrorKind(
    "FILE_SYSTEM_ERROR",
    "FileSystemError",
    "File system operation failed.",
    "File system error",
    ("file", "directory", "path", "errno"),
)
DATABASE_ERROR_KIND = ErrorKind(
    "DATABASE_ERROR",
    "DatabaseError",
    "Database operation failed.",
    "Database error",
    ("database", "query", "connection", "sql"),
)

CATCH_ALL_ERROR_KINDS: tuple[ErrorKind, ...] = (
    ErrorKind(
        "RESOURCE_EXHAUSTED_ERROR",
        "ResourceExhaustedError",
        "Resource exhausted (memory, connections, etc.).",
        "Resource exhausted",
        ("exhausted", "memory", "out of memory", "limit exceeded"),
        "critical",
    ),
    ErrorKind(
        "FATAL_ERROR",
        "FatalError",
        "Fatal error, the service cannot continue.",
        "Fatal error",
        ("fatal", "critical", "unrecoverable"),
        "critical",
    ),
    ErrorKind(
        "UNKNOWN_ERROR",
        "UnknownError",
        "Unknown error occurred.",
        "Unknown error",
        (),
    ),
)

ALL_ERROR_KINDS = (
    BASE_ERROR_KINDS
    + (NETWORK_ERROR_KIND, FILE_SYSTEM_ERROR_KIND, DATABASE_ERROR_KIND)
    + CATCH_ALL_ERROR_KINDS
)

BASE_CONFIG_FIELDS = (
    "debug",
    "timeout",
    "retry_attempts",
    "retry_delay",
    "network_timeout",
    "max_connections",
    "base_path",
    "encoding",
    "connection_string",
    "pool_size",
)

# Names importable in the generated types module without qualification
TYPING_NAMES = frozenset(
    {
        "Any",
        "Annotated",
        "Awaitable",
        "Callable",
        "Dict",
        "FrozenSet",
        "Iterable",
        "List",
        "Literal",
        "Mapping",
        "NamedTuple",
        "NewType",
        "Optional",
        "Protocol",
        "Sequence",
        "Set",
        "Tuple",
        "Type",
        "TypedDict",
        "TypeVar",
        "Union",
    }
)
ENUM_NAMES = frozenset({"Enum", "IntEnum", "Flag", "IntFlag", "auto"})

# Module-level imports of the generated files; carried names must not shadow them
IMPORTED_NAMES = frozenset(
    {
        "annotations",
        "asyncio",
        "copy",
        "dataclass",
        "datetime",
        "field",
        "fields",
        "asdict",
        "is_dataclass",
        "logging",
        "logger",
        "math",
        "re",
        "replace",
        "sys",
        "time",
        "timezone",
        "T",
        "K",
    }
)

UTILITY_NAMES = (
    "validate_config",
    "merge_config",
    "is_defined",
    "is_non_empty_string",
    "is_valid_number",
    "is_positive_number",
    "is_non_negative_number",
    "sanitize_string",
    "truncate",
    "to_camel_case",
    "to_pascal_case",
    "to_snake_case",
    "sleep",
    "retry_with_backoff",
    "with_timeout",
    "deep_clone",
    "deep_equal",
    "pick",
    "omit",
    "to_error",
    "get_error_message",
    "is_error_of_type",
    "chunk",
    "unique",
    "group_by",
)

CONSTANT_NAMES = (
    "DEFAULT_CONFIG",
    "INITIAL_STATS",
    "MAX_RETRY_ATTEMPTS",
    "RETRY_DELAY_BASE",
    "RETRY_BACKOFF_MULTIPLIER",
    "DEFAULT_TIMEOUT",
    "MAX_TIMEOUT",
    "NETWORK_TIMEOUT",
    "MAX_CONNECTIONS",
    "CONNECTION_IDLE_TIMEOUT",
    "MAX_REQUEST_SIZE",
    "MAX_RESPONSE_SIZE",
    "DEFAULT_ENCODING",
    "MAX_FILE_SIZE",
    "DEFAULT_FILE_PERMISSIONS",
    "DEFAULT_DIR_PERMISSIONS",
    "FILE_BUFFER_SIZE",
    "DB_POOL_SIZE",
    "DB_CONNECTION_TIMEOUT",
    "DB_QUERY_TIMEOUT",
    "DB_MAX_RETRIES",
    "DB_POOL_IDLE_TIMEOUT",
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
)


def error_kinds(
    has_network: bool = False, has_file_system: bool = False, has_database: bool = False
) -> tuple[ErrorKind, ...]:
    """Error kinds of a generated capsule, in declaration order."""
    kinds = list(BASE_ERROR_KINDS)
    if has_network:
        kinds.append(NETWORK_ERROR_KIND)
    if has_file_system:
        kinds.append(FILE_SYSTEM_ERROR_KIND)
    if has_database:
        kinds.append(DATABASE_ERROR_KIND)
    kinds.extend(CATCH_ALL_ERROR_KINDS)
    return tuple(kinds)


def safe_class_name(class_name: str) -> str:
    """Avoid a base error class that shadows a builtin or a generated error kind."""
    base_error = f"{class_name}Error"
    taken = {kind.class_name for kind in ALL_ERROR_KINDS} | {"CapsuleDescriptor"}
    if base_error in taken or base_error in _BUILTIN_NAMES or class_name in _BUILTIN_NAMES:
        return f"{class_name}Capsule"
    return class_name


def error_guard_name(class_name: str) -> str:
    """``NotFoundError`` -> ``is_not_found_error``."""
    snake = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", "_", class_name).lower()
    return f"is_{snake}"


def generated_names(class_name: str, module_name: str, constant_name: str) -> frozenset[str]:
    """Every public name the eight generated files can define."""
    c = class_name
    names = {
        # types
        "Platform",
        "PlatformCapabilities",
        f"{c}Config",
        f"{c}Input",
        f"{c}Result",
        f"{c}Stats",
        f"{c}ServiceProtocol",
        f"{c}ServiceState",
        f"{c}OperationStatus",
        f"{c}Event",
        f"{c}EventHandler",
        "ValidationResult",
        "ValidatorFunction",
        "CapsuleDescriptor",
        # errors
        f"{c}ErrorType",
        f"{c}Error",
        error_guard_name(f"{c}Error"),
        "parse_error_type",
        "format_error",
        "get_error_severity",
        # adapters
        f"{c}Adapter",
        "BaseAdapter",
        "ServerAdapter",
        "BrowserAdapter",
        "UniversalAdapter",
        "PLATFORM_CAPABILITIES",
        "create_adapter",
        "get_available_adapters",
        "detect_platform",
        "get_platform_capabilities",
        # service
        f"{c}Service",
        f"create_{module_name}",
        f"create_{module_name}_initialized",
        # index
        f"{constant_name}_CAPSULE",
    }
    for kind in ALL_ERROR_KINDS:
        names.add(kind.class_name)
        names.add(error_guard_name(kind.class_name))
    names.update(UTILITY_NAMES)
    names.update(CONSTANT_NAMES)
    names.update(IMPORTED_NAMES)
    names.update(TYPING_NAMES)
    names.update(ENUM_NAMES)
    return frozenset(names)


_PARSER = PythonSourceParser()

# (parent type, field) pairs whose identifier is a binding or a member name
_NON_REFERENCE_FIELDS = (
    ("attribute", "attribute"),
    ("keyword_argument", "name"),
    ("function_definition", "name"),
    ("class_definition", "name"),
    ("default_parameter", "name"),
    ("typed_default_parameter", "name"),
    ("assignment", "left"),
)
_BINDING_PARENTS = frozenset(
    {
        "parameters",
        "lambda_parameters",
        "typed_parameter",
        "list_splat_pattern",
        "dictionary_splat_pattern",
        "pattern_list",
        "tuple_pattern",
    }
)


def _is_reference(node: Any) -> bool:
    parent = node.parent
    if parent is None:
        return True
    if parent.type in _BINDING_PARENTS:
        return False
    for parent_type, field_name in _NON_REFERENCE_FIELDS:
        if parent.type == parent_type and parent.child_by_field_name(field_name) == node:
            return False
    return True


def referenced_names(source: str) -> set[str]:
    """Free identifiers in a declaration's source text.

    The text is parsed with tree-sitter; attribute names, keyword-argument
    names and the names a declaration binds itself are not references.
    """
    tree = _PARSER.parse(source.encode("utf-8"))
    names: set[str] = set()
    for node in iter_nodes(tree.root_node):
        if node.type != "identifier" or not _is_reference(node):
            continue
        name = node_text(node)
        if not keyword.issoftkeyword(name):
            names.add(name)
    return names


def unresolved_names(source: str, available: Iterable[str]) -> set[str]:
    known = _BUILTIN_NAMES | TYPING_NAMES | set(available)
    return {name for name in referenced_names(source) if name not in known}
