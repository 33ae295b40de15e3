"""types.py: configuration, result, stats and descriptor types of a capsule."""

from __future__ import annotations

from ...models import InterfaceDefinition, TemplateContext, TypeDefinition
from ..symbols import ENUM_NAMES, TYPING_NAMES, referenced_names, unresolved_names
from ._common import block, comment_block, dunder_all, escape_docstring, module_docstring, render

FILENAME = "types.py"

BASE_TYPING_NAMES = frozenset(
    {"Any", "Awaitable", "Callable", "Dict", "List", "Literal", "Optional", "Protocol", "Tuple"}
)

TEMPLATE = '''\
$docstring

from __future__ import annotations

from dataclasses import dataclass, field
from typing import $typing_names
$extra_imports
Platform = Literal["server", "browser", "mobile", "desktop", "universal"]

$carried

@dataclass(frozen=True)
class ${c}Config:
    """Configuration accepted by ``${c}Service``."""

$config_fields


${c}Input = Dict[str, Any]


@dataclass
class ${c}Result:
    """Outcome of one ``execute`` call."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ${c}Stats:
    """Running counters kept by the service."""

$stats_fields


${c}ServiceState = Literal["uninitialized", "initializing", "ready", "executing", "error", "cleanup"]
${c}OperationStatus = Literal["pending", "running", "success", "failed", "cancelled"]


@dataclass
class ${c}Event:
    type: str
    timestamp: float
    data: Any = None


${c}EventHandler = Callable[[${c}Event], None]


class ${c}ServiceProtocol(Protocol):
    """Public surface of ``${c}Service``."""

    async def initialize(self) -> None: ...

    async def execute(self, data: ${c}Input) -> ${c}Result: ...

    async def cleanup(self) -> None: ...

    def get_stats(self) -> ${c}Stats: ...

    def is_initialized(self) -> bool: ...


@dataclass(frozen=True)
class PlatformCapabilities:
    platform: Platform
    supports_file_system: bool
    supports_network: bool
    supports_storage: bool
    supports_workers: bool
    supports_console_colors: bool


@dataclass
class ValidationResult:
    valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


ValidatorFunction = Callable[[Any], ValidationResult]


@dataclass(frozen=True)
class CapsuleDescriptor:
    """Static description of a capsule plus its factories."""

    id: str
    name: str
    version: str
    category: str
    description: str
    platforms: Tuple[Platform, ...]
    create: Callable[..., Any]
    create_initialized: Callable[..., Awaitable[Any]]
    default_config: Any = None
    tags: Tuple[str, ...] = ()
    author: Optional[str] = None
    license: Optional[str] = None

    def get_version(self) -> str:
        return self.version

    def get_platforms(self) -> Tuple[Platform, ...]:
        return self.platforms

    def is_platform_supported(self, platform: str) -> bool:
        return platform in self.platforms

    def get_default_config(self) -> Any:
        return self.default_config


$all
'''


def _config_fields(ctx: TemplateContext) -> list[str]:
    fields = [
        "    debug: bool = False",
        "    timeout: float = 30.0",
        "    retry_attempts: int = 3",
        "    retry_delay: float = 1.0",
    ]
    if ctx.has_network:
        fields += ["    network_timeout: float = 10.0", "    max_connections: int = 10"]
    if ctx.has_file_system:
        fields += ['    base_path: str = "."', '    encoding: str = "utf-8"']
    if ctx.has_database:
        fields += ['    connection_string: str = ""', "    pool_size: int = 10"]

    available = {d.name for d in ctx.carried_declarations}
    for config in ctx.carried_configs:
        type_text = config.type or "Any"
        if unresolved_names(type_text, available):
            type_text = "Any"
        default = config.default
        if default is not None and unresolved_names(default, available):
            default = None
        if default is None:
            line = f"    {config.name}: Optional[{type_text}] = None"
        elif default[:1] in "[{" or "(" in default.split("[", 1)[0]:
            line = f"    {config.name}: {type_text} = field(default_factory=lambda: {default})"
        else:
            line = f"    {config.name}: {type_text} = {default}"
        fields.append(comment_block(config.description, "    ") + line)
    return fields


def _stats_fields(ctx: TemplateContext) -> list[str]:
    fields = [
        "    total_operations: int = 0",
        "    successful_operations: int = 0",
        "    failed_operations: int = 0",
        "    average_execution_time: float = 0.0",
        "    last_execution_time: Optional[float] = None",
        "    uptime: float = 0.0",
    ]
    if ctx.has_network:
        fields += [
            "    active_connections: int = 0",
            "    bytes_sent: int = 0",
            "    bytes_received: int = 0",
        ]
    if ctx.has_file_system:
        fields += ["    files_read: int = 0", "    files_written: int = 0"]
    if ctx.has_database:
        fields += ["    queries_executed: int = 0", "    active_db_connections: int = 0"]
    return fields


def _render_declaration(decl: TypeDefinition | InterfaceDefinition) -> str:
    if isinstance(decl, TypeDefinition):
        if decl.kind == "enum":
            return comment_block(decl.doc) + decl.definition + "\n"
        return comment_block(decl.doc) + f"{decl.name} = {decl.definition}\n"

    bases = [decl.base] if decl.base == "NamedTuple" else [*decl.extends, decl.base]
    lines = [f"class {decl.name}({', '.join(bases)}):"]
    if decl.doc:
        lines.append(f'    """{escape_docstring(decl.doc)}"""')
        if decl.properties:
            lines.append("")
    for prop in decl.properties:
        lines.append(comment_block(prop.doc, "    ") + f"    {prop.name}: {prop.type or 'Any'}")
    if len(lines) == 1:
        lines.append("    pass")
    return "\n".join(lines) + "\n"


def _carried(ctx: TemplateContext) -> str:
    if not ctx.carried_declarations:
        return ""
    rendered = [_render_declaration(d) for d in ctx.carried_declarations]
    return "\n\n".join(rendered) + "\n"


def defined_names(ctx: TemplateContext) -> list[str]:
    c = ctx.class_name
    return [
        "Platform",
        *[d.name for d in ctx.carried_declarations],
        f"{c}Config",
        f"{c}Input",
        f"{c}Result",
        f"{c}Stats",
        f"{c}ServiceState",
        f"{c}OperationStatus",
        f"{c}Event",
        f"{c}EventHandler",
        f"{c}ServiceProtocol",
        "PlatformCapabilities",
        "ValidationResult",
        "ValidatorFunction",
        "CapsuleDescriptor",
    ]


def _typing_names(ctx: TemplateContext) -> list[str]:
    used = set(BASE_TYPING_NAMES)
    for decl in ctx.carried_declarations:
        if isinstance(decl, TypeDefinition):
            used |= referenced_names(decl.definition)
        else:
            used.add(decl.base)
            used |= referenced_names("\n".join([*decl.extends, *(p.type for p in decl.properties)]))
    for config in ctx.carried_configs:
        used |= referenced_names(config.type)
    return sorted(used & TYPING_NAMES)


def render_types(ctx: TemplateContext) -> str:
    extra_imports = ""
    if any(isinstance(d, TypeDefinition) and d.kind == "enum" for d in ctx.carried_declarations):
        extra_imports = f"from enum import {', '.join(sorted(ENUM_NAMES))}\n"

    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, f"Types for the {ctx.capsule.name} capsule."),
        typing_names=", ".join(_typing_names(ctx)),
        extra_imports=extra_imports,
        carried=_carried(ctx),
        c=ctx.class_name,
        config_fields=block(_config_fields(ctx)),
        stats_fields=block(_stats_fields(ctx)),
        all=dunder_all(defined_names(ctx)),
    )
