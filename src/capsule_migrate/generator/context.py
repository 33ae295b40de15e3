"""Template context construction.

``build_context`` projects a ``ParsedCapsule`` into the frozen
``TemplateContext`` shared by all file templates. It also decides, once,
which original declarations can be carried into the new layout verbatim;
everything else becomes a migration note.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional, Union

from ..models import (
    PLATFORM_CAPABILITIES,
    ConfigDefinition,
    ConstantDefinition,
    FunctionDefinition,
    ImportStatement,
    InterfaceDefinition,
    MigrationMode,
    ParsedCapsule,
    TemplateContext,
    TypeDefinition,
)
from .naming import class_name_for, module_name_for
from .symbols import (
    BASE_CONFIG_FIELDS,
    ENUM_NAMES,
    generated_names,
    safe_class_name,
    unresolved_names,
)

logger = logging.getLogger(__name__)

GENERATED_BY = "capsule-migrate"

FILE_SYSTEM_MODULES = frozenset(
    {"pathlib", "shutil", "tempfile", "glob", "io", "os.path", "aiofiles", "fnmatch"}
)
NETWORK_MODULES = frozenset(
    {"http", "urllib", "urllib3", "requests", "httpx", "aiohttp", "socket", "websockets"}
)
DATABASE_MARKERS = ("sql", "mongo", "redis", "psycopg", "asyncpg")

CONFIG_HOLDER_SUFFIXES = ("Config", "Options", "Settings")

Declaration = Union[TypeDefinition, InterfaceDefinition]


def _matches_module(source: str, modules: frozenset[str]) -> bool:
    return any(source == m or source.startswith(m + ".") for m in modules)


def has_file_system(imports: list[ImportStatement]) -> bool:
    for imp in imports:
        if imp.is_relative:
            continue
        if _matches_module(imp.source, FILE_SYSTEM_MODULES):
            return True
        if imp.source == "os" and "path" in imp.named:
            return True
    return False


def has_network(imports: list[ImportStatement]) -> bool:
    return any(
        not imp.is_relative and _matches_module(imp.source, NETWORK_MODULES) for imp in imports
    )


def has_database(imports: list[ImportStatement]) -> bool:
    return any(
        marker in imp.source.lower()
        for imp in imports
        if not imp.is_relative
        for marker in DATABASE_MARKERS
    )


@dataclass
class CarryOverPlan:
    declarations: list[Declaration] = field(default_factory=list)
    constants: list[ConstantDefinition] = field(default_factory=list)
    functions: list[FunctionDefinition] = field(default_factory=list)
    configs: list[ConfigDefinition] = field(default_factory=list)
    notes: list[str] = field(default_factory=list)


def _where(decl) -> str:
    return f"{decl.location.file}:{decl.location.line}"


def _declaration_source(decl: Declaration) -> str:
    """Text whose free names must resolve for the declaration to import cleanly."""
    if isinstance(decl, TypeDefinition):
        return decl.definition
    parts = list(decl.extends)
    parts.extend(p.type for p in decl.properties if p.type)
    return "\n".join(parts)


def _own_names(decl: Declaration) -> set[str]:
    if isinstance(decl, TypeDefinition) and decl.kind == "enum":
        return {decl.name, "self", "cls", *decl.members} | set(ENUM_NAMES)
    return set()


def plan_carry_over(parsed: ParsedCapsule, reserved: frozenset[str]) -> CarryOverPlan:
    """Decide which original declarations are re-emitted in the generated files.

    Aliases and shapes are emitted in dependency order; a declaration whose
    free names cannot all be resolved (builtins, typing names or other
    carried declarations) is left out with a note.
    """
    analysis = parsed.analysis
    plan = CarryOverPlan()
    taken: set[str] = set(reserved)

    candidates: list[Declaration] = []
    for decl in [*analysis.types, *analysis.interfaces]:
        if not decl.exported:
            continue
        if isinstance(decl, InterfaceDefinition) and decl.name.endswith(CONFIG_HOLDER_SUFFIXES):
            # folded into the generated Config dataclass
            continue
        if decl.name in taken:
            plan.notes.append(
                f"Type {decl.name} ({_where(decl)}) clashes with a generated name; migrate it by hand"
            )
            continue
        taken.add(decl.name)
        candidates.append(decl)

    emitted: set[str] = set()
    pending = list(candidates)
    progress = True
    while pending and progress:
        progress = False
        for decl in list(pending):
            available = emitted | _own_names(decl)
            if not unresolved_names(_declaration_source(decl), available):
                plan.declarations.append(decl)
                emitted.add(decl.name)
                pending.remove(decl)
                progress = True
    for decl in pending:
        missing = sorted(unresolved_names(_declaration_source(decl), emitted | _own_names(decl)))
        plan.notes.append(
            f"Type {decl.name} ({_where(decl)}) references {', '.join(missing)}; migrate it by hand"
        )

    for const in analysis.constants:
        if not const.exported:
            continue
        if const.name in taken:
            plan.notes.append(
                f"Constant {const.name} ({_where(const)}) clashes with a generated name; merge it by hand"
            )
            continue
        if not const.is_literal:
            plan.notes.append(
                f"Constant {const.name} ({_where(const)}) is computed at import time; port it to constants.py"
            )
            continue
        taken.add(const.name)
        plan.constants.append(const)

    for func in analysis.functions:
        if not func.exported or func.name.startswith("create"):
            continue
        if func.name in taken:
            plan.notes.append(
                f"Function {func.name} ({_where(func)}) clashes with a generated name; merge it by hand"
            )
            continue
        taken.add(func.name)
        plan.functions.append(func)
        plan.notes.append(f"Implement utils.{func.name} (stub for {_where(func)})")

    base_fields = set(BASE_CONFIG_FIELDS)
    for config in analysis.configs:
        if config.name in base_fields:
            continue
        base_fields.add(config.name)
        plan.configs.append(config)

    return plan


def mode_notes(parsed: ParsedCapsule, mode: MigrationMode) -> list[str]:
    if mode == MigrationMode.AUTO:
        return []
    files = len(parsed.source_files)
    notes = [
        f"Port the business logic of {files} source file(s) into service.py _execute_internal",
        "Review generated error mapping in errors.py against the original exceptions",
    ]
    if mode == MigrationMode.MANUAL:
        notes.append(
            "Manual migration: generated files are scaffolding only; "
            "re-implement and test each public operation by hand"
        )
    return notes


def build_context(
    parsed: ParsedCapsule,
    mode: MigrationMode = MigrationMode.AUTO,
    generated_at: Optional[str] = None,
) -> TemplateContext:
    """Build the immutable context for one generation call."""
    metadata = parsed.metadata
    analysis = parsed.analysis

    class_name = safe_class_name(class_name_for(metadata.name))
    module_name = module_name_for(metadata.id)
    constant_name = module_name.upper()

    plan = plan_carry_over(parsed, generated_names(class_name, module_name, constant_name))
    for note in plan.notes:
        logger.debug(f"{metadata.id}: {note}")

    return TemplateContext(
        capsule=metadata,
        types=tuple(analysis.types),
        interfaces=tuple(analysis.interfaces),
        classes=tuple(analysis.classes),
        functions=tuple(analysis.functions),
        constants=tuple(analysis.constants),
        errors=tuple(analysis.error_types),
        configs=tuple(analysis.configs),
        imports=tuple(analysis.imports),
        class_name=class_name,
        package_name=f"capsule-{metadata.id}",
        module_name=module_name,
        constant_name=constant_name,
        has_file_system=has_file_system(analysis.imports),
        has_network=has_network(analysis.imports),
        has_database=has_database(analysis.imports),
        is_multi_platform=len(metadata.platforms) > 1,
        capabilities=tuple(PLATFORM_CAPABILITIES[p] for p in metadata.platforms),
        is_async=any(f.is_async for f in analysis.functions)
        or any(m.is_async for m in analysis.methods),
        include_stats=True,
        mode=mode,
        generated_at=generated_at or datetime.now(timezone.utc).isoformat(timespec="seconds"),
        generated_by=GENERATED_BY,
        migration_notes=tuple(mode_notes(parsed, mode) + plan.notes),
        carried_declarations=tuple(plan.declarations),
        carried_constants=tuple(plan.constants),
        carried_functions=tuple(plan.functions),
        carried_configs=tuple(plan.configs),
    )
