"""Data models for capsule-migrate.

Every stage communicates through these records: the parser produces a
``ParsedCapsule``, the generator consumes a ``TemplateContext`` and returns a
``GenerationResult``, the validator returns a ``ValidationResult`` and the
reporter folds all of them into ``MigrationReport`` / ``BatchMigrationReport``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple, Union


class Platform(str, Enum):
    """Runtime targets a capsule can declare."""

    SERVER = "server"
    BROWSER = "browser"
    MOBILE = "mobile"
    DESKTOP = "desktop"
    UNIVERSAL = "universal"


class MigrationMode(str, Enum):
    AUTO = "auto"
    SEMI = "semi"
    MANUAL = "manual"


class MigrationStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    FAILED = "failed"


class ValidationLevel(str, Enum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


# ---------------------------------------------------------------------------
# Capsule metadata and declarations
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SourceLocation:
    """Position of a declaration; ``file`` is relative to the capsule root."""

    file: str
    line: int
    column: int


@dataclass(frozen=True)
class CapsuleMetadata:
    id: str
    name: str
    category: str
    description: str
    version: str
    platforms: Tuple[Platform, ...] = (Platform.SERVER,)
    tags: Tuple[str, ...] = ()
    dependencies: Tuple[str, ...] = ()
    author: Optional[str] = None
    license: Optional[str] = None


@dataclass
class TypeDefinition:
    """A type alias or enumeration."""

    name: str
    kind: str  # "type" | "enum"
    definition: str
    exported: bool
    location: SourceLocation
    doc: Optional[str] = None
    members: List[str] = field(default_factory=list)


@dataclass
class PropertyDefinition:
    name: str
    type: str
    optional: bool = False
    default: Optional[str] = None
    doc: Optional[str] = None


@dataclass
class InterfaceDefinition:
    """A shape declaration: TypedDict, Protocol or NamedTuple class."""

    name: str
    base: str
    extends: List[str]
    properties: List[PropertyDefinition]
    exported: bool
    location: SourceLocation
    doc: Optional[str] = None


@dataclass
class ParameterDefinition:
    name: str
    type: str = ""
    optional: bool = False
    default: Optional[str] = None
    kind: str = "positional"  # positional | keyword | var_positional | var_keyword


@dataclass
class MethodDefinition:
    name: str
    params: List[ParameterDefinition]
    return_type: str
    is_async: bool
    visibility: str
    is_static: bool
    is_abstract: bool
    location: SourceLocation
    doc: Optional[str] = None


@dataclass
class ClassDefinition:
    name: str
    bases: List[str]
    properties: List[PropertyDefinition]
    methods: List[MethodDefinition]
    exported: bool
    abstract: bool
    location: SourceLocation
    decorators: List[str] = field(default_factory=list)
    doc: Optional[str] = None

    @property
    def extends(self) -> Optional[str]:
        return self.bases[0] if self.bases else None


@dataclass
class FunctionDefinition:
    name: str
    params: List[ParameterDefinition]
    return_type: str
    is_async: bool
    exported: bool
    location: SourceLocation
    doc: Optional[str] = None


@dataclass
class ConstantDefinition:
    name: str
    type: str
    value: str
    is_literal: bool
    exported: bool
    location: SourceLocation
    doc: Optional[str] = None


@dataclass
class ConfigDefinition:
    name: str
    type: str
    default: Optional[str] = None
    required: bool = True
    description: Optional[str] = None


@dataclass
class ErrorDefinition:
    name: str
    extends: Optional[str]
    properties: List[PropertyDefinition]
    exported: bool
    location: SourceLocation
    doc: Optional[str] = None


@dataclass
class ImportStatement:
    """``source`` keeps leading dots for relative imports."""

    source: str
    named: List[str]
    location: SourceLocation
    module: Optional[str] = None
    alias: Optional[str] = None
    is_relative: bool = False
    is_wildcard: bool = False


@dataclass
class ExportStatement:
    name: str
    kind: str  # "value" | "type"
    location: SourceLocation
    source: Optional[str] = None


@dataclass
class CodeAnalysis:
    types: List[TypeDefinition] = field(default_factory=list)
    interfaces: List[InterfaceDefinition] = field(default_factory=list)
    classes: List[ClassDefinition] = field(default_factory=list)
    functions: List[FunctionDefinition] = field(default_factory=list)
    methods: List[MethodDefinition] = field(default_factory=list)
    constants: List[ConstantDefinition] = field(default_factory=list)
    configs: List[ConfigDefinition] = field(default_factory=list)
    imports: List[ImportStatement] = field(default_factory=list)
    dependencies: List[str] = field(default_factory=list)
    error_types: List[ErrorDefinition] = field(default_factory=list)
    exports: List[ExportStatement] = field(default_factory=list)


@dataclass
class ComplexityMetrics:
    lines_of_code: int
    cyclomatic_complexity: int
    maintainability_index: float
    estimated_migration_hours: float


@dataclass
class QualityFlags:
    has_types: bool
    has_errors: bool
    has_tests: bool
    has_documentation: bool
    test_coverage: Optional[float] = None


@dataclass
class ParsedCapsule:
    """Everything the parser learned about one capsule."""

    metadata: CapsuleMetadata
    analysis: CodeAnalysis
    complexity: ComplexityMetrics
    quality: QualityFlags
    source_files: List[str]


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PlatformCapabilities:
    platform: Platform
    supports_file_system: bool
    supports_network: bool
    supports_storage: bool
    supports_workers: bool
    supports_console_colors: bool


PLATFORM_CAPABILITIES: Dict[Platform, PlatformCapabilities] = {
    Platform.SERVER: PlatformCapabilities(Platform.SERVER, True, True, True, True, True),
    Platform.BROWSER: PlatformCapabilities(Platform.BROWSER, False, True, True, True, False),
    Platform.MOBILE: PlatformCapabilities(Platform.MOBILE, True, True, True, False, False),
    Platform.DESKTOP: PlatformCapabilities(Platform.DESKTOP, True, True, True, True, True),
    Platform.UNIVERSAL: PlatformCapabilities(Platform.UNIVERSAL, False, True, False, False, False),
}


@dataclass(frozen=True)
class TemplateContext:
    """Immutable input to every file template."""

    capsule: CapsuleMetadata
    types: Tuple[TypeDefinition, ...]
    interfaces: Tuple[InterfaceDefinition, ...]
    classes: Tuple[ClassDefinition, ...]
    functions: Tuple[FunctionDefinition, ...]
    constants: Tuple[ConstantDefinition, ...]
    errors: Tuple[ErrorDefinition, ...]
    configs: Tuple[ConfigDefinition, ...]
    imports: Tuple[ImportStatement, ...]
    class_name: str
    package_name: str
    module_name: str
    constant_name: str
    has_file_system: bool
    has_network: bool
    has_database: bool
    is_multi_platform: bool
    capabilities: Tuple[PlatformCapabilities, ...]
    is_async: bool
    include_stats: bool
    mode: MigrationMode
    generated_at: str
    generated_by: str
    migration_notes: Tuple[str, ...] = ()
    # Declarations safe to re-emit, aliases and shapes in dependency order
    carried_declarations: Tuple[Union[TypeDefinition, InterfaceDefinition], ...] = ()
    carried_constants: Tuple[ConstantDefinition, ...] = ()
    carried_functions: Tuple[FunctionDefinition, ...] = ()
    carried_configs: Tuple[ConfigDefinition, ...] = ()


@dataclass
class GeneratedFile:
    path: str
    content: str
    size: int

    @property
    def lines(self) -> int:
        return len(self.content.split("\n"))


@dataclass
class GenerationResult:
    success: bool
    files: List[GeneratedFile] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


@dataclass
class ValidationCheck:
    name: str
    passed: bool
    message: str
    details: Optional[Any] = None


@dataclass
class ValidationIssue:
    code: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    level: ValidationLevel = ValidationLevel.HIGH


@dataclass
class ValidationWarning:
    code: str
    message: str
    file: Optional[str] = None
    line: Optional[int] = None
    suggestion: Optional[str] = None


@dataclass
class ValidationResult:
    is_valid: bool
    quality_score: float
    checks: List[ValidationCheck] = field(default_factory=list)
    errors: List[ValidationIssue] = field(default_factory=list)
    warnings: List[ValidationWarning] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Reporting
# ---------------------------------------------------------------------------


@dataclass
class FileCounts:
    files: int
    lines: int


@dataclass
class FileReport:
    filename: str
    lines: int
    status: str  # complete | partial | failed
    notes: List[str] = field(default_factory=list)


@dataclass
class MigrationReport:
    capsule: CapsuleMetadata
    status: MigrationStatus
    mode: MigrationMode
    time_taken: float  # hours
    before: FileCounts
    after: FileCounts
    quality_score: float
    file_breakdown: List[FileReport]
    validation: ValidationResult
    manual_actions_required: List[str]
    notes: List[str]
    generated_at: datetime


@dataclass
class BatchSummary:
    total_files: int
    total_lines: int
    avg_lines_per_capsule: float


@dataclass
class BatchMigrationReport:
    total_capsules: int
    successful_migrations: int
    failed_migrations: int
    total_time_taken: float
    avg_quality_score: float
    reports: List[MigrationReport]
    summary: BatchSummary
    generated_at: datetime


@dataclass
class ProgressDashboard:
    total_capsules: int
    processed_capsules: int
    success_count: int
    failed_count: int
    percent_complete: float
    avg_time_per_capsule: float
    estimated_time_remaining: float
    current_capsule: str = ""
