"""capsule-migrate: analyze, regenerate, validate and report on capsule migrations."""

__version__ = "0.1.0"

from .models import MigrationMode, MigrationReport, ParsedCapsule  # noqa: E402
from .pipeline import PipelineOptions, migrate_capsule  # noqa: E402

__all__ = [
    "__version__",
    "MigrationMode",
    "MigrationReport",
    "ParsedCapsule",
    "PipelineOptions",
    "migrate_capsule",
]
