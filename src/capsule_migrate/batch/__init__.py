"""Concurrent migration of many capsules."""

from ..parser.discovery import find_capsule_dirs
from .orchestrator import (
    BatchMigrationConfig,
    BatchMigrationOrchestrator,
    partition,
    run_batch_migration,
)

__all__ = [
    "BatchMigrationConfig",
    "BatchMigrationOrchestrator",
    "find_capsule_dirs",
    "partition",
    "run_batch_migration",
]
