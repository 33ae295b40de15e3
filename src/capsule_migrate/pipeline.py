"""Single-capsule migration: parse, select mode, generate, validate, report."""

from __future__ import annotations

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from .config import DEFAULT_THRESHOLDS, ModeThresholds
from .generator import CapsuleGenerator, GeneratorOptions
from .logging_config import get_logger
from .models import MigrationMode, MigrationReport
from .parser import CapsuleParser, ParserOptions, select_migration_mode
from .reporter import MigrationReporter
from .validator import CapsuleValidator

logger = get_logger(__name__)

SECONDS_PER_HOUR = 3600.0


@dataclass(frozen=True)
class PipelineOptions:
    mode: MigrationMode = MigrationMode.AUTO
    tidy: bool = True
    include_tests: bool = False
    thresholds: ModeThresholds = DEFAULT_THRESHOLDS
    generated_at: Optional[str] = None


def migrate_capsule(
    input_path: Union[str, Path],
    output_root: Union[str, Path],
    options: Optional[PipelineOptions] = None,
    reporter: Optional[MigrationReporter] = None,
) -> MigrationReport:
    """Migrate one capsule into ``<output_root>/<capsule id>``.

    Parser and generator errors propagate. A failed validation does not raise;
    it lowers the report's quality score instead.
    """
    options = options or PipelineOptions()
    reporter = reporter or MigrationReporter()
    started = time.perf_counter()

    parsed = CapsuleParser(ParserOptions(include_tests=options.include_tests)).parse_capsule(
        input_path
    )
    capsule_id = parsed.metadata.id
    mode = select_migration_mode(
        parsed.complexity.lines_of_code,
        parsed.complexity.cyclomatic_complexity,
        options.mode,
        options.thresholds,
        capsule=capsule_id,
    )
    logger.debug(f"{capsule_id}: migrating in {mode.value} mode")

    output_dir = Path(output_root) / capsule_id
    generator = CapsuleGenerator(
        GeneratorOptions(mode=mode, tidy=options.tidy, generated_at=options.generated_at)
    )
    generation = generator.generate(parsed, output_dir)
    validation = CapsuleValidator().validate(output_dir)

    hours = (time.perf_counter() - started) / SECONDS_PER_HOUR
    return reporter.generate_report(parsed, generation, validation, hours, mode)
