"""Capsule generator: renders the eight-file layout into an output directory."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..exceptions import GeneratorError
from ..logging_config import get_logger
from ..models import GeneratedFile, GenerationResult, MigrationMode, ParsedCapsule
from .context import build_context
from .templates import FILE_TEMPLATES
from .tidy import tidy_source

logger = get_logger(__name__)


@dataclass(frozen=True)
class GeneratorOptions:
    mode: MigrationMode = MigrationMode.AUTO
    tidy: bool = True
    # Pins the "Generated:" header line; current UTC time when None
    generated_at: Optional[str] = None


class CapsuleGenerator:
    """Writes one capsule's regenerated files.

    Each file is rendered and written independently: a failing template is
    recorded in ``GenerationResult.errors`` and the remaining files are still
    produced.
    """

    def __init__(self, options: Optional[GeneratorOptions] = None):
        self.options = options or GeneratorOptions()

    def generate(self, parsed: ParsedCapsule, output_dir: Union[str, Path]) -> GenerationResult:
        capsule_id = parsed.metadata.id
        output = Path(output_dir)
        try:
            output.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise GeneratorError(
                f"Cannot create output directory: {e}",
                capsule_id=capsule_id,
                details={"path": str(output)},
            ) from e

        try:
            ctx = build_context(parsed, self.options.mode, self.options.generated_at)
        except Exception as e:
            raise GeneratorError(f"Cannot build template context: {e}", capsule_id=capsule_id) from e

        result = GenerationResult(success=False, warnings=list(ctx.migration_notes))
        for filename, render_file in FILE_TEMPLATES:
            try:
                content = render_file(ctx)
                if self.options.tidy:
                    content = tidy_source(content)
                path = output / filename
                path.write_text(content, encoding="utf-8")
            except Exception as e:
                logger.warning(f"{capsule_id}: failed to generate {filename}: {e}")
                result.errors.append(f"Failed to generate {filename}: {e}")
                continue
            result.files.append(
                GeneratedFile(
                    path=str(path.resolve()),
                    content=content,
                    size=len(content.encode("utf-8")),
                )
            )
            logger.debug(f"{capsule_id}: wrote {filename}")

        result.success = not result.errors
        return result


def generate_capsule(
    parsed: ParsedCapsule,
    output_dir: Union[str, Path],
    options: Optional[GeneratorOptions] = None,
) -> GenerationResult:
    """Convenience wrapper around ``CapsuleGenerator``."""
    return CapsuleGenerator(options).generate(parsed, output_dir)
