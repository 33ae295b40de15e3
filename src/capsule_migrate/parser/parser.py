"""Capsule parser: source files in, ``ParsedCapsule`` out."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from ..exceptions import ParserError
from ..models import ComplexityMetrics, ParsedCapsule
from .discovery import extract_metadata, find_source_files
from .metrics import (
    ComplexityVisitor,
    assess_quality,
    calculate_maintainability,
    count_lines,
    estimate_migration_hours,
)
from .treesitter import PythonSourceParser, has_errors
from .visitor import DeclarationVisitor

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParserOptions:
    include_tests: bool = False
    calculate_complexity: bool = True


class CapsuleParser:
    """Reads one capsule directory and extracts declarations and metrics.

    A single instance may parse many capsules, concurrently as well; all
    per-parse state lives in the ``DeclarationVisitor`` built for that call.
    """

    def __init__(self, options: Optional[ParserOptions] = None) -> None:
        self.options = options or ParserOptions()
        self._source_parser = PythonSourceParser()

    def parse_capsule(self, capsule_path: Union[str, Path]) -> ParsedCapsule:
        root = Path(capsule_path)
        if not root.exists():
            raise ParserError("Capsule path does not exist", details={"path": str(root)})
        if not root.is_dir():
            raise ParserError("Capsule path is not a directory", details={"path": str(root)})

        files = find_source_files(root, include_tests=self.options.include_tests)
        if not files:
            raise ParserError("No Python source files found", details={"path": str(root)})

        metadata = extract_metadata(root)
        logger.debug(f"Parsing capsule {metadata.id} ({len(files)} files)")

        visitor = DeclarationVisitor()
        lines_of_code = 0
        complexity = 0

        for path in files:
            rel_path = path.relative_to(root).as_posix()
            try:
                text = path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                raise ParserError(f"Cannot read source file: {e}", details={"file": rel_path})

            tree = self._source_parser.parse(text.encode("utf-8"))
            if has_errors(tree):
                logger.warning(f"{metadata.id}: syntax errors in {rel_path}, parsed with recovery")

            visitor.visit_module(tree.root_node, rel_path)
            lines_of_code += count_lines(text)
            if self.options.calculate_complexity:
                complexity += ComplexityVisitor().visit(tree.root_node)

        analysis = visitor.finish(local_modules=self._local_modules(root, files))

        return ParsedCapsule(
            metadata=metadata,
            analysis=analysis,
            complexity=ComplexityMetrics(
                lines_of_code=lines_of_code,
                cyclomatic_complexity=complexity,
                maintainability_index=calculate_maintainability(lines_of_code, complexity),
                estimated_migration_hours=estimate_migration_hours(lines_of_code, complexity),
            ),
            quality=assess_quality(analysis, visitor.documented),
            source_files=[str(p) for p in files],
        )

    @staticmethod
    def _local_modules(root: Path, files: list[Path]) -> set[str]:
        """Top-level names that refer to the capsule itself when imported absolutely."""
        names = {root.name, root.name.replace("-", "_")}
        for path in files:
            first = path.relative_to(root).parts[0]
            names.add(first[:-3] if first.endswith(".py") else first)
        return names


def parse_capsule(
    capsule_path: Union[str, Path], options: Optional[ParserOptions] = None
) -> ParsedCapsule:
    """Convenience wrapper around ``CapsuleParser``."""
    return CapsuleParser(options).parse_capsule(capsule_path)
