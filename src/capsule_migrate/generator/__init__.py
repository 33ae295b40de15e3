"""Regenerates a parsed capsule into the fixed eight-file layout."""

from .context import build_context
from .engine import CapsuleGenerator, GeneratorOptions, generate_capsule
from .naming import to_constant_case, to_identifier, to_pascal_case, to_snake_case
from .templates import FILE_TEMPLATES, REQUIRED_FILES
from .tidy import tidy_source

__all__ = [
    "CapsuleGenerator",
    "FILE_TEMPLATES",
    "GeneratorOptions",
    "REQUIRED_FILES",
    "build_context",
    "generate_capsule",
    "tidy_source",
    "to_constant_case",
    "to_identifier",
    "to_pascal_case",
    "to_snake_case",
]
