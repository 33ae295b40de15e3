"""One pure ``(TemplateContext) -> str`` renderer per generated file."""

from typing import Callable, List, Tuple

from ...models import TemplateContext
from .adapters_file import render_adapters
from .constants_file import render_constants
from .errors_file import render_errors
from .index_file import render_index
from .readme_file import render_readme
from .service_file import render_service
from .types_file import render_types
from .utils_file import render_utils

# Generation order; the index and README come last
FILE_TEMPLATES: List[Tuple[str, Callable[[TemplateContext], str]]] = [
    ("types.py", render_types),
    ("errors.py", render_errors),
    ("constants.py", render_constants),
    ("utils.py", render_utils),
    ("adapters.py", render_adapters),
    ("service.py", render_service),
    ("__init__.py", render_index),
    ("README.md", render_readme),
]

REQUIRED_FILES = tuple(name for name, _ in FILE_TEMPLATES)

__all__ = [
    "FILE_TEMPLATES",
    "REQUIRED_FILES",
    "render_adapters",
    "render_constants",
    "render_errors",
    "render_index",
    "render_readme",
    "render_service",
    "render_types",
    "render_utils",
]
