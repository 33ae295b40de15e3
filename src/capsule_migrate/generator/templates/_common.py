"""Helpers shared by the file templates."""

from __future__ import annotations

import textwrap
from string import Template
from typing import Iterable

from ...exceptions import TemplateError
from ...models import TemplateContext


def render(filename: str, source: str, **values: object) -> str:
    """Substitute ``$name`` placeholders; a missing value is a template bug."""
    try:
        return Template(textwrap.dedent(source)).substitute(values)
    except (KeyError, ValueError) as e:
        raise TemplateError(filename, f"bad placeholder {e}") from e


def escape_docstring(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"""', '\\"\\"\\"')
    # a trailing quote would merge with the closing delimiter
    if escaped.endswith('"'):
        escaped += " "
    return escaped


def module_docstring(ctx: TemplateContext, summary: str) -> str:
    return (
        f'"""{escape_docstring(summary)}\n\n'
        f"Generated: {ctx.generated_at} by {ctx.generated_by}\n"
        '"""'
    )


def dunder_all(names: Iterable[str]) -> str:
    body = "".join(f'    "{name}",\n' for name in names)
    return f"__all__ = [\n{body}]"


def comment_block(text: str | None, indent: str = "") -> str:
    """Render a doc string as ``#`` lines, or nothing."""
    if not text:
        return ""
    return "".join(f"{indent}# {line}".rstrip() + "\n" for line in text.splitlines())


def block(lines: Iterable[str]) -> str:
    """Join rendered fragments, dropping empty ones."""
    return "\n".join(line for line in lines if line)
