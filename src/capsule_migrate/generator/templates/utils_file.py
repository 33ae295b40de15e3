"""utils.py: validation, string, async, object and collection helpers."""

from __future__ import annotations

from ...models import FunctionDefinition, TemplateContext
from ..symbols import UTILITY_NAMES
from ._common import dunder_all, escape_docstring, module_docstring, render

FILENAME = "utils.py"

TEMPLATE = '''\
$docstring

from __future__ import annotations

import asyncio
import copy
import math
import re
from dataclasses import replace
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Type, TypeVar

from .types import ${c}Config, ValidationResult

T = TypeVar("T")
K = TypeVar("K")


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def validate_config(config: ${c}Config) -> ValidationResult:
    errors: List[str] = []
    warnings: List[str] = []
    if not is_positive_number(config.timeout):
        errors.append("timeout must be a positive number")
    if not isinstance(config.retry_attempts, int) or config.retry_attempts < 0:
        errors.append("retry_attempts must be a non-negative integer")
    if not is_non_negative_number(config.retry_delay):
        errors.append("retry_delay must be a non-negative number")
    if is_valid_number(config.timeout) and config.timeout > 300:
        warnings.append("timeout is unusually large")
    return ValidationResult(valid=not errors, errors=errors, warnings=warnings)


def merge_config(base: ${c}Config, overrides: Optional[Dict[str, Any]] = None) -> ${c}Config:
    """Return ``base`` with every non-None override applied."""
    values = {k: v for k, v in (overrides or {}).items() if v is not None}
    return replace(base, **values)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def is_defined(value: Any) -> bool:
    return value is not None


def is_non_empty_string(value: Any) -> bool:
    return isinstance(value, str) and value.strip() != ""


def is_valid_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_positive_number(value: Any) -> bool:
    return is_valid_number(value) and float(value) > 0


def is_non_negative_number(value: Any) -> bool:
    return is_valid_number(value) and float(value) >= 0


# ---------------------------------------------------------------------------
# Strings
# ---------------------------------------------------------------------------


def sanitize_string(value: str) -> str:
    """Trim and drop control characters."""
    return re.sub(r"[\\x00-\\x1f\\x7f]", "", value).strip()


def truncate(value: str, max_length: int, suffix: str = "...") -> str:
    if len(value) <= max_length:
        return value
    return value[: max(0, max_length - len(suffix))] + suffix


def _words(value: str) -> List[str]:
    spaced = re.sub(r"(?<=[a-z0-9])(?=[A-Z])", " ", value)
    return [w for w in re.split(r"[^0-9A-Za-z]+", spaced) if w]


def to_camel_case(value: str) -> str:
    pascal = to_pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def to_pascal_case(value: str) -> str:
    return "".join(w[:1].upper() + w[1:].lower() for w in _words(value))


def to_snake_case(value: str) -> str:
    return "_".join(w.lower() for w in _words(value))


# ---------------------------------------------------------------------------
# Async
# ---------------------------------------------------------------------------


async def sleep(seconds: float) -> None:
    await asyncio.sleep(seconds)


async def retry_with_backoff(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    base_delay: float = 1.0,
    multiplier: float = 2.0,
) -> T:
    """Await ``operation`` until it succeeds, sleeping longer after each failure."""
    for attempt in range(max_attempts):
        try:
            return await operation()
        except Exception:
            if attempt == max_attempts - 1:
                raise
            await asyncio.sleep(base_delay * multiplier**attempt)
    raise ValueError("max_attempts must be at least 1")


async def with_timeout(awaitable: Awaitable[T], seconds: float) -> T:
    return await asyncio.wait_for(awaitable, timeout=seconds)


# ---------------------------------------------------------------------------
# Objects
# ---------------------------------------------------------------------------


def deep_clone(value: T) -> T:
    return copy.deepcopy(value)


def deep_equal(a: Any, b: Any) -> bool:
    return bool(a == b)


def pick(source: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    return {k: source[k] for k in keys if k in source}


def omit(source: Dict[str, Any], keys: Iterable[str]) -> Dict[str, Any]:
    excluded = set(keys)
    return {k: v for k, v in source.items() if k not in excluded}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------


def to_error(value: Any) -> BaseException:
    if isinstance(value, BaseException):
        return value
    return Exception(str(value))


def get_error_message(value: Any) -> str:
    return str(to_error(value))


def is_error_of_type(value: Any, error_type: Type[BaseException]) -> bool:
    return isinstance(value, error_type)


# ---------------------------------------------------------------------------
# Collections
# ---------------------------------------------------------------------------


def chunk(items: Sequence[T], size: int) -> List[List[T]]:
    if size <= 0:
        raise ValueError("size must be positive")
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


def unique(items: Iterable[T]) -> List[T]:
    """Distinct items, first occurrence order."""
    seen: List[T] = []
    for item in items:
        if item not in seen:
            seen.append(item)
    return seen


def group_by(items: Iterable[T], key: Callable[[T], K]) -> Dict[K, List[T]]:
    groups: Dict[K, List[T]] = {}
    for item in items:
        groups.setdefault(key(item), []).append(item)
    return groups
$stubs

$all
'''

STUB_TEMPLATE = '''\
${async_}def $name($params) -> Any:
    """$doc"""
    raise NotImplementedError("$name has not been migrated yet")
'''


def _stub_params(func: FunctionDefinition) -> str:
    params = []
    for param in func.params:
        if not param.name or param.name in ("self", "cls"):
            continue
        if param.kind == "var_positional":
            params.append(f"*{param.name}: Any")
        elif param.kind == "var_keyword":
            params.append(f"**{param.name}: Any")
        else:
            params.append(f"{param.name}: Any = None")
    # **kwargs must come last
    params.sort(key=lambda p: p.startswith("**"))
    return ", ".join(params)


def _stub(func: FunctionDefinition) -> str:
    where = f"{func.location.file}:{func.location.line}"
    doc = f"Stub for ``{func.name}`` ({where}); port its body from the capsule source."
    if func.doc:
        doc += "\n\n    Original documentation:\n\n    " + func.doc.replace("\n", "\n    ")
    return render(
        FILENAME,
        STUB_TEMPLATE,
        async_="async " if func.is_async else "",
        name=func.name,
        params=_stub_params(func),
        doc=escape_docstring(doc),
    )


def defined_names(ctx: TemplateContext) -> list[str]:
    return [*UTILITY_NAMES, *[func.name for func in ctx.carried_functions]]


def render_utils(ctx: TemplateContext) -> str:
    stubs = ""
    if ctx.carried_functions:
        stubs = "\n\n" + "\n\n".join(_stub(func) for func in ctx.carried_functions)
    return render(
        FILENAME,
        TEMPLATE,
        docstring=module_docstring(ctx, f"Utilities for the {ctx.capsule.name} capsule."),
        c=ctx.class_name,
        stubs=stubs,
        all=dunder_all(defined_names(ctx)),
    )
