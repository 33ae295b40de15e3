"""Pure naming helpers shared by the file templates."""

import keyword
import re

_WORD_SPLIT = re.compile(r"[-_\s]+")
_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])")
_NON_IDENTIFIER = re.compile(r"[^0-9A-Za-z_]")


def to_pascal_case(value: str) -> str:
    """``"http client"`` / ``"http-client"`` -> ``"HttpClient"``."""
    words = [w for w in _WORD_SPLIT.split(value.strip()) if w]
    return "".join(w[:1].upper() + w[1:].lower() for w in words)


def to_snake_case(value: str) -> str:
    """``"HttpClient"`` / ``"http-client"`` -> ``"http_client"``."""
    spaced = _CAMEL_BOUNDARY.sub("_", value.strip())
    words = [w for w in _WORD_SPLIT.split(spaced) if w]
    return "_".join(w.lower() for w in words)


def to_constant_case(value: str) -> str:
    return to_snake_case(value).upper()


def to_identifier(value: str, prefix: str = "capsule") -> str:
    """Coerce ``value`` into a valid, non-keyword Python identifier."""
    ident = _NON_IDENTIFIER.sub("_", value)
    ident = re.sub(r"_+", "_", ident).strip("_")
    if not ident:
        return prefix
    if ident[0].isdigit() or keyword.iskeyword(ident):
        ident = f"{prefix}_{ident}"
    return ident


def class_name_for(display_name: str) -> str:
    """Class-name prefix for a capsule (``"Http Client"`` -> ``"HttpClient"``)."""
    name = to_identifier(to_pascal_case(display_name), prefix="Capsule")
    return name[:1].upper() + name[1:]


def module_name_for(capsule_id: str) -> str:
    return to_identifier(to_snake_case(capsule_id)).lower()
