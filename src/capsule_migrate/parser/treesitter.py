"""Tree-sitter parser wrapper for Python capsule sources.

Usage:
    parser = PythonSourceParser()
    tree = parser.parse(code_bytes)
    root = tree.root_node
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Iterator, Optional

import tree_sitter
import tree_sitter_python

logger = logging.getLogger(__name__)

_LANGUAGE = tree_sitter.Language(tree_sitter_python.language())


class PythonSourceParser:
    """Wrapper around a tree-sitter Parser for the Python grammar.

    tree-sitter Parser objects are not safe to share between threads, so each
    thread gets its own parser instance. Batch migrations parse capsules on a
    thread pool.
    """

    def __init__(self) -> None:
        self._local = threading.local()

    @property
    def language(self) -> Any:
        return _LANGUAGE

    def _parser(self) -> Any:
        parser = getattr(self._local, "parser", None)
        if parser is None:
            parser = tree_sitter.Parser(_LANGUAGE)
            self._local.parser = parser
        return parser

    def parse(self, code: bytes) -> Any:
        """Parse source bytes and return the syntax tree."""
        return self._parser().parse(code)


def node_text(node: Optional[Any]) -> str:
    """Decode a node's source text (empty string for None)."""
    if node is None or node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def iter_nodes(node: Any) -> Iterator[Any]:
    """Depth-first pre-order traversal using a cursor, without recursion."""
    cursor = node.walk()
    visited_children = False
    while True:
        if not visited_children:
            yield cursor.node
            if cursor.goto_first_child():
                continue
        if cursor.goto_next_sibling():
            visited_children = False
        elif cursor.goto_parent():
            visited_children = True
        else:
            break


def has_errors(tree: Any) -> bool:
    """True when tree-sitter had to recover from syntax errors."""
    return bool(tree.root_node.has_error)
