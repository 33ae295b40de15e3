"""Declaration extraction from tree-sitter Python syntax trees.

A ``DeclarationVisitor`` is created for each ``parse_capsule`` call and
accumulates every file's top-level declarations into one ``CodeAnalysis``.
Nothing is kept at module level, so concurrent parses never share state.
"""

from __future__ import annotations

import ast
import inspect
import logging
import sys
from typing import Any, Iterable, Optional

from ..models import (
    ClassDefinition,
    CodeAnalysis,
    ConfigDefinition,
    ConstantDefinition,
    ErrorDefinition,
    ExportStatement,
    FunctionDefinition,
    ImportStatement,
    InterfaceDefinition,
    MethodDefinition,
    ParameterDefinition,
    PropertyDefinition,
    SourceLocation,
    TypeDefinition,
)
from .treesitter import iter_nodes, node_text

logger = logging.getLogger(__name__)

SHAPE_BASES = frozenset({"TypedDict", "Protocol", "NamedTuple"})
ENUM_BASES = frozenset({"Enum", "IntEnum", "StrEnum", "Flag", "IntFlag"})
ABSTRACT_BASES = frozenset({"ABC", "ABCMeta"})
TYPING_CONSTRUCTS = frozenset(
    {
        "Literal",
        "Union",
        "Optional",
        "Callable",
        "Annotated",
        "Dict",
        "List",
        "Tuple",
        "Set",
        "FrozenSet",
        "Type",
        "Mapping",
        "Sequence",
        "Iterable",
        "dict",
        "list",
        "tuple",
        "set",
        "frozenset",
        "type",
    }
)
TYPE_FACTORIES = frozenset({"NewType", "TypeVar"})
CONFIG_SUFFIXES = ("Config", "Options", "Settings")

LITERAL_NODE_TYPES = frozenset(
    {
        "string",
        "concatenated_string",
        "string_start",
        "string_content",
        "string_end",
        "escape_sequence",
        "integer",
        "float",
        "true",
        "false",
        "none",
        "list",
        "tuple",
        "set",
        "dictionary",
        "pair",
        "unary_operator",
        "parenthesized_expression",
    }
)
LITERAL_TYPE_NAMES = {
    "string": "str",
    "concatenated_string": "str",
    "integer": "int",
    "float": "float",
    "true": "bool",
    "false": "bool",
    "none": "None",
    "list": "list",
    "tuple": "tuple",
    "set": "set",
    "dictionary": "dict",
}


def _last_segment(name: str) -> str:
    """``typing.Protocol[T]`` -> ``Protocol``."""
    return name.split("[", 1)[0].rsplit(".", 1)[-1].strip()


def is_error_base(name: str) -> bool:
    segment = _last_segment(name)
    return "Error" in segment or segment.endswith("Exception")


def is_literal_node(node: Any) -> bool:
    """True when ``node`` is built only from literal syntax (no names, calls or f-string fields)."""
    for child in iter_nodes(node):
        if child.is_named and child.type not in LITERAL_NODE_TYPES:
            return False
    return True


def _clean_docstring(raw: str) -> Optional[str]:
    try:
        value = ast.literal_eval(raw)
    except (ValueError, SyntaxError):
        value = raw.strip("\"'")
    if not isinstance(value, str):
        return None
    return inspect.cleandoc(value) or None


class DeclarationVisitor:
    """Walks module-level statements and records declarations.

    Usage:
        visitor = DeclarationVisitor()
        for rel_path, tree in trees:
            visitor.visit_module(tree.root_node, rel_path)
        analysis = visitor.finish(local_modules={"mycapsule"})
    """

    def __init__(self) -> None:
        self.analysis = CodeAnalysis()
        self.documented = False
        self._dependencies: set[str] = set()
        # per-file state, reset by visit_module
        self._file = ""
        self._public_names: Optional[set[str]] = None

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def visit_module(self, root: Any, rel_path: str) -> None:
        """Record every top-level declaration of one module."""
        self._file = rel_path
        self._public_names = self._collect_dunder_all(root)

        for node in iter_nodes(root):
            if node.type in ("import_statement", "import_from_statement", "future_import_statement"):
                self._visit_import(node)

        module_doc = self._module_docstring(root)
        if module_doc:
            self.documented = True

        for statement in root.named_children:
            self._visit_statement(statement)

        if self._public_names is not None:
            self._record_reexports(root)

    def finish(self, local_modules: Iterable[str] = ()) -> CodeAnalysis:
        """Resolve cross-file facts (configs, dependencies) and return the analysis."""
        local = set(local_modules)
        self.analysis.dependencies = sorted(
            name for name in self._dependencies - local if not is_stdlib_module(name)
        )
        self.analysis.configs = self._collect_configs()
        return self.analysis

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _location(self, node: Any) -> SourceLocation:
        return SourceLocation(
            file=self._file, line=node.start_point[0] + 1, column=node.start_point[1] + 1
        )

    def _is_exported(self, name: str) -> bool:
        if self._public_names is not None:
            return name in self._public_names
        return not name.startswith("_")

    def _collect_dunder_all(self, root: Any) -> Optional[set[str]]:
        for statement in root.named_children:
            assignment = self._assignment_of(statement)
            if assignment is None:
                continue
            if node_text(assignment.child_by_field_name("left")) != "__all__":
                continue
            right = assignment.child_by_field_name("right")
            names: set[str] = set()
            if right is not None:
                for child in iter_nodes(right):
                    if child.type == "string":
                        try:
                            value = ast.literal_eval(node_text(child))
                        except (ValueError, SyntaxError):
                            continue
                        if isinstance(value, str):
                            names.add(value)
            return names
        return None

    @staticmethod
    def _assignment_of(statement: Any) -> Optional[Any]:
        if statement.type != "expression_statement" or statement.named_child_count == 0:
            return None
        child = statement.named_children[0]
        return child if child.type == "assignment" else None

    @staticmethod
    def _module_docstring(root: Any) -> Optional[str]:
        for statement in root.named_children:
            if statement.type == "comment":
                continue
            if statement.type == "expression_statement" and statement.named_child_count:
                first = statement.named_children[0]
                if first.type == "string":
                    return _clean_docstring(node_text(first))
            return None
        return None

    def _body_docstring(self, definition: Any) -> Optional[str]:
        body = definition.child_by_field_name("body")
        if body is None:
            return None
        for statement in body.named_children:
            if statement.type == "comment":
                continue
            if statement.type == "expression_statement" and statement.named_child_count:
                first = statement.named_children[0]
                if first.type == "string":
                    doc = _clean_docstring(node_text(first))
                    if doc:
                        self.documented = True
                    return doc
            return None
        return None

    def _leading_comment(self, statement: Any) -> Optional[str]:
        """Contiguous ``#`` comment block directly above a statement."""
        lines: list[str] = []
        expected_row = statement.start_point[0] - 1
        sibling = statement.prev_named_sibling
        while sibling is not None and sibling.type == "comment":
            if sibling.end_point[0] != expected_row:
                break
            lines.append(node_text(sibling).lstrip("#").strip())
            expected_row = sibling.start_point[0] - 1
            sibling = sibling.prev_named_sibling
        if not lines:
            return None
        self.documented = True
        return "\n".join(reversed(lines))

    # ------------------------------------------------------------------
    # Statements
    # ------------------------------------------------------------------

    def _visit_statement(self, statement: Any) -> None:
        kind = statement.type
        if kind == "decorated_definition":
            definition = statement.child_by_field_name("definition")
            decorators = [
                node_text(c).lstrip("@").strip() for c in statement.named_children if c.type == "decorator"
            ]
            if definition is not None:
                self._visit_definition(definition, decorators, statement)
        elif kind in ("class_definition", "function_definition"):
            self._visit_definition(statement, [], statement)
        elif kind == "type_alias_statement":
            self._visit_type_alias_statement(statement)
        elif kind == "expression_statement":
            assignment = self._assignment_of(statement)
            if assignment is not None:
                self._visit_assignment(assignment, statement)

    def _visit_definition(self, definition: Any, decorators: list[str], anchor: Any) -> None:
        if definition.type == "class_definition":
            self._visit_class(definition, decorators, anchor)
        elif definition.type == "function_definition":
            function = self._function_from(definition, anchor)
            self.analysis.functions.append(function)
            if function.exported:
                self.analysis.exports.append(
                    ExportStatement(function.name, "value", function.location)
                )

    def _visit_type_alias_statement(self, statement: Any) -> None:
        name = node_text(statement.child_by_field_name("left")).split("[", 1)[0].strip()
        definition = node_text(statement.child_by_field_name("right"))
        self._add_type(name, "type", definition, statement, self._leading_comment(statement))

    def _add_type(
        self,
        name: str,
        kind: str,
        definition: str,
        node: Any,
        doc: Optional[str],
        members: Optional[list[str]] = None,
    ) -> None:
        exported = self._is_exported(name)
        location = self._location(node)
        self.analysis.types.append(
            TypeDefinition(
                name=name,
                kind=kind,
                definition=definition,
                exported=exported,
                location=location,
                doc=doc,
                members=members or [],
            )
        )
        if exported:
            self.analysis.exports.append(ExportStatement(name, "type", location))

    def _visit_assignment(self, assignment: Any, statement: Any) -> None:
        left = assignment.child_by_field_name("left")
        if left is None or left.type != "identifier":
            return
        name = node_text(left)
        if name.startswith("__") and name.endswith("__"):
            return

        right = assignment.child_by_field_name("right")
        annotation = node_text(assignment.child_by_field_name("type"))
        doc = self._leading_comment(statement)

        if _last_segment(annotation) == "TypeAlias" and right is not None:
            self._add_type(name, "type", node_text(right), statement, doc)
            return
        if right is not None and right.type == "subscript":
            value = right.child_by_field_name("value")
            if _last_segment(node_text(value)) in TYPING_CONSTRUCTS:
                self._add_type(name, "type", node_text(right), statement, doc)
                return
        if right is not None and right.type == "call":
            function = right.child_by_field_name("function")
            if _last_segment(node_text(function)) in TYPE_FACTORIES:
                self._add_type(name, "type", node_text(right), statement, doc)
                return
        if right is None:
            # bare annotation, nothing to carry over
            return

        literal = is_literal_node(right)
        exported = self._is_exported(name)
        location = self._location(statement)
        self.analysis.constants.append(
            ConstantDefinition(
                name=name,
                type=annotation or LITERAL_TYPE_NAMES.get(right.type, ""),
                value=node_text(right),
                is_literal=literal,
                exported=exported,
                location=location,
                doc=doc,
            )
        )
        if exported:
            self.analysis.exports.append(ExportStatement(name, "value", location))

    # ------------------------------------------------------------------
    # Classes
    # ------------------------------------------------------------------

    def _visit_class(self, definition: Any, decorators: list[str], anchor: Any) -> None:
        name = node_text(definition.child_by_field_name("name"))
        bases = self._class_bases(definition)
        base_names = {_last_segment(b) for b in bases}
        doc = self._body_docstring(definition) or self._leading_comment(anchor)
        location = self._location(anchor)
        exported = self._is_exported(name)

        if base_names & ENUM_BASES:
            members = [p.name for p in self._class_properties(definition)]
            self._add_type(name, "enum", node_text(definition), anchor, doc, members)
            return

        properties = self._class_properties(definition)

        shape_base = next((b for b in bases if _last_segment(b) in SHAPE_BASES), None)
        if shape_base is not None:
            self.analysis.interfaces.append(
                InterfaceDefinition(
                    name=name,
                    base=_last_segment(shape_base),
                    extends=[b for b in bases if b is not shape_base],
                    properties=properties,
                    exported=exported,
                    location=location,
                    doc=doc,
                )
            )
            if exported:
                self.analysis.exports.append(ExportStatement(name, "type", location))
            return

        methods = self._class_methods(definition)
        self.analysis.methods.extend(methods)
        cls = ClassDefinition(
            name=name,
            bases=bases,
            properties=properties,
            methods=methods,
            exported=exported,
            abstract=bool(base_names & ABSTRACT_BASES) or any(m.is_abstract for m in methods),
            location=location,
            decorators=decorators,
            doc=doc,
        )
        self.analysis.classes.append(cls)
        if exported:
            self.analysis.exports.append(ExportStatement(name, "value", location))

        error_base = next((b for b in bases if is_error_base(b)), None)
        if error_base is not None:
            self.analysis.error_types.append(
                ErrorDefinition(
                    name=name,
                    extends=error_base,
                    properties=properties,
                    exported=exported,
                    location=location,
                    doc=doc,
                )
            )

    @staticmethod
    def _class_bases(definition: Any) -> list[str]:
        superclasses = definition.child_by_field_name("superclasses")
        if superclasses is None:
            return []
        # keyword arguments (metaclass=...) are not bases
        return [node_text(c) for c in superclasses.named_children if c.type != "keyword_argument"]

    def _class_properties(self, definition: Any) -> list[PropertyDefinition]:
        body = definition.child_by_field_name("body")
        if body is None:
            return []
        properties: list[PropertyDefinition] = []
        for statement in body.named_children:
            assignment = self._assignment_of(statement)
            if assignment is None:
                continue
            left = assignment.child_by_field_name("left")
            if left is None or left.type != "identifier":
                continue
            type_text = node_text(assignment.child_by_field_name("type"))
            right = assignment.child_by_field_name("right")
            default = node_text(right) if right is not None else None
            properties.append(
                PropertyDefinition(
                    name=node_text(left),
                    type=type_text,
                    optional="Optional" in type_text or "None" in type_text,
                    default=default,
                    doc=self._leading_comment(statement),
                )
            )
        return properties

    def _class_methods(self, definition: Any) -> list[MethodDefinition]:
        body = definition.child_by_field_name("body")
        if body is None:
            return []
        methods: list[MethodDefinition] = []
        for statement in body.named_children:
            decorators: list[str] = []
            node = statement
            if statement.type == "decorated_definition":
                decorators = [
                    node_text(c).lstrip("@").strip()
                    for c in statement.named_children
                    if c.type == "decorator"
                ]
                node = statement.child_by_field_name("definition")
            if node is None or node.type != "function_definition":
                continue
            name = node_text(node.child_by_field_name("name"))
            if name.startswith("__") and name.endswith("__"):
                visibility = "public"
            elif name.startswith("__"):
                visibility = "private"
            elif name.startswith("_"):
                visibility = "protected"
            else:
                visibility = "public"
            methods.append(
                MethodDefinition(
                    name=name,
                    params=self._parameters(node),
                    return_type=node_text(node.child_by_field_name("return_type")),
                    is_async=self._is_async(node),
                    visibility=visibility,
                    is_static="staticmethod" in decorators,
                    is_abstract=any(_last_segment(d) == "abstractmethod" for d in decorators),
                    location=self._location(statement),
                    doc=self._body_docstring(node),
                )
            )
        return methods

    # ------------------------------------------------------------------
    # Functions
    # ------------------------------------------------------------------

    @staticmethod
    def _is_async(definition: Any) -> bool:
        return any(child.type == "async" for child in definition.children)

    def _function_from(self, definition: Any, anchor: Any) -> FunctionDefinition:
        name = node_text(definition.child_by_field_name("name"))
        return FunctionDefinition(
            name=name,
            params=self._parameters(definition),
            return_type=node_text(definition.child_by_field_name("return_type")),
            is_async=self._is_async(definition),
            exported=self._is_exported(name),
            location=self._location(anchor),
            doc=self._body_docstring(definition),
        )

    @staticmethod
    def _parameters(definition: Any) -> list[ParameterDefinition]:
        parameters = definition.child_by_field_name("parameters")
        if parameters is None:
            return []
        params: list[ParameterDefinition] = []
        for child in parameters.named_children:
            kind = "positional"
            if child.type == "identifier":
                params.append(ParameterDefinition(name=node_text(child)))
                continue
            if child.type in ("list_splat_pattern", "dictionary_splat_pattern"):
                kind = "var_positional" if child.type == "list_splat_pattern" else "var_keyword"
                params.append(
                    ParameterDefinition(name=node_text(child).lstrip("*"), optional=True, kind=kind)
                )
                continue
            if child.type == "typed_parameter":
                inner = child.named_children[0] if child.named_child_count else None
                name = node_text(inner)
                if inner is not None and inner.type == "list_splat_pattern":
                    kind = "var_positional"
                elif inner is not None and inner.type == "dictionary_splat_pattern":
                    kind = "var_keyword"
                params.append(
                    ParameterDefinition(
                        name=name.lstrip("*"),
                        type=node_text(child.child_by_field_name("type")),
                        optional=kind != "positional",
                        kind=kind,
                    )
                )
                continue
            if child.type in ("default_parameter", "typed_default_parameter"):
                params.append(
                    ParameterDefinition(
                        name=node_text(child.child_by_field_name("name")),
                        type=node_text(child.child_by_field_name("type")),
                        optional=True,
                        default=node_text(child.child_by_field_name("value")),
                    )
                )
            # keyword_separator / positional_separator carry no name
        return params

    # ------------------------------------------------------------------
    # Imports and exports
    # ------------------------------------------------------------------

    def _visit_import(self, node: Any) -> None:
        location = self._location(node)
        if node.type == "import_statement":
            for child in node.children_by_field_name("name"):
                if child.type == "aliased_import":
                    module = node_text(child.child_by_field_name("name"))
                    alias = node_text(child.child_by_field_name("alias")) or None
                else:
                    module, alias = node_text(child), None
                self.analysis.imports.append(
                    ImportStatement(
                        source=module, named=[], location=location, module=module, alias=alias
                    )
                )
                self._dependencies.add(module.split(".", 1)[0])
            return

        if node.type == "future_import_statement":
            source = "__future__"
        else:
            source = node_text(node.child_by_field_name("module_name"))

        named: list[str] = []
        for child in node.children_by_field_name("name"):
            if child.type == "aliased_import":
                named.append(node_text(child.child_by_field_name("name")))
            else:
                named.append(node_text(child))
        is_wildcard = any(child.type == "wildcard_import" for child in node.children)
        is_relative = source.startswith(".")
        self.analysis.imports.append(
            ImportStatement(
                source=source,
                named=named,
                location=location,
                is_relative=is_relative,
                is_wildcard=is_wildcard,
            )
        )
        if not is_relative and source != "__future__":
            self._dependencies.add(source.split(".", 1)[0])

    def _record_reexports(self, root: Any) -> None:
        """Names listed in ``__all__`` that the module imports rather than defines."""
        declared = {e.name for e in self.analysis.exports if e.location.file == self._file}
        for statement in root.named_children:
            if statement.type != "import_from_statement":
                continue
            source = node_text(statement.child_by_field_name("module_name"))
            for child in statement.children_by_field_name("name"):
                if child.type == "aliased_import":
                    name = node_text(child.child_by_field_name("alias"))
                else:
                    name = node_text(child)
                if self._public_names and name in self._public_names and name not in declared:
                    self.analysis.exports.append(
                        ExportStatement(name, "value", self._location(statement), source=source)
                    )
                    declared.add(name)

    # ------------------------------------------------------------------
    # Cross-file
    # ------------------------------------------------------------------

    def _collect_configs(self) -> list[ConfigDefinition]:
        configs: list[ConfigDefinition] = []
        seen: set[str] = set()
        holders: list[tuple[str, list[PropertyDefinition]]] = [
            (i.name, i.properties) for i in self.analysis.interfaces
        ] + [(c.name, c.properties) for c in self.analysis.classes]
        for holder, properties in holders:
            if not holder.endswith(CONFIG_SUFFIXES):
                continue
            for prop in properties:
                if prop.name in seen:
                    continue
                seen.add(prop.name)
                configs.append(
                    ConfigDefinition(
                        name=prop.name,
                        type=prop.type or "Any",
                        default=prop.default,
                        required=prop.default is None and not prop.optional,
                        description=prop.doc,
                    )
                )
        return configs


def is_stdlib_module(name: str) -> bool:
    return name in sys.stdlib_module_names
