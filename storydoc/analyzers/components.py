"""Classifies module-level declarations as React component definitions."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Set, Tuple

from tree_sitter import Node

from ..models import ComponentCandidate, ComponentKind, ExportKind, SourceModule
from ..parsing import node_text

_MARKUP_TYPES = {"jsx_element", "jsx_self_closing_element", "jsx_fragment"}
_FUNCTION_TYPES = {"function_declaration", "function_expression", "function"}
_CLASS_TYPES = {"class_declaration", "class"}
_BINDING_TYPES = {"lexical_declaration", "variable_declaration"}


def _named(node: Node) -> List[Node]:
    return [child for child in node.named_children if child.type != "comment"]


def _unwrap_parens(node: Optional[Node]) -> Optional[Node]:
    while node is not None and node.type == "parenthesized_expression":
        inner = _named(node)
        node = inner[0] if inner else None
    return node


def _is_markup(node: Optional[Node]) -> bool:
    node = _unwrap_parens(node)
    return node is not None and node.type in _MARKUP_TYPES


def _returns_markup(block: Optional[Node]) -> bool:
    if block is None or block.type != "statement_block":
        return False
    for statement in _named(block):
        if statement.type != "return_statement":
            continue
        argument = _named(statement)
        if argument and _is_markup(argument[0]):
            return True
    return False


def _is_default_export(statement: Node) -> bool:
    return any(child.type == "default" for child in statement.children)


class ComponentClassifier:
    """Finds the four supported component shapes at module scope.

    Shapes are ``function Name() { return <jsx/> }``, ``const Name = () => <jsx/>``,
    ``class Name extends React.Component`` and ``const Name = React.forwardRef(() => ...)``.
    Each top-level statement is inspected bare or inside its ``export`` wrapper.
    """

    def __init__(
        self,
        *,
        namespace: str = "React",
        base_components: Iterable[str] = ("Component", "PureComponent"),
        ref_helper: str = "forwardRef",
    ) -> None:
        self.namespace = namespace
        self.base_components = frozenset(base_components)
        self.ref_helper = ref_helper

    def classify(self, module: SourceModule) -> List[ComponentCandidate]:
        root = module.tree.root_node
        source = module.source
        default_refs, named_refs = self._export_references(root, source)
        documented = self._documented_names(root, source)

        candidates: List[ComponentCandidate] = []
        for statement in _named(root):
            declaration, export_kind = self._unwrap_export(statement)
            if declaration is None:
                continue
            for kind, name in self._match(declaration, source):
                effective_export = export_kind
                if effective_export is ExportKind.NONE:
                    if name in default_refs:
                        effective_export = ExportKind.DEFAULT
                    elif name in named_refs:
                        effective_export = ExportKind.NAMED
                candidates.append(
                    ComponentCandidate(
                        kind=kind,
                        name=name,
                        span=(declaration.start_byte, declaration.end_byte),
                        statement_span=(statement.start_byte, statement.end_byte),
                        export_kind=effective_export,
                        documented=name in documented,
                    )
                )
        return candidates

    # ------------------------------------------------------------------
    # Shape matching

    def _match(self, declaration: Node, source: bytes) -> Iterator[Tuple[ComponentKind, str]]:
        if declaration.type in _FUNCTION_TYPES:
            name = self._function_component_name(declaration, source)
            if name:
                yield ComponentKind.FUNCTION, name
        elif declaration.type in _CLASS_TYPES:
            name = self._class_component_name(declaration, source)
            if name:
                yield ComponentKind.CLASS, name
        elif declaration.type in _BINDING_TYPES:
            for declarator in _named(declaration):
                if declarator.type != "variable_declarator":
                    continue
                matched = self._binding_component(declarator, source)
                if matched is not None:
                    yield matched

    def _function_component_name(self, node: Node, source: bytes) -> Optional[str]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        name = node_text(name_node, source)
        if not name[:1].isupper():
            return None
        if not _returns_markup(node.child_by_field_name("body")):
            return None
        return name

    def _class_component_name(self, node: Node, source: bytes) -> Optional[str]:
        name_node = node.child_by_field_name("name")
        if name_node is None:
            return None
        heritage = next((child for child in node.children if child.type == "class_heritage"), None)
        if heritage is None:
            return None
        bases = _named(heritage)
        if not bases or not self._is_qualified(bases[0], source, self.base_components):
            return None
        return node_text(name_node, source)

    def _binding_component(
        self, declarator: Node, source: bytes
    ) -> Optional[Tuple[ComponentKind, str]]:
        name_node = declarator.child_by_field_name("name")
        value = declarator.child_by_field_name("value")
        if name_node is None or name_node.type != "identifier" or value is None:
            return None
        name = node_text(name_node, source)

        if value.type == "arrow_function":
            body = value.child_by_field_name("body")
            if _is_markup(body) or _returns_markup(body):
                return ComponentKind.ARROW, name
            return None

        if value.type == "call_expression":
            callee = value.child_by_field_name("function")
            arguments = value.child_by_field_name("arguments")
            if callee is None or arguments is None:
                return None
            if not self._is_qualified(callee, source, {self.ref_helper}):
                return None
            args = _named(arguments)
            if len(args) == 1 and args[0].type == "arrow_function":
                return ComponentKind.FORWARD_REF, name
        return None

    def _is_qualified(self, node: Node, source: bytes, properties: Iterable[str]) -> bool:
        """True for ``<namespace>.<property>`` member access."""
        if node.type != "member_expression":
            return False
        obj = node.child_by_field_name("object")
        prop = node.child_by_field_name("property")
        if obj is None or prop is None or obj.type != "identifier":
            return False
        return node_text(obj, source) == self.namespace and node_text(prop, source) in set(properties)

    # ------------------------------------------------------------------
    # Module-level bookkeeping

    @staticmethod
    def _unwrap_export(statement: Node) -> Tuple[Optional[Node], ExportKind]:
        if statement.type != "export_statement":
            return statement, ExportKind.NONE
        kind = ExportKind.DEFAULT if _is_default_export(statement) else ExportKind.NAMED
        declaration = statement.child_by_field_name("declaration")
        if declaration is not None:
            return declaration, kind
        value = statement.child_by_field_name("value")
        if value is not None and value.type in _FUNCTION_TYPES | _CLASS_TYPES:
            return value, kind
        return None, kind

    @staticmethod
    def _export_references(root: Node, source: bytes) -> Tuple[Set[str], Set[str]]:
        """Names exported by ``export default Name;`` and local ``export { Name }`` clauses."""
        default_refs: Set[str] = set()
        named_refs: Set[str] = set()
        for statement in _named(root):
            if statement.type != "export_statement":
                continue
            if statement.child_by_field_name("source") is not None:
                continue
            value = statement.child_by_field_name("value")
            if value is not None and value.type == "identifier" and _is_default_export(statement):
                default_refs.add(node_text(value, source))
                continue
            for clause in statement.named_children:
                if clause.type != "export_clause":
                    continue
                for specifier in _named(clause):
                    name_node = specifier.child_by_field_name("name")
                    if name_node is not None:
                        named_refs.add(node_text(name_node, source))
        return default_refs, named_refs

    @staticmethod
    def _documented_names(root: Node, source: bytes) -> Set[str]:
        """Names that already carry a top-level ``Name.propTypes = ...`` assignment."""
        names: Set[str] = set()
        for statement in _named(root):
            if statement.type != "expression_statement":
                continue
            expressions = _named(statement)
            if not expressions or expressions[0].type != "assignment_expression":
                continue
            left = expressions[0].child_by_field_name("left")
            if left is None or left.type != "member_expression":
                continue
            obj = left.child_by_field_name("object")
            prop = left.child_by_field_name("property")
            if obj is not None and prop is not None and node_text(prop, source) == "propTypes":
                names.add(node_text(obj, source))
        return names


__all__ = ["ComponentClassifier"]
