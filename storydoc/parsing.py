"""Tree-sitter adapter turning JSX modules into syntax trees."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator, Optional

import tree_sitter_javascript
from tree_sitter import Language, Node, Parser, Tree

from .errors import ParseError
from .models import SourceModule
from .stores.tracker import fingerprint

JAVASCRIPT = Language(tree_sitter_javascript.language())


def node_text(node: Node, source: bytes) -> str:
    return source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")


def iter_nodes(node: Node) -> Iterator[Node]:
    """Depth-first pre-order walk."""
    yield node
    for child in node.children:
        yield from iter_nodes(child)


def first_syntax_error(tree: Tree) -> Optional[Node]:
    """Return the first ERROR or MISSING node, if the tree has any."""
    if not tree.root_node.has_error:
        return None
    for node in iter_nodes(tree.root_node):
        if node.type == "ERROR" or node.is_missing:
            return node
    return tree.root_node


def describe_error(node: Node) -> str:
    row, column = node.start_point[0], node.start_point[1]
    if node.is_missing:
        return f"missing '{node.type}' at line {row + 1}, column {column + 1}"
    return f"syntax error at line {row + 1}, column {column + 1}"


class SourceParser:
    """Parses JavaScript/JSX source into tree-sitter trees."""

    def __init__(self) -> None:
        self._parser = Parser(JAVASCRIPT)

    def parse(self, source: bytes) -> Tree:
        return self._parser.parse(source)

    def parse_module(self, path: Path, identifier: str, source: bytes) -> SourceModule:
        """Parse a module, rejecting sources that do not decode or contain syntax errors."""
        try:
            source.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise ParseError(path, f"not valid UTF-8: {exc}") from exc

        tree = self.parse(source)
        error = first_syntax_error(tree)
        if error is not None:
            raise ParseError(path, describe_error(error))

        return SourceModule(
            path=path,
            identifier=identifier,
            source=source,
            tree=tree,
            fingerprint=fingerprint(source),
        )


__all__ = [
    "JAVASCRIPT",
    "SourceParser",
    "describe_error",
    "first_syntax_error",
    "iter_nodes",
    "node_text",
]
