"""Splices generated artifacts into a module's source around its components."""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Iterator, List, Sequence, Set, Tuple

from tree_sitter import Node

from .analyzers.components import ComponentClassifier
from .errors import SpliceError
from .models import CandidateArtifacts, ExportKind, SourceModule
from .parsing import SourceParser, describe_error, first_syntax_error, node_text

PROP_TYPES_LIBRARY = "prop-types"
PROP_TYPES_IMPORT = f'import PropTypes from "{PROP_TYPES_LIBRARY}";'

# Relative order of insertions that land on the same byte offset.
_RANK_IMPORT = 0
_RANK_COMMENT = 1
_RANK_EXPORT = 2
_RANK_CONTRACT = 3


@dataclass(frozen=True)
class Insertion:
    """Text to insert at an offset of the original source.

    Insertions sharing an offset appear in ascending ``(group, rank, sequence)``
    order, where ``group`` is the owning statement's start offset and ``sequence``
    the candidate's position in traversal order.
    """

    offset: int
    group: int
    rank: int
    text: str
    sequence: int = 0

    @property
    def sort_key(self) -> Tuple[int, int, int, int]:
        return (self.offset, self.group, self.rank, self.sequence)


def apply_insertions(source: bytes, insertions: Sequence[Insertion]) -> bytes:
    """Apply all insertions in one pass, highest offset first, so offsets stay valid."""
    result = source
    for insertion in sorted(insertions, key=lambda item: item.sort_key, reverse=True):
        if not 0 <= insertion.offset <= len(result):
            raise ValueError(f"insertion offset {insertion.offset} outside source")
        result = result[: insertion.offset] + insertion.text.encode("utf-8") + result[insertion.offset :]
    return result


def _starts_line(source: bytes, offset: int) -> bool:
    """True when only spaces or tabs separate ``offset`` from the previous newline."""
    index = offset
    while index > 0 and source[index - 1 : index] in (b" ", b"\t"):
        index -= 1
    return index == 0 or source[index - 1 : index] == b"\n"


def _exported_names(root: Node, source: bytes) -> Iterator[str]:
    """Yield every binding a module exports, ``default`` included, once per export site."""
    for statement in root.named_children:
        if statement.type != "export_statement":
            continue
        if any(child.type == "default" for child in statement.children):
            yield "default"
            continue
        declaration = statement.child_by_field_name("declaration")
        if declaration is not None:
            name = declaration.child_by_field_name("name")
            if name is not None:
                yield node_text(name, source)
                continue
            for declarator in declaration.named_children:
                if declarator.type != "variable_declarator":
                    continue
                binding = declarator.child_by_field_name("name")
                if binding is not None and binding.type == "identifier":
                    yield node_text(binding, source)
            continue
        for clause in statement.named_children:
            if clause.type != "export_clause":
                continue
            for specifier in clause.named_children:
                if specifier.type != "export_specifier":
                    continue
                exported = specifier.child_by_field_name("alias") or specifier.child_by_field_name(
                    "name"
                )
                if exported is not None:
                    yield node_text(exported, source).strip("'\"")


class TreeSplicer:
    """Inserts doc comments, export wrappers, prop types and the prop-types import."""

    def __init__(
        self,
        parser: SourceParser | None = None,
        classifier: ComponentClassifier | None = None,
    ) -> None:
        self.parser = parser or SourceParser()
        self.classifier = classifier or ComponentClassifier()

    def plan(
        self, module: SourceModule, artifacts: Sequence[CandidateArtifacts]
    ) -> List[Insertion]:
        """Compute insertions against the original source; the module is not modified."""
        statements: Set[Tuple[int, int]] = {
            (node.start_byte, node.end_byte) for node in module.tree.root_node.named_children
        }
        insertions: List[Insertion] = []
        wrapped: Set[int] = set()

        for sequence, item in enumerate(artifacts):
            candidate = item.candidate
            if candidate.statement_span not in statements:
                raise SpliceError(
                    module.path, f"insertion point for {candidate.name} not found at module scope"
                )
            statement_start, statement_end = candidate.statement_span
            declaration_start = candidate.span[0]

            separator = "" if _starts_line(module.source, statement_start) else "\n"
            insertions.append(
                Insertion(
                    offset=statement_start,
                    group=statement_start,
                    rank=_RANK_COMMENT,
                    text=f"{separator}{item.doc_comment.text}\n",
                    sequence=sequence,
                )
            )
            if candidate.export_kind is ExportKind.NONE and declaration_start not in wrapped:
                wrapped.add(declaration_start)
                insertions.append(
                    Insertion(
                        offset=declaration_start,
                        group=statement_start,
                        rank=_RANK_EXPORT,
                        text="export ",
                        sequence=sequence,
                    )
                )
            insertions.append(
                Insertion(
                    offset=statement_end,
                    group=statement_start,
                    rank=_RANK_CONTRACT,
                    text=f"\n\n{item.property_contract.text}",
                    sequence=sequence,
                )
            )

        if artifacts and not self.has_prop_types_import(module):
            insertions.append(self._import_insertion(module))
        return insertions

    def splice(self, module: SourceModule, artifacts: Sequence[CandidateArtifacts]) -> str:
        """Return the module text with every artifact inserted, validated by re-parsing."""
        insertions = self.plan(module, artifacts)
        try:
            spliced = apply_insertions(module.source, insertions)
        except ValueError as exc:
            raise SpliceError(module.path, str(exc)) from exc
        self._validate(module, spliced, artifacts)
        return spliced.decode("utf-8")

    @staticmethod
    def has_prop_types_import(module: SourceModule) -> bool:
        for statement in module.tree.root_node.named_children:
            if statement.type != "import_statement":
                continue
            source_node = statement.child_by_field_name("source")
            if source_node is None:
                continue
            if node_text(source_node, module.source).strip("'\"`") == PROP_TYPES_LIBRARY:
                return True
        return False

    @staticmethod
    def _import_insertion(module: SourceModule) -> Insertion:
        """Place the import after any directive prologue (``"use client";``), else at the top."""
        prologue_end = None
        for statement in module.tree.root_node.named_children:
            if statement.type == "comment":
                continue
            if statement.type == "expression_statement":
                expressions = [child for child in statement.named_children if child.type != "comment"]
                if len(expressions) == 1 and expressions[0].type == "string":
                    prologue_end = statement.end_byte
                    continue
            break
        if prologue_end is None:
            return Insertion(offset=0, group=-1, rank=_RANK_IMPORT, text=f"{PROP_TYPES_IMPORT}\n")
        return Insertion(offset=prologue_end, group=-1, rank=_RANK_IMPORT, text=f"\n{PROP_TYPES_IMPORT}")

    def _validate(
        self, module: SourceModule, spliced: bytes, artifacts: Sequence[CandidateArtifacts]
    ) -> None:
        tree = self.parser.parse(spliced)
        error = first_syntax_error(tree)
        if error is not None:
            raise SpliceError(module.path, f"spliced source does not parse: {describe_error(error)}")

        result = SourceModule(
            path=module.path,
            identifier=module.identifier,
            source=spliced,
            tree=tree,
            fingerprint=module.fingerprint,
        )
        found = {candidate.name: candidate for candidate in self.classifier.classify(result)}
        for item in artifacts:
            name = item.candidate.name
            if name not in found:
                raise SpliceError(module.path, f"component {name} lost while splicing")
            if not found[name].is_exported:
                raise SpliceError(module.path, f"component {name} is not exported after splicing")
            if not found[name].documented:
                raise SpliceError(module.path, f"prop types for {name} missing after splicing")
        if not self.has_prop_types_import(result):
            raise SpliceError(module.path, "prop-types import missing after splicing")
        exports = Counter(_exported_names(tree.root_node, spliced))
        duplicates = sorted(name for name, count in exports.items() if count > 1)
        if duplicates:
            raise SpliceError(
                module.path, f"duplicate exports after splicing: {', '.join(duplicates)}"
            )


__all__ = ["Insertion", "PROP_TYPES_IMPORT", "TreeSplicer", "apply_insertions"]
