"""Core data models shared across storydoc components."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, List, Optional, Tuple


class ComponentKind(str, Enum):
    """Syntactic shapes recognised as component definitions."""

    FUNCTION = "function"
    ARROW = "arrow"
    CLASS = "class"
    FORWARD_REF = "forward_ref"


class ExportKind(str, Enum):
    """How a component declaration is exported from its module."""

    NONE = "none"
    NAMED = "named"
    DEFAULT = "default"


class ArtifactKind(str, Enum):
    """Generated text attached to a component."""

    DOC_COMMENT = "doc_comment"
    PROPERTY_CONTRACT = "property_contract"
    EXAMPLE_MODULE = "example_module"


@dataclass
class SourceModule:
    """A parsed source file; text and tree always describe the same bytes."""

    path: Path
    identifier: str
    source: bytes
    tree: Any
    fingerprint: str

    @property
    def text(self) -> str:
        return self.source.decode("utf-8")

    def slice(self, span: Tuple[int, int]) -> str:
        start, end = span
        return self.source[start:end].decode("utf-8")


@dataclass
class ComponentCandidate:
    """Top-level declaration identified as a component definition."""

    kind: ComponentKind
    name: str
    span: Tuple[int, int]
    statement_span: Tuple[int, int]
    export_kind: ExportKind
    documented: bool = False

    @property
    def is_exported(self) -> bool:
        return self.export_kind is not ExportKind.NONE


@dataclass
class GeneratedArtifact:
    """Oracle output for a single candidate."""

    kind: ArtifactKind
    candidate: ComponentCandidate
    text: str


@dataclass
class CandidateArtifacts:
    """The three artifacts produced for one candidate."""

    candidate: ComponentCandidate
    doc_comment: GeneratedArtifact
    property_contract: GeneratedArtifact
    example_module: GeneratedArtifact


@dataclass
class FailedModule:
    """A module whose processing aborted with a per-file error."""

    path: Path
    message: str


@dataclass
class RunSummary:
    """Outcome of a documentation run over one module root."""

    root: Path
    materialized: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)
    failed: List[FailedModule] = field(default_factory=list)
    companions: List[Path] = field(default_factory=list)
    stopped_reason: Optional[str] = None

    @property
    def changed_files(self) -> List[Path]:
        return [*self.materialized, *self.companions]
