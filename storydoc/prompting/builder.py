"""Builds oracle prompts for component artifacts from Jinja templates."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..models import ArtifactKind, ComponentCandidate, ExportKind, SourceModule

_TEMPLATES = {
    ArtifactKind.DOC_COMMENT: "doc_comment.j2",
    ArtifactKind.PROPERTY_CONTRACT: "prop_types.j2",
    ArtifactKind.EXAMPLE_MODULE: "story.j2",
}


@dataclass(frozen=True)
class PromptRequest:
    """A rendered prompt for one artifact of one candidate."""

    kind: ArtifactKind
    prompt: str
    system: str


class PromptBuilder:
    """Renders the doc comment, prop types and story prompts."""

    SYSTEM_PROMPT = (
        "You are a senior React developer writing component documentation. "
        "Stay grounded in the code you are given and never invent props the component does not use."
    )

    def __init__(self, templates_dir: Path | None = None) -> None:
        directories = []
        if templates_dir:
            directories.append(str(templates_dir))
        directories.append(str(Path(__file__).with_name("templates")))
        self._env = Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )

    def doc_comment(self, module: SourceModule, candidate: ComponentCandidate) -> PromptRequest:
        return self._render(
            ArtifactKind.DOC_COMMENT,
            name=candidate.name,
            component_source=module.slice(candidate.span),
        )

    def property_contract(
        self, module: SourceModule, candidate: ComponentCandidate
    ) -> PromptRequest:
        return self._render(
            ArtifactKind.PROPERTY_CONTRACT,
            name=candidate.name,
            component_source=module.slice(candidate.span),
        )

    def example_module(self, module: SourceModule, candidate: ComponentCandidate) -> PromptRequest:
        """Story prompt; components without an export are described as named exports since the splicer adds one."""
        export_kind = (
            ExportKind.DEFAULT if candidate.export_kind is ExportKind.DEFAULT else ExportKind.NAMED
        )
        return self._render(
            ArtifactKind.EXAMPLE_MODULE,
            name=candidate.name,
            component_source=module.slice(candidate.span),
            module_source=module.text,
            export_kind=export_kind.value,
            component_file=module.path.name,
            component_stem=module.path.stem,
        )

    def _render(self, kind: ArtifactKind, **context: object) -> PromptRequest:
        template = self._env.get_template(_TEMPLATES[kind])
        return PromptRequest(kind=kind, prompt=template.render(**context), system=self.SYSTEM_PROMPT)


__all__ = ["PromptBuilder", "PromptRequest"]
