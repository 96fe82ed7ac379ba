"""Tests for prompt rendering."""

from __future__ import annotations

from pathlib import Path

from storydoc.analyzers.components import ComponentClassifier
from storydoc.models import ArtifactKind
from storydoc.prompting.builder import PromptBuilder

SOURCE = """
import React from "react";

const Badge = ({ count }) => <span>{count}</span>;

export default Badge;
"""


def _badge(parse_module):
    module = parse_module(SOURCE, name="Badge.jsx")
    (candidate,) = ComponentClassifier().classify(module)
    return module, candidate


def test_doc_comment_prompt_embeds_component_source(parse_module) -> None:
    module, candidate = _badge(parse_module)

    request = PromptBuilder().doc_comment(module, candidate)

    assert request.kind is ArtifactKind.DOC_COMMENT
    assert request.prompt.startswith("Write a JSDoc comment documenting the React component `Badge`.")
    assert "const Badge = ({ count }) => <span>{count}</span>;" in request.prompt
    assert "import React" not in request.prompt
    assert request.system == PromptBuilder.SYSTEM_PROMPT


def test_prop_types_prompt_names_component(parse_module) -> None:
    module, candidate = _badge(parse_module)

    request = PromptBuilder().property_contract(module, candidate)

    assert request.kind is ArtifactKind.PROPERTY_CONTRACT
    assert "Use `Badge` as the component name." in request.prompt


def test_story_prompt_uses_default_import_for_default_exports(parse_module) -> None:
    module, candidate = _badge(parse_module)

    request = PromptBuilder().example_module(module, candidate)

    assert request.kind is ArtifactKind.EXAMPLE_MODULE
    assert 'import Badge from "./Badge";' in request.prompt
    assert "located in `Badge.jsx`" in request.prompt
    assert "export default Badge;" in request.prompt


def test_story_prompt_uses_named_import_for_unexported_components(parse_module) -> None:
    module = parse_module("function Card() {\n  return <div />;\n}\n", name="Cards.jsx")
    (candidate,) = ComponentClassifier().classify(module)

    request = PromptBuilder().example_module(module, candidate)

    assert 'import { Card } from "./Cards";' in request.prompt


def test_custom_templates_directory_takes_precedence(parse_module, tmp_path: Path) -> None:
    templates = tmp_path / "templates"
    templates.mkdir()
    (templates / "doc_comment.j2").write_text("Describe {{ name }}.", encoding="utf-8")
    module, candidate = _badge(parse_module)

    request = PromptBuilder(templates_dir=templates).doc_comment(module, candidate)

    assert request.prompt == "Describe Badge."
