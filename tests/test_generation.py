"""Tests for artifact generation and response post-processing."""

from __future__ import annotations

import asyncio
import threading
import time

import pytest
from conftest import RecordingOracle

from storydoc.analyzers.components import ComponentClassifier
from storydoc.errors import GenerationError
from storydoc.generation import (
    ArtifactGenerator,
    UnusableResponse,
    extract_code_block,
    format_doc_comment,
)
from storydoc.models import ArtifactKind

CARDS = """
export function Card() {
  return <div>card</div>;
}

export const Chip = () => <span>chip</span>;
"""


def _generate(generator, module):
    candidates = ComponentClassifier().classify(module)
    return asyncio.run(generator.generate(module, candidates))


def test_extract_code_block_returns_single_fence_body() -> None:
    text = "Sure!\n```jsx\nconst a = 1;\n```\nHope this helps."

    assert extract_code_block(text, required=True) == "const a = 1;"


def test_extract_code_block_ignores_non_javascript_fences() -> None:
    text = "```bash\nnpm i\n```\n```js\nconst a = 1;\n```"

    assert extract_code_block(text, required=True) == "const a = 1;"


def test_extract_code_block_rejects_multiple_fences() -> None:
    text = "```javascript\nconst a = 1;\n```\n```javascript\nconst b = 2;\n```"

    with pytest.raises(UnusableResponse):
        extract_code_block(text, required=False)


def test_extract_code_block_without_fence() -> None:
    assert extract_code_block("  /** Plain. */  ", required=False) == "/** Plain. */"
    with pytest.raises(UnusableResponse):
        extract_code_block("Card.propTypes = {};", required=True)


def test_format_doc_comment_rewraps_existing_block() -> None:
    assert format_doc_comment("/**\n * First line.\n *\n * Second.\n */") == (
        "/**\n * First line.\n *\n * Second.\n */"
    )


def test_format_doc_comment_wraps_plain_text() -> None:
    assert format_doc_comment("Shows a card.\nWith details.") == (
        "/**\n * Shows a card.\n * With details.\n */"
    )


def test_format_doc_comment_rejects_empty_comment() -> None:
    with pytest.raises(UnusableResponse):
        format_doc_comment("/** */")


def test_clean_property_contract_strips_imports_and_default_export() -> None:
    generator = ArtifactGenerator(RecordingOracle())
    code = (
        "import PropTypes from 'prop-types';\n\n"
        "Card.propTypes = {\n  title: PropTypes.string,\n};\n\n"
        "export default Card;"
    )

    assert generator.clean_property_contract(code, "Card") == (
        "Card.propTypes = {\n  title: PropTypes.string,\n};"
    )


def test_clean_property_contract_requires_assignment_for_component() -> None:
    generator = ArtifactGenerator(RecordingOracle())

    with pytest.raises(UnusableResponse):
        generator.clean_property_contract("Other.propTypes = {};", "Card")
    with pytest.raises(UnusableResponse):
        generator.clean_property_contract("Card.propTypes = {", "Card")


def test_generate_returns_artifacts_in_candidate_order(parse_module) -> None:
    oracle = RecordingOracle()
    module = parse_module(CARDS)

    results = _generate(ArtifactGenerator(oracle), module)

    assert [item.candidate.name for item in results] == ["Card", "Chip"]
    card = results[0]
    assert card.doc_comment.kind is ArtifactKind.DOC_COMMENT
    assert card.doc_comment.text == "/**\n * Renders Card.\n */"
    assert card.property_contract.text == "Card.propTypes = {\n  label: PropTypes.string,\n};"
    assert card.example_module.text.endswith("\n")
    assert "component: Card" in card.example_module.text
    assert len(oracle.calls) == 6
    assert all(call["system"] for call in oracle.calls)


class _BarrierOracle(RecordingOracle):
    """Blocks every call until all of them are in flight at once."""

    def __init__(self, parties: int) -> None:
        super().__init__()
        self.barrier = threading.Barrier(parties, timeout=5)

    def run(self, prompt: str, *, system: str | None = None) -> str:
        self.barrier.wait()
        return super().run(prompt, system=system)


def test_requests_for_a_candidate_run_concurrently(parse_module) -> None:
    oracle = _BarrierOracle(parties=3)
    module = parse_module("export const Chip = () => <span>chip</span>;\n")

    results = _generate(ArtifactGenerator(oracle), module)

    assert [item.candidate.name for item in results] == ["Chip"]
    assert len(oracle.calls) == 3


def test_any_failure_fails_the_module_after_all_requests_finish(parse_module) -> None:
    oracle = RecordingOracle(fail_for={"Chip"})
    module = parse_module(CARDS)

    with pytest.raises(GenerationError) as excinfo:
        _generate(ArtifactGenerator(oracle), module)

    assert "Chip" in excinfo.value.message
    assert len(oracle.calls) == 6


class _EmptyOracle:
    def run(self, prompt: str, *, system: str | None = None) -> str:
        return "   "


def test_empty_response_is_a_generation_error(parse_module) -> None:
    module = parse_module("export const Chip = () => <span>chip</span>;\n")

    with pytest.raises(GenerationError) as excinfo:
        _generate(ArtifactGenerator(_EmptyOracle()), module)

    assert "empty" in excinfo.value.message


class _SlowOracle(RecordingOracle):
    def run(self, prompt: str, *, system: str | None = None) -> str:
        time.sleep(0.5)
        return super().run(prompt, system=system)


def test_slow_response_times_out(parse_module) -> None:
    module = parse_module("export const Chip = () => <span>chip</span>;\n")

    with pytest.raises(GenerationError) as excinfo:
        _generate(ArtifactGenerator(_SlowOracle(), request_timeout=0.05), module)

    assert "timed out" in excinfo.value.message


@pytest.mark.parametrize(
    "code",
    [
        "Card.propTypes = {};\nexport { Card };",
        "import React from 'react';\nCard.propTypes = {};",
        "export const Card = () => null;\nCard.propTypes = {};",
    ],
)
def test_clean_property_contract_rejects_foreign_imports_and_exports(code: str) -> None:
    generator = ArtifactGenerator(RecordingOracle())

    with pytest.raises(UnusableResponse):
        generator.clean_property_contract(code, "Card")
