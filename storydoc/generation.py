"""Concurrent generation of doc comments, prop types and stories."""

from __future__ import annotations

import asyncio
import functools
import re
from typing import Any, Awaitable, List, Optional, Protocol, Sequence

from .errors import GenerationError
from .logging import get_logger
from .models import (
    ArtifactKind,
    CandidateArtifacts,
    ComponentCandidate,
    GeneratedArtifact,
    SourceModule,
)
from .parsing import SourceParser, describe_error, first_syntax_error, node_text
from .prompting.builder import PromptBuilder, PromptRequest

_FENCE_PATTERN = re.compile(
    r"^[ \t]*(?P<fence>`{3,}|~{3,})(?P<info>[^\n`]*)\n(?P<body>.*?)^[ \t]*(?P=fence)[ \t]*$",
    re.MULTILINE | re.DOTALL,
)
_CODE_LANGUAGES = {"", "javascript", "js", "jsx"}
_CONTRACT_LIBRARY = "prop-types"


class TextOracle(Protocol):
    def run(self, prompt: str, *, system: str | None = None) -> str: ...


class UnusableResponse(ValueError):
    """The oracle answered, but not with the single code block that was asked for."""


def extract_code_block(text: str, *, required: bool) -> str:
    """Return the body of the single JavaScript fenced block in ``text``.

    Without any fence the raw text is returned unless ``required`` is set.
    More than one JavaScript fence is always rejected.
    """
    blocks = [
        match.group("body")
        for match in _FENCE_PATTERN.finditer(text)
        if match.group("info").strip().lower() in _CODE_LANGUAGES
    ]
    if len(blocks) > 1:
        raise UnusableResponse(f"expected one fenced code block, found {len(blocks)}")
    if not blocks:
        if required:
            raise UnusableResponse("expected one fenced code block, found none")
        return text.strip()
    return blocks[0].strip()


def format_doc_comment(text: str) -> str:
    """Strip block comment delimiters and re-wrap the text as a ``/** */`` block."""
    body = text.strip()
    if body.startswith("/*"):
        body = body[2:]
    if body.endswith("*/"):
        body = body[:-2]

    lines = []
    for raw in body.splitlines():
        line = raw.strip()
        if line.startswith("*"):
            line = line[1:]
            if line.startswith(" "):
                line = line[1:]
        lines.append(line.rstrip().replace("*/", "*\\/"))

    while lines and not lines[0].strip():
        lines.pop(0)
    while lines and not lines[-1].strip():
        lines.pop()
    if not lines:
        raise UnusableResponse("documentation comment is empty")

    rendered = ["/**"]
    rendered.extend(f" * {line}" if line else " *" for line in lines)
    rendered.append(" */")
    return "\n".join(rendered)


class ArtifactGenerator:
    """Requests all artifacts for a module's candidates and joins them."""

    def __init__(
        self,
        runner: TextOracle,
        prompt_builder: PromptBuilder | None = None,
        parser: SourceParser | None = None,
        *,
        request_timeout: Optional[float] = None,
    ) -> None:
        self._runner = runner
        self.prompt_builder = prompt_builder or PromptBuilder()
        self.parser = parser or SourceParser()
        self.request_timeout = request_timeout
        self.logger = get_logger("generation")

    async def generate(
        self, module: SourceModule, candidates: Sequence[ComponentCandidate]
    ) -> List[CandidateArtifacts]:
        """Generate artifacts for every candidate; any failure fails the whole module."""
        return await _join_all(
            [self._generate_candidate(module, candidate) for candidate in candidates]
        )

    async def _generate_candidate(
        self, module: SourceModule, candidate: ComponentCandidate
    ) -> CandidateArtifacts:
        builder = self.prompt_builder

        async def _comment_and_contract() -> List[GeneratedArtifact]:
            return await _join_all(
                [
                    self._request(module, candidate, builder.doc_comment(module, candidate)),
                    self._request(module, candidate, builder.property_contract(module, candidate)),
                ]
            )

        pair, example = await _join_all(
            [
                _comment_and_contract(),
                self._request(module, candidate, builder.example_module(module, candidate)),
            ]
        )
        doc_comment, property_contract = pair
        return CandidateArtifacts(
            candidate=candidate,
            doc_comment=doc_comment,
            property_contract=property_contract,
            example_module=example,
        )

    async def _request(
        self, module: SourceModule, candidate: ComponentCandidate, request: PromptRequest
    ) -> GeneratedArtifact:
        label = request.kind.value.replace("_", " ")
        self.logger.debug("Requesting %s for %s in %s", label, candidate.name, module.identifier)
        loop = asyncio.get_running_loop()
        call = loop.run_in_executor(
            None, functools.partial(self._runner.run, request.prompt, system=request.system)
        )
        try:
            response = await asyncio.wait_for(call, timeout=self.request_timeout)
        except asyncio.TimeoutError as exc:
            raise GenerationError(
                module.path,
                f"{label} request for {candidate.name} timed out after {self.request_timeout}s",
            ) from exc
        except Exception as exc:
            raise GenerationError(
                module.path, f"{label} request for {candidate.name} failed: {exc}"
            ) from exc

        if not isinstance(response, str) or not response.strip():
            raise GenerationError(
                module.path, f"{label} response for {candidate.name} was empty"
            )

        try:
            text = self._postprocess(request.kind, response, candidate.name)
        except UnusableResponse as exc:
            raise GenerationError(
                module.path, f"{label} response for {candidate.name} unusable: {exc}"
            ) from exc
        return GeneratedArtifact(kind=request.kind, candidate=candidate, text=text)

    def _postprocess(self, kind: ArtifactKind, response: str, name: str) -> str:
        if kind is ArtifactKind.DOC_COMMENT:
            return format_doc_comment(extract_code_block(response, required=False))
        if kind is ArtifactKind.PROPERTY_CONTRACT:
            return self.clean_property_contract(
                extract_code_block(response, required=True), name
            )
        story = extract_code_block(response, required=False)
        if not story:
            raise UnusableResponse("story module is empty")
        return story + "\n"

    def clean_property_contract(self, code: str, name: str) -> str:
        """Drop prop-types imports and default exports so the code can be inlined.

        Any other import or export would change the host module's bindings, so
        such answers are rejected instead of spliced.
        """
        source = code.encode("utf-8")
        tree = self.parser.parse(source)
        error = first_syntax_error(tree)
        if error is not None:
            raise UnusableResponse(f"prop types code does not parse ({describe_error(error)})")

        removals = []
        for statement in tree.root_node.named_children:
            if statement.type == "import_statement":
                module_name = statement.child_by_field_name("source")
                if module_name is None or (
                    node_text(module_name, source).strip("'\"`") != _CONTRACT_LIBRARY
                ):
                    raise UnusableResponse(
                        f"unexpected import in prop types: {node_text(statement, source)}"
                    )
                removals.append((statement.start_byte, statement.end_byte))
            elif statement.type == "export_statement":
                if not any(child.type == "default" for child in statement.children):
                    raise UnusableResponse(
                        f"unexpected export in prop types: {node_text(statement, source)}"
                    )
                removals.append((statement.start_byte, statement.end_byte))

        for start, end in sorted(removals, reverse=True):
            source = source[:start] + source[end:]
        cleaned = re.sub(r"\n{3,}", "\n\n", source.decode("utf-8")).strip()
        if not re.search(rf"(?m)^\s*{re.escape(name)}\.propTypes\s*=", cleaned):
            raise UnusableResponse(f"no {name}.propTypes assignment found")
        return cleaned


async def _join_all(awaitables: Sequence[Awaitable[Any]]) -> List[Any]:
    """Await everything, then raise the first failure; nothing is left running."""
    results = await asyncio.gather(*awaitables, return_exceptions=True)
    for result in results:
        if isinstance(result, BaseException):
            raise result
    return list(results)


__all__ = [
    "ArtifactGenerator",
    "TextOracle",
    "UnusableResponse",
    "extract_code_block",
    "format_doc_comment",
]
