from __future__ import annotations

import re
import textwrap
import threading
from pathlib import Path
from typing import Callable, Mapping

import pytest

from storydoc.config import StorydocConfig
from storydoc.engine import DocumentationEngine
from storydoc.formatting import PassthroughFormatter
from storydoc.parsing import SourceParser

_NAME_PATTERN = re.compile(r"component `(?P<name>[A-Za-z0-9_$]+)`")


class RecordingOracle:
    """Text oracle double that answers each prompt kind with a canned fenced block."""

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.calls: list[dict[str, str | None]] = []
        self.fail_for = fail_for or set()
        self._lock = threading.Lock()

    def run(self, prompt: str, *, system: str | None = None) -> str:
        match = _NAME_PATTERN.search(prompt)
        name = match.group("name") if match else "Unknown"
        with self._lock:
            self.calls.append({"prompt": prompt, "system": system, "name": name})
        if name in self.fail_for:
            raise RuntimeError(f"service unavailable for {name}")
        if prompt.startswith("Write a JSDoc comment"):
            return f"Here you go:\n```javascript\n/**\n * Renders {name}.\n */\n```"
        if prompt.startswith("Generate prop types"):
            return (
                "```javascript\n"
                "import PropTypes from 'prop-types';\n\n"
                f"{name}.propTypes = {{\n  label: PropTypes.string,\n}};\n\n"
                f"export default {name};\n"
                "```"
            )
        return (
            "```javascript\n"
            f"import {{ {name} }} from './component';\n\n"
            f"export default {{ title: '{name}', component: {name}, tags: ['autodocs'] }};\n"
            "```"
        )


class Project:
    """Writes dedented files under a throwaway project root."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.root.mkdir()

    def write(self, files: Mapping[str, str]) -> None:
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(textwrap.dedent(content).lstrip("\n"), encoding="utf-8")

    def read(self, relative: str) -> str:
        return (self.root / relative).read_text(encoding="utf-8")


@pytest.fixture
def project(tmp_path: Path) -> Project:
    return Project(tmp_path / "project")


@pytest.fixture
def oracle() -> RecordingOracle:
    return RecordingOracle()


@pytest.fixture
def make_engine(project: Project) -> Callable[..., DocumentationEngine]:
    def _make(runner: RecordingOracle, **settings: object) -> DocumentationEngine:
        config = StorydocConfig(root=project.root, formatter="none", file_limits=10)
        config = config.with_overrides(**settings)
        return DocumentationEngine(config, runner, formatter=PassthroughFormatter())

    return _make


@pytest.fixture
def parse_module(tmp_path: Path):
    parser = SourceParser()

    def _parse(source: str, name: str = "Component.jsx"):
        text = textwrap.dedent(source).lstrip("\n")
        return parser.parse_module(tmp_path / name, name, text.encode("utf-8"))

    return _parse
