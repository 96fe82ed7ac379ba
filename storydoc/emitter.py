"""Writes the Storybook companion module for each documented component."""

from __future__ import annotations

from pathlib import Path

from .errors import WriteError
from .models import CandidateArtifacts

STORY_SUFFIX = ".stories.js"


def companion_path(source_path: Path, component_name: str) -> Path:
    """``<dir>/<Component>_<file-stem>.stories.js`` next to the source module."""
    return source_path.parent / f"{component_name}_{source_path.stem}{STORY_SUFFIX}"


class CompanionEmitter:
    """Writes example modules beside their source file, overwriting existing ones."""

    def emit(self, source_path: Path, artifacts: CandidateArtifacts) -> Path:
        target = companion_path(source_path, artifacts.candidate.name)
        try:
            target.write_bytes(artifacts.example_module.text.encode("utf-8"))
        except OSError as exc:
            raise WriteError(source_path, f"failed to write {target.name}: {exc}") from exc
        return target


__all__ = ["CompanionEmitter", "STORY_SUFFIX", "companion_path"]
