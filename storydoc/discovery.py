"""Discovery of component source modules under a project root."""

from __future__ import annotations

import os
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterator, List, Sequence

from .errors import DiscoveryError

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    ".next",
    ".cache",
    ".turbo",
}

_COMPANION_SUFFIXES = (".stories.js", ".stories.jsx")


@dataclass
class IgnoreRule:
    """A gitignore-style exclusion pattern from `exclude_paths`."""

    pattern: str
    directory_only: bool
    anchored: bool
    has_slash: bool

    def matches(self, rel_path: str, is_dir: bool) -> bool:
        if not self.pattern:
            return False
        if self.directory_only and not is_dir:
            return False

        if self.anchored or self.has_slash:
            if fnmatchcase(rel_path, self.pattern):
                return True
            return rel_path.startswith(f"{self.pattern}/")

        return any(fnmatchcase(part, self.pattern) for part in rel_path.split("/"))


def build_ignore_rule(pattern: str) -> IgnoreRule | None:
    pattern = pattern.strip()
    if not pattern:
        return None

    directory_only = pattern.endswith("/")
    if directory_only:
        pattern = pattern[:-1]

    anchored = pattern.startswith("/")
    if anchored:
        pattern = pattern[1:]

    return IgnoreRule(
        pattern=pattern,
        directory_only=directory_only,
        anchored=anchored,
        has_slash="/" in pattern,
    )


def module_identifier(root: Path, path: Path) -> str:
    """Return the root-relative, forward-slash identifier for a module path."""
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix().replace("\\", "/")


class ModuleDiscovery:
    """Walks a project root and yields component modules in a stable order."""

    def __init__(
        self,
        extensions: Sequence[str] = (".jsx",),
        exclude_paths: Sequence[str] = (),
    ) -> None:
        self.extensions = tuple(ext.lower() for ext in extensions)
        self._rules = [
            rule for rule in (build_ignore_rule(pattern) for pattern in exclude_paths) if rule
        ]

    def discover(self, root: Path | str) -> List[Path]:
        """Return absolute module paths sorted by their root-relative identifier."""
        root_path = Path(root).expanduser().resolve()
        if not root_path.exists():
            raise DiscoveryError(f"Module root not found: {root}")
        if not root_path.is_dir():
            raise DiscoveryError(f"Module root is not a directory: {root}")

        found = list(self._iter_modules(root_path))
        return sorted(found, key=lambda path: module_identifier(root_path, path))

    def _iter_modules(self, root: Path) -> Iterator[Path]:
        def _raise(error: OSError) -> None:
            raise DiscoveryError(f"Failed to traverse {error.filename}: {error.strerror}") from error

        for dirpath, dirnames, filenames in os.walk(root, onerror=_raise):
            current_dir = Path(dirpath)
            rel_dir = current_dir.relative_to(root).as_posix() if current_dir != root else ""

            kept_dirs = []
            for name in dirnames:
                if name in _EXCLUDED_DIRS:
                    continue
                rel_path = f"{rel_dir}/{name}" if rel_dir else name
                if self._ignored(rel_path, True):
                    continue
                kept_dirs.append(name)
            dirnames[:] = kept_dirs

            for filename in filenames:
                if not self._eligible(filename):
                    continue
                rel_path = f"{rel_dir}/{filename}" if rel_dir else filename
                if self._ignored(rel_path, False):
                    continue
                yield current_dir / filename

    def _eligible(self, filename: str) -> bool:
        lowered = filename.lower()
        if lowered.endswith(_COMPANION_SUFFIXES):
            return False
        return lowered.endswith(self.extensions)

    def _ignored(self, rel_path: str, is_dir: bool) -> bool:
        return any(rule.matches(rel_path, is_dir) for rule in self._rules)


__all__ = ["IgnoreRule", "ModuleDiscovery", "build_ignore_rule", "module_identifier"]
