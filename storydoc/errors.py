"""Error taxonomy for storydoc runs."""

from __future__ import annotations

from pathlib import Path


class StorydocError(RuntimeError):
    """Base class for every error raised by the documentation engine."""


class DiscoveryError(StorydocError):
    """Raised when the module root cannot be traversed. Fatal to the run."""


class TrackerError(StorydocError):
    """Raised when the fingerprint tracker cannot be loaded or persisted. Fatal."""


class PublishError(StorydocError):
    """Raised when cloning, pushing or opening the pull request fails."""


class ModuleError(StorydocError):
    """Per-file failure; the engine logs it and moves on to the next module."""

    def __init__(self, path: Path | str, message: str) -> None:
        super().__init__(f"{path}: {message}")
        self.path = Path(path)
        self.message = message


class ParseError(ModuleError):
    """Source text could not be parsed into a syntax tree."""


class GenerationError(ModuleError):
    """The text oracle failed or returned unusable content."""


class SpliceError(ModuleError):
    """Inserting artifacts produced invalid source."""


class FormatError(ModuleError):
    """The formatter rejected the spliced source."""


class WriteError(ModuleError):
    """Writing the module or one of its companion files failed."""


__all__ = [
    "DiscoveryError",
    "FormatError",
    "GenerationError",
    "ModuleError",
    "ParseError",
    "PublishError",
    "SpliceError",
    "StorydocError",
    "TrackerError",
    "WriteError",
]
