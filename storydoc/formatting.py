"""Source formatters applied to spliced modules before they are written."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Protocol, Sequence

from .errors import FormatError


class Formatter(Protocol):
    def format(self, text: str, *, path: Path) -> str: ...


class PassthroughFormatter:
    """Normalises whitespace only: no trailing spaces, exactly one final newline."""

    def format(self, text: str, *, path: Path) -> str:
        lines = [line.rstrip() for line in text.splitlines()]
        return "\n".join(lines).strip("\n") + "\n"


class PrettierFormatter:
    """Pipes source through prettier's babel parser."""

    def __init__(
        self,
        command: Sequence[str] = ("npx", "--yes", "prettier", "--parser", "babel"),
        runner: Callable[..., str] | None = None,
    ) -> None:
        self.command = list(command)
        self._runner = runner or self._default_runner

    def format(self, text: str, *, path: Path) -> str:
        try:
            return self._runner(self.command, input_text=text, cwd=path.parent)
        except FileNotFoundError as exc:
            raise FormatError(path, f"formatter '{self.command[0]}' not found") from exc
        except subprocess.CalledProcessError as exc:
            detail = (exc.stderr or "").strip() or f"exit code {exc.returncode}"
            raise FormatError(path, f"prettier failed: {detail}") from exc

    @staticmethod
    def _default_runner(args: Sequence[str], *, input_text: str, cwd: Path) -> str:
        completed = subprocess.run(
            list(args),
            cwd=str(cwd),
            input=input_text,
            check=True,
            text=True,
            capture_output=True,
        )
        return completed.stdout


def build_formatter(name: str) -> Formatter:
    if name == "none":
        return PassthroughFormatter()
    return PrettierFormatter()


__all__ = ["Formatter", "PassthroughFormatter", "PrettierFormatter", "build_formatter"]
