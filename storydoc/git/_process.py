"""Shared subprocess runner for git and gh invocations."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Callable, Iterable

CommandRunner = Callable[..., str]


def default_runner(
    args: Iterable[str],
    *,
    cwd: Path,
    env: dict[str, str] | None = None,
    capture_output: bool = False,
) -> str:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        env=env,
        check=True,
        text=True,
        capture_output=capture_output,
    )
    if capture_output:
        return completed.stdout
    return ""
