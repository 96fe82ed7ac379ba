"""Publishes generated documentation as a pull request."""

from __future__ import annotations

import os
import subprocess
from datetime import UTC, datetime
from pathlib import Path
from typing import Iterable, Optional

from ..config import PublishConfig
from ..errors import PublishError
from ..logging import get_logger
from ._process import CommandRunner, default_runner


def documentation_branch_name(prefix: str, now: datetime | None = None) -> str:
    """Return ``<prefix><UTC timestamp digits>``, unique per run."""
    moment = (now or datetime.now(UTC)).astimezone(UTC).replace(tzinfo=None)
    digits = "".join(char for char in moment.isoformat(timespec="milliseconds") if char.isdigit())
    return f"{prefix}{digits}"


class Publisher:
    """Creates a documentation branch, commits, pushes and opens a PR via the GitHub CLI."""

    def __init__(
        self,
        settings: PublishConfig | None = None,
        *,
        token: str | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self.settings = settings or PublishConfig()
        self.token = token
        self._runner = runner or default_runner
        self.logger = get_logger("git.publisher")

    def publish(
        self,
        repo_path: Path | str,
        *,
        base_branch: str,
        branch_name: str | None = None,
    ) -> Optional[str]:
        """Return the pull request URL, or None when the working tree has no changes."""
        repo = Path(repo_path)
        if not (repo / ".git").exists():
            raise PublishError(f"Not a git repository: {repo}")

        branch = branch_name or documentation_branch_name(self.settings.branch_prefix)
        env = self._environment()
        try:
            self._run(["git", "checkout", "-b", branch], cwd=repo, env=env)
            self._run(["git", "add", "."], cwd=repo, env=env)
            status = self._run(
                ["git", "status", "--porcelain"], cwd=repo, env=env, capture_output=True
            )
            if not status.strip():
                self.logger.info("No documentation changes to publish")
                return None
            self._run(["git", "commit", "-m", self.settings.commit_message], cwd=repo, env=env)
            self._run(["git", "push", "-u", "origin", branch], cwd=repo, env=env)
            output = self._run(
                [
                    "gh",
                    "pr",
                    "create",
                    "--title",
                    self.settings.title,
                    "--body",
                    self.settings.body,
                    "--base",
                    base_branch,
                    "--head",
                    branch,
                ],
                cwd=repo,
                env=env,
                capture_output=True,
            )
        except (OSError, subprocess.CalledProcessError) as exc:
            raise PublishError(f"Failed to publish documentation branch {branch}: {exc}") from exc

        lines = [line.strip() for line in output.splitlines() if line.strip()]
        url = lines[-1] if lines else ""
        self.logger.info("Opened pull request %s", url or "(no URL reported)")
        return url

    def _environment(self) -> dict[str, str]:
        env = os.environ.copy()
        env.setdefault("GIT_AUTHOR_NAME", "storydoc")
        env.setdefault("GIT_AUTHOR_EMAIL", "storydoc@example.com")
        env.setdefault("GIT_COMMITTER_NAME", env["GIT_AUTHOR_NAME"])
        env.setdefault("GIT_COMMITTER_EMAIL", env["GIT_AUTHOR_EMAIL"])
        if self.token:
            env["GH_TOKEN"] = self.token
        return env

    def _run(
        self,
        args: Iterable[str],
        *,
        cwd: Path,
        env: dict[str, str] | None = None,
        capture_output: bool = False,
    ) -> str:
        return self._runner(args, cwd=cwd, env=env, capture_output=capture_output)


__all__ = ["Publisher", "documentation_branch_name"]
