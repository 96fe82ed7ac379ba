"""Tests for the pull request publisher."""

from __future__ import annotations

import subprocess
from datetime import UTC, datetime
from pathlib import Path

import pytest

from storydoc.config import PublishConfig
from storydoc.errors import PublishError
from storydoc.git.publisher import Publisher, documentation_branch_name


def _make_repo(tmp_path: Path) -> Path:
    repo = tmp_path / "repo"
    repo.mkdir()
    (repo / ".git").mkdir()
    return repo


def test_branch_name_uses_timestamp_digits() -> None:
    moment = datetime(2024, 5, 17, 9, 3, 7, 250000, tzinfo=UTC)

    assert documentation_branch_name("docs-", moment) == "docs-20240517090307250"


def test_publisher_commits_pushes_and_opens_pull_request(tmp_path: Path) -> None:
    repo = _make_repo(tmp_path)
    calls: list[list[str]] = []
    envs: list[dict[str, str] | None] = []

    def runner(args, cwd, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        calls.append(list(args))
        envs.append(env)
        assert Path(cwd) == repo
        if args[:2] == ["git", "status"]:
            return " M src/Button.jsx\n?? src/Button_Button.stories.js\n"
        if args[:2] == ["gh", "pr"]:
            return "Creating pull request\nhttps://github.com/acme/ui/pull/7\n"
        return ""

    publisher = Publisher(PublishConfig(), token="gh-token", runner=runner)
    url = publisher.publish(repo, base_branch="main", branch_name="storydoc-documentation-1")

    assert url == "https://github.com/acme/ui/pull/7"
    assert calls[0] == ["git", "checkout", "-b", "storydoc-documentation-1"]
    assert calls[1] == ["git", "add", "."]
    assert calls[3] == ["git", "commit", "-m", "Add Storybook documentation"]
    assert calls[4] == ["git", "push", "-u", "origin", "storydoc-documentation-1"]
    assert calls[5][:3] == ["gh", "pr", "create"]
    assert calls[5][calls[5].index("--base") + 1] == "main"
    assert calls[5][calls[5].index("--head") + 1] == "storydoc-documentation-1"
    assert envs[5] is not None and envs[5]["GH_TOKEN"] == "gh-token"


def test_publisher_skips_clean_working_tree(tmp_path: Path) -> None:
    repo = _make_repo(tmp_path)
    calls: list[list[str]] = []

    def runner(args, cwd, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        calls.append(list(args))
        return ""

    url = Publisher(runner=runner).publish(repo, base_branch="main", branch_name="b")

    assert url is None
    assert not any(call[:2] == ["git", "commit"] for call in calls)


def test_publisher_wraps_command_failures(tmp_path: Path) -> None:
    repo = _make_repo(tmp_path)

    def runner(args, cwd, env=None, capture_output=False):  # type: ignore[no-untyped-def]
        if args[:2] == ["git", "push"]:
            raise subprocess.CalledProcessError(1, list(args))
        if args[:2] == ["git", "status"]:
            return " M a.jsx\n"
        return ""

    with pytest.raises(PublishError):
        Publisher(runner=runner).publish(repo, base_branch="main", branch_name="b")


def test_publisher_requires_git_repository(tmp_path: Path) -> None:
    with pytest.raises(PublishError):
        Publisher(runner=lambda *args, **kwargs: "").publish(tmp_path, base_branch="main")
