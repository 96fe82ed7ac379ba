"""Local and GitHub documentation workflows built on the engine."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from .config import Credentials, StorydocConfig, load_config
from .engine import DocumentationEngine
from .generation import TextOracle
from .git.publisher import Publisher
from .git.source import GitHubSource, LocalSource
from .logging import get_logger
from .models import RunSummary

logger = get_logger("workflow")


def project_config(
    root: Path,
    credentials: Credentials | None = None,
    overrides: Dict[str, Any] | None = None,
    *,
    trusted: bool = True,
) -> StorydocConfig:
    """Load ``.storydoc.yml`` from ``root`` and apply CLI overrides and credentials.

    An untrusted root (a freshly cloned repository) may not choose where the
    stored API key is sent: its ``llm.base_url`` and ``llm.api_key`` are ignored.
    """
    config = load_config(root).with_overrides(**(overrides or {}))
    if not trusted and (config.llm.base_url or config.llm.api_key):
        logger.warning("Ignoring llm.base_url/llm.api_key from the repository's configuration")
        config.llm.base_url = None
        config.llm.api_key = None
    if credentials is not None and not config.llm.api_key:
        config.llm.api_key = credentials.openai_api_key
    return config


def document_local(
    path: Path | str,
    *,
    credentials: Credentials | None = None,
    overrides: Dict[str, Any] | None = None,
    runner: TextOracle | None = None,
) -> RunSummary:
    """Document a working copy in place."""
    with LocalSource(path).checkout() as root:
        config = project_config(root, credentials, overrides)
        return DocumentationEngine(config, runner).run(root)


def document_github(
    *,
    owner: str,
    repo_name: str,
    branch_name: str,
    credentials: Credentials,
    overrides: Dict[str, Any] | None = None,
    runner: TextOracle | None = None,
    source: GitHubSource | None = None,
    publisher: Publisher | None = None,
) -> Optional[str]:
    """Clone a branch, document it and open a pull request; returns the PR URL."""
    source = source or GitHubSource(
        owner, repo_name, branch_name, token=credentials.github_token
    )
    with source.checkout() as workdir:
        config = project_config(workdir, credentials, overrides, trusted=False)
        summary = DocumentationEngine(config, runner).run(workdir)
        if not summary.materialized:
            logger.info("No modules documented; skipping pull request")
            return None
        publisher = publisher or Publisher(config.publish, token=credentials.github_token)
        return publisher.publish(workdir, base_branch=branch_name)


__all__ = ["document_github", "document_local", "project_config"]
