"""Repository retrieval and change publication."""

from .publisher import Publisher, documentation_branch_name
from .source import GitHubSource, LocalSource

__all__ = ["GitHubSource", "LocalSource", "Publisher", "documentation_branch_name"]
