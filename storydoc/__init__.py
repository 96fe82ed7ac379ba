"""Generated JSDoc, propTypes and Storybook stories for React component modules."""

from .config import StorydocConfig, load_config
from .engine import DocumentationEngine
from .models import ComponentCandidate, ComponentKind, ExportKind, RunSummary

__all__ = [
    "ComponentCandidate",
    "ComponentKind",
    "DocumentationEngine",
    "ExportKind",
    "RunSummary",
    "StorydocConfig",
    "load_config",
]

__version__ = "0.1.0"
