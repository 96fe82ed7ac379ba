"""Configuration loading for storydoc (.storydoc.yml and the credentials file)."""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import yaml

CONFIG_FILENAME = ".storydoc.yml"
DEFAULT_TRACKER_FILE = ".storydoc-tracker.json"
DEFAULT_CREDENTIALS_PATH = Path("~/.storydoc/credentials.yml")


class ConfigError(RuntimeError):
    """Raised when a configuration file cannot be parsed."""


@dataclass
class LLMConfig:
    """Text oracle settings."""

    model: Optional[str] = None
    base_url: Optional[str] = None
    api_key: Optional[str] = None
    temperature: float = 0.0
    max_tokens: Optional[int] = None
    request_timeout: Optional[float] = 120.0


@dataclass
class PublishConfig:
    """Branch and pull request settings for the GitHub mode."""

    branch_prefix: str = "storydoc-documentation-"
    title: str = "Documentation"
    body: str = "This PR adds Storybook documentation for React components."
    commit_message: str = "Add Storybook documentation"


@dataclass
class Credentials:
    """Secrets collected by `storydoc setup`."""

    github_token: Optional[str] = None
    openai_api_key: Optional[str] = None


@dataclass
class StorydocConfig:
    """Effective settings for a documentation run."""

    root: Path
    file_limits: int = 1
    build_tool: str = "webpack"
    extensions: List[str] = field(default_factory=lambda: [".jsx"])
    exclude_paths: List[str] = field(default_factory=list)
    tracker_file: str = DEFAULT_TRACKER_FILE
    formatter: str = "prettier"
    run_deadline: Optional[float] = None
    llm: LLMConfig = field(default_factory=LLMConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)

    def with_overrides(self, **overrides: Any) -> "StorydocConfig":
        """Return a copy with every non-None override applied."""
        values = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **values)


def load_config(config_path: Path) -> StorydocConfig:
    """Load project configuration from a root directory or a .storydoc.yml path."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return StorydocConfig(root=root)

    data = _read_yaml(config_file)

    llm_data = _as_dict(data.get("llm"))
    llm = LLMConfig(
        model=_as_str(llm_data.get("model")),
        base_url=_as_str(llm_data.get("base_url")),
        api_key=_as_str(llm_data.get("api_key")),
        max_tokens=_as_int(llm_data.get("max_tokens")),
    )
    # Sampling stays deterministic; only an explicit 0 is accepted from config.
    temperature = _as_float(llm_data.get("temperature"))
    if temperature not in (None, 0.0):
        raise ConfigError("llm.temperature must be 0 for deterministic generation")
    timeout = _as_float(llm_data.get("request_timeout"))
    if timeout is not None:
        llm.request_timeout = timeout

    publish_data = _as_dict(data.get("publish"))
    publish = PublishConfig()
    for key in ("branch_prefix", "title", "body", "commit_message"):
        value = _as_str(publish_data.get(key))
        if value:
            setattr(publish, key, value)

    config = StorydocConfig(root=root, llm=llm, publish=publish)

    file_limits = _as_int(data.get("file_limits"))
    if file_limits is not None:
        if file_limits < 0:
            raise ConfigError("file_limits must not be negative")
        config.file_limits = file_limits
    build_tool = _as_str(data.get("build_tool"))
    if build_tool:
        config.build_tool = build_tool
    extensions = _as_str_list(data.get("extensions"))
    if extensions:
        config.extensions = [ext if ext.startswith(".") else f".{ext}" for ext in extensions]
    config.exclude_paths = _as_str_list(data.get("exclude_paths"))
    tracker_file = _as_str(data.get("tracker_file"))
    if tracker_file:
        config.tracker_file = tracker_file
    formatter = _as_str(data.get("formatter"))
    if formatter:
        if formatter not in {"prettier", "none"}:
            raise ConfigError(f"Unknown formatter '{formatter}' (expected 'prettier' or 'none')")
        config.formatter = formatter
    config.run_deadline = _as_float(data.get("run_deadline"))

    return config


def load_credentials(path: Path | None = None) -> Credentials:
    """Read stored secrets; environment variables take precedence."""
    credentials_path = (path or DEFAULT_CREDENTIALS_PATH).expanduser()
    stored: Dict[str, Any] = {}
    if credentials_path.exists():
        stored = _read_yaml(credentials_path)
    return Credentials(
        github_token=os.getenv("GITHUB_TOKEN") or _as_str(stored.get("github_token")),
        openai_api_key=os.getenv("OPENAI_API_KEY") or _as_str(stored.get("openai_api_key")),
    )


def save_credentials(credentials: Credentials, path: Path | None = None) -> Path:
    """Persist secrets with owner-only permissions and return the file path."""
    credentials_path = (path or DEFAULT_CREDENTIALS_PATH).expanduser()
    credentials_path.parent.mkdir(parents=True, exist_ok=True)
    payload = {
        "github_token": credentials.github_token,
        "openai_api_key": credentials.openai_api_key,
    }
    credentials_path.write_text(yaml.safe_dump(payload, sort_keys=True), encoding="utf-8")
    credentials_path.chmod(0o600)
    return credentials_path


def credentials_exist(path: Path | None = None) -> bool:
    return (path or DEFAULT_CREDENTIALS_PATH).expanduser().exists()


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    if config_path.name != CONFIG_FILENAME:
        return (config_path.parent / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_yaml(path: Path) -> Dict[str, Any]:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    if loaded is None:
        return {}
    if not isinstance(loaded, dict):
        raise ConfigError(f"{path.name} must contain a mapping at the root")
    return loaded


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float, bool)) else None


def _as_float(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return None
    return None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            return None
    return None


def _as_str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if isinstance(value, Sequence):
        return [str(item) for item in value if isinstance(item, (str, int, float, bool))]
    return []
