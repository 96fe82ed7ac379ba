"""Persistent per-module fingerprint tracker."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Dict, Optional

from ..errors import TrackerError


def fingerprint(content: bytes) -> str:
    """Return the sha256 hex digest used as a module fingerprint."""
    return hashlib.sha256(content).hexdigest()


class FingerprintTracker:
    """Maps module identifiers to the hash of their last materialized content."""

    def __init__(self, path: Path) -> None:
        self._path = path
        self._entries: Dict[str, Dict[str, str]] = {}
        self._load(path)

    @property
    def path(self) -> Path:
        return self._path

    def get(self, identifier: str) -> Optional[str]:
        entry = self._entries.get(identifier)
        if not entry:
            return None
        return entry.get("hash")

    def is_current(self, identifier: str, content_hash: str) -> bool:
        return self.get(identifier) == content_hash

    def record(self, identifier: str, content_hash: str) -> None:
        self._entries[identifier] = {"hash": content_hash}

    def persist(self) -> None:
        """Overwrite the tracker file with the full mapping."""
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(
                json.dumps(self._entries, indent=2, sort_keys=True) + "\n", encoding="utf-8"
            )
        except OSError as exc:
            raise TrackerError(f"Failed to persist tracker {self._path}: {exc}") from exc

    def __len__(self) -> int:
        return len(self._entries)

    # ------------------------------------------------------------------
    # Internal helpers

    def _load(self, path: Path) -> None:
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return
        except OSError as exc:
            raise TrackerError(f"Failed to read tracker {path}: {exc}") from exc
        if not raw.strip():
            return
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise TrackerError(f"Tracker {path} is not valid JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise TrackerError(f"Tracker {path} must contain a JSON object")

        for identifier, entry in data.items():
            if not isinstance(identifier, str) or not isinstance(entry, dict):
                continue
            content_hash = entry.get("hash")
            if isinstance(content_hash, str) and content_hash:
                self._entries[identifier] = {"hash": content_hash}


__all__ = ["FingerprintTracker", "fingerprint"]
