"""Persistent stores used across storydoc runs."""

from .tracker import FingerprintTracker, fingerprint

__all__ = ["FingerprintTracker", "fingerprint"]
