"""Component detection over parsed modules."""

from .components import ComponentClassifier

__all__ = ["ComponentClassifier"]
