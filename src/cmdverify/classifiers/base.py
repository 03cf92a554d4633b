"""Base classifier interface."""

from __future__ import annotations

from abc import ABC, abstractmethod

from ..models import Category, Classification


class ClassifierStrategy(ABC):
    """One source of classification rules.

    Strategies are tried in order by ``ClassifierChain``; the first one that
    returns a Classification decides. Returning None means "no opinion".
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Short label used in logs."""
        pass

    @abstractmethod
    def classify(self, command: str) -> Classification | None:
        """Classify a trimmed command string.

        Args:
            command: The command text, already trimmed and non-empty.

        Returns:
            Classification, or None when this strategy has no matching rule.
        """
        pass

    def _result(self, category: Category, confidence: float) -> Classification:
        return Classification(category=category, confidence=confidence)
