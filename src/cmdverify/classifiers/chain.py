"""Ordered classifier strategies; the first non-empty answer wins."""

from __future__ import annotations

import logging
from collections.abc import Sequence

from ..knowledge_base import KnowledgeBase
from ..models import UNKNOWN_CLASSIFICATION, Classification
from .base import ClassifierStrategy
from .knowledge import KnowledgeBaseClassifier
from .patterns import PatternClassifier

logger = logging.getLogger(__name__)


class ClassifierChain:
    """Chain of responsibility over classifier strategies."""

    def __init__(self, strategies: Sequence[ClassifierStrategy]) -> None:
        self.strategies = list(strategies)

    @classmethod
    def for_knowledge_base(cls, knowledge: KnowledgeBase | None) -> "ClassifierChain":
        """Knowledge base first (when present), then the built-in tables."""
        strategies: list[ClassifierStrategy] = []
        if knowledge is not None:
            strategies.append(KnowledgeBaseClassifier(knowledge))
        strategies.append(PatternClassifier())
        return cls(strategies)

    def classify(self, command: str) -> Classification:
        cmd = (command or "").strip()
        if not cmd:
            return UNKNOWN_CLASSIFICATION

        for strategy in self.strategies:
            result = strategy.classify(cmd)
            if result is not None:
                logger.debug(
                    "%s classified %r as %s (%.2f)",
                    strategy.name,
                    cmd,
                    result.category.value,
                    result.confidence,
                )
                return result
        return UNKNOWN_CLASSIFICATION
