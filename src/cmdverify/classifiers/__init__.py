"""Command classification strategies.

Two rule sources, tried in order:
1. Knowledge base (project overrides, skip lists)
2. Built-in pattern tables (dangerous > safe > conditional)

Anything neither source recognises is ``unknown`` with confidence 0.50.
"""

from .base import ClassifierStrategy
from .chain import ClassifierChain
from .knowledge import SCRIPT_RUNNER, KnowledgeBaseClassifier
from .patterns import PatternClassifier, classify_command

__all__ = [
    "ClassifierChain",
    "ClassifierStrategy",
    "KnowledgeBaseClassifier",
    "PatternClassifier",
    "SCRIPT_RUNNER",
    "classify_command",
]
