"""Knowledge-base classifier: project overrides that beat the built-in tables."""

from __future__ import annotations

import re

from ..knowledge_base import KnowledgeBase
from ..models import Category, Classification
from .base import ClassifierStrategy

EXACT_CONFIDENCE = 1.0
PATTERN_CONFIDENCE = 0.95
SKIP_CONFIDENCE = 1.0

# Checked in this order; the first category with a match wins.
OVERRIDE_ORDER = (Category.DANGEROUS, Category.SAFE, Category.CONDITIONAL)

# Invariant: skip *patterns* never apply to script-runner invocations, so an
# over-broad pattern cannot hide a real `npm run ...` from validation.
# Exact skip entries are not subject to this guard.
SCRIPT_RUNNER = re.compile(r"^(npm|yarn|pnpm)\s+run\s+", re.IGNORECASE)


class KnowledgeBaseClassifier(ClassifierStrategy):
    """Skip decisions and category overrides from the project knowledge base."""

    def __init__(self, knowledge: KnowledgeBase) -> None:
        self.knowledge = knowledge

    @property
    def name(self) -> str:
        return "knowledge-base"

    def should_skip(self, command: str) -> bool:
        """True when the command is a documentation placeholder.

        Exact entries match the whole command or its executable name, so
        ``"claude"`` also skips ``claude --help``.
        """
        rules = self.knowledge.group(Category.SKIP.value)

        parts = command.split()
        executable = parts[0] if parts else ""
        if command in rules.exact_matches or executable in rules.exact_matches:
            return True

        if rules.first_pattern_match(command) is None:
            return False
        return SCRIPT_RUNNER.match(command) is None

    def classify(self, command: str) -> Classification | None:
        if self.should_skip(command):
            return self._result(Category.SKIP, SKIP_CONFIDENCE)

        for category in OVERRIDE_ORDER:
            rules = self.knowledge.group(category.value)
            if command in rules.exact_matches:
                return self._result(category, EXACT_CONFIDENCE)
            if rules.first_pattern_match(command) is not None:
                return self._result(category, PATTERN_CONFIDENCE)
        return None
