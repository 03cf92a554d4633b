"""Built-in regex rule tables.

Families are checked in a fixed order: dangerous, then safe, then
conditional. A command that looks both destructive and harmless is always
reported as dangerous.
"""

from __future__ import annotations

import re

from ..models import UNKNOWN_CLASSIFICATION, Category, Classification
from .base import ClassifierStrategy

DANGEROUS_CONFIDENCE = 0.95
SAFE_CONFIDENCE = 0.95
CONDITIONAL_CONFIDENCE = 0.90

# Destructive or irreversible - never auto-run
DANGEROUS_PATTERNS = [
    (r"rm\s+-rf", "Recursive forced delete"),
    (r"git push.*--force", "Force push rewrites remote history"),
    (r"npm run.*(?:clean|clear|reset)", "Cleanup script"),
    (r"npm run.*:(?:force|clean|clear|reset)", "Forced script variant"),
    (r"drop database", "Database drop"),
    (r"truncate", "Data truncation"),
    (r"delete.*--force", "Forced delete"),
    (r"--force", "Force flag"),
    (r"sudo.*rm", "Root delete"),
    (r"format.*--yes", "Unattended format"),
    (r":clean", "Clean script"),
    (r"\bmkfs\b", "Filesystem creation"),
    (r"\bdd\s+.*of=/dev/", "dd to block device"),
    (r":\s*\(\s*\)\s*\{\s*:\s*\|\s*:\s*&", "Fork bomb pattern"),
    (r"(?:curl|wget)\s+.*\|\s*(?:sudo\s+)?(?:ba)?sh\b", "Pipe download to shell"),
    (r"chmod\s+(?:-R\s+)?777\s+/", "World-writable root path"),
]

# Read-only or routine project commands
SAFE_PATTERNS = [
    (r"^npm run (?:build|test|lint|typecheck|dev|verify)$", "Project script"),
    (r"^npm (?:test|t)$", "Project test script"),
    (r"^yarn (?:build|test|lint|typecheck|dev)$", "Project script"),
    (r"^pnpm (?:build|test|lint|typecheck|dev)$", "Project script"),
    (r"^cargo (?:build|test|check)$", "Cargo build/test"),
    (r"^go (?:build|test|vet)$", "Go build/test"),
    (r"^git (?:status|log|diff|show|branch)$", "Read-only git"),
    (r"^git diff", "Read-only git diff"),
    (r"^docker ps$", "Container listing"),
    (r"^docker images$", "Image listing"),
    (r"^node --version$", "Version check"),
    (r"^python --version$", "Version check"),
    (r"^npm --version$", "Version check"),
    (r"^git --version$", "Version check"),
    (r"^cd ", "Change directory"),
    (r"^ls", "Directory listing"),
    (r"^cat", "File read"),
    (r"^find", "File search"),
    (r"^grep.*--help", "Help output"),
    (r"^echo", "Echo"),
    (r"^pwd$", "Working directory"),
]

# Change local or remote state - review before running
CONDITIONAL_PATTERNS = [
    (r"npm install", "Installs packages"),
    (r"yarn add", "Installs packages"),
    (r"pip install", "Installs packages"),
    (r"cargo add", "Adds dependency"),
    (r"go mod", "Edits module file"),
    (r"docker build", "Builds image"),
    (r"docker run.*-p", "Publishes container ports"),
    (r"git commit", "Creates commit"),
    (r"git push(?!.*--force)", "Pushes to remote"),
    (r"git add", "Stages changes"),
    (r"git init", "Creates repository"),
    (r"git clone", "Clones repository"),
    (r"git checkout -b", "Creates branch"),
    (r"npm run format", "Rewrites files"),
    (r"prettier.*--write", "Rewrites files"),
    (r"npx husky", "Edits git hooks"),
    (r"npx rimraf", "Cross-platform recursive delete"),
]


def _compile(table: list[tuple[str, str]]) -> list[tuple[re.Pattern[str], str]]:
    return [(re.compile(pattern), reason) for pattern, reason in table]


_DANGEROUS = _compile(DANGEROUS_PATTERNS)
_SAFE = _compile(SAFE_PATTERNS)
_CONDITIONAL = _compile(CONDITIONAL_PATTERNS)

_FAMILIES: list[tuple[Category, float, list[tuple[re.Pattern[str], str]]]] = [
    (Category.DANGEROUS, DANGEROUS_CONFIDENCE, _DANGEROUS),
    (Category.SAFE, SAFE_CONFIDENCE, _SAFE),
    (Category.CONDITIONAL, CONDITIONAL_CONFIDENCE, _CONDITIONAL),
]


class PatternClassifier(ClassifierStrategy):
    """Static dangerous/safe/conditional tables."""

    @property
    def name(self) -> str:
        return "builtin-patterns"

    def classify(self, command: str) -> Classification | None:
        for category, confidence, rules in _FAMILIES:
            for regex, _ in rules:
                if regex.search(command):
                    return self._result(category, confidence)
        return None


_BUILTIN = PatternClassifier()


def classify_command(command: str) -> Classification:
    """Classify with the built-in tables only; no match is ``unknown`` (0.50)."""
    cmd = (command or "").strip()
    if not cmd:
        return UNKNOWN_CLASSIFICATION
    return _BUILTIN.classify(cmd) or UNKNOWN_CLASSIFICATION
