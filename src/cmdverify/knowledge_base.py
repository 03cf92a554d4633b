"""Project knowledge base: skip lists, category overrides and invalidation rules.

The file is authored by the project (``.claude/knowledge.json`` by default)
and read once per run. Patterns are compiled here, one at a time, so a
single malformed regex only disables itself.
"""

from __future__ import annotations

import hashlib
import json
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .config import VerifyConfig
from .errors import KnowledgeBaseError

logger = logging.getLogger(__name__)

RULE_CATEGORIES = ("skip", "dangerous", "safe", "conditional")

INVALIDATE_ALL = "*"
INVALIDATE_SAME_FILE = "commands-in-same-file"


@dataclass(frozen=True)
class RuleGroup:
    """Exact matches and start-anchored patterns for one category."""

    exact_matches: frozenset[str] = frozenset()
    patterns: tuple[re.Pattern[str], ...] = ()
    rejected: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, *, category: str) -> "RuleGroup":
        if not isinstance(data, dict):
            return cls()

        exact = data.get("exactMatches")
        exact_matches = frozenset(
            item for item in (exact if isinstance(exact, list) else []) if isinstance(item, str)
        )

        compiled: list[re.Pattern[str]] = []
        rejected: list[str] = []
        raw_patterns = data.get("patterns")
        for pattern in raw_patterns if isinstance(raw_patterns, list) else []:
            if not isinstance(pattern, str) or not pattern.strip():
                continue
            source = pattern if pattern.startswith("^") else f"^{pattern}"
            try:
                compiled.append(re.compile(source))
            except re.error as e:
                rejected.append(pattern)
                logger.warning(
                    "Ignoring invalid %s pattern %r in knowledge base: %s", category, pattern, e
                )

        return cls(
            exact_matches=exact_matches,
            patterns=tuple(compiled),
            rejected=tuple(rejected),
        )

    def first_pattern_match(self, command: str) -> re.Pattern[str] | None:
        for regex in self.patterns:
            if regex.search(command):
                return regex
        return None


@dataclass(frozen=True)
class FileRule:
    """Knowledge-base invalidation rule: changed files matching ``file_pattern``
    invalidate the listed targets."""

    file_pattern: str
    invalidates: tuple[str, ...]

    @classmethod
    def from_dict(cls, data: Any) -> "FileRule | None":
        if not isinstance(data, dict):
            return None
        pattern = data.get("filePattern")
        targets = data.get("invalidates")
        if isinstance(targets, str):
            targets = [targets]
        if not isinstance(pattern, str) or not pattern or not isinstance(targets, list):
            return None
        cleaned = tuple(t for t in targets if isinstance(t, str) and t)
        if not cleaned:
            return None
        return cls(file_pattern=pattern, invalidates=cleaned)


@dataclass(frozen=True)
class KnowledgeBase:
    """Read-only view of the knowledge base for one run."""

    groups: dict[str, RuleGroup] = field(default_factory=dict)
    file_rules: tuple[FileRule, ...] = ()
    source: Path | None = None
    digest: str | None = None

    @classmethod
    def from_dict(
        cls, data: Any, *, source: Path | None = None, digest: str | None = None
    ) -> "KnowledgeBase":
        if not isinstance(data, dict):
            logger.warning("Knowledge base root must be a JSON object; ignoring its rules")
            return cls(source=source, digest=digest)

        validation_rules = data.get("validationRules")
        if not isinstance(validation_rules, dict):
            validation_rules = {}
        groups = {
            category: RuleGroup.from_dict(validation_rules.get(category), category=category)
            for category in RULE_CATEGORIES
        }

        file_patterns = data.get("filePatterns")
        raw_rules = file_patterns.get("rules") if isinstance(file_patterns, dict) else None
        file_rules = tuple(
            rule
            for rule in (FileRule.from_dict(item) for item in (raw_rules if isinstance(raw_rules, list) else []))
            if rule is not None
        )

        return cls(groups=groups, file_rules=file_rules, source=source, digest=digest)

    def group(self, category: str) -> RuleGroup:
        return self.groups.get(category) or RuleGroup()


def load_knowledge_base(config: VerifyConfig) -> KnowledgeBase | None:
    """Load and compile the configured knowledge base.

    Returns None when no knowledge base is configured, the file is missing
    (non-strict), or it does not contain valid JSON.

    Raises:
        KnowledgeBaseError: The file is missing or unreadable and
            ``fail_on_missing_knowledge_base`` is set.
    """
    path = config.knowledge_base_path
    if path is None:
        return None

    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        if config.fail_on_missing_knowledge_base:
            raise KnowledgeBaseError(
                f"Knowledge base not found at {path}",
                path=str(path),
                hints=["Create the file or disable it by setting knowledgeBasePath to null"],
            ) from None
        logger.warning("Knowledge base not found. Continuing with built-in rules.")
        return None
    except OSError as e:
        if config.fail_on_missing_knowledge_base:
            raise KnowledgeBaseError(
                f"Failed to read knowledge base at {path}: {e}",
                path=str(path),
                hints=["Check the file permissions of the knowledge base"],
            ) from e
        logger.warning("Failed to load knowledge base: %s", e)
        return None

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("Knowledge base contains invalid JSON (%s). Ignoring file.", e)
        return None

    knowledge = KnowledgeBase.from_dict(
        data, source=path, digest=hashlib.sha256(raw.encode("utf-8")).hexdigest()
    )
    logger.info("Loaded knowledge base (%s)", _display_path(path, config.cwd))
    return knowledge


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)
