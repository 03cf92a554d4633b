"""Change-impact analysis.

Decides, from git history alone, which commands must be validated again.
Rules only ever add commands to the affected set: revalidating too much
costs time, revalidating too little serves stale results.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from .discovery import matches_pattern
from .errors import GitError
from .git import GitRepository
from .knowledge_base import INVALIDATE_ALL, INVALIDATE_SAME_FILE, FileRule, KnowledgeBase
from .models import CommandEntry, RunState

logger = logging.getLogger(__name__)

FilePredicate = Callable[[str], bool]
Invalidator = Callable[[str, Sequence[CommandEntry]], Iterable[str]]

_NODE_COMMAND = re.compile(r"^(npm|yarn|pnpm|node|npx)\s")
_BUILD_WORDS = re.compile(r"\b(build|test|typecheck)\b")
_PYTHON_COMMAND = re.compile(r"^(pip|python)\s")
_PYTHON_MANIFESTS = frozenset({"requirements.txt", "setup.py", "pyproject.toml"})


@dataclass(frozen=True)
class InvalidationRule:
    """Changed files matching ``matches`` invalidate what ``invalidate`` yields."""

    name: str
    matches: FilePredicate
    invalidate: Invalidator


def _basename(path: str) -> str:
    return posixpath.basename(path)


def _commands_in_file(file: str, commands: Sequence[CommandEntry]) -> Iterable[str]:
    return (c.command for c in commands if c.is_located_in(file))


def _commands_matching(pattern: re.Pattern[str]) -> Invalidator:
    def _invalidate(file: str, commands: Sequence[CommandEntry]) -> Iterable[str]:
        return (c.command for c in commands if pattern.search(c.command))

    return _invalidate


def _commands_containing_test(file: str, commands: Sequence[CommandEntry]) -> Iterable[str]:
    return (c.command for c in commands if "test" in c.command)


BUILTIN_RULES = (
    InvalidationRule("markdown", lambda f: f.endswith(".md"), _commands_in_file),
    InvalidationRule(
        "package.json",
        lambda f: _basename(f) == "package.json",
        _commands_matching(_NODE_COMMAND),
    ),
    InvalidationRule(
        "tsconfig.json",
        lambda f: _basename(f) == "tsconfig.json",
        _commands_matching(_BUILD_WORDS),
    ),
    InvalidationRule("src", lambda f: f.startswith("src/"), _commands_containing_test),
    InvalidationRule(
        "python-manifest",
        lambda f: _basename(f) in _PYTHON_MANIFESTS,
        _commands_matching(_PYTHON_COMMAND),
    ),
)


def _knowledge_rule(rule: FileRule) -> InvalidationRule:
    def _invalidate(file: str, commands: Sequence[CommandEntry]) -> Iterable[str]:
        affected: set[str] = set()
        for target in rule.invalidates:
            if target == INVALIDATE_ALL:
                affected.update(c.command for c in commands)
            elif target == INVALIDATE_SAME_FILE:
                affected.update(_commands_in_file(file, commands))
            else:
                affected.update(c.command for c in commands if c.command.startswith(target))
        return affected

    return InvalidationRule(
        f"knowledge-base:{rule.file_pattern}",
        lambda f: matches_pattern(f, rule.file_pattern),
        _invalidate,
    )


def build_invalidation_rules(knowledge: KnowledgeBase | None) -> list[InvalidationRule]:
    """Built-in rules followed by the knowledge base's file rules."""
    rules = list(BUILTIN_RULES)
    if knowledge is not None:
        rules.extend(_knowledge_rule(rule) for rule in knowledge.file_rules)
    return rules


def analyze_impact(
    changed_files: Iterable[str],
    commands: Sequence[CommandEntry],
    rules: Sequence[InvalidationRule],
) -> set[str]:
    """Union of the commands invalidated by every (file, rule) pair."""
    affected: set[str] = set()
    for file in sorted(changed_files):
        for rule in rules:
            try:
                if rule.matches(file):
                    affected.update(rule.invalidate(file, commands))
            except Exception as e:
                logger.warning(
                    "Failed to apply invalidation rule %s for %s: %s", rule.name, file, e
                )
    return affected


def determine_affected(
    commands: Sequence[CommandEntry],
    *,
    last_commit: str | None,
    git: GitRepository,
    knowledge: KnowledgeBase | None = None,
) -> RunState:
    """Work out which commands need validation in this run.

    - no current commit (not a repository, git missing): everything
    - no previous commit (first run): everything
    - previous == current: nothing, the cache is trusted after integrity checks
    - otherwise: whatever the invalidation rules derive from the diff,
      or everything if the diff fails
    """
    everything = {c.command for c in commands}
    state = RunState(last_validated_commit=last_commit, current_commit=git.current_commit())

    if state.current_commit is None:
        state.affected_commands = everything
        return state

    if last_commit is None:
        logger.info("First run detected. Validating all commands.")
        state.affected_commands = everything
        return state

    if last_commit == state.current_commit:
        logger.info("No new commits since last validation.")
        return state

    logger.info("Last validation commit: %s", last_commit)
    logger.info("Current commit: %s", state.current_commit)

    try:
        state.changed_files = git.changed_files(last_commit)
    except GitError as e:
        logger.warning("git diff failed (%s). Revalidating all commands.", e.message)
        state.affected_commands = everything
        return state

    if not state.changed_files:
        logger.info("No changed files detected. Attempting to reuse cache.")
        return state

    logger.info("Detected %d changed files since last validation", len(state.changed_files))
    state.affected_commands = analyze_impact(
        state.changed_files, commands, build_invalidation_rules(knowledge)
    )
    logger.info("%d commands require revalidation", len(state.affected_commands))
    return state
