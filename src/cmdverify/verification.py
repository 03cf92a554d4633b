"""Verification orchestrator.

Phases:
1. Discovery: find documentation files and extract unique commands
2. Impact analysis: decide from git which commands must be revalidated
3. Validation: reuse intact cache entries, classify and probe the rest
4. Summary: aggregate, then advance the commit watermark

The watermark is written last, so an interrupted run leaves the previous
watermark in place and the next run revalidates at least as much.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from .cache import CacheStore, rules_fingerprint
from .classifiers import ClassifierChain
from .config import VerifyConfig, ensure_config_ready, load_configuration
from .discovery import find_matching_files
from .extraction import extract_commands_from_markdown
from .git import GitRepository
from .impact import determine_affected
from .knowledge_base import KnowledgeBase, load_knowledge_base
from .messages import build_validation_message
from .models import (
    CacheEntry,
    CacheStats,
    Category,
    CommandEntry,
    CommandResult,
    RunState,
    Summary,
)
from .probe import Prober, make_prober

logger = logging.getLogger(__name__)

BANNER = "=" * 60

# Categories whose success depends only on the executable being present
_NEEDS_AVAILABILITY = (Category.SAFE, Category.CONDITIONAL)


@dataclass
class VerificationReport:
    """Everything a run produced."""

    config: VerifyConfig
    commands: list[CommandEntry]
    markdown_files: list[str]
    results: list[CommandResult]
    summary: Summary
    state: RunState
    knowledge: KnowledgeBase | None = None
    stats: CacheStats = field(default_factory=CacheStats)
    duration_ms: int = 0


def _phase(title: str) -> None:
    logger.info("")
    logger.info(title)
    logger.info(BANNER)


def _now() -> str:
    return datetime.now(UTC).isoformat()


# =============================================================================
# Phase 1: discovery
# =============================================================================


def discover_commands(config: VerifyConfig) -> tuple[list[CommandEntry], list[str]]:
    """Unique commands across all documentation files, in discovery order."""
    _phase("PHASE 1: Command Discovery")

    files = find_matching_files(config)
    logger.info("Found %d markdown files", len(files))

    unique: dict[str, CommandEntry] = {}
    for relative in files:
        try:
            content = (config.cwd / relative).read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Failed to read %s: %s", relative, e)
            continue

        for match in extract_commands_from_markdown(content, relative):
            entry = unique.get(match.command)
            if entry is None:
                entry = unique[match.command] = CommandEntry(match.command)
            entry.locations.append(match.location)

    commands = list(unique.values())
    logger.info("Discovered %d unique commands", len(commands))
    return commands, files


# =============================================================================
# Phase 3: validation
# =============================================================================


def validate_command(
    entry: CommandEntry,
    chain: ClassifierChain,
    prober: Prober,
    *,
    treat_unknown_as_warnings: bool = True,
    commit: str | None = None,
) -> CacheEntry:
    """Classify, probe and describe a single command. Never runs it."""
    classification = chain.classify(entry.command)
    category = classification.category

    if category is Category.SKIP:
        message = build_validation_message(
            entry.command, category, True, entry.locations, treat_unknown_as_warnings
        )
        return CacheEntry(
            command=entry.command,
            category=category,
            confidence=classification.confidence,
            validated=True,
            available=True,
            success=True,
            message=message.message,
            suggestion=message.suggestion,
            severity=message.severity,
            validated_at=_now(),
            commit=commit,
        )

    availability = prober(entry)
    message = build_validation_message(
        entry.command, category, availability.available, entry.locations, treat_unknown_as_warnings
    )

    if not availability.available:
        success = False
    elif category in _NEEDS_AVAILABILITY:
        success = True
    elif category is Category.UNKNOWN:
        success = treat_unknown_as_warnings
    else:
        success = False

    return CacheEntry(
        command=entry.command,
        category=category,
        confidence=classification.confidence,
        validated=True,
        available=availability.available,
        success=success,
        message=message.message if availability.available else (availability.error or message.message),
        suggestion=message.suggestion,
        severity=message.severity,
        validated_at=_now(),
        commit=commit,
    )


def validate_commands(
    commands: Sequence[CommandEntry],
    state: RunState,
    *,
    cache: CacheStore,
    chain: ClassifierChain,
    prober: Prober,
    stats: CacheStats,
    treat_unknown_as_warnings: bool = True,
) -> list[CommandResult]:
    """Serve unaffected commands from cache; validate and store the rest."""
    _phase("PHASE 3: Validation")

    results: list[CommandResult] = []
    for entry in commands:
        needs_revalidation = entry.command in state.affected_commands

        if not needs_revalidation:
            corrupted_before = stats.corrupted
            cached = cache.load(entry.command, stats)
            if cached is not None and cache.is_current(cached):
                stats.hits += 1
                results.append(CommandResult(entry, cached, from_cache=True))
                continue
            if cached is not None:
                logger.info("Rules changed since %r was cached. Revalidating.", entry.command)
                needs_revalidation = True
            elif stats.corrupted > corrupted_before:
                stats.repaired += 1

        validation = validate_command(
            entry,
            chain,
            prober,
            treat_unknown_as_warnings=treat_unknown_as_warnings,
            commit=state.current_commit,
        )
        stats.misses += 1
        if needs_revalidation:
            stats.revalidated += 1

        cache.save(entry.command, validation, stats)
        results.append(CommandResult(entry, validation))

    logger.info(
        "Validated %d commands (%d from cache)", len(results) - stats.hits, stats.hits
    )
    return results


# =============================================================================
# Phase 4: summary
# =============================================================================


def summarize(
    results: Sequence[CommandResult],
    stats: CacheStats,
    state: RunState,
) -> Summary:
    by_category = {c: 0 for c in Category}
    available = 0
    failed = 0
    for result in results:
        by_category[result.validation.category] += 1
        if result.validation.available:
            available += 1
        if not result.validation.success:
            failed += 1

    total = len(results)
    summary = Summary(
        total=total,
        safe=by_category[Category.SAFE],
        conditional=by_category[Category.CONDITIONAL],
        dangerous=by_category[Category.DANGEROUS],
        unknown=by_category[Category.UNKNOWN],
        skipped=by_category[Category.SKIP],
        available=available,
        unavailable=total - available,
        failed=failed,
        cache=stats,
        changed_files=sorted(state.changed_files),
    )

    _phase("PHASE 4: Summary")
    logger.info("Total commands: %d", total)
    logger.info("Cache hit rate: %d%% (%d/%d)", summary.cache_hit_rate, stats.hits, total)
    return summary


# =============================================================================
# Entry point
# =============================================================================


def run_verification(
    cwd: Path | str | None = None,
    *,
    force: bool = False,
    config: VerifyConfig | None = None,
    prober: Prober | None = None,
    git: GitRepository | None = None,
) -> VerificationReport:
    """Run the full pipeline for the repository at ``cwd``.

    Args:
        cwd: Repository root. Ignored when ``config`` is given.
        force: Clear the cache (entries and watermark) before running.
        config: Pre-loaded configuration.
        prober: Availability check. Defaults to a PATH lookup.
        git: Repository wrapper. Defaults to the repository at the config root.

    Raises:
        ConfigurationError: The configuration or strict knowledge base is invalid.
    """
    config = ensure_config_ready(config or load_configuration(cwd))
    knowledge = load_knowledge_base(config)
    cache = CacheStore.for_config(
        config,
        fingerprint=rules_fingerprint(
            knowledge, treat_unknown_as_warnings=config.treat_unknown_as_warnings
        ),
    )

    if force:
        logger.warning("Force mode: clearing cache")
        cache.clear()
        config.cache_dir.mkdir(parents=True, exist_ok=True)

    chain = ClassifierChain.for_knowledge_base(knowledge)
    prober = prober or make_prober(timeout=config.probe_timeout, cwd=config.cwd)
    git = git or GitRepository(config.cwd)

    start = time.monotonic()
    commands, markdown_files = discover_commands(config)

    _phase("PHASE 2: Cache Analysis")
    state = determine_affected(
        commands, last_commit=cache.read_watermark(), git=git, knowledge=knowledge
    )

    stats = CacheStats()
    results = validate_commands(
        commands,
        state,
        cache=cache,
        chain=chain,
        prober=prober,
        stats=stats,
        treat_unknown_as_warnings=config.treat_unknown_as_warnings,
    )

    summary = summarize(results, stats, state)
    duration_ms = int((time.monotonic() - start) * 1000)
    logger.info("Duration: %.1fs", duration_ms / 1000)

    if state.current_commit:
        cache.write_watermark(state.current_commit)

    logger.info("")
    logger.info("Command verification complete!")

    return VerificationReport(
        config=config,
        commands=commands,
        markdown_files=markdown_files,
        results=results,
        summary=summary,
        state=state,
        knowledge=knowledge,
        stats=stats,
        duration_ms=duration_ms,
    )
