"""Data models for command verification.

CommandEntry and RunState live for a single run. CacheEntry is the only
value persisted per command; its on-disk keys follow the cache schema
(camelCase, ``schemaVersion`` 1).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

CACHE_SCHEMA_VERSION = 1


class Category(str, Enum):
    """Safety classification for a documented command."""

    SKIP = "skip"                  # Documentation placeholder, never probed
    SAFE = "safe"                  # Read-only or routine project command
    CONDITIONAL = "conditional"    # Changes state, needs manual review
    DANGEROUS = "dangerous"        # Destructive, never auto-run
    UNKNOWN = "unknown"            # No rule matched


class Severity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Classification:
    """Category plus how sure the rule source is about it."""

    category: Category
    confidence: float

    def to_dict(self) -> dict[str, Any]:
        return {"category": self.category.value, "confidence": self.confidence}


UNKNOWN_CLASSIFICATION = Classification(Category.UNKNOWN, 0.50)


@dataclass(frozen=True)
class CommandLocation:
    """Where a command was found in the documentation."""

    file: str
    line: int
    type: str  # "code-block" or "inline"
    language: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": self.file,
            "line": self.line,
            "type": self.type,
            "language": self.language,
        }


@dataclass
class CommandEntry:
    """A distinct command and every place it is documented."""

    command: str
    locations: list[CommandLocation] = field(default_factory=list)

    @property
    def executable(self) -> str:
        parts = self.command.strip().split()
        return parts[0] if parts else ""

    def is_located_in(self, file: str) -> bool:
        return any(loc.file == file for loc in self.locations)

    def to_dict(self) -> dict[str, Any]:
        return {
            "command": self.command,
            "locations": [loc.to_dict() for loc in self.locations],
        }


@dataclass
class CacheEntry:
    """Validation result for one command, as stored in the cache."""

    command: str
    category: Category
    confidence: float
    validated: bool
    available: bool
    success: bool
    message: str
    validated_at: str
    severity: Severity = Severity.INFO
    suggestion: str | None = None
    commit: str | None = None
    checksum: str | None = None
    schema_version: int = CACHE_SCHEMA_VERSION
    # Classification inputs (knowledge base, unknown policy) the entry was built under
    fingerprint: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk cache schema."""
        return {
            "command": self.command,
            "category": self.category.value,
            "confidence": self.confidence,
            "validated": self.validated,
            "available": self.available,
            "success": self.success,
            "message": self.message,
            "suggestion": self.suggestion,
            "severity": self.severity.value,
            "validatedAt": self.validated_at,
            "commit": self.commit,
            "checksum": self.checksum,
            "schemaVersion": self.schema_version,
            "fingerprint": self.fingerprint,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheEntry":
        """Deserialize from the on-disk cache schema.

        Callers are expected to have validated ``data`` first.
        """
        try:
            severity = Severity(data.get("severity") or Severity.INFO.value)
        except ValueError:
            severity = Severity.INFO
        return cls(
            command=data["command"],
            category=Category(data["category"]),
            confidence=float(data["confidence"]),
            validated=data["validated"],
            available=data["available"],
            success=data["success"],
            message=data.get("message") or "",
            suggestion=data.get("suggestion"),
            severity=severity,
            validated_at=data["validatedAt"],
            commit=data.get("commit"),
            checksum=data.get("checksum"),
            schema_version=data["schemaVersion"],
            fingerprint=data.get("fingerprint"),
        )


@dataclass
class RunState:
    """Git bookkeeping for a single run.

    Only ``current_commit`` outlives the run, and only once every command
    has been validated.
    """

    last_validated_commit: str | None = None
    current_commit: str | None = None
    changed_files: set[str] = field(default_factory=set)
    affected_commands: set[str] = field(default_factory=set)


@dataclass
class CacheStats:
    """Cache counters for a single run."""

    hits: int = 0
    misses: int = 0
    revalidated: int = 0
    repaired: int = 0
    corrupted: int = 0
    writes: int = 0

    def hit_rate(self, total: int) -> int:
        """Integer percentage of commands served from cache."""
        return round(self.hits / total * 100) if total > 0 else 0

    def to_dict(self, total: int) -> dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "revalidated": self.revalidated,
            "repaired": self.repaired,
            "corrupted": self.corrupted,
            "writes": self.writes,
            "hitRate": self.hit_rate(total),
        }


@dataclass
class CommandResult:
    """A discovered command paired with its (cached or fresh) validation."""

    entry: CommandEntry
    validation: CacheEntry
    from_cache: bool = False

    @property
    def command(self) -> str:
        return self.entry.command

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.entry.to_dict(),
            "fromCache": self.from_cache,
            "validation": self.validation.to_dict(),
        }


@dataclass
class Summary:
    """Aggregated outcome of a verification run.

    Equality covers the command counts and changed files only. Cache
    counters describe how a run got its results, not the results.
    """

    total: int
    safe: int
    conditional: int
    dangerous: int
    unknown: int
    skipped: int
    available: int
    unavailable: int
    failed: int
    cache: CacheStats = field(compare=False)
    changed_files: list[str] = field(default_factory=list)

    @property
    def cache_hit_rate(self) -> int:
        return self.cache.hit_rate(self.total)

    def breakdown(self) -> dict[str, int]:
        """Counts that depend only on the validated commands."""
        return {
            "total": self.total,
            "safe": self.safe,
            "conditional": self.conditional,
            "dangerous": self.dangerous,
            "unknown": self.unknown,
            "skipped": self.skipped,
            "available": self.available,
            "unavailable": self.unavailable,
            "failed": self.failed,
        }

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.breakdown(),
            "cache": self.cache.to_dict(self.total),
            "changedFiles": list(self.changed_files),
        }
