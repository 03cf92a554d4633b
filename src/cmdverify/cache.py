"""Content-addressed validation cache.

Layout under the configured cache directory:

    <cacheDir>/last-validation-commit.txt
    <cacheDir>/commands/<sha256(command)>.json

Entries are self-describing (command text, checksum, schema version). A
file that fails any check is deleted and reported as a miss; the caller
simply validates the command again.
"""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

from .config import COMMANDS_SUBDIR, LAST_COMMIT_FILE, VerifyConfig
from .errors import CacheCorruptionError
from .knowledge_base import KnowledgeBase
from .models import CACHE_SCHEMA_VERSION, CacheEntry, CacheStats, Category

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    "command",
    "category",
    "confidence",
    "validated",
    "available",
    "success",
    "validatedAt",
    "checksum",
    "schemaVersion",
)

_BOOLEAN_FIELDS = ("validated", "available", "success")
_CATEGORIES = {c.value for c in Category}


def _sha256_text(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def command_key(command: str) -> str:
    """Deterministic storage key for a command."""
    return _sha256_text(command)


def checksum(command: str) -> str:
    return _sha256_text(command)


def rules_fingerprint(knowledge: KnowledgeBase | None, *, treat_unknown_as_warnings: bool) -> str:
    """Digest of everything besides the command text that shapes a validation."""
    digest = knowledge.digest if knowledge is not None and knowledge.digest else "none"
    return _sha256_text(f"kb={digest};treatUnknownAsWarnings={treat_unknown_as_warnings}")


# =============================================================================
# Key-value persistence
# =============================================================================


class KeyValueStore(Protocol):
    """Minimal persistence interface the cache is written against."""

    def get(self, key: str) -> dict[str, Any] | None: ...

    def put(self, key: str, value: dict[str, Any]) -> None: ...

    def delete(self, key: str) -> None: ...

    def clear(self) -> None: ...


class JsonFileStore:
    """One pretty-printed JSON file per key."""

    def __init__(self, directory: Path) -> None:
        self.directory = directory

    def path_for(self, key: str) -> Path:
        return self.directory / f"{key}.json"

    def get(self, key: str) -> dict[str, Any] | None:
        """Return the stored object, or None if there is no file.

        Raises:
            CacheCorruptionError: The file exists but cannot be read or parsed.
        """
        path = self.path_for(key)
        try:
            raw = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise CacheCorruptionError(
                f"Failed to read cache file: {e}", path=str(path), reason="Unreadable file"
            ) from e

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheCorruptionError(
                f"Invalid JSON in cache file: {e}", path=str(path), reason="Invalid JSON"
            ) from e

        if not isinstance(data, dict):
            raise CacheCorruptionError(
                "Cache entry is not an object", path=str(path), reason="Entry is not an object"
            )
        return data

    def put(self, key: str, value: dict[str, Any]) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        content = json.dumps(value, indent=2, ensure_ascii=False)
        self.path_for(key).write_text(content, encoding="utf-8")

    def delete(self, key: str) -> None:
        self.path_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        shutil.rmtree(self.directory, ignore_errors=True)


# =============================================================================
# Entry validation
# =============================================================================


def _is_iso_date(value: Any) -> bool:
    if not isinstance(value, str) or not value:
        return False
    try:
        datetime.fromisoformat(value)
    except ValueError:
        return False
    return True


def validate_entry(command: str, data: dict[str, Any]) -> str | None:
    """Return the reason ``data`` cannot be trusted for ``command``, or None."""
    for name in REQUIRED_FIELDS:
        if name not in data:
            return f'Missing field "{name}"'

    if data["command"] != command:
        return "Command mismatch"
    if not isinstance(data["category"], str) or data["category"] not in _CATEGORIES:
        return "Invalid category"
    confidence = data["confidence"]
    if isinstance(confidence, bool) or not isinstance(confidence, (int, float)):
        return "Invalid confidence type"
    for name in _BOOLEAN_FIELDS:
        if not isinstance(data[name], bool):
            return f'Invalid "{name}" flag'
    if not _is_iso_date(data["validatedAt"]):
        return "Invalid timestamp"
    if data["checksum"] != checksum(command):
        return "Checksum mismatch"
    if data["schemaVersion"] != CACHE_SCHEMA_VERSION:
        return "Unsupported cache schema version"
    return None


# =============================================================================
# Cache store
# =============================================================================


class CacheStore:
    """Validation results keyed by command, plus the commit watermark."""

    def __init__(
        self,
        cache_dir: Path,
        store: KeyValueStore | None = None,
        *,
        fingerprint: str | None = None,
    ) -> None:
        self.cache_dir = cache_dir
        self.store: KeyValueStore = store or JsonFileStore(cache_dir / COMMANDS_SUBDIR)
        self.fingerprint = fingerprint

    @classmethod
    def for_config(cls, config: VerifyConfig, *, fingerprint: str | None = None) -> "CacheStore":
        return cls(
            config.cache_dir, JsonFileStore(config.commands_cache_dir), fingerprint=fingerprint
        )

    @property
    def watermark_file(self) -> Path:
        return self.cache_dir / LAST_COMMIT_FILE

    def load(self, command: str, stats: CacheStats | None = None) -> CacheEntry | None:
        """Return the cached entry for ``command`` if present and intact.

        Corrupted entries are deleted, counted and reported as None.
        """
        key = command_key(command)
        try:
            data = self.store.get(key)
            if data is None:
                return None
            reason = validate_entry(command, data)
            if reason is not None:
                raise CacheCorruptionError(f"Invalid cache entry: {reason}", reason=reason)
            return CacheEntry.from_dict(data)
        except CacheCorruptionError as e:
            logger.warning("Cache corruption detected (%s). Repairing %s.json...", e.reason, key)
            self.store.delete(key)
            if stats is not None:
                stats.corrupted += 1
            return None

    def save(self, command: str, entry: CacheEntry, stats: CacheStats | None = None) -> CacheEntry:
        """Stamp integrity fields on ``entry`` and persist it."""
        entry.command = command
        entry.checksum = checksum(command)
        entry.schema_version = CACHE_SCHEMA_VERSION
        entry.fingerprint = self.fingerprint
        self.store.put(command_key(command), entry.to_dict())
        if stats is not None:
            stats.writes += 1
        return entry

    def is_current(self, entry: CacheEntry) -> bool:
        """Whether ``entry`` was built under this store's fingerprint."""
        return self.fingerprint is None or entry.fingerprint == self.fingerprint

    def clear(self) -> None:
        """Remove every cached entry and the commit watermark."""
        shutil.rmtree(self.cache_dir, ignore_errors=True)
        logger.info("Cache cleared (%s)", self.cache_dir)

    def read_watermark(self) -> str | None:
        try:
            value = self.watermark_file.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.warning("Failed to read last validated commit: %s", e)
            return None
        return value or None

    def write_watermark(self, commit: str) -> None:
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        self.watermark_file.write_text(commit, encoding="utf-8")
