from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _env_float(name: str, default: float, min_val: float | None = None) -> float:
    """Get float from environment with optional minimum enforcement."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        val = float(raw)
    except ValueError:
        return default
    if min_val is not None and val < min_val:
        return min_val
    return val


def _env_int(name: str, default: int) -> int:
    try:
        return int(os.environ.get(name, str(default)))
    except ValueError:
        return default


def _env_path(name: str) -> Path | None:
    raw = os.environ.get(name)
    return Path(raw).expanduser() if raw else None


@dataclass(frozen=True)
class Settings:
    """Process-level settings read from the environment.

    Project-level behaviour (globs, cache location, knowledge base) lives in
    the per-repository configuration file, see ``cmdverify.config``.
    """

    log_level: str = os.environ.get("CMDVERIFY_LOG_LEVEL", "INFO")
    log_path: Path | None = _env_path("CMDVERIFY_LOG_FILE")
    log_max_bytes: int = _env_int("CMDVERIFY_LOG_MAX_BYTES", 1_000_000)
    log_backup_count: int = _env_int("CMDVERIFY_LOG_BACKUP_COUNT", 3)

    # PATH lookups must never stall a run.
    probe_timeout: float = _env_float("CMDVERIFY_PROBE_TIMEOUT", 2.0, min_val=0.1)
    git_timeout: float = _env_float("CMDVERIFY_GIT_TIMEOUT", 15.0, min_val=1.0)


settings = Settings()
