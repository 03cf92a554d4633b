"""Host availability probe.

Only answers "is the executable on PATH?". Nothing documented is ever run.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import sys
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .models import CommandEntry
from .settings import settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Availability:
    available: bool
    error: str | None = None


Prober = Callable[[CommandEntry], Availability]


def lookup_tool() -> str:
    """``where`` on Windows, ``which`` everywhere else."""
    return "where" if sys.platform == "win32" else "which"


def _not_found(name: str, detail: str | None = None) -> Availability:
    suffix = f": {detail}" if detail else ""
    return Availability(False, f'Command "{name}" not found on PATH{suffix}')


def probe_availability(
    entry: CommandEntry,
    *,
    timeout: float | None = None,
    cwd: Path | None = None,
) -> Availability:
    """Check whether the command's executable resolves on PATH.

    A missing binary and a lookup that exceeds ``timeout`` are both normal
    outcomes reported as unavailable. If the lookup utility itself is not
    installed, the PATH is searched in-process instead.
    """
    name = entry.executable
    if not name:
        return _not_found(name, "empty command")

    tool = lookup_tool()
    limit = timeout if timeout is not None else settings.probe_timeout
    try:
        result = subprocess.run(
            [tool, name],
            cwd=cwd,
            capture_output=True,
            text=True,
            timeout=limit,
        )
    except subprocess.TimeoutExpired:
        logger.debug("%s %s timed out after %.1fs", tool, name, limit)
        return _not_found(name, f"lookup timed out after {limit:g}s")
    except FileNotFoundError:
        logger.debug("%s is not installed; searching PATH directly", tool)
        if shutil.which(name) is not None:
            return Availability(True)
        return _not_found(name)

    if result.returncode == 0:
        return Availability(True)
    detail = (result.stderr or result.stdout).strip() or None
    return _not_found(name, detail)


def make_prober(*, timeout: float | None = None, cwd: Path | None = None) -> Prober:
    """Bind timeout and working directory into a single-argument prober."""

    def _probe(entry: CommandEntry) -> Availability:
        return probe_availability(entry, timeout=timeout, cwd=cwd)

    return _probe
