"""Thin git wrapper for change detection.

Only two questions are asked of git: what is HEAD, and which files differ
between a previous commit and HEAD.
"""

from __future__ import annotations

import logging
import posixpath
import subprocess
from pathlib import Path

from .errors import GitError
from .settings import settings

logger = logging.getLogger(__name__)


class GitRepository:
    """Read-only view of the git repository at ``cwd``."""

    def __init__(self, cwd: Path, *, timeout: float | None = None) -> None:
        self.cwd = cwd
        self.timeout = timeout if timeout is not None else settings.git_timeout

    def _run_git(self, *args: str) -> str:
        """Run a git command and return output.

        Raises:
            GitError: If git fails, times out, or is not installed.
        """
        try:
            result = subprocess.run(
                ["git", *args],
                cwd=self.cwd,
                capture_output=True,
                encoding="utf-8",
                timeout=self.timeout,
            )
            if result.returncode != 0:
                raise GitError(
                    f"Git command failed: {result.stderr.strip()}",
                    args=args,
                    stderr=result.stderr,
                )
            return result.stdout
        except subprocess.TimeoutExpired as e:
            raise GitError(f"Git command timed out: {e}", args=args) from e
        except FileNotFoundError as e:
            raise GitError("Git not found in PATH", args=args) from e

    def current_commit(self) -> str | None:
        """HEAD commit hash, or None outside a usable repository."""
        try:
            commit = self._run_git("rev-parse", "HEAD").strip()
        except GitError as e:
            logger.warning("Not a git repository (%s). Full validation will run.", e.message)
            return None
        return commit or None

    def changed_files(self, since: str) -> set[str]:
        """Files under ``cwd`` that differ between ``since`` and HEAD.

        Paths are relative to ``cwd`` (not the repository top level) and
        unquoted, so they compare equal to discovered document paths.

        Raises:
            GitError: The diff could not be computed.
        """
        output = self._run_git(
            "-c", "core.quotePath=false", "diff", "--name-only", "--relative", "-z", since, "HEAD"
        )
        return {posixpath.normpath(name) for name in output.split("\0") if name}
