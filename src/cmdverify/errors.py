"""Command Verify Error Hierarchy.

Provides a structured error hierarchy for verification runs:
- CommandVerifyError: Base exception for all application errors
- ConfigurationError: Malformed configuration or missing knowledge base (fatal)
- KnowledgeBaseError: Knowledge base unavailable in strict mode (fatal)
- GitError: Git invocation failures (internal, degrades to full revalidation)
- CacheCorruptionError: Unreadable or invalid cache entries (internal, self-healed)

Only configuration problems are fatal. Everything else is caught inside the
run and converted into "do more validation work".

Usage:
    from cmdverify.errors import ConfigurationError

    if not isinstance(value, bool):
        raise ConfigurationError(
            '"treatUnknownAsWarnings" must be a boolean',
            setting="treatUnknownAsWarnings",
            hints=["Set treatUnknownAsWarnings to either true or false"],
        )
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any


class CommandVerifyError(Exception):
    """Base exception for all command verification errors.

    Attributes:
        message: Human-readable error description
        recoverable: Whether the operation can be retried
        context: Additional context for debugging
    """

    def __init__(
        self,
        message: str,
        *,
        recoverable: bool = False,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.recoverable = recoverable
        self.context = context or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert to structured dictionary for JSON output."""
        return {
            "type": type(self).__name__.lower().replace("error", ""),
            "message": self.message,
            "recoverable": self.recoverable,
            **{k: v for k, v in self.context.items() if v is not None},
        }


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(CommandVerifyError):
    """Configuration or setup issue that makes the run meaningless.

    Example:
        raise ConfigurationError(
            '"include" must be an array of strings',
            setting="include",
            hints=['Update include to use an array: { "include": ["**/*.md"] }'],
        )
    """

    def __init__(
        self,
        message: str,
        *,
        setting: str | None = None,
        expected: str | None = None,
        hints: Iterable[str] = (),
    ) -> None:
        self.hints: tuple[str, ...] = tuple(hints)
        super().__init__(
            message,
            recoverable=False,
            context={
                "setting": setting,
                "expected": expected,
                "suggestion": self.hints[0] if self.hints else None,
                "hints": list(self.hints) or None,
            },
        )
        self.setting = setting

    @property
    def suggestion(self) -> str | None:
        return self.hints[0] if self.hints else None


class KnowledgeBaseError(ConfigurationError):
    """Knowledge base missing or unreadable while strict mode is enabled."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        hints: Iterable[str] = (),
    ) -> None:
        super().__init__(message, setting="knowledgeBasePath", hints=hints)
        if path:
            self.context["path"] = _truncate(path, 200)


# =============================================================================
# Internal Errors (never escape a run)
# =============================================================================


class GitError(CommandVerifyError):
    """Git command failed, timed out, or git is not installed."""

    def __init__(
        self,
        message: str,
        *,
        args: Iterable[str] = (),
        stderr: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=True,
            context={
                "git_args": " ".join(args) or None,
                "stderr": _truncate(stderr.strip(), 500) if stderr else None,
            },
        )


class CacheCorruptionError(CommandVerifyError):
    """A cache entry could not be trusted and must be rebuilt."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(
            message,
            recoverable=True,
            context={
                "path": _truncate(path, 200) if path else None,
                "reason": reason,
            },
        )
        self.reason = reason or message


# =============================================================================
# Helpers
# =============================================================================


def _truncate(value: str | None, max_len: int) -> str | None:
    """Truncate a string value for safe logging."""
    if value is None:
        return None
    if len(value) <= max_len:
        return value
    return value[:max_len] + "..."


# =============================================================================
# Error Response Helpers
# =============================================================================


@dataclass
class ErrorResponse:
    """Structured error response for the JSON output mode."""

    error_type: str
    message: str
    recoverable: bool = False
    details: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "error": {
                "type": self.error_type,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }
        if self.details:
            result["error"]["details"] = self.details
        return result


def error_response(exc: Exception) -> ErrorResponse:
    """Convert an exception to a structured error response."""
    if isinstance(exc, CommandVerifyError):
        return ErrorResponse(
            error_type=type(exc).__name__.lower().replace("error", ""),
            message=exc.message,
            recoverable=exc.recoverable,
            details={k: v for k, v in exc.context.items() if v is not None},
        )

    return ErrorResponse(
        error_type="internal",
        message=str(exc) if str(exc) else "An unexpected error occurred",
        recoverable=False,
    )
