"""User-facing validation messages and remediation hints."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from .models import Category, CommandLocation, Severity

INSTALL_HINTS = {
    "npm": "Install Node.js (which includes npm) and re-run the verification once available.",
    "yarn": "Install Yarn globally (npm install -g yarn) or switch the documentation to npm commands.",
    "pnpm": "Install pnpm globally (npm install -g pnpm) or document the installation step.",
    "node": "Install Node.js from https://nodejs.org/ and ensure it is on your PATH.",
    "npx": "Install Node.js so that npx becomes available for command execution.",
    "python": "Install Python 3 and make sure python is available on the PATH (check py launcher on Windows).",
    "python3": "Install Python 3 and ensure the python3 alias is available on your system PATH.",
    "pip": "Install pip (bundled with recent Python distributions) or reference python -m pip in documentation.",
    "pip3": "Install Python 3 and use python -m pip to ensure consistent availability.",
    "git": "Install Git from https://git-scm.com/downloads and restart the shell to refresh PATH.",
    "docker": "Install Docker Desktop or the Docker CLI and ensure the daemon is running before running this command.",
}

GENERIC_INSTALL_HINT = (
    "Install the required CLI or adjust the documentation to reference an available command."
)
DANGEROUS_HINT = "Add a warning to the documentation or provide a safer alternative command."
CONDITIONAL_HINT = "Document any pre-requisites or required confirmations for this command."
UNKNOWN_HINT = "Add this command to the knowledge base or configuration so it can be categorized."
UNKNOWN_MISSING_HINT = "Verify the command name or provide installation instructions."


@dataclass(frozen=True)
class ValidationMessage:
    message: str
    severity: Severity
    suggestion: str | None = None


def _location_prefix(locations: Sequence[CommandLocation] | None) -> str:
    if not locations:
        return ""
    first = locations[0]
    if first.file and first.line:
        return f"{first.file}:{first.line}: "
    if first.file:
        return f"{first.file}: "
    return ""


def _join(hints: list[str]) -> str | None:
    return " ".join(hints) or None


def build_validation_message(
    command: str,
    category: Category,
    available: bool,
    locations: Sequence[CommandLocation] | None = None,
    treat_unknown_as_warnings: bool = True,
) -> ValidationMessage:
    """Message, severity and suggestion for one validated command."""
    prefix = _location_prefix(locations)
    parts = (command or "").strip().split()
    name = parts[0] if parts else ""

    if category is Category.SKIP:
        return ValidationMessage(f"{prefix}Skipped documentation-only command", Severity.INFO)

    hints: list[str] = []
    if not available:
        hints.append(INSTALL_HINTS.get(name, GENERIC_INSTALL_HINT))

    if category is Category.DANGEROUS:
        hints.append(DANGEROUS_HINT)
        return ValidationMessage(
            f"{prefix}Flagged as dangerous. Do not auto-run this command.",
            Severity.ERROR,
            _join(hints),
        )

    if category is Category.CONDITIONAL:
        hints.append(CONDITIONAL_HINT)
        return ValidationMessage(
            f"{prefix}Requires manual review before execution.",
            Severity.WARNING,
            _join(hints),
        )

    if category is Category.UNKNOWN:
        if treat_unknown_as_warnings:
            hints.append(UNKNOWN_HINT)
            if not available:
                hints.append(UNKNOWN_MISSING_HINT)
            missing = "" if available else " and not found on this system"
            return ValidationMessage(
                f"{prefix}Unknown command pattern{missing}.",
                Severity.WARNING,
                _join(hints),
            )
        hints.append(UNKNOWN_HINT)
        return ValidationMessage(f"{prefix}Unknown command pattern.", Severity.ERROR, _join(hints))

    if not available:
        return ValidationMessage(
            f"{prefix}{name} is not available on this system.",
            Severity.WARNING,
            _join(hints),
        )

    return ValidationMessage(f"{prefix}Validated as {category.value}.", Severity.INFO, _join(hints))
