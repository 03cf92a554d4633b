"""Heuristic: does a snippet of documentation text look like a shell command?

Rejections are checked first (prose, markdown structure, file names,
placeholders, code declarations), then a handful of positive shapes.
Anything that is neither rejected nor positively recognised is not a
command.
"""

from __future__ import annotations

import re
from typing import Any

COMMON_COMMAND_PREFIXES = (
    "npm", "yarn", "pnpm", "node", "npx",
    "python", "python3", "pip", "pip3",
    "cargo", "rustc", "rustup",
    "go", "gofmt", "golangci-lint",
    "docker", "docker-compose",
    "git", "make",
    "curl", "wget",
    "ls", "cat", "find", "grep",
    "mkdir", "rm", "cp", "mv",
    "echo", "printf",
    "cd", "pwd",
)

MAX_COMMAND_LENGTH = 100

_COMMON_WORDS = re.compile(r"\b(the|a|an|is|are|was|were|be|been|being)\b")

# (pattern, reason) - any match means "not a command"
_REJECT_PATTERNS = [
    (re.compile(r"^[0-9]+\."), "numbered list"),
    (re.compile(r":\s*[0-9]"), "statistic"),
    (re.compile(r"[A-Z][a-z]+:"), "prose label"),
    (re.compile(r"^\[.*\]$"), "array literal"),
    (re.compile(r"^\d{4}.*Q[1-4]"), "date"),
    (re.compile(r"^v\d+\.\d+"), "version string"),
]

_REJECT_PREFIXES = ("-", "*", "#", ">", "//", "const ", "let ", "var ", "function ", "class ")

_DOC_FILE = re.compile(r"\.(md|json|js|ts)\b", re.IGNORECASE)
_PRIVILEGE = re.compile(r"^(sudo|su)\s+")
_HYPHENATED_TOOL = re.compile(r"^[a-z]+(-[a-z]+)+(\s|$)", re.IGNORECASE)
_WORD_WITH_ARGS = re.compile(r"^[a-z][a-z0-9_-]*\s+", re.IGNORECASE)


def _rejected(trimmed: str) -> bool:
    if trimmed.startswith(_REJECT_PREFIXES):
        return True
    if trimmed.endswith(":") or "..." in trimmed or len(trimmed) > MAX_COMMAND_LENGTH:
        return True
    if any(pattern.search(trimmed) for pattern, _ in _REJECT_PATTERNS):
        return True

    relative = trimmed.startswith(("./", "../"))
    if not relative:
        if not re.search(r"\s", trimmed) and _DOC_FILE.search(trimmed):
            return True
        if trimmed.startswith("."):
            return True

    return "<" in trimmed or ">" in trimmed or " = " in trimmed


def looks_like_command(text: Any) -> bool:
    """True if ``text`` plausibly is a command a reader would type."""
    if text is None:
        return False
    if isinstance(text, (bool, int, float)):
        text = str(text)
    if not isinstance(text, str):
        return False

    trimmed = text.strip()
    if len(trimmed) < 2 or _rejected(trimmed):
        return False

    lower = trimmed.lower()
    if "," not in trimmed and any(
        lower == prefix or lower.startswith(f"{prefix} ") for prefix in COMMON_COMMAND_PREFIXES
    ):
        return True

    if _PRIVILEGE.match(trimmed):
        return True
    if trimmed.startswith(("./", "../", "/")):
        return True
    if _HYPHENATED_TOOL.match(trimmed):
        return True

    prose_marks = "," in trimmed or "(" in trimmed
    if not _COMMON_WORDS.search(lower) and _WORD_WITH_ARGS.match(trimmed) and not prose_marks:
        return True

    # Leading glyph (emoji, arrow) followed by command-like text
    first, rest = trimmed[0], trimmed[1:].strip()
    if not first.isalnum() and rest and "," not in rest and "(" not in rest:
        return True

    return False
