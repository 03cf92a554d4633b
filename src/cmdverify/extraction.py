"""Extract command candidates from Markdown.

Markdown is parsed with mistletoe. Fenced code blocks contribute one
candidate per line; inline code spans contribute one candidate each.
Every candidate is filtered through ``looks_like_command``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from mistletoe import Document
from mistletoe.block_token import CodeFence
from mistletoe.span_token import InlineCode, RawText

from .detection import looks_like_command
from .models import CommandLocation

logger = logging.getLogger(__name__)

KNOWN_LANGUAGES = frozenset(
    {"bash", "shell", "console", "sh", "terminal", "cmd", "powershell", "ps1", "zsh", "fish"}
)

CODE_BLOCK = "code-block"
INLINE = "inline"


@dataclass(frozen=True)
class ExtractedCommand:
    command: str
    file: str
    line: int
    type: str
    language: str | None = None

    @property
    def location(self) -> CommandLocation:
        return CommandLocation(file=self.file, line=self.line, type=self.type, language=self.language)


def normalise_language(language: str | None) -> str:
    if not language:
        return "unknown"
    lower = language.lower()
    return lower if lower in KNOWN_LANGUAGES else "unknown"


def _extract_text(token: Any) -> str:
    """Extract plain text from a token."""
    if isinstance(token, RawText):
        return token.content
    elif getattr(token, "children", None):
        return "".join(_extract_text(child) for child in token.children)
    return ""


class _Scanner:
    """Walks the token tree in document order, tracking source lines.

    Code fences carry their own line numbers. mistletoe does not expose span
    positions, so inline code is located by searching the source from a
    cursor that only moves forward.
    """

    def __init__(self, content: str, file: str) -> None:
        self.lines = content.split("\n")
        self.file = file
        self.cursor = 0
        self.column = 0
        self.found: list[ExtractedCommand] = []

    def walk(self, token: Any) -> None:
        if isinstance(token, CodeFence):
            self._code_fence(token)
            return
        if isinstance(token, InlineCode):
            self._inline_code(token)
            return
        for child in getattr(token, "children", None) or []:
            self.walk(child)

    def _code_fence(self, token: CodeFence) -> None:
        # mistletoe records the 1-based line of the opening fence, also inside
        # block quotes and list items where the fence is indented or prefixed
        opening = token.line_number
        language = normalise_language(token.language)
        body = _extract_text(token).split("\n")
        if body and body[-1] == "":
            body.pop()

        for offset, raw in enumerate(body):
            command = raw.strip()
            if looks_like_command(command):
                self.found.append(
                    ExtractedCommand(
                        command=command,
                        file=self.file,
                        line=opening + offset + 1,
                        type=CODE_BLOCK,
                        language=language,
                    )
                )

        self.cursor = max(self.cursor, opening + len(body) + 1)
        self.column = 0

    def _inline_code(self, token: InlineCode) -> None:
        command = _extract_text(token).strip()
        for needle in (f"`{command}`", command):
            position = self._locate(needle)
            if position is not None:
                self.cursor, column = position
                self.column = column + len(needle)
                break

        if looks_like_command(command):
            self.found.append(
                ExtractedCommand(
                    command=command,
                    file=self.file,
                    line=self.cursor + 1,
                    type=INLINE,
                )
            )

    def _locate(self, needle: str) -> tuple[int, int] | None:
        for index in range(self.cursor, len(self.lines)):
            start = self.column if index == self.cursor else 0
            column = self.lines[index].find(needle, start)
            if column >= 0:
                return index, column
        return None


def extract_commands_from_markdown(content: Any, file: str | None = None) -> list[ExtractedCommand]:
    """Command candidates in ``content``, in document order.

    Args:
        content: Markdown source. None yields nothing; other non-strings are
            converted with ``str``.
        file: Path recorded on each candidate ("unknown" when blank).

    Returns:
        Candidates with 1-based line numbers.
    """
    if content is None:
        return []
    text = content if isinstance(content, str) else str(content)
    text = text.replace("\r\n", "\n")
    source = file if isinstance(file, str) and file.strip() else "unknown"

    scanner = _Scanner(text, source)
    scanner.walk(Document(text))
    logger.debug("Extracted %d command candidates from %s", len(scanner.found), source)
    return scanner.found
