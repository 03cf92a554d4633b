"""Tests for Markdown command extraction."""

from __future__ import annotations

from cmdverify.extraction import (
    CODE_BLOCK,
    INLINE,
    extract_commands_from_markdown,
    normalise_language,
)

SETUP_MD = """# Setup

Install dependencies with `npm install`, then build.

```sh
# install deps
npm install

npm run build
```

- Run `npm test` to check everything.
- Use `git status` before committing.

```python
pip install -r requirements.txt
```
"""


def _summary(content: str, file: str = "docs/setup.md") -> list[tuple[str, int, str, str | None]]:
    return [
        (c.command, c.line, c.type, c.language)
        for c in extract_commands_from_markdown(content, file)
    ]


def test_document_order_and_line_numbers() -> None:
    assert _summary(SETUP_MD) == [
        ("npm install", 3, INLINE, None),
        ("npm install", 7, CODE_BLOCK, "sh"),
        ("npm run build", 9, CODE_BLOCK, "sh"),
        ("npm test", 12, INLINE, None),
        ("git status", 13, INLINE, None),
        ("pip install -r requirements.txt", 16, CODE_BLOCK, "unknown"),
    ]


def test_file_is_recorded() -> None:
    commands = extract_commands_from_markdown("`git status`\n", "README.md")
    assert commands[0].file == "README.md"
    assert commands[0].location.file == "README.md"
    assert commands[0].location.type == INLINE


def test_fence_without_language() -> None:
    content = "Intro\n\n```\nmake build\n```\n"
    assert _summary(content) == [("make build", 4, CODE_BLOCK, "unknown")]


def test_tilde_fence() -> None:
    content = "~~~bash\ncargo test\n~~~\n"
    assert _summary(content) == [("cargo test", 2, CODE_BLOCK, "bash")]


def test_same_inline_command_on_several_lines() -> None:
    content = "First `npm test` here.\n\nAgain `npm test` there.\n"
    assert [c.line for c in extract_commands_from_markdown(content, "a.md")] == [1, 3]


def test_prose_in_inline_code_is_ignored() -> None:
    content = "See `README.md` and `this is a sentence` for details.\n"
    assert extract_commands_from_markdown(content, "a.md") == []


def test_windows_line_endings() -> None:
    content = "# T\r\n\r\n```bash\r\nnpm test\r\n```\r\n"
    assert _summary(content) == [("npm test", 4, CODE_BLOCK, "bash")]


def test_empty_and_non_string_content() -> None:
    assert extract_commands_from_markdown(None, "a.md") == []
    assert extract_commands_from_markdown("", "a.md") == []
    assert extract_commands_from_markdown(12345, "a.md") == []


def test_blank_file_name() -> None:
    commands = extract_commands_from_markdown("`git status`\n", "  ")
    assert commands[0].file == "unknown"


def test_normalise_language() -> None:
    assert normalise_language("BASH") == "bash"
    assert normalise_language("PowerShell") == "powershell"
    assert normalise_language("python") == "unknown"
    assert normalise_language(None) == "unknown"
    assert normalise_language("") == "unknown"


def test_fence_inside_block_quote() -> None:
    content = (
        "> ```bash\n"
        "> npm install\n"
        "> ```\n"
        "\n"
        "```bash\n"
        "npm test\n"
        "```\n"
        "\n"
        "Finally `git status`.\n"
    )
    assert _summary(content) == [
        ("npm install", 2, CODE_BLOCK, "bash"),
        ("npm test", 6, CODE_BLOCK, "bash"),
        ("git status", 9, INLINE, None),
    ]
