from __future__ import annotations

import json
import subprocess
from pathlib import Path

import pytest

from cmdverify.models import CommandEntry
from cmdverify.probe import Availability

GUIDE_MD = """# Guide

Run the test suite before opening a pull request:

```bash
npm test
```
"""

README_MD = """# Demo

Check your working tree with `git status` first.

```bash
claude --help
```
"""


def run_git(repo: Path, args: list[str]) -> str:
    completed = subprocess.run(
        ["git", "-C", str(repo), *args],
        check=True,
        capture_output=True,
        text=True,
    )
    return completed.stdout


def commit_all(repo: Path, message: str) -> str:
    run_git(repo, ["add", "."])
    run_git(repo, ["commit", "-m", message])
    return run_git(repo, ["rev-parse", "HEAD"]).strip()


def write_knowledge_base(repo: Path, data: dict) -> Path:
    path = repo / ".claude" / "knowledge.json"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


class FakeProber:
    """Availability stand-in: everything is installed except ``missing``."""

    def __init__(self, missing: set[str] | None = None) -> None:
        self.missing = missing or set()
        self.calls: list[str] = []

    def __call__(self, entry: CommandEntry) -> Availability:
        self.calls.append(entry.command)
        if entry.executable in self.missing:
            return Availability(False, f'Command "{entry.executable}" not found on PATH')
        return Availability(True)


@pytest.fixture
def prober() -> FakeProber:
    return FakeProber()


@pytest.fixture
def temp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repo with two documentation files committed."""

    repo = tmp_path / "repo"
    repo.mkdir(parents=True, exist_ok=True)

    run_git(repo, ["init"])
    run_git(repo, ["config", "user.email", "test@example.com"])
    run_git(repo, ["config", "user.name", "Command Verify Test"])
    run_git(repo, ["config", "commit.gpgsign", "false"])

    (repo / ".gitignore").write_text(".cache/\n.claude/\n", encoding="utf-8")
    (repo / "docs").mkdir(parents=True, exist_ok=True)
    (repo / "docs" / "guide.md").write_text(GUIDE_MD, encoding="utf-8")
    (repo / "README.md").write_text(README_MD, encoding="utf-8")

    commit_all(repo, "initial")
    return repo
