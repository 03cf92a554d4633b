"""Documentation file discovery.

Glob semantics (posix separators, patterns anchored at the repo root):
- ``**`` matches any characters including ``/``
- ``*`` matches any characters except ``/``
- ``?`` matches one character except ``/``
- ``**/*.md`` and ``*.md`` match every markdown file
- ``dir/**`` matches ``dir`` itself and everything beneath it

Hidden files and directories are never returned.
"""

from __future__ import annotations

import logging
import os
import re
from functools import lru_cache
from pathlib import Path

from .config import VerifyConfig

logger = logging.getLogger(__name__)

_MARKDOWN_GLOBS = ("**/*.md", "*.md")


@lru_cache(maxsize=256)
def glob_to_regex(pattern: str) -> re.Pattern[str]:
    parts: list[str] = []
    i = 0
    while i < len(pattern):
        if pattern.startswith("**", i):
            parts.append(".*")
            i += 2
        elif pattern[i] == "*":
            parts.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            parts.append("[^/]")
            i += 1
        else:
            parts.append(re.escape(pattern[i]))
            i += 1
    return re.compile("^" + "".join(parts) + "$")


def matches_pattern(path: str, pattern: str, *, treat_directories: bool = False) -> bool:
    """True when the posix-relative ``path`` matches ``pattern``."""
    target = path.replace("\\", "/")
    glob = pattern.replace("\\", "/")

    if glob in _MARKDOWN_GLOBS:
        return target.endswith(".md")

    if glob.endswith("/**"):
        prefix = glob[:-3]
        if target == prefix or target.startswith(f"{prefix}/"):
            return True

    if treat_directories and glob in (target, f"{target}/"):
        return True

    return glob_to_regex(glob).match(target) is not None


def _ignored(relative: str, patterns: tuple[str, ...], *, is_directory: bool) -> bool:
    return any(matches_pattern(relative, p, treat_directories=is_directory) for p in patterns)


def find_matching_files(config: VerifyConfig) -> list[str]:
    """Files under ``config.cwd`` matching any include glob, sorted.

    Ignored directories are pruned before descending into them.
    """
    root = config.cwd
    include = tuple(dict.fromkeys(config.include))
    found: set[str] = set()

    for dirpath, dirnames, filenames in os.walk(root):
        current = Path(dirpath)

        kept = []
        for name in sorted(dirnames):
            if name.startswith("."):
                continue
            relative = (current / name).relative_to(root).as_posix()
            if _ignored(relative, config.ignore, is_directory=True):
                logger.debug("Skipping ignored directory %s", relative)
                continue
            kept.append(name)
        dirnames[:] = kept

        for name in filenames:
            if name.startswith("."):
                continue
            relative = (current / name).relative_to(root).as_posix()
            if _ignored(relative, config.ignore, is_directory=False):
                continue
            if any(matches_pattern(relative, p) for p in include):
                found.add(relative)

    return sorted(found)
