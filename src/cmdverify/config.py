"""Per-repository configuration.

Looked up in the working directory, first match wins:
- command-verify.config.json
- [tool.command-verify] in pyproject.toml
- built-in defaults

Every field is optional. Shape problems raise ConfigurationError with
hints; they are the only fatal errors a run can hit.
"""

from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigurationError, KnowledgeBaseError
from .settings import settings

CONFIG_FILE = "command-verify.config.json"
PYPROJECT_FILE = "pyproject.toml"
PYPROJECT_TABLE = "command-verify"

DEFAULT_INCLUDE = ("**/*.md",)
DEFAULT_IGNORE = ("node_modules/**", ".git/**", "dist/**", "build/**", ".cache/**")
DEFAULT_CACHE_DIR = ".cache/command-validations"
DEFAULT_KNOWLEDGE_BASE = ".claude/knowledge.json"

COMMANDS_SUBDIR = "commands"
LAST_COMMIT_FILE = "last-validation-commit.txt"

_KNOWN_KEYS = {
    "include",
    "ignore",
    "cacheDir",
    "knowledgeBasePath",
    "treatUnknownAsWarnings",
    "failOnMissingKnowledgeBase",
    "probeTimeout",
}


@dataclass(frozen=True)
class VerifyConfig:
    """Resolved configuration for one repository."""

    cwd: Path
    include: tuple[str, ...] = DEFAULT_INCLUDE
    ignore: tuple[str, ...] = DEFAULT_IGNORE
    cache_dir: Path = Path(DEFAULT_CACHE_DIR)
    knowledge_base_path: Path | None = Path(DEFAULT_KNOWLEDGE_BASE)
    treat_unknown_as_warnings: bool = True
    fail_on_missing_knowledge_base: bool = False
    probe_timeout: float = settings.probe_timeout
    source: Path | None = None

    @property
    def commands_cache_dir(self) -> Path:
        return self.cache_dir / COMMANDS_SUBDIR

    @property
    def last_commit_file(self) -> Path:
        return self.cache_dir / LAST_COMMIT_FILE


# =============================================================================
# Field validators
# =============================================================================


def _string_list(value: Any, key: str, *, allow_empty: bool = True) -> tuple[str, ...]:
    if not isinstance(value, list):
        raise ConfigurationError(
            f'"{key}" must be an array of strings',
            setting=key,
            expected="array of strings",
            hints=[f'Update {key} to use an array: {{ "{key}": ["pattern1", "pattern2"] }}'],
        )
    if any(not isinstance(item, str) or not item.strip() for item in value):
        raise ConfigurationError(
            f'"{key}" contains a non-string or empty value',
            setting=key,
            expected="non-empty strings",
            hints=[f"Remove empty values from {key} and ensure each entry is a non-empty string"],
        )
    if not value and not allow_empty:
        raise ConfigurationError(
            f'"{key}" must contain at least one pattern',
            setting=key,
            expected="non-empty array of strings",
            hints=[f"Add a pattern to {key} or remove it to use the default"],
        )
    return tuple(value)


def _boolean(value: Any, key: str) -> bool:
    if not isinstance(value, bool):
        raise ConfigurationError(
            f'"{key}" must be a boolean',
            setting=key,
            expected="boolean",
            hints=[f"Set {key} to either true or false"],
        )
    return value


def _string(value: Any, key: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ConfigurationError(
            f'"{key}" must be a non-empty string',
            setting=key,
            expected="non-empty string",
            hints=[f"Provide a string value for {key}"],
        )
    return value


def _positive_number(value: Any, key: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
        raise ConfigurationError(
            f'"{key}" must be a positive number of seconds',
            setting=key,
            expected="positive number",
            hints=[f"Set {key} to a value such as 2 or 0.5"],
        )
    return float(value)


# =============================================================================
# Loading
# =============================================================================


def build_config(raw: Any, cwd: Path, *, source: Path | None = None) -> VerifyConfig:
    """Validate a raw mapping and resolve its paths against ``cwd``."""
    if not isinstance(raw, dict):
        raise ConfigurationError(
            "Configuration must be an object",
            expected="object",
            hints=[f"Provide a JSON object in {CONFIG_FILE} or a [tool.{PYPROJECT_TABLE}] table"],
        )

    include = DEFAULT_INCLUDE
    if "include" in raw:
        include = _string_list(raw["include"], "include", allow_empty=False)
    ignore = _string_list(raw["ignore"], "ignore") if "ignore" in raw else DEFAULT_IGNORE
    cache_dir = _string(raw["cacheDir"], "cacheDir") if "cacheDir" in raw else DEFAULT_CACHE_DIR

    knowledge_base: str | None = DEFAULT_KNOWLEDGE_BASE
    if "knowledgeBasePath" in raw:
        value = raw["knowledgeBasePath"]
        knowledge_base = None if value is None else _string(value, "knowledgeBasePath")

    treat_unknown = True
    if "treatUnknownAsWarnings" in raw:
        treat_unknown = _boolean(raw["treatUnknownAsWarnings"], "treatUnknownAsWarnings")

    fail_on_missing = False
    if "failOnMissingKnowledgeBase" in raw:
        fail_on_missing = _boolean(raw["failOnMissingKnowledgeBase"], "failOnMissingKnowledgeBase")

    probe_timeout = settings.probe_timeout
    if "probeTimeout" in raw:
        probe_timeout = _positive_number(raw["probeTimeout"], "probeTimeout")

    root = cwd.resolve()
    return VerifyConfig(
        cwd=root,
        include=include,
        ignore=ignore,
        cache_dir=(root / cache_dir).resolve(),
        knowledge_base_path=(root / knowledge_base).resolve() if knowledge_base else None,
        treat_unknown_as_warnings=treat_unknown,
        fail_on_missing_knowledge_base=fail_on_missing,
        probe_timeout=probe_timeout,
        source=source,
    )


def _read_json_config(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Failed to parse {path.name}: {e}",
            hints=[
                "Verify the JSON syntax (quotes, commas, braces)",
                "Use a JSON validator if needed",
            ],
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path.name}: {e}") from e


def _read_pyproject_table(path: Path) -> Any | None:
    try:
        with path.open("rb") as fh:
            data = tomllib.load(fh)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            f"Failed to parse {path.name}: {e}",
            hints=["Verify the TOML syntax of pyproject.toml"],
        ) from e
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path.name}: {e}") from e

    tool = data.get("tool")
    if not isinstance(tool, dict) or PYPROJECT_TABLE not in tool:
        return None
    return tool[PYPROJECT_TABLE]


def load_configuration(cwd: Path | str | None = None) -> VerifyConfig:
    """Load the configuration for the repository at ``cwd``.

    Raises:
        ConfigurationError: A configuration source exists but is malformed.
    """
    root = Path(cwd) if cwd is not None else Path.cwd()

    json_path = root / CONFIG_FILE
    if json_path.is_file():
        return build_config(_read_json_config(json_path), root, source=json_path)

    pyproject = root / PYPROJECT_FILE
    if pyproject.is_file():
        table = _read_pyproject_table(pyproject)
        if table is not None:
            return build_config(_normalise_toml_keys(table), root, source=pyproject)

    return build_config({}, root)


def _normalise_toml_keys(table: Any) -> Any:
    """Accept kebab-case and snake_case spellings in pyproject.toml."""
    if not isinstance(table, dict):
        return table
    camel = {k.replace("-", "").replace("_", "").lower(): k for k in _KNOWN_KEYS}
    normalised: dict[str, Any] = {}
    for key, value in table.items():
        canonical = camel.get(key.replace("-", "").replace("_", "").lower(), key)
        normalised[canonical] = value
    return normalised


def ensure_config_ready(config: VerifyConfig) -> VerifyConfig:
    """Create the cache directory and enforce the strict knowledge-base check.

    Raises:
        KnowledgeBaseError: Strict mode is on and the knowledge base is missing.
    """
    config.cache_dir.mkdir(parents=True, exist_ok=True)

    path = config.knowledge_base_path
    if path is not None and config.fail_on_missing_knowledge_base and not path.exists():
        raise KnowledgeBaseError(
            f"Knowledge base not found at {path}",
            path=str(path),
            hints=['Set "knowledgeBasePath" to a valid file or disable it by setting it to null'],
        )
    return config
