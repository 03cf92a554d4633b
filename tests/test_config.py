"""Tests for configuration loading and validation."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cmdverify.config import (
    DEFAULT_IGNORE,
    DEFAULT_INCLUDE,
    ensure_config_ready,
    load_configuration,
)
from cmdverify.errors import ConfigurationError, KnowledgeBaseError


def _write_config(root: Path, data) -> None:
    (root / "command-verify.config.json").write_text(json.dumps(data), encoding="utf-8")


class TestDefaults:
    def test_defaults_without_any_source(self, tmp_path: Path) -> None:
        config = load_configuration(tmp_path)
        root = tmp_path.resolve()
        assert config.cwd == root
        assert config.include == DEFAULT_INCLUDE
        assert config.ignore == DEFAULT_IGNORE
        assert config.cache_dir == root / ".cache" / "command-validations"
        assert config.knowledge_base_path == root / ".claude" / "knowledge.json"
        assert config.treat_unknown_as_warnings is True
        assert config.fail_on_missing_knowledge_base is False
        assert config.source is None

    def test_derived_paths(self, tmp_path: Path) -> None:
        config = load_configuration(tmp_path)
        assert config.commands_cache_dir == config.cache_dir / "commands"
        assert config.last_commit_file == config.cache_dir / "last-validation-commit.txt"


class TestJsonSource:
    def test_overrides(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path,
            {
                "include": ["docs/**/*.md"],
                "ignore": ["docs/archive/**"],
                "cacheDir": "tmp/cv",
                "treatUnknownAsWarnings": False,
                "probeTimeout": 0.5,
            },
        )
        config = load_configuration(tmp_path)
        assert config.include == ("docs/**/*.md",)
        assert config.ignore == ("docs/archive/**",)
        assert config.cache_dir == tmp_path.resolve() / "tmp" / "cv"
        assert config.treat_unknown_as_warnings is False
        assert config.probe_timeout == 0.5
        assert config.source == tmp_path / "command-verify.config.json"

    def test_knowledge_base_can_be_disabled(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"knowledgeBasePath": None})
        assert load_configuration(tmp_path).knowledge_base_path is None

    def test_empty_ignore_list_ignores_nothing(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"ignore": []})
        assert load_configuration(tmp_path).ignore == ()

    def test_invalid_json(self, tmp_path: Path) -> None:
        (tmp_path / "command-verify.config.json").write_text("{", encoding="utf-8")
        with pytest.raises(ConfigurationError) as exc_info:
            load_configuration(tmp_path)
        assert "Verify the JSON syntax" in exc_info.value.hints[0]

    @pytest.mark.parametrize(
        "data, setting",
        [
            ({"include": "**/*.md"}, "include"),
            ({"include": ["ok", ""]}, "include"),
            ({"include": []}, "include"),
            ({"cacheDir": ""}, "cacheDir"),
            ({"cacheDir": None}, "cacheDir"),
            ({"ignore": None}, "ignore"),
            ({"ignore": [1]}, "ignore"),
            ({"cacheDir": 5}, "cacheDir"),
            ({"knowledgeBasePath": ""}, "knowledgeBasePath"),
            ({"treatUnknownAsWarnings": "yes"}, "treatUnknownAsWarnings"),
            ({"treatUnknownAsWarnings": None}, "treatUnknownAsWarnings"),
            ({"probeTimeout": None}, "probeTimeout"),
            ({"failOnMissingKnowledgeBase": 1}, "failOnMissingKnowledgeBase"),
            ({"probeTimeout": -1}, "probeTimeout"),
            ({"probeTimeout": True}, "probeTimeout"),
        ],
    )
    def test_invalid_values(self, tmp_path: Path, data: dict, setting: str) -> None:
        _write_config(tmp_path, data)
        with pytest.raises(ConfigurationError) as exc_info:
            load_configuration(tmp_path)
        assert exc_info.value.setting == setting
        assert exc_info.value.suggestion

    def test_non_object(self, tmp_path: Path) -> None:
        _write_config(tmp_path, ["**/*.md"])
        with pytest.raises(ConfigurationError, match="must be an object"):
            load_configuration(tmp_path)


class TestPyprojectSource:
    def test_tool_table(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[project]\nname = "demo"\n\n'
            '[tool.command-verify]\ninclude = ["docs/**"]\n'
            "treat-unknown-as-warnings = false\n",
            encoding="utf-8",
        )
        config = load_configuration(tmp_path)
        assert config.include == ("docs/**",)
        assert config.treat_unknown_as_warnings is False
        assert config.source == tmp_path / "pyproject.toml"

    def test_pyproject_without_table_uses_defaults(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text('[project]\nname = "demo"\n', encoding="utf-8")
        assert load_configuration(tmp_path).source is None

    def test_json_file_wins(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.command-verify]\ninclude = ["from-toml/**"]\n', encoding="utf-8"
        )
        _write_config(tmp_path, {"include": ["from-json/**"]})
        assert load_configuration(tmp_path).include == ("from-json/**",)

    def test_invalid_toml(self, tmp_path: Path) -> None:
        (tmp_path / "pyproject.toml").write_text("[tool\n", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Failed to parse pyproject.toml"):
            load_configuration(tmp_path)


class TestEnsureConfigReady:
    def test_creates_cache_dir(self, tmp_path: Path) -> None:
        config = ensure_config_ready(load_configuration(tmp_path))
        assert config.cache_dir.is_dir()

    def test_strict_missing_knowledge_base(self, tmp_path: Path) -> None:
        _write_config(tmp_path, {"failOnMissingKnowledgeBase": True})
        with pytest.raises(KnowledgeBaseError) as exc_info:
            ensure_config_ready(load_configuration(tmp_path))
        assert exc_info.value.hints
        assert isinstance(exc_info.value, ConfigurationError)
