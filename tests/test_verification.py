"""End-to-end tests for the verification orchestrator."""

from __future__ import annotations

import json
from pathlib import Path

from cmdverify.cache import command_key
from cmdverify.models import Category, CommandEntry, Severity
from cmdverify.verification import run_verification, validate_command
from cmdverify.classifiers import ClassifierChain

from conftest import FakeProber, commit_all, run_git, write_knowledge_base


def _by_command(report) -> dict:
    return {r.command: r for r in report.results}


def _head(repo: Path) -> str:
    return run_git(repo, ["rev-parse", "HEAD"]).strip()


class TestDiscovery:
    def test_commands_and_locations(self, temp_git_repo: Path, prober: FakeProber) -> None:
        report = run_verification(temp_git_repo, prober=prober)
        assert report.markdown_files == ["README.md", "docs/guide.md"]
        assert [c.command for c in report.commands] == ["git status", "claude --help", "npm test"]

        npm_test = _by_command(report)["npm test"].entry
        assert npm_test.locations[0].file == "docs/guide.md"
        assert npm_test.locations[0].line == 6
        assert npm_test.locations[0].language == "bash"

    def test_duplicates_are_merged(self, temp_git_repo: Path, prober: FakeProber) -> None:
        (temp_git_repo / "CONTRIBUTING.md").write_text("Always run `npm test`.\n", encoding="utf-8")
        commit_all(temp_git_repo, "contributing")

        report = run_verification(temp_git_repo, prober=prober)
        entry = _by_command(report)["npm test"].entry
        assert [loc.file for loc in entry.locations] == ["CONTRIBUTING.md", "docs/guide.md"]
        assert prober.calls.count("npm test") == 1


class TestScenarios:
    def test_first_run_misses_then_second_run_hits(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        first = run_verification(temp_git_repo, prober=prober)
        npm_test = _by_command(first)["npm test"]
        assert npm_test.validation.category in (Category.SAFE, Category.CONDITIONAL)
        assert npm_test.validation.success
        assert not npm_test.from_cache
        assert first.summary.cache.misses == 3
        assert first.summary.cache.writes == 3

        prober.calls.clear()
        second = run_verification(temp_git_repo, prober=prober)
        assert second.summary.cache.misses == 0
        assert second.summary.cache.writes == 0
        assert second.summary.cache_hit_rate == 100
        assert second.summary == first.summary
        assert second.summary.to_dict()["cache"] != first.summary.to_dict()["cache"]
        assert all(r.from_cache for r in second.results)
        assert prober.calls == []

    def test_destructive_command_never_succeeds(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        (temp_git_repo / "docs" / "cleanup.md").write_text(
            "# Cleanup\n\n```bash\nrm -rf /\n```\n", encoding="utf-8"
        )
        commit_all(temp_git_repo, "cleanup docs")

        report = run_verification(temp_git_repo, prober=prober)
        validation = _by_command(report)["rm -rf /"].validation
        assert validation.category is Category.DANGEROUS
        assert validation.confidence == 0.95
        assert validation.success is False
        assert validation.severity is Severity.ERROR
        assert report.summary.dangerous == 1
        assert report.summary.failed == 1

    def test_skip_entry_is_successful_without_probe(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        write_knowledge_base(
            temp_git_repo, {"validationRules": {"skip": {"exactMatches": ["claude"]}}}
        )

        report = run_verification(temp_git_repo, prober=prober)
        validation = _by_command(report)["claude --help"].validation
        assert validation.category is Category.SKIP
        assert validation.success is True
        assert "claude --help" not in prober.calls
        assert report.summary.skipped == 1


class TestIncremental:
    def test_markdown_change_only_revalidates_its_commands(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        run_verification(temp_git_repo, prober=prober)

        guide = temp_git_repo / "docs" / "guide.md"
        guide.write_text(guide.read_text(encoding="utf-8") + "\nMore notes.\n", encoding="utf-8")
        commit_all(temp_git_repo, "edit guide")

        prober.calls.clear()
        report = run_verification(temp_git_repo, prober=prober)
        assert report.state.changed_files == {"docs/guide.md"}
        assert report.state.affected_commands == {"npm test"}
        assert prober.calls == ["npm test"]
        assert report.summary.cache.hits == 2
        assert report.summary.cache.misses == 1
        assert report.summary.cache.revalidated == 1

    def test_markdown_change_below_a_subdirectory_root(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        package = temp_git_repo / "pkg"
        (package / "docs").mkdir(parents=True)
        guide = package / "docs" / "guide.md"
        guide.write_text("# Guide\n\n```bash\nnpm test\n```\n", encoding="utf-8")
        commit_all(temp_git_repo, "add package")
        run_verification(package, prober=prober)

        guide.write_text("# Guide\n\nFirst:\n\n```bash\nnpm test\n```\n", encoding="utf-8")
        commit_all(temp_git_repo, "edit package guide")

        prober.calls.clear()
        report = run_verification(package, prober=prober)
        assert report.state.changed_files == {"docs/guide.md"}
        assert report.state.affected_commands == {"npm test"}
        assert prober.calls == ["npm test"]
        assert not _by_command(report)["npm test"].from_cache

    def test_knowledge_base_change_revalidates_cached_results(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        first = run_verification(temp_git_repo, prober=prober)
        assert _by_command(first)["npm test"].validation.success

        write_knowledge_base(
            temp_git_repo, {"validationRules": {"dangerous": {"exactMatches": ["npm test"]}}}
        )

        report = run_verification(temp_git_repo, prober=prober)
        npm_test = _by_command(report)["npm test"]
        assert not npm_test.from_cache
        assert npm_test.validation.category is Category.DANGEROUS
        assert npm_test.validation.success is False
        assert report.summary.cache.hits == 0
        assert report.summary.cache.revalidated == 3

        again = run_verification(temp_git_repo, prober=prober)
        assert again.summary.cache_hit_rate == 100
        assert _by_command(again)["npm test"].validation.category is Category.DANGEROUS

    def test_unknown_policy_change_revalidates_cached_results(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        run_verification(temp_git_repo, prober=prober)
        (temp_git_repo / "command-verify.config.json").write_text(
            json.dumps({"treatUnknownAsWarnings": False}), encoding="utf-8"
        )

        report = run_verification(temp_git_repo, prober=prober)
        assert report.summary.cache.hits == 0
        assert report.summary.cache.misses == 3

    def test_watermark_tracks_head(self, temp_git_repo: Path, prober: FakeProber) -> None:
        report = run_verification(temp_git_repo, prober=prober)
        assert report.config.last_commit_file.read_text(encoding="utf-8") == _head(temp_git_repo)
        assert report.state.current_commit == _head(temp_git_repo)

    def test_force_revalidates_everything(self, temp_git_repo: Path, prober: FakeProber) -> None:
        run_verification(temp_git_repo, prober=prober)
        report = run_verification(temp_git_repo, prober=prober, force=True)
        assert report.summary.cache.hits == 0
        assert report.summary.cache.misses == 3
        assert report.config.last_commit_file.exists()

    def test_corrupted_entry_is_rebuilt(self, temp_git_repo: Path, prober: FakeProber) -> None:
        first = run_verification(temp_git_repo, prober=prober)
        cached = first.config.commands_cache_dir / f"{command_key('npm test')}.json"
        cached.write_text("{ broken", encoding="utf-8")

        prober.calls.clear()
        report = run_verification(temp_git_repo, prober=prober)
        assert report.summary.cache.corrupted == 1
        assert report.summary.cache.repaired == 1
        assert report.summary.cache.misses == 1
        assert prober.calls == ["npm test"]
        assert cached.exists()

    def test_unknown_watermark_revalidates_everything(
        self, temp_git_repo: Path, prober: FakeProber
    ) -> None:
        first = run_verification(temp_git_repo, prober=prober)
        first.config.last_commit_file.write_text("0" * 40, encoding="utf-8")

        report = run_verification(temp_git_repo, prober=prober)
        assert report.summary.cache.misses == 3
        assert report.summary.cache.revalidated == 3


class TestWithoutGit:
    def test_everything_validated_and_no_watermark(self, tmp_path: Path, prober: FakeProber) -> None:
        (tmp_path / "README.md").write_text("Run `git status`.\n", encoding="utf-8")

        first = run_verification(tmp_path, prober=prober)
        second = run_verification(tmp_path, prober=prober)
        assert first.state.current_commit is None
        assert second.summary.cache.misses == 1
        assert not first.config.last_commit_file.exists()


class TestValidateCommand:
    def _validate(self, command: str, prober: FakeProber, **kwargs):
        chain = ClassifierChain.for_knowledge_base(None)
        return validate_command(CommandEntry(command), chain, prober, **kwargs)

    def test_unavailable_records_probe_message(self) -> None:
        validation = self._validate("npm test", FakeProber(missing={"npm"}))
        assert validation.available is False
        assert validation.success is False
        assert validation.message == 'Command "npm" not found on PATH'
        assert validation.suggestion

    def test_unknown_success_depends_on_setting(self, prober: FakeProber) -> None:
        assert self._validate("frob it", prober).success is True
        assert self._validate("frob it", prober, treat_unknown_as_warnings=False).success is False

    def test_conditional_available_succeeds(self, prober: FakeProber) -> None:
        validation = self._validate("npm install", prober, commit="abc")
        assert validation.category is Category.CONDITIONAL
        assert validation.success is True
        assert validation.commit == "abc"
