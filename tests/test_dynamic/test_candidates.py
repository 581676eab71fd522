"""Tests for cliform.completion.dynamic.candidates.

Covers:
- Sub-command candidates with descriptions (opaque ones marked lazy)
- Option candidates: used options removed, repeatable kept, --help rules
- Value candidates per completion kind and their directives
- In-process filtered file listing
- Shell commands: output trimming, failures, timeouts
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Annotated

import pytest
from pydantic import BaseModel

from cliform.completion.dynamic import generate_candidates, parse_completion_context
from cliform.completion.dynamic.candidates import (
    list_matching_files,
    run_shell_command,
    value_candidates,
)
from cliform.models import (
    CandidateKind,
    ChoicesCompletion,
    CompletionDirective,
    DirectoryCompletion,
    FileCompletion,
    NoCompletion,
    ShellCommandCompletion,
)
from cliform.schema import Arg, Command, define_command

D = CompletionDirective


def _candidates(cli: Command, *words: str):  # noqa: ANN202
    return generate_candidates(parse_completion_context(list(words), cli))


def _values(result) -> list[str]:  # noqa: ANN001
    return [c.value for c in result.candidates]


class TestSubcommandCandidates:
    def test_root(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "")
        assert _values(result) == ["deploy", "build", "tag", "remote", "plugin", "extras"]
        assert result.directive == D.FILTER_PREFIX
        by_value = {c.value: c for c in result.candidates}
        assert by_value["deploy"].description == "Deploy the application"
        assert by_value["deploy"].kind == CandidateKind.SUBCOMMAND
        assert by_value["plugin"].description == "Manage plugins"
        assert by_value["extras"].description == "(lazy loaded)"

    def test_leaf_with_nothing_left_offers_options(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "build", "app", "")
        assert _values(result) == ["--format", "--out-dir", "--token", "--help"]


class TestOptionCandidates:
    def test_all_options(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "deploy", "--")
        assert _values(result) == ["--env", "--config", "--label", "--dry-run", "--help"]
        assert result.directive == D.FILTER_PREFIX
        assert result.candidates[0].description == "Target environment"
        assert result.candidates[-1].description == "Show help information"

    def test_used_removed_repeatable_kept(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "deploy", "-e", "dev", "--label", "x", "--")
        values = _values(result)
        assert "--env" not in values
        assert "--label" in values

    def test_help_not_repeated(self, sample_cli: Command) -> None:
        assert "--help" not in _values(_candidates(sample_cli, "deploy", "--help", "--"))

    def test_declared_help_not_duplicated(self) -> None:
        class Args(BaseModel):
            help: Annotated[bool, Arg(description="Custom help")] = False

        result = _candidates(define_command(name="app", args=Args), "--")
        assert _values(result) == ["--help"]
        assert result.candidates[0].description == "Custom help"

    def test_used_option_drops_long_name_and_alias_only(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "deploy", "--env", "staging", "--")
        assert _values(result) == ["--config", "--label", "--dry-run", "--help"]

    def test_option_prefix_after_variadic_values(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "tag", "stable", "beta", "--")
        assert _values(result) == ["--help"]
        assert {c.kind for c in result.candidates} == {CandidateKind.OPTION}
        assert result.directive == D.FILTER_PREFIX


class TestValueCandidates:
    def test_choices_keep_order(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "deploy", "--env", "")
        assert _values(result) == ["dev", "staging", "prod"]
        assert result.directive == D.FILTER_PREFIX | D.KEEP_ORDER

    def test_variadic_choices_offered_again(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "tag", "stable", "")
        assert _values(result) == ["stable", "beta", "nightly", "rc"]
        assert {c.kind for c in result.candidates} == {CandidateKind.VALUE}
        assert result.directive == D.FILTER_PREFIX | D.KEEP_ORDER

    def test_positional_choices_carry_description(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "build", "")
        assert _values(result) == ["app", "lib"]
        assert result.candidates[0].description == "What to build"

    def test_directory(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "build", "--out-dir", "")
        assert result.candidates == []
        assert result.directive == D.DIRECTORY_COMPLETION

    def test_no_completion(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "build", "--token", "")
        assert result.candidates == []
        assert result.directive == D.NO_FILE_COMPLETION

    def test_undeclared_value_uses_files(self, sample_cli: Command) -> None:
        assert _candidates(sample_cli, "deploy", "--label", "").directive == D.FILE_COMPLETION
        assert _candidates(sample_cli, "remote", "add", "o", "").directive == D.FILE_COMPLETION

    def test_unfiltered_file(self) -> None:
        assert value_candidates(FileCompletion(), "").directive == D.FILE_COMPLETION

    def test_shell_command(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "remote", "remove", "")
        assert _values(result) == ["origin", "upstream"]
        assert result.directive == D.FILTER_PREFIX

    def test_inline_value(self, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "build", "--format=y")
        assert _values(result) == ["json", "yaml", "xml"]

    def test_each_kind(self) -> None:
        assert value_candidates(ChoicesCompletion(values=["a"]), "").directive == (
            D.FILTER_PREFIX | D.KEEP_ORDER
        )
        assert value_candidates(DirectoryCompletion(), "").directive == D.DIRECTORY_COMPLETION
        assert value_candidates(NoCompletion(), "").directive == D.NO_FILE_COMPLETION
        assert value_candidates(None, "").directive == D.FILE_COMPLETION
        result = value_candidates(ShellCommandCompletion(command="echo one"), "")
        assert _values(result) == ["one"]


class TestListMatchingFiles:
    @pytest.fixture
    def tree(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
        root = tmp_path / "files"
        root.mkdir()
        (root / "b.json").write_text("{}", encoding="utf-8")
        (root / "a.yaml").write_text("", encoding="utf-8")
        (root / "notes.txt").write_text("", encoding="utf-8")
        (root / "Dockerfile.dev").write_text("", encoding="utf-8")
        (root / "sub").mkdir()
        (root / "sub" / "inner.json").write_text("{}", encoding="utf-8")
        monkeypatch.chdir(root)
        return root

    def test_extensions_and_directories(self, tree: Path) -> None:
        result = list_matching_files("", ["json", ".yaml"], [])
        assert [c.value for c in result] == ["a.yaml", "b.json", "sub/"]
        assert result[-1].kind == CandidateKind.DIRECTORY

    def test_matchers(self, tree: Path) -> None:
        result = list_matching_files("", [], ["Dockerfile*"])
        assert [c.value for c in result] == ["Dockerfile.dev", "sub/"]

    def test_into_subdirectory(self, tree: Path) -> None:
        result = list_matching_files("sub/in", ["json"], [])
        assert [c.value for c in result] == ["sub/inner.json"]

    def test_missing_directory(self, tree: Path) -> None:
        assert list_matching_files("nope/", ["json"], []) == []

    def test_filtered_option_value(self, tree: Path, sample_cli: Command) -> None:
        result = _candidates(sample_cli, "deploy", "--config", "")
        assert [c.value for c in result.candidates] == ["b.json", "sub/"]
        assert result.directive == D.FILTER_PREFIX


class TestRunShellCommand:
    def test_lines_trimmed_and_blank_dropped(self) -> None:
        assert run_shell_command("printf '  a  \\n\\n b\\n'") == ["a", "b"]

    def test_failure_gives_nothing(self) -> None:
        assert run_shell_command("echo partial; exit 3") == []

    def test_timeout_gives_nothing(self) -> None:
        command = f'"{sys.executable}" -c "import time; time.sleep(5)"'
        assert run_shell_command(command, timeout=0.2) == []
