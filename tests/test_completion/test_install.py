"""Tests for cliform.completion.install."""

from __future__ import annotations

from pathlib import Path

import pytest

from cliform.completion.install import (
    activation_hint,
    default_install_path,
    install_completion,
)
from cliform.exceptions import UnsupportedShellError


class TestDefaultInstallPath:
    def test_bash(self, isolated_config: Path) -> None:
        expected = isolated_config / ".local" / "share" / "bash-completion" / "completions" / "mycli"
        assert default_install_path("bash", "mycli") == expected

    def test_zsh(self, isolated_config: Path) -> None:
        assert default_install_path("zsh", "mycli") == isolated_config / ".zfunc" / "_mycli"

    def test_fish(self, isolated_config: Path) -> None:
        expected = isolated_config / ".config" / "fish" / "completions" / "mycli.fish"
        assert default_install_path("fish", "mycli") == expected

    def test_xdg_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
        assert default_install_path("bash", "mycli") == (
            tmp_path / "data" / "bash-completion" / "completions" / "mycli"
        )

    def test_unsupported_shell(self) -> None:
        with pytest.raises(UnsupportedShellError) as exc_info:
            default_install_path("tcsh", "mycli")
        assert exc_info.value.exit_code == 2
        assert "tcsh" in str(exc_info.value)


class TestInstallCompletion:
    def test_writes_default_location(self, isolated_config: Path) -> None:
        path = install_completion("zsh", "mycli", "#compdef mycli\n")
        assert path == isolated_config / ".zfunc" / "_mycli"
        assert path.read_text(encoding="utf-8") == "#compdef mycli\n"

    def test_appends_trailing_newline(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "mycli.bash"
        path = install_completion("bash", "mycli", "complete -F _mycli mycli", path=target)
        assert path == target
        assert target.read_text(encoding="utf-8") == "complete -F _mycli mycli\n"

    def test_overwrites_existing(self, tmp_path: Path) -> None:
        target = tmp_path / "scripts" / "mycli.fish"
        target.parent.mkdir()
        target.write_text("old\n", encoding="utf-8")
        install_completion("fish", "mycli", "new\n", path=target)
        assert target.read_text(encoding="utf-8") == "new\n"
        assert [p.name for p in target.parent.iterdir()] == ["mycli.fish"]


class TestActivationHint:
    def test_zsh_mentions_fpath(self) -> None:
        assert "fpath" in activation_hint("zsh")

    def test_bash_mentions_package(self) -> None:
        assert "bash-completion" in activation_hint("bash")

    def test_fish_restart(self) -> None:
        assert activation_hint("fish") == "Restart your shell to activate completions."
