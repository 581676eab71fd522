"""Tests for cliform.config -- XDG paths, atomic writes, global config, precedence."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from cliform.config import (
    atomic_write,
    get_config_dir,
    get_data_dir,
    load_global_config,
    resolve_config,
    save_global_config,
    xdg_config_home,
    xdg_data_home,
)
from cliform.exceptions import ConfigError
from cliform.models import CompletionConfig, GlobalConfig, OutputConfig


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _write_config(data: Any) -> Path:
    """Write *data* as the global config file and return its path."""
    path = get_config_dir() / "config.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# XDG path resolution
# ---------------------------------------------------------------------------


class TestXDGPathsLinux:
    """XDG paths on Linux (the default XDG platform)."""

    def test_config_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_config_dir()
        assert result == tmp_path / ".config" / "cliform"
        assert result.is_dir()

    def test_config_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_config"
        monkeypatch.setenv("XDG_CONFIG_HOME", str(custom))

        result = get_config_dir()
        assert result == custom / "cliform"
        assert result.is_dir()

    def test_data_dir_xdg_default(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("XDG_DATA_HOME", raising=False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".local" / "share" / "cliform"
        assert result.is_dir()

    def test_data_dir_xdg_custom(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        custom = tmp_path / "custom_data"
        monkeypatch.setenv("XDG_DATA_HOME", str(custom))

        result = get_data_dir()
        assert result == custom / "cliform"
        assert result.is_dir()

    def test_base_dirs_have_no_app_segment(self, isolated_config: Path) -> None:
        assert xdg_data_home() == isolated_config / ".local" / "share"
        assert xdg_config_home() == isolated_config / ".config"

    def test_empty_env_var_uses_default(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("XDG_CONFIG_HOME", "")
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))
        assert xdg_config_home() == tmp_path / ".config"


class TestXDGPathsFallback:
    """Non-XDG platforms (macOS, Windows) use ~/.cliform/."""

    def test_config_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cliform.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        assert get_config_dir() == tmp_path / ".cliform"

    def test_data_dir_fallback(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("cliform.config._is_xdg_platform", lambda: False)
        monkeypatch.setattr(Path, "home", classmethod(lambda cls: tmp_path))

        result = get_data_dir()
        assert result == tmp_path / ".cliform" / "logs"
        assert result.is_dir()


# ---------------------------------------------------------------------------
# Atomic writes
# ---------------------------------------------------------------------------


class TestAtomicWrite:
    def test_creates_file_with_content(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        atomic_write(target, "hello world")
        assert target.read_text(encoding="utf-8") == "hello world"

    def test_overwrites_existing_file(self, tmp_path: Path) -> None:
        target = tmp_path / "test.txt"
        target.write_text("old content", encoding="utf-8")
        atomic_write(target, "new content")
        assert target.read_text(encoding="utf-8") == "new content"

    def test_creates_parent_directories(self, tmp_path: Path) -> None:
        target = tmp_path / "a" / "b" / "c" / "test.txt"
        atomic_write(target, "deep write")
        assert target.read_text(encoding="utf-8") == "deep write"

    def test_no_temp_files_left_on_success(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "test.txt"
        atomic_write(target, "content")
        assert list(target.parent.iterdir()) == [target]

    def test_no_temp_files_left_on_error(self, tmp_path: Path) -> None:
        target = tmp_path / "out" / "test.txt"
        with patch("cliform.config.os.fsync", side_effect=OSError("disk error")):
            with pytest.raises(OSError, match="disk error"):
                atomic_write(target, "will fail")
        assert list(target.parent.iterdir()) == []

    def test_unicode_content(self, tmp_path: Path) -> None:
        target = tmp_path / "unicode.txt"
        content = "Hello 世界 \U0001f30d éàüñ"
        atomic_write(target, content)
        assert target.read_text(encoding="utf-8") == content


# ---------------------------------------------------------------------------
# Global config
# ---------------------------------------------------------------------------


class TestGlobalConfig:
    def test_load_returns_defaults_when_missing(self) -> None:
        config = load_global_config()
        assert config == GlobalConfig()
        assert config.completion.shell_command_timeout == 3.0
        assert config.completion.include_descriptions is True
        assert config.output.format == "auto"

    def test_save_and_load_roundtrip(self) -> None:
        config = GlobalConfig(
            completion=CompletionConfig(shell_command_timeout=1.5, include_descriptions=False),
            output=OutputConfig(format="json"),
        )
        save_global_config(config)
        assert load_global_config() == config

    def test_saved_config_is_valid_json(self, isolated_config: Path) -> None:
        save_global_config(GlobalConfig())
        path = isolated_config / ".config" / "cliform" / "config.json"
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["completion"]["include_descriptions"] is True

    def test_partial_file_fills_defaults(self) -> None:
        _write_config({"completion": {"include_descriptions": False}})
        config = load_global_config()
        assert config.completion.include_descriptions is False
        assert config.completion.shell_command_timeout == 3.0

    def test_load_invalid_json_raises_config_error(self) -> None:
        path = get_config_dir() / "config.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ConfigError, match="Invalid global config"):
            load_global_config()

    def test_load_invalid_schema_raises_config_error(self) -> None:
        _write_config({"completion": {"shell_command_timeout": -1}})
        with pytest.raises(ConfigError):
            load_global_config()


# ---------------------------------------------------------------------------
# Precedence resolution
# ---------------------------------------------------------------------------


class TestResolveConfig:
    def test_defaults(self) -> None:
        assert resolve_config() == GlobalConfig()

    def test_file_values_used(self) -> None:
        _write_config({"completion": {"shell_command_timeout": 10}})
        assert resolve_config().completion.shell_command_timeout == 10.0

    def test_env_timeout_overrides_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        _write_config({"completion": {"shell_command_timeout": 10}})
        monkeypatch.setenv("CLIFORM_SHELL_COMMAND_TIMEOUT", "0.5")
        assert resolve_config().completion.shell_command_timeout == 0.5

    def test_env_disables_descriptions(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLIFORM_NO_DESCRIPTIONS", "1")
        assert resolve_config().completion.include_descriptions is False

    def test_empty_env_ignored(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CLIFORM_NO_DESCRIPTIONS", "")
        monkeypatch.setenv("CLIFORM_SHELL_COMMAND_TIMEOUT", "")
        assert resolve_config() == GlobalConfig()

    @pytest.mark.parametrize("value", ["soon", "0", "-2"])
    def test_invalid_env_timeout(self, monkeypatch: pytest.MonkeyPatch, value: str) -> None:
        monkeypatch.setenv("CLIFORM_SHELL_COMMAND_TIMEOUT", value)
        with pytest.raises(ConfigError, match="CLIFORM_SHELL_COMMAND_TIMEOUT"):
            resolve_config()

    def test_cli_format_overrides_file(self) -> None:
        _write_config({"output": {"format": "rich"}})
        assert resolve_config(cli_format="json").output.format == "json"
        assert resolve_config().output.format == "rich"

    def test_invalid_file_propagates(self) -> None:
        path = get_config_dir() / "config.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(ConfigError):
            resolve_config()
