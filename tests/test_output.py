"""Tests for the output formatting system.

Covers:
- OutputFormat resolution (auto -> rich/plain based on TTY)
- NO_COLOR / TERM=dumb color disabling
- stdout vs stderr discipline
- Quiet mode suppression rules
- Verbose mode debug output
- print_data byte-exactness and print_table in all modes
- Data always goes to stdout; there is no file redirection
- Global instance management and convenience functions
"""

from __future__ import annotations

import json

import pytest

from cliform import output as output_module
from cliform.output import (
    OutputFormat,
    OutputManager,
    _should_disable_color,
    get_output,
    reset_output,
    set_output,
)


# ------------------------------------------------------------------ #
# Fixtures
# ------------------------------------------------------------------ #


@pytest.fixture()
def non_tty(monkeypatch):
    """Patch stdout.isatty() to return False."""
    monkeypatch.setattr("cliform.output._is_tty", lambda: False)


@pytest.fixture()
def tty(monkeypatch):
    """Patch stdout.isatty() to return True."""
    monkeypatch.setattr("cliform.output._is_tty", lambda: True)


@pytest.fixture()
def plain():
    return OutputManager(format=OutputFormat.PLAIN, no_color=True)


# ------------------------------------------------------------------ #
# OutputFormat resolution
# ------------------------------------------------------------------ #


class TestOutputFormatResolution:
    """Test that AUTO format resolves correctly based on environment."""

    def test_auto_resolves_to_plain_when_not_tty(self, non_tty):
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.PLAIN

    def test_auto_resolves_to_rich_when_tty(self, tty, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.delenv("TERM", raising=False)
        mgr = OutputManager(format=OutputFormat.AUTO)
        assert mgr.format == OutputFormat.RICH

    def test_auto_resolves_to_plain_when_tty_but_no_color(self, tty):
        mgr = OutputManager(format=OutputFormat.AUTO, no_color=True)
        assert mgr.format == OutputFormat.PLAIN

    def test_explicit_formats_kept(self, non_tty):
        for fmt in (OutputFormat.JSON, OutputFormat.PLAIN, OutputFormat.RICH):
            assert OutputManager(format=fmt).format == fmt

    def test_enum_from_string(self):
        assert OutputFormat("json") is OutputFormat.JSON
        assert OutputFormat.AUTO == "auto"


# ------------------------------------------------------------------ #
# NO_COLOR / TERM=dumb detection
# ------------------------------------------------------------------ #


class TestColorDisabling:
    """Test that NO_COLOR and TERM=dumb are respected."""

    def test_no_color_env_any_value(self, monkeypatch):
        monkeypatch.setenv("NO_COLOR", "")
        assert _should_disable_color() is True

    def test_term_dumb_disables_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "dumb")
        assert _should_disable_color() is True

    def test_normal_term_keeps_color(self, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        monkeypatch.setenv("TERM", "xterm-256color")
        assert _should_disable_color() is False


# ------------------------------------------------------------------ #
# stdout vs stderr discipline
# ------------------------------------------------------------------ #


class TestStdoutStderrDiscipline:
    """Test that data goes to stdout and diagnostics go to stderr."""

    def test_print_data_goes_to_stdout(self, capfd, plain):
        plain.print_data("hello world")
        captured = capfd.readouterr()
        assert captured.out == "hello world\n"
        assert captured.err == ""

    @pytest.mark.parametrize("method", ["error", "warning", "success", "suggest"])
    def test_diagnostics_go_to_stderr(self, capfd, plain, method):
        getattr(plain, method)("something happened")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "something happened" in captured.err

    def test_debug_goes_to_stderr(self, capfd):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True)
        mgr.debug("debug info")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert captured.err == "[debug] debug info\n"

    def test_rich_diagnostics_stay_off_stdout(self, capfd):
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.error("bad target")
        captured = capfd.readouterr()
        assert captured.out == ""
        assert "Error:" in captured.err


# ------------------------------------------------------------------ #
# Quiet and verbose
# ------------------------------------------------------------------ #


class TestQuietMode:
    """Test that --quiet suppresses informational but not critical output."""

    @pytest.mark.parametrize("method", ["success", "suggest"])
    def test_quiet_suppresses(self, capfd, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("hidden")
        assert capfd.readouterr().err == ""

    @pytest.mark.parametrize("method", ["warning", "error"])
    def test_quiet_keeps(self, capfd, method):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        getattr(mgr, method)("shown")
        assert "shown" in capfd.readouterr().err

    def test_quiet_does_not_suppress_stdout_data(self, capfd):
        mgr = OutputManager(format=OutputFormat.PLAIN, no_color=True, quiet=True)
        mgr.print_data("data")
        assert capfd.readouterr().out == "data\n"

    def test_properties(self):
        mgr = OutputManager(quiet=True, verbose=True)
        assert mgr.is_quiet is True
        assert mgr.is_verbose is True


class TestVerboseMode:
    def test_debug_hidden_by_default(self, capfd, plain):
        plain.debug("secret")
        assert capfd.readouterr().err == ""

    def test_rich_debug_keeps_prefix(self, capfd, monkeypatch):
        monkeypatch.delenv("NO_COLOR", raising=False)
        mgr = OutputManager(format=OutputFormat.RICH, verbose=True)
        mgr.debug("loading mycli.cli:app")
        assert "[debug] loading mycli.cli:app" in capfd.readouterr().err


# ------------------------------------------------------------------ #
# Diagnostic formatting
# ------------------------------------------------------------------ #


class TestDiagnosticFormatting:
    """Test the prefix formatting in no-color mode."""

    def test_warning_prefix(self, capfd, plain):
        plain.warning("disk almost full")
        assert capfd.readouterr().err == "Warning: disk almost full\n"

    def test_error_prefix(self, capfd, plain):
        plain.error("no such target")
        assert capfd.readouterr().err == "Error: no such target\n"

    def test_suggest_has_arrow(self, capfd, plain):
        plain.suggest("Restart your shell")
        assert capfd.readouterr().err == "→ Restart your shell\n"


# ------------------------------------------------------------------ #
# print_data
# ------------------------------------------------------------------ #


class TestPrintData:
    def test_existing_newline_not_doubled(self, capfd, plain):
        plain.print_data("line\n")
        assert capfd.readouterr().out == "line\n"

    def test_markup_left_untouched(self, capfd):
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.print_data("[[ -n $x ]] && echo '[bold]'")
        assert capfd.readouterr().out == "[[ -n $x ]] && echo '[bold]'\n"

    def test_json_format_writes_stdout(self, capfd):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_data("complete -F _mycli_completions mycli")
        assert capfd.readouterr().out == "complete -F _mycli_completions mycli\n"

    def test_no_output_file_option(self, tmp_path):
        with pytest.raises(TypeError):
            OutputManager(output_file=str(tmp_path / "out.txt"))  # type: ignore[call-arg]
        assert not (tmp_path / "out.txt").exists()


# ------------------------------------------------------------------ #
# print_table
# ------------------------------------------------------------------ #


class TestPrintTable:
    """Test print_table in JSON, plain, and Rich modes."""

    HEADERS = ["Command", "Name"]
    ROWS = [["mycli deploy", "--env"], ["mycli build", "TARGET"]]

    def test_table_json_mode(self, capfd):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(self.HEADERS, self.ROWS, title="ignored")
        data = json.loads(capfd.readouterr().out)
        assert data == [
            {"Command": "mycli deploy", "Name": "--env"},
            {"Command": "mycli build", "Name": "TARGET"},
        ]

    def test_table_plain_mode(self, capfd, plain):
        plain.print_table(self.HEADERS, self.ROWS, title="ignored")
        assert capfd.readouterr().out.splitlines() == [
            "Command\tName",
            "mycli deploy\t--env",
            "mycli build\tTARGET",
        ]

    def test_table_rich_mode(self, capfd):
        mgr = OutputManager(format=OutputFormat.RICH)
        mgr.print_table(self.HEADERS, self.ROWS, title="Completion")
        out = capfd.readouterr().out
        assert "Completion" in out
        assert "mycli deploy" in out

    def test_table_empty_rows(self, capfd):
        mgr = OutputManager(format=OutputFormat.JSON, no_color=True)
        mgr.print_table(self.HEADERS, [])
        assert json.loads(capfd.readouterr().out) == []


# ------------------------------------------------------------------ #
# Global instance management
# ------------------------------------------------------------------ #


class TestGlobalInstance:
    """Test get_output / set_output / reset_output."""

    def test_get_output_creates_default(self):
        assert isinstance(get_output(), OutputManager)
        assert get_output() is get_output()

    def test_set_output_overrides(self):
        custom = OutputManager(format=OutputFormat.JSON, no_color=True)
        set_output(custom)
        assert get_output() is custom

    def test_reset_output_clears(self):
        custom = OutputManager(format=OutputFormat.JSON, no_color=True)
        set_output(custom)
        reset_output()
        assert get_output() is not custom


class TestConvenienceFunctions:
    """Module-level helpers delegate to the global instance."""

    @pytest.fixture(autouse=True)
    def _plain_global(self):
        set_output(OutputManager(format=OutputFormat.PLAIN, no_color=True, verbose=True))

    def test_print_data(self, capfd):
        output_module.print_data("script")
        assert capfd.readouterr().out == "script\n"

    def test_print_table(self, capfd):
        output_module.print_table(["A"], [["1"]])
        assert capfd.readouterr().out == "A\n1\n"

    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("success", "note\n"),
            ("warning", "Warning: note\n"),
            ("error", "Error: note\n"),
            ("suggest", "→ note\n"),
            ("debug", "[debug] note\n"),
        ],
    )
    def test_diagnostics(self, capfd, name, expected):
        getattr(output_module, name)("note")
        assert capfd.readouterr().err == expected
