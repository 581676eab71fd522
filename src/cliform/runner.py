"""Entry point for programs built with cliform.

:func:`run_main` builds the Typer application for a command tree, runs it,
and maps every outcome to a process exit code:

* :class:`~cliform.exceptions.CliformError` -- message on stderr, the
  error's ``exit_code``
* click usage errors (from click or the copy vendored in newer typer
  releases) -- click's message, exit 2
* Ctrl-C -- ``Cancelled.``, exit 130
* anything else -- traceback written to a crash log under the data
  directory, exit 1

The ``cliform`` tool's own :func:`cliform.app.main` shares these handlers.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, NoReturn, Optional

import click
import typer

from cliform.exceptions import CliformError
from cliform.exit_codes import EXIT_GENERIC_FAILURE, EXIT_INTERRUPTED, EXIT_SUCCESS
from cliform.generator import build_typer_app
from cliform.schema.command import Command

try:
    from typer._click import exceptions as _typer_click_exceptions
except ImportError:  # typer releases that raise click's own exceptions
    _typer_click_exceptions = click.exceptions

ABORT_TYPES = (click.exceptions.Abort, _typer_click_exceptions.Abort)
USAGE_ERROR_TYPES = (click.ClickException, _typer_click_exceptions.ClickException)


def run_main(
    command: Command,
    argv: Optional[list[str]] = None,
    program_name: Optional[str] = None,
) -> NoReturn:
    """Run *command* as a CLI and exit.

    Args:
        command: Root of the command tree, usually wrapped with
            :func:`~cliform.completion.with_completion_command`.
        argv: Arguments after the program name; defaults to ``sys.argv[1:]``.
        program_name: Name used in usage lines; defaults to ``command.name``
            and then to the executable's base name.

    A ``run`` function may return an ``int`` to choose the exit code.

    Raises:
        SystemExit: Always.
    """
    name = program_name or command.name or Path(sys.argv[0]).name
    setup_signal_handlers()

    def invoke() -> Any:
        app = build_typer_app(command, name)
        return typer.main.get_command(app).main(
            args=argv,
            prog_name=name,
            standalone_mode=False,
        )

    result = run_guarded(invoke)
    if isinstance(result, int) and not isinstance(result, bool):
        sys.exit(result)
    sys.exit(EXIT_SUCCESS)


def run_guarded(func: Callable[[], Any]) -> Any:
    """Call *func*, converting errors into messages and exit codes.

    Returns whatever *func* returns when it succeeds.
    """
    from cliform.output import error

    try:
        return func()
    except SystemExit:
        raise
    except ABORT_TYPES:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except USAGE_ERROR_TYPES as exc:
        exc.show()
        sys.exit(exc.exit_code)
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)
    except CliformError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)


def setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(EXIT_INTERRUPTED)

    signal.signal(signal.SIGINT, _handler)


def write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from cliform.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
        encoding="utf-8",
    )
    return str(log_path)
