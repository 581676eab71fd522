"""Typer application and console-script entry point for the ``cliform`` tool.

The tool works on command trees defined elsewhere, addressed as
``package.module:attribute``:

* ``cliform generate SHELL TARGET`` -- print or write a completion script.
* ``cliform inspect TARGET`` -- list what the completion engine sees.

:func:`main` is the console-script entry point declared in
``pyproject.toml``. It shares its error handling with
:func:`cliform.runner.run_main`.
"""

from __future__ import annotations

from typing import Optional

import typer

from cliform import __version__
from cliform.commands.generate import generate_command
from cliform.commands.inspect import inspect_command


app = typer.Typer(
    name="cliform",
    help="Shell completion for CLIs defined with cliform.",
    no_args_is_help=True,
    add_completion=False,
    pretty_exceptions_enable=False,
)

app.command("generate")(generate_command)
app.command("inspect")(inspect_command)


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"cliform {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(
        False, "--json", help="JSON output format."
    ),
    plain_output: bool = typer.Option(
        False, "--plain", help="Plain text output."
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Root callback executed before every sub-command.

    Initialises the global :class:`~cliform.output.OutputManager` from the
    CLI flags. An explicit ``--json`` or ``--plain`` wins over the
    ``output.format`` setting in the user config.
    """
    from cliform.config import resolve_config
    from cliform.exceptions import ConfigError
    from cliform.output import OutputFormat, OutputManager, set_output, warning

    cli_format: Optional[str] = None
    if json_output:
        cli_format = OutputFormat.JSON.value
    elif plain_output:
        cli_format = OutputFormat.PLAIN.value

    fmt = OutputFormat(cli_format) if cli_format else OutputFormat.AUTO
    config_problem: Optional[Exception] = None
    try:
        fmt = OutputFormat(resolve_config(cli_format=cli_format).output.format)
    except (ConfigError, ValueError) as exc:
        config_problem = exc

    set_output(
        OutputManager(
            format=fmt,
            no_color=no_color,
            quiet=quiet,
            verbose=verbose,
        )
    )
    if config_problem is not None:
        warning(f"Ignoring configuration: {config_problem}")


def main() -> None:
    """CLI entry point invoked by the ``cliform`` console script.

    Installs the Ctrl-C handler and runs the app. ``CliformError`` exits with
    the error's ``exit_code``; anything unexpected writes a crash log under
    the data directory and exits with :data:`~cliform.exit_codes.EXIT_GENERIC_FAILURE`.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    from cliform.runner import run_guarded, setup_signal_handlers

    setup_signal_handlers()
    run_guarded(app)
