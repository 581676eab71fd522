"""Target loading shared by the tool's sub-commands."""

from __future__ import annotations

import typer

from cliform.exceptions import CliformError
from cliform.schema.command import Command


def load_target(target: str) -> Command:
    """Load *target*, reporting failures and exiting with the error's code."""
    from cliform.loader import load_command_target
    from cliform.output import debug, error

    debug(f"Loading command tree from {target}")
    try:
        return load_command_target(target)
    except CliformError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None


def target_program_name(command: Command, target: str) -> str:
    """``command.name``, or the last module segment of *target*."""
    if command.name:
        return command.name
    module_name = target.partition(":")[0]
    return module_name.rsplit(".", 1)[-1]
