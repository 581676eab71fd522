"""Generate command -- write a completion script for a program.

Provides ``cliform generate``, which loads a command tree from a
``package.module:attribute`` target and prints (or writes) a static script
or a dynamic stub for one shell.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import typer

from cliform.commands._target import load_target, target_program_name
from cliform.exceptions import CliformError


def generate_command(
    shell: str = typer.Argument(..., help="Shell type: bash, zsh, or fish."),
    target: str = typer.Argument(
        ..., help="Command tree to complete, as package.module:attribute."
    ),
    program_name: Optional[str] = typer.Option(
        None, "--program-name", "-n", help="Executable name the script completes."
    ),
    dynamic: bool = typer.Option(
        False, "--dynamic", "-d", help="Emit a stub that asks the program at TAB time."
    ),
    output: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the script to this file instead of stdout."
    ),
    no_descriptions: bool = typer.Option(
        False, "--no-descriptions", help="Leave descriptions out of the script."
    ),
) -> None:
    """Generate a shell completion script.

    Example::

        cliform generate bash myapp.cli:app > myapp.bash
        cliform generate zsh myapp.cli:app --dynamic -o _myapp
    """
    from cliform.completion import generate_completion, generate_dynamic_script
    from cliform.config import atomic_write, resolve_config
    from cliform.output import debug, error, print_data, success

    command = load_target(target)
    name = program_name or target_program_name(command, target)

    try:
        settings = resolve_config().completion
        include_descriptions = settings.include_descriptions and not no_descriptions
        if dynamic:
            script = generate_dynamic_script(shell, name)
        else:
            script = generate_completion(
                command,
                shell,
                program_name=name,
                include_descriptions=include_descriptions,
            ).script
    except CliformError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    debug(f"Generated {'dynamic' if dynamic else 'static'} {shell} script for {name}")

    if output is None:
        print_data(script)
        return

    if not script.endswith("\n"):
        script += "\n"
    atomic_write(output, script)
    success(f"Wrote {shell} completion for {name} to {output}")
