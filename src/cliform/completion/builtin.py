"""The ``completion`` sub-command every cliform program can expose.

:func:`with_completion_command` returns a copy of a command tree with two
extra children:

* ``completion [SHELL]`` -- prints the static script (``-d`` for the dynamic
  stub, ``-i`` for install instructions, ``--install`` to write it in place)
* ``__complete`` -- the hidden query command the dynamic stubs call

Example::

    cli = with_completion_command(define_command(name="mycli", subcommands={...}))

    $ mycli completion zsh > ~/.zfunc/_mycli
    $ mycli completion bash --dynamic --install
"""

from __future__ import annotations

import os
from typing import Annotated, Optional

from pydantic import BaseModel

from cliform.completion.dynamic import (
    COMPLETE_COMMAND_NAME,
    create_dynamic_complete_command,
    generate_dynamic_script,
)
from cliform.completion.generators import generate_completion, get_generator, get_supported_shells
from cliform.completion.install import activation_hint, install_completion
from cliform.config import resolve_config
from cliform.exceptions import InvalidUsageError, UnsupportedShellError
from cliform.output import print_data, success, suggest
from cliform.schema.args import Arg, choices_hint
from cliform.schema.command import Command

COMPLETION_COMMAND_NAME = "completion"


class CompletionArgs(BaseModel):
    shell: Annotated[
        Optional[str],
        Arg(
            positional=True,
            description="Shell type (bash, zsh, or fish); detected from $SHELL if omitted",
            placeholder="SHELL",
            completion=choices_hint("bash", "zsh", "fish"),
        ),
    ] = None
    instructions: Annotated[
        bool, Arg(alias="i", description="Show installation instructions")
    ] = False
    dynamic: Annotated[
        bool, Arg(alias="d", description="Emit a stub that asks the program at TAB time")
    ] = False
    install: Annotated[
        bool, Arg(description="Write the script to the shell's completion directory")
    ] = False


def detect_shell() -> Optional[str]:
    """Guess the user's shell from ``$SHELL``; ``None`` when it is not supported."""
    name = os.path.basename(os.environ.get("SHELL", "")).lower()
    for shell in get_supported_shells():
        if shell in name:
            return shell
    return None


def create_completion_command(root: Command, program_name: str) -> Command:
    """Return the ``completion`` command generating scripts for *root*."""

    def run(args: CompletionArgs) -> None:
        shell = args.shell or detect_shell()
        if shell is None:
            raise InvalidUsageError(
                "Could not detect shell type. Please specify one of: "
                + ", ".join(get_supported_shells())
            )
        if shell not in get_supported_shells():
            raise UnsupportedShellError(shell, get_supported_shells())

        settings = resolve_config().completion
        generator = get_generator(shell, include_descriptions=settings.include_descriptions)

        if args.instructions:
            print_data(generator.install_instructions(program_name, dynamic=args.dynamic))
            return

        if args.dynamic:
            script = generate_dynamic_script(shell, program_name)
        else:
            script = generate_completion(
                root,
                shell,
                program_name=program_name,
                include_descriptions=settings.include_descriptions,
            ).script

        if args.install:
            path = install_completion(shell, program_name, script)
            success(f"{shell.capitalize()} completion installed to {path}")
            suggest(activation_hint(shell))
        else:
            print_data(script)

    return Command(
        name=COMPLETION_COMMAND_NAME,
        description="Generate shell completion script",
        args=CompletionArgs,
        run=run,
    )


def with_completion_command(command: Command, program_name: Optional[str] = None) -> Command:
    """Return a copy of *command* with ``completion`` and ``__complete`` attached.

    The original command is left untouched.

    Raises:
        InvalidUsageError: If neither *program_name* nor ``command.name`` is set.
    """
    name = program_name or command.name
    if not name:
        raise InvalidUsageError("A program name is required to add completion")

    wrapped = command.model_copy(update={"subcommands": dict(command.subcommands)})
    wrapped.subcommands[COMPLETION_COMMAND_NAME] = create_completion_command(wrapped, name)
    wrapped.subcommands[COMPLETE_COMMAND_NAME] = create_dynamic_complete_command(wrapped)
    return wrapped
