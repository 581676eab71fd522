"""cliform -- Typed CLI definitions with static and dynamic shell completion.

Authors describe commands as a tree of :class:`~cliform.schema.Command`
objects whose arguments are pydantic models. cliform turns that tree into a
Typer application and derives shell tab-completion from the same definition,
either as self-contained bash/zsh/fish scripts or as thin stubs that call a
hidden ``__complete`` sub-command at TAB time.

Typical usage::

    from cliform import define_command, run_main, with_completion_command

    cli = with_completion_command(define_command(name="mycli", subcommands={...}))
    run_main(cli)

Modules:
    app: the ``cliform`` tool CLI (``generate``, ``inspect``).
    runner: :func:`run_main`, the entry point for CLIs built with cliform.
    models: Pydantic models shared across the package.
    config: XDG-aware configuration.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"

from cliform.completion import generate_completion, with_completion_command  # noqa: E402
from cliform.runner import run_main  # noqa: E402
from cliform.schema import Arg, Command, define_command, lazy  # noqa: E402

__all__ = [
    "Arg",
    "Command",
    "define_command",
    "generate_completion",
    "lazy",
    "run_main",
    "with_completion_command",
]
