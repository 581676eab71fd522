"""Command definitions: eager commands, lazily loaded commands, and loaders.

A command tree is built from three kinds of sub-command entries:

* :class:`Command` -- fully defined, available synchronously.
* :class:`LazyCommand` -- carries a lightweight ``meta`` command used for
  help and completion, plus a ``load`` callable that produces the real
  command only when it runs.
* A bare zero-argument callable returning a :class:`Command` -- nothing is
  known about it until it is called, so completion treats it as opaque.
"""

from __future__ import annotations

from typing import Any, Callable, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Command(BaseModel):
    """A CLI command: an argument model, an action, and optional children.

    Attributes:
        name: Command name; for the root this is the program name.
        description: One-line help text.
        args: Pydantic model whose fields are the command's options and
            positionals, or ``None`` for a command without arguments.
        run: Called with the validated ``args`` instance (or ``None`` when
            the command has no ``args`` model).
        subcommands: Child entries keyed by the name typed on the command line.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: Optional[str] = None
    description: Optional[str] = None
    args: Optional[type[BaseModel]] = None
    run: Optional[Callable[..., Any]] = None
    subcommands: dict[str, Any] = Field(default_factory=dict)

    @field_validator("subcommands")
    @classmethod
    def _check_entries(cls, value: dict[str, Any]) -> dict[str, Any]:
        for key, entry in value.items():
            if not isinstance(entry, (Command, LazyCommand)) and not callable(entry):
                raise ValueError(
                    f"sub-command {key!r} must be a Command, LazyCommand or loader callable"
                )
        return value

    @property
    def is_group(self) -> bool:
        return bool(self.subcommands)


class LazyCommand(BaseModel):
    """A command whose implementation is imported on first use.

    ``meta`` describes the command (arguments, description, children) so that
    help and completion work without calling ``load``.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    meta: Command
    load: Callable[[], Command]

    def resolve(self) -> Command:
        """Call the loader and return the real command."""
        return self.load()


SubcommandEntry = Union[Command, LazyCommand, Callable[[], Command]]


def define_command(
    name: Optional[str] = None,
    description: Optional[str] = None,
    args: Optional[type[BaseModel]] = None,
    run: Optional[Callable[..., Any]] = None,
    subcommands: Optional[dict[str, SubcommandEntry]] = None,
) -> Command:
    """Build a :class:`Command`.

    Example::

        build = define_command(
            name="build",
            description="Build the project",
            args=BuildArgs,
            run=lambda args: print(args.format),
        )
    """
    return Command(
        name=name,
        description=description,
        args=args,
        run=run,
        subcommands=dict(subcommands or {}),
    )


def lazy(meta: Command, load: Callable[[], Command]) -> LazyCommand:
    """Wrap *load* so the command is only imported when it runs."""
    return LazyCommand(meta=meta, load=load)


def resolve_subcommand(entry: SubcommandEntry) -> Optional[Command]:
    """Return the command usable without side effects, or ``None``.

    Commands are returned as-is and lazy commands through their ``meta``. A
    bare loader cannot be inspected without calling it, so ``None`` is
    returned for it.
    """
    if isinstance(entry, Command):
        return entry
    if isinstance(entry, LazyCommand):
        return entry.meta
    return None


def load_subcommand(entry: SubcommandEntry) -> Command:
    """Return the executable command for *entry*, calling loaders as needed."""
    if isinstance(entry, Command):
        return entry
    if isinstance(entry, LazyCommand):
        return entry.resolve()
    return entry()


def is_hidden(name: str) -> bool:
    """Sub-commands whose name starts with ``__`` are internal."""
    return name.startswith("__")


def visible_subcommands(command: Command) -> dict[str, SubcommandEntry]:
    return {k: v for k, v in command.subcommands.items() if not is_hidden(k)}


def entry_description(entry: SubcommandEntry) -> Optional[str]:
    resolved = resolve_subcommand(entry)
    if resolved is None:
        return None
    return resolved.description
