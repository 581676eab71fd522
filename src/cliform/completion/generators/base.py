"""Shared driver for the static completion script generators.

Every backend compiles the same state machine. The driver walks the
completable tree once, works out the tables and branches each command node
needs, and asks the backend to render them in its own syntax. A backend
only decides *how* to emit each kind of value completion:

* :meth:`ScriptGenerator.emit_choices`
* :meth:`ScriptGenerator.emit_file`
* :meth:`ScriptGenerator.emit_directory`
* :meth:`ScriptGenerator.emit_shell_command`
* :meth:`ScriptGenerator.emit_none`

The runtime state machine in every script:

1. tokenize the line up to the cursor
2. scan tokens for used options, ``--``, positional count and the active
   sub-command path (descending through any number of levels)
3. split an inline ``--opt=value`` word into prefix and value
4. dispatch: previous option's value, inline value, native file fallback,
   after ``--`` positionals, option names, sub-command names, positionals
"""

from __future__ import annotations

import abc
import re
from dataclasses import dataclass, field
from typing import ClassVar, Optional

from cliform.models import (
    ChoicesCompletion,
    CompletableOption,
    CompletablePositional,
    CompletableSubcommand,
    CompletionData,
    DirectoryCompletion,
    FileCompletion,
    NoCompletion,
    ShellCommandCompletion,
    ShellType,
    ValueCompletion,
)

HELP_DESCRIPTION = "Show help information"


@dataclass
class Node:
    """A command node together with its routing key inside the script."""

    path: tuple[str, ...]
    key: str
    command: CompletableSubcommand
    children: list[tuple[str, str, Optional[str]]] = field(default_factory=list)

    @property
    def suffix(self) -> str:
        return self.key or "_root"


@dataclass
class PositionalBranch:
    """One arm of the positional dispatch: ``count == index`` or ``count >= index``."""

    index: int
    variadic: bool
    positional: CompletablePositional


def sanitize_identifier(value: str) -> str:
    """Turn *value* into a shell function name fragment."""
    result = re.sub(r"[^A-Za-z0-9_]", "_", value)
    return result or "cli"


def _escape_segment(value: str) -> str:
    return re.sub(r"[^A-Za-z0-9]", lambda m: f"_{ord(m.group()):x}_", value)


def node_key(path: tuple[str, ...]) -> str:
    """Identifier-safe key for a command path; distinct paths never share a key.

    Characters outside ``[A-Za-z0-9]`` become ``_<hex>_`` and path segments
    are joined with ``__``. Keys never start with ``_r``, so the root node's
    ``_root`` suffix cannot clash with a child's.
    """
    return "__".join(_escape_segment(p) for p in path)


def walk_nodes(root: CompletableSubcommand) -> list[Node]:
    """Return every resolvable command node in pre-order, root first."""
    nodes: list[Node] = []

    def _walk(command: CompletableSubcommand, path: tuple[str, ...]) -> None:
        node = Node(path=path, key=node_key(path), command=command)
        nodes.append(node)
        for child in command.subcommands:
            child_path = path + (child.name,)
            # Opaque children route to a key without a handler.
            node.children.append((child.name, node_key(child_path), child.description))
        for child in command.subcommands:
            if isinstance(child, CompletableSubcommand):
                _walk(child, path + (child.name,))

    _walk(root, ())
    return nodes


def positional_branches(command: CompletableSubcommand) -> list[PositionalBranch]:
    return [
        PositionalBranch(index=p.position, variadic=p.variadic, positional=p)
        for p in command.positionals
    ]


def value_options(command: CompletableSubcommand) -> list[CompletableOption]:
    """Value-taking options that declare how their value is completed."""
    return [o for o in command.options if o.takes_value and o.value_completion is not None]


def takes_value_table(nodes: list[Node]) -> list[tuple[str, str]]:
    """``(node key, spelling)`` for every option spelling that consumes the next word."""
    rows: list[tuple[str, str]] = []
    for node in nodes:
        for option in node.command.options:
            if option.takes_value:
                rows.extend((node.key, spelling) for spelling in option.spellings)
    return rows


def children_table(nodes: list[Node]) -> list[tuple[str, str, str]]:
    """``(parent key, child name, child key)`` for every sub-command."""
    return [
        (node.key, name, child_key)
        for node in nodes
        for name, child_key, _ in node.children
    ]


class ScriptGenerator(abc.ABC):
    """Base class for bash, zsh and fish script generators.

    Args:
        include_descriptions: Render option and sub-command descriptions
            where the shell can display them.
    """

    shell: ClassVar[ShellType]

    def __init__(self, include_descriptions: bool = True) -> None:
        self.include_descriptions = include_descriptions

    def generate(self, data: CompletionData) -> str:
        """Render the complete script for *data*."""
        nodes = walk_nodes(data.command)
        return self.render(data.program_name, nodes)

    @abc.abstractmethod
    def render(self, program_name: str, nodes: list[Node]) -> str:
        """Assemble the script from the walked nodes."""

    @abc.abstractmethod
    def install_instructions(self, program_name: str, dynamic: bool = False) -> str:
        """Human-readable steps to enable the script (or the dynamic stub)."""

    def invocation(self, program_name: str, dynamic: bool = False) -> str:
        """The command line that prints this shell's script."""
        suffix = " --dynamic" if dynamic else ""
        return f"{program_name} completion {self.shell.value}{suffix}"

    # ------------------------------------------------------------------ #
    # Backend emitters
    # ------------------------------------------------------------------ #

    @abc.abstractmethod
    def emit_choices(self, values: list[str], inline: bool) -> list[str]:
        ...

    @abc.abstractmethod
    def emit_file(self, extensions: list[str], matchers: list[str], inline: bool) -> list[str]:
        ...

    @abc.abstractmethod
    def emit_directory(self, inline: bool) -> list[str]:
        ...

    @abc.abstractmethod
    def emit_shell_command(self, command: str, inline: bool) -> list[str]:
        ...

    @abc.abstractmethod
    def emit_none(self, inline: bool) -> list[str]:
        ...

    def value_lines(self, completion: Optional[ValueCompletion], inline: bool = False) -> list[str]:
        """Dispatch *completion* to the matching emitter.

        ``None`` produces no lines, leaving the shell's default behaviour.
        """
        if isinstance(completion, ChoicesCompletion):
            return self.emit_choices(completion.values, inline)
        if isinstance(completion, FileCompletion):
            return self.emit_file(completion.extensions, completion.matchers, inline)
        if isinstance(completion, DirectoryCompletion):
            return self.emit_directory(inline)
        if isinstance(completion, ShellCommandCompletion):
            return self.emit_shell_command(completion.command, inline)
        if isinstance(completion, NoCompletion):
            return self.emit_none(inline)
        return []

    def fallback_file_lines(self, inline: bool = False) -> list[str]:
        """Native file completion for a value-taking option with no declared source."""
        return self.emit_file([], [], inline)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def description(self, text: Optional[str]) -> Optional[str]:
        if not self.include_descriptions or not text:
            return None
        return " ".join(text.split())

    @staticmethod
    def file_patterns(extensions: list[str], matchers: list[str]) -> list[str]:
        """Glob patterns matched against the base name of a candidate file."""
        return [f"*.{ext.lstrip('.')}" for ext in extensions] + list(matchers)


def indent(lines: list[str], level: int = 1, width: int = 4) -> list[str]:
    pad = " " * (level * width)
    return [f"{pad}{line}" if line else line for line in lines]
