"""Reconstruct the completion state of a partially typed command line.

:func:`parse_completion_context` walks the *original* command tree (not the
extracted completion model), so lazily loaded commands are followed through
their ``meta`` at any depth. Everything but the last word is scanned; the
last word is the one being completed.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from cliform.completion.extractor import extract_options, extract_positionals
from cliform.models import CompletableOption, CompletablePositional, CompletionType
from cliform.schema.command import (
    Command,
    is_hidden,
    resolve_subcommand,
    visible_subcommands,
)
from cliform.schema.extractor import extract_fields


class CompletionContext(BaseModel):
    """Where the cursor is, and what could be typed there."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    subcommand_path: list[str] = Field(default_factory=list)
    current_command: Command
    options: list[CompletableOption] = Field(default_factory=list)
    positionals: list[CompletablePositional] = Field(default_factory=list)
    subcommands: list[str] = Field(default_factory=list)
    used_options: set[str] = Field(default_factory=set)
    after_double_dash: bool = False
    positional_index: Optional[int] = None
    provided_positional_count: int = 0
    current_word: str = ""
    inline_prefix: Optional[str] = None
    previous_word: str = ""
    completion_type: CompletionType
    target_option: Optional[CompletableOption] = None


def parse_completion_context(argv: list[str], root: Command) -> CompletionContext:
    """Build the :class:`CompletionContext` for *argv* (words after the program name).

    Example::

        >>> ctx = parse_completion_context(["build", "--format", ""], cli)
        >>> ctx.completion_type, ctx.target_option.cli_name
        (<CompletionType.OPTION_VALUE: 'option_value'>, 'format')

    Raises:
        CompletionConfigError: If the command reached has an invalid
            positional layout.
        SchemaError: If an argument model along the path is malformed.
    """
    command = root
    path: list[str] = []
    options = _options(command)
    used: set[str] = set()
    count = 0
    after_dd = False

    scanned = argv[:-1]
    i = 0
    while i < len(scanned):
        word = scanned[i]
        i += 1

        if not after_dd and word == "--":
            after_dd = True
            continue

        if not after_dd and _is_option(word):
            name = _option_name(word)
            option = _find_option(options, name)
            if option is None:
                used.add(name)
                continue
            used.add(option.cli_name)
            if option.alias:
                used.add(option.alias)
            if option.takes_value and "=" not in word:
                i += 1
            continue

        child = None if after_dd else _child(command, word)
        if child is not None:
            path.append(word)
            command = child
            options = _options(command)
            used = set()
            count = 0
            continue

        count += 1

    current = argv[-1] if argv else ""
    previous = argv[-2] if len(argv) > 1 else ""
    positionals = extract_positionals(
        [f for f in extract_fields(command.args) if f.positional],
        command_name=path[-1] if path else None,
    )
    subcommands = list(visible_subcommands(command))

    context = CompletionContext(
        subcommand_path=path,
        current_command=command,
        options=options,
        positionals=positionals,
        subcommands=subcommands,
        used_options=used,
        after_double_dash=after_dd,
        provided_positional_count=count,
        current_word=current,
        previous_word=previous,
        completion_type=CompletionType.SUBCOMMAND,
    )
    _classify(context)
    return context


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------


def _classify(ctx: CompletionContext) -> None:
    word = ctx.current_word
    prev = ctx.previous_word

    if not ctx.after_double_dash and _is_option(prev) and "=" not in prev:
        option = _find_option(ctx.options, _option_name(prev))
        if option is not None and option.takes_value:
            ctx.completion_type = CompletionType.OPTION_VALUE
            ctx.target_option = option
            return

    if not ctx.after_double_dash and word.startswith("--") and "=" in word:
        prefix, _, value = word.partition("=")
        option = _find_option(ctx.options, _option_name(prefix))
        if option is not None and option.takes_value:
            ctx.completion_type = CompletionType.OPTION_VALUE
            ctx.target_option = option
            ctx.inline_prefix = f"{prefix}="
            ctx.current_word = value
        else:
            ctx.completion_type = CompletionType.OPTION_NAME
        return

    if not ctx.after_double_dash and word.startswith("-"):
        ctx.completion_type = CompletionType.OPTION_NAME
        return

    ctx.completion_type = _default_type(ctx)
    if ctx.completion_type == CompletionType.POSITIONAL:
        ctx.positional_index = _slot(ctx)


def _default_type(ctx: CompletionContext) -> CompletionType:
    if ctx.after_double_dash:
        return CompletionType.POSITIONAL
    if ctx.subcommands:
        word = ctx.current_word
        if word == "" or any(name.startswith(word) for name in ctx.subcommands):
            return CompletionType.SUBCOMMAND
    if ctx.provided_positional_count < len(ctx.positionals):
        return CompletionType.POSITIONAL
    if ctx.positionals and ctx.positionals[-1].variadic:
        return CompletionType.POSITIONAL
    # Nothing left to fill: the subcommand branch falls back to options.
    return CompletionType.SUBCOMMAND


def _slot(ctx: CompletionContext) -> int:
    """Positional slot for the current word; the variadic slot absorbs the rest."""
    index = ctx.provided_positional_count
    if ctx.positionals and ctx.positionals[-1].variadic:
        return min(index, len(ctx.positionals) - 1)
    return index


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _options(command: Command) -> list[CompletableOption]:
    return extract_options(extract_fields(command.args))


def _child(command: Command, word: str) -> Optional[Command]:
    if is_hidden(word):
        return None
    entry = command.subcommands.get(word)
    if entry is None:
        return None
    return resolve_subcommand(entry)


def _is_option(word: str) -> bool:
    return word.startswith("-") and word != "-"


def _option_name(word: str) -> str:
    """``--foo=bar`` -> ``foo``; ``-v`` -> ``v``."""
    if word.startswith("--"):
        return word[2:].split("=", 1)[0]
    if word.startswith("-"):
        return word[1:2]
    return word


def _find_option(options: list[CompletableOption], name: str) -> Optional[CompletableOption]:
    for option in options:
        if option.cli_name == name or (option.alias and option.alias == name):
            return option
    return None
