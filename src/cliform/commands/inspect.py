"""Inspect command -- show what the completion engine sees.

Provides ``cliform inspect``, which loads a command tree and lists every
command path with its options, positionals and the value completion each
one resolves to. Output is a table, or a JSON array with ``--json``.
"""

from __future__ import annotations

from typing import Optional, Union

import typer

from cliform.commands._target import load_target, target_program_name
from cliform.exceptions import CliformError
from cliform.models import (
    ChoicesCompletion,
    CompletableSubcommand,
    DirectoryCompletion,
    FileCompletion,
    NoCompletion,
    OpaqueSubcommand,
    ShellCommandCompletion,
)

HEADERS = ["Command", "Kind", "Name", "Completion", "Description"]


def inspect_command(
    target: str = typer.Argument(
        ..., help="Command tree to inspect, as package.module:attribute."
    ),
    program_name: Optional[str] = typer.Option(
        None, "--program-name", "-n", help="Name used for the root command."
    ),
) -> None:
    """List every command path with its options and positionals.

    Example::

        cliform inspect myapp.cli:app
        cliform --json inspect myapp.cli:app
    """
    from cliform.completion import extract_completion_data
    from cliform.output import error, get_output

    command = load_target(target)
    name = program_name or target_program_name(command, target)

    try:
        data = extract_completion_data(command, name)
    except CliformError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None

    rows = inspection_rows(data.command)
    get_output().print_table(HEADERS, rows, title=f"{name} -- Completion ({len(rows)})")


def inspection_rows(
    node: Union[CompletableSubcommand, OpaqueSubcommand],
    parent_path: str = "",
) -> list[list[str]]:
    """Flatten *node* and its children into table rows, depth first."""
    path = f"{parent_path} {node.name}".strip()

    if isinstance(node, OpaqueSubcommand):
        return [[path, "command", node.name, "-", node.description or ""]]

    rows = [[path, "command", node.name, "-", node.description or ""]]
    for option in node.options:
        completion = describe_completion(option.value_completion) if option.takes_value else "flag"
        rows.append([
            path,
            "option",
            ", ".join(option.spellings),
            completion,
            option.description or "",
        ])
    for positional in node.positionals:
        name = positional.cli_name.upper()
        if positional.variadic:
            name += "..."
        if not positional.required:
            name = f"[{name}]"
        rows.append([
            path,
            "positional",
            name,
            describe_completion(positional.value_completion),
            positional.description or "",
        ])
    for child in node.subcommands:
        rows.extend(inspection_rows(child, path))
    return rows


def describe_completion(completion: object) -> str:
    """One-line summary of a value completion, ``-`` when there is none."""
    if isinstance(completion, ChoicesCompletion):
        return f"choices: {', '.join(completion.values)}"
    if isinstance(completion, FileCompletion):
        filters = [f".{ext.lstrip('.')}" for ext in completion.extensions]
        filters.extend(completion.matchers)
        return f"file ({', '.join(filters)})" if filters else "file"
    if isinstance(completion, DirectoryCompletion):
        return "directory"
    if isinstance(completion, ShellCommandCompletion):
        return f"shell: {completion.command}"
    if isinstance(completion, NoCompletion):
        return "none"
    return "-"
