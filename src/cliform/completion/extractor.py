"""Build the shell-agnostic completion model from a command tree.

:func:`extract_completion_data` is the single entry point used by every
static generator. It is a pure function of the command tree: the same tree
always yields an equal model, which is what makes generated scripts
byte-identical between runs.
"""

from __future__ import annotations

from typing import Optional, Union

from cliform.exceptions import CompletionConfigError
from cliform.models import (
    CompletableOption,
    CompletablePositional,
    CompletableSubcommand,
    CompletionData,
    FieldType,
    OpaqueSubcommand,
    ResolvedField,
)
from cliform.completion.value_completion import resolve_value_completion
from cliform.schema.command import Command, resolve_subcommand, visible_subcommands
from cliform.schema.extractor import extract_fields


def extract_completion_data(command: Command, program_name: str) -> CompletionData:
    """Extract the completable model for *command*, rooted at *program_name*.

    Raises:
        CompletionConfigError: If any command in the tree declares a
            positional layout that cannot be completed. Nothing is returned
            for the rest of the tree in that case.
        SchemaError: If an argument model has clashing flag names.
    """
    root = extract_subcommand(program_name, command)
    return CompletionData(
        command=root,
        program_name=program_name,
        global_options=list(root.options),
    )


def extract_subcommand(name: str, command: Command) -> CompletableSubcommand:
    """Extract one node and, recursively, its visible children."""
    fields = extract_fields(command.args)
    options = extract_options(fields)
    positionals = extract_positionals(fields, command_name=name)

    children: list[Union[CompletableSubcommand, OpaqueSubcommand]] = []
    for child_name, entry in visible_subcommands(command).items():
        resolved = resolve_subcommand(entry)
        if resolved is None:
            children.append(OpaqueSubcommand(name=child_name))
        else:
            children.append(extract_subcommand(child_name, resolved))

    return CompletableSubcommand(
        name=name,
        description=command.description,
        options=options,
        positionals=positionals,
        subcommands=children,
    )


def extract_options(fields: list[ResolvedField]) -> list[CompletableOption]:
    return [_to_option(f) for f in fields if not f.positional]


def extract_positionals(
    fields: list[ResolvedField],
    command_name: Optional[str] = None,
) -> list[CompletablePositional]:
    """Convert positional fields to slots, validating their order.

    Raises:
        CompletionConfigError: For a required positional after an optional
            one, or any positional after a variadic one.
    """
    where = f" in command '{command_name}'" if command_name else ""
    positionals: list[CompletablePositional] = []
    seen_optional: Optional[str] = None
    variadic: Optional[str] = None

    for field in (f for f in fields if f.positional):
        if variadic is not None:
            raise CompletionConfigError(
                f"Positional '{field.name}'{where} cannot follow variadic "
                f"positional '{variadic}'"
            )
        if field.required and seen_optional is not None:
            raise CompletionConfigError(
                f"Required positional '{field.name}'{where} cannot follow "
                f"optional positional '{seen_optional}'"
            )
        is_variadic = field.type == FieldType.ARRAY
        positionals.append(
            CompletablePositional(
                name=field.name,
                cli_name=field.cli_name,
                position=len(positionals),
                description=field.description,
                required=field.required,
                variadic=is_variadic,
                value_completion=resolve_value_completion(field),
            )
        )
        if not field.required:
            seen_optional = field.name
        if is_variadic:
            variadic = field.name

    return positionals


def _to_option(field: ResolvedField) -> CompletableOption:
    return CompletableOption(
        name=field.name,
        cli_name=field.cli_name,
        alias=field.alias,
        description=field.description,
        takes_value=field.type != FieldType.BOOLEAN,
        value_type=field.type,
        required=field.required,
        value_completion=resolve_value_completion(field),
    )
