"""Per-field CLI metadata attached through ``typing.Annotated``.

:class:`Arg` is a plain frozen dataclass. Pydantic keeps unknown
``Annotated`` metadata untouched in ``FieldInfo.metadata``, where
:func:`~cliform.schema.extractor.extract_fields` finds it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from cliform.models import CompletionHint


@dataclass(frozen=True)
class Arg:
    """CLI metadata for one argument field.

    Attributes:
        alias: Single-character short flag (``"e"`` for ``-e``).
        description: Help text; falls back to the pydantic field description.
        positional: Take the value from a positional slot instead of a flag.
        placeholder: Metavar shown in help output.
        completion: Explicit completion source for the value.
        cli_name: Override the dash-cased flag name derived from the field name.
    """

    alias: Optional[str] = None
    description: Optional[str] = None
    positional: bool = False
    placeholder: Optional[str] = None
    completion: Optional[CompletionHint] = None
    cli_name: Optional[str] = None


def choices_hint(*values: str) -> CompletionHint:
    """Complete from *values* in the given order."""
    return CompletionHint(choices=tuple(str(v) for v in values))


def file_hint(*extensions: str, matchers: tuple[str, ...] = ()) -> CompletionHint:
    """Complete file paths, optionally limited to *extensions* or glob *matchers*.

    Extensions may be given with or without the leading dot.
    """
    return CompletionHint(
        type="file",
        extensions=tuple(ext.lstrip(".") for ext in extensions),
        matchers=tuple(matchers),
    )


def directory_hint() -> CompletionHint:
    return CompletionHint(type="directory")


def shell_command_hint(command: str) -> CompletionHint:
    """Complete from the lines printed by *command*, run through the user's shell."""
    return CompletionHint(shell_command=command)


def no_completion_hint() -> CompletionHint:
    """Offer nothing, and keep the shell from falling back to file names."""
    return CompletionHint(type="none")
