"""Resolve the :data:`~cliform.models.ValueCompletion` for a single field.

Priority, highest first:

1. custom sources on the hint -- ``choices`` or ``shell_command``
2. the hint's declared ``type`` -- ``file``, ``directory`` or ``none``
3. enum values detected from the field's annotation
4. nothing (``None``)
"""

from __future__ import annotations

from typing import Optional

from cliform.models import (
    ChoicesCompletion,
    DirectoryCompletion,
    FileCompletion,
    NoCompletion,
    ResolvedField,
    ShellCommandCompletion,
    ValueCompletion,
)


def resolve_value_completion(field: ResolvedField) -> Optional[ValueCompletion]:
    """Return how *field*'s value should be completed, or ``None`` for no preference."""
    hint = field.completion

    if hint is not None:
        if hint.choices:
            return ChoicesCompletion(values=list(hint.choices))
        if hint.shell_command:
            return ShellCommandCompletion(command=hint.shell_command)
        if hint.type == "file":
            return FileCompletion(
                extensions=list(hint.extensions),
                matchers=list(hint.matchers),
            )
        if hint.type == "directory":
            return DirectoryCompletion()
        if hint.type == "none":
            return NoCompletion()

    if field.enum_values:
        return ChoicesCompletion(values=list(field.enum_values))

    return None
