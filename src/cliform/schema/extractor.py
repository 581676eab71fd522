"""Normalize a pydantic argument model into :class:`~cliform.models.ResolvedField` objects.

This is the boundary between raw Python type annotations and everything
downstream: the Typer generator and the completion extractor only ever see
:class:`ResolvedField`, never the model's annotations.

Type detection:

* ``bool`` -> ``boolean`` (a flag that takes no value)
* ``int``, ``float``, ``Decimal`` -> ``number``
* ``str``, ``Path`` -> ``string``
* ``Literal[...]`` and ``Enum`` subclasses -> ``string`` with enum values
* ``list``/``tuple``/``set`` -> ``array`` (item enum values are kept)
* anything else -> ``unknown``

``Optional[X]`` is unwrapped to ``X``.
"""

from __future__ import annotations

import enum
import re
import types
import typing
from decimal import Decimal
from pathlib import PurePath
from typing import Any, Literal, Optional, Union

from pydantic import BaseModel
from pydantic.fields import FieldInfo
from pydantic_core import PydanticUndefined

from cliform.exceptions import SchemaError
from cliform.models import FieldType, ResolvedField
from cliform.schema.args import Arg

_ARRAY_ORIGINS = (list, tuple, set, frozenset)


def extract_fields(model: Optional[type[BaseModel]]) -> list[ResolvedField]:
    """Return the normalized fields of *model* in declaration order.

    Args:
        model: A pydantic model class, or ``None`` for a command without
            arguments.

    Raises:
        SchemaError: When two fields share a flag name or alias, or an alias
            is not a single character.
    """
    if model is None:
        return []

    fields = [
        _extract_field(name, info) for name, info in model.model_fields.items()
    ]
    _check_unique(model, fields)
    return fields


def to_cli_name(name: str) -> str:
    """Convert a Python field name to its dash-cased flag name.

    Example::

        >>> to_cli_name("dry_run")
        'dry-run'
        >>> to_cli_name("outputDir")
        'output-dir'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1-\2", name)
    result = result.replace("_", "-").lower()
    return re.sub(r"-+", "-", result).strip("-") or name


# ---------------------------------------------------------------------------
# Private helpers
# ---------------------------------------------------------------------------


def _extract_field(name: str, info: FieldInfo) -> ResolvedField:
    meta = _find_arg(info) or Arg()
    field_type, enum_values = detect_type(info.annotation)

    if meta.alias is not None and len(meta.alias) != 1:
        raise SchemaError(
            f"Alias for field '{name}' must be a single character, got {meta.alias!r}"
        )

    default = None
    if not info.is_required() and info.default is not PydanticUndefined:
        default = info.default

    return ResolvedField(
        name=name,
        cli_name=meta.cli_name or to_cli_name(name),
        alias=meta.alias,
        description=meta.description or info.description,
        positional=meta.positional,
        required=info.is_required(),
        type=field_type,
        enum_values=enum_values,
        completion=meta.completion,
        default=default,
        placeholder=meta.placeholder,
    )


def _find_arg(info: FieldInfo) -> Optional[Arg]:
    for item in info.metadata:
        if isinstance(item, Arg):
            return item
    return None


def detect_type(annotation: Any) -> tuple[FieldType, list[str]]:
    """Classify *annotation* into a :class:`FieldType` plus enum values."""
    annotation = _unwrap_optional(annotation)
    origin = typing.get_origin(annotation)

    if origin is typing.Annotated:
        return detect_type(typing.get_args(annotation)[0])

    if annotation is bool:
        return FieldType.BOOLEAN, []

    if origin is Literal:
        return FieldType.STRING, [str(v) for v in typing.get_args(annotation)]

    if isinstance(annotation, type) and issubclass(annotation, enum.Enum):
        return FieldType.STRING, [str(member.value) for member in annotation]

    if annotation in (int, float, Decimal):
        return FieldType.NUMBER, []

    if annotation is str or (
        isinstance(annotation, type) and issubclass(annotation, PurePath)
    ):
        return FieldType.STRING, []

    if origin in _ARRAY_ORIGINS or annotation in _ARRAY_ORIGINS:
        item_args = [a for a in typing.get_args(annotation) if a is not Ellipsis]
        enum_values: list[str] = []
        if item_args:
            _, enum_values = detect_type(item_args[0])
        return FieldType.ARRAY, enum_values

    return FieldType.UNKNOWN, []


def _unwrap_optional(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    if origin is Union or origin is types.UnionType:
        members = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(members) == 1:
            return members[0]
    return annotation


def _check_unique(model: type[BaseModel], fields: list[ResolvedField]) -> None:
    seen: dict[str, str] = {}
    for field in fields:
        if field.positional:
            continue
        for spelling in (f"--{field.cli_name}", f"-{field.alias}" if field.alias else None):
            if spelling is None:
                continue
            if spelling in seen:
                raise SchemaError(
                    f"{model.__name__}: '{spelling}' is used by both "
                    f"'{seen[spelling]}' and '{field.name}'"
                )
            seen[spelling] = field.name
