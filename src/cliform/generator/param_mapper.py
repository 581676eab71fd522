"""Map resolved argument fields to Typer CLI options and arguments.

This module bridges :class:`~cliform.models.ResolvedField` and Typer's CLI
interface. It converts each field into a descriptor dictionary that
:func:`~cliform.generator.command_tree._build_command_function` uses to
construct dynamically generated function signatures.

**Mapping rules:**

* **Positional fields** become :func:`typer.Argument` values.
* **Other fields** become ``--cli-name`` flags (plus ``-a`` for an alias)
  via :func:`typer.Option`.
* **Booleans** become flags that take no value.
* **Arrays** become repeatable options (or a variadic argument) collecting
  ``List[str]``.
* **Everything else** is collected as ``str``; the command's pydantic
  model converts and validates it. Typer never enforces ``required`` for
  the same reason, so a missing value is reported by the model with the
  field's flag name.
* **Field names** are sanitised to valid Python identifiers via
  :func:`sanitize_param_name`.
"""

from __future__ import annotations

import keyword
import re
from typing import Any, List, Optional

import typer

from cliform.models import FieldType, ResolvedField

# Matches any character that is not alphanumeric or underscore.
_INVALID_IDENT_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_param_name(name: str) -> str:
    """Convert a field name to a valid Python identifier.

    Applies the following transformations in order:

    1. CamelCase boundaries are split with underscores (``outputDir``
       becomes ``output_dir``).
    2. The string is lowercased.
    3. Hyphens, dots and any other invalid characters become underscores.
    4. Consecutive and leading/trailing underscores are collapsed.
    5. An empty result defaults to ``"param"``.
    6. A leading digit gets an underscore prefix.
    7. Python keywords get a trailing underscore (``"from"`` becomes
       ``"from_"``).

    Example::

        >>> sanitize_param_name("outputDir")
        'output_dir'
        >>> sanitize_param_name("class")
        'class_'
    """
    result = re.sub(r"([a-z0-9])([A-Z])", r"\1_\2", name)
    result = re.sub(r"([A-Z]+)([A-Z][a-z])", r"\1_\2", result)
    result = result.lower()
    result = _INVALID_IDENT_RE.sub("_", result)
    result = re.sub(r"_+", "_", result).strip("_")
    if not result:
        result = "param"
    if result[0].isdigit():
        result = f"_{result}"
    if keyword.iskeyword(result):
        result = f"{result}_"
    return result


def build_help_text(field: ResolvedField) -> str:
    """Help text for *field*: its description plus choices and required markers."""
    help_text = field.description or ""
    if field.enum_values:
        enum_hint = f"[choices: {', '.join(field.enum_values)}]"
        help_text = f"{help_text}  {enum_hint}" if help_text else enum_hint
    if field.required and field.type != FieldType.BOOLEAN:
        help_text = f"{help_text}  [required]" if help_text else "[required]"
    return help_text


def map_field_to_typer(field: ResolvedField) -> dict[str, Any]:
    """Map a single :class:`~cliform.models.ResolvedField` to a Typer descriptor dict.

    Returns:
        A dict with the following keys:

        * ``name`` (``str``) -- Python-safe parameter name.
        * ``field_name`` (``str``) -- The model field the value belongs to.
        * ``type`` -- Python type annotation for the parameter.
        * ``default`` -- A :func:`typer.Option` or :func:`typer.Argument`
          descriptor.
        * ``help`` (``str``) -- Help text for ``--help`` output.
        * ``is_argument`` (``bool``) -- ``True`` for positional fields.
    """
    help_text = build_help_text(field)
    py_type: Any
    metavar = field.placeholder

    if field.positional:
        if field.type == FieldType.ARRAY:
            py_type = Optional[List[str]]
        else:
            py_type = Optional[str]
        default = typer.Argument(
            None,
            help=help_text or None,
            metavar=metavar or field.cli_name.upper(),
            show_default=False,
        )
        return _descriptor(field, py_type, default, help_text, is_argument=True)

    names = [f"--{field.cli_name}"]
    if field.alias:
        names.append(f"-{field.alias}")

    if field.type == FieldType.BOOLEAN:
        if field.default is True:
            names[0] = f"--{field.cli_name}/--no-{field.cli_name}"
        default = typer.Option(bool(field.default), *names, help=help_text or None)
        return _descriptor(field, bool, default, help_text, is_argument=False)

    if field.type == FieldType.ARRAY:
        py_type = Optional[List[str]]
    else:
        py_type = Optional[str]
    default = typer.Option(
        None,
        *names,
        help=help_text or None,
        metavar=metavar,
        show_default=False,
    )
    return _descriptor(field, py_type, default, help_text, is_argument=False)


def _descriptor(
    field: ResolvedField,
    py_type: Any,
    default: Any,
    help_text: str,
    is_argument: bool,
) -> dict[str, Any]:
    return {
        "name": sanitize_param_name(field.name),
        "field_name": field.name,
        "type": py_type,
        "default": default,
        "help": help_text,
        "is_argument": is_argument,
    }
