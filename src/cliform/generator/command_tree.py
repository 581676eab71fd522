"""Build a Typer application from a cliform :class:`~cliform.schema.Command` tree.

**Algorithm summary**

1. A command with sub-commands becomes a :class:`typer.Typer` group whose
   callback receives the group's own arguments; a command without them
   becomes a leaf command.
2. Each callback or leaf is a dynamically generated function whose
   signature matches the command's fields (see
   :mod:`~cliform.generator.param_mapper`), so Typer can read it with
   :mod:`inspect`.
3. When invoked, the generated function collects the given values,
   validates them with the command's pydantic model and calls ``run``.
   Validation errors become :class:`~cliform.exceptions.InvalidUsageError`.
4. Lazy commands are described by their ``meta`` and loaded only when they
   run. Bare loaders become pass-through commands that load the real
   command and hand it the remaining arguments.
5. Sub-commands whose name starts with ``__`` are registered hidden.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

import typer
from pydantic import BaseModel, ValidationError

from cliform.exceptions import InvalidUsageError
from cliform.generator.param_mapper import map_field_to_typer
from cliform.models import OpaqueSubcommand, ResolvedField
from cliform.schema.command import (
    Command,
    LazyCommand,
    SubcommandEntry,
    is_hidden,
    load_subcommand,
)
from cliform.schema.extractor import extract_fields

# Sub-commands that must work even when the group's own arguments are invalid.
_UNVALIDATED_SUBCOMMANDS = frozenset({"completion", "__complete"})


# ---------------------------------------------------------------------------
# Public entry point
# ---------------------------------------------------------------------------


def build_typer_app(command: Command, program_name: Optional[str] = None) -> typer.Typer:
    """Build a :class:`typer.Typer` application for *command*.

    Args:
        command: Root of the command tree.
        program_name: Name shown in usage lines; defaults to ``command.name``.

    Returns:
        A :class:`typer.Typer` app. Call ``app()`` (or
        :func:`cliform.runner.run_main`) to start the CLI.

    Raises:
        SchemaError: If any argument model in the tree is malformed.

    Example::

        app = build_typer_app(cli, "mycli")
        app(["build", "--format", "json"])
    """
    name = program_name or command.name or "cli"
    app = typer.Typer(
        name=name,
        help=command.description,
        add_completion=False,
        pretty_exceptions_enable=False,
    )

    if command.is_group:
        _attach_group(app, command, (name,))
    else:
        fn = _build_command_function(command, (name,), _leaf_action(command))
        app.command(name=name, help=command.description)(fn)
    return app


# ---------------------------------------------------------------------------
# Tree construction
# ---------------------------------------------------------------------------


def _attach_group(app: typer.Typer, command: Command, path: tuple[str, ...]) -> None:
    """Register *command*'s callback and children on *app*."""
    callback = _build_command_function(command, path, _group_action(command))
    app.callback(invoke_without_command=True, help=command.description)(callback)

    for key, entry in command.subcommands.items():
        _attach_entry(app, key, entry, path + (key,))


def _attach_entry(
    parent: typer.Typer,
    key: str,
    entry: SubcommandEntry,
    path: tuple[str, ...],
) -> None:
    hidden = is_hidden(key)

    if isinstance(entry, LazyCommand):
        meta = entry.meta
        if meta.is_group:
            sub = typer.Typer(name=key, help=meta.description, add_completion=False)
            _attach_group(sub, meta, path)
            parent.add_typer(sub, name=key, help=meta.description, hidden=hidden)
        else:
            fn = _build_command_function(meta, path, _lazy_action(entry))
            parent.command(name=key, help=meta.description, hidden=hidden)(fn)
        return

    if isinstance(entry, Command):
        if entry.is_group:
            sub = typer.Typer(name=key, help=entry.description, add_completion=False)
            _attach_group(sub, entry, path)
            parent.add_typer(sub, name=key, help=entry.description, hidden=hidden)
        else:
            fn = _build_command_function(entry, path, _leaf_action(entry))
            parent.command(name=key, help=entry.description, hidden=hidden)(fn)
        return

    parent.command(
        name=key,
        help=OpaqueSubcommand(name=key).description,
        hidden=hidden,
        add_help_option=False,
        context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
    )(_passthrough_function(entry, key))


# ---------------------------------------------------------------------------
# Actions run by the generated functions
# ---------------------------------------------------------------------------

Action = Callable[[typer.Context, dict[str, Any]], Any]


def _leaf_action(command: Command) -> Action:
    fields = extract_fields(command.args)

    def action(ctx: typer.Context, values: dict[str, Any]) -> Any:
        args = validate_args(command.args, values, fields)
        if command.run is not None:
            return command.run(args)
        typer.echo(ctx.get_help())
        return None

    return action


def _group_action(command: Command) -> Action:
    fields = extract_fields(command.args)

    def action(ctx: typer.Context, values: dict[str, Any]) -> Any:
        if ctx.invoked_subcommand in _UNVALIDATED_SUBCOMMANDS:
            return None
        args = validate_args(command.args, values, fields)
        ctx.obj = args
        if ctx.invoked_subcommand is not None:
            return None
        if command.run is not None:
            return command.run(args)
        typer.echo(ctx.get_help())
        raise typer.Exit()

    return action


def _lazy_action(entry: LazyCommand) -> Action:
    def action(ctx: typer.Context, values: dict[str, Any]) -> Any:
        command = entry.resolve()
        return _leaf_action(command)(ctx, values)

    return action


def _passthrough_function(entry: Callable[[], Command], key: str) -> Callable[..., Any]:
    def passthrough(ctx: typer.Context) -> Any:
        command = load_subcommand(entry)
        sub_app = build_typer_app(command, key)
        click_command = typer.main.get_command(sub_app)
        return click_command.main(
            args=list(ctx.args),
            prog_name=ctx.command_path,
            standalone_mode=False,
        )

    passthrough.__name__ = f"_cmd_{_slugify(key)}"
    return passthrough


def validate_args(
    model: Optional[type[BaseModel]],
    values: dict[str, Any],
    fields: Optional[list[ResolvedField]] = None,
) -> Optional[BaseModel]:
    """Validate CLI *values* against *model*.

    Raises:
        InvalidUsageError: Naming the offending flag, when validation fails.
    """
    if model is None:
        return None
    try:
        return model.model_validate(values)
    except ValidationError as exc:
        raise InvalidUsageError(_format_validation_error(exc, fields or [])) from exc


def _format_validation_error(exc: ValidationError, fields: list[ResolvedField]) -> str:
    spellings = {
        f.name: (f.placeholder or f.cli_name.upper()) if f.positional else f"--{f.cli_name}"
        for f in fields
    }
    messages = []
    for err in exc.errors():
        loc = err.get("loc") or ()
        field_name = str(loc[0]) if loc else ""
        where = spellings.get(field_name, field_name)
        if err.get("type") == "missing":
            messages.append(f"Missing required argument '{where}'")
        else:
            messages.append(f"Invalid value for '{where}': {err.get('msg')}")
    return "; ".join(messages)


# ---------------------------------------------------------------------------
# Dynamic command function builder
# ---------------------------------------------------------------------------


def _build_command_function(
    command: Command,
    path: tuple[str, ...],
    action: Action,
) -> Callable[..., Any]:
    """Dynamically generate a Typer-compatible function for *command*.

    The function source is built as a string, compiled, and executed into a
    namespace so that :mod:`inspect` (which Typer relies on) can read its
    signature. When invoked, the generated function collects every value
    that was given and delegates to *action*.
    """
    descriptors = [map_field_to_typer(f) for f in extract_fields(command.args)]

    func_name = f"_cmd_{'_'.join(_slugify(p) for p in path)}"
    namespace: dict[str, Any] = {"_Context": typer.Context, "_action": action}

    sig_parts = ["_cliform_ctx: _Context"]
    body_lines = ["    values = {}"]
    taken: set[str] = {"_cliform_ctx", "values"}

    # Positional arguments first, then options.
    arguments = [d for d in descriptors if d["is_argument"]]
    options = [d for d in descriptors if not d["is_argument"]]

    for idx, desc in enumerate(arguments + options):
        py_name = desc["name"]
        while py_name in taken:
            py_name = f"{py_name}_"
        taken.add(py_name)

        sentinel = f"_default_{idx}"
        ann = f"_ann_{idx}"
        namespace[sentinel] = desc["default"]
        namespace[ann] = desc["type"]
        sig_parts.append(f"{py_name}: {ann} = {sentinel}")
        body_lines.append(f"    if {py_name} is not None and {py_name} != []:")
        body_lines.append(f"        values[{desc['field_name']!r}] = {py_name}")

    body_lines.append("    return _action(_cliform_ctx, values)")

    source = f"def {func_name}({', '.join(sig_parts)}):\n" + "\n".join(body_lines) + "\n"
    code = compile(source, f"<cliform:{'/'.join(path)}>", "exec")
    exec(code, namespace)  # noqa: S102 -- controlled code generation
    fn = namespace[func_name]
    fn.__doc__ = command.description
    return fn


def _slugify(value: str) -> str:
    """Turn *value* into a safe identifier slug."""
    result = value.lower().replace(" ", "_").replace("-", "_")
    result = "".join(c for c in result if c.isalnum() or c == "_")
    return result.strip("_") or "cmd"


__all__ = ["build_typer_app", "validate_args"]
