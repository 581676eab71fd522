"""CLI generator -- build a Typer application from a cliform command tree.

Typical usage::

    from cliform.generator import build_typer_app

    app = build_typer_app(cli, "mycli")
    app()  # invoke the CLI

Sub-modules:

* :mod:`~cliform.generator.param_mapper` -- Map resolved fields to Typer
  positional arguments and ``--option`` flags.
* :mod:`~cliform.generator.command_tree` -- Build the group/leaf tree and
  attach commands with dynamically generated function signatures.
"""

from cliform.generator.command_tree import build_typer_app, validate_args
from cliform.generator.param_mapper import map_field_to_typer, sanitize_param_name

__all__ = ["build_typer_app", "map_field_to_typer", "sanitize_param_name", "validate_args"]
