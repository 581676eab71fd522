"""Resolve a ``package.module:attribute`` target to a :class:`~cliform.schema.Command`.

Used by the ``cliform`` tool to reach a program's command tree without
running it::

    cliform generate zsh myapp.cli:app

The attribute may also be a :class:`~cliform.schema.LazyCommand` (its
``meta`` is used) or a zero-argument callable returning a command.
"""

from __future__ import annotations

import importlib
import sys
from pathlib import Path

from cliform.exceptions import TargetLoadError
from cliform.schema.command import Command, LazyCommand


def load_command_target(target: str) -> Command:
    """Import *target* and return the command it names.

    Raises:
        TargetLoadError: If the target is malformed, cannot be imported, or
            does not resolve to a command.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise TargetLoadError(f"Target must look like 'package.module:attribute', got {target!r}")

    cwd = str(Path.cwd())
    if cwd not in sys.path:
        sys.path.insert(0, cwd)

    try:
        obj = importlib.import_module(module_name)
    except ImportError as exc:
        raise TargetLoadError(f"Cannot import module '{module_name}': {exc}") from exc

    for part in attr_path.split("."):
        try:
            obj = getattr(obj, part)
        except AttributeError as exc:
            raise TargetLoadError(f"'{module_name}' has no attribute '{attr_path}'") from exc

    if isinstance(obj, Command):
        return obj
    if isinstance(obj, LazyCommand):
        return obj.meta
    if callable(obj) and not isinstance(obj, type):
        result = obj()
        if isinstance(result, Command):
            return result

    raise TargetLoadError(f"'{target}' is not a cliform Command")
