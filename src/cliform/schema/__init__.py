"""Command schema -- declare commands and their arguments as pydantic models.

A command's arguments are the fields of a pydantic model. Per-field CLI
metadata (short alias, positional placement, completion hints) is attached
with :class:`Arg` inside ``Annotated``::

    class DeployArgs(BaseModel):
        env: Annotated[
            Literal["dev", "staging", "prod"],
            Arg(alias="e", description="Target environment"),
        ]
        config: Annotated[Optional[str], Arg(completion=file_hint("json"))] = None

    deploy = define_command(name="deploy", args=DeployArgs, run=do_deploy)

Sub-modules:

* :mod:`~cliform.schema.args` -- :class:`Arg` and completion hint builders.
* :mod:`~cliform.schema.command` -- :class:`Command`, :class:`LazyCommand`.
* :mod:`~cliform.schema.extractor` -- normalizes a model into
  :class:`~cliform.models.ResolvedField` objects.
"""

from cliform.schema.args import (
    Arg,
    choices_hint,
    directory_hint,
    file_hint,
    no_completion_hint,
    shell_command_hint,
)
from cliform.schema.command import (
    Command,
    LazyCommand,
    SubcommandEntry,
    define_command,
    lazy,
    resolve_subcommand,
)
from cliform.schema.extractor import extract_fields, to_cli_name

__all__ = [
    "Arg",
    "Command",
    "LazyCommand",
    "SubcommandEntry",
    "choices_hint",
    "define_command",
    "directory_hint",
    "extract_fields",
    "file_hint",
    "lazy",
    "no_completion_hint",
    "resolve_subcommand",
    "shell_command_hint",
    "to_cli_name",
]
