"""Static completion script generators, one per supported shell.

``GENERATORS`` maps a shell name to its generator class;
:func:`generate_completion` is the usual way in::

    result = generate_completion(cli, "zsh", program_name="mycli")
    print(result.script)
"""

from __future__ import annotations

from typing import Optional, Union

from cliform.completion.extractor import extract_completion_data
from cliform.completion.generators.base import ScriptGenerator
from cliform.completion.generators.bash import BashGenerator
from cliform.completion.generators.fish import FishGenerator
from cliform.completion.generators.zsh import ZshGenerator
from cliform.exceptions import InvalidUsageError, UnsupportedShellError
from cliform.models import CompletionResult, ShellType
from cliform.schema.command import Command

GENERATORS: dict[str, type[ScriptGenerator]] = {
    ShellType.BASH.value: BashGenerator,
    ShellType.ZSH.value: ZshGenerator,
    ShellType.FISH.value: FishGenerator,
}


def get_supported_shells() -> list[str]:
    return list(GENERATORS)


def get_generator(shell: Union[str, ShellType], include_descriptions: bool = True) -> ScriptGenerator:
    """Instantiate the generator for *shell*.

    Raises:
        UnsupportedShellError: If no generator exists for *shell*.
    """
    name = shell.value if isinstance(shell, ShellType) else shell
    try:
        generator_cls = GENERATORS[name]
    except KeyError:
        raise UnsupportedShellError(name, get_supported_shells()) from None
    return generator_cls(include_descriptions=include_descriptions)


def generate_completion(
    command: Command,
    shell: Union[str, ShellType],
    program_name: Optional[str] = None,
    include_descriptions: bool = True,
) -> CompletionResult:
    """Generate the static completion script for *command*.

    Args:
        command: Root of the command tree.
        shell: ``bash``, ``zsh`` or ``fish``.
        program_name: Name the shell completes; defaults to ``command.name``.
        include_descriptions: Render descriptions where the shell shows them.

    Raises:
        UnsupportedShellError: For an unknown shell.
        InvalidUsageError: If no program name is given or known.
        CompletionConfigError: If any command has an invalid positional layout.
        SchemaError: If any argument model is malformed.
    """
    generator = get_generator(shell, include_descriptions=include_descriptions)
    name = program_name or command.name
    if not name:
        raise InvalidUsageError("A program name is required to generate completion")

    data = extract_completion_data(command, name)
    return CompletionResult(
        script=generator.generate(data),
        shell=generator.shell,
        install_instructions=generator.install_instructions(name),
    )


__all__ = [
    "BashGenerator",
    "FishGenerator",
    "GENERATORS",
    "ScriptGenerator",
    "ZshGenerator",
    "generate_completion",
    "get_generator",
    "get_supported_shells",
]
