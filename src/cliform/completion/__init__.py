"""Shell completion for cliform command trees.

Two modes share one definition of what can be completed:

* **static** -- :func:`generate_completion` compiles the tree into a
  self-contained bash, zsh or fish script.
* **dynamic** -- :func:`generate_dynamic_script` emits a small stub that
  asks the program itself through the hidden ``__complete`` sub-command.

:func:`with_completion_command` wires both into a program as a
``completion`` sub-command.
"""

from cliform.completion.builtin import (
    create_completion_command,
    detect_shell,
    with_completion_command,
)
from cliform.completion.dynamic import (
    CompletionContext,
    create_dynamic_complete_command,
    format_candidates,
    generate_candidates,
    generate_dynamic_script,
    has_complete_command,
    parse_completion_context,
)
from cliform.completion.extractor import (
    extract_completion_data,
    extract_positionals,
)
from cliform.completion.generators import (
    generate_completion,
    get_supported_shells,
)
from cliform.completion.install import default_install_path, install_completion
from cliform.completion.value_completion import resolve_value_completion

__all__ = [
    "CompletionContext",
    "create_completion_command",
    "create_dynamic_complete_command",
    "default_install_path",
    "detect_shell",
    "extract_completion_data",
    "extract_positionals",
    "format_candidates",
    "generate_candidates",
    "generate_completion",
    "generate_dynamic_script",
    "get_supported_shells",
    "has_complete_command",
    "install_completion",
    "parse_completion_context",
    "resolve_value_completion",
    "with_completion_command",
]
