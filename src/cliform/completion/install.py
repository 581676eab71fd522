"""Write a completion script where the target shell loads it from.

Default locations:

* **bash**: ``$XDG_DATA_HOME/bash-completion/completions/<prog>``
  (picked up by bash-completion on demand)
* **zsh**: ``~/.zfunc/_<prog>`` (needs ``~/.zfunc`` on ``$fpath``)
* **fish**: ``$XDG_CONFIG_HOME/fish/completions/<prog>.fish``
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from cliform.config import atomic_write, xdg_config_home, xdg_data_home
from cliform.exceptions import UnsupportedShellError
from cliform.models import ShellType


def default_install_path(shell: str, program_name: str) -> Path:
    """Return where *shell* looks for *program_name*'s completion script.

    Raises:
        UnsupportedShellError: For shells other than bash, zsh and fish.
    """
    if shell == ShellType.BASH.value:
        return xdg_data_home() / "bash-completion" / "completions" / program_name
    if shell == ShellType.ZSH.value:
        return Path.home() / ".zfunc" / f"_{program_name}"
    if shell == ShellType.FISH.value:
        return xdg_config_home() / "fish" / "completions" / f"{program_name}.fish"
    raise UnsupportedShellError(shell, [s.value for s in ShellType])


def install_completion(
    shell: str,
    program_name: str,
    script: str,
    path: Optional[Path] = None,
) -> Path:
    """Atomically write *script* to *path* (or the shell's default location).

    Returns:
        The path written.
    """
    target = path or default_install_path(shell, program_name)
    atomic_write(target, script if script.endswith("\n") else script + "\n")
    return target


def activation_hint(shell: str) -> str:
    """One line telling the user how to activate a freshly installed script."""
    if shell == ShellType.BASH.value:
        return "Restart your shell (requires the bash-completion package)."
    if shell == ShellType.ZSH.value:
        return "Add to .zshrc: fpath+=~/.zfunc && autoload -Uz compinit && compinit"
    return "Restart your shell to activate completions."
