"""Configuration management with XDG paths, atomic writes, and precedence resolution.

This module handles the small amount of persistent state cliform keeps:

* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.cliform/`` on macOS and Windows. See :func:`get_config_dir` and
  :func:`get_data_dir`.
* **Global config** -- A single :class:`~cliform.models.GlobalConfig`
  JSON file holding completion and output defaults.
* **Precedence resolution** -- :func:`resolve_config` layers environment
  variables over the config file over built-in defaults.

All file writes use an atomic temp-file-then-rename strategy
(:func:`atomic_write`), which the completion installer reuses for scripts.
"""

from __future__ import annotations

import json
import os
import platform
import tempfile
from pathlib import Path
from typing import Optional

from cliform.exceptions import ConfigError
from cliform.models import GlobalConfig

_APP_NAME = "cliform"
_CONFIG_FILENAME = "config.json"

ENV_SHELL_COMMAND_TIMEOUT = "CLIFORM_SHELL_COMMAND_TIMEOUT"
ENV_NO_DESCRIPTIONS = "CLIFORM_NO_DESCRIPTIONS"


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _fallback_base_dir() -> Path:
    """Fallback base directory for non-XDG platforms (macOS, Windows)."""
    return Path.home() / f".{_APP_NAME}"


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_config_dir() -> Path:
    """Return the configuration directory, creating it if necessary.

    On Linux/BSD: ``$XDG_CONFIG_HOME/cliform/`` (default ``~/.config/cliform/``).
    On macOS/Windows: ``~/.cliform/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_CONFIG_HOME", (".config",)) / _APP_NAME
    else:
        path = _fallback_base_dir()
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/cliform/`` (default ``~/.local/share/cliform/``).
    On macOS/Windows: ``~/.cliform/logs/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = _fallback_base_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def xdg_data_home() -> Path:
    """Return ``$XDG_DATA_HOME`` (default ``~/.local/share``) without the app segment."""
    return _xdg_base("XDG_DATA_HOME", (".local", "share"))


def xdg_config_home() -> Path:
    """Return ``$XDG_CONFIG_HOME`` (default ``~/.config``) without the app segment."""
    return _xdg_base("XDG_CONFIG_HOME", (".config",))


# --- Atomic file writes ---


def atomic_write(path: Path, data: str) -> None:
    """Write data to file atomically using temp file + rename.

    The temporary file is created in the same directory as *path* so that
    ``os.replace`` is an atomic rename on POSIX systems. On any failure the
    temp file is cleaned up and the exception propagates.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    fd = None
    tmp_path: Optional[str] = None
    try:
        fd = tempfile.NamedTemporaryFile(
            mode="w",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
            encoding="utf-8",
        )
        tmp_path = fd.name
        fd.write(data)
        fd.flush()
        os.fsync(fd.fileno())
        fd.close()
        fd = None
        os.replace(tmp_path, path)
    except BaseException:
        if fd is not None:
            fd.close()
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except OSError:
                pass
        raise


# --- Global config ---


def _global_config_path() -> Path:
    """Path to the global config file."""
    return get_config_dir() / _CONFIG_FILENAME


def load_global_config() -> GlobalConfig:
    """Load the global configuration from the XDG config directory.

    Returns:
        The deserialised :class:`~cliform.models.GlobalConfig`, or a default
        instance when the file does not exist.

    Raises:
        ConfigError: If the file exists but contains invalid JSON or fails
            Pydantic validation.
    """
    path = _global_config_path()
    if not path.is_file():
        return GlobalConfig()
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
        return GlobalConfig.model_validate(data)
    except (json.JSONDecodeError, ValueError) as exc:
        raise ConfigError(f"Invalid global config at {path}: {exc}") from exc


def save_global_config(config: GlobalConfig) -> None:
    """Persist the global configuration atomically to disk."""
    data = config.model_dump(mode="json")
    atomic_write(_global_config_path(), json.dumps(data, indent=2) + "\n")


# --- Precedence resolution ---


def resolve_config(cli_format: Optional[str] = None) -> GlobalConfig:
    """Resolve the effective configuration.

    Precedence (high to low):
        1. CLI flags (``cli_format``)
        2. Environment variables (``CLIFORM_SHELL_COMMAND_TIMEOUT``,
           ``CLIFORM_NO_DESCRIPTIONS``)
        3. User config (``~/.config/cliform/config.json``)
        4. Defaults

    Raises:
        ConfigError: If the config file or an environment override is invalid.
    """
    config = load_global_config()

    env_timeout = os.environ.get(ENV_SHELL_COMMAND_TIMEOUT)
    if env_timeout:
        try:
            timeout = float(env_timeout)
        except ValueError as exc:
            raise ConfigError(
                f"{ENV_SHELL_COMMAND_TIMEOUT} must be a number of seconds, got {env_timeout!r}"
            ) from exc
        if timeout <= 0:
            raise ConfigError(f"{ENV_SHELL_COMMAND_TIMEOUT} must be positive, got {env_timeout!r}")
        config.completion.shell_command_timeout = timeout

    if os.environ.get(ENV_NO_DESCRIPTIONS):
        config.completion.include_descriptions = False

    if cli_format is not None:
        config.output.format = cli_format

    return config
