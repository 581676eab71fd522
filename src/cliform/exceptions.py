"""Exception hierarchy for cliform.

All exceptions inherit from :class:`CliformError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`cliform.exit_codes`.
:func:`cliform.runner.run_main` and :func:`cliform.app.main` catch
``CliformError`` and exit with the appropriate code, while unexpected
exceptions produce a crash log and exit with :data:`EXIT_GENERIC_FAILURE`.

Subclass hierarchy::

    CliformError (exit 1)
    +-- InvalidUsageError          (exit 2)
    |   +-- UnsupportedShellError  (exit 2)
    |   +-- TargetLoadError        (exit 2)
    +-- SchemaError                (exit 3)
    +-- CompletionConfigError      (exit 4)
    +-- ConfigError                (exit 1)
"""

from __future__ import annotations

from typing import Sequence

from cliform.exit_codes import (
    EXIT_COMPLETION_CONFIG_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_SCHEMA_ERROR,
)


class CliformError(Exception):
    """Base exception for all cliform errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`cliform.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(CliformError):
    """Raised for invalid CLI arguments or missing required parameters."""

    exit_code = EXIT_INVALID_USAGE


class UnsupportedShellError(InvalidUsageError):
    """Raised when completion is requested for a shell cliform cannot target.

    Args:
        shell: The shell name that was requested.
        supported: The shell names that are available.
    """

    def __init__(self, shell: str, supported: Sequence[str]):
        self.shell = shell
        self.supported = list(supported)
        super().__init__(
            f"Unsupported shell: {shell}. Supported shells: {', '.join(self.supported)}"
        )


class TargetLoadError(InvalidUsageError):
    """Raised when a ``module:attribute`` target cannot be imported or is not a command."""


class SchemaError(CliformError):
    """Raised when a command's argument model cannot be turned into CLI flags."""

    exit_code = EXIT_SCHEMA_ERROR


class CompletionConfigError(CliformError):
    """Raised for positional layouts that completion cannot model.

    A required positional after an optional one, or any positional after a
    variadic one, aborts extraction for the whole command tree.
    """

    exit_code = EXIT_COMPLETION_CONFIG_ERROR


class ConfigError(CliformError):
    """Raised for configuration problems (invalid JSON, bad values)."""

    exit_code = EXIT_GENERIC_FAILURE
