"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~cliform.exceptions.CliformError` subclass.

Example::

    $ mycli completion tcsh
    $ echo $?
    2   # EXIT_INVALID_USAGE -- unsupported shell
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or an unsupported shell."""

EXIT_SCHEMA_ERROR = 3
"""A command's argument schema is malformed (duplicate flags, bad alias)."""

EXIT_COMPLETION_CONFIG_ERROR = 4
"""A command's positional arguments cannot be completed as declared."""

EXIT_INTERRUPTED = 130
"""The process was interrupted with Ctrl-C."""
