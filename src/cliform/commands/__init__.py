"""Sub-commands of the ``cliform`` tool.

* :mod:`~cliform.commands.generate` -- write a completion script for a
  program's command tree.
* :mod:`~cliform.commands.inspect` -- show what the completion engine sees
  in a command tree.

Both take a ``package.module:attribute`` target resolved by
:func:`~cliform.loader.load_command_target`, and each module exports a plain
callback registered directly on the root app.
"""
