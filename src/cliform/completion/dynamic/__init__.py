"""Runtime completion: the program answers ``__complete`` queries itself.

Pipeline for one TAB press::

    words -> parse_completion_context -> generate_candidates -> format_candidates
"""

from cliform.completion.dynamic.candidates import generate_candidates
from cliform.completion.dynamic.command import (
    COMPLETE_COMMAND_NAME,
    complete,
    create_dynamic_complete_command,
    has_complete_command,
)
from cliform.completion.dynamic.context import CompletionContext, parse_completion_context
from cliform.completion.dynamic.formatter import format_candidates
from cliform.completion.dynamic.stubs import generate_dynamic_script

__all__ = [
    "COMPLETE_COMMAND_NAME",
    "CompletionContext",
    "complete",
    "create_dynamic_complete_command",
    "format_candidates",
    "generate_candidates",
    "generate_dynamic_script",
    "has_complete_command",
    "parse_completion_context",
]
