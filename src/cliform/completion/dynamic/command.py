"""The hidden ``__complete`` sub-command.

Usage, as issued by the shell stubs::

    mycli __complete --shell bash -- build --fo
    mycli __complete -- deploy --env ""

The output is the line protocol described in
:mod:`cliform.completion.dynamic.formatter`. Errors never produce a
traceback: the response is an empty candidate list with the ``ERROR`` bit.
"""

from __future__ import annotations

import logging
from typing import Annotated, Literal, Optional

from pydantic import BaseModel, Field

from cliform.completion.dynamic.candidates import generate_candidates
from cliform.completion.dynamic.context import parse_completion_context
from cliform.completion.dynamic.formatter import format_candidates
from cliform.config import resolve_config
from cliform.exceptions import CliformError, ConfigError
from cliform.models import CandidateResult, CompletionConfig, CompletionDirective
from cliform.output import print_data
from cliform.schema.args import Arg
from cliform.schema.command import Command

logger = logging.getLogger(__name__)

COMPLETE_COMMAND_NAME = "__complete"


class CompleteArgs(BaseModel):
    shell: Annotated[
        Optional[Literal["bash", "zsh", "fish"]],
        Arg(description="Target shell for output formatting"),
    ] = None
    args: Annotated[
        list[str],
        Arg(positional=True, description="Words typed so far, the current one last"),
    ] = Field(default_factory=list)


def create_dynamic_complete_command(root: Command) -> Command:
    """Return the ``__complete`` command answering for *root*'s tree."""

    def run(args: CompleteArgs) -> None:
        print_data(complete(root, args.args, shell=args.shell))

    return Command(name=COMPLETE_COMMAND_NAME, args=CompleteArgs, run=run)


def complete(root: Command, words: list[str], shell: Optional[str] = None) -> str:
    """Answer one completion request and return the formatted response."""
    config = _completion_config()
    try:
        context = parse_completion_context(words, root)
        result = generate_candidates(context, timeout=config.shell_command_timeout)
    except CliformError as exc:
        logger.debug("Completion failed for %r: %s", words, exc)
        return format_candidates(CandidateResult(directive=CompletionDirective.ERROR), shell=shell)

    return format_candidates(
        result,
        shell=shell,
        current_word=context.current_word,
        inline_prefix=context.inline_prefix,
        include_descriptions=config.include_descriptions,
    )


def has_complete_command(command: Command) -> bool:
    return COMPLETE_COMMAND_NAME in command.subcommands


def _completion_config() -> CompletionConfig:
    try:
        return resolve_config().completion
    except ConfigError as exc:
        logger.debug("Ignoring invalid configuration during completion: %s", exc)
        return CompletionConfig()
