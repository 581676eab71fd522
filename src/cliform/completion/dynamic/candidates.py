"""Turn a :class:`~cliform.completion.dynamic.context.CompletionContext` into candidates.

The result is an ordered candidate list plus a
:class:`~cliform.models.CompletionDirective` telling the shell stub what to
do with it. Value-completion failures (missing directory, failing or slow
shell command) yield zero candidates and are only logged at debug level.
"""

from __future__ import annotations

import fnmatch
import logging
import os
import subprocess
from typing import Callable, Optional

from cliform.completion.dynamic.context import CompletionContext
from cliform.completion.generators.base import HELP_DESCRIPTION
from cliform.models import (
    CandidateKind,
    CandidateResult,
    ChoicesCompletion,
    CompletionCandidate,
    CompletionDirective,
    CompletionType,
    DirectoryCompletion,
    FieldType,
    FileCompletion,
    NoCompletion,
    OpaqueSubcommand,
    ShellCommandCompletion,
    ValueCompletion,
)
from cliform.schema.command import resolve_subcommand

logger = logging.getLogger(__name__)

DEFAULT_SHELL_COMMAND_TIMEOUT = 3.0


def generate_candidates(
    context: CompletionContext,
    timeout: float = DEFAULT_SHELL_COMMAND_TIMEOUT,
) -> CandidateResult:
    """Produce the candidates for *context*.

    Args:
        context: Parsed completion state.
        timeout: Seconds a shell-command completion may run.
    """
    handlers: dict[CompletionType, Callable[[CompletionContext, float], CandidateResult]] = {
        CompletionType.SUBCOMMAND: _subcommand_candidates,
        CompletionType.OPTION_NAME: _option_name_candidates,
        CompletionType.OPTION_VALUE: _option_value_candidates,
        CompletionType.POSITIONAL: _positional_candidates,
    }
    return handlers[context.completion_type](context, timeout)


def _subcommand_candidates(context: CompletionContext, timeout: float) -> CandidateResult:
    candidates = []
    for name in context.subcommands:
        entry = context.current_command.subcommands[name]
        resolved = resolve_subcommand(entry)
        if resolved is None:
            description = OpaqueSubcommand(name=name).description
        else:
            description = resolved.description
        candidates.append(
            CompletionCandidate(value=name, description=description, kind=CandidateKind.SUBCOMMAND)
        )

    if not candidates or context.current_word.startswith("-"):
        candidates.extend(_option_name_candidates(context, timeout).candidates)

    return CandidateResult(candidates=candidates, directive=CompletionDirective.FILTER_PREFIX)


def _option_name_candidates(context: CompletionContext, timeout: float) -> CandidateResult:
    used = context.used_options
    candidates = []
    for option in context.options:
        if option.value_type != FieldType.ARRAY:
            if option.cli_name in used or (option.alias and option.alias in used):
                continue
        candidates.append(
            CompletionCandidate(
                value=f"--{option.cli_name}",
                description=option.description,
                kind=CandidateKind.OPTION,
            )
        )
    declared = {o.cli_name for o in context.options}
    if "help" not in used and "help" not in declared:
        candidates.append(
            CompletionCandidate(
                value="--help", description=HELP_DESCRIPTION, kind=CandidateKind.OPTION
            )
        )
    return CandidateResult(candidates=candidates, directive=CompletionDirective.FILTER_PREFIX)


def _option_value_candidates(context: CompletionContext, timeout: float) -> CandidateResult:
    option = context.target_option
    if option is None:
        return CandidateResult(directive=CompletionDirective.FILTER_PREFIX)
    return value_candidates(option.value_completion, context.current_word, timeout)


def _positional_candidates(context: CompletionContext, timeout: float) -> CandidateResult:
    index = context.positional_index
    if index is None or index >= len(context.positionals):
        return CandidateResult(directive=CompletionDirective.FILTER_PREFIX)
    positional = context.positionals[index]
    return value_candidates(
        positional.value_completion,
        context.current_word,
        timeout,
        description=positional.description,
    )


def value_candidates(
    completion: Optional[ValueCompletion],
    current_word: str,
    timeout: float = DEFAULT_SHELL_COMMAND_TIMEOUT,
    description: Optional[str] = None,
) -> CandidateResult:
    """Candidates for one value slot.

    A slot without a declared completion takes any value, so the shell's
    file completion is requested, the same as in the static scripts.
    """
    if completion is None:
        return CandidateResult(directive=CompletionDirective.FILE_COMPLETION)

    if isinstance(completion, ChoicesCompletion):
        return CandidateResult(
            candidates=[
                CompletionCandidate(value=v, description=description) for v in completion.values
            ],
            directive=CompletionDirective.FILTER_PREFIX | CompletionDirective.KEEP_ORDER,
        )

    if isinstance(completion, FileCompletion):
        if not completion.is_filtered:
            return CandidateResult(directive=CompletionDirective.FILE_COMPLETION)
        return CandidateResult(
            candidates=list_matching_files(current_word, completion.extensions, completion.matchers),
            directive=CompletionDirective.FILTER_PREFIX,
        )

    if isinstance(completion, DirectoryCompletion):
        return CandidateResult(directive=CompletionDirective.DIRECTORY_COMPLETION)

    if isinstance(completion, ShellCommandCompletion):
        return CandidateResult(
            candidates=[
                CompletionCandidate(value=line)
                for line in run_shell_command(completion.command, timeout)
            ],
            directive=CompletionDirective.FILTER_PREFIX,
        )

    if isinstance(completion, NoCompletion):
        return CandidateResult(directive=CompletionDirective.NO_FILE_COMPLETION)

    return CandidateResult()


# ---------------------------------------------------------------------------
# Value sources
# ---------------------------------------------------------------------------


def list_matching_files(
    current_word: str,
    extensions: list[str],
    matchers: list[str],
) -> list[CompletionCandidate]:
    """List the directory *current_word* points into.

    Files are kept when their extension is in *extensions* or their name
    matches one of *matchers*; directories are always kept, with a trailing
    ``/``. Entries are sorted by name. An unreadable or missing directory
    yields an empty list.
    """
    wanted = {ext.strip().lstrip(".") for ext in extensions if ext.strip().lstrip(".")}
    base = current_word[: current_word.rfind("/") + 1]
    directory = base or "."

    try:
        with os.scandir(directory) as entries:
            listing = sorted(entries, key=lambda e: e.name)
    except OSError as exc:
        logger.debug("Cannot list %s for completion: %s", directory, exc)
        return []

    candidates = []
    for entry in listing:
        try:
            is_dir = entry.is_dir()
        except OSError:
            continue
        if is_dir:
            candidates.append(
                CompletionCandidate(value=f"{base}{entry.name}/", kind=CandidateKind.DIRECTORY)
            )
            continue
        _, dot, ext = entry.name.rpartition(".")
        if (dot and ext in wanted) or any(fnmatch.fnmatchcase(entry.name, m) for m in matchers):
            candidates.append(
                CompletionCandidate(value=f"{base}{entry.name}", kind=CandidateKind.FILE)
            )
    return candidates


def run_shell_command(command: str, timeout: float = DEFAULT_SHELL_COMMAND_TIMEOUT) -> list[str]:
    """Run *command* through the shell and return its trimmed, non-empty output lines.

    A timeout, a non-zero exit status or an OS error returns ``[]``.
    """
    try:
        result = subprocess.run(
            command,
            shell=True,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except subprocess.TimeoutExpired:
        logger.debug("Completion command timed out after %ss: %s", timeout, command)
        return []
    except OSError as exc:
        logger.debug("Completion command failed to start: %s (%s)", command, exc)
        return []

    if result.returncode != 0:
        logger.debug("Completion command exited with %d: %s", result.returncode, command)
        return []

    return [line.strip() for line in result.stdout.splitlines() if line.strip()]
