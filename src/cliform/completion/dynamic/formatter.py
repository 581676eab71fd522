"""Serialize a :class:`~cliform.models.CandidateResult` for the wire.

The generic protocol is one candidate per line, ``value`` or
``value<TAB>description``, followed by ``:<directive>``. The shell stubs ask
for a shell-specific variant so their parsing stays trivial:

========  ==============================================================
``bash``  values only, already filtered by the current word's prefix
``zsh``   ``value:description`` for ``_describe``, colons escaped
``fish``  ``value<TAB>description``, values carry any ``--opt=`` prefix
========  ==============================================================
"""

from __future__ import annotations

from typing import Optional

from cliform.models import CandidateResult, CompletionCandidate, CompletionDirective


def format_candidates(
    result: CandidateResult,
    shell: Optional[str] = None,
    current_word: str = "",
    inline_prefix: Optional[str] = None,
    include_descriptions: bool = True,
) -> str:
    """Render *result* as protocol text (without a trailing newline).

    Args:
        result: Candidates and directive to render.
        shell: ``bash``, ``zsh``, ``fish``, or ``None`` for the generic form.
        current_word: The word being completed, used by the bash prefix filter.
        inline_prefix: ``--opt=`` when completing an inline option value.
        include_descriptions: Drop descriptions when false.
    """
    candidates = result.candidates
    if shell == "bash":
        lines = [c.value for c in _filtered(result, current_word)]
    elif shell == "zsh":
        lines = [_zsh_line(c, include_descriptions) for c in candidates]
    elif shell == "fish":
        prefix = inline_prefix or ""
        lines = [_tab_line(c, include_descriptions, prefix) for c in candidates]
    else:
        lines = [_tab_line(c, include_descriptions) for c in candidates]

    lines.append(f":{result.directive.to_wire()}")
    return "\n".join(lines)


def _filtered(result: CandidateResult, prefix: str) -> list[CompletionCandidate]:
    if not prefix or CompletionDirective.FILTER_PREFIX not in result.directive:
        return list(result.candidates)
    return [c for c in result.candidates if c.value.startswith(prefix)]


def _clean(text: Optional[str], include: bool) -> Optional[str]:
    if not include or not text:
        return None
    return " ".join(text.split())


def _tab_line(candidate: CompletionCandidate, include: bool, prefix: str = "") -> str:
    description = _clean(candidate.description, include)
    value = f"{prefix}{candidate.value}"
    return f"{value}\t{description}" if description else value


def _zsh_line(candidate: CompletionCandidate, include: bool) -> str:
    value = _escape_colons(candidate.value)
    description = _clean(candidate.description, include)
    if description:
        return f"{value}:{_escape_colons(description)}"
    return value


def _escape_colons(text: str) -> str:
    return text.replace(":", "\\:")
