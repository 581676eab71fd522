"""Tests for cliform.completion.dynamic.formatter and the directive wire form.

Covers:
- Generic lines: value or value<TAB>description, then :<directive>
- No trailing newline
- Descriptions collapsed to one line, or dropped
- bash: values only, filtered by prefix when FILTER_PREFIX is set
- zsh: value:description with colons escaped
- fish: inline option prefix carried on every value
- Directive bit values and wire round-trip
"""

from __future__ import annotations

import pytest

from cliform.completion.dynamic import format_candidates
from cliform.models import CandidateResult, CompletionCandidate, CompletionDirective

D = CompletionDirective


def _result(*pairs: tuple[str, str | None], directive: CompletionDirective = D.FILTER_PREFIX):
    return CandidateResult(
        candidates=[CompletionCandidate(value=v, description=d) for v, d in pairs],
        directive=directive,
    )


class TestGeneric:
    def test_lines_and_directive(self) -> None:
        out = format_candidates(_result(("deploy", "Deploy it"), ("build", None)))
        assert out == "deploy\tDeploy it\nbuild\n:4"

    def test_empty(self) -> None:
        assert format_candidates(CandidateResult()) == ":0"

    def test_multiline_description_collapsed(self) -> None:
        out = format_candidates(_result(("x", "first\n  second\tthird")))
        assert out.split("\n")[0] == "x\tfirst second third"

    def test_descriptions_dropped(self) -> None:
        out = format_candidates(_result(("x", "desc")), include_descriptions=False)
        assert out == "x\n:4"

    def test_directive_is_last_line(self) -> None:
        out = format_candidates(_result(("a", None), directive=D.FILTER_PREFIX | D.KEEP_ORDER))
        last = out.split("\n")[-1]
        assert last == ":12"
        assert D.from_wire(int(last[1:])) == D.FILTER_PREFIX | D.KEEP_ORDER


class TestBash:
    def test_prefix_filter(self) -> None:
        out = format_candidates(
            _result(("staging", None), ("prod", "x")), shell="bash", current_word="st"
        )
        assert out == "staging\n:4"

    def test_no_filter_without_bit(self) -> None:
        out = format_candidates(
            _result(("a", None), ("b", None), directive=D.DEFAULT), shell="bash", current_word="a"
        )
        assert out == "a\nb\n:0"


class TestZsh:
    def test_colons_escaped(self) -> None:
        out = format_candidates(_result(("db:migrate", "Run: migrations")), shell="zsh")
        assert out == "db\\:migrate:Run\\: migrations\n:4"

    def test_without_description(self) -> None:
        assert format_candidates(_result(("a", None)), shell="zsh") == "a\n:4"


class TestFish:
    def test_inline_prefix(self) -> None:
        out = format_candidates(
            _result(("dev", None), ("prod", "Production")),
            shell="fish",
            inline_prefix="--env=",
        )
        assert out == "--env=dev\n--env=prod\tProduction\n:4"


class TestDirectiveWire:
    @pytest.mark.parametrize(
        "member,value",
        [
            (D.DEFAULT, 0),
            (D.NO_SPACE, 1),
            (D.NO_FILE_COMPLETION, 2),
            (D.FILTER_PREFIX, 4),
            (D.KEEP_ORDER, 8),
            (D.FILE_COMPLETION, 16),
            (D.DIRECTORY_COMPLETION, 32),
            (D.ERROR, 64),
        ],
    )
    def test_bits(self, member: CompletionDirective, value: int) -> None:
        assert member.to_wire() == value
        assert D.from_wire(value) == member

    def test_combination(self) -> None:
        combined = D.NO_SPACE | D.FILE_COMPLETION
        assert combined.to_wire() == 17
        assert D.FILE_COMPLETION in D.from_wire(17)
