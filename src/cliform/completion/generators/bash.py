"""Bash completion script generator.

The script registers ``_<prog>_completions`` with ``complete -o default -F``.
Words that bash split on ``=`` (it is in ``COMP_WORDBREAKS``) are joined back
before scanning. Replies for an inline ``--opt=value`` only carry the
``--opt=`` prefix when bash did not split the word.
"""

from __future__ import annotations

import shlex

from cliform.completion.generators.base import (
    Node,
    ScriptGenerator,
    children_table,
    indent,
    positional_branches,
    sanitize_identifier,
    takes_value_table,
    value_options,
)
from cliform.models import ShellType

_GLOB_CHARS = set("*?[]!")
_PLAIN_CHARS = set("._-/+,:@%")


def _bash_pattern(pattern: str) -> str:
    """Escape *pattern* for ``[[ x == pattern ]]`` keeping its glob characters."""
    out = []
    for ch in pattern:
        if ch.isalnum() or ch in _GLOB_CHARS or ch in _PLAIN_CHARS:
            out.append(ch)
        else:
            out.append(f"\\{ch}")
    return "".join(out)


class BashGenerator(ScriptGenerator):
    shell = ShellType.BASH

    def render(self, program_name: str, nodes: list[Node]) -> str:
        fn = sanitize_identifier(program_name)
        lines = [
            f"# Bash completion for {program_name}",
            "# Generated by cliform",
            "",
        ]
        lines += self._helpers(fn, nodes)
        for node in nodes:
            lines += self._options_function(fn, node)
            lines += self._handler_function(fn, node)
        lines += self._main_function(fn, nodes)
        lines.append(f"complete -o default -F _{fn}_completions {shlex.quote(program_name)}")
        return "\n".join(lines) + "\n"

    def install_instructions(self, program_name: str, dynamic: bool = False) -> str:
        invocation = self.invocation(program_name, dynamic)
        return "\n".join(
            [
                "# Add to ~/.bashrc:",
                f'eval "$({invocation})"',
                "",
                "# Or save it where bash-completion looks for it:",
                f"{invocation} > "
                f"~/.local/share/bash-completion/completions/{program_name}",
            ]
        )

    # ------------------------------------------------------------------ #
    # Emitters
    # ------------------------------------------------------------------ #

    def emit_choices(self, values: list[str], inline: bool) -> list[str]:
        quoted = " ".join(shlex.quote(v) for v in values)
        return [
            "local _c",
            f"for _c in {quoted}; do",
            '    [[ "$_c" == "$_cur"* ]] && COMPREPLY+=("${_reply_prefix}${_c}")',
            "done",
            "compopt +o default 2>/dev/null",
        ]

    def emit_file(self, extensions: list[str], matchers: list[str], inline: bool) -> list[str]:
        patterns = self.file_patterns(extensions, matchers)
        if not patterns:
            return [
                "local _f",
                "while IFS= read -r _f; do",
                '    COMPREPLY+=("${_reply_prefix}${_f}")',
                'done < <(compgen -f -- "$_cur")',
                "compopt -o filenames 2>/dev/null",
            ]
        test = " || ".join(f'"$_base" == {_bash_pattern(p)}' for p in patterns)
        return [
            "local _f _base",
            "while IFS= read -r _f; do",
            '    _base="${_f##*/}"',
            '    if [[ -d "$_f" ]]; then',
            '        COMPREPLY+=("${_reply_prefix}${_f%/}/")',
            f"    elif [[ {test} ]]; then",
            '        COMPREPLY+=("${_reply_prefix}${_f}")',
            "    fi",
            'done < <(compgen -f -- "$_cur")',
            "compopt -o filenames 2>/dev/null",
            "compopt +o default 2>/dev/null",
        ]

    def emit_directory(self, inline: bool) -> list[str]:
        return [
            "local _d",
            "while IFS= read -r _d; do",
            '    COMPREPLY+=("${_reply_prefix}${_d}")',
            'done < <(compgen -d -- "$_cur")',
            "compopt -o filenames 2>/dev/null",
            "compopt +o default 2>/dev/null",
        ]

    def emit_shell_command(self, command: str, inline: bool) -> list[str]:
        return [
            "local _l",
            "while IFS= read -r _l; do",
            '    _l="${_l#"${_l%%[![:space:]]*}"}"',
            '    _l="${_l%"${_l##*[![:space:]]}"}"',
            '    [[ -n "$_l" && "$_l" == "$_cur"* ]] && COMPREPLY+=("${_reply_prefix}${_l}")',
            f"done < <(eval {shlex.quote(command)} 2>/dev/null)",
            "compopt +o default 2>/dev/null",
        ]

    def emit_none(self, inline: bool) -> list[str]:
        return ["compopt +o default 2>/dev/null"]

    # ------------------------------------------------------------------ #
    # Script sections
    # ------------------------------------------------------------------ #

    def _helpers(self, fn: str, nodes: list[Node]) -> list[str]:
        lines = [
            f"__{fn}_not_used() {{",
            "    local _u _chk",
            '    for _u in "${_used_opts[@]}"; do',
            '        for _chk in "$@"; do',
            '            [[ "$_u" == "$_chk" ]] && return 1',
            "        done",
            "    done",
            "    return 0",
            "}",
            "",
            f"__{fn}_opt_takes_value() {{",
            '    case "$1:$2" in',
        ]
        for key, spelling in takes_value_table(nodes):
            lines.append(f"        {shlex.quote(f'{key}:{spelling}')}) return 0 ;;")
        lines += [
            "        *) return 1 ;;",
            "    esac",
            "}",
            "",
            f"__{fn}_child() {{",
            '    REPLY=""',
            '    case "$1:$2" in',
        ]
        for parent, name, child_key in children_table(nodes):
            lines.append(
                f"        {shlex.quote(f'{parent}:{name}')}) REPLY={shlex.quote(child_key)} ;;"
            )
        lines += [
            "        *) return 1 ;;",
            "    esac",
            "    return 0",
            "}",
            "",
        ]
        return lines

    def _options_function(self, fn: str, node: Node) -> list[str]:
        body = ["local -a _avail=()"]
        declared = set()
        for option in node.command.options:
            declared.update(option.spellings)
            long_name = shlex.quote(f"--{option.cli_name}")
            if option.repeatable:
                body.append(f"_avail+=({long_name})")
            else:
                spellings = " ".join(shlex.quote(s) for s in option.spellings)
                body.append(f"__{fn}_not_used {spellings} && _avail+=({long_name})")
        if "--help" not in declared:
            body.append(f"__{fn}_not_used --help && _avail+=(--help)")
        body += [
            "local _o",
            'for _o in "${_avail[@]}"; do',
            '    [[ "$_o" == "$_cur"* ]] && COMPREPLY+=("$_o")',
            "done",
            "compopt +o default 2>/dev/null",
        ]
        return [f"__{fn}_options_{node.suffix}() {{", *indent(body), "}", ""]

    def _handler_function(self, fn: str, node: Node) -> list[str]:
        command = node.command
        key = shlex.quote(node.key)
        body: list[str] = []

        with_values = value_options(command)
        if with_values:
            body += [
                'if [[ -z "$_inline_prefix" ]] && (( ! _after_dd )); then',
                '    case "$_prev" in',
            ]
            for option in with_values:
                pattern = "|".join(shlex.quote(s) for s in option.spellings)
                body.append(f"        {pattern})")
                body += indent(self.value_lines(option.value_completion), 3)
                body += ["            return", "            ;;"]
            body += ["    esac", "fi"]
            body += [
                'if [[ -n "$_inline_prefix" ]]; then',
                '    case "${_inline_prefix%=}" in',
            ]
            for option in with_values:
                body.append(f"        {shlex.quote(option.spellings[0])})")
                body += indent(self.value_lines(option.value_completion, inline=True), 3)
                body += ["            return", "            ;;"]
            body += ["    esac", "fi"]

        if any(o.takes_value for o in command.options):
            body += [
                f'if [[ -z "$_inline_prefix" ]] && (( ! _after_dd )) && __{fn}_opt_takes_value {key} "$_prev"; then',
                *indent(self.fallback_file_lines()),
                "    return",
                "fi",
                f'if [[ -n "$_inline_prefix" ]] && __{fn}_opt_takes_value {key} "${{_inline_prefix%=}}"; then',
                *indent(self.fallback_file_lines(inline=True)),
                "    return",
                "fi",
            ]

        body += [
            "if (( _after_dd )); then",
            *indent(self._positional_chain(fn, node, after_dd=True)),
            "    return",
            "fi",
            'if [[ "$_cur" == -* ]]; then',
            f"    __{fn}_options_{node.suffix}",
            "    return",
            "fi",
        ]

        if node.children:
            names = " ".join(shlex.quote(name) for name, _, _ in node.children)
            body += [
                "local _sub",
                f"for _sub in {names}; do",
                '    [[ "$_sub" == "$_cur"* ]] && COMPREPLY+=("$_sub")',
                "done",
                "if (( ${#COMPREPLY[@]} > 0 )); then",
                "    compopt +o default 2>/dev/null",
                "    return",
                "fi",
            ]

        body += self._positional_chain(fn, node, after_dd=False)
        return [f"__{fn}_complete_{node.suffix}() {{", *indent(body), "}", ""]

    def _positional_chain(self, fn: str, node: Node, after_dd: bool) -> list[str]:
        fallback = ":" if after_dd else f"__{fn}_options_{node.suffix}"
        branches = positional_branches(node.command)
        if not branches:
            return [fallback]
        lines: list[str] = []
        for i, branch in enumerate(branches):
            op = ">=" if branch.variadic else "=="
            keyword = "if" if i == 0 else "elif"
            lines.append(f"{keyword} (( _pos_count {op} {branch.index} )); then")
            lines += indent(self.value_lines(branch.positional.value_completion) or [":"])
        lines += ["else", f"    {fallback}", "fi"]
        return lines

    def _main_function(self, fn: str, nodes: list[Node]) -> list[str]:
        lines = [
            f"_{fn}_completions() {{",
            "    COMPREPLY=()",
            "",
            "    # Join words that bash split on '='.",
            "    local -a _words=()",
            "    local _i=1",
            "    while (( _i <= COMP_CWORD )); do",
            '        if [[ "${COMP_WORDS[_i]}" == "=" ]] && (( ${#_words[@]} > 0 )); then',
            '            _words[${#_words[@]}-1]+="=${COMP_WORDS[_i+1]:-}"',
            "            (( _i += 2 ))",
            "        else",
            '            _words+=("${COMP_WORDS[_i]}")',
            "            (( _i += 1 ))",
            "        fi",
            "    done",
            "",
            '    local _cur="${_words[${#_words[@]}-1]}"',
            '    local _inline_prefix="" _reply_prefix=""',
            '    if [[ "$_cur" == --*=* ]]; then',
            '        _inline_prefix="${_cur%%=*}="',
            '        _cur="${_cur#*=}"',
            '        [[ "${COMP_WORDS[COMP_CWORD]}" == --*=* ]] && _reply_prefix="$_inline_prefix"',
            "    fi",
            '    local _prev=""',
            '    (( ${#_words[@]} > 1 )) && _prev="${_words[${#_words[@]}-2]}"',
            "",
            '    local _path="" _w REPLY',
            "    local _after_dd=0 _pos_count=0 _skip_next=0 _j=0",
            "    local -a _used_opts=()",
            "    while (( _j < ${#_words[@]} - 1 )); do",
            '        _w="${_words[_j]}"',
            "        (( _j += 1 ))",
            "        if (( _skip_next )); then",
            "            _skip_next=0",
            "            continue",
            "        fi",
            '        if (( ! _after_dd )) && [[ "$_w" == "--" ]]; then',
            "            _after_dd=1",
            "            continue",
            "        fi",
            "        if (( _after_dd )); then",
            "            (( _pos_count += 1 ))",
            "            continue",
            "        fi",
            '        if [[ "$_w" == --*=* ]]; then',
            '            _used_opts+=("${_w%%=*}")',
            "            continue",
            "        fi",
            '        if [[ "$_w" == -* && "$_w" != "-" ]]; then',
            '            _used_opts+=("$_w")',
            f'            __{fn}_opt_takes_value "$_path" "$_w" && _skip_next=1',
            "            continue",
            "        fi",
            f'        if __{fn}_child "$_path" "$_w"; then',
            '            _path="$REPLY"',
            "            _used_opts=()",
            "            _pos_count=0",
            "            continue",
            "        fi",
            "        (( _pos_count += 1 ))",
            "    done",
            "",
            '    case "$_path" in',
        ]
        for node in nodes:
            lines.append(f"        {shlex.quote(node.key)}) __{fn}_complete_{node.suffix} ;;")
        lines += [
            "    esac",
            "}",
            "",
        ]
        return lines
