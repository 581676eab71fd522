"""Zsh completion script generator.

The script works both ways zsh loads completions: sourced (it calls
``compdef``) and autoloaded from ``$fpath`` as ``_<prog>`` (it calls itself).
zsh does not split words on ``=``, so an inline ``--opt=value`` word is
completed after ``compset -P '*='`` moves the prefix out of the way.
"""

from __future__ import annotations

import shlex
from typing import Optional

from cliform.completion.generators.base import (
    HELP_DESCRIPTION,
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


def _describe_entry(name: str, description: Optional[str]) -> str:
    """``name:description`` for ``_describe``, with colons in *name* escaped."""
    escaped = name.replace(":", "\\:")
    if description:
        return shlex.quote(f"{escaped}:{description}")
    return shlex.quote(escaped)


class ZshGenerator(ScriptGenerator):
    shell = ShellType.ZSH

    def render(self, program_name: str, nodes: list[Node]) -> str:
        fn = sanitize_identifier(program_name)
        lines = [
            f"#compdef {program_name}",
            "",
            f"# Zsh completion for {program_name}",
            "# Generated by cliform",
            "",
        ]
        lines += self._helpers(fn, nodes)
        for node in nodes:
            lines += self._options_function(fn, node)
            lines += self._handler_function(fn, node)
        lines += self._main_function(fn, nodes)
        lines += [
            f'if [[ "${{funcstack[1]}}" == "_{fn}" ]]; then',
            f'    _{fn} "$@"',
            "else",
            f"    compdef _{fn} {shlex.quote(program_name)}",
            "fi",
        ]
        return "\n".join(lines) + "\n"

    def install_instructions(self, program_name: str, dynamic: bool = False) -> str:
        invocation = self.invocation(program_name, dynamic)
        return "\n".join(
            [
                "# Add to ~/.zshrc (after compinit):",
                f'eval "$({invocation})"',
                "",
                "# Or save it to a directory on $fpath:",
                f"{invocation} > ~/.zfunc/_{program_name}",
                "# then in ~/.zshrc: fpath+=~/.zfunc; autoload -Uz compinit && compinit",
            ]
        )

    # ------------------------------------------------------------------ #
    # Emitters
    # ------------------------------------------------------------------ #

    @staticmethod
    def _inline(inline: bool) -> list[str]:
        return ["compset -P '*='"] if inline else []

    def emit_choices(self, values: list[str], inline: bool) -> list[str]:
        quoted = " ".join(shlex.quote(v) for v in values)
        return self._inline(inline) + [
            "local -a _choices",
            f"_choices=({quoted})",
            'compadd -V choices -- "${_choices[@]}"',
        ]

    def emit_file(self, extensions: list[str], matchers: list[str], inline: bool) -> list[str]:
        patterns = self.file_patterns(extensions, matchers)
        if not patterns:
            return self._inline(inline) + ["_files"]
        glob = patterns[0] if len(patterns) == 1 else "(" + "|".join(patterns) + ")"
        return self._inline(inline) + [f"_files -g {shlex.quote(glob)}"]

    def emit_directory(self, inline: bool) -> list[str]:
        return self._inline(inline) + ["_files -/"]

    def emit_shell_command(self, command: str, inline: bool) -> list[str]:
        return self._inline(inline) + [
            "local -a _vals _lines",
            "local _l",
            f'_lines=("${{(@f)$(eval {shlex.quote(command)} 2>/dev/null)}}")',
            'for _l in "${_lines[@]}"; do',
            '    _l="${_l#"${_l%%[![:space:]]*}"}"',
            '    _l="${_l%"${_l##*[![:space:]]}"}"',
            '    [[ -n "$_l" ]] && _vals+=("$_l")',
            "done",
            'compadd -- "${_vals[@]}"',
        ]

    def emit_none(self, inline: bool) -> list[str]:
        return [":"]

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
            lines.append(f"        ({shlex.quote(f'{key}:{spelling}')}) return 0 ;;")
        lines += [
            "        (*) return 1 ;;",
            "    esac",
            "}",
            "",
            f"__{fn}_child() {{",
            '    REPLY=""',
            '    case "$1:$2" in',
        ]
        for parent, name, child_key in children_table(nodes):
            lines.append(
                f"        ({shlex.quote(f'{parent}:{name}')}) REPLY={shlex.quote(child_key)} ;;"
            )
        lines += [
            "        (*) return 1 ;;",
            "    esac",
            "    return 0",
            "}",
            "",
        ]
        return lines

    def _options_function(self, fn: str, node: Node) -> list[str]:
        body = ["local -a _avail", "_avail=()"]
        declared = set()
        for option in node.command.options:
            declared.update(option.spellings)
            entry = _describe_entry(f"--{option.cli_name}", self.description(option.description))
            if option.repeatable:
                body.append(f"_avail+=({entry})")
            else:
                spellings = " ".join(shlex.quote(s) for s in option.spellings)
                body.append(f"__{fn}_not_used {spellings} && _avail+=({entry})")
        if "--help" not in declared:
            entry = _describe_entry("--help", self.description(HELP_DESCRIPTION))
            body.append(f"__{fn}_not_used --help && _avail+=({entry})")
        body.append("_describe -t options 'option' _avail")
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
                body.append(f"        ({pattern})")
                body += indent(self.value_lines(option.value_completion), 3)
                body += ["            return", "            ;;"]
            body += ["    esac", "fi"]
            body += [
                'if [[ -n "$_inline_prefix" ]]; then',
                '    case "${_inline_prefix%=}" in',
            ]
            for option in with_values:
                body.append(f"        ({shlex.quote(option.spellings[0])})")
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
            entries = " ".join(
                _describe_entry(name, self.description(desc)) for name, _, desc in node.children
            )
            names = " ".join(shlex.quote(name) for name, _, _ in node.children)
            body += [
                "local -a _subs",
                f"_subs=({entries})",
                "local _s _match=0",
                f"for _s in {names}; do",
                '    [[ "$_s" == "$_cur"* ]] && _match=1',
                "done",
                "if (( _match )); then",
                "    _describe -t commands 'command' _subs",
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
            lines += indent(self.value_lines(branch.positional.value_completion) or ["_files"])
        lines += ["else", f"    {fallback}", "fi"]
        return lines

    def _main_function(self, fn: str, nodes: list[Node]) -> list[str]:
        lines = [
            f"_{fn}() {{",
            "    local -a _words _used_opts",
            '    _words=("${(@)words[2,CURRENT]}")',
            '    local _cur="${_words[-1]}" _prev="" _inline_prefix=""',
            '    if [[ "$_cur" == --*=* ]]; then',
            '        _inline_prefix="${_cur%%=*}="',
            '        _cur="${_cur#*=}"',
            "    fi",
            '    (( ${#_words} > 1 )) && _prev="${_words[-2]}"',
            "",
            '    local _path="" _w REPLY',
            "    integer _after_dd=0 _pos_count=0 _skip_next=0",
            "    _used_opts=()",
            '    for _w in "${(@)_words[1,-2]}"; do',
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
            lines.append(f"        ({shlex.quote(node.key)}) __{fn}_complete_{node.suffix} ;;")
        lines += [
            "    esac",
            "}",
            "",
        ]
        return lines
