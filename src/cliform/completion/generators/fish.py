"""Fish completion script generator.

Fish has no ``COMP_WORDS``; the script re-scans ``commandline -opc`` on every
request inside one ``complete -c PROG -a '(__PROG_complete)'`` rule and
prints ``value`` / ``value<TAB>description`` lines. Fish filters those by the
current token itself, so candidates for an inline ``--opt=value`` carry the
``--opt=`` prefix.

Sub-command paths are stored as ``@`` followed by the node key so the root
path is never the empty string.
"""

from __future__ import annotations

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


def fish_quote(value: str) -> str:
    """Single-quote *value* for fish."""
    return "'" + value.replace("\\", "\\\\").replace("'", "\\'") + "'"


def _path(key: str) -> str:
    return fish_quote(f"@{key}")


class FishGenerator(ScriptGenerator):
    shell = ShellType.FISH
    _var = "__cli"

    def render(self, program_name: str, nodes: list[Node]) -> str:
        fn = sanitize_identifier(program_name)
        self._var = f"__{fn}"
        lines = [
            f"# Fish completion for {program_name}",
            "# Generated by cliform",
            "",
        ]
        lines += self._helpers(fn, nodes)
        lines += self._scan_function(fn)
        for node in nodes:
            lines += self._options_function(fn, node)
            lines += self._handler_function(fn, node)
        lines += [
            f"function __{fn}_complete",
            f"    __{fn}_scan",
            f'    switch "$__{fn}_path"',
        ]
        for node in nodes:
            lines += [f"        case {_path(node.key)}", f"            __{fn}_complete_{node.suffix}"]
        lines += [
            "    end",
            "end",
            "",
            f"complete -c {fish_quote(program_name)} -e",
            f"complete -c {fish_quote(program_name)} -f -k -a '(__{fn}_complete)'",
        ]
        return "\n".join(lines) + "\n"

    def install_instructions(self, program_name: str, dynamic: bool = False) -> str:
        invocation = self.invocation(program_name, dynamic)
        return "\n".join(
            [
                "# Save to the fish completions directory:",
                f"{invocation} > ~/.config/fish/completions/{program_name}.fish",
                "",
                "# Or load it for the current session:",
                f"{invocation} | source",
            ]
        )

    # ------------------------------------------------------------------ #
    # Emitters
    # ------------------------------------------------------------------ #

    def _print(self, value: str) -> str:
        return f"printf '%s%s\\n' \"${self._var}_inline\" {value}"

    def emit_choices(self, values: list[str], inline: bool) -> list[str]:
        quoted = " ".join(fish_quote(v) for v in values)
        return [f"for _c in {quoted}", f"    {self._print('$_c')}", "end"]

    def emit_file(self, extensions: list[str], matchers: list[str], inline: bool) -> list[str]:
        patterns = self.file_patterns(extensions, matchers)
        source = f'(__fish_complete_path "${self._var}_cur")'
        if not patterns:
            return [f"for _p in {source}", f"    {self._print('$_p')}", "end"]
        test = "; or ".join(f"string match -q -- {fish_quote(p)} $_base" for p in patterns)
        return [
            f"for _p in {source}",
            "    set -l _name (string replace -r '\\t.*' '' -- $_p)",
            "    set -l _base (string replace -r '.*/' '' -- $_name)",
            "    if string match -q -- '*/' $_name",
            f"        {self._print('$_name')}",
            f"    else if {test}",
            f"        {self._print('$_name')}",
            "    end",
            "end",
        ]

    def emit_directory(self, inline: bool) -> list[str]:
        return [
            f'for _p in (__fish_complete_directories "${self._var}_cur")',
            f"    {self._print('$_p')}",
            "end",
        ]

    def emit_shell_command(self, command: str, inline: bool) -> list[str]:
        return [
            f"for _l in (eval {fish_quote(command)} 2>/dev/null | string trim)",
            '    if test -n "$_l"',
            f"        {self._print('$_l')}",
            "    end",
            "end",
        ]

    def emit_none(self, inline: bool) -> list[str]:
        return ["true"]

    # ------------------------------------------------------------------ #
    # Script sections
    # ------------------------------------------------------------------ #

    def _helpers(self, fn: str, nodes: list[Node]) -> list[str]:
        lines = [
            f"function __{fn}_not_used",
            f"    for _u in $__{fn}_used_opts",
            "        if contains -- $_u $argv",
            "            return 1",
            "        end",
            "    end",
            "    return 0",
            "end",
            "",
            f"function __{fn}_opt_takes_value",
            '    switch "$argv[1]:$argv[2]"',
        ]
        for key, spelling in takes_value_table(nodes):
            lines += [f"        case {fish_quote(f'@{key}:{spelling}')}", "            return 0"]
        lines += [
            "    end",
            "    return 1",
            "end",
            "",
            f"function __{fn}_child",
            '    switch "$argv[1]:$argv[2]"',
        ]
        for parent, name, child_key in children_table(nodes):
            lines += [
                f"        case {fish_quote(f'@{parent}:{name}')}",
                f"            echo {_path(child_key)}",
                "            return 0",
            ]
        lines += [
            "    end",
            "    return 1",
            "end",
            "",
        ]
        return lines

    def _scan_function(self, fn: str) -> list[str]:
        v = f"__{fn}"
        return [
            f"function {v}_scan",
            "    set -l tokens (commandline -opc)",
            "    set -e tokens[1]",
            f"    set -g {v}_cur (commandline -ct)",
            f"    set -g {v}_inline ''",
            f"    if string match -q -- '--*=*' \"${v}_cur\"",
            f"        set -g {v}_inline (string replace -r '=.*' '=' -- \"${v}_cur\")",
            f"        set -g {v}_cur (string replace -r '^[^=]*=' '' -- \"${v}_cur\")",
            "    end",
            f"    set -g {v}_prev ''",
            "    if test (count $tokens) -gt 0",
            f"        set -g {v}_prev $tokens[-1]",
            "    end",
            f"    set -g {v}_path '@'",
            f"    set -g {v}_after_dd 0",
            f"    set -g {v}_pos_count 0",
            f"    set -g {v}_used_opts",
            "    set -l skip_next 0",
            "    for w in $tokens",
            "        if test $skip_next -eq 1",
            "            set skip_next 0",
            "            continue",
            "        end",
            f'        if test ${v}_after_dd -eq 0; and test "x$w" = "x--"',
            f"            set -g {v}_after_dd 1",
            "            continue",
            "        end",
            f"        if test ${v}_after_dd -eq 1",
            f"            set -g {v}_pos_count (math ${v}_pos_count + 1)",
            "            continue",
            "        end",
            "        if string match -q -- '--*=*' $w",
            f"            set -g -a {v}_used_opts (string replace -r '=.*' '' -- $w)",
            "            continue",
            "        end",
            "        if string match -q -- '-*' $w; and test \"x$w\" != 'x-'",
            f"            set -g -a {v}_used_opts $w",
            f'            if {v}_opt_takes_value "${v}_path" $w',
            "                set skip_next 1",
            "            end",
            "            continue",
            "        end",
            f'        set -l child ({v}_child "${v}_path" $w)',
            '        if test -n "$child"',
            f"            set -g {v}_path $child",
            f"            set -g {v}_used_opts",
            f"            set -g {v}_pos_count 0",
            "            continue",
            "        end",
            f"        set -g {v}_pos_count (math ${v}_pos_count + 1)",
            "    end",
            "end",
            "",
        ]

    def _candidate(self, name: str, description: Optional[str]) -> str:
        if description:
            return f"printf '%s\\t%s\\n' {fish_quote(name)} {fish_quote(description)}"
        return f"printf '%s\\n' {fish_quote(name)}"

    def _options_function(self, fn: str, node: Node) -> list[str]:
        body: list[str] = []
        declared = set()
        for option in node.command.options:
            declared.update(option.spellings)
            line = self._candidate(f"--{option.cli_name}", self.description(option.description))
            if option.repeatable:
                body.append(line)
            else:
                spellings = " ".join(fish_quote(s) for s in option.spellings)
                body += [f"if __{fn}_not_used {spellings}", f"    {line}", "end"]
        if "--help" not in declared:
            line = self._candidate("--help", self.description(HELP_DESCRIPTION))
            body += [f"if __{fn}_not_used '--help'", f"    {line}", "end"]
        return [f"function __{fn}_options_{node.suffix}", *indent(body), "end", ""]

    def _handler_function(self, fn: str, node: Node) -> list[str]:
        v = f"__{fn}"
        command = node.command
        key = _path(node.key)
        inline_option = f"(string replace -r '=$' '' -- \"${v}_inline\")"
        body: list[str] = []

        with_values = value_options(command)
        if with_values:
            body.append(f'if test -z "${v}_inline"; and test ${v}_after_dd -eq 0')
            for i, option in enumerate(with_values):
                spellings = " ".join(fish_quote(s) for s in option.spellings)
                keyword = "if" if i == 0 else "else if"
                body.append(f'    {keyword} contains -- "${v}_prev" {spellings}')
                body += indent(self.value_lines(option.value_completion), 2)
                body.append("        return")
            body += ["    end", "end"]
            body.append(f'if test -n "${v}_inline"')
            for i, option in enumerate(with_values):
                keyword = "if" if i == 0 else "else if"
                body.append(
                    f"    {keyword} contains -- {inline_option} {fish_quote(option.spellings[0])}"
                )
                body += indent(self.value_lines(option.value_completion, inline=True), 2)
                body.append("        return")
            body += ["    end", "end"]

        if any(o.takes_value for o in command.options):
            body += [
                f'if test -z "${v}_inline"; and test ${v}_after_dd -eq 0; and {v}_opt_takes_value {key} "${v}_prev"',
                *indent(self.fallback_file_lines()),
                "    return",
                "end",
                f'if test -n "${v}_inline"; and {v}_opt_takes_value {key} {inline_option}',
                *indent(self.fallback_file_lines(inline=True)),
                "    return",
                "end",
            ]

        body += [
            f"if test ${v}_after_dd -eq 1",
            *indent(self._positional_chain(fn, node, after_dd=True)),
            "    return",
            "end",
            f"if string match -q -- '-*' \"${v}_cur\"",
            f"    {v}_options_{node.suffix}",
            "    return",
            "end",
        ]

        if node.children:
            names = " ".join(fish_quote(name) for name, _, _ in node.children)
            body += [
                "set -l _matched 0",
                f"for _s in {names}",
                f'    if string match -q -- "${v}_cur*" $_s',
                "        set _matched 1",
                "    end",
                "end",
                "if test $_matched -eq 1",
            ]
            for name, _, desc in node.children:
                body.append(f"    {self._candidate(name, self.description(desc))}")
            body += ["    return", "end"]

        body += self._positional_chain(fn, node, after_dd=False)
        return [f"function {v}_complete_{node.suffix}", *indent(body), "end", ""]

    def _positional_chain(self, fn: str, node: Node, after_dd: bool) -> list[str]:
        fallback = "true" if after_dd else f"__{fn}_options_{node.suffix}"
        branches = positional_branches(node.command)
        if not branches:
            return [fallback]
        lines: list[str] = []
        for i, branch in enumerate(branches):
            op = "-ge" if branch.variadic else "-eq"
            keyword = "if" if i == 0 else "else if"
            lines.append(f"{keyword} test $__{fn}_pos_count {op} {branch.index}")
            lines += indent(
                self.value_lines(branch.positional.value_completion)
                or self.fallback_file_lines()
            )
        lines += ["else", f"    {fallback}", "end"]
        return lines
