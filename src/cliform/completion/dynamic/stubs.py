"""Thin shell scripts that forward every TAB press to ``PROG __complete``.

Each stub passes the words typed so far (the current one last) to
``PROG __complete --shell SHELL --``, reads candidate lines, and reads the
final ``:<directive>`` line to decide whether to show the candidates or hand
over to the shell's own file or directory completion.

Directive bits the stubs act on: ``1`` no space, ``8`` keep order, ``16`` file
completion, ``32`` directory completion and ``64`` error (show nothing). The
bash stub turns off its ``-o default`` filename fallback unless ``16`` or
``32`` is set.
"""

from __future__ import annotations

import shlex

from cliform.completion.generators.base import sanitize_identifier
from cliform.completion.generators.fish import fish_quote
from cliform.exceptions import UnsupportedShellError
from cliform.models import ShellType


def generate_dynamic_script(shell: str, program_name: str) -> str:
    """Return the dynamic completion stub for *shell*.

    Raises:
        UnsupportedShellError: If *shell* is not bash, zsh or fish.
    """
    renderers = {
        ShellType.BASH.value: _bash_stub,
        ShellType.ZSH.value: _zsh_stub,
        ShellType.FISH.value: _fish_stub,
    }
    try:
        render = renderers[shell]
    except KeyError:
        raise UnsupportedShellError(shell, list(renderers)) from None
    return render(program_name)


def _bash_stub(program_name: str) -> str:
    fn = sanitize_identifier(program_name)
    prog = shlex.quote(program_name)
    return f"""\
# Bash dynamic completion for {program_name}
# Generated by cliform

_{fn}_dynamic_completions() {{
    COMPREPLY=()

    # Join words that bash split on '='.
    local -a _words=()
    local _i=1
    while (( _i <= COMP_CWORD )); do
        if [[ "${{COMP_WORDS[_i]}}" == "=" ]] && (( ${{#_words[@]}} > 0 )); then
            _words[${{#_words[@]}}-1]+="=${{COMP_WORDS[_i+1]:-}}"
            (( _i += 2 ))
        else
            _words+=("${{COMP_WORDS[_i]}}")
            (( _i += 1 ))
        fi
    done

    local _cur="${{_words[${{#_words[@]}}-1]}}"
    local _value="$_cur" _reply_prefix=""
    if [[ "$_cur" == --*=* ]]; then
        _value="${{_cur#*=}}"
        [[ "${{COMP_WORDS[COMP_CWORD]}}" == --*=* ]] && _reply_prefix="${{_cur%%=*}}="
    fi

    local _out _line _directive=0
    local -a _lines=()
    _out="$({prog} __complete --shell bash -- "${{_words[@]}}" 2>/dev/null)"
    while IFS= read -r _line; do
        _lines+=("$_line")
    done <<< "$_out"
    local _n=${{#_lines[@]}}
    if (( _n > 0 )) && [[ "${{_lines[_n-1]}}" == :* ]]; then
        _directive="${{_lines[_n-1]#:}}"
        unset '_lines[_n-1]'
    fi
    [[ "$_directive" =~ ^[0-9]+$ ]] || _directive=0

    (( _directive & 64 )) && return 0
    (( _directive & 1 )) && compopt -o nospace 2>/dev/null
    (( _directive & 48 )) || compopt +o default 2>/dev/null
    (( _directive & 8 )) && compopt -o nosort 2>/dev/null

    if (( _directive & 16 )); then
        compopt -o filenames 2>/dev/null
        while IFS= read -r _line; do
            [[ -n "$_line" ]] && COMPREPLY+=("${{_reply_prefix}}${{_line}}")
        done < <(compgen -f -- "$_value")
        return 0
    fi
    if (( _directive & 32 )); then
        compopt -o filenames 2>/dev/null
        while IFS= read -r _line; do
            [[ -n "$_line" ]] && COMPREPLY+=("${{_reply_prefix}}${{_line}}")
        done < <(compgen -d -- "$_value")
        return 0
    fi

    for _line in "${{_lines[@]}}"; do
        [[ -n "$_line" ]] && COMPREPLY+=("${{_reply_prefix}}${{_line}}")
    done
    if (( ${{#COMPREPLY[@]}} == 1 )) && [[ "${{COMPREPLY[0]}}" == */ ]]; then
        compopt -o nospace 2>/dev/null
    fi
    return 0
}}

complete -o default -F _{fn}_dynamic_completions {prog}
"""


def _zsh_stub(program_name: str) -> str:
    fn = sanitize_identifier(program_name)
    prog = shlex.quote(program_name)
    return f"""\
#compdef {program_name}

# Zsh dynamic completion for {program_name}
# Generated by cliform

_{fn}() {{
    local -a _args _lines _cands _flags
    local _out _line
    integer _directive=0

    _args=("${{(@)words[2,CURRENT]}}")
    _out="$({prog} __complete --shell zsh -- "${{_args[@]}}" 2>/dev/null)"
    _lines=("${{(@f)_out}}")
    if (( ${{#_lines}} )) && [[ "${{_lines[-1]}}" == :<-> ]]; then
        _directive="${{_lines[-1]#:}}"
        _lines[-1]=()
    fi

    (( _directive & 64 )) && return 1
    [[ "${{words[CURRENT]}}" == --*=* ]] && compset -P '*='

    if (( _directive & 16 )); then
        _files
        return
    fi
    if (( _directive & 32 )); then
        _files -/
        return
    fi

    for _line in "${{_lines[@]}}"; do
        [[ -n "$_line" ]] && _cands+=("$_line")
    done
    (( ${{#_cands}} )) || return 1

    (( _directive & 8 )) && _flags+=(-V)
    _describe "${{_flags[@]}}" -t values 'completion' _cands
}}

if [[ "${{funcstack[1]}}" == "_{fn}" ]]; then
    _{fn} "$@"
else
    compdef _{fn} {prog}
fi
"""


def _fish_stub(program_name: str) -> str:
    fn = sanitize_identifier(program_name)
    prog = fish_quote(program_name)
    return f"""\
# Fish dynamic completion for {program_name}
# Generated by cliform

function __{fn}_dynamic_complete
    set -l args (commandline -opc)
    set -e args[1]
    set -l cur (commandline -ct)
    set -l lines ({prog} __complete --shell fish -- $args "$cur" 2>/dev/null)

    set -l directive 0
    if test (count $lines) -gt 0; and string match -qr -- '^:[0-9]+$' $lines[-1]
        set directive (string sub -s 2 -- $lines[-1])
        set -e lines[-1]
    end
    if test (math "floor($directive / 64) % 2") -eq 1
        return
    end

    set -l value "$cur"
    set -l inline ''
    if string match -q -- '--*=*' "$cur"
        set inline (string replace -r '=.*' '=' -- "$cur")
        set value (string replace -r '^[^=]*=' '' -- "$cur")
    end

    if test (math "floor($directive / 16) % 2") -eq 1
        for p in (__fish_complete_path "$value")
            printf '%s%s\\n' "$inline" $p
        end
        return
    end
    if test (math "floor($directive / 32) % 2") -eq 1
        for p in (__fish_complete_directories "$value")
            printf '%s%s\\n' "$inline" $p
        end
        return
    end

    for line in $lines
        if test -n "$line"
            printf '%s\\n' $line
        end
    end
end

complete -c {prog} -e
complete -c {prog} -f -k -a '(__{fn}_dynamic_complete)'
"""
