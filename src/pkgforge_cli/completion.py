from __future__ import annotations

import shlex
from collections.abc import Mapping
from typing import Any

from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.context import AppContext
from pkgforge_cli.errors import UnsupportedShell
from pkgforge_cli.models import CommandResult
from pkgforge_cli.parser import (
    CONFIG_SUBCOMMANDS,
    CREATE_FLAGS,
    GLOBAL_FLAGS,
    PROG,
    SHELLS,
    SUBCOMMANDS,
)

_SUBCOMMAND_HELP = {
    "create": "Create a new package",
    "config": "Show or change the configuration file",
    "plugin-info": "Show plugin information",
    "completion": "Print a shell completion script",
}

_BASH_TEMPLATE = """\
# bash completion for @PROG@
_@FUNC@() {
    local cur="${COMP_WORDS[COMP_CWORD]}"
    local cmd="" word
    for word in "${COMP_WORDS[@]:1:COMP_CWORD-1}"; do
        case "$word" in
            -*) ;;
            *) cmd="$word"; break ;;
        esac
    done
    case "$cmd" in
        "") COMPREPLY=( $(compgen -W "@COMMANDS@ @GLOBAL@" -- "$cur") ) ;;
        create) COMPREPLY=( $(compgen -W "@GLOBAL@ @CREATE@" -- "$cur") ) ;;
        config) COMPREPLY=( $(compgen -W "@CONFIG@" -- "$cur") ) ;;
        plugin-info) COMPREPLY=( $(compgen -W "@PLUGINS@" -- "$cur") ) ;;
        completion) COMPREPLY=( $(compgen -W "@SHELLS@" -- "$cur") ) ;;
    esac
}
complete -F _@FUNC@ @PROG@
"""

_ZSH_TEMPLATE = """\
#compdef @PROG@

_@FUNC@() {
    local -a commands
    commands=(
@ZSH_COMMANDS@
    )
    local cmd="" word
    for word in "${words[@]:1:CURRENT-2}"; do
        case "$word" in
            -*) ;;
            *) cmd="$word"; break ;;
        esac
    done
    case "$cmd" in
        "")
            _describe 'command' commands
            compadd -- @GLOBAL@
            ;;
        create) compadd -- @GLOBAL@ @CREATE@ ;;
        config) compadd -- @CONFIG@ ;;
        plugin-info) compadd -- @PLUGINS@ ;;
        completion) compadd -- @SHELLS@ ;;
    esac
}

compdef _@FUNC@ @PROG@
"""


def _substitute(template: str, substitutions: Mapping[str, str]) -> str:
    text = template
    for token, replacement in substitutions.items():
        text = text.replace(token, replacement)
    return text


def _plugin_flags(catalog: PluginCatalog) -> list[str]:
    return [f"--{name}" for name in catalog.option_names()]


def _common_substitutions(catalog: PluginCatalog) -> dict[str, str]:
    return {
        "@PROG@": PROG,
        "@FUNC@": PROG.replace("-", "_"),
        "@COMMANDS@": " ".join(SUBCOMMANDS),
        "@GLOBAL@": " ".join(GLOBAL_FLAGS),
        "@CREATE@": " ".join([*CREATE_FLAGS, *_plugin_flags(catalog)]),
        "@CONFIG@": " ".join(CONFIG_SUBCOMMANDS),
        "@PLUGINS@": " ".join(catalog.option_names()),
        "@SHELLS@": " ".join(SHELLS),
    }


def bash_script(catalog: PluginCatalog) -> str:
    return _substitute(_BASH_TEMPLATE, _common_substitutions(catalog))


def zsh_script(catalog: PluginCatalog) -> str:
    zsh_commands = "\n".join(
        f"        {shlex.quote(f'{name}:{_SUBCOMMAND_HELP[name]}')}" for name in SUBCOMMANDS
    )
    return _substitute(
        _ZSH_TEMPLATE, {"@ZSH_COMMANDS@": zsh_commands, **_common_substitutions(catalog)}
    )


def fish_script(catalog: PluginCatalog) -> str:
    lines = [f"# fish completion for {PROG}", f"complete -c {PROG} -f"]
    for name in SUBCOMMANDS:
        lines.append(
            f"complete -c {PROG} -n __fish_use_subcommand -a {name} "
            f"-d {shlex.quote(_SUBCOMMAND_HELP[name])}"
        )
    lines.append(f"complete -c {PROG} -l verbose -s v -d 'Show diagnostic messages'")
    lines.append(f"complete -c {PROG} -l dry-run -d 'Do not write anything'")
    lines.append(f"complete -c {PROG} -l version -d 'Show the version'")

    in_create = "'__fish_seen_subcommand_from create'"
    for flag in CREATE_FLAGS:
        if flag.startswith("--"):
            lines.append(f"complete -c {PROG} -n {in_create} -l {flag[2:]}")
    for details in catalog.list_plugins():
        description = details.description or f"{details.name} plugin"
        lines.append(
            f"complete -c {PROG} -n {in_create} -l {details.option_name} "
            f"-d {shlex.quote(description)}"
        )

    lines.append(
        f"complete -c {PROG} -n '__fish_seen_subcommand_from config' "
        f"-a {shlex.quote(' '.join(CONFIG_SUBCOMMANDS))}"
    )
    lines.append(
        f"complete -c {PROG} -n '__fish_seen_subcommand_from plugin-info' "
        f"-a {shlex.quote(' '.join(catalog.option_names()))}"
    )
    lines.append(
        f"complete -c {PROG} -n '__fish_seen_subcommand_from completion' "
        f"-a {shlex.quote(' '.join(SHELLS))}"
    )
    return "\n".join(lines) + "\n"


_GENERATORS = {"bash": bash_script, "zsh": zsh_script, "fish": fish_script}


def completion_script(shell: str, catalog: PluginCatalog) -> str:
    generator = _GENERATORS.get(shell.strip().lower())
    if generator is None:
        raise UnsupportedShell(
            f"Unsupported shell {shell!r}. Supported: {', '.join(SHELLS)}.",
            details={"shell": shell},
        )
    return generator(catalog)


def execute(options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    shell = str(options.get("shell") or "")
    script = completion_script(shell, ctx.catalog)
    return CommandResult(success=True, message=script.rstrip("\n"), data={"shell": shell})
