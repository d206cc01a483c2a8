from __future__ import annotations

import argparse
from pathlib import Path
from typing import NoReturn

from pkgforge_cli import __version__
from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.errors import CatalogError, UsageError
from pkgforge_cli.models import Command, PluginDetails

PROG = "pkgforge"
SHELLS = ("bash", "zsh", "fish")
SUBCOMMANDS = ("create", "config", "plugin-info", "completion")
CONFIG_SUBCOMMANDS = ("show", "set")
GLOBAL_FLAGS = ("--verbose", "-v", "--dry-run", "--version", "--help", "-h")
CREATE_FLAGS = (
    "--author",
    "--user",
    "--mail",
    "--python-version",
    "--output-dir",
    "-o",
    "--with-mise",
    "--no-with-mise",
)

# Destinations of the static create options; plugin options must not reuse them.
_RESERVED_CREATE_DESTS = frozenset(
    {"package_name", "author", "user", "mail", "python_version", "output_dir", "with_mise"}
    | {"verbose", "dry_run", "command", "help_text", "cmd", "config_cmd"}
)


class _Parser(argparse.ArgumentParser):
    """Parser whose usage errors raise instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(
            f"{self.prog}: {message} (see `{self.prog} --help`)",
            details={"usage": self.format_usage().strip()},
        )


def _add_global_options(parser: argparse.ArgumentParser, *, root: bool) -> None:
    # Subparsers get their own copies with SUPPRESS defaults so a flag given
    # before the subcommand is not reset by the subparser.
    default_false: object = False if root else argparse.SUPPRESS
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        default=default_false,
        help="Show diagnostic messages on stderr.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        default=default_false,
        help="Show what would be generated without writing anything.",
    )


def _plugin_help(details: PluginDetails) -> str:
    summary = details.description or f"{details.name} plugin"
    if not details.fields:
        return f"Enable the {details.name} plugin. {summary}"
    fields = ", ".join(f"{name}: {field_type}" for name, field_type, _ in details.field_items())
    return f"{summary} Options: {fields}."


def add_plugin_options(parser: argparse.ArgumentParser, catalog: PluginCatalog) -> None:
    """Add one ``--<plugin>`` option per catalog plugin.

    Plugins without fields become boolean flags; the others collect repeated
    ``KEY=VALUE`` tokens.
    """
    group = parser.add_argument_group(
        "plugins",
        "Configure plugins with --<plugin> KEY=VALUE ... "
        "(see `pkgforge plugin-info <plugin>`).",
    )
    for details in catalog.list_plugins():
        dest = details.option_name
        if dest in _RESERVED_CREATE_DESTS:
            raise CatalogError(
                f"Plugin {details.name!r} clashes with the built-in option --{dest}.",
                details={"plugin": details.name},
            )
        if not details.fields:
            group.add_argument(
                f"--{dest}",
                dest=dest,
                action="store_true",
                help=_plugin_help(details),
            )
        else:
            group.add_argument(
                f"--{dest}",
                dest=dest,
                action="append",
                nargs="*",
                metavar="KEY=VALUE",
                help=_plugin_help(details),
            )


def build_parser(catalog: PluginCatalog) -> argparse.ArgumentParser:
    """Build the pkgforge CLI argument parser."""
    parser = _Parser(
        prog=PROG,
        description="Generate Python package skeletons from configurable plugins.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    _add_global_options(parser, root=True)
    parser.set_defaults(command=None, help_text=parser.format_help)
    sub = parser.add_subparsers(dest="cmd", metavar="COMMAND")

    create_p = sub.add_parser(
        "create",
        help="Create a new package.",
        allow_abbrev=False,
        description=(
            "Create a new package. Give the package name before any plugin option, "
            "since plugin options consume the KEY=VALUE tokens that follow them."
        ),
    )
    _add_global_options(create_p, root=False)
    create_p.add_argument("package_name", help="Name of the package to create.")
    create_p.add_argument("--author", help="Author name (default: from config).")
    create_p.add_argument("--user", help="GitHub user or organization (default: from config).")
    create_p.add_argument("--mail", help="Author email (default: from config).")
    create_p.add_argument(
        "--python-version", help="Minimum supported Python version (default: from config)."
    )
    create_p.add_argument(
        "--output-dir",
        "-o",
        type=Path,
        help="Directory to create the package in (default: current directory).",
    )
    create_p.add_argument(
        "--with-mise",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Write a mise tool configuration file (default: from config).",
    )
    add_plugin_options(create_p, catalog)
    create_p.set_defaults(command=Command.CREATE, help_text=create_p.format_help)

    config_p = sub.add_parser("config", help="Show or change the configuration file.")
    _add_global_options(config_p, root=False)
    config_p.set_defaults(command=None, help_text=config_p.format_help)
    config_sub = config_p.add_subparsers(dest="config_cmd", metavar="ACTION")
    show_p = config_sub.add_parser("show", help="Show the current configuration.")
    _add_global_options(show_p, root=False)
    show_p.set_defaults(command=Command.CONFIG_SHOW, help_text=show_p.format_help)
    set_p = config_sub.add_parser("set", help="Set configuration values.")
    _add_global_options(set_p, root=False)
    set_p.add_argument(
        "assignments",
        nargs="*",
        metavar="KEY=VALUE",
        help="Dotted keys such as default.author=Jane or plugins.git.ssh=true.",
    )
    set_p.set_defaults(command=Command.CONFIG_SET, help_text=set_p.format_help)

    info_p = sub.add_parser("plugin-info", help="Show plugin information.")
    _add_global_options(info_p, root=False)
    info_p.add_argument("plugin_name", nargs="?", help="Plugin to describe (default: list all).")
    info_p.set_defaults(command=Command.PLUGIN_INFO, help_text=info_p.format_help)

    completion_p = sub.add_parser("completion", help="Print a shell completion script.")
    _add_global_options(completion_p, root=False)
    completion_p.add_argument("shell", help=f"Shell type ({', '.join(SHELLS)}).")
    completion_p.set_defaults(command=Command.COMPLETION, help_text=completion_p.format_help)
    return parser
