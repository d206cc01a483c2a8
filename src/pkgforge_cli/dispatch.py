from __future__ import annotations

from collections.abc import Callable, Mapping
from typing import Any

from pkgforge_cli import completion, config_commands, create, plugin_info
from pkgforge_cli.context import AppContext
from pkgforge_cli.errors import PkgforgeCliError
from pkgforge_cli.models import Command, CommandResult

Handler = Callable[[Mapping[str, Any], AppContext], CommandResult]


def help_handler(options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    help_text = options.get("help_text")
    if callable(help_text):
        return CommandResult(success=True, message=str(help_text()).rstrip("\n"))
    if ctx.parser is not None:
        return CommandResult(success=True, message=ctx.parser.format_help().rstrip("\n"))
    return CommandResult(success=True, message="Run `pkgforge --help` for usage.")


HANDLERS: dict[Command, Handler] = {
    Command.CREATE: create.execute,
    Command.CONFIG_SHOW: config_commands.show,
    Command.CONFIG_SET: config_commands.set_values,
    Command.PLUGIN_INFO: plugin_info.execute,
    Command.COMPLETION: completion.execute,
    Command.HELP: help_handler,
}


def dispatch(command: Command, options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    """Run the handler for ``command`` and turn every failure into a result."""
    handler = HANDLERS[command]
    ctx.log.debug("Dispatching %s", command.value)
    try:
        return handler(options, ctx)
    except PkgforgeCliError as e:
        ctx.log.debug("%s failed with %s", command.value, e.code, exc_info=True)
        return CommandResult(success=False, message=e.message, data={"code": e.code, **e.details})
    except Exception as e:  # noqa: BLE001
        ctx.log.debug("Unexpected failure in %s", command.value, exc_info=True)
        return CommandResult(
            success=False,
            message=f"Unexpected error: {type(e).__name__}: {e}",
            data={"code": "unexpected_error"},
        )
