from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from pkgforge_cli.context import AppContext
from pkgforge_cli.models import CommandResult, PluginDetails


def _format_default(value: Any) -> str:
    if value is None:
        return "-"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, list):
        return "[" + ",".join(str(item) for item in value) + "]"
    return str(value)


def describe(details: PluginDetails) -> str:
    lines = [details.name]
    if details.description:
        lines.append(f"  {details.description}")
    if not details.fields:
        lines.append(f"  No options; enable with --{details.option_name}.")
        return "\n".join(lines)

    rows = [
        (name, str(field_type), _format_default(default))
        for name, field_type, default in details.field_items()
    ]
    name_w = max(len("option"), *(len(r[0]) for r in rows))
    type_w = max(len("type"), *(len(r[1]) for r in rows))
    lines.append("")
    lines.append(f"  {'option'.ljust(name_w)}  {'type'.ljust(type_w)}  default")
    for name, type_text, default_text in rows:
        lines.append(f"  {name.ljust(name_w)}  {type_text.ljust(type_w)}  {default_text}")
    lines.append("")
    lines.append(f"  Usage: --{details.option_name} KEY=VALUE ...")
    return "\n".join(lines)


def _details_data(details: PluginDetails) -> dict[str, Any]:
    return {
        "name": details.name,
        "fields": list(details.fields),
        "types": [str(t) for t in details.types],
        "defaults": list(details.defaults),
    }


def execute(options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    name = options.get("plugin_name")
    if name:
        details = ctx.catalog.get(str(name))
        return CommandResult(success=True, message=describe(details), data=_details_data(details))

    plugins = ctx.catalog.list_plugins()
    width = max(len(details.name) for details in plugins)
    lines = ["Available plugins:"]
    for details in plugins:
        count = len(details.fields)
        suffix = "flag" if count == 0 else f"{count} option{'s' if count != 1 else ''}"
        lines.append(f"  {details.name.ljust(width)}  {details.description} ({suffix})")
    return CommandResult(
        success=True,
        message="\n".join(lines),
        data={"plugins": [details.name for details in plugins]},
    )
