from __future__ import annotations

from collections.abc import Mapping
from typing import Any

import tomlkit

from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.config import schema_type
from pkgforge_cli.context import AppContext
from pkgforge_cli.models import CommandResult, TypeKind
from pkgforge_cli.options import parse_value, split_option_token


def show(options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    rendered = tomlkit.dumps(ctx.config).rstrip("\n")
    header = f"# {ctx.config_store.path}"
    return CommandResult(
        success=True,
        message=f"{header}\n{rendered}" if rendered else header,
        data={"path": str(ctx.config_store.path), "config": ctx.config},
    )


def _expects_string(key: str, catalog: PluginCatalog) -> bool:
    parts = [part.strip() for part in key.split(".")]
    if len(parts) == 3 and parts[0] == "plugins":
        details = catalog.find(parts[1])
        field_type = details.field_type(parts[2]) if details is not None else None
        return field_type is not None and field_type.kind is TypeKind.STR
    return schema_type(key) == "string"


def typed_assignment(token: str, catalog: PluginCatalog) -> tuple[str, Any]:
    """Parse ``KEY=VALUE``; string-typed keys keep the value text as given."""
    key, raw = split_option_token(token)
    if _expects_string(key, catalog):
        return key, raw
    return key, parse_value(raw)


def set_values(options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    tokens = list(options.get("assignments") or [])
    if not tokens:
        return CommandResult(
            success=False,
            message="Nothing to set: pass KEY=VALUE pairs, e.g. default.author=Jane",
        )
    assignments = dict(typed_assignment(token, ctx.catalog) for token in tokens)
    if ctx.dry_run:
        keys = ", ".join(assignments)
        return CommandResult(
            success=True,
            message=f"Dry run: would set {keys} in {ctx.config_store.path}",
            data={"assignments": assignments},
        )
    ctx.config_store.set_values(assignments, ctx.log)
    return CommandResult(
        success=True,
        message=f"Updated {', '.join(assignments)} in {ctx.config_store.path}",
        data={"path": str(ctx.config_store.path), "assignments": assignments},
    )
