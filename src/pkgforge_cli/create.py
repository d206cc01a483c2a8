from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from pkgforge import PackageGenerationError, Template

from pkgforge_cli.context import AppContext
from pkgforge_cli.config import merge_config
from pkgforge_cli.errors import PackageGenerationFailure
from pkgforge_cli.instantiate import instantiate_plugins
from pkgforge_cli.models import CommandResult
from pkgforge_cli.options import collect_plugin_options

_FALLBACK_PYTHON_VERSION = "3.12"


def _authors(author: str, mail: str) -> tuple[str, ...]:
    author = author.strip()
    mail = mail.strip()
    if not author:
        return ()
    if mail:
        return (f"{author} <{mail}>",)
    return (author,)


def _str_setting(settings: Mapping[str, Any], key: str) -> str:
    value = settings.get(key)
    return value if isinstance(value, str) else ""


def build_cli_tree(
    options: Mapping[str, Any], plugin_options: Mapping[str, Mapping[str, Any]]
) -> dict[str, Any]:
    """Configuration tree of the create options; unset options are ``None``."""
    return {
        "default": {
            "author": options.get("author"),
            "user": options.get("user"),
            "mail": options.get("mail"),
            "python_version": options.get("python_version"),
            "with_mise": options.get("with_mise"),
        },
        "plugins": {name: dict(values) for name, values in plugin_options.items()},
    }


def _normalized_plugin_tables(config: Mapping[str, Any]) -> dict[str, Any]:
    plugins = config.get("plugins")
    if not isinstance(plugins, Mapping):
        return dict(config)
    normalized = dict(config)
    normalized["plugins"] = {str(name).lower(): values for name, values in plugins.items()}
    return normalized


def write_mise_config(
    package_dir: Path, *, filename_base: str, python_version: str, dry_run: bool
) -> Path:
    path = package_dir / f"{filename_base}.toml"
    if dry_run:
        return path
    doc = tomlkit.document()
    tools = tomlkit.table()
    tools["python"] = python_version
    doc["tools"] = tools
    try:
        path.write_text(tomlkit.dumps(doc), encoding="utf-8", newline="\n")
    except OSError as e:
        raise PackageGenerationFailure(
            f"Failed to write {path}: {e}", details={"path": str(path)}
        ) from e
    return path


def execute(options: Mapping[str, Any], ctx: AppContext) -> CommandResult:
    package_name = str(options["package_name"])
    plugin_options = collect_plugin_options(options, ctx.catalog)
    effective = merge_config(
        _normalized_plugin_tables(ctx.config), build_cli_tree(options, plugin_options)
    )
    settings = effective.get("default") or {}
    stored_plugins = effective.get("plugins") or {}

    # Only plugins requested on the command line are built; config tables just
    # provide their option defaults.
    requested = {name: dict(stored_plugins.get(name) or {}) for name in plugin_options}
    ctx.log.debug("Requested plugins: %s", ", ".join(requested) or "(defaults only)")
    plugins = instantiate_plugins(requested, ctx.catalog)

    python_version = _str_setting(settings, "python_version") or _FALLBACK_PYTHON_VERSION
    output_dir = options.get("output_dir") or Path.cwd()
    template = Template(
        user=_str_setting(settings, "user"),
        authors=_authors(_str_setting(settings, "author"), _str_setting(settings, "mail")),
        python_version=python_version,
        output_dir=Path(output_dir),
        plugins=plugins,
    )
    try:
        result = template.generate(package_name, dry_run=ctx.dry_run)
    except PackageGenerationError as e:
        raise PackageGenerationFailure(
            f"Failed to create package {package_name}: {e}",
            details={"package": package_name},
        ) from e

    files = [str(path) for path in result.files]
    if settings.get("with_mise"):
        mise_path = write_mise_config(
            result.package_dir,
            filename_base=_str_setting(settings, "mise_filename_base") or ".mise",
            python_version=python_version,
            dry_run=ctx.dry_run,
        )
        files.append(str(mise_path))

    data = {"package_dir": str(result.package_dir), "files": files, "dry_run": ctx.dry_run}
    if ctx.dry_run:
        lines = [f"Dry run: would create {package_name} in {result.package_dir}:"]
        lines.extend(f"  {path}" for path in files)
        return CommandResult(success=True, message="\n".join(lines), data=data)
    return CommandResult(
        success=True,
        message=f"Created package {package_name} at {result.package_dir}",
        data=data,
    )
