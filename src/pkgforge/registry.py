from __future__ import annotations

import dataclasses
import inspect
from dataclasses import dataclass
from importlib import metadata
from typing import Any

from pkgforge.errors import RegistryError
from pkgforge.plugins import (
    FIELD_HELP_KEY,
    FIELD_TAG_KEY,
    Codecov,
    Dependabot,
    Documenter,
    Formatter,
    Git,
    GitHubActions,
    License,
    Plugin,
    ProjectFile,
    Readme,
    SrcDir,
    Tests,
)

ENTRY_POINT_GROUP = "pkgforge.plugins"

BUILTIN_PLUGINS: tuple[type[Plugin], ...] = (
    Codecov,
    Dependabot,
    Documenter,
    Formatter,
    Git,
    GitHubActions,
    License,
    ProjectFile,
    Readme,
    SrcDir,
    Tests,
)

# Always part of a generated package unless replaced by a configured instance.
DEFAULT_PLUGINS: tuple[type[Plugin], ...] = (
    ProjectFile,
    SrcDir,
    Tests,
    Readme,
    License,
    Git,
)


@dataclass(frozen=True)
class FieldSchema:
    name: str
    tag: str
    default: Any
    help: str


@dataclass(frozen=True)
class PluginSchema:
    name: str
    description: str
    fields: tuple[FieldSchema, ...]


def _validate_plugin_class(obj: Any, *, source: str) -> type[Plugin]:
    if not (isinstance(obj, type) and issubclass(obj, Plugin)):
        raise RegistryError(f"{source} is not a pkgforge Plugin subclass.")
    if not dataclasses.is_dataclass(obj):
        raise RegistryError(f"{source} must be declared as a dataclass.")
    return obj


def available_plugins() -> tuple[type[Plugin], ...]:
    """Return the built-in plugins followed by those registered via entry points."""
    found: list[type[Plugin]] = list(BUILTIN_PLUGINS)
    for ep in sorted(metadata.entry_points(group=ENTRY_POINT_GROUP), key=lambda e: e.name):
        try:
            obj = ep.load()
        except Exception as e:
            raise RegistryError(f"Failed to load plugin entry point {ep.name!r} ({ep.value}): {e}") from e
        found.append(_validate_plugin_class(obj, source=f"Entry point {ep.name!r} ({ep.value})"))
    return tuple(found)


def describe_plugin(plugin_cls: type[Plugin]) -> PluginSchema:
    """Describe the declared option fields of ``plugin_cls``.

    Defaults produced by a ``default_factory`` are materialized; a field with
    neither default is reported with ``None``.
    """
    _validate_plugin_class(plugin_cls, source=plugin_cls.__name__)
    fields: list[FieldSchema] = []
    for f in dataclasses.fields(plugin_cls):
        tag = f.metadata.get(FIELD_TAG_KEY)
        if not isinstance(tag, str) or not tag.strip():
            raise RegistryError(
                f"{plugin_cls.__name__}.{f.name} is not declared with pkgforge.plugins.option()."
            )
        if f.default is not dataclasses.MISSING:
            default = f.default
        elif f.default_factory is not dataclasses.MISSING:
            default = f.default_factory()
        else:
            default = None
        fields.append(
            FieldSchema(
                name=f.name,
                tag=tag.strip(),
                default=default,
                help=str(f.metadata.get(FIELD_HELP_KEY, "")),
            )
        )

    doc = inspect.getdoc(plugin_cls) or ""
    description = doc.splitlines()[0].strip() if doc else ""
    return PluginSchema(name=plugin_cls.__name__, description=description, fields=tuple(fields))
