from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from pkgforge import Plugin

from pkgforge_cli.catalog import PluginCatalog
from pkgforge_cli.errors import (
    PluginConstructionFailure,
    PluginFieldTypeMismatch,
    UnknownPluginField,
)
from pkgforge_cli.models import FieldType, PluginDetails, TypeKind


class _Mismatch(Exception):
    pass


def _coerce(field_type: FieldType, value: Any) -> Any:
    if value is None:
        if field_type.optional:
            return None
        raise _Mismatch
    kind = field_type.kind
    if kind is TypeKind.BOOL:
        if isinstance(value, bool):
            return value
    elif kind is TypeKind.INT:
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    elif kind is TypeKind.FLOAT:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return float(value)
    elif kind is TypeKind.STR:
        if isinstance(value, str):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            return str(value)
    elif kind is TypeKind.STR_LIST:
        if isinstance(value, (list, tuple)) and all(isinstance(item, str) for item in value):
            return list(value)
    raise _Mismatch


def check_field_value(details: PluginDetails, field: str, value: Any) -> Any:
    """Validate ``value`` for ``details.field`` and return it in the field's type."""
    field_type = details.field_type(field)
    if field_type is None:
        raise UnknownPluginField(details.name, field, fields=list(details.fields))
    try:
        return _coerce(field_type, value)
    except _Mismatch:
        raise PluginFieldTypeMismatch(
            details.name, field, expected=str(field_type), received=value
        ) from None


def build_kwargs(details: PluginDetails, options: Mapping[str, Any]) -> dict[str, Any]:
    for key in options:
        if details.field_type(key) is None:
            raise UnknownPluginField(details.name, key, fields=list(details.fields))

    kwargs: dict[str, Any] = {}
    for field, _field_type, default in details.field_items():
        if field in options:
            kwargs[field] = check_field_value(details, field, options[field])
        elif default is not None:
            kwargs[field] = copy.deepcopy(default)
    return kwargs


def instantiate_plugins(
    plugin_options: Mapping[str, Mapping[str, Any]], catalog: PluginCatalog
) -> list[Plugin]:
    """Build configured plugin instances, in the order of ``plugin_options``.

    Fields missing from an option map take the catalog default; a ``None``
    default leaves the field to the plugin constructor.
    """
    plugins: list[Plugin] = []
    for name, options in plugin_options.items():
        details = catalog.get(name)
        plugin_cls = catalog.plugin_class(name)
        kwargs = build_kwargs(details, options)
        try:
            plugins.append(plugin_cls(**kwargs))
        except (TypeError, ValueError) as e:
            raise PluginConstructionFailure(
                f"Failed to configure plugin {details.name}: {e}",
                details={"plugin": details.name},
            ) from e
    return plugins
