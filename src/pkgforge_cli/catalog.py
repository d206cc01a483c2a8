from __future__ import annotations

import logging
from collections.abc import Iterable

from pkgforge import Plugin, PluginSchema, RegistryError, available_plugins, describe_plugin

from pkgforge_cli.errors import CatalogError, UnknownPlugin
from pkgforge_cli.models import FieldType, PluginDetails


def details_from_schema(schema: PluginSchema) -> PluginDetails:
    types: list[FieldType] = []
    for field in schema.fields:
        try:
            types.append(FieldType.parse(field.tag))
        except ValueError as e:
            raise CatalogError(
                f"Plugin {schema.name}: field {field.name!r} has an unsupported type tag {field.tag!r}.",
                details={"plugin": schema.name, "field": field.name, "tag": field.tag},
            ) from e
    try:
        return PluginDetails(
            name=schema.name,
            fields=tuple(field.name for field in schema.fields),
            types=tuple(types),
            defaults=tuple(field.default for field in schema.fields),
            description=schema.description,
        )
    except ValueError as e:
        raise CatalogError(str(e), details={"plugin": schema.name}) from e


class PluginCatalog:
    """Plugin kinds known to the template engine, keyed case-insensitively by name."""

    def __init__(self, entries: Iterable[tuple[PluginDetails, type[Plugin]]]) -> None:
        self._details: dict[str, PluginDetails] = {}
        self._classes: dict[str, type[Plugin]] = {}
        for details, plugin_cls in entries:
            key = details.option_name
            if key in self._details:
                raise CatalogError(
                    f"Duplicate plugin name {details.name!r} "
                    f"(conflicts with {self._details[key].name!r}).",
                    details={"plugin": details.name},
                )
            self._details[key] = details
            self._classes[key] = plugin_cls

    @classmethod
    def discover(cls, log: logging.Logger | None = None) -> PluginCatalog:
        try:
            plugin_classes = available_plugins()
            schemas = [(describe_plugin(plugin_cls), plugin_cls) for plugin_cls in plugin_classes]
        except RegistryError as e:
            raise CatalogError(f"Plugin catalog unavailable: {e}") from e
        if not schemas:
            raise CatalogError("Plugin catalog is empty.")
        catalog = cls((details_from_schema(schema), plugin_cls) for schema, plugin_cls in schemas)
        if log is not None:
            log.debug("Discovered %d plugins: %s", len(catalog), ", ".join(catalog.names()))
        return catalog

    def __len__(self) -> int:
        return len(self._details)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._details

    def list_plugins(self) -> tuple[PluginDetails, ...]:
        return tuple(sorted(self._details.values(), key=lambda d: d.name.lower()))

    def names(self) -> list[str]:
        return [details.name for details in self.list_plugins()]

    def option_names(self) -> list[str]:
        return [details.option_name for details in self.list_plugins()]

    def find(self, name: str) -> PluginDetails | None:
        return self._details.get(name.lower())

    def get(self, name: str) -> PluginDetails:
        details = self.find(name)
        if details is None:
            raise UnknownPlugin(name, available=self.names())
        return details

    def plugin_class(self, name: str) -> type[Plugin]:
        self.get(name)
        return self._classes[name.lower()]

    def is_argumentless(self, name: str) -> bool:
        return not self.get(name).fields
