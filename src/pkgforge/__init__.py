from pkgforge.errors import PackageGenerationError, RegistryError
from pkgforge.plugins import Plugin, RenderContext, RenderedFile, option
from pkgforge.registry import (
    DEFAULT_PLUGINS,
    ENTRY_POINT_GROUP,
    FieldSchema,
    PluginSchema,
    available_plugins,
    describe_plugin,
)
from pkgforge.template import GenerationResult, Template

__all__ = [
    "DEFAULT_PLUGINS",
    "ENTRY_POINT_GROUP",
    "FieldSchema",
    "GenerationResult",
    "PackageGenerationError",
    "Plugin",
    "PluginSchema",
    "RegistryError",
    "RenderContext",
    "RenderedFile",
    "Template",
    "available_plugins",
    "describe_plugin",
    "option",
]
