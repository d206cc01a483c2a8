from __future__ import annotations

from typing import Any


class PkgforgeCliError(Exception):
    default_code = "pkgforge_error"

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code.strip() if isinstance(code, str) and code.strip() else self.default_code
        self.details = dict(details) if isinstance(details, dict) else {}


class CatalogError(PkgforgeCliError):
    default_code = "catalog_error"


class MalformedOptionToken(PkgforgeCliError):
    default_code = "malformed_option"

    def __init__(self, token: str, reason: str = "expected KEY=VALUE") -> None:
        super().__init__(
            f"Malformed plugin option {token!r}: {reason}.",
            details={"token": token},
        )
        self.token = token


class UnknownPlugin(PkgforgeCliError):
    default_code = "unknown_plugin"

    def __init__(self, name: str, *, available: list[str] | None = None) -> None:
        message = f"Plugin not found: {name}"
        if available:
            message += f" (available: {', '.join(available)})"
        super().__init__(message, details={"plugin": name})
        self.name = name


class UnknownPluginField(PkgforgeCliError):
    default_code = "unknown_plugin_field"

    def __init__(self, plugin: str, field: str, *, fields: list[str]) -> None:
        known = ", ".join(fields) if fields else "none"
        super().__init__(
            f"Plugin {plugin} has no option {field!r} (options: {known}).",
            details={"plugin": plugin, "field": field},
        )
        self.plugin = plugin
        self.field = field


class PluginFieldTypeMismatch(PkgforgeCliError):
    default_code = "plugin_field_type_mismatch"

    def __init__(self, plugin: str, field: str, *, expected: str, received: Any) -> None:
        super().__init__(
            f"Invalid value for {plugin}.{field}: expected {expected}, "
            f"got {received!r} ({type(received).__name__}).",
            details={
                "plugin": plugin,
                "field": field,
                "expected": expected,
                "received": received,
            },
        )
        self.plugin = plugin
        self.field = field
        self.expected = expected
        self.received = received


class PluginConstructionFailure(PkgforgeCliError):
    default_code = "plugin_construction_failed"


class PackageGenerationFailure(PkgforgeCliError):
    default_code = "package_generation_failed"


class ConfigParseFailure(PkgforgeCliError):
    default_code = "config_parse_failed"


class UnsupportedShell(PkgforgeCliError):
    default_code = "unsupported_shell"


class UsageError(PkgforgeCliError):
    default_code = "usage_error"
