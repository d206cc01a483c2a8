from __future__ import annotations

import copy
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import tomlkit
from jsonschema import Draft202012Validator
from tomlkit.exceptions import TOMLKitError

from pkgforge_cli.errors import ConfigParseFailure

APP_NAME = "pkgforge"
CONFIG_FILENAME = "config.toml"

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "properties": {
        "default": {
            "type": "object",
            "properties": {
                "author": {"type": "string"},
                "user": {"type": "string"},
                "mail": {"type": "string"},
                "python_version": {"type": "string"},
                "mise_filename_base": {"type": "string", "minLength": 1},
                "with_mise": {"type": "boolean"},
            },
        },
        "plugins": {
            "type": "object",
            "additionalProperties": {"type": "object"},
        },
    },
}


def default_config() -> dict[str, Any]:
    return {
        "default": {
            "author": "",
            "user": "",
            "mail": "",
            "python_version": "3.12",
            "mise_filename_base": ".mise",
            "with_mise": False,
        },
        "plugins": {},
    }


def merge_config(base: Mapping[str, Any], overlay: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``base`` overlaid with ``overlay``; neither input is modified.

    Nested mappings merge recursively. An overlay value of ``None`` means "not
    specified" and keeps the base value when the key exists there.
    """
    merged: dict[str, Any] = {key: copy.deepcopy(value) for key, value in base.items()}
    for key, value in overlay.items():
        current = merged.get(key)
        if isinstance(value, Mapping) and isinstance(current, Mapping):
            merged[key] = merge_config(current, value)
        elif key not in merged or value is not None:
            merged[key] = copy.deepcopy(value)
    return merged


def schema_type(dotted_key: str) -> str | None:
    """JSON-schema type of a dotted config key, or ``None`` when unconstrained."""
    node: Mapping[str, Any] = CONFIG_SCHEMA
    for part in dotted_key.split("."):
        part = part.strip()
        properties = node.get("properties") or {}
        if part in properties:
            node = properties[part]
        elif isinstance(node.get("additionalProperties"), Mapping):
            node = node["additionalProperties"]
        else:
            return None
    kind = node.get("type")
    return kind if isinstance(kind, str) else None


def config_dir() -> Path:
    xdg = os.environ.get("XDG_CONFIG_HOME", "").strip()
    root = Path(xdg) if xdg else Path.home() / ".config"
    return root / APP_NAME


def _plain(value: Any) -> Any:
    # tomlkit containers -> builtin dict/list/scalars.
    unwrap = getattr(value, "unwrap", None)
    if callable(unwrap):
        return unwrap()
    return value


def _validate_tree(tree: dict[str, Any], *, path: Path) -> None:
    errors = sorted(Draft202012Validator(CONFIG_SCHEMA).iter_errors(tree), key=lambda e: list(e.path))
    if not errors:
        return
    first = errors[0]
    where = ".".join(str(p) for p in first.path) or "<root>"
    raise ConfigParseFailure(
        f"Invalid configuration in {path} at {where}: {first.message}",
        details={"path": str(path), "key": where},
    )


class ConfigStore:
    """TOML configuration file under the XDG config directory."""

    def __init__(self, path: Path | None = None) -> None:
        self.path = path if path is not None else config_dir() / CONFIG_FILENAME

    def _read_document(self) -> tomlkit.TOMLDocument | None:
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except OSError as e:
            raise ConfigParseFailure(
                f"Failed to read config file {self.path}: {e}", details={"path": str(self.path)}
            ) from e
        try:
            doc = tomlkit.parse(text)
        except TOMLKitError as e:
            raise ConfigParseFailure(
                f"Failed to parse config file {self.path}: {e}", details={"path": str(self.path)}
            ) from e
        _validate_tree(_plain(doc), path=self.path)
        return doc

    def load(self) -> dict[str, Any]:
        doc = self._read_document()
        if doc is None:
            return default_config()
        return _plain(doc)

    def load_or_default(self, log: logging.Logger) -> dict[str, Any]:
        try:
            return self.load()
        except ConfigParseFailure as e:
            log.error("%s", e)
            log.warning("Using default configuration")
            return default_config()

    def _write_document(self, doc: tomlkit.TOMLDocument) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(tomlkit.dumps(doc), encoding="utf-8", newline="\n")

    def save(self, tree: Mapping[str, Any]) -> None:
        doc = tomlkit.document()
        for key, value in tree.items():
            doc[key] = copy.deepcopy(value)
        self._write_document(doc)

    def set_values(self, assignments: Mapping[str, Any], log: logging.Logger) -> dict[str, Any]:
        """Apply dotted-key assignments to the stored document and write it back.

        Comments and ordering of an existing file are preserved. An unreadable
        file is replaced by the defaults plus the assignments.
        """
        try:
            doc = self._read_document()
        except ConfigParseFailure as e:
            log.error("%s", e)
            log.warning("Replacing unreadable configuration with defaults")
            doc = None
        if doc is None:
            doc = tomlkit.document()
            for key, value in default_config().items():
                doc[key] = value

        for dotted, value in assignments.items():
            parts = [part.strip() for part in dotted.split(".")]
            if not all(parts):
                raise ConfigParseFailure(f"Invalid configuration key: {dotted!r}", details={"key": dotted})
            container: Any = doc
            for part in parts[:-1]:
                child = container.get(part)
                if child is None:
                    child = tomlkit.table()
                    container[part] = child
                elif not isinstance(child, Mapping):
                    raise ConfigParseFailure(
                        f"Cannot set {dotted!r}: {part!r} is not a table.", details={"key": dotted}
                    )
                container = child
            container[parts[-1]] = value

        tree = _plain(doc)
        _validate_tree(tree, path=self.path)
        self._write_document(doc)
        log.info("Configuration saved to %s", self.path)
        return tree
