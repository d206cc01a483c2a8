"""Typed ``key=value`` plugin options.

Values are inferred in a fixed order, first match wins: ``true``/``false`` →
bool, ``-?[0-9]+`` → int, ``-?[0-9]+.[0-9]*`` or ``-?.[0-9]+`` → float,
``[a, b]`` → list of strings (elements stay strings), anything else → the
raw string.
"""

from __future__ import annotations

import re
from collections.abc import Iterator, Mapping, Sequence
from typing import TYPE_CHECKING, Any

from pkgforge_cli.errors import MalformedOptionToken
from pkgforge_cli.models import TypeKind

if TYPE_CHECKING:
    from pkgforge_cli.catalog import PluginCatalog

_INT_RE = re.compile(r"-?[0-9]+")
_FLOAT_RE = re.compile(r"-?(?:[0-9]+\.[0-9]*|\.[0-9]+)")
_LIST_RE = re.compile(r"\[(.*)\]", re.DOTALL)


def parse_value(raw: str) -> Any:
    if raw == "true":
        return True
    if raw == "false":
        return False
    if _INT_RE.fullmatch(raw):
        return int(raw)
    if _FLOAT_RE.fullmatch(raw):
        return float(raw)
    list_match = _LIST_RE.fullmatch(raw)
    if list_match is not None:
        inner = list_match.group(1)
        if not inner.strip():
            return []
        return [item.strip() for item in inner.split(",")]
    return raw


def split_option_token(token: str) -> tuple[str, str]:
    """Split ``KEY=VALUE`` on the first ``=``; the value text is kept verbatim."""
    if "=" not in token:
        raise MalformedOptionToken(token)
    key, raw = token.split("=", 1)
    key = key.strip()
    if not key:
        raise MalformedOptionToken(token, "missing option name before '='")
    return key, raw


def parse_option_value(token: str) -> tuple[str, Any]:
    key, raw = split_option_token(token)
    return key, parse_value(raw)


def _iter_tokens(value: Any) -> Iterator[str]:
    # argparse `append` + `nargs="*"` yields a list of lists.
    if isinstance(value, str):
        yield value
        return
    for item in value:
        if isinstance(item, str):
            yield item
        else:
            yield from _iter_tokens(item)


def collect_plugin_options(
    args: Mapping[str, Any], catalog: PluginCatalog
) -> dict[str, dict[str, Any]]:
    """Decode the plugin options present in a parsed argument map.

    Keys are matched against the catalog's plugin option names after stripping
    leading dashes and lower-casing; other keys are ignored. A plugin given
    without tokens (or as a bare flag) maps to an empty dict. Later tokens
    override earlier ones for the same option key. Values for string fields
    keep the raw token text, so ``version=1.0`` stays ``"1.0"``.
    """
    known = set(catalog.option_names())
    collected: dict[str, dict[str, Any]] = {}
    for key, value in args.items():
        name = key.lstrip("-").lower()
        if name not in known:
            continue
        if value is None or value is False:
            continue
        options = collected.setdefault(name, {})
        if value is True:
            continue
        details = catalog.get(name)
        if not isinstance(value, (str, Sequence)):
            raise MalformedOptionToken(str(value), f"unexpected value for --{name}")
        for token in _iter_tokens(value):
            option_key, raw = split_option_token(token)
            field_type = details.field_type(option_key)
            if field_type is not None and field_type.kind is TypeKind.STR:
                options[option_key] = raw
            else:
                options[option_key] = parse_value(raw)
    return collected
