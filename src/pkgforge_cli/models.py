from __future__ import annotations

import enum
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any


class TypeKind(enum.Enum):
    BOOL = "bool"
    INT = "int"
    FLOAT = "float"
    STR = "str"
    STR_LIST = "list[str]"


_NONE_SUFFIXES = ("| None", "|None")


def _strip_optional(text: str) -> str | None:
    for suffix in _NONE_SUFFIXES:
        if text.endswith(suffix):
            return text[: -len(suffix)].strip()
    if text.startswith("Optional[") and text.endswith("]"):
        return text[len("Optional[") : -1].strip()
    return None


@dataclass(frozen=True)
class FieldType:
    """Semantic type of a plugin field: one of :class:`TypeKind`, optionally nullable."""

    kind: TypeKind
    optional: bool = False

    @classmethod
    def parse(cls, tag: str) -> FieldType:
        """Parse a registry tag such as ``"int"``, ``"list[str]"`` or ``"str | None"``."""
        text = tag.strip()
        optional = False
        # Optional[Optional[T]] collapses to Optional[T].
        while (inner := _strip_optional(text)) is not None:
            text = inner
            optional = True
        try:
            kind = TypeKind(text)
        except ValueError:
            raise ValueError(f"Unknown field type tag: {tag!r}") from None
        return cls(kind=kind, optional=optional)

    def __str__(self) -> str:
        if self.optional:
            return f"Optional[{self.kind.value}]"
        return self.kind.value


@dataclass(frozen=True)
class PluginDetails:
    name: str
    fields: tuple[str, ...]
    types: tuple[FieldType, ...]
    defaults: tuple[Any, ...]
    description: str = ""

    def __post_init__(self) -> None:
        if not (len(self.fields) == len(self.types) == len(self.defaults)):
            raise ValueError(
                f"PluginDetails for {self.name!r}: fields, types and defaults must have the "
                f"same length (got {len(self.fields)}, {len(self.types)}, {len(self.defaults)})."
            )
        if len(set(self.fields)) != len(self.fields):
            raise ValueError(f"PluginDetails for {self.name!r}: duplicate field names.")

    @property
    def option_name(self) -> str:
        return self.name.lower()

    def field_type(self, field_name: str) -> FieldType | None:
        try:
            return self.types[self.fields.index(field_name)]
        except ValueError:
            return None

    def field_items(self) -> Sequence[tuple[str, FieldType, Any]]:
        return list(zip(self.fields, self.types, self.defaults))


@dataclass(frozen=True)
class CommandResult:
    success: bool
    message: str | None = None
    data: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        if self.data is None:
            return
        if not isinstance(self.data, Mapping):
            raise TypeError(f"CommandResult.data must be a mapping, got {type(self.data).__name__}.")
        # Frozen: normalize through object.__setattr__.
        object.__setattr__(self, "data", {str(k): v for k, v in self.data.items()})

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1


class Command(enum.Enum):
    CREATE = "create"
    CONFIG_SHOW = "config-show"
    CONFIG_SET = "config-set"
    PLUGIN_INFO = "plugin-info"
    COMPLETION = "completion"
    HELP = "help"

    @classmethod
    def from_args(cls, args: Any) -> Command:
        """Map a parsed namespace to its command; anything incomplete is ``HELP``."""
        command = getattr(args, "command", None)
        return command if isinstance(command, cls) else cls.HELP
