"""Rendering options: the only tunable surface of a render."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Union

from .errors import InvalidRenderingOptionError

__all__ = ["RenderingOption", "RenderingOptions"]


class RenderingOption(str, Enum):
    """Keys accepted by :meth:`RenderingOptions.from_mapping`."""

    SHOW_FIELDS = "show_fields"
    SHOW_METHODS = "show_methods"
    SHOW_PRIVATE_MEMBERS = "show_private_members"
    RENDER_COMPOSITIONS = "render_compositions"
    RENDER_IMPLEMENTATIONS = "render_implementations"
    RENDER_AGGREGATIONS = "render_aggregations"
    RENDER_ALIASES = "render_aliases"
    AGGREGATE_PRIVATE_MEMBERS = "aggregate_private_members"
    LABEL_EDGES = "label_edges"
    TITLE = "title"
    NOTES = "notes"


OptionKey = Union[str, RenderingOption]


@dataclass(frozen=True)
class RenderingOptions:
    """
    What a renderer emits.

    show_fields / show_methods:
        Emit member rows inside classifier blocks.
    show_private_members:
        Also emit non-exported fields and methods.
    render_compositions / render_implementations / render_aggregations / render_aliases:
        Emit the corresponding edge kind.
    aggregate_private_members:
        Fold aggregations reached through non-exported fields into the rendered
        aggregation edges.
    label_edges:
        Annotate edges with their relationship kind.
    title / notes:
        Diagram title and free-form legend text; empty means none.
    """

    show_fields: bool = True
    show_methods: bool = True
    show_private_members: bool = False
    render_compositions: bool = True
    render_implementations: bool = True
    render_aggregations: bool = False
    render_aliases: bool = True
    aggregate_private_members: bool = False
    label_edges: bool = False
    title: str = ""
    notes: str = ""

    @classmethod
    def from_mapping(cls, values: Mapping[OptionKey, Any]) -> "RenderingOptions":
        return cls().updated(values)

    def updated(self, values: Optional[Mapping[OptionKey, Any]] = None, **kwargs: Any) -> "RenderingOptions":
        """Return a copy with the given options replaced, validating every key and value."""
        changes: Dict[str, Any] = {}
        items = list((values or {}).items()) + list(kwargs.items())
        for key, value in items:
            name = _option_name(key)
            _check_type(name, value)
            changes[name] = value
        return dataclasses.replace(self, **changes)

    def validate(self) -> None:
        """Raise :class:`InvalidRenderingOptionError` if any value has the wrong type."""
        for f in dataclasses.fields(self):
            _check_type(f.name, getattr(self, f.name))

    def describe(self) -> List[str]:
        """``name = value`` lines for every boolean option, in declaration order."""
        return [
            f"{f.name} = {str(getattr(self, f.name)).lower()}"
            for f in dataclasses.fields(self)
            if f.type in ("bool", bool)
        ]


_OPTION_TYPES: Dict[str, type] = {
    f.name: str if f.type in ("str", str) else bool for f in dataclasses.fields(RenderingOptions)
}


def _option_name(key: OptionKey) -> str:
    if isinstance(key, RenderingOption):
        return key.value
    if isinstance(key, str) and key in _OPTION_TYPES:
        return key
    raise InvalidRenderingOptionError(f"Invalid rendering option: {key!r}")


def _check_type(name: str, value: Any) -> None:
    expected = _OPTION_TYPES[name]
    if not isinstance(value, expected):
        raise InvalidRenderingOptionError(
            f"Rendering option {name!r} expects {expected.__name__}, got {type(value).__name__}"
        )
