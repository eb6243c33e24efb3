"""
Syntax-tree nodes consumed by the model builder.

The type-expression nodes form a closed set: every shape the resolver knows how
to render has exactly one class here, and ``TypeExpr`` is the union of them.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal, Optional, Tuple, Union

__all__ = [
    "Ident",
    "Selector",
    "Star",
    "ArrayType",
    "MapType",
    "ChanType",
    "Ellipsis",
    "StructType",
    "InterfaceType",
    "FuncType",
    "FieldNode",
    "TypeExpr",
    "TypeSpec",
    "FuncDecl",
    "ImportSpec",
    "Decl",
    "SourceFile",
    "Package",
]

ChanDir = Literal["both", "send", "recv"]


@dataclass(frozen=True)
class Ident:
    """A bare type name (``int``, ``Foo``)."""

    name: str


@dataclass(frozen=True)
class Selector:
    """A qualified type name (``pkg.Name``); ``namespace`` is the import alias."""

    namespace: str
    name: str


@dataclass(frozen=True)
class Star:
    elem: "TypeExpr"


@dataclass(frozen=True)
class ArrayType:
    """Slice (``length is None``) or fixed-size array."""

    elem: "TypeExpr"
    length: Optional[str] = None


@dataclass(frozen=True)
class MapType:
    key: "TypeExpr"
    value: "TypeExpr"


@dataclass(frozen=True)
class ChanType:
    value: "TypeExpr"
    direction: ChanDir = "both"


@dataclass(frozen=True)
class Ellipsis:
    """Variadic parameter type ``...T``."""

    elem: "TypeExpr"


@dataclass(frozen=True)
class FieldNode:
    """
    One entry of a field list: struct field, interface member, parameter or
    result.  ``names`` is empty for embedded fields and unnamed parameters.
    """

    names: Tuple[str, ...]
    type: "TypeExpr"
    tag: Optional[str] = None


@dataclass(frozen=True)
class StructType:
    fields: Tuple[FieldNode, ...] = ()


@dataclass(frozen=True)
class InterfaceType:
    members: Tuple[FieldNode, ...] = ()


@dataclass(frozen=True)
class FuncType:
    params: Tuple[FieldNode, ...] = ()
    results: Tuple[FieldNode, ...] = ()


TypeExpr = Union[
    Ident,
    Selector,
    Star,
    ArrayType,
    MapType,
    ChanType,
    Ellipsis,
    StructType,
    InterfaceType,
    FuncType,
]


# ---------------------------------------------------------------------------
# Declarations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class TypeSpec:
    """``type Name[TypeParams] Type`` (``is_alias`` for ``type Name = Type``)."""

    name: str
    type: TypeExpr
    type_params: Tuple[str, ...] = ()
    is_alias: bool = False
    lineno: int = 0


@dataclass(frozen=True)
class FuncDecl:
    """A function or, when ``receiver`` is set, a method declaration."""

    name: str
    type: FuncType
    receiver: Optional[FieldNode] = None
    lineno: int = 0


@dataclass(frozen=True)
class ImportSpec:
    path: str
    name: Optional[str] = None


Decl = Union[TypeSpec, FuncDecl]


@dataclass(frozen=True)
class SourceFile:
    package: str
    path: Path
    imports: Tuple[ImportSpec, ...] = ()
    decls: Tuple[Decl, ...] = ()


@dataclass
class Package:
    """A namespace grouping of source files as produced by the scanner."""

    namespace: str
    files: Tuple[SourceFile, ...] = field(default_factory=tuple)
