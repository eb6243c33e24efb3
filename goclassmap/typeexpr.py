"""
Type expression resolver.

Turns a type-expression node into its canonical display string plus the set of
named (non-primitive) types it references.  References to types of the
namespace being processed are emitted with :data:`PACKAGE_PLACEHOLDER` in place
of the namespace; callers substitute it with :func:`replace_placeholder` once
they know which form they need (bare local name for display, qualified name for
dependencies and signature comparison).
"""
from __future__ import annotations

import logging
from typing import Callable, Dict, FrozenSet, List, Mapping, NamedTuple, Optional, Sequence

from . import nodes
from .nodes import TypeExpr

__all__ = [
    "PACKAGE_PLACEHOLDER",
    "BUILTIN_NAMESPACE",
    "PRIMITIVES",
    "ResolvedType",
    "resolve_type",
    "resolve_field_types",
    "format_signature",
    "basic_type",
    "is_primitive",
    "is_exported",
    "replace_placeholder",
    "namespace_of",
]

logger = logging.getLogger(__name__)

PACKAGE_PLACEHOLDER = "{packageName}"
BUILTIN_NAMESPACE = "builtin"

PRIMITIVES: FrozenSet[str] = frozenset(
    {
        "bool",
        "string",
        "int",
        "int8",
        "int16",
        "int32",
        "int64",
        "uint",
        "uint8",
        "uint16",
        "uint32",
        "uint64",
        "uintptr",
        "byte",
        "rune",
        "float32",
        "float64",
        "complex64",
        "complex128",
        "error",
        "any",
        "comparable",
    }
)


class ResolvedType(NamedTuple):
    display: str
    dependencies: FrozenSet[str]


_EMPTY: FrozenSet[str] = frozenset()

Imports = Mapping[str, str]


def is_primitive(name: str) -> bool:
    """True for built-in type names, with or without a single pointer marker."""
    if name.startswith("*"):
        name = name[1:]
    return name in PRIMITIVES


def is_exported(name: str) -> bool:
    return bool(name) and name[0].isupper()


def replace_placeholder(text: str, namespace: str) -> str:
    """
    Substitute the namespace placeholder in ``text``.

    With an empty ``namespace`` the placeholder and its separator are dropped,
    which yields the bare local name used for display.
    """
    if namespace:
        return text.replace(PACKAGE_PLACEHOLDER, namespace)
    return text.replace(PACKAGE_PLACEHOLDER + ".", "")


def namespace_of(qualified: str) -> str:
    """
    Namespace part of a qualified type name.

    Unqualified names (no separator) belong to the built-in pseudo-namespace.
    """
    if "." not in qualified:
        return BUILTIN_NAMESPACE
    return qualified.rsplit(".", 1)[0]


def basic_type(expr: TypeExpr) -> TypeExpr:
    """
    Strip pointer/array/map/channel/variadic wrapping down to the innermost type.

    ``*[]map[string]Foo`` unwraps to ``Foo``.
    """
    if isinstance(expr, (nodes.Star, nodes.ArrayType, nodes.Ellipsis)):
        return basic_type(expr.elem)
    if isinstance(expr, (nodes.MapType, nodes.ChanType)):
        return basic_type(expr.value)
    return expr


def resolve_type(expr: Optional[TypeExpr], imports: Imports) -> ResolvedType:
    """
    Resolve ``expr`` into ``(display, dependencies)``.

    ``imports`` maps import aliases to dotted namespaces.  Unsupported shapes
    resolve to an empty display with no dependencies.
    """
    handler = _HANDLERS.get(type(expr))
    if handler is None:
        logger.debug("Unsupported type expression: %r", expr)
        return ResolvedType("", _EMPTY)
    return handler(expr, imports)


def resolve_field_types(fields: Sequence[nodes.FieldNode], imports: Imports) -> List[str]:
    """Display types of a parameter/result list, one entry per declared name."""
    types: List[str] = []
    for f in fields:
        display = resolve_type(f.type, imports).display
        types.extend([display] * max(1, len(f.names)))
    return types


def format_signature(func: nodes.FuncType, imports: Imports) -> str:
    """``(T1, T2) R`` / ``(T1) (R1, R2)`` / ``()`` for a function type."""
    params = ", ".join(resolve_field_types(func.params, imports))
    results = resolve_field_types(func.results, imports)
    if len(results) > 1:
        return f"({params}) ({', '.join(results)})"
    if results:
        return f"({params}) {results[0]}"
    return f"({params})"


# ---------------------------------------------------------------------------
# Per-shape handlers
# ---------------------------------------------------------------------------

def _ident(expr: nodes.Ident, imports: Imports) -> ResolvedType:
    if is_primitive(expr.name):
        return ResolvedType(expr.name, _EMPTY)
    qualified = f"{PACKAGE_PLACEHOLDER}.{expr.name}"
    return ResolvedType(qualified, frozenset({qualified}))


def _selector(expr: nodes.Selector, imports: Imports) -> ResolvedType:
    namespace = imports.get(expr.namespace, expr.namespace)
    qualified = f"{namespace}.{expr.name}"
    return ResolvedType(qualified, frozenset({qualified}))


def _star(expr: nodes.Star, imports: Imports) -> ResolvedType:
    inner = resolve_type(expr.elem, imports)
    return ResolvedType(f"*{inner.display}", inner.dependencies)


def _array(expr: nodes.ArrayType, imports: Imports) -> ResolvedType:
    inner = resolve_type(expr.elem, imports)
    return ResolvedType(f"[{expr.length or ''}]{inner.display}", inner.dependencies)


def _map(expr: nodes.MapType, imports: Imports) -> ResolvedType:
    key = resolve_type(expr.key, imports)
    value = resolve_type(expr.value, imports)
    return ResolvedType(f"map[{key.display}]{value.display}", key.dependencies | value.dependencies)


def _chan(expr: nodes.ChanType, imports: Imports) -> ResolvedType:
    inner = resolve_type(expr.value, imports)
    if expr.direction == "send":
        display = f"chan<- {inner.display}"
    elif expr.direction == "recv":
        display = f"<-chan {inner.display}"
    else:
        display = f"chan {inner.display}"
    return ResolvedType(display, inner.dependencies)


def _ellipsis(expr: nodes.Ellipsis, imports: Imports) -> ResolvedType:
    inner = resolve_type(expr.elem, imports)
    return ResolvedType(f"...{inner.display}", inner.dependencies)


def _struct(expr: nodes.StructType, imports: Imports) -> ResolvedType:
    types = [resolve_type(f.type, imports).display for f in expr.fields]
    return ResolvedType(f"struct{{{', '.join(types)}}}", _EMPTY)


def _interface(expr: nodes.InterfaceType, imports: Imports) -> ResolvedType:
    members: List[str] = []
    for member in expr.members:
        if member.names and isinstance(member.type, nodes.FuncType):
            members.append(member.names[0] + format_signature(member.type, imports))
        else:
            members.append(resolve_type(member.type, imports).display)
    return ResolvedType(f"interface{{{'; '.join(members)}}}", _EMPTY)


def _func(expr: nodes.FuncType, imports: Imports) -> ResolvedType:
    return ResolvedType(f"func{format_signature(expr, imports)}", _EMPTY)


_HANDLERS: Dict[type, Callable[..., ResolvedType]] = {
    nodes.Ident: _ident,
    nodes.Selector: _selector,
    nodes.Star: _star,
    nodes.ArrayType: _array,
    nodes.MapType: _map,
    nodes.ChanType: _chan,
    nodes.Ellipsis: _ellipsis,
    nodes.StructType: _struct,
    nodes.InterfaceType: _interface,
    nodes.FuncType: _func,
}
