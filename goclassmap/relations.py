"""
Structural interface satisfaction.

A record satisfies an interface when it declares, with identical signatures,
every method the interface requires, including methods inherited through
embedded interfaces.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from .model import INTERFACE, Classifier, Method, Registry

__all__ = ["interface_methods", "implements_interface", "resolve_relationships"]

logger = logging.getLogger(__name__)


def interface_methods(interface: Classifier, registry: Optional[Registry] = None) -> List[Method]:
    """
    Methods required by ``interface``, flattened through embedded interfaces.

    Embedded interfaces that are not in ``registry`` contribute nothing; cycles
    are visited once.
    """
    methods: List[Method] = []
    seen: Set[str] = set()
    stack = [interface]
    while stack:
        current = stack.pop()
        if current.qualified_name in seen:
            continue
        seen.add(current.qualified_name)
        methods.extend(current.methods)
        if registry is None:
            continue
        for target in sorted(current.composition, reverse=True):
            embedded = registry.get(target)
            if embedded is not None and embedded.kind == INTERFACE:
                stack.append(embedded)
    return methods


def _satisfies(methods: Sequence[Method], required: Sequence[Method]) -> bool:
    for wanted in required:
        if not any(candidate.signature_matches(wanted) for candidate in methods):
            return False
    return True


def implements_interface(
    record: Classifier,
    interface: Classifier,
    registry: Optional[Registry] = None,
) -> bool:
    """True if ``record`` structurally satisfies ``interface``; never mutates either."""
    if record is interface:
        return False
    return _satisfies(tuple(record.methods), tuple(interface_methods(interface, registry)))


def resolve_relationships(registry: Registry) -> None:
    """Add an ``extends`` edge from every record to every interface it satisfies."""
    interfaces = [(i, tuple(interface_methods(i, registry))) for i in registry.interfaces()]
    edges = 0
    for record in registry.records():
        methods = tuple(record.methods)
        for interface, required in interfaces:
            if record is interface:
                continue
            if _satisfies(methods, required):
                record.add_to_extends(interface.qualified_name)
                edges += 1
    logger.debug("Resolved %d structural implementation edges", edges)
