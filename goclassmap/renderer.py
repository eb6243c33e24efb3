# goclassmap/renderer.py
"""
Shared rendering contract.

:class:`Renderer` owns everything that is common to the output formats: the
traversal order (namespaces, then classifiers, then edges, each sorted), the
member and edge gating driven by :class:`RenderingOptions`, and the alias pass.
Concrete renderers only decide which tokens to write.
"""
from __future__ import annotations

import abc
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import ClassVar, Dict, Iterable, List, Literal, Mapping, Tuple, Type, Union

from .errors import UnknownFormatError
from .model import INTERFACE, Alias, Classifier, Field, Method, Registry
from .options import RenderingOptions
from .typeexpr import BUILTIN_NAMESPACE, is_primitive, namespace_of

__all__ = [
    "EdgeKind",
    "Edge",
    "Renderer",
    "FORMATS",
    "renderer_class",
    "render_diagram",
    "write_svg",
]

logger = logging.getLogger(__name__)

EdgeKind = Literal["composition", "embedding", "implementation", "aggregation", "alias"]

FORMATS: Tuple[str, ...] = ("plantuml", "mermaid", "dot")


@dataclass(frozen=True)
class Edge:
    """
    One relationship line.

    ``source`` is the owning side (the embedding/implementing/referencing
    classifier, or the alias); ``target`` is what it points at.
    """

    kind: EdgeKind
    source: str
    target: str
    label: str = ""


class Renderer(abc.ABC):
    format_name: ClassVar[str] = ""
    indent: ClassVar[str] = "    "
    edge_labels: ClassVar[Dict[str, str]] = {
        "composition": "embeds",
        "embedding": "extends",
        "implementation": "implements",
        "aggregation": "uses",
        "alias": "alias of",
    }

    def __init__(self, options: Union[RenderingOptions, Mapping, None] = None) -> None:
        if options is None:
            options = RenderingOptions()
        elif not isinstance(options, RenderingOptions):
            options = RenderingOptions.from_mapping(options)
        options.validate()
        self.options = options

    # --- traversal -------------------------------------------------------

    def render(self, registry: Registry) -> str:
        """Render the finished ``registry``; the registry is never modified."""
        lines: List[str] = []
        self.begin(lines)
        namespaces = set(registry.namespaces())
        if self.options.render_aliases:
            namespaces.update(ns for ns, table in registry.renamed.items() if table)
        for namespace in sorted(namespaces):
            self.render_namespace(registry, namespace, lines)
        if self.options.render_aliases:
            for edge in self.alias_edges(registry):
                lines.append(self.format_edge(edge))
        self.end(lines)
        logger.debug("Rendered %s diagram: %d lines", self.format_name, len(lines))
        return "\n".join(lines) + "\n"

    def render_namespace(self, registry: Registry, namespace: str, lines: List[str]) -> None:
        members = registry.classifiers.get(namespace, {})
        classifiers = [members[name] for name in sorted(members)]
        renamed = registry.sorted_renamed(namespace) if self.options.render_aliases else []
        if not classifiers and not renamed:
            return
        self.open_namespace(namespace, lines)
        for classifier in classifiers:
            self.render_classifier(classifier, self.member_rows(classifier), lines)
        for synthetic, original in renamed:
            self.render_renamed(namespace, synthetic, original, lines)
        self.close_namespace(namespace, lines)
        for edge in self.classifier_edges(classifiers):
            lines.append(self.format_edge(edge))

    def member_rows(self, classifier: Classifier) -> List[str]:
        """Formatted member rows: private fields, fields, private methods, methods."""
        opts = self.options
        rows: List[str] = []
        fields = sorted(classifier.fields, key=lambda f: f.name)
        methods = sorted(classifier.methods, key=lambda m: m.name)
        if opts.show_fields:
            if opts.show_private_members:
                rows.extend(self.format_field(f) for f in fields if not f.exported)
            rows.extend(self.format_field(f) for f in fields if f.exported)
        if opts.show_methods:
            if opts.show_private_members:
                rows.extend(self.format_method(m) for m in methods if not m.exported)
            rows.extend(self.format_method(m) for m in methods if m.exported)
        return rows

    # --- edges -----------------------------------------------------------

    def classifier_edges(self, classifiers: Iterable[Classifier]) -> List[Edge]:
        """Edges of one namespace: compositions, implementations, then aggregations."""
        opts = self.options
        compositions: List[Edge] = []
        implementations: List[Edge] = []
        aggregations: List[Edge] = []
        for classifier in classifiers:
            source = classifier.qualified_name
            if opts.render_compositions:
                kind: EdgeKind = "embedding" if classifier.kind == INTERFACE else "composition"
                for target in classifier.composition:
                    compositions.append(self._edge(kind, source, self.qualify(target, classifier)))
            if opts.render_implementations:
                for target in classifier.extends:
                    implementations.append(self._edge("implementation", source, target))
            if opts.render_aggregations:
                targets = set(classifier.aggregations)
                if opts.aggregate_private_members:
                    targets.update(classifier.private_aggregations)
                for target in targets:
                    target = self.qualify(target, classifier)
                    if namespace_of(target) != BUILTIN_NAMESPACE:
                        aggregations.append(self._edge("aggregation", source, target))
        ordered: List[Edge] = []
        for group in (compositions, implementations, aggregations):
            ordered.extend(sorted(group, key=lambda e: (e.source, e.target, e.kind)))
        return ordered

    def alias_edges(self, registry: Registry) -> List[Edge]:
        edges = [
            self._edge("alias", alias.qualified_name, self.alias_target(registry, alias))
            for alias in registry.sorted_aliases()
        ]
        return sorted(edges, key=lambda e: (e.source, e.target))

    def alias_target(self, registry: Registry, alias: Alias) -> str:
        """The underlying name, or its synthetic stand-in when it cannot be used as an identifier."""
        synthetic = registry.synthetic_name(alias.underlying_namespace, alias.underlying_display)
        if synthetic is not None:
            return f"{alias.underlying_namespace}.{synthetic}"
        return alias.underlying

    @staticmethod
    def qualify(target: str, classifier: Classifier) -> str:
        if "." in target:
            return target
        namespace = BUILTIN_NAMESPACE if is_primitive(target) else classifier.namespace
        return f"{namespace}.{target}"

    def _edge(self, kind: EdgeKind, source: str, target: str) -> Edge:
        label = self.edge_labels[kind] if self.options.label_edges else ""
        return Edge(kind=kind, source=source, target=target, label=label)

    # --- member text -----------------------------------------------------

    @staticmethod
    def access_marker(exported: bool) -> str:
        return "+" if exported else "-"

    def format_type(self, display: str) -> str:
        return display

    def format_field(self, field: Field) -> str:
        return f"{self.access_marker(field.exported)} {field.name} {self.format_type(field.type)}"

    def format_method(self, method: Method) -> str:
        params = ", ".join(
            f"{p.name} {self.format_type(p.type)}".strip() for p in method.parameters
        )
        returns = self.format_returns(method)
        text = f"{self.access_marker(method.exported)} {method.name}({params}) {returns}"
        return text.rstrip()

    def format_returns(self, method: Method) -> str:
        returns = [self.format_type(r) for r in method.returns]
        if len(returns) > 1:
            return f"({', '.join(returns)})"
        return "".join(returns)

    # --- format hooks ----------------------------------------------------

    @abc.abstractmethod
    def begin(self, lines: List[str]) -> None:
        ...

    @abc.abstractmethod
    def end(self, lines: List[str]) -> None:
        ...

    def open_namespace(self, namespace: str, lines: List[str]) -> None:
        pass

    def close_namespace(self, namespace: str, lines: List[str]) -> None:
        pass

    @abc.abstractmethod
    def render_classifier(self, classifier: Classifier, rows: List[str], lines: List[str]) -> None:
        ...

    @abc.abstractmethod
    def render_renamed(self, namespace: str, synthetic: str, original: str, lines: List[str]) -> None:
        ...

    @abc.abstractmethod
    def format_edge(self, edge: Edge) -> str:
        ...


def renderer_class(fmt: str) -> Type[Renderer]:
    """Renderer class registered for ``fmt`` (one of :data:`FORMATS`)."""
    from .dot import DotRenderer
    from .mermaid import MermaidRenderer
    from .plantuml import PlantUMLRenderer

    classes: Dict[str, Type[Renderer]] = {
        cls.format_name: cls for cls in (PlantUMLRenderer, MermaidRenderer, DotRenderer)
    }
    try:
        return classes[fmt]
    except KeyError:
        raise UnknownFormatError(
            f"Unknown output format {fmt!r}; expected one of {', '.join(FORMATS)}"
        ) from None


def render_diagram(
    registry: Registry,
    options: Union[RenderingOptions, Mapping, None] = None,
    fmt: str = "plantuml",
) -> str:
    """
    Render ``registry`` as diagram text in format ``fmt``.

    Options are validated before anything is rendered.  The same registry can be
    rendered any number of times, in any format.
    """
    cls = renderer_class(fmt)
    return cls(options).render(registry)


def write_svg(dot: str, output: Path) -> None:  # pragma: no cover
    """
    Render a DOT string to an SVG file using the `graphviz` package.

    This requires the Graphviz `dot` binary to be installed on the system.
    """
    from graphviz import Source

    src = Source(dot)
    svg_bytes = src.pipe(format="svg")
    output.write_bytes(svg_bytes)
