"""Mermaid class-diagram renderer."""
from __future__ import annotations

import re
from typing import ClassVar, Dict, List

from .model import Classifier, Field, Method
from .renderer import Edge, Renderer

__all__ = ["MermaidRenderer", "mermaid_id"]

_UNSAFE = re.compile(r"[^A-Za-z0-9_]")


def mermaid_id(qualified: str) -> str:
    """Mermaid identifiers allow only word characters."""
    return _UNSAFE.sub("_", qualified)


class MermaidRenderer(Renderer):
    format_name = "mermaid"

    annotations: ClassVar[Dict[str, str]] = {
        "record": "<<record>>",
        "interface": "<<interface>>",
        "alias": "<<alias>>",
    }

    def __init__(self, options=None) -> None:
        super().__init__(options)
        self._ids: Dict[str, str] = {}

    def node_id(self, qualified: str) -> str:
        """
        Identifier of ``qualified`` in the current document.

        :func:`mermaid_id` folds several characters onto ``_``, so a name whose
        folded form is already taken by another name gets a numeric suffix.
        """
        identifier = self._ids.get(qualified)
        if identifier is None:
            base = mermaid_id(qualified)
            taken = set(self._ids.values())
            identifier = base
            suffix = 2
            while identifier in taken:
                identifier = f"{base}_{suffix}"
                suffix += 1
            self._ids[qualified] = identifier
        return identifier

    def begin(self, lines: List[str]) -> None:
        self._ids = {}
        if self.options.title:
            lines.extend(["---", f"title: {self.options.title}", "---"])
        lines.append("classDiagram")
        for note in self.options.notes.strip().splitlines():
            if note.strip():
                lines.append(f'{self.indent}note "{_quote(note.strip())}"')

    def end(self, lines: List[str]) -> None:
        pass

    def render_classifier(self, classifier: Classifier, rows: List[str], lines: List[str]) -> None:
        lines.append(f"{self.indent}class {self.node_id(classifier.qualified_name)} {{")
        annotation = self.annotations.get(classifier.kind)
        if annotation:
            lines.append(f"{self.indent * 2}{annotation}")
        lines.extend(f"{self.indent * 2}{row}" for row in rows)
        lines.append(f"{self.indent}}}")

    def render_renamed(self, namespace: str, synthetic: str, original: str, lines: List[str]) -> None:
        identifier = self.node_id(f"{namespace}.{synthetic}")
        lines.append(f'{self.indent}class {identifier}["{_quote(original)}"]')

    def format_type(self, display: str) -> str:
        return display.replace(".", "_").replace("{", "").replace("}", "")

    def format_field(self, field: Field) -> str:
        return f"{self.access_marker(field.exported)}{field.name} {self.format_type(field.type)}"

    def format_method(self, method: Method) -> str:
        return super().format_method(method).replace(" ", "", 1)

    def format_edge(self, edge: Edge) -> str:
        source = self.node_id(edge.source)
        target = self.node_id(edge.target)
        if edge.kind == "composition":
            text = f"{source} *-- {target}"
        elif edge.kind == "aggregation":
            text = f"{source} o-- {target}"
        elif edge.kind == "embedding":
            text = f"{target} <|-- {source}"
        elif edge.kind == "implementation":
            text = f"{target} <|.. {source}"
        else:
            text = f"{target} .. {source}"
        if edge.label:
            text += f" : {edge.label}"
        return text


def _quote(text: str) -> str:
    return text.replace('"', "'")
