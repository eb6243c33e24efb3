"""PlantUML class-diagram renderer."""
from __future__ import annotations

import re
from typing import ClassVar, Dict, List

from .model import ALIAS, INTERFACE, RECORD, Classifier
from .renderer import Edge, Renderer

__all__ = ["PlantUMLRenderer"]

_KEYWORDS = re.compile(r"\b(map(?=\[)|chan\b|struct(?=\{)|interface(?=\{)|func(?=\())")

_STEREOTYPES: Dict[str, str] = {
    RECORD: " << (S,Aquamarine) >>",
    ALIAS: " << (T, #FF7700) >>",
}

_RENAMED_COMMENT = (
    "'Stand-in for an alias target whose name would otherwise break the namespace syntax"
)


class PlantUMLRenderer(Renderer):
    format_name = "plantuml"

    connectives: ClassVar[Dict[str, str]] = {
        "composition": "*--",
        "embedding": "<|--",
        "implementation": "<|..",
        "aggregation": "o--",
        "alias": "#..",
    }

    def begin(self, lines: List[str]) -> None:
        lines.append("@startuml")
        lines.append("skinparam nodesep 500")
        lines.append("skinparam ranksep 1500")
        if self.options.title:
            lines.append(f"title {self.options.title}")
        notes = self.options.notes.strip()
        if notes:
            lines.append("legend")
            lines.append(notes)
            lines.append("end legend")

    def end(self, lines: List[str]) -> None:
        if not self.options.show_fields:
            lines.append("hide fields")
        if not self.options.show_methods:
            lines.append("hide methods")
        lines.append("@enduml")

    def open_namespace(self, namespace: str, lines: List[str]) -> None:
        lines.append(f"namespace {namespace} {{")

    def close_namespace(self, namespace: str, lines: List[str]) -> None:
        lines.append("}")

    def render_classifier(self, classifier: Classifier, rows: List[str], lines: List[str]) -> None:
        keyword = "interface" if classifier.kind == INTERFACE else "class"
        stereotype = _STEREOTYPES.get(classifier.kind, "")
        lines.append(f"{self.indent}{keyword} {classifier.name}{stereotype} {{")
        lines.extend(f"{self.indent * 2}{row}" for row in rows)
        lines.append(f"{self.indent}}}")

    def render_renamed(self, namespace: str, synthetic: str, original: str, lines: List[str]) -> None:
        lines.append(f'{self.indent}class "{original}" as {synthetic} {{')
        lines.append(f"{self.indent * 2}{_RENAMED_COMMENT}")
        lines.append(f"{self.indent}}}")

    def format_type(self, display: str) -> str:
        return _KEYWORDS.sub(r"<font color=blue>\1</font>", display)

    def format_edge(self, edge: Edge) -> str:
        connective = self.connectives[edge.kind]
        if edge.kind in ("composition", "embedding", "implementation", "alias"):
            text = f'"{edge.target}" {connective} "{edge.source}"'
        else:
            text = f'"{edge.source}" {connective} "{edge.target}"'
        if edge.label:
            text += f" : {edge.label}"
        return text
