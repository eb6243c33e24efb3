# goclassmap/dot.py
"""
Graphviz DOT renderer.

Classifiers become HTML-like table nodes grouped in one cluster per namespace.
Member rows are coloured with the Pygments Go lexer.
"""
from __future__ import annotations

from typing import ClassVar, Dict, List, Optional

from pygments.lexers import GoLexer
from pygments.token import Token

from .model import ALIAS, INTERFACE, Classifier
from .renderer import Edge, Renderer

__all__ = ["DotRenderer"]

NOTES_NODE = "__notes__"

# Color mapping for Go tokens
_TOKEN_COLORS = {
    Token.Keyword: "#0000FF",
    Token.Keyword.Declaration: "#0000FF",
    Token.Keyword.Type: "#0000FF",
    Token.Keyword.Constant: "#0000FF",
    Token.Name.Builtin: "#0000FF",
    Token.Name.Other: "#000000",
    Token.String: "#A31515",
    Token.Number: "#098658",
    Token.Operator: "#000000",
    Token.Punctuation: "#000000",
}


class DotRenderer(Renderer):
    format_name = "dot"
    indent = "  "

    edge_attributes: ClassVar[Dict[str, str]] = {
        "composition": "dir=back, arrowtail=diamond",
        "aggregation": "dir=back, arrowtail=odiamond",
        "embedding": "arrowhead=empty",
        "implementation": "arrowhead=empty, style=dashed",
        "alias": "arrowhead=open, style=dotted",
    }

    def __init__(self, options=None) -> None:
        super().__init__(options)
        self._lexer = GoLexer()

    def begin(self, lines: List[str]) -> None:
        lines.append("digraph ClassDiagram {")
        lines.append("  rankdir=BT;")
        lines.append('  node [shape=plaintext, fontname="Menlo,Consolas,monospace"];')
        lines.append('  edge [fontname="Menlo,Consolas,monospace"];')
        if self.options.title:
            lines.append(f'  label="{_escape_label(self.options.title)}";')
            lines.append("  labelloc=t;")
        notes = self.options.notes.strip()
        if notes:
            lines.append(
                f'  "{NOTES_NODE}" [shape=note, label="{_escape_label(notes + chr(10))}"];'
            )

    def end(self, lines: List[str]) -> None:
        lines.append("}")

    def open_namespace(self, namespace: str, lines: List[str]) -> None:
        lines.append(f'  subgraph "cluster_{_sanitize_id(namespace)}" {{')
        lines.append(f'    label="{_escape_label(namespace)}";')
        lines.append("    style=rounded;")

    def close_namespace(self, namespace: str, lines: List[str]) -> None:
        lines.append("  }")

    def render_classifier(self, classifier: Classifier, rows: List[str], lines: List[str]) -> None:
        node_id = _sanitize_id(classifier.qualified_name)
        lines.append(f'    "{node_id}" [label=<{self._build_html_label(classifier, rows)}>];')

    def render_renamed(self, namespace: str, synthetic: str, original: str, lines: List[str]) -> None:
        node_id = _sanitize_id(f"{namespace}.{synthetic}")
        lines.append(
            f'    "{node_id}" [shape=box, style=dashed, label="{_escape_label(original)}"];'
        )

    def format_edge(self, edge: Edge) -> str:
        attributes = self.edge_attributes[edge.kind]
        if edge.label:
            attributes += f', label="{_escape_label(edge.label)}"'
        return f'  "{_sanitize_id(edge.source)}" -> "{_sanitize_id(edge.target)}" [{attributes}];'

    # --- labels ----------------------------------------------------------

    def _build_html_label(self, classifier: Classifier, rows: List[str]) -> str:
        """
        Build an HTML-like label: a bold header (with the kind for interfaces and
        aliases) followed by one syntax-coloured row per member.
        """
        header = f"<B>{_escape_html(classifier.name)}</B>"
        if classifier.kind in (INTERFACE, ALIAS):
            header = f"&laquo;{classifier.kind}&raquo;<BR/>{header}"
        cells = [f'<TR><TD ALIGN="CENTER" BGCOLOR="#f6f6f6">{header}</TD></TR>']
        for row in rows:
            cells.append(f'<TR><TD ALIGN="LEFT">{self._highlight(row)}</TD></TR>')
        return (
            '<TABLE BORDER="1" CELLBORDER="0" CELLSPACING="0" CELLPADDING="2">'
            + "".join(cells)
            + "</TABLE>"
        )

    def _highlight(self, text: str) -> str:
        parts: List[str] = []
        for token_type, value in self._lexer.get_tokens(text):
            value = value.replace("\n", "")
            if not value:
                continue
            color = _get_token_color(token_type, _TOKEN_COLORS)
            if color and color != "#000000":
                parts.append(f'<FONT COLOR="{color}">{_escape_html(value)}</FONT>')
            else:
                parts.append(_escape_html(value))
        return "".join(parts) or "&#160;"


def _get_token_color(token_type, color_map: dict) -> Optional[str]:
    """Get color for a token type, checking parent types if exact match not found."""
    if token_type in color_map:
        return color_map[token_type]
    while token_type.parent:
        token_type = token_type.parent
        if token_type in color_map:
            return color_map[token_type]
    return None


def _escape_html(text: str) -> str:
    """Escape HTML special characters for use in Graphviz HTML-like labels."""
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;").replace('"', "&quot;")


def _escape_label(text: str) -> str:
    """
    Escape a label string for use in DOT.

    - backslashes and quotes are escaped
    - newlines become `\\l` (Graphviz left-justified line break)
    """
    text = text.replace("\\", "\\\\").replace('"', '\\"')
    text = text.replace("\n", "\\l")
    return text


def _sanitize_id(s: str) -> str:
    """Since we always quote IDs, this only needs to escape quotes."""
    return s.replace('"', '\\"')
