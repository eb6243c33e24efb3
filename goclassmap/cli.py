# goclassmap/cli.py
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, List

from .errors import ClassMapError
from .options import RenderingOptions
from .renderer import FORMATS, render_diagram, write_svg
from .scanner import ScannerConfig, build_class_diagram

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="goclassmap",
        description=(
            "Scan Go source directories and render a class diagram of their "
            "structs, interfaces and named types."
        ),
    )
    parser.add_argument(
        "directories",
        nargs="+",
        type=str,
        metavar="DIR",
        help="Directories containing Go sources.",
    )

    # Scanning options
    parser.add_argument(
        "--recursive",
        action="store_true",
        help="Walk sub-directories (hidden directories and vendor/ are skipped).",
    )
    parser.add_argument(
        "--ignore",
        type=str,
        help="Comma-separated directories to leave out of a recursive scan.",
    )
    parser.add_argument(
        "--include-tests",
        action="store_true",
        help="Also read *_test.go files.",
    )

    # Output options
    parser.add_argument(
        "--format",
        choices=FORMATS + ("svg",),
        default="plantuml",
        help="Output format: 'plantuml', 'mermaid', 'dot', or 'svg' (rendered DOT). Default: plantuml.",
    )
    parser.add_argument(
        "--title",
        type=str,
        default="",
        help="Diagram title.",
    )
    parser.add_argument(
        "--notes",
        type=str,
        default="",
        help="Comma-separated notes, rendered one per line in the diagram legend.",
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        help="Output file path. Text formats go to stdout when omitted; svg defaults to classdiagram.svg.",
    )

    # Content options
    parser.add_argument(
        "--show-aggregations",
        action="store_true",
        help="Draw aggregation edges for types referenced by exported fields.",
    )
    parser.add_argument(
        "--hide-fields",
        action="store_true",
        help="Do not list fields.",
    )
    parser.add_argument(
        "--hide-methods",
        action="store_true",
        help="Do not list methods.",
    )
    parser.add_argument(
        "--hide-connections",
        action="store_true",
        help="Drop composition, implementation and alias edges unless re-enabled with the --show-* flags.",
    )
    parser.add_argument(
        "--show-compositions",
        action="store_true",
        help="Draw embedding edges (only has an effect with --hide-connections).",
    )
    parser.add_argument(
        "--show-implementations",
        action="store_true",
        help="Draw implementation edges (only has an effect with --hide-connections).",
    )
    parser.add_argument(
        "--show-aliases",
        action="store_true",
        help="Draw alias edges (only has an effect with --hide-connections).",
    )
    parser.add_argument(
        "--show-connection-labels",
        action="store_true",
        help="Label every edge with its relationship kind.",
    )
    parser.add_argument(
        "--aggregate-private-members",
        action="store_true",
        help="Also draw aggregations reached through non-exported fields (with --show-aggregations).",
    )
    parser.add_argument(
        "--hide-private-members",
        action="store_true",
        help="Do not list non-exported fields and methods.",
    )
    parser.add_argument(
        "--show-options-as-note",
        action="store_true",
        help="Append the effective rendering options to the diagram notes.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Log debug information to stderr.",
    )

    return parser


def _split_list(value: str | None) -> List[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _rendering_options(args: argparse.Namespace) -> RenderingOptions:
    hide = args.hide_connections
    options = RenderingOptions(
        show_fields=not args.hide_fields,
        show_methods=not args.hide_methods,
        show_private_members=not args.hide_private_members,
        render_compositions=not hide or args.show_compositions,
        render_implementations=not hide or args.show_implementations,
        render_aggregations=args.show_aggregations,
        render_aliases=not hide or args.show_aliases,
        aggregate_private_members=args.aggregate_private_members,
        label_edges=args.show_connection_labels,
        title=args.title,
    )
    notes = _split_list(args.notes)
    if args.show_options_as_note:
        if notes:
            notes.append("")
        notes.append("<b><u>Options</u></b>")
        notes.extend(options.describe())
    return options.updated(notes="\n".join(notes))


def main(argv: Any | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    config = ScannerConfig(
        recursive=args.recursive,
        ignore=tuple(_split_list(args.ignore)),
        include_tests=args.include_tests,
    )
    try:
        registry = build_class_diagram([Path(d) for d in args.directories], config)
        options = _rendering_options(args)
        fmt = "dot" if args.format == "svg" else args.format
        text = render_diagram(registry, options, fmt)
    except ClassMapError as exc:
        logger.error("%s", exc)
        return 1

    if args.format == "svg":
        output = Path(args.output) if args.output else Path("classdiagram.svg")
        write_svg(text, output)
        print(f"Wrote SVG to {output}")
        return 0

    if args.output:
        output = Path(args.output)
        output.write_text(text, encoding="utf-8")
        print(f"Wrote {args.format} diagram to {output}")
        return 0

    sys.stdout.write(text)
    return 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
