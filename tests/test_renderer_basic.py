import copy
from pathlib import Path
import textwrap

import pytest

from goclassmap import build_class_diagram, render_diagram, renderer_class
from goclassmap.errors import UnknownFormatError
from goclassmap.mermaid import MermaidRenderer
from goclassmap.plantuml import PlantUMLRenderer
from goclassmap.dot import DotRenderer
from goclassmap.scanner import ScannerConfig


def _make_project(tmp_path: Path) -> Path:
    root = tmp_path / "zoo"
    (root / "animals").mkdir(parents=True)
    (root / "keepers").mkdir()
    (root / "animals" / "animal.go").write_text(
        textwrap.dedent(
            """
            package animals

            type Animal interface {
                Name() string
                Feed(food Food) error
            }

            type Food string

            type Lion struct {
                name string
                Pride []*Lion
            }

            func (l *Lion) Name() string { return l.name }
            func (l *Lion) Feed(food Food) error { return nil }
            """
        ),
        encoding="utf-8",
    )
    (root / "keepers" / "keeper.go").write_text(
        textwrap.dedent(
            """
            package keepers

            import "zoo/animals"

            type Keeper struct {
                animals.Lion
                Charges map[string]animals.Animal
            }
            """
        ),
        encoding="utf-8",
    )
    (root / "go.mod").write_text("module zoo\n", encoding="utf-8")
    return root


def test_renderer_class_lookup() -> None:
    assert renderer_class("plantuml") is PlantUMLRenderer
    assert renderer_class("mermaid") is MermaidRenderer
    assert renderer_class("dot") is DotRenderer
    with pytest.raises(UnknownFormatError):
        renderer_class("svg")
    with pytest.raises(ValueError):
        render_diagram(None, fmt="graphml")


def test_render_is_deterministic_and_pure(tmp_path: Path) -> None:
    root = _make_project(tmp_path)
    registry = build_class_diagram([root], ScannerConfig(recursive=True))
    snapshot = copy.deepcopy(registry)

    for fmt in ("plantuml", "mermaid", "dot"):
        first = render_diagram(registry, {"render_aggregations": True}, fmt)
        second = render_diagram(registry, {"render_aggregations": True}, fmt)
        assert first == second

    assert registry == snapshot


def test_cross_namespace_edges(tmp_path: Path) -> None:
    root = _make_project(tmp_path)
    registry = build_class_diagram([root], ScannerConfig(recursive=True))

    text = render_diagram(registry, {"render_aggregations": True})
    assert '"zoo.animals.Animal" <|.. "zoo.animals.Lion"' in text
    assert '"zoo.animals.Lion" *-- "zoo.keepers.Keeper"' in text
    assert '"zoo.keepers.Keeper" o-- "zoo.animals.Animal"' in text
    assert '"zoo.animals.Lion" o-- "zoo.animals.Lion"' in text
    assert '"builtin.string" #.. "zoo.animals.Food"' in text
    # the embedding record does not satisfy the interface itself
    assert '<|.. "zoo.keepers.Keeper"' not in text


def test_embedded_foreign_interface_scenario(tmp_path: Path) -> None:
    root = tmp_path / "pkg"
    (root / "a").mkdir(parents=True)
    (root / "b").mkdir()
    (root / "go.mod").write_text("module pkg\n", encoding="utf-8")
    (root / "a" / "a.go").write_text(
        'package a\n\nimport "pkg/b"\n\ntype Foo struct {\n\tb.Bar\n}\n',
        encoding="utf-8",
    )
    (root / "b" / "b.go").write_text(
        "package b\n\ntype Bar interface {\n\tHi() string\n}\n",
        encoding="utf-8",
    )

    registry = build_class_diagram([root], ScannerConfig(recursive=True))
    text = render_diagram(registry)

    assert '"pkg.b.Bar" *-- "pkg.a.Foo"' in text
    assert "o--" not in text
    # method sets are not extended through embedding
    assert "<|.." not in text
    assert registry.get("pkg.a.Foo").extends == set()


def test_one_edge_per_field(tmp_path: Path) -> None:
    root = tmp_path / "shop"
    root.mkdir()
    (root / "shop.go").write_text(
        textwrap.dedent(
            """
            package shop

            type Base struct{}

            type Item struct{}

            type Cart struct {
                Base
                Items []Item
            }
            """
        ),
        encoding="utf-8",
    )
    registry = build_class_diagram([root])
    lines = render_diagram(registry, {"render_aggregations": True}).splitlines()

    cart_edges = [line for line in lines if '"shop.Cart"' in line]
    assert cart_edges == ['"shop.Base" *-- "shop.Cart"', '"shop.Cart" o-- "shop.Item"']
