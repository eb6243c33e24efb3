from pathlib import Path
import logging
import textwrap

from goclassmap import nodes
from goclassmap.builder import ModelBuilder, build_model
from goclassmap.goparser import parse_source
from goclassmap.model import ALIAS, INTERFACE, RECORD, Registry


def _package(namespace: str, *sources: str) -> nodes.Package:
    files = tuple(
        parse_source(textwrap.dedent(src), Path(f"file{i}.go")) for i, src in enumerate(sources)
    )
    return nodes.Package(namespace=namespace, files=files)


def _build(namespace: str, *sources: str) -> Registry:
    return build_model([_package(namespace, *sources)])


def test_struct_fields_and_aggregations() -> None:
    reg = _build(
        "shapes",
        """
        package shapes

        type Canvas struct {
            Origin  Point
            Layers  []*Layer
            cache   map[string]*Store
            Width   int
            Created time.Time
        }
        """,
    )
    canvas = reg.get("shapes.Canvas")
    assert canvas is not None
    assert canvas.kind == RECORD
    assert [(f.name, f.type, f.full_type) for f in canvas.fields] == [
        ("Origin", "Point", "shapes.Point"),
        ("Layers", "[]*Layer", "[]*shapes.Layer"),
        ("cache", "map[string]*Store", "map[string]*shapes.Store"),
        ("Width", "int", "int"),
        ("Created", "time.Time", "time.Time"),
    ]
    assert canvas.aggregations == {"shapes.Point", "shapes.Layer", "time.Time"}
    assert canvas.private_aggregations == {"shapes.Store"}
    assert canvas.composition == set()


def test_embedded_fields_go_to_composition() -> None:
    reg = _build(
        "shapes",
        """
        package shapes

        import "sync"

        type Square struct {
            *Rect
            sync.Mutex
            Side float64
        }
        """,
    )
    square = reg.get("shapes.Square")
    assert square.composition == {"shapes.Rect", "sync.Mutex"}
    assert [f.name for f in square.fields] == ["Side"]


def test_imports_qualify_selectors() -> None:
    reg = _build(
        "app",
        """
        package app

        import (
            m "github.com/acme/model"
            "github.com/acme/store"
        )

        type Service struct {
            User  m.User
            Store store.Store
        }
        """,
    )
    assert reg.imports == {"m": "github.com.acme.model", "store": "github.com.acme.store"}
    service = reg.get("app.Service")
    assert service.aggregations == {"github.com.acme.model.User", "github.com.acme.store.Store"}


def test_blank_and_dot_imports_are_skipped() -> None:
    reg = _build(
        "app",
        """
        package app

        import (
            _ "embed"
            . "strings"
        )
        """,
    )
    assert reg.imports == {}
    assert reg.classifiers == {"app": {}}


def test_interface_methods_and_embedding() -> None:
    reg = _build(
        "io2",
        """
        package io2

        type ReadCloser interface {
            Reader
            io.Closer
            ReadAll(limit int) ([]byte, error)
        }
        """,
    )
    iface = reg.get("io2.ReadCloser")
    assert iface.kind == INTERFACE
    assert iface.composition == {"io2.Reader", "io.Closer"}
    (method,) = iface.methods
    assert method.name == "ReadAll"
    assert [(p.name, p.type) for p in method.parameters] == [("limit", "int")]
    assert method.returns == ["[]byte", "error"]
    assert method.full_returns == ["[]byte", "error"]


def test_receiver_methods_attach_regardless_of_order() -> None:
    reg = _build(
        "shapes",
        """
        package shapes

        func (c *Circle) Scale(f float64) *Circle { return c }

        func (c Circle) area() float64 { return 0 }

        func NewCircle() *Circle { return nil }
        """,
        """
        package shapes

        type Circle struct {
            Radius float64
        }
        """,
    )
    circle = reg.get("shapes.Circle")
    assert circle.kind == RECORD
    assert [m.name for m in circle.methods] == ["Scale", "area"]
    scale = circle.methods[0]
    assert scale.returns == ["*Circle"]
    assert scale.full_returns == ["*shapes.Circle"]
    assert [f.name for f in circle.fields] == ["Radius"]
    # plain functions are not attached anywhere
    assert set(reg.classifiers["shapes"]) == {"Circle"}


def test_declaration_replaces_receiver_kind() -> None:
    reg = _build(
        "web",
        """
        package web

        func (h HandlerFunc) Serve() {}

        type HandlerFunc func()
        """,
    )
    handler = reg.get("web.HandlerFunc")
    assert handler.kind == ALIAS
    assert [m.name for m in handler.methods] == ["Serve"]


def test_redeclaration_keeps_first_kind() -> None:
    builder = ModelBuilder()
    builder.add_package(
        _package(
            "dup",
            "package dup\n\ntype Thing struct{}\n",
            "package dup\n\ntype Thing interface{}\n",
        )
    )
    assert builder.registry.get("dup.Thing").kind == RECORD


def test_receiver_on_foreign_type_is_ignored(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="goclassmap.builder")
    reg = _build(
        "app",
        """
        package app

        func (t pkg.Thing) Do() {}
        """,
    )
    assert reg.classifiers == {"app": {}}
    assert "Cannot attach method Do (line 4)" in caplog.text


def test_alias_to_primitive() -> None:
    reg = _build("units", "package units\n\ntype Celsius float64\n")
    assert reg.get("units.Celsius").kind == ALIAS
    alias = reg.aliases["units.Celsius"]
    assert alias.underlying == "builtin.float64"
    assert alias.underlying_namespace == "builtin"
    assert reg.renamed == {}


def test_alias_with_composite_display_is_renamed() -> None:
    reg = _build(
        "web",
        """
        package web

        type Names []string

        type Routes map[string]*Handler

        type Handler struct{}
        """,
    )
    names = reg.aliases["web.Names"]
    assert names.underlying == "builtin.[]string"
    routes = reg.aliases["web.Routes"]
    assert routes.underlying == "web.map[string]*Handler"
    assert routes.underlying_namespace == "web"
    assert reg.renamed == {
        "builtin": {"string2": "[]string"},
        "web": {"mapstringHandler": "map[string]*Handler"},
    }


def test_type_parameters_are_not_dependencies() -> None:
    reg = _build(
        "list",
        """
        package list

        type List[T any] struct {
            Items []T
            Next  *List[T]
        }
        """,
    )
    lst = reg.get("list.List")
    assert lst.aggregations == {"list.List"}
    assert lst.private_aggregations == set()


def test_build_model_resolves_implementations() -> None:
    reg = _build(
        "shapes",
        """
        package shapes

        type Shape interface {
            Area() float64
        }

        type Square struct{ side float64 }

        func (s Square) Area() float64 { return s.side * s.side }

        type Line struct{}
        """,
    )
    assert reg.get("shapes.Square").extends == {"shapes.Shape"}
    assert reg.get("shapes.Line").extends == set()
    assert reg.get("shapes.Shape").extends == set()


def test_cross_namespace_signatures_compare_qualified() -> None:
    a = _package(
        "a",
        """
        package a

        type Visitor interface {
            Visit(n Node) Node
        }

        type Node struct{}
        """,
    )
    b = _package(
        "b",
        """
        package b

        type Node struct{}

        type Walker struct{}

        func (w Walker) Visit(n Node) Node { return n }
        """,
    )
    reg = build_model([a, b])
    # same display text, different namespaces
    assert reg.get("b.Walker").extends == set()


def test_alias_to_qualified_composite_gets_alphanumeric_name() -> None:
    reg = _build(
        "app",
        """
        package app

        import "github.com/acme/model"

        type Users []model.User
        """,
    )
    users = reg.aliases["app.Users"]
    assert users.underlying == "app.[]github.com.acme.model.User"
    ((synthetic, original),) = reg.sorted_renamed("app")
    assert synthetic == "githubcomacmemodelUser"
    assert synthetic.isalnum()
    assert original == "[]github.com.acme.model.User"


def test_renamed_targets_never_reuse_node_names() -> None:
    reg = _build(
        "shop",
        """
        package shop

        type Items []Item

        type Item struct{}

        type Count int

        type IDs []int
        """,
    )
    assert reg.renamed == {
        "shop": {"Item2": "[]Item"},
        "builtin": {"int2": "[]int"},
    }
    # the identifier target of Count stays a plain node of its own
    assert reg.aliases["shop.Count"].underlying == "builtin.int"
    assert reg.synthetic_name("builtin", "int") is None
    assert reg.reserved_names("shop") >= {"Item", "Items", "Count", "IDs"}


def test_renamed_targets_avoid_names_declared_in_later_packages() -> None:
    first = _package("shop", "package shop\n\ntype Cart []Line\n")
    second = _package("shop", "package shop\n\ntype Line struct{}\n\ntype Line2 struct{}\n")
    reg = build_model([first, second])
    assert reg.renamed == {"shop": {"Line3": "[]Line"}}


def test_declarations_are_logged_with_line_numbers(caplog) -> None:
    caplog.set_level(logging.DEBUG, logger="goclassmap.builder")
    _build(
        "units",
        """
        package units

        type Celsius = float64

        type Celsius struct{}
        """,
    )
    assert "Type units.Celsius at line 4 (alias declaration)" in caplog.text
    assert "units.Celsius at line 6 already declared as alias" in caplog.text
