from pathlib import Path
import textwrap

import pytest

from goclassmap import nodes
from goclassmap.errors import GoSyntaxError, ScanError
from goclassmap.goparser import parse_file, parse_source, tokenize


def _parse(src: str) -> nodes.SourceFile:
    return parse_source(textwrap.dedent(src), Path("sample.go"))


def test_semicolons_are_inserted_at_line_ends() -> None:
    tokens = tokenize("package main\n\nfunc f() {\n\treturn\n}\n")
    kinds = [t.kind for t in tokens]
    assert kinds.count(";") == 3
    assert kinds[-1] == "eof"
    semis = [t.lineno for t in tokens if t.kind == ";"]
    assert semis == [1, 4, 5]


def test_package_and_imports() -> None:
    src = _parse(
        """
        package main

        import "fmt"

        import (
            str "strings"
            _ "embed"
            . "math"
        )
        """
    )
    assert src.package == "main"
    assert src.path == Path("sample.go")
    assert src.imports == (
        nodes.ImportSpec("fmt"),
        nodes.ImportSpec("strings", "str"),
        nodes.ImportSpec("embed", "_"),
        nodes.ImportSpec("math", "."),
    )
    assert src.decls == ()


def test_struct_fields() -> None:
    src = _parse(
        """
        package shapes

        type Point struct {
            X, Y int `json:"x"`
            *Base
            io.Reader
            label string // trailing comment
            Next *Point
        }
        """
    )
    (spec,) = src.decls
    assert isinstance(spec, nodes.TypeSpec)
    assert spec.name == "Point"
    assert spec.lineno == 4
    assert spec.type == nodes.StructType(
        (
            nodes.FieldNode(("X", "Y"), nodes.Ident("int"), '`json:"x"`'),
            nodes.FieldNode((), nodes.Star(nodes.Ident("Base"))),
            nodes.FieldNode((), nodes.Selector("io", "Reader")),
            nodes.FieldNode(("label",), nodes.Ident("string")),
            nodes.FieldNode(("Next",), nodes.Star(nodes.Ident("Point"))),
        )
    )


def test_composite_field_types() -> None:
    src = _parse(
        """
        package bus

        type Bus struct {
            Events   <-chan Event
            out      chan<- int
            handlers map[string][]func(e Event) error
            buf      [16]byte
            Meta     struct{ Key, Value string }
        }
        """
    )
    fields = {f.names[0]: f.type for f in src.decls[0].type.fields}
    assert fields["Events"] == nodes.ChanType(nodes.Ident("Event"), "recv")
    assert fields["out"] == nodes.ChanType(nodes.Ident("int"), "send")
    assert fields["handlers"] == nodes.MapType(
        nodes.Ident("string"),
        nodes.ArrayType(
            nodes.FuncType(
                params=(nodes.FieldNode(("e",), nodes.Ident("Event")),),
                results=(nodes.FieldNode((), nodes.Ident("error")),),
            )
        ),
    )
    assert fields["buf"] == nodes.ArrayType(nodes.Ident("byte"), "16")
    assert fields["Meta"] == nodes.StructType(
        (nodes.FieldNode(("Key", "Value"), nodes.Ident("string")),)
    )


def test_interface_members() -> None:
    src = _parse(
        """
        package shapes

        type Shape interface {
            fmt.Stringer
            Area() float64
            Scale(factor float64) Shape
        }

        type Number interface {
            ~int | ~float64
        }
        """
    )
    shape, number = src.decls
    assert shape.type == nodes.InterfaceType(
        (
            nodes.FieldNode((), nodes.Selector("fmt", "Stringer")),
            nodes.FieldNode(
                ("Area",),
                nodes.FuncType(results=(nodes.FieldNode((), nodes.Ident("float64")),)),
            ),
            nodes.FieldNode(
                ("Scale",),
                nodes.FuncType(
                    params=(nodes.FieldNode(("factor",), nodes.Ident("float64")),),
                    results=(nodes.FieldNode((), nodes.Ident("Shape")),),
                ),
            ),
        )
    )
    # type-set elements are dropped
    assert number.type == nodes.InterfaceType(())


def test_grouped_types_aliases_and_arrays() -> None:
    src = _parse(
        """
        package units

        type (
            Celsius = float64
            Buffer [16]byte
            IDs []int
        )
        """
    )
    celsius, buffer, ids = src.decls
    assert celsius.is_alias and celsius.type == nodes.Ident("float64")
    assert not buffer.is_alias
    assert buffer.type == nodes.ArrayType(nodes.Ident("byte"), "16")
    assert ids.type == nodes.ArrayType(nodes.Ident("int"))


def test_generic_types() -> None:
    src = _parse(
        """
        package list

        type Pair[K comparable, V any] struct { Key K; Value V }

        type List[T any] struct {
            items []T
            next  *List[T]
            pairs map[string]Pair[string, T]
        }

        func (l *List[T]) Len() int { return len(l.items) }

        func Map[T, U any](xs []T, f func(T) U) []U {
            return nil
        }
        """
    )
    pair, lst, length, mapper = src.decls
    assert pair.type_params == ("K", "V")
    assert lst.type_params == ("T",)
    fields = {f.names[0]: f.type for f in lst.type.fields}
    assert fields["items"] == nodes.ArrayType(nodes.Ident("T"))
    # type arguments are dropped
    assert fields["next"] == nodes.Star(nodes.Ident("List"))
    assert fields["pairs"] == nodes.MapType(nodes.Ident("string"), nodes.Ident("Pair"))

    assert length.receiver == nodes.FieldNode(("l",), nodes.Star(nodes.Ident("List")))
    assert mapper.receiver is None
    assert mapper.name == "Map"
    assert mapper.type.results == (nodes.FieldNode((), nodes.ArrayType(nodes.Ident("U"))),)


def test_function_signatures() -> None:
    src = _parse(
        """
        package calc

        func (c *Calc) Add(a, b int, label string) (sum int, err error) {
            if a > b {
                return a, nil
            }
            return b, nil
        }

        func Log(format string, args ...any) {}

        func (Calc) Reset()

        func plain(int, string) error { return nil }
        """
    )
    add, log, reset, plain = src.decls
    assert add.name == "Add"
    assert add.receiver == nodes.FieldNode(("c",), nodes.Star(nodes.Ident("Calc")))
    assert add.type.params == (
        nodes.FieldNode(("a", "b"), nodes.Ident("int")),
        nodes.FieldNode(("label",), nodes.Ident("string")),
    )
    assert add.type.results == (
        nodes.FieldNode(("sum",), nodes.Ident("int")),
        nodes.FieldNode(("err",), nodes.Ident("error")),
    )
    assert log.type.params[1] == nodes.FieldNode(("args",), nodes.Ellipsis(nodes.Ident("any")))
    assert reset.receiver == nodes.FieldNode((), nodes.Ident("Calc"))
    assert plain.type.params == (
        nodes.FieldNode((), nodes.Ident("int")),
        nodes.FieldNode((), nodes.Ident("string")),
    )


def test_values_and_bodies_are_skipped() -> None:
    src = _parse(
        """
        package app

        var defaults = map[string]int{
            "a": 1,
        }

        const (
            A = iota
            B
        )

        var x, y int

        func init() {
            s := struct{ n int }{n: 1}
            _ = s
        }

        type After struct{}
        """
    )
    assert [d.name for d in src.decls] == ["init", "After"]


def test_syntax_error_reports_location() -> None:
    with pytest.raises(GoSyntaxError) as exc_info:
        parse_source("package main\n\ntype = 5\n", Path("bad.go"))
    err = exc_info.value
    assert err.path == Path("bad.go")
    assert err.lineno == 3
    assert str(err).startswith("bad.go:3: ")


def test_missing_package_clause() -> None:
    with pytest.raises(GoSyntaxError, match="expected 'package'"):
        parse_source("type X int\n")


def test_unbalanced_brackets() -> None:
    with pytest.raises(GoSyntaxError):
        parse_source("package main\n\nfunc f() {\n")


def test_unknown_character() -> None:
    with pytest.raises(GoSyntaxError, match="unexpected character"):
        parse_source("package main\n\n@\n")


def test_parse_file_reads_from_disk(tmp_path: Path) -> None:
    path = tmp_path / "a.go"
    path.write_text("package a\n\ntype A struct{}\n", encoding="utf-8")
    src = parse_file(path)
    assert src.package == "a"
    assert src.path == path

    with pytest.raises(ScanError):
        parse_file(tmp_path / "missing.go")
