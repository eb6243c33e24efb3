"""
Go declaration parser.

Produces :mod:`goclassmap.nodes` trees for the parts of a Go file a class
diagram needs: the package clause, imports, type declarations and function
signatures.  Function bodies and ``var``/``const`` declarations are skipped.
Tokenisation is delegated to the Pygments Go lexer; automatic semicolon
insertion is reproduced on top of its token stream.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

from pygments.lexers import GoLexer
from pygments.token import Token

from . import nodes
from .errors import GoSyntaxError, ScanError

__all__ = ["tokenize", "parse_source", "parse_file"]

logger = logging.getLogger(__name__)

_KEYWORDS = frozenset(
    {
        "break", "case", "chan", "const", "continue", "default", "defer", "else",
        "fallthrough", "for", "func", "go", "goto", "if", "import", "interface",
        "map", "package", "range", "return", "select", "struct", "switch", "type",
        "var",
    }
)
_STATEMENT_END_KEYWORDS = frozenset({"break", "continue", "fallthrough", "return"})
_STATEMENT_END_OPS = frozenset({")", "]", "}", "++", "--"})
_TYPE_KEYWORDS = frozenset({"map", "chan", "func", "struct", "interface"})
_OPEN = frozenset({"(", "[", "{"})
_CLOSE = frozenset({")", "]", "}"})


@dataclass(frozen=True)
class _Tok:
    kind: str  # ident, keyword, op, string, number, ";" or eof
    value: str
    lineno: int


def _ends_statement(tokens: List[_Tok]) -> bool:
    if not tokens:
        return False
    last = tokens[-1]
    if last.kind in ("ident", "string", "number"):
        return True
    if last.kind == "keyword":
        return last.value in _STATEMENT_END_KEYWORDS
    return last.kind == "op" and last.value in _STATEMENT_END_OPS


def _classify(token_type, value: str) -> Optional[str]:
    if token_type in Token.Keyword.Type or token_type in Token.Keyword.Constant:
        return "ident"
    if token_type in Token.Keyword:
        return "keyword" if value in _KEYWORDS else "ident"
    if token_type in Token.Name:
        return "ident"
    if token_type in Token.Literal.String:
        return "string"
    if token_type in Token.Literal.Number:
        return "number"
    if token_type in Token.Operator or token_type in Token.Punctuation:
        return "op"
    return None


def tokenize(source: str, path: Optional[Path] = None) -> List[_Tok]:
    """Significant tokens of ``source`` with inserted ``;`` statement terminators."""
    lexer = GoLexer(stripnl=False)
    tokens: List[_Tok] = []
    lineno = 1
    for token_type, value in lexer.get_tokens(source):
        newlines = value.count("\n")
        if token_type in Token.Error:
            raise GoSyntaxError(f"unexpected character {value!r}", path, lineno)
        if token_type in Token.Comment or not value.strip():
            if newlines and _ends_statement(tokens):
                tokens.append(_Tok(";", ";", lineno))
            lineno += newlines
            continue
        kind = _classify(token_type, value)
        if kind is None:
            # line continuation backslash
            lineno += newlines
            continue
        if kind == "op" and value == ";":
            kind = ";"
        tokens.append(_Tok(kind, value, lineno))
        lineno += newlines
    if _ends_statement(tokens):
        tokens.append(_Tok(";", ";", lineno))
    tokens.append(_Tok("eof", "", lineno))
    return tokens


class _Parser:
    """Recursive-descent parser over the token list of one file."""

    def __init__(self, tokens: List[_Tok], path: Path) -> None:
        self.tokens = tokens
        self.path = path
        self.pos = 0

    # --- token helpers ---------------------------------------------------

    @property
    def tok(self) -> _Tok:
        return self.tokens[self.pos]

    def peek(self, offset: int = 1) -> _Tok:
        index = min(self.pos + offset, len(self.tokens) - 1)
        return self.tokens[index]

    def next(self) -> _Tok:
        tok = self.tok
        if tok.kind != "eof":
            self.pos += 1
        return tok

    def at(self, value: str) -> bool:
        return self.tok.value == value and self.tok.kind in ("op", "keyword", ";")

    def accept(self, value: str) -> bool:
        if self.at(value):
            self.next()
            return True
        return False

    def expect(self, value: str) -> _Tok:
        if not self.at(value):
            raise self.error(f"expected {value!r}")
        return self.next()

    def expect_ident(self) -> str:
        if self.tok.kind != "ident":
            raise self.error("expected identifier")
        return self.next().value

    def error(self, message: str) -> GoSyntaxError:
        found = self.tok.value if self.tok.kind != "eof" else "end of file"
        return GoSyntaxError(f"{message}, found {found!r}", self.path, self.tok.lineno)

    def end_statement(self) -> None:
        if self.accept(";"):
            return
        if self.at(")") or self.at("}") or self.tok.kind == "eof":
            return
        raise self.error("expected end of statement")

    def matching(self, index: int) -> int:
        """Index of the bracket closing the one at ``index``."""
        depth = 0
        for i in range(index, len(self.tokens)):
            tok = self.tokens[i]
            if tok.kind != "op":
                continue
            if tok.value in _OPEN:
                depth += 1
            elif tok.value in _CLOSE:
                depth -= 1
                if depth == 0:
                    return i
        self.pos = len(self.tokens) - 1
        raise self.error("unbalanced brackets")

    def skip_balanced(self) -> None:
        self.pos = self.matching(self.pos) + 1

    @staticmethod
    def starts_type(tok: _Tok) -> bool:
        if tok.kind == "ident":
            return True
        if tok.kind == "keyword":
            return tok.value in _TYPE_KEYWORDS
        return tok.kind == "op" and tok.value in ("*", "[", "<-", "(")

    # --- file level ------------------------------------------------------

    def parse_file(self) -> nodes.SourceFile:
        while self.accept(";"):
            pass
        self.expect("package")
        package = self.expect_ident()
        self.end_statement()

        imports: List[nodes.ImportSpec] = []
        decls: List[nodes.Decl] = []
        while self.tok.kind != "eof":
            if self.accept(";"):
                continue
            if self.at("import"):
                imports.extend(self.parse_import_decl())
            elif self.at("type"):
                decls.extend(self.parse_type_decl())
            elif self.at("func"):
                decls.append(self.parse_func_decl())
            elif self.at("var") or self.at("const"):
                self.skip_value_decl()
            else:
                raise self.error("expected declaration")
        return nodes.SourceFile(
            package=package, path=self.path, imports=tuple(imports), decls=tuple(decls)
        )

    def parse_group(self, parse_spec) -> list:
        """``(spec; spec; ...)`` or a single spec, followed by the end of the statement."""
        specs = []
        if self.accept("("):
            while not self.at(")"):
                if self.accept(";"):
                    continue
                specs.append(parse_spec())
                if not self.at(")"):
                    self.expect(";")
            self.expect(")")
        else:
            specs.append(parse_spec())
        self.end_statement()
        return specs

    def parse_import_decl(self) -> List[nodes.ImportSpec]:
        self.expect("import")
        return self.parse_group(self.parse_import_spec)

    def parse_import_spec(self) -> nodes.ImportSpec:
        name: Optional[str] = None
        if self.tok.kind == "ident":
            name = self.next().value
        elif self.accept("."):
            name = "."
        if self.tok.kind != "string":
            raise self.error("expected import path")
        return nodes.ImportSpec(path=self.next().value[1:-1], name=name)

    def skip_value_decl(self) -> None:
        self.next()
        if self.at("("):
            self.skip_balanced()
        else:
            while not self.at(";") and self.tok.kind != "eof":
                if self.tok.kind == "op" and self.tok.value in _OPEN:
                    self.skip_balanced()
                else:
                    self.next()
        self.end_statement()

    # --- type declarations -----------------------------------------------

    def parse_type_decl(self) -> List[nodes.TypeSpec]:
        self.expect("type")
        return self.parse_group(self.parse_type_spec)

    def parse_type_spec(self) -> nodes.TypeSpec:
        lineno = self.tok.lineno
        name = self.expect_ident()
        type_params: Tuple[str, ...] = ()
        if self.at("[") and self.is_type_param_list():
            type_params = self.parse_type_params()
        is_alias = self.accept("=")
        return nodes.TypeSpec(
            name=name,
            type=self.parse_type(),
            type_params=type_params,
            is_alias=is_alias,
            lineno=lineno,
        )

    def is_type_param_list(self) -> bool:
        """Tell ``type S[T any] ...`` apart from ``type A [N]int``."""
        first, second = self.peek(1), self.peek(2)
        if first.kind != "ident":
            return False
        if second.kind == "ident":
            return True
        return second.value in (",", "~", "interface", "func", "map", "chan", "struct")

    def parse_type_params(self) -> Tuple[str, ...]:
        """Names of a type parameter list; constraints are skipped."""
        end = self.matching(self.pos)
        names: List[str] = []
        expect_name = True
        depth = 0
        for tok in self.tokens[self.pos + 1 : end]:
            if tok.kind == "op" and tok.value in _OPEN:
                depth += 1
            elif tok.kind == "op" and tok.value in _CLOSE:
                depth -= 1
            elif depth == 0 and tok.value == ",":
                expect_name = True
                continue
            if expect_name and depth == 0 and tok.kind == "ident":
                names.append(tok.value)
            expect_name = False
        self.pos = end + 1
        return tuple(names)

    # --- type expressions ------------------------------------------------

    def parse_type(self) -> nodes.TypeExpr:
        tok = self.tok
        if tok.kind == "ident":
            return self.parse_type_name()
        if self.accept("*"):
            return nodes.Star(self.parse_type())
        if self.accept("["):
            if self.accept("]"):
                return nodes.ArrayType(self.parse_type())
            end = self.matching(self.pos - 1)
            length = "".join(t.value for t in self.tokens[self.pos : end])
            self.pos = end + 1
            return nodes.ArrayType(self.parse_type(), length=length)
        if self.accept("map"):
            self.expect("[")
            key = self.parse_type()
            self.expect("]")
            return nodes.MapType(key, self.parse_type())
        if self.accept("chan"):
            if self.accept("<-"):
                return nodes.ChanType(self.parse_type(), direction="send")
            return nodes.ChanType(self.parse_type())
        if self.accept("<-"):
            self.expect("chan")
            return nodes.ChanType(self.parse_type(), direction="recv")
        if self.accept("func"):
            return self.parse_signature()
        if self.at("struct"):
            return self.parse_struct_type()
        if self.at("interface"):
            return self.parse_interface_type()
        if self.accept("("):
            inner = self.parse_type()
            self.expect(")")
            return inner
        raise self.error("expected type")

    def parse_type_name(self) -> nodes.TypeExpr:
        name = self.next().value
        result: nodes.TypeExpr = nodes.Ident(name)
        if self.at(".") and self.peek().kind == "ident":
            self.next()
            result = nodes.Selector(name, self.next().value)
        if self.at("[") and self.is_instantiation():
            # type arguments do not take part in the model
            self.skip_balanced()
        return result

    def is_instantiation(self) -> bool:
        """``Name[Args]`` unless the brackets start an array type of a field/parameter."""
        if self.peek().value == "]":
            return False
        after = self.tokens[min(self.matching(self.pos) + 1, len(self.tokens) - 1)]
        return not (self.starts_type(after) and after.value != "(")

    def parse_param_type(self) -> nodes.TypeExpr:
        if self.accept("..."):
            return nodes.Ellipsis(self.parse_type())
        return self.parse_type()

    def parse_params(self) -> Tuple[nodes.FieldNode, ...]:
        """
        A parenthesised parameter list.

        Either every entry is a bare type, or names are present and consecutive
        names share the type that follows them (``a, b int``).
        """
        self.expect("(")
        items: List[Tuple[Optional[str], nodes.TypeExpr]] = []
        while not self.at(")"):
            if self.accept(";"):
                continue
            first = self.parse_param_type()
            if not self.at(",") and not self.at(")") and not self.at(";"):
                if not isinstance(first, nodes.Ident):
                    raise self.error("expected ',' or ')' in parameter list")
                items.append((first.name, self.parse_param_type()))
            else:
                items.append((None, first))
            if not self.accept(","):
                self.accept(";")
                break
        self.expect(")")

        if all(name is None for name, _ in items):
            return tuple(nodes.FieldNode((), typ) for _, typ in items)
        fields: List[nodes.FieldNode] = []
        pending: List[str] = []
        for name, typ in items:
            if name is None:
                if not isinstance(typ, nodes.Ident):
                    raise self.error("mixed named and unnamed parameters")
                pending.append(typ.name)
                continue
            fields.append(nodes.FieldNode(tuple(pending + [name]), typ))
            pending = []
        if pending:
            raise self.error("mixed named and unnamed parameters")
        return tuple(fields)

    def parse_signature(self) -> nodes.FuncType:
        params = self.parse_params()
        results: Tuple[nodes.FieldNode, ...] = ()
        if self.at("("):
            results = self.parse_params()
        elif self.starts_type(self.tok):
            results = (nodes.FieldNode((), self.parse_type()),)
        return nodes.FuncType(params=params, results=results)

    def parse_struct_type(self) -> nodes.StructType:
        self.expect("struct")
        self.expect("{")
        fields: List[nodes.FieldNode] = []
        while not self.at("}"):
            if self.accept(";"):
                continue
            fields.append(self.parse_struct_field())
            if not self.at("}"):
                self.expect(";")
        self.expect("}")
        return nodes.StructType(tuple(fields))

    def parse_struct_field(self) -> nodes.FieldNode:
        if self.accept("*"):
            names: Tuple[str, ...] = ()
            typ: nodes.TypeExpr = nodes.Star(self.parse_type())
        else:
            first = self.parse_type()
            if self.at(";") or self.at("}") or self.tok.kind == "string":
                names, typ = (), first
            else:
                if not isinstance(first, nodes.Ident):
                    raise self.error("expected field name")
                collected = [first.name]
                while self.accept(","):
                    collected.append(self.expect_ident())
                names, typ = tuple(collected), self.parse_type()
        tag = self.next().value if self.tok.kind == "string" else None
        return nodes.FieldNode(names, typ, tag)

    def parse_interface_type(self) -> nodes.InterfaceType:
        self.expect("interface")
        self.expect("{")
        members: List[nodes.FieldNode] = []
        while not self.at("}"):
            if self.accept(";"):
                continue
            if self.tok.kind == "ident" and self.peek().value == "(":
                name = self.next().value
                members.append(nodes.FieldNode((name,), self.parse_signature()))
            else:
                member = self.parse_interface_element()
                if member is not None:
                    members.append(member)
            if not self.at("}"):
                self.expect(";")
        self.expect("}")
        return nodes.InterfaceType(tuple(members))

    def parse_interface_element(self) -> Optional[nodes.FieldNode]:
        """An embedded interface, or a type-set element (``~int | string``) which is dropped."""
        approximate = self.accept("~")
        typ = self.parse_type()
        union = False
        while self.accept("|"):
            union = True
            self.accept("~")
            self.parse_type()
        if approximate or union or not isinstance(typ, (nodes.Ident, nodes.Selector)):
            logger.debug("%s: skipping type-set element", self.path)
            return None
        return nodes.FieldNode((), typ)

    # --- functions -------------------------------------------------------

    def parse_func_decl(self) -> nodes.FuncDecl:
        lineno = self.tok.lineno
        self.expect("func")
        receiver: Optional[nodes.FieldNode] = None
        if self.at("("):
            params = self.parse_params()
            if len(params) != 1:
                raise self.error("method must have exactly one receiver")
            receiver = params[0]
        name = self.expect_ident()
        if self.at("["):
            self.skip_balanced()
        signature = self.parse_signature()
        if self.at("{"):
            self.skip_balanced()
        self.end_statement()
        return nodes.FuncDecl(name=name, type=signature, receiver=receiver, lineno=lineno)


def parse_source(source: str, path: Optional[Path] = None) -> nodes.SourceFile:
    """Parse Go ``source``; raises :class:`GoSyntaxError` on malformed input."""
    path = path if path is not None else Path("<string>")
    return _Parser(tokenize(source, path), path).parse_file()


def parse_file(path: Path) -> nodes.SourceFile:
    try:
        source = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ScanError(f"Cannot read {path}: {exc}") from exc
    logger.debug("Parsing %s", path)
    return parse_source(source, path)
