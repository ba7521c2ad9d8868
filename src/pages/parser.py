"""Pages parser — converts a token stream into a namespace/page AST."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum, auto
from typing import Any

from pages.ast import Decorator, Document, Namespace, Page
from pages.errors import ParseError
from pages.lexer import tokenize
from pages.tokens import Location, Source, Token


class _State(Enum):
    TOP = auto()
    NAMESPACE = auto()
    PAGE = auto()


class Parser:
    """State machine over a pages token stream.

    Inside a namespace, decorators are buffered in three scopes until a page
    picks them up: *local* (next page only), *group* (every page of the open
    ``{ }`` group) and *global* (every page of the namespace).
    """

    def __init__(
        self,
        tokens: list[Token],
        source: Source,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self._tokens = tokens
        self._source = source
        self._defaults = dict(defaults or {})
        self._pos = 0
        self._state = _State.TOP
        self._namespaces: list[Namespace] = []
        self._namespace: Namespace | None = None
        self._page: Page | None = None
        self._local: list[Decorator] = []
        self._group: list[Decorator] = []
        self._global: list[Decorator] = []
        self._group_open = False

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def _peek(self) -> Token:
        if self._pos < len(self._tokens):
            return self._tokens[self._pos]
        return self._tokens[-1]  # EOF

    def _advance(self) -> Token:
        tok = self._peek()
        if not tok.is_eof():
            self._pos += 1
        return tok

    def _accept(self, op: str) -> bool:
        if self._peek().is_operator(op):
            self._advance()
            return True
        return False

    def _expect(self, op: str, message: str) -> Token:
        tok = self._peek()
        if not tok.is_operator(op):
            raise self._error(message, tok)
        return self._advance()

    # ------------------------------------------------------------------
    # Driver
    # ------------------------------------------------------------------

    def parse(self) -> Document:
        while True:
            tok = self._advance()
            if self._state is _State.TOP:
                if tok.is_eof():
                    break
                self._parse_top(tok)
            elif self._state is _State.NAMESPACE:
                self._parse_namespace_item(tok)
            else:
                self._parse_page_item(tok)

        return Document(self._source, self._namespaces)

    # ------------------------------------------------------------------
    # Top level
    # ------------------------------------------------------------------

    def _parse_top(self, tok: Token) -> None:
        if not tok.is_namespace():
            hint = f"maybe you meant `({tok.value})`?" if tok.is_identifier() else ""
            raise self._error("expected a namespace declaration", tok, hint)

        name = tok.inner()
        if not name:
            raise self._error("missing namespace name", tok)
        self._expect("{", "expected `{`")

        self._namespace = Namespace(name, tok.location, dict(self._defaults))
        self._namespaces.append(self._namespace)
        self._state = _State.NAMESPACE

    # ------------------------------------------------------------------
    # Namespace body
    # ------------------------------------------------------------------

    def _parse_namespace_item(self, tok: Token) -> None:
        namespace = self._namespace
        assert namespace is not None

        if tok.is_operator("}"):
            if self._group_open:
                self._group_open = False
                self._group = []
            else:
                self._close_namespace(namespace)

        elif tok.is_identifier():
            namespace.props[tok.value] = self._parse_property_value()

        elif tok.is_page():
            self._open_page(tok, namespace)

        elif tok.is_operator("%"):
            self._parse_decorator(tok)

        elif tok.is_operator("{"):
            self._open_group(tok)

        elif tok.is_namespace():
            raise self._error(
                "unexpected namespace declaration", tok, "namespaces cannot be nested"
            )

        elif tok.is_eof():
            raise self._error(
                "unexpected end of input",
                tok,
                f"missing `}}` to close namespace `{namespace.name}`",
            )

        else:
            raise self._error("unexpected token", tok)

    def _close_namespace(self, namespace: Namespace) -> None:
        # Globals cover the whole namespace, including pages declared before them
        for page in namespace.pages:
            page.decorators = [
                *(d.copy() for d in self._global),
                *(d for d in page.decorators if not d.is_global),
            ]

        self._namespace = None
        self._local = []
        self._group = []
        self._global = []
        self._state = _State.TOP

    def _open_page(self, tok: Token, namespace: Namespace) -> None:
        self._expect("{", "expected `{`")
        page = Page(
            tok.inner(),
            tok.location,
            decorators=[
                *(d.copy() for d in self._global),
                *(d.copy() for d in self._group),
                *self._local,
            ],
        )
        namespace.pages.append(page)
        self._local = []
        self._page = page
        self._state = _State.PAGE

    def _open_group(self, tok: Token) -> None:
        if not self._local:
            raise self._error("decorators required before group", tok)
        if self._group_open:
            raise self._error("decorator groups cannot be nested", tok)
        self._group = self._local
        self._local = []
        self._group_open = True

    # ------------------------------------------------------------------
    # Decorators
    # ------------------------------------------------------------------

    def _parse_decorator(self, percent: Token) -> None:
        is_global = self._accept("%")
        negated = self._accept("-")
        is_macro = self._accept("!")

        name_tok = self._advance()
        if not name_tok.is_identifier():
            raise self._error("expected a decorator name", name_tok)

        dec = Decorator(
            name_tok.value,
            _join(percent.location, name_tok.location),
            negated=negated,
            is_macro=is_macro,
            is_global=is_global,
        )

        if self._peek().is_operator("<"):
            if negated:
                raise self._error("cannot add parameters to a cancelled decorator", self._peek())
            self._advance()
            self._parse_parameters(dec)

        if is_global:
            self._global.append(dec)
        else:
            self._local.append(dec)

    def _parse_parameters(self, dec: Decorator) -> None:
        """Parse `name=value` and positional values up to the closing `>`."""
        while True:
            tok = self._advance()
            if tok.is_operator(">"):
                return
            if tok.is_identifier():
                dec.props[tok.value] = self._parse_property_value()
            else:
                dec.args.append(self._parse_value(tok))

    # ------------------------------------------------------------------
    # Page body
    # ------------------------------------------------------------------

    def _parse_page_item(self, tok: Token) -> None:
        page = self._page
        assert page is not None

        if tok.is_operator("}"):
            self._page = None
            self._state = _State.NAMESPACE

        elif tok.is_identifier():
            page.props[tok.value] = self._parse_property_value()

        elif tok.is_operator("@"):
            path_tok = self._advance()
            if not path_tok.is_string():
                raise self._error("expected a string for the page path", path_tok)
            page.resource_path = path_tok.inner()

        elif tok.is_namespace():
            raise self._error(
                "unexpected namespace declaration", tok, "namespaces cannot be nested"
            )

        elif tok.is_page():
            raise self._error("unexpected page declaration", tok, "pages cannot be nested")

        elif tok.is_eof():
            raise self._error(
                "unexpected end of input", tok, f"missing `}}` to close page `{page.name}`"
            )

        else:
            raise self._error("unexpected token", tok)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def _parse_property_value(self) -> Any:
        self._expect("=", "expected `=`")
        return self._parse_value(self._advance())

    def _parse_value(self, tok: Token) -> Any:
        if tok.is_eof():
            raise self._error("expected a value", tok)
        if tok.is_string():
            return tok.inner()
        if tok.is_identifier():
            raise self._error("variables are not supported yet", tok)
        raise self._error("invalid value", tok)

    def _error(self, message: str, tok: Token, hint: str = "") -> ParseError:
        return ParseError(message, tok.location, hint)


def _join(start: Location, end: Location) -> Location:
    """Location covering start..end when both sit on one row, else start."""
    if start.row != end.row or end.column < start.column:
        return start
    return Location(start.source, start.column, start.row, end.column + end.length - start.column)


def parse(
    source: str | Source,
    filename: str = "input.pages",
    defaults: Mapping[str, Any] | None = None,
) -> Document:
    """Convenience function: parse source text and return a Document AST."""
    if not isinstance(source, Source):
        source = Source(filename, source)
    tokens = tokenize(source)
    return Parser(tokens, source, defaults).parse()
