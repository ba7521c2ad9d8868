"""Shared test fixtures and helpers."""

from __future__ import annotations

import pytest

from pages.ast import Document
from pages.builtins import Library
from pages.lexer import tokenize
from pages.parser import parse


@pytest.fixture
def lex():
    """Return a helper that tokenizes source and returns token values (excluding EOF)."""

    def _lex(source: str) -> list[str]:
        return [t.value for t in tokenize(source) if not t.is_eof()]

    return _lex


@pytest.fixture
def parse_source():
    """Return a helper that parses source and returns a Document."""

    def _parse(source: str, filename: str = "test.pages", **kwargs) -> Document:
        return parse(source, filename, **kwargs)

    return _parse


@pytest.fixture
def recording_library():
    """Return a helper building a Library whose decorators record their calls.

    Each call is recorded as (page name, decorator name, args, props).
    """

    def _make(*names: str, macros=None) -> tuple[Library, list[tuple]]:
        calls: list[tuple] = []

        def make_impl(name: str):
            def impl(page, dec):
                calls.append((page.name, dec.name, list(dec.args), dict(dec.props)))

            return impl

        library = Library({name: make_impl(name) for name in names}, dict(macros or {}))
        return library, calls

    return _make
