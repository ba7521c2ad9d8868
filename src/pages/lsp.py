"""Minimal LSP server for pages files — diagnostics only."""

from __future__ import annotations

from lsprotocol.types import (
    TEXT_DOCUMENT_DID_CHANGE,
    TEXT_DOCUMENT_DID_OPEN,
    Diagnostic,
    DiagnosticSeverity,
    DidChangeTextDocumentParams,
    DidOpenTextDocumentParams,
    Position,
    PublishDiagnosticsParams,
    Range,
    TextDocumentSyncKind,
)
from pygls.lsp.server import LanguageServer

from pages import __version__
from pages.builtins import default_library
from pages.errors import BuildError, PagesError, ParseError
from pages.parser import parse
from pages.resolve import resolve

server = LanguageServer(
    "pages-lsp", __version__, text_document_sync_kind=TextDocumentSyncKind.Full
)


def _diagnostic(exc: PagesError, severity: DiagnosticSeverity) -> Diagnostic:
    loc = exc.location
    if loc is None:
        start = end = Position(line=0, character=0)
    else:
        start = Position(line=loc.row, character=loc.column)
        end = Position(line=loc.row, character=loc.column + loc.length)
    message = exc.message
    if exc.hint:
        message += f" ({exc.hint})"
    return Diagnostic(
        range=Range(start=start, end=end),
        message=message,
        severity=severity,
        source="pages",
    )


def _validate(ls: LanguageServer, uri: str) -> None:
    """Parse and resolve the document, then publish diagnostics."""
    doc = ls.workspace.get_text_document(uri)
    filename = uri.rsplit("/", 1)[-1] if "/" in uri else uri
    diagnostics: list[Diagnostic] = []

    try:
        ast = parse(doc.source, filename)
    except ParseError as exc:
        diagnostics.append(_diagnostic(exc, DiagnosticSeverity.Error))
    else:
        try:
            resolve(ast, default_library())
        except BuildError as exc:
            diagnostics.append(_diagnostic(exc, DiagnosticSeverity.Warning))

    ls.text_document_publish_diagnostics(
        PublishDiagnosticsParams(uri=uri, diagnostics=diagnostics)
    )


@server.feature(TEXT_DOCUMENT_DID_OPEN)
def did_open(ls: LanguageServer, params: DidOpenTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


@server.feature(TEXT_DOCUMENT_DID_CHANGE)
def did_change(ls: LanguageServer, params: DidChangeTextDocumentParams) -> None:
    _validate(ls, params.text_document.uri)


def main() -> None:
    server.start_io()
