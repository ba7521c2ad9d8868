"""Pages lexer — converts source text into a flat token stream."""

from __future__ import annotations

from pages.tokens import Location, Source, Token, is_operator_char

# Buffers opened by these characters run verbatim up to their closer
_CLOSERS = {'"': '"', "[": "]", "(": ")"}


class Lexer:
    """Tokenize pages source text into a list of Token objects.

    The lexer knows nothing about the grammar: it never fails, and malformed
    input surfaces later as parse errors.
    """

    def __init__(self, source: Source) -> None:
        self._source = source
        self._row = 0
        self._col = 0
        self._buffer: list[str] = []
        self._start = (0, 0)  # (row, col) of the buffer's first character
        self._tokens: list[Token] = []

    def tokenize(self) -> list[Token]:
        """Tokenize the full source and return the token list, EOF last."""
        for ch in self._source.body:
            closer = _CLOSERS.get(self._buffer[0]) if self._buffer else None

            if closer is not None:
                self._append(ch)
                if ch == closer:
                    self._flush()
            elif is_operator_char(ch):
                self._flush()
                self._emit(ch, self._row, self._col)
            elif ch.isspace():
                self._flush()
            else:
                self._append(ch)

            self._advance(ch)

        self._flush()
        self._tokens.append(Token("", Location(self._source, self._col, self._row, 1)))
        return self._tokens

    def _advance(self, ch: str) -> None:
        if ch == "\n":
            self._row += 1
            self._col = 0
        else:
            self._col += 1

    def _append(self, ch: str) -> None:
        if not self._buffer:
            self._start = (self._row, self._col)
        self._buffer.append(ch)

    def _flush(self) -> None:
        if not self._buffer:
            return
        value = "".join(self._buffer)
        self._buffer.clear()
        row, col = self._start
        self._emit(value, row, col)

    def _emit(self, value: str, row: int, col: int) -> None:
        self._tokens.append(Token(value, Location(self._source, col, row, len(value))))


def tokenize(source: str | Source, filename: str = "input.pages") -> list[Token]:
    """Convenience function: tokenize source text and return token list."""
    if not isinstance(source, Source):
        source = Source(filename, source)
    return Lexer(source).tokenize()
