"""Source buffers, locations, tokens, and token classification helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

# Single-character operator tokens: ! = - @ % { } < >
OPERATORS = frozenset("!=-@%{}<>")

_IDENTIFIER_RE = re.compile(r"^#?[a-z0-9_-]+$", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class Source:
    """A named, immutable text buffer with normalized line endings."""

    name: str
    body: str
    _lines: tuple[str, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        body = self.body.replace("\r\n", "\n")
        object.__setattr__(self, "body", body)
        object.__setattr__(self, "_lines", tuple(body.split("\n")))

    @classmethod
    def from_file(cls, path: str | Path) -> Source:
        return cls(str(path), Path(path).read_text(encoding="utf-8"))

    def line(self, row: int) -> str:
        """Return the text of a zero-based row, or "" when out of range."""
        if 0 <= row < len(self._lines):
            return self._lines[row]
        return ""


@dataclass(frozen=True, slots=True)
class Location:
    """Zero-based row/column span into a Source."""

    source: Source = field(repr=False)
    column: int
    row: int
    length: int

    def __str__(self) -> str:
        return f"{self.source.name}:{self.row + 1}:{self.column + 1}"


@dataclass(frozen=True, slots=True)
class Token:
    """A lexical unit; its kind is derived from the shape of its value."""

    value: str
    location: Location

    def is_eof(self) -> bool:
        return self.value == ""

    def is_namespace(self) -> bool:
        return len(self.value) >= 2 and self.value[0] == "(" and self.value[-1] == ")"

    def is_page(self) -> bool:
        return len(self.value) >= 2 and self.value[0] == "[" and self.value[-1] == "]"

    def is_identifier(self) -> bool:
        return _IDENTIFIER_RE.match(self.value) is not None

    def is_string(self) -> bool:
        return len(self.value) >= 2 and self.value[0] == '"' and self.value[-1] == '"'

    def is_operator(self, op: str) -> bool:
        return self.value == op

    def inner(self) -> str:
        """Text between the delimiters of a header or string token."""
        return self.value[1:-1]


def is_operator_char(ch: str) -> bool:
    """Return True if ch is a single-character operator."""
    return ch in OPERATORS
