"""Error types with formatted source context."""

from __future__ import annotations

from pages.tokens import Location


class PagesError(Exception):
    """Base class for located errors raised while parsing or building pages."""

    def __init__(self, message: str, location: Location | None = None, hint: str = "") -> None:
        self.message = message
        self.location = location
        self.hint = hint
        super().__init__(self.format())

    def format(self) -> str:
        if self.location is None:
            result = f"error: {self.message}"
            if self.hint:
                result += f"\n  = hint: {self.hint}"
            return result

        loc = self.location
        full_line = loc.source.line(loc.row)
        source_line = full_line.strip()
        indent = len(full_line) - len(full_line.lstrip())
        col = max(0, loc.column - indent)

        # Underline the token, clipped to the displayed line
        underline_len = max(1, min(loc.length, len(source_line) - col))

        pad = " " * col
        carets = "^" * underline_len

        line_num = str(loc.row + 1)
        gutter_width = len(line_num) + 1

        blank_gutter = " " * gutter_width + "|"
        line_gutter = f"{line_num:>{gutter_width - 1}} |"

        result = (
            f"error: {self.message}\n"
            f"{' ' * gutter_width}--> {loc}\n"
            f"{blank_gutter}\n"
            f"{line_gutter} {source_line}\n"
            f"{blank_gutter} {pad}{carets}"
        )
        if self.hint:
            result += f"\n{' ' * gutter_width}= hint: {self.hint}"
        return result


class ParseError(PagesError):
    """Raised on the first syntax error, with the offending token's location."""


class BuildError(PagesError):
    """Raised when resolving decorators or writing the output tree fails."""
