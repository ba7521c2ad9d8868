"""Builtin decorators and macros, and the Library that registers them."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import PurePosixPath

import minify_html
import rcssmin
import rjsmin

from pages.ast import Decorator, Page
from pages.resolve import DecoratorImpl, MacroImpl

CONTENT_TYPES: dict[str, str] = {
    ".html": "text/html",
    ".htm": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".svg": "image/svg+xml",
    ".txt": "text/plain",
    ".xml": "application/xml",
}


def _suffix(name: str | None) -> str:
    if not name:
        return ""
    return PurePosixPath(name).suffix.lower()


# ---------------------------------------------------------------------------
# Decorators
# ---------------------------------------------------------------------------


def kind(page: Page, dec: Decorator) -> None:
    """Set the Content-Type header, explicitly or from the page's suffix."""
    explicit = dec.props.get("kind") or (dec.args[0] if dec.args else None)
    if explicit:
        page.set_header("Content-Type", explicit)
        return

    content_type = CONTENT_TYPES.get(_suffix(page.name)) or CONTENT_TYPES.get(
        _suffix(page.resource_path)
    )
    if content_type:
        page.set_header("Content-Type", content_type)


def _minify_html(body: str) -> str:
    return minify_html.minify(body, minify_css=True, minify_js=True)


_MINIFIERS: dict[str, Callable[[str], str]] = {
    ".js": rjsmin.jsmin,
    ".css": rcssmin.cssmin,
    ".html": _minify_html,
    ".htm": _minify_html,
}


def minify(page: Page, dec: Decorator) -> None:
    """Queue a minifier matching the page's resource type, if there is one."""
    fn = _MINIFIERS.get(_suffix(page.resource_path))
    if fn is not None:
        page.add_process(fn)


# ---------------------------------------------------------------------------
# Macros
# ---------------------------------------------------------------------------


def auto(page: Page, dec: Decorator) -> list[Decorator]:
    """Tag the content type and minify."""
    return [Decorator("kind", dec.location), Decorator("min", dec.location)]


BUILTIN_DECORATORS: dict[str, DecoratorImpl] = {
    "kind": kind,
    "min": minify,
}

BUILTIN_MACROS: dict[str, MacroImpl] = {
    "auto": auto,
}


@dataclass
class Library:
    """Decorator and macro implementations available to a build."""

    decorators: dict[str, DecoratorImpl] = field(default_factory=dict)
    macros: dict[str, MacroImpl] = field(default_factory=dict)

    def merged(self, other: Library) -> Library:
        """Return a new library where other's entries override ours."""
        return Library(
            {**self.decorators, **other.decorators},
            {**self.macros, **other.macros},
        )


def default_library() -> Library:
    return Library(dict(BUILTIN_DECORATORS), dict(BUILTIN_MACROS))
