"""AST node types for parsed pages documents."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass, field, replace
from typing import Any

from pages.tokens import Location, Source

# Reserved page props holding the processing state decorators build up
HEADERS_KEY = "__headers"
PROCESS_KEY = "__process"


@dataclass(eq=False, slots=True)
class Decorator:
    """A named, parameterized annotation attached to a page.

    Decorators compare by identity: two declarations with the same name and
    arguments are still distinct entries of a page's decorator list.
    """

    name: str
    location: Location
    args: list[Any] = field(default_factory=list)
    props: dict[str, Any] = field(default_factory=dict)
    negated: bool = False
    is_macro: bool = False
    is_global: bool = False

    def copy(self) -> Decorator:
        """Return a copy owning its own args and props."""
        return replace(self, args=list(self.args), props=dict(self.props))


@dataclass(eq=False, slots=True)
class Page:
    """A named, addressable unit pointing at one resource."""

    name: str
    location: Location
    resource_path: str | None = None
    props: dict[str, Any] = field(default_factory=dict)
    decorators: list[Decorator] = field(default_factory=list)

    @property
    def headers(self) -> dict[str, str]:
        return self.props.get(HEADERS_KEY, {})

    def set_header(self, name: str, value: str) -> None:
        self.props.setdefault(HEADERS_KEY, {})[name] = value

    def add_process(self, fn: Callable[[str], str]) -> None:
        """Append a body transform; transforms run in the order added."""
        self.props.setdefault(PROCESS_KEY, []).append(fn)

    def process(self, body: str) -> str:
        for fn in self.props.get(PROCESS_KEY, ()):
            body = fn(body)
        return body


@dataclass(eq=False, slots=True)
class Namespace:
    """A named top-level group of pages sharing properties and a source root."""

    name: str
    location: Location
    props: dict[str, Any] = field(default_factory=dict)
    pages: list[Page] = field(default_factory=list)


@dataclass(eq=False, slots=True)
class Document:
    """Root node: the namespaces of one source, in declaration order."""

    source: Source
    namespaces: list[Namespace] = field(default_factory=list)

    def iter_pages(self) -> Iterator[tuple[Namespace, Page]]:
        for namespace in self.namespaces:
            for page in namespace.pages:
                yield namespace, page
