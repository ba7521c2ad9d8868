"""Pages language: namespaces of decorated pages, parsed and built."""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pages.ast import Document
    from pages.build import BuildOptions

__version__ = "0.1.0"


def load(
    source: str,
    filename: str = "input.pages",
    options: BuildOptions | None = None,
    defaults: Mapping[str, Any] | None = None,
) -> Document:
    """Parse pages source and build it (builtin library when no options)."""
    from pages.build import BuildOptions, build
    from pages.builtins import default_library
    from pages.parser import parse

    doc = parse(source, filename, defaults)
    if options is None:
        options = BuildOptions.from_library(default_library())
    build(doc, options)
    return doc
