"""--debug document dump to stderr."""

from __future__ import annotations

import sys
from typing import Any, TextIO

from pages.ast import Decorator, Document, Namespace, Page


def dump_document(doc: Document, *, file: TextIO = sys.stderr) -> None:
    """Print a human-readable document tree to *file*."""
    file.write(f"Document {doc.source.name}\n")
    for namespace in doc.namespaces:
        _dump_namespace(namespace, 1, file)


def _indent(depth: int) -> str:
    return "  " * depth


def _dump_namespace(namespace: Namespace, depth: int, f: TextIO) -> None:
    f.write(f"{_indent(depth)}Namespace ({namespace.name})\n")
    _dump_props(namespace.props, depth + 1, f)
    for page in namespace.pages:
        _dump_page(page, depth + 1, f)


def _dump_page(page: Page, depth: int, f: TextIO) -> None:
    path = f" @{page.resource_path!r}" if page.resource_path else ""
    f.write(f"{_indent(depth)}Page [{page.name}]{path}\n")
    _dump_props(page.props, depth + 1, f)
    for dec in page.decorators:
        _dump_decorator(dec, depth + 1, f)


def _dump_props(props: dict[str, Any], depth: int, f: TextIO) -> None:
    for name, value in props.items():
        if name.startswith("__"):
            continue
        f.write(f"{_indent(depth)}Prop {name}={value!r}\n")


def _dump_decorator(dec: Decorator, depth: int, f: TextIO) -> None:
    # Flag markers mirror the source syntax: %% global, - cancelled, ! macro
    marker = "%%" if dec.is_global else "%"
    if dec.negated:
        marker += "-"
    if dec.is_macro:
        marker += "!"
    f.write(f"{_indent(depth)}Decorator {marker}{dec.name}")
    params = [repr(arg) for arg in dec.args]
    params.extend(f"{k}={v!r}" for k, v in dec.props.items())
    if params:
        f.write(f" <{' '.join(params)}>")
    f.write("\n")
