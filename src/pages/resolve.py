"""Decorator resolution — expands macros, applies cancellation, runs decorators."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Protocol

from pages.ast import Decorator, Document, Page
from pages.errors import BuildError

logger = logging.getLogger(__name__)

DecoratorImpl = Callable[[Page, Decorator], None]
MacroImpl = Callable[[Page, Decorator], Sequence[Decorator]]


class Registry(Protocol):
    """Anything carrying decorator and macro implementations by name."""

    decorators: Mapping[str, DecoratorImpl]
    macros: Mapping[str, MacroImpl]


def resolve(doc: Document, registry: Registry) -> None:
    """Resolve every page of the document in place.

    Stops at the first unknown decorator or macro; pages after the failing
    one are left unresolved.
    """
    for namespace, page in doc.iter_pages():
        logger.debug("resolving page %r in namespace %r", page.name, namespace.name)
        resolve_page(page, registry)


def resolve_page(page: Page, registry: Registry) -> None:
    """Expand, cancel and invoke the page's decorators, then clear them."""
    _expand_macros(page, registry)
    _apply_cancellation(page.decorators)

    for dec in page.decorators:
        impl = registry.decorators.get(dec.name)
        if impl is None:
            raise BuildError(f"unknown decorator `{dec.name}`", dec.location)
        impl(page, dec)

    page.decorators.clear()


def _expand_macros(page: Page, registry: Registry) -> None:
    """Replace each macro by its expansion; expansions are not re-scanned."""
    macros = [dec for dec in page.decorators if dec.is_macro]
    for macro in macros:
        impl = registry.macros.get(macro.name)
        if impl is None:
            raise BuildError(f"unknown macro `{macro.name}`", macro.location)

        # Macros may hand back shared instances
        stubs = [stub.copy() for stub in impl(page, macro)]
        if macro.negated:
            for stub in stubs:
                stub.negated = True

        index = page.decorators.index(macro)
        page.decorators[index : index + 1] = stubs
        logger.debug(
            "expanded macro %r into %s", macro.name, [stub.name for stub in stubs]
        )


def _apply_cancellation(decorators: list[Decorator]) -> None:
    """Drop each negated decorator and same-named ones at or after its index.

    Same-named decorators positioned before the negated entry survive.
    """
    for i in range(len(decorators) - 1, -1, -1):
        dec = decorators[i]
        if not dec.negated:
            continue
        decorators[i:] = [d for d in decorators[i:] if d.name != dec.name]
