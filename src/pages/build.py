"""Build step — resolve every page, then copy resources into the output tree."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pages.ast import Document, Namespace, Page
from pages.builtins import Library
from pages.errors import BuildError
from pages.resolve import DecoratorImpl, MacroImpl, resolve

logger = logging.getLogger(__name__)


@dataclass
class BuildOptions:
    """Registries and paths for one build.

    The source root of a namespace is ``source_path / paths[name]``, falling
    back to ``source_path / default_path``. Without ``output_path`` the build
    only resolves decorators.
    """

    decorators: dict[str, DecoratorImpl] = field(default_factory=dict)
    macros: dict[str, MacroImpl] = field(default_factory=dict)
    source_path: Path = Path(".")
    paths: dict[str, str] = field(default_factory=dict)
    default_path: str | None = None
    output_path: Path | None = None

    @classmethod
    def from_library(cls, library: Library, **kwargs) -> BuildOptions:
        return cls(dict(library.decorators), dict(library.macros), **kwargs)

    def source_root(self, namespace: Namespace) -> Path:
        sub = self.paths.get(namespace.name) or self.default_path or ""
        return self.source_path / sub


@dataclass(frozen=True, slots=True)
class LoadedPage:
    """A built page together with the body read from its output file."""

    page: Page
    body: str


def build(doc: Document, options: BuildOptions) -> None:
    """Resolve all decorators and, with an output path, write every page."""
    resolve(doc, options)

    if options.output_path is None:
        return

    output = options.output_path
    if output.is_file():
        raise BuildError(f"output path `{output}` is a file")
    output.mkdir(parents=True, exist_ok=True)

    for namespace in doc.namespaces:
        _build_namespace(namespace, options, output)


def _build_namespace(namespace: Namespace, options: BuildOptions, output: Path) -> None:
    dest = output / namespace.name
    if dest.is_file():
        raise BuildError(
            f"output path for `{namespace.name}` (`{dest}`) is a file", namespace.location
        )
    dest.mkdir(exist_ok=True)

    root = options.source_root(namespace)
    if not root.is_dir():
        raise BuildError(
            f"source directory `{root}` could not be found",
            namespace.location,
            f"set a path for `{namespace.name}` or a default path",
        )

    prefix = _strip_slashes(namespace.props.get("root", "/"))
    for page in namespace.pages:
        if not page.resource_path:
            raise BuildError("missing path of the page", page.location, 'add `@"file"` to the page')

        # Resource paths are always relative to the namespace roots
        relative = page.resource_path.lstrip("/")
        src = root / relative
        target = dest / relative
        if not target.resolve().is_relative_to(dest.resolve()):
            raise BuildError(
                f"page path `{page.resource_path}` leaves the output directory",
                page.location,
            )
        if not src.is_file():
            raise BuildError(f"file `{src}` could not be found", page.location)

        body = page.process(src.read_text(encoding="utf-8"))
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(body, encoding="utf-8")
        logger.debug("wrote %s -> %s", src, target)

        page.name = f"{prefix}/{_strip_slashes(page.name)}".removeprefix("/")
        page.resource_path = str(target.resolve())


def get_page(doc: Document, path: str) -> LoadedPage | None:
    """Return the first page named path that has a resource, with its body.

    Best used after build(), once names carry their root prefix and resource
    paths point into the output tree.
    """
    path = _strip_slashes(path)
    for _namespace, page in doc.iter_pages():
        if page.name == path and page.resource_path:
            body = Path(page.resource_path).read_text(encoding="utf-8")
            return LoadedPage(page, body)
    return None


def _strip_slashes(value: str) -> str:
    """Remove one leading and one trailing slash."""
    return value.removeprefix("/").removesuffix("/")
