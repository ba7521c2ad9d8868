"""Command-line interface for the pages language."""

from __future__ import annotations

import argparse
import logging
import sys
import time
import tomllib
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pages.ast import Document
from pages.errors import BuildError, ParseError

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class CliOptions:
    """Parsed CLI options."""

    input_file: Path
    output_path: Path | None
    source_path: Path
    paths: dict[str, str]
    default_path: str | None
    props: dict[str, str]
    get_path: str | None
    watch: bool
    debug: bool
    verbose: bool


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser (separate function for testability)."""
    p = argparse.ArgumentParser(
        prog="pages",
        description="Build the pages declared in a .pages file",
    )
    p.add_argument("input", help="Input .pages file")
    p.add_argument("-o", "--output", help="Output directory (default: resolve only)")
    p.add_argument(
        "-s",
        "--source",
        help="Source directory for page resources (default: input file's directory)",
    )
    p.add_argument(
        "--path",
        action="append",
        default=[],
        metavar="NAMESPACE=DIR",
        help="Source sub-directory for a namespace (repeatable)",
    )
    p.add_argument(
        "--default-path",
        metavar="DIR",
        help="Source sub-directory for namespaces without --path",
    )
    p.add_argument(
        "-p",
        "--prop",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Default namespace property (repeatable)",
    )
    p.add_argument(
        "--config",
        metavar="FILE",
        help="Config file (default: auto-discover pages.toml)",
    )
    p.add_argument("--get", metavar="PATH", help="Print the built page served at PATH")
    p.add_argument("--watch", action="store_true", help="Watch for changes and rebuild")
    p.add_argument("--debug", action="store_true", help="Dump the parsed document to stderr")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def parse_assignment(s: str) -> tuple[str, str]:
    """Parse a NAME=VALUE string into (name, value)."""
    if "=" not in s:
        raise argparse.ArgumentTypeError(f"invalid format (expected NAME=VALUE): {s}")
    name, _, value = s.partition("=")
    return name, value


def load_config(config_path: Path | None, input_dir: Path) -> dict[str, Any]:
    """Load a TOML config file, returning an empty dict on missing/absent file."""
    path = config_path if config_path is not None else input_dir / "pages.toml"

    if not path.is_file():
        return {}

    with open(path, "rb") as f:
        return tomllib.load(f)


def resolve_options(args: argparse.Namespace) -> CliOptions:
    """Merge config file and CLI args into CliOptions.

    Precedence: config file < CLI flags.
    """
    input_file = Path(args.input)
    input_dir = input_file.parent
    if not input_dir.parts:
        input_dir = Path(".")

    config_path = Path(args.config) if args.config else None
    config = load_config(config_path, input_dir)

    cfg_build = config.get("build")
    if not isinstance(cfg_build, dict):
        cfg_build = {}

    # Source and output directories: config < CLI
    source_path = input_dir
    if isinstance(cfg_build.get("source"), str):
        source_path = Path(cfg_build["source"])
    if args.source:
        source_path = Path(args.source)

    output_path: Path | None = None
    if isinstance(cfg_build.get("output"), str):
        output_path = Path(cfg_build["output"])
    if args.output:
        output_path = Path(args.output)

    default_path: str | None = None
    if isinstance(cfg_build.get("default_path"), str):
        default_path = cfg_build["default_path"]
    if args.default_path:
        default_path = args.default_path

    # Namespace source paths: config < CLI
    paths: dict[str, str] = {}
    cfg_paths = config.get("paths")
    if isinstance(cfg_paths, dict):
        for k, v in cfg_paths.items():
            paths[str(k)] = str(v)
    for raw in args.path:
        name, value = parse_assignment(raw)
        paths[name] = value

    # Default namespace props: config < CLI
    props: dict[str, str] = {}
    cfg_props = config.get("props")
    if isinstance(cfg_props, dict):
        for k, v in cfg_props.items():
            props[str(k)] = str(v)
    for raw in args.prop:
        name, value = parse_assignment(raw)
        props[name] = value

    return CliOptions(
        input_file=input_file,
        output_path=output_path,
        source_path=source_path,
        paths=paths,
        default_path=default_path,
        props=props,
        get_path=args.get,
        watch=args.watch,
        debug=args.debug,
        verbose=args.verbose,
    )


def build_file(options: CliOptions) -> Document:
    """Read, parse, and build a pages file with the builtin library."""
    from pages.build import BuildOptions, build
    from pages.builtins import default_library
    from pages.debug import dump_document
    from pages.parser import parse
    from pages.tokens import Source

    source = Source.from_file(options.input_file)
    doc = parse(source, defaults=options.props)

    if options.debug:
        dump_document(doc)

    build_options = BuildOptions.from_library(
        default_library(),
        source_path=options.source_path,
        paths=dict(options.paths),
        default_path=options.default_path,
        output_path=options.output_path,
    )
    build(doc, build_options)
    logger.debug(
        "built %d page(s) from %s",
        sum(len(ns.pages) for ns in doc.namespaces),
        options.input_file,
    )
    return doc


def watch_loop(options: CliOptions) -> None:
    """Poll input file for changes, rebuild on each modification."""
    last_mtime = 0.0
    print(f"Watching {options.input_file} for changes...", file=sys.stderr)
    try:
        while True:
            try:
                mtime = options.input_file.stat().st_mtime
            except OSError:
                time.sleep(0.5)
                continue
            if mtime != last_mtime:
                last_mtime = mtime
                try:
                    build_file(options)
                    print(f"Built {options.input_file}", file=sys.stderr)
                except (ParseError, BuildError) as exc:
                    print(str(exc), file=sys.stderr)
            time.sleep(0.5)
    except KeyboardInterrupt:
        pass


def main(argv: list[str] | None = None) -> int:
    """CLI entry point. Returns exit code (0/1/2/3). Does not call sys.exit()."""
    from pages.build import get_page

    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        options = resolve_options(args)
    except argparse.ArgumentTypeError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if options.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if options.get_path is not None and options.output_path is None:
        print("error: --get needs an output directory (-o)", file=sys.stderr)
        return 2

    if options.watch:
        watch_loop(options)
        return 0

    try:
        doc = build_file(options)
    except ParseError as exc:
        print(str(exc), file=sys.stderr)
        return 1
    except BuildError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    if options.get_path is not None:
        try:
            loaded = get_page(doc, options.get_path)
        except OSError as exc:
            print(f"error: cannot read page `{options.get_path}`: {exc}", file=sys.stderr)
            return 2
        if loaded is None:
            print(f"error: page `{options.get_path}` not found", file=sys.stderr)
            return 3
        sys.stdout.write(loaded.body)

    return 0
