"""Build and lookup tests — resolution, output tree, name rewriting, get_page."""

from __future__ import annotations

from pathlib import Path

import pytest

import pages
from pages.build import BuildOptions, build, get_page
from pages.builtins import Library, default_library
from pages.errors import BuildError
from pages.parser import parse


@pytest.fixture
def site(tmp_path: Path) -> Path:
    """A source tree with a few resources."""
    src = tmp_path / "src"
    (src / "css").mkdir(parents=True)
    (src / "index.html").write_text("<p>home</p>")
    (src / "about.html").write_text("<p>about</p>")
    (src / "app.js").write_text("var x = 1;")
    (src / "css" / "site.css").write_text("a { color: red; }")
    return src


def _options(site: Path, out: Path | None, **kwargs) -> BuildOptions:
    return BuildOptions.from_library(
        default_library(), source_path=site, output_path=out, **kwargs
    )


class TestResolveOnly:
    def test_no_output_path(self, site: Path):
        doc = parse('(pages){ %%kind [/]{@"index.html"} }')
        build(doc, _options(site, None))
        page = doc.namespaces[0].pages[0]
        assert page.name == "/"
        assert page.resource_path == "index.html"
        assert page.headers == {"Content-Type": "text/html"}
        assert page.decorators == []

    def test_no_decorators_no_headers(self, site: Path):
        library = Library({"kind": lambda page, dec: page.set_header("X", "y")})
        doc = parse('(pages){root="/" [/]{@"index.html"}}')
        build(doc, BuildOptions.from_library(library, source_path=site))
        page = doc.namespaces[0].pages[0]
        assert page.props.get("__headers", {}) == {}

    def test_auto_macro_effects(self, site: Path):
        doc = parse('(pages){%%!auto root="/" [/]{@"index.html"}}')
        build(doc, _options(site, None))
        page = doc.namespaces[0].pages[0]
        assert page.headers == {"Content-Type": "text/html"}
        assert len(page.props["__process"]) == 1


class TestOutputTree:
    def test_writes_pages(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = parse('(pages){ root="/" [/]{@"index.html"} [about]{@"about.html"} }')
        build(doc, _options(site, out))
        assert (out / "pages" / "index.html").read_text() == "<p>home</p>"
        assert (out / "pages" / "about.html").read_text() == "<p>about</p>"

    def test_names_and_paths_rewritten(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = parse('(pages){ [/]{@"index.html"} [/about/]{@"about.html"} }')
        build(doc, _options(site, out))
        index, about = doc.namespaces[0].pages
        assert index.name == ""
        assert about.name == "about"
        assert Path(index.resource_path) == (out / "pages" / "index.html").resolve()
        assert Path(index.resource_path).is_absolute()

    def test_root_prefix(self, site: Path, tmp_path: Path):
        doc = parse('(api){ root="/v1/" [users]{@"app.js"} }')
        build(doc, _options(site, tmp_path / "out"))
        assert doc.namespaces[0].pages[0].name == "v1/users"

    def test_root_from_defaults(self, site: Path, tmp_path: Path):
        doc = parse('(api){ [users]{@"app.js"} }', defaults={"root": "/static"})
        build(doc, _options(site, tmp_path / "out"))
        assert doc.namespaces[0].pages[0].name == "static/users"

    def test_nested_resource_path(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = parse('(pages){ [site.css]{@"css/site.css"} }')
        build(doc, _options(site, out))
        assert (out / "pages" / "css" / "site.css").is_file()

    def test_process_applied(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        library = Library({"upper": lambda page, dec: page.add_process(str.upper)})
        doc = parse('(pages){ %upper [/]{@"index.html"} }')
        build(doc, BuildOptions.from_library(library, source_path=site, output_path=out))
        assert (out / "pages" / "index.html").read_text() == "<P>HOME</P>"

    def test_minified_output(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = parse('(pages){ %!auto [app.js]{@"app.js"} }')
        build(doc, _options(site, out))
        assert (out / "pages" / "app.js").read_text() == "var x=1;"

    def test_namespace_paths(self, site: Path, tmp_path: Path):
        (site / "blog").mkdir()
        (site / "blog" / "post.html").write_text("post")
        out = tmp_path / "out"
        doc = parse('(blog){ [post]{@"post.html"} } (pages){ [/]{@"index.html"} }')
        build(doc, _options(site, out, paths={"blog": "blog"}))
        assert (out / "blog" / "post.html").read_text() == "post"
        assert (out / "pages" / "index.html").read_text() == "<p>home</p>"

    def test_default_path(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = parse('(pages){ [site.css]{@"site.css"} }')
        build(doc, _options(site, out, default_path="css"))
        assert (out / "pages" / "site.css").is_file()

    def test_absolute_resource_path_stays_under_roots(self, site: Path, tmp_path: Path):
        outside = tmp_path / "outside.js"
        outside.write_text("var longName = 1;")
        out = tmp_path / "out"
        doc = parse('(pages){ %min [app.js]{@"/app.js"} }')
        build(doc, _options(site, out))
        assert (out / "pages" / "app.js").read_text() == "var x=1;"
        assert (site / "app.js").read_text() == "var x = 1;"
        assert outside.read_text() == "var longName = 1;"
        assert Path(doc.namespaces[0].pages[0].resource_path) == (
            out / "pages" / "app.js"
        ).resolve()

    def test_existing_output_reused(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        (out / "pages").mkdir(parents=True)
        build(parse('(pages){ [/]{@"index.html"} }'), _options(site, out))
        assert (out / "pages" / "index.html").is_file()


class TestBuildErrors:
    def test_output_path_is_file(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        out.write_text("")
        with pytest.raises(BuildError, match="is a file") as exc_info:
            build(parse('(pages){ [/]{@"index.html"} }'), _options(site, out))
        assert exc_info.value.location is None

    def test_namespace_output_is_file(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        out.mkdir()
        (out / "pages").write_text("")
        doc = parse('(pages){ [/]{@"index.html"} }')
        with pytest.raises(BuildError, match="is a file") as exc_info:
            build(doc, _options(site, out))
        assert exc_info.value.location is doc.namespaces[0].location

    def test_missing_source_directory(self, site: Path, tmp_path: Path):
        doc = parse('(pages){ [/]{@"index.html"} }')
        with pytest.raises(BuildError, match="source directory") as exc_info:
            build(doc, _options(site, tmp_path / "out", paths={"pages": "nope"}))
        assert exc_info.value.location is doc.namespaces[0].location

    def test_missing_page_path(self, site: Path, tmp_path: Path):
        doc = parse("(pages){\n  [about]{}\n}")
        with pytest.raises(BuildError, match="missing path of the page") as exc_info:
            build(doc, _options(site, tmp_path / "out"))
        assert exc_info.value.location.row == 1

    def test_missing_file(self, site: Path, tmp_path: Path):
        doc = parse('(pages){ [x]{@"missing.html"} }')
        with pytest.raises(BuildError, match="could not be found") as exc_info:
            build(doc, _options(site, tmp_path / "out"))
        assert exc_info.value.location is doc.namespaces[0].pages[0].location

    def test_source_file_outside_root_not_read(self, site: Path, tmp_path: Path):
        victim = tmp_path / "victim.js"
        victim.write_text("var longName = 1;")
        doc = parse(f'(pages){{ %min [a.js]{{@"{victim.as_posix()}"}} }}')
        with pytest.raises(BuildError, match="could not be found"):
            build(doc, _options(site, tmp_path / "out"))
        assert victim.read_text() == "var longName = 1;"

    def test_parent_escape_rejected(self, site: Path, tmp_path: Path):
        (tmp_path / "escape.js").write_text("x")
        out = tmp_path / "out"
        doc = parse('(pages){\n  [e]{@"../../escape.js"}\n}')
        with pytest.raises(BuildError, match="leaves the output directory") as exc_info:
            build(doc, _options(site, out))
        assert exc_info.value.location.row == 1
        assert not (out / "escape.js").exists()

    def test_unknown_decorator_before_io(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = parse('(pages){ %nope [/]{@"index.html"} }')
        with pytest.raises(BuildError, match="unknown decorator"):
            build(doc, _options(site, out))
        assert not out.exists()


class TestGetPage:
    def test_lookup_after_build(self, site: Path, tmp_path: Path):
        doc = parse('(pages){ root="/" [/]{@"index.html"} [app.js]{@"app.js"} }')
        build(doc, _options(site, tmp_path / "out"))
        loaded = get_page(doc, "/")
        assert loaded is not None
        assert loaded.body == "<p>home</p>"
        assert loaded.page is doc.namespaces[0].pages[0]
        assert get_page(doc, "/app.js/").body == "var x = 1;"

    def test_first_match_wins(self, site: Path, tmp_path: Path):
        doc = parse('(a){ [dup]{@"index.html"} } (b){ [dup]{@"about.html"} }')
        build(doc, _options(site, tmp_path / "out"))
        loaded = get_page(doc, "dup")
        assert loaded.page is doc.namespaces[0].pages[0]
        assert loaded.body == "<p>home</p>"

    def test_not_found(self, site: Path, tmp_path: Path):
        doc = parse('(pages){ [/]{@"index.html"} }')
        build(doc, _options(site, tmp_path / "out"))
        assert get_page(doc, "/nope") is None

    def test_page_without_path_not_matched(self):
        doc = parse("(pages){ [about]{} }")
        assert get_page(doc, "about") is None


class TestLoad:
    def test_load_with_builtins(self):
        doc = pages.load('(pages){ %%!auto [/]{@"index.html"} }', "site.pages")
        page = doc.namespaces[0].pages[0]
        assert doc.source.name == "site.pages"
        assert page.headers == {"Content-Type": "text/html"}
        assert page.decorators == []

    def test_load_with_options(self, site: Path, tmp_path: Path):
        out = tmp_path / "out"
        doc = pages.load('(pages){ [/]{@"index.html"} }', options=_options(site, out))
        assert get_page(doc, "/").body == "<p>home</p>"
