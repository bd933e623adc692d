"""Tests for the key index and the element, cell and asset index phases."""

from __future__ import annotations

import os

import pytest

from cakenav.cancellation import CancellationToken, OperationCancelled
from cakenav.index.key_index import KeyIndex, KeyIndexBuilder
from cakenav.index.namespaces import NamespaceMap, parse_autoload_psr4
from cakenav.phases.assets import asset_keys, run_asset_phase
from cakenav.phases.cells import cell_keys, run_cell_phase
from cakenav.phases.elements import element_key, run_element_phase
from cakenav.phases.walk import collect_plugin_roots, find_override_dirs, walk_files

FIXTURES_DIR = os.path.join(os.path.dirname(__file__), "fixtures")
CAKE_APP = os.path.abspath(os.path.join(FIXTURES_DIR, "cake_app"))


def _fixture_path(*parts: str) -> str:
    return os.path.join(CAKE_APP, *parts)


class TestKeyIndex:
    def test_builder_keeps_duplicates_by_default(self):
        builder = KeyIndexBuilder()
        builder.add("sidebar", "/a/sidebar.php")
        builder.add("sidebar", "/a/sidebar.php")

        assert builder.build().get("sidebar") == ("/a/sidebar.php", "/a/sidebar.php")

    def test_unique_builder_drops_repeated_paths(self):
        builder = KeyIndexBuilder(unique=True)
        builder.add_all(["app", "app.js"], "/w/app.js")
        builder.add("app", "/w/app.js")

        index = builder.build()
        assert index.get("app") == ("/w/app.js",)
        assert index.keys() == ["app", "app.js"]

    def test_merge_preserves_order(self):
        first = KeyIndexBuilder()
        first.add("a", "/1")
        second = KeyIndexBuilder()
        second.add("b", "/2")
        second.add("a", "/3")
        first.merge(second)

        assert first.build().as_dict() == {"a": ["/1", "/3"], "b": ["/2"]}

    def test_missing_key(self):
        index = KeyIndex()
        assert index.get("nope") == ()
        assert "nope" not in index
        assert len(index) == 0


class TestWalk:
    def test_walk_is_sorted_and_posix(self):
        files = [rel for _, rel in walk_files(_fixture_path("webroot"), {".js", ".css"})]
        assert files == ["css/app.css", "js/app.js", "js/vendor/jquery.min.js"]

    def test_walk_missing_directory(self):
        assert list(walk_files(_fixture_path("no_such_dir"), {".php"})) == []

    def test_walk_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(OperationCancelled):
            list(walk_files(_fixture_path("templates"), {".php"}, token))

    def test_override_dirs(self):
        found = list(find_override_dirs(_fixture_path("templates", "plugin"), "element"))
        assert found == [("Blog", _fixture_path("templates", "plugin", "Blog", "element"))]

    def test_nested_override_dirs(self, tmp_path):
        (tmp_path / "Acme" / "Themes" / "element").mkdir(parents=True)
        (tmp_path / "Blog" / "element").mkdir(parents=True)

        found = [name for name, _ in find_override_dirs(str(tmp_path), "element")]
        assert found == ["Acme/Themes", "Blog"]

    def test_undeclared_plugins_are_collected(self, tmp_path):
        (tmp_path / "plugins" / "Legacy").mkdir(parents=True)
        roots = collect_plugin_roots(str(tmp_path), NamespaceMap())

        assert roots == [("Legacy", os.path.join(str(tmp_path), "plugins", "Legacy"))]

    def test_declared_plugins_are_not_repeated(self):
        roots = collect_plugin_roots(CAKE_APP, parse_autoload_psr4(CAKE_APP))
        assert [name for name, _ in roots] == ["Blog", "Acme/Themes"]


class TestElementPhase:
    def test_element_key(self):
        assert element_key("", "widgets/card.php") == "widgets/card"
        assert element_key("Blog", "post/teaser.php") == "Blog.post/teaser"

    def test_fixture_keys(self):
        index = run_element_phase(CAKE_APP, parse_autoload_psr4(CAKE_APP))

        assert index.keys() == [
            "sidebar",
            "widgets/card",
            "Blog.sidebar",
            "Blog.post/teaser",
            "Acme/Themes.banner",
        ]

    def test_override_and_plugin_share_a_key(self):
        index = run_element_phase(CAKE_APP, parse_autoload_psr4(CAKE_APP))

        assert index.get("Blog.sidebar") == (
            _fixture_path("templates", "plugin", "Blog", "element", "sidebar.php"),
            _fixture_path("plugins", "Blog", "templates", "element", "sidebar.php"),
        )

    def test_no_templates(self, tmp_path):
        assert len(run_element_phase(str(tmp_path), NamespaceMap())) == 0


class TestCellPhase:
    def test_cell_keys(self):
        assert cell_keys("", "Inbox/display.php") == ["Inbox::display"]
        assert cell_keys("Blog", "Posts/recent_posts.php") == [
            "Blog.Posts::recent_posts",
            "Blog.Posts::recentPosts",
        ]
        assert cell_keys("", "Inbox/recent-items.php") == ["Inbox::recent-items", "Inbox::recentItems"]

    def test_template_in_cell_root_has_no_key(self):
        assert cell_keys("", "display.php") == []

    def test_fixture_keys(self):
        index = run_cell_phase(CAKE_APP, parse_autoload_psr4(CAKE_APP))

        assert index.keys() == [
            "Inbox::display",
            "Inbox::recent_items",
            "Inbox::recentItems",
            "Blog.Posts::display",
        ]
        assert len(index.get("Blog.Posts::display")) == 2


class TestAssetPhase:
    def test_plugin_asset_variants(self):
        assert asset_keys("Blog", "js/app.js", ".js") == [
            "Blog.js/app.js",
            "Blog.js/app",
            "Blog.app.js",
            "Blog.app",
            "Blog./js/app.js",
            "Blog./js/app",
        ]

    def test_app_asset_variants(self):
        assert asset_keys("", "css/site/main.css", ".css") == [
            "css/site/main.css",
            "css/site/main",
            "site/main.css",
            "site/main",
            "/css/site/main.css",
            "/css/site/main",
        ]

    def test_asset_outside_scope_directory(self):
        assert asset_keys("", "app.js", ".js") == ["app.js", "app", "/js/app.js", "/js/app"]

    def test_fixture_indices(self):
        scripts, styles = run_asset_phase(CAKE_APP, parse_autoload_psr4(CAKE_APP))

        assert scripts.get("app") == (_fixture_path("webroot", "js", "app.js"),)
        assert scripts.get("Blog.blog") == (_fixture_path("plugins", "Blog", "webroot", "js", "blog.js"),)
        assert styles.get("Blog.app") == (_fixture_path("plugins", "Blog", "webroot", "css", "app.css"),)
        assert styles.get("Acme/Themes.theme") == (
            _fixture_path("vendor", "acme", "themes", "webroot", "css", "theme.css"),
        )

    def test_each_asset_key_lists_a_path_once(self):
        scripts, styles = run_asset_phase(CAKE_APP, parse_autoload_psr4(CAKE_APP))
        for index in (scripts, styles):
            for _, paths in index.items():
                assert len(paths) == len(set(paths))
