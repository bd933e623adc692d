"""Tests for reference string parsing and inflection."""

from __future__ import annotations

from cakenav.config import ClassInfo, ComponentReference, ReferenceDescriptor
from cakenav.references import (
    extract_class_info,
    split_component_reference,
    split_qualifier,
    underscore,
    variable_camelize,
)


class TestInflection:
    def test_underscore(self):
        assert underscore("renderWidget") == "render_widget"
        assert underscore("recentItems") == "recent_items"
        assert underscore("index") == "index"

    def test_underscore_has_no_leading_separator(self):
        assert underscore("Display") == "display"

    def test_variable_camelize(self):
        assert variable_camelize("recent_posts") == "recentPosts"
        assert variable_camelize("top-ten-list") == "topTenList"
        assert variable_camelize("display") == "display"


class TestSplitQualifier:
    def test_plugin_qualified(self):
        assert split_qualifier("Blog.sidebar") == ReferenceDescriptor(plugin="Blog", path="sidebar")

    def test_unqualified(self):
        assert split_qualifier("widgets/card") == ReferenceDescriptor(plugin=None, path="widgets/card")

    def test_asset_extension_is_not_a_qualifier(self):
        assert split_qualifier("app.css") == ReferenceDescriptor(plugin=None, path="app.css")
        assert split_qualifier("Blog.app.css") == ReferenceDescriptor(plugin="Blog", path="app")
        assert split_qualifier("Blog.js/app.js") == ReferenceDescriptor(plugin="Blog", path="js/app")

    def test_empty_qualifier(self):
        assert split_qualifier(".hidden") == ReferenceDescriptor(plugin=None, path=".hidden")


class TestSplitComponentReference:
    def test_plugin_cell(self):
        assert split_component_reference("Blog.Posts::recentItems") == ComponentReference(
            plugin="Blog",
            path="Posts/recent_items",
            class_name="Posts",
            method_name="recentItems",
        )

    def test_app_cell(self):
        assert split_component_reference("Inbox::display") == ComponentReference(
            plugin=None, path="Inbox/display", class_name="Inbox", method_name="display",
        )

    def test_nested_plugin_namespace(self):
        component = split_component_reference("Acme/Themes.Banner::show")
        assert component.plugin == "Acme/Themes"
        assert component.class_name == "Banner"
        assert component.path == "Banner/show"

    def test_subdirectory_cell_without_plugin(self):
        component = split_component_reference("Admin/Stats::display")
        assert component.plugin is None
        assert component.path == "Admin/Stats/display"

    def test_without_method(self):
        assert split_component_reference("Inbox") == ComponentReference(
            plugin=None, path="Inbox", class_name="Inbox", method_name="",
        )


class TestExtractClassInfo:
    def test_controller_in_subnamespace(self):
        text = (
            "<?php\nnamespace App\\Controller\\Admin;\n\n"
            "class UsersController extends AppController\n{\n}\n"
        )
        assert extract_class_info(text, "Controller") == ClassInfo(name="Users", prefix="App", suffix="Admin")

    def test_cell(self):
        text = "<?php\nnamespace Blog\\View\\Cell;\n\nuse Cake\\View\\Cell;\n\nclass PostsCell extends Cell {}\n"
        assert extract_class_info(text, "Cell") == ClassInfo(name="Posts", prefix="Blog\\View", suffix="")

    def test_not_a_controller(self):
        text = "<?php\nnamespace App\\Model\\Table;\n\nclass UsersTable extends Table {}\n"
        assert extract_class_info(text, "Controller") is None

    def test_missing_namespace(self):
        assert extract_class_info("<?php\nclass UsersController {}\n", "Controller") is None
