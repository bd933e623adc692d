"""Tests for call-site pattern matching."""

from __future__ import annotations

from cakenav.config import ResourceKind
from cakenav.patterns import (
    find_asset_compress_references,
    find_line_references,
    find_references,
    is_asset_compress,
    parse_asset_compress_line,
    reference_at,
)


def _values(references):
    return [(r.pattern, r.kind, r.value) for r in references]


class TestLinePatterns:
    def test_element_call(self):
        refs = find_line_references("<?= $this->element('widgets/card', ['title' => 'x']) ?>")
        assert _values(refs) == [("element_call", ResourceKind.ELEMENT, "widgets/card")]

    def test_element_array_option(self):
        refs = find_line_references("$this->Paginator->options(['element' => 'pagination/numbers']);")
        assert _values(refs) == [("element_array", ResourceKind.ELEMENT, "pagination/numbers")]

    def test_cell(self):
        refs = find_line_references('<?= $this->cell("Blog.Posts::recent", [5]) ?>')
        assert _values(refs) == [("cell", ResourceKind.CELL, "Blog.Posts::recent")]

    def test_script_helper_and_tag(self):
        assert _values(find_line_references("$this->Html->script('Blog.app', ['block' => true])")) == [
            ("script_helper", ResourceKind.SCRIPT, "Blog.app"),
        ]
        assert _values(find_line_references('<script type="module" src="/js/app.js"></script>')) == [
            ("script_tag", ResourceKind.SCRIPT, "/js/app.js"),
        ]

    def test_css_helper_and_tag(self):
        assert _values(find_line_references("<?= $this->Html->css('app') ?>")) == [
            ("css_helper", ResourceKind.STYLE, "app"),
        ]
        assert _values(find_line_references('<link rel="stylesheet" href="/css/app.css">')) == [
            ("css_tag", ResourceKind.STYLE, "/css/app.css"),
        ]

    def test_render_and_method(self):
        refs = find_line_references("public function edit() { $this->render('form'); }")
        assert _values(refs) == [
            ("render", ResourceKind.TEMPLATE, "form"),
            ("method", ResourceKind.TEMPLATE, "edit"),
        ]

    def test_set_template(self):
        refs = find_line_references("$this->viewBuilder()->setTemplate('welcome');")
        assert _values(refs) == [("set_template", ResourceKind.EMAIL, "welcome")]

    def test_several_references_on_one_line(self):
        refs = find_line_references("<?= $this->element('a') ?><?= $this->element('b') ?>")
        assert [r.value for r in refs] == ["a", "b"]

    def test_offsets_cover_the_captured_value(self):
        line = "    <?= $this->element('widgets/card') ?>"
        (ref,) = find_line_references(line, line_no=4)

        assert ref.line == 4
        assert line[ref.start:ref.end] == "widgets/card"

    def test_no_references(self):
        assert find_line_references("<p>Hello</p>") == []


class TestFindReferences:
    def test_lines_past_limit_are_not_scanned(self):
        text = "$this->element('one')\n<p></p>\n$this->element('three')\n"

        assert [r.value for r in find_references(text)] == ["one", "three"]
        assert [r.value for r in find_references(text, max_lines=2)] == ["one"]

    def test_zero_limit(self):
        assert find_references("$this->element('one')", max_lines=0) == []


class TestAssetCompress:
    def test_is_asset_compress(self):
        assert is_asset_compress("/app/config/asset_compress.ini")
        assert not is_asset_compress("/app/config/app.php")

    def test_parse_line(self):
        assert parse_asset_compress_line("files[] = p:Blog:blog.js") == ("p:Blog:blog.js", 10)
        assert parse_asset_compress_line("  files[]=app.js  ") == ("app.js", 10)
        assert parse_asset_compress_line("[libs.js]") is None
        assert parse_asset_compress_line("files[] =") is None

    def test_references_get_kind_from_extension(self):
        text = "[all]\nfiles[] = app.js\nfiles[] = /css/site.css\n"
        refs = find_asset_compress_references(text)

        assert [(r.kind, r.value, r.line) for r in refs] == [
            (ResourceKind.SCRIPT, "app.js", 1),
            (ResourceKind.STYLE, "/css/site.css", 2),
        ]
        assert all(r.pattern == "asset_compress" for r in refs)


class TestReferenceAt:
    def test_reference_under_cursor(self):
        line = "<?= $this->element('a') ?> <?= $this->cell('Inbox') ?>"
        ref = reference_at(line, line.index("cell"))

        assert ref.kind == ResourceKind.CELL
        assert ref.value == "Inbox"

    def test_cursor_outside_any_call(self):
        line = "<p>text</p> <?= $this->element('a') ?>"
        assert reference_at(line, 1) is None

    def test_asset_compress_line(self):
        ref = reference_at("files[] = app.js", 3, "config/asset_compress.ini")
        assert ref.value == "app.js"
        assert ref.kind == ResourceKind.SCRIPT
