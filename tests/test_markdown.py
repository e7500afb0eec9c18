"""Test the built-in Markdown renderer."""

import pytest

from dltemplate.utils.markdown import render_inline, render_markdown


class TestBlocks:
    @pytest.mark.parametrize("level", range(1, 7))
    def test_headings(self, level):
        assert render_markdown("#" * level + " Title") == f"<h{level}>Title</h{level}>"

    def test_paragraphs_join_lines(self):
        assert render_markdown("one\ntwo\n\nthree") == "<p>one two</p>\n<p>three</p>"

    def test_bullet_list(self):
        assert render_markdown("- a\n- b") == "<ul><li>a</li><li>b</li></ul>"

    def test_numbered_list(self):
        assert render_markdown("1. a\n2. b") == "<ol><li>a</li><li>b</li></ol>"

    def test_fenced_code_is_escaped(self):
        assert render_markdown("```\n<b>\n```") == "<pre><code>&lt;b&gt;</code></pre>"

    def test_blockquote(self):
        assert render_markdown("> quoted") == "<blockquote><p>quoted</p></blockquote>"

    def test_rule(self):
        assert render_markdown("a\n\n---\n\nb") == "<p>a</p>\n<hr />\n<p>b</p>"

    def test_empty(self):
        assert render_markdown("") == ""
        assert render_markdown(None) == ""

    def test_crlf(self):
        assert render_markdown("# T\r\n\r\nx") == "<h1>T</h1>\n<p>x</p>"


class TestInline:
    def test_html_escaped(self):
        assert render_inline("<script>") == "&lt;script&gt;"

    def test_emphasis(self):
        assert render_inline("**b** and *i*") == "<strong>b</strong> and <em>i</em>"

    def test_code_span_untouched(self):
        assert render_inline("`*x*`") == "<code>*x*</code>"

    def test_link(self):
        assert render_inline("[site](https://example.com)") == (
            '<a href="https://example.com">site</a>'
        )
