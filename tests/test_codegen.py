"""Test Python source generation from render tags."""

import pytest

from dltemplate.compiler.codegen import CodeBuilder, generate, minify_text, tokenize
from dltemplate.compiler.core import Compiler, format_header, parse_header
from dltemplate.environment.exceptions import TemplateSyntaxError


class TestGenerate:
    """Render tags to module source."""

    def test_plain_text(self):
        assert generate("Hello") == "_write('Hello')\n"

    def test_output_tag(self):
        assert generate("Hi <?= name ?>") == "_write('Hi ')\n_write(name)\n"

    def test_output_trailing_semicolon_dropped(self):
        assert generate("<?= name; ?>") == "_write(name)\n"

    def test_block_indents(self):
        assert generate("<?py if x: ?>\nA\n<?py end ?>") == "if x:\n    _write('A\\n')\n"

    def test_empty_block_gets_pass(self):
        assert generate("<?py if x: ?><?py end ?>") == "if x:\n    pass\n"

    def test_elif_else_reopen(self):
        code = generate("<?py if a: ?>A<?py elif b: ?>B<?py else: ?>C<?py end ?>")
        assert code == (
            "if a:\n    _write('A')\nelif b:\n    _write('B')\nelse:\n    _write('C')\n"
        )

    def test_nested_blocks(self):
        code = generate("<?py for x in xs: ?><?py if x: ?><?= x ?><?py end ?><?py end ?>")
        assert code == "for x in xs:\n    if x:\n        _write(x)\n"

    def test_multiline_statement(self):
        assert generate("<?py\nx = 1\ny = 2\n?>") == "x = 1\ny = 2\n"

    def test_multiline_statement_keeps_relative_indent(self):
        code = generate("<?py\n    for i in range(2):\n        total += i\n?>")
        assert code == "for i in range(2):\n    total += i\n"

    def test_header_comment(self):
        code = generate("x", header="dltemplate view=a")
        assert code.splitlines()[0] == "# dltemplate view=a"

    def test_newline_after_statement_dropped(self):
        assert generate("<?py x = 1 ?>\nA") == "x = 1\n_write('A')\n"

    def test_stray_end_raises(self):
        with pytest.raises(TemplateSyntaxError, match="without an open block"):
            generate("<?py end ?>", name="broken")

    def test_unclosed_block_raises(self):
        with pytest.raises(TemplateSyntaxError, match="1 block"):
            generate("<?py if x: ?>A", name="broken")

    def test_generated_code_compiles(self):
        code = generate("<ul><?py for i in items: ?><li><?= i ?></li><?py end ?></ul>")
        compile(code, "<test>", "exec")


class TestMinify:
    def test_collapses_whitespace(self):
        assert minify_text("<p>\n  a  </p>\n\n<p>", False, False) == "<p> a </p><p>"

    def test_statement_edges_count_as_markup(self):
        assert minify_text("  <li>", True, False) == "<li>"
        assert minify_text("</li>\n  ", False, True) == "</li>"

    def test_text_edges_keep_single_space(self):
        assert minify_text("Hello  ", False, False) == "Hello "

    def test_minify_keeps_space_before_output(self):
        code = generate("<b> <?= x ?></b>", minify=True)
        assert "_write('<b> ')" in code

    def test_minify_never_touches_code(self):
        code = generate("<?py s = 'a    b' ?>", minify=True)
        assert "'a    b'" in code


class TestTokenize:
    def test_kinds(self):
        assert tokenize("a<?py x ?>b<?= y ?>") == [
            ("text", "a"),
            ("py", " x "),
            ("text", "b"),
            ("out", " y "),
        ]

    def test_other_processing_instructions_are_text(self):
        assert tokenize('<?xml version="1.0"?>') == [("text", '<?xml version="1.0"?>')]


class TestCodeBuilder:
    def test_depth(self):
        builder = CodeBuilder()
        builder.add_line("if x:")
        builder.indent()
        assert builder.depth == 1
        builder.add_line("y()")
        builder.dedent()
        assert builder.depth == 0
        assert str(builder) == "if x:\n    y()\n"

    def test_dedent_below_base_raises(self):
        with pytest.raises(ValueError):
            CodeBuilder().dedent()


class TestCompiler:
    """End-to-end compilation of view source."""

    def test_build_pipeline(self):
        code = Compiler().build("{{-- note --}}<p>{{ $name }}</p>")
        assert code == "_write('<p>')\n_write(_escape(name))\n_write('</p>')\n"

    def test_compile_returns_tags(self):
        assert Compiler().compile("{{ $name }}") == "<?= _escape(name) ?>"

    def test_compile_code_reports_syntax_errors(self):
        compiler = Compiler()
        source = compiler.build("{{ 1 + }}")
        with pytest.raises(TemplateSyntaxError) as exc_info:
            compiler.compile_code(source, name="bad", filename="bad.py")
        assert exc_info.value.filename == "bad.py"
        assert exc_info.value.lineno == 1

    def test_fingerprint_tracks_minify(self):
        assert Compiler(minify=True).fingerprint != Compiler(minify=False).fingerprint

    def test_unchanged_source_with_directives_warns(self, caplog):
        Compiler().compile("@unknown directive")
        assert "compiled to itself" in caplog.text

    def test_header_roundtrip(self):
        header = format_header("pages/home", "a" * 40, "0.1.0+minify=1")
        parsed = parse_header(f"# {header}\n")
        assert parsed == {
            "view": "pages/home",
            "source": "a" * 40,
            "fingerprint": "0.1.0+minify=1",
        }

    def test_parse_header_rejects_other_lines(self):
        assert parse_header("_write('x')") is None
