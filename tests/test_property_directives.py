"""Property-based tests for the directive translator and renderer.

Uses hypothesis to verify structural invariants that must hold for
*all* inputs, not just hand-picked examples:

- Translating already-translated output changes nothing
- Literal text without directives survives unchanged (modulo trimming)
- Comments never reach the output
- Escaped output never contains raw markup characters
- Arbitrary input never makes the translator raise
"""

from __future__ import annotations

from hypothesis import given, settings

from dltemplate import DictLoader, Environment
from dltemplate.compiler.codegen import generate
from dltemplate.compiler.directives import translate
from dltemplate.utils.html import html_escape

from .strategies import (
    arbitrary_view_source,
    blade_comment,
    plain_text,
    printable_value,
    view_fragment,
)

# Module-level so templates keep their (weakly referenced) environment alive.
_ENV = Environment(loader=DictLoader({}), cache=False, minify=False)
_ESCAPED = _ENV.from_string("{{ $value }}")


class TestTranslatorProperties:
    """Property-based translator invariants."""

    @given(source=view_fragment)
    @settings(max_examples=200)
    def test_idempotent(self, source: str) -> None:
        """A second translation of compiled output is a no-op."""
        once = translate(source)
        assert translate(once) == once

    @given(source=plain_text)
    @settings(max_examples=200)
    def test_plain_text_unchanged(self, source: str) -> None:
        """Text without directives only loses surrounding whitespace."""
        assert translate(source) == source.strip()

    @given(text=plain_text, comment=blade_comment)
    @settings(max_examples=100)
    def test_comments_removed(self, text: str, comment: str) -> None:
        assert translate(f"{text}{comment}{text}") == f"{text}{text}".strip()

    @given(source=arbitrary_view_source)
    @settings(max_examples=300)
    def test_no_unhandled_crash(self, source: str) -> None:
        """The translator never raises, whatever the input."""
        assert isinstance(translate(source), str)

    @given(source=view_fragment)
    @settings(max_examples=100)
    def test_well_formed_views_generate_valid_python(self, source: str) -> None:
        code = generate(translate(source))
        compile(code, "<property>", "exec")


class TestRenderProperties:
    @given(value=printable_value)
    @settings(max_examples=200)
    def test_escaped_output(self, value: object) -> None:
        result = _ESCAPED.render(value=value)
        assert result == html_escape(value)
        assert "<" not in result
        assert '"' not in result

    @given(text=plain_text)
    @settings(max_examples=100)
    def test_literal_text_renders_verbatim(self, text: str) -> None:
        assert _ENV.from_string(text).render() == text.strip()
