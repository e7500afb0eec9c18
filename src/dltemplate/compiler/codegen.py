"""Render tags → Python module source.

The directive passes produce text interleaved with two kinds of tag:

    <?py STATEMENT ?>     statement(s) or a block marker
    <?= EXPRESSION ?>     ``_write(EXPRESSION)``

Literal text becomes ``_write('...')``. Block structure comes only from the
tags: a statement ending in ``:`` indents the following lines, ``end``
dedents, and ``elif``/``else``/``except``/``finally`` dedent then indent.

    ```
    <ul><?py for item in items: ?>      _write('<ul>')
    <li><?= _escape(item) ?></li>   ->  for item in items:
    <?py end ?></ul>                        _write('<li>')
                                            _write(_escape(item))
                                            _write('</li>')
                                        _write('</ul>')
    ```

A single newline right after a statement tag is dropped, so directive-only
lines do not leave blank lines in the output.
"""

from __future__ import annotations

import re
import textwrap

from dltemplate.environment.exceptions import TemplateSyntaxError

TAG_RE = re.compile(r"<\?(py\b|=)([\s\S]*?)\?>")

_WS_RE = re.compile(r"\s+")
_BETWEEN_TAGS_RE = re.compile(r"(?<=>)\s+(?=<)")
_REOPEN_RE = re.compile(r"^(elif\b.*|else\s*:|except\b.*|finally\s*:)$")


class CodeBuilder:
    """Accumulate indented lines of Python source."""

    INDENT_STEP = 4

    def __init__(self, indent: int = 0):
        self.code: list[str] = []
        self.indent_level = indent
        self._base_level = indent
        self._block_empty = False

    def add_line(self, line: str) -> None:
        """Add a line at the current indentation."""
        self.code.extend([" " * self.indent_level, line, "\n"])
        self._block_empty = False

    def indent(self) -> None:
        self.indent_level += self.INDENT_STEP
        self._block_empty = True

    def dedent(self) -> None:
        if self.indent_level - self.INDENT_STEP < self._base_level:
            raise ValueError("'end' marker without an open block")
        if self._block_empty:
            self.add_line("pass")
        self.indent_level -= self.INDENT_STEP

    @property
    def depth(self) -> int:
        return (self.indent_level - self._base_level) // self.INDENT_STEP

    def __str__(self) -> str:
        return "".join(self.code)


def minify_text(text: str, after_tag: bool, before_tag: bool) -> str:
    """Collapse whitespace runs and drop whitespace between ``>`` and ``<``.

    A neighbouring statement tag counts as markup (``>`` before the text,
    ``<`` after it). Output tags do not, so ``<b> {{ $x }}`` keeps its space.
    """
    prefix = ">" if after_tag else ""
    suffix = "<" if before_tag else ""
    collapsed = _BETWEEN_TAGS_RE.sub("", _WS_RE.sub(" ", prefix + text + suffix))
    return collapsed[len(prefix) : len(collapsed) - len(suffix)]


def tokenize(tagged: str) -> list[tuple[str, str]]:
    """Split tagged text into ``("text" | "py" | "out", body)`` tokens."""
    tokens: list[tuple[str, str]] = []
    last = 0
    for match in TAG_RE.finditer(tagged):
        if match.start() > last:
            tokens.append(("text", tagged[last : match.start()]))
        kind = "py" if match.group(1) == "py" else "out"
        tokens.append((kind, match.group(2)))
        last = match.end()
    if last < len(tagged):
        tokens.append(("text", tagged[last:]))
    return tokens


def statement_lines(body: str) -> list[str]:
    """Normalize a statement tag's body into dedented, non-blank lines."""
    lines = body.split("\n")
    first = lines[0].strip()
    rest = textwrap.dedent("\n".join(lines[1:])).split("\n")
    combined = ([first] if first else []) + rest
    return [line.rstrip() for line in combined if line.strip()]


def _add_statement(builder: CodeBuilder, body: str) -> None:
    lines = statement_lines(body)
    if not lines:
        return
    if len(lines) == 1:
        line = lines[0]
        if line == "end":
            builder.dedent()
            return
        if _REOPEN_RE.match(line):
            builder.dedent()
            builder.add_line(line)
            builder.indent()
            return
    for line in lines:
        builder.add_line(line)
    if lines[-1].endswith(":"):
        builder.indent()


def generate(
    tagged: str,
    *,
    name: str | None = None,
    minify: bool = False,
    header: str | None = None,
) -> str:
    """Generate the Python module source for tagged render code.

    Args:
        tagged: Output of the directive translator
        name: View name for error messages
        minify: Collapse whitespace in literal text
        header: Comment line written first (without ``#``)

    Raises:
        TemplateSyntaxError: Unbalanced block markers
    """
    builder = CodeBuilder()
    if header:
        builder.add_line(f"# {header}")

    tokens = tokenize(tagged)
    previous = ""
    for index, (kind, body) in enumerate(tokens):
        if kind == "text":
            text = body
            if previous == "py":
                text = text[2:] if text.startswith("\r\n") else text.removeprefix("\n")
            if minify:
                before_tag = index + 1 < len(tokens) and tokens[index + 1][0] == "py"
                text = minify_text(text, after_tag=previous == "py", before_tag=before_tag)
            if text:
                builder.add_line(f"_write({text!r})")
        elif kind == "out":
            expr = body.strip().rstrip(";").strip()
            if expr:
                builder.add_line(f"_write({expr})")
        else:
            try:
                _add_statement(builder, body)
            except ValueError as exc:
                raise TemplateSyntaxError(
                    f"{exc}: check @endif/@endforeach/@endfor pairs",
                    name=name,
                ) from exc
        previous = kind

    if builder.depth:
        raise TemplateSyntaxError(
            f"{builder.depth} block(s) opened without a closing directive",
            name=name,
        )
    return str(builder)
