"""dltemplate Compiler — view source to executable Python.

Pipeline:

    source
      → strip comments            (so commented-out @section/@base are ignored)
      → resolve_directive()       @base / @section
      → compile()                 directive passes → render tags
      → generate()                render tags → Python module source
      → compile_code()            Python source → code object

The Python module source is the compiled artifact written to the build
cache. Its first line records the SHA-1 of the view source and the
compiler fingerprint, which ``recompile="changed"`` uses to skip work.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from dltemplate.compiler.codegen import generate
from dltemplate.compiler.directives import PASSES, strip_comments, translate
from dltemplate.compiler.sections import resolve_directive
from dltemplate.environment.exceptions import TemplateSyntaxError

if TYPE_CHECKING:
    import types

logger = logging.getLogger(__name__)

HEADER_PREFIX = "dltemplate"
HEADER_RE = re.compile(
    r"^# dltemplate view=(?P<view>\S*) source=(?P<source>[0-9a-f]{40}) "
    r"fingerprint=(?P<fingerprint>\S+)$"
)

# Directive-looking text; used to tell "nothing to translate" from "nothing translated".
_DIRECTIVE_HINT_RE = re.compile(r"@[a-z]+|\{\{|\{!!")


def compiler_fingerprint(minify: bool) -> str:
    from dltemplate import __version__

    return f"{__version__}+minify={int(minify)}"


def format_header(view: str, source_hash: str, fingerprint: str) -> str:
    return f"{HEADER_PREFIX} view={view} source={source_hash} fingerprint={fingerprint}"


def parse_header(first_line: str) -> dict[str, str] | None:
    """Parse an artifact's header line, or return None if it has none."""
    match = HEADER_RE.match(first_line.rstrip("\r\n"))
    return match.groupdict() if match else None


class Compiler:
    """Compile directive-annotated view source to Python render code.

    The generated module writes through ``_write`` and expects the runtime
    helpers of ``dltemplate.template.helpers`` in its globals.

    Example:
            >>> compiler = Compiler()
            >>> compiler.compile("{{ $name }}")
            '<?= _escape(name) ?>'
            >>> print(compiler.build("Hi {{ $name }}"))
            _write('Hi ')
            _write(_escape(name))

    """

    __slots__ = ("_minify", "_passes")

    def __init__(
        self,
        *,
        minify: bool = False,
        passes: tuple[tuple[str, Callable[[str], str]], ...] = PASSES,
    ):
        self._minify = minify
        self._passes = passes

    @property
    def minify(self) -> bool:
        return self._minify

    @property
    def fingerprint(self) -> str:
        return compiler_fingerprint(self._minify)

    def compile(self, source: str) -> str:
        """Translate every directive in ``source`` into render tags."""
        tagged = translate(source, self._passes)
        if tagged == source and _DIRECTIVE_HINT_RE.search(source):
            logger.warning("Template source contains directives but compiled to itself")
        return tagged

    def resolve(
        self, source: str, data: dict[str, Any] | None = None, *, name: str | None = None
    ) -> str:
        """Resolve ``@base``/``@section`` composition."""
        return resolve_directive(source, data, name=name)

    def build(self, source: str, *, name: str | None = None, header: str | None = None) -> str:
        """Compile a view source all the way to Python module source."""
        tagged = self.compile(self.resolve(strip_comments(source), name=name))
        return generate(tagged, name=name, minify=self._minify, header=header)

    def compile_code(
        self, python_source: str, *, name: str | None = None, filename: str | None = None
    ) -> types.CodeType:
        """Compile generated Python source to a code object.

        Raises:
            TemplateSyntaxError: The generated code is not valid Python,
                usually because of an unbalanced or misplaced directive.
        """
        try:
            return compile(python_source, filename or "<template>", "exec")
        except SyntaxError as exc:
            raise TemplateSyntaxError(
                exc.msg,
                lineno=exc.lineno,
                name=name,
                filename=filename,
                source=python_source,
            ) from exc
