"""Directive Translator — ordered regex passes from directives to render tags.

Each pass rewrites one directive family into render tags and leaves the
rest of the text alone:

    ``<?py STATEMENT ?>``   a statement, or a block opener/closer
    ``<?= EXPRESSION ?>``   write the value of an expression

There is no syntax tree. Block structure is carried by the tags themselves
(an opener ends with ``:``, ``end`` closes), so nested ``@if``/``@foreach``
work because every marker maps 1:1 to a tag, not because the translator
tracks depth. See ``dltemplate.compiler.codegen`` for the tag-to-Python
step.

Pass order (each pass scans the whole text before the next runs):

    1.  comments             {{-- ... --}}  <!-- ... -->
    2.  escaped output       {{ $name }}
    3.  raw output           {!! $name !!}
    4.  conditionals         @if @elseif @else @endif
    5.  loops                @foreach @endforeach @for @endfor
    6.  code blocks          @php @endphp
    7.  json                 @json(x, 'pretty')  @json(x)
    8.  includes             @includes(view)
    9.  print-guard          @print('name')
    10. csrf                 @csrf("field")  @csrf
    11. markdown             @markdown(text)
    12. catch-all output     {{ expr }}
    13. loop control         @break @continue
    14. inline assignment    @varname(name, value)

Later passes see the output of earlier ones, so the order matters: the
catch-all runs after every directive that owns brace syntax.

Expressions may use the ``$name`` sigil; a ``$`` directly in front of an
identifier is dropped.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable

logger = logging.getLogger(__name__)

# Directive names must not be glued to a preceding word or another directive.
_AT = r"(?<![\w@])@"

# Call-style argument list: up to three levels of nested parentheses, one line.
_ARGS = r"\(((?:[^()\n]|\((?:[^()\n]|\([^()\n]*\))*\))*)\)"

_SIGIL_RE = re.compile(r"\$(?=[A-Za-z_])")

COMMENT_RE = re.compile(r"\{\{--[\s\S]*?--\}\}")
HTML_COMMENT_RE = re.compile(r"<!--[\s\S]*?-->")
ESCAPED_RE = re.compile(r"\{\{ \$(.*?) \}\}")
RAW_RE = re.compile(r"\{!! \$(.*?) !!\}")

IF_RE = re.compile(_AT + r"if\b(.*)$", re.MULTILINE)
ELSEIF_RE = re.compile(_AT + r"else[ \t]*if\b(.*)$", re.MULTILINE)
ELSE_RE = re.compile(_AT + r"else[^\S\n]*$", re.MULTILINE)
ENDIF_RE = re.compile(_AT + r"endif\b")

FOREACH_RE = re.compile(_AT + r"foreach\b(.*)$", re.MULTILINE)
ENDFOREACH_RE = re.compile(_AT + r"endforeach\b")
FOR_RE = re.compile(_AT + r"for\b(.*)$", re.MULTILINE)
ENDFOR_RE = re.compile(_AT + r"endfor\b")

PHP_RE = re.compile(_AT + r"php\b")
ENDPHP_RE = re.compile(_AT + r"endphp\b")

JSON_PRETTY_RE = re.compile(
    _AT + r"json\(\s*((?:[^()\n]|\((?:[^()\n]|\([^()\n]*\))*\))*?)\s*,\s*(['\"])pretty\2\s*\)"
)
JSON_RE = re.compile(_AT + r"json" + _ARGS)
INCLUDES_RE = re.compile(_AT + r"includes" + _ARGS)
PRINT_RE = re.compile(_AT + r"print\((.*?)\)")
CSRF_FIELD_RE = re.compile(_AT + r"csrf\((['\"])(.*?)\1\)")
CSRF_RE = re.compile(_AT + r"csrf\b")
MARKDOWN_RE = re.compile(_AT + r"markdown" + _ARGS)
INTERPOLATION_RE = re.compile(r"\{\{\s*(.*?)\s*\}\}")
BREAK_RE = re.compile(r"(?<!\S)@break(?!\S)")
CONTINUE_RE = re.compile(r"(?<!\S)@continue(?!\S)")
VARNAME_RE = re.compile(r"(?<!\S)@varname\(([a-z][a-z0-9_]*),\s*(.*?)\)(?!\S)")

_FOREACH_AS_RE = re.compile(
    r"^(?P<iterable>.+?)\s+as\s+(?P<first>[A-Za-z_]\w*)(?:\s*=>\s*(?P<second>[A-Za-z_]\w*))?$"
)


def statement(code: str) -> str:
    return f"<?py {code} ?>"


def output(expr: str) -> str:
    return f"<?= {expr} ?>"


def strip_sigils(expr: str) -> str:
    """Drop ``$`` sigils in front of identifiers: ``$user['id']`` -> ``user['id']``."""
    return _SIGIL_RE.sub("", expr)


def unwrap_parens(expr: str) -> str:
    """Remove one pair of parentheses enclosing the whole expression."""
    expr = expr.strip()
    if not (expr.startswith("(") and expr.endswith(")")):
        return expr
    depth = 0
    for index, char in enumerate(expr):
        if char == "(":
            depth += 1
        elif char == ")":
            depth -= 1
            if depth == 0 and index != len(expr) - 1:
                return expr
    return expr[1:-1].strip()


def _condition(raw: str) -> str:
    return strip_sigils(raw.strip()).rstrip(":").rstrip()


def loop_header(raw: str) -> str:
    """Build the ``for`` target from a loop directive's expression.

    Accepts Python (``item in items``) and the ``items as item`` /
    ``items as key => value`` forms.

    Example:
        >>> loop_header("($users as $user)")
        'user in users'
        >>> loop_header("($prices as $name => $price)")
        'name, price in _pairs(prices)'
    """
    expr = unwrap_parens(strip_sigils(raw.strip()).rstrip(":").rstrip())
    match = _FOREACH_AS_RE.match(expr)
    if match is None:
        return expr
    iterable = match.group("iterable").strip()
    if match.group("second"):
        return f"{match.group('first')}, {match.group('second')} in _pairs({iterable})"
    return f"{match.group('first')} in {iterable}"


# ---------------------------------------------------------------------------
# Passes
# ---------------------------------------------------------------------------


def strip_comments(text: str) -> str:
    text = COMMENT_RE.sub("", text)
    text = HTML_COMMENT_RE.sub("", text)
    return text.strip()


def escaped_output(text: str) -> str:
    return ESCAPED_RE.sub(lambda m: output(f"_escape({strip_sigils(m.group(1))})"), text)


def raw_output(text: str) -> str:
    return RAW_RE.sub(lambda m: output(f"_raw({strip_sigils(m.group(1))})"), text)


def conditionals(text: str) -> str:
    text = ELSEIF_RE.sub(lambda m: statement(f"elif {_condition(m.group(1))}:"), text)
    text = IF_RE.sub(lambda m: statement(f"if {_condition(m.group(1))}:"), text)
    text = ELSE_RE.sub(statement("else:"), text)
    return ENDIF_RE.sub(statement("end"), text)


def loops(text: str) -> str:
    text = FOREACH_RE.sub(lambda m: statement(f"for {loop_header(m.group(1))}:"), text)
    text = ENDFOREACH_RE.sub(statement("end"), text)
    text = FOR_RE.sub(lambda m: statement(f"for {loop_header(m.group(1))}:"), text)
    return ENDFOR_RE.sub(statement("end"), text)


def code_blocks(text: str) -> str:
    text = PHP_RE.sub("<?py", text)
    return ENDPHP_RE.sub("?>", text)


def json_helpers(text: str) -> str:
    text = JSON_PRETTY_RE.sub(
        lambda m: output(f"_json({strip_sigils(m.group(1)).rstrip(',')}, pretty=True)"), text
    )
    return JSON_RE.sub(lambda m: output(f"_json({strip_sigils(m.group(1))})"), text)


def includes(text: str) -> str:
    return INCLUDES_RE.sub(lambda m: statement(f"_include({strip_sigils(m.group(1))})"), text)


def print_guard(text: str) -> str:
    def replace(match: re.Match[str]) -> str:
        name = match.group(1).strip().strip("'\"").strip()
        return statement(f"_require({name!r})") if name else ""

    return PRINT_RE.sub(replace, text)


def csrf(text: str) -> str:
    text = CSRF_FIELD_RE.sub(lambda m: output(f"_csrf_field({m.group(2)!r})"), text)
    return CSRF_RE.sub(output("_csrf_field()"), text)


def markdown(text: str) -> str:
    return MARKDOWN_RE.sub(lambda m: output(f"_markdown({strip_sigils(m.group(1))})"), text)


def interpolation(text: str) -> str:
    return INTERPOLATION_RE.sub(lambda m: output(strip_sigils(m.group(1))), text)


def loop_control(text: str) -> str:
    text = BREAK_RE.sub(statement("break"), text)
    return CONTINUE_RE.sub(statement("continue"), text)


def inline_assignment(text: str) -> str:
    return VARNAME_RE.sub(
        lambda m: statement(f"{m.group(1)} = {strip_sigils(m.group(2))}"), text
    ).strip()


PASSES: tuple[tuple[str, Callable[[str], str]], ...] = (
    ("comments", strip_comments),
    ("escaped_output", escaped_output),
    ("raw_output", raw_output),
    ("conditionals", conditionals),
    ("loops", loops),
    ("code_blocks", code_blocks),
    ("json", json_helpers),
    ("includes", includes),
    ("print", print_guard),
    ("csrf", csrf),
    ("markdown", markdown),
    ("interpolation", interpolation),
    ("loop_control", loop_control),
    ("varname", inline_assignment),
)


def apply_pass(name: str, func: Callable[[str], str], text: str) -> str:
    """Run one pass; on failure log a warning and return ``text`` untouched."""
    try:
        result = func(text)
    except Exception as e:
        logger.warning(f"Directive pass '{name}' failed, input left untouched: {e}")
        return text
    if not isinstance(result, str):
        logger.warning(f"Directive pass '{name}' returned {type(result).__name__}, ignored")
        return text
    return result


def translate(
    source: str,
    passes: tuple[tuple[str, Callable[[str], str]], ...] = PASSES,
) -> str:
    """Rewrite every directive in ``source`` into render tags."""
    text = source
    for name, func in passes:
        text = apply_pass(name, func, text)
    return text
