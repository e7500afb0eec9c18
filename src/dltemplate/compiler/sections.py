"""Section/Inheritance Resolver — ``@base`` and ``@section`` composition.

A child view names its parent with ``@base('layout.base')`` and overrides
regions with ``@section('title') ... @endsection``. The resolver:

1. removes every ``@base(...)`` and appends one include per occurrence
   after the body;
2. removes every ``@section`` block and emits it, ahead of the body, as a
   capture that binds its text into the render context;
3. silently drops sections without a name, and rejects names that could
   not be bound (``my-title``, ``class``, ``_write``) at compile time.

So at render time the child's sections are captured first, then the base
view is included with the enriched context and can ``@print`` them:

    ```
    @base('layout.base')            <?py _capture() ?>Child
    @section('title')        ->     <?py _bind('title', _end_capture()) ?>
        Child                       <p>body</p>
    @endsection
    <p>body</p>                     <?py _include('layout.base') ?>
    ```

"""

from __future__ import annotations

import re
from typing import Any

from dltemplate.compiler.directives import statement, strip_sigils
from dltemplate.environment.bindings import validate
from dltemplate.environment.exceptions import BindingError, TemplateSyntaxError

BASE_RE = re.compile(r"(?<![\w@])@base\(((?:[^()\n]|\((?:[^()\n]|\([^()\n]*\))*\))*)\)")
SECTION_RE = re.compile(r"(?<![\w@])@section\((.*?)\)\s*([\s\S]*?)\s*@endsection")

_WHITESPACE_RE = re.compile(r"\s")


def section_name(raw: str) -> str:
    """Strip quotes and whitespace from a ``@section(...)`` argument."""
    return raw.strip().strip("'\"").strip()


def check_section_name(name: str, view: str | None = None) -> None:
    """Reject a section that could not be bound into the render context.

    Whitespace in the name maps to ``_`` (as ``@print`` looks it up), the
    rest must pass the same checks as a binding key.

    Raises:
        TemplateSyntaxError: The name is malformed, a keyword or reserved.
    """
    try:
        validate(_WHITESPACE_RE.sub("_", name))
    except BindingError as e:
        raise TemplateSyntaxError(
            f"Invalid section name {name!r}: {e.message}",
            name=view,
        ) from e


def parse_sections(source: str, view: str | None = None) -> str:
    """Move every named section ahead of the body as a capture block.

    Raises:
        TemplateSyntaxError: A section name cannot be bound.
    """
    blocks: list[str] = []
    for match in SECTION_RE.finditer(source):
        name = section_name(match.group(1))
        if not name:
            continue
        check_section_name(name, view)
        blocks.append(
            statement("_capture()")
            + match.group(2)
            + statement(f"_bind({name!r}, _end_capture())")
            + "\n"
        )

    body = SECTION_RE.sub("", source)
    return "".join(blocks).strip() + body.strip()


def resolve_directive(
    source: str, data: dict[str, Any] | None = None, *, name: str | None = None
) -> str:
    """Resolve ``@base`` and ``@section`` directives of a view source.

    Args:
        source: Template source
        data: Render context the view will be rendered with. Unused while
            resolving; includes forward the live context at render time.
        name: View name for error messages

    Returns:
        Source with sections first, then the body, then the base includes.
    """
    bases = [
        statement(f"_include({strip_sigils(match.group(1))})")
        for match in BASE_RE.finditer(source)
    ]
    source = BASE_RE.sub("", source)
    source = parse_sections(source, name)
    return source + "\n\n" + "\n".join(bases)
