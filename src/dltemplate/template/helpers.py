"""Runtime helpers injected into the namespace of every compiled view.

The pure functions here are shared through ``STATIC_NAMESPACE``; the
render-bound ones (``_write``, ``_include``, ``_bind``...) are created per
render by ``Template`` around an ``OutputBuffer``.

Thread-Safety:
``STATIC_NAMESPACE`` is read-only after module load; each render copies it.
"""

from __future__ import annotations

import dataclasses
import json
from collections.abc import Iterable, Mapping
from typing import Any, TextIO

from dltemplate.utils.html import html_escape, stringify


def raw(value: Any) -> str:
    """Unescaped output of ``{!! $x !!}``; surrounding whitespace is trimmed."""
    return stringify(value).strip()


def _json_default(value: Any) -> Any:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.asdict(value)
    if isinstance(value, (set, frozenset, tuple)):
        return list(value)
    return str(value)


def to_json(value: Any, pretty: bool = False) -> str:
    """JSON for ``@json``: compact by default, indented and unicode-preserving when pretty."""
    if pretty:
        return json.dumps(value, indent=4, ensure_ascii=False, default=_json_default)
    return json.dumps(value, separators=(",", ":"), default=_json_default)


def pairs(iterable: Mapping[Any, Any] | Iterable[Any]) -> Iterable[tuple[Any, Any]]:
    """Key/value pairs for ``@foreach ($x as $key => $value)``."""
    if isinstance(iterable, Mapping):
        return iterable.items()
    return enumerate(iterable)


STATIC_NAMESPACE: dict[str, Any] = {
    "_escape": html_escape,
    "_raw": raw,
    "_json": to_json,
    "_pairs": pairs,
}


class OutputBuffer:
    """Output stream with a stack of capture buffers.

    ``start()`` begins capturing, ``end()`` returns what was written since.
    Views included from a view share their parent's buffer, so a view
    included inside a ``@section`` is captured with it.
    """

    __slots__ = ("_stack", "_stream")

    def __init__(self, stream: TextIO | OutputBuffer):
        self._stream = stream
        self._stack: list[list[str]] = []

    @classmethod
    def wrap(cls, stream: TextIO | OutputBuffer) -> OutputBuffer:
        if isinstance(stream, OutputBuffer):
            return stream
        return cls(stream)

    def write(self, value: Any) -> None:
        text = stringify(value)
        if self._stack:
            self._stack[-1].append(text)
        else:
            self._stream.write(text)

    def start(self) -> None:
        self._stack.append([])

    def end(self) -> str:
        if not self._stack:
            from dltemplate.environment.exceptions import TemplateRuntimeError

            raise TemplateRuntimeError("Capture ended without a matching start")
        return "".join(self._stack.pop())

    @property
    def capturing(self) -> bool:
        return bool(self._stack)

    def abort(self, message: str) -> None:
        """Flush every pending capture, then ``message``, to the stream.

        Used right before a render halts, so what was produced up to that
        point reaches the client along with the error panel.
        """
        pending = "".join("".join(buffer) for buffer in self._stack)
        self._stack.clear()
        self._stream.write(pending + message)


_PANEL_STYLE = (
    "font-family: 'Open Sans', sans-serif, arial; font-weight: normal; padding: 20px; "
    "width: calc(100% - 20px); border-radius: 5px; background-color: #d00000; "
    "color: white; margin: 30px auto; max-width: 1024px"
)


def missing_template_panel(filename: str, message: str = "does not exist") -> str:
    """Inline error panel written when a view's source file is missing."""
    return (
        "<style>:root {background-color: #333333}</style>"
        f'<h3 style="{_PANEL_STYLE}">The template '
        f'<strong style="padding: 10px">{html_escape(filename)}</strong> {message}</h3>\n\n'
    )


def missing_section_panel(section: str) -> str:
    """Inline error panel written when a ``@print`` target is not bound."""
    return (
        '<h3 style="color: white; background-color: #d00000; padding: 20px; '
        'border-radius: 5px; font-weight: normal">The section '
        '<strong style="padding: 10px; border-radius: 5px; background-color: #000000a0">'
        f"{html_escape(section)}</strong> does not exist</h3>"
    )


def csrf_input(field: str, token: str) -> str:
    """Hidden form field carrying the CSRF token."""
    field = html_escape(field)
    return f'<input type="hidden" name="{field}" id="{field}" value="{html_escape(token)}" />'
