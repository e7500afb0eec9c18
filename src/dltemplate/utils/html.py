"""HTML escaping for ``{{ $name }}`` output.

Single-pass escaping via ``str.translate()``. Values that implement
``__html__`` (``Markup``, or markupsafe-compatible objects) are trusted and
written as-is.
"""

from __future__ import annotations

from typing import Any

_ESCAPE_TABLE = str.maketrans(
    {
        "&": "&amp;",
        "<": "&lt;",
        ">": "&gt;",
        '"': "&quot;",
        "'": "&#x27;",
    }
)


class Markup(str):
    """A string already safe for HTML output.

    Example:
        >>> html_escape(Markup("<b>ok</b>"))
        '<b>ok</b>'
    """

    __slots__ = ()

    def __html__(self) -> str:
        return str(self)


def stringify(value: Any) -> str:
    """Convert a value to output text; ``None`` renders as an empty string."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return str(value)


def html_escape(value: Any) -> str:
    """Escape ``value`` for HTML text and attribute contexts."""
    if hasattr(value, "__html__"):
        return str(value.__html__())
    return stringify(value).translate(_ESCAPE_TABLE)
