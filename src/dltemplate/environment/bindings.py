"""Render-context key validation.

Every name passed to ``Environment.load`` becomes a global of the compiled
artifact's namespace, so it is checked before any compilation or cache
work happens. A name is rejected when it is empty, not an identifier, a
Python keyword, or a member of one of three reserved sets:

- ``REQUEST_GLOBALS``: request-scoped globals owned by the hosting framework
- ``ENVIRONMENT_CONTROL``: names that control the execution environment
- ``INTERNAL_CONVENTIONS``: runtime helpers injected into every artifact

The sets are disjoint, so the order of the lookups does not matter.
"""

from __future__ import annotations

import keyword
import re
from collections.abc import Mapping
from typing import Any

from dltemplate.environment.exceptions import InvalidIdentifierError, ReservedNameError

IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

REQUEST_GLOBALS: dict[str, str] = {
    "GLOBALS": "GLOBALS is reserved for access to the application's global state "
    "and cannot be redefined in a view",
    "_SERVER": "_SERVER exposes information about the execution environment "
    "and cannot be overwritten from the template engine",
    "_GET": "_GET is reserved for HTTP query parameters and cannot be redefined "
    "in the context of a view",
    "_POST": "_POST holds data submitted by forms and cannot be overwritten in a template",
    "_FILES": "_FILES is reserved for uploaded files and cannot be redefined from a view",
    "_COOKIE": "_COOKIE is bound to cookie handling and cannot be overwritten "
    "by the template engine",
    "_SESSION": "_SESSION is reserved for session handling and cannot be redefined "
    "in the context of a view",
    "_REQUEST": "_REQUEST aggregates HTTP input data and cannot be overwritten "
    "from a template",
    "_ENV": "_ENV is reserved for system environment variables and cannot be "
    "redefined by the template engine",
}

ENVIRONMENT_CONTROL: dict[str, str] = {
    "argc": "argc is a control variable of the command-line runtime and cannot "
    "be used as a view variable",
    "argv": "argv holds command-line arguments and cannot be redefined in a template",
    "__builtins__": "__builtins__ provides the interpreter's built-in names to "
    "compiled views and cannot be replaced",
    "__name__": "__name__ identifies the executing module and cannot be redefined in a view",
    "__file__": "__file__ is set by the interpreter for loaded modules and cannot "
    "be redefined in a view",
    "__loader__": "__loader__ is part of the import machinery and cannot be "
    "redefined in a view",
    "__spec__": "__spec__ is part of the import machinery and cannot be redefined in a view",
    "__package__": "__package__ is part of the import machinery and cannot be "
    "redefined in a view",
    "__doc__": "__doc__ is set by the interpreter and cannot be redefined in a view",
}

INTERNAL_CONVENTIONS: dict[str, str] = {
    name: f"{name} is a runtime helper of compiled views and must not be overwritten"
    for name in (
        "_write",
        "_escape",
        "_raw",
        "_json",
        "_pairs",
        "_include",
        "_require",
        "_capture",
        "_end_capture",
        "_bind",
        "_csrf_field",
        "_markdown",
        "_context",
        "_env",
    )
}

_RESERVED: tuple[tuple[str, dict[str, str]], ...] = (
    ("request global", REQUEST_GLOBALS),
    ("environment control", ENVIRONMENT_CONTROL),
    ("internal convention", INTERNAL_CONVENTIONS),
)


def reserved_message(name: str) -> tuple[str, str] | None:
    """Return ``(convention, explanation)`` for a reserved name, else None."""
    for convention, names in _RESERVED:
        message = names.get(name)
        if message is not None:
            return convention, message
    return None


def validate(name: object) -> None:
    """Check that ``name`` can be used as a render-context key.

    Raises:
        InvalidIdentifierError: Empty, non-string, malformed, or a keyword.
        ReservedNameError: The name belongs to a reserved set.
    """
    if not isinstance(name, str):
        raise InvalidIdentifierError(name, "The variable identifier must be a string")

    if name.strip() == "":
        raise InvalidIdentifierError(name, "The variable identifier cannot be empty")

    if not IDENTIFIER_RE.fullmatch(name):
        raise InvalidIdentifierError(
            name, f"The variable identifier {name!r} is not a valid identifier"
        )

    if keyword.iskeyword(name):
        raise InvalidIdentifierError(
            name, f"The variable identifier {name!r} is a Python keyword"
        )

    reserved = reserved_message(name)
    if reserved is not None:
        convention, message = reserved
        raise ReservedNameError(name, convention, f"Error: {message}")


def validate_bindings(bindings: Mapping[Any, Any] | None) -> dict[str, Any]:
    """Validate every key of ``bindings`` and return them as a new dict."""
    if not bindings:
        return {}
    for name in bindings:
        validate(name)
    return dict(bindings)
