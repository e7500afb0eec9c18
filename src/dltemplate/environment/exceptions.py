"""Exceptions for the dltemplate compiler and view loader.

Exception Hierarchy:
TemplateError (base)
├── TemplateNotFoundError     # View source does not exist (status 404)
├── TemplateSyntaxError       # Generated render code does not compile
├── TemplatePathError         # Bad view name, or the build cache cannot be written
├── BindingError              # Rejected render-context key
│   ├── InvalidIdentifierError
│   └── ReservedNameError
└── TemplateRuntimeError      # Error raised while executing a compiled view
    └── RequiredValueError    # @print target missing (status 500)

Errors that halt a response carry an HTTP-like ``status`` so the hosting
application can turn them into a response code. Render-time errors point
at the line of the compiled artifact that failed:

    ```
    K-RUN-007: name 'usr' is not defined
      Location: .build/pages/home.py:12
       |
      11 | for item in items:
    > 12 |     _write(_escape(usr))
       |
    ```

"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from dltemplate.environment import terminal


class ErrorCode(Enum):
    """Searchable error codes.

    Format: K-{CATEGORY}-{NUMBER}
    Categories: TPL (template loading), BND (bindings), RUN (runtime)
    """

    # Template loading errors (K-TPL-xxx)
    TEMPLATE_NOT_FOUND = "K-TPL-001"
    SYNTAX_ERROR = "K-TPL-002"
    INVALID_PATH = "K-TPL-003"

    # Binding errors (K-BND-xxx)
    INVALID_IDENTIFIER = "K-BND-001"
    RESERVED_NAME = "K-BND-002"

    # Runtime errors (K-RUN-xxx)
    REQUIRED_VALUE = "K-RUN-004"
    INCLUDE_DEPTH = "K-RUN-006"
    RUNTIME_ERROR = "K-RUN-007"

    @property
    def category(self) -> str:
        """Error category (e.g., 'runtime', 'binding', 'template')."""
        prefix = self.value.split("-")[1]
        return {
            "TPL": "template",
            "BND": "binding",
            "RUN": "runtime",
        }.get(prefix, "unknown")


@dataclass(frozen=True, slots=True)
class SourceSnippet:
    """Lines of compiled render code around a failing line.

    Attributes:
        lines: Tuple of (line_number, line_content) pairs around the error.
        error_line: The 1-based line number where the error occurred.
    """

    lines: tuple[tuple[int, str], ...]
    error_line: int

    def format(self) -> str:
        parts: list[str] = [terminal.dim_text("   |")]
        for lineno, content in self.lines:
            parts.append(
                terminal.format_source_line(lineno, content, is_error=lineno == self.error_line)
            )
        parts.append(terminal.dim_text("   |"))
        return "\n".join(parts)


def build_source_snippet(source: str, error_line: int, *, context_lines: int = 2) -> SourceSnippet:
    """Build a SourceSnippet showing ``context_lines`` around ``error_line``."""
    all_lines = source.splitlines()
    start = max(0, error_line - 1 - context_lines)
    end = min(len(all_lines), error_line + context_lines)
    lines = tuple((i + 1, all_lines[i]) for i in range(start, end))
    return SourceSnippet(lines=lines, error_line=error_line)


class TemplateError(Exception):
    """Base exception for all dltemplate errors.

    Attributes:
        code: ErrorCode identifying the failure.
        status: HTTP-like status for errors that halt a response, else None.
    """

    code: ErrorCode | None = None
    status: int | None = None

    def format_compact(self) -> str:
        """Format the error as a short terminal diagnostic."""
        header = str(self)
        if self.code and self.code.value not in header:
            header = terminal.format_error_header(self.code.value, header)
        return header


class TemplateNotFoundError(TemplateError):
    """The template source for a view does not exist.

    Example:
            >>> env.load("pages.missing")
        TemplateNotFoundError: Template 'pages/missing' not found in: resources/
    """

    code: ErrorCode | None = ErrorCode.TEMPLATE_NOT_FOUND
    status: int | None = 404

    def __init__(self, message: str, name: str | None = None):
        self.name = name
        super().__init__(message)


class TemplateSyntaxError(TemplateError):
    """Compiled render code is not valid Python.

    The translator does not validate directive nesting, so an unbalanced
    ``@if``/``@endif`` or a stray ``@break`` surfaces here, pointing at the
    generated line.
    """

    code: ErrorCode | None = ErrorCode.SYNTAX_ERROR

    def __init__(
        self,
        message: str,
        lineno: int | None = None,
        name: str | None = None,
        filename: str | None = None,
        source: str | None = None,
    ):
        self.message = message
        self.lineno = lineno
        self.name = name
        self.filename = filename
        self.source = source
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        location = self.filename or self.name or "<template>"
        if self.lineno:
            location += f":{self.lineno}"

        header = f"Syntax Error: {self.message}\n  --> {location}"

        if self.source and self.lineno:
            lines = self.source.splitlines()
            if 0 < self.lineno <= len(lines):
                return header + f"\n   |\n{self.lineno:>3} | {lines[self.lineno - 1]}"

        return header


class TemplatePathError(TemplateError):
    """A view name cannot be mapped to a safe path, or the build cache failed."""

    code: ErrorCode | None = ErrorCode.INVALID_PATH

    def __init__(self, message: str, path: str | None = None):
        self.path = path
        super().__init__(message)


class BindingError(TemplateError):
    """A render-context key was rejected before compilation."""

    def __init__(self, name: object, message: str):
        self.name = name
        self.message = message
        super().__init__(message)


class InvalidIdentifierError(BindingError):
    """A binding key is empty, not a string, or not a valid identifier."""

    code: ErrorCode | None = ErrorCode.INVALID_IDENTIFIER


class ReservedNameError(BindingError):
    """A binding key collides with a name reserved by the render environment.

    Attributes:
        convention: Which reserved set the name belongs to.
    """

    code: ErrorCode | None = ErrorCode.RESERVED_NAME

    def __init__(self, name: str, convention: str, message: str):
        self.convention = convention
        super().__init__(name, message)


class TemplateRuntimeError(TemplateError):
    """Error raised while executing a compiled view.

    Attributes:
        message: Error description
        expression: Generated line that failed
        template_name: View being rendered
        filename: Artifact file (or ``<string>``)
        lineno: Line number in the compiled artifact
        suggestion: Actionable fix suggestion
        source_snippet: Surrounding lines of the compiled artifact
        template_stack: Views being rendered, outermost first
    """

    code: ErrorCode | None = ErrorCode.RUNTIME_ERROR

    def __init__(
        self,
        message: str,
        *,
        expression: str | None = None,
        template_name: str | None = None,
        filename: str | None = None,
        lineno: int | None = None,
        suggestion: str | None = None,
        source_snippet: SourceSnippet | None = None,
        template_stack: list[str] | None = None,
    ):
        self.message = message
        self.expression = expression
        self.template_name = template_name
        self.filename = filename
        self.lineno = lineno
        self.suggestion = suggestion
        self.source_snippet = source_snippet
        self.template_stack = template_stack or []
        super().__init__(self._format_message())

    def _location(self) -> str:
        loc = self.filename or self.template_name or "<template>"
        if self.lineno:
            loc += f":{self.lineno}"
        return loc

    def _format_message(self) -> str:
        parts = [f"Runtime Error: {self.message}"]

        if self.template_name or self.lineno:
            parts.append(f"  Location: {terminal.location(self._location())}")

        if self.source_snippet:
            parts.append(self.source_snippet.format())

        if len(self.template_stack) > 1:
            parts.append(f"  Views: {' -> '.join(self.template_stack)}")

        if self.expression:
            parts.append(f"  Expression: {self.expression}")

        if self.suggestion:
            parts.append(f"\n  {terminal.hint('Suggestion:')} {self.suggestion}")

        return "\n".join(parts)

    def format_compact(self) -> str:
        parts: list[str] = [
            terminal.format_error_header(self.code.value if self.code else None, self.message),
            f"  Location: {terminal.location(self._location())}",
        ]
        if self.source_snippet:
            parts.append(self.source_snippet.format())
        if self.suggestion:
            parts.append(f"  {terminal.hint('Hint:')} {self.suggestion}")
        return "\n".join(parts)


class RequiredValueError(TemplateRuntimeError):
    """A ``@print`` target is not bound.

    The inline error panel has already been written to the output when this
    is raised; the render halts with a server-error status.
    """

    code: ErrorCode | None = ErrorCode.REQUIRED_VALUE
    status: int | None = 500

    def __init__(self, field_name: str, message: str | None = None, **kwargs: object):
        self.field_name = field_name
        msg = message or f"Section '{field_name}' does not exist"
        super().__init__(
            msg,
            suggestion=f"Define it with @section('{field_name}') ... @endsection "
            f"or pass '{field_name}' when loading the view",
            **kwargs,  # type: ignore[arg-type]
        )
