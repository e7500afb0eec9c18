"""dltemplate Template — a compiled view ready for execution.

The code object produced by ``Compiler`` is a flat module that writes its
output through ``_write``. ``Template.render_into`` executes it against a
fresh namespace built from:

1. ``STATIC_NAMESPACE`` (pure helpers: ``_escape``, ``_raw``, ``_json``, ``_pairs``)
2. ``Environment.globals``
3. the Render Context (validated bindings)
4. helpers bound to this render (``_write``, ``_include``, ``_bind``...)

Sections bound with ``_bind`` are stored both in the namespace and in the
Render Context dict, which ``_include`` forwards to nested views, so a base
view sees every section its child captured.

Memory Safety:
Uses ``weakref.ref(env)`` to break potential cycles:
``Template → (weak) → Environment → cache → Template``

Thread-Safety:
- Templates are immutable after construction
- Each render builds its own namespace and output buffer
- Include depth and the view stack live in a ContextVar
"""

from __future__ import annotations

import io
import re
import weakref
from typing import TYPE_CHECKING, Any, TextIO

from dltemplate.environment.bindings import validate_bindings
from dltemplate.environment.exceptions import (
    RequiredValueError,
    TemplateError,
    TemplateRuntimeError,
    build_source_snippet,
)
from dltemplate.render_context import (
    RenderContext,
    get_render_context,
    reset_render_context,
    set_render_context,
)
from dltemplate.template.helpers import (
    STATIC_NAMESPACE,
    OutputBuffer,
    csrf_input,
    missing_section_panel,
)
from dltemplate.utils.html import stringify

if TYPE_CHECKING:
    import types

    from dltemplate.environment import Environment

_WHITESPACE_RE = re.compile(r"\s")

DEFAULT_CSRF_FIELD = "csrf-token"


class Template:
    """Compiled view ready for rendering.

    Attributes:
        name: Normalized view name (``None`` for ``from_string`` templates)
        filename: Artifact path, or ``<string>``, used in tracebacks
        source: Generated Python source, used for error snippets

    Example:
            >>> t = env.from_string("Hello, {{ $name }}!")
            >>> t.render(name="<World>")
            'Hello, &lt;World&gt;!'
    """

    __slots__ = ("_code", "_env_ref", "_filename", "_name", "_source")

    def __init__(
        self,
        env: Environment,
        code: types.CodeType,
        name: str | None,
        filename: str | None,
        source: str | None = None,
    ):
        self._env_ref: weakref.ref[Environment] = weakref.ref(env)
        self._code = code
        self._name = name
        self._filename = filename
        self._source = source

    @property
    def _env(self) -> Environment:
        """Get the Environment (dereferences weak reference)."""
        env = self._env_ref()
        if env is None:
            raise RuntimeError(
                f"Environment has been garbage collected (template: {self._name or 'unknown'})"
            )
        return env

    @property
    def name(self) -> str | None:
        return self._name

    @property
    def filename(self) -> str | None:
        return self._filename

    @property
    def source(self) -> str | None:
        return self._source

    def render(self, *args: Any, **kwargs: Any) -> str:
        """Render the view to a string.

        Example:
            >>> t.render(name="World")
            'Hello, World!'
            >>> t.render({"name": "World"})
            'Hello, World!'
        """
        context: dict[str, Any] = {}
        if args:
            if len(args) == 1 and isinstance(args[0], dict):
                context.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a dict), got {len(args)}"
                )
        context.update(kwargs)

        buffer = io.StringIO()
        self.render_into(validate_bindings(context), buffer)
        return buffer.getvalue()

    def render_into(self, context: dict[str, Any], stream: TextIO | OutputBuffer) -> None:
        """Execute the view, writing its output to ``stream``.

        ``context`` must already be validated; it is updated in place with
        the sections the view binds.
        """
        env = self._env
        view = self._name or "<string>"

        parent = get_render_context()
        if parent is None:
            render_ctx = RenderContext(
                template_name=view,
                filename=self._filename,
                max_include_depth=env.max_include_depth,
                template_stack=[view],
            )
        else:
            parent.check_include_depth(view)
            render_ctx = parent.child_context(view, self._filename)

        token = set_render_context(render_ctx)
        try:
            namespace = self._build_namespace(env, context, OutputBuffer.wrap(stream), render_ctx)
            try:
                exec(self._code, namespace)
            except TemplateError:
                raise
            except Exception as e:
                raise self._enhance_error(e, render_ctx) from e
        finally:
            reset_render_context(token)

    def _build_namespace(
        self,
        env: Environment,
        context: dict[str, Any],
        out: OutputBuffer,
        render_ctx: RenderContext,
    ) -> dict[str, Any]:
        namespace: dict[str, Any] = STATIC_NAMESPACE.copy()
        namespace.update(env.globals)
        namespace.update(context)

        def _include(view: str) -> None:
            env.load(view, context, out)

        def _require(name: str) -> None:
            key = _WHITESPACE_RE.sub("_", stringify(name))
            value = namespace.get(key)
            if value is None:
                out.abort(missing_section_panel(key))
                raise RequiredValueError(
                    key,
                    template_name=render_ctx.template_name,
                    filename=self._filename,
                    template_stack=render_ctx.template_stack,
                )
            out.write(value)

        def _bind(name: str, value: Any) -> None:
            key = _WHITESPACE_RE.sub("_", stringify(name))
            context[key] = value
            namespace[key] = value

        def _csrf_field(field: str | None = None) -> str:
            token = render_ctx.get_meta("csrf_token")
            if token is None and env.csrf_token is not None:
                token = env.csrf_token()
            if token is None:
                raise TemplateRuntimeError(
                    "No CSRF token available for @csrf",
                    template_name=render_ctx.template_name,
                    filename=self._filename,
                    suggestion="Pass csrf_token=callable to Environment, or "
                    "set_meta('csrf_token', ...) on the render context",
                )
            return csrf_input(field or DEFAULT_CSRF_FIELD, stringify(token))

        def _markdown(text: Any) -> str:
            return env.markdown(stringify(text))

        namespace.update(
            _write=out.write,
            _capture=out.start,
            _end_capture=out.end,
            _include=_include,
            _require=_require,
            _bind=_bind,
            _csrf_field=_csrf_field,
            _markdown=_markdown,
            _context=context,
            _env=env,
        )
        return namespace

    def _failing_line(self, error: Exception) -> int | None:
        """Line of this view's artifact where ``error`` was raised."""
        lineno = None
        tb = error.__traceback__
        while tb is not None:
            if tb.tb_frame.f_code.co_filename == self._code.co_filename:
                lineno = tb.tb_lineno
            tb = tb.tb_next
        return lineno

    def _enhance_error(self, error: Exception, render_ctx: RenderContext) -> TemplateRuntimeError:
        """Wrap a generic exception with the view name and artifact location."""
        error_str = str(error).strip()
        if not error_str:
            error_str = f"{type(error).__name__} (no details available)"
        elif not isinstance(error, (NameError, KeyError)):
            error_str = f"{type(error).__name__}: {error_str}"

        lineno = self._failing_line(error)
        snippet = None
        expression = None
        if self._source and lineno:
            snippet = build_source_snippet(self._source, lineno)
            lines = self._source.splitlines()
            if 0 < lineno <= len(lines):
                expression = lines[lineno - 1].strip()

        suggestion = None
        if isinstance(error, NameError):
            suggestion = "Pass the variable when loading the view, or define it in the view"

        return TemplateRuntimeError(
            error_str,
            expression=expression,
            template_name=render_ctx.template_name,
            filename=self._filename,
            lineno=lineno,
            suggestion=suggestion,
            source_snippet=snippet,
            template_stack=render_ctx.template_stack,
        )

    def __repr__(self) -> str:
        return f"<Template {self._name or '(inline)'}>"
