"""dltemplate RenderContext — per-render state kept out of the view bindings.

The bindings a view sees are a plain dict; everything the runtime needs to
know about *where* it is rendering (current view, include chain, framework
metadata such as a CSRF token) lives here, in a ContextVar, so concurrent
renders in different threads never share it.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar, Token
from dataclasses import dataclass, field


@dataclass
class RenderContext:
    """Per-render state isolated from the view bindings.

    Attributes:
        template_name: View being rendered (normalized name)
        filename: Artifact file being executed, for error messages
        include_depth: Current ``@includes``/``@base`` depth
        max_include_depth: Maximum allowed depth
        template_stack: Views being rendered, outermost first
    """

    template_name: str | None = None
    filename: str | None = None

    # 50 is deep enough for any real layout hierarchy while catching a view
    # that includes or bases itself.
    include_depth: int = 0
    max_include_depth: int = 50

    template_stack: list[str] = field(default_factory=list)

    # Framework metadata (CSRF token, request flags)
    _meta: dict[str, object] = field(default_factory=dict)

    def get_meta(self, key: str, default: object = None) -> object:
        """Get framework-specific metadata.

        Example:
            with render_context() as ctx:
                ctx.set_meta("csrf_token", session.csrf_token())
                env.load("forms.login", {"user": user}, response)
        """
        return self._meta.get(key, default)

    def set_meta(self, key: str, value: object) -> None:
        self._meta[key] = value

    def check_include_depth(self, template_name: str) -> None:
        """Raise TemplateRuntimeError once the include chain is too deep."""
        if self.include_depth >= self.max_include_depth:
            from dltemplate.environment.exceptions import ErrorCode, TemplateRuntimeError

            error = TemplateRuntimeError(
                f"Maximum include depth exceeded ({self.max_include_depth}) "
                f"when including '{template_name}'",
                template_name=self.template_name,
                template_stack=self.template_stack,
                suggestion="Check for circular @includes/@base: A → B → A",
            )
            error.code = ErrorCode.INCLUDE_DEPTH
            raise error

    def child_context(self, template_name: str, filename: str | None = None) -> RenderContext:
        """Create the state for a nested view, one level deeper."""
        return RenderContext(
            template_name=template_name,
            filename=filename,
            include_depth=self.include_depth + 1,
            max_include_depth=self.max_include_depth,
            template_stack=[*self.template_stack, template_name],
            _meta=self._meta,
        )


_render_context: ContextVar[RenderContext | None] = ContextVar(
    "dltemplate_render_context",
    default=None,
)


def get_render_context() -> RenderContext | None:
    """Get current render context (None if not in render)."""
    return _render_context.get()


@contextmanager
def render_context(
    template_name: str | None = None,
    filename: str | None = None,
    max_include_depth: int = 50,
    parent_meta: dict[str, object] | None = None,
) -> Iterator[RenderContext]:
    """Set a fresh RenderContext for the duration of the ``with`` block.

    Frameworks use it to hand request metadata to every view rendered inside:

        with render_context() as ctx:
            ctx.set_meta("csrf_token", token)
            env.load("forms.contact", stream=response)
    """
    ctx = RenderContext(
        template_name=template_name,
        filename=filename,
        max_include_depth=max_include_depth,
        template_stack=[template_name] if template_name else [],
        _meta=parent_meta.copy() if parent_meta else {},
    )
    token: Token[RenderContext | None] = _render_context.set(ctx)
    try:
        yield ctx
    finally:
        _render_context.reset(token)


def set_render_context(ctx: RenderContext) -> Token[RenderContext | None]:
    """Set a RenderContext and return the reset token."""
    return _render_context.set(ctx)


def reset_render_context(token: Token[RenderContext | None]) -> None:
    _render_context.reset(token)
