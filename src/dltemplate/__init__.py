"""dltemplate — directive-based HTML view compiler with an on-disk build cache.

Views are HTML files with Blade-like directives. Each view is compiled to a
small Python module (the artifact), written to a build directory when its
content changes, and executed against the bindings passed by the caller.

Quickstart:
    >>> from dltemplate import Environment
    >>> env = Environment(views="resources", build_dir=".build")
    >>> env.render("pages.home", title="Home")

In-memory templates:
    >>> env.from_string("Hello, {{ $name }}!").render(name="<World>")
    'Hello, &lt;World&gt;!'

Architecture:
View Source → Section Resolver → Directive Passes → Code Generator → compile() → exec()

Pipeline stages:
1. **Section resolver**: ``@base``/``@section`` become captures and includes
2. **Directive passes**: ordered regex passes turn directives into render tags
3. **Code generator**: render tags become Python module source
4. **Template**: executes the compiled code with runtime helpers

Directives:
- ``{{ $x }}`` escaped output, ``{!! $x !!}`` raw output, ``{{ expr }}`` raw expression
- ``@if``/``@elseif``/``@else``/``@endif``, ``@foreach``/``@for`` with ``@break``/``@continue``
- ``@php``/``@endphp`` Python code, ``@varname(name, value)`` assignment
- ``@json``, ``@markdown``, ``@csrf``, ``@includes``, ``@print``
- ``@base``/``@section`` layout inheritance
- ``{{-- comments --}}`` and ``<!-- html comments -->`` are removed

"""

from dltemplate.environment import (
    BindingError,
    DictLoader,
    Environment,
    ErrorCode,
    FileSystemLoader,
    InvalidIdentifierError,
    Loader,
    RequiredValueError,
    ReservedNameError,
    SourceSnippet,
    TemplateError,
    TemplateNotFoundError,
    TemplatePathError,
    TemplateRuntimeError,
    TemplateSyntaxError,
    build_source_snippet,
)
from dltemplate.render_context import RenderContext, get_render_context, render_context
from dltemplate.template import Markup, Template
from dltemplate.utils.html import html_escape
from dltemplate.utils.markdown import render_markdown

__version__ = "0.1.0"

__all__ = [
    "BindingError",
    "DictLoader",
    "Environment",
    "ErrorCode",
    "FileSystemLoader",
    "InvalidIdentifierError",
    "Loader",
    "Markup",
    "RenderContext",
    "RequiredValueError",
    "ReservedNameError",
    "SourceSnippet",
    "Template",
    "TemplateError",
    "TemplateNotFoundError",
    "TemplatePathError",
    "TemplateRuntimeError",
    "TemplateSyntaxError",
    "build_source_snippet",
    "get_render_context",
    "html_escape",
    "render_context",
    "render_markdown",
    "__version__",
]
