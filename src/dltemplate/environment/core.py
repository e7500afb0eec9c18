"""Core Environment for dltemplate.

The Environment is the central configuration object: it owns the loader,
the compiler settings and the build cache, and every view is loaded and
rendered through it.

Loading a view:

1. validate the bindings (before any filesystem work)
2. normalize the view name (``layout.home`` → ``layout/home``)
3. ensure the artifact directory exists
4. compile the source (always, or only when ``recompile="changed"`` finds
   the artifact stale)
5. write the artifact when it is missing or its SHA-1 differs
6. execute the artifact against the bindings, writing to the stream

Thread-Safety:
Configuration is read-only after construction. The in-memory template
cache is a plain dict updated with single assignments; a race only
compiles a view twice. Artifact writes are atomic.
"""

from __future__ import annotations

import io
import logging
import sys
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal, Protocol, TextIO

from dltemplate.compiler.core import Compiler, format_header, parse_header
from dltemplate.environment.bindings import validate_bindings
from dltemplate.environment.exceptions import TemplateNotFoundError
from dltemplate.environment.loaders import TEMPLATE_SUFFIX, FileSystemLoader
from dltemplate.environment.paths import (
    atomic_write,
    ensure_directory,
    normalize_view,
    sha1_file,
    sha1_text,
)
from dltemplate.template import OutputBuffer, Template
from dltemplate.template.helpers import missing_template_panel
from dltemplate.utils.markdown import render_markdown

logger = logging.getLogger(__name__)

ARTIFACT_SUFFIX = ".py"


class Loader(Protocol):
    """Anything that maps a normalized view name to ``(source, filename)``."""

    def get_source(self, name: str) -> tuple[str, str | None]: ...


@dataclass
class Environment:
    """Central configuration and view loading for dltemplate.

    Attributes:
        loader: Source loader; defaults to ``FileSystemLoader(views)``
        views: Views root used when no loader is given
        build_dir: Where compiled artifacts are written
        template_suffix: Source file suffix for the default loader
        artifact_suffix: Compiled artifact suffix
        cache: Write artifacts to ``build_dir``; False compiles in memory only
        recompile: ``"always"`` compiles on every load, ``"changed"`` reuses an
            artifact whose header matches the source hash and compiler settings
        minify: Collapse whitespace in literal text
        csrf_token: Callable returning the token for ``@csrf``
        markdown: Markdown-to-HTML renderer for ``@markdown``
        max_include_depth: Maximum ``@includes``/``@base`` nesting
        globals: Names visible to every view

    Example:
            >>> env = Environment(views="resources", build_dir=".build")
            >>> env.render("pages.home", title="Home")
            '<!DOCTYPE html>...'
    """

    loader: Loader | None = None
    views: str | Path = "resources"
    build_dir: str | Path = ".build"
    template_suffix: str = TEMPLATE_SUFFIX
    artifact_suffix: str = ARTIFACT_SUFFIX
    cache: bool = True
    recompile: Literal["always", "changed"] = "always"
    minify: bool = True
    csrf_token: Callable[[], str] | None = None
    markdown: Callable[[str], str] = render_markdown
    max_include_depth: int = 50
    globals: dict[str, Any] = field(default_factory=dict)

    _compiler: Compiler = field(init=False, repr=False)
    _templates: dict[str, tuple[str, Template]] = field(
        init=False, repr=False, default_factory=dict
    )

    def __post_init__(self) -> None:
        if self.recompile not in ("always", "changed"):
            raise ValueError(f"recompile must be 'always' or 'changed', got {self.recompile!r}")
        if self.max_include_depth < 1:
            raise ValueError("max_include_depth must be at least 1")
        if self.loader is None:
            self.loader = FileSystemLoader(self.views, suffix=self.template_suffix)
        self.build_dir = Path(self.build_dir)
        self.globals = validate_bindings(self.globals)
        self._compiler = Compiler(minify=self.minify)

    @property
    def compiler(self) -> Compiler:
        return self._compiler

    def artifact_path(self, view: str) -> Path:
        """Build-cache file for ``view``: ``<build_dir>/<name>.py``."""
        return Path(self.build_dir) / f"{normalize_view(view)}{self.artifact_suffix}"

    def source_path(self, view: str) -> str:
        """Where the source of ``view`` is (or would be) read from."""
        name = normalize_view(view)
        source_path = getattr(self.loader, "source_path", None)
        if source_path is not None:
            return str(source_path(name))
        return name

    def load(
        self,
        view: str,
        bindings: dict[str, Any] | None = None,
        stream: TextIO | OutputBuffer | None = None,
    ) -> None:
        """Compile (as configured) and execute ``view``, writing to ``stream``.

        Args:
            view: Logical view name (``layout.home``, ``layout/home``)
            bindings: Variables visible to the view
            stream: Output stream; ``sys.stdout`` when omitted

        Raises:
            BindingError: A binding key is invalid or reserved
            TemplatePathError: Bad view name, or the build cache is not writable
            TemplateNotFoundError: The view source does not exist; the error
                panel has already been written to ``stream``
            TemplateSyntaxError: The compiled view is not valid Python
            TemplateRuntimeError: The view failed while rendering
        """
        context = validate_bindings(bindings)
        out = sys.stdout if stream is None else stream
        template = self._load_template(view, out)
        template.render_into(context, out)

    def render(self, view: str, *args: Any, **bindings: Any) -> str:
        """Load ``view`` into a string buffer and return the output.

        Example:
            >>> env.render("pages.home", title="Home")
            >>> env.render("pages.home", {"title": "Home"})
        """
        context: dict[str, Any] = {}
        if args:
            if len(args) == 1 and isinstance(args[0], dict):
                context.update(args[0])
            else:
                raise TypeError(
                    f"render() takes at most 1 positional argument (a dict), got {len(args)}"
                )
        context.update(bindings)

        buffer = io.StringIO()
        self.load(view, context, buffer)
        return buffer.getvalue()

    def get_template(self, view: str) -> Template:
        """Compile (or reuse) ``view`` and return it without rendering."""
        return self._load_template(view, None)

    def template(self, view: str) -> str:
        """Return the compiled Python source of ``view``.

        The source is not written to the build cache.
        """
        name = normalize_view(view)
        source, _ = self.loader.get_source(name)
        return self._compiler.build(source, name=name)

    def from_string(self, source: str, name: str | None = None) -> Template:
        """Compile an in-memory template; never written to the build cache.

        Example:
            >>> env.from_string("<p>{{ $msg }}</p>").render(msg="hi")
            '<p>hi</p>'
        """
        python_source = self._compiler.build(source, name=name)
        filename = f"<dltemplate:{name or 'string'}>"
        code = self._compiler.compile_code(python_source, name=name, filename=filename)
        return Template(self, code, name, filename, python_source)

    def clear_cache(self) -> None:
        """Forget compiled templates held in memory (artifacts stay on disk)."""
        self._templates.clear()

    def _load_template(self, view: str, stream: TextIO | OutputBuffer | None) -> Template:
        name = normalize_view(view)

        artifact: Path | None = None
        if self.cache:
            artifact = self.artifact_path(name)
            ensure_directory(artifact.parent)

        try:
            source, _ = self.loader.get_source(name)
        except TemplateNotFoundError:
            if stream is not None:
                OutputBuffer.wrap(stream).abort(missing_template_panel(self.source_path(name)))
            raise

        if artifact is None:
            python_source = self._compiler.build(source, name=name)
            return self._template_for(name, python_source, f"<dltemplate:{name}>")

        header = format_header(name, sha1_text(source), self._compiler.fingerprint)

        if self.recompile == "changed":
            existing = self._read_current_artifact(artifact, header)
            if existing is not None:
                logger.debug(f"Reusing artifact for '{name}': {artifact}")
                return self._template_for(name, existing, str(artifact))

        python_source = self._compiler.build(source, name=name, header=header)
        if not artifact.is_file() or sha1_file(artifact) != sha1_text(python_source):
            atomic_write(artifact, python_source)
            logger.debug(f"Wrote artifact for '{name}': {artifact}")
        else:
            logger.debug(f"Artifact for '{name}' is up to date: {artifact}")
        return self._template_for(name, python_source, str(artifact))

    @staticmethod
    def _read_current_artifact(artifact: Path, header: str) -> str | None:
        """Artifact text if its header records ``header``'s source and fingerprint."""
        if not artifact.is_file():
            return None
        with artifact.open(encoding="utf-8", newline="") as handle:
            text = handle.read()
        expected = parse_header(f"# {header}")
        found = parse_header(text.split("\n", 1)[0])
        if found is None or expected is None:
            return None
        if found["source"] != expected["source"] or found["fingerprint"] != expected["fingerprint"]:
            return None
        return text

    def _template_for(self, name: str, python_source: str, filename: str) -> Template:
        code_hash = sha1_text(python_source)
        cached = self._templates.get(name)
        if cached is not None and cached[0] == code_hash and cached[1].filename == filename:
            return cached[1]

        code = self._compiler.compile_code(python_source, name=name, filename=filename)
        template = Template(self, code, name, filename, python_source)
        self._templates[name] = (code_hash, template)
        return template
