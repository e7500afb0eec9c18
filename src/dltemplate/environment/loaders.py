"""Template loaders for the dltemplate environment.

Loaders map a normalized view name (``layout/home``) to template source.
They implement ``get_source(name)`` returning ``(source, filename)``.

Built-in Loaders:
- `FileSystemLoader`: ``<root>/<name>.template.html`` on disk
- `DictLoader`: in-memory mapping (testing/embedded)

Custom Loaders:
Implement the Loader protocol:
    ```python
    class DatabaseLoader:
        def get_source(self, name: str) -> tuple[str, str | None]:
            row = db.query("SELECT source FROM views WHERE name = ?", name)
            if not row:
                raise TemplateNotFoundError(f"Template '{name}' not found", name=name)
            return row.source, f"db://{name}"
    ```

"""

from __future__ import annotations

from difflib import get_close_matches
from pathlib import Path

from dltemplate.environment.exceptions import TemplateNotFoundError
from dltemplate.environment.paths import normalize_view

TEMPLATE_SUFFIX = ".template.html"


class FileSystemLoader:
    """Load view sources from one or more directories.

    Directories are searched in order; the first existing file wins:
        ```python
        loader = FileSystemLoader(["themes/custom/", "resources/"])
        # "layout/home" -> themes/custom/layout/home.template.html,
        #                  then resources/layout/home.template.html
        ```

    Example:
            >>> loader = FileSystemLoader("resources/")
            >>> source, filename = loader.get_source("layout/home")
            >>> print(filename)
            'resources/layout/home.template.html'

    Raises:
        TemplateNotFoundError: If the view is not found in any search path
    """

    __slots__ = ("_encoding", "_paths", "_suffix")

    def __init__(
        self,
        paths: str | Path | list[str | Path],
        encoding: str = "utf-8",
        suffix: str = TEMPLATE_SUFFIX,
    ):
        if isinstance(paths, (str, Path)):
            paths = [paths]
        self._paths = [Path(p) for p in paths]
        self._encoding = encoding
        self._suffix = suffix

    @property
    def suffix(self) -> str:
        return self._suffix

    def source_path(self, name: str) -> Path:
        """Return the file for ``name``: the first that exists, else the first candidate."""
        candidates = [base / f"{name}{self._suffix}" for base in self._paths]
        for path in candidates:
            if path.is_file():
                return path
        return candidates[0]

    def get_source(self, name: str) -> tuple[str, str]:
        """Read the source of a view."""
        for base in self._paths:
            path = base / f"{name}{self._suffix}"
            if path.is_file():
                return path.read_text(self._encoding), str(path)

        raise TemplateNotFoundError(
            f"Template '{name}' not found in: {', '.join(str(p) for p in self._paths)}",
            name=name,
        )

    def list_templates(self) -> list[str]:
        """List view names (normalized, without suffix) in all search paths."""
        templates = set()
        for base in self._paths:
            if base.is_dir():
                for path in base.rglob(f"*{self._suffix}"):
                    relative = path.relative_to(base).as_posix()
                    templates.add(relative[: -len(self._suffix)])
        return sorted(templates)


class DictLoader:
    """Load view sources from an in-memory dictionary.

    Keys may use any separator accepted by view names; they are normalized
    on construction, so ``{"layout.base": ...}`` answers ``layout/base``.

    Example:
            >>> loader = DictLoader({
            ...     "layout.base": "<title>@print('title')</title>",
            ...     "home": "@base('layout.base') @section('title')Home@endsection",
            ... })
            >>> env = Environment(loader=loader, build_dir=tmp)
            >>> env.render("home")
            '<title>Home</title>'

    Raises:
        TemplateNotFoundError: If the view is not in the mapping
    """

    __slots__ = ("_mapping",)

    def __init__(self, mapping: dict[str, str]):
        self._mapping = {normalize_view(name): source for name, source in mapping.items()}

    def get_source(self, name: str) -> tuple[str, None]:
        if name not in self._mapping:
            available = sorted(self._mapping)
            msg = f"Template '{name}' not found"
            matches = get_close_matches(name, available, n=1, cutoff=0.6)
            if matches:
                msg += f". Did you mean '{matches[0]}'?"
            elif available:
                msg += f". Available: {', '.join(available[:10])}"
                if len(available) > 10:
                    msg += f" ... ({len(available)} total)"
            raise TemplateNotFoundError(msg, name=name)
        return self._mapping[name], None

    def list_templates(self) -> list[str]:
        return sorted(self._mapping)
