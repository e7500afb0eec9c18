"""View-name normalization and build-cache filesystem helpers.

A view is named by a logical path where ``.``, ``/`` and ``\\`` all act as
separators: ``layout.home``, ``layout/home`` and ``layout\\home`` name the
same view. The normalized form (``layout/home``) is used both to find the
template source and to place the compiled artifact.
"""

from __future__ import annotations

import hashlib
import os
import re
import tempfile
from pathlib import Path

from dltemplate.environment.exceptions import TemplatePathError

_SEPARATORS_RE = re.compile(r"[./\\]+")


def normalize_view(view: str) -> str:
    """Normalize a logical view name into a relative POSIX-style path.

    Raises:
        TemplatePathError: If the name is empty, drive-qualified, or escapes the root.

    Example:
        >>> normalize_view("layout.home")
        'layout/home'
        >>> normalize_view("/pages//about/")
        'pages/about'
    """
    if not isinstance(view, str):
        raise TemplatePathError(f"View name must be a string, got {type(view).__name__}")

    raw = view.strip()
    if re.match(r"^[A-Za-z]:", raw):
        raise TemplatePathError(f"View name '{view}' must be relative", path=view)
    if re.search(r"(^|[/\\])\.\.($|[/\\])", raw):
        raise TemplatePathError(f"View name '{view}' points outside the views root", path=view)

    segments = [segment.strip() for segment in _SEPARATORS_RE.split(raw)]
    segments = [segment for segment in segments if segment]
    if not segments:
        raise TemplatePathError(f"View name '{view}' is empty", path=view)
    return "/".join(segments)


def ensure_directory(path: Path) -> Path:
    """Create ``path`` and its parents if missing."""
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise TemplatePathError(f"Cannot create directory '{path}': {exc}", path=str(path)) from exc
    return path


def sha1_text(text: str) -> str:
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


def sha1_file(path: Path) -> str:
    """Hash a file's bytes in chunks."""
    digest = hashlib.sha1()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(65536), b""):
            digest.update(chunk)
    return digest.hexdigest()


def atomic_write(path: Path, text: str) -> None:
    """Write ``text`` to ``path`` through a temp file and ``os.replace``.

    Readers never observe a partially written artifact. Concurrent writers
    are not serialized; the last rename wins.
    """
    try:
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    except OSError as exc:
        raise TemplatePathError(f"Cannot write artifact '{path}': {exc}", path=str(path)) from exc
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as handle:
            handle.write(text)
        os.replace(tmp_name, path)
    except OSError as exc:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise TemplatePathError(f"Cannot write artifact '{path}': {exc}", path=str(path)) from exc
