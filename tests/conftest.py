"""Pytest configuration and fixtures for dltemplate tests."""

from pathlib import Path

import pytest

from dltemplate import DictLoader, Environment


@pytest.fixture
def build_dir(tmp_path: Path) -> Path:
    """Empty build-cache directory."""
    return tmp_path / ".build"


@pytest.fixture
def views_dir(tmp_path: Path) -> Path:
    """Views root with a layout, a child page and a partial on disk."""
    root = tmp_path / "resources"
    write_view(
        root,
        "layout/base",
        "<html><head><title>@print('title')</title></head>\n"
        "<body>\n"
        "@includes('partials.nav')\n"
        "<main>@print('content')</main>\n"
        "</body></html>\n",
    )
    write_view(
        root,
        "pages/home",
        "@base('layout.base')\n"
        "@section('title')Home | {{ $site }}@endsection\n"
        "@section('content')\n"
        "<h1>Welcome, {{ $user }}</h1>\n"
        "@endsection\n",
    )
    write_view(root, "partials/nav", "<nav>{{ $site }}</nav>\n")
    return root


@pytest.fixture
def env(tmp_path: Path) -> Environment:
    """In-memory environment without minification (exact output checks)."""
    return Environment(loader=DictLoader({}), build_dir=tmp_path / ".build", minify=False)


@pytest.fixture
def env_minify(tmp_path: Path) -> Environment:
    """In-memory environment with the default minification."""
    return Environment(loader=DictLoader({}), build_dir=tmp_path / ".build")


@pytest.fixture
def file_env(views_dir: Path, build_dir: Path) -> Environment:
    """Environment reading ``views_dir`` and writing artifacts to ``build_dir``."""
    return Environment(views=views_dir, build_dir=build_dir)


@pytest.fixture
def env_with_loader(tmp_path: Path) -> Environment:
    """Environment with a DictLoader holding a small layout hierarchy."""
    loader = DictLoader(
        {
            "layout.base": "<title>@print('title')</title>\n<body>@print('body')</body>",
            "child": (
                "@base('layout.base')\n"
                "@section('title')Child@endsection\n"
                "@section('body')<p>{{ $message }}</p>@endsection\n"
            ),
            "partial": "<p>{{ $message }}</p>",
            "with_include": "<div>@includes('partial')</div>",
        }
    )
    return Environment(loader=loader, build_dir=tmp_path / ".build")


def write_view(root: Path, name: str, source: str) -> Path:
    """Write ``source`` as the view ``name`` under ``root``."""
    path = root / f"{name}.template.html"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(source, encoding="utf-8")
    return path


def assert_contains(template_result: str, *expected_parts: str) -> None:
    """Assert template result contains all expected parts.

    Args:
        template_result: The actual template rendering result.
        expected_parts: Strings that should all be present in the result.
    """
    for part in expected_parts:
        assert part in template_result, (
            f"Template output missing expected content:\n"
            f"  Missing: {part!r}\n"
            f"  Actual: {template_result!r}"
        )
