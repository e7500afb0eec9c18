"""File-based views -- the most common real-world pattern.

Loads views from ``resources/`` with the default FileSystemLoader,
demonstrates layout composition (``@base``/``@section``), includes,
``@markdown`` and ``@csrf``. Compiled artifacts are written to a
temporary build directory.

Run:
    python app.py
"""

import tempfile
from pathlib import Path

from dltemplate import Environment

views_dir = Path(__file__).parent / "resources"
build_dir = Path(tempfile.mkdtemp(prefix="dltemplate-build-"))

env = Environment(
    views=views_dir,
    build_dir=build_dir,
    recompile="changed",
    csrf_token=lambda: "example-token",
)

nav_items = [
    {"url": "/", "label": "Home"},
    {"url": "/about", "label": "About"},
]

home_output = env.render(
    "pages.home",
    site_name="My Site",
    nav_items=nav_items,
    title="Welcome",
    message="This is a dltemplate-powered site with a shared layout.",
)

about_output = env.render(
    "pages.about",
    site_name="My Site",
    nav_items=nav_items,
    title="About Us",
    description="Built with **dltemplate**, directives compiled to Python.",
)


def main() -> None:
    print("=== Home Page ===")
    print(home_output)
    print()
    print("=== About Page ===")
    print(about_output)
    print()
    print(f"Artifacts written to {build_dir}")


if __name__ == "__main__":
    main()
