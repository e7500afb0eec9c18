"""Tests for the file-loader example."""


class TestFileLoaderApp:
    """Verify file-based view loading with a layout and includes."""

    def test_home_has_title(self, example_app) -> None:
        assert "<title>Welcome | My Site</title>" in example_app.home_output

    def test_home_has_content(self, example_app) -> None:
        assert "<h1>Welcome</h1>" in example_app.home_output
        assert "dltemplate-powered site" in example_app.home_output

    def test_about_has_title(self, example_app) -> None:
        assert "<title>About Us | My Site</title>" in example_app.about_output

    def test_about_renders_markdown(self, example_app) -> None:
        assert "<strong>dltemplate</strong>" in example_app.about_output

    def test_about_has_csrf_field(self, example_app) -> None:
        assert 'value="example-token"' in example_app.about_output

    def test_nav_included_in_both(self, example_app) -> None:
        for output in [example_app.home_output, example_app.about_output]:
            assert "<nav>" in output
            assert 'href="/"' in output
            assert 'href="/about"' in output

    def test_footer_inherited(self, example_app) -> None:
        for output in [example_app.home_output, example_app.about_output]:
            assert "Powered by dltemplate" in output

    def test_artifacts_written(self, example_app) -> None:
        build_dir = example_app.build_dir
        assert (build_dir / "pages" / "home.py").is_file()
        assert (build_dir / "layout" / "base.py").is_file()
        assert (build_dir / "partials" / "nav.py").is_file()
