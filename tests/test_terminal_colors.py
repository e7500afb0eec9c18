"""Tests for terminal color utilities used by error diagnostics."""

import pytest

from dltemplate.environment import terminal


class TestColorDetection:
    """Test terminal color detection logic."""

    def test_supports_color_respects_no_color(self, monkeypatch):
        """NO_COLOR disables colors."""
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.delenv("FORCE_COLOR", raising=False)
        assert terminal._should_use_colors() is False

    def test_force_color_wins(self, monkeypatch):
        """FORCE_COLOR overrides NO_COLOR."""
        monkeypatch.setenv("NO_COLOR", "1")
        monkeypatch.setenv("FORCE_COLOR", "1")
        assert terminal._should_use_colors() is True

    def test_supports_color_reads_cached_value(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert not terminal.supports_color()

    def test_colorize_returns_plain_when_disabled(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        result = terminal.colorize("Error", "bright_red", "bold")
        assert result == "Error"
        assert "\033[" not in result

    def test_colorize_adds_codes_when_enabled(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        result = terminal.colorize("Error", "bright_red", "bold")
        assert "\033[91m" in result
        assert "\033[1m" in result
        assert result.endswith("\033[0m")

    def test_strip_colors_removes_ansi_codes(self):
        colored = "\033[91m\033[1mError\033[0m"
        assert terminal.strip_colors(colored) == "Error"


class TestSemanticHelpers:
    """Semantic helpers map to fixed colors."""

    @pytest.mark.parametrize(
        ("helper", "code"),
        [
            (terminal.error_code, "\033[91m"),
            (terminal.location, "\033[36m"),
            (terminal.hint, "\033[32m"),
            (terminal.dim_text, "\033[2m"),
        ],
    )
    def test_helper_colors(self, monkeypatch, helper, code):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        result = helper("text")
        assert code in result
        assert terminal.strip_colors(result) == "text"

    def test_plain_text_mode(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert terminal.error_code("K-RUN-007") == "K-RUN-007"
        assert terminal.location("home.py:3") == "home.py:3"
        assert terminal.hint("Hint:") == "Hint:"


class TestErrorFormatting:
    def test_format_error_header_with_code(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert terminal.format_error_header("K-TPL-001", "missing") == "K-TPL-001: missing"

    def test_format_error_header_without_code(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        assert terminal.format_error_header(None, "Something went wrong") == (
            "Something went wrong"
        )

    def test_format_source_line_normal(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert terminal.format_source_line(7, "_write(x)") == "   7 | _write(x)"

    def test_format_source_line_error(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", False)
        assert terminal.format_source_line(42, "_write(y)", is_error=True) == "> 42 | _write(y)"

    def test_colorize_unknown_color(self, monkeypatch):
        monkeypatch.setattr(terminal, "_USE_COLORS", True)
        assert terminal.colorize("text", "unknown_color") == "text"
