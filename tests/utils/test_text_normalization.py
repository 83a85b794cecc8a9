"""Tests for text normalization helpers."""

import pytest

from webdigest.utils.text_normalization import clean_url, normalize_lines, normalize_text


class TestNormalizeText:
    """Test whitespace normalization."""

    def test_newlines_and_tabs_become_spaces(self):
        assert normalize_text("a\nb\tc") == "a b c"

    def test_collapses_space_runs(self):
        assert normalize_text("a    b  c") == "a b c"

    def test_mixed_layout_characters(self, sample_text):
        result = normalize_text(sample_text)
        assert "\n" not in result
        assert "\t" not in result
        assert "  " not in result
        assert result.startswith("The sky is blue. The sun is bright. The sun in the sky")

    def test_carriage_returns(self):
        assert normalize_text("line one\r\nline two") == "line one line two"

    def test_edges_are_not_stripped(self):
        assert normalize_text("  padded  ") == " padded "

    @pytest.mark.parametrize("value", ["", None])
    def test_empty_input(self, value):
        assert normalize_text(value) == ""

    def test_idempotent(self, sample_text):
        once = normalize_text(sample_text)
        assert normalize_text(once) == once


class TestNormalizeLines:
    """Test line-preserving normalization."""

    def test_keeps_line_breaks(self, sample_text):
        assert normalize_lines(sample_text).split("\n") == [
            "The sky is blue.",
            "The sun is bright.",
            "The sun in the sky is bright.",
            "We can see the shining sun, the bright sun.",
            "The quick brown fox jumps over the lazy dog.",
        ]

    def test_drops_blank_lines(self):
        assert normalize_lines("a\n\n  \t \r\nb") == "a\nb"

    @pytest.mark.parametrize("value", ["", None, "\n\n"])
    def test_empty(self, value):
        assert normalize_lines(value) == ""


class TestCleanUrl:
    """Test URL cleanup."""

    def test_strips_single_quotes(self):
        assert clean_url("'https://example.com'") == "https://example.com"

    def test_strips_repeated_quotes_and_whitespace(self):
        assert clean_url("  ''https://example.com/a?b=1''  ") == "https://example.com/a?b=1"

    def test_inner_quotes_kept(self):
        assert clean_url("https://example.com/it's") == "https://example.com/it's"

    @pytest.mark.parametrize("value", ["", None, "''"])
    def test_empty(self, value):
        assert clean_url(value) == ""
