"""Unit tests for the command-line interface.

Tests for codepoint parsing and the info, lookup, glyphs and bitmap
commands, run through Typer's CliRunner.
"""

import logging

import pytest
import typer
from typer.testing import CliRunner

from glyphprobe import __version__
from glyphprobe.cli.app import app, parse_codepoint
from glyphprobe.utils.logging import HANDLER_NAME

runner = CliRunner()


@pytest.fixture(autouse=True)
def reset_logging():
    """Remove the handlers each CLI run installs on the root logger."""
    yield
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()


@pytest.fixture
def font_file(tmp_path, bitmap_font):
    """The named bitmap font written to disk."""
    path = tmp_path / "bitmaps.ttf"
    path.write_bytes(bitmap_font)
    return path


class TestParseCodepoint:
    """Tests for parse_codepoint function."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [("U+0041", 0x41), ("u+1f600", 0x1F600), ("0xE88A", 0xE88A), ("65", 65), ("A", 0x41), ("7", 7)],
    )
    def test_forms(self, text, expected):
        """Test the accepted spellings."""
        assert parse_codepoint(text) == expected

    @pytest.mark.parametrize("text", ["U+XYZ", "hello", ""])
    def test_invalid(self, text):
        """Test rejecting text that is not a codepoint."""
        with pytest.raises(typer.BadParameter):
            parse_codepoint(text)


class TestCommands:
    """Tests for the CLI commands."""

    def test_version(self):
        """Test --version."""
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_info(self, font_file):
        """Test the table directory listing."""
        result = runner.invoke(app, ["info", str(font_file), "--verify-checksums"])
        assert result.exit_code == 0
        assert "27 glyphs" in result.output
        assert "EBLC" in result.output
        assert "format 4" in result.output
        assert "Bad checksums" not in result.output

    def test_lookup(self, font_file):
        """Test resolving a codepoint."""
        result = runner.invoke(app, ["lookup", str(font_file), "U+0041"])
        assert result.exit_code == 0
        assert "U+0041" in result.output
        assert "glyph 1" in result.output
        assert "A" in result.output

    def test_lookup_unmapped(self, font_file):
        """Test a codepoint the font does not map."""
        result = runner.invoke(app, ["lookup", str(font_file), "U+0061"])
        assert result.exit_code == 1
        assert "U+0061 is not mapped" in result.output

    def test_missing_file(self, tmp_path):
        """Test a font path that does not exist."""
        result = runner.invoke(app, ["lookup", str(tmp_path / "missing.ttf"), "A"])
        assert result.exit_code == 1
        assert "not found" in result.output

    def test_not_a_font(self, tmp_path):
        """Test a file that is not a font."""
        path = tmp_path / "notes.txt"
        path.write_text("not a font")
        result = runner.invoke(app, ["info", str(path)])
        assert result.exit_code == 1
        assert "Could not load font" in result.output

    def test_glyphs(self, font_file):
        """Test listing glyphs with a limit."""
        result = runner.invoke(app, ["glyphs", str(font_file), "--limit", "5"])
        assert result.exit_code == 0
        assert "26 glyphs" in result.output
        assert "26 named" in result.output
        assert "showing 5 of 26" in result.output

    def test_glyphs_with_corrupt_names(self, factory, tmp_path):
        """Test that name errors are counted per glyph instead of ending the listing."""
        cmap = factory.cmap((3, 1, factory.cmap_format4([(0x41, 0x43, 1)])))
        post = factory.post_v2([".notdef", "glyph1", "glyph2", "glyph3"])[:-3]
        path = tmp_path / "broken-names.ttf"
        path.write_bytes(factory.sfnt({"cmap": cmap, "maxp": factory.maxp(4), "post": post}))

        result = runner.invoke(app, ["glyphs", str(path)])

        assert result.exit_code == 0
        assert "3 glyphs" in result.output
        assert "3 errors" in result.output

    @pytest.mark.parametrize("level", ["debug", "ERROR"])
    def test_log_level(self, font_file, level):
        """Test accepted log levels in either case."""
        result = runner.invoke(app, ["--log-level", level, "lookup", str(font_file), "A"])
        assert result.exit_code == 0

    def test_invalid_log_level(self, font_file):
        """Test that an unknown log level is rejected as a usage error."""
        result = runner.invoke(app, ["--log-level", "LOUD", "lookup", str(font_file), "A"])
        assert result.exit_code == 2
        assert "Traceback" not in result.output

    def test_bitmap(self, font_file):
        """Test printing a bitmap preview."""
        result = runner.invoke(app, ["bitmap", str(font_file), "B"])
        assert result.exit_code == 0
        assert "8x8" in result.output
        assert "█" in result.output

    def test_log_file(self, font_file, tmp_path):
        """Test writing debug logs to a file."""
        log_file = tmp_path / "glyphprobe.log"
        result = runner.invoke(app, ["--log-file", str(log_file), "lookup", str(font_file), "A"])
        assert result.exit_code == 0
        assert "Parsed table directory" in log_file.read_text()
