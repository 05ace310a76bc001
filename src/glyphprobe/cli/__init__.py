"""Command-line interface for glyphprobe.

This module provides the CLI using Typer with rich output for
inspecting fonts from the terminal.

Key features:
- Table directory and capability summary
- Codepoint to glyph index and name lookup
- Glyph listing with bitmap sizes
- Bitmap previews as block characters
"""

from glyphprobe.cli.app import cli, main

__all__ = ["cli", "main"]
