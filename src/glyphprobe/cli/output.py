"""Rich console output helpers for the CLI.

This module provides user-friendly console output using Rich library
with tables, bitmap previews, and formatted messages.
"""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from glyphprobe.domain import Bitmap, EncapsulatedImage, Glyph
from glyphprobe.io import TableRecord
from glyphprobe.utils import ScanStats

console = Console()

# Unicode symbols for consistent visual language
SYM_STEP = "▸"  # Step indicator
SYM_OK = "✓"  # Success
SYM_ERR = "✗"  # Error
SYM_DOT = "·"  # Separator/secondary info

# Light to dark, indexed by pixel intensity
SHADES = " ░▒▓█"


def format_codepoint(codepoint: int) -> str:
    """Format a codepoint as U+XXXX."""
    return f"U+{codepoint:04X}"


def print_header(version: str) -> None:
    """Print application header.

    Args:
        version: Application version string
    """
    console.print(f"\n[bold]glyphprobe[/bold] v{version}")
    console.print("─" * 44)


def print_step(message: str) -> None:
    """Print a processing step indicator."""
    console.print(f"\n{SYM_STEP} {message}")


def print_font_info(
    font_path: str,
    flavor: str,
    glyph_count: int,
    cmap_description: str,
    has_names: bool,
    has_bitmaps: bool,
) -> None:
    """Print font summary.

    Args:
        font_path: Path to the font file
        flavor: Outline flavor (e.g. "TrueType", "OpenType")
        glyph_count: Total number of glyphs in font
        cmap_description: Chosen cmap subtable, or why there is none
        has_names: Whether the font carries glyph names
        has_bitmaps: Whether the font has embedded bitmaps
    """
    # Use Text to safely handle paths with special characters
    line = Text("  ")
    line.append(font_path)
    line.append(f" ({flavor})")
    console.print(line)
    console.print(f"  {glyph_count:,} glyphs {SYM_DOT} cmap {cmap_description}")
    names = "names" if has_names else "no names"
    bitmaps = "bitmaps" if has_bitmaps else "no bitmaps"
    console.print(f"  {names} {SYM_DOT} {bitmaps}")


def print_table_directory(records: list[TableRecord]) -> None:
    """Print the table directory."""
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Tag")
    table.add_column("Offset", justify="right")
    table.add_column("Length", justify="right")
    table.add_column("Checksum", justify="right")
    for record in records:
        table.add_row(
            Text(record.tag),
            f"{record.offset:,}",
            f"{record.length:,}",
            f"0x{record.checksum:08X}",
        )
    console.print(table)


def print_glyph(glyph: Glyph) -> None:
    """Print one resolved glyph."""
    name = glyph.name if glyph.name is not None else "[dim](unnamed)[/dim]"
    console.print(f"  {format_codepoint(glyph.codepoint)} {SYM_DOT} glyph {glyph.index} {SYM_DOT} {name}")


def print_glyph_table(rows: list[tuple[Glyph, str]]) -> None:
    """Print mapped glyphs with their bitmap sizes.

    Args:
        rows: (glyph, bitmap description) pairs
    """
    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Codepoint")
    table.add_column("Char")
    table.add_column("Index", justify="right")
    table.add_column("Name")
    table.add_column("Bitmap")
    for glyph, bitmap in rows:
        char = glyph.char
        table.add_row(
            format_codepoint(glyph.codepoint),
            Text(char if char is not None and char.isprintable() else ""),
            str(glyph.index),
            Text(glyph.name or ""),
            bitmap,
        )
    console.print(table)


def describe_image(image: Bitmap | EncapsulatedImage) -> str:
    """Short description of a glyph image (e.g. "12x16 @1bpp")."""
    if isinstance(image, EncapsulatedImage):
        return f"{image.width}x{image.height} {image.extension}"
    if image.is_empty():
        return "-"
    return f"{image.width}x{image.height} @{int(image.bit_depth)}bpp"


def _shade(bitmap: Bitmap, value: int) -> str:
    depth = int(bitmap.bit_depth)
    if depth == 32:
        # premultiplied BGRA, alpha in the low byte
        value, depth = value & 0xFF, 8
    level = value * (len(SHADES) - 1) // ((1 << depth) - 1)
    return SHADES[level]


def print_bitmap(bitmap: Bitmap) -> None:
    """Print a bitmap as shaded block characters."""
    console.print(
        f"  {bitmap.width}x{bitmap.height} {SYM_DOT} {int(bitmap.bit_depth)} bpp "
        f"{SYM_DOT} {bitmap.ppem} ppem"
    )
    if bitmap.is_empty():
        console.print("  [dim](blank)[/dim]")
        return
    for y in range(bitmap.height):
        row = "".join(_shade(bitmap, bitmap.pixel(x, y)) for x in range(bitmap.width))
        console.print(Text(f"  {row}"))


def print_scan_summary(stats: ScanStats, shown: int) -> None:
    """Print glyph scan summary.

    Args:
        stats: Scan statistics
        shown: Number of rows printed
    """
    error_style = "red" if stats.error_count > 0 else "green"
    console.print(
        f"\n[bold green]{SYM_OK}[/bold green] {stats.glyph_count} glyphs {SYM_DOT} "
        f"{stats.named_count} named {SYM_DOT} {stats.bitmap_count} bitmaps {SYM_DOT} "
        f"[{error_style}]{stats.error_count} errors[/{error_style}]"
    )
    if shown < stats.glyph_count:
        console.print(f"  showing {shown} of {stats.glyph_count}")


def print_error(message: str, details: str | None = None) -> None:
    """Print error message.

    Args:
        message: Main error message
        details: Optional detailed error information
    """
    console.print(f"\n[bold red]{SYM_ERR} Error:[/bold red] {message}")
    if details:
        console.print(f"  {details}")
