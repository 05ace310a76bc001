"""CLI application entry point for glyphprobe.

This module provides the inspection CLI using Typer. The CLI reads the
font file and hands its bytes to the library; all parsing happens in
glyphprobe.core.
"""

from pathlib import Path
from typing import Annotated

import structlog
import typer

from glyphprobe import __version__
from glyphprobe.cli.output import (
    console,
    describe_image,
    print_bitmap,
    print_error,
    print_font_info,
    print_glyph,
    print_glyph_table,
    print_header,
    print_scan_summary,
    print_step,
    print_table_directory,
)
from glyphprobe.config import GlyphProbeSettings, LoggingConfig, LogLevel, ParserConfig
from glyphprobe.core import Font, FontMapper
from glyphprobe.domain import EncapsulatedImage, Glyph
from glyphprobe.exceptions import GlyphProbeError
from glyphprobe.utils import ScanLogger, configure_logging

# Create the Typer app
app = typer.Typer(
    name="glyphprobe",
    help="Look up glyphs, names and embedded bitmaps in TrueType/OpenType fonts.",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold blue]glyphprobe[/bold blue] v{__version__}")
        raise typer.Exit()


def parse_codepoint(text: str) -> int:
    """Parse a codepoint given as U+XXXX, 0xXXXX, decimal, or a single character.

    Raises:
        typer.BadParameter: If the text is none of these
    """
    value = text.strip()
    try:
        if value[:2].lower() in ("u+", "0x"):
            return int(value[2:], 16)
        if value.isdigit():
            return int(value)
    except ValueError:
        raise typer.BadParameter(f"Invalid codepoint: {text}") from None
    if len(value) == 1:
        return ord(value)
    raise typer.BadParameter(f"Invalid codepoint: {text} (use U+XXXX, 0xXXXX, decimal or one character)")


@app.callback()
def main_callback(
    ctx: typer.Context,
    log_file: Annotated[
        Path | None,
        typer.Option(
            "--log-file",
            help="Write detailed logs to file",
        ),
    ] = None,
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level",
            help="Console logging level",
            case_sensitive=False,
        ),
    ] = LogLevel.WARNING,
    _version: Annotated[  # noqa: ARG001
        bool | None,
        typer.Option(
            "--version",
            "-V",
            help="Show version and exit",
            callback=version_callback,
            is_eager=True,
        ),
    ] = None,
) -> None:
    """Look up glyphs, names and embedded bitmaps in TrueType/OpenType fonts."""
    settings = GlyphProbeSettings(
        logging=LoggingConfig(log_file=log_file, log_level=log_level),
    )
    configure_logging(
        log_file=settings.logging.log_file,
        console_level=settings.logging.log_level.value,
        file_level=settings.logging.file_log_level.value,
    )
    ctx.obj = settings


def _load_font(font_path: Path, parser: ParserConfig) -> Font:
    """Read a font file and parse it, exiting with an error message on failure."""
    if not font_path.exists():
        print_error(
            f"Input file not found: {font_path}",
            details=f"The file '{font_path}' does not exist or is not accessible.",
        )
        raise typer.Exit(code=1)

    if not font_path.is_file():
        print_error(
            f"Input path is not a file: {font_path}",
            details="Please provide a path to a TTF, OTF or TTC font file.",
        )
        raise typer.Exit(code=1)

    try:
        return Font(font_path.read_bytes(), parser)
    except GlyphProbeError as e:
        print_error(f"Could not load font: {e}")
        raise typer.Exit(code=1) from None


def _settings(ctx: typer.Context) -> GlyphProbeSettings:
    return ctx.obj if isinstance(ctx.obj, GlyphProbeSettings) else GlyphProbeSettings()


FontArgument = Annotated[
    Path,
    typer.Argument(
        help="Path to a TTF/OTF/TTC font file",
        show_default=False,
    ),
]
CodepointArgument = Annotated[
    str,
    typer.Argument(
        help="Codepoint as U+XXXX, 0xXXXX, decimal, or a single character",
        show_default=False,
    ),
]
FontIndexOption = Annotated[
    int,
    typer.Option(
        "--font-index",
        "-i",
        help="Font to read from a TrueType Collection",
        min=0,
    ),
]


@app.command()
def info(
    ctx: typer.Context,
    font_path: FontArgument,
    font_index: FontIndexOption = 0,
    verify_checksums: Annotated[
        bool,
        typer.Option(
            "--verify-checksums",
            help="Warn about tables whose checksum does not match",
        ),
    ] = False,
) -> None:
    """Show the table directory and lookup capabilities of a font."""
    settings = _settings(ctx)
    parser = settings.parser.model_copy(update={"font_index": font_index})
    font = _load_font(font_path, parser)

    try:
        cmap = font.codepoint_map
        cmap_description = f"format {cmap.format} ({cmap.platform_id}/{cmap.encoding_id})"
    except GlyphProbeError as e:
        cmap_description = f"unavailable: {e}"

    print_header(__version__)
    print_font_info(
        font_path=str(font_path),
        flavor=font.buffer.flavor,
        glyph_count=font.glyph_count,
        cmap_description=cmap_description,
        has_names=font.has_names,
        has_bitmaps=font.has_bitmaps,
    )

    print_step(f"{len(font.buffer.records)} tables")
    print_table_directory(font.buffer.records)

    if verify_checksums:
        mismatched = font.buffer.verify_checksums()
        if mismatched:
            print_error(f"Bad checksums: {', '.join(mismatched)}")


@app.command()
def lookup(
    ctx: typer.Context,
    font_path: FontArgument,
    codepoint: CodepointArgument,
    font_index: FontIndexOption = 0,
) -> None:
    """Resolve a codepoint to its glyph index and name."""
    value = parse_codepoint(codepoint)
    parser = _settings(ctx).parser.model_copy(update={"font_index": font_index})
    font = _load_font(font_path, parser)

    try:
        glyph = FontMapper(font).find_glyph(value)
    except GlyphProbeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    if glyph is None:
        print_error(f"Codepoint U+{value:04X} is not mapped")
        raise typer.Exit(code=1)
    print_glyph(glyph)


@app.command()
def glyphs(
    ctx: typer.Context,
    font_path: FontArgument,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            help="Maximum number of glyphs to list (0 = all)",
            min=0,
        ),
    ] = 50,
    font_index: FontIndexOption = 0,
) -> None:
    """List every mapped glyph with its name and bitmap size."""
    parser = _settings(ctx).parser.model_copy(update={"font_index": font_index})
    font = _load_font(font_path, parser)

    try:
        mapper = FontMapper(font)
        entries = font.mapped_glyphs()
    except GlyphProbeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    scan = ScanLogger(structlog.get_logger("glyphprobe.scan"))
    rows: list[tuple[Glyph, str]] = []
    for codepoint, index in entries:
        glyph = Glyph(index=index, codepoint=codepoint)
        try:
            glyph = Glyph(index=index, codepoint=codepoint, name=mapper.name_of(index))
            image = font.glyph_image(index)
        except GlyphProbeError as e:
            scan.log_glyph_error(index, e)
            description = "[red]error[/red]"
        else:
            has_image = isinstance(image, EncapsulatedImage) or not image.is_empty()
            scan.log_glyph(index, codepoint, glyph.name, has_image)
            description = describe_image(image)
        if not limit or len(rows) < limit:
            rows.append((glyph, description))

    print_glyph_table(rows)
    print_scan_summary(scan.stats, shown=len(rows))


@app.command()
def bitmap(
    ctx: typer.Context,
    font_path: FontArgument,
    codepoint: CodepointArgument,
    ppem: Annotated[
        int | None,
        typer.Option(
            "--ppem",
            "-p",
            help="Preferred strike size in pixels per em (default: largest)",
            min=1,
        ),
    ] = None,
    font_index: FontIndexOption = 0,
) -> None:
    """Print the embedded bitmap of a codepoint's glyph."""
    value = parse_codepoint(codepoint)
    parser = _settings(ctx).parser.model_copy(update={"font_index": font_index, "strike_ppem": ppem})
    font = _load_font(font_path, parser)

    try:
        index = font.index_of(value)
        image = font.glyph_image(index)
    except GlyphProbeError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from None

    if isinstance(image, EncapsulatedImage):
        console.print(
            f"  glyph {index} is an embedded {image.extension} image "
            f"({image.width}x{image.height}, {len(image.data):,} bytes)"
        )
        return
    print_bitmap(image)


def cli() -> None:
    """Entry point for the CLI application."""
    app()


def main() -> None:
    """Entry point for the CLI application (alias for cli)."""
    cli()


if __name__ == "__main__":
    cli()
