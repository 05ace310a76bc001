"""Logging utilities for glyphprobe."""

import logging
from dataclasses import dataclass, field
from pathlib import Path

import structlog

HANDLER_NAME = "glyphprobe"


@dataclass
class ScanStats:
    """Statistics from scanning every mapped glyph of a font."""

    glyph_count: int = 0
    named_count: int = 0
    bitmap_count: int = 0
    error_count: int = 0
    errors: list[tuple[int, str]] = field(default_factory=list)

    @property
    def unnamed_count(self) -> int:
        """Glyphs scanned without a name."""
        return self.glyph_count - self.named_count


def configure_logging(
    log_file: Path | None = None,
    console_level: str = "WARNING",
    file_level: str = "DEBUG",
    quiet: bool = False,
) -> structlog.stdlib.BoundLogger:
    """Configure structured logging.

    Library modules log through the standard ``logging`` module; this
    routes those records to the console and, if requested, to a file.

    Args:
        log_file: Path to log file (no file output if None)
        console_level: Logging level for console output
        file_level: Logging level for file output
        quiet: If True, suppress console output

    Returns:
        Configured structlog logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)

    # Reconfiguring replaces the handlers added by an earlier call
    for handler in list(root_logger.handlers):
        if handler.get_name() == HANDLER_NAME:
            root_logger.removeHandler(handler)
            handler.close()

    if log_file is not None:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.set_name(HANDLER_NAME)
        file_handler.setLevel(getattr(logging, file_level.upper()))
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s | %(levelname)-8s | %(name)s | %(message)s")
        )
        root_logger.addHandler(file_handler)

    if not quiet:
        console_handler = logging.StreamHandler()
        console_handler.set_name(HANDLER_NAME)
        console_handler.setLevel(getattr(logging, console_level.upper()))
        console_handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
        root_logger.addHandler(console_handler)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("glyphprobe")
    logger.debug("Logging initialized", log_file=str(log_file) if log_file else None, level=file_level)

    return logger


class ScanLogger:
    """Logger for tracking per-glyph outcomes while scanning a font."""

    def __init__(self, logger: structlog.stdlib.BoundLogger) -> None:
        self._logger = logger
        self._stats = ScanStats()

    def log_glyph(self, index: int, codepoint: int, name: str | None, has_bitmap: bool) -> None:
        """Log a successfully resolved glyph."""
        self._logger.debug(
            "Glyph resolved",
            glyph=index,
            codepoint=f"U+{codepoint:04X}",
            name=name,
            bitmap=has_bitmap,
        )
        self._stats.glyph_count += 1
        if name is not None:
            self._stats.named_count += 1
        if has_bitmap:
            self._stats.bitmap_count += 1

    def log_glyph_error(self, index: int, error: Exception) -> None:
        """Log a glyph whose bitmap or name could not be read."""
        self._logger.warning(
            "Glyph lookup failed",
            glyph=index,
            error=str(error),
            error_type=type(error).__name__,
        )
        self._stats.glyph_count += 1
        self._stats.error_count += 1
        self._stats.errors.append((index, str(error)))

    @property
    def stats(self) -> ScanStats:
        """Get current scan statistics."""
        return self._stats
