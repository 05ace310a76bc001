"""Configuration settings for glyphprobe."""

from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field


class LogLevel(str, Enum):
    """Logging level names."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class ParserConfig(BaseModel):
    """Configuration for font parsing and glyph lookup."""

    font_index: int = Field(
        default=0,
        ge=0,
        description="Font to read from a TrueType Collection",
    )
    eager: bool = Field(
        default=True,
        description="Build the codepoint map when the font is loaded instead of on first lookup",
    )
    verify_checksums: bool = Field(
        default=False,
        description="Log a warning for every table whose checksum does not match",
    )
    strike_ppem: int | None = Field(
        default=None,
        ge=1,
        le=65535,
        description="Preferred bitmap strike size in pixels per em (None = largest)",
    )
    max_bit_depth: Literal[1, 2, 4, 8, 32] = Field(
        default=32,
        description="Skip bitmap strikes deeper than this",
    )
    prefer_color_bitmaps: bool = Field(
        default=False,
        description="Read CBLC/CBDT before EBLC/EBDT when a font has both",
    )


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: LogLevel = Field(
        default=LogLevel.WARNING,
        description="Console log level",
    )
    file_log_level: LogLevel = Field(
        default=LogLevel.DEBUG,
        description="File log level (more verbose)",
    )


class GlyphProbeSettings(BaseModel):
    """Main application settings."""

    parser: ParserConfig = Field(default_factory=ParserConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> GlyphProbeSettings:
    """Get default application settings."""
    return GlyphProbeSettings()
