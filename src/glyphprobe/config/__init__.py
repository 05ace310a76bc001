"""Configuration management for glyphprobe.

This module provides configuration management using Pydantic models.
Configuration can be provided via CLI arguments or defaults.

Key classes:
- ParserConfig: Font parsing and lookup settings
- LoggingConfig: Logging settings
- LogLevel: Accepted logging level names
- GlyphProbeSettings: Main application settings
"""

from glyphprobe.config.settings import (
    GlyphProbeSettings,
    LoggingConfig,
    LogLevel,
    ParserConfig,
    get_default_settings,
)

__all__ = [
    "GlyphProbeSettings",
    "LoggingConfig",
    "LogLevel",
    "ParserConfig",
    "get_default_settings",
]
