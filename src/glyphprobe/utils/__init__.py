"""Utility functions for glyphprobe.

This module provides utility functions including:

- Logging setup and configuration
- Scan progress and statistics helpers
"""

from glyphprobe.utils.logging import (
    ScanLogger,
    ScanStats,
    configure_logging,
)

__all__ = [
    "ScanLogger",
    "ScanStats",
    "configure_logging",
]
