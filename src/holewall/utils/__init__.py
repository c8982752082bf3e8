"""Utility functions for holewall.

This module provides utility functions including:

- Logging setup and configuration
- Oracle construction statistics
"""

from holewall.utils.logging import (
    BuildLogger,
    BuildStats,
    configure_logging,
)

__all__ = [
    "BuildLogger",
    "BuildStats",
    "configure_logging",
]
