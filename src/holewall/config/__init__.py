"""Configuration management for holewall.

This module provides configuration management using Pydantic models.

Key classes:
- OracleConfig: Oracle backend selection
- QuadTreeConfig: Quad tree construction settings
- BloomConfig: Bloom filter sizing and construction settings
- LoggingConfig: Logging settings
- HolewallSettings: Main application settings
"""

from holewall.config.settings import (
    BloomConfig,
    HolewallSettings,
    LoggingConfig,
    OracleBackend,
    OracleConfig,
    QuadTreeConfig,
    get_default_settings,
)

__all__ = [
    "BloomConfig",
    "HolewallSettings",
    "LoggingConfig",
    "OracleBackend",
    "OracleConfig",
    "QuadTreeConfig",
    "get_default_settings",
]
