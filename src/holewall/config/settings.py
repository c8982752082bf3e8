"""Configuration settings for Holewall."""

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field


class OracleBackend(str, Enum):
    """Hole containment oracle implementation."""

    QUAD_TREE = "quad_tree"
    BLOOM = "bloom"
    EXACT = "exact"


class QuadTreeConfig(BaseModel):
    """Configuration for the quad tree oracle."""

    field_margin: int = Field(
        default=2,
        ge=0,
        le=64,
        description="Lattice units added around the hole bounding box at the root",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        le=4,
        description="Threads building the root quadrants (None = serial)",
    )


class BloomConfig(BaseModel):
    """Configuration for the bloom filter oracle.

    Construction enumerates every lattice point pair of the hole bounding
    square, so it is only viable for small holes.
    """

    false_positive_rate: float = Field(
        default=0.01,
        gt=0.0,
        lt=1.0,
        description="Target probability that a valid edge hits all probed bits",
    )
    max_workers: int | None = Field(
        default=None,
        ge=1,
        description="Worker threads enumerating point pairs (None = auto)",
    )
    seed: int = Field(
        default=0,
        ge=0,
        description="Base seed for the independent hash functions",
    )
    max_points: int = Field(
        default=4096,
        ge=1,
        description="Refuse to build when the bounding square holds more lattice points",
    )


class OracleConfig(BaseModel):
    """Oracle selection and backend settings."""

    backend: OracleBackend = Field(
        default=OracleBackend.QUAD_TREE,
        description="Oracle implementation to build",
    )
    quad_tree: QuadTreeConfig = Field(default_factory=QuadTreeConfig)
    bloom: BloomConfig = Field(default_factory=BloomConfig)


class LoggingConfig(BaseModel):
    """Logging configuration."""

    log_file: Path | None = Field(
        default=None,
        description="Path to log file",
    )
    log_level: str = Field(
        default="WARNING",
        description="Console log level",
    )
    file_log_level: str = Field(
        default="DEBUG",
        description="File log level (more verbose)",
    )


class HolewallSettings(BaseModel):
    """Main application settings."""

    oracle: OracleConfig = Field(default_factory=OracleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def get_default_settings() -> HolewallSettings:
    """Get default application settings."""
    return HolewallSettings()
