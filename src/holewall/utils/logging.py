"""Logging utilities for Holewall."""

import logging
from dataclasses import dataclass, field

import structlog

from holewall.config import LoggingConfig


@dataclass
class BuildStats:
    """Statistics from an oracle construction."""

    backend: str = ""
    node_counts: dict[str, int] = field(default_factory=dict)
    max_depth: int = 0
    bits_count: int = 0
    bits_set: int = 0
    hashes_count: int = 0
    invalid_edges: int = 0
    start_time: float | None = None
    end_time: float | None = None

    @property
    def duration_seconds(self) -> float:
        """Calculate construction duration."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return 0.0


HANDLER_PREFIX = "holewall."

_FILE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"


def _level(name: str) -> int:
    level = logging.getLevelName(name.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: {name}")
    return level


def _handler(
    handler: logging.Handler, name: str, level: str, fmt: str
) -> logging.Handler:
    handler.set_name(HANDLER_PREFIX + name)
    handler.setLevel(_level(level))
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    config: LoggingConfig | None = None, quiet: bool = False
) -> structlog.stdlib.BoundLogger:
    """Route oracle build events through stdlib handlers as JSON lines.

    Handlers installed by an earlier call are replaced, so the function can be
    called again with new settings (e.g. ``configure_logging(settings.logging)``).

    Args:
        config: Logging settings (defaults to ``LoggingConfig()``)
        quiet: If True, skip the console handler

    Returns:
        Logger bound to the ``holewall`` namespace

    Raises:
        ValueError: If a configured level name is unknown
    """
    config = config or LoggingConfig()

    handlers: list[logging.Handler] = []
    if config.log_file is not None:
        handlers.append(
            _handler(
                logging.FileHandler(config.log_file, encoding="utf-8"),
                "file",
                config.file_log_level,
                _FILE_FORMAT,
            )
        )
    if not quiet:
        handlers.append(
            _handler(logging.StreamHandler(), "console", config.log_level, "%(message)s")
        )

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if (existing.get_name() or "").startswith(HANDLER_PREFIX):
            root_logger.removeHandler(existing)
            existing.close()
    for handler in handlers:
        root_logger.addHandler(handler)
    if handlers:
        root_logger.setLevel(min(handler.level for handler in handlers))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # oracles fetch a fresh logger per build; reconfiguring must reach them
        cache_logger_on_first_use=False,
    )

    logger = structlog.get_logger("holewall")
    logger.debug(
        "Logging configured",
        log_file=str(config.log_file) if config.log_file else None,
        handlers=[handler.get_name() for handler in handlers],
    )
    return logger


class BuildLogger:
    """Logger for tracking oracle construction and statistics."""

    def __init__(self, logger: structlog.stdlib.BoundLogger, backend: str) -> None:
        self._logger = logger
        self._stats = BuildStats(backend=backend)

    def log_build_start(self, field_min: tuple[int, int], field_max: tuple[int, int]) -> None:
        """Log start of oracle construction."""
        self._logger.debug(
            "Oracle build started",
            backend=self._stats.backend,
            field_min=field_min,
            field_max=field_max,
        )

    def log_tree_complete(self, node_counts: dict[str, int], max_depth: int) -> None:
        """Log a finished quad tree."""
        self._stats.node_counts = dict(node_counts)
        self._stats.max_depth = max_depth
        self._logger.info(
            "Quad tree built",
            nodes=sum(node_counts.values()),
            max_depth=max_depth,
            duration_ms=round(self._stats.duration_seconds * 1000, 2),
            **{kind: count for kind, count in node_counts.items()},
        )

    def log_bloom_complete(
        self,
        bits_count: int,
        bits_set: int,
        hashes_count: int,
        invalid_edges: int,
    ) -> None:
        """Log a finished bloom filter."""
        self._stats.bits_count = bits_count
        self._stats.bits_set = bits_set
        self._stats.hashes_count = hashes_count
        self._stats.invalid_edges = invalid_edges
        self._logger.info(
            "Bloom filter built",
            bits=bits_count,
            bits_set=bits_set,
            hashes=hashes_count,
            invalid_edges=invalid_edges,
            duration_ms=round(self._stats.duration_seconds * 1000, 2),
        )

    def log_build_failed(self, error: Exception) -> None:
        """Log oracle construction error."""
        self._logger.error(
            "Oracle build failed",
            backend=self._stats.backend,
            error=str(error),
            error_type=type(error).__name__,
        )

    @property
    def stats(self) -> BuildStats:
        """Get current construction statistics."""
        return self._stats
