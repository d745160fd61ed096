"""
Logging configuration.

Configures the loguru logger with a stderr sink and an optional
rotating file sink.
"""

import sys

from loguru import logger


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    rotation: str = "1 day",
    retention: str = "7 days",
) -> None:
    """
    Configure logger sinks.

    Args:
        level: Minimum level for all sinks
        log_file: Optional path of a rotating log file
        rotation: File rotation policy
        retention: File retention policy
    """
    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation=rotation,
            retention=retention,
            level=level,
            encoding="utf-8",
        )

    logger.debug("Logging configured", extra={"level": level, "log_file": log_file})
