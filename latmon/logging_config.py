"""Logging configuration for latmon."""

import logging
import os
import sys

LOG_LEVELS = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def resolve_log_level(name: str | None) -> int:
    """Map a level name to a logging constant, INFO for unknown names."""
    return LOG_LEVELS.get((name or "INFO").strip().upper(), logging.INFO)


def configure_logging() -> None:
    """Configure application-wide logging.

    Respects LATMON_LOG_LEVEL environment variable (default: INFO).
    Logs to stderr with timestamp, module name, level and message.

    Examples:
        # Per-probe detail for troubleshooting
        $ LATMON_LOG_LEVEL=DEBUG python -m latmon

        # Quiet mode
        $ LATMON_LOG_LEVEL=WARNING python -m latmon
    """
    log_level = resolve_log_level(os.environ.get("LATMON_LOG_LEVEL"))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
        force=True,  # Override any existing configuration
    )

    logger = logging.getLogger(__name__)
    logger.info("Logging configured: level=%s", logging.getLevelName(log_level))
