"""Logging configuration for fibertopo."""

import logging
import sys


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance with the specified name.

    Args:
        name: Logger name, typically __name__ from calling module.

    Returns:
        Logger attached to the ``fibertopo`` hierarchy when ``name`` lives
        under the package.
    """
    return logging.getLogger(name)


def set_global_log_level(level: int) -> None:
    """Set the logging level for all fibertopo loggers.

    Configures the root handler once with a compact format and applies
    ``level`` to the ``fibertopo`` package logger so that child loggers
    inherit it.

    Args:
        level: Logging level (e.g., logging.DEBUG, logging.INFO).
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
        force=True,
    )

    package_logger = logging.getLogger("fibertopo")
    package_logger.setLevel(level)
