"""Logging utilities for stream2drive modules."""

import logging


def get_logger(name: str) -> logging.Logger:
    """Get a logger that inherits its handlers from the root logger.

    Loggers obtained here work with basicConfig() (or the CLI's rich
    handler) without any stream2drive specific setup:
    - They propagate to the root logger
    - They default to WARNING only while the root logger has no handlers

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger
