"""Logging utilities for teraboxpy modules."""

import logging

PACKAGE_LOGGER = 'teraboxpy'


def get_logger(name: str) -> logging.Logger:
    """Get a logger that automatically inherits from root logger.

    This ensures that loggers work with basicConfig() without needing
    explicit setup_logging() calls. The logger will:
    - Propagate to root logger (default behavior)
    - Only set a default level if root logger has no handlers

    Args:
        name: Logger name (e.g. 'teraboxpy.upload.session')

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.propagate = True

    # Only set default level if root logger has no handlers
    # (i.e., basicConfig hasn't been called yet)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logger.setLevel(logging.WARNING)

    return logger


def human_size(num_bytes: int) -> str:
    """Format a byte count the way ``numfmt --to=iec-i`` does (e.g. 1.5GiB)."""
    value = float(num_bytes)
    for unit in ('B', 'KiB', 'MiB', 'GiB', 'TiB'):
        if abs(value) < 1024 or unit == 'TiB':
            if unit == 'B':
                return f"{int(value)}B"
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}TiB"
