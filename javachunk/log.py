"""Set up the package logger with rich formatting on stderr."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler


def setup_logging(verbose: bool = False, name: str = "javachunk") -> logging.Logger:
    """Attach a RichHandler to the package logger.

    Args:
        verbose: Log DEBUG records instead of WARNING and above.
        name: Logger name.

    Returns:
        The configured logger.
    """
    handler = RichHandler(console=Console(stderr=True, soft_wrap=True), show_path=False, markup=False)
    logger = logging.getLogger(name)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    # Clear existing handlers to prevent duplication
    logger.handlers.clear()
    logger.addHandler(handler)
    return logger
