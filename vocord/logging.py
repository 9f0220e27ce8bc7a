"""
vocord.logging - Centralized logging configuration.

All modules log through the "vocord" logger. The CLI calls
configure_logging() once; library callers keep their own setup.
"""

from __future__ import annotations

import logging

logger = logging.getLogger("vocord")

NOISY_LOGGERS = ("httpx", "httpcore")


def configure_logging(verbose: bool = False) -> None:
    """Configure logging for the vocord package.

    Args:
        verbose: If True, enable DEBUG level logging (including HTTP
            traffic); otherwise WARNING level
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(levelname)s: %(message)s",
    )
    logger.setLevel(level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(level)
