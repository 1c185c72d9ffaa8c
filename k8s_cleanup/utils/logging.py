"""Logging configuration."""

from __future__ import annotations

import logging
import sys

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
VERBOSE_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s [%(threadName)s] %(filename)s:%(lineno)d: %(message)s"


def setup_logging(level: str = "INFO", verbose: bool = False) -> None:
    """Configure the root logger once for the process.

    Args:
        level: Log level name
        verbose: Include thread and source location in each record
    """
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=VERBOSE_LOG_FORMAT if verbose else LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )

    # kubernetes client and urllib3 are chatty at DEBUG
    for name in ("kubernetes", "urllib3"):
        logging.getLogger(name).setLevel(logging.WARNING)
