"""Logging setup for command-line entry points."""

import logging

from animus.core.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging with the standard Animus format."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )
