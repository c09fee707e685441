"""Logging setup."""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure the root logger once per process."""

    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("scoreboard").setLevel(level)


__all__ = ["LOG_FORMAT", "configure_logging"]
