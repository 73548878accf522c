"""Logging setup shared by the API server and the CLI."""

from __future__ import annotations

import logging

_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str | int = "INFO") -> None:
    """Configure the root logger with the standard format.

    Safe to call more than once; ``basicConfig`` is a no-op when handlers
    are already installed, so only the level is refreshed.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=_FORMAT)
    logging.getLogger().setLevel(level)
    # httpx logs every request at INFO; keep it quiet unless debugging.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
