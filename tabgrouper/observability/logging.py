"""Logger setup shared by every TabGrouper module."""

from __future__ import annotations

import logging
from typing import Final

from tabgrouper.config import LOG_LEVEL

_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
_configured: bool = False


def _configure_root() -> None:
    global _configured
    if _configured:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    root = logging.getLogger()
    root.addHandler(handler)
    root.setLevel(getattr(logging, LOG_LEVEL.upper(), logging.INFO))

    # requests logs every connection at DEBUG, including Gemini URLs with ?key=
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a module logger; the first call installs the stream handler."""
    _configure_root()
    return logging.getLogger(name)
