"""Console logging for the command-line entry point."""

from __future__ import annotations

import logging
import os
from typing import Optional

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# third-party loggers kept at WARNING unless debugging
_CHATTY_LOGGERS = ("yt_dlp",)

_configured = False


def resolve_level(name: Optional[str]) -> int:
    """Map a level name such as ``"debug"`` to its number; unknown names mean INFO."""
    value = logging.getLevelName((name or "INFO").strip().upper())
    return value if isinstance(value, int) else logging.INFO


def setup_logging(level: Optional[str] = None) -> int:
    """Install the console handler on first use; later calls only change the level.

    ``level`` falls back to ``YT2MP3_LOG_LEVEL`` and then INFO. Returns the
    numeric level in effect.
    """
    global _configured
    log_level = resolve_level(level or os.getenv("YT2MP3_LOG_LEVEL"))
    if _configured:
        logging.getLogger().setLevel(log_level)
    else:
        logging.basicConfig(level=log_level, format=LOG_FORMAT)
        _configured = True

    chatty_level = logging.NOTSET if log_level <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)
    return log_level
