"""Accessh logging configuration.

Accessh logs through the standard library ``logging`` package. Every module
owns a ``logger = logging.getLogger(__name__)``; this module only decides
where records go and at which level.

Local (single-session) mode always logs to a file: the full-screen UI owns
the terminal and any stray line on stderr would corrupt the frame.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from accessh.constants import DEFAULT_LOG_LEVEL, LOG_FORMAT

_HANDLER_MARKER = "_accessh_handler"


def resolve_level(level: Optional[str] = None) -> int:
    """Return the numeric level for an explicit override or `ACCESSH_LOG_LEVEL`."""
    name = (level or os.getenv("ACCESSH_LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    resolved = logging.getLevelName(name)
    if not isinstance(resolved, int):
        return logging.INFO
    return resolved


def setup_logging(level: Optional[str] = None, log_file: Optional[Path] = None) -> None:
    """Configure Accessh logging.

    Args:
        level: Optional override for `ACCESSH_LOG_LEVEL`.
        log_file: Write records to this file instead of stderr.
    """
    root = logging.getLogger("accessh")
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            root.removeHandler(handler)
            handler.close()

    handler: logging.Handler
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(log_file, encoding="utf-8")
    else:
        handler = logging.StreamHandler(sys.stderr)
    setattr(handler, _HANDLER_MARKER, True)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))

    root.addHandler(handler)
    root.setLevel(resolve_level(level))
    # asyncssh is chatty at INFO; keep its records but only warnings and up.
    logging.getLogger("asyncssh").setLevel(logging.WARNING)
