"""Boot logging helpers.

Every module logs under the ``reader_boot`` hierarchy. Only the root of that
hierarchy owns a handler; ``reader_boot.*`` loggers propagate to it, so the
boot step, the processor wrapper and the handoff share one stream (stderr,
the container log) and one level from `reader_boot.config.log_level_name()`.
Names outside the hierarchy are re-rooted under it.
"""
from __future__ import annotations

import logging
import sys
import threading
from typing import Optional

from reader_boot import config as boot_config

_LOCK = threading.Lock()
_ROOT: Optional[logging.Logger] = None
ROOT_NAME = "reader_boot"
LOG_FORMAT = "[reader-boot] %(asctime)s %(levelname)s %(name)s %(message)s"


def _root_logger() -> logging.Logger:
    global _ROOT
    if _ROOT is not None:
        return _ROOT
    with _LOCK:
        if _ROOT is not None:
            return _ROOT
        logger = logging.getLogger(ROOT_NAME)
        level = getattr(logging, boot_config.log_level_name(), logging.INFO)
        logger.setLevel(level)
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stderr)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)
        logger.propagate = False
        _ROOT = logger
        return logger


def get_logger(name: str = ROOT_NAME) -> logging.Logger:
    root = _root_logger()
    if name == ROOT_NAME:
        return root
    if not name.startswith(ROOT_NAME + "."):
        name = f"{ROOT_NAME}.{name}"
    return logging.getLogger(name)


def flush_handlers() -> None:
    """Flush the shared handler(s).

    Called right before the process image is replaced by the server; records
    still buffered at that point would be lost.
    """
    for handler in _root_logger().handlers:
        handler.flush()


__all__ = ["get_logger", "flush_handlers", "ROOT_NAME"]
