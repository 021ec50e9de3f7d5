"""Utility helpers."""
from .logging import get_logger, flush_handlers

__all__ = [
    "get_logger",
    "flush_handlers",
]
