"""Boot configuration accessors.

Centralizes environment variable parsing & defaults. Values are read on
every call so container operators (and tests) can override them without
re-importing anything. Defaults mirror the reader image layout: books and
their ``_data`` directories live next to the code under ``/app``.
"""
from __future__ import annotations

import ipaddress
import os
import shlex
from functools import lru_cache
from typing import List

APP_NAME = "reader-boot"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "Idempotent EPUB build-on-boot entrypoint for the reader container"

DEFAULT_BOOKS_DIR = "/app"
DEFAULT_EXTENSION = ".epub"
DEFAULT_MARKER_SUFFIX = "_data"
DEFAULT_PROCESSOR_CMD = "uv run reader3.py"
DEFAULT_SERVER_CMD = "uv run server.py"
DEFAULT_SERVER_HOST = "0.0.0.0"
DEFAULT_SERVER_PORT = 8123
DEFAULT_LOG_LEVEL = "INFO"
_TRUE = {"1", "true", "yes", "on"}


def _raw_env(name: str, default: str | None = None) -> str | None:
    val = os.getenv(name)
    if val is None:
        return default
    val = val.strip()
    return val if val else default


def env_bool(name: str, default: bool = False) -> bool:
    raw = _raw_env(name)
    if raw is None:
        return default
    return raw.lower() in _TRUE


def books_dir() -> str:
    return os.path.abspath(_raw_env("READER_BOOKS_DIR", DEFAULT_BOOKS_DIR))  # type: ignore[arg-type]


def artifact_extension() -> str:
    raw = _raw_env("READER_BOOK_EXTENSION", DEFAULT_EXTENSION)  # type: ignore[assignment]
    return raw if raw.startswith(".") else f".{raw}"


def marker_suffix() -> str:
    return _raw_env("READER_MARKER_SUFFIX", DEFAULT_MARKER_SUFFIX)  # type: ignore[return-value]


def processor_command() -> List[str]:
    """Processor argv prefix; the book path is appended per invocation."""
    return shlex.split(_raw_env("READER_PROCESSOR_CMD", DEFAULT_PROCESSOR_CMD))  # type: ignore[arg-type]


def server_command() -> List[str]:
    """Fallback server argv when the container runtime supplies no CMD."""
    return shlex.split(_raw_env("READER_SERVER_CMD", DEFAULT_SERVER_CMD))  # type: ignore[arg-type]


def server_host() -> str:
    return _raw_env("READER_SERVER_HOST", DEFAULT_SERVER_HOST)  # type: ignore[return-value]


def server_port() -> int:
    # Prefer explicit READER_SERVER_PORT, else fall back to generic hosting provider PORT
    port_raw = _raw_env("READER_SERVER_PORT") or _raw_env("PORT")
    if port_raw is None:
        return DEFAULT_SERVER_PORT
    try:
        port = int(port_raw)
    except ValueError:
        port = 0
    if not 0 < port < 65536:
        # Imported lazily: the logging helper reads log_level_name() from here.
        from reader_boot.utils.logging import get_logger

        get_logger("reader_boot.config").warning(
            "Invalid port value '%s', falling back to %s", port_raw, DEFAULT_SERVER_PORT
        )
        return DEFAULT_SERVER_PORT
    return port


def server_binds_loopback() -> bool:
    """Whether the advertised server host is unreachable from outside the container."""
    host = server_host()
    if host.lower() == "localhost":
        return True
    try:
        return ipaddress.ip_address(host).is_loopback
    except ValueError:
        return False


def log_level_name() -> str:
    return _raw_env("READER_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper()  # type: ignore[union-attr]


@lru_cache(maxsize=1)
def metadata() -> dict:
    return {
        "name": APP_NAME,
        "version": APP_VERSION,
        "description": APP_DESCRIPTION,
    }


def summarize_runtime_config() -> dict:
    return {
        "books_dir": books_dir(),
        "extension": artifact_extension(),
        "marker_suffix": marker_suffix(),
        "processor": processor_command(),
        "server": server_command(),
        "server_host": server_host(),
        "server_port": server_port(),
        "log_level": log_level_name(),
    }


__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "APP_DESCRIPTION",
    "env_bool",
    "books_dir",
    "artifact_extension",
    "marker_suffix",
    "processor_command",
    "server_command",
    "server_host",
    "server_port",
    "server_binds_loopback",
    "log_level_name",
    "metadata",
    "summarize_runtime_config",
]
