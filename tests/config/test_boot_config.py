"""Tests for environment-driven boot configuration."""
from __future__ import annotations

import os

import pytest  # type: ignore[import-not-found]

from reader_boot import config


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "READER_BOOKS_DIR",
        "READER_BOOK_EXTENSION",
        "READER_MARKER_SUFFIX",
        "READER_PROCESSOR_CMD",
        "READER_SERVER_CMD",
        "READER_SERVER_HOST",
        "READER_SERVER_PORT",
        "PORT",
        "READER_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults_match_reader_image():
    assert config.books_dir() == os.path.abspath("/app")
    assert config.artifact_extension() == ".epub"
    assert config.marker_suffix() == "_data"
    assert config.processor_command() == ["uv", "run", "reader3.py"]
    assert config.server_command() == ["uv", "run", "server.py"]
    assert config.server_host() == "0.0.0.0"
    assert config.server_port() == 8123
    assert config.log_level_name() == "INFO"


def test_overrides(monkeypatch, tmp_path):
    monkeypatch.setenv("READER_BOOKS_DIR", str(tmp_path))
    monkeypatch.setenv("READER_BOOK_EXTENSION", "kepub")
    monkeypatch.setenv("READER_PROCESSOR_CMD", "python reader3.py --quiet")
    monkeypatch.setenv("READER_LOG_LEVEL", "debug")

    assert config.books_dir() == str(tmp_path)
    assert config.artifact_extension() == ".kepub"
    assert config.processor_command() == ["python", "reader3.py", "--quiet"]
    assert config.log_level_name() == "DEBUG"


def test_blank_values_fall_back_to_defaults(monkeypatch):
    monkeypatch.setenv("READER_MARKER_SUFFIX", "   ")
    assert config.marker_suffix() == "_data"


def test_port_falls_back_to_generic_port_then_default(monkeypatch):
    monkeypatch.setenv("PORT", "9000")
    assert config.server_port() == 9000

    monkeypatch.setenv("READER_SERVER_PORT", "not-a-port")
    assert config.server_port() == 8123


@pytest.mark.parametrize(
    "host,expected",
    [("0.0.0.0", False), ("127.0.0.1", True), ("localhost", True), ("::1", True), ("reader", False)],
)
def test_server_binds_loopback(monkeypatch, host, expected):
    monkeypatch.setenv("READER_SERVER_HOST", host)
    assert config.server_binds_loopback() is expected


def test_env_bool(monkeypatch):
    monkeypatch.setenv("READER_FLAG", "Yes")
    assert config.env_bool("READER_FLAG") is True
    monkeypatch.setenv("READER_FLAG", "0")
    assert config.env_bool("READER_FLAG", default=True) is False
    monkeypatch.delenv("READER_FLAG")
    assert config.env_bool("READER_FLAG", default=True) is True


def test_summarize_runtime_config_keys():
    summary = config.summarize_runtime_config()
    assert set(summary) == {
        "books_dir",
        "extension",
        "marker_suffix",
        "processor",
        "server",
        "server_host",
        "server_port",
        "log_level",
    }
