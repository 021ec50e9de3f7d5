"""Tests for the shared boot logger hierarchy."""
from __future__ import annotations

import logging
from typing import List

import pytest  # type: ignore[import-not-found]

import reader_boot
from reader_boot import config
from reader_boot.utils import logging as boot_logging


class ListHandler(logging.Handler):
    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.records: List[logging.LogRecord] = []

    def emit(self, record):  # pragma: no cover - simple recorder
        self.records.append(record)


@pytest.fixture
def recorder():
    root = boot_logging.get_logger()
    handler = ListHandler()
    previous = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)
    yield handler
    root.removeHandler(handler)
    root.setLevel(previous)


def test_module_loggers_share_the_root_handler(recorder):
    root = boot_logging.get_logger()
    child = boot_logging.get_logger("reader_boot.handoff")

    child.info("exec %s", "server.py")

    assert child.handlers == []
    assert child.propagate is True
    assert recorder in root.handlers
    assert [r.getMessage() for r in recorder.records] == ["exec server.py"]
    assert recorder.records[0].name == "reader_boot.handoff"


def test_foreign_names_are_rerooted(recorder):
    log = boot_logging.get_logger("diagnostics")

    log.warning("orphan marker")

    assert log.name == "reader_boot.diagnostics"
    assert recorder.records[-1].getMessage() == "orphan marker"


def test_root_does_not_propagate_to_global_logging():
    assert boot_logging.get_logger().propagate is False
    assert boot_logging.get_logger() is logging.getLogger(boot_logging.ROOT_NAME)


def test_flush_handlers_flushes_root_stream(monkeypatch):
    flushed = []
    root = boot_logging.get_logger()
    for handler in root.handlers:
        monkeypatch.setattr(handler, "flush", lambda h=handler: flushed.append(h))

    boot_logging.flush_handlers()

    assert flushed == list(root.handlers)


def test_package_version_matches_metadata():
    assert reader_boot.__version__ == config.metadata()["version"]
