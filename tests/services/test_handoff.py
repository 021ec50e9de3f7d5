"""Tests for server handoff strategies."""
from __future__ import annotations

import signal

import pytest  # type: ignore[import-not-found]

from reader_boot.services import handoff as handoff_mod
from reader_boot.services.handoff import ExecHandoff, HandoffError, SupervisedHandoff


def test_exec_handoff_replaces_process_with_argv():
    calls = []

    def fake_execvp(file, args):
        calls.append((file, args))

    code = ExecHandoff(execvp=fake_execvp).handoff(["uv", "run", "server.py"])

    assert calls == [("uv", ["uv", "run", "server.py"])]
    assert code == 0


def test_exec_handoff_rejects_empty_argv():
    with pytest.raises(HandoffError):
        ExecHandoff(execvp=lambda *_a: None).handoff([])


def test_exec_handoff_wraps_missing_executable():
    def fake_execvp(file, args):
        raise FileNotFoundError(file)

    with pytest.raises(HandoffError, match="cannot exec"):
        ExecHandoff(execvp=fake_execvp).handoff(["missing-server"])


class FakeChild:
    pid = 4242

    def __init__(self, returncode: int, on_wait=None):
        self.returncode = returncode
        self.signals = []
        self._on_wait = on_wait

    def send_signal(self, signum):
        self.signals.append(signum)

    def wait(self):
        if self._on_wait:
            self._on_wait()
        return self.returncode


def test_supervised_handoff_returns_child_exit_code():
    child = FakeChild(returncode=7)
    seen = []

    def fake_popen(args):
        seen.append(args)
        return child

    assert SupervisedHandoff(popen=fake_popen).handoff(["server"]) == 7
    assert seen == [["server"]]


def test_supervised_handoff_forwards_sigterm_and_restores_handler():
    before = signal.getsignal(signal.SIGTERM)

    def deliver():
        handler = signal.getsignal(signal.SIGTERM)
        handler(signal.SIGTERM, None)

    child = FakeChild(returncode=143, on_wait=deliver)

    code = SupervisedHandoff(popen=lambda args: child).handoff(["server"])

    assert code == 143
    assert child.signals == [signal.SIGTERM]
    assert signal.getsignal(signal.SIGTERM) is before


def test_default_handoff_uses_exec_on_posix(monkeypatch):
    monkeypatch.setattr(handoff_mod.os, "name", "posix")
    assert isinstance(handoff_mod.default_handoff(), ExecHandoff)

    monkeypatch.setattr(handoff_mod.os, "name", "nt")
    assert isinstance(handoff_mod.default_handoff(), SupervisedHandoff)


@pytest.mark.parametrize(
    "error",
    [
        PermissionError(13, "Permission denied"),
        OSError(8, "Exec format error"),
    ],
)
def test_exec_handoff_wraps_any_os_error(error):
    def fake_execvp(file, args):
        raise error

    with pytest.raises(HandoffError, match="cannot exec server.sh"):
        ExecHandoff(execvp=fake_execvp).handoff(["server.sh"])


def test_supervised_handoff_wraps_spawn_failure():
    def fake_popen(args):
        raise OSError(8, "Exec format error")

    with pytest.raises(HandoffError, match="cannot start"):
        SupervisedHandoff(popen=fake_popen).handoff(["server.sh"])
