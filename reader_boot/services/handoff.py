"""Hand process control to the long-running server.

On POSIX the boot process is replaced with ``os.execvp`` so the server keeps
the container's primary PID, receives signals directly and its exit status
becomes the container's. Where ``exec`` does not replace the process image
(Windows), the server runs as a supervised child: termination signals are
forwarded to it and its exit code is returned.
"""
from __future__ import annotations

import os
import signal
import subprocess
import sys
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from reader_boot.utils.logging import flush_handlers, get_logger

LOG = get_logger("reader_boot.handoff")


class HandoffError(Exception):
    """The server command is empty or cannot be launched."""


class ServerHandoff(Protocol):
    def handoff(self, argv: Sequence[str]) -> int:
        ...


def _checked_argv(argv: Sequence[str]) -> List[str]:
    args = [str(a) for a in argv]
    if not args:
        raise HandoffError("no server command supplied")
    return args


class ExecHandoff:
    """Replace the current process with the server. Does not return on success."""

    def __init__(self, execvp: Optional[Callable[[str, List[str]], Any]] = None):
        self._execvp = execvp or os.execvp

    def handoff(self, argv: Sequence[str]) -> int:
        args = _checked_argv(argv)
        LOG.info("exec %s", " ".join(args))
        flush_handlers()
        sys.stdout.flush()
        sys.stderr.flush()
        try:
            self._execvp(args[0], args)
        except OSError as exc:
            raise HandoffError(f"cannot exec {args[0]}: {exc}") from exc
        # Only reachable with an injected execvp that returns.
        return 0


def _forwarded_signals() -> List[int]:
    names = ("SIGINT", "SIGTERM", "SIGBREAK", "SIGHUP")
    return [getattr(signal, n) for n in names if hasattr(signal, n)]


class SupervisedHandoff:
    """Run the server as a child, forward termination signals, return its exit code."""

    def __init__(self, popen: Optional[Callable[..., Any]] = None):
        self._popen = popen or subprocess.Popen

    def handoff(self, argv: Sequence[str]) -> int:
        args = _checked_argv(argv)
        LOG.info("starting supervised server %s", " ".join(args))
        flush_handlers()
        try:
            child = self._popen(args)
        except OSError as exc:
            raise HandoffError(f"cannot start {args[0]}: {exc}") from exc

        def _forward(signum, _frame):
            LOG.info("forwarding signal %s to server pid %s", signum, child.pid)
            try:
                child.send_signal(signum)
            except ProcessLookupError:
                pass

        previous: Dict[int, Any] = {}
        for signum in _forwarded_signals():
            try:
                previous[signum] = signal.signal(signum, _forward)
            except (OSError, ValueError):
                # Not installable here (e.g. not the main thread).
                continue
        try:
            return child.wait()
        finally:
            for signum, handler in previous.items():
                signal.signal(signum, handler)


def default_handoff() -> ServerHandoff:
    if os.name == "posix":
        return ExecHandoff()
    return SupervisedHandoff()


__all__ = [
    "HandoffError",
    "ServerHandoff",
    "ExecHandoff",
    "SupervisedHandoff",
    "default_handoff",
]
