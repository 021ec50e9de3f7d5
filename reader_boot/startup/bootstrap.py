"""Boot sequence: scan books, process the pending ones, hand off to the server.

Runs once per container start and never revisits a phase::

    SCANNING -> CHECKING -> [PROCESSING] -> ... -> HANDOFF -> TERMINAL

Any failure moves straight to ABORTED with a non-zero exit code; the
server is only started once every book is known to be processed.
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Sequence

from reader_boot.services.book_processing import (
    BookProcessor,
    ProcessingError,
    ProcessingReport,
    process_pending,
)
from reader_boot.services.handoff import HandoffError, ServerHandoff
from reader_boot.services.library_scan import PathLike, find_books
from reader_boot.utils.logging import get_logger

LOG = get_logger("reader_boot.startup")

HANDOFF_FAILED = 1


def _exit_status(returncode: int) -> int:
    # subprocess reports death-by-signal as -N; shells report 128+N.
    if returncode < 0:
        return 128 - returncode
    return returncode or HANDOFF_FAILED


class BootPhase(enum.Enum):
    SCANNING = "scanning"
    CHECKING = "checking"
    PROCESSING = "processing"
    HANDOFF = "handoff"
    TERMINAL = "terminal"
    ABORTED = "aborted"


@dataclass
class BootResult:
    phase: BootPhase
    exit_code: int
    books: List[Path] = field(default_factory=list)
    report: ProcessingReport = field(default_factory=ProcessingReport)
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.phase is BootPhase.TERMINAL and self.exit_code == 0


def run_startup(
    root: PathLike,
    server_argv: Sequence[str],
    processor: BookProcessor,
    handoff: ServerHandoff,
    extension: Optional[str] = None,
    suffix: Optional[str] = None,
) -> BootResult:
    """Run the boot sequence once and report where it ended.

    With an exec-based handoff a successful run does not return: the server
    replaces this process.
    """
    LOG.debug("phase=%s root=%s", BootPhase.SCANNING.value, root)
    books = find_books(root, extension)
    result = BootResult(phase=BootPhase.CHECKING, exit_code=0, books=books)
    LOG.debug("phase=%s books=%d", result.phase.value, len(books))

    try:
        result.report = process_pending(books, processor, suffix, extension)
    except ProcessingError as exc:
        result.phase = BootPhase.ABORTED
        result.exit_code = _exit_status(exc.returncode)
        result.error = exc
        LOG.error("Startup aborted: %s", exc)
        return result

    if result.report.processed:
        LOG.info(
            "Processed %d book(s), %d already present",
            len(result.report.processed),
            len(result.report.skipped),
        )

    result.phase = BootPhase.HANDOFF
    LOG.info("Starting web server...")
    try:
        result.exit_code = handoff.handoff(server_argv)
    except HandoffError as exc:
        result.phase = BootPhase.ABORTED
        result.exit_code = HANDOFF_FAILED
        result.error = exc
        LOG.error("Server handoff failed: %s", exc)
        return result
    result.phase = BootPhase.TERMINAL
    return result


__all__ = ["BootPhase", "BootResult", "run_startup", "HANDOFF_FAILED"]
