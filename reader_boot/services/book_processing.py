"""Run the external book processor for books without a completion marker.

Books are handled one at a time, in scan order. The first non-zero exit
code stops the run: later books are left untouched and the caller must not
start the server.
"""
from __future__ import annotations

import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Protocol, Sequence

from reader_boot.services.library_scan import is_processed
from reader_boot.utils.logging import get_logger

LOG = get_logger("reader_boot.book_processing")

COMMAND_NOT_EXECUTABLE = 126
COMMAND_NOT_FOUND = 127


class ProcessingError(Exception):
    """The processor exited non-zero for a book."""

    def __init__(self, book: Path, command: Sequence[str], returncode: int):
        self.book = book
        self.command = list(command)
        self.returncode = returncode
        super().__init__(
            f"processor exited with code {returncode} for {book}: {' '.join(self.command)}"
        )


class BookProcessor(Protocol):
    def process(self, book: Path) -> int:
        ...


class SubprocessProcessor:
    """Runs ``command + [book]`` and waits for it to finish.

    Output is inherited so the processor writes straight to the container log.
    """

    def __init__(self, command: Sequence[str]):
        if not command:
            raise ValueError("processor command must not be empty")
        self.command = list(command)

    def describe(self, book: Path) -> List[str]:
        return [*self.command, str(book)]

    def process(self, book: Path) -> int:
        argv = self.describe(book)
        try:
            completed = subprocess.run(argv, check=False)
        except FileNotFoundError:
            LOG.error("Processor executable not found: %s", argv[0])
            return COMMAND_NOT_FOUND
        except OSError as exc:
            # Not executable, bad interpreter line, etc.
            LOG.error("Processor cannot be executed: %s (%s)", argv[0], exc)
            return COMMAND_NOT_EXECUTABLE
        return completed.returncode


@dataclass
class ProcessingReport:
    processed: List[Path] = field(default_factory=list)
    skipped: List[Path] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.processed) + len(self.skipped)


def _describe(processor: BookProcessor, book: Path) -> List[str]:
    describe = getattr(processor, "describe", None)
    if callable(describe):
        return list(describe(book))
    return [type(processor).__name__, str(book)]


def process_pending(
    books: Iterable[Path],
    processor: BookProcessor,
    suffix: Optional[str] = None,
    extension: Optional[str] = None,
) -> ProcessingReport:
    """Process every book lacking a marker; raise ProcessingError on first failure."""
    report = ProcessingReport()
    for book in books:
        if is_processed(book, suffix, extension):
            LOG.info("Book already processed: %s", book)
            report.skipped.append(book)
            continue
        LOG.info("Processing book: %s", book)
        returncode = processor.process(book)
        if returncode != 0:
            command = _describe(processor, book)
            LOG.error("Processing failed (exit %s): %s", returncode, " ".join(command))
            raise ProcessingError(book, command, returncode)
        report.processed.append(book)
    return report


__all__ = [
    "BookProcessor",
    "SubprocessProcessor",
    "ProcessingError",
    "ProcessingReport",
    "process_pending",
    "COMMAND_NOT_EXECUTABLE",
    "COMMAND_NOT_FOUND",
]
