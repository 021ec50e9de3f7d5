"""Service exports."""

from .library_scan import (
    BookArtifact,
    find_books,
    find_orphan_markers,
    is_processed,
    marker_path_for,
    scan_library,
)
from .book_processing import (
    BookProcessor,
    ProcessingError,
    ProcessingReport,
    SubprocessProcessor,
    process_pending,
)
from .handoff import (
    ExecHandoff,
    HandoffError,
    ServerHandoff,
    SupervisedHandoff,
    default_handoff,
)

__all__ = [
    "BookArtifact",
    "find_books",
    "find_orphan_markers",
    "is_processed",
    "marker_path_for",
    "scan_library",
    "BookProcessor",
    "ProcessingError",
    "ProcessingReport",
    "SubprocessProcessor",
    "process_pending",
    "ExecHandoff",
    "HandoffError",
    "ServerHandoff",
    "SupervisedHandoff",
    "default_handoff",
]
