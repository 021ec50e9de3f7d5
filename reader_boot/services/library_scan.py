"""Book discovery and completion markers.

A book ``<name>.epub`` counts as processed once a sibling directory
``<name>_data`` exists. Only existence-as-directory is checked: marker
contents and age are never inspected, so an empty or half-written marker is
treated the same as a complete one.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Union

from reader_boot import config as boot_config
from reader_boot.utils.logging import get_logger

LOG = get_logger("reader_boot.library_scan")

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class BookArtifact:
    path: Path
    stem: str
    marker_path: Path

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def processed(self) -> bool:
        return self.marker_path.is_dir()


def _extension(extension: Optional[str]) -> str:
    return extension if extension is not None else boot_config.artifact_extension()


def _suffix(suffix: Optional[str]) -> str:
    return suffix if suffix is not None else boot_config.marker_suffix()


def _hidden(name: str) -> bool:
    # Shell globs never match a leading dot (e.g. macOS "._book.epub" sidecars).
    return name.startswith(".")


def book_stem(book: PathLike, extension: Optional[str] = None) -> str:
    """Base name of ``book`` with the recognized extension removed."""
    name = Path(book).name
    ext = _extension(extension)
    if ext and name.endswith(ext) and len(name) > len(ext):
        return name[: -len(ext)]
    return name


def find_books(root: PathLike, extension: Optional[str] = None) -> List[Path]:
    """Return visible regular files directly under ``root`` ending in ``extension``.

    Sorted by file name. A missing root or zero matches yields an empty list.
    """
    ext = _extension(extension)
    base = Path(root)
    if not base.is_dir():
        LOG.debug("Books directory %s missing or not a directory; nothing to scan", base)
        return []
    books: List[Path] = []
    with os.scandir(base) as entries:
        for entry in entries:
            if not entry.name.endswith(ext) or len(entry.name) <= len(ext):
                continue
            if _hidden(entry.name):
                LOG.debug("Skipping hidden file %s", entry.path)
                continue
            if not entry.is_file():
                LOG.debug("Skipping %s: not a regular file", entry.path)
                continue
            books.append(base / entry.name)
    books.sort(key=lambda p: p.name)
    LOG.debug("Found %d book(s) in %s", len(books), base)
    return books


def marker_path_for(book: PathLike, suffix: Optional[str] = None, extension: Optional[str] = None) -> Path:
    path = Path(book)
    return path.parent / f"{book_stem(path, extension)}{_suffix(suffix)}"


def is_processed(book: PathLike, suffix: Optional[str] = None, extension: Optional[str] = None) -> bool:
    """True iff the book's completion marker exists as a directory.

    A regular file with the marker's name does not count.
    """
    return marker_path_for(book, suffix, extension).is_dir()


def scan_library(
    root: PathLike,
    extension: Optional[str] = None,
    suffix: Optional[str] = None,
) -> List[BookArtifact]:
    return [
        BookArtifact(
            path=book,
            stem=book_stem(book, extension),
            marker_path=marker_path_for(book, suffix, extension),
        )
        for book in find_books(root, extension)
    ]


def find_orphan_markers(
    root: PathLike,
    extension: Optional[str] = None,
    suffix: Optional[str] = None,
) -> List[Path]:
    """Marker directories whose book file is gone (stale output)."""
    ext = _extension(extension)
    sfx = _suffix(suffix)
    base = Path(root)
    if not base.is_dir() or not sfx:
        return []
    orphans: List[Path] = []
    for candidate in sorted(base.iterdir(), key=lambda p: p.name):
        if _hidden(candidate.name) or not candidate.name.endswith(sfx) or not candidate.is_dir():
            continue
        stem = candidate.name[: -len(sfx)]
        if not stem:
            continue
        if not (base / f"{stem}{ext}").is_file():
            orphans.append(candidate)
    return orphans


__all__ = [
    "BookArtifact",
    "book_stem",
    "find_books",
    "marker_path_for",
    "is_processed",
    "scan_library",
    "find_orphan_markers",
]
