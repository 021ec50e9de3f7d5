#!/usr/bin/env python3
"""
diagnose_library.py

Purpose
-------
Actionable diagnostics for the reader's books volume. Explains why a container
keeps re-processing books on every start, or fails before the server comes up.

What It Checks
--------------
1. Resolves the books directory (argument, READER_BOOKS_DIR, or /app).
2. For the directory:
   - Existence, type (file/dir/symlink)
   - Ownership (uid/gid -> names if resolvable)
   - Mode (octal), read/write/execute access for current user
   - Ability to create & remove a temporary file (the processor must be able
     to create ``<name>_data`` directories here)
3. For each ``*.epub`` book:
   - Marker path and state: ``directory`` (processed), ``missing`` (pending),
     ``file`` (a regular file shadows the marker; the book is re-processed on
     every start)
4. Orphan markers: ``<name>_data`` directories without their book.
5. Produces structured JSON and (optionally) friendly text.

Exit Codes
----------
0 - Directory usable and no shadowed markers
1 - Directory missing / not writable, or one or more markers shadowed by files
2 - Interrupted
99 - Unhandled exception

Usage
-----
  python -m entrypoint.diagnose_library [--books-dir PATH] [--json] [--verbose]

Notes
-----
- Does not mutate anything; purely diagnostic.
- A missing books directory is flagged but is not an error for the boot step
  itself (it simply finds no books).
"""

from __future__ import annotations

import argparse
import json
import os
import stat
import sys
import tempfile
import time
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from reader_boot import config as boot_config
from reader_boot.services.library_scan import find_orphan_markers, scan_library

try:
    import grp
    import pwd
except ImportError:  # pragma: no cover - Windows
    grp = None  # type: ignore[assignment]
    pwd = None  # type: ignore[assignment]

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def resolve_dir(cli_value: Optional[str]) -> str:
    if cli_value:
        return os.path.abspath(cli_value)
    return boot_config.books_dir()


def uid_name(uid: int) -> str:
    if pwd is None:
        return "?"
    try:
        return pwd.getpwuid(uid).pw_name
    except KeyError:
        return "?"


def gid_name(gid: int) -> str:
    if grp is None:
        return "?"
    try:
        return grp.getgrgid(gid).gr_name
    except KeyError:
        return "?"


def mode_octal(st_mode: int) -> str:
    return oct(st_mode & 0o777)


def write_test_directory(path: str) -> Dict[str, Any]:
    result: Dict[str, Any] = {
        "can_create_file": False,
        "can_unlink_file": False,
        "error": None,
    }
    if not os.path.isdir(path):
        result["error"] = "not_a_directory"
        return result
    try:
        fd, tmp_path = tempfile.mkstemp(prefix=".perm_test_", dir=path)
        os.close(fd)
        result["can_create_file"] = True
        try:
            os.unlink(tmp_path)
            result["can_unlink_file"] = True
        except OSError as exc_unlink:
            result["error"] = f"unlink_failed: {exc_unlink}"
    except OSError as exc:
        result["error"] = f"create_failed: {exc}"
    return result


def stat_dir(path: str) -> Dict[str, Any]:
    info: Dict[str, Any] = {
        "path": path,
        "exists": os.path.exists(path),
        "is_dir": False,
        "is_symlink": os.path.islink(path),
        "mode_octal": None,
        "uid": None,
        "gid": None,
        "user": None,
        "group": None,
        "access": {"read": False, "write": False, "execute": False},
        "write_test": None,
    }
    if not info["exists"]:
        return info
    st = os.stat(path)
    info["mode_octal"] = mode_octal(st.st_mode)
    info["uid"] = st.st_uid
    info["gid"] = st.st_gid
    info["user"] = uid_name(st.st_uid)
    info["group"] = gid_name(st.st_gid)
    info["is_dir"] = stat.S_ISDIR(st.st_mode)
    info["access"]["read"] = os.access(path, os.R_OK)
    info["access"]["write"] = os.access(path, os.W_OK)
    info["access"]["execute"] = os.access(path, os.X_OK)
    if info["is_dir"]:
        info["write_test"] = write_test_directory(path)
    return info


def marker_state(marker: Path) -> str:
    if marker.is_dir():
        return "directory"
    if marker.exists():
        return "file"
    return "missing"


def directory_issues(info: Dict[str, Any]) -> List[str]:
    issues: List[str] = []
    if not info["exists"]:
        issues.append("missing")
        return issues
    if not info["is_dir"]:
        issues.append("not_a_directory")
        return issues
    if not info["access"]["read"]:
        issues.append("directory_not_readable")
    wt = info.get("write_test") or {}
    if not wt.get("can_create_file"):
        issues.append("directory_create_file_failed")
    return issues


def collect(books_dir: str) -> Dict[str, Any]:
    dir_info = stat_dir(books_dir)
    books: List[Dict[str, Any]] = []
    for book in scan_library(books_dir):
        state = marker_state(book.marker_path)
        books.append(
            {
                "book": str(book.path),
                "marker": str(book.marker_path),
                "marker_state": state,
                "pending": state != "directory",
            }
        )
    orphans = [str(p) for p in find_orphan_markers(books_dir)]
    fatal: List[Dict[str, Any]] = []
    dir_problems = directory_issues(dir_info)
    if dir_problems:
        fatal.append({"path": books_dir, "issues": dir_problems})
    for entry in books:
        if entry["marker_state"] == "file":
            fatal.append({"path": entry["marker"], "issues": ["marker_shadowed_by_file"]})
    return {
        "timestamp": int(time.time()),
        "books_dir": books_dir,
        "directory": dir_info,
        "books": books,
        "pending": sum(1 for b in books if b["pending"]),
        "orphans": orphans,
        "fatal_issues": fatal,
        "all_ok": not fatal,
        "config": boot_config.summarize_runtime_config(),
        "env": {
            "READER_BOOKS_DIR": os.getenv("READER_BOOKS_DIR"),
            "UID": os.getuid() if hasattr(os, "getuid") else None,
            "GID": os.getgid() if hasattr(os, "getgid") else None,
        },
    }


def build_human_summary(summary: Dict[str, Any]) -> str:
    d = summary["directory"]
    lines: List[str] = []
    lines.append("")
    lines.append("==== Library Diagnostics ====")
    lines.append(f"\nBooks dir: {summary['books_dir']}")
    lines.append(f"  Exists: {d['exists']}  Dir: {d['is_dir']}  Symlink: {d['is_symlink']}")
    if d["exists"]:
        lines.append(f"  Owner: {d['user']}({d['uid']})  Group: {d['group']}({d['gid']})  Mode: {d['mode_octal']}")
        lines.append(
            f"  Access (r/w/x): {int(d['access']['read'])}/{int(d['access']['write'])}/{int(d['access']['execute'])}"
        )
        wt = d.get("write_test") or {}
        if d["is_dir"]:
            lines.append(f"  Dir write test: create={wt.get('can_create_file')} unlink={wt.get('can_unlink_file')} err={wt.get('error')}")
    lines.append(f"\nBooks: {len(summary['books'])}  pending: {summary['pending']}")
    for entry in summary["books"]:
        lines.append(f"  - {entry['book']}: marker {entry['marker_state']}")
    if summary["orphans"]:
        lines.append("\nOrphan markers (book file missing):")
        for orphan in summary["orphans"]:
            lines.append(f"  - {orphan}")
    lines.append("\nOverall assessment:")
    if summary["all_ok"]:
        lines.append("  OK: No blocking issues detected.")
    else:
        lines.append("  FAILING PATHS:")
        for item in summary["fatal_issues"]:
            lines.append(f"    - {item['path']}: {', '.join(item['issues'])}")
        lines.append("")
        lines.append("Suggested remediation (common cases):")
        lines.append("  - Ensure the books volume is not mounted read-only (remove ':ro').")
        lines.append("  - Align container user UID/GID with host directory ownership.")
        lines.append("  - Remove regular files named '<book>_data'; the processor creates that directory.")
    lines.append("")
    return "\n".join(lines)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def run(args: argparse.Namespace) -> int:
    summary = collect(resolve_dir(args.books_dir))
    if args.json:
        print(json.dumps(summary, indent=2, sort_keys=True))
    else:
        print(build_human_summary(summary))
        if args.verbose:
            print("Raw JSON:")
            print(json.dumps(summary, indent=2, sort_keys=True))
    return 0 if summary["all_ok"] else 1


def parse_args(argv: List[str]) -> argparse.Namespace:
    ap = argparse.ArgumentParser(description="Diagnose the reader books directory and processing markers.")
    ap.add_argument("--books-dir", help="Explicit books directory (overrides READER_BOOKS_DIR)")
    ap.add_argument("--json", action="store_true", help="Output JSON only")
    ap.add_argument("--verbose", action="store_true", help="Include raw JSON block in human output mode")
    return ap.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    try:
        args = parse_args(sys.argv[1:] if argv is None else argv)
        return run(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 2
    except Exception as exc:
        print(f"FATAL: Unhandled exception: {exc}", file=sys.stderr)
        traceback.print_exc()
        return 99


if __name__ == "__main__":
    sys.exit(main())
