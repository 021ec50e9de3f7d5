#!/usr/bin/env python3
"""Container entrypoint for the reader image.

Responsibilities:
    1. Scan the books directory for ``*.epub`` files.
    2. Run the book processor (``uv run reader3.py <book>``) for every book
       without a ``<name>_data`` directory, one at a time.
    3. Replace this process with the server command supplied by the
       container runtime (the image CMD), e.g. ``uv run server.py``.

Usage
-----
  python -m entrypoint.boot [--books-dir DIR] [--processor CMD] [--dry-run] -- SERVER ARGV...

Image wiring::

  ENTRYPOINT ["python", "-m", "entrypoint.boot", "--"]
  CMD ["uv", "run", "server.py"]

Without a server argv the ``READER_SERVER_CMD`` setting is used.

Exit Codes
----------
N  - the failing processor's exit code (128+signal if it was killed)
1  - server command missing or not executable
2  - interrupted
99 - unhandled exception
otherwise the server's own exit code (the server replaces this process)
"""

from __future__ import annotations

import argparse
import shlex
import sys
import traceback
from typing import List, Optional, Sequence, Tuple

from reader_boot import config as boot_config
from reader_boot.services.book_processing import SubprocessProcessor
from reader_boot.services.handoff import default_handoff
from reader_boot.services.library_scan import scan_library
from reader_boot.startup.bootstrap import run_startup
from reader_boot.utils.logging import get_logger

LOG = get_logger("reader_boot.entrypoint")


def split_server_argv(argv: Sequence[str]) -> Tuple[List[str], List[str]]:
    """Split at the first ``--``: options before it, server argv after it."""
    args = list(argv)
    if "--" in args:
        idx = args.index("--")
        return args[:idx], args[idx + 1:]
    return args, []


def parse_args(argv: Sequence[str]) -> argparse.Namespace:
    own, server = split_server_argv(argv)
    ap = argparse.ArgumentParser(
        prog="python -m entrypoint.boot",
        description="Process pending EPUB books, then exec the reader server.",
    )
    ap.add_argument("--books-dir", help="Books directory (overrides READER_BOOKS_DIR)")
    ap.add_argument("--processor", help="Processor command prefix (overrides READER_PROCESSOR_CMD)")
    ap.add_argument("--dry-run", action="store_true", help="Report pending books without processing or starting the server")
    ap.add_argument("server", nargs="*", help="Server command line (normally passed after --)")
    args = ap.parse_args(own)
    args.server = list(args.server) + server
    return args


def _resolve_server_argv(args: argparse.Namespace) -> List[str]:
    return list(args.server) if args.server else boot_config.server_command()


def _resolve_processor_cmd(args: argparse.Namespace) -> List[str]:
    if args.processor:
        return shlex.split(args.processor)
    return boot_config.processor_command()


def _report_plan(books_dir: str) -> int:
    books = scan_library(books_dir)
    if not books:
        print(f"No books found in {books_dir}")
        return 0
    for book in books:
        state = "done" if book.processed else "pending"
        print(f"{state:8} {book.path}  ->  {book.marker_path.name}")
    pending = sum(1 for b in books if not b.processed)
    print(f"{len(books)} book(s), {pending} pending")
    return 0


def run(args: argparse.Namespace) -> int:
    books_dir = args.books_dir or boot_config.books_dir()
    LOG.info("runtime config %s", {**boot_config.summarize_runtime_config(), "books_dir": books_dir})
    if boot_config.server_binds_loopback():
        LOG.warning(
            "READER_SERVER_HOST=%s is a loopback address; the server will not be reachable from outside the container",
            boot_config.server_host(),
        )
    if args.dry_run:
        return _report_plan(books_dir)
    result = run_startup(
        books_dir,
        _resolve_server_argv(args),
        SubprocessProcessor(_resolve_processor_cmd(args)),
        default_handoff(),
    )
    return result.exit_code


def main(argv: Optional[Sequence[str]] = None) -> int:
    try:
        args = parse_args(sys.argv[1:] if argv is None else argv)
        return run(args)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 2
    except Exception as exc:
        LOG.error("FATAL: Unhandled exception: %s", exc)
        traceback.print_exc()
        return 99


if __name__ == "__main__":
    sys.exit(main())
