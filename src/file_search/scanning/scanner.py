"""
Filesystem scanner: walk a directory tree and index every entry under it.
The walk is depth-capped so symlink loops terminate; unreadable entries are logged and skipped.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from ..db.path_repo import add_paths, normalize_path

logger = logging.getLogger(__name__)

MAX_DEPTH = 100


@dataclass(frozen=True)
class ScanEntry:
    path: str
    name: str
    is_directory: bool
    size: int | None  # None for directories
    parent_path: str | None


@dataclass
class ScanResult:
    files: int = 0
    directories: int = 0  # includes the root
    added: int = 0  # rows that were not indexed before


def walk_directory(root: str, max_depth: int = MAX_DEPTH, _depth: int = 0) -> Iterator[ScanEntry]:
    """Yield every entry below root (not root itself), depth-first."""
    if _depth > max_depth:
        logger.warning("Maximum depth reached at %s", root)
        return
    try:
        with os.scandir(root) as it:
            entries = list(it)
    except OSError as e:
        logger.warning("Cannot open directory %s: %s", root, e)
        return

    for entry in entries:
        full_path = os.path.join(root, entry.name)
        try:
            st = entry.stat()
            is_dir = entry.is_dir()
        except OSError as e:
            logger.warning("Cannot stat %s: %s", full_path, e)
            continue
        yield ScanEntry(
            path=full_path,
            name=entry.name,
            is_directory=is_dir,
            size=None if is_dir else st.st_size,
            parent_path=root,
        )
        if is_dir:
            yield from walk_directory(full_path, max_depth, _depth + 1)


def add_directory(
    conn: sqlite3.Connection,
    root: str,
    *,
    max_depth: int = MAX_DEPTH,
    progress_callback: Callable[[ScanEntry], None] | None = None,
) -> ScanResult:
    """
    Index root and everything under it, inside one transaction.
    Already indexed paths are left as they are. Raises NotADirectoryError if root is not a directory.
    """
    root_norm = normalize_path(root)
    if not Path(root_norm).is_dir():
        raise NotADirectoryError(f"'{root}' is not a valid directory")

    logger.info("Scanning directory %s", root_norm)
    result = ScanResult(directories=1)

    def rows() -> Iterator[tuple[str, str, bool, int | None, str | None]]:
        yield root_norm, Path(root_norm).name or root_norm, True, None, None
        for entry in walk_directory(root_norm, max_depth):
            if progress_callback:
                progress_callback(entry)
            if entry.is_directory:
                result.directories += 1
            else:
                result.files += 1
            yield entry.path, entry.name, entry.is_directory, entry.size, entry.parent_path

    result.added = add_paths(conn, rows())
    logger.info(
        "Scanned %s: %d files, %d directories (%d new)",
        root_norm, result.files, result.directories, result.added,
    )
    return result
