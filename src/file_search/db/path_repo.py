"""
Path persistence: one row per indexed file or directory, keyed by its absolute path.
Deleting a path cascades to its category and tag memberships.
"""

from __future__ import annotations

import logging
import os
import sqlite3
from dataclasses import dataclass, field
from typing import Iterable

from ..errors import PathNotFound

logger = logging.getLogger(__name__)

PATH_COLUMNS = "id, path, name, is_directory, size, parent_path"


@dataclass
class PathRow:
    id: int
    path: str
    name: str
    is_directory: bool
    size: int | None  # None for directories
    parent_path: str | None

    @classmethod
    def from_row(cls, r: tuple) -> PathRow:
        return cls(
            id=r[0],
            path=r[1],
            name=r[2],
            is_directory=bool(r[3]),
            size=r[4],
            parent_path=r[5],
        )


@dataclass
class PathDetail:
    row: PathRow
    categories: list[str] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)


def normalize_path(path_str: str) -> str:
    """
    Absolute path without trailing separators, for consistent lookups. Symlinks are not
    resolved: entries under a linked directory are stored under the link, as the scanner walks them.
    """
    return os.path.abspath(os.path.expanduser(path_str.strip()))


def find_path_by_exact_path(conn: sqlite3.Connection, path: str) -> PathRow | None:
    """Exact, case-sensitive lookup of a stored path. Returns None if not indexed."""
    cur = conn.execute(f"SELECT {PATH_COLUMNS} FROM paths WHERE path = ?", (path,))
    row = cur.fetchone()
    return PathRow.from_row(row) if row else None


def require_path(conn: sqlite3.Connection, path: str) -> PathRow:
    """Like find_path_by_exact_path but raises PathNotFound on a miss."""
    row = find_path_by_exact_path(conn, path)
    if row is None:
        raise PathNotFound(path)
    return row


def add_path(
    conn: sqlite3.Connection,
    path: str,
    name: str,
    *,
    is_directory: bool,
    size: int | None = None,
    parent_path: str | None = None,
    commit: bool = True,
) -> bool:
    """
    Insert the path if absent. Returns True if a row was added, False if it was already indexed.
    Size is stored only for files. Pass commit=False to batch inserts in the caller's transaction.
    """
    cur = conn.execute(
        """INSERT OR IGNORE INTO paths (path, name, is_directory, size, parent_path)
           VALUES (?, ?, ?, ?, ?)""",
        (path, name, 1 if is_directory else 0, None if is_directory else size, parent_path),
    )
    if commit:
        conn.commit()
    return cur.rowcount > 0


def add_paths(
    conn: sqlite3.Connection,
    rows: Iterable[tuple[str, str, bool, int | None, str | None]],
) -> int:
    """Bulk insert-if-absent of (path, name, is_directory, size, parent_path). Returns rows added."""
    added = 0
    with conn:
        for path, name, is_directory, size, parent_path in rows:
            if add_path(
                conn, path, name,
                is_directory=is_directory, size=size, parent_path=parent_path, commit=False,
            ):
                added += 1
    return added


def remove_path(conn: sqlite3.Connection, path: str) -> None:
    """Delete a path; its path_categories and path_tags rows go with it. PathNotFound on a miss."""
    row = require_path(conn, path)
    conn.execute("DELETE FROM paths WHERE id = ?", (row.id,))
    conn.commit()
    logger.info("Removed %s", path)


def get_path_detail(conn: sqlite3.Connection, path: str) -> PathDetail:
    """Path row with its category and tag names, both sorted case-insensitively."""
    row = require_path(conn, path)
    categories = [
        r[0]
        for r in conn.execute(
            """SELECT c.name FROM categories c
               JOIN path_categories pc ON c.id = pc.category_id
               WHERE pc.path_id = ? ORDER BY c.name COLLATE NOCASE""",
            (row.id,),
        ).fetchall()
    ]
    tags = [
        r[0]
        for r in conn.execute(
            """SELECT t.name FROM tags t
               JOIN path_tags pt ON t.id = pt.tag_id
               WHERE pt.path_id = ? ORDER BY t.name COLLATE NOCASE""",
            (row.id,),
        ).fetchall()
    ]
    return PathDetail(row=row, categories=categories, tags=tags)


@dataclass
class StoreStats:
    total_paths: int
    directories: int
    files: int
    tags: int
    categories: int
    categories_in_use: int


def get_stats(conn: sqlite3.Connection) -> StoreStats:
    def count(sql: str) -> int:
        return conn.execute(sql).fetchone()[0]

    return StoreStats(
        total_paths=count("SELECT COUNT(*) FROM paths"),
        directories=count("SELECT COUNT(*) FROM paths WHERE is_directory = 1"),
        files=count("SELECT COUNT(*) FROM paths WHERE is_directory = 0"),
        tags=count("SELECT COUNT(*) FROM tags"),
        categories=count("SELECT COUNT(*) FROM categories"),
        categories_in_use=count("SELECT COUNT(DISTINCT category_id) FROM path_categories"),
    )
