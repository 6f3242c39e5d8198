"""
Tag persistence and path membership. Tag names are unique case-insensitively.
New tags should be created through services.similarity_guard, which checks for near-duplicates
before calling create_tag.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass

from ..errors import ConstraintViolation, DuplicateName, TagNotFound
from .path_repo import require_path


@dataclass
class TagRow:
    id: int
    name: str


def list_tags(conn: sqlite3.Connection) -> list[TagRow]:
    """All tags, ordered by name."""
    cur = conn.execute("SELECT id, name FROM tags ORDER BY name COLLATE NOCASE")
    return [TagRow(id=r[0], name=r[1]) for r in cur.fetchall()]


def iter_tags_in_store_order(conn: sqlite3.Connection) -> list[TagRow]:
    """All tags in insertion order (the order the similarity scan walks them)."""
    cur = conn.execute("SELECT id, name FROM tags ORDER BY id")
    return [TagRow(id=r[0], name=r[1]) for r in cur.fetchall()]


def find_tag(conn: sqlite3.Connection, name: str) -> TagRow | None:
    """Case-insensitive exact lookup."""
    cur = conn.execute("SELECT id, name FROM tags WHERE name = ? COLLATE NOCASE", (name.strip(),))
    row = cur.fetchone()
    return TagRow(id=row[0], name=row[1]) if row else None


def get_tag(conn: sqlite3.Connection, tag_id: int) -> TagRow | None:
    cur = conn.execute("SELECT id, name FROM tags WHERE id = ?", (tag_id,))
    row = cur.fetchone()
    return TagRow(id=row[0], name=row[1]) if row else None


def require_tag(conn: sqlite3.Connection, name: str) -> TagRow:
    row = find_tag(conn, name)
    if row is None:
        raise TagNotFound(name)
    return row


def create_tag(conn: sqlite3.Connection, name: str) -> int:
    """Insert a tag and return its id. DuplicateName if the name exists in any case."""
    name = name.strip()
    if not name:
        raise ValueError("Tag name must not be empty")
    if find_tag(conn, name) is not None:
        raise DuplicateName("tag", name)
    try:
        cur = conn.execute("INSERT INTO tags (name) VALUES (?)", (name,))
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise ConstraintViolation(str(e)) from e
    conn.commit()
    return cur.lastrowid


def add_tag_to_path(conn: sqlite3.Connection, path: str, tag_id: int) -> bool:
    """Attach a tag (by id) to path. Returns False if already attached."""
    path_row = require_path(conn, path)
    try:
        cur = conn.execute(
            "INSERT OR IGNORE INTO path_tags (path_id, tag_id) VALUES (?, ?)",
            (path_row.id, tag_id),
        )
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise ConstraintViolation(str(e)) from e
    conn.commit()
    return cur.rowcount > 0


def add_path_to_tag(conn: sqlite3.Connection, path: str, tag_name: str) -> bool:
    """Attach an existing tag (by name) to path. TagNotFound if the tag does not exist."""
    tag = require_tag(conn, tag_name)
    return add_tag_to_path(conn, path, tag.id)


def remove_path_from_tag(conn: sqlite3.Connection, path: str, tag_name: str) -> bool:
    """Detach a tag from path. Returns False if it was not attached. The tag row stays."""
    path_row = require_path(conn, path)
    tag = require_tag(conn, tag_name)
    cur = conn.execute(
        "DELETE FROM path_tags WHERE path_id = ? AND tag_id = ?",
        (path_row.id, tag.id),
    )
    conn.commit()
    return cur.rowcount > 0


def list_path_tags(conn: sqlite3.Connection, path: str) -> list[TagRow]:
    path_row = require_path(conn, path)
    cur = conn.execute(
        """SELECT t.id, t.name FROM tags t
           JOIN path_tags pt ON t.id = pt.tag_id
           WHERE pt.path_id = ? ORDER BY t.name COLLATE NOCASE""",
        (path_row.id,),
    )
    return [TagRow(id=r[0], name=r[1]) for r in cur.fetchall()]
