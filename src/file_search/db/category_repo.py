"""
Category CRUD and path membership. Names are unique case-insensitively.
Membership changes are idempotent: adding twice or removing an absent pair is a no-op.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass

from ..errors import CategoryNotFound, ConstraintViolation, DuplicateName
from .path_repo import require_path

logger = logging.getLogger(__name__)


@dataclass
class CategoryRow:
    id: int
    name: str


def list_categories(conn: sqlite3.Connection) -> list[CategoryRow]:
    cur = conn.execute("SELECT id, name FROM categories ORDER BY name COLLATE NOCASE")
    return [CategoryRow(id=r[0], name=r[1]) for r in cur.fetchall()]


def find_category(conn: sqlite3.Connection, name: str) -> CategoryRow | None:
    cur = conn.execute(
        "SELECT id, name FROM categories WHERE name = ? COLLATE NOCASE", (name.strip(),)
    )
    row = cur.fetchone()
    return CategoryRow(id=row[0], name=row[1]) if row else None


def require_category(conn: sqlite3.Connection, name: str) -> CategoryRow:
    row = find_category(conn, name)
    if row is None:
        raise CategoryNotFound(name)
    return row


def create_category(conn: sqlite3.Connection, name: str) -> int:
    """Insert a new category and return its id. DuplicateName if it exists in any case."""
    name = name.strip()
    if not name:
        raise ValueError("Category name must not be empty")
    if find_category(conn, name) is not None:
        raise DuplicateName("category", name)
    try:
        cur = conn.execute("INSERT INTO categories (name) VALUES (?)", (name,))
    except sqlite3.IntegrityError as e:
        conn.rollback()
        raise ConstraintViolation(str(e)) from e
    conn.commit()
    logger.info("Created category %s", name)
    return cur.lastrowid


def add_path_to_category(conn: sqlite3.Connection, path: str, category_name: str) -> bool:
    """Put path in the category. Returns False if it was already a member."""
    path_row = require_path(conn, path)
    category = require_category(conn, category_name)
    cur = conn.execute(
        "INSERT OR IGNORE INTO path_categories (path_id, category_id) VALUES (?, ?)",
        (path_row.id, category.id),
    )
    conn.commit()
    return cur.rowcount > 0


def remove_path_from_category(conn: sqlite3.Connection, path: str, category_name: str) -> bool:
    """Take path out of the category. Returns False if it was not a member."""
    path_row = require_path(conn, path)
    category = require_category(conn, category_name)
    cur = conn.execute(
        "DELETE FROM path_categories WHERE path_id = ? AND category_id = ?",
        (path_row.id, category.id),
    )
    conn.commit()
    return cur.rowcount > 0


def list_path_categories(conn: sqlite3.Connection, path: str) -> list[CategoryRow]:
    path_row = require_path(conn, path)
    cur = conn.execute(
        """SELECT c.id, c.name FROM categories c
           JOIN path_categories pc ON c.id = pc.category_id
           WHERE pc.path_id = ? ORDER BY c.name COLLATE NOCASE""",
        (path_row.id,),
    )
    return [CategoryRow(id=r[0], name=r[1]) for r in cur.fetchall()]
