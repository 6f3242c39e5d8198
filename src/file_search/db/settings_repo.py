"""Settings key/value store. Absent keys read as the caller's default, never an error."""

from __future__ import annotations

import sqlite3

from .schema import DEFAULT_SETTINGS


def get_string_setting(conn: sqlite3.Connection, key: str, default: str | None = None) -> str | None:
    cur = conn.execute("SELECT value FROM settings WHERE key = ?", (key,))
    row = cur.fetchone()
    if row is None or row[0] is None:
        return default
    return row[0]


def set_string_setting(conn: sqlite3.Connection, key: str, value: str) -> None:
    conn.execute("INSERT OR REPLACE INTO settings (key, value) VALUES (?, ?)", (key, value))
    conn.commit()


def get_int_setting(conn: sqlite3.Connection, key: str, default: int | None = None) -> int:
    """
    Integer value of key. default None means the documented default for recognized keys.
    A value that does not parse as an integer reads as the default.
    """
    if default is None:
        default = DEFAULT_SETTINGS.get(key, 0)
    value = get_string_setting(conn, key)
    if value is None:
        return default
    try:
        return int(value.strip())
    except ValueError:
        return default


def set_int_setting(conn: sqlite3.Connection, key: str, value: int) -> None:
    set_string_setting(conn, key, str(int(value)))


def list_settings(conn: sqlite3.Connection) -> list[tuple[str, str | None]]:
    """Return (key, value) for all stored settings, ordered by key."""
    cur = conn.execute("SELECT key, value FROM settings ORDER BY key")
    return cur.fetchall()


def max_results(conn: sqlite3.Connection) -> int:
    return get_int_setting(conn, "max_results")


def similarity_threshold(conn: sqlite3.Connection) -> int:
    return get_int_setting(conn, "similarity_threshold")


def fuzzy_default_distance(conn: sqlite3.Connection) -> int:
    return get_int_setting(conn, "fuzzy_default_distance")
