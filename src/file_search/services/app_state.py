"""
App-wide state: the single store connection, opened and migrated once at startup.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from ..confirm import Confirm, always_decline
from ..db.schema import get_db_path, init_database


class AppState:
    """Holds the SQLite connection for one run. Create at startup, close on exit."""

    def __init__(self, db_path: Path | str | None = None, confirm: Confirm = always_decline) -> None:
        self.db_path = Path(db_path) if db_path is not None else get_db_path()
        self._conn: sqlite3.Connection | None = init_database(self.db_path, confirm)

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError("Database connection is closed")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> AppState:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()
