"""
SQLite schema for file-search: paths, categories, tags, their junctions and settings.
Schema state detection and the migrations between states live here too.
"""

from __future__ import annotations

import enum
import logging
import os
import sqlite3
from dataclasses import dataclass
from pathlib import Path

from ..confirm import Confirm, always_decline
from ..errors import MigrationDeclined, UnsupportedSchemaVersion
from ..matching.edit_distance import register_sql_levenshtein

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
APP_VERSION = 1
DB_FILENAME = "filesearch.db"

DEFAULT_SETTINGS: dict[str, int] = {
    "schema_version": SCHEMA_VERSION,
    "app_version": APP_VERSION,
    "similarity_threshold": 3,
    "max_results": 20,
    "fuzzy_default_distance": 3,
}

UNCATEGORIZED = "Uncategorized"
DEFAULT_CATEGORIES = ("Games", "Music", "Photos", "Documents", UNCATEGORIZED)


def get_data_dir() -> Path:
    """Directory holding the default database (and the error log)."""
    env = os.environ.get("FILE_SEARCH_DATA")
    return Path(env) if env else Path.home() / ".filesearch"


def get_db_path() -> Path:
    """Return path to the default SQLite database, creating its directory if needed."""
    base = get_data_dir()
    base.mkdir(parents=True, exist_ok=True)
    return base / DB_FILENAME


def open_connection(db_path: Path | str) -> sqlite3.Connection:
    """Connect, enable foreign keys and register the levenshtein() SQL function. Writes nothing."""
    conn = sqlite3.connect(str(db_path))
    conn.execute("PRAGMA foreign_keys = ON")
    register_sql_levenshtein(conn)
    return conn


def create_schema(conn: sqlite3.Connection) -> None:
    """
    Create all tables and indexes. Idempotent: uses IF NOT EXISTS, so a pre-existing
    legacy paths (and tags/path_tags) table is left as it is.
    """
    conn.execute("PRAGMA foreign_keys = ON")

    conn.execute("""
        CREATE TABLE IF NOT EXISTS paths (
            id INTEGER PRIMARY KEY,
            path TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            is_directory INTEGER NOT NULL,
            size INTEGER,
            parent_path TEXT
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS categories (
            id INTEGER PRIMARY KEY,
            name TEXT UNIQUE NOT NULL COLLATE NOCASE
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS path_categories (
            path_id INTEGER NOT NULL,
            category_id INTEGER NOT NULL,
            PRIMARY KEY (path_id, category_id),
            FOREIGN KEY (path_id) REFERENCES paths(id) ON DELETE CASCADE,
            FOREIGN KEY (category_id) REFERENCES categories(id) ON DELETE CASCADE
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS tags (
            id INTEGER PRIMARY KEY,
            name TEXT UNIQUE NOT NULL COLLATE NOCASE
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS path_tags (
            path_id INTEGER NOT NULL,
            tag_id INTEGER NOT NULL,
            PRIMARY KEY (path_id, tag_id),
            FOREIGN KEY (path_id) REFERENCES paths(id) ON DELETE CASCADE,
            FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
        )
    """)
    conn.execute("""
        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT
        )
    """)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_name ON paths(name)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_parent ON paths(parent_path)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_is_dir ON paths(is_directory)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_category_name ON categories(name)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_tag_name ON tags(name)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_categories_path ON path_categories(path_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_categories_cat ON path_categories(category_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_tags_path ON path_tags(path_id)")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_path_tags_tag ON path_tags(tag_id)")


def seed_defaults(conn: sqlite3.Connection) -> None:
    """
    Insert default settings and the default category set where missing.
    Existing values are never overwritten, so user changes survive a re-run.
    Does not commit; callers run it inside their migration transaction.
    """
    conn.executemany(
        "INSERT OR IGNORE INTO settings (key, value) VALUES (?, ?)",
        [(k, str(v)) for k, v in DEFAULT_SETTINGS.items()],
    )
    conn.executemany(
        "INSERT OR IGNORE INTO categories (name) VALUES (?)",
        [(name,) for name in DEFAULT_CATEGORIES],
    )


class SchemaKind(enum.Enum):
    UNINITIALIZED = "uninitialized"
    LEGACY_UNVERSIONED = "legacy_unversioned"
    VERSIONED = "versioned"


@dataclass(frozen=True)
class SchemaState:
    kind: SchemaKind
    version: int | None = None

    @classmethod
    def versioned(cls, version: int) -> SchemaState:
        return cls(SchemaKind.VERSIONED, version)

    def __str__(self) -> str:
        if self.kind is SchemaKind.VERSIONED:
            return f"versioned(v{self.version})"
        return self.kind.value


def _table_exists(conn: sqlite3.Connection, name: str) -> bool:
    cur = conn.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?", (name,))
    return cur.fetchone() is not None


def detect_schema_state(conn: sqlite3.Connection) -> SchemaState:
    """Classify the database by table presence and the stored schema_version. Read-only."""
    if _table_exists(conn, "settings"):
        row = conn.execute("SELECT value FROM settings WHERE key = 'schema_version'").fetchone()
        try:
            version = int(row[0]) if row else 0
        except (TypeError, ValueError):
            version = 0
        return SchemaState.versioned(version)
    if _table_exists(conn, "paths"):
        return SchemaState(SchemaKind.LEGACY_UNVERSIONED)
    return SchemaState(SchemaKind.UNINITIALIZED)


def _set_schema_version(conn: sqlite3.Connection, version: int) -> None:
    conn.execute(
        "INSERT OR REPLACE INTO settings (key, value) VALUES ('schema_version', ?)",
        (str(version),),
    )


def initialize_schema(conn: sqlite3.Connection) -> SchemaState:
    """UNINITIALIZED -> VERSIONED(current): full schema plus seed data, one transaction."""
    with conn:
        conn.execute("BEGIN")
        create_schema(conn)
        seed_defaults(conn)
        _set_schema_version(conn, SCHEMA_VERSION)
    logger.info("Initialized database schema v%d", SCHEMA_VERSION)
    return SchemaState.versioned(SCHEMA_VERSION)


def migrate_legacy(conn: sqlite3.Connection) -> SchemaState:
    """
    LEGACY_UNVERSIONED -> VERSIONED(current): add the new tables beside the existing paths
    table, seed defaults, then put every existing path in Uncategorized.
    """
    with conn:
        conn.execute("BEGIN")
        create_schema(conn)
        seed_defaults(conn)
        cur = conn.execute(
            """INSERT OR IGNORE INTO path_categories (path_id, category_id)
               SELECT p.id, c.id FROM paths p, categories c WHERE c.name = ? COLLATE NOCASE""",
            (UNCATEGORIZED,),
        )
        _set_schema_version(conn, SCHEMA_VERSION)
    logger.info("Migrated legacy database; %d path(s) assigned to %s", cur.rowcount, UNCATEGORIZED)
    return SchemaState.versioned(SCHEMA_VERSION)


def upgrade_schema(conn: sqlite3.Connection, version: int) -> SchemaState:
    """
    VERSIONED(v < current) -> VERSIONED(current). Only v0 (settings table without a version
    row, e.g. an interrupted first run) exists today; it re-runs the v1 creation.
    """
    if version < 1:
        return initialize_schema(conn)
    return SchemaState.versioned(version)


def migrate(conn: sqlite3.Connection, confirm: Confirm, db_label: str = "") -> SchemaState:
    """
    Bring the database to the current schema version. Safe to call on an already current
    database (no-op). Raises MigrationDeclined or UnsupportedSchemaVersion; the caller must
    not use the connection after either.
    """
    state = detect_schema_state(conn)
    logger.debug("Schema state of %s: %s", db_label or "database", state)

    if state.kind is SchemaKind.UNINITIALIZED:
        return initialize_schema(conn)

    if state.kind is SchemaKind.LEGACY_UNVERSIONED:
        prompt = (
            "Database schema update required. This adds category support and settings; "
            f"existing paths will be assigned to '{UNCATEGORIZED}'. Proceed with migration?"
        )
        if not confirm(prompt):
            logger.warning("Legacy migration declined for %s", db_label or "database")
            raise MigrationDeclined(db_label)
        return migrate_legacy(conn)

    version = state.version or 0
    if version > SCHEMA_VERSION:
        raise UnsupportedSchemaVersion(version, SCHEMA_VERSION)
    if version < SCHEMA_VERSION:
        return upgrade_schema(conn, version)
    return state


def init_database(
    db_path: Path | str | None = None,
    confirm: Confirm = always_decline,
) -> sqlite3.Connection:
    """
    Open the database at db_path (default: get_db_path()), then create or migrate the schema.
    Returns an open connection (caller is responsible for closing it). On a fatal migration
    error the connection is closed before the exception propagates.
    """
    path = db_path if db_path is not None else get_db_path()
    if str(path) != ":memory:":
        parent = Path(path).parent
        if not parent.is_dir():
            raise FileNotFoundError(f"Directory '{parent}' does not exist; create it first")
    conn = open_connection(path)
    try:
        migrate(conn, confirm, db_label=str(path))
    except BaseException:
        conn.close()
        raise
    return conn
