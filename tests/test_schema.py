"""
Schema state detection and migration tests.

Each test builds a database in a specific state with raw SQL, then opens it through
init_database / migrate and checks the result.
"""

import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from file_search.confirm import always_accept, always_decline
from file_search.db.schema import (
    DEFAULT_CATEGORIES,
    SCHEMA_VERSION,
    SchemaKind,
    SchemaState,
    detect_schema_state,
    init_database,
    migrate,
    migrate_legacy,
    open_connection,
)
from file_search.db.settings_repo import get_int_setting, set_int_setting
from file_search.errors import MigrationDeclined, UnsupportedSchemaVersion


def _create_legacy_db(path: Path) -> None:
    """Pre-versioning database: paths, tags and path_tags only, no settings table."""
    conn = sqlite3.connect(str(path))
    conn.executescript("""
        CREATE TABLE paths (
            id INTEGER PRIMARY KEY,
            path TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            is_directory INTEGER NOT NULL,
            size INTEGER,
            parent_path TEXT
        );
        CREATE TABLE tags (id INTEGER PRIMARY KEY, name TEXT UNIQUE NOT NULL);
        CREATE TABLE path_tags (
            path_id INTEGER NOT NULL,
            tag_id INTEGER NOT NULL,
            PRIMARY KEY (path_id, tag_id),
            FOREIGN KEY (path_id) REFERENCES paths(id) ON DELETE CASCADE,
            FOREIGN KEY (tag_id) REFERENCES tags(id) ON DELETE CASCADE
        );
        CREATE INDEX idx_path_name ON paths(name);
        INSERT INTO paths (path, name, is_directory, size, parent_path)
            VALUES ('/old', 'old', 1, NULL, NULL),
                   ('/old/a.txt', 'a.txt', 0, 3, '/old'),
                   ('/old/b.txt', 'b.txt', 0, 4, '/old');
        INSERT INTO tags (name) VALUES ('legacy');
        INSERT INTO path_tags (path_id, tag_id) VALUES (2, 1);
    """)
    conn.commit()
    conn.close()


def _tables(conn: sqlite3.Connection) -> set[str]:
    return {r[0] for r in conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")}


def test_new_database_initialized(tmp_path: Path) -> None:
    db = tmp_path / "new.db"
    conn = init_database(db)
    assert {"paths", "categories", "tags", "path_categories", "path_tags", "settings"} <= _tables(conn)
    assert detect_schema_state(conn) == SchemaState.versioned(SCHEMA_VERSION)
    assert get_int_setting(conn, "max_results") == 20
    names = {r[0] for r in conn.execute("SELECT name FROM categories")}
    assert names == set(DEFAULT_CATEGORIES)
    assert conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
    conn.close()


def test_detect_states() -> None:
    conn = sqlite3.connect(":memory:")
    assert detect_schema_state(conn).kind is SchemaKind.UNINITIALIZED
    conn.execute("CREATE TABLE paths (id INTEGER PRIMARY KEY, path TEXT)")
    assert detect_schema_state(conn).kind is SchemaKind.LEGACY_UNVERSIONED
    conn.execute("CREATE TABLE settings (key TEXT PRIMARY KEY, value TEXT)")
    assert detect_schema_state(conn) == SchemaState.versioned(0)
    conn.execute("INSERT INTO settings VALUES ('schema_version', '1')")
    assert detect_schema_state(conn) == SchemaState.versioned(1)
    conn.close()


def test_current_version_is_noop(tmp_path: Path) -> None:
    db = tmp_path / "current.db"
    conn = init_database(db)
    set_int_setting(conn, "max_results", 99)
    conn.execute("DELETE FROM categories WHERE name = 'Photos'")
    conn.commit()
    conn.close()

    conn = init_database(db, confirm=always_decline)
    assert get_int_setting(conn, "max_results") == 99
    assert conn.execute("SELECT COUNT(*) FROM categories WHERE name = 'Photos'").fetchone()[0] == 0
    conn.close()


def test_legacy_declined_leaves_file_untouched(tmp_path: Path) -> None:
    db = tmp_path / "legacy.db"
    _create_legacy_db(db)
    before = db.read_bytes()
    asked = []

    def decline(prompt: str) -> bool:
        asked.append(prompt)
        return False

    with pytest.raises(MigrationDeclined):
        init_database(db, confirm=decline)
    assert len(asked) == 1
    assert db.read_bytes() == before


def test_legacy_accepted_migrates(tmp_path: Path) -> None:
    db = tmp_path / "legacy.db"
    _create_legacy_db(db)
    conn = init_database(db, confirm=always_accept)

    assert detect_schema_state(conn) == SchemaState.versioned(SCHEMA_VERSION)
    assert conn.execute("SELECT COUNT(*) FROM paths").fetchone()[0] == 3
    uncategorized = conn.execute(
        """SELECT COUNT(*) FROM path_categories pc JOIN categories c ON c.id = pc.category_id
           WHERE c.name = 'Uncategorized'"""
    ).fetchone()[0]
    assert uncategorized == 3
    # Pre-existing tags survive
    assert conn.execute("SELECT COUNT(*) FROM path_tags").fetchone()[0] == 1
    assert get_int_setting(conn, "similarity_threshold") == 3
    conn.close()


def test_legacy_migration_rerun_is_idempotent(tmp_path: Path) -> None:
    db = tmp_path / "legacy.db"
    _create_legacy_db(db)
    conn = init_database(db, confirm=always_accept)
    counts = [conn.execute(f"SELECT COUNT(*) FROM {t}").fetchone()[0]
              for t in ("paths", "categories", "path_categories", "settings")]
    migrate_legacy(conn)
    again = [conn.execute(f"SELECT COUNT(*) FROM {t}").fetchone()[0]
             for t in ("paths", "categories", "path_categories", "settings")]
    assert again == counts
    conn.close()


def test_future_version_rejected(tmp_path: Path) -> None:
    db = tmp_path / "future.db"
    conn = init_database(db)
    set_int_setting(conn, "schema_version", SCHEMA_VERSION + 1)
    conn.close()
    with pytest.raises(UnsupportedSchemaVersion) as exc:
        init_database(db)
    assert exc.value.found == SCHEMA_VERSION + 1


def test_partial_settings_upgraded_to_current() -> None:
    conn = open_connection(":memory:")
    conn.execute("CREATE TABLE settings (key TEXT PRIMARY KEY, value TEXT)")
    conn.commit()
    state = migrate(conn, always_decline)
    assert state == SchemaState.versioned(SCHEMA_VERSION)
    assert get_int_setting(conn, "schema_version") == SCHEMA_VERSION
    assert "categories" in _tables(conn)
    conn.close()



def test_unreadable_version_row_treated_as_v0() -> None:
    conn = open_connection(":memory:")
    conn.execute("CREATE TABLE settings (key TEXT PRIMARY KEY, value TEXT)")
    conn.execute("INSERT INTO settings (key, value) VALUES ('schema_version', 'abc')")
    conn.commit()
    assert detect_schema_state(conn) == SchemaState.versioned(0)
    assert migrate(conn, always_decline) == SchemaState.versioned(SCHEMA_VERSION)
    assert get_int_setting(conn, "schema_version") == SCHEMA_VERSION
    conn.close()

def test_missing_parent_directory(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        init_database(tmp_path / "nope" / "x.db")
