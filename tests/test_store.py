"""Unit tests for path, category, tag and settings persistence."""

import sqlite3
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from file_search.confirm import always_decline
from file_search.db.category_repo import (
    add_path_to_category,
    create_category,
    find_category,
    list_categories,
    list_path_categories,
    remove_path_from_category,
)
from file_search.db.path_repo import (
    add_path,
    add_paths,
    find_path_by_exact_path,
    get_path_detail,
    get_stats,
    remove_path,
)
from file_search.db.schema import migrate, open_connection
from file_search.db.settings_repo import (
    get_int_setting,
    get_string_setting,
    list_settings,
    set_int_setting,
    set_string_setting,
)
from file_search.db.tag_repo import (
    add_path_to_tag,
    add_tag_to_path,
    create_tag,
    find_tag,
    list_path_tags,
    list_tags,
    remove_path_from_tag,
)
from file_search.errors import (
    CategoryNotFound,
    ConstraintViolation,
    DuplicateName,
    NotFound,
    PathNotFound,
    TagNotFound,
)


def _db() -> sqlite3.Connection:
    conn = open_connection(":memory:")
    migrate(conn, always_decline)
    return conn


def _count(conn: sqlite3.Connection, table: str) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]


def test_add_and_find_path() -> None:
    conn = _db()
    assert add_path(conn, "/games", "games", is_directory=True, size=123)
    assert add_path(conn, "/games/zelda.sav", "zelda.sav", is_directory=False, size=42, parent_path="/games")
    row = find_path_by_exact_path(conn, "/games/zelda.sav")
    assert row is not None
    assert row.name == "zelda.sav"
    assert row.is_directory is False
    assert row.size == 42
    assert row.parent_path == "/games"
    # Directories never carry a size
    assert find_path_by_exact_path(conn, "/games").size is None
    assert find_path_by_exact_path(conn, "/GAMES/zelda.sav") is None
    conn.close()


def test_add_path_is_insert_if_absent() -> None:
    conn = _db()
    assert add_path(conn, "/a", "a", is_directory=False, size=1)
    assert not add_path(conn, "/a", "a", is_directory=False, size=2)
    assert find_path_by_exact_path(conn, "/a").size == 1
    added = add_paths(conn, [("/a", "a", False, 1, None), ("/b", "b", False, 2, None)])
    assert added == 1
    assert _count(conn, "paths") == 2
    conn.close()


def test_remove_path_cascades_memberships_only() -> None:
    conn = _db()
    add_path(conn, "/games/zelda", "zelda", is_directory=False, size=1)
    add_path(conn, "/games/mario", "mario", is_directory=False, size=1)
    tag_id = create_tag(conn, "Nintendo")
    add_tag_to_path(conn, "/games/zelda", tag_id)
    add_tag_to_path(conn, "/games/mario", tag_id)
    add_path_to_category(conn, "/games/zelda", "Games")

    remove_path(conn, "/games/zelda")

    assert find_path_by_exact_path(conn, "/games/zelda") is None
    assert _count(conn, "path_categories") == 0
    assert _count(conn, "path_tags") == 1
    assert find_tag(conn, "Nintendo") is not None
    assert find_category(conn, "Games") is not None
    conn.close()


def test_remove_missing_path_raises() -> None:
    conn = _db()
    with pytest.raises(PathNotFound):
        remove_path(conn, "/nope")
    conn.close()


def test_default_categories_seeded() -> None:
    conn = _db()
    names = [c.name for c in list_categories(conn)]
    assert names == ["Documents", "Games", "Music", "Photos", "Uncategorized"]
    conn.close()


def test_create_category_duplicate_any_case() -> None:
    conn = _db()
    cid = create_category(conn, "Work")
    assert find_category(conn, "work").id == cid
    with pytest.raises(DuplicateName):
        create_category(conn, "WORK")
    with pytest.raises(DuplicateName):
        create_category(conn, "games")
    with pytest.raises(ValueError):
        create_category(conn, "   ")
    conn.close()


def test_category_membership_is_idempotent() -> None:
    conn = _db()
    add_path(conn, "/p", "p", is_directory=False, size=1)
    assert add_path_to_category(conn, "/p", "games")
    assert not add_path_to_category(conn, "/p", "GAMES")
    assert [c.name for c in list_path_categories(conn, "/p")] == ["Games"]
    assert remove_path_from_category(conn, "/p", "Games")
    assert not remove_path_from_category(conn, "/p", "Games")
    assert list_path_categories(conn, "/p") == []
    conn.close()


def test_membership_lookup_misses() -> None:
    conn = _db()
    add_path(conn, "/p", "p", is_directory=False, size=1)
    with pytest.raises(CategoryNotFound):
        add_path_to_category(conn, "/p", "Nope")
    with pytest.raises(PathNotFound):
        add_path_to_category(conn, "/missing", "Games")
    with pytest.raises(TagNotFound):
        add_path_to_tag(conn, "/p", "Nope")
    with pytest.raises(NotFound):
        remove_path_from_tag(conn, "/p", "Nope")
    conn.close()


def test_tags_unique_case_insensitive() -> None:
    conn = _db()
    tid = create_tag(conn, "Urgent")
    assert find_tag(conn, "URGENT").id == tid
    with pytest.raises(DuplicateName):
        create_tag(conn, "urgent")
    conn.close()


def test_tag_membership() -> None:
    conn = _db()
    add_path(conn, "/p", "p", is_directory=False, size=1)
    create_tag(conn, "beta")
    create_tag(conn, "Alpha")
    assert add_path_to_tag(conn, "/p", "BETA")
    assert not add_path_to_tag(conn, "/p", "beta")
    assert add_path_to_tag(conn, "/p", "alpha")
    assert [t.name for t in list_path_tags(conn, "/p")] == ["Alpha", "beta"]
    assert remove_path_from_tag(conn, "/p", "Beta")
    assert [t.name for t in list_tags(conn)] == ["Alpha", "beta"]
    conn.close()


def test_attach_unknown_tag_id_is_constraint_violation() -> None:
    conn = _db()
    add_path(conn, "/p", "p", is_directory=False, size=1)
    with pytest.raises(ConstraintViolation):
        add_tag_to_path(conn, "/p", 999)
    conn.close()


def test_settings_defaults_and_free_form_keys() -> None:
    conn = _db()
    assert get_int_setting(conn, "max_results") == 20
    assert get_int_setting(conn, "similarity_threshold") == 3
    assert get_int_setting(conn, "fuzzy_default_distance") == 3
    assert get_int_setting(conn, "schema_version") == 1
    assert get_string_setting(conn, "missing") is None
    assert get_string_setting(conn, "missing", "fallback") == "fallback"
    assert get_int_setting(conn, "missing", 7) == 7

    set_int_setting(conn, "max_results", 50)
    set_string_setting(conn, "theme", "dark")
    assert get_int_setting(conn, "max_results") == 50
    assert get_string_setting(conn, "theme") == "dark"

    set_string_setting(conn, "max_results", "lots")
    assert get_int_setting(conn, "max_results") == 20
    assert [k for k, _ in list_settings(conn)] == sorted(k for k, _ in list_settings(conn))
    conn.close()


def test_path_detail_and_stats() -> None:
    conn = _db()
    add_path(conn, "/g", "g", is_directory=True)
    add_path(conn, "/g/zelda", "zelda", is_directory=False, size=5, parent_path="/g")
    add_path_to_category(conn, "/g/zelda", "Games")
    add_tag_to_path(conn, "/g/zelda", create_tag(conn, "nintendo"))

    detail = get_path_detail(conn, "/g/zelda")
    assert detail.categories == ["Games"]
    assert detail.tags == ["nintendo"]

    s = get_stats(conn)
    assert (s.total_paths, s.directories, s.files) == (2, 1, 1)
    assert (s.tags, s.categories, s.categories_in_use) == (1, 5, 1)
    conn.close()
