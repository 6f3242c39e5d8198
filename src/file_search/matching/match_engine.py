"""
Name matching over a store corpus: exact, prefix, substring and fuzzy (edit distance).

A corpus is a table whose key column is matched and whose rows become records (paths by
their display name, tags by their name). Every mode is bounded by max_results, read from
settings on each call unless the caller passes a limit.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from typing import Any, Callable, Generic, TypeVar

from ..db.path_query import escape_like
from ..db.path_repo import PATH_COLUMNS, PathRow
from ..db.settings_repo import fuzzy_default_distance, max_results
from ..db.tag_repo import TagRow

R = TypeVar("R")


@dataclass(frozen=True)
class Corpus(Generic[R]):
    table: str
    key_column: str
    columns: str
    make_record: Callable[[tuple], R]


PATH_CORPUS: Corpus[PathRow] = Corpus("paths", "name", PATH_COLUMNS, PathRow.from_row)
TAG_CORPUS: Corpus[TagRow] = Corpus("tags", "name", "id, name", lambda r: TagRow(id=r[0], name=r[1]))


@dataclass
class MatchResult(Generic[R]):
    record: R
    distance: int | None = None  # fuzzy mode only


@dataclass
class SearchAllResult(Generic[R]):
    """The four modes run independently; sections are not merged or deduplicated."""

    query: str
    max_distance: int
    exact: list[MatchResult[R]] = field(default_factory=list)
    prefix: list[MatchResult[R]] = field(default_factory=list)
    substring: list[MatchResult[R]] = field(default_factory=list)
    fuzzy: list[MatchResult[R]] = field(default_factory=list)


def _limit(conn: sqlite3.Connection, limit: int | None) -> int:
    return max_results(conn) if limit is None else limit


def _select(
    conn: sqlite3.Connection,
    corpus: Corpus[R],
    predicate: str,
    params: list[Any],
    limit: int,
) -> list[MatchResult[R]]:
    sql = (
        f"SELECT {corpus.columns} FROM {corpus.table} "
        f"WHERE {predicate} ORDER BY rowid LIMIT ?"
    )
    cur = conn.execute(sql, [*params, limit])
    return [MatchResult(corpus.make_record(r)) for r in cur.fetchall()]


def search_exact(
    conn: sqlite3.Connection, corpus: Corpus[R], query: str, *, limit: int | None = None
) -> list[MatchResult[R]]:
    """Case-insensitive equality on the key column, in store order."""
    return _select(conn, corpus, f"{corpus.key_column} = ? COLLATE NOCASE", [query], _limit(conn, limit))


def search_prefix(
    conn: sqlite3.Connection, corpus: Corpus[R], query: str, *, limit: int | None = None
) -> list[MatchResult[R]]:
    """Case-insensitive starts-with. An empty query matches everything."""
    return _select(
        conn, corpus, f"{corpus.key_column} LIKE ? ESCAPE '\\'",
        [escape_like(query) + "%"], _limit(conn, limit),
    )


def search_substring(
    conn: sqlite3.Connection, corpus: Corpus[R], query: str, *, limit: int | None = None
) -> list[MatchResult[R]]:
    """Case-insensitive contains. An empty query matches everything."""
    return _select(
        conn, corpus, f"{corpus.key_column} LIKE ? ESCAPE '\\'",
        ["%" + escape_like(query) + "%"], _limit(conn, limit),
    )


def resolve_distance(conn: sqlite3.Connection, max_distance: int | None) -> int:
    """Negative or None means the fuzzy_default_distance setting."""
    if max_distance is None or max_distance < 0:
        return fuzzy_default_distance(conn)
    return max_distance


def search_fuzzy(
    conn: sqlite3.Connection,
    corpus: Corpus[R],
    query: str,
    max_distance: int | None = -1,
    *,
    limit: int | None = None,
) -> list[MatchResult[R]]:
    """
    Records whose key is within max_distance edits of query, nearest first, ties broken by
    case-insensitive name. Distance is computed by the levenshtein() SQL function registered
    on the connection.
    """
    threshold = resolve_distance(conn, max_distance)
    sql = f"""
        SELECT * FROM (
            SELECT {corpus.columns}, levenshtein({corpus.key_column}, ?) AS dist
            FROM {corpus.table}
        )
        WHERE dist <= ?
        ORDER BY dist, {corpus.key_column} COLLATE NOCASE
        LIMIT ?
    """
    cur = conn.execute(sql, (query, threshold, _limit(conn, limit)))
    return [MatchResult(corpus.make_record(r[:-1]), distance=r[-1]) for r in cur.fetchall()]


def search_all(
    conn: sqlite3.Connection,
    corpus: Corpus[R],
    query: str,
    max_distance: int | None = -1,
    *,
    limit: int | None = None,
) -> SearchAllResult[R]:
    threshold = resolve_distance(conn, max_distance)
    return SearchAllResult(
        query=query,
        max_distance=threshold,
        exact=search_exact(conn, corpus, query, limit=limit),
        prefix=search_prefix(conn, corpus, query, limit=limit),
        substring=search_substring(conn, corpus, query, limit=limit),
        fuzzy=search_fuzzy(conn, corpus, query, threshold, limit=limit),
    )
