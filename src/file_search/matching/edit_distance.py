"""
Case-insensitive Levenshtein distance, plus its registration as an SQLite scalar function
so fuzzy predicates can run inside queries.
"""

from __future__ import annotations

import sqlite3
import string

from ..errors import AllocationFailure

# ASCII-only folding, same as SQLite's NOCASE collation.
_ASCII_FOLD = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)


def fold(s: str) -> str:
    return s.translate(_ASCII_FOLD)


def levenshtein(a: str, b: str) -> int:
    """
    Minimum number of single-character insertions, deletions and substitutions turning a into b.
    ASCII letters are compared case-insensitively. Uses two rows sized to the shorter string.
    """
    a = fold(a)
    b = fold(b)
    if len(a) > len(b):
        a, b = b, a
    if not a:
        return len(b)

    try:
        prev = list(range(len(a) + 1))
        curr = [0] * (len(a) + 1)
    except MemoryError as e:
        raise AllocationFailure(
            f"cannot allocate edit-distance rows for strings of length {len(a)} and {len(b)}"
        ) from e

    for j, cb in enumerate(b, start=1):
        curr[0] = j
        for i, ca in enumerate(a, start=1):
            cost = 0 if ca == cb else 1
            curr[i] = min(prev[i] + 1, curr[i - 1] + 1, prev[i - 1] + cost)
        prev, curr = curr, prev
    return prev[len(a)]


def _sql_levenshtein(a: str | None, b: str | None) -> int | None:
    if a is None or b is None:
        return None
    return levenshtein(str(a), str(b))


def register_sql_levenshtein(conn: sqlite3.Connection) -> None:
    """Make levenshtein(a, b) available to SQL on this connection."""
    conn.create_function("levenshtein", 2, _sql_levenshtein, deterministic=True)
