"""
Structured path search: AND of optional category, tag and name-substring filters.
Filters are typed values translated to parameterized predicates; comparisons are case-insensitive.
"""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass
from typing import Union

from .path_repo import PATH_COLUMNS, PathRow
from .settings_repo import max_results as max_results_setting


@dataclass(frozen=True)
class CategoryFilter:
    name: str


@dataclass(frozen=True)
class TagFilter:
    name: str


@dataclass(frozen=True)
class NameContains:
    text: str


PathFilter = Union[CategoryFilter, TagFilter, NameContains]


def escape_like(text: str) -> str:
    """Escape LIKE wildcards so the text matches literally (use with ESCAPE '\\')."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class PathSearch:
    """Optional filters for search_paths; an absent (None or empty) filter imposes nothing."""

    category: str | None = None
    tag: str | None = None
    name: str | None = None

    def filters(self) -> list[PathFilter]:
        out: list[PathFilter] = []
        if self.category:
            out.append(CategoryFilter(self.category))
        if self.tag:
            out.append(TagFilter(self.tag))
        if self.name:
            out.append(NameContains(self.name))
        return out

    def is_empty(self) -> bool:
        return not self.filters()


def _predicate(f: PathFilter) -> tuple[str, list[str]]:
    if isinstance(f, CategoryFilter):
        return (
            """EXISTS (SELECT 1 FROM path_categories pc
                       JOIN categories c ON c.id = pc.category_id
                       WHERE pc.path_id = p.id AND c.name = ? COLLATE NOCASE)""",
            [f.name],
        )
    if isinstance(f, TagFilter):
        return (
            """EXISTS (SELECT 1 FROM path_tags pt
                       JOIN tags t ON t.id = pt.tag_id
                       WHERE pt.path_id = p.id AND t.name = ? COLLATE NOCASE)""",
            [f.name],
        )
    if isinstance(f, NameContains):
        return "p.name LIKE ? ESCAPE '\\'", ["%" + escape_like(f.text) + "%"]
    raise TypeError(f"Unknown path filter: {f!r}")


def search_paths(
    conn: sqlite3.Connection,
    search: PathSearch | list[PathFilter],
    *,
    limit: int | None = None,
) -> list[PathRow]:
    """
    Distinct paths satisfying every supplied filter, ordered by path, at most limit rows
    (default: the max_results setting). With no filters this returns the first paths in order;
    refusing an empty search is the caller's job.
    """
    filters = search.filters() if isinstance(search, PathSearch) else list(search)
    conditions = []
    args: list[object] = []
    for f in filters:
        sql, params = _predicate(f)
        conditions.append(sql)
        args.extend(params)

    where = ("WHERE " + " AND ".join(conditions)) if conditions else ""
    args.append(max_results_setting(conn) if limit is None else limit)

    cols = ", ".join("p." + c.strip() for c in PATH_COLUMNS.split(","))
    sql = f"""
        SELECT {cols}
        FROM paths p
        {where}
        ORDER BY p.path
        LIMIT ?
    """
    cur = conn.execute(sql, args)
    return [PathRow.from_row(r) for r in cur.fetchall()]
