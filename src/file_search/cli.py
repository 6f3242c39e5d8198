"""
Command-line front end for file-search.

Usage:
    file-search add ~/Games
    file-search fuzzy zelda 2
    file-search tag ~/Games/zelda.sav Nintendo
    file-search find --category Games --name zel
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from typing_extensions import Annotated

from .db.category_repo import (
    add_path_to_category,
    create_category,
    list_categories,
    list_path_categories,
    remove_path_from_category,
)
from .db.path_query import PathSearch, search_paths
from .db.path_repo import PathRow, get_path_detail, get_stats, normalize_path, remove_path
from .db.schema import DEFAULT_SETTINGS, get_data_dir
from .db.settings_repo import get_string_setting, list_settings, set_string_setting
from .db.tag_repo import list_path_tags, list_tags, remove_path_from_tag
from .errors import FileSearchError, MigrationDeclined
from .logging_config import configure_quiet_mode, enable_debug_mode, log_exception, verbose_from_env
from .matching.match_engine import (
    PATH_CORPUS,
    TAG_CORPUS,
    MatchResult,
    resolve_distance,
    search_all,
    search_exact,
    search_fuzzy,
    search_prefix,
    search_substring,
)
from .scanning.scanner import add_directory
from .services.app_state import AppState
from .services.similarity_guard import GuardOutcome, tag_path

FUZZY_DISTANCE_MIN = 0
FUZZY_DISTANCE_MAX = 10

app = typer.Typer(
    name="file-search",
    help="Index paths into SQLite; search them by name, tag and category.",
    no_args_is_help=True,
    rich_markup_mode=None,
)


@dataclass
class CliOptions:
    db_path: Optional[Path]

    @property
    def log_dir(self) -> Path:
        return self.db_path.parent if self.db_path else get_data_dir()


def _confirm(prompt: str) -> bool:
    return typer.confirm(prompt, default=False)


@app.callback()
def main_callback(
    ctx: typer.Context,
    db: Annotated[Optional[Path], typer.Option(
        "--db", help="Database file (default: $FILE_SEARCH_DATA/filesearch.db or ~/.filesearch/filesearch.db)",
    )] = None,
    verbose: Annotated[bool, typer.Option(
        "--verbose", "-v", help="Debug logging to stderr",
    )] = False,
) -> None:
    if verbose or verbose_from_env():
        enable_debug_mode()
    else:
        configure_quiet_mode()
    ctx.obj = CliOptions(db_path=db)


@contextmanager
def _store(ctx: typer.Context) -> Iterator[sqlite3.Connection]:
    """Open (and if needed migrate) the database for one command; map errors to exit codes."""
    opts: CliOptions = ctx.obj
    try:
        with AppState(opts.db_path, confirm=_confirm) as state:
            yield state.conn
    except MigrationDeclined:
        typer.echo("Migration cancelled. Exiting.", err=True)
        raise typer.Exit(1)
    except FileSearchError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except (OSError, ValueError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)
    except sqlite3.Error as e:
        log_path = log_exception(e, opts.log_dir, context=ctx.info_name or "")
        typer.echo(f"Database error: {e} (details in {log_path})", err=True)
        raise typer.Exit(1)


def _format_path(row: PathRow, distance: int | None = None) -> str:
    if row.is_directory:
        line = f"  [DIR]  {row.path}"
    else:
        line = f"  [FILE] {row.path} ({row.size or 0} bytes)"
    if distance is not None:
        line += f" (distance: {distance})"
    return line


def _print_path_section(title: str, results: list[MatchResult[PathRow]], empty: str) -> None:
    typer.echo(f"\n[{title}]")
    if not results:
        typer.echo(f"  ({empty})")
    for r in results:
        typer.echo(_format_path(r.record, r.distance))


def _print_names(title: str, names: list[str], empty: str) -> None:
    typer.echo(f"\n[{title}]")
    if not names:
        typer.echo(f"  ({empty})")
    for n in names:
        typer.echo(f"  {n}")


def _clamp_distance(distance: Optional[int]) -> int:
    if distance is None:
        return -1
    return max(FUZZY_DISTANCE_MIN, min(FUZZY_DISTANCE_MAX, distance))


# -----------------------------------------------------------------------------
# Paths
# -----------------------------------------------------------------------------

@app.command()
def add(
    ctx: typer.Context,
    directory: Annotated[str, typer.Argument(help="Directory to index recursively")],
) -> None:
    """Add a directory and everything under it."""
    with _store(ctx) as conn:
        typer.echo(f"Scanning directory: {normalize_path(directory)}")
        result = add_directory(conn, directory)
        typer.echo(f"Added {result.files} files and {result.directories} directories.")


@app.command()
def remove(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Indexed path to remove")],
) -> None:
    """Remove a path (its tag and category memberships go with it)."""
    with _store(ctx) as conn:
        target = normalize_path(path)
        remove_path(conn, target)
        typer.echo(f"Removed: {target}")


@app.command()
def info(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Indexed path")],
) -> None:
    """Show a path with its categories and tags."""
    with _store(ctx) as conn:
        detail = get_path_detail(conn, normalize_path(path))
        row = detail.row
        typer.echo("\n[Path Info]")
        typer.echo(f"  Path:        {row.path}")
        typer.echo(f"  Name:        {row.name}")
        typer.echo(f"  Type:        {'Directory' if row.is_directory else 'File'}")
        if not row.is_directory and row.size is not None:
            typer.echo(f"  Size:        {row.size} bytes")
        typer.echo(f"  Categories:  {', '.join(detail.categories) or '(none)'}")
        typer.echo(f"  Tags:        {', '.join(detail.tags) or '(none)'}")


@app.command()
def search(
    ctx: typer.Context,
    term: Annotated[str, typer.Argument(help="Name to look for")],
) -> None:
    """Search path names with every method (exact, prefix, substring, fuzzy)."""
    with _store(ctx) as conn:
        found = search_all(conn, PATH_CORPUS, term)
        _print_path_section("Exact Match - Paths", found.exact, "no exact matches")
        _print_path_section("Prefix Match - Paths", found.prefix, "no prefix matches")
        _print_path_section("Substring Match - Paths", found.substring, "no substring matches")
        _print_path_section(
            f"Fuzzy Match - Paths (distance <= {found.max_distance})",
            found.fuzzy,
            f"no fuzzy matches within distance {found.max_distance}",
        )


@app.command()
def exact(ctx: typer.Context, term: Annotated[str, typer.Argument()]) -> None:
    """Exact (case-insensitive) match on path names."""
    with _store(ctx) as conn:
        _print_path_section("Exact Match - Paths", search_exact(conn, PATH_CORPUS, term), "no exact matches")


@app.command()
def prefix(ctx: typer.Context, term: Annotated[str, typer.Argument()]) -> None:
    """Prefix match on path names."""
    with _store(ctx) as conn:
        _print_path_section("Prefix Match - Paths", search_prefix(conn, PATH_CORPUS, term), "no prefix matches")


@app.command()
def substring(ctx: typer.Context, term: Annotated[str, typer.Argument()]) -> None:
    """Substring match on path names."""
    with _store(ctx) as conn:
        _print_path_section(
            "Substring Match - Paths", search_substring(conn, PATH_CORPUS, term), "no substring matches"
        )


@app.command()
def fuzzy(
    ctx: typer.Context,
    term: Annotated[str, typer.Argument()],
    max_distance: Annotated[Optional[int], typer.Argument(
        help=f"Maximum edit distance ({FUZZY_DISTANCE_MIN}-{FUZZY_DISTANCE_MAX}); default from settings",
    )] = None,
) -> None:
    """Fuzzy (edit distance) match on path names."""
    with _store(ctx) as conn:
        distance = resolve_distance(conn, _clamp_distance(max_distance))
        _print_path_section(
            f"Fuzzy Match - Paths (distance <= {distance})",
            search_fuzzy(conn, PATH_CORPUS, term, distance),
            f"no fuzzy matches within distance {distance}",
        )


@app.command()
def find(
    ctx: typer.Context,
    category: Annotated[Optional[str], typer.Option("--category", "-c", help="Category name")] = None,
    tag: Annotated[Optional[str], typer.Option("--tag", "-t", help="Tag name")] = None,
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Substring of the name")] = None,
) -> None:
    """Structured search: paths matching all of the given filters."""
    query = PathSearch(category=category, tag=tag, name=name)
    if query.is_empty():
        typer.echo("Usage: find --category <cat> --tag <tag> --name <term>", err=True)
        raise typer.Exit(2)
    with _store(ctx) as conn:
        rows = search_paths(conn, query)
        typer.echo("\n[Search Results]")
        if not rows:
            typer.echo("  (no matches)")
        for row in rows:
            typer.echo(_format_path(row))


# -----------------------------------------------------------------------------
# Tags
# -----------------------------------------------------------------------------

@app.command("tag")
def tag_cmd(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Indexed path")],
    tag_name: Annotated[str, typer.Argument(help="Tag to add")],
) -> None:
    """Add a tag to a path, warning about similar existing tags."""
    with _store(ctx) as conn:
        target = normalize_path(path)
        result = tag_path(conn, target, tag_name, _confirm)
        if result.decision.outcome is GuardOutcome.CANCELLED:
            typer.echo("Cancelled.")
            return
        if result.decision.outcome in (GuardOutcome.CREATED, GuardOutcome.CREATED_ANYWAY):
            typer.echo(f"Created tag: {result.tag_name}")
        if result.added:
            typer.echo(f"Tagged: {target} [{result.tag_name}]")
        else:
            typer.echo(f"Path already has tag '{result.tag_name}'.")


@app.command()
def untag(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Indexed path")],
    tag_name: Annotated[str, typer.Argument(help="Tag to remove")],
) -> None:
    """Remove a tag from a path."""
    with _store(ctx) as conn:
        target = normalize_path(path)
        if remove_path_from_tag(conn, target, tag_name):
            typer.echo(f"Untagged: {target} [{tag_name}]")
        else:
            typer.echo(f"Path does not have tag '{tag_name}'.")


@app.command()
def tags(
    ctx: typer.Context,
    path: Annotated[Optional[str], typer.Argument(help="Only tags of this path")] = None,
) -> None:
    """List all tags, or the tags on one path."""
    with _store(ctx) as conn:
        if path:
            target = normalize_path(path)
            _print_names(f"Tags for {target}", [t.name for t in list_path_tags(conn, target)], "no tags")
            return
        names = [t.name for t in list_tags(conn)]
        _print_names("All Tags", names, "no tags")
        typer.echo(f"\nTotal: {len(names)} tags")


@app.command()
def tagsearch(ctx: typer.Context, term: Annotated[str, typer.Argument()]) -> None:
    """Search existing tag names (exact, substring, fuzzy)."""
    with _store(ctx) as conn:
        distance = resolve_distance(conn, -1)
        _print_names("Exact Match - Tags", [r.record.name for r in search_exact(conn, TAG_CORPUS, term)],
                     "no exact match")
        _print_names("Substring Match - Tags", [r.record.name for r in search_substring(conn, TAG_CORPUS, term)],
                     "no substring matches")
        _print_names(
            f"Fuzzy Match - Tags (distance <= {distance})",
            [f"{r.record.name} (distance: {r.distance})" for r in search_fuzzy(conn, TAG_CORPUS, term, distance)],
            "no fuzzy matches",
        )


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

@app.command()
def categorize(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Indexed path")],
    category: Annotated[str, typer.Argument(help="Existing category")],
) -> None:
    """Add a path to a category."""
    with _store(ctx) as conn:
        target = normalize_path(path)
        if add_path_to_category(conn, target, category):
            typer.echo(f"Categorized: {target} [{category}]")
        else:
            typer.echo(f"Path is already in category '{category}'.")


@app.command()
def uncategorize(
    ctx: typer.Context,
    path: Annotated[str, typer.Argument(help="Indexed path")],
    category: Annotated[str, typer.Argument(help="Category to remove")],
) -> None:
    """Remove a path from a category."""
    with _store(ctx) as conn:
        target = normalize_path(path)
        if remove_path_from_category(conn, target, category):
            typer.echo(f"Uncategorized: {target} [{category}]")
        else:
            typer.echo(f"Path is not in category '{category}'.")


@app.command()
def categories(
    ctx: typer.Context,
    path: Annotated[Optional[str], typer.Argument(help="Only categories of this path")] = None,
) -> None:
    """List all categories, or the categories of one path."""
    with _store(ctx) as conn:
        if path:
            target = normalize_path(path)
            names = [c.name for c in list_path_categories(conn, target)]
            _print_names(f"Categories for {target}", names, "no categories")
            return
        _print_names("All Categories", [c.name for c in list_categories(conn)], "no categories")


@app.command("create-category")
def create_category_cmd(
    ctx: typer.Context,
    name: Annotated[str, typer.Argument(help="New category name")],
) -> None:
    """Create a new category."""
    with _store(ctx) as conn:
        create_category(conn, name)
        typer.echo(f"Created category: {name.strip()}")


# -----------------------------------------------------------------------------
# Settings and statistics
# -----------------------------------------------------------------------------

@app.command("set")
def set_cmd(
    ctx: typer.Context,
    key: Annotated[str, typer.Argument()],
    value: Annotated[str, typer.Argument()],
) -> None:
    """Modify a setting. Recognized keys take integers; other keys store any text."""
    if key in DEFAULT_SETTINGS:
        try:
            value = str(int(value))
        except ValueError:
            raise typer.BadParameter(f"{key} must be an integer", param_hint="value")
    with _store(ctx) as conn:
        set_string_setting(conn, key, value)
        typer.echo(f"Updated: {key} = {value}")


@app.command("get")
def get_cmd(ctx: typer.Context, key: Annotated[str, typer.Argument()]) -> None:
    """View one setting."""
    with _store(ctx) as conn:
        typer.echo(f"{key} = {get_string_setting(conn, key, '(not set)')}")


@app.command()
def settings(ctx: typer.Context) -> None:
    """List all settings."""
    with _store(ctx) as conn:
        typer.echo("\n[Settings]")
        for key, value in list_settings(conn):
            typer.echo(f"  {key:<25} {value if value is not None else '(null)'}")


@app.command()
def stats(ctx: typer.Context) -> None:
    """Show database statistics."""
    with _store(ctx) as conn:
        s = get_stats(conn)
        typer.echo("\n[Database Statistics]")
        typer.echo(f"  Total paths:  {s.total_paths}")
        typer.echo(f"  Directories:  {s.directories}")
        typer.echo(f"  Files:        {s.files}")
        typer.echo(f"  Tags:         {s.tags}")
        typer.echo(f"  Categories:   {s.categories} ({s.categories_in_use} in use)")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
