"""
Near-duplicate check in front of tag creation.

An exact (case-insensitive) hit is reused silently. Otherwise the existing tags are scanned:
the first one that contains, or is contained in, the new name is reported; failing that, the
closest one within similarity_threshold edits. When something similar exists the injected
confirm callable decides between creating anyway, using the existing tag, or cancelling.
"""

from __future__ import annotations

import enum
import logging
import sqlite3
from dataclasses import dataclass

from ..confirm import Confirm
from ..db.path_repo import require_path
from ..db.settings_repo import similarity_threshold
from ..db.tag_repo import add_tag_to_path, create_tag, find_tag, get_tag, iter_tags_in_store_order
from ..matching.edit_distance import fold, levenshtein

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SimilarTag:
    tag_id: int
    name: str
    distance: int  # length difference for substring matches
    is_substring: bool

    def describe(self) -> str:
        if self.is_substring:
            return f"'{self.name}' (substring match)"
        return f"'{self.name}' (distance: {self.distance})"


class GuardOutcome(enum.Enum):
    EXISTING = "existing"  # exact name already present, guard not consulted
    CREATED = "created"  # nothing similar, new tag created
    CREATED_ANYWAY = "created_anyway"
    USED_SIMILAR = "used_similar"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TagDecision:
    outcome: GuardOutcome
    tag_id: int | None
    similar: SimilarTag | None = None

    @property
    def cancelled(self) -> bool:
        return self.outcome is GuardOutcome.CANCELLED


def find_similar_tag(
    conn: sqlite3.Connection,
    name: str,
    threshold: int | None = None,
) -> SimilarTag | None:
    """
    Single best near-duplicate of name among existing tags, or None.
    Substring hits win over edit-distance hits; the first substring hit in store order is kept.
    """
    if threshold is None:
        threshold = similarity_threshold(conn)
    folded = fold(name)
    best: SimilarTag | None = None
    for tag in iter_tags_in_store_order(conn):
        existing = fold(tag.name)
        if existing in folded or folded in existing:
            if best is None or not best.is_substring:
                best = SimilarTag(tag.id, tag.name, abs(len(name) - len(tag.name)), True)
            continue
        if best is not None and best.is_substring:
            continue
        dist = levenshtein(name, tag.name)
        if 0 < dist <= threshold and (best is None or dist < best.distance):
            best = SimilarTag(tag.id, tag.name, dist, False)
    return best


def get_or_create_tag(conn: sqlite3.Connection, name: str, confirm: Confirm) -> TagDecision:
    """
    Return the tag to use for name, creating it if appropriate. Never creates a tag next to a
    similar one without confirm() agreeing to "create anyway".
    """
    name = name.strip()
    if not name:
        raise ValueError("Tag name must not be empty")

    existing = find_tag(conn, name)
    if existing is not None:
        return TagDecision(GuardOutcome.EXISTING, existing.id)

    similar = find_similar_tag(conn, name)
    if similar is None:
        tag_id = create_tag(conn, name)
        logger.info("Created tag %s", name)
        return TagDecision(GuardOutcome.CREATED, tag_id)

    logger.info("Tag %r is similar to existing %s", name, similar.describe())
    if confirm(f"Similar tag exists: {similar.describe()}. Create new tag '{name}' anyway?"):
        tag_id = create_tag(conn, name)
        logger.info("Created tag %s despite similar %s", name, similar.name)
        return TagDecision(GuardOutcome.CREATED_ANYWAY, tag_id, similar)
    if confirm(f"Use '{similar.name}' instead?"):
        return TagDecision(GuardOutcome.USED_SIMILAR, similar.tag_id, similar)
    return TagDecision(GuardOutcome.CANCELLED, None, similar)


@dataclass(frozen=True)
class TagPathResult:
    decision: TagDecision
    tag_name: str | None
    added: bool  # False if the path already had the tag (or on cancel)


def tag_path(conn: sqlite3.Connection, path: str, tag_name: str, confirm: Confirm) -> TagPathResult:
    """
    Tag an indexed path, going through the similarity guard for unknown tag names.
    PathNotFound is raised before any tag is created.
    """
    require_path(conn, path)
    decision = get_or_create_tag(conn, tag_name, confirm)
    if decision.tag_id is None:
        return TagPathResult(decision, None, False)
    added = add_tag_to_path(conn, path, decision.tag_id)
    tag = get_tag(conn, decision.tag_id)
    return TagPathResult(decision, tag.name if tag else None, added)
