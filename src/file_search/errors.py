"""
Error kinds raised by the store, matching and migration layers.
Storage-engine errors other than integrity failures on create propagate as sqlite3 errors.
"""

from __future__ import annotations


class FileSearchError(Exception):
    """Base class for all file-search errors reported to the caller."""


class NotFound(FileSearchError):
    """Lookup miss for a path, tag or category."""

    kind = "item"

    def __init__(self, name: str) -> None:
        super().__init__(f"{self.kind.capitalize()} not found: {name}")
        self.name = name


class PathNotFound(NotFound):
    kind = "path"


class TagNotFound(NotFound):
    kind = "tag"


class CategoryNotFound(NotFound):
    kind = "category"


class DuplicateName(FileSearchError):
    """A category or tag with the same case-insensitive name already exists."""

    def __init__(self, kind: str, name: str) -> None:
        super().__init__(f"{kind.capitalize()} already exists: {name}")
        self.kind = kind
        self.name = name


class ConstraintViolation(FileSearchError):
    """Integrity failure reported by SQLite; message is the engine's text."""


class AllocationFailure(FileSearchError, MemoryError):
    """Edit-distance working rows could not be allocated."""


class MigrationDeclined(FileSearchError):
    """User refused the required upgrade of a legacy database. Fatal for this run."""

    def __init__(self, db_path: str) -> None:
        super().__init__(f"Migration of {db_path} was declined; database left unchanged")
        self.db_path = db_path


class UnsupportedSchemaVersion(FileSearchError):
    """Database was written by a newer version of file-search."""

    def __init__(self, found: int, supported: int) -> None:
        super().__init__(
            f"Database schema version {found} is newer than supported version {supported}"
        )
        self.found = found
        self.supported = supported
