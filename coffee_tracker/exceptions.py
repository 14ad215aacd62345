"""
Exception hierarchy for Coffee Tracker storage.

Every backend translates its library errors (OSError, requests errors,
JSON and validation errors) into one of these at its boundary.
"""


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageIOError(StorageError):
    """Local storage file unavailable or unwritable."""
    pass


class BackendConnectionError(StorageError):
    """Could not reach the remote storage backend."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert an entity whose id already exists."""
    pass


class ConflictError(StorageError):
    """The stored revision changed since it was read."""

    def __init__(self, message: str, expected: str | None = None, actual: str | None = None):
        super().__init__(message)
        self.expected = expected
        self.actual = actual


class ParseError(StorageError):
    """Stored or imported data could not be parsed."""
    pass
