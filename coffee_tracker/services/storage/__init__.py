"""
Storage Services Package

Provides the abstract expense storage interface and two interchangeable
backends: a local CSV file and a JSON snapshot in a hosted repository.
"""

from coffee_tracker.exceptions import (
    BackendConnectionError,
    ConflictError,
    DuplicateError,
    NotFoundError,
    ParseError,
    StorageError,
    StorageIOError,
)
from coffee_tracker.services.storage.interface import ExpenseStorageInterface
from coffee_tracker.services.storage.csv_file import CsvExpenseStore
from coffee_tracker.services.storage.github_contents import (
    GitHubContentClient,
    HostedContentClient,
    RemoteContent,
    RemoteStoreConfig,
)
from coffee_tracker.services.storage.remote_snapshot import RemoteSnapshotStore

__all__ = [
    # Interface
    "ExpenseStorageInterface",
    # Exceptions
    "BackendConnectionError",
    "ConflictError",
    "DuplicateError",
    "NotFoundError",
    "ParseError",
    "StorageError",
    "StorageIOError",
    # CSV file implementation
    "CsvExpenseStore",
    # Remote snapshot implementation
    "GitHubContentClient",
    "HostedContentClient",
    "RemoteContent",
    "RemoteSnapshotStore",
    "RemoteStoreConfig",
]
