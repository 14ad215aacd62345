"""Services package."""

from coffee_tracker.services import csv_codec
from coffee_tracker.services.storage import (
    BackendConnectionError,
    ConflictError,
    CsvExpenseStore,
    DuplicateError,
    ExpenseStorageInterface,
    GitHubContentClient,
    HostedContentClient,
    NotFoundError,
    ParseError,
    RemoteSnapshotStore,
    RemoteStoreConfig,
    StorageError,
    StorageIOError,
)

__all__ = [
    # CSV codec
    "csv_codec",
    # Storage services
    "BackendConnectionError",
    "ConflictError",
    "CsvExpenseStore",
    "DuplicateError",
    "ExpenseStorageInterface",
    "GitHubContentClient",
    "HostedContentClient",
    "NotFoundError",
    "ParseError",
    "RemoteSnapshotStore",
    "RemoteStoreConfig",
    "StorageError",
    "StorageIOError",
]
