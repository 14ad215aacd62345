"""
CSV File Storage Implementation

DESIGN DECISION: A local CSV file is the default backend because:
1. The user can open their data in any spreadsheet program
2. No service or credentials required
3. The file format is the same one used for import/export

TRADEOFFS:
- Every mutation rewrites the whole file (fine for personal-scale data)
- No locking between processes

The revision token is the SHA-256 of the file bytes. save_snapshot()
re-hashes the file before writing and refuses to write if another
writer changed it since it was loaded, instead of silently dropping
their change.
"""

import hashlib
import os
import tempfile
from pathlib import Path
from typing import Optional

from coffee_tracker.audit.logger import StorageEventLogger
from coffee_tracker.exceptions import ConflictError, StorageIOError
from coffee_tracker.models.events import StorageEventType
from coffee_tracker.models.expense import ExpenseRecord, Snapshot
from coffee_tracker.services import csv_codec
from coffee_tracker.services.storage.interface import ExpenseStorageInterface


HEADER_ROW = ",".join(csv_codec.CSV_COLUMNS) + "\n"


def content_revision(data: bytes) -> str:
    """Revision token for a file's bytes."""
    return hashlib.sha256(data).hexdigest()


class CsvExpenseStore(ExpenseStorageInterface):
    """
    Expense storage backed by a single local CSV file.

    The file is the single source of truth; nothing is cached.
    """

    backend_name = "csv"

    def __init__(self, path: Path | str, events: Optional[StorageEventLogger] = None):
        super().__init__(events)
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def ensure_store(self) -> None:
        """
        Create the file (and its directory) holding only the header row.

        Does nothing if the file already exists.

        Raises:
            StorageIOError: If the directory or file cannot be created
        """
        if self._path.exists():
            return
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("x", encoding="utf-8", newline="") as f:
                f.write(HEADER_ROW)
        except FileExistsError:
            # Another writer created it first
            return
        except OSError as e:
            raise StorageIOError(f"Cannot create expense file {self._path}: {e}") from e

        self._events.emit(StorageEventType.STORE_INITIALIZED, path=str(self._path))

    def _read_bytes(self) -> bytes:
        try:
            return self._path.read_bytes()
        except OSError as e:
            raise StorageIOError(f"Cannot read expense file {self._path}: {e}") from e

    def _read_text(self) -> tuple[str, bytes]:
        data = self._read_bytes()
        try:
            return data.decode("utf-8"), data
        except UnicodeDecodeError as e:
            raise StorageIOError(f"Expense file {self._path} is not UTF-8: {e}") from e

    async def load_snapshot(self) -> Snapshot:
        """Read and strictly decode the whole file."""
        self.ensure_store()
        text, data = self._read_text()
        records = csv_codec.decode(text, strict=True)
        return Snapshot(records=records, revision=content_revision(data))

    async def load_for_listing(self) -> Snapshot:
        """Read the file, leaving out rows that fail validation."""
        self.ensure_store()
        text, data = self._read_text()
        records, skipped = csv_codec.decode_report(text)
        return Snapshot(records=records, revision=content_revision(data), skipped_rows=skipped)

    async def save_snapshot(
        self,
        records: list[ExpenseRecord],
        expected_revision: Optional[str],
    ) -> Optional[str]:
        """Rewrite the whole file if it is unchanged since it was loaded."""
        self.ensure_store()
        current = content_revision(self._read_bytes())
        if current != expected_revision:
            raise ConflictError(
                f"Expense file {self._path} changed since it was read",
                expected=expected_revision,
                actual=current,
            )

        data = csv_codec.encode(records).encode("utf-8")
        self._write_atomic(data)
        return content_revision(data)

    def _write_atomic(self, data: bytes) -> None:
        """Write to a temporary file beside the target, then rename over it."""
        try:
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self._path.name}.",
                suffix=".tmp",
                dir=self._path.parent,
            )
        except OSError as e:
            raise StorageIOError(f"Cannot write expense file {self._path}: {e}") from e
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self._path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageIOError(f"Cannot write expense file {self._path}: {e}") from e
