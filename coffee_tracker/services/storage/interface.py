"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the local CSV file for the remote snapshot (or anything else)
2. Use in-memory fakes for testing
3. Keep the presentation layer decoupled from storage

Backends only know how to load and save the WHOLE record set together
with a revision token. The four CRUD operations are written once here as
load-snapshot / compute-next / compare-and-swap-on-revision, so every
backend gets the same semantics and the same conflict detection.
"""

from abc import ABC, abstractmethod
from typing import Callable, Iterable, Optional

from coffee_tracker.audit.logger import StorageEventLogger
from coffee_tracker.exceptions import (
    ConflictError,
    DuplicateError,
    NotFoundError,
    StorageError,
)
from coffee_tracker.models.events import StorageEventType
from coffee_tracker.models.expense import (
    ExpenseInput,
    ExpenseRecord,
    ListResult,
    Snapshot,
)


class ExpenseStorageInterface(ABC):
    """
    Abstract interface for expense storage.

    Subclasses implement load_snapshot() and save_snapshot().
    Everything else is shared.
    """

    backend_name = "abstract"

    def __init__(self, events: Optional[StorageEventLogger] = None):
        self._events = events or StorageEventLogger(self.backend_name)

    @abstractmethod
    async def load_snapshot(self) -> Snapshot:
        """
        Read the full record set and its current revision.

        Returns:
            Snapshot with revision None if nothing is stored yet

        Raises:
            StorageError: If the store cannot be read or parsed
        """
        pass

    @abstractmethod
    async def save_snapshot(
        self,
        records: list[ExpenseRecord],
        expected_revision: Optional[str],
    ) -> Optional[str]:
        """
        Replace the full record set, if it is still at expected_revision.

        Args:
            records: The complete new record set
            expected_revision: Revision the caller loaded (None = nothing stored)

        Returns:
            The new revision token

        Raises:
            ConflictError: If the stored revision changed since it was loaded
            StorageError: If the write fails
        """
        pass

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    async def load_for_listing(self) -> Snapshot:
        """
        Read the record set for display.

        Backends that can read around damaged rows override this and report
        them in Snapshot.skipped_rows. Mutations always use load_snapshot().
        """
        return await self.load_snapshot()

    async def list_expenses(self) -> ListResult:
        """
        List every stored expense.

        Never raises. A failed read comes back as an empty list with
        the error set, so callers can tell it apart from an empty store.
        Rows that could not be read are left out and named in the warning.
        """
        try:
            snapshot = await self.load_for_listing()
        except Exception as e:
            self._events.load_failed(e)
            return ListResult(expenses=[], error=str(e))

        warning = None
        if snapshot.skipped_rows:
            self._events.rows_skipped(snapshot.skipped_rows, reason="invalid expense")
            rows = ", ".join(str(row) for row in snapshot.skipped_rows)
            warning = f"Skipped unreadable rows: {rows}"
        return ListResult(expenses=snapshot.records, warning=warning)

    async def get_expense(self, expense_id: str) -> Optional[ExpenseRecord]:
        """Retrieve one expense by id, or None."""
        snapshot = await self._load_for_write()
        return snapshot.find(expense_id)

    # -------------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------------

    async def add_expense(self, record: ExpenseRecord) -> str:
        """
        Append a new expense.

        Returns:
            The record's id

        Raises:
            DuplicateError: If a record with this id already exists
            StorageError: If the write fails
        """
        ids = await self.add_expenses([record])
        return ids[0]

    async def add_expenses(
        self,
        records: Iterable[ExpenseRecord],
        skip_existing: bool = False,
    ) -> list[str]:
        """
        Append several expenses in a single read-modify-write.

        Args:
            records: The expenses to append, in order
            skip_existing: Leave out records whose id is already stored (or
                repeated in the batch) instead of failing

        Returns:
            Ids of the records actually appended

        Raises:
            DuplicateError: If an id collides and skip_existing is False
            StorageError: If the write fails
        """
        new_records = list(records)
        added: list[ExpenseRecord] = []

        def append(current: list[ExpenseRecord]) -> Optional[list[ExpenseRecord]]:
            added.clear()
            seen = {record.id for record in current}
            for record in new_records:
                if record.id in seen:
                    if skip_existing:
                        continue
                    raise DuplicateError(f"Expense already exists: {record.id}")
                seen.add(record.id)
                added.append(record)
            return current + added if added else None

        await self._mutate(append)

        for record in added:
            self._events.emit(
                StorageEventType.EXPENSE_ADDED,
                expense_id=record.id,
                type=record.type,
                price=record.price,
            )
        return [record.id for record in added]

    async def update_expense(self, expense_id: str, expense: ExpenseInput) -> ExpenseRecord:
        """
        Replace the expense with this id; its id is kept.

        Other records are left exactly as they were.

        Raises:
            NotFoundError: If no expense has this id
            StorageError: If the write fails
        """
        updated = ExpenseRecord.create(expense, expense_id=expense_id)

        def replace(current: list[ExpenseRecord]) -> list[ExpenseRecord]:
            for index, record in enumerate(current):
                if record.id == expense_id:
                    return current[:index] + [updated] + current[index + 1:]
            raise NotFoundError(f"Expense not found: {expense_id}")

        await self._mutate(replace)

        self._events.emit(StorageEventType.EXPENSE_UPDATED, expense_id=expense_id)
        return updated

    async def delete_expense(self, expense_id: str) -> bool:
        """
        Delete the expense with this id.

        Deleting an id that is not stored succeeds without writing.

        Returns:
            True if a record was removed
        """
        removed = False

        def remove(current: list[ExpenseRecord]) -> Optional[list[ExpenseRecord]]:
            nonlocal removed
            remaining = [record for record in current if record.id != expense_id]
            removed = len(remaining) != len(current)
            return remaining if removed else None

        await self._mutate(remove)

        if removed:
            self._events.emit(StorageEventType.EXPENSE_DELETED, expense_id=expense_id)
        return removed

    # -------------------------------------------------------------------------
    # Read-modify-write
    # -------------------------------------------------------------------------

    async def _load_for_write(self) -> Snapshot:
        """Load a snapshot, wrapping unexpected errors as StorageError."""
        try:
            snapshot = await self.load_snapshot()
        except StorageError as e:
            self._events.load_failed(e)
            raise
        except Exception as e:
            self._events.load_failed(e)
            raise StorageError(f"Failed to load expenses: {e}") from e
        self._events.snapshot_loaded(len(snapshot.records), snapshot.revision)
        return snapshot

    async def _mutate(
        self,
        compute_next: Callable[[list[ExpenseRecord]], Optional[list[ExpenseRecord]]],
    ) -> Optional[str]:
        """
        Load the record set, compute the next one, and save it on the loaded revision.

        compute_next may raise (e.g. NotFoundError) to abort without writing,
        or return None when nothing changed.

        Returns:
            The new revision, or None if nothing was written
        """
        snapshot = await self._load_for_write()
        next_records = compute_next(list(snapshot.records))
        if next_records is None:
            return None

        try:
            return await self.save_snapshot(next_records, snapshot.revision)
        except ConflictError as e:
            self._events.save_conflict(e.expected, e.actual)
            raise
        except StorageError as e:
            self._events.save_failed(e)
            raise
        except Exception as e:
            self._events.save_failed(e)
            raise StorageError(f"Failed to save expenses: {e}") from e
