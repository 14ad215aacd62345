"""
Main Orchestrator for Coffee Tracker

This module is the seam between the presentation layer and storage.
It defines the flows the UI needs:
1. Load (read → sort newest first)
2. Submit form (add with a fresh id, or update in place)
3. Delete
4. Import / export CSV
5. Summary totals

The UI only talks to ExpenseTrackerFlow; which backend sits behind it
is decided once, in create_app_components().
"""

from datetime import date
from typing import Optional

from pydantic import ValidationError

from coffee_tracker.audit import StorageEventLogger, configure_logging, create_correlation_id
from coffee_tracker.config import Settings, get_settings
from coffee_tracker.exceptions import ParseError, StorageError
from coffee_tracker.models.events import StorageEventType
from coffee_tracker.models.expense import (
    ExpenseInput,
    ExpenseRecord,
    ExpenseSummary,
    ImportReport,
    ListResult,
    sort_newest_first,
    summarize,
)
from coffee_tracker.services import csv_codec
from coffee_tracker.services.storage import (
    CsvExpenseStore,
    ExpenseStorageInterface,
    RemoteSnapshotStore,
)


class ExportError(Exception):
    """Nothing to export."""
    pass


class ExpenseTrackerFlow:
    """
    Orchestrates every user action on the expense list.

    One call at a time: the UI disables further actions while a
    save is outstanding, so this class keeps no locks or queues.
    """

    def __init__(
        self,
        storage: ExpenseStorageInterface,
        events: Optional[StorageEventLogger] = None,
    ):
        self._storage = storage
        self._events = events or StorageEventLogger(storage.backend_name)

    @property
    def storage(self) -> ExpenseStorageInterface:
        return self._storage

    async def load_expenses(self) -> ListResult:
        """Load all expenses, newest first."""
        result = await self._storage.list_expenses()
        return result.model_copy(update={"expenses": sort_newest_first(result.expenses)})

    async def submit(
        self,
        expense: ExpenseInput,
        editing_id: Optional[str] = None,
    ) -> ExpenseRecord:
        """
        Save the form.

        Args:
            expense: The form contents
            editing_id: Id of the expense being edited; None to add a new one

        Returns:
            The saved record

        Raises:
            NotFoundError: If the edited expense no longer exists
            StorageError: If the save fails
        """
        if editing_id:
            return await self._storage.update_expense(editing_id, expense)

        record = ExpenseRecord.create(expense)
        await self._storage.add_expense(record)
        return record

    async def delete(self, expense_id: str) -> bool:
        """Delete an expense; True if it existed."""
        return await self._storage.delete_expense(expense_id)

    async def import_csv(self, text: str) -> ImportReport:
        """
        Import expenses from CSV text.

        Rows without an id get a new one. Rows missing a required field
        and rows whose id is already stored are skipped and counted, so
        importing an export back into the same store adds nothing twice.
        Everything valid is saved in one write.

        Raises:
            ParseError: If the text holds no header row
            StorageError: If the save fails
        """
        if not text.strip():
            raise ParseError("CSV file is empty")
        rows = csv_codec.decode_rows(text)

        correlation_id = create_correlation_id()
        records = []
        skipped = []
        for row_number, row in enumerate(rows, start=2):
            try:
                expense = ExpenseInput.model_validate(row)
            except ValidationError:
                skipped.append(row_number)
                continue
            records.append(ExpenseRecord.create(expense, expense_id=(row.get("id") or "").strip()))

        if skipped:
            self._events.rows_skipped(skipped, reason="missing required fields")

        ids = await self._storage.add_expenses(records, skip_existing=True) if records else []
        duplicates = len(records) - len(ids)

        self._events.emit(
            StorageEventType.EXPENSES_IMPORTED,
            correlation_id=correlation_id,
            imported=len(ids),
            skipped=len(skipped),
            duplicates=duplicates,
        )
        return ImportReport(imported=len(ids), skipped=len(skipped) + duplicates, ids=ids)

    async def export_csv(
        self,
        records: Optional[list[ExpenseRecord]] = None,
        on: Optional[date] = None,
    ) -> tuple[str, str]:
        """
        Export expenses as CSV.

        Args:
            records: What to export; the stored expenses if omitted
            on: Date used in the file name (today if omitted)

        Returns:
            (filename, csv_text)

        Raises:
            ExportError: If there is nothing to export
            StorageError: If the stored expenses cannot be read
        """
        if records is None:
            result = await self.load_expenses()
            if not result.ok:
                raise StorageError(f"Failed to load expenses: {result.error}")
            records = result.expenses
        if not records:
            raise ExportError("No expenses to export")
        return csv_codec.export_filename(on), csv_codec.encode(records)

    @staticmethod
    def summarize(records: list[ExpenseRecord]) -> ExpenseSummary:
        return summarize(records)


def create_storage(settings: Optional[Settings] = None) -> ExpenseStorageInterface:
    """
    Build the configured storage backend.

    STORAGE_BACKEND=csv (default) or STORAGE_BACKEND=github.
    """
    settings = settings or get_settings()
    backend = settings.app.storage_backend

    if backend == "github":
        return RemoteSnapshotStore(settings.github.to_store_config())
    return CsvExpenseStore(settings.csv_store.path)


def create_app_components(settings: Optional[Settings] = None) -> ExpenseTrackerFlow:
    """
    Factory function to create all application components.

    Configures logging, then wires the configured backend into a flow.
    """
    settings = settings or get_settings()
    configure_logging(settings.app.effective_log_level)
    return ExpenseTrackerFlow(create_storage(settings))
