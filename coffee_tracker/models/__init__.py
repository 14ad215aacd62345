"""
Data Models Package

Pydantic models for expenses, storage results, and storage events.
"""

from coffee_tracker.models.expense import (
    ExpenseInput,
    ExpenseRecord,
    ExpenseSummary,
    ImportReport,
    ListResult,
    Snapshot,
    sort_newest_first,
    summarize,
)
from coffee_tracker.models.events import (
    StorageEvent,
    StorageEventSeverity,
    StorageEventType,
)

__all__ = [
    # Expense models
    "ExpenseInput",
    "ExpenseRecord",
    "ExpenseSummary",
    "ImportReport",
    "ListResult",
    "Snapshot",
    "sort_newest_first",
    "summarize",
    # Event models
    "StorageEvent",
    "StorageEventSeverity",
    "StorageEventType",
]
