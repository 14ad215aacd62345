"""
Expense Data Models for Coffee Tracker

These models define the schemas for every expense flowing through the system.
They are designed to:
1. Enforce required-field presence at the form boundary
2. Be serializable for both CSV and JSON storage
3. Keep the record set and its revision token together

DESIGN DECISION: Price and date stay as text.
The stored representation is exactly what the user typed; numeric
interpretation only happens for display totals.
"""

from datetime import date
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, computed_field


def today_iso() -> str:
    """Today's date as yyyy-MM-dd."""
    return date.today().isoformat()


# =============================================================================
# CORE EXPENSE MODELS
# =============================================================================

class ExpenseInput(BaseModel):
    """
    An expense as entered in the form, before it has an identity.

    Only required-field presence is checked. Price is not validated as
    a currency amount and date is not parsed.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: str = Field(
        ...,
        min_length=1,
        description="Coffee variety (e.g., Latte, Espresso)"
    )
    location: str = Field(
        ...,
        min_length=1,
        description="Shop or place of purchase"
    )
    price: str = Field(
        ...,
        min_length=1,
        description="Amount paid, as entered"
    )
    date: str = Field(
        default_factory=today_iso,
        description="Purchase date (yyyy-MM-dd)"
    )
    notes: str = Field(
        default="",
        description="Free-text notes"
    )

    @property
    def price_value(self) -> float:
        """Numeric price for display totals; 0.0 when not a number."""
        try:
            return float(self.price)
        except ValueError:
            return 0.0


class ExpenseRecord(ExpenseInput):
    """
    A persisted expense.

    The id is assigned by the creator (client side), never by storage,
    and does not change after creation.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: str = Field(
        ...,
        min_length=1,
        description="Opaque unique identifier"
    )

    @classmethod
    def create(cls, expense: ExpenseInput, expense_id: Optional[str] = None) -> "ExpenseRecord":
        """Give an input an identity (a new UUID4 unless one is supplied)."""
        return cls(id=expense_id or str(uuid4()), **expense.model_dump(exclude={"id"}))

    def to_input(self) -> ExpenseInput:
        """Strip the identity, e.g. to prefill an edit form."""
        return ExpenseInput(**self.model_dump(exclude={"id"}))


# =============================================================================
# STORAGE RESULTS
# =============================================================================

class Snapshot(BaseModel):
    """
    The full record set as read from a backend, with its revision token.

    revision is None when the backing object does not exist yet.
    skipped_rows lists rows left out by a lenient read; a snapshot
    loaded for writing never has any.
    """
    records: list[ExpenseRecord] = Field(default_factory=list)
    revision: Optional[str] = None
    skipped_rows: list[int] = Field(default_factory=list)

    def find(self, expense_id: str) -> Optional[ExpenseRecord]:
        for record in self.records:
            if record.id == expense_id:
                return record
        return None


class ListResult(BaseModel):
    """
    Outcome of listing expenses.

    An empty list with no error means the store is truly empty.
    An error means the read failed and expenses is empty for availability.
    A warning means some stored rows could not be read; the rest are listed.
    """
    expenses: list[ExpenseRecord] = Field(default_factory=list)
    error: Optional[str] = None
    warning: Optional[str] = None

    @computed_field
    @property
    def ok(self) -> bool:
        return self.error is None


class ImportReport(BaseModel):
    """Result of a bulk CSV import."""
    imported: int = 0
    skipped: int = 0
    ids: list[str] = Field(default_factory=list)


class ExpenseSummary(BaseModel):
    """Display aggregates over a record set."""
    count: int = 0
    total: float = 0.0

    @computed_field
    @property
    def average(self) -> float:
        if not self.count:
            return 0.0
        return self.total / self.count


def summarize(records: list[ExpenseRecord]) -> ExpenseSummary:
    """
    Sum prices for display.

    Floating-point summation is fine here; totals are informational.
    """
    return ExpenseSummary(
        count=len(records),
        total=sum(record.price_value for record in records),
    )


def sort_newest_first(records: list[ExpenseRecord]) -> list[ExpenseRecord]:
    """Order records by date, newest first (ISO dates sort lexically)."""
    return sorted(records, key=lambda r: r.date, reverse=True)
