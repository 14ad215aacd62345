"""
Storage Event Models

Every storage operation outcome is described by a StorageEvent and
written to the structured log. This gives a trail of what each backend
read, wrote, rejected, or skipped.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StorageEventType(str, Enum):
    """Types of storage events we log."""
    # Reads
    SNAPSHOT_LOADED = "snapshot_loaded"
    LOAD_FAILED = "load_failed"
    ROWS_SKIPPED = "rows_skipped"
    STORE_INITIALIZED = "store_initialized"

    # Writes
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    EXPENSES_IMPORTED = "expenses_imported"
    SAVE_FAILED = "save_failed"
    SAVE_CONFLICT = "save_conflict"


class StorageEventSeverity(str, Enum):
    """Severity level for storage events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class StorageEvent(BaseModel):
    """A single storage event."""

    event_id: UUID = Field(default_factory=uuid4)
    timestamp: datetime = Field(default_factory=utc_now)
    event_type: StorageEventType
    severity: StorageEventSeverity = StorageEventSeverity.INFO
    backend: str = Field(
        ...,
        description="Backend name (e.g., 'csv', 'github')"
    )
    expense_id: Optional[str] = None
    correlation_id: Optional[UUID] = None
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "backend": self.backend,
            "expense_id": self.expense_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "details": self.details,
            "error_message": self.error_message,
        }
