"""
Storage Event Logger

DESIGN DECISION: Every storage operation outcome is logged.
This provides:
1. Traceability of every write to the record set
2. Visibility of read failures that the UI reports as "empty"
3. A record of conflicts and skipped rows

The logger:
- Never raises (logging must not break a save)
- Supports correlation IDs to trace one user action across events
"""

import logging
import sys
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from coffee_tracker.models.events import (
    StorageEvent,
    StorageEventSeverity,
    StorageEventType,
)


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and structlog for JSON output."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=log_level)
    logging.getLogger().setLevel(log_level)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


configure_logging()


class StorageEventLogger:
    """
    Central storage event logging service.

    Each backend owns one, bound to its backend name.
    """

    def __init__(self, backend: str = "unknown"):
        self._backend = backend
        self._logger = structlog.get_logger("coffee_tracker.storage")

    @property
    def backend(self) -> str:
        return self._backend

    def log(self, event: StorageEvent) -> None:
        """Write an event to the structured log."""
        log_dict = event.to_log_dict()
        try:
            if event.severity == StorageEventSeverity.ERROR:
                self._logger.error("storage_event", **log_dict)
            elif event.severity == StorageEventSeverity.WARNING:
                self._logger.warning("storage_event", **log_dict)
            elif event.severity == StorageEventSeverity.DEBUG:
                self._logger.debug("storage_event", **log_dict)
            else:
                self._logger.info("storage_event", **log_dict)
        except Exception as e:
            # Logging must never break the calling operation
            print(f"WARNING: Failed to write storage event: {e}", file=sys.stderr)

    def emit(
        self,
        event_type: StorageEventType,
        severity: StorageEventSeverity = StorageEventSeverity.INFO,
        expense_id: Optional[str] = None,
        error_message: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
        **details: Any,
    ) -> StorageEvent:
        """Build an event for this backend, log it, and return it."""
        event = StorageEvent(
            event_type=event_type,
            severity=severity,
            backend=self._backend,
            expense_id=expense_id,
            correlation_id=correlation_id,
            details=details,
            error_message=error_message,
        )
        self.log(event)
        return event

    def snapshot_loaded(self, count: int, revision: Optional[str]) -> None:
        self.emit(
            StorageEventType.SNAPSHOT_LOADED,
            severity=StorageEventSeverity.DEBUG,
            count=count,
            revision=revision,
        )

    def load_failed(self, error: Exception) -> None:
        self.emit(
            StorageEventType.LOAD_FAILED,
            severity=StorageEventSeverity.ERROR,
            error_message=str(error),
            error_type=type(error).__name__,
        )

    def rows_skipped(self, rows: list[int], reason: str) -> None:
        self.emit(
            StorageEventType.ROWS_SKIPPED,
            severity=StorageEventSeverity.WARNING,
            rows=rows,
            reason=reason,
        )

    def save_failed(self, error: Exception, expense_id: Optional[str] = None) -> None:
        self.emit(
            StorageEventType.SAVE_FAILED,
            severity=StorageEventSeverity.ERROR,
            expense_id=expense_id,
            error_message=str(error),
            error_type=type(error).__name__,
        )

    def save_conflict(self, expected: Optional[str], actual: Optional[str]) -> None:
        self.emit(
            StorageEventType.SAVE_CONFLICT,
            severity=StorageEventSeverity.WARNING,
            expected_revision=expected,
            actual_revision=actual,
        )


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., a CSV import).
    """
    return uuid4()
