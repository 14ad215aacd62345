"""Storage event logging package."""

from coffee_tracker.audit.logger import (
    StorageEventLogger,
    configure_logging,
    create_correlation_id,
)

__all__ = ["StorageEventLogger", "configure_logging", "create_correlation_id"]
