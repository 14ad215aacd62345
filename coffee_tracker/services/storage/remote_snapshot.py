"""
Remote Snapshot Storage Implementation

The full record set is stored as one pretty-printed JSON array in a
hosted repository. Every mutation commits a new version of that file.

DESIGN DECISION: The revision observed by load_snapshot() is the one
sent with the write. If anyone else committed in between, the host
rejects the write and the caller gets a ConflictError. There is no
automatic retry or rebase; the user reloads and tries again.
"""

import json
from datetime import datetime, timezone
from typing import Optional

from pydantic import TypeAdapter, ValidationError

from coffee_tracker.audit.logger import StorageEventLogger
from coffee_tracker.exceptions import ParseError
from coffee_tracker.models.expense import ExpenseRecord, Snapshot
from coffee_tracker.services.storage.github_contents import (
    GitHubContentClient,
    HostedContentClient,
    RemoteStoreConfig,
)
from coffee_tracker.services.storage.interface import ExpenseStorageInterface


COMMIT_MESSAGE_PREFIX = "Update coffee expenses"

_records_adapter = TypeAdapter(list[ExpenseRecord])


def commit_message(now: Optional[datetime] = None) -> str:
    """Timestamped commit message for a save."""
    now = now or datetime.now(timezone.utc)
    return f"{COMMIT_MESSAGE_PREFIX} - {now.isoformat()}"


def records_to_json(records: list[ExpenseRecord]) -> str:
    return json.dumps([record.model_dump() for record in records], indent=2)


def records_from_json(text: str) -> list[ExpenseRecord]:
    """
    Parse the stored JSON array.

    Raises:
        ParseError: If the text is not a JSON array of valid expenses
    """
    try:
        data = json.loads(text) if text.strip() else []
    except json.JSONDecodeError as e:
        raise ParseError(f"Remote expense file is not valid JSON: {e}") from e
    if not isinstance(data, list):
        raise ParseError("Remote expense file must contain a JSON array")
    try:
        return _records_adapter.validate_python(data)
    except ValidationError as e:
        raise ParseError(f"Remote expense file contains invalid expenses: {e}") from e


class RemoteSnapshotStore(ExpenseStorageInterface):
    """
    Expense storage backed by a JSON file in a hosted repository.
    """

    backend_name = "github"

    def __init__(
        self,
        config: RemoteStoreConfig,
        client: Optional[HostedContentClient] = None,
        events: Optional[StorageEventLogger] = None,
    ):
        super().__init__(events)
        self._config = config
        self._client = client or GitHubContentClient(config)

    @property
    def config(self) -> RemoteStoreConfig:
        return self._config

    async def load_snapshot(self) -> Snapshot:
        """Fetch the file; a missing file is an empty record set."""
        remote = self._client.get_content(self._config.path)
        if remote is None:
            return Snapshot(records=[], revision=None)
        return Snapshot(
            records=records_from_json(remote.content),
            revision=remote.revision,
        )

    async def save_snapshot(
        self,
        records: list[ExpenseRecord],
        expected_revision: Optional[str],
    ) -> Optional[str]:
        """Commit the record set on top of the revision that was loaded."""
        return self._client.put_content(
            self._config.path,
            records_to_json(records),
            revision=expected_revision,
            message=commit_message(),
        )
