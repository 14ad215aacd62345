"""
Shared fixtures for Coffee Tracker tests.

No real API calls in tests: the remote store runs against an
in-memory HostedContentClient that behaves like the GitHub contents
API (revision required, stale revision rejected).
"""

import hashlib
from typing import Optional

import pytest

from coffee_tracker.exceptions import ConflictError
from coffee_tracker.models.expense import ExpenseInput, ExpenseRecord
from coffee_tracker.services.storage import (
    CsvExpenseStore,
    HostedContentClient,
    RemoteContent,
    RemoteSnapshotStore,
    RemoteStoreConfig,
)


class FakeContentClient(HostedContentClient):
    """In-memory stand-in for the hosted content API."""

    def __init__(self):
        self.files: dict[str, RemoteContent] = {}
        self.commits: list[dict] = []

    def get_content(self, path: str) -> Optional[RemoteContent]:
        return self.files.get(path)

    def put_content(
        self,
        path: str,
        content: str,
        revision: Optional[str],
        message: str,
    ) -> str:
        current = self.files.get(path)
        current_revision = current.revision if current else None
        if revision != current_revision:
            raise ConflictError(
                f"{path} does not match {revision}",
                expected=revision,
                actual=current_revision,
            )
        new_revision = hashlib.sha1(
            f"{len(self.commits)}:{content}".encode("utf-8")
        ).hexdigest()
        self.files[path] = RemoteContent(content=content, revision=new_revision)
        self.commits.append({"path": path, "message": message, "revision": revision})
        return new_revision

    def simulate_external_commit(self, path: str, content: str) -> None:
        """Another writer commits to the file behind our back."""
        current = self.files.get(path)
        self.put_content(path, content, current.revision if current else None, "external")


@pytest.fixture
def csv_path(tmp_path):
    return tmp_path / "data" / "coffee-expenses.csv"


@pytest.fixture
def csv_store(csv_path):
    return CsvExpenseStore(csv_path)


@pytest.fixture
def remote_config():
    return RemoteStoreConfig(
        owner="octocat",
        repo="coffee-data",
        credential="test-token",
    )


@pytest.fixture
def content_client():
    return FakeContentClient()


@pytest.fixture
def remote_store(remote_config, content_client):
    return RemoteSnapshotStore(remote_config, client=content_client)


@pytest.fixture(params=["csv", "remote"])
def store(request, csv_store, remote_store):
    """Each backend in turn, for contract tests."""
    return csv_store if request.param == "csv" else remote_store


@pytest.fixture
def latte():
    return ExpenseInput(
        type="Latte",
        location="Cafe A",
        price="150",
        date="2024-01-01",
        notes="",
    )


@pytest.fixture
def double_espresso():
    return ExpenseInput(
        type="Espresso, Double",
        location="Cafe B",
        price="100",
        date="2024-01-02",
        notes="",
    )


def make_record(expense_id: str, **overrides) -> ExpenseRecord:
    fields = {
        "type": "Flat White",
        "location": "Corner Shop",
        "price": "3.80",
        "date": "2024-03-10",
        "notes": "",
    }
    fields.update(overrides)
    return ExpenseRecord(id=expense_id, **fields)


@pytest.fixture
def record_factory():
    return make_record
