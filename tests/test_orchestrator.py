"""Tests for the presentation-facing flow."""

from datetime import date

import pytest

from coffee_tracker.exceptions import NotFoundError, ParseError, StorageError
from coffee_tracker.models.expense import ExpenseRecord
from coffee_tracker.orchestrator import ExpenseTrackerFlow, ExportError
from coffee_tracker.services import csv_codec
from coffee_tracker.services.storage import CsvExpenseStore


@pytest.fixture
def flow(store):
    return ExpenseTrackerFlow(store)


class TestSubmit:

    async def test_new_expense_gets_generated_id(self, flow, latte):
        record = await flow.submit(latte)
        assert record.id
        assert (await flow.load_expenses()).expenses == [record]

    async def test_editing_updates_in_place(self, flow, latte, double_espresso):
        record = await flow.submit(latte)
        updated = await flow.submit(double_espresso, editing_id=record.id)

        assert updated.id == record.id
        expenses = (await flow.load_expenses()).expenses
        assert [e.type for e in expenses] == ["Espresso, Double"]

    async def test_editing_deleted_expense(self, flow, latte):
        with pytest.raises(NotFoundError):
            await flow.submit(latte, editing_id="gone")


class TestLoad:

    async def test_sorted_newest_first(self, flow, latte, double_espresso):
        await flow.submit(latte)
        await flow.submit(double_espresso)
        expenses = (await flow.load_expenses()).expenses
        assert [e.date for e in expenses] == ["2024-01-02", "2024-01-01"]

    async def test_delete(self, flow, latte):
        record = await flow.submit(latte)
        assert await flow.delete(record.id) is True
        assert await flow.delete(record.id) is False
        assert (await flow.load_expenses()).expenses == []


class TestImportExport:

    async def test_export_then_reimport_elsewhere(self, flow, latte, double_espresso, tmp_path):
        await flow.submit(latte)
        await flow.submit(double_espresso)

        filename, text = await flow.export_csv(on=date(2024, 1, 3))

        assert filename == "coffee-expenses-2024-01-03.csv"
        assert '"Espresso, Double",Cafe B,100,2024-01-02,' in text

        target = ExpenseTrackerFlow(CsvExpenseStore(tmp_path / "other.csv"))
        report = await target.import_csv(text)

        assert report.imported == 2
        assert report.skipped == 0
        original = (await flow.load_expenses()).expenses
        assert (await target.load_expenses()).expenses == original

    async def test_export_nothing(self, flow):
        with pytest.raises(ExportError, match="No expenses to export"):
            await flow.export_csv()

    async def test_export_given_records(self, flow, record_factory):
        filename, text = await flow.export_csv([record_factory("1")])
        assert text == csv_codec.encode([record_factory("1")])

    async def test_export_fails_loudly_when_store_unreadable(self, tmp_path):
        path = tmp_path / "expenses.csv"
        path.mkdir()
        with pytest.raises(StorageError):
            await ExpenseTrackerFlow(CsvExpenseStore(path)).export_csv()

    async def test_import_assigns_missing_ids_and_skips_invalid(self, flow):
        text = (
            "type,location,price,date,notes\n"
            "Latte,Cafe A,150,2024-01-01,\n"
            ",Cafe B,100,2024-01-02,no type\n"
            "Mocha,Cafe C,200,2024-01-03,\n"
        )
        report = await flow.import_csv(text)

        assert report.imported == 2
        assert report.skipped == 1
        expenses = (await flow.load_expenses()).expenses
        assert sorted(e.id for e in expenses) == sorted(report.ids)
        assert all(e.id for e in expenses)

    async def test_import_keeps_given_ids(self, flow):
        report = await flow.import_csv(
            "id,type,location,price,date,notes\nabc,Latte,Cafe A,150,2024-01-01,\n"
        )
        assert report.ids == ["abc"]

    async def test_import_skips_ids_already_stored(self, flow, latte, double_espresso):
        record = await flow.submit(latte)
        text = csv_codec.encode([
            ExpenseRecord.create(latte, expense_id=record.id),
            ExpenseRecord.create(double_espresso, expense_id="new"),
        ])

        report = await flow.import_csv(text)

        assert report.imported == 1
        assert report.skipped == 1
        assert report.ids == ["new"]
        assert len((await flow.load_expenses()).expenses) == 2

    async def test_reimporting_own_export_adds_nothing(self, flow, latte, double_espresso):
        await flow.submit(latte)
        await flow.submit(double_espresso)
        _, text = await flow.export_csv()

        report = await flow.import_csv(text)

        assert report.imported == 0
        assert report.skipped == 2
        assert len((await flow.load_expenses()).expenses) == 2

    async def test_import_empty_text(self, flow):
        with pytest.raises(ParseError):
            await flow.import_csv("  \n")

    async def test_import_header_only(self, flow):
        report = await flow.import_csv("id,type,location,price,date,notes\n")
        assert report.imported == 0


class TestSummary:

    def test_summarize(self, record_factory):
        summary = ExpenseTrackerFlow.summarize([
            record_factory("1", price="150"),
            record_factory("2", price="100"),
        ])
        assert summary.total == 250.0
        assert summary.count == 2
