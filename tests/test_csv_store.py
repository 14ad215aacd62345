"""Tests for the CSV file store."""

import pytest

from coffee_tracker.exceptions import ConflictError, ParseError, StorageIOError
from coffee_tracker.models.expense import ExpenseRecord
from coffee_tracker.services.storage import CsvExpenseStore
from coffee_tracker.services.storage.csv_file import HEADER_ROW, content_revision


class TestEnsureStore:

    def test_creates_directory_and_header(self, csv_store, csv_path):
        assert not csv_path.parent.exists()
        csv_store.ensure_store()
        assert csv_path.read_text(encoding="utf-8") == "id,type,location,price,date,notes\n"

    def test_is_idempotent(self, csv_store, csv_path):
        csv_store.ensure_store()
        csv_path.write_text(HEADER_ROW + "1,Latte,Cafe A,150,2024-01-01,\n", encoding="utf-8")
        csv_store.ensure_store()
        assert "Latte" in csv_path.read_text(encoding="utf-8")


class TestFileFormat:

    async def test_file_is_rewritten_with_codec(self, csv_store, csv_path, latte, double_espresso):
        first = ExpenseRecord.create(latte, expense_id="1")
        second = ExpenseRecord.create(double_espresso, expense_id="2")
        await csv_store.add_expenses([first, second])

        assert csv_path.read_text(encoding="utf-8") == (
            "id,type,location,price,date,notes\n"
            "1,Latte,Cafe A,150,2024-01-01,\n"
            '2,"Espresso, Double",Cafe B,100,2024-01-02,'
        )

    async def test_reads_hand_edited_file(self, csv_store, csv_path):
        csv_path.parent.mkdir(parents=True)
        csv_path.write_text(
            "id,type,location,price,date,notes\r\n"
            "a,Latte,Cafe A,150,2024-01-01,\r\n"
            "\r\n"
            'b,Mocha,"Cafe, B",200,2024-01-03,extra shot\r\n',
            encoding="utf-8",
        )
        expenses = (await csv_store.list_expenses()).expenses
        assert [e.id for e in expenses] == ["a", "b"]
        assert expenses[1].location == "Cafe, B"

    async def test_no_temp_files_left_behind(self, csv_store, csv_path, latte):
        await csv_store.add_expense(ExpenseRecord.create(latte))
        assert [p.name for p in csv_path.parent.iterdir()] == [csv_path.name]


class TestRevisions:

    async def test_revision_is_content_hash(self, csv_store, csv_path, latte):
        await csv_store.add_expense(ExpenseRecord.create(latte))
        snapshot = await csv_store.load_snapshot()
        assert snapshot.revision == content_revision(csv_path.read_bytes())

    async def test_stale_revision_is_rejected(self, csv_store, csv_path, latte, double_espresso):
        """A concurrent writer's change is detected instead of being overwritten."""
        snapshot = await csv_store.load_snapshot()

        other_writer = CsvExpenseStore(csv_path)
        await other_writer.add_expense(ExpenseRecord.create(latte))

        with pytest.raises(ConflictError):
            await csv_store.save_snapshot(
                snapshot.records + [ExpenseRecord.create(double_espresso)],
                snapshot.revision,
            )

        expenses = (await csv_store.list_expenses()).expenses
        assert [e.type for e in expenses] == ["Latte"]

    async def test_save_returns_new_revision(self, csv_store, csv_path, latte):
        snapshot = await csv_store.load_snapshot()
        revision = await csv_store.save_snapshot([ExpenseRecord.create(latte)], snapshot.revision)
        assert revision == content_revision(csv_path.read_bytes())
        assert revision != snapshot.revision


class TestReadFailures:

    async def test_unreadable_file_lists_empty_with_error(self, tmp_path):
        # A directory where the file should be cannot be read as a file
        path = tmp_path / "expenses.csv"
        path.mkdir()
        store = CsvExpenseStore(path)

        result = await store.list_expenses()

        assert result.expenses == []
        assert result.ok is False
        assert "Cannot read" in result.error

    async def test_mutation_aborts_on_read_failure(self, tmp_path, latte):
        path = tmp_path / "expenses.csv"
        path.mkdir()
        store = CsvExpenseStore(path)

        with pytest.raises(StorageIOError):
            await store.add_expense(ExpenseRecord.create(latte))

    async def test_invalid_rows_block_writes(self, csv_store, csv_path, latte):
        """A row that cannot be parsed is never silently dropped by a rewrite."""
        csv_path.parent.mkdir(parents=True)
        original = HEADER_ROW + "1,,Cafe A,150,2024-01-01,\n"
        csv_path.write_text(original, encoding="utf-8")

        with pytest.raises(ParseError):
            await csv_store.add_expense(ExpenseRecord.create(latte))
        assert csv_path.read_text(encoding="utf-8") == original

    async def test_list_keeps_valid_rows_around_invalid_one(self, csv_store, csv_path):
        csv_path.parent.mkdir(parents=True)
        csv_path.write_text(
            HEADER_ROW
            + "1,Latte,Cafe A,150,2024-01-01,\n"
            + "2,,Cafe B,100,2024-01-02,no type\n",
            encoding="utf-8",
        )

        result = await csv_store.list_expenses()

        assert result.ok is True
        assert [e.id for e in result.expenses] == ["1"]
        assert result.warning == "Skipped unreadable rows: 3"


class TestLegacyFiles:

    async def test_bare_quote_survives_a_rewrite(self, csv_store, csv_path, latte):
        """Fields with an unquoted double quote keep their neighbours intact."""
        csv_path.parent.mkdir(parents=True)
        csv_path.write_text(
            HEADER_ROW
            + '1,Latte,Cafe A,150,2024-01-01,12" cup\n'
            + "2,Mocha,Cafe B,200,2024-01-02,\n"
            + "3,Flat White,Cafe C,180,2024-01-03,\n",
            encoding="utf-8",
        )

        await csv_store.add_expense(ExpenseRecord.create(latte, expense_id="4"))

        expenses = (await csv_store.list_expenses()).expenses
        assert [e.id for e in expenses] == ["1", "2", "3", "4"]
        assert expenses[0].notes == '12" cup'
        assert '1,Latte,Cafe A,150,2024-01-01,"12"" cup"' in csv_path.read_text(encoding="utf-8")
