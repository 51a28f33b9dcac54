"""Tests for the record service repositories."""

import json

import pytest

from expense_tracker.models import Expense, ExpenseFields
from expense_tracker.services.storage import (
    InMemoryExpenseRepository,
    JsonFileExpenseRepository,
    NotFoundError,
)


class TestInMemoryRepository:
    """Tests for the ordered in-memory list."""

    @pytest.mark.asyncio
    async def test_upsert_appends_then_replaces(self, coffee_expense):
        """Test idempotent create keyed by id."""
        repo = InMemoryExpenseRepository()

        _, created = await repo.upsert_expense(coffee_expense)
        assert created is True

        latte = coffee_expense.model_copy(update={"description": "Latte"})
        _, created = await repo.upsert_expense(latte)
        assert created is False
        assert await repo.list_expenses() == [latte]

    @pytest.mark.asyncio
    async def test_update(self, coffee_expense, coffee_fields):
        """Test overwriting fields keeps the id and position."""
        other = Expense(id="2", **coffee_fields.model_dump())
        repo = InMemoryExpenseRepository([coffee_expense, other])

        fields = coffee_fields.model_copy(update={"description": "Tea"})
        updated = await repo.update_expense("1", fields)

        assert updated.id == "1"
        assert [e.description for e in await repo.list_expenses()] == ["Tea", "Coffee"]

    @pytest.mark.asyncio
    async def test_update_unknown_raises(self, coffee_fields):
        """Test NotFoundError on update."""
        with pytest.raises(NotFoundError):
            await InMemoryExpenseRepository().update_expense("999", coffee_fields)

    @pytest.mark.asyncio
    async def test_delete_unknown_raises(self):
        """Test NotFoundError on delete."""
        with pytest.raises(NotFoundError):
            await InMemoryExpenseRepository().delete_expense("999")

    @pytest.mark.asyncio
    async def test_get_expense(self, coffee_expense):
        """Test point lookup."""
        repo = InMemoryExpenseRepository([coffee_expense])
        assert await repo.get_expense("1") == coffee_expense
        assert await repo.get_expense("2") is None


class TestJsonFileRepository:
    """Tests for the JSON file backing store."""

    @pytest.mark.asyncio
    async def test_missing_file_is_empty_store(self, tmp_path):
        """Test that a fresh install starts empty without error."""
        repo = JsonFileExpenseRepository(tmp_path / "nested" / "expenses.json")
        assert await repo.list_expenses() == []

    @pytest.mark.asyncio
    async def test_corrupt_file_is_empty_store(self, tmp_path):
        """Test that an unparsable file is logged and treated as empty."""
        path = tmp_path / "expenses.json"
        path.write_text("{not json")
        assert await JsonFileExpenseRepository(path).list_expenses() == []

    @pytest.mark.asyncio
    async def test_invalid_records_skipped(self, tmp_path, coffee_expense):
        """Test that one bad record does not hide the rest."""
        path = tmp_path / "expenses.json"
        path.write_text(json.dumps([{"id": "bad"}, coffee_expense.to_wire()]))
        assert await JsonFileExpenseRepository(path).list_expenses() == [coffee_expense]

    @pytest.mark.asyncio
    async def test_duplicate_ids_last_wins(self, tmp_path, coffee_expense):
        """Test loading a file written by a non-idempotent service."""
        path = tmp_path / "expenses.json"
        latte = {**coffee_expense.to_wire(), "description": "Latte"}
        path.write_text(json.dumps([coffee_expense.to_wire(), latte]))

        expenses = await JsonFileExpenseRepository(path).list_expenses()
        assert [e.description for e in expenses] == ["Latte"]

    @pytest.mark.asyncio
    async def test_every_mutation_rewrites_file(self, tmp_path, coffee_expense):
        """Test full rewrites with two-space indentation."""
        path = tmp_path / "expenses.json"
        repo = JsonFileExpenseRepository(path)

        await repo.upsert_expense(coffee_expense)
        assert path.read_text() == json.dumps([coffee_expense.to_wire()], indent=2)

        await repo.delete_expense("1")
        assert json.loads(path.read_text()) == []

    @pytest.mark.asyncio
    async def test_write_failure_is_not_fatal(self, tmp_path, coffee_expense, monkeypatch):
        """Test that I/O errors are retried, logged and swallowed."""
        repo = JsonFileExpenseRepository(tmp_path / "expenses.json", write_attempts=2)
        attempts = []

        def failing_write(payload):
            attempts.append(payload)
            raise OSError("disk full")

        monkeypatch.setattr(repo, "_write_file", failing_write)

        _, created = await repo.upsert_expense(coffee_expense)

        assert created is True
        assert len(attempts) == 2
        assert await repo.list_expenses() == [coffee_expense]

    @pytest.mark.asyncio
    async def test_load_rereads_file(self, tmp_path, coffee_expense):
        """Test that load() picks up the file as it is now."""
        path = tmp_path / "expenses.json"
        repo = JsonFileExpenseRepository(path)
        assert await repo.list_expenses() == []

        path.write_text(json.dumps([coffee_expense.to_wire()]))
        await repo.load()
        assert await repo.list_expenses() == [coffee_expense]

    @pytest.mark.asyncio
    async def test_update_fields_model(self, tmp_path, coffee_expense):
        """Test update through the file repository."""
        repo = JsonFileExpenseRepository(tmp_path / "expenses.json")
        await repo.upsert_expense(coffee_expense)

        fields = ExpenseFields(**{**coffee_expense.editable_fields().model_dump(), "description": "Tea"})
        await repo.update_expense("1", fields)

        reloaded = JsonFileExpenseRepository(tmp_path / "expenses.json")
        assert (await reloaded.get_expense("1")).description == "Tea"
