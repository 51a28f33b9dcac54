"""
JSON File Storage Implementation (record service side)

DESIGN DECISION: The record service keeps its whole record list in
memory and rewrites a single JSON array on every mutation because:
1. A personal tracker holds a few thousand records at most
2. The file is human-readable and trivially backed up
3. No database setup required

TRADEOFFS:
- Every mutation costs a full rewrite (fine at this scale)
- No indexing (we scan the list)
- Durability is exactly "the last successful rewrite"

All mutations go through a single asyncio.Lock, so two requests can
never interleave a read-modify-write of the list.
"""

import asyncio
import json
import os
from pathlib import Path
from typing import Optional

import structlog
from pydantic import ValidationError
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from expense_tracker.models.expense import Expense, ExpenseFields
from expense_tracker.services.storage.interface import (
    ExpenseRepositoryInterface,
    NotFoundError,
)


logger = structlog.get_logger(__name__)


class InMemoryExpenseRepository(ExpenseRepositoryInterface):
    """
    Ordered in-memory record list.

    Used directly in tests and as the base of the JSON file repository.
    """

    def __init__(self, expenses: Optional[list[Expense]] = None):
        self._expenses: list[Expense] = list(expenses or [])
        self._lock = asyncio.Lock()
        self._loaded = True

    async def _persist(self) -> None:
        """Hook called after every mutation while the lock is held."""
        pass

    async def _load_records(self) -> list[Expense]:
        return list(self._expenses)

    async def load(self) -> None:
        async with self._lock:
            self._expenses = await self._load_records()
            self._loaded = True

    async def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._lock:
            if not self._loaded:
                self._expenses = await self._load_records()
                self._loaded = True

    def _index_of(self, expense_id: str) -> int:
        for idx, expense in enumerate(self._expenses):
            if expense.id == expense_id:
                return idx
        return -1

    async def list_expenses(self) -> list[Expense]:
        await self._ensure_loaded()
        return list(self._expenses)

    async def get_expense(self, expense_id: str) -> Optional[Expense]:
        await self._ensure_loaded()
        idx = self._index_of(expense_id)
        return self._expenses[idx] if idx >= 0 else None

    async def upsert_expense(self, expense: Expense) -> tuple[Expense, bool]:
        await self._ensure_loaded()
        async with self._lock:
            idx = self._index_of(expense.id)
            if idx >= 0:
                self._expenses[idx] = expense
                created = False
            else:
                self._expenses.append(expense)
                created = True
            await self._persist()
        return expense, created

    async def update_expense(self, expense_id: str, fields: ExpenseFields) -> Expense:
        await self._ensure_loaded()
        async with self._lock:
            idx = self._index_of(expense_id)
            if idx < 0:
                raise NotFoundError(f"Expense not found: {expense_id}")
            updated = Expense(id=expense_id, **fields.model_dump())
            self._expenses[idx] = updated
            await self._persist()
        return updated

    async def delete_expense(self, expense_id: str) -> None:
        await self._ensure_loaded()
        async with self._lock:
            idx = self._index_of(expense_id)
            if idx < 0:
                raise NotFoundError(f"Expense not found: {expense_id}")
            del self._expenses[idx]
            await self._persist()


class JsonFileExpenseRepository(InMemoryExpenseRepository):
    """
    Record list persisted to a single JSON array file.

    The file is read lazily on first use. Its directory is created on
    demand; a missing file is an empty store.
    """

    def __init__(self, path: Path, write_attempts: int = 3):
        super().__init__()
        self._path = Path(path)
        self._write_attempts = write_attempts
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    async def _load_records(self) -> list[Expense]:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            logger.info("data_file_missing", path=str(self._path))
            return []
        except OSError as e:
            logger.error("data_file_unreadable", path=str(self._path), error=str(e))
            return []

        try:
            data = json.loads(raw) if raw.strip() else []
        except json.JSONDecodeError as e:
            logger.error("data_file_corrupt", path=str(self._path), error=str(e))
            return []

        if not isinstance(data, list):
            logger.error("data_file_corrupt", path=str(self._path), error="not a JSON array")
            return []

        expenses = []
        seen: set[str] = set()
        for item in data:
            try:
                expense = Expense.model_validate(item)
            except ValidationError as e:
                logger.warning("data_file_record_skipped", record=item, error=str(e))
                continue
            # Older files may carry duplicate ids; the last write wins.
            if expense.id in seen:
                expenses = [existing for existing in expenses if existing.id != expense.id]
            seen.add(expense.id)
            expenses.append(expense)

        logger.info("data_file_loaded", path=str(self._path), count=len(expenses))
        return expenses

    def _write_file(self, payload: str) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_name(self._path.name + ".tmp")
        tmp_path.write_text(payload, encoding="utf-8")
        os.replace(tmp_path, self._path)

    async def _persist(self) -> None:
        """
        Rewrite the whole file.

        I/O errors are retried and then logged; the in-memory list
        stays authoritative until the next successful rewrite.
        """
        payload = json.dumps(
            [expense.to_wire() for expense in self._expenses],
            indent=2,
        )
        try:
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(self._write_attempts),
                wait=wait_exponential(multiplier=0.1, max=1),
                retry=retry_if_exception_type(OSError),
                reraise=True,
            ):
                with attempt:
                    self._write_file(payload)
        except OSError as e:
            logger.error(
                "data_file_write_failed",
                path=str(self._path),
                error=str(e),
                attempts=self._write_attempts,
            )
