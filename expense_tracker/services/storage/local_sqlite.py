"""
Local Store Implementation (client side)

DESIGN DECISION: The client keeps its records in an SQLite database
through SQLAlchemy because:
1. It survives restarts (the browser equivalent is a keyed object store)
2. Every single-record operation gets its own transaction for free
3. Tests can use an in-memory database with the same code path

Only point operations are offered. A merge that touches many records
is a sequence of independent transactions, so a crash mid-sweep can
leave a partially updated store; the next sweep repairs it.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import UUID

from sqlalchemy import (
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    create_engine,
    delete,
    select,
)
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from expense_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from expense_tracker.models.expense import ExpenseCategory, LocalExpense, SyncState
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LocalExpenseStoreInterface,
    StorageError,
    StorageUnavailableError,
)


class Base(DeclarativeBase):
    """SQLAlchemy Declarative Base."""

    pass


class LocalExpenseRow(Base):
    __tablename__ = "local_expenses"

    # Row order is insertion order; the record id is the lookup key.
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    amount: Mapped[str] = mapped_column(String(40))
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(32))
    date: Mapped[str] = mapped_column(String(10))
    sync_state: Mapped[str] = mapped_column(String(20), index=True)


class AuditEventRow(Base):
    __tablename__ = "audit_events"

    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(36), unique=True)
    timestamp: Mapped[datetime] = mapped_column(DateTime, index=True)
    event_type: Mapped[str] = mapped_column(String(40))
    severity: Mapped[str] = mapped_column(String(10))
    entity_type: Mapped[Optional[str]] = mapped_column(String(40), nullable=True)
    entity_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    correlation_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True, index=True)
    description: Mapped[str] = mapped_column(String(500))
    details_json: Mapped[str] = mapped_column(Text, default="{}")
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_user_action: Mapped[bool] = mapped_column(Boolean, default=False)


def create_session_factory(database_url: str) -> sessionmaker:
    """
    Create the engine and tables for a local database.

    In-memory SQLite URLs share one connection so every session sees
    the same database.
    """
    kwargs = {"future": True}
    if database_url.startswith("sqlite"):
        kwargs["connect_args"] = {"check_same_thread": False}
        if database_url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        else:
            _ensure_sqlite_directory(database_url)

    try:
        engine = create_engine(database_url, **kwargs)
        Base.metadata.create_all(engine)
    except OperationalError as e:
        raise StorageUnavailableError(f"Cannot open local store {database_url}: {e}")

    return sessionmaker(bind=engine, expire_on_commit=False)


def _ensure_sqlite_directory(database_url: str) -> None:
    db_path = database_url.split(":///", 1)[-1]
    if db_path:
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)


class SqlAlchemyLocalStore(LocalExpenseStoreInterface):
    """
    SQLAlchemy implementation of the local record store.

    Amounts are stored as strings so Decimal values round-trip exactly.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @classmethod
    def from_url(cls, database_url: str) -> "SqlAlchemyLocalStore":
        return cls(create_session_factory(database_url))

    def _row_to_expense(self, row: LocalExpenseRow) -> LocalExpense:
        return LocalExpense(
            id=row.id,
            amount=Decimal(row.amount),
            description=row.description,
            category=ExpenseCategory(row.category),
            date=date.fromisoformat(row.date),
            sync_state=SyncState(row.sync_state),
        )

    def _apply(self, row: LocalExpenseRow, expense: LocalExpense) -> None:
        row.id = expense.id
        row.amount = str(expense.amount)
        row.description = expense.description
        row.category = expense.category.value
        row.date = expense.date.isoformat()
        row.sync_state = expense.sync_state.value

    def _find(self, session: Session, expense_id: str) -> Optional[LocalExpenseRow]:
        return session.execute(
            select(LocalExpenseRow).where(LocalExpenseRow.id == expense_id)
        ).scalar_one_or_none()

    async def add(self, expense: LocalExpense) -> None:
        try:
            with self._session_factory.begin() as session:
                row = LocalExpenseRow()
                self._apply(row, expense)
                session.add(row)
        except IntegrityError:
            raise DuplicateError(f"Expense already exists locally: {expense.id}")

    async def get(self, expense_id: str) -> Optional[LocalExpense]:
        with self._session_factory() as session:
            row = self._find(session, expense_id)
            return self._row_to_expense(row) if row else None

    async def get_all(self) -> list[LocalExpense]:
        with self._session_factory() as session:
            rows = session.execute(
                select(LocalExpenseRow).order_by(LocalExpenseRow.seq)
            ).scalars().all()
            return [self._row_to_expense(row) for row in rows]

    async def put(self, expense: LocalExpense) -> None:
        with self._session_factory.begin() as session:
            row = self._find(session, expense.id)
            if row is None:
                row = LocalExpenseRow()
                self._apply(row, expense)
                session.add(row)
            else:
                self._apply(row, expense)

    async def delete(self, expense_id: str) -> None:
        with self._session_factory.begin() as session:
            session.execute(
                delete(LocalExpenseRow).where(LocalExpenseRow.id == expense_id)
            )

    async def rekey(self, old_id: str, expense: LocalExpense) -> None:
        try:
            with self._session_factory.begin() as session:
                row = self._find(session, old_id)
                if expense.id != old_id:
                    clash = self._find(session, expense.id)
                    if clash is not None:
                        session.delete(clash)
                        session.flush()
                if row is None:
                    row = LocalExpenseRow()
                    self._apply(row, expense)
                    session.add(row)
                else:
                    self._apply(row, expense)
        except IntegrityError as e:
            raise StorageError(f"Failed to re-key {old_id} to {expense.id}: {e}")


class SqlAlchemyAuditStorage(AuditStorageInterface):
    """
    Audit events in the local database.

    Audit events are append-only.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def _event_to_row(self, event: AuditEvent) -> AuditEventRow:
        return AuditEventRow(
            event_id=str(event.event_id),
            timestamp=event.timestamp,
            event_type=event.event_type.value,
            severity=event.severity.value,
            entity_type=event.entity_type,
            entity_id=event.entity_id,
            correlation_id=str(event.correlation_id) if event.correlation_id else None,
            description=event.description,
            details_json=json.dumps(event.details, default=str),
            error_message=event.error_message,
            is_user_action=event.is_user_action,
        )

    def _row_to_event(self, row: AuditEventRow) -> AuditEvent:
        return AuditEvent(
            event_id=UUID(row.event_id),
            timestamp=row.timestamp,
            event_type=AuditEventType(row.event_type),
            severity=AuditSeverity(row.severity),
            entity_type=row.entity_type,
            entity_id=row.entity_id,
            correlation_id=UUID(row.correlation_id) if row.correlation_id else None,
            description=row.description,
            details=json.loads(row.details_json) if row.details_json else {},
            error_message=row.error_message,
            is_user_action=row.is_user_action,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        with self._session_factory.begin() as session:
            session.add(self._event_to_row(event))
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        with self._session_factory() as session:
            rows = session.execute(
                select(AuditEventRow)
                .where(AuditEventRow.correlation_id == str(correlation_id))
                .order_by(AuditEventRow.timestamp, AuditEventRow.seq)
            ).scalars().all()
            return [self._row_to_event(row) for row in rows]

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        with self._session_factory() as session:
            rows = session.execute(
                select(AuditEventRow)
                .order_by(AuditEventRow.seq.desc())
                .limit(limit)
            ).scalars().all()
            return [self._row_to_event(row) for row in rows]
