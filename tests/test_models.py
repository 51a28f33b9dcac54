"""
Tests for Personal Expense Tracker models

Test strategy:
1. Unit tests for individual components (models, stores, summaries)
2. Integration tests for flows (record service served in-process)
3. No real network calls in tests
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from expense_tracker.models import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
    Expense,
    ExpenseCategory,
    ExpenseFields,
    LocalExpense,
    SyncState,
    new_expense_id,
)


class TestExpenseModels:
    """Tests for expense-related Pydantic models."""

    def test_expense_creation(self):
        """Test Expense model creation from wire values."""
        expense = Expense.model_validate({
            "id": "1",
            "amount": 12.5,
            "description": "Coffee",
            "category": "Food",
            "date": "2024-01-15",
        })
        assert expense.id == "1"
        assert expense.amount == Decimal("12.5")
        assert expense.category == ExpenseCategory.FOOD
        assert expense.date == date(2024, 1, 15)

    def test_description_strips_whitespace(self):
        """Test that whitespace is stripped from the description."""
        fields = ExpenseFields(
            amount=Decimal("3"),
            description="  Bus ticket  ",
            category=ExpenseCategory.TRANSPORT,
            date=date(2024, 1, 15),
        )
        assert fields.description == "Bus ticket"

    def test_rejects_negative_amount(self):
        """Test that negative amounts are rejected."""
        with pytest.raises(ValueError):
            ExpenseFields(
                amount=Decimal("-1"),
                description="Refund",
                category=ExpenseCategory.OTHER,
                date=date(2024, 1, 15),
            )

    def test_zero_amount_allowed(self):
        """Test that a zero amount is a valid expense."""
        fields = ExpenseFields(
            amount=Decimal("0"),
            description="Free sample",
            category=ExpenseCategory.FOOD,
            date=date(2024, 1, 15),
        )
        assert fields.amount == Decimal("0")

    def test_rejects_blank_description(self):
        """Test that a blank description is rejected."""
        with pytest.raises(ValueError):
            ExpenseFields(
                amount=Decimal("1"),
                description="   ",
                category=ExpenseCategory.FOOD,
                date=date(2024, 1, 15),
            )

    def test_rejects_unknown_category(self):
        """Test that categories outside the fixed set are rejected."""
        with pytest.raises(ValueError):
            Expense.model_validate({
                "id": "1",
                "amount": 1,
                "description": "Gym",
                "category": "Health",
                "date": "2024-01-15",
            })

    def test_unknown_keys_ignored(self):
        """Test that extra input such as a client's synced flag is dropped."""
        expense = Expense.model_validate({
            "id": "1",
            "amount": 1,
            "description": "Snack",
            "category": "Food",
            "date": "2024-01-15",
            "synced": False,
        })
        assert "synced" not in expense.to_wire()

    def test_to_wire(self, coffee_expense):
        """Test the wire representation has exactly the remote fields."""
        assert coffee_expense.to_wire() == {
            "id": "1",
            "amount": 12.5,
            "description": "Coffee",
            "category": "Food",
            "date": "2024-01-15",
        }

    def test_editable_fields(self, coffee_expense, coffee_fields):
        """Test that editable_fields drops the id."""
        assert coffee_expense.editable_fields() == coffee_fields

    def test_new_expense_ids_are_unique(self):
        """Test client-side id generation."""
        assert new_expense_id() != new_expense_id()


class TestLocalExpense:
    """Tests for the local record and its sync state."""

    def test_default_state_is_pending_create(self, coffee_fields):
        """Test that a new local record starts pending."""
        record = LocalExpense(id="1", **coffee_fields.model_dump())
        assert record.sync_state == SyncState.PENDING_CREATE
        assert record.synced is False
        assert record.is_pending is True

    def test_from_remote_is_clean(self, coffee_expense):
        """Test that a record taken from the service is clean."""
        record = LocalExpense.from_remote(coffee_expense)
        assert record.synced is True
        assert record.to_expense() == coffee_expense

    def test_from_remote_resets_local_state(self, coffee_expense):
        """Test from_remote on a record that already carries a state."""
        pending = LocalExpense.from_remote(coffee_expense).with_state(SyncState.PENDING_UPDATE)
        assert LocalExpense.from_remote(pending).sync_state == SyncState.CLEAN

    def test_tombstone(self, coffee_expense):
        """Test the pending-delete state."""
        record = LocalExpense.from_remote(coffee_expense).with_state(SyncState.PENDING_DELETE)
        assert record.is_tombstone is True
        assert record.is_pending is True

    def test_to_expense_strips_state(self, coffee_fields):
        """Test that local state never reaches the wire."""
        record = LocalExpense.from_fields("1", coffee_fields, SyncState.PENDING_UPDATE)
        assert "sync_state" not in record.to_expense().to_wire()


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent model creation."""
        event = AuditEvent(
            event_type=AuditEventType.EXPENSE_CREATED,
            description="Expense created",
        )
        assert event.event_id is not None
        assert event.severity == AuditSeverity.INFO

    def test_audit_event_to_log_dict(self):
        """Test conversion to a structured log dict."""
        correlation_id = uuid4()
        event = AuditEvent(
            event_type=AuditEventType.PUSH_STARTED,
            correlation_id=correlation_id,
            description="Push started",
            details={"pending_count": 2},
        )
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "push_started"
        assert log_dict["correlation_id"] == str(correlation_id)
        assert log_dict["details"] == {"pending_count": 2}

    def test_audit_event_builder_expense_created(self):
        """Test building an expense-created event."""
        event = AuditEventBuilder.expense_created("1", "12.50", synced=False)
        assert event.event_type == AuditEventType.EXPENSE_CREATED
        assert event.entity_id == "1"
        assert event.details["synced"] is False
        assert event.is_user_action is True

    def test_audit_event_builder_push_failed(self):
        """Test that a failed push is reported as a warning or worse."""
        event = AuditEventBuilder.push_failed("1", "create", "boom", uuid4())
        assert event.event_type == AuditEventType.PUSH_FAILED
        assert event.severity != AuditSeverity.INFO
        assert event.error_message == "boom"


class TestExpenseCategories:
    """Tests for the category set."""

    def test_all_categories_exist(self):
        """Test the fixed category set."""
        assert len(ExpenseCategory) == 5

    def test_category_values(self):
        """Test the exact strings exchanged with the service."""
        assert [c.value for c in ExpenseCategory] == [
            "Food", "Transport", "Rent", "Entertainment", "Other",
        ]
