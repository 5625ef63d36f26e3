"""
Tests for Budget Ledger

Test strategy:
1. Unit tests for individual components (models, codecs, generator, parser)
2. Integration tests for flows (store, reconciliation, scheduler, engine)
3. No real filesystem in tests (in-memory storage, fixed clock)
"""

from datetime import date, datetime
from decimal import Decimal

import pytest
from pydantic import ValidationError

from budget_ledger.models import (
    Category,
    CategoryType,
    LedgerSettings,
    RecurringTransaction,
    Transaction,
    TransactionCandidate,
    TransactionFilter,
    TransactionType,
    default_settings,
)
from budget_ledger.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)


class TestTransactionModels:
    """Tests for transaction models."""

    def test_candidate_creation(self):
        """Test TransactionCandidate creation."""
        candidate = TransactionCandidate(
            date=date(2024, 3, 5),
            amount=Decimal("42.50"),
            type=TransactionType.EXPENSE,
            category="food",
        )
        assert candidate.description == ""
        assert candidate.currency is None
        assert candidate.exclude_from_stats is False
        assert candidate.year_month == (2024, 3)

    def test_rejects_zero_and_negative_amounts(self):
        """Test that amounts must be positive."""
        for amount in ("0", "-1.00"):
            with pytest.raises(ValidationError):
                TransactionCandidate(
                    date=date(2024, 3, 5),
                    amount=Decimal(amount),
                    type=TransactionType.EXPENSE,
                    category="food",
                )

    def test_amounts_are_kept_in_cents(self):
        """Test that amounts round half up to two decimals."""
        candidate = TransactionCandidate(
            date=date(2024, 3, 5), amount=Decimal("10.005"), type="expense", category="food",
        )
        assert candidate.amount == Decimal("10.01")
        assert str(candidate.amount) == "10.01"

    def test_sub_cent_amount_rejected(self):
        """Test that an amount rounding to zero is invalid."""
        with pytest.raises(ValidationError):
            TransactionCandidate(
                date=date(2024, 3, 5), amount=Decimal("0.004"), type="expense", category="food",
            )

    def test_rejects_bad_dates(self):
        """Test that the date must be a real calendar date."""
        with pytest.raises(ValidationError):
            TransactionCandidate(date="2024-02-30", amount=1, type="expense", category="food")

    def test_currency_is_normalized(self):
        """Test that currency codes are upper-cased and blanks dropped."""
        candidate = TransactionCandidate(
            date=date(2024, 3, 5), amount=1, type="expense", category="food", currency="eur"
        )
        assert candidate.currency == "EUR"
        blank = TransactionCandidate(
            date=date(2024, 3, 5), amount=1, type="expense", category="food", currency=""
        )
        assert blank.currency is None

    def test_transaction_accepts_camel_case_keys(self):
        """Test that persisted camelCase records validate."""
        txn = Transaction.model_validate({
            "id": "t1",
            "date": "2024-03-05",
            "amount": "42.50",
            "type": "expense",
            "category": "food",
            "excludeFromStats": True,
            "createdAt": "2024-03-05T10:00:00+00:00",
            "updatedAt": "2024-03-05T10:00:00+00:00",
        })
        assert txn.exclude_from_stats is True
        assert isinstance(txn.created_at, datetime)

    def test_dump_uses_camel_case(self):
        """Test that the persisted form keeps the on-disk key names."""
        txn = Transaction(date=date(2024, 3, 5), amount=1, type="income", category="salary")
        dumped = txn.model_dump(mode="json", by_alias=True)
        assert "excludeFromStats" in dumped
        assert "createdAt" in dumped
        assert dumped["date"] == "2024-03-05"

    def test_to_candidate_drops_identity(self):
        """Test that to_candidate keeps the data fields only."""
        txn = Transaction(date=date(2024, 3, 5), amount=1, type="income", category="salary")
        candidate = txn.to_candidate()
        assert not isinstance(candidate, Transaction)
        assert candidate.category == "salary"

    def test_filter_type_must_be_known(self):
        """Test that the filter type is restricted."""
        with pytest.raises(ValidationError):
            TransactionFilter(type="transfer")


class TestCategoryModels:
    """Tests for categories and the settings hierarchy."""

    def test_display(self):
        """Test the icon + name rendering."""
        category = Category(id="food", name="Food", icon="🍕", type=CategoryType.EXPENSE)
        assert category.display == "🍕 Food"

    def test_zero_budget_limit_means_none(self):
        """Test that a zero limit is treated as no limit."""
        category = Category(id="food", name="Food", type="expense", budget_limit=0)
        assert category.budget_limit is None

    def test_self_parent_rejected(self):
        """Test that a category cannot be its own parent."""
        with pytest.raises(ValidationError):
            LedgerSettings(categories=[
                Category(id="a", name="A", type="expense", parent_id="a"),
            ])

    def test_two_level_nesting_rejected(self):
        """Test that a subcategory cannot have children."""
        with pytest.raises(ValidationError):
            LedgerSettings(categories=[
                Category(id="a", name="A", type="expense"),
                Category(id="b", name="B", type="expense", parent_id="a"),
                Category(id="c", name="C", type="expense", parent_id="b"),
            ])

    def test_hierarchy_helpers(self, nested_settings):
        """Test subcategory and top-level lookups."""
        subs = [c.id for c in nested_settings.subcategories_of("food")]
        assert subs == ["groceries", "restaurants"]
        top_ids = [c.id for c in nested_settings.top_level_categories()]
        assert "food" in top_ids
        assert "groceries" not in top_ids

    def test_default_settings_are_localized(self):
        """Test that default category names follow the locale."""
        assert default_settings("en").get_category("food").name == "Food"
        assert default_settings("pl").get_category("food").name == "Jedzenie"
        assert default_settings("pl").locale == "pl"


class TestRecurringModel:
    """Tests for recurring rules."""

    def test_day_of_month_range(self):
        """Test that the day must be within 1-28."""
        with pytest.raises(ValidationError):
            RecurringTransaction(name="Rent", amount=1, type="expense",
                                 category="bills", day_of_month=31)

    def test_rule_amount_in_cents(self):
        """Test that rule amounts are rounded like transaction amounts."""
        rule = RecurringTransaction(name="Gym", amount=Decimal("29.999"), type="expense",
                                    category="health", day_of_month=5)
        assert rule.amount == Decimal("30.00")

    def test_timestamps_truncate_to_dates(self):
        """Test that datetimes and ISO timestamps become dates."""
        rule = RecurringTransaction(
            name="Rent", amount=1, type="expense", category="bills", day_of_month=1,
            created_at=datetime(2024, 1, 15, 9, 30),
            last_processed="2024-03-01T00:00:00Z",
        )
        assert rule.created_at == date(2024, 1, 15)
        assert rule.last_processed == date(2024, 3, 1)


class TestAuditModels:
    """Tests for audit-related models."""

    def test_audit_event_creation(self):
        """Test AuditEvent creation."""
        event = AuditEvent(
            event_type=AuditEventType.TRANSACTION_ADDED,
            description="Test event",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.severity == AuditSeverity.INFO

    def test_builder_transaction_added(self):
        """Test AuditEventBuilder for additions."""
        event = AuditEventBuilder.transaction_added(
            transaction_id="t1",
            date="2024-03-05",
            amount="42.50",
            transaction_type="expense",
        )
        assert event.event_type == AuditEventType.TRANSACTION_ADDED
        assert event.entity_id == "t1"

    def test_builder_settings_corrupt_is_warning(self):
        """Test that a corrupt settings document is logged as a warning."""
        event = AuditEventBuilder.settings_corrupt("Budget/_config.md", "bad line")
        assert event.severity == AuditSeverity.WARNING
        assert event.error_message == "bad line"

    def test_to_log_dict(self):
        """Test conversion to a log dictionary."""
        event = AuditEventBuilder.document_regenerated("Budget/2024/03-March.md", 3)
        log_dict = event.to_log_dict()
        assert log_dict["event_type"] == "document_regenerated"
        assert log_dict["entity_id"] == "Budget/2024/03-March.md"
        assert log_dict["correlation_id"] is None
