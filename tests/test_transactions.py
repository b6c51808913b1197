"""Tests for transaction create/revise/filter and the preference and family rules."""

import pytest
from datetime import date
from decimal import Decimal

from conftest import RATE, make_transaction
from moneymate.config import AppSettings
from moneymate.ledger import (
    DateFilter,
    default_preferences,
    exchange_rate_changes,
    filter_transactions,
    new_grant,
    new_transaction,
    revise_transaction,
    toggle_changes,
    toggled_theme,
    totals,
)
from moneymate.ledger.transactions import date_filter_start
from moneymate.models import Theme, TransactionType
from moneymate.validation import InputValidationError


TODAY = date(2024, 3, 31)


class TestNewTransaction:
    """Tests for building transactions from form input."""

    def test_secondary_amount_uses_rate(self):
        """Test the secondary amount is base times the rate at write time."""
        t = new_transaction(
            "user-1", "expense", "Groceries", "12.50", "Milk", TODAY, RATE,
        )
        assert t.kind == TransactionType.EXPENSE
        assert t.amount_base == Decimal("12.50")
        assert t.amount_secondary == Decimal("12.50") * RATE
        assert t.exchange_rate == RATE

    def test_invalid_input_names_fields(self):
        """Test amount, category and description are all checked."""
        with pytest.raises(InputValidationError) as exc_info:
            new_transaction("user-1", "income", "Groceries", "0", " ", TODAY, RATE)
        assert set(exc_info.value.fields) == {"amount", "category", "description"}

    def test_overlong_description_is_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            new_transaction("user-1", "expense", "Groceries", "10", "d" * 501, TODAY, RATE)
        assert exc_info.value.fields == ["description"]
        assert exc_info.value.issues[0].issue_type == "too_long"

    def test_rate_must_be_positive(self):
        with pytest.raises(InputValidationError) as exc_info:
            new_transaction("user-1", "expense", "Groceries", "10", "Milk", TODAY, Decimal("0"))
        assert exc_info.value.fields == ["exchange_rate"]

    def test_unknown_kind_is_rejected(self):
        with pytest.raises(InputValidationError) as exc_info:
            new_transaction("user-1", "transfer", "Salary", "5", "x", TODAY, RATE)
        assert "kind" in exc_info.value.fields


class TestReviseTransaction:
    """Tests for editing a transaction."""

    def test_revise_records_new_rate(self):
        """Test the edit recomputes the secondary amount and stores the rate used."""
        original = make_transaction(TransactionType.EXPENSE, "10", TODAY)
        revised = revise_transaction(
            original, "Travel", "20", "Train", TODAY, Decimal("60"),
        )
        assert revised.id == original.id
        assert revised.kind == original.kind
        assert revised.amount_secondary == Decimal("1200")
        assert revised.exchange_rate == Decimal("60")
        assert revised.created_at == original.created_at
        assert revised.updated_at >= original.updated_at

    def test_revise_checks_description_length(self):
        original = make_transaction(TransactionType.EXPENSE, "10", TODAY)
        with pytest.raises(InputValidationError) as exc_info:
            revise_transaction(original, "Travel", "20", "d" * 501, TODAY, RATE)
        assert exc_info.value.fields == ["description"]

    def test_revise_keeps_kind_for_category_check(self):
        original = make_transaction(TransactionType.EXPENSE, "10", TODAY)
        with pytest.raises(InputValidationError):
            revise_transaction(original, "Salary", "20", "Oops", TODAY, RATE)


class TestFilterTransactions:
    """Tests for the history view filters."""

    @pytest.fixture
    def transactions(self):
        return [
            make_transaction(TransactionType.INCOME, "1000", TODAY, description="March pay"),
            make_transaction(TransactionType.EXPENSE, "50", date(2024, 3, 27), "Food & Dining", "Sushi"),
            make_transaction(TransactionType.EXPENSE, "80", date(2024, 2, 15), "Groceries", "Costco"),
            make_transaction(TransactionType.EXPENSE, "20", date(2023, 1, 1), "Travel", "Bus pass"),
        ]

    def test_search_matches_description_or_category(self, transactions):
        """Test search is a case-insensitive substring match."""
        assert [t.description for t in filter_transactions(transactions, search="SUSHI")] == ["Sushi"]
        assert [t.description for t in filter_transactions(transactions, search="grocer")] == ["Costco"]

    def test_kind_and_category_filters(self, transactions):
        assert len(filter_transactions(transactions, kind=TransactionType.EXPENSE)) == 3
        assert len(filter_transactions(transactions, category="Travel")) == 1

    @pytest.mark.parametrize(
        "window, count",
        [
            (DateFilter.ALL, 4),
            (DateFilter.TODAY, 1),
            (DateFilter.WEEK, 2),
            (DateFilter.MONTH, 2),
            (DateFilter.YEAR, 3),
        ],
    )
    def test_date_windows(self, transactions, window, count):
        assert len(filter_transactions(transactions, window=window, today=TODAY)) == count

    def test_month_window_clamps_to_month_end(self):
        """Test month arithmetic is calendar aware."""
        assert date_filter_start(DateFilter.MONTH, TODAY) == date(2024, 2, 29)
        assert date_filter_start(DateFilter.ALL, TODAY) is None

    def test_totals(self, transactions):
        income, expenses = totals(transactions)
        assert income == Decimal("1000")
        assert expenses == Decimal("150")


class TestPreferences:
    """Tests for preference defaults and updates."""

    def test_defaults_come_from_settings(self):
        prefs = default_preferences("user-1", AppSettings(default_exchange_rate=Decimal("60")))
        assert prefs.default_currency == "CAD"
        assert prefs.theme == Theme.LIGHT
        assert prefs.exchange_rate == Decimal("60")

    def test_exchange_rate_must_be_positive(self):
        with pytest.raises(InputValidationError):
            exchange_rate_changes("0")
        assert exchange_rate_changes("62.25")["exchange_rate"] == Decimal("62.25")

    def test_toggled_theme(self):
        assert toggled_theme(Theme.LIGHT) == Theme.DARK
        assert toggled_theme("dark") == Theme.LIGHT


class TestFamilyRules:
    """Tests for family access grants."""

    def test_new_grant_is_active_view(self):
        grant = new_grant("user-1", "me@example.com", " mom@example.com ", [])
        assert grant.member_email == "mom@example.com"
        assert grant.is_active is True
        assert grant.access_level.value == "view"

    @pytest.mark.parametrize(
        "email, issue_type",
        [
            ("not-an-email", "invalid_value"),
            ("", "invalid_value"),
            ("a@", "invalid_value"),
            ("@example.com", "invalid_value"),
            ("a" * 310 + "@example.com", "too_long"),
            ("ME@example.com", "self_reference"),
            ("mom@example.com", "duplicate"),
        ],
    )
    def test_invalid_member_emails(self, email, issue_type):
        existing = [new_grant("user-1", "me@example.com", "mom@example.com", [])]
        with pytest.raises(InputValidationError) as exc_info:
            new_grant("user-1", "me@example.com", email, existing)
        assert exc_info.value.issues[0].issue_type == issue_type

    def test_toggle_changes_flip_flag(self):
        grant = new_grant("user-1", "me@example.com", "dad@example.com", [])
        assert toggle_changes(grant)["is_active"] is False
