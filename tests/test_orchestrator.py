"""
Integration tests for the flows, run against the in-memory gateway.

Flows are async; each test drives them with asyncio.run.
"""

import asyncio
import csv
import io
import json
import pytest
from datetime import date, timedelta
from decimal import Decimal

from conftest import RATE, StaticAuthProvider, make_transaction
from moneymate.auth import NotAuthenticatedError, SessionContext
from moneymate.ledger import classify
from moneymate.models import (
    AuditEventType,
    AuditSeverity,
    Debt,
    DebtDirection,
    DebtPayment,
    Priority,
    Theme,
    Transaction,
    TransactionType,
    UserPreferences,
)
from moneymate.orchestrator import (
    AppComponents,
    OperationFailedError,
    create_app_components,
)
from moneymate.reports import TimeRange
from moneymate.services.storage import InMemoryRecordStore, StorageError
from moneymate.validation import InputValidationError


TODAY = date(2024, 6, 15)


class FailingUpdateStore(InMemoryRecordStore):
    """Accepts creates and reads, fails every update."""

    async def update(self, record_id, changes):
        raise StorageError("connection reset")


class FailingStore(InMemoryRecordStore):
    """Fails every call."""

    async def create(self, record):
        raise StorageError("service unavailable")

    async def list(self, where=None, order_by=None, limit=None):
        raise StorageError("service unavailable")


class CountingStore(InMemoryRecordStore):
    """Counts list calls."""

    def __init__(self, model):
        super().__init__(model)
        self.list_calls = 0

    async def list(self, where=None, order_by=None, limit=None):
        self.list_calls += 1
        return await super().list(where, order_by, limit)


def _event_types(audit_storage):
    return [e.event_type for e in audit_storage.events]


class TestDebtFlow:
    """Tests for adding debts and recording payments."""

    def test_debt_paid_off_end_to_end(self, components, audit_storage):
        """Add 200 owed, pay 200, then a further payment of 1 is refused."""
        debt = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Alex", "200", "Rent share", RATE,
        ))
        assert classify(debt, TODAY) == Priority.LOW

        updated, payment = asyncio.run(components.debts.record_payment(debt, "200", RATE))
        assert updated.is_paid is True
        assert updated.remaining_amount_base == Decimal("0")

        stored = asyncio.run(components.debts.list_debts())
        assert stored == [updated]

        with pytest.raises(InputValidationError):
            asyncio.run(components.debts.record_payment(updated, "1", RATE))

        history = asyncio.run(components.debts.payment_history(debt.id))
        assert history == [payment]
        assert _event_types(audit_storage) == [
            AuditEventType.DEBT_CREATED,
            AuditEventType.PAYMENT_RECORDED,
            AuditEventType.DEBT_BALANCE_UPDATED,
            AuditEventType.VALIDATION_FAILED,
        ]

    def test_payment_writes_share_correlation_id(self, components, audit_storage):
        debt = asyncio.run(components.debts.add_debt(
            DebtDirection.LENT, "Kim", "100", "Lunch", RATE,
        ))
        asyncio.run(components.debts.record_payment(debt, "40", RATE))

        recorded, balance = audit_storage.events[-2:]
        assert recorded.correlation_id is not None
        assert recorded.correlation_id == balance.correlation_id
        assert balance.details["remaining_amount_base"] == "60"

    def test_invalid_debt_never_reaches_store(self, components):
        with pytest.raises(InputValidationError) as exc_info:
            asyncio.run(components.debts.add_debt(DebtDirection.OWE, "", "10", "x", RATE))
        assert exc_info.value.fields == ["person_name"]
        assert len(components.gateway.debts) == 0

    def test_overlong_name_is_a_validation_error(self, components):
        with pytest.raises(InputValidationError) as exc_info:
            asyncio.run(components.debts.add_debt(
                DebtDirection.OWE, "x" * 201, "200", "rent", RATE,
            ))
        assert exc_info.value.fields == ["person_name"]
        assert len(components.gateway.debts) == 0

    def test_partial_write_is_audited_and_raised(self, components, audit_storage):
        """Test a payment saved without its debt update is flagged, not undone."""
        debt = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Alex", "100", "Rent", RATE,
        ))
        failing = FailingUpdateStore(Debt)
        asyncio.run(failing.create(debt))
        components.gateway.debts = failing

        with pytest.raises(OperationFailedError) as exc_info:
            asyncio.run(components.debts.record_payment(debt, "30", RATE))

        assert exc_info.value.operation == "update_debt_balance"
        assert len(components.gateway.debt_payments) == 1
        stored = asyncio.run(failing.list())
        assert stored[0].remaining_amount_base == Decimal("100")

        partial = audit_storage.events[-1]
        assert partial.event_type == AuditEventType.PARTIAL_WRITE_DETECTED
        assert partial.severity == AuditSeverity.CRITICAL
        assert partial.entity_id == debt.id
        assert partial.error_message == "connection reset"

    def test_failed_payment_write_reports_generic_message(self, components, audit_storage):
        debt = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Alex", "100", "Rent", RATE,
        ))
        components.gateway.debt_payments = FailingStore(DebtPayment)

        with pytest.raises(OperationFailedError, match="^Failed to record payment$"):
            asyncio.run(components.debts.record_payment(debt, "30", RATE))

        assert asyncio.run(components.debts.list_debts())[0].remaining_amount_base == Decimal("100")
        assert audit_storage.events[-1].event_type == AuditEventType.STORAGE_ERROR

    def test_active_paid_and_delete(self, components):
        open_debt = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Alex", "50", "Books", RATE,
        ))
        closed = asyncio.run(components.debts.add_debt(
            DebtDirection.LENT, "Kim", "10", "Cab", RATE,
        ))
        closed, _ = asyncio.run(components.debts.record_payment(closed, "10", RATE))

        active, paid = asyncio.run(components.debts.active_and_paid())
        assert [d.id for d in active] == [open_debt.id]
        assert [d.id for d in paid] == [closed.id]

        assert asyncio.run(components.debts.delete_debt(closed.id)) is True
        assert len(components.gateway.debt_payments) == 1

    def test_requires_signed_in_user(self, components, user):
        components.debts._session = SessionContext(StaticAuthProvider(user))
        with pytest.raises(NotAuthenticatedError):
            asyncio.run(components.debts.list_debts())


class TestTransactionFlow:
    """Tests for transaction logging."""

    def test_create_update_delete(self, components, audit_storage):
        created = asyncio.run(components.transactions.create_transaction(
            "expense", "Groceries", "40", "Farmers market", TODAY, RATE,
        ))
        assert created.user_id == "user-1"

        revised = asyncio.run(components.transactions.update_transaction(
            created, "Food & Dining", "45", "Brunch", TODAY, Decimal("62"),
        ))
        assert revised.amount_secondary == Decimal("45") * Decimal("62")
        assert revised.exchange_rate == Decimal("62")

        assert asyncio.run(components.transactions.list_transactions()) == [revised]
        assert asyncio.run(components.transactions.delete_transaction(created.id)) is True
        assert asyncio.run(components.transactions.list_transactions()) == []

        assert _event_types(audit_storage) == [
            AuditEventType.TRANSACTION_CREATED,
            AuditEventType.TRANSACTION_UPDATED,
            AuditEventType.TRANSACTION_DELETED,
        ]

    def test_validation_failure_is_audited(self, components, audit_storage):
        with pytest.raises(InputValidationError):
            asyncio.run(components.transactions.create_transaction(
                "income", "Groceries", "10", "Wrong category", TODAY, RATE,
            ))
        event = audit_storage.events[-1]
        assert event.event_type == AuditEventType.VALIDATION_FAILED
        assert event.details["issues"][0]["field"] == "category"

    def test_overlong_description_is_a_validation_error(self, components, audit_storage):
        """Test length limits surface as form errors and nothing is saved."""
        with pytest.raises(InputValidationError) as exc_info:
            asyncio.run(components.transactions.create_transaction(
                TransactionType.EXPENSE, "Groceries", "10", "d" * 501, TODAY, RATE,
            ))
        assert exc_info.value.fields == ["description"]
        assert len(components.gateway.transactions) == 0
        assert audit_storage.events[-1].event_type == AuditEventType.VALIDATION_FAILED

    def test_history_filters_own_records_newest_first(self, components):
        store = components.gateway.transactions
        for t in (
            make_transaction(TransactionType.EXPENSE, "5", TODAY - timedelta(days=40), description="Old"),
            make_transaction(TransactionType.EXPENSE, "5", TODAY, description="New"),
            make_transaction(TransactionType.INCOME, "5", TODAY, user_id="user-2"),
        ):
            asyncio.run(store.create(t))

        everything = asyncio.run(components.transactions.history())
        assert [t.description for t in everything] == ["New", "Old"]

        recent = asyncio.run(components.transactions.history(window="month", today=TODAY))
        assert [t.description for t in recent] == ["New"]

    def test_store_failure_becomes_operation_failed(self, components):
        components.gateway.transactions = FailingStore(Transaction)
        with pytest.raises(OperationFailedError, match="Failed to load transactions"):
            asyncio.run(components.transactions.list_transactions())


class TestPreferencesFlow:
    """Tests for lazily created preferences."""

    def test_created_once_with_defaults(self, components, audit_storage):
        first = asyncio.run(components.preferences.get_preferences())
        second = asyncio.run(components.preferences.get_preferences())

        assert first.id == second.id
        assert first.exchange_rate == RATE
        assert first.theme == Theme.LIGHT
        assert len(components.gateway.user_preferences) == 1
        assert _event_types(audit_storage) == [AuditEventType.PREFERENCES_CREATED]

    def test_updates(self, components):
        prefs = asyncio.run(components.preferences.update_exchange_rate("62.10"))
        assert prefs.exchange_rate == Decimal("62.10")

        prefs = asyncio.run(components.preferences.toggle_theme())
        assert prefs.theme == Theme.DARK

        prefs = asyncio.run(components.preferences.set_default_currency("inr"))
        assert prefs.default_currency == "INR"

        config = asyncio.run(components.preferences.display_config())
        assert config.exchange_rate == Decimal("62.10")
        assert config.preferred_currency == "INR"

    def test_invalid_updates(self, components):
        with pytest.raises(InputValidationError):
            asyncio.run(components.preferences.update_exchange_rate("0"))
        with pytest.raises(InputValidationError):
            asyncio.run(components.preferences.set_default_currency("JPY"))

    def test_toggle_theme_reads_preferences_once(self, components):
        """Test a toggle loads the record once before updating it."""
        store = CountingStore(UserPreferences)
        components.gateway.user_preferences = store
        asyncio.run(components.preferences.get_preferences())
        store.list_calls = 0

        prefs = asyncio.run(components.preferences.toggle_theme())

        assert prefs.theme == Theme.DARK
        assert store.list_calls == 1


class TestFamilyAccessFlow:
    """Tests for family sharing grants."""

    def test_add_toggle_remove(self, components, audit_storage):
        grant = asyncio.run(components.family.add_member("mom@example.com"))
        with pytest.raises(InputValidationError):
            asyncio.run(components.family.add_member("MOM@example.com"))
        with pytest.raises(InputValidationError):
            asyncio.run(components.family.add_member("priya@example.com"))

        toggled = asyncio.run(components.family.toggle_member(grant))
        assert toggled.is_active is False
        assert asyncio.run(components.family.list_members()) == [toggled]

        assert asyncio.run(components.family.remove_member(grant.id)) is True
        assert asyncio.run(components.family.list_members()) == []
        assert AuditEventType.FAMILY_MEMBER_REMOVED in _event_types(audit_storage)


class TestAnalyticsFlow:
    """Tests for the dashboard and analytics reports."""

    def test_dashboard(self, components):
        store = components.gateway.transactions
        asyncio.run(store.create(make_transaction(TransactionType.INCOME, "1000", TODAY)))
        asyncio.run(store.create(make_transaction(TransactionType.EXPENSE, "200", TODAY)))
        asyncio.run(store.create(make_transaction(TransactionType.EXPENSE, "75", date(2024, 5, 30))))

        later = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Alex", "300", "Car repair", RATE, TODAY + timedelta(days=20),
        ))
        sooner = asyncio.run(components.debts.add_debt(
            DebtDirection.LENT, "Kim", "50", "Tickets", RATE, TODAY + timedelta(days=2),
        ))
        paid = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Sam", "20", "Lunch", RATE,
        ))
        asyncio.run(components.debts.record_payment(paid, "20", RATE))

        view = asyncio.run(components.analytics.dashboard(today=TODAY))

        assert view.month_income == Decimal("1000")
        assert view.month_expenses == Decimal("200")
        assert view.month_net == Decimal("800")
        assert [d.id for d in view.upcoming_debts] == [sooner.id, later.id]
        assert view.total_owed == Decimal("300")
        assert view.total_lent == Decimal("50")
        assert len(view.recent_transactions) == 3

    def test_dashboard_limits_recent_transactions(self, components):
        store = components.gateway.transactions
        for day in range(1, 8):
            asyncio.run(store.create(make_transaction(
                TransactionType.EXPENSE, "1", date(2024, 6, day), description=f"Day {day}",
            )))
        view = asyncio.run(components.analytics.dashboard(today=TODAY))
        assert [t.description for t in view.recent_transactions] == [
            "Day 7", "Day 6", "Day 5", "Day 4", "Day 3",
        ]

    def test_report_for_time_range(self, components):
        store = components.gateway.transactions
        asyncio.run(store.create(make_transaction(TransactionType.INCOME, "100", date(2024, 6, 1))))
        asyncio.run(store.create(make_transaction(TransactionType.EXPENSE, "30", date(2024, 5, 10))))
        asyncio.run(store.create(make_transaction(TransactionType.EXPENSE, "99", date(2023, 1, 1))))

        report = asyncio.run(components.analytics.report(TimeRange.THREE_MONTHS, today=TODAY))

        assert report.time_range == "3months"
        assert report.start == date(2024, 3, 15)
        assert report.transaction_count == 2
        assert [m.month for m in report.monthly] == ["2024-05", "2024-06"]
        assert report.summary.net == Decimal("70")
        assert report.expense_categories[0].category == "Groceries"
        assert report.income_categories[0].percentage == pytest.approx(100.0)


class TestDataFlow:
    """Tests for export and clear-all."""

    def _seed(self, components):
        asyncio.run(components.transactions.create_transaction(
            "income", "Salary", "2500", "June pay", TODAY, RATE,
        ))
        debt = asyncio.run(components.debts.add_debt(
            DebtDirection.OWE, "Alex", "100", "Rent", RATE,
        ))
        asyncio.run(components.debts.record_payment(debt, "25", RATE))
        asyncio.run(components.preferences.get_preferences())
        asyncio.run(components.gateway.transactions.create(
            make_transaction(TransactionType.INCOME, "1", TODAY, user_id="user-2"),
        ))

    def test_export_json(self, components):
        self._seed(components)
        filename, text = asyncio.run(components.data.export_json(today=TODAY))

        document = json.loads(text)
        assert filename == "money-mate-data-2024-06-15.json"
        assert document["user"]["id"] == "user-1"
        assert len(document["transactions"]) == 1
        assert len(document["debts"]) == 1
        assert len(document["debt_payments"]) == 1
        assert document["preferences"]["default_currency"] == "CAD"

    def test_export_csv(self, components, audit_storage):
        self._seed(components)
        filename, text = asyncio.run(components.data.export_csv(today=TODAY))

        rows = list(csv.reader(io.StringIO(text)))
        assert filename == "transactions-2024-06-15.csv"
        assert len(rows) == 2
        assert rows[1][1:4] == ["income", "Salary", "June pay"]
        assert audit_storage.events[-1].event_type == AuditEventType.DATA_EXPORTED

    def test_clear_all_only_touches_own_ledger(self, components, audit_storage):
        self._seed(components)

        counts = asyncio.run(components.data.clear_all())

        assert counts == {"transactions": 1, "debts": 1, "debt_payments": 1}
        assert len(components.gateway.transactions) == 1
        assert len(components.gateway.debts) == 0
        assert len(components.gateway.debt_payments) == 0
        assert len(components.gateway.user_preferences) == 1
        assert audit_storage.events[-1].event_type == AuditEventType.DATA_CLEARED


class TestCreateAppComponents:
    """Tests for the component factory."""

    def test_memory_components(self, session):
        components = create_app_components(use_storage=False, session=session)
        assert isinstance(components, AppComponents)
        assert components.uses_remote_storage is False
        prefs = asyncio.run(components.preferences.get_preferences())
        assert isinstance(prefs, UserPreferences)
