"""Tests for the record stores: in-memory and Google Sheets (fake worksheet)."""

import asyncio
import pytest
from datetime import date, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

from conftest import make_transaction
from moneymate.ledger import add_debt
from moneymate.models import (
    AuditEvent,
    AuditEventType,
    AuditSeverity,
    Debt,
    DebtDirection,
    Transaction,
    TransactionType,
)
from moneymate.services.storage import (
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsRecordStore,
    InMemoryRecordStore,
    NotFoundError,
    OrderBy,
    StorageError,
    create_google_sheets_gateway,
)
from moneymate.services.storage.google_sheets import AUDIT_COLUMNS


RATE = Decimal("61.5")


class FakeWorksheet:
    """Just enough of gspread.Worksheet, backed by a list of string rows."""

    def __init__(self, columns):
        self.rows = [list(columns)]

    def get_all_values(self):
        return [list(row) for row in self.rows]

    def append_row(self, values, value_input_option="RAW"):
        self.rows.append([str(v) for v in values])

    def update(self, range_name, values):
        index = int(range_name[1:]) - 1
        self.rows[index] = [str(v) for v in values[0]]

    def delete_rows(self, index):
        del self.rows[index - 1]


class FakeSheetsClient:
    def __init__(self):
        self.sheets = {}
        self.settings = SimpleNamespace(
            transactions_sheet_name="Transactions",
            debts_sheet_name="Debts",
            debt_payments_sheet_name="DebtPayments",
            preferences_sheet_name="UserPreferences",
            family_access_sheet_name="FamilyAccess",
            audit_sheet_name="AuditLog",
        )

    def get_worksheet(self, title, columns):
        if title not in self.sheets:
            self.sheets[title] = FakeWorksheet(columns)
        return self.sheets[title]


class BrokenSheetsClient(FakeSheetsClient):
    def get_worksheet(self, title, columns):
        raise RuntimeError("quota exceeded")


def _debt(due_date=None, user_id="user-1"):
    return add_debt(user_id, DebtDirection.OWE, "Alex", "100", "Rent", RATE, due_date)


class TestInMemoryRecordStore:
    """Tests for the dict-backed store."""

    def test_create_list_update_delete(self):
        store = InMemoryRecordStore(Debt)
        debt = _debt()

        asyncio.run(store.create(debt))
        assert len(store) == 1

        updated = asyncio.run(store.update(debt.id, {
            "remaining_amount_base": Decimal("0"),
            "remaining_amount_secondary": Decimal("0"),
            "is_paid": True,
        }))
        assert updated.is_paid is True
        assert asyncio.run(store.list(where={"is_paid": True})) == [updated]

        assert asyncio.run(store.delete(debt.id)) is True
        assert asyncio.run(store.delete(debt.id)) is False

    def test_duplicate_and_missing(self):
        store = InMemoryRecordStore(Debt)
        debt = _debt()
        asyncio.run(store.create(debt))
        with pytest.raises(DuplicateError):
            asyncio.run(store.create(debt))
        with pytest.raises(NotFoundError):
            asyncio.run(store.update(uuid4(), {"purpose": "x"}))

    def test_update_is_validated(self):
        """Test an update that breaks the balance rule is refused."""
        store = InMemoryRecordStore(Debt)
        debt = _debt()
        asyncio.run(store.create(debt))
        with pytest.raises(ValueError):
            asyncio.run(store.update(debt.id, {"remaining_amount_base": Decimal("500")}))

    def test_where_order_and_limit(self):
        """Test equality filters, single-field order with nulls last, and limit."""
        store = InMemoryRecordStore(Debt)
        today = date(2024, 1, 1)
        later = _debt(today + timedelta(days=10))
        sooner = _debt(today + timedelta(days=2))
        undated = _debt()
        other_user = _debt(today, user_id="user-2")
        for debt in (later, undated, sooner, other_user):
            asyncio.run(store.create(debt))

        ordered = asyncio.run(store.list(
            where={"user_id": "user-1", "direction": DebtDirection.OWE},
            order_by=OrderBy(field="due_date"),
        ))
        assert [d.id for d in ordered] == [sooner.id, later.id, undated.id]

        newest_due = asyncio.run(store.list(
            where={"user_id": "user-1"},
            order_by=OrderBy(field="due_date", descending=True),
            limit=1,
        ))
        assert newest_due == [later]

    def test_where_matches_ids_and_enum_strings(self):
        store = InMemoryRecordStore(Debt)
        debt = _debt()
        asyncio.run(store.create(debt))
        assert asyncio.run(store.list(where={"id": str(debt.id)})) == [debt]
        assert asyncio.run(store.list(where={"direction": "owe"})) == [debt]
        assert asyncio.run(store.list(where={"direction": "lent"})) == []


class TestGoogleSheetsRecordStore:
    """Tests for the worksheet-backed store."""

    @pytest.fixture
    def client(self):
        return FakeSheetsClient()

    def test_round_trip_through_rows(self, client):
        """Test records survive the string row encoding, flags as "0"/"1"."""
        store = GoogleSheetsRecordStore(Debt, "Debts", client)
        debt = _debt()

        asyncio.run(store.create(debt))

        sheet = client.sheets["Debts"]
        assert sheet.rows[0] == store.columns
        row = dict(zip(store.columns, sheet.rows[1]))
        assert row["is_paid"] == "0"
        assert row["due_date"] == ""
        assert row["direction"] == "owe"

        loaded = asyncio.run(store.list(where={"user_id": "user-1"}))
        assert loaded == [debt]

    def test_update_rewrites_row(self, client):
        store = GoogleSheetsRecordStore(Debt, "Debts", client)
        debt = _debt()
        asyncio.run(store.create(debt))

        updated = asyncio.run(store.update(debt.id, {
            "remaining_amount_base": Decimal("0"),
            "remaining_amount_secondary": Decimal("0"),
            "is_paid": True,
        }))

        row = dict(zip(store.columns, client.sheets["Debts"].rows[1]))
        assert row["is_paid"] == "1"
        assert updated.is_paid is True
        assert asyncio.run(store.list(where={"is_paid": True}))[0].id == debt.id

    def test_delete_and_missing(self, client):
        store = GoogleSheetsRecordStore(Transaction, "Transactions", client)
        t = make_transaction(TransactionType.INCOME, "10", date(2024, 1, 1))
        asyncio.run(store.create(t))

        assert asyncio.run(store.delete(t.id)) is True
        assert asyncio.run(store.delete(t.id)) is False
        assert len(client.sheets["Transactions"].rows) == 1
        with pytest.raises(NotFoundError):
            asyncio.run(store.update(t.id, {"description": "gone"}))

    def test_duplicate_create(self, client):
        store = GoogleSheetsRecordStore(Transaction, "Transactions", client)
        t = make_transaction(TransactionType.INCOME, "10", date(2024, 1, 1))
        asyncio.run(store.create(t))
        with pytest.raises(DuplicateError):
            asyncio.run(store.create(t))

    def test_malformed_rows_are_skipped(self, client):
        store = GoogleSheetsRecordStore(Transaction, "Transactions", client)
        t = make_transaction(TransactionType.INCOME, "10", date(2024, 1, 1))
        asyncio.run(store.create(t))
        client.sheets["Transactions"].rows.append(["not-a-uuid", "user-1", "income"])
        client.sheets["Transactions"].rows.append([""])

        assert asyncio.run(store.list()) == [t]

    def test_remote_failures_become_storage_errors(self):
        store = GoogleSheetsRecordStore(Transaction, "Transactions", BrokenSheetsClient())
        with pytest.raises(StorageError, match="quota exceeded"):
            asyncio.run(store.list())

    def test_gateway_uses_configured_sheet_names(self, client):
        gateway = create_google_sheets_gateway(client)
        asyncio.run(gateway.debts.create(_debt()))
        asyncio.run(gateway.family_access.list())
        assert set(client.sheets) == {"Debts", "FamilyAccess"}


class TestGoogleSheetsAuditStorage:
    """Tests for the audit worksheet."""

    def test_append_and_read_back(self):
        client = FakeSheetsClient()
        storage = GoogleSheetsAuditStorage(client)
        first = AuditEvent(
            event_type=AuditEventType.DEBT_CREATED,
            description="Debt created",
            user_id="user-1",
            entity_id=uuid4(),
            details={"amount": "200"},
            is_user_action=True,
        )
        second = AuditEvent(
            event_type=AuditEventType.PARTIAL_WRITE_DETECTED,
            severity=AuditSeverity.CRITICAL,
            description="Payment recorded but debt balance update failed",
            user_id="user-2",
            error_message="timeout",
            timestamp=first.timestamp + timedelta(seconds=1),
        )

        assert asyncio.run(storage.append_event(first)) is True
        asyncio.run(storage.append_event(second))

        assert client.sheets["AuditLog"].rows[0] == AUDIT_COLUMNS
        events = asyncio.run(storage.get_recent_events())
        assert [e.event_id for e in events] == [second.event_id, first.event_id]
        assert events[1].details == {"amount": "200"}
        assert events[1].is_user_action is True

        mine = asyncio.run(storage.get_recent_events(user_id="user-1"))
        assert [e.event_id for e in mine] == [first.event_id]
