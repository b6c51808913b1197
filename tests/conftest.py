"""Shared fixtures: a signed-in session over the in-memory gateway."""

from datetime import date
from decimal import Decimal

import pytest

from moneymate.audit import AuditLogger
from moneymate.auth import AuthProviderInterface, SessionContext, UserIdentity
from moneymate.config import AppSettings
from moneymate.models import Transaction, TransactionType
from moneymate.orchestrator import AppComponents
from moneymate.services.storage import InMemoryAuditStorage, create_memory_gateway


RATE = Decimal("61.5")


class StaticAuthProvider(AuthProviderInterface):
    """Signs in a fixed identity."""

    def __init__(self, user: UserIdentity):
        self.user = user
        self.sign_outs = 0

    def sign_in(self):
        return self.user

    def sign_out(self):
        self.sign_outs += 1


@pytest.fixture
def user() -> UserIdentity:
    return UserIdentity(id="user-1", email="priya@example.com", display_name="Priya")


@pytest.fixture
def session(user) -> SessionContext:
    context = SessionContext(StaticAuthProvider(user))
    context.login()
    return context


@pytest.fixture
def app_settings() -> AppSettings:
    return AppSettings(
        base_currency="CAD",
        secondary_currency="INR",
        default_exchange_rate=RATE,
        default_theme="light",
        recent_transactions_limit=5,
        dashboard_debts_limit=5,
    )


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def components(session, app_settings, audit_storage) -> AppComponents:
    return AppComponents(
        gateway=create_memory_gateway(),
        session=session,
        audit_logger=AuditLogger(audit_storage),
        settings=app_settings,
    )


def make_transaction(
    kind: TransactionType,
    amount: str,
    on: date,
    category: str = None,
    description: str = "Test entry",
    user_id: str = "user-1",
) -> Transaction:
    """A stored-shape transaction, bypassing form validation."""
    if category is None:
        category = "Salary" if kind == TransactionType.INCOME else "Groceries"
    return Transaction(
        user_id=user_id,
        kind=kind,
        category=category,
        amount_base=Decimal(amount),
        amount_secondary=Decimal(amount) * RATE,
        exchange_rate=RATE,
        description=description,
        transaction_date=on,
    )
