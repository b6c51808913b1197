"""
Main Orchestrator for Money Mate

This module ties together the ledger logic, the data gateway, the session
and the audit trail, and defines the end-to-end flows for:
1. Transactions (create, revise, delete, history)
2. Debts (add, record payment, payment history, delete)
3. Preferences and family access
4. Dashboard, analytics, export and clear-all

DESIGN DECISION: The orchestrator enforces the boundaries:
- Input is validated before any remote call
- Every remote call is made at a call site that catches, logs and
  reports a generic failure; nothing is retried
- Every mutation is audited

Recording a payment is two independent writes. If the second one fails
the payment exists without the debt reflecting it. That window is not
compensated here; it is logged as a critical partial write instead.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Any, Awaitable, Optional, TypeVar
from uuid import UUID

import structlog

from moneymate.audit import AuditLogger, configure_logging, create_correlation_id
from moneymate.auth import SessionContext, SettingsAuthProvider, UserIdentity
from moneymate.config import AppSettings, get_settings
from moneymate.ledger import (
    DateFilter,
    add_debt,
    apply_payment,
    balance_changes,
    default_preferences,
    exchange_rate_changes,
    filter_transactions,
    new_grant,
    new_transaction,
    revise_transaction,
    split_active_paid,
    toggle_changes,
    toggled_theme,
)
from moneymate.models import (
    AnalyticsReport,
    AuditEventType,
    DashboardView,
    Debt,
    DebtDirection,
    DebtPayment,
    FamilyAccessGrant,
    Transaction,
    TransactionType,
    UserPreferences,
    utc_now,
)
from moneymate.reports import (
    DisplayConfig,
    TimeRange,
    category_breakdown,
    current_month,
    export_filename,
    financial_summary,
    monthly_summary,
    outstanding,
    range_bounds,
    transactions_csv,
    user_data_json,
    within_range,
)
from moneymate.reports.currency import CURRENCY_SYMBOLS
from moneymate.services.storage import (
    DataGateway,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    OrderBy,
    create_google_sheets_gateway,
    create_memory_gateway,
)
from moneymate.validation import (
    InputValidationError,
    raise_for_issues,
    validate_currency_code,
)


logger = structlog.get_logger(__name__)

T = TypeVar("T")


class OperationFailedError(Exception):
    """A remote call failed. The message is safe to show to the user."""

    def __init__(self, message: str, operation: Optional[str] = None):
        self.operation = operation
        super().__init__(message)


class _Flow:
    """Shared plumbing: the signed-in user, audited remote calls."""

    def __init__(
        self,
        gateway: DataGateway,
        session: SessionContext,
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[AppSettings] = None,
    ):
        self._gateway = gateway
        self._session = session
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or get_settings().app

    def _user(self) -> UserIdentity:
        return self._session.require_user()

    async def _remote(
        self,
        operation: str,
        failure_message: str,
        call: Awaitable[T],
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> T:
        """Await one gateway call; any failure becomes OperationFailedError."""
        try:
            return await call
        except Exception as e:
            await self._audit_logger.log_storage_error(
                operation=operation,
                error_message=str(e),
                user_id=user_id,
                correlation_id=correlation_id,
            )
            raise OperationFailedError(failure_message, operation) from e

    async def _rejected(
        self,
        operation: str,
        error: InputValidationError,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self._audit_logger.log_validation_failed(
            operation=operation,
            issues=error.to_dicts(),
            user_id=user_id,
            correlation_id=correlation_id,
        )


class TransactionFlow(_Flow):
    """
    Orchestrates transaction logging.

    The caller passes the exchange rate in force (from the user's
    preferences); it is stored with the record.
    """

    async def list_transactions(self, limit: Optional[int] = None) -> list[Transaction]:
        """The user's transactions, newest date first."""
        user = self._user()
        return await self._remote(
            "list_transactions",
            "Failed to load transactions",
            self._gateway.transactions.list(
                where={"user_id": user.id},
                order_by=OrderBy(field="transaction_date", descending=True),
                limit=limit,
            ),
            user_id=user.id,
        )

    async def recent_transactions(self) -> list[Transaction]:
        return await self.list_transactions(limit=self._settings.recent_transactions_limit)

    async def history(
        self,
        search: Optional[str] = None,
        kind: Optional[TransactionType] = None,
        category: Optional[str] = None,
        window: DateFilter = DateFilter.ALL,
        today: Optional[date] = None,
    ) -> list[Transaction]:
        """All transactions narrowed by the history view's filters."""
        transactions = await self.list_transactions()
        return filter_transactions(transactions, search, kind, category, window, today)

    async def create_transaction(
        self,
        kind: Any,
        category: Optional[str],
        amount: Any,
        description: Optional[str],
        transaction_date: date,
        exchange_rate: Decimal,
    ) -> Transaction:
        """
        Validate and save a new transaction.

        Raises:
            InputValidationError: before any remote call
            OperationFailedError: if the store rejects the write
        """
        user = self._user()
        correlation_id = create_correlation_id()
        try:
            transaction = new_transaction(
                user.id, kind, category, amount, description,
                transaction_date, exchange_rate,
            )
        except InputValidationError as e:
            await self._rejected("create_transaction", e, user.id, correlation_id)
            raise

        saved = await self._remote(
            "create_transaction",
            "Failed to add transaction",
            self._gateway.transactions.create(transaction),
            user_id=user.id,
            correlation_id=correlation_id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.TRANSACTION_CREATED,
            entity_type="transaction",
            entity_id=saved.id,
            user_id=user.id,
            correlation_id=correlation_id,
            details={"kind": saved.kind.value, "amount": str(saved.amount_base)},
        )
        return saved

    async def update_transaction(
        self,
        transaction: Transaction,
        category: Optional[str],
        amount: Any,
        description: Optional[str],
        transaction_date: date,
        exchange_rate: Decimal,
    ) -> Transaction:
        user = self._user()
        correlation_id = create_correlation_id()
        try:
            revised = revise_transaction(
                transaction, category, amount, description,
                transaction_date, exchange_rate,
            )
        except InputValidationError as e:
            await self._rejected("update_transaction", e, user.id, correlation_id)
            raise

        changes = revised.model_dump(
            include={
                "category",
                "amount_base",
                "amount_secondary",
                "exchange_rate",
                "description",
                "transaction_date",
                "updated_at",
            }
        )
        saved = await self._remote(
            "update_transaction",
            "Failed to update transaction",
            self._gateway.transactions.update(transaction.id, changes),
            user_id=user.id,
            correlation_id=correlation_id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.TRANSACTION_UPDATED,
            entity_type="transaction",
            entity_id=transaction.id,
            user_id=user.id,
            correlation_id=correlation_id,
        )
        return saved

    async def delete_transaction(self, transaction_id: UUID) -> bool:
        user = self._user()
        deleted = await self._remote(
            "delete_transaction",
            "Failed to delete transaction",
            self._gateway.transactions.delete(transaction_id),
            user_id=user.id,
        )
        if deleted:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.TRANSACTION_DELETED,
                entity_type="transaction",
                entity_id=transaction_id,
                user_id=user.id,
            )
        return deleted


class DebtFlow(_Flow):
    """
    Orchestrates debt tracking.

    Flow for a payment:
    1. Validate against the remaining balance (no remote call on failure)
    2. Create the payment record
    3. Update the debt's remaining balance and paid flag

    Steps 2 and 3 are separate writes with no atomicity between them.
    """

    async def list_debts(self) -> list[Debt]:
        """All of the user's debts, newest first."""
        user = self._user()
        return await self._remote(
            "list_debts",
            "Failed to load debts",
            self._gateway.debts.list(
                where={"user_id": user.id},
                order_by=OrderBy(field="created_at", descending=True),
            ),
            user_id=user.id,
        )

    async def active_and_paid(self) -> tuple[list[Debt], list[Debt]]:
        return split_active_paid(await self.list_debts())

    async def upcoming_debts(self) -> list[Debt]:
        """Unpaid debts by due date (undated last), for the dashboard."""
        user = self._user()
        return await self._remote(
            "list_debts",
            "Failed to load debts",
            self._gateway.debts.list(
                where={"user_id": user.id, "is_paid": False},
                order_by=OrderBy(field="due_date"),
                limit=self._settings.dashboard_debts_limit,
            ),
            user_id=user.id,
        )

    async def add_debt(
        self,
        direction: DebtDirection,
        person_name: Optional[str],
        amount: Any,
        purpose: Optional[str],
        exchange_rate: Decimal,
        due_date: Optional[date] = None,
    ) -> Debt:
        """
        Validate and save a new debt.

        Raises:
            InputValidationError: naming the missing or invalid field
            OperationFailedError: if the store rejects the write
        """
        user = self._user()
        correlation_id = create_correlation_id()
        try:
            debt = add_debt(
                user.id, direction, person_name, amount, purpose,
                exchange_rate, due_date,
            )
        except InputValidationError as e:
            await self._rejected("add_debt", e, user.id, correlation_id)
            raise

        saved = await self._remote(
            "add_debt",
            "Failed to add debt",
            self._gateway.debts.create(debt),
            user_id=user.id,
            correlation_id=correlation_id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.DEBT_CREATED,
            entity_type="debt",
            entity_id=saved.id,
            user_id=user.id,
            correlation_id=correlation_id,
            details={
                "direction": saved.direction.value,
                "amount": str(saved.total_amount_base),
            },
        )
        return saved

    async def record_payment(
        self,
        debt: Debt,
        amount: Any,
        exchange_rate: Decimal,
        payment_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> tuple[Debt, DebtPayment]:
        """
        Apply a payment to a debt and persist both records.

        Returns:
            (updated_debt, payment)

        Raises:
            InputValidationError: amount not positive or above the
                remaining balance; nothing is written
            OperationFailedError: either write failed. If the payment was
                written but the debt was not, a partial write is audited.
        """
        user = self._user()
        correlation_id = create_correlation_id()
        try:
            updated, payment = apply_payment(
                debt, amount, exchange_rate, payment_date, notes
            )
        except InputValidationError as e:
            await self._rejected("record_payment", e, user.id, correlation_id)
            raise

        payment = await self._remote(
            "create_payment",
            "Failed to record payment",
            self._gateway.debt_payments.create(payment),
            user_id=user.id,
            correlation_id=correlation_id,
        )
        await self._audit_logger.log_payment_recorded(
            payment_id=payment.id,
            debt_id=debt.id,
            amount=payment.amount_base,
            user_id=user.id,
            correlation_id=correlation_id,
        )

        try:
            updated = await self._gateway.debts.update(debt.id, balance_changes(updated))
        except Exception as e:
            await self._audit_logger.log_partial_write(
                payment_id=payment.id,
                debt_id=debt.id,
                error_message=str(e),
                user_id=user.id,
                correlation_id=correlation_id,
            )
            raise OperationFailedError(
                "Payment was saved but the debt balance could not be updated",
                "update_debt_balance",
            ) from e

        await self._audit_logger.log_debt_balance_updated(
            debt_id=debt.id,
            remaining=updated.remaining_amount_base,
            is_paid=updated.is_paid,
            user_id=user.id,
            correlation_id=correlation_id,
        )
        return updated, payment

    async def payment_history(self, debt_id: UUID) -> list[DebtPayment]:
        """Payments against one debt, newest first."""
        user = self._user()
        return await self._remote(
            "list_payments",
            "Failed to load payment history",
            self._gateway.debt_payments.list(
                where={"user_id": user.id, "debt_id": debt_id},
                order_by=OrderBy(field="created_at", descending=True),
            ),
            user_id=user.id,
        )

    async def delete_debt(self, debt_id: UUID) -> bool:
        """Delete a debt. Its payment records are left in place."""
        user = self._user()
        deleted = await self._remote(
            "delete_debt",
            "Failed to delete debt",
            self._gateway.debts.delete(debt_id),
            user_id=user.id,
        )
        if deleted:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.DEBT_DELETED,
                entity_type="debt",
                entity_id=debt_id,
                user_id=user.id,
            )
        return deleted


class PreferencesFlow(_Flow):
    """One preferences record per user, created on first access."""

    async def get_preferences(self) -> UserPreferences:
        user = self._user()
        existing = await self._remote(
            "get_preferences",
            "Failed to load preferences",
            self._gateway.user_preferences.list(where={"user_id": user.id}, limit=1),
            user_id=user.id,
        )
        if existing:
            return existing[0]

        preferences = await self._remote(
            "create_preferences",
            "Failed to save preferences",
            self._gateway.user_preferences.create(
                default_preferences(user.id, self._settings)
            ),
            user_id=user.id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.PREFERENCES_CREATED,
            entity_type="user_preferences",
            entity_id=preferences.id,
            user_id=user.id,
        )
        return preferences

    async def display_config(self) -> DisplayConfig:
        return DisplayConfig.from_preferences(await self.get_preferences(), self._settings)

    async def _update(
        self,
        preferences: UserPreferences,
        changes: dict[str, Any],
    ) -> UserPreferences:
        user = self._user()
        saved = await self._remote(
            "update_preferences",
            "Failed to update settings",
            self._gateway.user_preferences.update(preferences.id, changes),
            user_id=user.id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.PREFERENCES_UPDATED,
            entity_type="user_preferences",
            entity_id=preferences.id,
            user_id=user.id,
            details={k: str(v) for k, v in changes.items() if k != "updated_at"},
        )
        return saved

    async def update_exchange_rate(self, rate: Any) -> UserPreferences:
        """
        Raises:
            InputValidationError: if the rate is not a positive number
        """
        user = self._user()
        try:
            changes = exchange_rate_changes(rate)
        except InputValidationError as e:
            await self._rejected("update_exchange_rate", e, user.id)
            raise
        return await self._update(await self.get_preferences(), changes)

    async def toggle_theme(self) -> UserPreferences:
        preferences = await self.get_preferences()
        return await self._update(preferences, {
            "theme": toggled_theme(preferences.theme),
            "updated_at": utc_now(),
        })

    async def set_default_currency(self, code: str) -> UserPreferences:
        user = self._user()
        supported = [
            c for c in (self._settings.base_currency, self._settings.secondary_currency)
            if c in CURRENCY_SYMBOLS
        ]
        try:
            raise_for_issues(validate_currency_code(code, supported))
        except InputValidationError as e:
            await self._rejected("set_default_currency", e, user.id)
            raise
        return await self._update(await self.get_preferences(), {
            "default_currency": code.strip().upper(),
            "updated_at": utc_now(),
        })


class FamilyAccessFlow(_Flow):
    """View-only sharing grants owned by the signed-in user."""

    async def list_members(self) -> list[FamilyAccessGrant]:
        """All grants, active and disabled, newest first."""
        user = self._user()
        return await self._remote(
            "list_family_members",
            "Failed to load family members",
            self._gateway.family_access.list(
                where={"owner_user_id": user.id},
                order_by=OrderBy(field="created_at", descending=True),
            ),
            user_id=user.id,
        )

    async def add_member(self, member_email: Optional[str]) -> FamilyAccessGrant:
        """
        Raises:
            InputValidationError: malformed, own or duplicate email
            OperationFailedError: if the store rejects the write
        """
        user = self._user()
        existing = await self.list_members()
        try:
            grant = new_grant(user.id, user.email, member_email, existing)
        except InputValidationError as e:
            await self._rejected("add_family_member", e, user.id)
            raise

        saved = await self._remote(
            "add_family_member",
            "Failed to add family member",
            self._gateway.family_access.create(grant),
            user_id=user.id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.FAMILY_MEMBER_ADDED,
            entity_type="family_access",
            entity_id=saved.id,
            user_id=user.id,
            details={"member_email": saved.member_email},
        )
        return saved

    async def toggle_member(self, grant: FamilyAccessGrant) -> FamilyAccessGrant:
        user = self._user()
        saved = await self._remote(
            "toggle_family_member",
            "Failed to update access",
            self._gateway.family_access.update(grant.id, toggle_changes(grant)),
            user_id=user.id,
        )
        await self._audit_logger.log_record_changed(
            event_type=AuditEventType.FAMILY_ACCESS_TOGGLED,
            entity_type="family_access",
            entity_id=grant.id,
            user_id=user.id,
            details={"is_active": saved.is_active},
        )
        return saved

    async def remove_member(self, grant_id: UUID) -> bool:
        user = self._user()
        removed = await self._remote(
            "remove_family_member",
            "Failed to remove family member",
            self._gateway.family_access.delete(grant_id),
            user_id=user.id,
        )
        if removed:
            await self._audit_logger.log_record_changed(
                event_type=AuditEventType.FAMILY_MEMBER_REMOVED,
                entity_type="family_access",
                entity_id=grant_id,
                user_id=user.id,
            )
        return removed


class AnalyticsFlow(_Flow):
    """
    Read-only views over the user's records.

    Independent reads are issued together and merged after both finish.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._transactions = TransactionFlow(
            self._gateway, self._session, self._audit_logger, self._settings
        )
        self._debts = DebtFlow(
            self._gateway, self._session, self._audit_logger, self._settings
        )

    async def dashboard(self, today: Optional[date] = None) -> DashboardView:
        """
        Current-month totals over the recent transactions, plus the
        unpaid debts due soonest.
        """
        recent, upcoming = await asyncio.gather(
            self._transactions.recent_transactions(),
            self._debts.upcoming_debts(),
        )
        month = current_month(recent, today)
        income = sum((t.amount_base for t in month if t.kind == TransactionType.INCOME), Decimal("0"))
        expenses = sum((t.amount_base for t in month if t.kind == TransactionType.EXPENSE), Decimal("0"))
        return DashboardView(
            month_income=income,
            month_expenses=expenses,
            total_owed=outstanding(upcoming, DebtDirection.OWE),
            total_lent=outstanding(upcoming, DebtDirection.LENT),
            recent_transactions=recent,
            upcoming_debts=upcoming,
        )

    async def report(
        self,
        time_range: TimeRange = TimeRange.SIX_MONTHS,
        today: Optional[date] = None,
    ) -> AnalyticsReport:
        today = today or date.today()
        transactions, debts = await asyncio.gather(
            self._transactions.list_transactions(),
            self._debts.list_debts(),
        )
        in_range = within_range(transactions, time_range, today)
        start, end = range_bounds(time_range, today)
        return AnalyticsReport(
            time_range=TimeRange(time_range).value,
            start=start,
            end=end,
            summary=financial_summary(in_range, debts),
            monthly=monthly_summary(in_range),
            expense_categories=category_breakdown(in_range, TransactionType.EXPENSE),
            income_categories=category_breakdown(in_range, TransactionType.INCOME),
            transaction_count=len(in_range),
        )


class DataFlow(_Flow):
    """Export and bulk deletion of the user's own data."""

    async def _load_all(self):
        user = self._user()
        where = {"user_id": user.id}
        return await asyncio.gather(
            self._remote(
                "export_transactions",
                "Failed to export data",
                self._gateway.transactions.list(
                    where=where,
                    order_by=OrderBy(field="transaction_date", descending=True),
                ),
                user_id=user.id,
            ),
            self._remote(
                "export_debts",
                "Failed to export data",
                self._gateway.debts.list(where=where),
                user_id=user.id,
            ),
            self._remote(
                "export_payments",
                "Failed to export data",
                self._gateway.debt_payments.list(where=where),
                user_id=user.id,
            ),
            self._remote(
                "export_preferences",
                "Failed to export data",
                self._gateway.user_preferences.list(where=where, limit=1),
                user_id=user.id,
            ),
        )

    async def export_json(self, today: Optional[date] = None) -> tuple[str, str]:
        """(filename, document) with everything the user owns."""
        user = self._user()
        transactions, debts, payments, preferences = await self._load_all()
        document = user_data_json(
            user,
            preferences[0] if preferences else None,
            transactions,
            debts,
            payments,
        )
        await self._audit_logger.log_bulk_operation(
            event_type=AuditEventType.DATA_EXPORTED,
            user_id=user.id,
            counts={
                "transactions": len(transactions),
                "debts": len(debts),
                "debt_payments": len(payments),
            },
        )
        return export_filename("json", today), document

    async def export_csv(self, today: Optional[date] = None) -> tuple[str, str]:
        """(filename, csv text) of the user's transactions."""
        user = self._user()
        transactions = await self._remote(
            "export_transactions",
            "Failed to export data",
            self._gateway.transactions.list(
                where={"user_id": user.id},
                order_by=OrderBy(field="transaction_date", descending=True),
            ),
            user_id=user.id,
        )
        text = transactions_csv(
            transactions,
            self._settings.base_currency,
            self._settings.secondary_currency,
        )
        await self._audit_logger.log_bulk_operation(
            event_type=AuditEventType.DATA_EXPORTED,
            user_id=user.id,
            counts={"transactions": len(transactions)},
        )
        return export_filename("csv", today), text

    async def _clear(self, store, operation: str, user_id: str, correlation_id: UUID) -> int:
        records = await self._remote(
            operation,
            "Failed to clear data",
            store.list(where={"user_id": user_id}),
            user_id=user_id,
            correlation_id=correlation_id,
        )
        for record in records:
            await self._remote(
                operation,
                "Failed to clear data",
                store.delete(record.id),
                user_id=user_id,
                correlation_id=correlation_id,
            )
        return len(records)

    async def clear_all(self) -> dict[str, int]:
        """
        Delete every transaction, debt and debt payment the user owns.

        Preferences and family grants are kept. Collections are cleared
        concurrently; records within one collection one at a time.
        """
        user = self._user()
        correlation_id = create_correlation_id()
        transactions, debts, payments = await asyncio.gather(
            self._clear(self._gateway.transactions, "clear_transactions", user.id, correlation_id),
            self._clear(self._gateway.debts, "clear_debts", user.id, correlation_id),
            self._clear(self._gateway.debt_payments, "clear_payments", user.id, correlation_id),
        )
        counts = {
            "transactions": transactions,
            "debts": debts,
            "debt_payments": payments,
        }
        await self._audit_logger.log_bulk_operation(
            event_type=AuditEventType.DATA_CLEARED,
            user_id=user.id,
            counts=counts,
            correlation_id=correlation_id,
        )
        return counts


class AppComponents:
    """Everything the presentation layer needs, wired together."""

    def __init__(
        self,
        gateway: DataGateway,
        session: SessionContext,
        audit_logger: AuditLogger,
        settings: Optional[AppSettings] = None,
        sheets_client: Optional[GoogleSheetsClient] = None,
    ):
        self.gateway = gateway
        self.session = session
        self.audit_logger = audit_logger
        self.settings = settings or get_settings().app
        self.sheets_client = sheets_client

        args = (gateway, session, audit_logger, self.settings)
        self.transactions = TransactionFlow(*args)
        self.debts = DebtFlow(*args)
        self.preferences = PreferencesFlow(*args)
        self.family = FamilyAccessFlow(*args)
        self.analytics = AnalyticsFlow(*args)
        self.data = DataFlow(*args)

    @property
    def uses_remote_storage(self) -> bool:
        return self.sheets_client is not None


def create_app_components(
    use_storage: bool = True,
    session: Optional[SessionContext] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False (or leave it unconfigured) to keep
                    records in process memory.
        session: Session to use; defaults to the configured identity.
    """
    settings = get_settings().app
    configure_logging(settings.log_level)
    session = session or SessionContext(SettingsAuthProvider())
    sheets_client = None

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            gateway = create_google_sheets_gateway(sheets_client)
            audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
        except Exception as e:
            # Storage not configured - continue without it
            logger.warning("storage_not_configured", error=str(e))
            sheets_client = None
            gateway = create_memory_gateway()
            audit_logger = AuditLogger(InMemoryAuditStorage())
    else:
        gateway = create_memory_gateway()
        audit_logger = AuditLogger(InMemoryAuditStorage())

    return AppComponents(gateway, session, audit_logger, settings, sheets_client)
