"""
Transaction Ledger

Builds and revises transaction records from form input and filters an
already-fetched list for the history view.
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Iterable, Optional

from dateutil.relativedelta import relativedelta

from moneymate.models.ledger import Transaction, TransactionType, utc_now
from moneymate.validation import (
    raise_for_issues,
    validate_exchange_rate,
    validate_transaction_input,
)


class DateFilter(str, Enum):
    """History view date windows, all ending today."""
    ALL = "all"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"
    YEAR = "year"


def new_transaction(
    user_id: str,
    kind: Any,
    category: Optional[str],
    amount: Any,
    description: Optional[str],
    transaction_date: date,
    exchange_rate: Decimal,
    now: Optional[datetime] = None,
) -> Transaction:
    """
    Build a transaction from form input.

    Raises:
        InputValidationError: naming every missing or invalid field
    """
    result, amount_base = validate_transaction_input(kind, category, amount, description)
    rate_result, exchange_rate = validate_exchange_rate(exchange_rate)
    raise_for_issues(result, rate_result)

    now = now or utc_now()
    return Transaction(
        user_id=user_id,
        kind=TransactionType(kind),
        category=category,
        amount_base=amount_base,
        amount_secondary=amount_base * exchange_rate,
        exchange_rate=exchange_rate,
        description=description,
        transaction_date=transaction_date,
        created_at=now,
        updated_at=now,
    )


def revise_transaction(
    transaction: Transaction,
    category: Optional[str],
    amount: Any,
    description: Optional[str],
    transaction_date: date,
    exchange_rate: Decimal,
    now: Optional[datetime] = None,
) -> Transaction:
    """
    Apply an edit. The kind is fixed; the secondary amount is recomputed
    with the current rate, and that rate is recorded with it.
    """
    result, amount_base = validate_transaction_input(
        transaction.kind, category, amount, description
    )
    rate_result, exchange_rate = validate_exchange_rate(exchange_rate)
    raise_for_issues(result, rate_result)

    return Transaction.model_validate({
        **transaction.model_dump(),
        "category": category,
        "amount_base": amount_base,
        "amount_secondary": amount_base * exchange_rate,
        "exchange_rate": exchange_rate,
        "description": description,
        "transaction_date": transaction_date,
        "updated_at": now or utc_now(),
    })


def date_filter_start(window: DateFilter, today: date) -> Optional[date]:
    """First date included by a history window, or None for all."""
    window = DateFilter(window)
    if window == DateFilter.TODAY:
        return today
    if window == DateFilter.WEEK:
        return today - timedelta(days=7)
    if window == DateFilter.MONTH:
        return today - relativedelta(months=1)
    if window == DateFilter.YEAR:
        return today - relativedelta(years=1)
    return None


def filter_transactions(
    transactions: Iterable[Transaction],
    search: Optional[str] = None,
    kind: Optional[TransactionType] = None,
    category: Optional[str] = None,
    window: DateFilter = DateFilter.ALL,
    today: Optional[date] = None,
) -> list[Transaction]:
    """
    Narrow a transaction list the way the history view does.

    Search is a case-insensitive substring match on description or
    category. All criteria must hold.
    """
    needle = (search or "").strip().lower()
    start = date_filter_start(window, today or date.today())

    results = []
    for t in transactions:
        if needle and needle not in t.description.lower() and needle not in t.category.lower():
            continue
        if kind is not None and t.kind != TransactionType(kind):
            continue
        if category and t.category != category:
            continue
        if start is not None and t.transaction_date < start:
            continue
        results.append(t)
    return results


def totals(transactions: Iterable[Transaction]) -> tuple[Decimal, Decimal]:
    """(income, expenses) in the base currency."""
    income = Decimal("0")
    expenses = Decimal("0")
    for t in transactions:
        if t.kind == TransactionType.INCOME:
            income += t.amount_base
        else:
            expenses += t.amount_base
    return income, expenses
