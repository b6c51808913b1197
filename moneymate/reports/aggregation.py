"""
Aggregation Views

Read-only grouping over an already-fetched transaction list. Every
function is deterministic and keeps no state between calls, so running
one twice on the same list gives the same result. Empty input yields an
empty result, never an error.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from moneymate.ledger.transactions import totals
from moneymate.models.ledger import Debt, DebtDirection, Transaction, TransactionType
from moneymate.models.reports import CategoryBreakdown, FinancialSummary, MonthlySummary


class TimeRange(str, Enum):
    """Analytics look-back windows."""
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"


_RANGE_MONTHS = {
    TimeRange.ONE_MONTH: 1,
    TimeRange.THREE_MONTHS: 3,
    TimeRange.SIX_MONTHS: 6,
    TimeRange.ONE_YEAR: 12,
}


def range_bounds(time_range: TimeRange, today: date) -> tuple[date, date]:
    """(start, end) dates inclusive for an analytics window."""
    months = _RANGE_MONTHS[TimeRange(time_range)]
    return today - relativedelta(months=months), today


def within_range(
    transactions: Iterable[Transaction],
    time_range: TimeRange,
    today: date,
) -> list[Transaction]:
    start, end = range_bounds(time_range, today)
    return [t for t in transactions if start <= t.transaction_date <= end]


def monthly_summary(transactions: Iterable[Transaction]) -> list[MonthlySummary]:
    """
    Income and expense per year-month, sorted by month ascending.

    Months with no transactions are not filled in.
    """
    months: dict[str, list[Decimal]] = {}
    for t in transactions:
        bucket = months.setdefault(t.month_key, [Decimal("0"), Decimal("0")])
        if t.kind == TransactionType.INCOME:
            bucket[0] += t.amount_base
        else:
            bucket[1] += t.amount_base

    return [
        MonthlySummary(month=month, income=income, expense=expense, net=income - expense)
        for month, (income, expense) in sorted(months.items())
    ]


def category_breakdown(
    transactions: Iterable[Transaction],
    kind: TransactionType,
) -> list[CategoryBreakdown]:
    """
    Amount, count and share per category for one kind, largest first.
    """
    kind = TransactionType(kind)
    of_kind = [t for t in transactions if t.kind == kind]
    total = sum((t.amount_base for t in of_kind), Decimal("0"))

    groups: dict[str, list] = {}
    for t in of_kind:
        group = groups.setdefault(t.category, [Decimal("0"), 0])
        group[0] += t.amount_base
        group[1] += 1

    rows = [
        CategoryBreakdown(
            category=category,
            amount=amount,
            percentage=float(amount / total * 100) if total > 0 else 0.0,
            count=count,
        )
        for category, (amount, count) in groups.items()
    ]
    rows.sort(key=lambda row: row.amount, reverse=True)
    return rows


def outstanding(debts: Iterable[Debt], direction: DebtDirection) -> Decimal:
    """Sum of remaining balances of unpaid debts in one direction."""
    return sum(
        (d.remaining_amount_base for d in debts if d.direction == direction and not d.is_paid),
        Decimal("0"),
    )


def financial_summary(
    transactions: Iterable[Transaction],
    debts: Iterable[Debt] = (),
) -> FinancialSummary:
    """Headline totals. Averages divide by the number of months seen (at least 1)."""
    transactions = list(transactions)
    debts = list(debts)

    income, expenses = totals(transactions)
    month_count = len({t.month_key for t in transactions})
    divisor = max(1, month_count)

    return FinancialSummary(
        total_income=income,
        total_expenses=expenses,
        net=income - expenses,
        month_count=month_count,
        average_monthly_income=income / divisor,
        average_monthly_expenses=expenses / divisor,
        total_owed=outstanding(debts, DebtDirection.OWE),
        total_lent=outstanding(debts, DebtDirection.LENT),
    )


def current_month(
    transactions: Iterable[Transaction],
    today: Optional[date] = None,
) -> list[Transaction]:
    """Transactions dated in today's year-month."""
    key = (today or date.today()).isoformat()[:7]
    return [t for t in transactions if t.month_key == key]
