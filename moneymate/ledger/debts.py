"""
Debt Lifecycle

Pure, synchronous computation over debt records: urgency classification
from the due date, creation of new debts, and application of a payment
against the remaining balance. Nothing here talks to the store; the
orchestrator persists what these functions return.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Iterable, Optional

from moneymate.models.ledger import (
    Debt,
    DebtDirection,
    DebtPayment,
    Priority,
    utc_now,
)
from moneymate.validation import (
    raise_for_issues,
    validate_debt_input,
    validate_exchange_rate,
    validate_payment_input,
)


URGENT_WITHIN_DAYS = 7
MEDIUM_WITHIN_DAYS = 30


def days_until_due(due_date: date, today: date) -> int:
    """Whole days from today to the due date; negative once overdue."""
    return (due_date - today).days


def classify(debt: Debt, today: date) -> Priority:
    """
    Urgency band for a debt.

    No due date is always LOW. Otherwise, by days until due:
    negative is OVERDUE, 0-7 URGENT, 8-30 MEDIUM, beyond that LOW.
    """
    if debt.due_date is None:
        return Priority.LOW

    days = days_until_due(debt.due_date, today)
    if days < 0:
        return Priority.OVERDUE
    if days <= URGENT_WITHIN_DAYS:
        return Priority.URGENT
    if days <= MEDIUM_WITHIN_DAYS:
        return Priority.MEDIUM
    return Priority.LOW


def add_debt(
    user_id: str,
    direction: DebtDirection,
    person_name: Optional[str],
    amount: Any,
    purpose: Optional[str],
    exchange_rate: Decimal,
    due_date: Optional[date] = None,
    now: Optional[datetime] = None,
) -> Debt:
    """
    Build a new, unpaid debt from form input.

    Raises:
        InputValidationError: naming every missing or invalid field
    """
    result, total = validate_debt_input(person_name, amount, purpose)
    rate_result, exchange_rate = validate_exchange_rate(exchange_rate)
    raise_for_issues(result, rate_result)

    now = now or utc_now()
    secondary = total * exchange_rate
    return Debt(
        user_id=user_id,
        direction=DebtDirection(direction),
        person_name=person_name,
        total_amount_base=total,
        total_amount_secondary=secondary,
        remaining_amount_base=total,
        remaining_amount_secondary=secondary,
        exchange_rate=exchange_rate,
        purpose=purpose,
        due_date=due_date,
        is_paid=False,
        priority_score=0,
        created_at=now,
        updated_at=now,
    )


def apply_payment(
    debt: Debt,
    amount: Any,
    exchange_rate: Decimal,
    payment_date: Optional[date] = None,
    notes: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[Debt, DebtPayment]:
    """
    Apply a payment against a debt's remaining balance.

    Returns the updated debt snapshot and the new payment record. The
    input debt is not modified. The caller persists both as two separate
    writes; nothing here makes them atomic.

    Raises:
        InputValidationError: if the amount is not positive or exceeds
            the remaining balance, or if the rate is not positive
    """
    result, paid_amount = validate_payment_input(
        amount, debt.remaining_amount_base, notes
    )
    rate_result, exchange_rate = validate_exchange_rate(exchange_rate)
    raise_for_issues(result, rate_result)

    now = now or utc_now()
    remaining = debt.remaining_amount_base - paid_amount

    payment = DebtPayment(
        debt_id=debt.id,
        user_id=debt.user_id,
        amount_base=paid_amount,
        amount_secondary=paid_amount * exchange_rate,
        exchange_rate=exchange_rate,
        payment_date=payment_date or now.date(),
        notes=notes or None,
        created_at=now,
    )
    updated = Debt.model_validate({
        **debt.model_dump(),
        "remaining_amount_base": remaining,
        "remaining_amount_secondary": remaining * exchange_rate,
        "is_paid": remaining <= 0,
        "updated_at": now,
    })
    return updated, payment


def balance_changes(debt: Debt) -> dict:
    """Fields a payment changes, as the partial record sent to the store."""
    return {
        "remaining_amount_base": debt.remaining_amount_base,
        "remaining_amount_secondary": debt.remaining_amount_secondary,
        "is_paid": debt.is_paid,
        "updated_at": debt.updated_at,
    }


def split_active_paid(debts: Iterable[Debt]) -> tuple[list[Debt], list[Debt]]:
    """(active, paid) preserving input order."""
    active, paid = [], []
    for debt in debts:
        (paid if debt.is_paid else active).append(debt)
    return active, paid


def group_by_direction(debts: Iterable[Debt]) -> dict[DebtDirection, list[Debt]]:
    groups = {direction: [] for direction in DebtDirection}
    for debt in debts:
        groups[debt.direction].append(debt)
    return groups
