"""Ledger logic package: pure functions over ledger records."""

from moneymate.ledger.debts import (
    add_debt,
    apply_payment,
    balance_changes,
    classify,
    days_until_due,
    group_by_direction,
    split_active_paid,
)
from moneymate.ledger.family import new_grant, toggle_changes
from moneymate.ledger.preferences import (
    default_preferences,
    exchange_rate_changes,
    toggled_theme,
)
from moneymate.ledger.transactions import (
    DateFilter,
    filter_transactions,
    new_transaction,
    revise_transaction,
    totals,
)

__all__ = [
    "DateFilter",
    "add_debt",
    "apply_payment",
    "balance_changes",
    "classify",
    "days_until_due",
    "default_preferences",
    "exchange_rate_changes",
    "filter_transactions",
    "group_by_direction",
    "new_grant",
    "new_transaction",
    "revise_transaction",
    "split_active_paid",
    "toggle_changes",
    "toggled_theme",
    "totals",
]
