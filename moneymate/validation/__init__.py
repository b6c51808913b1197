"""Validation package."""

from moneymate.validation.validator import (
    InputValidationError,
    get_user_friendly_summary,
    parse_amount,
    raise_for_issues,
    validate_currency_code,
    validate_debt_input,
    validate_exchange_rate,
    validate_member_email,
    validate_payment_input,
    validate_transaction_input,
)

__all__ = [
    "InputValidationError",
    "get_user_friendly_summary",
    "parse_amount",
    "raise_for_issues",
    "validate_currency_code",
    "validate_debt_input",
    "validate_exchange_rate",
    "validate_member_email",
    "validate_payment_input",
    "validate_transaction_input",
]
