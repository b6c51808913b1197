"""
User Preferences

Defaults for the lazily created preferences record and the partial
updates the settings page sends.
"""

from datetime import datetime
from typing import Any, Optional

from moneymate.config import AppSettings
from moneymate.models.ledger import Theme, UserPreferences, utc_now
from moneymate.validation import raise_for_issues, validate_exchange_rate


def default_preferences(
    user_id: str,
    settings: AppSettings,
    now: Optional[datetime] = None,
) -> UserPreferences:
    """Preferences created on first access."""
    now = now or utc_now()
    return UserPreferences(
        user_id=user_id,
        default_currency=settings.base_currency,
        theme=Theme(settings.default_theme),
        exchange_rate=settings.default_exchange_rate,
        created_at=now,
        updated_at=now,
    )


def exchange_rate_changes(rate: Any, now: Optional[datetime] = None) -> dict:
    """
    Partial update for a new exchange rate.

    Raises:
        InputValidationError: if the rate is not a positive number
    """
    result, parsed = validate_exchange_rate(rate)
    raise_for_issues(result)
    return {"exchange_rate": parsed, "updated_at": now or utc_now()}


def toggled_theme(theme: Theme) -> Theme:
    return Theme.LIGHT if Theme(theme) == Theme.DARK else Theme.DARK
