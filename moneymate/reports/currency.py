"""
Currency Display

Formats base-currency amounts for display in the base or the secondary
currency using one scalar rate. Formatting only: stored amounts are never
touched, no live rates are fetched, and there is no historical lookup.

DESIGN DECISION: The rate and currency codes are passed in as a
DisplayConfig built from the user's preferences, not read from global
UI state.
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from pydantic import BaseModel, Field

from moneymate.config import AppSettings
from moneymate.models.ledger import UserPreferences


CURRENCY_SYMBOLS = {
    "CAD": "CA$",
    "USD": "$",
    "INR": "₹",
    "EUR": "€",
    "GBP": "£",
}

BASE_DECIMALS = 2
SECONDARY_DECIMALS = 0


class DisplayConfig(BaseModel):
    """Everything needed to render an amount."""

    base_currency: str = "CAD"
    secondary_currency: str = "INR"
    exchange_rate: Decimal = Field(default=Decimal("61.5"), gt=0)
    default_currency: Optional[str] = None

    @classmethod
    def from_preferences(
        cls,
        preferences: UserPreferences,
        settings: AppSettings,
    ) -> "DisplayConfig":
        return cls(
            base_currency=settings.base_currency,
            secondary_currency=settings.secondary_currency,
            exchange_rate=preferences.exchange_rate,
            default_currency=preferences.default_currency,
        )

    @property
    def preferred_currency(self) -> str:
        return self.default_currency or self.base_currency


def currency_symbol(code: str) -> str:
    return CURRENCY_SYMBOLS.get(code.upper(), f"{code.upper()} ")


def _quantize(amount: Decimal, places: int) -> Decimal:
    return amount.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)


def convert(amount: Decimal, config: DisplayConfig) -> Decimal:
    """Base amount expressed in the secondary currency (unrounded)."""
    return Decimal(amount) * config.exchange_rate


def format_amount(
    amount: Decimal,
    config: DisplayConfig,
    currency: Optional[str] = None,
) -> str:
    """
    Render a base-currency amount.

    Base currency shows two decimals ("CA$12.50"); the secondary currency
    is converted with the configured rate and shows none ("₹769").
    """
    currency = (currency or config.base_currency).upper()
    amount = Decimal(amount)

    if currency == config.base_currency.upper():
        value = _quantize(amount, BASE_DECIMALS)
    elif currency == config.secondary_currency.upper():
        value = _quantize(convert(amount, config), SECONDARY_DECIMALS)
    else:
        raise ValueError(f"Unsupported display currency: {currency}")

    sign = "-" if value < 0 else ""
    return f"{sign}{currency_symbol(currency)}{abs(value)}"


def format_both(amount: Decimal, config: DisplayConfig) -> str:
    """Base and secondary side by side, e.g. "CA$10.00 (₹615)"."""
    return (
        f"{format_amount(amount, config)} "
        f"({format_amount(amount, config, config.secondary_currency)})"
    )
