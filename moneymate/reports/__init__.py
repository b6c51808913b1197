"""Reporting package: aggregation, currency display and export."""

from moneymate.reports.aggregation import (
    TimeRange,
    category_breakdown,
    current_month,
    financial_summary,
    monthly_summary,
    outstanding,
    range_bounds,
    within_range,
)
from moneymate.reports.currency import (
    DisplayConfig,
    convert,
    currency_symbol,
    format_amount,
    format_both,
)
from moneymate.reports.export import (
    export_filename,
    transactions_csv,
    user_data_json,
)

__all__ = [
    "DisplayConfig",
    "TimeRange",
    "category_breakdown",
    "convert",
    "currency_symbol",
    "current_month",
    "export_filename",
    "financial_summary",
    "format_amount",
    "format_both",
    "monthly_summary",
    "outstanding",
    "range_bounds",
    "transactions_csv",
    "user_data_json",
    "within_range",
]
