"""
Data Models Package

This package contains all Pydantic models used in Money Mate.
All data flowing through the system must conform to these schemas.
"""

from moneymate.models.ledger import (
    TRANSACTION_CATEGORIES,
    AccessLevel,
    Debt,
    DebtDirection,
    DebtPayment,
    FamilyAccessGrant,
    Priority,
    Theme,
    Transaction,
    TransactionType,
    UserPreferences,
    all_categories,
    categories_for,
    utc_now,
)
from moneymate.models.reports import (
    AnalyticsReport,
    CategoryBreakdown,
    DashboardView,
    FinancialSummary,
    MonthlySummary,
)
from moneymate.models.validation import (
    ValidationIssue,
    ValidationResult,
)
from moneymate.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "TRANSACTION_CATEGORIES",
    "AccessLevel",
    "Debt",
    "DebtDirection",
    "DebtPayment",
    "FamilyAccessGrant",
    "Priority",
    "Theme",
    "Transaction",
    "TransactionType",
    "UserPreferences",
    "all_categories",
    "categories_for",
    "utc_now",
    # Report models
    "AnalyticsReport",
    "CategoryBreakdown",
    "DashboardView",
    "FinancialSummary",
    "MonthlySummary",
    # Validation models
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
