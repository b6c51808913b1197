"""
Report Models

Read-only shapes produced by the aggregation functions. Amounts are in
the base currency; the currency formatter converts for display.
"""

from datetime import date
from decimal import Decimal

from pydantic import BaseModel, Field

from moneymate.models.ledger import Debt, Transaction


class MonthlySummary(BaseModel):
    """Income and expense totals for one year-month."""

    month: str = Field(..., pattern=r"^\d{4}-\d{2}$", description="YYYY-MM")
    income: Decimal = Decimal("0")
    expense: Decimal = Decimal("0")
    net: Decimal = Decimal("0")


class CategoryBreakdown(BaseModel):
    """Share of one category within all transactions of a kind."""

    category: str
    amount: Decimal
    percentage: float = Field(..., ge=0.0, le=100.0)
    count: int = Field(..., ge=1)


class FinancialSummary(BaseModel):
    """Headline figures for the dashboard and analytics views."""

    total_income: Decimal = Decimal("0")
    total_expenses: Decimal = Decimal("0")
    net: Decimal = Decimal("0")
    month_count: int = Field(default=0, ge=0)
    average_monthly_income: Decimal = Decimal("0")
    average_monthly_expenses: Decimal = Decimal("0")

    # Unpaid debts only
    total_owed: Decimal = Decimal("0")
    total_lent: Decimal = Decimal("0")


class DashboardView(BaseModel):
    """Everything the dashboard page renders."""

    month_income: Decimal = Decimal("0")
    month_expenses: Decimal = Decimal("0")
    total_owed: Decimal = Decimal("0")
    total_lent: Decimal = Decimal("0")
    recent_transactions: list[Transaction] = Field(default_factory=list)
    upcoming_debts: list[Debt] = Field(default_factory=list)

    @property
    def month_net(self) -> Decimal:
        return self.month_income - self.month_expenses


class AnalyticsReport(BaseModel):
    """Aggregates for one analytics time range."""

    time_range: str
    start: date
    end: date
    summary: FinancialSummary
    monthly: list[MonthlySummary] = Field(default_factory=list)
    expense_categories: list[CategoryBreakdown] = Field(default_factory=list)
    income_categories: list[CategoryBreakdown] = Field(default_factory=list)
    transaction_count: int = Field(default=0, ge=0)
