"""
Ledger Data Models for Money Mate

These models define the strict schemas for every record kept in the
hosted store. They are designed to:
1. Enforce type safety at runtime
2. Provide clear validation error messages
3. Be serializable for storage and export

Amounts are authoritative in the base currency. The secondary amount is
derived with the exchange rate captured when the record was written and
is never re-derived later.

DESIGN DECISION: Flags the hosted store keeps as "0"/"1" strings
(is_paid, is_active) are native booleans here. The string encoding is a
storage concern handled by the store codec.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    model_validator,
)


def utc_now() -> datetime:
    """Timezone-aware current UTC time used for record timestamps."""
    return datetime.now(timezone.utc)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionType(str, Enum):
    """Whether money came in or went out."""
    INCOME = "income"
    EXPENSE = "expense"


class DebtDirection(str, Enum):
    """
    Which side of the debt the user is on.

    OWE: the user is the debtor. LENT: the user is the creditor.
    """
    OWE = "owe"
    LENT = "lent"


class Priority(str, Enum):
    """Urgency band of a debt, derived from its due date."""
    OVERDUE = "overdue"
    URGENT = "urgent"
    MEDIUM = "medium"
    LOW = "low"


class Theme(str, Enum):
    LIGHT = "light"
    DARK = "dark"


class AccessLevel(str, Enum):
    """Family sharing is read-only."""
    VIEW = "view"


TRANSACTION_CATEGORIES: dict[TransactionType, tuple[str, ...]] = {
    TransactionType.INCOME: (
        "Salary",
        "Freelance",
        "Investment",
        "Gift",
        "Other Income",
    ),
    TransactionType.EXPENSE: (
        "Food & Dining",
        "Transportation",
        "Shopping",
        "Entertainment",
        "Bills & Utilities",
        "Healthcare",
        "Education",
        "Travel",
        "Groceries",
        "Other Expense",
    ),
}


def categories_for(kind: TransactionType) -> tuple[str, ...]:
    """Categories a transaction of the given kind may use."""
    return TRANSACTION_CATEGORIES[TransactionType(kind)]


def all_categories() -> list[str]:
    """Every known category, sorted, for filter drop-downs."""
    names = set()
    for group in TRANSACTION_CATEGORIES.values():
        names.update(group)
    return sorted(names)


# =============================================================================
# RECORDS
# =============================================================================

class Transaction(BaseModel):
    """
    A single income or expense entry.

    INVARIANT: amount_secondary == amount_base * exchange_rate at the
    time the record was written.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1, description="Owner reference")

    kind: TransactionType
    category: str = Field(..., min_length=1, max_length=100)

    amount_base: Decimal = Field(..., gt=0, description="Amount in the base currency")
    amount_secondary: Decimal = Field(..., ge=0, description="Derived display amount")
    exchange_rate: Decimal = Field(..., gt=0)

    description: str = Field(..., min_length=1, max_length=500)
    transaction_date: date = Field(..., description="Calendar date of the transaction")

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_category(self) -> 'Transaction':
        """Category must belong to the fixed set for the kind."""
        if self.category not in categories_for(self.kind):
            raise ValueError(
                f"Category '{self.category}' is not valid for {self.kind.value}"
            )
        return self

    @property
    def month_key(self) -> str:
        """Year-month grouping key, e.g. '2024-01'."""
        return self.transaction_date.isoformat()[:7]


class Debt(BaseModel):
    """
    Money owed by or lent to a counterparty.

    INVARIANTS:
    - 0 <= remaining_amount_base <= total_amount_base
    - is_paid is True exactly when remaining_amount_base <= 0

    priority_score is carried for schema compatibility and always 0.
    Urgency comes from the due date (see ledger.debts.classify).
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)

    direction: DebtDirection
    person_name: str = Field(..., min_length=1, max_length=200)

    total_amount_base: Decimal = Field(..., gt=0)
    total_amount_secondary: Decimal = Field(..., ge=0)
    remaining_amount_base: Decimal = Field(..., ge=0)
    remaining_amount_secondary: Decimal = Field(..., ge=0)
    exchange_rate: Decimal = Field(..., gt=0)

    purpose: str = Field(..., min_length=1, max_length=500)
    due_date: Optional[date] = None

    is_paid: bool = False
    priority_score: int = 0

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @model_validator(mode='after')
    def validate_balance(self) -> 'Debt':
        """Remaining balance stays within bounds and agrees with is_paid."""
        if self.remaining_amount_base > self.total_amount_base:
            raise ValueError("Remaining amount cannot exceed total amount")
        if self.is_paid != (self.remaining_amount_base <= 0):
            raise ValueError("Paid flag must be set exactly when nothing remains")
        return self

    @property
    def is_active(self) -> bool:
        return not self.is_paid

    @property
    def amount_paid_base(self) -> Decimal:
        return self.total_amount_base - self.remaining_amount_base

    @property
    def progress_percent(self) -> float:
        """Share of the total already repaid (0-100)."""
        return float(self.amount_paid_base / self.total_amount_base * 100)


class DebtPayment(BaseModel):
    """
    A payment applied against a debt.

    Payments are append-only: never updated after creation.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    id: UUID = Field(default_factory=uuid4)
    debt_id: UUID
    user_id: str = Field(..., min_length=1)

    amount_base: Decimal = Field(..., gt=0)
    amount_secondary: Decimal = Field(..., ge=0)
    exchange_rate: Decimal = Field(..., gt=0)

    payment_date: date
    notes: Optional[str] = Field(default=None, max_length=1000)

    created_at: datetime = Field(default_factory=utc_now)


class UserPreferences(BaseModel):
    """
    Per-user display preferences.

    Exactly one record per user, created lazily with defaults on first
    access.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    user_id: str = Field(..., min_length=1)

    default_currency: str = Field(default="CAD", pattern="^[A-Z]{3}$")
    theme: Theme = Theme.LIGHT
    exchange_rate: Decimal = Field(
        default=Decimal("61.5"),
        gt=0,
        description="Single global base-to-secondary rate"
    )

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)


class FamilyAccessGrant(BaseModel):
    """
    View access granted by an owner to a family member's email.

    The member's own account is never linked or verified here. The hosted
    store's query filters are what enforce sharing.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    owner_user_id: str = Field(..., min_length=1)
    member_email: str = Field(..., min_length=3, max_length=320)
    access_level: AccessLevel = AccessLevel.VIEW
    is_active: bool = True

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
