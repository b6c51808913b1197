"""
Data Export

Renders already-fetched records as downloadable CSV or JSON text. The
caller decides where the bytes go (a Streamlit download button).
"""

import csv
import io
import json
from datetime import date, datetime
from typing import Iterable, Optional

from moneymate.auth.session import UserIdentity
from moneymate.models.ledger import (
    Debt,
    DebtPayment,
    Transaction,
    UserPreferences,
    utc_now,
)


def transactions_csv(
    transactions: Iterable[Transaction],
    base_currency: str = "CAD",
    secondary_currency: str = "INR",
) -> str:
    """Transactions as CSV with a header row."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow([
        "Date",
        "Type",
        "Category",
        "Description",
        f"Amount {base_currency}",
        f"Amount {secondary_currency}",
    ])
    for t in transactions:
        writer.writerow([
            t.transaction_date.isoformat(),
            t.kind.value,
            t.category,
            t.description,
            str(t.amount_base),
            str(t.amount_secondary),
        ])
    return buffer.getvalue()


def user_data_json(
    user: UserIdentity,
    preferences: Optional[UserPreferences],
    transactions: Iterable[Transaction],
    debts: Iterable[Debt],
    debt_payments: Iterable[DebtPayment],
    exported_at: Optional[datetime] = None,
) -> str:
    """Everything the user owns as one indented JSON document."""
    document = {
        "user": user.model_dump(mode="json"),
        "preferences": preferences.model_dump(mode="json") if preferences else None,
        "transactions": [t.model_dump(mode="json") for t in transactions],
        "debts": [d.model_dump(mode="json") for d in debts],
        "debt_payments": [p.model_dump(mode="json") for p in debt_payments],
        "exported_at": (exported_at or utc_now()).isoformat(),
    }
    return json.dumps(document, indent=2, ensure_ascii=False)


def export_filename(kind: str, today: Optional[date] = None) -> str:
    """Download name, e.g. 'transactions-2024-01-31.csv'."""
    stamp = (today or date.today()).isoformat()
    if kind == "csv":
        return f"transactions-{stamp}.csv"
    if kind == "json":
        return f"money-mate-data-{stamp}.json"
    raise ValueError(f"Unknown export format: {kind}")
