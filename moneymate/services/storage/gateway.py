"""
Data Gateway

Bundles the five collections the ledger reads and writes. Flows receive
a gateway instead of reaching for a global client, so tests swap in the
in-memory stores.
"""

from typing import Optional

from moneymate.models.ledger import (
    Debt,
    DebtPayment,
    FamilyAccessGrant,
    Transaction,
    UserPreferences,
)
from moneymate.services.storage.google_sheets import (
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)
from moneymate.services.storage.interface import RecordStoreInterface
from moneymate.services.storage.memory import InMemoryRecordStore


class DataGateway:
    """The user's record set in the hosted store."""

    def __init__(
        self,
        transactions: RecordStoreInterface[Transaction],
        debts: RecordStoreInterface[Debt],
        debt_payments: RecordStoreInterface[DebtPayment],
        user_preferences: RecordStoreInterface[UserPreferences],
        family_access: RecordStoreInterface[FamilyAccessGrant],
    ):
        self.transactions = transactions
        self.debts = debts
        self.debt_payments = debt_payments
        self.user_preferences = user_preferences
        self.family_access = family_access


def create_google_sheets_gateway(
    client: Optional[GoogleSheetsClient] = None,
) -> DataGateway:
    """Gateway backed by one worksheet per collection."""
    client = client or GoogleSheetsClient()
    names = client.settings
    return DataGateway(
        transactions=GoogleSheetsRecordStore(
            Transaction, names.transactions_sheet_name, client
        ),
        debts=GoogleSheetsRecordStore(Debt, names.debts_sheet_name, client),
        debt_payments=GoogleSheetsRecordStore(
            DebtPayment, names.debt_payments_sheet_name, client
        ),
        user_preferences=GoogleSheetsRecordStore(
            UserPreferences, names.preferences_sheet_name, client
        ),
        family_access=GoogleSheetsRecordStore(
            FamilyAccessGrant, names.family_access_sheet_name, client
        ),
    )


def create_memory_gateway() -> DataGateway:
    """Gateway that keeps everything in process memory."""
    return DataGateway(
        transactions=InMemoryRecordStore(Transaction),
        debts=InMemoryRecordStore(Debt),
        debt_payments=InMemoryRecordStore(DebtPayment),
        user_preferences=InMemoryRecordStore(UserPreferences),
        family_access=InMemoryRecordStore(FamilyAccessGrant),
    )
