"""
Storage Services Package

Provides the abstract store interface and concrete implementations.
Google Sheets is the hosted backend; the in-memory store backs tests and
unconfigured runs.
"""

from moneymate.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    NotFoundError,
    OrderBy,
    RecordStoreInterface,
    StorageError,
)
from moneymate.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)
from moneymate.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryRecordStore,
)
from moneymate.services.storage.gateway import (
    DataGateway,
    create_google_sheets_gateway,
    create_memory_gateway,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "OrderBy",
    "RecordStoreInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    # Gateway
    "DataGateway",
    "create_google_sheets_gateway",
    "create_memory_gateway",
]
