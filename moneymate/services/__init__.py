"""Services package."""

from moneymate.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DataGateway,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    NotFoundError,
    OrderBy,
    RecordStoreInterface,
    StorageError,
    create_google_sheets_gateway,
    create_memory_gateway,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DataGateway",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "NotFoundError",
    "OrderBy",
    "RecordStoreInterface",
    "StorageError",
    "create_google_sheets_gateway",
    "create_memory_gateway",
]
