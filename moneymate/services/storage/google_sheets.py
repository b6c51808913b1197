"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is the hosted backend because:
1. Users can view their ledger directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Sharing a spreadsheet is how family members get read access

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions across rows (a payment and its debt update are two calls)
- Limited query capabilities (we filter in Python)

Each collection is one worksheet. The header row holds the model's field
names and every record is one row. Booleans are written as "1"/"0".
"""

import json
from datetime import datetime
from typing import Any, Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from moneymate.config import GoogleSheetsSettings, get_settings
from moneymate.models.audit import AuditEvent, AuditEventType, AuditSeverity
from moneymate.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    ModelT,
    NotFoundError,
    OrderBy,
    RecordStoreInterface,
    StorageError,
    apply_query,
)


# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "entity_type",
    "entity_id",
    "user_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and worksheet lookup. Only establishing the
    connection is retried; record operations are reported once.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                )
        return self._spreadsheet

    def get_worksheet(self, title: str, columns: list[str]) -> gspread.Worksheet:
        """Get or create a worksheet with the given header row."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=1000,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet


def _encode_cell(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "1" if value else "0"
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


class GoogleSheetsRecordStore(RecordStoreInterface[ModelT]):
    """
    Google Sheets implementation of one collection.

    The worksheet's first column is the record id.
    """

    def __init__(
        self,
        model: type[ModelT],
        sheet_name: str,
        client: Optional[GoogleSheetsClient] = None,
    ):
        self.model = model
        self._sheet_name = sheet_name
        self._columns = list(model.model_fields)
        self._client = client or GoogleSheetsClient()

    @property
    def columns(self) -> list:
        return self._columns

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(self._sheet_name, self._columns)

    def _record_to_row(self, record: ModelT) -> list:
        """Convert a record to a spreadsheet row."""
        data = record.model_dump(mode="json")
        return [_encode_cell(data.get(column)) for column in self._columns]

    def _row_to_record(self, row: list) -> ModelT:
        """Convert a spreadsheet row to a record. Empty cells take defaults."""
        data = {
            column: value
            for column, value in zip(self._columns, row)
            if value != ""
        }
        return self.model.model_validate(data)

    def _find_row(self, all_rows: list, record_id: Any) -> tuple:
        """Return (sheet row number, row) for an id, or (None, None)."""
        key = str(record_id)
        # Row 1 is the header
        for idx, row in enumerate(all_rows[1:], start=2):
            if row and row[0] == key:
                return idx, row
        return None, None

    async def create(self, record: ModelT) -> ModelT:
        """Append a record row."""
        try:
            sheet = self._sheet()
            idx, _ = self._find_row(sheet.get_all_values(), record.id)
            if idx is not None:
                raise DuplicateError(f"{self.model.__name__} already exists: {record.id}")
            sheet.append_row(self._record_to_row(record), value_input_option="RAW")
            return record
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create {self.model.__name__}: {e}")

    async def update(self, record_id: Any, changes: dict[str, Any]) -> ModelT:
        """Rewrite the record's row with the merged fields."""
        try:
            sheet = self._sheet()
            idx, row = self._find_row(sheet.get_all_values(), record_id)
            if idx is None:
                raise NotFoundError(f"{self.model.__name__} not found: {record_id}")

            existing = self._row_to_record(row)
            updated = self.model.model_validate({**existing.model_dump(), **changes})
            sheet.update(range_name=f"A{idx}", values=[self._record_to_row(updated)])
            return updated
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update {self.model.__name__}: {e}")

    async def delete(self, record_id: Any) -> bool:
        """Delete a record's row."""
        try:
            sheet = self._sheet()
            idx, _ = self._find_row(sheet.get_all_values(), record_id)
            if idx is None:
                return False
            sheet.delete_rows(idx)
            return True
        except Exception as e:
            raise StorageError(f"Failed to delete {self.model.__name__}: {e}")

    async def list(
        self,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        """List records with equality filters, applied in Python."""
        try:
            sheet = self._sheet()
            all_rows = sheet.get_all_values()[1:]  # Skip header

            records = []
            for row in all_rows:
                if not row or not row[0]:  # Skip empty rows
                    continue
                try:
                    records.append(self._row_to_record(row))
                except Exception:
                    continue  # Skip malformed rows

            return apply_query(records, where, order_by, limit)
        except Exception as e:
            raise StorageError(f"Failed to list {self.model.__name__}: {e}")


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _sheet(self) -> gspread.Worksheet:
        return self._client.get_worksheet(
            self._client.settings.audit_sheet_name, AUDIT_COLUMNS
        )

    def _event_to_row(self, event: AuditEvent) -> list:
        """Convert an AuditEvent to a spreadsheet row."""
        return [
            str(event.event_id),
            event.timestamp.isoformat(),
            event.event_type.value,
            event.severity.value,
            event.entity_type or "",
            str(event.entity_id) if event.entity_id else "",
            event.user_id or "",
            str(event.correlation_id) if event.correlation_id else "",
            event.description,
            json.dumps(event.details) if event.details else "",
            event.error_message or "",
            str(event.is_user_action),
        ]

    def _row_to_event(self, row: list) -> AuditEvent:
        """Convert a spreadsheet row to an AuditEvent."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            entity_type=safe_get(4) or None,
            entity_id=UUID(safe_get(5)) if safe_get(5) else None,
            user_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        sheet = self._sheet()
        sheet.append_row(self._event_to_row(event), value_input_option="RAW")
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Get recent events, newest first."""
        try:
            all_rows = self._sheet().get_all_values()[1:]

            events = []
            for row in all_rows:
                if not row or not row[0]:
                    continue
                try:
                    event = self._row_to_event(row)
                except Exception:
                    continue
                if user_id is None or event.user_id == user_id:
                    events.append(event)

            events.sort(key=lambda e: e.timestamp, reverse=True)
            return events[:limit]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")
