"""
In-Memory Storage Implementation

Same semantics as the hosted store, kept in a dict. Used by the test
suite and when no spreadsheet is configured, so the app stays usable
for a single session without credentials.
"""

from typing import Any, Optional

from moneymate.models.audit import AuditEvent
from moneymate.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    ModelT,
    NotFoundError,
    OrderBy,
    RecordStoreInterface,
    apply_query,
)


class InMemoryRecordStore(RecordStoreInterface[ModelT]):
    """Dict-backed record store keyed by the string form of `id`."""

    def __init__(self, model: type[ModelT]):
        self.model = model
        self._records: dict[str, ModelT] = {}

    def __len__(self) -> int:
        return len(self._records)

    async def create(self, record: ModelT) -> ModelT:
        key = str(record.id)
        if key in self._records:
            raise DuplicateError(f"{self.model.__name__} already exists: {key}")
        self._records[key] = record
        return record

    async def update(self, record_id: Any, changes: dict[str, Any]) -> ModelT:
        key = str(record_id)
        existing = self._records.get(key)
        if existing is None:
            raise NotFoundError(f"{self.model.__name__} not found: {key}")
        updated = self.model.model_validate({**existing.model_dump(), **changes})
        self._records[key] = updated
        return updated

    async def delete(self, record_id: Any) -> bool:
        return self._records.pop(str(record_id), None) is not None

    async def list(
        self,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        return apply_query(self._records.values(), where, order_by, limit)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self.events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True

    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        events = [e for e in self.events if user_id is None or e.user_id == user_id]
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
