"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for the hosted store.
This allows us to:
1. Swap Google Sheets for another hosted backend later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The interface mirrors what the hosted backend's client SDK offers:
list/create/update/delete over a collection, filtered by equality and
ordered by a single field. There are no transactions across records.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Iterable, Optional, TypeVar

from pydantic import BaseModel

from moneymate.models.audit import AuditEvent


ModelT = TypeVar("ModelT", bound=BaseModel)


class OrderBy(BaseModel):
    """Single-field ordering for list queries."""

    field: str
    descending: bool = False


class RecordStoreInterface(ABC, Generic[ModelT]):
    """
    Abstract interface for one collection in the hosted store.

    Every record has an `id` field. Stores are eventually consistent and
    give no atomicity across calls.
    """

    model: type[ModelT]

    @abstractmethod
    async def list(
        self,
        where: Optional[dict[str, Any]] = None,
        order_by: Optional[OrderBy] = None,
        limit: Optional[int] = None,
    ) -> list[ModelT]:
        """
        List records matching every equality predicate in `where`.

        Args:
            where: Field name to required value
            order_by: Ordering; records with a null value sort last
            limit: Maximum number of results

        Raises:
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def create(self, record: ModelT) -> ModelT:
        """
        Create a record.

        Raises:
            DuplicateError: If a record with the same id exists
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def update(self, record_id: Any, changes: dict[str, Any]) -> ModelT:
        """
        Apply a partial update and return the stored record.

        Raises:
            NotFoundError: If the record doesn't exist
            StorageError: If the backend call fails
        """
        pass

    @abstractmethod
    async def delete(self, record_id: Any) -> bool:
        """
        Delete a record by ID.

        Returns:
            True if a record was deleted, False if none matched
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event. Returns True if logged successfully."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
        user_id: Optional[str] = None,
    ) -> list[AuditEvent]:
        """Most recent events first, optionally for one user."""
        pass


def matches(record: BaseModel, where: Optional[dict[str, Any]]) -> bool:
    """Equality match on every predicate. Enum and id values compare by string."""
    if not where:
        return True
    for field, expected in where.items():
        actual = getattr(record, field, None)
        if _normalize(actual) != _normalize(expected):
            return False
    return True


def apply_query(
    records: Iterable[ModelT],
    where: Optional[dict[str, Any]] = None,
    order_by: Optional[OrderBy] = None,
    limit: Optional[int] = None,
) -> list[ModelT]:
    """Filter, order and limit records in Python."""
    results = [record for record in records if matches(record, where)]

    if order_by is not None:
        present = [r for r in results if getattr(r, order_by.field, None) is not None]
        missing = [r for r in results if getattr(r, order_by.field, None) is None]
        present.sort(
            key=lambda r: getattr(r, order_by.field),
            reverse=order_by.descending,
        )
        results = present + missing

    if limit is not None:
        results = results[:limit]
    return results


def _normalize(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if hasattr(value, "value") and isinstance(getattr(value, "value"), str):
        return value.value
    if isinstance(value, (int, float)):
        return value
    return str(value)


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
