"""
Audit Logger

DESIGN DECISION: Every mutation sent to the hosted store is logged.
This provides:
1. Traceability of user changes
2. Debugging capability when a remote call fails
3. A durable record of payments whose debt update never landed

The audit logger:
- Is async so it fits into the flows' await chain
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace the calls of one user action
"""

import logging
import sys
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

import structlog

from moneymate.models.audit import AuditEvent, AuditEventBuilder, AuditEventType
from moneymate.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route stdlib logging (and so structlog) to stdout at the given level."""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. The audit store (for persistence), when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("moneymate.audit")

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_record_changed(
        self,
        event_type: AuditEventType,
        entity_type: str,
        entity_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> None:
        """Log a create/update/delete of a single record."""
        event = AuditEventBuilder.record_changed(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            details=details,
        )
        await self.log(event)

    async def log_payment_recorded(
        self,
        payment_id: UUID,
        debt_id: UUID,
        amount: Decimal,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.payment_recorded(
            payment_id=payment_id,
            debt_id=debt_id,
            amount=amount,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_debt_balance_updated(
        self,
        debt_id: UUID,
        remaining: Decimal,
        is_paid: bool,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        event = AuditEventBuilder.debt_balance_updated(
            debt_id=debt_id,
            remaining=remaining,
            is_paid=is_paid,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_partial_write(
        self,
        payment_id: UUID,
        debt_id: UUID,
        error_message: str,
        user_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log a payment whose debt balance update failed."""
        event = AuditEventBuilder.partial_write_detected(
            payment_id=payment_id,
            debt_id=debt_id,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_validation_failed(
        self,
        operation: str,
        issues: list[dict],
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.validation_failed(
            operation=operation,
            issues=issues,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_storage_error(
        self,
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.storage_error(
            operation=operation,
            error_message=error_message,
            user_id=user_id,
            correlation_id=correlation_id,
        )
        await self.log(event)

    async def log_bulk_operation(
        self,
        event_type: AuditEventType,
        user_id: str,
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        event = AuditEventBuilder.bulk_operation(
            event_type=event_type,
            user_id=user_id,
            counts=counts,
            correlation_id=correlation_id,
        )
        await self.log(event)


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., recording a payment).
    Pass it through all subsequent operations.
    """
    return uuid4()
