"""
Audit Models for Money Mate

Every mutation issued against the hosted store is logged for audit
purposes. This provides:
1. Traceability of what the user changed and when
2. Debugging information when a remote call fails
3. A record of partial multi-step writes that need manual repair

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from moneymate.models.ledger import utc_now


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Transactions
    TRANSACTION_CREATED = "transaction_created"
    TRANSACTION_UPDATED = "transaction_updated"
    TRANSACTION_DELETED = "transaction_deleted"

    # Debts
    DEBT_CREATED = "debt_created"
    DEBT_DELETED = "debt_deleted"
    PAYMENT_RECORDED = "payment_recorded"
    DEBT_BALANCE_UPDATED = "debt_balance_updated"
    PARTIAL_WRITE_DETECTED = "partial_write_detected"

    # Preferences
    PREFERENCES_CREATED = "preferences_created"
    PREFERENCES_UPDATED = "preferences_updated"

    # Family sharing
    FAMILY_MEMBER_ADDED = "family_member_added"
    FAMILY_ACCESS_TOGGLED = "family_access_toggled"
    FAMILY_MEMBER_REMOVED = "family_member_removed"

    # Bulk operations
    DATA_EXPORTED = "data_exported"
    DATA_CLEARED = "data_cleared"

    # Failures
    VALIDATION_FAILED = "validation_failed"
    STORAGE_ERROR = "storage_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=utc_now,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType
    severity: AuditSeverity = AuditSeverity.INFO

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'debt', 'transaction')"
    )
    entity_id: Optional[UUID] = None
    user_id: Optional[str] = None

    # Correlation - ties together the remote calls of one user action
    correlation_id: Optional[UUID] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)

    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user action?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "user_id": self.user_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.record_changed(
            AuditEventType.DEBT_CREATED, "debt", debt.id, user_id, correlation_id
        )
    """

    @staticmethod
    def record_changed(
        event_type: AuditEventType,
        entity_type: str,
        entity_id: UUID,
        user_id: str,
        correlation_id: Optional[UUID] = None,
        details: Optional[dict] = None,
    ) -> AuditEvent:
        action = event_type.value.rsplit("_", 1)[-1]
        return AuditEvent(
            event_type=event_type,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{entity_type.replace('_', ' ').capitalize()} {action}",
            details=details or {},
            is_user_action=True,
        )

    @staticmethod
    def payment_recorded(
        payment_id: UUID,
        debt_id: UUID,
        amount: Decimal,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PAYMENT_RECORDED,
            entity_type="debt_payment",
            entity_id=payment_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Payment of {amount} recorded",
            details={
                "debt_id": str(debt_id),
                "amount_base": str(amount),
            },
            is_user_action=True,
        )

    @staticmethod
    def debt_balance_updated(
        debt_id: UUID,
        remaining: Decimal,
        is_paid: bool,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DEBT_BALANCE_UPDATED,
            entity_type="debt",
            entity_id=debt_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Debt paid off" if is_paid else f"Debt balance now {remaining}",
            details={
                "remaining_amount_base": str(remaining),
                "is_paid": is_paid,
            },
        )

    @staticmethod
    def partial_write_detected(
        payment_id: UUID,
        debt_id: UUID,
        error_message: str,
        user_id: str,
        correlation_id: UUID,
    ) -> AuditEvent:
        """Payment row exists but the debt balance was not updated."""
        return AuditEvent(
            event_type=AuditEventType.PARTIAL_WRITE_DETECTED,
            severity=AuditSeverity.CRITICAL,
            entity_type="debt",
            entity_id=debt_id,
            user_id=user_id,
            correlation_id=correlation_id,
            description="Payment recorded but debt balance update failed",
            details={
                "payment_id": str(payment_id),
                "debt_id": str(debt_id),
            },
            error_message=error_message,
        )

    @staticmethod
    def validation_failed(
        operation: str,
        issues: list[dict],
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{operation} rejected with {len(issues)} issues",
            details={
                "operation": operation,
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def storage_error(
        operation: str,
        error_message: str,
        user_id: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.STORAGE_ERROR,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"Storage error during {operation}",
            error_message=error_message,
            details={
                "operation": operation,
            },
        )

    @staticmethod
    def bulk_operation(
        event_type: AuditEventType,
        user_id: str,
        counts: dict[str, int],
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        total = sum(counts.values())
        return AuditEvent(
            event_type=event_type,
            severity=(
                AuditSeverity.WARNING
                if event_type == AuditEventType.DATA_CLEARED
                else AuditSeverity.INFO
            ),
            user_id=user_id,
            correlation_id=correlation_id,
            description=f"{event_type.value.replace('_', ' ').capitalize()}: {total} records",
            details=dict(counts),
            is_user_action=True,
        )
