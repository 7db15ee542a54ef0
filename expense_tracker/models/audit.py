"""
Audit Models for Expense Tracker

Every change to a user's ledger is logged for audit purposes.
This provides:
1. Complete traceability of balance and expense edits
2. Debugging information when a save fails
3. Ability to reconstruct the history of a period

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """
    Types of events we audit.
    """
    # Periods
    PERIOD_OPENED = "period_opened"
    PERIOD_CREATED = "period_created"
    TEMPLATE_CREATED = "template_created"
    PERIOD_DELETED = "period_deleted"

    # Expenses
    EXPENSE_ADDED = "expense_added"
    EXPENSE_UPDATED = "expense_updated"
    EXPENSE_DELETED = "expense_deleted"
    BALANCE_UPDATED = "balance_updated"

    # Validation
    VALIDATION_FAILED = "validation_failed"
    RECORD_SKIPPED = "record_skipped"

    # Persistence
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"
    EXTERNAL_SERVICE_ERROR = "external_service_error"


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
    Every ledger change creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - who and what is this about?
    user_id: Optional[str] = Field(
        default=None,
        description="Opaque identity of the ledger owner"
    )
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'period', 'expense')"
    )
    entity_id: Optional[str] = Field(
        default=None,
        description="Period key or expense id this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one 'new period' action)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

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
            "user_id": self.user_id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_sheets_row(self) -> list:
        """
        Convert to a row suitable for Google Sheets storage.

        Returns columns in order:
        [event_id, timestamp, event_type, severity, user_id, entity_type,
         entity_id, correlation_id, description, details_json, error_message,
         is_user_action]
        """
        return [
            str(self.event_id),
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.user_id or "",
            self.entity_type or "",
            self.entity_id or "",
            str(self.correlation_id) if self.correlation_id else "",
            self.description,
            json.dumps(self.details) if self.details else "",
            self.error_message or "",
            str(self.is_user_action),
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.period_created(user_id, "2024-5-2", 3, correlation_id)
        event = AuditEventBuilder.expense_deleted(user_id, "2024-5-2", 1714, correlation_id)
    """

    @staticmethod
    def period_opened(
        user_id: str,
        period_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_OPENED,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"Empty period created on first access: {period_id}",
        )

    @staticmethod
    def period_created(
        user_id: str,
        period_id: str,
        seeded_expenses: int,
        template_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_CREATED,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"New period {period_id} created with {seeded_expenses} template expenses",
            details={
                "template_id": template_id,
                "seeded_expenses": seeded_expenses,
            },
            is_user_action=True,
        )

    @staticmethod
    def template_created(
        user_id: str,
        period_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEMPLATE_CREATED,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"January template period created: {period_id}",
        )

    @staticmethod
    def period_deleted(
        user_id: str,
        period_id: str,
        next_period_id: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PERIOD_DELETED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"Period deleted: {period_id}",
            details={
                "next_period_id": next_period_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_added(
        user_id: str,
        period_id: str,
        expense_id: int,
        amount: str,
        category: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_ADDED,
            user_id=user_id,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense added to {period_id}: {category} ${amount}",
            details={
                "period_id": period_id,
                "amount": amount,
                "category": category,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_updated(
        user_id: str,
        period_id: str,
        expense_id: int,
        changes: dict[str, Any],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_UPDATED,
            user_id=user_id,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense updated in {period_id}",
            details={
                "period_id": period_id,
                "changes": changes,
            },
            is_user_action=True,
        )

    @staticmethod
    def expense_deleted(
        user_id: str,
        period_id: str,
        expense_id: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXPENSE_DELETED,
            user_id=user_id,
            entity_type="expense",
            entity_id=str(expense_id),
            correlation_id=correlation_id,
            description=f"Expense deleted from {period_id}",
            details={
                "period_id": period_id,
            },
            is_user_action=True,
        )

    @staticmethod
    def balance_updated(
        user_id: str,
        period_id: str,
        old_balance: str,
        new_balance: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BALANCE_UPDATED,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"Bank balance of {period_id} set to ${new_balance}",
            details={
                "old_balance": old_balance,
                "new_balance": new_balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def validation_failed(
        user_id: str,
        period_id: str,
        issues: list[dict],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"Input rejected with {len(issues)} issues",
            details={
                "issues": issues,
            },
            is_user_action=True,
        )

    @staticmethod
    def record_skipped(
        user_id: str,
        record_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.RECORD_SKIPPED,
            severity=AuditSeverity.WARNING,
            user_id=user_id,
            entity_type="period",
            entity_id=record_id,
            correlation_id=correlation_id,
            description=f"Stored record skipped: {record_id}",
            details={
                "reason": reason,
            },
        )

    @staticmethod
    def save_failed(
        user_id: str,
        period_id: str,
        error_message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            user_id=user_id,
            entity_type="period",
            entity_id=period_id,
            correlation_id=correlation_id,
            description=f"Failed to persist period {period_id}",
            error_message=error_message,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )

    @staticmethod
    def external_service_error(
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.EXTERNAL_SERVICE_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"External service error: {service}",
            error_message=error_message,
            details={
                "service": service,
            },
            correlation_id=correlation_id,
        )
