"""
Audit Logger

DESIGN DECISION: Every change to a user's ledger is logged.
This provides:
1. Complete traceability of balances and expenses
2. Debugging capability when a save fails
3. A history the owner can inspect

The audit logger:
- Is async to not block main flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace related events
"""

import logging
from typing import Any, Optional
from uuid import UUID, uuid4

import structlog

from expense_tracker.config import AppSettings, get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventBuilder
from expense_tracker.services.storage import AuditStorageInterface


def log_level_for(app: AppSettings) -> str:
    """DEBUG in debug mode, otherwise the configured level."""
    return "DEBUG" if app.debug_mode else app.log_level


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog for local JSON logging."""
    logging.basicConfig(
        format="%(message)s",
        level=level or log_level_for(get_settings().app),
    )
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


configure_logging()


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage (for persistence and owner visibility)
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
        self._logger = structlog.get_logger("expense_tracker.audit")

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

    async def log_period_opened(
        self,
        user_id: str,
        period_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log creation of an empty period on first access."""
        await self.log(AuditEventBuilder.period_opened(
            user_id=user_id,
            period_id=period_id,
            correlation_id=correlation_id,
        ))

    async def log_period_created(
        self,
        user_id: str,
        period_id: str,
        seeded_expenses: int,
        template_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log an explicit "new period"."""
        await self.log(AuditEventBuilder.period_created(
            user_id=user_id,
            period_id=period_id,
            seeded_expenses=seeded_expenses,
            template_id=template_id,
            correlation_id=correlation_id,
        ))

    async def log_template_created(
        self,
        user_id: str,
        period_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log creation of a January template period."""
        await self.log(AuditEventBuilder.template_created(
            user_id=user_id,
            period_id=period_id,
            correlation_id=correlation_id,
        ))

    async def log_period_deleted(
        self,
        user_id: str,
        period_id: str,
        next_period_id: str,
        correlation_id: UUID,
    ) -> None:
        """Log period deletion."""
        await self.log(AuditEventBuilder.period_deleted(
            user_id=user_id,
            period_id=period_id,
            next_period_id=next_period_id,
            correlation_id=correlation_id,
        ))

    async def log_expense_added(
        self,
        user_id: str,
        period_id: str,
        expense_id: int,
        amount: str,
        category: str,
        correlation_id: UUID,
    ) -> None:
        """Log a new expense."""
        await self.log(AuditEventBuilder.expense_added(
            user_id=user_id,
            period_id=period_id,
            expense_id=expense_id,
            amount=amount,
            category=category,
            correlation_id=correlation_id,
        ))

    async def log_expense_updated(
        self,
        user_id: str,
        period_id: str,
        expense_id: int,
        changes: dict[str, Any],
        correlation_id: UUID,
    ) -> None:
        """Log an expense edit."""
        await self.log(AuditEventBuilder.expense_updated(
            user_id=user_id,
            period_id=period_id,
            expense_id=expense_id,
            changes=changes,
            correlation_id=correlation_id,
        ))

    async def log_expense_deleted(
        self,
        user_id: str,
        period_id: str,
        expense_id: int,
        correlation_id: UUID,
    ) -> None:
        """Log expense removal."""
        await self.log(AuditEventBuilder.expense_deleted(
            user_id=user_id,
            period_id=period_id,
            expense_id=expense_id,
            correlation_id=correlation_id,
        ))

    async def log_balance_updated(
        self,
        user_id: str,
        period_id: str,
        old_balance: str,
        new_balance: str,
        correlation_id: UUID,
    ) -> None:
        """Log a bank balance change."""
        await self.log(AuditEventBuilder.balance_updated(
            user_id=user_id,
            period_id=period_id,
            old_balance=old_balance,
            new_balance=new_balance,
            correlation_id=correlation_id,
        ))

    async def log_validation_failed(
        self,
        user_id: str,
        period_id: str,
        issues: list[dict],
        correlation_id: UUID,
    ) -> None:
        """Log rejected input."""
        await self.log(AuditEventBuilder.validation_failed(
            user_id=user_id,
            period_id=period_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    async def log_record_skipped(
        self,
        user_id: str,
        record_id: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a stored document that could not be used."""
        await self.log(AuditEventBuilder.record_skipped(
            user_id=user_id,
            record_id=record_id,
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        user_id: str,
        period_id: str,
        error_message: str,
        correlation_id: UUID,
    ) -> None:
        """Log a failed period write."""
        await self.log(AuditEventBuilder.save_failed(
            user_id=user_id,
            period_id=period_id,
            error_message=error_message,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_external_service_error(
        self,
        service: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log external service error."""
        await self.log(AuditEventBuilder.external_service_error(
            service=service,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new user action (e.g., "new period").
    Pass it through all subsequent operations.
    """
    return uuid4()
