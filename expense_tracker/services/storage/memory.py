"""
In-Memory Storage Implementation

Keeps period documents and audit events in process memory.
Used by the test suite and as the fallback when Google Sheets is not
configured. Nothing survives a restart.

Documents are stored in their persisted dict shape, so every read goes
through the same parsing as a real backend.
"""

from typing import Optional
from uuid import UUID

import structlog

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.ledger import PeriodData, PeriodKey
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    PeriodStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)


class InMemoryPeriodStorage(PeriodStorageInterface):
    """Period documents held in a dict: user_id -> period_id -> document."""

    def __init__(self, documents: Optional[dict[str, dict[str, dict]]] = None):
        self._documents: dict[str, dict[str, dict]] = {
            user_id: dict(periods) for user_id, periods in (documents or {}).items()
        }

    def _parse(self, user_id: str, period_id: str, document: dict) -> Optional[PeriodData]:
        try:
            return PeriodData.from_document(document)
        except ValueError as e:
            logger.warning(
                "period_document_skipped",
                user_id=user_id,
                period_id=period_id,
                error=str(e),
            )
            return None

    async def list_periods(self, user_id: str) -> dict[str, PeriodData]:
        periods = {}
        for period_id, document in self._documents.get(user_id, {}).items():
            data = self._parse(user_id, period_id, document)
            if data is not None:
                periods[period_id] = data
        return periods

    async def get_period(self, user_id: str, key: PeriodKey) -> Optional[PeriodData]:
        document = self._documents.get(user_id, {}).get(str(key))
        if document is None:
            return None
        data = self._parse(user_id, str(key), document)
        if data is None:
            raise StorageError(f"Stored period is malformed: {key}")
        return data

    async def save_period(self, user_id: str, key: PeriodKey, data: PeriodData) -> bool:
        self._documents.setdefault(user_id, {})[str(key)] = data.to_document()
        return True

    async def delete_period(self, user_id: str, key: PeriodKey) -> bool:
        periods = self._documents.get(user_id, {})
        return periods.pop(str(key), None) is not None

    def raw_documents(self, user_id: str) -> dict[str, dict]:
        """Copy of the stored documents of a user, as persisted."""
        return dict(self._documents.get(user_id, {}))


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        # Stable sort keeps append order for identical timestamps
        events = sorted(self._events, key=lambda e: e.timestamp)
        events.reverse()
        return events[:limit]
