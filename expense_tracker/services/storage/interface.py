"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a hosted document database later
2. Use in-memory storage for testing
3. Add caching layers transparently
4. Keep ledger logic decoupled from storage implementation

A user's data is a collection of period documents keyed by the
serialized period key ("2024-5-1"). The user id is an opaque partition
key; storage never interprets it.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from expense_tracker.models.audit import AuditEvent
from expense_tracker.models.ledger import PeriodData, PeriodKey


class PeriodStorageInterface(ABC):
    """
    Abstract interface for period document storage.

    Any storage implementation (Google Sheets, a document store, etc.)
    must implement these methods.
    """

    @abstractmethod
    async def list_periods(self, user_id: str) -> dict[str, PeriodData]:
        """
        Read every period document of a user.

        Args:
            user_id: Opaque owner identity

        Returns:
            Mapping of raw document id to period contents. Document ids
            are returned as stored; callers validate them as period keys.

        Raises:
            StorageError: If the read fails
        """
        pass

    @abstractmethod
    async def get_period(self, user_id: str, key: PeriodKey) -> Optional[PeriodData]:
        """
        Read one period document.

        Returns:
            The period contents, or None if the document does not exist
        """
        pass

    @abstractmethod
    async def save_period(self, user_id: str, key: PeriodKey, data: PeriodData) -> bool:
        """
        Create or replace one period document.

        Returns:
            True if saved successfully

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def delete_period(self, user_id: str, key: PeriodKey) -> bool:
        """
        Delete one period document.

        Returns:
            True if a document was deleted, False if it did not exist
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a correlation ID (e.g., one "new period" action).

        Returns:
            List of related events in chronological order
        """
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
