"""Services package."""

from expense_tracker.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPeriodStorage,
    InMemoryAuditStorage,
    InMemoryPeriodStorage,
    PeriodStorageInterface,
    StorageError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "ConnectionError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsPeriodStorage",
    "InMemoryAuditStorage",
    "InMemoryPeriodStorage",
    "PeriodStorageInterface",
    "StorageError",
]
