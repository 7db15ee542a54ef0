"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is used as the hosted document store because:
1. The owner can view their periods directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

Each period document is one row. The expense list is stored as JSON in
the persisted document shape, so a row maps 1:1 to a period document.

TRADEOFFS:
- Not suitable for high-volume data (we're fine for personal use)
- No transactions (the tracker writes one period at a time)
- Limited query capabilities (we filter in Python)
"""

import json
from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from expense_tracker.config import get_settings
from expense_tracker.models.audit import AuditEvent, AuditEventType, AuditSeverity
from expense_tracker.models.ledger import PeriodData, PeriodKey
from expense_tracker.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    PeriodStorageInterface,
    StorageError,
)

logger = structlog.get_logger(__name__)

# Errors worth another attempt: API quota/5xx responses and network failures.
# Malformed rows are permanent and never retried.
TRANSIENT_ERRORS = (gspread.exceptions.APIError, OSError)

retry_transient = retry(
    retry=retry_if_exception_type(TRANSIENT_ERRORS),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)


# Column mappings for Periods sheet
PERIOD_COLUMNS = [
    "user_id",
    "period_id",
    "bank_balance",
    "expenses_json",
    "updated_at",
]

# Column mappings for Audit sheet
AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "user_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_message",
    "is_user_action",
]


def _column_letter(count: int) -> str:
    """Spreadsheet column letter for a 1-based column count (up to 26)."""
    return chr(ord("A") + count - 1)


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

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

    def _get_or_create_sheet(self, title: str, columns: list[str], rows: int) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_periods_sheet(self) -> gspread.Worksheet:
        """Get or create the Periods worksheet."""
        return self._get_or_create_sheet(
            self._settings.periods_sheet_name, PERIOD_COLUMNS, rows=1000
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        """Get or create the Audit worksheet."""
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )


class GoogleSheetsPeriodStorage(PeriodStorageInterface):
    """
    Google Sheets implementation of period storage.

    Periods are stored as rows keyed by (user_id, period_id).
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _period_to_row(self, user_id: str, key: PeriodKey, data: PeriodData) -> list:
        """Convert a period document to a spreadsheet row."""
        document = data.to_document()
        return [
            user_id,
            str(key),
            str(document["bankBalance"]),
            json.dumps(document["expenses"]),
            datetime.now(timezone.utc).isoformat(),
        ]

    def _row_to_period(self, row: list) -> PeriodData:
        """Convert a spreadsheet row to period contents."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return row[index] if row[index] else default
            except IndexError:
                return default

        return PeriodData.from_document({
            "bankBalance": safe_get(2, "0"),
            "expenses": json.loads(safe_get(3, "[]")),
        })

    def _find_row(self, rows: list[list], user_id: str, period_id: str) -> Optional[int]:
        """1-based sheet row number of a period, header being row 1."""
        for idx, row in enumerate(rows[1:], start=2):
            if len(row) > 1 and row[0] == user_id and row[1] == period_id:
                return idx
        return None

    @retry_transient
    def _fetch_rows(self) -> tuple[gspread.Worksheet, list[list]]:
        """Periods sheet and all of its rows, header included."""
        sheet = self._client.get_periods_sheet()
        return sheet, sheet.get_all_values()

    @retry_transient
    def _write_row(self, sheet: gspread.Worksheet, idx: Optional[int], row: list) -> None:
        if idx is None:
            sheet.append_row(row, value_input_option="RAW")
            return
        last_column = _column_letter(len(PERIOD_COLUMNS))
        sheet.update(
            range_name=f"A{idx}:{last_column}{idx}",
            values=[row],
            value_input_option="RAW",
        )

    @retry_transient
    def _delete_row(self, sheet: gspread.Worksheet, idx: int) -> None:
        sheet.delete_rows(idx)

    def _read(self, action: str) -> tuple[gspread.Worksheet, list[list]]:
        try:
            return self._fetch_rows()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to {action}: {e}")

    async def list_periods(self, user_id: str) -> dict[str, PeriodData]:
        """Read every period row of a user."""
        _, all_rows = self._read("list periods")

        periods = {}
        for row in all_rows[1:]:  # Skip header
            if len(row) < 2 or row[0] != user_id or not row[1]:
                continue
            try:
                periods[row[1]] = self._row_to_period(row)
            except ValueError as e:
                # Malformed rows are skipped, never fatal
                logger.warning(
                    "period_row_skipped",
                    user_id=user_id,
                    period_id=row[1],
                    error=str(e),
                )
        return periods

    async def get_period(self, user_id: str, key: PeriodKey) -> Optional[PeriodData]:
        """Read one period row."""
        _, all_rows = self._read(f"get period {key}")

        idx = self._find_row(all_rows, user_id, str(key))
        if idx is None:
            return None
        try:
            return self._row_to_period(all_rows[idx - 1])
        except ValueError as e:
            raise StorageError(f"Stored period is malformed: {key}: {e}")

    async def save_period(self, user_id: str, key: PeriodKey, data: PeriodData) -> bool:
        """Create the period row, or overwrite it in place."""
        sheet, all_rows = self._read(f"save period {key}")
        idx = self._find_row(all_rows, user_id, str(key))
        try:
            self._write_row(sheet, idx, self._period_to_row(user_id, key, data))
        except Exception as e:
            raise StorageError(f"Failed to save period {key}: {e}")
        return True

    async def delete_period(self, user_id: str, key: PeriodKey) -> bool:
        """Delete the period row if present."""
        sheet, all_rows = self._read(f"delete period {key}")
        idx = self._find_row(all_rows, user_id, str(key))
        if idx is None:
            return False
        try:
            self._delete_row(sheet, idx)
        except Exception as e:
            raise StorageError(f"Failed to delete period {key}: {e}")
        return True


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

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
            user_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_message=safe_get(10) or None,
            is_user_action=safe_get(11).lower() == "true",
        )

    @retry_transient
    def _append_row(self, row: list) -> None:
        sheet = self._client.get_audit_sheet()
        sheet.append_row(row, value_input_option="RAW")

    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event."""
        try:
            self._append_row(event.to_sheets_row())
            return True
        except Exception as e:
            # Don't raise - audit logging should not break the main flow
            logger.warning(
                "audit_append_failed",
                event_id=str(event.event_id),
                error=str(e),
            )
            return False

    def _read_events(self) -> list[AuditEvent]:
        sheet = self._client.get_audit_sheet()
        events = []
        for row in sheet.get_all_values()[1:]:
            if not row or not row[0]:
                continue
            try:
                events.append(self._row_to_event(row))
            except ValueError:
                continue
        return events

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get events by correlation ID."""
        try:
            events = [
                e for e in self._read_events() if e.correlation_id == correlation_id
            ]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort chronologically
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get recent events."""
        try:
            events = self._read_events()
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}")

        # Sort newest first
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
