"""
Main Orchestrator for Expense Tracker

This module ties the pure period/aggregation logic to period storage
and defines the ledger flows:
1. Periods (open on first access, January templates, "new period", delete)
2. Expenses (add, edit, delete) and the period's bank balance
3. Read models (period selector, balance cards, analytics)

DESIGN DECISION: There is no "current user" or "current period" state.
Every call names the user and the period it acts on, so one tracker
can serve any number of sessions.

Writes are applied to a fresh copy of the period and then persisted
with a single save_period call. The tracker never issues two writes to
the same period concurrently; serializing user actions per period is
the caller's job.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any, Callable, Optional
from uuid import UUID

import structlog

from expense_tracker.aggregation import (
    build_period_stats,
    filter_window,
    spending_by_category,
    summarize,
    total,
)
from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.config import get_settings, validate_all_settings
from expense_tracker.models.ledger import (
    Expense,
    ExpenseCategory,
    Period,
    PeriodData,
    PeriodKey,
)
from expense_tracker.models.reports import (
    AnalyticsSummary,
    AnalyticsWindow,
    PeriodSummary,
)
from expense_tracker.periods import (
    display_label,
    next_period_key,
    period_id_for,
    previous_period_key,
    sort_period_keys,
    template_key_for,
    try_parse_period_key,
)
from expense_tracker.services.storage import (
    AuditStorageInterface,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsPeriodStorage,
    InMemoryAuditStorage,
    InMemoryPeriodStorage,
    PeriodStorageInterface,
    StorageError,
)
from expense_tracker.services.storage import ConnectionError as StorageConnectionError
from expense_tracker.validation import ExpenseValidationError, ExpenseValidator

logger = structlog.get_logger(__name__)


class LedgerError(Exception):
    """Base exception for ledger operations."""
    pass


class PeriodExistsError(LedgerError):
    """The period the user asked to create already exists."""

    def __init__(self, key: PeriodKey):
        self.key = key
        super().__init__(f"Next period already exists: {key}")


class PeriodNotFoundError(LedgerError):
    """The period does not exist in storage."""

    def __init__(self, key: PeriodKey):
        self.key = key
        super().__init__(f"Period not found: {key}")


class ExpenseNotFoundError(LedgerError):
    """No expense with the given id in the period."""

    def __init__(self, key: PeriodKey, expense_id: int):
        self.key = key
        self.expense_id = expense_id
        super().__init__(f"Expense {expense_id} not found in period {key}")


_UNSET: Any = object()


class PeriodTracker:
    """
    Orchestrates every ledger operation for any user.

    Flow for a write:
    1. Validate raw input (ExpenseValidator)
    2. Load the period (creating it empty if needed)
    3. Apply the change to a copy
    4. Persist the copy
    5. Audit
    """

    def __init__(
        self,
        storage: PeriodStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[ExpenseValidator] = None,
        clock: Callable[[], datetime] = datetime.now,
        seed_from_template: Optional[bool] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._validator = validator or ExpenseValidator()
        self._clock = clock
        if seed_from_template is None:
            seed_from_template = get_settings().app.seed_from_template
        self._seed_from_template = seed_from_template

    def today(self) -> date:
        return self._clock().date()

    def current_period_key(self) -> PeriodKey:
        """Period containing today's date."""
        return period_id_for(self.today())

    # =========================================================================
    # Internal helpers
    # =========================================================================

    def _new_expense_id(self, data: PeriodData) -> int:
        """Millisecond timestamp, bumped past any id already in the period."""
        candidate = int(self._clock().timestamp() * 1000)
        existing = [expense.id for expense in data.expenses]
        if existing and candidate <= max(existing):
            candidate = max(existing) + 1
        return candidate

    async def _persist(
        self,
        user_id: str,
        key: PeriodKey,
        data: PeriodData,
        correlation_id: UUID,
    ) -> None:
        try:
            await self._storage.save_period(user_id, key, data)
        except StorageConnectionError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="period_storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    user_id=user_id,
                    period_id=str(key),
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    async def _reject(
        self,
        user_id: str,
        key: PeriodKey,
        error: ExpenseValidationError,
        correlation_id: UUID,
    ) -> None:
        if self._audit_logger:
            await self._audit_logger.log_validation_failed(
                user_id=user_id,
                period_id=str(key),
                issues=[issue.model_dump() for issue in error.result.issues],
                correlation_id=correlation_id,
            )

    async def _load_periods(
        self,
        user_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> dict[PeriodKey, PeriodData]:
        """
        All stored periods of a user keyed by parsed PeriodKey.

        Documents whose id is not a valid period key are skipped.
        """
        documents = await self._storage.list_periods(user_id)
        periods = {}
        for period_id, data in documents.items():
            key = try_parse_period_key(period_id)
            if key is None:
                logger.warning("malformed_period_id", user_id=user_id, period_id=period_id)
                if self._audit_logger:
                    await self._audit_logger.log_record_skipped(
                        user_id=user_id,
                        record_id=period_id,
                        reason="Malformed period key",
                        correlation_id=correlation_id,
                    )
                continue
            periods[key] = data
        return periods

    # =========================================================================
    # Periods
    # =========================================================================

    async def open_period(
        self,
        user_id: str,
        key: PeriodKey,
        correlation_id: Optional[UUID] = None,
    ) -> Period:
        """
        Load a period, creating it empty on first access.

        Raises:
            StorageError: If the stored period cannot be read
        """
        correlation_id = correlation_id or create_correlation_id()
        try:
            data = await self._storage.get_period(user_id, key)
        except StorageConnectionError as e:
            if self._audit_logger:
                await self._audit_logger.log_external_service_error(
                    service="period_storage",
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="period_read_failed",
                    error_message=str(e),
                    details={"user_id": user_id, "period_id": str(key)},
                    correlation_id=correlation_id,
                )
            raise
        if data is not None:
            return Period(key=key, data=data)

        data = PeriodData()
        await self._persist(user_id, key, data, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_period_opened(
                user_id=user_id,
                period_id=str(key),
                correlation_id=correlation_id,
            )
        return Period(key=key, data=data)

    async def ensure_january_templates(
        self,
        user_id: str,
        year: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> list[PeriodKey]:
        """
        Create empty January template periods for `year` if missing.

        Returns:
            Keys of the templates created by this call
        """
        year = year or self.today().year
        correlation_id = correlation_id or create_correlation_id()
        existing = await self._load_periods(user_id, correlation_id)

        created = []
        for half in (1, 2):
            key = PeriodKey(year=year, month=1, half=half)
            if key in existing:
                continue
            await self._persist(user_id, key, PeriodData(), correlation_id)
            created.append(key)
            if self._audit_logger:
                await self._audit_logger.log_template_created(
                    user_id=user_id,
                    period_id=str(key),
                    correlation_id=correlation_id,
                )
        return created

    async def create_next_period(
        self,
        user_id: str,
        current_key: PeriodKey,
        correlation_id: Optional[UUID] = None,
    ) -> Period:
        """
        "New Period": create the period after `current_key`.

        The new period starts with a zero balance and a copy of the
        expenses of its January template (same year, same half).

        Raises:
            PeriodExistsError: If the next period already exists
        """
        correlation_id = correlation_id or create_correlation_id()
        next_key = next_period_key(current_key)
        existing = await self._load_periods(user_id, correlation_id)

        if next_key in existing:
            raise PeriodExistsError(next_key)

        template_key = template_key_for(next_key)
        template = existing.get(template_key)
        seeded = []
        if self._seed_from_template and template is not None:
            seeded = [expense.model_copy() for expense in template.expenses]

        data = PeriodData(bank_balance=Decimal("0"), expenses=seeded)
        await self._persist(user_id, next_key, data, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_period_created(
                user_id=user_id,
                period_id=str(next_key),
                seeded_expenses=len(seeded),
                template_id=str(template_key),
                correlation_id=correlation_id,
            )
        return Period(key=next_key, data=data)

    async def delete_period(
        self,
        user_id: str,
        key: PeriodKey,
        correlation_id: Optional[UUID] = None,
    ) -> PeriodKey:
        """
        Delete a period and pick the period to show next.

        Returns:
            The newest remaining period, or today's period if none remain

        Raises:
            PeriodNotFoundError: If the period does not exist
        """
        correlation_id = correlation_id or create_correlation_id()
        existing = await self._load_periods(user_id, correlation_id)

        deleted = await self._storage.delete_period(user_id, key)
        if not deleted:
            raise PeriodNotFoundError(key)

        remaining = sort_period_keys(
            (k for k in existing if k != key),
            newest_first=True,
        )
        next_key = remaining[0] if remaining else self.current_period_key()

        if self._audit_logger:
            await self._audit_logger.log_period_deleted(
                user_id=user_id,
                period_id=str(key),
                next_period_id=str(next_key),
                correlation_id=correlation_id,
            )
        return next_key

    async def list_period_keys(
        self,
        user_id: str,
        current_key: Optional[PeriodKey] = None,
    ) -> list[PeriodKey]:
        """
        Period selector tabs, newest first.

        The selected period is listed even before it has been stored.
        """
        current_key = current_key or self.current_period_key()
        keys = set(await self._load_periods(user_id))
        keys.add(current_key)
        return sort_period_keys(keys, newest_first=True)

    # =========================================================================
    # Expenses and balance
    # =========================================================================

    async def add_expense(
        self,
        user_id: str,
        key: PeriodKey,
        description: Optional[str],
        amount: Any,
        category: Any = ExpenseCategory.OTHER,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Validate and append a new expense to a period.

        Raises:
            ExpenseValidationError: If the input is invalid
        """
        correlation_id = correlation_id or create_correlation_id()
        period = await self.open_period(user_id, key, correlation_id)

        try:
            expense = self._validator.build_expense(
                expense_id=self._new_expense_id(period.data),
                description=description,
                amount=amount,
                category=category,
            )
        except ExpenseValidationError as e:
            await self._reject(user_id, key, e, correlation_id)
            raise

        data = period.data.model_copy(
            update={"expenses": [*period.expenses, expense]}
        )
        await self._persist(user_id, key, data, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_expense_added(
                user_id=user_id,
                period_id=str(key),
                expense_id=expense.id,
                amount=str(expense.amount),
                category=expense.category.value,
                correlation_id=correlation_id,
            )
        return expense

    async def update_expense(
        self,
        user_id: str,
        key: PeriodKey,
        expense_id: int,
        description: Any = _UNSET,
        amount: Any = _UNSET,
        category: Any = _UNSET,
        correlation_id: Optional[UUID] = None,
    ) -> Expense:
        """
        Edit an expense in place; fields not given keep their value.

        Raises:
            ExpenseNotFoundError: If the period has no such expense
            ExpenseValidationError: If the edited values are invalid
        """
        correlation_id = correlation_id or create_correlation_id()
        period = await self.open_period(user_id, key, correlation_id)

        position = next(
            (i for i, expense in enumerate(period.expenses) if expense.id == expense_id),
            None,
        )
        if position is None:
            raise ExpenseNotFoundError(key, expense_id)
        current = period.expenses[position]

        try:
            updated = self._validator.build_expense(
                expense_id=current.id,
                description=current.description if description is _UNSET else description,
                amount=current.amount if amount is _UNSET else amount,
                category=current.category if category is _UNSET else category,
            )
        except ExpenseValidationError as e:
            await self._reject(user_id, key, e, correlation_id)
            raise

        expenses = list(period.expenses)
        expenses[position] = updated
        data = period.data.model_copy(update={"expenses": expenses})
        await self._persist(user_id, key, data, correlation_id)

        if self._audit_logger:
            changes = {}
            if updated.description != current.description:
                changes["description"] = updated.description
            if updated.amount != current.amount:
                changes["amount"] = str(updated.amount)
            if updated.category != current.category:
                changes["category"] = updated.category.value
            await self._audit_logger.log_expense_updated(
                user_id=user_id,
                period_id=str(key),
                expense_id=expense_id,
                changes=changes,
                correlation_id=correlation_id,
            )
        return updated

    async def delete_expense(
        self,
        user_id: str,
        key: PeriodKey,
        expense_id: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """
        Remove an expense from a period.

        Raises:
            ExpenseNotFoundError: If the period has no such expense
        """
        correlation_id = correlation_id or create_correlation_id()
        period = await self.open_period(user_id, key, correlation_id)

        expenses = [expense for expense in period.expenses if expense.id != expense_id]
        if len(expenses) == len(period.expenses):
            raise ExpenseNotFoundError(key, expense_id)

        data = period.data.model_copy(update={"expenses": expenses})
        await self._persist(user_id, key, data, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_expense_deleted(
                user_id=user_id,
                period_id=str(key),
                expense_id=expense_id,
                correlation_id=correlation_id,
            )

    async def set_bank_balance(
        self,
        user_id: str,
        key: PeriodKey,
        balance: Any,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        """
        Set the bank balance of a period. An empty value means zero.

        Raises:
            ExpenseValidationError: If the balance is invalid
        """
        correlation_id = correlation_id or create_correlation_id()
        period = await self.open_period(user_id, key, correlation_id)

        try:
            new_balance = self._validator.parse_balance(balance)
        except ExpenseValidationError as e:
            await self._reject(user_id, key, e, correlation_id)
            raise

        data = period.data.model_copy(update={"bank_balance": new_balance})
        await self._persist(user_id, key, data, correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_balance_updated(
                user_id=user_id,
                period_id=str(key),
                old_balance=str(period.bank_balance),
                new_balance=str(new_balance),
                correlation_id=correlation_id,
            )
        return new_balance

    # =========================================================================
    # Read models
    # =========================================================================

    async def period_summary(self, user_id: str, key: PeriodKey) -> PeriodSummary:
        """
        Balance cards for one period, with the previous period's total
        for comparison.
        """
        period = await self.open_period(user_id, key)
        total_expenses = total(period.expenses)

        previous = await self._storage.get_period(user_id, previous_period_key(key))
        previous_total = total(previous.expenses) if previous is not None else None

        return PeriodSummary(
            key=key,
            label=display_label(key),
            bank_balance=period.bank_balance,
            total_expenses=total_expenses,
            total_available=period.bank_balance - total_expenses,
            spending_by_category=spending_by_category(period.expenses),
            previous_total=previous_total,
            expense_count=len(period.expenses),
        )

    async def analytics(
        self,
        user_id: str,
        window: Optional[AnalyticsWindow] = None,
    ) -> AnalyticsSummary:
        """
        Analytics over the user's periods inside `window`.

        Defaults to the last N months configured in AppSettings.
        """
        if window is None:
            window = AnalyticsWindow.last_months(get_settings().app.default_analytics_months)

        periods = [
            Period(key=key, data=data)
            for key, data in (await self._load_periods(user_id)).items()
        ]
        stats = build_period_stats(periods)
        return summarize(filter_window(stats, window, self.today()))


def create_app_components(
    use_storage: bool = True,
) -> tuple[PeriodTracker, Optional[GoogleSheetsClient]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to initialize Google Sheets storage.
                    Set to False to keep everything in memory.

    Returns:
        (period_tracker, sheets_client)
    """
    sheets_client = None
    period_storage: PeriodStorageInterface
    audit_storage: AuditStorageInterface

    if use_storage:
        status = validate_all_settings()
        if not status["google_sheets"]:
            logger.warning("storage_not_configured", error=status.get("google_sheets_error"))
            use_storage = False

    if use_storage:
        try:
            sheets_client = GoogleSheetsClient()
            period_storage = GoogleSheetsPeriodStorage(sheets_client)
            audit_storage = GoogleSheetsAuditStorage(sheets_client)
        except Exception as e:
            # Storage unreachable - continue in memory
            logger.warning("storage_unavailable", error=str(e))
            sheets_client = None
            period_storage = InMemoryPeriodStorage()
            audit_storage = InMemoryAuditStorage()
    else:
        period_storage = InMemoryPeriodStorage()
        audit_storage = InMemoryAuditStorage()

    tracker = PeriodTracker(
        storage=period_storage,
        audit_logger=AuditLogger(audit_storage),
    )
    logger.info(
        "app_components_created",
        environment=get_settings().app.app_environment,
        storage="google_sheets" if sheets_client else "memory",
    )
    return tracker, sheets_client
