"""Tests for the audit logger and settings."""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from expense_tracker.audit import AuditLogger, create_correlation_id
from expense_tracker.audit.logger import log_level_for
from expense_tracker.config import get_settings
from expense_tracker.config.settings import AppSettings
from expense_tracker.models.audit import AuditEventType, AuditSeverity
from expense_tracker.services.storage import InMemoryAuditStorage


class TestAuditLogger:
    """Tests for AuditLogger."""

    @pytest.mark.asyncio
    async def test_logs_to_storage(self):
        storage = InMemoryAuditStorage()
        audit_logger = AuditLogger(storage)
        correlation_id = create_correlation_id()

        await audit_logger.log_expense_added(
            user_id="user-1",
            period_id="2024-5-2",
            expense_id=17,
            amount="12.50",
            category="Food",
            correlation_id=correlation_id,
        )
        await audit_logger.log_balance_updated(
            user_id="user-1",
            period_id="2024-5-2",
            old_balance="0",
            new_balance="100.00",
            correlation_id=correlation_id,
        )

        events = await storage.get_events_by_correlation_id(correlation_id)
        assert [e.event_type for e in events] == [
            AuditEventType.EXPENSE_ADDED,
            AuditEventType.BALANCE_UPDATED,
        ]

    @pytest.mark.asyncio
    async def test_without_storage_logs_locally(self):
        audit_logger = AuditLogger()
        await audit_logger.log_error(
            error_type="unexpected",
            error_message="boom",
        )

    @pytest.mark.asyncio
    async def test_storage_failure_does_not_raise(self):
        storage = InMemoryAuditStorage()
        storage.append_event = AsyncMock(side_effect=RuntimeError("down"))
        audit_logger = AuditLogger(storage)

        await audit_logger.log_external_service_error(
            service="google_sheets",
            error_message="timeout",
            correlation_id=uuid4(),
        )
        storage.append_event.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_error_events_have_error_severity(self):
        storage = InMemoryAuditStorage()
        audit_logger = AuditLogger(storage)

        await audit_logger.log_external_service_error(
            service="google_sheets",
            error_message="timeout",
        )
        events = await storage.get_recent_events()
        assert events[0].severity == AuditSeverity.ERROR
        assert events[0].details["service"] == "google_sheets"

    def test_correlation_ids_are_unique(self):
        assert create_correlation_id() != create_correlation_id()


class TestSettings:
    """Tests for application settings."""

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("DEFAULT_ANALYTICS_MONTHS", raising=False)
        monkeypatch.delenv("SEED_FROM_TEMPLATE", raising=False)
        settings = AppSettings(_env_file=None)
        assert settings.default_analytics_months == 6
        assert settings.seed_from_template is True

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_ANALYTICS_MONTHS", "12")
        settings = AppSettings(_env_file=None)
        assert settings.default_analytics_months == 12

    def test_invalid_log_level(self, monkeypatch):
        monkeypatch.setenv("LOG_LEVEL", "LOUD")
        with pytest.raises(ValueError):
            AppSettings(_env_file=None)

    def test_debug_mode_logs_at_debug(self, monkeypatch):
        monkeypatch.setenv("DEBUG_MODE", "true")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        assert log_level_for(AppSettings(_env_file=None)) == "DEBUG"

    def test_log_level_without_debug_mode(self, monkeypatch):
        monkeypatch.setenv("DEBUG_MODE", "false")
        monkeypatch.setenv("LOG_LEVEL", "WARNING")
        assert log_level_for(AppSettings(_env_file=None)) == "WARNING"

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()
