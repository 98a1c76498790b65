import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, Mock, patch

from certtracker.runtime import NotificationRuntime
from certtracker.services.notifications import DispatchResult
from certtracker.tasks.cron.daily_certification_notifier import (
    _async_daily_certification_notifier,
)

from tests.conftest import TODAY, add_certification, add_recipient

RUNTIME_PATH = "certtracker.tasks.cron.daily_certification_notifier.get_worker_runtime"


def runtime_with_tick(**tick_kwargs) -> Mock:
    runtime = Mock()
    runtime.scheduler.tick = AsyncMock(**tick_kwargs)
    return runtime


@pytest.mark.unit
class TestDailyCertificationNotifierTask:
    """Celery entry point delegating to the worker's scheduler"""

    @pytest.mark.asyncio
    async def test_not_due_reports_no_run(self):
        with patch(RUNTIME_PATH, return_value=runtime_with_tick(return_value=None)):
            result = await _async_daily_certification_notifier("req-1")

        assert result == {"success": True, "ran": False, "request_id": "req-1"}

    @pytest.mark.asyncio
    async def test_due_run_reports_counts(self):
        runtime = runtime_with_tick(return_value=DispatchResult(sent=2, skipped=4))

        with patch(RUNTIME_PATH, return_value=runtime):
            result = await _async_daily_certification_notifier("req-2")

        assert result == {
            "success": True,
            "ran": True,
            "request_id": "req-2",
            "sent": 2,
            "skipped": 4,
        }
        runtime.scheduler.tick.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_is_reported(self):
        runtime = runtime_with_tick(side_effect=RuntimeError("database is locked"))

        with patch(RUNTIME_PATH, return_value=runtime):
            result = await _async_daily_certification_notifier("req-3")

        assert result == {
            "success": False,
            "error": "database is locked",
            "request_id": "req-3",
        }


@pytest.mark.integration
class TestRuntimeSchedulerWiring:
    @pytest.mark.asyncio
    async def test_scheduler_runs_dispatcher_once_per_day(
        self, test_settings, database, db_session, email_gateway
    ):
        add_certification(db_session, validity_upto=TODAY + timedelta(days=2))
        add_recipient(db_session)
        runtime = NotificationRuntime(
            test_settings, database=database, email_gateway=email_gateway
        )
        # 09:30 IST
        now = datetime(2026, 3, 10, 4, 0, tzinfo=timezone.utc)

        first = await runtime.scheduler.tick(now)
        second = await runtime.scheduler.tick(now + timedelta(hours=1))

        assert first.sent == 1
        assert second is None
        email_gateway.send.assert_awaited_once()
