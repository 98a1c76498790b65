from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from certtracker.utils.datetime_utils import to_utc
from certtracker.utils.logging import get_logger

logger = get_logger()


class DailyNotificationScheduler:
    """
    Runs a job at most once per local calendar day, on the first tick at or
    after ``trigger_hour``.

    The last-run marker lives in memory and only moves when the job
    completes, so a failed run is retried on the next tick. Exceptions from
    the job propagate to the caller.
    """

    def __init__(
        self,
        run_job: Callable[[datetime], Awaitable[Any]],
        zone: ZoneInfo,
        trigger_hour: int = 9,
    ):
        if not 0 <= trigger_hour <= 23:
            raise ValueError(f"trigger_hour must be between 0 and 23: {trigger_hour}")
        self.run_job = run_job
        self.zone = zone
        self.trigger_hour = trigger_hour
        self.last_run_date: Optional[date] = None

    def _local(self, now: datetime) -> datetime:
        return to_utc(now).astimezone(self.zone)

    def is_due(self, now: datetime) -> bool:
        local_now = self._local(now)
        if local_now.hour < self.trigger_hour:
            return False
        return self.last_run_date != local_now.date()

    async def tick(self, now: datetime) -> Optional[Any]:
        """Run the job if due; returns its result, or None when not due"""
        if not self.is_due(now):
            return None

        run_date = self._local(now).date()
        logger.info(f"Starting daily notification run for {run_date.isoformat()}")
        result = await self.run_job(now)
        self.last_run_date = run_date
        return result
