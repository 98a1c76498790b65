import asyncio

from certtracker.celery import celery
from certtracker.runtime import get_worker_runtime
from certtracker.utils.datetime_utils import utc_now
from certtracker.utils.logging import get_logger


@celery.task(bind=True, max_retries=3, default_retry_delay=60)
def daily_certification_notifier_task(self, request_id: str):
    """
    Polling task for certification expiry notifications.

    Beat calls this every few minutes. The worker's scheduler runs the
    dispatcher on the first call at or after the trigger hour (09:00
    Asia/Kolkata by default) and at most once per local day:
    1. Load active recipients and all certification records
    2. Classify each scheme's validity end date into an expiry bucket
    3. Send one batch email per certification to the recipients still owed
    4. Record every attempt in the notification audit log

    Args:
        request_id: Request ID for tracking purposes
    """

    return asyncio.run(_async_daily_certification_notifier(request_id))


async def _async_daily_certification_notifier(request_id: str):
    logger = get_logger().bind(request_id=request_id)
    runtime = get_worker_runtime()

    try:
        result = await runtime.scheduler.tick(utc_now())

        if result is None:
            return {"success": True, "ran": False, "request_id": request_id}

        logger.info(
            f"Daily certification notifier completed: sent={result.sent} "
            f"skipped={result.skipped}"
        )

        return {
            "success": True,
            "ran": True,
            "request_id": request_id,
            **result.to_dict(),
        }

    except Exception as e:
        logger.exception(f"Daily certification notifier task exception: {e}")
        return {"success": False, "error": str(e), "request_id": request_id}
