from fastapi import APIRouter, Depends, Request

from certtracker.services.notification_service import (
    NotificationService,
    get_notification_service,
)
from certtracker.utils.responses import ResponseBuilder

notifications_router = APIRouter()


@notifications_router.post(
    "/run",
    summary="Run notifications now",
    description="Run the notification dispatcher immediately, outside the daily schedule. Already-sent milestones are not repeated.",
)
async def run_notifications(
    request: Request,
    notification_service: NotificationService = Depends(get_notification_service),
):
    result = await notification_service.run_notifications()
    return ResponseBuilder.success(
        request=request,
        data=result.to_dict(),
        message=(
            "No active recipients; nothing sent"
            if result.reason
            else f"Notification run completed: {result.sent} sent, {result.skipped} skipped"
        ),
    )
