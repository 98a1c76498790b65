from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from certtracker.services.notification_service import (
    MAX_EMAIL_LOGS,
    NotificationService,
    get_notification_service,
)
from certtracker.utils.error_handlers import handle_service_error
from certtracker.utils.responses import ResponseBuilder

email_logs_router = APIRouter()


@email_logs_router.get(
    "",
    summary="List notification audit records",
    description="Most recent delivery attempts first, optionally for a single certification",
)
async def list_email_logs(
    request: Request,
    certification_id: Optional[str] = Query(
        default=None, alias="certificationId", description="Certification ID"
    ),
    top: int = Query(
        default=200, ge=1, le=MAX_EMAIL_LOGS, description="Maximum rows to return"
    ),
    notification_service: NotificationService = Depends(get_notification_service),
):
    try:
        logs = await notification_service.list_email_logs(
            certification_id=certification_id, top=top
        )
        return ResponseBuilder.success(
            request=request,
            data=logs,
            message=f"Retrieved {len(logs)} email log{'s' if len(logs) != 1 else ''}",
        )
    except ValueError as e:
        return handle_service_error(request, e)
