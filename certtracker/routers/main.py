from fastapi import APIRouter

from certtracker.routers.certifications import certifications_router
from certtracker.routers.email_logs import email_logs_router
from certtracker.routers.health import health_router
from certtracker.routers.notifications import notifications_router
from certtracker.routers.recipients import recipients_router

main_router = APIRouter()

main_router.include_router(health_router, prefix="/health", tags=["Health"])
main_router.include_router(
    certifications_router, prefix="/certifications", tags=["Certifications"]
)
main_router.include_router(
    recipients_router, prefix="/recipients", tags=["Recipients"]
)
main_router.include_router(email_logs_router, prefix="/email-logs", tags=["Email Logs"])
main_router.include_router(
    notifications_router, prefix="/notifications", tags=["Notifications"]
)
