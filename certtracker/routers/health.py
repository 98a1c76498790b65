from fastapi import APIRouter, Depends, Request, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from certtracker.config.settings import settings
from certtracker.db.session import get_sync_session
from certtracker.utils.logging import get_logger
from certtracker.utils.responses import ResponseBuilder

health_router = APIRouter()
logger = get_logger()


@health_router.get("")
async def health_check(request: Request, db: Session = Depends(get_sync_session)):
    """
    Health check endpoint

    Returns service status and whether the database answers a trivial query
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check database probe failed: {e}")
        return ResponseBuilder.error(
            request=request,
            message="Database unavailable",
            error_code="DATABASE_UNAVAILABLE",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            data={"status": "unhealthy", "database": "down"},
        )

    return ResponseBuilder.success(
        request=request,
        data={
            "status": "healthy",
            "service": settings.NAME,
            "version": settings.VERSION,
            "database": "up",
        },
        message="Service is running",
    )
