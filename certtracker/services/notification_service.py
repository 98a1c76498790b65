from typing import Any, Dict, List, Optional

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from certtracker.db.session import get_sync_session
from certtracker.runtime import NotificationRuntime
from certtracker.schemas.notification_schemas import EmailLogItem
from certtracker.services.certification_service import parse_uuid
from certtracker.services.notifications import AuditLogStore, DispatchResult
from certtracker.utils.datetime_utils import utc_now
from certtracker.utils.logging import get_logger

logger = get_logger()

MAX_EMAIL_LOGS = 2000


class NotificationService:
    """Audit log listing and on-demand notification runs"""

    def __init__(self, db_session: Session, runtime: NotificationRuntime):
        self.db = db_session
        self.runtime = runtime

    async def list_email_logs(
        self, certification_id: Optional[str] = None, top: int = 200
    ) -> List[Dict[str, Any]]:
        """Latest audit rows first, optionally for one certification"""
        if certification_id:
            certification_id = parse_uuid(certification_id, "CERTIFICATION_NOT_FOUND")
        limit = min(max(top, 1), MAX_EMAIL_LOGS)

        records = await AuditLogStore(self.db).list_records(
            certification_id=certification_id, limit=limit
        )
        return [
            EmailLogItem.model_validate(record).model_dump(by_alias=True)
            for record in records
        ]

    async def run_notifications(self) -> DispatchResult:
        """Run the dispatcher immediately, outside the daily schedule"""
        logger.info("Manual notification run requested")
        dispatcher = self.runtime.build_dispatcher(self.db)
        return await dispatcher.run(utc_now())


def get_notification_service(
    request: Request,
    db: Session = Depends(get_sync_session),
) -> NotificationService:
    """Dependency to provide NotificationService instance"""
    return NotificationService(db, request.app.state.runtime)
