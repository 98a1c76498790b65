from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from certtracker.db.models import (
    DeliveryOutcome,
    NotificationAuditRecord,
    NotificationKind,
)
from certtracker.utils.errors import DatabaseError
from certtracker.utils.logging import get_logger
from certtracker.utils.string_utils import truncate

logger = get_logger()


@dataclass(frozen=True)
class AuditEntry:
    """Values for one audit row, before it is persisted"""

    certification_id: str
    recipient_email: str
    kind: NotificationKind
    milestone_key: str
    sent_at: datetime
    outcome: DeliveryOutcome
    error: Optional[str] = None


class AuditLogStore:
    """Append-only store of delivery attempts"""

    def __init__(self, db_session: Session, error_max_length: int = 4000):
        self.db = db_session
        self.error_max_length = error_max_length

    async def append_many(
        self, entries: Iterable[AuditEntry]
    ) -> List[NotificationAuditRecord]:
        """Insert and commit a batch of audit rows; raises DatabaseError on failure"""
        records = [
            NotificationAuditRecord(
                certification_id=entry.certification_id,
                recipient_email=entry.recipient_email,
                kind=entry.kind,
                milestone_key=entry.milestone_key,
                sent_at=entry.sent_at,
                outcome=entry.outcome,
                error=truncate(entry.error, self.error_max_length),
            )
            for entry in entries
        ]
        if not records:
            return []

        try:
            self.db.add_all(records)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to write {len(records)} audit records: {e}")
            raise DatabaseError(
                f"Failed to write notification audit records: {e}",
                error_code="AUDIT_WRITE_FAILED",
            ) from e

        return records

    async def append(self, entry: AuditEntry) -> NotificationAuditRecord:
        records = await self.append_many([entry])
        return records[0]

    async def find_latest_sent(
        self,
        certification_id: str,
        recipient_email: str,
        milestone_key: str,
        kind: Optional[NotificationKind] = None,
    ) -> Optional[NotificationAuditRecord]:
        """Most recent successful delivery for the tuple, if any"""
        query = select(NotificationAuditRecord).where(
            NotificationAuditRecord.certification_id == certification_id,
            NotificationAuditRecord.recipient_email == recipient_email,
            NotificationAuditRecord.milestone_key == milestone_key,
            NotificationAuditRecord.outcome == DeliveryOutcome.SENT,
        )
        if kind is not None:
            query = query.where(NotificationAuditRecord.kind == kind)

        try:
            return self.db.execute(
                query.order_by(NotificationAuditRecord.sent_at.desc()).limit(1)
            ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to read notification audit records: {e}",
                error_code="AUDIT_READ_FAILED",
            ) from e

    async def list_records(
        self, certification_id: Optional[str] = None, limit: int = 200
    ) -> List[NotificationAuditRecord]:
        query = select(NotificationAuditRecord)
        if certification_id:
            query = query.where(
                NotificationAuditRecord.certification_id == certification_id
            )
        query = query.order_by(NotificationAuditRecord.sent_at.desc()).limit(limit)
        return list(self.db.execute(query).scalars().all())
