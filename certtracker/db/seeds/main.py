"""
Seeding entry points.

``seed_if_empty`` runs at startup. ``reseed_database`` replaces all data with
the defaults plus imported rows inside one transaction.
"""

from typing import Iterable

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from certtracker.db.models import Certification, NotificationAuditRecord, Recipient
from certtracker.schemas.certification_schemas import CreateCertificationRequest
from certtracker.services.certification_service import build_certification
from certtracker.utils.logging import get_logger

from .certifications_seed import seed_certifications

logger = get_logger()


def seed_if_empty(db_session: Session) -> bool:
    """Seed default certifications when the table has no rows"""
    count = db_session.execute(select(func.count(Certification.id))).scalar()
    if count:
        return False

    try:
        seed_certifications(db_session)
        db_session.commit()
        return True
    except Exception:
        db_session.rollback()
        raise


def reseed_database(
    db_session: Session, imported_rows: Iterable[CreateCertificationRequest] = ()
) -> int:
    """
    Destructive reseed: clear audit rows, certifications and recipients, then
    insert the defaults followed by ``imported_rows``.

    All or nothing; any failure rolls back and leaves the prior data intact.
    Returns the number of certifications written.
    """
    try:
        db_session.execute(delete(NotificationAuditRecord))
        db_session.execute(delete(Certification))
        db_session.execute(delete(Recipient))

        written = seed_certifications(db_session)
        db_session.flush()

        next_sno = (
            db_session.execute(select(func.max(Certification.sno))).scalar() or 0
        ) + 1
        for row in imported_rows:
            sno = row.sno if row.sno is not None else next_sno
            db_session.add(build_certification(row, sno))
            next_sno = max(next_sno, sno) + 1
            written += 1

        db_session.commit()
    except Exception as e:
        db_session.rollback()
        logger.error(f"Reseed failed, rolled back: {e}")
        raise

    logger.info(f"Reseed complete: {written} certifications")
    return written
