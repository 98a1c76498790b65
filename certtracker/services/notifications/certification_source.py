from dataclasses import dataclass
from datetime import date
from typing import List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session, defer

from certtracker.db.models import (
    Certification,
    CertificationScheme,
    CertificationStatus,
    Recipient,
)


@dataclass(frozen=True)
class SchemeCertification:
    """
    One certification for one scheme; the unit the notification engine
    classifies and notifies about.
    """

    certification_id: str
    sno: Optional[int]
    plant: str
    address: Optional[str]
    scheme: str
    registration_no: Optional[str]
    status: Optional[str]
    model_list: Optional[str]
    standard: Optional[str]
    validity_from: Optional[date]
    validity_upto: Optional[date]
    renewal_status: Optional[str]
    alarm_alert: Optional[str]
    action: Optional[str]
    has_attachment: bool = False
    attachment_name: Optional[str] = None


@dataclass(frozen=True)
class SingleSchemeRecord:
    certification: SchemeCertification


@dataclass(frozen=True)
class CombinedLegacyRecord:
    """A legacy row holding up to one certification per scheme"""

    certifications: List[SchemeCertification]


CertificationRecord = Union[SingleSchemeRecord, CombinedLegacyRecord]

LEGACY_SCHEME_PREFIXES = (
    (CertificationScheme.SCHEME_A, "scheme_a_"),
    (CertificationScheme.SCHEME_B, "scheme_b_"),
)

_SCHEME_FIELDS = (
    "registration_no",
    "status",
    "model_list",
    "standard",
    "validity_from",
    "validity_upto",
    "renewal_status",
    "alarm_alert",
    "action",
)


def _status_value(status) -> Optional[str]:
    if isinstance(status, CertificationStatus):
        return status.value
    return status


def _scheme_certification(
    row: Certification, scheme: CertificationScheme, prefix: str = ""
) -> SchemeCertification:
    values = {field: getattr(row, f"{prefix}{field}") for field in _SCHEME_FIELDS}
    values["status"] = _status_value(values["status"])
    return SchemeCertification(
        certification_id=str(row.id),
        sno=row.sno,
        plant=row.plant or "",
        address=row.address,
        scheme=scheme.value,
        has_attachment=bool(row.attachment_name),
        attachment_name=row.attachment_name,
        **values,
    )


def _has_scheme_fields(row: Certification, prefix: str) -> bool:
    return bool(
        getattr(row, f"{prefix}registration_no")
        or getattr(row, f"{prefix}validity_upto")
    )


def to_record(row: Certification) -> CertificationRecord:
    """Map a stored row onto its single-scheme or combined-legacy shape"""
    if row.scheme is not CertificationScheme.BOTH:
        return SingleSchemeRecord(_scheme_certification(row, row.scheme))

    return CombinedLegacyRecord(
        [
            _scheme_certification(row, scheme, prefix)
            for scheme, prefix in LEGACY_SCHEME_PREFIXES
            if _has_scheme_fields(row, prefix)
        ]
    )


def expand_record(record: CertificationRecord) -> List[SchemeCertification]:
    """Virtual certifications carried by a record; may be empty"""
    if isinstance(record, SingleSchemeRecord):
        return [record.certification]
    return list(record.certifications)


class CertificationSource:
    """Read side of storage used by the notification dispatcher"""

    def __init__(self, db_session: Session):
        self.db = db_session

    async def list_active_recipients(self) -> List[Recipient]:
        result = self.db.execute(
            select(Recipient)
            .where(Recipient.is_active == True)
            .order_by(Recipient.email)
        )
        return list(result.scalars().all())

    async def list_certification_records(self) -> List[CertificationRecord]:
        result = self.db.execute(
            select(Certification)
            .options(defer(Certification.attachment_data))
            .order_by(Certification.sno, Certification.created_at)
        )
        return [to_record(row) for row in result.scalars().all()]
