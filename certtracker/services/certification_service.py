import base64
import binascii
import uuid
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, defer

from certtracker.config.settings import settings
from certtracker.db.models import (
    Certification,
    CertificationScheme,
    CertificationStatus,
)
from certtracker.db.session import get_sync_session
from certtracker.schemas.certification_schemas import (
    AttachmentUpload,
    CertificationResponse,
    CreateCertificationRequest,
    SchemeFields,
    UpdateCertificationRequest,
)
from certtracker.services.notifications.certification_source import (
    LEGACY_SCHEME_PREFIXES,
    expand_record,
    to_record,
)
from certtracker.services.notifications.expiry import (
    ExpiryBucket,
    classify,
    milestone_label,
)
from certtracker.utils.datetime_utils import local_date, utc_now
from certtracker.utils.logging import get_logger

logger = get_logger()

SCHEME_FIELD_NAMES = tuple(SchemeFields.model_fields.keys())
REQUIRED_COLUMNS = ("sno", "plant", "scheme", "status")
NON_COLUMN_FIELDS = {"attachment", "attachment_clear", "scheme_a", "scheme_b"}
LEGACY_PREFIXES = {
    scheme.name.lower(): prefix for scheme, prefix in LEGACY_SCHEME_PREFIXES
}
_BUCKET_ORDER = list(ExpiryBucket)


def parse_uuid(value: str, error_code: str) -> str:
    """Canonical form of an ID from the URL, or ValueError(error_code)"""
    try:
        return str(uuid.UUID(str(value)))
    except (ValueError, TypeError, AttributeError):
        raise ValueError(error_code)


def decode_attachment(
    upload: AttachmentUpload, max_bytes: int
) -> Tuple[str, str, bytes]:
    """Decode an inline base64 attachment into (name, type, bytes)"""
    name = upload.name.strip()
    content_type = (upload.type or "").strip() or "application/octet-stream"
    encoded = upload.base64.strip()

    # Data URLs carry a "data:<type>;base64," prefix
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]

    if not name or not encoded:
        raise ValueError("INVALID_ATTACHMENT: name and content are required")

    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError):
        raise ValueError("INVALID_ATTACHMENT: content is not valid base64")

    if not data:
        raise ValueError("INVALID_ATTACHMENT: attachment is empty")

    if len(data) > max_bytes:
        raise ValueError("ATTACHMENT_TOO_LARGE")

    return name, content_type, data


def apply_legacy_fields(
    certification: Certification, scheme_key: str, fields: SchemeFields
):
    """Copy the fields set on ``fields`` into the scheme_a_/scheme_b_ columns"""
    prefix = LEGACY_PREFIXES[scheme_key]
    for field in fields.model_fields_set:
        setattr(certification, f"{prefix}{field}", getattr(fields, field))


def build_certification(data: CreateCertificationRequest, sno: int) -> Certification:
    """New, unsaved row from a create request; attachments are handled separately"""
    certification = Certification(
        sno=sno,
        plant=data.plant.strip(),
        address=data.address,
        scheme=data.scheme,
        **{field: getattr(data, field) for field in SCHEME_FIELD_NAMES},
    )
    if data.scheme_a:
        apply_legacy_fields(certification, "scheme_a", data.scheme_a)
    if data.scheme_b:
        apply_legacy_fields(certification, "scheme_b", data.scheme_b)
    return certification


class CertificationService:
    """Service for certification CRUD and attachment handling"""

    def __init__(
        self,
        db: Session,
        max_attachment_bytes: int = settings.MAX_ATTACHMENT_BYTES,
        zone: Optional[ZoneInfo] = None,
    ):
        self.db = db
        self.max_attachment_bytes = max_attachment_bytes
        self.zone = zone or ZoneInfo(settings.NOTIFICATION_TIMEZONE)

    def _today(self) -> date:
        return local_date(utc_now(), self.zone)

    async def get_certification_by_id(
        self, certification_id: str
    ) -> Optional[Certification]:
        certification_id = parse_uuid(certification_id, "CERTIFICATION_NOT_FOUND")
        return self.db.execute(
            select(Certification)
            .options(defer(Certification.attachment_data))
            .where(Certification.id == certification_id)
        ).scalar_one_or_none()

    async def _require(self, certification_id: str) -> Certification:
        certification = await self.get_certification_by_id(certification_id)
        if not certification:
            raise ValueError("CERTIFICATION_NOT_FOUND")
        return certification

    def to_response(self, row: Certification, today: date) -> Dict[str, Any]:
        """Serialise a row, tagging it with its most urgent expiry bucket"""
        buckets = [
            classify(item.validity_upto, today)
            for item in expand_record(to_record(row))
        ]
        bucket = min(buckets, key=_BUCKET_ORDER.index) if buckets else None

        legacy = {}
        if row.scheme is CertificationScheme.BOTH:
            for scheme, prefix in LEGACY_SCHEME_PREFIXES:
                legacy[scheme.name.lower()] = SchemeFields(
                    **{
                        field: getattr(row, f"{prefix}{field}")
                        for field in SCHEME_FIELD_NAMES
                    }
                )

        response = CertificationResponse(
            id=row.id,
            sno=row.sno,
            plant=row.plant,
            address=row.address,
            scheme=row.scheme,
            status=row.status,
            registration_no=row.registration_no,
            model_list=row.model_list,
            standard=row.standard,
            validity_from=row.validity_from,
            validity_upto=row.validity_upto,
            renewal_status=row.renewal_status,
            alarm_alert=row.alarm_alert,
            action=row.action,
            expiry_bucket=bucket.value if bucket else None,
            expiry_label=milestone_label(bucket) if bucket else None,
            has_attachment=bool(row.attachment_name),
            attachment_name=row.attachment_name,
            attachment_type=row.attachment_type,
            created_at=row.created_at,
            updated_at=row.updated_at,
            **legacy,
        )
        return response.model_dump(by_alias=True)

    async def list_certifications(
        self, q: Optional[str] = None, status: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """All certifications, optionally filtered by status and free text"""
        query = select(Certification).options(defer(Certification.attachment_data))

        if status:
            try:
                query = query.where(Certification.status == CertificationStatus(status))
            except ValueError:
                raise ValueError("INVALID_STATUS")

        if q and q.strip():
            pattern = f"%{q.strip().lower()}%"
            query = query.where(
                or_(
                    func.lower(Certification.plant).like(pattern),
                    func.lower(Certification.registration_no).like(pattern),
                    func.lower(Certification.scheme_a_registration_no).like(pattern),
                    func.lower(Certification.scheme_b_registration_no).like(pattern),
                    func.lower(Certification.address).like(pattern),
                )
            )

        rows = self.db.execute(
            query.order_by(Certification.sno, Certification.created_at)
        ).scalars()
        today = self._today()
        return [self.to_response(row, today) for row in rows]

    async def get_certification(self, certification_id: str) -> Dict[str, Any]:
        certification = await self._require(certification_id)
        return self.to_response(certification, self._today())

    async def _next_sno(self) -> int:
        current = self.db.execute(select(func.max(Certification.sno))).scalar()
        return (current or 0) + 1

    async def create_certification(
        self, data: CreateCertificationRequest
    ) -> Dict[str, Any]:
        attachment = (
            decode_attachment(data.attachment, self.max_attachment_bytes)
            if data.attachment
            else None
        )

        try:
            sno = data.sno if data.sno is not None else await self._next_sno()
            certification = build_certification(data, sno)
            if attachment:
                (
                    certification.attachment_name,
                    certification.attachment_type,
                    certification.attachment_data,
                ) = attachment

            self.db.add(certification)
            self.db.commit()
            self.db.refresh(certification)
            logger.info(
                f"Created certification {certification.id} for {certification.plant}"
            )
        except Exception:
            self.db.rollback()
            raise

        return self.to_response(certification, self._today())

    async def update_certification(
        self, certification_id: str, data: UpdateCertificationRequest
    ) -> Dict[str, Any]:
        certification = await self._require(certification_id)

        # Raw attribute values; model_dump would stringify dates and enums
        changes = {
            field: getattr(data, field)
            for field in data.model_fields_set - NON_COLUMN_FIELDS
        }
        for field in REQUIRED_COLUMNS:
            if field in changes and changes[field] is None:
                changes.pop(field)

        attachment = (
            decode_attachment(data.attachment, self.max_attachment_bytes)
            if data.attachment
            else None
        )

        if (
            not changes
            and not attachment
            and not data.attachment_clear
            and not data.scheme_a
            and not data.scheme_b
        ):
            raise ValueError("NO_FIELDS_TO_UPDATE")

        try:
            for field, value in changes.items():
                setattr(certification, field, value)
            if data.scheme_a:
                apply_legacy_fields(certification, "scheme_a", data.scheme_a)
            if data.scheme_b:
                apply_legacy_fields(certification, "scheme_b", data.scheme_b)

            if data.attachment_clear:
                certification.attachment_name = None
                certification.attachment_type = None
                certification.attachment_data = None
            elif attachment:
                (
                    certification.attachment_name,
                    certification.attachment_type,
                    certification.attachment_data,
                ) = attachment

            self.db.commit()
            self.db.refresh(certification)
            logger.info(f"Updated certification {certification.id}")
        except Exception:
            self.db.rollback()
            raise

        return self.to_response(certification, self._today())

    async def delete_certification(self, certification_id: str) -> None:
        """Delete a certification; its audit rows go with it"""
        certification = await self._require(certification_id)
        try:
            self.db.delete(certification)
            self.db.commit()
            logger.info(f"Deleted certification {certification_id}")
        except Exception:
            self.db.rollback()
            raise

    async def get_attachment(self, certification_id: str) -> Tuple[str, str, bytes]:
        certification = await self._require(certification_id)
        data = certification.attachment_data
        if not data:
            raise ValueError("ATTACHMENT_NOT_FOUND")
        return (
            certification.attachment_name or "attachment",
            certification.attachment_type or "application/octet-stream",
            data,
        )

    async def remove_attachment(self, certification_id: str) -> None:
        certification = await self._require(certification_id)
        try:
            certification.attachment_name = None
            certification.attachment_type = None
            certification.attachment_data = None
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise


def get_certification_service(
    db: Session = Depends(get_sync_session),
) -> CertificationService:
    """Dependency to provide CertificationService instance"""
    return CertificationService(db)
