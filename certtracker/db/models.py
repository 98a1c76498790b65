from typing import List, Optional
from datetime import datetime, date
from sqlalchemy import (
    String,
    Boolean,
    Integer,
    Text,
    ForeignKey,
    Enum,
    Index,
    DateTime,
    Date,
    LargeBinary,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
import enum

from certtracker.db.custom_types import StringUUID, new_id
from certtracker.utils.datetime_utils import naive_utc_now


class Base(DeclarativeBase):
    pass


# Enums
class CertificationScheme(enum.Enum):
    SCHEME_A = "SCHEME_A"
    SCHEME_B = "SCHEME_B"
    BOTH = "both"


class CertificationStatus(enum.Enum):
    ACTIVE = "Active"
    UNDER_PROCESS = "Under process"
    EXPIRED = "Expired"
    PENDING = "Pending"


class NotificationKind(enum.Enum):
    REMINDER = "reminder"
    OVERDUE = "overdue"


class DeliveryOutcome(enum.Enum):
    SENT = "sent"
    FAILED = "failed"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


# Base model with common audit fields
class AuditMixin:
    """Mixin for common audit fields"""

    created_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=naive_utc_now, onupdate=naive_utc_now, nullable=False
    )


# Models
class Certification(Base, AuditMixin):
    """
    One stored registration record for a plant.

    Rows with ``scheme`` set to a single scheme use the row-wise fields.
    Legacy rows with ``scheme == BOTH`` keep each scheme's details in the
    ``scheme_a_*`` / ``scheme_b_*`` columns instead.
    """

    __tablename__ = "certifications"

    id: Mapped[str] = mapped_column(StringUUID, primary_key=True, default=new_id)
    sno: Mapped[int] = mapped_column(Integer, nullable=False)
    plant: Mapped[str] = mapped_column(String(200), nullable=False)
    address: Mapped[Optional[str]] = mapped_column(Text)
    scheme: Mapped[CertificationScheme] = mapped_column(
        Enum(CertificationScheme, values_callable=_enum_values, length=10),
        default=CertificationScheme.SCHEME_A,
        nullable=False,
    )

    # Row-wise fields (single scheme)
    registration_no: Mapped[Optional[str]] = mapped_column(String(120))
    status: Mapped[CertificationStatus] = mapped_column(
        Enum(CertificationStatus, values_callable=_enum_values, length=30),
        default=CertificationStatus.PENDING,
        nullable=False,
    )
    model_list: Mapped[Optional[str]] = mapped_column(Text)
    standard: Mapped[Optional[str]] = mapped_column(Text)
    validity_from: Mapped[Optional[date]] = mapped_column(Date)
    validity_upto: Mapped[Optional[date]] = mapped_column(Date)
    renewal_status: Mapped[Optional[str]] = mapped_column(String(120))
    alarm_alert: Mapped[Optional[str]] = mapped_column(String(120))
    action: Mapped[Optional[str]] = mapped_column(Text)

    # Legacy combined-row fields, scheme A
    scheme_a_registration_no: Mapped[Optional[str]] = mapped_column(String(120))
    scheme_a_status: Mapped[Optional[CertificationStatus]] = mapped_column(
        Enum(CertificationStatus, values_callable=_enum_values, length=30)
    )
    scheme_a_model_list: Mapped[Optional[str]] = mapped_column(Text)
    scheme_a_standard: Mapped[Optional[str]] = mapped_column(Text)
    scheme_a_validity_from: Mapped[Optional[date]] = mapped_column(Date)
    scheme_a_validity_upto: Mapped[Optional[date]] = mapped_column(Date)
    scheme_a_renewal_status: Mapped[Optional[str]] = mapped_column(String(120))
    scheme_a_alarm_alert: Mapped[Optional[str]] = mapped_column(String(120))
    scheme_a_action: Mapped[Optional[str]] = mapped_column(Text)

    # Legacy combined-row fields, scheme B
    scheme_b_registration_no: Mapped[Optional[str]] = mapped_column(String(120))
    scheme_b_status: Mapped[Optional[CertificationStatus]] = mapped_column(
        Enum(CertificationStatus, values_callable=_enum_values, length=30)
    )
    scheme_b_model_list: Mapped[Optional[str]] = mapped_column(Text)
    scheme_b_standard: Mapped[Optional[str]] = mapped_column(Text)
    scheme_b_validity_from: Mapped[Optional[date]] = mapped_column(Date)
    scheme_b_validity_upto: Mapped[Optional[date]] = mapped_column(Date)
    scheme_b_renewal_status: Mapped[Optional[str]] = mapped_column(String(120))
    scheme_b_alarm_alert: Mapped[Optional[str]] = mapped_column(String(120))
    scheme_b_action: Mapped[Optional[str]] = mapped_column(Text)

    # Attachment (optional)
    attachment_name: Mapped[Optional[str]] = mapped_column(String(260))
    attachment_type: Mapped[Optional[str]] = mapped_column(String(120))
    attachment_data: Mapped[Optional[bytes]] = mapped_column(
        LargeBinary, deferred=True
    )

    # Relationships
    audit_records: Mapped[List["NotificationAuditRecord"]] = relationship(
        back_populates="certification",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        Index("IX_Certifications_Plant", "plant"),
        Index("IX_Certifications_Status", "status"),
        Index("IX_Certifications_ValidityUpto", "validity_upto"),
    )


class Recipient(Base, AuditMixin):
    __tablename__ = "email_recipients"

    id: Mapped[str] = mapped_column(StringUUID, primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)  # RFC 5321 max length
    role: Mapped[Optional[str]] = mapped_column(String(200))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    __table_args__ = (Index("UX_EmailRecipients_Email", "email", unique=True),)


class NotificationAuditRecord(Base):
    """Append-only record of one attempted delivery to one recipient."""

    __tablename__ = "notification_audit_records"

    id: Mapped[str] = mapped_column(StringUUID, primary_key=True, default=new_id)
    certification_id: Mapped[str] = mapped_column(
        StringUUID,
        ForeignKey("certifications.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Plain copy of the address, so history survives recipient deletion
    recipient_email: Mapped[str] = mapped_column(String(320), nullable=False)
    kind: Mapped[NotificationKind] = mapped_column(
        Enum(NotificationKind, values_callable=_enum_values, length=20),
        nullable=False,
    )
    milestone_key: Mapped[str] = mapped_column(String(50), nullable=False)
    sent_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    outcome: Mapped[DeliveryOutcome] = mapped_column(
        Enum(DeliveryOutcome, values_callable=_enum_values, length=20),
        nullable=False,
    )
    error: Mapped[Optional[str]] = mapped_column(Text)

    # Relationships
    certification: Mapped["Certification"] = relationship(
        back_populates="audit_records"
    )

    __table_args__ = (
        Index("IX_EmailLogs_Certification", "certification_id"),
        Index("IX_EmailLogs_Recipient", "recipient_email"),
        Index("IX_EmailLogs_Milestone", "milestone_key"),
    )
