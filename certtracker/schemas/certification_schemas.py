from datetime import date, datetime
from typing import Optional

from pydantic import Field, model_validator

from certtracker.db.models import CertificationScheme, CertificationStatus
from certtracker.schemas.camel_base_model import CamelCaseBaseModel as BaseModel


class AttachmentUpload(BaseModel):
    """Attachment sent inline as base64"""

    name: str = Field(..., description="Original file name")
    type: str = Field(
        default="application/octet-stream", description="MIME type of the file"
    )
    base64: str = Field(..., description="Base64 encoded file content")


class SchemeFields(BaseModel):
    registration_no: Optional[str] = Field(
        default=None, max_length=120, description="Registration number"
    )
    status: Optional[CertificationStatus] = Field(
        default=None, description="Certification status"
    )
    model_list: Optional[str] = Field(default=None, description="Covered models")
    standard: Optional[str] = Field(default=None, description="Applicable standards")
    validity_from: Optional[date] = Field(default=None, description="Valid from")
    validity_upto: Optional[date] = Field(default=None, description="Valid until")
    renewal_status: Optional[str] = Field(
        default=None, max_length=120, description="Renewal status"
    )
    alarm_alert: Optional[str] = Field(
        default=None, max_length=120, description="Alarm alert note"
    )
    action: Optional[str] = Field(default=None, description="Action / notes")


class CreateCertificationRequest(SchemeFields):
    """Request schema for creating a certification"""

    sno: Optional[int] = Field(default=None, ge=0, description="Serial number")
    plant: str = Field(..., min_length=1, max_length=200, description="Plant name")
    address: Optional[str] = Field(default=None, description="Plant address")
    scheme: CertificationScheme = Field(
        default=CertificationScheme.SCHEME_A, description="Certification scheme"
    )
    status: CertificationStatus = Field(
        default=CertificationStatus.PENDING, description="Certification status"
    )
    scheme_a: Optional[SchemeFields] = Field(
        default=None, description="Scheme A details of a combined row"
    )
    scheme_b: Optional[SchemeFields] = Field(
        default=None, description="Scheme B details of a combined row"
    )
    attachment: Optional[AttachmentUpload] = Field(
        default=None, description="Optional attachment"
    )

    @model_validator(mode="after")
    def require_registration_no(self):
        if self.scheme is not CertificationScheme.BOTH and not (
            self.registration_no and self.registration_no.strip()
        ):
            raise ValueError("registrationNo is required")
        return self


class UpdateCertificationRequest(SchemeFields):
    """Partial update; only the fields present in the request are changed"""

    sno: Optional[int] = Field(default=None, ge=0, description="Serial number")
    plant: Optional[str] = Field(
        default=None, min_length=1, max_length=200, description="Plant name"
    )
    address: Optional[str] = Field(default=None, description="Plant address")
    scheme: Optional[CertificationScheme] = Field(
        default=None, description="Certification scheme"
    )
    scheme_a: Optional[SchemeFields] = Field(default=None)
    scheme_b: Optional[SchemeFields] = Field(default=None)
    attachment: Optional[AttachmentUpload] = Field(
        default=None, description="Replacement attachment"
    )
    attachment_clear: bool = Field(
        default=False, description="Remove the stored attachment"
    )


class CertificationResponse(SchemeFields):
    """Certification as returned by the API, without attachment bytes"""

    id: str = Field(..., description="Certification ID")
    sno: Optional[int] = Field(default=None, description="Serial number")
    plant: str = Field(..., description="Plant name")
    address: Optional[str] = Field(default=None, description="Plant address")
    scheme: CertificationScheme = Field(..., description="Certification scheme")
    status: CertificationStatus = Field(..., description="Certification status")
    expiry_bucket: Optional[str] = Field(
        default=None, description="Current expiry bucket of validityUpto"
    )
    expiry_label: Optional[str] = Field(
        default=None, description="Display label for the expiry bucket"
    )
    scheme_a: Optional[SchemeFields] = Field(default=None)
    scheme_b: Optional[SchemeFields] = Field(default=None)
    has_attachment: bool = Field(default=False, description="Attachment present")
    attachment_name: Optional[str] = Field(default=None)
    attachment_type: Optional[str] = Field(default=None)
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
