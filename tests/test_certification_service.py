import base64
from datetime import date

import pytest
from unittest.mock import patch

from certtracker.schemas.certification_schemas import (
    AttachmentUpload,
    CreateCertificationRequest,
    UpdateCertificationRequest,
)
from certtracker.services.certification_service import (
    CertificationService,
    decode_attachment,
    parse_uuid,
)

from tests.conftest import IST, NOW, add_certification


@pytest.fixture
def service(db_session) -> CertificationService:
    with patch("certtracker.services.certification_service.utc_now", return_value=NOW):
        yield CertificationService(db_session, max_attachment_bytes=16, zone=IST)


@pytest.mark.unit
class TestDecodeAttachment:
    def test_plain_base64(self):
        upload = AttachmentUpload(
            name=" cert.pdf ", type="application/pdf", base64=base64.b64encode(b"abc").decode()
        )

        assert decode_attachment(upload, 16) == ("cert.pdf", "application/pdf", b"abc")

    def test_data_url_prefix_is_stripped(self):
        upload = AttachmentUpload(
            name="a.png", base64="data:image/png;base64," + base64.b64encode(b"png").decode()
        )

        assert decode_attachment(upload, 16)[2] == b"png"

    def test_blank_type_defaults_to_octet_stream(self):
        upload = AttachmentUpload(
            name="a.bin", type=" ", base64=base64.b64encode(b"x").decode()
        )

        assert decode_attachment(upload, 16)[1] == "application/octet-stream"

    def test_too_large(self):
        upload = AttachmentUpload(
            name="big.bin", base64=base64.b64encode(b"x" * 17).decode()
        )

        with pytest.raises(ValueError, match="ATTACHMENT_TOO_LARGE"):
            decode_attachment(upload, 16)

    @pytest.mark.parametrize("encoded", ["", "not base64!", "data:text/plain;base64,"])
    def test_invalid(self, encoded):
        upload = AttachmentUpload(name="a.txt", base64=encoded)

        with pytest.raises(ValueError, match="INVALID_ATTACHMENT"):
            decode_attachment(upload, 16)


@pytest.mark.unit
def test_parse_uuid():
    assert (
        parse_uuid("5B0C8F5E3C554D7E9A512F0F8F9D6A01", "NOPE")
        == "5b0c8f5e-3c55-4d7e-9a51-2f0f8f9d6a01"
    )
    with pytest.raises(ValueError, match="NOPE"):
        parse_uuid("42", "NOPE")


@pytest.mark.integration
class TestCertificationService:
    """Service calls against an in-memory database"""

    @pytest.mark.asyncio
    async def test_create_assigns_next_serial_number(self, db_session, service):
        add_certification(db_session, sno=4)

        created = await service.create_certification(
            CreateCertificationRequest(plant="Plant P9", registration_no="R-9")
        )

        assert created["sno"] == 5
        assert created["status"] == "Pending"

    @pytest.mark.asyncio
    async def test_oversized_attachment_is_rejected_before_writing(
        self, db_session, service
    ):
        request = CreateCertificationRequest(
            plant="Plant P9",
            registration_no="R-9",
            attachment=AttachmentUpload(
                name="big.pdf", base64=base64.b64encode(b"x" * 64).decode()
            ),
        )

        with pytest.raises(ValueError, match="ATTACHMENT_TOO_LARGE"):
            await service.create_certification(request)

        assert await service.list_certifications() == []

    @pytest.mark.asyncio
    async def test_update_ignores_null_required_columns(self, db_session, service):
        cert = add_certification(db_session)

        updated = await service.update_certification(
            cert.id,
            UpdateCertificationRequest.model_validate(
                {"plant": None, "validityUpto": "2027-01-31", "action": "Renewal filed"}
            ),
        )

        assert updated["plant"] == "Plant P2"
        assert updated["validityUpto"] == "2027-01-31"
        assert updated["action"] == "Renewal filed"

    @pytest.mark.asyncio
    async def test_update_can_clear_optional_fields(self, db_session, service):
        cert = add_certification(db_session, renewal_status="Filed")

        updated = await service.update_certification(
            cert.id, UpdateCertificationRequest.model_validate({"renewalStatus": None})
        )

        assert updated["renewalStatus"] is None

    @pytest.mark.asyncio
    async def test_expiry_bucket_uses_local_today(self, db_session, service):
        # NOW is 2026-03-10 in IST; the 11th is one day out
        cert = add_certification(db_session, validity_upto=date(2026, 3, 11))

        fetched = await service.get_certification(cert.id)

        assert fetched["expiryBucket"] == "day-before"
        assert fetched["expiryLabel"] == "1 Day Before Expiry"
