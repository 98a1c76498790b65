import pytest
from dataclasses import replace
from datetime import date

from certtracker.services.notifications import (
    ExpiryBucket,
    SchemeCertification,
    compose,
)
from certtracker.services.notifications.composer import attachment_url, build_subject


@pytest.fixture
def certification() -> SchemeCertification:
    return SchemeCertification(
        certification_id="6f1c2d0e-8a4b-4c1e-9d7a-0b2e5f3c4a11",
        sno=3,
        plant="Plant P4",
        address="Plots S-95 to S-104",
        scheme="SCHEME_A",
        registration_no="R-63003719",
        status="Under process",
        model_list="Transparent M10",
        standard="IS 14286 : 2010",
        validity_from=date(2023, 12, 19),
        validity_upto=date(2026, 3, 20),
        renewal_status=None,
        alarm_alert="",
        action="Samples submitted",
    )


@pytest.mark.unit
class TestSubjects:
    def test_reminder_subject(self, certification):
        assert (
            build_subject(certification, ExpiryBucket.TWO_WEEKS)
            == "REMINDER: Plant P4 SCHEME_A Certification - 2 Weeks Before Expiry"
        )

    def test_overdue_subject(self, certification):
        assert (
            build_subject(certification, ExpiryBucket.OVERDUE)
            == "OVERDUE: Plant P4 SCHEME_A Certification Has Expired"
        )


@pytest.mark.unit
class TestCompose:
    """HTML rendering of a single notification"""

    def test_reminder_body_contains_details(self, certification):
        message = compose(certification, ExpiryBucket.TWO_WEEKS)

        assert message.subject.startswith("REMINDER:")
        assert "Expiry Reminder" in message.html_body
        assert "R-63003719" in message.html_body
        assert "Under process" in message.html_body
        assert "19 Dec 2023 - 20 Mar 2026" in message.html_body
        assert "2 Weeks Before Expiry" in message.html_body

    def test_overdue_forces_expired_status(self, certification):
        message = compose(certification, ExpiryBucket.OVERDUE)

        assert "Overdue Alert" in message.html_body
        assert "Expired" in message.html_body
        assert "Under process" not in message.html_body
        assert "renew immediately" in message.html_body

    def test_empty_fields_render_as_dash(self, certification):
        message = compose(certification, ExpiryBucket.WEEK)

        # renewal_status is None and alarm_alert is blank
        assert message.html_body.count(">-</td>") >= 2

    def test_stored_text_is_escaped(self, certification):
        hostile = replace(
            certification,
            plant='<script>alert("x")</script>',
            action="<b>bold</b> & more",
        )

        message = compose(hostile, ExpiryBucket.MONTH)

        assert "<script>" not in message.html_body
        assert "&lt;script&gt;alert(&quot;x&quot;)&lt;/script&gt;" in message.html_body
        assert "&lt;b&gt;bold&lt;/b&gt; &amp; more" in message.html_body

    def test_without_attachment(self, certification):
        message = compose(certification, ExpiryBucket.WEEK)

        assert "No attachment" in message.html_body
        assert "Download attachment" not in message.html_body

    def test_attachment_link_with_public_base_url(self, certification):
        attached = replace(
            certification, has_attachment=True, attachment_name="cert.pdf"
        )

        message = compose(
            attached,
            ExpiryBucket.WEEK,
            public_base_url="https://certs.example.com/",
            api_prefix="/api/v1",
        )

        assert "cert.pdf" in message.html_body
        assert (
            "https://certs.example.com/api/v1/certifications/"
            "6f1c2d0e-8a4b-4c1e-9d7a-0b2e5f3c4a11/attachment"
        ) in message.html_body

    def test_attachment_mentioned_without_public_base_url(self, certification):
        attached = replace(
            certification, has_attachment=True, attachment_name="cert.pdf"
        )

        message = compose(attached, ExpiryBucket.WEEK)

        assert "cert.pdf" in message.html_body
        assert "A file is attached" in message.html_body
        assert "href=" not in message.html_body


@pytest.mark.unit
def test_attachment_url_without_prefix():
    assert (
        attachment_url("http://localhost:8000", "abc", api_prefix="")
        == "http://localhost:8000/certifications/abc/attachment"
    )
