from dataclasses import dataclass
from html import escape
from typing import Any, Optional
from urllib.parse import quote

from certtracker.services.notifications.certification_source import (
    SchemeCertification,
)
from certtracker.services.notifications.expiry import ExpiryBucket, milestone_label
from certtracker.utils.datetime_utils import format_display_date

PLACEHOLDER = "-"

EMAIL_TEMPLATE = """<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>{title}</title>
</head>
<body style="margin:0;background:#f6f7fb;font-family:Segoe UI,Arial,sans-serif;">
  <div style="max-width:720px;margin:32px auto;padding:0 16px;">
    <div style="background:#fff;border-radius:16px;box-shadow:0 8px 30px rgba(0,0,0,.08);overflow:hidden;">
      <div style="padding:22px 24px;background:{accent};color:#fff;">
        <div style="font-size:12px;letter-spacing:2px;text-transform:uppercase;font-weight:700;">{title}</div>
        <div style="margin-top:8px;font-size:22px;font-weight:800;">{plant} - {scheme}</div>
        <div style="margin-top:6px;font-size:14px;">{label}</div>
      </div>
      <div style="padding:22px 24px;">
        <div style="padding:14px;border-left:4px solid {accent};background:{callout_background};border-radius:10px;">
          <div style="font-size:14px;line-height:1.55;color:{callout_color};">{callout}</div>
        </div>
        <h3 style="margin:18px 0 10px 0;font-size:14px;letter-spacing:1px;text-transform:uppercase;color:#6b7280;">Certification Details</h3>
        <table style="width:100%;border-collapse:collapse;font-size:14px;">
{detail_rows}
        </table>
{sections}
      </div>
      <div style="padding:14px 24px;background:#fafafa;border-top:1px solid #eef0f5;color:#6b7280;font-size:12px;line-height:1.5;">
        Automated notification from the Certification Tracker. {footer}
      </div>
    </div>
  </div>
</body>
</html>"""

DETAIL_ROW_TEMPLATE = """          <tr>
            <td style="padding:10px 0;border-bottom:1px solid #eef0f5;color:#6b7280;vertical-align:top;">{name}</td>
            <td style="padding:10px 0;border-bottom:1px solid #eef0f5;color:{color};font-weight:{weight};">{value}</td>
          </tr>"""

SECTION_TEMPLATE = """        <div style="margin-top:14px;">
          <div style="font-size:12px;letter-spacing:1px;text-transform:uppercase;color:#6b7280;font-weight:700;margin-bottom:6px;">{heading}</div>
          <div style="background:{background};border-radius:10px;padding:12px;font-size:13px;line-height:1.55;color:#111827;white-space:pre-wrap;">{content}</div>
        </div>"""


@dataclass(frozen=True)
class ComposedMessage:
    subject: str
    html_body: str


def _text(value: Any) -> str:
    """Escaped text for interpolation; empty values become a dash"""
    if value is None:
        return PLACEHOLDER
    text = str(value).strip()
    if not text:
        return PLACEHOLDER
    return escape(text, quote=True)


def _detail_row(
    name: str, value: str, color: str = "#111827", weight: int = 400
) -> str:
    return DETAIL_ROW_TEMPLATE.format(
        name=escape(name), value=value, color=color, weight=weight
    )


def attachment_url(
    public_base_url: str, certification_id: str, api_prefix: str = "/api/v1"
) -> str:
    base = public_base_url.rstrip("/")
    prefix = api_prefix.strip("/")
    path = f"/{prefix}" if prefix else ""
    return f"{base}{path}/certifications/{quote(certification_id, safe='')}/attachment"


def _attachment_section(
    certification: SchemeCertification,
    public_base_url: Optional[str],
    api_prefix: str,
) -> str:
    if not certification.has_attachment:
        return SECTION_TEMPLATE.format(
            heading="Attachment", background="#f3f4f6", content="No attachment"
        )

    name = _text(certification.attachment_name or "attachment")
    if public_base_url:
        link = escape(
            attachment_url(
                public_base_url, certification.certification_id, api_prefix
            ),
            quote=True,
        )
        content = (
            f"<b>File:</b> {name}<br>"
            f'<a href="{link}" style="color:#1d4ed8;font-weight:700;">Download attachment</a>'
        )
    else:
        content = f"<b>File:</b> {name}<br>A file is attached to this certification in the tracker."

    return SECTION_TEMPLATE.format(
        heading="Attachment", background="#f3f4f6", content=content
    )


def build_subject(certification: SchemeCertification, bucket: ExpiryBucket) -> str:
    if bucket is ExpiryBucket.OVERDUE:
        return (
            f"OVERDUE: {certification.plant} {certification.scheme} "
            "Certification Has Expired"
        )
    return (
        f"REMINDER: {certification.plant} {certification.scheme} "
        f"Certification - {milestone_label(bucket)}"
    )


def compose(
    certification: SchemeCertification,
    bucket: ExpiryBucket,
    public_base_url: Optional[str] = None,
    api_prefix: str = "/api/v1",
) -> ComposedMessage:
    """
    Render the subject and HTML body for one certification at one milestone.

    Stored text is HTML-escaped before interpolation. When overdue, the
    status is shown as "Expired" whatever the stored value.
    """
    is_overdue = bucket is ExpiryBucket.OVERDUE
    accent = "#dc2626" if is_overdue else "#f59e0b"
    status = "Expired" if is_overdue else certification.status

    validity = (
        f"{escape(format_display_date(certification.validity_from))} - "
        f"{escape(format_display_date(certification.validity_upto))}"
    )

    detail_rows = "\n".join(
        [
            _detail_row("S.No", _text(certification.sno), weight=700),
            _detail_row("Plant", _text(certification.plant)),
            _detail_row("Scheme", _text(certification.scheme)),
            _detail_row(
                "Registration No.", _text(certification.registration_no), weight=700
            ),
            _detail_row(
                "Status",
                _text(status),
                color="#dc2626" if is_overdue else "#059669",
                weight=700,
            ),
            _detail_row("Validity", validity),
            _detail_row("Renewal Status", _text(certification.renewal_status)),
            _detail_row("Alarm Alert", _text(certification.alarm_alert)),
            _detail_row("Address", _text(certification.address)),
        ]
    )

    sections = "\n".join(
        [
            SECTION_TEMPLATE.format(
                heading="Model List",
                background="#f3f4f6",
                content=_text(certification.model_list),
            ),
            SECTION_TEMPLATE.format(
                heading="Standard",
                background="#f3f4f6",
                content=_text(certification.standard),
            ),
            SECTION_TEMPLATE.format(
                heading="Action / Notes",
                background="#eef2ff",
                content=_text(certification.action),
            ),
            _attachment_section(certification, public_base_url, api_prefix),
        ]
    )

    html_body = EMAIL_TEMPLATE.format(
        title="Overdue Alert" if is_overdue else "Expiry Reminder",
        accent=accent,
        plant=_text(certification.plant),
        scheme=_text(certification.scheme),
        label=escape(milestone_label(bucket)),
        callout_background="#fef2f2" if is_overdue else "#fffbeb",
        callout_color="#7f1d1d" if is_overdue else "#7c2d12",
        callout=(
            "<b>Immediate action required.</b> This certification is expired. "
            "Please renew immediately."
            if is_overdue
            else "<b>Action needed.</b> Please initiate renewal to avoid "
            "compliance issues."
        ),
        detail_rows=detail_rows,
        sections=sections,
        footer=(
            "Overdue alerts are sent daily until the certification is updated."
            if is_overdue
            else "You will receive further reminders as expiry approaches."
        ),
    )

    return ComposedMessage(
        subject=build_subject(certification, bucket), html_body=html_body
    )
