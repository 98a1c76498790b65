from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from certtracker.db.models import DeliveryOutcome, Recipient
from certtracker.services.email.graph_email_gateway import EmailGateway
from certtracker.services.notifications.audit_log import AuditEntry, AuditLogStore
from certtracker.services.notifications.certification_source import (
    CertificationSource,
    SchemeCertification,
    expand_record,
)
from certtracker.services.notifications.composer import compose
from certtracker.services.notifications.deduplication import DeduplicationOracle
from certtracker.services.notifications.expiry import (
    ExpiryBucket,
    classify,
    milestone_key,
    notification_kind,
)
from certtracker.utils.datetime_utils import local_date, to_naive_utc
from certtracker.utils.errors import DatabaseError
from certtracker.utils.logging import get_logger
from certtracker.utils.string_utils import normalize_email_addresses

logger = get_logger()

NO_RECIPIENTS = "no_recipients"


@dataclass
class DispatchResult:
    sent: int = 0
    skipped: int = 0
    reason: Optional[str] = None

    def to_dict(self) -> dict:
        result = {"sent": self.sent, "skipped": self.skipped}
        if self.reason:
            result["reason"] = self.reason
        return result


class NotificationDispatcher:
    """
    One pass over every certification: classify, deduplicate, send, audit.

    ``sent`` counts certifications that produced a successful batch send;
    ``skipped`` counts certifications that were safe, owed to nobody, had no
    populated scheme, or failed outside persistence. Delivery failures are
    audited as ``failed`` and count towards neither.
    """

    def __init__(
        self,
        source: CertificationSource,
        oracle: DeduplicationOracle,
        audit_log: AuditLogStore,
        email_gateway: EmailGateway,
        zone: ZoneInfo,
        public_base_url: Optional[str] = None,
        api_prefix: str = "/api/v1",
        default_domain: Optional[str] = None,
    ):
        self.source = source
        self.oracle = oracle
        self.audit_log = audit_log
        self.email_gateway = email_gateway
        self.zone = zone
        self.public_base_url = public_base_url
        self.api_prefix = api_prefix
        self.default_domain = default_domain

    async def run(self, now: datetime) -> DispatchResult:
        result = DispatchResult()

        recipients = await self.source.list_active_recipients()
        if not recipients:
            logger.info("Notification run skipped: no active recipients")
            result.reason = NO_RECIPIENTS
            return result

        today = local_date(now, self.zone)
        records = await self.source.list_certification_records()

        for record in records:
            certifications = expand_record(record)
            if not certifications:
                result.skipped += 1
                continue

            for certification in certifications:
                try:
                    delivered = await self._process(
                        certification, recipients, now, today
                    )
                except (DatabaseError, SQLAlchemyError):
                    raise
                except Exception as e:
                    logger.exception(
                        f"Error processing certification {certification.certification_id} "
                        f"({certification.scheme}): {e}"
                    )
                    result.skipped += 1
                    continue

                if delivered is None:
                    result.skipped += 1
                elif delivered:
                    result.sent += 1

        logger.info(
            f"Notification run for {today.isoformat()} completed: "
            f"sent={result.sent} skipped={result.skipped}"
        )
        return result

    async def _owed_recipients(
        self,
        certification: SchemeCertification,
        recipients: List[Recipient],
        bucket: ExpiryBucket,
        today: date,
    ) -> List[Recipient]:
        key = milestone_key(certification.scheme, bucket)
        kind = notification_kind(bucket)
        owed = []
        for recipient in recipients:
            if await self.oracle.is_owed(
                certification.certification_id, recipient.email, key, kind, today
            ):
                owed.append(recipient)
        return owed

    async def _process(
        self,
        certification: SchemeCertification,
        recipients: List[Recipient],
        now: datetime,
        today: date,
    ) -> Optional[bool]:
        """
        Handle one virtual certification.

        Returns None when nothing was due, True after a successful send and
        False after a failed one.
        """
        bucket = classify(certification.validity_upto, today)
        if bucket is ExpiryBucket.SAFE:
            return None

        owed = await self._owed_recipients(certification, recipients, bucket, today)
        if not owed:
            return None

        message = compose(
            certification,
            bucket,
            public_base_url=self.public_base_url,
            api_prefix=self.api_prefix,
        )
        addresses = normalize_email_addresses(
            [recipient.email for recipient in owed], self.default_domain
        )

        key = milestone_key(certification.scheme, bucket)
        kind = notification_kind(bucket)

        try:
            await self.email_gateway.send(addresses, message.subject, message.html_body)
        except Exception as e:
            logger.error(
                f"Delivery failed for certification {certification.certification_id} "
                f"({key}) to {len(owed)} recipient(s): {e}"
            )
            attempted_at = to_naive_utc(now)
            await self.audit_log.append_many(
                AuditEntry(
                    certification_id=certification.certification_id,
                    recipient_email=recipient.email,
                    kind=kind,
                    milestone_key=key,
                    sent_at=attempted_at,
                    outcome=DeliveryOutcome.FAILED,
                    error=str(e) or e.__class__.__name__,
                )
                for recipient in owed
            )
            return False

        sent_at = to_naive_utc(now)
        await self.audit_log.append_many(
            AuditEntry(
                certification_id=certification.certification_id,
                recipient_email=recipient.email,
                kind=kind,
                milestone_key=key,
                sent_at=sent_at,
                outcome=DeliveryOutcome.SENT,
            )
            for recipient in owed
        )
        return True
