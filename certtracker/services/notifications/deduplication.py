from datetime import date
from zoneinfo import ZoneInfo

from certtracker.db.models import NotificationKind
from certtracker.services.notifications.audit_log import AuditLogStore
from certtracker.utils.datetime_utils import local_date


class DeduplicationOracle:
    """
    Decides whether a recipient is still owed a notification.

    Only successful deliveries suppress; failed attempts are retried on the
    next run.

    - reminder: owed until one ``sent`` row exists for the exact
      (certification, recipient, milestone key), ever.
    - overdue: owed unless the latest ``sent`` row for the tuple falls on
      today's local calendar date (or later).
    """

    def __init__(self, audit_log: AuditLogStore, zone: ZoneInfo):
        self.audit_log = audit_log
        self.zone = zone

    async def is_owed(
        self,
        certification_id: str,
        recipient_email: str,
        milestone_key: str,
        kind: NotificationKind,
        today: date,
    ) -> bool:
        latest = await self.audit_log.find_latest_sent(
            certification_id, recipient_email, milestone_key, kind
        )
        if latest is None:
            return True

        if kind is NotificationKind.REMINDER:
            return False

        return local_date(latest.sent_at, self.zone) < today
