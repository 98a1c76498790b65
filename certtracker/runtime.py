from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from certtracker.config.settings import Settings, settings as default_settings
from certtracker.db.session import Database
from certtracker.services.email.graph_email_gateway import (
    EmailGateway,
    GraphEmailGateway,
)
from certtracker.services.notifications import (
    AuditLogStore,
    CertificationSource,
    DailyNotificationScheduler,
    DeduplicationOracle,
    DispatchResult,
    NotificationDispatcher,
)
from certtracker.utils.datetime_utils import utc_now
from certtracker.utils.logging import get_logger

logger = get_logger()


class NotificationRuntime:
    """
    Process-wide resources: database, email gateway and settings.

    Built once by the API lifespan or lazily by a Celery worker process and
    disposed on shutdown.
    """

    def __init__(
        self,
        settings: Settings,
        database: Optional[Database] = None,
        email_gateway: Optional[EmailGateway] = None,
    ):
        self.settings = settings
        self.database = database or Database(settings)
        self.email_gateway = email_gateway or GraphEmailGateway.from_settings(settings)
        self.zone = ZoneInfo(settings.NOTIFICATION_TIMEZONE)
        self.scheduler = DailyNotificationScheduler(
            self.run_notifications,
            self.zone,
            settings.NOTIFICATION_TRIGGER_HOUR,
        )

    def build_dispatcher(self, db_session: Session) -> NotificationDispatcher:
        audit_log = AuditLogStore(
            db_session, error_max_length=self.settings.AUDIT_ERROR_MAX_LENGTH
        )
        return NotificationDispatcher(
            source=CertificationSource(db_session),
            oracle=DeduplicationOracle(audit_log, self.zone),
            audit_log=audit_log,
            email_gateway=self.email_gateway,
            zone=self.zone,
            public_base_url=self.settings.PUBLIC_BASE_URL or None,
            api_prefix=self.settings.API_PREFIX,
            default_domain=self.settings.EMAIL_DEFAULT_DOMAIN,
        )

    async def run_notifications(self, now=None) -> DispatchResult:
        """Run one dispatcher pass in a fresh session"""
        with self.database.session_scope() as db_session:
            dispatcher = self.build_dispatcher(db_session)
            return await dispatcher.run(now or utc_now())

    def dispose(self) -> None:
        logger.info("Disposing notification runtime")
        self.database.dispose()


_worker_runtime: Optional[NotificationRuntime] = None


def get_worker_runtime() -> NotificationRuntime:
    """Runtime for the current Celery worker process, built on first use"""
    global _worker_runtime
    if _worker_runtime is None:
        _worker_runtime = NotificationRuntime(default_settings)
    return _worker_runtime


def dispose_worker_runtime() -> None:
    global _worker_runtime
    if _worker_runtime is not None:
        _worker_runtime.dispose()
        _worker_runtime = None
