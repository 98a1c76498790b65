from .audit_log import AuditEntry, AuditLogStore
from .certification_source import (
    CertificationRecord,
    CertificationSource,
    CombinedLegacyRecord,
    SchemeCertification,
    SingleSchemeRecord,
    expand_record,
    to_record,
)
from .composer import ComposedMessage, compose
from .deduplication import DeduplicationOracle
from .dispatcher import DispatchResult, NotificationDispatcher
from .expiry import ExpiryBucket, ExpiryCalculator, classify, milestone_key
from .scheduler import DailyNotificationScheduler

__all__ = [
    "AuditEntry",
    "AuditLogStore",
    "CertificationRecord",
    "CertificationSource",
    "CombinedLegacyRecord",
    "SchemeCertification",
    "SingleSchemeRecord",
    "expand_record",
    "to_record",
    "ComposedMessage",
    "compose",
    "DeduplicationOracle",
    "DispatchResult",
    "NotificationDispatcher",
    "ExpiryBucket",
    "ExpiryCalculator",
    "classify",
    "milestone_key",
    "DailyNotificationScheduler",
]
