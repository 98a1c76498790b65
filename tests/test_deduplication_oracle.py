import pytest
from datetime import datetime
from unittest.mock import patch

from sqlalchemy.exc import SQLAlchemyError

from certtracker.db.models import DeliveryOutcome, NotificationKind
from certtracker.services.notifications import (
    AuditEntry,
    AuditLogStore,
    DeduplicationOracle,
)
from certtracker.utils.errors import DatabaseError

from tests.conftest import IST, TODAY, add_certification


def entry(certification_id, key, kind, outcome, sent_at, email="alice@example.com"):
    return AuditEntry(
        certification_id=certification_id,
        recipient_email=email,
        kind=kind,
        milestone_key=key,
        sent_at=sent_at,
        outcome=outcome,
        error="boom" if outcome is DeliveryOutcome.FAILED else None,
    )


@pytest.fixture
def oracle(audit_log: AuditLogStore) -> DeduplicationOracle:
    return DeduplicationOracle(audit_log, IST)


@pytest.mark.unit
class TestAuditLogStore:
    """Append-only writes and latest-sent lookups"""

    @pytest.mark.asyncio
    async def test_append_many_persists_rows(self, db_session, audit_log):
        cert = add_certification(db_session)
        records = await audit_log.append_many(
            [
                entry(cert.id, "SCHEME_A:week", NotificationKind.REMINDER,
                      DeliveryOutcome.SENT, datetime(2026, 3, 1, 4, 0), email=email)
                for email in ("a@example.com", "b@example.com")
            ]
        )

        assert len(records) == 2
        assert len(await audit_log.list_records(cert.id)) == 2

    @pytest.mark.asyncio
    async def test_append_many_with_no_entries_is_a_no_op(self, audit_log):
        assert await audit_log.append_many([]) == []

    @pytest.mark.asyncio
    async def test_error_is_truncated(self, db_session):
        cert = add_certification(db_session)
        store = AuditLogStore(db_session, error_max_length=10)
        record = await store.append(
            AuditEntry(
                certification_id=cert.id,
                recipient_email="alice@example.com",
                kind=NotificationKind.REMINDER,
                milestone_key="SCHEME_A:week",
                sent_at=datetime(2026, 3, 1, 4, 0),
                outcome=DeliveryOutcome.FAILED,
                error="x" * 50,
            )
        )

        assert record.error == "x" * 10

    @pytest.mark.asyncio
    async def test_find_latest_sent_ignores_failed_rows(self, db_session, audit_log):
        cert = add_certification(db_session)
        await audit_log.append_many(
            [
                entry(cert.id, "SCHEME_A:overdue", NotificationKind.OVERDUE,
                      DeliveryOutcome.SENT, datetime(2026, 3, 5, 4, 0)),
                entry(cert.id, "SCHEME_A:overdue", NotificationKind.OVERDUE,
                      DeliveryOutcome.SENT, datetime(2026, 3, 8, 4, 0)),
                entry(cert.id, "SCHEME_A:overdue", NotificationKind.OVERDUE,
                      DeliveryOutcome.FAILED, datetime(2026, 3, 9, 4, 0)),
            ]
        )

        latest = await audit_log.find_latest_sent(
            cert.id, "alice@example.com", "SCHEME_A:overdue"
        )

        assert latest.sent_at == datetime(2026, 3, 8, 4, 0)

    @pytest.mark.asyncio
    async def test_commit_failure_raises_database_error(self, db_session, audit_log):
        cert = add_certification(db_session)

        with patch.object(
            db_session, "commit", side_effect=SQLAlchemyError("disk full")
        ):
            with pytest.raises(DatabaseError) as exc_info:
                await audit_log.append(
                    entry(cert.id, "SCHEME_A:week", NotificationKind.REMINDER,
                          DeliveryOutcome.SENT, datetime(2026, 3, 1, 4, 0))
                )

        assert exc_info.value.error_code == "AUDIT_WRITE_FAILED"


@pytest.mark.unit
class TestDeduplicationOracle:
    """Reminders suppress forever, overdue alerts suppress for the local day"""

    @pytest.mark.asyncio
    async def test_owed_without_history(self, db_session, oracle):
        cert = add_certification(db_session)

        assert await oracle.is_owed(
            cert.id, "alice@example.com", "SCHEME_A:2-weeks",
            NotificationKind.REMINDER, TODAY,
        )

    @pytest.mark.asyncio
    async def test_reminder_sent_once_is_never_owed_again(
        self, db_session, audit_log, oracle
    ):
        cert = add_certification(db_session)
        await audit_log.append(
            entry(cert.id, "SCHEME_A:2-weeks", NotificationKind.REMINDER,
                  DeliveryOutcome.SENT, datetime(2025, 1, 1, 4, 0))
        )

        assert not await oracle.is_owed(
            cert.id, "alice@example.com", "SCHEME_A:2-weeks",
            NotificationKind.REMINDER, TODAY,
        )

    @pytest.mark.asyncio
    async def test_reminder_for_other_milestone_or_recipient_is_still_owed(
        self, db_session, audit_log, oracle
    ):
        cert = add_certification(db_session)
        await audit_log.append(
            entry(cert.id, "SCHEME_A:month", NotificationKind.REMINDER,
                  DeliveryOutcome.SENT, datetime(2026, 2, 20, 4, 0))
        )

        assert await oracle.is_owed(
            cert.id, "alice@example.com", "SCHEME_A:2-weeks",
            NotificationKind.REMINDER, TODAY,
        )
        assert await oracle.is_owed(
            cert.id, "bob@example.com", "SCHEME_A:month",
            NotificationKind.REMINDER, TODAY,
        )

    @pytest.mark.asyncio
    async def test_failed_attempts_never_suppress(self, db_session, audit_log, oracle):
        cert = add_certification(db_session)
        await audit_log.append(
            entry(cert.id, "SCHEME_A:2-weeks", NotificationKind.REMINDER,
                  DeliveryOutcome.FAILED, datetime(2026, 3, 10, 4, 0))
        )

        assert await oracle.is_owed(
            cert.id, "alice@example.com", "SCHEME_A:2-weeks",
            NotificationKind.REMINDER, TODAY,
        )

    @pytest.mark.asyncio
    async def test_overdue_sent_yesterday_is_owed_today(
        self, db_session, audit_log, oracle
    ):
        cert = add_certification(db_session)
        # 2026-03-09 09:30 IST
        await audit_log.append(
            entry(cert.id, "SCHEME_A:overdue", NotificationKind.OVERDUE,
                  DeliveryOutcome.SENT, datetime(2026, 3, 9, 4, 0))
        )

        assert await oracle.is_owed(
            cert.id, "alice@example.com", "SCHEME_A:overdue",
            NotificationKind.OVERDUE, TODAY,
        )

    @pytest.mark.asyncio
    async def test_overdue_sent_today_in_local_time_is_not_owed(
        self, db_session, audit_log, oracle
    ):
        cert = add_certification(db_session)
        # 20:00 UTC on the 9th is 01:30 IST on the 10th
        await audit_log.append(
            entry(cert.id, "SCHEME_A:overdue", NotificationKind.OVERDUE,
                  DeliveryOutcome.SENT, datetime(2026, 3, 9, 20, 0))
        )

        assert not await oracle.is_owed(
            cert.id, "alice@example.com", "SCHEME_A:overdue",
            NotificationKind.OVERDUE, TODAY,
        )
