import pytest
from datetime import date, datetime, timedelta, timezone
from typing import Generator
from unittest.mock import AsyncMock, Mock
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from certtracker.config.settings import Settings
from certtracker.db.models import (
    Base,
    Certification,
    CertificationScheme,
    CertificationStatus,
    Recipient,
)
from certtracker.db.session import Database
from certtracker.services.notifications import (
    AuditLogStore,
    CertificationSource,
    DeduplicationOracle,
    NotificationDispatcher,
)

# 2026-03-10 11:30 in Asia/Kolkata
NOW = datetime(2026, 3, 10, 6, 0, tzinfo=timezone.utc)
TODAY = date(2026, 3, 10)
IST = ZoneInfo("Asia/Kolkata")


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from the environment and any .env file."""
    return Settings(
        _env_file=None,
        ENVIRONMENT="test",
        DATABASE_URL="sqlite:///:memory:",
        EMAILS_DISABLED=True,
        EMAIL_DEFAULT_DOMAIN="example.com",
        PUBLIC_BASE_URL="https://certs.example.com",
    )


@pytest.fixture
def database(test_settings: Settings) -> Generator[Database, None, None]:
    """Fresh in-memory database per test."""
    database = Database(test_settings)
    Base.metadata.create_all(database.engine)
    yield database
    database.dispose()


@pytest.fixture
def db_session(database: Database) -> Generator[Session, None, None]:
    session = database.session_factory()
    yield session
    session.rollback()
    session.close()


@pytest.fixture
def email_gateway() -> Mock:
    """Email gateway that accepts every message."""
    gateway = Mock()
    gateway.send = AsyncMock(return_value=None)
    return gateway


@pytest.fixture
def audit_log(db_session: Session) -> AuditLogStore:
    return AuditLogStore(db_session, error_max_length=4000)


@pytest.fixture
def dispatcher(
    db_session: Session, audit_log: AuditLogStore, email_gateway: Mock
) -> NotificationDispatcher:
    return NotificationDispatcher(
        source=CertificationSource(db_session),
        oracle=DeduplicationOracle(audit_log, IST),
        audit_log=audit_log,
        email_gateway=email_gateway,
        zone=IST,
        public_base_url="https://certs.example.com",
        default_domain="example.com",
    )


# Test data factories
def add_certification(db_session: Session, **overrides) -> Certification:
    """Persist a single-scheme certification with sensible defaults."""
    values = dict(
        sno=1,
        plant="Plant P2",
        address="Plot 8, Electronics City",
        scheme=CertificationScheme.SCHEME_A,
        registration_no="R-63002356",
        status=CertificationStatus.ACTIVE,
        model_list="Dual Glass M10",
        standard="IS 14286",
        validity_from=date(2024, 1, 1),
        validity_upto=TODAY + timedelta(days=10),
    )
    values.update(overrides)
    certification = Certification(**values)
    db_session.add(certification)
    db_session.commit()
    db_session.refresh(certification)
    return certification


def add_recipient(
    db_session: Session, email: str = "alice@example.com", **overrides
) -> Recipient:
    values = dict(name=email.split("@")[0].title(), email=email, is_active=True)
    values.update(overrides)
    recipient = Recipient(**values)
    db_session.add(recipient)
    db_session.commit()
    db_session.refresh(recipient)
    return recipient


@pytest.fixture
def sample_recipient(db_session: Session) -> Recipient:
    return add_recipient(db_session)


@pytest.fixture
def sample_certification(db_session: Session) -> Certification:
    """Certification ten days from expiry (2-weeks bucket)."""
    return add_certification(db_session)
