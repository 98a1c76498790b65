import pytest
from datetime import date, datetime
from unittest.mock import patch

from sqlalchemy import func, select

from certtracker.db.models import (
    Certification,
    CertificationScheme,
    DeliveryOutcome,
    NotificationAuditRecord,
    NotificationKind,
    Recipient,
)
from certtracker.db.seeds.main import reseed_database, seed_if_empty
from certtracker.schemas.certification_schemas import CreateCertificationRequest

from tests.conftest import add_certification, add_recipient


def count(db_session, model):
    return db_session.execute(select(func.count()).select_from(model)).scalar()


@pytest.mark.integration
class TestSeedIfEmpty:
    def test_seeds_empty_database(self, db_session):
        assert seed_if_empty(db_session) is True
        assert count(db_session, Certification) == 6

    def test_leaves_existing_data_alone(self, db_session):
        add_certification(db_session)

        assert seed_if_empty(db_session) is False
        assert count(db_session, Certification) == 1


@pytest.mark.integration
class TestReseedDatabase:
    """Destructive reseed inside one transaction"""

    def test_replaces_all_data_with_defaults_and_imports(self, db_session):
        cert = add_certification(db_session, sno=40, plant="Old Plant")
        add_recipient(db_session)
        db_session.add(
            NotificationAuditRecord(
                certification_id=cert.id,
                recipient_email="alice@example.com",
                kind=NotificationKind.REMINDER,
                milestone_key="SCHEME_A:week",
                sent_at=datetime(2026, 3, 1, 4, 0),
                outcome=DeliveryOutcome.SENT,
            )
        )
        db_session.commit()

        imported = [
            CreateCertificationRequest(
                plant="Plant P8",
                scheme=CertificationScheme.SCHEME_B,
                registration_no="ID 1234",
                validity_upto=date(2027, 5, 1),
            ),
            CreateCertificationRequest(
                sno=20, plant="Plant P9", registration_no="R-777"
            ),
        ]

        written = reseed_database(db_session, imported)

        assert written == 8
        assert count(db_session, NotificationAuditRecord) == 0
        assert count(db_session, Recipient) == 0
        plants = db_session.execute(
            select(Certification.sno, Certification.plant).order_by(Certification.sno)
        ).all()
        assert "Old Plant" not in [plant for _, plant in plants]
        assert plants[-2:] == [(7, "Plant P8"), (20, "Plant P9")]

    def test_failure_rolls_back_and_keeps_prior_data(self, db_session):
        add_certification(db_session, plant="Keep Me")
        add_recipient(db_session)

        with patch(
            "certtracker.db.seeds.main.build_certification",
            side_effect=RuntimeError("bad import row"),
        ):
            with pytest.raises(RuntimeError):
                reseed_database(
                    db_session,
                    [CreateCertificationRequest(plant="Plant P8", registration_no="X")],
                )

        plants = db_session.execute(select(Certification.plant)).scalars().all()
        assert plants == ["Keep Me"]
        assert count(db_session, Recipient) == 1
