from datetime import date
from typing import List

from sqlalchemy.orm import Session

from certtracker.db.models import (
    Certification,
    CertificationScheme,
    CertificationStatus,
)
from certtracker.utils.logging import get_logger

logger = get_logger()

PLANT_P2_ADDRESS = "Plot 8/B/1 and 8/B/2, Electronics City, Raviryala, Ranga Reddy, Telangana 501359"
PLANT_P4_ADDRESS = "Plots S-95 to S-104, Raviryala, Maheshwaram, Ranga Reddy 501359"


def default_certifications() -> List[Certification]:
    """Starter rows for an empty database"""
    return [
        Certification(
            sno=1,
            plant="Plant P2",
            address=PLANT_P2_ADDRESS,
            scheme=CertificationScheme.SCHEME_A,
            registration_no="R-63002356",
            status=CertificationStatus.ACTIVE,
            model_list="Monofacial M10: PE-XXXHM (XXX 520 to 555)\nDual Glass M10: PE-XXXHGB (XXX 525 to 550)",
            standard="IS 14286 : 2010, IS/IEC 61730 (Part 1 and 2) : 2004",
            validity_from=date(2021, 7, 29),
            validity_upto=date(2028, 7, 28),
            renewal_status="7/28/2028",
            alarm_alert="-",
            action="-",
        ),
        Certification(
            sno=2,
            plant="Plant P2",
            address=PLANT_P2_ADDRESS,
            scheme=CertificationScheme.SCHEME_B,
            registration_no="ID 1111296708",
            status=CertificationStatus.ACTIVE,
            model_list="TopCON Dual Glass M10: PEI-144-xxxTHGB-M10 (xxx 560 to 590)",
            standard="IEC 61215-1:2021\nIEC 61215-2:2021\nIEC 61730-1:2023\nIEC 61730-2:2023",
            validity_from=date(2025, 1, 24),
            validity_upto=date(2030, 1, 23),
        ),
        Certification(
            sno=3,
            plant="Plant P4",
            address=PLANT_P4_ADDRESS,
            scheme=CertificationScheme.SCHEME_A,
            registration_no="R-63003719",
            status=CertificationStatus.UNDER_PROCESS,
            model_list="Transparent M10: PEI-144-xxxHB-M10 (xxx 525 to 555)",
            standard="IS 14286 : 2010, IS/IEC 61730 (Part 1 and 2) : 2004",
            validity_from=date(2023, 12, 19),
            validity_upto=date(2025, 12, 18),
            action="Samples submitted. Certification expected in the third week of January 2026",
        ),
        Certification(
            sno=4,
            plant="Plant P5",
            address="S-95 to S-104 Part 1, Electronics City, Raviryala, Ranga Reddy 501359",
            scheme=CertificationScheme.SCHEME_A,
            registration_no="R-63004740",
            status=CertificationStatus.ACTIVE,
            model_list="TopCON Dual Glass G12R: PE-132-xxxTHGB-G12R (xxx 600 to 630)",
            standard="IS 14286 : 2010, IS/IEC 61730 (Part 1 and 2) : 2004",
            validity_from=date(2025, 1, 21),
            validity_upto=date(2027, 1, 9),
        ),
        Certification(
            sno=5,
            plant="Plant P6",
            address="303 to 306/2, Maheshwaram, Ranga Reddy",
            scheme=CertificationScheme.SCHEME_A,
            registration_no="R-63005460",
            status=CertificationStatus.ACTIVE,
            model_list="TopCON Dual Glass G12R: PE-132-xxxTHGB-G12R (xxx 600 to 630)",
            standard="IS 14286 (Part 1/Sec 1) : 2023, IS/IEC 61730-1 : 2016",
            validity_from=date(2025, 12, 11),
            validity_upto=date(2027, 12, 10),
        ),
        Certification(
            sno=6,
            plant="Plant P7",
            address="TBD",
            scheme=CertificationScheme.SCHEME_A,
            registration_no="TBD",
            status=CertificationStatus.PENDING,
            model_list="TBD",
            standard="TBD",
            action="Samples submitted. Certification expected in the third week of January 2026",
        ),
    ]


def seed_certifications(db_session: Session) -> int:
    """Add the default certifications; the caller commits"""
    certifications = default_certifications()
    db_session.add_all(certifications)
    logger.info(f"Seeded {len(certifications)} certifications")
    return len(certifications)
