from sqlalchemy.engine import Engine

from certtracker.config.settings import settings
from certtracker.utils.logging import get_logger

from .models import Base
from .seeds.main import reseed_database, seed_if_empty
from .session import Database

logger = get_logger()


def create_tables(engine: Engine):
    Base.metadata.create_all(engine)
    logger.info("Created all tables.")


def drop_tables(engine: Engine):
    Base.metadata.drop_all(engine)
    logger.info("Dropped all tables.")


def init_database(database: Database):
    """Create missing tables and seed defaults into an empty database"""
    create_tables(database.engine)
    with database.session_scope() as db_session:
        if seed_if_empty(db_session):
            logger.info("Seeded default certifications into empty database.")


def reset_db(database: Database):
    logger.info("Resetting database...")
    drop_tables(database.engine)
    create_tables(database.engine)
    with database.session_scope() as db_session:
        reseed_database(db_session)
    logger.info("Database reset complete.")


if __name__ == "__main__":
    database = Database(settings)
    try:
        reset_db(database)
    finally:
        database.dispose()
