from contextlib import contextmanager
from typing import Iterator, Optional

from fastapi import Request
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from certtracker.config.settings import Settings


def build_engine(settings: Settings) -> Engine:
    """Create the pooled engine for ``settings.DATABASE_URL``."""
    url = str(settings.DATABASE_URL)

    if url.startswith("sqlite"):
        engine_kwargs = {
            "connect_args": {
                "check_same_thread": False,
                "timeout": settings.DATABASE_CONNECT_TIMEOUT,
            },
        }
        if ":memory:" in url or url.rstrip("/") == "sqlite:":
            engine_kwargs["poolclass"] = StaticPool
        engine = create_engine(url, echo=False, **engine_kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=20,
        pool_pre_ping=True,
        pool_recycle=3600,
        connect_args={"timeout": settings.DATABASE_CONNECT_TIMEOUT},
        isolation_level="READ COMMITTED",
        echo=False,
    )


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """Owns the engine and session factory for one process."""

    def __init__(self, settings: Settings, engine: Optional[Engine] = None):
        self.engine = engine or build_engine(settings)
        self.session_factory = sessionmaker(
            bind=self.engine, class_=Session, expire_on_commit=False
        )

    def session(self) -> Iterator[Session]:
        """Yield a session, rolling back on error and always closing it"""
        db = self.session_factory()
        try:
            yield db
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        yield from self.session()

    def dispose(self) -> None:
        self.engine.dispose()


def get_sync_session(request: Request) -> Iterator[Session]:
    """Dependency to get sync database session"""
    database: Database = request.app.state.runtime.database
    yield from database.session()
