"""Engine and session handling for the training store."""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import config
from .models import Base

logger = logging.getLogger(__name__)


def _engine_options(database_url: str, echo: bool) -> dict:
    options = {"echo": echo}
    if database_url.startswith("sqlite"):
        # One shared connection, so :memory: databases survive across sessions
        options.update(connect_args={"check_same_thread": False}, poolclass=StaticPool)
    return options


class Database:
    """Owns the engine and hands out transactional sessions.

    Args:
        database_url: SQLAlchemy URL, defaults to Config.DATABASE_URL
        create: Create missing tables right away
    """

    def __init__(self, database_url: Optional[str] = None, create: bool = False):
        self.database_url = database_url or config.DATABASE_URL
        self.engine = create_engine(self.database_url, **_engine_options(self.database_url, config.DATABASE_ECHO))
        # Records are converted to domain objects after the session closes
        self.SessionLocal = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        logger.debug(f"Opened training store at {self.engine.url.render_as_string(hide_password=True)}")

        if create:
            self.create_tables()

    def create_tables(self):
        """Create the profile, log and plan tables if they are missing."""
        Base.metadata.create_all(bind=self.engine)

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on any error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        self.engine.dispose()


_db: Optional[Database] = None


def get_db() -> Database:
    """Process-wide store at Config.DATABASE_URL, created on first use."""
    global _db
    if _db is None:
        _db = Database(create=True)
    return _db


def close_db():
    global _db
    if _db is not None:
        _db.close()
        _db = None
