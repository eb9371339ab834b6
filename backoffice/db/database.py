"""
Engine and session handling for the back office database.

Routes and the loader receive a request-scoped session through
``get_db``; scripts use ``get_db_context`` which commits on success.
"""

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from backoffice.config import get_settings
from backoffice.db.models import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """Create an engine suited to the backend named in the URL."""
    if database_url.startswith("sqlite"):
        # Sessions cross threads under the ASGI server
        return create_engine(
            database_url, echo=echo, connect_args={"check_same_thread": False}
        )
    # Pooling is left to the hosted Postgres proxy
    return create_engine(database_url, echo=echo, poolclass=NullPool)


settings = get_settings()
engine = build_engine(settings.database_url, echo=settings.debug)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db() -> None:
    """Create every back office table that does not exist yet."""
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready on %s", engine.url.render_as_string(hide_password=True))


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a session closed after the request."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """Session for scripts: commit on success, roll back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
