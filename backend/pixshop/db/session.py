"""Engine and session factory configuration."""

from collections.abc import Generator
import logging

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, OperationalError
from sqlalchemy.orm import Session, sessionmaker

from pixshop.db.base import Base

logger = logging.getLogger(__name__)


def build_engine(database_url: str) -> Engine:
    """Create the engine for the configured database.

    Postgres gets a pre-pinged, recycled pool with TCP keepalives; SQLite
    (local runs and tests) only needs cross-thread access enabled.
    """
    if database_url.startswith("sqlite"):
        return create_engine(
            database_url,
            future=True,
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        echo=False,
        future=True,
        pool_pre_ping=True,  # Test connections before using
        pool_recycle=1800,  # Recycle connections after 30 minutes
        pool_size=5,
        max_overflow=10,
        connect_args={
            "connect_timeout": 10,
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
        },
    )


def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


def init_db(engine: Engine) -> None:
    """Create missing tables. Product rows themselves come from ingestion."""
    # Ensure models are imported so tables are registered
    from pixshop.db import models  # noqa: F401

    try:
        Base.metadata.create_all(bind=engine)
    except (OperationalError, DisconnectionError) as e:
        logger.error(f"Could not initialize database schema: {e}", exc_info=True)
        raise


def session_scope(factory: sessionmaker) -> Generator[Session, None, None]:
    """Yield a transactional session for a request lifecycle."""
    db = factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
