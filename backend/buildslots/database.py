import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    TimeoutError as PoolTimeoutError,
)
from sqlalchemy.orm import Session, sessionmaker

from .config import settings
from .errors import PersistenceUnavailableError

logger = logging.getLogger(__name__)


def create_db_engine(url: str, timeout_seconds: float = 5.0) -> Engine:
    """
    Build an engine with a bounded wait on locks / pool checkout.

    SQLite: check_same_thread=False for FastAPI worker threads,
    foreign keys enabled on every connection.
    """
    if url.startswith("sqlite"):
        engine = create_engine(
            url,
            connect_args={"check_same_thread": False, "timeout": timeout_seconds},
        )

        @event.listens_for(engine, "connect")
        def enable_sqlite_fk(dbapi_connection, _):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        url,
        pool_pre_ping=True,
        pool_timeout=timeout_seconds,
    )


engine = create_db_engine(settings.resolved_database_url, settings.db_timeout_seconds)

# SessionLocal — the main way to work with the DB
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine
)


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def persistence_guard(db: Session):
    """
    Roll back and raise PersistenceUnavailableError on infrastructure failures.

    IntegrityError is a data conflict, not an outage: it propagates unchanged.
    """
    try:
        yield
    except IntegrityError:
        raise
    except (OperationalError, InterfaceError, PoolTimeoutError) as e:
        db.rollback()
        logger.error(f"Booking store unavailable: {e}")
        raise PersistenceUnavailableError("Booking store is unavailable, try again later") from e
    except DBAPIError as e:
        if not e.connection_invalidated:
            raise
        db.rollback()
        logger.error(f"Booking store connection lost: {e}")
        raise PersistenceUnavailableError("Booking store is unavailable, try again later") from e
