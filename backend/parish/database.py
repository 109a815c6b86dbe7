"""SQLAlchemy engine, session factory, declarative base and transaction scope."""
import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from parish.config import settings
from parish.errors import AbortedError, ParishError

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str) -> Engine:
    """Create an engine; SQLite gets foreign keys, WAL and a busy timeout."""
    if not url.startswith("sqlite"):
        return create_engine(url, pool_pre_ping=True)

    engine = create_engine(
        url,
        connect_args={
            "check_same_thread": False,
            "timeout": settings.DB_LOCK_TIMEOUT_SECONDS,
        },
    )

    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    return engine


engine = build_engine(settings.DATABASE_URL)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def enum_values(enum_cls):
    """Persist enum values (not member names) in non-native Enum columns."""
    return [member.value for member in enum_cls]


@contextmanager
def transaction(db: Session, operation: str):
    """Run the block as one transaction and commit it.

    Domain errors roll back and propagate unchanged. Database faults roll back
    and surface as AbortedError. Anything else (including cancellation) rolls
    back and re-raises, so no partial write can survive.
    """
    try:
        yield db
        db.commit()
    except ParishError as exc:
        db.rollback()
        logger.info("%s rejected: %s", operation, exc.detail)
        raise
    except SQLAlchemyError:
        db.rollback()
        logger.exception("%s aborted by a database error", operation)
        raise AbortedError()
    except BaseException:
        db.rollback()
        raise
