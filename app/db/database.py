import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker, declarative_base

from app.core.config import settings
from app.core.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

# SQLite needs connect_args for FastAPI compatibility
is_sqlite = "sqlite" in settings.database_url
connect_args = {"check_same_thread": False} if is_sqlite else {}
engine = create_engine(settings.database_url, connect_args=connect_args, pool_pre_ping=not is_sqlite)

# Enable foreign key enforcement in SQLite (off by default)
if is_sqlite:
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

# Column widths. PostgreSQL enforces these, SQLite does not.
MIN_INTEGER = -(2**31)
MAX_INTEGER = 2**31 - 1
ID_LENGTH = 255
LABEL_LENGTH = 50


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_or_create(db: Session, model, *, defaults: dict | None = None, for_update: bool = False, **keys):
    """Return ``(instance, created)`` for the row matching ``keys``.

    A missing row is inserted inside a SAVEPOINT. If a concurrent request
    inserts the same unique key first, the savepoint is rolled back and the
    winner's row is returned instead.
    """
    query = db.query(model).filter_by(**keys)
    if for_update:
        query = query.with_for_update()

    instance = query.first()
    if instance is not None:
        return instance, False

    instance = model(**keys, **(defaults or {}))
    try:
        with db.begin_nested():
            db.add(instance)
            db.flush()
    except IntegrityError:
        logger.info("Lost create race for %s %s, re-reading", model.__tablename__, keys)
        return query.one(), False
    return instance, True


@contextmanager
def storage_guard(db: Session, operation: str):
    """Roll back and re-raise store failures as ``StorageUnavailable``."""
    try:
        yield
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Storage failure during %s: %s", operation, exc)
        raise StorageUnavailable(f"Storage unavailable during {operation}") from exc
