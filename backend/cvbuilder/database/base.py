"""Database engine, session factory, and base model."""

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import QueuePool

from ..config import settings


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        # local runs and tests: one file (or memory) database, no pool tuning
        return {"connect_args": {"check_same_thread": False}}
    return {"poolclass": QueuePool, "pool_size": 5, "max_overflow": 10, "pool_pre_ping": True}


engine = create_engine(settings.database_url, **_engine_options(settings.database_url))

SessionLocal = sessionmaker(bind=engine)


class Base(DeclarativeBase):
    pass


def get_db() -> Generator[Session, None, None]:
    """Request-scoped session; routes commit explicitly."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Generator[Session, None, None]:
    """Session for work outside a request: commit on success, roll back on error."""
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
