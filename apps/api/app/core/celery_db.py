"""Shared SQLAlchemy connection pool for Celery sync tasks.

The signal mapping batch runs inside Celery worker processes and cannot use
the async engine. One SYNC engine is created per worker process and reused
by every task invocation.
"""

from contextlib import contextmanager
from collections.abc import Generator

import structlog
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from app.core.config import settings

logger = structlog.get_logger()

# DATABASE_URL_SYNC may have been copied from the async URL
_sync_url = (
    str(settings.DATABASE_URL_SYNC)
    .replace("postgresql+asyncpg://", "postgresql://")
    .replace("+asyncpg", "")
)

_engine = create_engine(
    _sync_url,
    pool_size=5,
    max_overflow=5,
    pool_pre_ping=True,
    pool_recycle=1800,
    connect_args={
        "options": (
            "-c statement_timeout=60000 "
            "-c idle_in_transaction_session_timeout=120000"
        )
    },
)

_SessionFactory = sessionmaker(bind=_engine, expire_on_commit=False)


@contextmanager
def get_celery_db_session() -> Generator[Session, None, None]:
    """Yield a sync session; commit on clean exit, roll back on error.

    Usage::

        with get_celery_db_session() as session:
            repo = SignalRepository(session)
    """
    session: Session = _SessionFactory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
