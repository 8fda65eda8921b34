import structlog
from decimal import Decimal

from sqlalchemy import JSON, Numeric
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from app.core.config import settings

logger = structlog.get_logger()

# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _make_engine(url: str, *, pool_size: int) -> AsyncEngine:
    return create_async_engine(
        url,
        echo=settings.APP_DEBUG,
        pool_size=pool_size,
        max_overflow=10,
        pool_pre_ping=True,               # Drop stale connections before use
        pool_recycle=1800,                 # Recycle connections every 30 min
        pool_timeout=30,
        connect_args={
            "server_settings": {
                "statement_timeout": "30000",                    # 30s max per SQL statement
                "idle_in_transaction_session_timeout": "60000",
                "lock_timeout": "10000",                         # target upserts contend on the unique key
            },
            "command_timeout": 30,
        },
    )


engine = _make_engine(settings.DATABASE_URL, pool_size=20)

async_session_factory = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

# ── Read replica (optional) ───────────────────────────────────────────────────
# Recommendation bundles are read-only; they go to the replica when configured.

if settings.DATABASE_URL_READ_REPLICA:
    _read_engine = _make_engine(settings.DATABASE_URL_READ_REPLICA, pool_size=15)
    logger.info("read_replica_configured")
else:
    _read_engine = engine

read_only_session_factory = async_sessionmaker(
    _read_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    type_annotation_map = {
        Decimal: Numeric(19, 4),
    }


async def get_db() -> AsyncSession:  # type: ignore[misc]
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def get_readonly_db() -> AsyncSession:  # type: ignore[misc]
    """Read-only session — routed to replica if DATABASE_URL_READ_REPLICA is set."""
    async with read_only_session_factory() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
