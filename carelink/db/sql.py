# carelink/db/sql.py
from __future__ import annotations

import logging
from typing import Any, AsyncIterator

from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from carelink.core.config import settings
from carelink.db.base import Base

logger = logging.getLogger(__name__)


def _engine_kwargs(dsn: str) -> dict[str, Any]:
    kwargs: dict[str, Any] = {"echo": settings.DB_ECHO, "pool_pre_ping": True}
    # SQLite (dev/tests) does not take queue pool sizing
    if not dsn.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_timeout=settings.DB_POOL_TIMEOUT,
        )
    return kwargs


engine = create_async_engine(settings.SQL_DSN, **_engine_kwargs(settings.SQL_DSN))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
    autoflush=False,
    class_=AsyncSession,
)


async def get_session() -> AsyncIterator[AsyncSession]:
    """
    Provide a DB session for each request.
    Commit when the handler returns, roll back if it raises.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """
    Create tables that do not exist yet. Alembic owns schema changes in production.
    """
    # Import all models here so they get registered on Base.metadata
    from carelink.modules.users import models as _users  # noqa: F401
    from carelink.modules.doctors import models as _doctors  # noqa: F401
    from carelink.modules.appointments import models as _appointments  # noqa: F401
    from carelink.modules.prescriptions import models as _prescriptions  # noqa: F401
    from carelink.modules.reminders import models as _reminders  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ready (%d tables)", len(Base.metadata.tables))
