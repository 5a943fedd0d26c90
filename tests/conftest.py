import os

os.environ.setdefault("SQL_DSN", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("APP_ENV", "test")
os.environ.setdefault("DEBUG", "false")

from datetime import datetime  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from carelink.db.base import Base  # noqa: E402
from carelink.modules.users import models as _users  # noqa: E402,F401
from carelink.modules.doctors import models as _doctors  # noqa: E402,F401
from carelink.modules.appointments import models as _appointments  # noqa: E402,F401
from carelink.modules.prescriptions import models as _prescriptions  # noqa: E402,F401
from carelink.modules.reminders import models as _reminders  # noqa: E402,F401

REFERENCE_NOW = datetime(2024, 4, 30, 9, 0)


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_maker(engine):
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False, class_=AsyncSession)


@pytest_asyncio.fixture
async def session(session_maker):
    async with session_maker() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_maker):
    """
    HTTP client bound to the app; requests get their own session on the
    test engine and a fixed reference instant (2024-04-30 09:00).
    """
    from carelink.db.sql import get_session
    from carelink.dependencies import get_reference_instant
    from carelink.main import app

    async def _session_override():
        async with session_maker() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _session_override
    app.dependency_overrides[get_reference_instant] = lambda: REFERENCE_NOW
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
