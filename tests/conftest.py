import os

# Settings are read at import time; the module-level engine is never used by the tests.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("CREATE_TABLES", "false")

import pytest
from typing import AsyncGenerator
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from shorturl.main import app
from shorturl.database import create_tables, get_session_factory
from shorturl.services.manager import ShortUrlManager
from shorturl.utils import CodeGenerator

@pytest.fixture
async def engine(tmp_path):
    # A file database, so concurrent sessions get their own connections
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'shorturl.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()

@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

@pytest.fixture
def manager(session_factory) -> ShortUrlManager:
    return ShortUrlManager(session_factory, generator=CodeGenerator(length=7, max_attempts=10))

@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    async with ASGITransport(app=app) as transport:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    app.dependency_overrides.clear()
