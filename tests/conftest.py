"""Shared pytest fixtures for API, service and database tests."""

import logging
import os
from types import SimpleNamespace
from typing import AsyncGenerator

# Must be set before shortlink.config caches its settings.
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["APP_ENV"] = "test"
os.environ["BASE_URL"] = "http://sho.rt"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from shortlink.config import Settings, get_settings
from shortlink.database import Database
from shortlink.dependencies import get_db
from shortlink.main import app
from shortlink.service import ShortLinkService

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture
def settings() -> Settings:
    return get_settings()


@pytest_asyncio.fixture(scope="function")
async def database() -> AsyncGenerator[Database, None]:
    db = await Database.connect(TEST_DATABASE_URL)
    yield db
    await db.close()


@pytest_asyncio.fixture(scope="function")
async def db_session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    async with database.sessionmaker() as session:
        yield session


@pytest.fixture
def service(db_session: AsyncSession, settings: Settings) -> ShortLinkService:
    # Stand-in for RequestContext carrying what the service reads.
    ctx = SimpleNamespace(
        database=db_session,
        logger=logging.getLogger("shortlink.tests"),
        settings=settings,
    )
    return ShortLinkService(ctx)


@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
