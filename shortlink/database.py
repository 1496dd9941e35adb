"""Record store handle and session management for the shortlink service.

This module provides the SQLAlchemy async engine setup wrapped in an explicit
``Database`` handle: ``Database.connect()`` either returns a live handle or
raises ``StoreUnavailableError``. The handle is created once per process (see
``shortlink.dependencies.ServiceManager``) and disposed on shutdown.

Flow Diagram — Database.connect()
=================================
::
    ┌─────────────┐
    │ connect(url) │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ Create async │
    │ engine       │
    └──────┬──────┘
           ▼
    ┌─────────────┐
    │ SELECT 1 +   │
    │ create_all   │
    └──────┬──────┘
    OK?    │
    ┌─────┴─────┐
    │ NO         │ YES
    ▼            ▼
┌─────────┐  ┌─────────┐
│ dispose │  │ Return  │
│ + raise │  │ handle  │
│ Store-  │  │         │
│ Unavail.│  │         │
└─────────┘  └─────────┘

How to Use
===========
**Step 1 — Open the handle on startup**::
    database = await Database.connect(settings.DATABASE_URL)

**Step 2 — Use a session per unit of work**::
    async with database.sessionmaker() as session:
        result = await session.execute(select(ShortLink))

**Step 3 — Cleanup on shutdown**::
    await database.close()

Key Behaviours
===============
- Connectivity is checked once while connecting; failure is fatal to startup.
- Tables are created on connect (no migrations are shipped).
- SQLite URLs skip pool sizing; in-memory SQLite shares one connection.
- Sessions keep attribute values after commit (expire_on_commit=False).

Classes:
    Base:  SQLAlchemy declarative base for all models.
    Database:  Process-wide store handle (engine + session factory).
"""

from collections.abc import AsyncGenerator
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.pool import StaticPool

from shortlink.exceptions import StoreUnavailableError

__all__ = ["Base", "Database"]


class Base(DeclarativeBase):
    pass


def _engine_options(database_url: str, pool_size: int, max_overflow: int) -> dict[str, Any]:
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return {"pool_size": pool_size, "max_overflow": max_overflow, "pool_pre_ping": True}
    if url.database in (None, "", ":memory:"):
        return {"poolclass": StaticPool, "connect_args": {"check_same_thread": False}}
    return {"connect_args": {"check_same_thread": False}}


class Database:
    """Live handle on the record store."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.sessionmaker = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @classmethod
    async def connect(
        cls,
        database_url: str,
        *,
        echo: bool = False,
        pool_size: int = 20,
        max_overflow: int = 10,
        create_tables: bool = True,
    ) -> "Database":
        """Open the store and verify it answers.

        Raises:
            StoreUnavailableError: If the engine cannot be created or the connectivity check fails.
        """
        # Registers ShortLink on Base.metadata before create_all.
        from shortlink import models  # noqa: F401

        try:
            engine = create_async_engine(
                database_url,
                echo=echo,
                **_engine_options(database_url, pool_size, max_overflow),
            )
        except (SQLAlchemyError, ImportError, ValueError) as exc:
            raise StoreUnavailableError(f"Invalid database configuration: {exc}") from exc

        try:
            async with engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                if create_tables:
                    await conn.run_sync(Base.metadata.create_all)
        except (SQLAlchemyError, OSError) as exc:
            await engine.dispose()
            safe_url = engine.url.render_as_string(hide_password=True)
            raise StoreUnavailableError(f"Database connection failed for {safe_url}: {exc}") from exc

        return cls(engine)

    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        async with self.sessionmaker() as session:
            try:
                yield session
            finally:
                await session.close()

    async def close(self) -> None:
        await self.engine.dispose()
