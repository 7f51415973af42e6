"""Explicit record-store connection: one engine per StoreConnection instance."""

from __future__ import annotations

import logging

from sqlalchemy import text
from sqlalchemy.exc import ArgumentError, DBAPIError, InvalidRequestError, OperationalError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from tracker.config import Settings
from tracker.exceptions import ConnectivityError

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class StoreConnection:
    """Owns the async engine and session factory for one runner.

    Nothing is opened until ``connect()``; ``close()`` disposes the pool.
    """

    def __init__(self, settings: Settings) -> None:
        self.settings = settings
        self._engine: AsyncEngine | None = None
        self._session_factory: async_sessionmaker[AsyncSession] | None = None

    async def connect(self) -> None:
        if self._engine is not None:
            return
        s = self.settings
        try:
            engine = create_async_engine(
                s.database_url,
                echo=s.echo_sql,
                pool_size=s.pool_size,
                max_overflow=s.max_overflow,
                # Validate connections before use; drops stale connections from the pool.
                pool_pre_ping=True,
                pool_recycle=s.pool_recycle,
                pool_timeout=s.pool_timeout,
                # Transaction poolers don't support PREPARE statements.
                connect_args={
                    "statement_cache_size": 0,
                    "prepared_statement_cache_size": 0,
                    "timeout": s.connect_timeout,
                },
            )
        except (ArgumentError, InvalidRequestError) as exc:
            # Malformed URL, unknown dialect, or a sync-only driver.
            raise ConnectivityError(f"Invalid DATABASE_URL: {exc}") from exc

        try:
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
        except (OperationalError, DBAPIError, OSError) as exc:
            await engine.dispose()
            raise ConnectivityError(f"Could not connect to the record store: {exc}") from exc

        self._engine = engine
        self._session_factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
        logger.info("Connected to record store")

    def session(self) -> AsyncSession:
        if self._session_factory is None:
            raise ConnectivityError("Record store is not connected")
        return self._session_factory()

    async def close(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("Record store connection closed")

    async def __aenter__(self) -> "StoreConnection":
        await self.connect()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()
