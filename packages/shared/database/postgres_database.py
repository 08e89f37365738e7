"""
PostgreSQL database connection and session management.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from shared.config.postgres import PostgresConfig, postgres_config

logger = logging.getLogger(__name__)


class PostgresConnectionManager:
    """Owns the async engine and hands out request-scoped sessions."""

    def __init__(self, config: PostgresConfig | None = None):
        """Initialize connection manager with configuration."""
        self.config = config or postgres_config
        self._engine: AsyncEngine | None = None
        self._sessionmaker: async_sessionmaker[AsyncSession] | None = None

    @property
    def is_initialized(self) -> bool:
        return self._sessionmaker is not None

    async def initialize(self) -> None:
        """Initialize the database engine and session factory."""
        if self._engine:
            return

        connect_args = self.config.get_connect_args()
        if self.config.DB_POOL_SIZE == 0:
            self._engine = create_async_engine(
                self.config.async_database_url,
                echo=self.config.DB_ECHO,
                poolclass=NullPool,
                connect_args=connect_args,
            )
        else:
            self._engine = create_async_engine(
                self.config.async_database_url,
                echo=self.config.DB_ECHO,
                connect_args=connect_args,
                **self.config.get_pool_kwargs(),
            )

        async with self._engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Connected to PostgreSQL")

        self._sessionmaker = async_sessionmaker(
            self._engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    async def close(self) -> None:
        """Close the database engine."""
        if self._engine:
            await self._engine.dispose()
            self._engine = None
            self._sessionmaker = None

    @asynccontextmanager
    async def get_session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session with automatic cleanup.

        Services may commit intermediate stages themselves; whatever is still
        pending when the request finishes is committed here, and anything in
        flight when an exception escapes is rolled back.
        """
        if not self._sessionmaker:
            await self.initialize()

        if self._sessionmaker is None:
            raise RuntimeError("Database sessionmaker not initialized")
        async with self._sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except BaseException:
                # Includes asyncio.CancelledError from a disconnected client
                await session.rollback()
                raise


# Global connection manager instance
pg_connection_manager = PostgresConnectionManager()


async def get_postgres_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function to get PostgreSQL database session.

    Yields:
        AsyncSession: Database session for the request
    """
    async with pg_connection_manager.get_session() as session:
        yield session


async def check_postgres_connection() -> bool:
    """Check if PostgreSQL connection is available."""
    try:
        async with pg_connection_manager.get_session() as session:
            result = await session.execute(text("SELECT 1"))
            return result.scalar() == 1
    except Exception as e:
        logger.error("PostgreSQL connection check failed: %s", e)
        return False
