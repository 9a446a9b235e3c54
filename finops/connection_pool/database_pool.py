"""
Database connection pool for the operations store.
"""
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from finops.config.settings import DatabaseConfig
from finops.repositories.tables import Base

logger = logging.getLogger(__name__)


class DatabasePool:
    """
    Owns one async engine and its session factory.

    Constructed explicitly at startup and handed to the services that need
    it; nothing here is process-global.
    """

    def __init__(self, config: DatabaseConfig):
        """
        Initialize the pool.

        The engine connects lazily, so construction never touches the
        database.

        Args:
            config: Database configuration
        """
        self.config = config
        self._engine: Optional[AsyncEngine] = None
        self._session_factory: Optional[async_sessionmaker[AsyncSession]] = None

    @property
    def engine(self) -> AsyncEngine:
        if self._engine is None:
            self._engine = create_async_engine(self.config.url, **self._engine_options())
            logger.info(f"Created database engine for {self._engine.url.render_as_string(hide_password=True)}")
        return self._engine

    @property
    def session_factory(self) -> async_sessionmaker[AsyncSession]:
        if self._session_factory is None:
            self._session_factory = async_sessionmaker(
                self.engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
        return self._session_factory

    def _engine_options(self) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.config.echo}

        if self.config.url.startswith("sqlite"):
            # One shared connection so an in-memory database survives across sessions
            options["poolclass"] = StaticPool
            options["connect_args"] = {"check_same_thread": False}
            return options

        options.update(
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_recycle=self.config.pool_recycle,
            pool_pre_ping=True,
        )
        return options

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for a plain session (reads).

        Yields:
            Database session
        """
        async with self.session_factory() as session:
            yield session

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Context manager for a session inside one transaction.

        Commits when the block exits normally and rolls back when it raises.

        Yields:
            Database session
        """
        async with self.session_factory() as session:
            async with session.begin():
                yield session

    async def create_schema(self) -> None:
        """Create all tables that don't exist yet."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database schema ensured")

    async def close(self) -> None:
        """Dispose of the engine and all pooled connections."""
        if self._engine is not None:
            await self._engine.dispose()
            logger.info("Closed database connection pool")
        self._engine = None
        self._session_factory = None
