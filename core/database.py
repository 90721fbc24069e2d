"""
Recipedium Database Configuration
Async database setup with SQLAlchemy 2.0 behind an explicit, lazily connected handle
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy import MetaData, event, text
from contextlib import asynccontextmanager
from fastapi import Request
import asyncio
import structlog
from typing import AsyncGenerator, Optional

from core.exceptions import ServiceUnavailableError

logger = structlog.get_logger()


class Base(DeclarativeBase):
    """Base class for all database models"""

    metadata = MetaData(
        naming_convention={
            "ix": "ix_%(column_0_label)s",
            "uq": "uq_%(table_name)s_%(column_0_name)s",
            "ck": "ck_%(table_name)s_%(constraint_name)s",
            "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
            "pk": "pk_%(table_name)s"
        }
    )


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Connection handle owned by the application lifespan.

    The engine is created on the first call to connect() and reused for
    every request afterwards; dispose() releases it at shutdown.
    """

    def __init__(
        self,
        url: str,
        echo: bool = False,
        pool_size: int = 5,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        auto_create: bool = True,
    ):
        self.url = url
        self.echo = echo
        self.pool_size = pool_size
        self.max_overflow = max_overflow
        self.pool_timeout = pool_timeout
        self.auto_create = auto_create
        self.engine: Optional[AsyncEngine] = None
        self.session_factory: Optional[async_sessionmaker] = None
        self._lock: Optional[asyncio.Lock] = None

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")

    def _engine_options(self) -> dict:
        options = {"echo": self.echo, "pool_pre_ping": True}
        if not self.is_sqlite:
            options.update(
                pool_size=self.pool_size,
                max_overflow=self.max_overflow,
                pool_timeout=self.pool_timeout,
                pool_recycle=3600,
            )
        return options

    async def connect(self) -> None:
        """Create the engine and verify connectivity (no-op once connected)"""
        if self.engine is not None:
            return
        if self._lock is None:
            self._lock = asyncio.Lock()

        async with self._lock:
            if self.engine is not None:
                return

            # Register every model on Base.metadata before create_all
            import models  # noqa: F401

            engine = create_async_engine(self.url, **self._engine_options())
            if self.is_sqlite:
                event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)

            try:
                async with engine.begin() as conn:
                    if self.auto_create:
                        await conn.run_sync(Base.metadata.create_all)
                    else:
                        await conn.execute(text("SELECT 1"))
            except Exception as e:
                await engine.dispose()
                logger.error("Failed to initialize database", error=str(e))
                raise

            self.engine = engine
            self.session_factory = async_sessionmaker(
                engine,
                class_=AsyncSession,
                expire_on_commit=False,
                autoflush=False,
            )
            logger.info("Database connection initialized successfully")

    async def dispose(self) -> None:
        """Close database connections"""
        if self.engine is not None:
            await self.engine.dispose()
            self.engine = None
            self.session_factory = None
            logger.info("Database connections closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """
        Async context manager for database sessions
        Provides automatic transaction management and cleanup
        """
        if self.session_factory is None:
            raise RuntimeError("Database not connected. Call connect() first.")

        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> bool:
        """Check if database connection is healthy"""
        try:
            await self.connect()
            async with self.session() as session:
                result = await session.execute(text("SELECT 1"))
                return result.scalar() == 1
        except Exception as e:
            logger.error("Database health check failed", error=str(e))
            return False


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for FastAPI to get database session
    """
    database = get_database(request)
    try:
        await database.connect()
    except Exception as e:
        logger.error("Database unavailable for request", path=request.url.path, error=str(e))
        raise ServiceUnavailableError()

    async with database.session() as session:
        yield session


__all__ = [
    "Base",
    "Database",
    "get_database",
    "get_db",
]
