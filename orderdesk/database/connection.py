"""
Database connection management with SQLAlchemy async engine.

This module provides async database connection management using SQLAlchemy 2.0
with connection pooling, health checks and scoped sessions. A session scope
commits on success, rolls back on any error and is always closed, so each
service call acquires and releases its own connection.
"""

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import event, text
from sqlalchemy.exc import (
    DBAPIError,
    OperationalError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from orderdesk.core.config import get_settings
from orderdesk.core.logging import get_logger
from orderdesk.database.models import Base

logger = get_logger(__name__)

_engine: Optional[AsyncEngine] = None
_session_factory: Optional[async_sessionmaker[AsyncSession]] = None


def _convert_database_url_to_async(url: str) -> str:
    """
    Convert PostgreSQL URL to async format.

    Args:
        url: Database connection URL

    Returns:
        Async-compatible database URL with asyncpg driver
    """
    if url.startswith("postgresql://"):
        return url.replace("postgresql://", "postgresql+asyncpg://", 1)
    return url


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """
    Create async SQLAlchemy engine.

    PostgreSQL gets a sized connection pool. SQLite gets foreign key
    enforcement, and a single shared connection when it is in memory.

    Args:
        database_url: Optional override of the configured URL

    Returns:
        Configured async SQLAlchemy engine
    """
    settings = get_settings()
    database_url = _convert_database_url_to_async(database_url or settings.database_url)

    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url.rstrip("/").endswith("sqlite+aiosqlite:"):
            options["poolclass"] = StaticPool
        engine = create_async_engine(database_url, echo=settings.debug, **options)
        event.listen(engine.sync_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        engine = create_async_engine(
            database_url,
            echo=settings.debug,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
            pool_pre_ping=True,
            pool_recycle=3600,
            connect_args={
                "server_settings": {
                    "application_name": settings.app_name,
                },
                "command_timeout": 60,
                "timeout": 10,
            },
        )

    logger.info(
        "Database engine created",
        dialect=engine.dialect.name,
        environment=settings.environment,
    )

    return engine


def get_engine() -> AsyncEngine:
    """
    Get or create the global async database engine.

    Raises:
        RuntimeError: If engine initialization fails
    """
    global _engine

    if _engine is None:
        try:
            _engine = create_engine()
        except Exception as e:
            logger.error(
                "Failed to create database engine",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RuntimeError(f"Database engine initialization failed: {e}") from e

    return _engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Build a session factory bound to ``engine``."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """
    Get or create the global session factory.

    Raises:
        RuntimeError: If session factory initialization fails
    """
    global _session_factory

    if _session_factory is None:
        try:
            _session_factory = create_session_factory(get_engine())
            logger.info("Database session factory created")
        except Exception as e:
            logger.error(
                "Failed to create session factory",
                error=str(e),
                error_type=type(e).__name__,
            )
            raise RuntimeError(f"Session factory initialization failed: {e}") from e

    return _session_factory


@asynccontextmanager
async def get_session(
    session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
) -> AsyncGenerator[AsyncSession, None]:
    """
    Create async database session with automatic cleanup.

    Args:
        session_factory: Optional factory, defaults to the global one

    Yields:
        Async database session; committed if the block succeeds, rolled
        back if it raises, closed in every case
    """
    factory = session_factory or get_session_factory()
    session = factory()

    try:
        logger.debug("Database session created")
        yield session
        await session.commit()
        logger.debug("Database session committed")
    except Exception as e:
        await session.rollback()
        logger.warning(
            "Database session rolled back",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise
    finally:
        await session.close()
        logger.debug("Database session closed")


async def create_schema(engine: Optional[AsyncEngine] = None) -> None:
    """
    Create the ``orders`` and ``shipments`` tables if they do not exist.

    Args:
        engine: Optional engine, defaults to the global one
    """
    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured", tables=sorted(Base.metadata.tables))


async def check_database_health(max_retries: int = 3, retry_delay: float = 1.0) -> bool:
    """
    Check database connectivity with retry logic.

    Args:
        max_retries: Maximum number of connection attempts
        retry_delay: Delay between retries in seconds

    Returns:
        True if database is healthy, False otherwise
    """
    for attempt in range(max_retries):
        try:
            engine = get_engine()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
                logger.info("Database health check passed", attempt=attempt + 1)
                return True
        except (OperationalError, DBAPIError) as e:
            logger.warning(
                "Database health check failed",
                attempt=attempt + 1,
                max_retries=max_retries,
                error=str(e),
                error_type=type(e).__name__,
            )
            if attempt < max_retries - 1:
                await asyncio.sleep(retry_delay * (2**attempt))
        except SQLAlchemyError as e:
            logger.error(
                "Database health check failed - SQLAlchemy error",
                attempt=attempt + 1,
                max_retries=max_retries,
                error=str(e),
                error_type=type(e).__name__,
            )
            if attempt < max_retries - 1:
                await asyncio.sleep(retry_delay * (2**attempt))

    logger.error("Database health check failed after all retries", max_retries=max_retries)
    return False


async def close_database_connections() -> None:
    """
    Close all database connections and dispose of the engine.

    This should be called during application shutdown to ensure
    proper cleanup of database resources.
    """
    global _engine, _session_factory

    if _engine is not None:
        try:
            await _engine.dispose()
            logger.info("Database connections closed and engine disposed")
        finally:
            _engine = None
            _session_factory = None


async def initialize_database() -> None:
    """
    Initialize database connection, verify connectivity and create the schema.

    Raises:
        RuntimeError: If database initialization fails
    """
    logger.info("Initializing database connection")
    get_session_factory()

    is_healthy = await check_database_health(max_retries=5, retry_delay=2.0)
    if not is_healthy:
        raise RuntimeError("Database health check failed during initialization")

    try:
        await create_schema()
    except SQLAlchemyError as e:
        logger.error(
            "Database initialization failed",
            error=str(e),
            error_type=type(e).__name__,
        )
        raise RuntimeError(f"Failed to initialize database: {e}") from e
