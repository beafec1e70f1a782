"""
OEE Floor Dashboard - Database Layer

This module handles database connections and sessions for the OEE Floor
Dashboard API. It uses SQLAlchemy with async support against the existing
telemetry database (device samples stored as JSON documents).
"""

from typing import Any, AsyncGenerator, Dict, List, Optional, Union
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.sql.elements import TextClause
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_exponential
import structlog

from oee_dashboard.config import settings
from oee_dashboard.utils.exceptions import handle_database_exception, is_transient_database_error
from oee_dashboard.utils.metrics import TELEMETRY_READ_FAILURES

logger = structlog.get_logger()


# Database engine
async_engine: Optional[AsyncEngine] = None
async_session_factory: Optional[async_sessionmaker] = None


async def init_db() -> None:
    """Initialize database connections."""
    global async_engine, async_session_factory

    try:
        async_engine = create_async_engine(
            settings.DATABASE_URL,
            pool_size=settings.DATABASE_POOL_SIZE,
            max_overflow=settings.DATABASE_MAX_OVERFLOW,
            pool_pre_ping=True,
            echo=settings.DATABASE_ECHO,
        )

        async_session_factory = async_sessionmaker(
            async_engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

        await test_database_connection()

        logger.info("Database initialized successfully")

    except Exception as e:
        logger.error("Failed to initialize database", error=str(e))
        raise


async def close_db() -> None:
    """Close database connections."""
    global async_engine, async_session_factory

    try:
        if async_engine:
            await async_engine.dispose()
            logger.info("Async database engine disposed")

        async_engine = None
        async_session_factory = None

    except Exception as e:
        logger.error("Error closing database connections", error=str(e))


async def test_database_connection() -> None:
    """Test database connectivity."""
    if not async_engine:
        raise RuntimeError("Database not initialized. Call init_db() first.")
    try:
        async with async_engine.connect() as conn:
            result = await conn.execute(text("SELECT 1"))
            result.fetchone()
        logger.info("Database connection test successful")
    except Exception as e:
        logger.error("Database connection test failed", error=str(e))
        raise


@asynccontextmanager
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get a read session with automatic cleanup."""
    if not async_session_factory:
        raise RuntimeError("Database not initialized. Call init_db() first.")

    async with async_session_factory() as session:
        try:
            yield session
        finally:
            # Reads only; nothing to commit.
            await session.rollback()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting database session in FastAPI endpoints."""
    async with get_db_session() as session:
        yield session


# Database utility functions
@retry(
    retry=retry_if_exception(is_transient_database_error),
    stop=stop_after_attempt(settings.TELEMETRY_READ_RETRY_ATTEMPTS),
    wait=wait_exponential(multiplier=0.1, max=settings.TELEMETRY_READ_RETRY_MAX_WAIT),
    reraise=True,
)
async def _execute_with_retry(session: AsyncSession, statement: TextClause, params: Dict[str, Any]) -> list:
    try:
        result = await session.execute(statement, params)
    except Exception:
        # A failed statement leaves the session unusable until rolled back.
        await session.rollback()
        raise
    return list(result.mappings().all())


async def execute_query(
    session: AsyncSession,
    query: Union[str, TextClause],
    params: Optional[Dict[str, Any]] = None,
    source: str = "telemetry",
) -> List[Dict[str, Any]]:
    """Execute a raw SQL read and return rows as mappings.

    Transient connectivity errors are retried with exponential backoff. Any
    failure that remains is raised as TelemetryUnavailableError.
    """
    statement = text(query) if isinstance(query, str) else query
    try:
        return await _execute_with_retry(session, statement, params or {})
    except Exception as e:
        TELEMETRY_READ_FAILURES.labels(source=source).inc()
        logger.error("Database query execution failed",
                     source=source, query=str(statement)[:100], error=str(e))
        raise handle_database_exception(e, source) from e


# Database health check
async def check_database_health() -> dict:
    """Check database health and return status information."""
    try:
        await test_database_connection()

        return {
            "status": "healthy",
            "pool": await get_connection_pool_status(),
        }

    except Exception as e:
        logger.error("Database health check failed", error=str(e))
        return {
            "status": "unhealthy",
            "error": str(e)
        }


# Connection pool monitoring
async def get_connection_pool_status() -> dict:
    """Get connection pool status information."""
    if not async_engine:
        return {"error": "Database not initialized"}

    pool = async_engine.pool

    return {
        "pool_size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }
