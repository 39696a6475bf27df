import asyncio
import logging
from functools import wraps
from typing import Callable, TypeVar, Any, AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.orm.exc import StaleDataError
from sqlalchemy.sql import text
from sqlalchemy.exc import (
    SQLAlchemyError,
    OperationalError,
    DisconnectionError,
    TimeoutError,
)
from asyncpg.exceptions import (
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)

from .config import DATABASE_URL, DB_RETRY_ATTEMPTS, DB_RETRY_DELAY, DB_RETRY_BACKOFF_FACTOR
from .exceptions import (
    ConcurrencyConflictError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    NotFoundError,
)

logger = logging.getLogger(__name__)


def _engine_options(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"echo": False}
    return {
        "echo": False,
        "pool_size": 20,
        "max_overflow": 10,
        "pool_timeout": 30,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


engine = create_async_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

async_session = sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()

F = TypeVar("F", bound=Callable[..., Any])

RETRYABLE_ERRORS = (
    OperationalError,
    DisconnectionError,
    TimeoutError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
)


def db_retry(
    max_attempts: int = None,
    delay: float = None,
    backoff_factor: float = None,
    exceptions: tuple = None,
) -> Callable[[F], F]:
    """
    Retry decorator for connection-level database failures.

    Only used for startup and maintenance operations. Request handlers are
    never retried.

    Args:
        max_attempts: Maximum attempts (config default)
        delay: Initial delay between attempts (config default)
        backoff_factor: Delay multiplier
        exceptions: Exceptions that trigger a retry
    """
    max_attempts = max_attempts or DB_RETRY_ATTEMPTS
    delay = DB_RETRY_DELAY if delay is None else delay
    backoff_factor = backoff_factor or DB_RETRY_BACKOFF_FACTOR
    exceptions = exceptions or RETRYABLE_ERRORS

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args, **kwargs):
            current_delay = delay
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    last_exception = e
                    if attempt == max_attempts - 1:
                        break

                    logger.warning(
                        f"Database operation failed (attempt {attempt + 1}/{max_attempts}): {str(e)}",
                        extra={
                            "function": func.__name__,
                            "attempt": attempt + 1,
                            "max_attempts": max_attempts,
                            "exception_type": type(e).__name__,
                        },
                    )
                    await asyncio.sleep(current_delay)
                    current_delay *= backoff_factor

            logger.error(
                f"Database operation failed after {max_attempts} attempts: {str(last_exception)}",
                extra={
                    "function": func.__name__,
                    "max_attempts": max_attempts,
                    "final_exception": str(last_exception),
                },
            )

            if isinstance(last_exception, TimeoutError):
                raise DatabaseTimeoutError(func.__name__, 30)
            raise DatabaseConnectionError(
                f"Database connection failed after {max_attempts} attempts"
            )

        return wrapper

    return decorator


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Request-scoped database session"""
    session = async_session()
    try:
        yield session
    except Exception as e:
        await session.rollback()
        logger.debug(f"Session rolled back: {type(e).__name__}")
        raise
    finally:
        await session.close()


async def commit_versioned(
    session: AsyncSession, model, entity_id, resource: str
) -> None:
    """
    Commit an update of a row mapped with a version counter.

    A stale version means another request changed or deleted the row
    first: deleted rows surface as 404, modified ones as 409.
    """
    try:
        await session.commit()
    except StaleDataError:
        await session.rollback()
        still_there = await session.get(model, entity_id)
        if still_there is None:
            raise NotFoundError(resource, entity_id)
        raise ConcurrencyConflictError(resource, entity_id)


def check_expected_version(entity, expected_version, resource: str) -> None:
    """Reject an update made against an outdated read"""
    if expected_version is not None and expected_version != entity.version:
        raise ConcurrencyConflictError(resource, entity.id)


class DatabaseManager:
    """Schema and connection management"""

    @staticmethod
    @db_retry()
    async def create_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables created successfully")

    @staticmethod
    @db_retry()
    async def drop_tables():
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
        logger.warning("Database tables dropped")

    @staticmethod
    @db_retry()
    async def check_connection():
        async with engine.begin() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("Database connection check successful")
        return True

    @staticmethod
    async def close_connections():
        try:
            await engine.dispose()
            logger.info("Database connections closed successfully")
        except SQLAlchemyError as e:
            logger.error(f"Error closing database connections: {str(e)}")


db_manager = DatabaseManager()


def db_operation(func: F) -> F:
    """Log CRUD operations and their database failures"""

    @wraps(func)
    async def wrapper(*args, **kwargs):
        operation_name = func.__name__

        try:
            logger.debug(f"Starting database operation: {operation_name}")
            result = await func(*args, **kwargs)
            logger.debug(f"Database operation completed: {operation_name}")
            return result

        except SQLAlchemyError as e:
            logger.error(
                f"SQLAlchemy error in {operation_name}: {str(e)}",
                extra={"operation": operation_name, "exception_type": type(e).__name__},
            )
            raise

    return wrapper
