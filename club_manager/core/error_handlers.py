"""
Exception to HTTP response translation
"""

import json
import logging
import re
import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from sqlalchemy.exc import (
    SQLAlchemyError,
    IntegrityError,
    OperationalError,
    TimeoutError,
    DisconnectionError,
)
from sqlalchemy.orm.exc import StaleDataError
from asyncpg.exceptions import (
    PostgresError,
    ConnectionFailureError,
    ConnectionDoesNotExistError,
    TooManyConnectionsError,
)

from club_manager.core.config import DEBUG
from club_manager.core.exceptions import (
    BaseAppException,
    DatabaseError,
    DatabaseConnectionError,
    DatabaseTimeoutError,
    DatabaseIntegrityError,
)
from club_manager.core.logging_utils import error_tracker

logger = logging.getLogger(__name__)


def error_body(request: Request, error: str, message: str, details=None) -> dict:
    return {
        "error": error,
        "message": message,
        "details": details or {},
        "path": request.url.path,
    }


async def app_exception_handler(
    request: Request, exc: BaseAppException
) -> JSONResponse:
    log_level = logging.WARNING if exc.status_code < 500 else logging.ERROR
    logger.log(
        log_level,
        f"App exception: {exc.error_code} - {exc.message}",
        extra={
            "error_code": exc.error_code,
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, exc.error_code, exc.message, exc.details),
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    logger.warning(
        f"HTTP exception: {exc.status_code} - {exc.detail}",
        extra={
            "status_code": exc.status_code,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(request, "HTTP_ERROR", str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


def _json_safe(value):
    try:
        json.dumps(value)
        return value
    except (TypeError, ValueError):
        return str(value)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Request body/query validation failures are reported as 400"""
    formatted_errors = []
    for error in exc.errors():
        formatted_errors.append(
            {
                "field": " -> ".join(str(loc) for loc in error.get("loc", [])),
                "message": error.get("msg", "Validation error"),
                "type": error.get("type", "value_error"),
                "input": _json_safe(error.get("input")),
            }
        )

    logger.warning(
        f"Validation error: {len(formatted_errors)} field(s)",
        extra={
            "errors": formatted_errors,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=error_body(
            request,
            "VALIDATION_ERROR",
            f"Validation failed for {len(formatted_errors)} field(s)",
            {"fields": formatted_errors},
        ),
    )


def _constraint_name(exc: IntegrityError) -> str:
    orig = exc.orig
    name = getattr(orig, "constraint_name", None)
    if name:
        return name
    match = re.search(r'constraint "([^"]+)"', str(orig))
    if match:
        return match.group(1)
    match = re.search(r"UNIQUE constraint failed: ([\w., ]+)", str(orig))
    if match:
        return match.group(1)
    return "unknown"


async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    if isinstance(exc, IntegrityError):
        app_exc = DatabaseIntegrityError(_constraint_name(exc))
    elif isinstance(exc, StaleDataError):
        app_exc = DatabaseIntegrityError(
            "row_version", {"reason": "row was modified by another request"}
        )
    elif isinstance(exc, (OperationalError, DisconnectionError)):
        app_exc = DatabaseConnectionError("Database connection lost")
    elif isinstance(exc, TimeoutError):
        app_exc = DatabaseTimeoutError("database_operation", 30)
    else:
        app_exc = DatabaseError("Database operation failed")

    logger.error(
        f"Database exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=app_exc.status_code,
        content=error_body(request, app_exc.error_code, app_exc.message, app_exc.details),
    )


async def postgres_exception_handler(
    request: Request, exc: PostgresError
) -> JSONResponse:
    if isinstance(exc, (ConnectionFailureError, ConnectionDoesNotExistError)):
        app_exc = DatabaseConnectionError("PostgreSQL connection failed")
    elif isinstance(exc, TooManyConnectionsError):
        app_exc = DatabaseConnectionError("Too many database connections")
    else:
        app_exc = DatabaseError(
            "Database operation failed",
            details={"postgres_code": getattr(exc, "sqlstate", "unknown")},
        )

    logger.error(
        f"PostgreSQL exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "postgres_code": getattr(exc, "sqlstate", None),
            "path": request.url.path,
            "method": request.method,
        },
    )

    return JSONResponse(
        status_code=app_exc.status_code,
        content=error_body(request, app_exc.error_code, app_exc.message, app_exc.details),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Unhandled faults: generic message, details only in development"""
    logger.error(
        f"Unhandled exception: {type(exc).__name__} - {str(exc)}",
        extra={
            "exception_type": type(exc).__name__,
            "path": request.url.path,
            "method": request.method,
            "traceback": traceback.format_exc(),
        },
    )
    error_tracker.track_error(
        f"UNHANDLED_{type(exc).__name__}",
        str(exc),
        {"path": request.url.path, "method": request.method},
    )

    details = {}
    if DEBUG:
        details = {
            "exception_type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        }

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=error_body(
            request, "INTERNAL_SERVER_ERROR", "An unexpected error occurred", details
        ),
    )


def setup_exception_handlers(app):
    app.add_exception_handler(BaseAppException, app_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SQLAlchemyError, database_exception_handler)
    app.add_exception_handler(PostgresError, postgres_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    logger.info("Exception handlers registered successfully")
