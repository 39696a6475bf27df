import logging
import re
import time
import uuid
from typing import Callable, Iterable, Optional

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from club_manager.core.logging_utils import error_tracker

logger = logging.getLogger(__name__)

DEFAULT_EXCLUDED_PATHS = ("/health", "/docs", "/openapi.json", "/redoc")

CLUB_PATH = re.compile(r"/clubs/([0-9a-fA-F-]{36})(?:/|$)")

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline'; "
        "img-src 'self' data: https:"
    ),
}


def client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def tenant_of(path: str) -> Optional[str]:
    """Club id of a club scoped path, if any"""
    match = CLUB_PATH.search(path)
    return match.group(1).lower() if match else None


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    One log line per request, tagged with the club the request targets.

    The request id is taken from X-Request-ID when the client sends one
    and echoed back on the response. Requests slower than
    `slow_request_threshold` seconds are logged again as warnings.
    """

    def __init__(
        self,
        app: ASGIApp,
        exclude_paths: Iterable[str] = DEFAULT_EXCLUDED_PATHS,
        slow_request_threshold: float = 1.0,
    ):
        super().__init__(app)
        self.exclude_paths = frozenset(exclude_paths)
        self.slow_request_threshold = slow_request_threshold

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        path = request.url.path
        if path in self.exclude_paths:
            return await call_next(request)

        request_id = request.headers.get("x-request-id") or uuid.uuid4().hex[:8]
        request.state.request_id = request_id
        context = {
            "request_id": request_id,
            "method": request.method,
            "path": path,
            "club_id": tenant_of(path),
            "client_ip": client_ip(request),
        }
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                f"{request.method} {path} failed",
                extra={**context, "error_type": type(e).__name__},
            )
            raise

        duration = time.perf_counter() - start_time
        context.update(
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2),
        )
        logger.info(f"{request.method} {path} {response.status_code}", extra=context)

        if duration > self.slow_request_threshold:
            logger.warning(
                f"Slow request: {request.method} {path}",
                extra={**context, "category": "performance"},
            )

        response.headers["X-Request-ID"] = request_id
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)
        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response


class ErrorTrackingMiddleware(BaseHTTPMiddleware):
    """Counts 4xx/5xx responses per status code and club"""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        if response.status_code >= 400:
            error_tracker.track_error(
                error_type=f"HTTP_{response.status_code}",
                error_message=f"{request.method} {request.url.path}",
                context={
                    "club_id": tenant_of(request.url.path),
                    "client_ip": client_ip(request),
                },
            )

        return response


def setup_middleware(app, config: dict = None):
    """Request logging is registered last so it wraps the other middleware"""
    config = config or {}

    app.add_middleware(ErrorTrackingMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        RequestLoggingMiddleware,
        exclude_paths=config.get("exclude_paths", DEFAULT_EXCLUDED_PATHS),
        slow_request_threshold=config.get("slow_request_threshold", 1.0),
    )

    logger.info("Middleware configured")
