"""
Request Logging Middleware

Logs every request's method, path, status and duration at debug level.
Headers are never logged; they carry the shared secrets.
"""

import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from ..common.logging_setup import get_service_logger

logger = get_service_logger("middleware.request_log")


# Paths not worth logging
EXCLUDED_PATHS = [
    "/health",
]


class RequestLogMiddleware(BaseHTTPMiddleware):
    """Debug-level access log"""

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if path in EXCLUDED_PATHS:
            return await call_next(request)

        logger.debug(f"Received request: method={request.method}, path={path}")
        started = time.perf_counter()

        response = await call_next(request)

        duration_ms = (time.perf_counter() - started) * 1000
        logger.debug(
            f"{request.method} {path} -> {response.status_code} ({duration_ms:.1f}ms)",
            extra={
                "method": request.method,
                "path": path,
                "status": response.status_code,
                "duration_ms": round(duration_ms, 1),
            },
        )
        return response
