"""
Logging Middleware

Request/response logging with timing for every API call.
"""

import logging
import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

# Probed constantly by load balancers; logged at DEBUG only
QUIET_PATHS = ("/health", "/health/detailed")


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log HTTP requests and responses.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()

        method = request.method
        path = request.url.path
        client_ip = request.client.host if request.client else "unknown"
        request_id = getattr(request.state, "request_id", "unknown")
        level = logging.DEBUG if path in QUIET_PATHS else logging.INFO

        logger.log(
            level,
            f"Request started: {method} {path}",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "client_ip": client_ip,
                "event_type": "request_start",
            },
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            process_time = time.perf_counter() - start_time
            logger.error(
                f"Request failed: {method} {path} in {process_time:.3f}s - {exc}",
                extra={
                    "request_id": request_id,
                    "method": method,
                    "path": path,
                    "process_time": process_time,
                    "error": str(exc),
                    "event_type": "request_error",
                },
            )
            # Handled by ErrorHandlerMiddleware
            raise

        process_time = time.perf_counter() - start_time
        logger.log(
            level,
            f"Request completed: {method} {path} - {response.status_code} in {process_time:.3f}s",
            extra={
                "request_id": request_id,
                "method": method,
                "path": path,
                "status_code": response.status_code,
                "process_time": process_time,
                "event_type": "request_complete",
            },
        )

        response.headers["X-Process-Time"] = f"{process_time:.6f}"
        return response
