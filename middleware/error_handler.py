"""
Error Handling Middleware

Assigns a request id to every request and turns exceptions that escaped
all handlers into a JSON 500 response.
"""

import logging
import uuid
from typing import Callable
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware to tag requests and handle uncaught exceptions.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Keep an id supplied by an upstream proxy
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                f"Unhandled exception in request {request_id}: {exc}",
                extra={
                    "request_id": request_id,
                    "method": request.method,
                    "path": request.url.path,
                },
                exc_info=True,
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": "Internal server error",
                    "request_id": request_id,
                },
                headers={REQUEST_ID_HEADER: request_id},
            )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
