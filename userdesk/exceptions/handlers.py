"""
Custom Exception Handlers

JSON error bodies for failures raised by the framework itself: unknown
routes, wrong methods, unparseable path parameters and unexpected errors.
User operations never reach these; they build their own error bodies.
"""

import logging
from typing import Any, Dict

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


def _request_id(request: Request):
    return getattr(request.state, "request_id", None)


def _error_response(request: Request, status_code: int, content: Dict[str, Any], headers=None) -> JSONResponse:
    content["request_id"] = _request_id(request)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def not_found_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle 404 Not Found errors for unknown routes."""
    return _error_response(request, 404, {"error": "Not Found"})


async def method_not_allowed_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle 405 Method Not Allowed errors."""
    logger.debug("Method %s not allowed for %s", request.method, request.url.path)
    return _error_response(
        request,
        405,
        {"error": "Method Not Allowed"},
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle 422 errors for path and query parameters.

    Errors are grouped per parameter name in the same shape user forms use.
    """
    fields: Dict[str, list] = {}
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("path", "query", "body")]
        key = ".".join(loc) or "request"
        fields.setdefault(key, []).append(error.get("msg", "Invalid value"))

    logger.debug("Request validation failed for %s: %s", request.url.path, fields)
    return _error_response(
        request,
        422,
        {"error": "Invalid request parameters", "notValidFields": fields},
    )


async def generic_http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle any other HTTP exception raised by the framework."""
    status_code = getattr(exc, "status_code", 500)
    if status_code >= 500:
        logger.error("HTTP %s on %s: %s", status_code, request.url.path, getattr(exc, "detail", exc))

    return _error_response(
        request,
        status_code,
        {"error": str(getattr(exc, "detail", "Internal Server Error"))},
        headers=getattr(exc, "headers", None),
    )


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Convert unexpected Python exceptions to 500 errors."""
    logger.error(f"Unexpected error: {exc}", exc_info=True)
    return _error_response(request, 500, {"error": "Internal server error"})
