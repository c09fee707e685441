"""Exception handlers rendering the ``{"success": false, "error": ...}`` envelope."""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..core.errors import StorageError, ValidationError

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Internal server error"


def error_response(
    status_code: int,
    message: str,
    headers: Optional[Dict[str, str]] = None,
    **extra: Any,
) -> JSONResponse:
    body: Dict[str, Any] = {"success": False, "error": message, **extra}
    return JSONResponse(body, status_code=status_code, headers=headers)


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return bool(settings and settings.is_production)


async def handle_validation_error(request: Request, exc: ValidationError) -> JSONResponse:
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, exc.message)
    return error_response(400, exc.message)


async def handle_storage_error(request: Request, exc: StorageError) -> JSONResponse:
    logger.error(
        "Storage failure on %s %s", request.method, request.url.path, exc_info=exc
    )
    if _is_production(request):
        return error_response(500, GENERIC_SERVER_ERROR)

    detail = exc.message
    if exc.__cause__ is not None:
        detail = f"{exc.message}: {exc.__cause__}"
    return error_response(500, detail)


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return error_response(exc.status_code, str(exc.detail), headers=exc.headers)


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request body"
    if errors and not _is_production(request):
        message = f"{message}: {errors[0].get('msg', 'malformed input')}"
    return error_response(400, message)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort 500 envelope; also used by the innermost middleware."""

    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    if _is_production(request):
        return error_response(500, GENERIC_SERVER_ERROR)
    return error_response(500, str(exc) or GENERIC_SERVER_ERROR)


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, handle_validation_error)
    app.add_exception_handler(StorageError, handle_storage_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(Exception, handle_unexpected)


__all__ = [
    "GENERIC_SERVER_ERROR",
    "error_response",
    "handle_unexpected",
    "register_error_handlers",
]
