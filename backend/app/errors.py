"""Application error taxonomy and FastAPI exception handlers.

Every error raised by a service carries an ``ErrorCode`` and the HTTP status
it maps to. Handlers registered on the app turn them into a JSON body:

    {"error": "<message>", "code": "<ERROR_CODE>", "details": [...]}

Usage:
    from backend.app.errors import NotFoundError

    raise NotFoundError("Trip not found")
"""

import logging
from enum import Enum
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from backend.app.utils.metrics import api_errors_total

logger = logging.getLogger(__name__)


class ErrorCode(str, Enum):
    """Error codes for client-facing error bodies."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class TripPlannerError(Exception):
    """Base exception for all application errors."""

    code: ErrorCode = ErrorCode.INTERNAL_ERROR
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, details: list[dict[str, Any]] | None = None):
        self.message = message
        self.details = details
        super().__init__(message)

    def to_body(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message, "code": self.code.value}
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(TripPlannerError):
    """Malformed or inconsistent input, e.g. splits not summing to the total."""

    code = ErrorCode.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedError(TripPlannerError):
    """Missing or invalid credentials."""

    code = ErrorCode.UNAUTHORIZED
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenError(TripPlannerError):
    """Authenticated, but lacking access to the resource."""

    code = ErrorCode.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN


class NotFoundError(TripPlannerError):
    """Requested resource does not exist."""

    code = ErrorCode.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class InternalError(TripPlannerError):
    """Unexpected failure, typically in storage."""

    code = ErrorCode.INTERNAL_ERROR
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


async def handle_app_error(request: Request, exc: Exception) -> JSONResponse:
    """Render a TripPlannerError as JSON."""
    if not isinstance(exc, TripPlannerError):
        return await handle_unexpected_error(request, exc)
    api_errors_total.labels(code=exc.code.value).inc()

    if isinstance(exc, InternalError):
        # Log the cause, but keep it out of the response body
        logger.error(
            f"Internal error on {request.method} {request.url.path}: {exc.message}",
            exc_info=exc.__cause__ or exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": "Internal server error", "code": exc.code.value},
        )

    logger.info(
        f"Request rejected: {exc.code.value}",
        extra={"structured": {"path": request.url.path, "message": exc.message}},
    )
    headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, UnauthorizedError) else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def handle_request_validation_error(request: Request, exc: Exception) -> JSONResponse:
    """Map FastAPI body/path/query validation failures to 400 with field detail."""
    if not isinstance(exc, RequestValidationError):
        return await handle_unexpected_error(request, exc)
    details = [
        {
            "loc": [str(part) for part in error.get("loc", ())],
            "msg": error.get("msg", ""),
            "type": error.get("type", ""),
        }
        for error in exc.errors()
    ]
    error = ValidationError("Invalid request data", details=details)
    return await handle_app_error(request, error)


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler: log with traceback, answer with a generic 500."""
    logger.error(
        f"Unhandled error on {request.method} {request.url.path}",
        exc_info=exc,
    )
    api_errors_total.labels(code=ErrorCode.INTERNAL_ERROR.value).inc()
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Internal server error", "code": ErrorCode.INTERNAL_ERROR.value},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Attach the error handlers to the application."""
    app.add_exception_handler(TripPlannerError, handle_app_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(Exception, handle_unexpected_error)
