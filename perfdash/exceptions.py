"""
Custom exceptions and handlers for consistent API error responses.

Every response carries a ``return_code``; errors add a safe ``message`` and,
in development only, the underlying ``error`` text.
"""
from typing import Optional

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from perfdash.config import get_settings
from perfdash.utils.logger import log


class APIError(Exception):
    """Base API error with consistent structure"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return_code = "SERVER_ERROR"

    def __init__(
        self,
        message: str,
        return_code: Optional[str] = None,
        error: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        if return_code:
            self.return_code = return_code
        self.error = error


class ValidationError(APIError):
    """Missing or malformed request input"""

    status_code = status.HTTP_400_BAD_REQUEST
    return_code = "VALIDATION_ERROR"


class NotFoundError(APIError):
    """Requested entity absent"""

    status_code = status.HTTP_404_NOT_FOUND
    return_code = "NOT_FOUND"


class DataSourceError(APIError):
    """Underlying query failure"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return_code = "DATABASE_ERROR"

    def __init__(self, operation: str, message: str, error: Optional[str] = None):
        super().__init__(message, error=error)
        self.operation = operation


class PeriodResolutionError(Exception):
    """A comparison period could not be formed. Recovered by the caller."""

    label = "No comparison data available"

    def __init__(self, reason: str, current_period: Optional[str] = None):
        super().__init__(reason)
        self.reason = reason
        self.current_period = current_period


class NoDataAvailable(PeriodResolutionError):
    """The snapshot store has no rows for the channel"""

    label = "No historical data available"


class InsufficientHistory(PeriodResolutionError):
    """The comparison period has no snapshot rows"""


def _envelope(return_code: str, message: str, error: Optional[str] = None) -> dict:
    body = {"return_code": return_code, "message": message}
    if error and get_settings().is_development:
        body["error"] = error
    return body


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    """Render an APIError as the standard envelope"""
    if exc.status_code >= 500:
        log.error(f"{exc.return_code} at {request.url.path}: {exc.message} ({exc.error})")
    else:
        log.warning(f"{exc.return_code} at {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope(exc.return_code, exc.message, exc.error),
    )


async def handle_request_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Body failed Pydantic validation"""
    log.warning(f"Invalid request body at {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=_envelope("VALIDATION_ERROR", "Invalid request parameters", str(exc.errors())),
    )


async def handle_http_exception(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Unknown routes and wrong methods"""
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope("NOT_FOUND", "Route not found"),
        )
    if exc.status_code == status.HTTP_405_METHOD_NOT_ALLOWED:
        return JSONResponse(
            status_code=exc.status_code,
            content=_envelope("METHOD_NOT_ALLOWED", "Only POST is supported"),
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_envelope("SERVER_ERROR", str(exc.detail)),
    )


async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    """Last-resort handler"""
    log.exception(f"Unhandled error at {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_envelope("SERVER_ERROR", "Internal server error", str(exc)),
    )


def register_exception_handlers(app) -> None:
    app.add_exception_handler(APIError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_request_validation_error)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(Exception, handle_unexpected_error)
