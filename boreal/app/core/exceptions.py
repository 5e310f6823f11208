"""
Application errors and the handlers that render them.

Every error response has the same body:
    {"error_code": ..., "message": ..., "details": {...}}
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from typing import Any, Dict, Optional

logger = logging.getLogger("boreal.errors")

# Codes for errors raised as plain HTTPException (auth, guards, bad input)
HTTP_ERROR_CODES = {
    400: "ERR_BAD_REQUEST",
    401: "ERR_UNAUTHORIZED",
    403: "ERR_FORBIDDEN",
    404: "ERR_NOT_FOUND",
    409: "ERR_CONFLICT",
    500: "ERR_INTERNAL_SERVER",
}


class AppException(Exception):
    """Base for errors raised by services; carries its HTTP rendering."""

    def __init__(
        self,
        message: str,
        error_code: str,
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}


class ResourceNotFoundError(AppException):
    """An application, policy or payout batch that does not exist."""

    def __init__(self, resource: str, resource_id: Any = None):
        if resource_id is None:
            message = f"{resource} not found"
        else:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message,
            "ERR_NOT_FOUND_001",
            status.HTTP_404_NOT_FOUND,
            {"resource": resource, "id": resource_id}
        )


class AuthenticationError(AppException):
    """Caller could not be authenticated (bad webhook secret)."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, "ERR_AUTH_001", status.HTTP_401_UNAUTHORIZED)


class InvalidStateTransitionError(AppException):
    """Status change not allowed by the entity's workflow."""

    def __init__(self, resource: str, current: str, requested: str):
        super().__init__(
            f"{resource} cannot move from {current} to {requested}",
            "ERR_STATE_001",
            status.HTTP_409_CONFLICT,
            {"resource": resource, "current": current, "requested": requested}
        )


class LedgerImbalanceError(AppException):
    """A ledger posting that could not balance (non-positive amount)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, "ERR_LEDGER_001", status.HTTP_500_INTERNAL_SERVER_ERROR, details)


def _error_response(
    status_code: int,
    error_code: str,
    message: Any,
    details: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error_code": error_code, "message": message, "details": details or {}},
        headers=headers
    )


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.error_code, request.method, request.url.path, exc.message)
    return _error_response(exc.status_code, exc.error_code, exc.message, exc.details)


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    return _error_response(
        exc.status_code,
        HTTP_ERROR_CODES.get(exc.status_code, "ERR_UNKNOWN"),
        exc.detail,
        headers=exc.headers
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Request body, path, query or header failed validation."""
    return _error_response(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "ERR_VALIDATION",
        "Validation error",
        {"errors": jsonable_encoder(exc.errors())}
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Last resort: log with traceback, answer without internals."""
    logger.error(
        "Unhandled %s on %s %s", type(exc).__name__, request.method, request.url.path, exc_info=exc
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, "ERR_INTERNAL_SERVER", "An internal server error occurred"
    )
