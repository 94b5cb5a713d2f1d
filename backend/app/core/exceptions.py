"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger("nexachain.errors")


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class AuthenticationError(AppException):
    """Raised for authentication failures."""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_001",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class TokenRevokedError(AppException):
    """Raised when token has been revoked."""

    def __init__(self, message: str = "Token has been revoked"):
        super().__init__(
            message=message,
            error_code="ERR_AUTH_002",
            status_code=status.HTTP_401_UNAUTHORIZED
        )


class InsufficientPermissionsError(AppException):
    """Raised when user doesn't have permission to perform an action."""

    def __init__(self, message: str = "Insufficient permissions", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_PERM_001",
            status_code=status.HTTP_403_FORBIDDEN,
            details=details
        )


class CannotRemoveSelfError(AppException):
    """Raised when an admin tries to revoke their own admin access."""

    def __init__(self, message: str = "Cannot remove your own admin access"):
        super().__init__(
            message=message,
            error_code="ERR_PERM_002",
            status_code=status.HTTP_400_BAD_REQUEST
        )


class ResourceNotFoundError(AppException):
    """Raised when requested resource is not found."""

    def __init__(self, resource: str, resource_id: Any = None):
        message = f"{resource} not found"
        if resource_id:
            message = f"{resource} with ID {resource_id} not found"
        super().__init__(
            message=message,
            error_code="ERR_NOT_FOUND_001",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"resource": resource, "id": resource_id}
        )


class InvalidStateError(AppException):
    """Raised when a request is not in the lifecycle state an action needs."""

    def __init__(self, resource: str, current_status: str, expected_status: str = "pending"):
        super().__init__(
            message=f"{resource} already {current_status}",
            error_code="ERR_STATE_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"status": current_status, "expected": expected_status}
        )


class InsufficientFundsError(AppException):
    """Raised when a debit would take an account balance below zero."""

    def __init__(self, message: str = "Insufficient balance", details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_FUNDS_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class ValidationFailedError(AppException):
    """Raised for missing or malformed input that passed schema parsing."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_VALIDATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class ServiceUnavailableError(AppException):
    """Raised when an upstream dependency (auth provider, Redis) fails or times out."""

    def __init__(self, service: str, message: str = None):
        super().__init__(
            message=message or f"{service} is unavailable",
            error_code="ERR_UPSTREAM_001",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"service": service}
        )


# Global Exception Handlers

def _error_body(request: Request, error_code: str, message: Any, details: Dict[str, Any] = None) -> Dict[str, Any]:
    return {
        "error_code": error_code,
        "message": message,
        "details": jsonable_encoder(details or {}),
        "correlation_id": getattr(request.state, "correlation_id", None),
    }


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    if exc.status_code >= 500:
        logger.error(
            exc.message,
            extra={"error_code": exc.error_code, "path": request.url.path, "details": exc.details}
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.error_code, exc.message, exc.details)
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER",
        503: "ERR_UNAVAILABLE"
    }

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, error_code_map.get(exc.status_code, "ERR_UNKNOWN"), exc.detail),
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors."""
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=_error_body(request, "ERR_VALIDATION", "Validation error", {"errors": exc.errors()})
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions; the detail goes to the log, never the client."""
    logger.exception(
        "Unhandled exception",
        extra={"method": request.method, "path": request.url.path}
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(request, "ERR_INTERNAL_SERVER", "An internal server error occurred")
    )
