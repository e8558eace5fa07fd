# src/linksy/errors.py
"""
Error types and FastAPI handlers.

Every error raised by services and repositories derives from LinksyError and
carries the HTTP status it should surface as. Handlers render them as
{"error": message, **details}.
"""

import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class LinksyError(Exception):
    """Base exception for all Linksy operations."""

    status_code = 500

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.headers = headers

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, **self.details}


class ValidationError(LinksyError):
    """Raised when request data fails validation."""

    status_code = 400


class AuthenticationError(LinksyError):
    """Raised when the caller is not signed in."""

    status_code = 401


class PermissionDeniedError(LinksyError):
    """Raised when the caller lacks the role for an action."""

    status_code = 403


class NotFoundError(LinksyError):
    """Raised when a record does not exist."""

    status_code = 404


class ConflictError(LinksyError):
    """Raised when an action conflicts with existing data."""

    status_code = 409


class RateLimitError(LinksyError):
    """Raised when a caller exceeds a request budget."""

    status_code = 429


class RepositoryError(LinksyError):
    """Raised when the hosted database rejects a query."""

    status_code = 500

    def __init__(self, message: str, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
        self.code = code


# PostgreSQL / PostgREST codes worth translating for API consumers
DATABASE_ERROR_MESSAGES = {
    "23505": "This record already exists. Please use a different value.",
    "23503": "Cannot delete this record because it is referenced by other data.",
    "23502": "Required field is missing. Please fill in all required fields.",
    "42501": "You do not have permission to perform this action.",
    "42P01": "Database table not found. Please contact support.",
    "42703": "Database column not found. Please contact support.",
    "22P02": "Invalid data format. Please check your input.",
    "23514": "Data validation failed. Please check your input.",
    "PGRST116": "No matching records found.",
    "PGRST301": "Session expired. Please sign in again.",
}


def describe_database_error(code: Optional[str], message: Optional[str] = None) -> str:
    """Turn a database error into a message safe to show to users."""
    if code in DATABASE_ERROR_MESSAGES:
        return DATABASE_ERROR_MESSAGES[code]
    if message and "::" not in message:
        return message
    return "A database error occurred. Please try again."


async def linksy_error_handler(request: Request, exc: LinksyError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(exc.to_dict(), status_code=exc.status_code, headers=exc.headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(part) for part in err.get("loc", [])[1:]), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return JSONResponse({"error": "Validation failed", "details": details}, status_code=400)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def register_error_handlers(app: FastAPI) -> None:
    """Attach the Linksy error handlers to an application."""
    app.add_exception_handler(LinksyError, linksy_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
