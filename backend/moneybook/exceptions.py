"""
Typed application errors.

Services raise these; the handlers in ``moneybook.main`` turn them into the
``{success, message, errors}`` envelope with the matching status code.
"""

from typing import Any, Dict, List, Optional


class AppError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, errors: Optional[List[Any]] = None):
        self.message = message or self.default_message
        self.errors = errors or []
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None


class ValidationFailed(AppError):
    status_code = 400
    default_message = "Validation failed"


class UnauthorizedError(AppError):
    status_code = 401
    default_message = "Unauthorized"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Access denied - you can only access your own resources"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class PayloadTooLarge(AppError):
    status_code = 413
    default_message = "Request payload too large"


class RateLimitedError(AppError):
    status_code = 429
    default_message = "Too many requests, please try again later"

    def __init__(self, retry_after: int, message: Optional[str] = None):
        self.retry_after = retry_after
        super().__init__(message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"Retry-After": str(self.retry_after)}


class StoreUnavailable(AppError):
    status_code = 503
    default_message = "Database connection error"


class TokenExpired(UnauthorizedError):
    default_message = "Token has expired"


class TokenInvalid(UnauthorizedError):
    default_message = "Invalid token"
