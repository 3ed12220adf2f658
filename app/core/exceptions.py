"""
Typed outcomes raised by the service layer.

Services raise these instead of HTTPException so they stay usable outside a
request; the handlers registered in app.main render them into the standard
response envelope.
"""
from typing import Dict, List, Optional


class AppError(Exception):
    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailed(AppError):
    """Field-level input errors"""
    status_code = 400
    default_message = "Validation failed"

    def __init__(self, errors: List[Dict[str, str]], message: Optional[str] = None):
        self.errors = errors
        super().__init__(message)

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls([{"field": field, "message": message}])


class ConflictError(AppError):
    """A unique key already exists"""
    status_code = 400
    default_message = "Resource already exists"


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Not authenticated"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "Not enough permissions"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"
