"""
Application error taxonomy.

Services raise these instead of HTTPException; the handlers registered in
``kasir.main`` render them into the standard failure envelope.
"""
from typing import Any, Optional


class AppError(Exception):
    """Base class for errors that map to an HTTP response."""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(self, message: Optional[str] = None, error: Any = None):
        self.message = message or self.default_message
        self.error = error
        super().__init__(self.message)


class UnauthenticatedError(AppError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(AppError):
    status_code = 403
    default_message = "You do not have access to this resource"


class BadRequestError(AppError):
    status_code = 400
    default_message = "Bad request"


class NotFoundError(AppError):
    status_code = 404
    default_message = "Resource not found"


class ConflictError(AppError):
    status_code = 409
    default_message = "Conflict"


class InvalidStateError(AppError):
    status_code = 409
    default_message = "Resource is not in a valid state for this operation"


class UpstreamError(AppError):
    """A non-2xx answer from the payment gateway, carrying its status and body."""

    status_code = 502
    default_message = "Payment gateway error"

    def __init__(self, message: Optional[str] = None, status_code: Optional[int] = None, body: Any = None):
        super().__init__(message, error=body)
        if status_code:
            self.status_code = status_code
        self.body = body


class InternalError(AppError):
    status_code = 500
    default_message = "Internal Server Error"


class CompensationError(InternalError):
    """A saga compensation failed; the earlier steps are left partially applied."""

    default_message = "Rollback failed, manual cleanup required"
