"""
Domain exceptions.

Services raise these instead of ``HTTPException`` so business rules stay
independent of the web layer. The server registers a handler that turns each
one into a JSON response with the matching status code.
"""

from typing import Any, Dict, Optional


class NgurraError(Exception):
    """Base class for expected, user-facing failures."""

    status_code: int = 400
    default_message: str = "Request could not be processed"

    def __init__(self, message: Optional[str] = None, extra: Optional[Dict[str, Any]] = None) -> None:
        self.message = message or self.default_message
        self.extra = extra or {}
        super().__init__(self.message)


class BadRequestError(NgurraError):
    status_code = 400
    default_message = "Bad request"


class AuthenticationError(NgurraError):
    status_code = 401
    default_message = "Authentication required"


class ForbiddenError(NgurraError):
    status_code = 403
    default_message = "Forbidden"


class NotFoundError(NgurraError):
    """A resource does not exist or is not visible to the caller."""

    status_code = 404
    default_message = "Not found"

    def __init__(self, resource: str = "Resource", message: Optional[str] = None) -> None:
        self.resource = resource
        super().__init__(message or f"{resource} not found")


class ConflictError(NgurraError):
    status_code = 409
    default_message = "Conflict"


class RateLimitError(NgurraError):
    """Too many actions of one kind inside a time window."""

    status_code = 429
    default_message = "Rate limit exceeded"

    def __init__(self, message: Optional[str] = None, retry_after: int = 60) -> None:
        self.retry_after = retry_after
        super().__init__(message)


class PaymentProviderError(NgurraError):
    status_code = 502
    default_message = "Payment provider request failed"


class ServiceUnavailableError(NgurraError):
    status_code = 503
    default_message = "Service unavailable"
